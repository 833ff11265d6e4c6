from pydantic import BaseModel, Field
from pr_review_agent.providers.base import ToolSchema


MARK_AS_DONE = "mark_as_done"


class MarkAsDoneArgs(BaseModel):
    brief_summary: str = Field(
        description="A brief summary of the changes reviewed. Do not repeat comments."
    )


SUMMARY_TOOLS = [
    ToolSchema(
        MARK_AS_DONE,
        "Marks the code review as completed and provides a brief summary of the changes",
        MarkAsDoneArgs,
    ),
]
