from enum import Enum
from typing import Annotated, Literal, Union
from pydantic import BaseModel, Field, model_validator
from .config import Category, Severity


class ReviewSide(str, Enum):
    LEFT = "LEFT"
    RIGHT = "RIGHT"


class Issue(BaseModel):
    line_start: int = Field(alias="lineStart", ge=1)
    line_end: int = Field(alias="lineEnd", ge=1)
    description: str = Field(min_length=1)
    severity: Severity
    category: Category = Category.OTHER
    suggested_fix: str | None = Field(default=None, alias="suggestedFix")
    suggest_as_diff: bool = Field(default=False, alias="suggestAsDiff")

    model_config = {"populate_by_name": True}

    @model_validator(mode="after")
    def check_range(self):
        if self.line_end < self.line_start:
            raise ValueError("lineEnd must not be lower than lineStart")
        return self


class GetFileContentAction(BaseModel):
    action: Literal["get_file_content"]
    path_to_file: str
    start_line_number: int | None = Field(default=None, ge=1)
    end_line_number: int | None = Field(default=None, ge=1)
    reasoning: str = ""


class ExploreProjectAction(BaseModel):
    action: Literal["explore_project"]
    directory_path: str = "."
    reasoning: str = ""


class MarkAsDoneAction(BaseModel):
    action: Literal["mark_as_done"]
    brief_summary: str = ""
    reasoning: str = ""


NextAction = Annotated[
    Union[GetFileContentAction, ExploreProjectAction, MarkAsDoneAction],
    Field(discriminator="action"),
]


class ReviewStep(BaseModel):
    """One bounded analysis step the model returns for the current file."""

    current_file: str = Field(alias="currentFile")
    analysis_complete: bool = Field(default=False, alias="analysisComplete")
    observations: list[str] = Field(default_factory=list)
    issues: list[Issue] = Field(default_factory=list)
    next_action: NextAction | None = Field(default=None, alias="nextAction")

    model_config = {"populate_by_name": True}


class FileReview(BaseModel):
    filename: str
    summary: str = ""
    issues: list[Issue] = Field(default_factory=list)


class ReviewResult(BaseModel):
    """Structured aggregation of a whole pull request review."""

    summary: str = Field(min_length=1)
    files_reviewed: list[FileReview] = Field(default_factory=list, alias="filesReviewed")
    overall_severity: Severity = Field(alias="overallSeverity")
    recommendations: list[str] = Field(default_factory=list)

    model_config = {"populate_by_name": True}
