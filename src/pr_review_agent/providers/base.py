import json
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, TypeVar
from pydantic import BaseModel, ValidationError


T = TypeVar("T", bound=BaseModel)

JSON_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL)


class ProviderError(Exception):
    """LLM provider call failed. ``retryable`` marks transient failures."""

    def __init__(self, message: str, retryable: bool = False):
        super().__init__(message)
        self.retryable = retryable


class RateLimitError(ProviderError):
    def __init__(self, message: str):
        super().__init__(message, retryable=True)


class StructuredOutputError(ProviderError):
    def __init__(self, message: str):
        super().__init__(message, retryable=False)


@dataclass(frozen=True)
class ToolSchema:
    name: str
    description: str
    parameters: type[BaseModel]

    def json_schema(self) -> dict[str, Any]:
        return self.parameters.model_json_schema()


@dataclass
class ToolInvocation:
    name: str
    arguments: dict[str, Any] = field(default_factory=dict)


@dataclass
class ToolGeneration:
    text: str
    tool_invocations: list[ToolInvocation] = field(default_factory=list)


def schema_instructions(schema: type[BaseModel]) -> str:
    return (
        "Return ONLY valid JSON matching this JSON schema:\n"
        f"```json\n{json.dumps(schema.model_json_schema(), indent=2)}\n```"
    )


def parse_structured(text: str, schema: type[T]) -> T:
    """Validate a model response against ``schema``.

    The JSON may be wrapped in ```json or ``` fences.
    """
    json_match = JSON_FENCE_RE.search(text)
    if json_match:
        text = json_match.group(1)

    if not text.strip():
        raise StructuredOutputError("Provider returned an empty response")
    try:
        return schema.model_validate_json(text)
    except ValidationError as e:
        raise StructuredOutputError(f"Response does not match {schema.__name__}: {e}") from e


class LLMProvider(ABC):
    @abstractmethod
    async def generate_with_tools(
        self,
        system_prompt: str,
        user_prompt: str,
        tools: list[ToolSchema],
    ) -> ToolGeneration:
        """Free-form generation that may call any of ``tools``."""
        pass

    @abstractmethod
    async def generate_structured(self, prompt: str, schema: type[T]) -> T:
        """Generate an object validated against ``schema``; raise StructuredOutputError otherwise."""
        pass
