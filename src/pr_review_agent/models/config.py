from enum import Enum
from pydantic import BaseModel, Field, field_validator


class Category(str, Enum):
    SECURITY = "security"
    PERFORMANCE = "performance"
    BUG = "bug"
    TYPE_SAFETY = "type-safety"
    ERROR_HANDLING = "error-handling"
    MAINTAINABILITY = "maintainability"
    BEST_PRACTICE = "best-practice"
    OTHER = "other"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def _split_rules(value: str | list[str] | None) -> list[str]:
    """Split a comma separated rule string and normalize each token.

    Tokens starting with "." are extensions and kept as-is; everything else is
    a path prefix and gets a trailing "/".
    """
    if value is None:
        return []
    items = value.split(",") if isinstance(value, str) else value

    rules = []
    for item in items:
        normalized = str(item).strip().replace("\\", "/")
        if not normalized:
            continue
        if normalized.startswith("."):
            rules.append(normalized)
        else:
            rules.append(normalized if normalized.endswith("/") else f"{normalized}/")
    return rules


class ReviewFilters(BaseModel):
    include_extensions: list[str] = Field(default_factory=list)
    exclude_extensions: list[str] = Field(default_factory=list)
    include_paths: list[str] = Field(default_factory=list)
    exclude_paths: list[str] = Field(default_factory=list)

    @field_validator(
        "include_extensions",
        "exclude_extensions",
        "include_paths",
        "exclude_paths",
        mode="before",
    )
    @classmethod
    def parse_rules(cls, value):
        return _split_rules(value)

    def merged_with(self, overrides: dict) -> "ReviewFilters":
        """Return a copy where every non-empty override replaces our value."""
        data = self.model_dump()
        for key in data:
            if overrides.get(key):
                data[key] = overrides[key]
        return ReviewFilters(**data)
