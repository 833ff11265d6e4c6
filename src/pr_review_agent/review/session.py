from dataclasses import dataclass, field
from pr_review_agent.models.github import ChangedFile
from pr_review_agent.models.review import Issue
from .cache import ContentCache


@dataclass
class ReviewSession:
    """Mutable state of one review invocation."""

    owner: str
    repo: str
    pr_number: int
    filtered_files: list[ChangedFile]
    base_commit: str
    head_commit: str
    content_cache: ContentCache
    reviewed_files: set[str] = field(default_factory=set)
    comments_posted: int = 0
    per_file_step_count: dict[str, int] = field(default_factory=dict)
    total_step_count: int = 0
    project_structure: str = ""
    findings: list[tuple[str, Issue]] = field(default_factory=list)
    posted_keys: set[tuple[str, int, int, str]] = field(default_factory=set)
    skipped_files: list[str] = field(default_factory=list)

    def steps_for(self, filename: str) -> int:
        return self.per_file_step_count.get(filename, 0)

    def record_step(self, filename: str) -> None:
        self.per_file_step_count[filename] = self.steps_for(filename) + 1
        self.total_step_count += 1

    def start_attempt(self) -> None:
        """Reset per-attempt progress; the global step count spans the whole run."""
        self.per_file_step_count.clear()
        self.project_structure = ""
