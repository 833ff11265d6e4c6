from .config import Category, ReviewFilters, Severity
from .github import ChangedFile, FileStatus, GitHubPullRequestEvent, IssueComment, PullRequestRefs
from .review import Issue, ReviewResult, ReviewSide, ReviewStep

__all__ = [
    "Category",
    "ReviewFilters",
    "Severity",
    "ChangedFile",
    "FileStatus",
    "GitHubPullRequestEvent",
    "IssueComment",
    "PullRequestRefs",
    "Issue",
    "ReviewResult",
    "ReviewSide",
    "ReviewStep",
]
