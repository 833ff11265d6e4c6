from enum import Enum
from pydantic import BaseModel, Field


class FileStatus(str, Enum):
    ADDED = "added"
    MODIFIED = "modified"
    REMOVED = "removed"
    RENAMED = "renamed"
    COPIED = "copied"
    CHANGED = "changed"
    UNCHANGED = "unchanged"


class ChangedFile(BaseModel):
    filename: str
    status: FileStatus
    additions: int = Field(default=0, ge=0)
    deletions: int = Field(default=0, ge=0)
    changes: int = Field(default=0, ge=0)
    patch: str | None = None

    model_config = {"frozen": True}


class PullRequestRefs(BaseModel):
    head_commit: str
    base_commit: str


class IssueComment(BaseModel):
    id: int | None = None
    body: str | None = None
    created_at: str | None = None


class DirectoryEntry(BaseModel):
    name: str
    path: str
    type: str


class GitHubUser(BaseModel):
    login: str


class GitHubRepository(BaseModel):
    name: str
    full_name: str
    owner: GitHubUser


class GitHubPullRequest(BaseModel):
    number: int
    title: str | None = None
    draft: bool = False


class GitHubPullRequestEvent(BaseModel):
    action: str
    number: int
    pull_request: GitHubPullRequest
    repository: GitHubRepository
