from abc import ABC, abstractmethod
from pr_review_agent.models.github import ChangedFile, DirectoryEntry, IssueComment, PullRequestRefs
from pr_review_agent.models.review import ReviewSide


BINARY_FILE_SENTINEL = "[Binary file not shown]"
UNAVAILABLE_SENTINEL = "[File content unavailable]"
DIRECTORY_SENTINEL = "[Directory not shown]"

CONTENT_SENTINELS = (BINARY_FILE_SENTINEL, UNAVAILABLE_SENTINEL, DIRECTORY_SENTINEL)


def is_sentinel(content: str) -> bool:
    return content.strip() in CONTENT_SENTINELS


class GitPlatform(ABC):
    @abstractmethod
    async def get_pull_request(self, owner: str, repo: str, number: int) -> PullRequestRefs:
        pass

    @abstractmethod
    async def get_files_between_commits(
        self, owner: str, repo: str, base: str, head: str
    ) -> list[ChangedFile]:
        pass

    @abstractmethod
    async def get_content(
        self, owner: str, repo: str, base_ref: str, head_ref: str, path: str
    ) -> str:
        """Return file content at head_ref, or a sentinel string when it cannot be shown."""
        pass

    @abstractmethod
    async def list_directory(self, owner: str, repo: str, path: str, ref: str) -> list[DirectoryEntry]:
        pass

    @abstractmethod
    async def list_comments(self, owner: str, repo: str, number: int) -> list[IssueComment]:
        pass

    @abstractmethod
    async def create_comment(self, owner: str, repo: str, number: int, body: str) -> None:
        pass

    @abstractmethod
    async def create_review_comment(
        self,
        owner: str,
        repo: str,
        number: int,
        head_commit: str,
        body: str,
        path: str,
        side: ReviewSide,
        start_line: int,
        end_line: int,
    ) -> None:
        pass
