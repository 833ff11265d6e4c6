import base64
import logging
from typing import Any
from urllib.parse import quote
import httpx
from pr_review_agent.models.github import ChangedFile, DirectoryEntry, IssueComment, PullRequestRefs
from pr_review_agent.models.review import ReviewSide
from .base import (
    BINARY_FILE_SENTINEL,
    DIRECTORY_SENTINEL,
    UNAVAILABLE_SENTINEL,
    GitPlatform,
)


logger = logging.getLogger(__name__)

PER_PAGE = 100


class GitHubClient(GitPlatform):
    def __init__(self, token: str, base_url: str = "https://api.github.com"):
        self.token = token
        self.api_url = base_url.rstrip("/")

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _get_paginated(self, url: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        """Collect every page of a list endpoint."""
        items: list[dict[str, Any]] = []
        page = 1
        async with httpx.AsyncClient() as client:
            while True:
                response = await client.get(
                    url,
                    params={**(params or {}), "per_page": PER_PAGE, "page": page},
                    headers=self._headers(),
                    timeout=30.0,
                )
                response.raise_for_status()
                batch = response.json()
                items.extend(batch)

                has_next = 'rel="next"' in response.headers.get("link", "")
                if not has_next or len(batch) < PER_PAGE:
                    break
                page += 1
        return items

    async def get_pull_request(self, owner: str, repo: str, number: int) -> PullRequestRefs:
        logger.info(f"Getting pull request #{number}")
        async with httpx.AsyncClient() as client:
            response = await client.get(
                f"{self.api_url}/repos/{owner}/{repo}/pulls/{number}",
                headers=self._headers(),
                timeout=30.0,
            )
            response.raise_for_status()
            data = response.json()

        head = (data.get("head") or {}).get("sha")
        base = (data.get("base") or {}).get("sha")
        if not head or not base:
            raise ValueError(f"Failed to get commit information for PR #{number}")
        return PullRequestRefs(head_commit=head, base_commit=base)

    async def get_files_between_commits(
        self, owner: str, repo: str, base: str, head: str
    ) -> list[ChangedFile]:
        logger.info(f"Getting files between commits: {base[:7]} -> {head[:7]}")
        async with httpx.AsyncClient() as client:
            response = await client.get(
                f"{self.api_url}/repos/{owner}/{repo}/compare/{base}...{head}",
                headers=self._headers(),
                timeout=30.0,
            )
            response.raise_for_status()
            data = response.json()
        return [ChangedFile(**item) for item in data.get("files") or []]

    async def get_content(
        self, owner: str, repo: str, base_ref: str, head_ref: str, path: str
    ) -> str:
        logger.info(f"Getting content: {path} ({base_ref[:7]} -> {head_ref[:7]})")
        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(
                    f"{self.api_url}/repos/{owner}/{repo}/contents/{quote(path)}",
                    params={"ref": head_ref},
                    headers=self._headers(),
                    timeout=30.0,
                )
                response.raise_for_status()
                metadata = response.json()

                if isinstance(metadata, list):
                    logger.warning(f"Path {path} is a directory, not a file")
                    return DIRECTORY_SENTINEL
                if metadata.get("type") != "file":
                    logger.warning(f"Path {path} is not a file (type: {metadata.get('type')})")
                    return UNAVAILABLE_SENTINEL

                if metadata.get("content") and metadata.get("encoding") == "base64":
                    return _decode(base64.b64decode(metadata["content"]))

                # Files over 1MB come back without inline content
                download_url = metadata.get("download_url")
                if download_url:
                    raw = await client.get(download_url, headers=self._headers(), timeout=30.0)
                    raw.raise_for_status()
                    return _decode(raw.content)
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                logger.warning(f"File {path} not found at {head_ref[:7]}")
                return UNAVAILABLE_SENTINEL
            logger.warning(f"Error getting content for {path}: {e}")
        except httpx.HTTPError as e:
            logger.warning(f"Error getting content for {path}: {e}")

        patched = await self._content_from_patch(owner, repo, base_ref, head_ref, path)
        if patched is not None:
            return patched

        logger.warning(f"All methods to retrieve content for {path} failed")
        return UNAVAILABLE_SENTINEL

    async def _content_from_patch(
        self, owner: str, repo: str, base_ref: str, head_ref: str, path: str
    ) -> str | None:
        """Rebuild an approximation of the new file from its patch."""
        try:
            files = await self.get_files_between_commits(owner, repo, base_ref, head_ref)
        except httpx.HTTPError as e:
            logger.warning(f"Error extracting content from diff for {path}: {e}")
            return None

        for changed in files:
            if changed.filename == path and changed.patch:
                lines = [
                    line[1:] if line.startswith(("+", " ")) else line
                    for line in changed.patch.split("\n")
                    if not line.startswith("-") and not line.startswith("@@")
                ]
                return "\n".join(lines)
        return None

    async def list_directory(self, owner: str, repo: str, path: str, ref: str) -> list[DirectoryEntry]:
        normalized = path.strip().strip("/")
        if normalized in ("", "."):
            url = f"{self.api_url}/repos/{owner}/{repo}/contents"
        else:
            url = f"{self.api_url}/repos/{owner}/{repo}/contents/{quote(normalized)}"

        async with httpx.AsyncClient() as client:
            response = await client.get(
                url,
                params={"ref": ref},
                headers=self._headers(),
                timeout=30.0,
            )
            response.raise_for_status()
            data = response.json()

        if not isinstance(data, list):
            raise ValueError(f"Path {path} is not a directory")
        return [DirectoryEntry(**entry) for entry in data]

    async def list_comments(self, owner: str, repo: str, number: int) -> list[IssueComment]:
        logger.info(f"Listing PR comments for #{number}")
        items = await self._get_paginated(f"{self.api_url}/repos/{owner}/{repo}/issues/{number}/comments")
        return [IssueComment(**item) for item in items]

    async def create_comment(self, owner: str, repo: str, number: int, body: str) -> None:
        logger.info(f"Creating PR comment on #{number}")
        async with httpx.AsyncClient() as client:
            response = await client.post(
                f"{self.api_url}/repos/{owner}/{repo}/issues/{number}/comments",
                headers=self._headers(),
                json={"body": body},
                timeout=30.0,
            )
            response.raise_for_status()

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
        payload: dict[str, Any] = {
            "body": body,
            "commit_id": head_commit,
            "path": path,
            "side": side.value,
            "line": end_line,
        }
        # Single-line comments must not carry start_line
        if start_line != end_line:
            payload["start_line"] = start_line
            payload["start_side"] = side.value

        async with httpx.AsyncClient() as client:
            response = await client.post(
                f"{self.api_url}/repos/{owner}/{repo}/pulls/{number}/comments",
                headers=self._headers(),
                json=payload,
                timeout=30.0,
            )
            response.raise_for_status()


def _decode(data: bytes) -> str:
    if b"\x00" in data:
        return BINARY_FILE_SENTINEL
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return BINARY_FILE_SENTINEL
