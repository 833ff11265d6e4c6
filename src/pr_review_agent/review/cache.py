import asyncio
import logging
from collections.abc import Awaitable, Callable


logger = logging.getLogger(__name__)

LOCK_TIMEOUT = 5.0
CONTEXT_MARGIN = 20


class CacheTimeoutError(Exception):
    pass


def slice_lines(content: str, start_line: int | None = None, end_line: int | None = None) -> str:
    """Return lines ``start_line``..``end_line`` (1-based, inclusive)."""
    if start_line is None and end_line is None:
        return content
    lines = content.split("\n")
    start = max(1, start_line or 1)
    end = min(len(lines), end_line or len(lines))
    return "\n".join(lines[start - 1:end])


class ContentCache:
    """Memoized file contents for one review session.

    Concurrent requests for the same uncached path share a single upstream
    fetch. Slices are always cut from the full cached content.
    """

    def __init__(self, fetch: Callable[[str], Awaitable[str]], lock_timeout: float = LOCK_TIMEOUT):
        self._fetch = fetch
        self._lock_timeout = lock_timeout
        self._lock = asyncio.Lock()
        self._contents: dict[str, str] = {}
        self._in_flight: dict[str, asyncio.Future] = {}

    def __contains__(self, path: str) -> bool:
        return path in self._contents

    async def _acquire(self) -> None:
        try:
            await asyncio.wait_for(self._lock.acquire(), timeout=self._lock_timeout)
        except asyncio.TimeoutError as e:
            raise CacheTimeoutError(f"Timed out after {self._lock_timeout}s waiting for the content cache") from e

    async def get(
        self,
        path: str,
        start_line: int | None = None,
        end_line: int | None = None,
        margin: int = 0,
    ) -> str:
        content = await self._get_full(path)
        if start_line is None and end_line is None:
            return content
        if start_line is not None:
            start_line = max(1, start_line - margin)
        if end_line is not None:
            end_line = end_line + margin
        return slice_lines(content, start_line, end_line)

    async def _get_full(self, path: str) -> str:
        await self._acquire()
        try:
            if path in self._contents:
                logger.debug(f"Content cache hit: {path}")
                return self._contents[path]

            future = self._in_flight.get(path)
            is_owner = future is None
            if is_owner:
                future = asyncio.get_running_loop().create_future()
                self._in_flight[path] = future
        finally:
            self._lock.release()

        if not is_owner:
            try:
                return await asyncio.wait_for(asyncio.shield(future), timeout=self._lock_timeout)
            except asyncio.TimeoutError as e:
                raise CacheTimeoutError(
                    f"Timed out after {self._lock_timeout}s waiting for the in-flight fetch of {path}"
                ) from e

        try:
            content = await self._fetch(path)
        except asyncio.CancelledError:
            self._in_flight.pop(path, None)
            future.cancel()
            raise
        except Exception as e:
            self._in_flight.pop(path, None)
            future.set_exception(e)
            future.exception()  # waiters still receive it
            raise

        self._contents[path] = content
        self._in_flight.pop(path, None)
        future.set_result(content)
        return content

    def line_count(self, path: str) -> int:
        return len(self.lines(path))

    def lines(self, path: str) -> list[str]:
        return self._contents[path].split("\n")
