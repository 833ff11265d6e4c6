# src/pr_review_agent/review/engine.py
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
import yaml
from pr_review_agent.models.config import ReviewFilters
from pr_review_agent.models.github import ChangedFile
from pr_review_agent.models.review import (
    ExploreProjectAction,
    GetFileContentAction,
    Issue,
    MarkAsDoneAction,
    ReviewResult,
    ReviewStep,
)
from pr_review_agent.platforms.base import GitPlatform, is_sentinel
from pr_review_agent.providers.base import LLMProvider
from .aggregator import render_fallback_summary, render_review_result
from .baseline import build_summary_comment, resolve_baseline
from .cache import CONTEXT_MARGIN, ContentCache
from .filters import filter_changed_files
from .formatter import format_comment, is_in_diff, select_side
from .prompts import (
    SYSTEM_PROMPT,
    build_brief_summary_prompt,
    build_step_prompt,
    build_summary_prompt,
    format_directory_tree,
)
from .relevance import anchor_issue, is_within_bounds
from .retry import RetryPolicy, is_transient_error
from .session import ReviewSession
from .tools import MARK_AS_DONE, SUMMARY_TOOLS


logger = logging.getLogger(__name__)

MAX_STEPS_PER_FILE = 10
MAX_TOTAL_STEPS = 50
REPO_CONFIG_PATH = ".ai-review.yaml"
PROJECT_STRUCTURE_UNAVAILABLE = "Failed to retrieve project structure"


@dataclass
class EngineReviewResult:
    """Result of running review on a pull request."""
    comments_count: int
    summary: str
    base_commit: str = ""
    head_commit: str = ""
    incremental: bool = False
    reviewed_files: list[str] = field(default_factory=list)


class ReviewEngine:
    def __init__(
        self,
        platform: GitPlatform,
        provider: LLMProvider,
        retry_policy: RetryPolicy | None = None,
        max_steps_per_file: int = MAX_STEPS_PER_FILE,
        max_total_steps: int = MAX_TOTAL_STEPS,
    ):
        self.platform = platform
        self.provider = provider
        self.retry_policy = retry_policy or RetryPolicy()
        self.max_steps_per_file = max_steps_per_file
        self.max_total_steps = max_total_steps
        self._action_handlers: dict[str, Callable[[ReviewSession, object, list[str]], Awaitable[bool]]] = {
            "get_file_content": self._handle_get_file_content,
            "explore_project": self._handle_explore_project,
            "mark_as_done": self._handle_mark_as_done,
        }

    async def review_pr(
        self,
        owner: str,
        repo: str,
        pr_number: int,
        filters: ReviewFilters | None = None,
    ) -> EngineReviewResult:
        """Run AI review on a pull request and post the summary comment."""
        refs = await self.platform.get_pull_request(owner, repo, pr_number)
        logger.info(f"Pull request base commit: {refs.base_commit}")
        logger.info(f"Pull request head commit: {refs.head_commit}")

        comments = await self.platform.list_comments(owner, repo, pr_number)
        base_commit = resolve_baseline(comments, refs.base_commit)
        incremental = base_commit != refs.base_commit

        if base_commit == refs.head_commit:
            logger.info("No new commits since the last review. Nothing to do.")
            return EngineReviewResult(
                comments_count=0,
                summary="",
                base_commit=base_commit,
                head_commit=refs.head_commit,
                incremental=incremental,
            )

        filters = await self._load_filters(owner, repo, refs.head_commit, filters or ReviewFilters())

        changed_files = await self.platform.get_files_between_commits(
            owner, repo, base_commit, refs.head_commit
        )
        logger.info(f"Found {len(changed_files)} changed files before filtering")
        filtered = filter_changed_files(changed_files, filters)
        logger.info(f"Found {len(filtered)} files to review after filtering")
        for changed in filtered:
            logger.info(f"- {changed.filename} ({changed.status.value}, +{changed.additions}/-{changed.deletions})")

        if not filtered:
            logger.info("No files to review.")
            return EngineReviewResult(
                comments_count=0,
                summary="",
                base_commit=base_commit,
                head_commit=refs.head_commit,
                incremental=incremental,
            )

        session = self.create_session(owner, repo, pr_number, filtered, base_commit, refs.head_commit)
        summary = await self.run(session)

        await self.platform.create_comment(
            owner, repo, pr_number, build_summary_comment(refs.head_commit, summary)
        )

        return EngineReviewResult(
            comments_count=session.comments_posted,
            summary=summary,
            base_commit=base_commit,
            head_commit=refs.head_commit,
            incremental=incremental,
            reviewed_files=sorted(session.reviewed_files),
        )

    def create_session(
        self,
        owner: str,
        repo: str,
        pr_number: int,
        files: list[ChangedFile],
        base_commit: str,
        head_commit: str,
    ) -> ReviewSession:
        async def fetch(path: str) -> str:
            return await self.platform.get_content(owner, repo, base_commit, head_commit, path)

        return ReviewSession(
            owner=owner,
            repo=repo,
            pr_number=pr_number,
            filtered_files=files,
            base_commit=base_commit,
            head_commit=head_commit,
            content_cache=ContentCache(fetch),
        )

    async def run(self, session: ReviewSession) -> str:
        """Review every file of the session and return the summary Markdown.

        The whole structure/files/summary sequence is retried by the retry
        policy. Comments already posted stay posted.
        """
        summary = await self.retry_policy.run(lambda: self._attempt(session))

        if not summary:
            summary = (
                f"Code review completed. Reviewed {len(session.reviewed_files)} files "
                f"with {session.comments_posted} comments."
            )
        logger.info(
            f"Review completed: reviewed {len(session.reviewed_files)} files "
            f"with {session.comments_posted} comments"
        )
        return summary

    async def _attempt(self, session: ReviewSession) -> str:
        session.start_attempt()

        logger.info("Step 1: Fetching project structure...")
        session.project_structure = await self._directory_tree(session, ".")

        logger.info("Step 2: Reviewing files...")
        for changed in session.filtered_files:
            if session.total_step_count >= self.max_total_steps:
                logger.warning(
                    f"Global step budget of {self.max_total_steps} exhausted, "
                    f"skipping remaining files"
                )
                break
            await self._review_file(session, changed)

        logger.info("Step 3: Generating structured summary...")
        return await self._summarize(session)

    async def _review_file(self, session: ReviewSession, changed: ChangedFile) -> None:
        filename = changed.filename
        logger.info(f"Processing file: {filename}")
        session.reviewed_files.add(filename)

        try:
            content = await session.content_cache.get(filename)
        except Exception as e:
            logger.warning(f"Failed to fetch content for {filename}: {e}")
            session.skipped_files.append(filename)
            return
        if is_sentinel(content):
            logger.warning(f"Content for {filename} is unavailable ({content.strip()}), skipping")
            session.skipped_files.append(filename)
            return

        lines = session.content_cache.lines(filename)
        extra_context: list[str] = []
        reported: list[Issue] = []
        analysis_complete = False

        while not analysis_complete:
            if session.steps_for(filename) >= self.max_steps_per_file:
                logger.warning(f"Step limit of {self.max_steps_per_file} reached for {filename}")
                break
            if session.total_step_count >= self.max_total_steps:
                logger.warning(f"Global step budget of {self.max_total_steps} reached during {filename}")
                break

            session.record_step(filename)
            step_number = session.steps_for(filename)
            logger.info(f"File analysis step {step_number} for {filename}")

            prompt = build_step_prompt(
                changed, content, session.project_structure, extra_context, reported, step_number
            )
            try:
                step = await self.provider.generate_structured(prompt, ReviewStep)
            except Exception as e:
                if is_transient_error(e):
                    raise
                logger.warning(f"Error in file analysis step for {filename}: {e}")
                break

            analysis_complete = step.analysis_complete
            if step.current_file and step.current_file != filename:
                logger.debug(f"Model reported current file {step.current_file}, expected {filename}")

            if step.issues:
                logger.info(f"Found {len(step.issues)} issues in {filename}")
            for issue in step.issues:
                posted = await self._post_issue(session, changed, lines, issue)
                if posted is not None:
                    reported.append(posted)

            if not analysis_complete and step.next_action is not None:
                handler = self._action_handlers[step.next_action.action]
                logger.info(f"Executing next action: {step.next_action.action}")
                analysis_complete = await handler(session, step.next_action, extra_context)

        logger.info(f"Completed analysis of {filename} with {len(reported)} comments posted")

    async def _post_issue(
        self,
        session: ReviewSession,
        changed: ChangedFile,
        lines: list[str],
        issue: Issue,
    ) -> Issue | None:
        filename = changed.filename
        if not is_within_bounds(issue, len(lines)):
            logger.warning(
                f"Discarding issue in {filename} at lines {issue.line_start}-{issue.line_end}: "
                f"outside file bounds 1-{len(lines)}"
            )
            return None

        anchored = anchor_issue(issue, lines)
        if anchored is None:
            logger.warning(
                f"Discarding issue in {filename} at lines {issue.line_start}-{issue.line_end}: "
                f"description does not match the code"
            )
            return None
        if anchored.line_start != issue.line_start:
            logger.info(f"Relocated issue in {filename} from line {issue.line_start} to {anchored.line_start}")

        if not is_in_diff(changed, anchored.line_start, anchored.line_end):
            logger.warning(
                f"Discarding issue in {filename} at lines {anchored.line_start}-{anchored.line_end}: "
                f"not part of the diff"
            )
            return None

        key = (filename, anchored.line_start, anchored.line_end, anchored.description.strip())
        if key in session.posted_keys:
            logger.info(f"Skipping duplicate comment on {filename} at line {anchored.line_start}")
            return None

        try:
            await self.platform.create_review_comment(
                session.owner,
                session.repo,
                session.pr_number,
                session.head_commit,
                format_comment(anchored, filename),
                filename,
                select_side(changed),
                anchored.line_start,
                anchored.line_end,
            )
        except Exception as e:
            logger.warning(f"Failed to add comment to {filename}: {e}")
            return None

        session.posted_keys.add(key)
        session.comments_posted += 1
        session.findings.append((filename, anchored))
        logger.info(f"Added comment to {filename} at lines {anchored.line_start}-{anchored.line_end}")
        return anchored

    async def _handle_get_file_content(
        self, session: ReviewSession, action: GetFileContentAction, extra_context: list[str]
    ) -> bool:
        path = action.path_to_file
        start = action.start_line_number or 1
        end = max(start, action.end_line_number or start + 1000)
        try:
            content = await session.content_cache.get(path, start, end, margin=CONTEXT_MARGIN)
        except Exception as e:
            logger.warning(f"Failed to get content from {path}: {e}")
            extra_context.append(f"Failed to get content from {path}")
            return False

        first = max(1, start - CONTEXT_MARGIN)
        last = min(session.content_cache.line_count(path), end + CONTEXT_MARGIN)
        extra_context.append(
            f"Additional context from {path} (lines {first}-{last}):\n{content}"
        )
        logger.info(f"Added content from {path} to context")
        return False

    async def _handle_explore_project(
        self, session: ReviewSession, action: ExploreProjectAction, extra_context: list[str]
    ) -> bool:
        tree = await self._directory_tree(session, action.directory_path)
        extra_context.append(f"Directory structure for {action.directory_path}:\n{tree}")
        return False

    async def _handle_mark_as_done(
        self, session: ReviewSession, action: MarkAsDoneAction, extra_context: list[str]
    ) -> bool:
        return True

    async def _directory_tree(self, session: ReviewSession, path: str) -> str:
        try:
            entries = await self.platform.list_directory(
                session.owner, session.repo, path, session.head_commit
            )
        except Exception as e:
            logger.warning(f"Failed to explore directory {path}: {e}")
            return PROJECT_STRUCTURE_UNAVAILABLE
        return format_directory_tree(entries, path)

    async def _summarize(self, session: ReviewSession) -> str:
        prompt = build_summary_prompt(session.filtered_files, session.project_structure, session.findings)
        try:
            result = await self.provider.generate_structured(prompt, ReviewResult)
        except Exception as e:
            if is_transient_error(e):
                raise
            logger.warning(f"Failed to generate structured summary: {e}")
            note = await self._brief_summary(session)
            return render_fallback_summary(len(session.reviewed_files), session.comments_posted, note)
        return render_review_result(result)

    async def _brief_summary(self, session: ReviewSession) -> str:
        """Ask for a mark_as_done tool call to enrich the fallback summary."""
        try:
            generation = await self.provider.generate_with_tools(
                SYSTEM_PROMPT,
                build_brief_summary_prompt(session.filtered_files, session.findings),
                SUMMARY_TOOLS,
            )
        except Exception as e:
            logger.warning(f"Failed to generate brief summary: {e}")
            return ""

        for invocation in generation.tool_invocations:
            if invocation.name == MARK_AS_DONE:
                return str(invocation.arguments.get("brief_summary", ""))
        return generation.text or ""

    async def _load_filters(
        self, owner: str, repo: str, ref: str, filters: ReviewFilters
    ) -> ReviewFilters:
        """Apply .ai-review.yaml overrides from the head commit, if present."""
        try:
            yaml_content = await self.platform.get_content(owner, repo, ref, ref, REPO_CONFIG_PATH)
        except Exception as e:
            logger.warning(f"Could not load {REPO_CONFIG_PATH}: {e}")
            return filters
        if is_sentinel(yaml_content):
            return filters

        try:
            data = yaml.safe_load(yaml_content) or {}
            if not isinstance(data, dict):
                raise ValueError("top level must be a mapping")
            return filters.merged_with(data)
        except Exception as e:
            logger.warning(f"Invalid {REPO_CONFIG_PATH}: {e}")
            return filters
