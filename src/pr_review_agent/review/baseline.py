import logging
from pr_review_agent.models.github import IssueComment


logger = logging.getLogger(__name__)

# Both strings are parsed back on the next run; keep them byte-stable.
AI_REVIEW_COMMENT_PREFIX = "AI review done up to commit: "
SUMMARY_SEPARATOR = "\n\n### AI Review Summary:\n"


def build_summary_comment(head_commit: str, summary_markdown: str) -> str:
    return f"{AI_REVIEW_COMMENT_PREFIX}{head_commit}{SUMMARY_SEPARATOR}{summary_markdown}"


def extract_reviewed_commit(body: str | None) -> str | None:
    """Return the commit recorded by a previous summary comment, if any."""
    if not body or not body.startswith(AI_REVIEW_COMMENT_PREFIX):
        return None

    header = body.split(SUMMARY_SEPARATOR, 1)[0][len(AI_REVIEW_COMMENT_PREFIX):].strip()
    if not header:
        return None
    return header.split()[0]


def resolve_baseline(existing_comments: list[IssueComment], default_base_commit: str) -> str:
    """Pick the commit the diff should start from.

    The most recent summary comment wins; without one the whole PR is reviewed.
    """
    for comment in reversed(existing_comments):
        if not (comment.body or "").startswith(AI_REVIEW_COMMENT_PREFIX):
            continue

        logger.info(f"Found last review comment: {comment.body.splitlines()[0]}")
        commit = extract_reviewed_commit(comment.body)
        if commit:
            logger.info(f"New base commit {commit}. Incremental review will be performed")
            return commit

        logger.warning("Last review comment has no commit recorded, reviewing all files")
        return default_base_commit

    logger.info("No previous review comments found, reviewing all files in PR")
    return default_base_commit
