from pr_review_agent.models.github import ChangedFile, FileStatus
from pr_review_agent.models.review import Issue, ReviewSide
from .parser import parse_patch


def format_comment(issue: Issue, filename: str) -> str:
    """Render an issue as the Markdown body of a line comment.

    With ``suggest_as_diff`` the fix uses GitHub's suggestion fence so it can
    be applied from the PR page.
    """
    header = (
        f"**{issue.severity.value.upper()} Severity {issue.category.value.upper()} Issue**: "
        f"{issue.description}"
    )
    if not issue.suggested_fix:
        return header
    if issue.suggest_as_diff:
        return f"{header}\n\n```suggestion\n{issue.suggested_fix}\n```"
    return f"{header}\n\n**Suggested Fix**:\n```\n{issue.suggested_fix}\n```"


def select_side(changed_file: ChangedFile) -> ReviewSide:
    """Issue lines are head-file lines, so only a removed file is commented on LEFT."""
    if changed_file.status == FileStatus.REMOVED:
        return ReviewSide.LEFT
    return ReviewSide.RIGHT


def is_in_diff(changed_file: ChangedFile, start_line: int, end_line: int) -> bool:
    """True when both ends of the range are new-file lines shown in the patch.

    GitHub rejects review comments outside the diff hunks. Without a patch
    (binary or oversized files) the range cannot be checked and is accepted.
    """
    if not changed_file.patch:
        return True
    target_lines = set(parse_patch(changed_file.filename, changed_file.patch).target_lines)
    return start_line in target_lines and end_line in target_lines
