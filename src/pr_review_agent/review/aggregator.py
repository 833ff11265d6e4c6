from pr_review_agent.models.review import ReviewResult


def render_category_breakdown(result: ReviewResult) -> str:
    """Group issues by category; categories sorted, issues in encounter order."""
    by_category: dict[str, list[str]] = {}
    for file_review in result.files_reviewed:
        for issue in file_review.issues:
            by_category.setdefault(issue.category.value, []).append(
                f"- **[{issue.severity.value.upper()}]** {file_review.filename}: {issue.description}"
            )

    sections = []
    for category in sorted(by_category):
        entries = by_category[category]
        title = category[:1].upper() + category[1:]
        sections.append(f"### {title} ({len(entries)})\n\n" + "\n".join(entries))
    return "\n\n".join(sections) if sections else "No issues found."


def render_review_result(result: ReviewResult) -> str:
    issue_count = sum(len(f.issues) for f in result.files_reviewed)
    files_list = "\n".join(f"  - {f.filename}" for f in result.files_reviewed) or "  - (none)"
    recommendations = "\n".join(f"- {rec}" for rec in result.recommendations) or "- None"

    file_summaries = []
    for file_review in result.files_reviewed:
        block = f"### {file_review.filename}\n\n{file_review.summary}"
        if file_review.issues:
            block += f"\n\n**Issues**: {len(file_review.issues)}"
        file_summaries.append(block)

    return (
        f"# Code Review Summary\n\n{result.summary}\n\n"
        f"## Details\n\n"
        f"- **Files Reviewed**:\n{files_list}\n"
        f"- **Issues Found**: {issue_count}\n"
        f"- **Severity**: {result.overall_severity.value}\n\n"
        f"## Issues by Category\n\n{render_category_breakdown(result)}\n\n"
        f"## Recommendations\n\n{recommendations}\n\n"
        f"## File Summaries\n\n" + ("\n\n".join(file_summaries) or "No file summaries.")
    )


def render_fallback_summary(files_reviewed: int, issues_found: int, note: str = "") -> str:
    summary = f"# Code Review Summary\n\nReviewed {files_reviewed} files, found {issues_found} issues."
    if note.strip():
        summary += f"\n\n{note.strip()}"
    return summary
