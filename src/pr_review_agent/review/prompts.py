from pr_review_agent.models.github import ChangedFile, DirectoryEntry
from pr_review_agent.models.review import Issue


SYSTEM_PROMPT = """You are an expert code reviewer analyzing a GitHub pull request as part of an automated CI pipeline. You work independently without human interaction. Review for logical errors, bugs and security issues.

Focus on:
- Real bugs and logic errors (high priority)
- Security vulnerabilities (high priority)
- Typos

Do not comment on formatting or code style preferences.

You MUST only review the files provided in the pull request. Do not reference files that do not exist.
Lines are 1-indexed. Use EXACTLY the line numbers shown in the numbered file listing (the number before the | symbol)."""


STEP_PROMPT = """{system}

You are reviewing the file {filename} which was {status} in this pull request.
Changes: +{additions}/-{deletions} lines

Project structure:
{project_structure}

Changes (diff):
```diff
{patch}
```

Full file with line numbers:
```
{numbered_content}
```
{extra_context}{reported_issues}
Analyze this file for issues. For each issue specify:
1. lineStart and lineEnd
2. description of the issue
3. severity (low, medium, high)
4. category (security, performance, bug, type-safety, error-handling, maintainability, best-practice, other)
5. suggestedFix if applicable
6. suggestAsDiff: true if the fix should be offered as a GitHub suggested change

Set analysisComplete to true when you are done with this file. Otherwise you may request more
context with nextAction: get_file_content (path_to_file, start_line_number, end_line_number)
or explore_project (directory_path).{continuation}"""


SUMMARY_PROMPT = """You have reviewed the following files in a pull request:
{file_list}

Project structure:
{project_structure}

Findings posted during the review:
{findings}

Provide a structured summary of your findings. Include a summary for each file, the issues found,
the overall severity (low, medium, high) and recommendations."""


BRIEF_SUMMARY_PROMPT = """The structured summary of this pull request review could not be produced.
Files reviewed:
{file_list}

Findings posted during the review:
{findings}

Call mark_as_done with a brief summary: what changed, the overall quality, and recurring issues."""


def _add_line_numbers(content: str) -> str:
    """Add line numbers to file content for accurate LLM referencing."""
    lines = content.split("\n")
    width = len(str(len(lines)))
    return "\n".join(f"{i + 1:>{width}}| {line}" for i, line in enumerate(lines))


def describe_file(changed_file: ChangedFile) -> str:
    return (
        f"- {changed_file.filename} ({changed_file.status.value}, "
        f"+{changed_file.additions}/-{changed_file.deletions})"
    )


def describe_findings(findings: list[tuple[str, Issue]]) -> str:
    if not findings:
        return "None"
    return "\n".join(
        f"- {filename} lines {issue.line_start}-{issue.line_end} "
        f"[{issue.severity.value}/{issue.category.value}]: {issue.description}"
        for filename, issue in findings
    )


def build_step_prompt(
    changed_file: ChangedFile,
    file_content: str,
    project_structure: str,
    extra_context: list[str],
    reported_issues: list[Issue],
    step_number: int,
) -> str:
    """Build the prompt for one analysis step of a single file."""
    extra = "".join(f"\n{block}\n" for block in extra_context)

    reported = ""
    if reported_issues:
        listed = "\n".join(
            f"- lines {issue.line_start}-{issue.line_end}: {issue.description}"
            for issue in reported_issues
        )
        reported = f"\nIssues already reported for this file (do not repeat them):\n{listed}\n"

    return STEP_PROMPT.format(
        system=SYSTEM_PROMPT,
        filename=changed_file.filename,
        status=changed_file.status.value,
        additions=changed_file.additions,
        deletions=changed_file.deletions,
        project_structure=project_structure,
        patch=changed_file.patch or "(no patch available)",
        numbered_content=_add_line_numbers(file_content),
        extra_context=extra,
        reported_issues=reported,
        continuation=(
            "\n\nContinue your analysis based on the additional context." if step_number > 1 else ""
        ),
    )


def build_summary_prompt(
    files: list[ChangedFile],
    project_structure: str,
    findings: list[tuple[str, Issue]],
) -> str:
    return SUMMARY_PROMPT.format(
        file_list="\n".join(describe_file(f) for f in files),
        project_structure=project_structure,
        findings=describe_findings(findings),
    )


def build_brief_summary_prompt(files: list[ChangedFile], findings: list[tuple[str, Issue]]) -> str:
    return BRIEF_SUMMARY_PROMPT.format(
        file_list="\n".join(describe_file(f) for f in files),
        findings=describe_findings(findings),
    )


def format_directory_tree(entries: list[DirectoryEntry], dir_path: str) -> str:
    """Render a directory listing: directories first, then files, by name."""
    if not entries:
        return f"Directory: {dir_path} (empty)"

    ordered = sorted(entries, key=lambda e: (e.type != "dir", e.name))
    lines = [f"Directory: {dir_path}"]
    for i, entry in enumerate(ordered):
        prefix = "└── " if i == len(ordered) - 1 else "├── "
        suffix = "/" if entry.type == "dir" else ""
        lines.append(f"{prefix}{entry.name}{suffix}")
    return "\n".join(lines)
