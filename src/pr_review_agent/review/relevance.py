"""Line-anchor validation and relocation for model-reported issues.

Models often point a few lines away from the code they describe. Before a
comment is posted we check that the described issue shares vocabulary with
the anchored lines; if it does not, the closest better-scoring line in the
neighborhood takes its place. This is a textual heuristic: files with highly
repetitive tokens can still defeat it.
"""
import re
from pr_review_agent.models.review import Issue


RELEVANCE_WINDOW = 3
SEARCH_RADIUS = 10

STOPWORDS = frozenset({
    "the", "and", "for", "this", "that", "with", "from", "are", "was", "not",
    "but", "has", "have", "can", "will", "should", "could", "would", "may",
    "line", "code", "when", "then", "than", "which", "into", "there",
})

TOKEN_SPLIT_RE = re.compile(r"[^a-z0-9]+")
DECLARATION_RE = re.compile(r"\b(function|const|let|var|class)\b")
IDENTIFIER_RE = re.compile(r"\b(?:function|const|let|var|class)\s+([A-Za-z_$][\w$]*)")


def tokenize(text: str) -> set[str]:
    return {
        token
        for token in TOKEN_SPLIT_RE.split(text.lower())
        if len(token) > 2 and token not in STOPWORDS
    }


def score_line(description: str, line: str) -> int:
    score = 2 * len(tokenize(description) & tokenize(line))

    if DECLARATION_RE.search(line):
        match = IDENTIFIER_RE.search(line)
        if match and match.group(1).lower() in description.lower():
            score += 5

    if len(line.strip()) < 3:
        score -= 2
    return score


def find_better_matching_line(
    description: str,
    lines: list[str],
    line_number: int,
    radius: int = SEARCH_RADIUS,
) -> int:
    """Return the best-scoring line within ``radius`` of ``line_number``.

    The original line wins ties; a candidate must score strictly higher.
    Lines are 1-based.
    """
    best_line = line_number
    best_score = score_line(description, lines[line_number - 1])

    for candidate in range(max(1, line_number - radius), min(len(lines), line_number + radius) + 1):
        if candidate == line_number:
            continue
        candidate_score = score_line(description, lines[candidate - 1])
        if candidate_score > best_score:
            best_line, best_score = candidate, candidate_score
    return best_line


def is_within_bounds(issue: Issue, line_count: int) -> bool:
    return 1 <= issue.line_start <= issue.line_end <= line_count


def relates_to_lines(description: str, lines: list[str], start: int, end: int) -> bool:
    """True when the description shares a token with the range or its window."""
    description_tokens = tokenize(description)
    first = max(1, start - RELEVANCE_WINDOW)
    last = min(len(lines), end + RELEVANCE_WINDOW)
    return any(description_tokens & tokenize(lines[i - 1]) for i in range(first, last + 1))


def anchor_issue(issue: Issue, lines: list[str]) -> Issue | None:
    """Validate an issue's lines against the file and relocate it if needed.

    Returns the issue (possibly moved) or None when it must not be posted.
    """
    if not is_within_bounds(issue, len(lines)):
        return None

    if relates_to_lines(issue.description, lines, issue.line_start, issue.line_end):
        return issue

    better = find_better_matching_line(issue.description, lines, issue.line_start)
    if better == issue.line_start or score_line(issue.description, lines[better - 1]) <= 0:
        return None

    span = issue.line_end - issue.line_start
    return issue.model_copy(update={
        "line_start": better,
        "line_end": min(len(lines), better + span),
    })
