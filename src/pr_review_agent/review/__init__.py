from .parser import parse_patch, DiffFile
from .baseline import AI_REVIEW_COMMENT_PREFIX, SUMMARY_SEPARATOR, resolve_baseline
from .engine import ReviewEngine, EngineReviewResult

__all__ = [
    "parse_patch",
    "DiffFile",
    "AI_REVIEW_COMMENT_PREFIX",
    "SUMMARY_SEPARATOR",
    "resolve_baseline",
    "ReviewEngine",
    "EngineReviewResult",
]
