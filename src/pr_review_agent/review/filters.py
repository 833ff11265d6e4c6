from pr_review_agent.models.config import ReviewFilters
from pr_review_agent.models.github import ChangedFile


def _normalize(path: str) -> str:
    return path.replace("\\", "/")


def is_file_to_review(filename: str, filters: ReviewFilters) -> bool:
    normalized = _normalize(filename)

    has_valid_extension = not filters.include_extensions or any(
        normalized.endswith(ext) for ext in filters.include_extensions
    )
    has_excluded_extension = any(normalized.endswith(ext) for ext in filters.exclude_extensions)

    in_included_path = not filters.include_paths or any(
        normalized.startswith(path) for path in filters.include_paths
    )
    in_excluded_path = any(normalized.startswith(path) for path in filters.exclude_paths)

    return (
        has_valid_extension
        and not has_excluded_extension
        and in_included_path
        and not in_excluded_path
    )


def filter_changed_files(files: list[ChangedFile], filters: ReviewFilters) -> list[ChangedFile]:
    """Keep the files that pass the include/exclude rules, preserving order."""
    return [f for f in files if is_file_to_review(f.filename, filters)]
