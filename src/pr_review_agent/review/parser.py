from dataclasses import dataclass, field
from unidiff import PatchSet
from unidiff.errors import UnidiffParseError


@dataclass
class DiffFile:
    path: str
    added_lines: list[int] = field(default_factory=list)
    removed_lines: list[int] = field(default_factory=list)
    target_lines: list[int] = field(default_factory=list)


def parse_patch(filename: str, patch: str | None) -> DiffFile:
    """Parse the hunk-only patch GitHub returns for a single file.

    ``added_lines`` and ``target_lines`` are new-file line numbers,
    ``removed_lines`` are old-file line numbers.
    """
    diff_file = DiffFile(path=filename)
    if not patch:
        return diff_file

    text = f"--- a/{filename}\n+++ b/{filename}\n{patch}"
    if not text.endswith("\n"):
        text += "\n"
    try:
        patch_set = PatchSet(text)
    except UnidiffParseError:
        return diff_file

    for patched_file in patch_set:
        for hunk in patched_file:
            for line in hunk:
                if line.is_added and line.target_line_no is not None:
                    diff_file.added_lines.append(line.target_line_no)
                elif line.is_removed and line.source_line_no is not None:
                    diff_file.removed_lines.append(line.source_line_no)
                if line.target_line_no is not None:
                    diff_file.target_lines.append(line.target_line_no)

    return diff_file
