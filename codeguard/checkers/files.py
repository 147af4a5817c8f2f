"""Source file discovery shared by the content-scanning adapters and fixers."""

from pathlib import Path
from typing import Iterable, List


def find_source_files(
    project_dir: str,
    roots: Iterable[str],
    extensions: Iterable[str],
    excluded_marker: str = "",
) -> List[Path]:
    """
    Recursively list source files under the given roots.

    Skips dot-directories, node_modules and anything under the vendor
    marker. Results are sorted so scans are deterministic.
    """
    suffixes = tuple(extensions)
    found: List[Path] = []

    for root_name in roots:
        root = Path(project_dir) / root_name
        if not root.is_dir():
            continue
        for path in root.rglob("*"):
            relative_parts = path.relative_to(project_dir).parts
            if any(part.startswith(".") or part == "node_modules" for part in relative_parts[:-1]):
                continue
            if excluded_marker and excluded_marker in relative_parts:
                continue
            if path.is_file() and path.name.endswith(suffixes):
                found.append(path)

    return sorted(set(found))


def is_vendor_path(file_path: str, excluded_marker: str) -> bool:
    """True if a reported path points into the vendor/fixture directory."""
    return bool(excluded_marker) and excluded_marker in file_path.replace("\\", "/")
