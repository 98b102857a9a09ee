"""Candidate file collection for the CLI: YAML filtering, directory expansion, dedupe."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional

YAML_SUFFIXES = (".yaml", ".yml")


def is_yaml_path(path: Path) -> bool:
    return path.name.endswith(YAML_SUFFIXES)


def is_under(path: Path, directory: str) -> bool:
    try:
        relative = path.resolve().relative_to(Path(directory).resolve())
    except ValueError:
        return False
    return bool(relative.parts)


def collect_candidates(
    inputs: Iterable[Path],
    *,
    max_scan_files: Optional[int] = None,
    under: Optional[str] = None,
) -> List[Path]:
    """Expand inputs into an ordered, de-duplicated list of YAML paths.

    Paths are kept as given (not resolved) because the manifest path heuristic
    matches on the path text. Explicit files that do not exist are kept so the
    evaluator can report them as skipped.
    """

    files: List[Path] = []
    for path in inputs:
        path = path.expanduser()
        if path.is_dir():
            files.extend(_collect_from_directory(path, max_scan_files))
        elif is_yaml_path(path):
            files.append(path)
    if under:
        files = [path for path in files if is_under(path, under)]
    return _dedupe(files)


def _collect_from_directory(directory: Path, limit: Optional[int]) -> List[Path]:
    results = sorted(
        path for path in directory.rglob("*") if path.is_file() and is_yaml_path(path)
    )
    if limit is not None:
        results = results[:limit]
    return results


def _dedupe(paths: Iterable[Path]) -> List[Path]:
    unique: List[Path] = []
    seen = set()
    for path in paths:
        key = path.resolve()
        if key in seen:
            continue
        seen.add(key)
        unique.append(path)
    return unique


__all__ = ["YAML_SUFFIXES", "collect_candidates", "is_under", "is_yaml_path"]
