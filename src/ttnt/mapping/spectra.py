"""Spectra derivation from raw per-line coverage markers.

A spectra maps each covered file to the ascending line numbers executed while
a single test ran. Raw coverage comes in the shape produced by line coverage
instrumentation: for every absolute file path, a sequence indexed by line
position where ``None`` means "not executable", ``0`` means "executable but
not hit" and a positive count means "hit".

Example:
    >>> spectra_from_coverage({'/proj/lib/x.py': [1, 0, None, 1]})
    {'/proj/lib/x.py': [1, 4]}
    >>> normalize_paths({'/proj/lib/x.py': [1, 4]}, '/proj')
    {'/lib/x.py': [1, 4]}
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
import os
from typing import TypeAlias


Spectra: TypeAlias = dict[str, list[int]]
RawCoverage: TypeAlias = Mapping[str, Sequence[int | None]]


def _absolute(path: str | os.PathLike[str]) -> str:
    # Symlinks resolved, matching the realpath filenames coverage.py reports.
    return os.path.realpath(os.fspath(path))


def spectra_from_coverage(coverage: RawCoverage) -> Spectra:
    """Generate spectra from raw coverage markers.

    Line numbers are appended while scanning positions in order, so every
    resulting list is strictly increasing. Files without any hit line are
    left out.

    Args:
        coverage: Mapping of file path to per-line execution markers.

    Returns:
        Mapping of file path to the 1-based line numbers that were hit.
    """
    spectra: Spectra = {}
    for filename, executions in coverage.items():
        for index, execution in enumerate(executions):
            if execution is None or execution == 0:
                continue
            spectra.setdefault(filename, []).append(index + 1)
    return spectra


def is_project_file(path: str, root: str | os.PathLike[str]) -> bool:
    """Check whether an absolute path lies inside the project root.

    Args:
        path: File path to check.
        root: Project root directory.

    Returns:
        True if path is the root itself or below it, False otherwise.
    """
    absolute_root = _absolute(root)
    absolute_path = _absolute(path)
    if absolute_path == absolute_root:
        return True
    return absolute_path.startswith(absolute_root.rstrip(os.sep) + os.sep)


def select_project_files(spectra: Spectra, root: str | os.PathLike[str]) -> Spectra:
    """Filter out the files outside of the project."""
    return {filename: lines for filename, lines in spectra.items() if is_project_file(filename, root)}


def normalized_path(path: str, root: str | os.PathLike[str]) -> str:
    """Convert an absolute path into a path relative to the project root.

    The root prefix is stripped and the leading separator kept, so
    ``<root>/lib/foo.py`` becomes ``/lib/foo.py``. Separators are always
    forward slashes.

    Args:
        path: Absolute file path inside the project.
        root: Project root directory.

    Returns:
        The normalized, root-relative path.
    """
    absolute_root = _absolute(root).rstrip(os.sep)
    absolute_path = _absolute(path)
    if absolute_path.startswith(absolute_root):
        absolute_path = absolute_path[len(absolute_root) :]
    return absolute_path.replace(os.sep, '/')


def normalize_paths(spectra: Spectra, root: str | os.PathLike[str]) -> Spectra:
    """Normalize every file name of a spectra relative to the project root."""
    return {normalized_path(filename, root): lines for filename, lines in spectra.items()}
