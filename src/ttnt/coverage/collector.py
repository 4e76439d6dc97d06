"""CoverageCollector for recording coverage.py data per test file.

coverage.py reports the executed line numbers of each measured file. The
collector turns them into the per-line marker arrays the mapping records and
hands them to a TestToCodeMapping.

Example:
    >>> collector = CoverageCollector(mapping)  # doctest: +SKIP
    >>> collector.record_test_coverage('tests/test_login.py', cov.get_data())  # doctest: +SKIP
    >>> mapping.get_tests('/src/auth.py', 10)  # doctest: +SKIP
    {'tests/test_login.py'}
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol


if TYPE_CHECKING:
    from collections.abc import Iterable

    from ttnt.mapping.store import TestToCodeMapping


logger = logging.getLogger(__name__)


class CoverageDataProtocol(Protocol):
    """Protocol for coverage.py's CoverageData interface.

    This protocol defines the subset of coverage.py's CoverageData
    that we use, allowing type checking without a hard dependency.
    """

    def measured_files(self) -> Iterable[str]:
        """Return an iterable of file paths that have coverage data."""
        ...

    def lines(self, filename: str) -> Iterable[int] | None:
        """Return the lines covered for a file, or None if not measured."""
        ...


def raw_coverage_from_coverage_data(coverage_data: CoverageDataProtocol) -> dict[str, list[int | None]]:
    """Convert coverage.py's CoverageData into per-line execution markers.

    coverage.py only tells which lines ran, so executed positions get a hit
    count of 1 and every other position is marked as not executable.

    Args:
        coverage_data: A coverage.py CoverageData object.

    Returns:
        Dict mapping file paths to marker lists indexed by line position.

    Example:
        >>> class Data:
        ...     def measured_files(self):
        ...         return ['/proj/a.py']
        ...
        ...     def lines(self, filename):
        ...         return [3, 1]
        >>> raw_coverage_from_coverage_data(Data())
        {'/proj/a.py': [1, None, 1]}
    """
    result: dict[str, list[int | None]] = {}
    for file_path in coverage_data.measured_files():
        lines = coverage_data.lines(file_path)
        if not lines:
            continue
        executed = set(lines)
        markers: list[int | None] = [None] * max(executed)
        for line_number in executed:
            if line_number > 0:
                markers[line_number - 1] = 1
        result[file_path] = markers
    return result


class CoverageCollector:
    """Records coverage data per test file into a TestToCodeMapping.

    Attributes:
        mapping: The TestToCodeMapping receiving the recordings.
        recorded_tests: Set of test files recorded by this collector.
    """

    def __init__(self, mapping: TestToCodeMapping) -> None:
        """Create a collector writing into ``mapping``."""
        self.mapping = mapping
        self.recorded_tests: set[str] = set()
        self._total_files = 0
        self._total_lines = 0

    def record_test_coverage(self, test: str, coverage_data: CoverageDataProtocol) -> None:
        """Record coverage.py data for a single test file.

        Args:
            test: Test file the coverage was measured for.
            coverage_data: A coverage.py CoverageData object.
        """
        raw = raw_coverage_from_coverage_data(coverage_data)
        self.record_raw_coverage(test, raw)

    def record_raw_coverage(self, test: str, coverage: dict[str, list[int | None]]) -> None:
        """Record already converted per-line markers for a single test file."""
        self.mapping.append_from_coverage(test, coverage)
        self.recorded_tests.add(test)
        self._total_files += len(coverage)
        self._total_lines += sum(1 for markers in coverage.values() for marker in markers if marker)
        logger.debug('Collected coverage of %d files for %s', len(coverage), test)

    def get_stats(self) -> dict[str, Any]:
        """Get statistics about recorded coverage data.

        Counts are taken from the raw data before files outside the project
        are filtered out.

        Returns:
            Dict with keys:
                - total_tests: Number of test files recorded
                - total_files: Number of measured files across recordings
                - total_lines: Number of executed lines across recordings
        """
        return {
            'total_tests': len(self.recorded_tests),
            'total_files': self._total_files,
            'total_lines': self._total_lines,
        }
