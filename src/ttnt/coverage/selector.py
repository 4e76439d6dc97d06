"""TestSelector for choosing which tests a change may affect.

The TestSelector turns a set of changed lines into the tests whose recorded
spectra include any of them. It only answers the question; deciding what to
do with the answer is up to the caller.

Example:
    >>> selector = TestSelector(mapping)  # doctest: +SKIP
    >>> selector.select_tests_for_changes([('/lib/x.py', 4), ('/lib/y.py', 9)])  # doctest: +SKIP
    {'tests/test_x.py'}
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from collections.abc import Iterable

    from ttnt.mapping.store import TestToCodeMapping


logger = logging.getLogger(__name__)


class TestSelector:
    """Selects tests affected by changed lines based on the recorded mapping.

    Attributes:
        mapping: The TestToCodeMapping holding per-test spectra.
    """

    __test__ = False

    def __init__(self, mapping: TestToCodeMapping) -> None:
        """Create a TestSelector over the given mapping."""
        self.mapping = mapping

    def select_tests_for_location(self, file_path: str, line_number: int) -> set[str]:
        """Select tests that executed a specific source line.

        Args:
            file_path: Normalized path of the source file.
            line_number: Line number in the source file.

        Returns:
            Set of test files that executed this line.
        """
        return self.mapping.get_tests(file_path, line_number)

    def select_tests_for_changes(self, changes: Iterable[tuple[str, int]]) -> set[str]:
        """Select all tests affected by any of the changed lines.

        The mapping is read once for the whole batch.

        Args:
            changes: (normalized file path, line number) pairs.

        Returns:
            Union of the tests affected by each changed line.
        """
        mapping = self.mapping.read_mapping()
        result: set[str] = set()
        for file_path, line_number in changes:
            result.update(self.mapping.tests_for_line(mapping, file_path, line_number))
        return result

    def select_tests_with_stats(self, changes: Iterable[tuple[str, int]]) -> tuple[set[str], dict[str, Any]]:
        """Select tests for changed lines and return statistics.

        Args:
            changes: (normalized file path, line number) pairs.

        Returns:
            Tuple of (selected tests, statistics dict). Stats include:
                - selected_count: Number of tests selected
                - changed_lines: Number of distinct changed lines
                - recorded_tests: Number of tests in the mapping
        """
        mapping = self.mapping.read_mapping()
        distinct = set(changes)
        tests: set[str] = set()
        for file_path, line_number in distinct:
            tests.update(self.mapping.tests_for_line(mapping, file_path, line_number))
        stats = {
            'selected_count': len(tests),
            'changed_lines': len(distinct),
            'recorded_tests': len(mapping),
        }
        logger.debug('Selected %d of %d tests for %d changed lines', len(tests), len(mapping), len(distinct))
        return tests, stats
