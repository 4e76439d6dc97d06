"""Tests for the TestSelector that chooses tests for changed lines."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from ttnt.coverage.selector import TestSelector as Selector
from ttnt.mapping.store import TestToCodeMapping


@pytest.fixture
def mapping():
    """Create a mapping double serving a fixed test-to-code mapping."""
    double = MagicMock(spec=TestToCodeMapping)
    stored = {
        'tests/test_login.py': {'/src/auth.py': [40, 42, 43]},
        'tests/test_register.py': {'/src/auth.py': [100], '/src/db.py': [7]},
        'tests/test_shipping.py': {'/src/shipping.py': [17]},
    }
    double.read_mapping.return_value = stored
    double.tests_for_line.side_effect = TestToCodeMapping.tests_for_line
    double.get_tests.side_effect = lambda f, n: TestToCodeMapping.tests_for_line(stored, f, n)
    return double


@pytest.fixture
def selector(mapping):
    """Create a Selector over the mapping double."""
    return Selector(mapping)


@pytest.mark.small
class TestSelectorCreation:
    """Test Selector initialization."""

    def test_selector_stores_mapping(self, mapping):
        selector = Selector(mapping)

        assert selector.mapping is mapping


@pytest.mark.small
class TestSelectorSelectForLocation:
    """Test selecting tests for a single line."""

    def test_returns_matching_tests(self, selector):
        assert selector.select_tests_for_location('/src/auth.py', 42) == {'tests/test_login.py'}

    def test_returns_empty_for_unexecuted_line(self, selector):
        assert selector.select_tests_for_location('/src/auth.py', 41) == set()


@pytest.mark.small
class TestSelectorSelectForChanges:
    """Test selecting tests for many changed lines."""

    def test_unions_tests_across_changes(self, selector):
        changes = [('/src/auth.py', 100), ('/src/shipping.py', 17)]

        result = selector.select_tests_for_changes(changes)

        assert result == {'tests/test_register.py', 'tests/test_shipping.py'}

    def test_reads_mapping_once(self, selector, mapping):
        selector.select_tests_for_changes([('/src/auth.py', 42), ('/src/auth.py', 43), ('/src/db.py', 7)])

        mapping.read_mapping.assert_called_once_with()

    def test_no_changes_selects_nothing(self, selector):
        assert selector.select_tests_for_changes([]) == set()

    def test_accepts_generator(self, selector):
        changes = (('/src/auth.py', n) for n in range(1, 200))

        result = selector.select_tests_for_changes(changes)

        assert result == {'tests/test_login.py', 'tests/test_register.py'}


@pytest.mark.small
class TestSelectorStats:
    """Test selection statistics."""

    def test_stats_report_counts(self, selector):
        changes = [('/src/auth.py', 42), ('/src/auth.py', 42), ('/src/db.py', 8)]

        tests, stats = selector.select_tests_with_stats(changes)

        assert tests == {'tests/test_login.py'}
        assert stats == {'selected_count': 1, 'changed_lines': 2, 'recorded_tests': 3}
