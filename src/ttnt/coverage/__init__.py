"""Bridges between coverage tooling, diffs and the test-to-code mapping.

Exports:
    CoverageCollector: Records coverage.py data per test file
    TestSelector: Selects tests affected by changed lines
"""

from __future__ import annotations

from ttnt.coverage.collector import CoverageCollector
from ttnt.coverage.selector import TestSelector


__all__ = ['CoverageCollector', 'TestSelector']
