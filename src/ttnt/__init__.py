"""ttnt: Test This, Not That.

Regression test selection support. ttnt records which source lines each test
file executes and answers which tests may be affected when a given line of a
given file changes.

Example:
    Record coverage for a test and query it::

        >>> from ttnt.mapping import TestToCodeMapping
        >>> mapping = TestToCodeMapping('/path/to/project')  # doctest: +SKIP
        >>> mapping.append_from_coverage('tests/test_x.py', raw)  # doctest: +SKIP
        >>> mapping.get_tests('/lib/x.py', 4)  # doctest: +SKIP
        {'tests/test_x.py'}
"""

from __future__ import annotations


__version__ = '0.1.0'
__all__ = ['__version__']
