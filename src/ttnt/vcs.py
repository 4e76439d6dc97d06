"""Minimal git helpers.

Just enough structure to locate the project root, identify the current
commit, and list the lines changed since the commit a mapping was computed
against.
"""

from __future__ import annotations

import logging
from pathlib import Path
import re
import subprocess
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence


logger = logging.getLogger(__name__)

_HUNK_HEADER = re.compile(r'^@@ -(?P<start>\d+)(?:,(?P<count>\d+))? \+\d+(?:,(?P<new_count>\d+))? @@')


class GitError(RuntimeError):
    """Raised when a git command fails or the repository cannot be used."""


def parse_changed_lines(diff: str) -> Iterator[tuple[str, int]]:
    """Parse a zero-context unified diff into changed lines.

    Lines are reported in the coordinates of the old (pre-change) file, since
    that is the version a recorded mapping refers to. Modified and deleted
    lines are reported as-is; a pure insertion reports the line it follows.
    Files that did not exist before the change report nothing.

    Args:
        diff: Output of ``git diff --unified=0``.

    Yields:
        Tuples of (normalized file path, line number). Paths are
        root-relative with a leading slash, e.g. ``/lib/foo.py``.

    Example:
        >>> diff = '--- a/lib/x.py\\n+++ b/lib/x.py\\n@@ -3,2 +3 @@\\n-a\\n-b\\n+c\\n'
        >>> list(parse_changed_lines(diff))
        [('/lib/x.py', 3), ('/lib/x.py', 4)]
    """
    current: str | None = None
    pending = 0
    for line in diff.splitlines():
        if pending:
            # Hunk body; a removed line may itself start with "-- ".
            if line[:1] in ('-', '+'):
                pending -= 1
            continue
        if line.startswith('--- '):
            source = line[4:].rstrip('\t')
            current = None if source == '/dev/null' else '/' + source.removeprefix('a/')
            continue
        match = _HUNK_HEADER.match(line)
        if match is None:
            continue
        start = int(match.group('start'))
        count = _hunk_count(match.group('count'))
        pending = count + _hunk_count(match.group('new_count'))
        if current is None:
            continue
        if count == 0:
            if start > 0:
                yield current, start
            continue
        for lineno in range(start, start + count):
            yield current, lineno


def _hunk_count(group: str | None) -> int:
    return int(group) if group is not None else 1


class GitRepository:
    """Lightweight wrapper around ``git`` commands."""

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root).resolve()
        if not (self.root / '.git').exists():
            msg = f'Not a git repository: {self.root}'
            raise GitError(msg)

    @classmethod
    def discover(cls, start: Path | str | None = None) -> GitRepository:
        """Locate the nearest git repository starting from ``start``."""
        path = Path(start or Path.cwd()).resolve()
        for candidate in (path, *path.parents):
            if (candidate / '.git').exists():
                return cls(candidate)
        msg = f'Unable to locate a git repository from {path}'
        raise GitError(msg)

    def _run_git(self, args: Sequence[str]) -> str:
        command = ['git', *args]
        try:
            process = subprocess.run(  # noqa: S603
                command,
                cwd=self.root,
                capture_output=True,
                check=False,
            )
        except FileNotFoundError as exc:
            msg = 'git executable not found'
            raise GitError(msg) from exc

        stdout = process.stdout.decode('utf-8', errors='replace') if process.stdout else ''
        stderr = process.stderr.decode('utf-8', errors='replace') if process.stderr else ''
        if process.returncode != 0:
            message = stderr.strip() or stdout.strip() or 'unknown git error'
            msg = f'git {" ".join(args)} failed: {message}'
            raise GitError(msg)
        return stdout

    def head_commit(self) -> str:
        """Return the sha of the commit ``HEAD`` points to."""
        return self._run_git(['rev-parse', 'HEAD']).strip()

    def changed_lines(self, base: str) -> list[tuple[str, int]]:
        """List lines changed in the working tree since commit ``base``.

        Args:
            base: Commit the comparison starts from, typically the saved
                commit marker.

        Returns:
            (normalized file path, line number) pairs in ``base``'s coordinates.
        """
        diff = self._run_git(
            [
                '-c',
                'core.quotepath=off',
                'diff',
                '--unified=0',
                '--no-color',
                '--no-ext-diff',
                '--src-prefix=a/',
                '--dst-prefix=b/',
                base,
                '--',
            ],
        )
        changes = list(parse_changed_lines(diff))
        logger.debug('%d changed lines since %s', len(changes), base)
        return changes
