"""JSON-backed test-to-code mapping.

The TestToCodeMapping persists, for every test file, the spectra recorded the
last time that test ran under coverage. Terminology:

    spectra: {filename: [line, numbers, executed], ...}
    mapping: {test_file: spectra}

The mapping lives in a single JSON file under a hidden directory of the
project root, next to a plain-text commit marker recording which commit the
mapping was computed against.
"""

from __future__ import annotations

from bisect import bisect_left
import json
import logging
import os
from pathlib import Path
import tempfile
from typing import TYPE_CHECKING, Any

from ttnt.config import COMMIT_INFO_FILE_NAME, MAPPING_FILE_NAME, TtntConfig, load_config
from ttnt.mapping.spectra import normalize_paths, select_project_files, spectra_from_coverage
from ttnt.vcs import GitRepository


if TYPE_CHECKING:
    from ttnt.mapping.spectra import RawCoverage, Spectra


logger = logging.getLogger(__name__)


def _is_line_number(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _current_umask() -> int:
    # The umask can only be read by setting it.
    umask = os.umask(0)
    os.umask(umask)
    return umask


class MappingCorruptedError(ValueError):
    """Raised when the stored mapping file cannot be parsed."""


class TestToCodeMapping:
    """Mapping from test file to executed code (coverage without execution counts).

    Every operation reads the whole mapping file and, when recording, writes it
    back in full. There is no locking: two processes recording at the same time
    race and the last writer wins.

    Example:
        >>> mapping = TestToCodeMapping('/path/to/project')  # doctest: +SKIP
        >>> raw = {'/path/to/project/lib/x.py': [1, 0, None, 1]}
        >>> mapping.append_from_coverage('tests/test_x.py', raw)  # doctest: +SKIP
        >>> mapping.read_mapping()  # doctest: +SKIP
        {'tests/test_x.py': {'/lib/x.py': [1, 4]}}
    """

    __test__ = False

    def __init__(self, root: Path | str | None, config: TtntConfig | None = None) -> None:
        """Initialize the mapping for a project.

        Args:
            root: Project root directory. Only files below it are recorded and
                the storage directory is created inside it.
            config: Storage settings. Loaded from the root's pyproject.toml
                when omitted.

        Raises:
            ValueError: If root is missing or is not an existing directory.
        """
        if root is None or not str(root).strip():
            msg = 'A project root is required'
            raise ValueError(msg)

        root_path = Path(root).resolve()
        if not root_path.is_dir():
            msg = f'Project root is not a directory: {root_path}'
            raise ValueError(msg)

        self._root = root_path
        self._config = config if config is not None else load_config(root_path)

    @classmethod
    def from_repository(cls, start: Path | str | None = None, config: TtntConfig | None = None) -> TestToCodeMapping:
        """Create a mapping rooted at the git repository containing ``start``.

        Raises:
            GitError: If no git repository encloses ``start``.
        """
        return cls(GitRepository.discover(start).root, config)

    @property
    def root(self) -> Path:
        """Project root directory."""
        return self._root

    @property
    def base_savedir(self) -> Path:
        """Directory holding ttnt's files."""
        return self._root / self._config.storage_dir

    @property
    def mapping_file(self) -> Path:
        """File the test-to-code mapping is saved to."""
        return self.base_savedir / MAPPING_FILE_NAME

    @property
    def commit_info_file(self) -> Path:
        """File the commit marker is saved to."""
        return self.base_savedir / COMMIT_INFO_FILE_NAME

    def append_from_coverage(self, test: str, coverage: RawCoverage) -> None:
        """Record the spectra of a test, replacing any previous entry for it.

        Args:
            test: Test file for which the coverage data was produced.
            coverage: Raw coverage, absolute file path to per-line markers.

        Raises:
            MappingCorruptedError: If the existing mapping file is unparsable.
            OSError: If the storage directory or mapping file cannot be written.
        """
        spectra = normalize_paths(select_project_files(spectra_from_coverage(coverage), self._root), self._root)
        logger.debug('Recording %d files for test %s', len(spectra), test)
        self._update_mapping_entry(test, spectra)

    def read_mapping(self) -> dict[str, Spectra]:
        """Read the test-to-code mapping from file.

        Returns:
            The stored mapping, or an empty dict if nothing was recorded yet.

        Raises:
            MappingCorruptedError: If the mapping file is not valid UTF-8 JSON
                shaped as test to file to ascending line numbers.
        """
        try:
            text = self.mapping_file.read_text(encoding='utf-8')
        except FileNotFoundError:
            return {}
        except UnicodeDecodeError as exc:
            msg = f'Test-to-code mapping at {self.mapping_file} is corrupted: {exc}'
            raise MappingCorruptedError(msg) from exc

        try:
            mapping: Any = json.loads(text)
        except json.JSONDecodeError as exc:
            msg = f'Test-to-code mapping at {self.mapping_file} is corrupted: {exc}'
            raise MappingCorruptedError(msg) from exc

        if not isinstance(mapping, dict):
            msg = f'Test-to-code mapping at {self.mapping_file} is not a JSON object'
            raise MappingCorruptedError(msg)
        for test, spectra in mapping.items():
            if not isinstance(spectra, dict):
                msg = f'Test-to-code mapping at {self.mapping_file} has a malformed entry for {test!r}'
                raise MappingCorruptedError(msg)
            for file, lines in spectra.items():
                if not isinstance(lines, list) or not all(_is_line_number(n) for n in lines):
                    msg = f'Test-to-code mapping at {self.mapping_file} has malformed lines for {test!r}: {file}'
                    raise MappingCorruptedError(msg)
        return mapping

    def tests(self) -> set[str]:
        """Return every test that has a recorded spectra."""
        return set(self.read_mapping())

    def get_tests(self, file: str, lineno: int) -> set[str]:
        """Get tests affected by a change of ``file`` at line ``lineno``.

        A test is affected only when the exact line was executed by it; a line
        falling between two executed lines does not count.

        Args:
            file: Normalized (root-relative) path of the changed file.
            lineno: 1-based line number that changed.

        Returns:
            Set of test files which might be affected by the change.
        """
        return self.tests_for_line(self.read_mapping(), file, lineno)

    @staticmethod
    def tests_for_line(mapping: dict[str, Spectra], file: str, lineno: int) -> set[str]:
        """Look up ``file:lineno`` in an already loaded mapping."""
        tests: set[str] = set()
        for test, spectra in mapping.items():
            lines = spectra.get(file)
            if not lines:
                continue
            index = bisect_left(lines, lineno)
            if index < len(lines) and lines[index] == lineno:
                tests.add(test)
        return tests

    def save_commit_info(self, sha: str) -> None:
        """Save the sha of the commit the mapping was computed against.

        Raises:
            OSError: If the storage directory or marker file cannot be written.
        """
        self.base_savedir.mkdir(parents=True, exist_ok=True)
        self.commit_info_file.write_text(sha, encoding='utf-8')
        logger.debug('Saved commit marker %s to %s', sha, self.commit_info_file)

    def read_commit_info(self) -> str | None:
        """Read the saved commit sha.

        Returns:
            The saved sha, or None if no marker was saved yet.
        """
        try:
            return self.commit_info_file.read_text(encoding='utf-8').strip()
        except FileNotFoundError:
            return None

    def _update_mapping_entry(self, test: str, spectra: Spectra) -> None:
        self.base_savedir.mkdir(parents=True, exist_ok=True)
        mapping = self.read_mapping()
        mapping[test] = spectra
        self._write_mapping(mapping)

    def _write_mapping(self, mapping: dict[str, Spectra]) -> None:
        # Written to a sibling temp file then renamed, so readers never see a partial file.
        fd, tmp_name = tempfile.mkstemp(dir=self.base_savedir, prefix='.mapping-', suffix='.json')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(mapping, f)
            os.chmod(tmp_name, 0o666 & ~_current_umask())
            os.replace(tmp_name, self.mapping_file)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug('Wrote %d mapping entries to %s', len(mapping), self.mapping_file)
