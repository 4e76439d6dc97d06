"""Configuration loading for ttnt.

This module reads configuration from pyproject.toml [tool.ttnt] section and
provides sensible defaults when configuration is absent.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePath
import tomllib
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from pathlib import Path


DEFAULT_STORAGE_DIR = '.ttnt'
MAPPING_FILE_NAME = 'test_to_code_mapping.json'
COMMIT_INFO_FILE_NAME = 'commit_obj.txt'


@dataclass(frozen=True)
class TtntConfig:
    """Configuration for ttnt.

    Attributes:
        storage_dir: Directory, relative to the project root, holding the
            test-to-code mapping and the commit marker.
    """

    storage_dir: str = DEFAULT_STORAGE_DIR

    def __post_init__(self) -> None:
        """Validate configuration values.

        Raises:
            ValueError: If storage_dir is empty or absolute.
        """
        if not self.storage_dir or not self.storage_dir.strip():
            msg = 'storage_dir must not be empty'
            raise ValueError(msg)

        if PurePath(self.storage_dir).is_absolute():
            msg = f'storage_dir must be relative to the project root, got {self.storage_dir!r}'
            raise ValueError(msg)


def load_config(rootdir: Path) -> TtntConfig:
    """Load configuration from pyproject.toml.

    Reads the [tool.ttnt] section from pyproject.toml in the given directory.
    Returns default configuration if the file or section does not exist.

    Args:
        rootdir: Directory containing pyproject.toml.

    Returns:
        TtntConfig with values from pyproject.toml or defaults.
    """
    pyproject_path = rootdir / 'pyproject.toml'

    if not pyproject_path.exists():
        return TtntConfig()

    with pyproject_path.open('rb') as f:
        data = tomllib.load(f)

    tool_config = data.get('tool', {}).get('ttnt', {})

    return TtntConfig(
        storage_dir=tool_config.get('storage_dir', DEFAULT_STORAGE_DIR),
    )
