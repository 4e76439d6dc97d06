"""Test-to-code mapping storage.

Exports:
    TestToCodeMapping: Records and queries per-test spectra on disk
    MappingCorruptedError: Raised when the stored mapping cannot be parsed
    spectra_from_coverage: Derives spectra from raw coverage markers
"""

from __future__ import annotations

from ttnt.mapping.spectra import spectra_from_coverage
from ttnt.mapping.store import MappingCorruptedError, TestToCodeMapping


__all__ = ['MappingCorruptedError', 'TestToCodeMapping', 'spectra_from_coverage']
