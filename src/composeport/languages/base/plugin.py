"""
Base front-end interface.

A front-end turns a source tree into SourceUnits. All front-ends (the
tree-sitter Kotlin parser, the serialized-unit loader, future ones) implement
this interface so the pipeline never depends on how units are produced.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager, nullcontext
from pathlib import Path

from composeport.ir.source import SourceUnit


class FrontEndError(Exception):
    """A source file could not be parsed or a unit document is invalid."""


class FrontEnd(ABC):
    """
    Abstract base class for front-ends.

    Each front-end provides:
    - the file extensions it reads
    - discovery of source files under a root
    - parsing of one file into SourceUnits
    """

    def __init__(self, exclude_patterns: list[str] | None = None):
        self.exclude_patterns = list(exclude_patterns or [])

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the front-end name (e.g., 'kotlin', 'json')."""
        pass

    @property
    @abstractmethod
    def file_extensions(self) -> list[str]:
        """Return the file suffixes this front-end reads (e.g., ['.kt'])."""
        pass

    @abstractmethod
    def parse_file(self, file_path: Path, source_root: Path) -> list[SourceUnit]:
        """
        Parse one file into units keyed by their path relative to ``source_root``.

        Raises:
            FrontEndError: If the file cannot be parsed
        """
        pass

    # =========================================================================
    # Discovery
    # =========================================================================

    def is_excluded(self, file_path: Path) -> bool:
        text = "/" + file_path.as_posix()
        return any(pattern in text for pattern in self.exclude_patterns)

    def discover_files(self, source_root: Path) -> list[Path]:
        """Source files under the root, sorted for a stable registration order."""
        if source_root.is_file():
            return [source_root]
        files = []
        for extension in self.file_extensions:
            for path in source_root.rglob(f"*{extension}"):
                if path.is_file() and not self.is_excluded(path.relative_to(source_root)):
                    files.append(path)
        return sorted(set(files))

    def load_units(self, source_root: Path) -> list[SourceUnit]:
        """Parse every discovered file."""
        root = source_root if source_root.is_dir() else source_root.parent
        units = []
        for file_path in self.discover_files(source_root):
            units.extend(self.parse_file(file_path, root))
        return units

    def read_action(self) -> AbstractContextManager:
        """
        Context entered around the analysis of one unit.

        Front-ends backed by a shared model that needs guarded access override
        this; the default is a no-op.
        """
        return nullcontext()

    @staticmethod
    def unit_key(file_path: Path, source_root: Path) -> str:
        try:
            return file_path.relative_to(source_root).as_posix()
        except ValueError:
            return file_path.name
