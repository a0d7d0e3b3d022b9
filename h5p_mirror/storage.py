"""Local library storage handle.

The hub session writes installed libraries below ``libraries_dir``, one
directory per uber name. The mirror only needs to find those directories and
to throw the whole tree away after a fatal error.
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path

from h5p_mirror.hub.models import LibraryIdentity


@dataclass
class LibraryStorage:
    """Tracks the library directory a run owns.

    Use as a context manager to remove the tree if the block raises::

        with LibraryStorage(path) as storage:
            mirror(storage)
        # storage removed here only if mirror() raised
    """

    root: Path
    """Directory holding one sub-directory per installed library."""

    def __post_init__(self) -> None:
        self.root = Path(self.root)

    def __enter__(self) -> "LibraryStorage":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.remove()

    def package_dir(self, identity: LibraryIdentity) -> Path:
        """Return the directory holding the files of *identity*."""
        return self.root / identity.uber_name

    def remove(self) -> None:
        """Delete the whole library directory, if present."""
        if self.root.exists():
            shutil.rmtree(self.root, ignore_errors=True)
