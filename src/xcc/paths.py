"""Working-directory helpers used by module-aware commands."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional, Union


class WorkingDirectory:
    """A directory that relative script paths are resolved against."""

    def __init__(self, root: Union[str, Path, None] = None) -> None:
        self.root = Path(root if root is not None else os.getcwd()).resolve()

    def __repr__(self) -> str:
        return f"WorkingDirectory({str(self.root)!r})"

    def normalize_child_path(self, child: Union[str, Path]) -> Path:
        """Return ``child`` as an absolute, normalised path.

        Relative paths are taken relative to the root; absolute paths are
        only normalised.
        """
        path = Path(child).expanduser()
        if not path.is_absolute():
            path = self.root / path
        return Path(os.path.normpath(path))

    def search_up(self, marker: str) -> Optional["WorkingDirectory"]:
        """Find the nearest directory, starting at the root, that contains ``marker``."""
        for directory in (self.root, *self.root.parents):
            if (directory / marker).exists():
                return WorkingDirectory(directory)
        return None
