"""File collection utilities for folder uploads."""
import logging
import os
from pathlib import Path, PurePath
from typing import Callable, Iterator, Optional

from ..errors import EnumerationError, PathError
from ..models import WorkItem

logger = logging.getLogger(__name__)


class TreeEnumerator:
    """
    Walks a root directory depth-first and yields one WorkItem per file.

    Entries are visited in lexical order, directories are descended into
    but never emitted, and symlinks are not followed.
    """

    def __init__(self, root: Path):
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def iter_items(
        self,
        on_path_error: Optional[Callable[[PathError], None]] = None,
    ) -> Iterator[WorkItem]:
        """
        Lazily yield WorkItems.

        Args:
            on_path_error: Receives PathErrors for entries whose relative
                path cannot be computed; the entry is skipped. Without it the
                PathError is raised.

        Raises:
            EnumerationError: root missing, not a directory, or unreadable.
        """
        if not self._root.is_dir():
            cause = FileNotFoundError(f"no such directory: {self._root}")
            raise EnumerationError(self._root, cause)

        for path in self._walk(self._root):
            try:
                yield self.make_item(path)
            except PathError as e:
                if on_path_error is None:
                    raise
                logger.warning(f"Skipping {path}: {e}")
                on_path_error(e)

    def count(self) -> int:
        """Count files under root (one extra walk, used for progress totals)."""
        total = sum(1 for _ in self._walk(self._root))
        logger.info(f"Total files: {total}")
        return total

    def make_item(self, path: Path) -> WorkItem:
        """Build the WorkItem for ``path``; relative path uses forward slashes."""
        try:
            relative = os.path.relpath(path, self._root)
        except ValueError as e:
            raise PathError(path, self._root, e) from e
        if relative in (os.curdir, os.pardir) or relative.startswith(os.pardir + os.sep):
            raise PathError(path, self._root)
        return WorkItem(absolute_path=Path(path), relative_path=PurePath(relative).as_posix())

    def _walk(self, directory: Path) -> Iterator[Path]:
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda entry: entry.name)
        except OSError as e:
            raise EnumerationError(self._root, e) from e

        for entry in entries:
            try:
                is_dir = entry.is_dir(follow_symlinks=False)
            except OSError as e:
                raise EnumerationError(self._root, e) from e
            if is_dir:
                yield from self._walk(Path(entry.path))
            else:
                yield Path(entry.path)
