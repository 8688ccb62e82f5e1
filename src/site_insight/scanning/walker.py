"""Filesystem walker.

Enumerates scannable files under a root in sorted order. Per-entry failures
are recorded on the walker and logged, never raised.
"""

from __future__ import annotations

import fnmatch
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Optional

from ..exceptions import ErrorCode
from ..logging_config import get_logger
from .languages import SCANNABLE_SUFFIXES

logger = get_logger(__name__)

DEFAULT_EXCLUDES = ("vendor", "node_modules", ".git", "build", "dist", "*.min.js", "*.min.css")


@dataclass(frozen=True)
class WalkError:
    path: str
    reason: str
    code: ErrorCode = ErrorCode.SI102

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.path}: {self.reason}"


class FileWalker:
    """Lazy, restartable enumeration of files under a root.

    Every call to :meth:`walk` starts a fresh traversal and resets
    :attr:`errors`. Symlinked directories are followed when
    ``follow_symlinks`` is set; a directory already on the traversal
    (same device and inode) is skipped so cycles terminate.
    """

    def __init__(
        self,
        extensions: Optional[Iterable[str]] = None,
        exclude_patterns: Iterable[str] = DEFAULT_EXCLUDES,
        allow_hidden: bool = False,
        follow_symlinks: bool = True,
        max_file_size: Optional[int] = None,
        max_files: Optional[int] = None,
    ):
        self.extensions = tuple(
            sorted(ext.lower() for ext in (extensions if extensions is not None else SCANNABLE_SUFFIXES))
        )
        self.exclude_patterns = tuple(exclude_patterns)
        self.allow_hidden = allow_hidden
        self.follow_symlinks = follow_symlinks
        self.max_file_size = max_file_size
        self.max_files = max_files
        self.errors: list[WalkError] = []

    def _excluded(self, name: str) -> bool:
        if not self.allow_hidden and name.startswith("."):
            return True
        return any(fnmatch.fnmatch(name, pattern) for pattern in self.exclude_patterns)

    def _record(self, path: str, reason: str) -> None:
        error = WalkError(path=path, reason=reason)
        self.errors.append(error)
        logger.warning(f"Skipping {error}")

    def walk(self, root: Path) -> Iterator[Path]:
        """Yield matching files under ``root``, depth first, sorted by name."""
        self.errors = []
        root = Path(root)
        try:
            root_stat = root.stat()
        except OSError as e:
            self._record(str(root), e.strerror or str(e))
            return

        visited = {(root_stat.st_dev, root_stat.st_ino)}
        yielded = 0
        stack: list[Path] = [root]

        while stack:
            directory = stack.pop()
            try:
                with os.scandir(directory) as it:
                    entries = sorted(it, key=lambda e: e.name)
            except OSError as e:
                self._record(str(directory), e.strerror or str(e))
                continue

            subdirs: list[Path] = []
            for entry in entries:
                if self._excluded(entry.name):
                    continue
                try:
                    if entry.is_dir(follow_symlinks=self.follow_symlinks):
                        stat = entry.stat(follow_symlinks=True)
                        key = (stat.st_dev, stat.st_ino)
                        if key in visited:
                            logger.debug(f"Symlink cycle at {entry.path}, skipping")
                            continue
                        visited.add(key)
                        subdirs.append(Path(entry.path))
                        continue

                    if not entry.is_file(follow_symlinks=self.follow_symlinks):
                        continue
                    if not entry.name.lower().endswith(self.extensions):
                        continue
                    if self.max_file_size is not None:
                        size = entry.stat(follow_symlinks=True).st_size
                        if size > self.max_file_size:
                            self._record(entry.path, f"larger than {self.max_file_size} bytes")
                            continue
                except OSError as e:
                    self._record(entry.path, e.strerror or str(e))
                    continue

                if self.max_files is not None and yielded >= self.max_files:
                    self._record(str(root), f"file limit {self.max_files} reached")
                    return
                yielded += 1
                yield Path(entry.path)

            # Reverse so the stack pops subdirectories in name order
            stack.extend(reversed(subdirs))
