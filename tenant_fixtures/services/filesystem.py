"""
Local filesystem access for tenant footprints.

Every mutation of the shared database and storage directories goes through
this service so tests can substitute it and so failures surface as a
single error type.
"""

import logging
import os
import shutil
from pathlib import Path
from typing import List

logger = logging.getLogger(__name__)


class FilesystemError(Exception):
    """Error during a filesystem operation."""
    pass


class LocalFilesystem:
    """Service for inspecting and mutating tenant footprints on local disk."""

    def exists(self, path: Path) -> bool:
        """True if ``path`` exists (a dangling symlink counts as existing)."""
        return os.path.lexists(path)

    def is_dir(self, path: Path) -> bool:
        """True if ``path`` is a directory and not a symlink to one."""
        path = Path(path)
        return path.is_dir() and not path.is_symlink()

    def real_path(self, path: Path) -> Path:
        """
        Canonicalize a path, resolving symlinks and relative segments.

        Raises:
            OSError: If the path does not exist or cannot be resolved
        """
        try:
            return Path(path).resolve(strict=True)
        except RuntimeError as e:
            # Symlink loop
            raise OSError(f"Cannot resolve {path}: {e}") from e

    def modified_at(self, path: Path) -> float:
        """Modification time of ``path`` (not following symlinks)."""
        return os.lstat(path).st_mtime

    def glob_files(self, directory: Path, pattern: str) -> List[Path]:
        """List regular files directly inside ``directory`` matching ``pattern``."""
        directory = Path(directory)
        if not directory.is_dir():
            return []
        return sorted(p for p in directory.glob(pattern) if p.is_file() or p.is_symlink())

    def list_directories(self, directory: Path) -> List[Path]:
        """List immediate subdirectories of ``directory``."""
        directory = Path(directory)
        if not directory.is_dir():
            return []
        return sorted(p for p in directory.iterdir() if self.is_dir(p))

    def make_directories(self, path: Path) -> None:
        """Create ``path`` and missing parents; existing directories are fine."""
        try:
            Path(path).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FilesystemError(f"Failed to create directory {path}: {e}") from e

    def copy_tree(self, source: Path, destination: Path) -> List[Path]:
        """
        Copy every file under ``source`` into ``destination``.

        Existing files in ``destination`` are overwritten; relative layout is
        preserved.

        Returns:
            Destination paths of the copied files
        """
        source = Path(source)
        destination = Path(destination)
        if not source.is_dir():
            raise FilesystemError(f"Seed directory {source} does not exist")

        copied: List[Path] = []
        try:
            for item in sorted(source.rglob("*")):
                if not item.is_file():
                    continue
                target = destination / item.relative_to(source)
                target.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(item, target)
                copied.append(target)
        except OSError as e:
            raise FilesystemError(f"Failed to copy {source} to {destination}: {e}") from e
        return copied

    def delete_file(self, path: Path) -> None:
        """Delete a single file (or symlink)."""
        try:
            os.unlink(path)
        except OSError as e:
            logger.debug(
                "Failed to delete file",
                extra={"path": str(path), "error": str(e)},
            )
            raise FilesystemError(f"Failed to delete file {path}: {e}") from e

    def delete_directory(self, path: Path) -> None:
        """Recursively delete a directory."""
        try:
            shutil.rmtree(path)
        except OSError as e:
            logger.debug(
                "Failed to delete directory",
                extra={"path": str(path), "error": str(e)},
            )
            raise FilesystemError(f"Failed to delete directory {path}: {e}") from e
