"""Deletion gate for tenant footprints.

A path may only be deleted when two independent facts hold:

1. After canonicalization it lies strictly inside the well-known base
   directory of its category (database directory or tenant storage base).
2. The part of the path below that base contains the identifier of the
   tenant being torn down (or, for orphan sweeps, the reserved token
   prefix).

Containment alone is not enough because every tenant shares the same base
directories; an identifier match alone is not enough because the identifier
could appear in an unrelated path elsewhere. Whenever either fact cannot be
positively established the validator declines.
"""
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from .filesystem import LocalFilesystem

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]


@dataclass(frozen=True)
class ContainmentVerdict:
    """Outcome of a containment check."""

    allowed: bool
    reason: str
    canonical_path: Optional[Path] = None
    canonical_base: Optional[Path] = None

    def __bool__(self) -> bool:
        return self.allowed


class ContainmentValidator:
    """Decides whether deleting a path is scoped to a given tenant."""

    def __init__(self, filesystem: Optional[LocalFilesystem] = None):
        """
        Initialize containment validator.

        Args:
            filesystem: Filesystem used for canonicalization
        """
        self.filesystem = filesystem or LocalFilesystem()

    def canonicalize(self, path: PathLike) -> Path:
        """
        Canonicalize ``path``; fall back to its lexical form if it cannot be
        resolved (missing file, permission error, symlink loop).
        """
        try:
            return Path(self.filesystem.real_path(Path(path)))
        except OSError:
            return Path(os.path.normpath(os.fspath(path)))

    def check(self, path: PathLike, identifier: Optional[str], base_dir: PathLike) -> ContainmentVerdict:
        """
        Check whether ``path`` may be deleted on behalf of ``identifier``.

        Args:
            path: Candidate deletion target
            identifier: Tenant token (or reserved prefix for orphan sweeps)
            base_dir: Well-known base directory for the target's category

        Returns:
            Verdict; ``allowed`` is True only if every check passed
        """
        if not identifier:
            return ContainmentVerdict(False, "empty identifier")
        if path is None or not os.fspath(path) or base_dir is None or not os.fspath(base_dir):
            return ContainmentVerdict(False, "empty path or base directory")

        canonical_path = self.canonicalize(path)
        canonical_base = self.canonicalize(base_dir)

        if not canonical_path.is_absolute() or not canonical_base.is_absolute():
            return ContainmentVerdict(
                False, "path could not be made absolute", canonical_path, canonical_base
            )

        base_text = str(canonical_base).rstrip(os.sep) + os.sep
        path_text = str(canonical_path)

        if not path_text.startswith(base_text):
            return ContainmentVerdict(
                False, "outside base directory", canonical_path, canonical_base
            )

        relative = path_text[len(base_text):]
        if not relative:
            return ContainmentVerdict(False, "is the base directory", canonical_path, canonical_base)

        if identifier not in relative:
            return ContainmentVerdict(
                False, "identifier not found below base", canonical_path, canonical_base
            )

        return ContainmentVerdict(True, "contained", canonical_path, canonical_base)

    def is_safe_to_delete(self, path: PathLike, token: Optional[str], base_dir: PathLike) -> bool:
        """True if ``path`` is inside ``base_dir`` and carries ``token``."""
        verdict = self.check(path, token, base_dir)
        if not verdict.allowed:
            logger.debug(
                f"Declined deletion of {path}: {verdict.reason}",
                extra={
                    "path": str(path),
                    "base_dir": str(base_dir),
                    "reason": verdict.reason,
                },
            )
        return verdict.allowed


def is_safe_to_delete(
    path: PathLike,
    token: Optional[str],
    base_dir: PathLike,
    filesystem: Optional[LocalFilesystem] = None,
) -> bool:
    """Module-level shortcut for :meth:`ContainmentValidator.is_safe_to_delete`."""
    return ContainmentValidator(filesystem).is_safe_to_delete(path, token, base_dir)
