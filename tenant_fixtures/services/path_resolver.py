"""Resolve tenant database and storage locations.

Resolution is pure: the same token and configuration always produce the
same paths, so teardown can recompute where a tenant's footprint should be
instead of trusting what provisioning reported.
"""
import os
from pathlib import Path
from typing import Iterable, List, Optional

from tenant_fixtures.config import TenancyFixtureConfig
from tenant_fixtures.db.models import Tenant

MEMORY_DATABASE = ":memory:"

_SEPARATORS = {"/", os.sep} | ({os.altsep} if os.altsep else set())


def _has_separator(value: str) -> bool:
    return any(sep in value for sep in _SEPARATORS)


def _usable_database_name(name: Optional[str]) -> bool:
    return bool(name) and name != MEMORY_DATABASE


def resolve_database_path(tenant: Tenant, config: TenancyFixtureConfig) -> Optional[Path]:
    """
    Resolve the database file of a tenant.

    Args:
        tenant: Tenant record (its database name may be overridden in ``data``)
        config: Fixture configuration

    Returns:
        Path of the database file, or None when tenant databases are not
        file-based or the name is empty or in-memory
    """
    if not config.uses_file_database:
        return None

    name = tenant.database_name(config.database_prefix, config.database_suffix)
    if not _usable_database_name(name):
        return None

    if _has_separator(name):
        return Path(name)

    return config.database_dir / name


def default_database_path(token: Optional[str], config: TenancyFixtureConfig) -> Optional[Path]:
    """Database file a tenant gets when its record carries no name override."""
    if not token:
        return None
    return config.database_dir / f"{config.database_prefix}{token}{config.database_suffix}"


def resolve_storage_path(token: Optional[str], config: TenancyFixtureConfig) -> Optional[Path]:
    """
    Resolve the storage subtree of a tenant.

    Args:
        token: Tenant token (leaf directory name)
        config: Fixture configuration

    Returns:
        ``storage_base/storage_suffix/token``, or None when the token is unset

    Raises:
        ValueError: If the token cannot be used as a single path segment
    """
    if not token:
        return None

    if _has_separator(token) or token in (".", ".."):
        raise ValueError(f"Tenant token is not a single path segment: {token!r}")

    return config.tenant_storage_base / token


def database_candidate_paths(
    token: Optional[str],
    resolved_path: Optional[Path],
    config: TenancyFixtureConfig,
) -> List[Path]:
    """
    List every database file that may belong to a tenant, de-duplicated.

    Candidates are the resolved path, the default location derived from the
    token, and the database configured on the template connection. Each
    candidate still has to pass containment before it is deleted.
    """
    if not token:
        return []

    raw: List[Optional[object]] = [
        resolved_path,
        default_database_path(token, config),
        config.template_connection.database,
    ]

    candidates: List[Path] = []
    seen = set()
    for value in raw:
        if value is None:
            continue
        text = str(value)
        if not _usable_database_name(text):
            continue
        path = Path(text)
        if path in seen:
            continue
        seen.add(path)
        candidates.append(path)
    return candidates


def sidecar_paths(database_path: Path, suffixes: Iterable[str]) -> List[Path]:
    """Auxiliary journal files of a database (``<file>-wal``, ``<file>-shm``, ...)."""
    return [Path(f"{database_path}{suffix}") for suffix in suffixes if suffix]
