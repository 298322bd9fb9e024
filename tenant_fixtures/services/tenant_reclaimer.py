"""Tenant footprint teardown and orphan sweeping."""
import glob
import logging
import time
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

import psutil

from tenant_fixtures.config import TenancyFixtureConfig, get_fixture_config
from tenant_fixtures.db.tenant_repository import TenantRepository
from tenant_fixtures.services.containment import ContainmentValidator
from tenant_fixtures.services.filesystem import LocalFilesystem
from tenant_fixtures.services.footprint import FixtureState, ReclaimAction, ReclaimReport
from tenant_fixtures.services.identifier import token_owner_pid
from tenant_fixtures.services.path_resolver import (
    database_candidate_paths,
    resolve_storage_path,
    sidecar_paths,
)

logger = logging.getLogger(__name__)


class TenantReclaimerService:
    """Deletes tenant footprints, gated by the containment validator.

    Nothing in this service raises: every attempted deletion is recorded in
    the returned :class:`ReclaimReport`, failures included.
    """

    def __init__(
        self,
        filesystem: Optional[LocalFilesystem] = None,
        validator: Optional[ContainmentValidator] = None,
        repository: Optional[TenantRepository] = None,
        config: Optional[TenancyFixtureConfig] = None,
    ):
        """
        Initialize tenant reclaimer service.

        Args:
            filesystem: Filesystem used for inspection and deletion
            validator: Containment validator gating every deletion
            repository: Persistence layer; when None, tenant rows are left alone
            config: Fixture configuration
        """
        self.config = config or get_fixture_config()
        self.filesystem = filesystem or LocalFilesystem()
        self.validator = validator or ContainmentValidator(self.filesystem)
        self.repository = repository

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def teardown(self, state: FixtureState) -> ReclaimReport:
        """
        Remove the footprint of the tenant recorded in ``state``.

        Database files (and their sidecars) are removed first, then the
        storage tree, then the tenant row. A failure on one target does not
        stop the others.

        Args:
            state: Fixture state of the test being torn down

        Returns:
            Report of every attempted step
        """
        report = ReclaimReport()
        token = state.token
        if not token:
            return report

        logger.debug(f"Reclaiming footprint of tenant {token}")

        try:
            if self.config.uses_file_database or state.database_path is not None:
                self._reclaim_databases(state, report)
        except Exception as e:
            report.add("database", ReclaimAction.FAILED, "unexpected error", e)

        try:
            self._reclaim_storage(state, report)
        except Exception as e:
            report.add("storage", ReclaimAction.FAILED, "unexpected error", e)

        if self.config.delete_tenant_records and self.repository is not None:
            self._delete_record(token, report)

        return report

    def _reclaim_databases(self, state: FixtureState, report: ReclaimReport) -> None:
        for candidate in database_candidate_paths(state.token, state.database_path, self.config):
            self._delete_database_file(candidate, state.token, report)
            for sidecar in sidecar_paths(candidate, self.config.sidecar_suffixes):
                self._delete_database_file(sidecar, state.token, report)

    def _reclaim_storage(self, state: FixtureState, report: ReclaimReport) -> None:
        storage_path = state.storage_path or resolve_storage_path(state.token, self.config)
        if storage_path is None:
            return
        self._delete_storage_tree(storage_path, state.token, report)

    def _delete_record(self, token: str, report: ReclaimReport) -> None:
        target = f"tenant:{token}"
        try:
            if self.repository.delete_tenant(token):
                report.add(target, ReclaimAction.DELETED)
            else:
                report.add(target, ReclaimAction.MISSING)
        except Exception as e:
            report.add(target, ReclaimAction.FAILED, "record deletion failed", e)

    # ------------------------------------------------------------------
    # Gated deletions
    # ------------------------------------------------------------------

    def _delete_database_file(self, path: Path, identifier: str, report: ReclaimReport) -> None:
        """Delete one database file if it exists and belongs to ``identifier``."""
        try:
            if not self.filesystem.exists(path):
                report.add(path, ReclaimAction.MISSING)
                return

            if self.filesystem.is_dir(path):
                report.add(path, ReclaimAction.DECLINED, "not a file")
                return

            verdict = self.validator.check(path, identifier, self.config.database_dir)
            if not verdict.allowed:
                logger.debug(f"Declined deletion of {path}: {verdict.reason}")
                report.add(path, ReclaimAction.DECLINED, verdict.reason)
                return

            self.filesystem.delete_file(path)
            report.add(path, ReclaimAction.DELETED)
            logger.debug(f"Deleted database file {path}")
        except Exception as e:
            report.add(path, ReclaimAction.FAILED, "database file deletion failed", e)

    def _delete_storage_tree(self, path: Path, identifier: str, report: ReclaimReport) -> None:
        """Recursively delete one storage tree if it belongs to ``identifier``."""
        try:
            if not self.filesystem.exists(path):
                report.add(path, ReclaimAction.MISSING)
                return

            if not self.filesystem.is_dir(path):
                report.add(path, ReclaimAction.DECLINED, "not a directory")
                return

            verdict = self.validator.check(path, identifier, self.config.tenant_storage_base)
            if not verdict.allowed:
                logger.debug(f"Declined deletion of {path}: {verdict.reason}")
                report.add(path, ReclaimAction.DECLINED, verdict.reason)
                return

            self.filesystem.delete_directory(path)
            report.add(path, ReclaimAction.DELETED)
            logger.debug(f"Deleted storage tree {path}")
        except Exception as e:
            report.add(path, ReclaimAction.FAILED, "storage deletion failed", e)

    # ------------------------------------------------------------------
    # Orphan sweep
    # ------------------------------------------------------------------

    def sweep_orphans(self) -> ReclaimReport:
        """
        Remove footprints left behind by earlier runs that never tore down.

        Targets are recognised by the reserved token prefix rather than an
        exact token: database files and storage directories whose name
        contains the prefix, and tenant rows whose id starts with it.
        Artifacts whose token was generated by a process that is still
        running belong to a live test (possibly in another worker) and are
        skipped, as are artifacts younger than ``orphan_grace_seconds``.

        Returns:
            Report of every attempted step
        """
        report = ReclaimReport()
        prefix = self.config.token_prefix
        grace = self.config.orphan_grace_seconds
        cutoff = time.time() - grace if grace > 0 else None

        try:
            pattern = f"*{glob.escape(prefix)}*"
            for path in self.filesystem.glob_files(self.config.database_dir, pattern):
                if self._is_live(path.name, path, report):
                    continue
                if self._is_recent(path, cutoff, report):
                    continue
                self._delete_database_file(path, prefix, report)
        except Exception as e:
            report.add(self.config.database_dir, ReclaimAction.FAILED, "database sweep failed", e)

        try:
            for path in self.filesystem.list_directories(self.config.tenant_storage_base):
                if prefix not in path.name:
                    continue
                if self._is_live(path.name, path, report):
                    continue
                if self._is_recent(path, cutoff, report):
                    continue
                self._delete_storage_tree(path, prefix, report)
        except Exception as e:
            report.add(
                self.config.tenant_storage_base, ReclaimAction.FAILED, "storage sweep failed", e
            )

        if self.config.delete_tenant_records and self.repository is not None:
            self._sweep_records(prefix, grace, report)

        return report

    def _is_live(self, name: str, target: object, report: ReclaimReport) -> bool:
        pid = token_owner_pid(name, self.config.token_prefix)
        if pid is None:
            return False
        try:
            alive = psutil.pid_exists(pid)
        except (psutil.Error, OSError) as e:
            report.add(target, ReclaimAction.FAILED, "could not check owner process", e)
            return True
        if alive:
            report.add(target, ReclaimAction.SKIPPED, f"owner process {pid} is running")
            return True
        return False

    def _is_recent(self, path: Path, cutoff: Optional[float], report: ReclaimReport) -> bool:
        if cutoff is None:
            return False
        try:
            modified_at = self.filesystem.modified_at(path)
        except OSError as e:
            report.add(path, ReclaimAction.FAILED, "could not stat", e)
            return True
        if modified_at > cutoff:
            report.add(path, ReclaimAction.SKIPPED, "within grace period")
            return True
        return False

    def _sweep_records(self, prefix: str, grace: float, report: ReclaimReport) -> None:
        older_than = None
        if grace > 0:
            now = datetime.now(timezone.utc).replace(tzinfo=None)
            older_than = now - timedelta(seconds=grace)

        try:
            tenant_ids = self.repository.list_tenant_ids(prefix, older_than=older_than)
        except Exception as e:
            report.add("tenants", ReclaimAction.FAILED, "tenant listing failed", e)
            return

        for tenant_id in tenant_ids:
            if self._is_live(tenant_id, f"tenant:{tenant_id}", report):
                continue
            self._delete_record(tenant_id, report)
