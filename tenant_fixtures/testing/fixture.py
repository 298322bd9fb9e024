"""Per-test tenant fixture lifecycle.

One :class:`TenantFixture` drives one test through

    IDLE -> TENANCY_DECIDED -> PROVISIONED -> TORN_DOWN

skipping PROVISIONED when the test runs untenanted or setup failed.
``teardown()`` always ends in TORN_DOWN and never raises.
"""
import logging
from contextlib import contextmanager
from enum import Enum
from typing import Callable, Iterator, Optional

from tenant_fixtures.config import TenancyFixtureConfig, get_fixture_config
from tenant_fixtures.db.tenant_repository import TenantRepository
from tenant_fixtures.exceptions import FixtureStateError
from tenant_fixtures.services.footprint import FixtureState, ReclaimReport
from tenant_fixtures.services.identifier import generate_tenant_token
from tenant_fixtures.services.path_resolver import resolve_database_path, resolve_storage_path
from tenant_fixtures.services.tenancy_context import TenancyContext
from tenant_fixtures.services.tenant_provisioning import TenantProvisioningService
from tenant_fixtures.services.tenant_reclaimer import TenantReclaimerService
from tenant_fixtures.testing.classification import CaseClassification

logger = logging.getLogger(__name__)


class FixturePhase(Enum):
    """Lifecycle phase of a tenant fixture."""

    IDLE = "idle"
    TENANCY_DECIDED = "tenancy_decided"
    PROVISIONED = "provisioned"
    TORN_DOWN = "torn_down"


class TenantFixture:
    """Provisions an isolated tenant before a test and reclaims it after."""

    # Concrete tests may set this to False to force tenancy off
    tenancy: bool = True

    def __init__(
        self,
        config: Optional[TenancyFixtureConfig] = None,
        repository: Optional[TenantRepository] = None,
        context: Optional[TenancyContext] = None,
        provisioner: Optional[TenantProvisioningService] = None,
        reclaimer: Optional[TenantReclaimerService] = None,
        token_factory: Optional[Callable[[], str]] = None,
        tenancy: Optional[bool] = None,
    ):
        """Initialize tenant fixture.

        Args:
            config: Fixture configuration.
            repository: Persistence layer for tenant rows.
            context: Tenancy-context activator.
            provisioner: Footprint provisioner.
            reclaimer: Footprint reclaimer.
            token_factory: Produces tenant tokens (defaults to generate_tenant_token).
            tenancy: Overrides the class-level ``tenancy`` flag.
        """
        self.config = config or get_fixture_config()
        self.repository = repository or TenantRepository()
        self.context = context or TenancyContext()
        self.provisioner = provisioner or TenantProvisioningService(
            repository=self.repository, config=self.config
        )
        self.reclaimer = reclaimer or TenantReclaimerService(
            repository=self.repository, config=self.config
        )
        self.token_factory = token_factory or self._default_token
        if tenancy is not None:
            self.tenancy = tenancy

        self.state = FixtureState()
        self.phase = FixturePhase.IDLE
        self.last_report: Optional[ReclaimReport] = None

    def _default_token(self) -> str:
        return generate_tenant_token(self.config.token_prefix)

    @property
    def tenant_id(self) -> Optional[str]:
        return self.state.token

    @property
    def tenant(self):
        return self.state.tenant

    def decide_tenancy(self, classification: Optional[CaseClassification] = None) -> bool:
        """Decide whether the current test needs tenant isolation.

        Args:
            classification: Identity of the test; None means "no opt-out".

        Returns:
            True if tenancy is enabled for the test.
        """
        if self.phase is not FixturePhase.IDLE:
            raise FixtureStateError(self.phase.value, "decide tenancy")

        enabled = self.tenancy
        if enabled and classification is not None:
            enabled = classification.requires_tenancy(self.config.untenanted_paths)

        self.state.tenancy_enabled = enabled
        self.phase = FixturePhase.TENANCY_DECIDED
        logger.debug(
            f"Tenancy {'enabled' if enabled else 'disabled'}"
            + (f" for {classification.test_id}" if classification else "")
        )
        return enabled

    def setup(self, classification: Optional[CaseClassification] = None) -> FixtureState:
        """Set up the tenant for one test.

        Provisioning failures propagate; the caller must still call
        :meth:`teardown`.

        Returns:
            The fixture state (empty when tenancy is disabled).
        """
        if self.phase is FixturePhase.IDLE:
            self.decide_tenancy(classification)
        elif self.phase is not FixturePhase.TENANCY_DECIDED:
            raise FixtureStateError(self.phase.value, "set up")

        if not self.state.tenancy_enabled:
            return self.state

        self.sweep_orphans()

        token = self.token_factory()
        self.state.token = token
        self.state.storage_path = resolve_storage_path(token, self.config)

        tenant = self.provisioner.provision_tenant(token)
        self.state.tenant = tenant
        self.state.database_path = resolve_database_path(tenant, self.config)

        self.context.activate(tenant)
        self.phase = FixturePhase.PROVISIONED
        return self.state

    def sweep_orphans(self) -> ReclaimReport:
        """Reclaim footprints of earlier runs; failures are only logged."""
        try:
            report = self.reclaimer.sweep_orphans()
        except Exception as e:
            logger.warning(
                f"Orphan sweep failed: {e}",
                extra={"error": str(e), "error_type": type(e).__name__},
                exc_info=True,
            )
            return ReclaimReport()

        if report.deleted:
            logger.info(f"Swept {len(report.deleted)} orphaned tenant artifacts")
        self._log_failures(report, "Orphan sweep")
        return report

    def teardown(self) -> ReclaimReport:
        """Tear down the tenant; never raises.

        Deactivates tenancy, reclaims the footprint, clears the state. A
        second call is a no-op.
        """
        if self.phase is FixturePhase.TORN_DOWN:
            return ReclaimReport()

        try:
            self.context.deactivate()
        except Exception as e:
            logger.warning(
                f"Failed to end tenancy: {e}",
                extra={"tenant_id": self.state.token, "error": str(e)},
                exc_info=True,
            )

        try:
            report = self.reclaimer.teardown(self.state)
        except Exception as e:
            logger.warning(
                f"Failed to remove tenant footprints: {e}",
                extra={"tenant_id": self.state.token, "error": str(e)},
                exc_info=True,
            )
            report = ReclaimReport()
        else:
            self._log_failures(report, "Tenant teardown")
        finally:
            self.state.clear()
            self.phase = FixturePhase.TORN_DOWN

        self.last_report = report
        return report

    def reset(self) -> None:
        """Return a torn-down fixture to IDLE so it can serve another test."""
        if self.phase is not FixturePhase.TORN_DOWN:
            raise FixtureStateError(self.phase.value, "reset")
        self.state.clear()
        self.phase = FixturePhase.IDLE

    @contextmanager
    def lifecycle(self, classification: Optional[CaseClassification] = None) -> Iterator[FixtureState]:
        """Run setup on enter and teardown on exit, whatever happens inside."""
        try:
            yield self.setup(classification)
        finally:
            self.teardown()

    def _log_failures(self, report: ReclaimReport, operation: str) -> None:
        for failure in report.failures:
            logger.warning(
                f"{operation}: could not remove {failure.target}: {failure.error}",
                extra={
                    "target": failure.target,
                    "reason": failure.reason,
                    "error": str(failure.error),
                    "error_type": type(failure.error).__name__,
                },
                exc_info=failure.error,
            )
