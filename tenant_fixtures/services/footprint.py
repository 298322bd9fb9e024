"""Per-test fixture state and teardown outcomes."""
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional

from tenant_fixtures.db.models import Tenant


@dataclass
class FixtureState:
    """Mutable state of one test's tenant fixture."""

    token: Optional[str] = None
    database_path: Optional[Path] = None
    storage_path: Optional[Path] = None
    tenancy_enabled: bool = False
    tenant: Optional[Tenant] = None

    @property
    def is_empty(self) -> bool:
        """True when nothing is recorded, as after :meth:`clear`."""
        return (
            self.token is None
            and self.database_path is None
            and self.storage_path is None
            and not self.tenancy_enabled
            and self.tenant is None
        )

    def clear(self) -> None:
        """Reset to the empty state."""
        self.token = None
        self.database_path = None
        self.storage_path = None
        self.tenancy_enabled = False
        self.tenant = None


class ReclaimAction(Enum):
    """What happened to one deletion target."""

    DELETED = "deleted"
    MISSING = "missing"
    DECLINED = "declined"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class ReclaimOutcome:
    """Result of one teardown or sweep step."""

    target: str
    action: ReclaimAction
    reason: Optional[str] = None
    error: Optional[BaseException] = None


@dataclass
class ReclaimReport:
    """Outcomes of a teardown or orphan sweep, in the order attempted."""

    outcomes: List[ReclaimOutcome] = field(default_factory=list)

    def add(
        self,
        target: object,
        action: ReclaimAction,
        reason: Optional[str] = None,
        error: Optional[BaseException] = None,
    ) -> ReclaimOutcome:
        outcome = ReclaimOutcome(str(target), action, reason, error)
        self.outcomes.append(outcome)
        return outcome

    def targets(self, action: ReclaimAction) -> List[str]:
        return [o.target for o in self.outcomes if o.action is action]

    @property
    def deleted(self) -> List[str]:
        return self.targets(ReclaimAction.DELETED)

    @property
    def declined(self) -> List[str]:
        return self.targets(ReclaimAction.DECLINED)

    @property
    def failures(self) -> List[ReclaimOutcome]:
        return [o for o in self.outcomes if o.action is ReclaimAction.FAILED]

    @property
    def ok(self) -> bool:
        return not self.failures
