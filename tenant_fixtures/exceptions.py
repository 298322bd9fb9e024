"""Custom exceptions for consistent error handling."""


class TenantFixtureError(Exception):
    """Base exception for all tenant fixture errors."""

    def __init__(
        self,
        code: str,
        message: str,
        details: list[dict[str, str]] | None = None,
    ):
        """
        Initialize tenant fixture exception.

        Args:
            code: Error code (e.g., "PROVISIONING_ERROR")
            message: Human-readable error message
            details: Optional list of context details
        """
        self.code = code
        self.message = message
        self.details = details or []
        super().__init__(self.message)


class ConfigurationError(TenantFixtureError):
    """Raised when fixture configuration cannot be used."""

    def __init__(self, message: str = "Invalid tenant fixture configuration"):
        super().__init__(
            code="CONFIGURATION_ERROR",
            message=message,
        )


class ProvisioningError(TenantFixtureError):
    """Raised when a provisioning step fails during test setup."""

    def __init__(self, step: str, tenant_id: str | None = None, message: str = "Provisioning failed"):
        details = [{"step": step}]
        if tenant_id:
            details.append({"tenant_id": tenant_id})

        super().__init__(
            code="PROVISIONING_ERROR",
            message=f"{step}: {message}",
            details=details,
        )
        self.step = step
        self.tenant_id = tenant_id


class FixtureStateError(TenantFixtureError):
    """Raised when the fixture lifecycle is driven out of order."""

    def __init__(self, current: str, attempted: str):
        super().__init__(
            code="FIXTURE_STATE_ERROR",
            message=f"Cannot {attempted} while fixture is {current}",
        )
        self.current = current
        self.attempted = attempted
