"""Tenant fixture configuration from environment variables."""
import logging
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tenant_fixtures.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Drivers whose tenant databases are standalone files on disk.
FILE_BASED_DRIVERS = frozenset({"sqlite"})

JOURNAL_MODES = ("delete", "truncate", "persist", "memory", "wal", "off")

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class DatabaseConnectionSettings(BaseModel):
    """One named database connection (driver plus optional database name)."""

    driver: str = Field(..., description="Database driver name (sqlite, pgsql, mysql, ...)")
    database: Optional[str] = Field(
        default=None,
        description="Database name or file path configured on the connection",
    )


class TenancyFixtureConfig(BaseSettings):
    """Configuration for per-test tenant provisioning and teardown."""

    model_config = SettingsConfigDict(
        env_prefix="TENANT_FIXTURES_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    # Filesystem layout
    database_dir: Path = Field(
        default=Path("database"),
        description="Well-known directory holding file-based tenant databases",
    )
    storage_base: Path = Field(
        default=Path("storage"),
        description="Storage root; tenant trees live under storage_base/storage_suffix",
    )
    storage_suffix: str = Field(
        default="tenant/",
        description="Relative directory under storage_base that holds tenant trees",
    )

    # Tenant database naming
    database_prefix: str = Field(default="tenant_", description="Prefix of tenant database names")
    database_suffix: str = Field(default=".sqlite", description="Suffix of tenant database names")
    template_tenant_connection: str = Field(
        default="dynamic",
        description="Connection whose driver decides how tenant databases are stored",
    )
    connections: Dict[str, DatabaseConnectionSettings] = Field(
        default_factory=lambda: {"dynamic": DatabaseConnectionSettings(driver="sqlite")},
        description="Named database connections",
    )
    journal_mode: str = Field(
        default="wal",
        description="SQLite journal mode applied when a tenant database file is created",
    )
    sidecar_suffixes: List[str] = Field(
        default_factory=lambda: ["-wal", "-shm", "-journal"],
        description="Auxiliary files deleted alongside a file-based database",
    )

    # Persistence layer
    central_database_url: str = Field(
        default="sqlite://",
        description="SQLAlchemy URL of the database holding tenant and domain rows",
    )
    delete_tenant_records: bool = Field(
        default=True,
        description="Delete the tenant row at teardown (central database persists across tests)",
    )

    # Tenant record defaults
    tenant_domain: str = Field(default="127.0.0.1", description="Domain bound to every test tenant")
    tenant_name: str = Field(default="Tenant Test", description="Display name of test tenants")
    token_prefix: str = Field(
        default="pest_test_",
        description="Reserved marker that every generated tenant token starts with",
    )

    # Storage provisioning
    storage_directories: List[str] = Field(
        default_factory=lambda: [
            "app/public",
            "framework/cache",
            "framework/sessions",
            "framework/views",
            "logs",
        ],
        description="Subdirectories created inside every tenant storage tree",
    )
    seed_dir: Optional[Path] = Field(
        default=None,
        description="Directory whose files are copied into every new tenant storage tree",
    )

    # Test classification and sweeping
    untenanted_paths: List[str] = Field(
        default_factory=lambda: ["browser/admin"],
        description="Test id fragments whose tests run without tenant isolation",
    )
    orphan_grace_seconds: float = Field(
        default=0.0,
        description="Orphan sweeps skip artifacts modified more recently than this",
    )

    log_level: str = Field(default="WARNING", description="Level for the tenant_fixtures logger")

    @field_validator("storage_suffix")
    @classmethod
    def normalize_storage_suffix(cls, v: str) -> str:
        """Trim leading and trailing separators from the storage suffix."""
        return v.strip().strip("/\\")

    @field_validator("journal_mode")
    @classmethod
    def validate_journal_mode(cls, v: str) -> str:
        """Validate SQLite journal mode."""
        mode = v.strip().lower()
        if mode not in JOURNAL_MODES:
            raise ValueError(f"journal_mode must be one of: {', '.join(JOURNAL_MODES)}")
        return mode

    @field_validator("orphan_grace_seconds")
    @classmethod
    def validate_grace(cls, v: float) -> float:
        """Grace period cannot be negative."""
        if v < 0:
            raise ValueError("orphan_grace_seconds cannot be negative")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level name."""
        level = v.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of: {', '.join(LOG_LEVELS)}")
        return level

    @model_validator(mode="after")
    def validate_template_connection(self) -> "TenancyFixtureConfig":
        """The template connection must be one of the configured connections."""
        if self.template_tenant_connection not in self.connections:
            raise ValueError(
                f"template_tenant_connection '{self.template_tenant_connection}' "
                f"is not in connections: {', '.join(sorted(self.connections)) or '(none)'}"
            )
        return self

    @property
    def template_connection(self) -> DatabaseConnectionSettings:
        """Connection settings used as the template for tenant databases."""
        return self.connections[self.template_tenant_connection]

    @property
    def tenant_database_driver(self) -> str:
        """Driver of the tenant template connection."""
        return self.template_connection.driver

    @property
    def uses_file_database(self) -> bool:
        """True when tenant databases are standalone files on disk."""
        return self.tenant_database_driver.lower() in FILE_BASED_DRIVERS

    @property
    def tenant_storage_base(self) -> Path:
        """Directory that contains one subtree per tenant."""
        if not self.storage_suffix:
            return self.storage_base
        return self.storage_base / self.storage_suffix


def get_fixture_config() -> TenancyFixtureConfig:
    """Get tenant fixture configuration instance.

    Raises:
        ConfigurationError: If the environment holds invalid settings
    """
    try:
        return TenancyFixtureConfig()
    except ValidationError as e:
        logger.error(f"Invalid tenant fixture configuration: {e}")
        raise ConfigurationError(str(e)) from e
