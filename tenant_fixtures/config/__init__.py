"""Configuration package for tenant fixtures."""
from .fixture_config import (
    DatabaseConnectionSettings,
    TenancyFixtureConfig,
    get_fixture_config,
)

__all__ = [
    "DatabaseConnectionSettings",
    "TenancyFixtureConfig",
    "get_fixture_config",
]
