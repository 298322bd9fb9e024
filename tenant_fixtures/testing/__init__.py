"""Test framework integration for tenant fixtures."""
from .classification import UNTENANTED_MARKER, CaseClassification
from .fixture import FixturePhase, TenantFixture
from .testcase import TenantTestCase

__all__ = [
    "UNTENANTED_MARKER",
    "CaseClassification",
    "FixturePhase",
    "TenantFixture",
    "TenantTestCase",
]
