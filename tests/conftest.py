"""Shared test fixtures for the BTBB tax planning test suite."""

import pytest
import fakeredis
from datetime import datetime, timezone

from btbb.models.intake import Intake
from btbb.services.catalog import load_catalog


# ── Redis ────────────────────────────────────────────────────────────────

@pytest.fixture
def r():
    """Fresh fakeredis instance per test (decode_responses=True like production)."""
    return fakeredis.FakeRedis(decode_responses=True)


# ── Time Freezing ───────────────────────────────────────────────────────

@pytest.fixture
def frozen_now():
    """Fixed 'now' for deterministic profile builds: 2026-02-15T12:00:00Z."""
    return datetime(2026, 2, 15, 12, 0, 0, tzinfo=timezone.utc)


# ── Intake Factories ────────────────────────────────────────────────────

@pytest.fixture
def make_intake():
    """Factory fixture that creates Intake instances with overrides.

    Usage:
        intake = make_intake(payroll_w2_bracket="4-5", inventory=True)
    """
    def _factory(**overrides):
        return Intake(**overrides)

    return _factory


@pytest.fixture
def full_intake(make_intake):
    """Every tracked field filled."""
    return make_intake(
        entity_legal_form="Single-member LLC",
        entity_tax_classification="disregarded",
        state_codes=["NC"],
        industry="consulting",
        revenue_range="100_250k",
        payroll_w2_bracket="0",
        inventory=False,
        multi_state=False,
        international=False,
    )


@pytest.fixture
def scorp_intake(make_intake):
    """S-corp owner with payroll in two states."""
    return make_intake(
        entity_legal_form="S corporation (Inc./Corp. or LLC that elected S status)",
        entity_tax_classification="s_corp",
        state_codes=["NC", "SC"],
        industry="construction",
        revenue_range="500_1m",
        payroll_w2_bracket="4-5",
        inventory=False,
        multi_state=True,
        international=False,
    )


# ── Catalog ─────────────────────────────────────────────────────────────

@pytest.fixture
def catalog():
    """Catalog from the bundled YAML file (no Redis overrides)."""
    return load_catalog()
