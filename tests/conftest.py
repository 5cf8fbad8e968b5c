"""Shared fixtures for the phased rollout test suite."""

from __future__ import annotations

import datetime
import logging

import pytest

from phased_rollout.domain.enums import InclusionState, RolloutStatus
from phased_rollout.domain.values import CandidateCollection, RolloutReport
from phased_rollout.infrastructure.client import InMemoryManagementPlane
from phased_rollout.infrastructure.config import RolloutConfig
from phased_rollout.infrastructure.event_bus import EventBus
from phased_rollout.infrastructure.logging import ROOT_LOGGER
from phased_rollout.services.window import fixed_clock
from phased_rollout.testing.fixtures import MASTER_ID, sample_inventory

# Monday 2026-10-19 10:00 UTC.
MONDAY_MORNING = datetime.datetime(2026, 10, 19, 10, 0, tzinfo=datetime.timezone.utc)


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------


@pytest.fixture
def inventory() -> InMemoryManagementPlane:
    """92/100 successes, nothing included yet."""
    return sample_inventory()


@pytest.fixture
def clock():
    return fixed_clock(MONDAY_MORNING)


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def config() -> RolloutConfig:
    """Threshold 90, one wave per run, VIP wave excluded."""
    return RolloutConfig(
        deployment="Contoso Agent 5.2",
        target_collection_id=MASTER_ID,
        success_threshold=90,
        max_per_run=1,
        candidate_patterns=("Wave-*",),
        exclusions={"name_patterns": ["*VIP*"]},
    )


# ---------------------------------------------------------------------------
# Value-object fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def waves() -> list[CandidateCollection]:
    """Three wave collections in non-sorted order."""
    return [
        CandidateCollection("PS100012", "Wave-02", 250),
        CandidateCollection("PS100011", "Wave-01", 25),
        CandidateCollection("PS100013", "Wave-03", 1200),
    ]


@pytest.fixture
def included_report(waves: list[CandidateCollection]) -> RolloutReport:
    """A report in which Wave-01 was planned and included."""
    eligible = tuple(sorted(waves, key=lambda c: c.sort_key))
    return RolloutReport(
        status=RolloutStatus.INCLUDED,
        deployment_id="16777220",
        target_collection_id=MASTER_ID,
        success_count=92,
        target_count=100,
        percentage=92.0,
        threshold=90.0,
        eligible=eligible,
        planned=eligible[:1],
        included=(eligible[0].with_state(InclusionState.INCLUDED),),
        notes=("planned: Wave-01",),
        started_at=1_700_000_000.0,
        finished_at=1_700_000_001.5,
    )


# ---------------------------------------------------------------------------
# Logging isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Leave the package logger as each test found it."""
    logger = logging.getLogger(ROOT_LOGGER)
    handlers = list(logger.handlers)
    level = logger.level
    yield
    for handler in list(logger.handlers):
        if handler not in handlers:
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(level)
