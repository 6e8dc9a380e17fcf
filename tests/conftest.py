"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import sys
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from loguru import logger

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from pawcalm.core.models import (  # noqa: E402
    Animal,
    Cue,
    PracticeEvent,
    PracticeResponse,
    SessionOutcome,
    SessionRating,
    SessionResponse,
    TrainingHistory,
)


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (in-memory SQLite store)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def log_messages():
    """Capture loguru messages (level name, text) emitted during a test."""
    captured = []
    sink_id = logger.add(
        lambda message: captured.append((message.record["level"].name, message.record["message"])),
        level="DEBUG",
    )
    yield captured
    logger.remove(sink_id)


# ========================================
# Clock
# ========================================


@pytest.fixture
def now():
    """Fixed evaluation time: Wednesday 2024-06-12 18:00 UTC."""
    return datetime(2024, 6, 12, 18, 0, tzinfo=UTC)


@pytest.fixture
def days_ago(now):
    """Build a timestamp ``days`` before ``now`` at a given hour."""

    def _at(days: int, hour: int = 9) -> datetime:
        return (now - timedelta(days=days)).replace(hour=hour, minute=0)

    return _at


# ========================================
# Event builders
# ========================================


@pytest.fixture
def make_practice():
    """Build a PracticeEvent with sensible defaults."""

    def _make(
        cue_id: str = "keys",
        response: str | PracticeResponse = PracticeResponse.CALM,
        timestamp: datetime | None = None,
        animal_id: str = "dog-1",
        sequence: int = 0,
    ) -> PracticeEvent:
        return PracticeEvent(
            animal_id=animal_id,
            cue_id=cue_id,
            response=PracticeResponse(response),
            timestamp=timestamp,
            sequence=sequence,
        )

    return _make


@pytest.fixture
def make_session():
    """Build a SessionOutcome with sensible defaults."""

    def _make(
        dog_response: str | SessionResponse = SessionResponse.GREAT,
        timestamp: datetime | None = None,
        target_minutes: float = 5.0,
        owner_rating: str | SessionRating | None = None,
        owner_feeling=None,
        complete: bool = True,
        animal_id: str = "dog-1",
    ) -> SessionOutcome:
        return SessionOutcome(
            animal_id=animal_id,
            timestamp=timestamp,
            dog_response=SessionResponse(dog_response),
            target_minutes=target_minutes,
            steps_completed=3 if complete else 1,
            steps_total=3,
            owner_feeling=owner_feeling,
            owner_rating=SessionRating(owner_rating) if owner_rating else None,
        )

    return _make


@pytest.fixture
def animal():
    """A moderate-severity adult dog with a 10 minute baseline."""
    return Animal(id="dog-1", name="Biscuit", baseline_minutes=10.0)


@pytest.fixture
def cues():
    """Three untouched cues in display order."""
    return [
        Cue(id="keys", name="Pick up keys", animal_id="dog-1"),
        Cue(id="shoes", name="Put on shoes", animal_id="dog-1"),
        Cue(id="coat", name="Grab coat", animal_id="dog-1"),
    ]


@pytest.fixture
def history(animal, cues):
    """Empty training history for the default dog."""
    return TrainingHistory(animal=animal, cues=list(cues))
