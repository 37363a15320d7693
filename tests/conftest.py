"""Shared pytest fixtures for the scheduling core tests.

Fixtures:
    - reference_date: Fixed winter date so offsets never depend on today
    - london, new_york, los_angeles, tokyo: Normal-chronotype participants
    - engine: SchedulingEngine with default settings
"""

import os
from datetime import date
from typing import Generator

import pytest

from models.entities import Participant
from services.scheduling_engine import SchedulingEngine
from services.settings import Settings, reset_settings


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Isolate every test from CLOCKALIGN_* variables and the settings cache."""
    for key in list(os.environ):
        if key.startswith("CLOCKALIGN_"):
            monkeypatch.delenv(key)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def reference_date() -> date:
    """Mid-January: no DST anywhere in the northern hemisphere."""
    return date(2024, 1, 15)


@pytest.fixture
def london() -> Participant:
    return Participant(id="london", email="alice@example.com", timezone="Europe/London", name="Alice")


@pytest.fixture
def new_york() -> Participant:
    return Participant(id="new_york", email="bob@example.com", timezone="America/New_York", name="Bob")


@pytest.fixture
def los_angeles() -> Participant:
    return Participant(id="los_angeles", email="carol@example.com", timezone="America/Los_Angeles")


@pytest.fixture
def tokyo() -> Participant:
    return Participant(id="tokyo", email="dai@example.com", timezone="Asia/Tokyo", name="Dai")


@pytest.fixture
def engine() -> SchedulingEngine:
    return SchedulingEngine(Settings())
