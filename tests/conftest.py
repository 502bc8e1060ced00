# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0

"""Global pytest configuration and fixtures for Q# telemetry tests."""

from __future__ import annotations

import os

from collections.abc import Callable, Mapping
from pathlib import Path

import pytest

from qsharp_telemetry.config import reset_telemetry_settings
from qsharp_telemetry.dispatcher import TelemetryDispatcher, reset_telemetry


# ===========================================================================
# *                    Reporter test doubles
# ===========================================================================


class RecordingReporter:
    """Reporter double that records every event it is handed."""

    def __init__(self, key: str) -> None:
        self.key = key
        self.sent: list[tuple[str, Mapping[str, str], Mapping[str, float]]] = []

    def send(
        self, event: str, properties: Mapping[str, str], measurements: Mapping[str, float]
    ) -> None:
        self.sent.append((event, properties, measurements))

    @property
    def events(self) -> list[str]:
        return [event for event, _, _ in self.sent]


# ===========================================================================
# *                    Fixtures
# ===========================================================================


@pytest.fixture(autouse=True)
def isolated_test_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Ensure all tests run in an isolated environment.

    - Removes any QSHARP_* environment variables
    - Runs from a temporary directory so no `.env` file is picked up
    - Resets cached settings and the process-wide dispatcher between tests
    """
    for name in list(os.environ):
        if name.upper().startswith("QSHARP_"):
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)

    reset_telemetry_settings()
    reset_telemetry()

    yield

    reset_telemetry_settings()
    reset_telemetry()


@pytest.fixture
def reporters() -> list[RecordingReporter]:
    """Every reporter built by `reporter_factory` during the test."""
    return []


@pytest.fixture
def reporter_factory(reporters: list[RecordingReporter]) -> Callable[[str], RecordingReporter]:
    def factory(key: str) -> RecordingReporter:
        reporter = RecordingReporter(key)
        reporters.append(reporter)
        return reporter

    return factory


@pytest.fixture
def dispatcher(reporter_factory: Callable[[str], RecordingReporter]) -> TelemetryDispatcher:
    """A fresh, uninitialized dispatcher that builds recording reporters."""
    return TelemetryDispatcher(reporter_factory)
