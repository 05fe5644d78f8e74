"""Root pytest configuration and shared fixtures."""

from __future__ import annotations

import pytest

from tests.helpers.fakes import FakeSupervisor, PipeTerminal, RecordingConsole


@pytest.fixture
def console() -> RecordingConsole:
    return RecordingConsole()


@pytest.fixture
def fake_supervisor() -> FakeSupervisor:
    return FakeSupervisor()


@pytest.fixture
def pipe_terminal():
    terminal = PipeTerminal()
    yield terminal
    terminal.close()
