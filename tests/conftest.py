"""Shared pytest fixtures."""

from __future__ import annotations

import logging
import os

# Qt host tests run without a display server.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest

from panepoint.events import EventBus
from panepoint.mode import PositionMemoryMode
from panepoint.workspace import Workspace

from tests.helpers import StubHost


@pytest.fixture(autouse=True)
def _reset_package_logging():
    yield
    package_logger = logging.getLogger("panepoint")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.setLevel(logging.NOTSET)


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def workspace(bus: EventBus) -> Workspace:
    return Workspace(bus=bus)


@pytest.fixture
def mode(workspace: Workspace, bus: EventBus) -> PositionMemoryMode:
    memory = PositionMemoryMode(workspace, bus)
    memory.enable()
    yield memory
    memory.disable()


@pytest.fixture
def stub_host() -> StubHost:
    return StubHost()
