from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest

from akari_client.config import ClientConfig
from akari_client.services.commands import CommandAPI
from akari_client.services.detection import DetectionProcessor
from akari_client.services.device import DeviceClient
from akari_client.services.dispatcher import Dispatcher, FailureChannel
from akari_client.services.limits import LimitResolver
from akari_client.services.poller import Poller
from akari_client.state import DetectionCategory, DeviceState, FrameSize
from tests.utils.fake_transport import FakeTransport

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


@pytest.fixture(scope="session", autouse=True)
def akari_env_session() -> None:
    """
    Global test defaults (set at session start via os.environ):
      - keep per-poll trace logging off
      - point any accidental real connection at a closed local port
    These can still be overridden per-test with monkeypatch.setenv if needed.
    """
    os.environ["AKARI_TRACE"] = "0"
    os.environ.setdefault("AKARI_CONTROLLER_IP", "127.0.0.1")
    os.environ.setdefault("AKARI_CONTROLLER_PORT", "9")


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def state() -> DeviceState:
    return DeviceState()


@pytest.fixture
def failures() -> FailureChannel:
    return FailureChannel(maxsize=16)


@pytest.fixture
def dispatcher(failures: FailureChannel) -> Dispatcher:
    return Dispatcher(failures)


@pytest.fixture
def commands(
    transport: FakeTransport, state: DeviceState, dispatcher: Dispatcher
) -> CommandAPI:
    return CommandAPI(transport, state, dispatcher)


@pytest.fixture
def limited_state(state: DeviceState) -> DeviceState:
    """State with resolved limits: pan [-90, 90], tilt [-30, 45] deg."""
    state.pan_min, state.pan_max = -90.0, 90.0
    state.tilt_min, state.tilt_max = -30.0, 45.0
    state.limits_resolved = True
    return state


@pytest.fixture
def limits(
    transport: FakeTransport, state: DeviceState, failures: FailureChannel
) -> LimitResolver:
    return LimitResolver(transport, state, failures)


@pytest.fixture
def poller(
    transport: FakeTransport, state: DeviceState, failures: FailureChannel
) -> Poller:
    return Poller(transport, state, failures, interval=0.02)


@pytest.fixture
def detection(transport: FakeTransport, failures: FailureChannel) -> DetectionProcessor:
    frames = {
        DetectionCategory.FACE: FrameSize(640, 480),
        DetectionCategory.OBJECT: FrameSize(480, 360),
    }
    return DetectionProcessor(transport, frames, failures)


@pytest.fixture
async def device(transport: FakeTransport) -> AsyncIterator[DeviceClient]:
    client = DeviceClient(ClientConfig(POLL_INTERVAL_S=0.02), transport=transport)
    try:
        yield client
    finally:
        await client.stop()
