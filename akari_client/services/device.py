from __future__ import annotations

import logging

from akari_client.config import ClientConfig
from akari_client.services.commands import CommandAPI
from akari_client.services.detection import DetectionProcessor
from akari_client.services.dispatcher import Dispatcher, FailureChannel
from akari_client.services.limits import LimitResolver
from akari_client.services.poller import Poller
from akari_client.services.transport import HttpTransport, Transport
from akari_client.state import CameraMode, DeviceState


class DeviceClient:
    """
    One robot connection: owns the device state and every service acting on it.

    - start(): resolve limits once, reset the camera mode, start sensor polling
    - stop():  stop polling, wait for in-flight writes, close the transport
    """

    def __init__(
        self, config: ClientConfig | None = None, transport: Transport | None = None
    ) -> None:
        self.config = config or ClientConfig.from_env()
        self.transport: Transport = transport or HttpTransport(
            self.config.base_url, timeout=self.config.REQUEST_TIMEOUT_S
        )
        self.state = DeviceState()
        self.failures = FailureChannel(maxsize=self.config.FAILURE_QUEUE_SIZE)
        self.dispatcher = Dispatcher(self.failures)
        self.limits = LimitResolver(self.transport, self.state, self.failures)
        self.poller = Poller(
            self.transport,
            self.state,
            self.failures,
            interval=self.config.POLL_INTERVAL_S,
        )
        self.commands = CommandAPI(self.transport, self.state, self.dispatcher)
        self.detection = DetectionProcessor(
            self.transport, self.config.FRAMES, self.failures
        )
        self.started = False

    async def start(self) -> None:
        if self.started:
            return
        if not await self.limits.resolve():
            logging.warning(
                "Joint limits unresolved; motion clamps to 0 until re-resolved"
            )
        self.commands.set_camera_mode(CameraMode.NONE)
        self.poller.start()
        self.started = True
        logging.info("Device client started (%s)", self.config.base_url)

    async def stop(self) -> None:
        await self.poller.stop()
        await self.dispatcher.drain()
        await self.transport.close()
        self.started = False
        logging.info("Device client stopped")

    async def __aenter__(self) -> "DeviceClient":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()
