from __future__ import annotations

import asyncio
import contextlib
import logging
import time

from akari_client.common import logging_config
from akari_client.services.dispatcher import FailureChannel
from akari_client.services.transport import Transport
from akari_client.state import DeviceState

SENSOR_PATH = "/sensor/values"


def _decode_sensor_payload(data: dict) -> dict:
    """Decode the whole payload up front so a bad field leaves the cache untouched."""
    return {
        "button_a": bool(data["button_a"]),
        "button_b": bool(data["button_b"]),
        "button_c": bool(data["button_c"]),
        "din0": bool(data["din0"]),
        "din1": bool(data["din1"]),
        "ain0": float(data["ain0"]),
        "temperature": float(data["temperature"]),
        "pressure": float(data["pressure"]),
        "brightness": float(data["brightness"]),
    }


class Poller:
    """Background sensor poll merging readings into DeviceState at a fixed cadence."""

    def __init__(
        self,
        transport: Transport,
        state: DeviceState,
        failures: FailureChannel,
        interval: float = 0.1,
    ) -> None:
        if interval <= 0:
            raise ValueError("Poll interval must be > 0")
        self.transport = transport
        self.state = state
        self.failures = failures
        self.interval = interval
        self.poll_count = 0
        self.consecutive_failures = 0
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def poll(self) -> bool:
        """Fetch and merge one sensor snapshot. Never raises on fetch failure."""
        try:
            data = await self.transport.request("GET", SENSOR_PATH)
            values = _decode_sensor_payload(data)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.consecutive_failures += 1
            if self.consecutive_failures == 1:
                logging.warning("Sensor poll failed: %s", e)
            else:
                logging.debug(
                    "Sensor poll failed (%d in a row): %s", self.consecutive_failures, e
                )
            self.failures.report("poll", "sensor-values", e)
            return False

        for name, value in values.items():
            setattr(self.state, name, value)
        self.state.last_poll_ts = time.time()
        self.poll_count += 1
        if self.consecutive_failures:
            logging.info(
                "Sensor poll recovered after %d failures", self.consecutive_failures
            )
        self.consecutive_failures = 0
        if logging_config.TRACE_ENABLED:
            logging.getLogger(__name__).trace("Sensor poll merged: %s", values)  # type: ignore[attr-defined]
        return True

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        next_tick = loop.time()
        while True:
            await self.poll()
            next_tick += self.interval
            now = loop.time()
            if next_tick < now:
                # Fell behind (slow controller); resume cadence from now
                next_tick = now
            await asyncio.sleep(next_tick - now)

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="akari-sensor-poller")
        logging.info("Sensor poller started (interval %.3fs)", self.interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logging.info("Sensor poller stopped")
