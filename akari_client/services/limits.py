from __future__ import annotations

import asyncio
import logging

from akari_client.services.dispatcher import FailureChannel
from akari_client.services.transport import Transport
from akari_client.state import DeviceState
from akari_client.units import rad_to_deg

SERVO_PATH = "/motor/servo"
POSITIONS_PATH = "/motor/positions"


class LimitResolver:
    """Seeds joint limits, velocity/acceleration and position from the controller."""

    def __init__(
        self, transport: Transport, state: DeviceState, failures: FailureChannel
    ) -> None:
        self.transport = transport
        self.state = state
        self.failures = failures

    async def resolve(self) -> bool:
        """
        One servo-status read and one position read, each independent of the other.

        A failed read leaves its fields untouched (limits stay at 0 until a later
        re-resolve succeeds). Returns True only if both reads succeeded.
        """
        status_ok = await self._resolve_status()
        position_ok = await self.refresh_position()
        return status_ok and position_ok

    async def _resolve_status(self) -> bool:
        try:
            data = await self.transport.request("GET", SERVO_PATH)
            pan_min = rad_to_deg(float(data["pan_min"]))
            pan_max = rad_to_deg(float(data["pan_max"]))
            tilt_min = rad_to_deg(float(data["tilt_min"]))
            tilt_max = rad_to_deg(float(data["tilt_max"]))
            vel = rad_to_deg(float(data["vel"]))
            acc = rad_to_deg(float(data["acc"]))
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logging.error("Servo status read failed: %s", e)
            self.failures.report("limits", "servo-status", e)
            return False

        s = self.state
        s.pan_min, s.pan_max = pan_min, pan_max
        s.tilt_min, s.tilt_max = tilt_min, tilt_max
        s.velocity = vel
        s.acceleration = acc
        s.limits_resolved = True
        logging.info(
            "Limits: pan [%.1f, %.1f] tilt [%.1f, %.1f] deg, vel=%.1f acc=%.1f",
            pan_min,
            pan_max,
            tilt_min,
            tilt_max,
            vel,
            acc,
        )
        return True

    async def refresh_position(self) -> bool:
        """Re-read the current joint position into the cached targets."""
        try:
            data = await self.transport.request("GET", POSITIONS_PATH)
            pan = rad_to_deg(float(data["pan"]))
            tilt = rad_to_deg(float(data["tilt"]))
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logging.error("Position read failed: %s", e)
            self.failures.report("limits", "position", e)
            return False
        self.state.pan_target = pan
        self.state.tilt_target = tilt
        return True
