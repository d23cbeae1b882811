from __future__ import annotations

import asyncio

from akari_client.services.dispatcher import Dispatcher
from akari_client.services.transport import Transport
from akari_client.state import (
    Button,
    CameraMode,
    Color,
    DeviceState,
    DigitalInput,
    DigitalOutput,
    EnvSensor,
    Joint,
    PinValue,
)
from akari_client.units import clamp, clamp_font_size, deg_to_rad, finite

SERVO_PATH = "/motor/servo"
POSITIONS_PATH = "/motor/positions"
VELOCITY_PATH = "/motor/velocity"
ACCELERATION_PATH = "/motor/acceleration"
PINOUT_PATH = "/pinout/values"
DISPLAY_PATH = "/display/values"
DISPLAY_IMAGE_PATH = "/display/image"
CAMERA_MODE_PATH = "/camera/mode"


class CommandAPI:
    """
    Single point of mutation for commanded device state.

    Each command validates its arguments, updates the cache immediately and
    hands the controller write to the dispatcher. The returned task may be
    awaited to suspend until the write finished; it never raises.
    """

    def __init__(
        self, transport: Transport, state: DeviceState, dispatcher: Dispatcher
    ) -> None:
        self.transport = transport
        self.state = state
        self.dispatcher = dispatcher

    # ---- Motor ----

    def set_servo_enabled(self, enabled: bool) -> asyncio.Task:
        enabled = bool(enabled)
        return self.dispatcher.spawn(
            f"servo {'on' if enabled else 'off'}",
            lambda: self.transport.request(
                "POST", SERVO_PATH, params={"enabled": enabled}
            ),
        )

    def _clamp_pan(self, value: float) -> float:
        return clamp(value, self.state.pan_min, self.state.pan_max)

    def _clamp_tilt(self, value: float) -> float:
        return clamp(value, self.state.tilt_min, self.state.tilt_max)

    def move_absolute(self, joint: Joint | str, angle_deg: float) -> asyncio.Task:
        j = Joint.parse(joint)
        angle = finite(angle_deg) * j.sign
        if j.is_pan:
            self.state.pan_target = self._clamp_pan(angle)
        else:
            self.state.tilt_target = self._clamp_tilt(angle)
        return self._send_positions()

    def move_relative(self, joint: Joint | str, delta_deg: float) -> asyncio.Task:
        j = Joint.parse(joint)
        delta = finite(delta_deg) * j.sign
        if j.is_pan:
            self.state.pan_target = self._clamp_pan(self.state.pan_target + delta)
        else:
            self.state.tilt_target = self._clamp_tilt(self.state.tilt_target + delta)
        return self._send_positions()

    def move_all_absolute(self, pan_deg: float, tilt_deg: float) -> asyncio.Task:
        pan, tilt = finite(pan_deg), finite(tilt_deg)
        self.state.pan_target = self._clamp_pan(pan)
        self.state.tilt_target = self._clamp_tilt(tilt)
        return self._send_positions()

    def move_all_relative(self, pan_delta: float, tilt_delta: float) -> asyncio.Task:
        pan, tilt = finite(pan_delta), finite(tilt_delta)
        self.state.pan_target = self._clamp_pan(self.state.pan_target + pan)
        self.state.tilt_target = self._clamp_tilt(self.state.tilt_target + tilt)
        return self._send_positions()

    def _send_positions(self) -> asyncio.Task:
        # Both joints always go out together, using the current cached targets
        pan, tilt = self.state.pan_target, self.state.tilt_target

        def commit() -> None:
            self.state.pan_target = pan
            self.state.tilt_target = tilt

        return self.dispatcher.spawn(
            f"move pan={pan:.2f} tilt={tilt:.2f}",
            lambda: self.transport.request(
                "POST",
                POSITIONS_PATH,
                json={"pan": deg_to_rad(pan), "tilt": deg_to_rad(tilt)},
            ),
            commit,
        )

    def set_velocity(self, deg_per_s: float) -> asyncio.Task:
        vel = finite(deg_per_s)
        self.state.velocity = vel

        def commit() -> None:
            self.state.velocity = vel

        return self.dispatcher.spawn(
            f"velocity {vel:g}",
            lambda: self.transport.request(
                "POST", VELOCITY_PATH, params={"vel": deg_to_rad(vel)}
            ),
            commit,
        )

    def set_acceleration(self, deg_per_s2: float) -> asyncio.Task:
        acc = finite(deg_per_s2)
        self.state.acceleration = acc

        def commit() -> None:
            self.state.acceleration = acc

        return self.dispatcher.spawn(
            f"acceleration {acc:g}",
            lambda: self.transport.request(
                "POST", ACCELERATION_PATH, params={"acc": deg_to_rad(acc)}
            ),
            commit,
        )

    def position(self, joint: Joint | str) -> float:
        """Cached target of a joint, sign-adjusted for the viewer-relative naming."""
        j = Joint.parse(joint)
        value = self.state.pan_target if j.is_pan else self.state.tilt_target
        return value * j.sign

    # ---- Pinout ----

    def set_digital_output(
        self, pin: DigitalOutput | str, value: PinValue | str
    ) -> asyncio.Task:
        p = DigitalOutput.parse(pin)
        high = PinValue.parse(value) is PinValue.HIGH
        if p is DigitalOutput.DOUT0:
            self.state.dout0_target = high
        else:
            self.state.dout1_target = high
        return self._send_pinout()

    def set_pwm_output(self, value: int) -> asyncio.Task:
        # Range is the caller's responsibility (expected 0-255)
        self.state.pwm_target = int(finite(value))
        return self._send_pinout()

    def _send_pinout(self) -> asyncio.Task:
        dout0 = self.state.dout0_target
        dout1 = self.state.dout1_target
        pwm = self.state.pwm_target

        def commit() -> None:
            self.state.dout0_target = dout0
            self.state.dout1_target = dout1
            self.state.pwm_target = pwm

        return self.dispatcher.spawn(
            f"pinout dout0={dout0} dout1={dout1} pwm={pwm}",
            lambda: self.transport.request(
                "POST",
                PINOUT_PATH,
                json={"dout0": dout0, "dout1": dout1, "pwmout0": pwm},
            ),
            commit,
        )

    # ---- Display ----

    def set_display_color(self, color) -> None:
        self.state.background_color = Color.to_rgb(color)

    def set_foreground_color(self, color) -> None:
        self.state.foreground_color = Color.to_rgb(color)

    def set_font_size(self, size: float) -> int:
        self.state.font_size = clamp_font_size(size)
        return self.state.font_size

    def set_display_text(self, text) -> asyncio.Task:
        payload = {
            "text": str(text),
            "display_color": self.state.background_color.to_wire(),
            "foreground_color": self.state.foreground_color.to_wire(),
            "font_size": self.state.font_size,
        }
        return self.dispatcher.spawn(
            f"display text {payload['text']!r}",
            lambda: self.transport.request("POST", DISPLAY_PATH, json=payload),
        )

    def set_display_image(self, path) -> asyncio.Task:
        path = str(path)
        return self.dispatcher.spawn(
            f"display image {path}",
            lambda: self.transport.request(
                "POST", DISPLAY_IMAGE_PATH, params={"path": path}
            ),
        )

    # ---- Camera ----

    def set_camera_mode(self, mode: CameraMode | str) -> asyncio.Task:
        m = CameraMode.parse(mode)
        return self.dispatcher.spawn(
            f"camera mode {m.value}",
            lambda: self.transport.request(
                "POST", CAMERA_MODE_PATH, json={"mode": m.value}
            ),
        )

    def camera_off(self) -> asyncio.Task:
        return self.set_camera_mode(CameraMode.NONE)

    # ---- Cached reads ----

    def is_button_pressed(self, button: Button | str) -> bool:
        b = Button.parse(button)
        s = self.state
        if b is Button.ANY:
            return bool(s.button_a or s.button_b or s.button_c)
        return bool({Button.A: s.button_a, Button.B: s.button_b, Button.C: s.button_c}[b])

    def is_din_active(self, pin: DigitalInput | str) -> bool:
        """Digital inputs are active-low: a False reading means closed."""
        p = DigitalInput.parse(pin)
        s = self.state
        if p is DigitalInput.ANY:
            return not (s.din0 and s.din1)
        return not (s.din0 if p is DigitalInput.DIN0 else s.din1)

    def analog_input(self) -> float:
        return self.state.ain0

    def sensor(self, kind: EnvSensor | str) -> float:
        k = EnvSensor.parse(kind)
        if k is EnvSensor.TEMPERATURE:
            return self.state.temperature
        if k is EnvSensor.PRESSURE:
            return self.state.pressure
        return self.state.brightness

