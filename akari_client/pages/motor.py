from __future__ import annotations

import logging

from nicegui import ui

from akari_client.services.robot_client import device
from akari_client.state import Joint, VelocityPreset


class MotorPage:
    """Motor tab page: servo power, pan/tilt targets, velocity/acceleration."""

    def __init__(self) -> None:
        self.pan_input: ui.number | None = None
        self.tilt_input: ui.number | None = None
        self.step_input: ui.number | None = None
        self.acc_input: ui.number | None = None

    # ---- Actions ----

    def _servo(self, enabled: bool) -> None:
        device.commands.set_servo_enabled(enabled)
        ui.notify(f"Servo {'ON' if enabled else 'OFF'}", color="primary")

    def _move_to(self) -> None:
        pan = float(self.pan_input.value or 0) if self.pan_input else 0.0
        tilt = float(self.tilt_input.value or 0) if self.tilt_input else 0.0
        device.commands.move_all_absolute(pan, tilt)
        logging.info("MOVE pan=%.1f tilt=%.1f", pan, tilt)

    def _jog(self, joint: Joint) -> None:
        step = float(self.step_input.value or 0) if self.step_input else 0.0
        device.commands.move_relative(joint, step)

    def _velocity(self, preset: VelocityPreset) -> None:
        device.commands.set_velocity(preset)
        ui.notify(f"Velocity {preset.name.lower()} ({preset.value} deg/s)", color="primary")

    def _acceleration(self) -> None:
        acc = float(self.acc_input.value or 0) if self.acc_input else 0.0
        device.commands.set_acceleration(acc)

    async def _resolve(self) -> None:
        ok = await device.limits.resolve()
        ui.notify(
            "Limits resolved" if ok else "Limit resolution failed",
            color="positive" if ok else "negative",
        )

    # ---- UI ----

    def build(self) -> None:
        state = device.state
        with ui.card().classes("w-full"):
            ui.label("Motor").classes("text-md font-medium")
            with ui.row().classes("items-center gap-2"):
                ui.button("Servo ON", on_click=lambda: self._servo(True)).props("unelevated")
                ui.button("Servo OFF", on_click=lambda: self._servo(False)).props("unelevated")
                ui.button("Re-resolve limits", on_click=self._resolve).props("flat")
            with ui.row().classes("items-center gap-4"):
                ui.label().bind_text_from(
                    state,
                    "pan_target",
                    backward=lambda v: f"Pan: {v:.1f} deg [{state.pan_min:.0f}, {state.pan_max:.0f}]",
                ).classes("text-sm")
                ui.label().bind_text_from(
                    state,
                    "tilt_target",
                    backward=lambda v: f"Tilt: {v:.1f} deg [{state.tilt_min:.0f}, {state.tilt_max:.0f}]",
                ).classes("text-sm")
            ui.separator()
            with ui.row().classes("items-center gap-2"):
                self.pan_input = ui.number("Pan (deg)", value=0, format="%.1f")
                self.tilt_input = ui.number("Tilt (deg)", value=0, format="%.1f")
                ui.button("Move", on_click=self._move_to).props("unelevated")
            with ui.row().classes("items-center gap-2"):
                self.step_input = ui.number("Step (deg)", value=10, format="%.1f")
                for joint in (Joint.LEFT, Joint.RIGHT, Joint.UP, Joint.DOWN):
                    ui.button(
                        joint.value.upper(), on_click=lambda j=joint: self._jog(j)
                    ).props("unelevated")
            ui.separator()
            with ui.row().classes("items-center gap-2"):
                ui.label().bind_text_from(
                    state, "velocity", backward=lambda v: f"Velocity: {v:.0f} deg/s"
                ).classes("text-sm")
                for preset in VelocityPreset:
                    ui.button(
                        preset.name.lower(), on_click=lambda p=preset: self._velocity(p)
                    ).props("flat")
            with ui.row().classes("items-center gap-2"):
                ui.label().bind_text_from(
                    state, "acceleration", backward=lambda v: f"Acceleration: {v:.0f} deg/s^2"
                ).classes("text-sm")
                self.acc_input = ui.number("Acceleration", value=100, format="%.0f")
                ui.button("Set", on_click=self._acceleration).props("flat")
