import logging
from functools import partial

from nicegui import ui

from akari_client.services.robot_client import device
from akari_client.state import Color, DigitalOutput, PinValue


class IoPage:
    """I/O tab page: inputs/sensors readout, outputs, display."""

    def __init__(self) -> None:
        self.pwm_slider: ui.slider | None = None
        self.text_input: ui.input | None = None
        self.image_input: ui.input | None = None
        self.font_size_input: ui.number | None = None

    def set_output(self, pin: DigitalOutput, value: PinValue) -> None:
        device.commands.set_digital_output(pin, value)
        ui.notify(f"{pin.value.upper()} -> {value.value.upper()}", color="primary")
        logging.info("%s -> %s", pin.value.upper(), value.value.upper())

    def _set_pwm(self) -> None:
        value = int(self.pwm_slider.value or 0) if self.pwm_slider else 0
        device.commands.set_pwm_output(value)

    def _send_text(self) -> None:
        if self.font_size_input is not None:
            size = device.commands.set_font_size(self.font_size_input.value or 5)
            self.font_size_input.value = size
        device.commands.set_display_text(self.text_input.value if self.text_input else "")

    def _send_image(self) -> None:
        path = (self.image_input.value or "").strip() if self.image_input else ""
        if not path:
            ui.notify("Provide an image path", color="warning")
            return
        device.commands.set_display_image(path)

    def build(self) -> None:
        state = device.state
        with ui.card().classes("w-full"):
            ui.label("I/O").classes("text-md font-medium")
            with ui.column().classes("gap-2"):
                with ui.row().classes("items-center gap-4"):
                    for name in ("button_a", "button_b", "button_c"):
                        ui.label().bind_text_from(
                            state,
                            name,
                            backward=lambda v, n=name: f"{n[-1].upper()}: {'pressed' if v else '-'}",
                        ).classes("text-sm")
                    for name in ("din0", "din1"):
                        # Active-low input
                        ui.label().bind_text_from(
                            state,
                            name,
                            backward=lambda v, n=name: f"{n.upper()}: {'open' if v else 'closed'}",
                        ).classes("text-sm")
                    ui.label().bind_text_from(
                        state, "ain0", backward=lambda v: f"AIN0: {v:.2f}"
                    ).classes("text-sm")
                with ui.row().classes("items-center gap-4"):
                    ui.label().bind_text_from(
                        state, "temperature", backward=lambda v: f"Temperature: {v:.1f}"
                    ).classes("text-sm")
                    ui.label().bind_text_from(
                        state, "pressure", backward=lambda v: f"Pressure: {v:.1f}"
                    ).classes("text-sm")
                    ui.label().bind_text_from(
                        state, "brightness", backward=lambda v: f"Brightness: {v:.1f}"
                    ).classes("text-sm")
                ui.separator()
                for pin, attr in (
                    (DigitalOutput.DOUT0, "dout0_target"),
                    (DigitalOutput.DOUT1, "dout1_target"),
                ):
                    with ui.row().classes("items-center gap-4"):
                        ui.label().bind_text_from(
                            state,
                            attr,
                            backward=lambda v, p=pin: f"{p.value.upper()} is: {'HIGH' if v else 'LOW'}",
                        ).classes("text-sm")
                        ui.button(
                            "LOW", on_click=partial(self.set_output, pin, PinValue.LOW)
                        ).props("unelevated")
                        ui.button(
                            "HIGH", on_click=partial(self.set_output, pin, PinValue.HIGH)
                        ).props("unelevated")
                with ui.row().classes("items-center gap-4 w-full"):
                    ui.label("PWM").classes("text-sm")
                    self.pwm_slider = ui.slider(min=0, max=255, value=0).classes("w-64")
                    ui.button("Set", on_click=self._set_pwm).props("flat")

        with ui.card().classes("w-full"):
            ui.label("Display").classes("text-md font-medium")
            with ui.row().classes("items-center gap-2"):
                ui.select(
                    [c.value for c in Color],
                    label="Background",
                    value=Color.WHITE.value,
                    on_change=lambda e: device.commands.set_display_color(e.value),
                )
                ui.select(
                    [c.value for c in Color],
                    label="Text color",
                    value=Color.BLACK.value,
                    on_change=lambda e: device.commands.set_foreground_color(e.value),
                )
                self.font_size_input = ui.number("Font size (1-11)", value=state.font_size)
            with ui.row().classes("items-center gap-2"):
                self.text_input = ui.input(label="Text")
                ui.button("Show text", on_click=self._send_text).props("unelevated")
            with ui.row().classes("items-center gap-2"):
                self.image_input = ui.input(label="Image path", value="/jpg/logo320.jpg")
                ui.button("Show image", on_click=self._send_image).props("unelevated")
