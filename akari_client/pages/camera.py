from __future__ import annotations

import logging

from nicegui import ui

from akari_client.services.robot_client import device
from akari_client.state import CameraMode, Column, DetectionCategory, Row


class CameraPage:
    """Camera tab page: camera mode, detection refresh and a 3x3 region view."""

    def __init__(self) -> None:
        self.category_toggle: ui.toggle | None = None
        self.result_table: ui.table | None = None
        self.status_label: ui.label | None = None
        self._region_labels: dict[tuple[Row, Column], ui.label] = {}

    async def refresh(self) -> None:
        cat = DetectionCategory.parse(
            self.category_toggle.value if self.category_toggle else "object"
        )
        ok = await device.detection.refresh(cat)
        if self.status_label:
            self.status_label.text = (
                f"{cat.value}: {device.detection.count(cat)} item(s)"
                if ok
                else f"{cat.value}: no detection (showing last result)"
            )
        self._update_table(cat)
        self._update_regions()
        logging.debug("Detection refresh %s -> %s", cat.value, ok)

    def _update_table(self, cat: DetectionCategory) -> None:
        if not self.result_table:
            return
        self.result_table.rows = [
            {
                "index": i,
                "name": r.name,
                "cx": round(r.center_x, 3),
                "cy": round(r.center_y, 3),
                "w": round(r.width, 3),
                "h": round(r.height, 3),
            }
            for i, r in enumerate(device.detection.results(cat))
        ]

    def _update_regions(self) -> None:
        objects = device.detection.results(DetectionCategory.OBJECT)
        names = sorted({r.name for r in objects})
        for (row, col), label in self._region_labels.items():
            hits = [n for n in names if device.detection.is_object_in_region(n, col, row)]
            label.text = ", ".join(hits) or "-"

    def build(self) -> None:
        with ui.card().classes("w-full"):
            ui.label("Camera").classes("text-md font-medium")
            with ui.row().classes("items-center gap-2"):
                ui.select(
                    {m.value: m.name.replace("_", " ").title() for m in CameraMode},
                    label="Mode",
                    value=CameraMode.NONE.value,
                    on_change=lambda e: device.commands.set_camera_mode(e.value),
                )
                self.category_toggle = ui.toggle(
                    [c.value for c in DetectionCategory],
                    value=DetectionCategory.OBJECT.value,
                ).props("dense")
                ui.button("Detect", on_click=self.refresh).props("unelevated")
                self.status_label = ui.label("-").classes("text-sm")
            self.result_table = ui.table(
                columns=[
                    {"name": k, "label": k, "field": k}
                    for k in ("index", "name", "cx", "cy", "w", "h")
                ],
                rows=[],
                row_key="index",
            ).classes("w-full")
            ui.label("Object regions").classes("text-sm font-medium")
            with ui.grid(columns=3).classes("w-full gap-1"):
                for row in Row:
                    for col in Column:
                        with ui.card().classes("p-1"):
                            ui.label(f"{row.value}/{col.value}").classes("text-xs")
                            self._region_labels[(row, col)] = ui.label("-").classes(
                                "text-sm"
                            )
