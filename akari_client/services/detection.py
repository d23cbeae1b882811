from __future__ import annotations

import asyncio
import json
import logging
from enum import Enum
from typing import Any

from akari_client.services.dispatcher import FailureChannel
from akari_client.services.transport import Transport
from akari_client.state import (
    Axis,
    Column,
    DetectionCategory,
    DetectionResult,
    FrameSize,
    Row,
)

DETECTION_PATHS = {
    DetectionCategory.FACE: "/camera/face",
    DetectionCategory.OBJECT: "/camera/object",
}
COLUMN_SPLIT_THRESHOLD = 0.3
ROW_SPLIT_THRESHOLD = 0.3
NO_NAME = "NONE"


class FlagState(Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    UNKNOWN = "unknown"


def decode_success_flag(value: Any) -> FlagState:
    """
    Interpret the controller's loosely typed success flag.

    - bool: as is
    - None (flag missing): UNKNOWN
    - str: "" is FAILURE; otherwise parsed as JSON (lower-cased), where only a
      parsed ``true`` is SUCCESS; text that does not parse counts as SUCCESS
    - anything else: truthiness
    """
    if value is None:
        return FlagState.UNKNOWN
    if isinstance(value, bool):
        return FlagState.SUCCESS if value else FlagState.FAILURE
    if isinstance(value, str):
        if value == "":
            return FlagState.FAILURE
        try:
            parsed = json.loads(value.lower())
        except ValueError:
            return FlagState.SUCCESS
        return FlagState.SUCCESS if parsed is True else FlagState.FAILURE
    return FlagState.SUCCESS if value else FlagState.FAILURE


# ---- Coordinate transforms ----


def normalize_position(pixel: float, frame: float) -> float:
    """Map [0, frame] pixels onto [-1, 1]."""
    return pixel / (frame / 2) - 1


def denormalize_position(value: float, frame: float) -> float:
    return (value + 1) * (frame / 2)


def normalize_size(pixels: float, frame: float) -> float:
    return pixels / frame


def denormalize_size(value: float, frame: float) -> float:
    return value * frame


def center(position: float, size: float) -> float:
    return position + size / 2


def parse_item(item: dict[str, Any], frame: FrameSize) -> DetectionResult:
    # Pixel values are reported as integers; truncate anything else the same way
    px = int(float(item["x"]))
    py = int(float(item["y"]))
    pw = int(float(item["width"]))
    ph = int(float(item["height"]))
    return DetectionResult(
        name=str(item["name"]),
        x=normalize_position(px, frame.width),
        y=normalize_position(py, frame.height),
        width=normalize_size(pw, frame.width),
        height=normalize_size(ph, frame.height),
    )


def column_matches(cx: float, column: Column) -> bool:
    # Buckets overlap on their boundaries on purpose (|cx| == T is center and edge)
    t = COLUMN_SPLIT_THRESHOLD
    if column is Column.CENTER:
        return -t <= cx <= t
    if column is Column.RIGHT:
        return cx >= t
    return cx <= -t


def row_matches(cy: float, row: Row) -> bool:
    t = ROW_SPLIT_THRESHOLD
    if row is Row.UPPER:
        return cy < -t
    if row is Row.CENTER:
        return -t <= cy <= t
    return cy > t


def in_region(cx: float, cy: float, column: Column | str, row: Row | str) -> bool:
    return column_matches(cx, Column.parse(column)) and row_matches(cy, Row.parse(row))


class DetectionProcessor:
    """Fetches face/object detections and answers queries over the last good fetch."""

    def __init__(
        self,
        transport: Transport,
        frames: dict[DetectionCategory, FrameSize],
        failures: FailureChannel,
    ) -> None:
        missing = set(DetectionCategory) - set(frames)
        if missing:
            raise ValueError(f"Missing frame size for {sorted(m.value for m in missing)}")
        self.transport = transport
        self.frames = dict(frames)
        self.failures = failures
        self._results: dict[DetectionCategory, tuple[DetectionResult, ...]] = {
            c: () for c in DetectionCategory
        }

    async def refresh(self, category: DetectionCategory | str) -> bool:
        """
        Fetch detections for a category and replace its result list on success.

        Returns False on any failure; previous results stay queryable until
        the next successful refresh.
        """
        cat = DetectionCategory.parse(category)
        try:
            payload = await self.transport.request("GET", DETECTION_PATHS[cat])
            flag = payload.get("success", payload.get("result"))
            if decode_success_flag(flag) is not FlagState.SUCCESS:
                logging.info("%s detection reported no result (flag=%r)", cat.value, flag)
                return False
            items = payload.get("items", payload.get("data")) or []
            frame = self.frames[cat]
            results = tuple(parse_item(item, frame) for item in items)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logging.warning("%s detection fetch failed: %s", cat.value, e)
            self.failures.report("detection", f"{cat.value}-detection", e)
            return False

        self._results[cat] = results
        logging.debug("%s detection: %d item(s)", cat.value, len(results))
        return True

    # ---- Queries ----

    def results(self, category: DetectionCategory | str) -> tuple[DetectionResult, ...]:
        return self._results[DetectionCategory.parse(category)]

    def count(self, category: DetectionCategory | str = DetectionCategory.OBJECT) -> int:
        return len(self.results(category))

    def is_detected(
        self, category: DetectionCategory | str, name: str | None = None
    ) -> bool:
        items = self.results(category)
        if name is None:
            return len(items) > 0
        return any(r.name == name for r in items)

    def object_count(self, name: str) -> int:
        return sum(1 for r in self.results(DetectionCategory.OBJECT) if r.name == name)

    def is_object_in_region(self, name: str, column: Column | str, row: Row | str) -> bool:
        col, rw = Column.parse(column), Row.parse(row)
        for r in self.results(DetectionCategory.OBJECT):
            if r.name == name and in_region(r.center_x, r.center_y, col, rw):
                return True
        return False

    def _at(self, index: int, category: DetectionCategory | str) -> DetectionResult | None:
        items = self.results(category)
        i = int(index)
        if 0 <= i < len(items):
            return items[i]
        return None

    def name_at_index(
        self, index: int, category: DetectionCategory | str = DetectionCategory.OBJECT
    ) -> str:
        r = self._at(index, category)
        return r.name if r is not None else NO_NAME

    def center_at_index(
        self,
        index: int,
        axis: Axis | str,
        category: DetectionCategory | str = DetectionCategory.OBJECT,
    ) -> float:
        a = Axis.parse(axis)
        r = self._at(index, category)
        if r is None:
            return 0
        return r.center_x if a is Axis.X else r.center_y

    def size_at_index(
        self,
        index: int,
        axis: Axis | str,
        category: DetectionCategory | str = DetectionCategory.OBJECT,
    ) -> float:
        a = Axis.parse(axis)
        r = self._at(index, category)
        if r is None:
            return 0
        return r.width if a is Axis.X else r.height

    def face_center(self, axis: Axis | str) -> float:
        return self.center_at_index(0, axis, DetectionCategory.FACE)

    def face_size(self, axis: Axis | str) -> float:
        return self.size_at_index(0, axis, DetectionCategory.FACE)
