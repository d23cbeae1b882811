from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple

from nicegui import binding


class _ParsableEnum(str, Enum):
    """String enum accepting its members or their (case-insensitive) values."""

    @classmethod
    def parse(cls, value):
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        for member in cls:
            if member.value.lower() == text or member.name.lower() == text:
                return member
        raise ValueError(f"Invalid {cls.__name__}: {value!r}")


class Joint(_ParsableEnum):
    PAN = "pan"
    TILT = "tilt"
    # Viewer-relative naming onto the same two axes
    LEFT = "left"
    RIGHT = "right"
    UP = "up"
    DOWN = "down"

    @property
    def is_pan(self) -> bool:
        return self in (Joint.PAN, Joint.LEFT, Joint.RIGHT)

    @property
    def sign(self) -> int:
        return -1 if self in (Joint.RIGHT, Joint.DOWN) else 1


class Button(_ParsableEnum):
    A = "A"
    B = "B"
    C = "C"
    ANY = "any"


class DigitalInput(_ParsableEnum):
    DIN0 = "din0"
    DIN1 = "din1"
    ANY = "any"


class DigitalOutput(_ParsableEnum):
    DOUT0 = "dout0"
    DOUT1 = "dout1"


class PinValue(_ParsableEnum):
    HIGH = "High"
    LOW = "Low"


class EnvSensor(_ParsableEnum):
    TEMPERATURE = "temperature"
    PRESSURE = "pressure"
    BRIGHTNESS = "brightness"


class Axis(_ParsableEnum):
    X = "x"
    Y = "y"


class CameraMode(_ParsableEnum):
    NONE = "None"
    RGB = "RGB"
    DEPTH = "Depth"
    FACE_DETECTION = "FaceDetection"
    OBJECT_DETECTION = "ObjectDetection"


class DetectionCategory(_ParsableEnum):
    FACE = "face"
    OBJECT = "object"


class Column(_ParsableEnum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class Row(_ParsableEnum):
    UPPER = "upper"
    CENTER = "center"
    LOWER = "lower"


class VelocityPreset(int, Enum):
    FAST = 500  # deg/s
    NORMAL = 200
    SLOW = 100


class Rgb(NamedTuple):
    r: int
    g: int
    b: int

    def to_wire(self) -> dict[str, int]:
        return {"r": self.r, "g": self.g, "b": self.b}


class Color(_ParsableEnum):
    WHITE = "white"
    BLACK = "black"
    RED = "red"
    GREEN = "green"
    BLUE = "blue"
    YELLOW = "yellow"
    PURPLE = "purple"
    ORANGE = "orange"
    PINK = "pink"
    DARKGREY = "darkgrey"

    @property
    def rgb(self) -> Rgb:
        return _PALETTE[self]

    @classmethod
    def to_rgb(cls, value) -> Rgb:
        """Resolve a palette name, Color or RGB triple; unknown names fall back to white."""
        if isinstance(value, Rgb):
            return value
        if isinstance(value, (tuple, list)) and len(value) == 3:
            return Rgb(*(int(c) for c in value))
        try:
            return cls.parse(value).rgb
        except ValueError:
            return _PALETTE[cls.WHITE]


_PALETTE: dict[Color, Rgb] = {
    Color.WHITE: Rgb(255, 255, 255),
    Color.BLACK: Rgb(0, 0, 0),
    Color.RED: Rgb(255, 0, 0),
    Color.GREEN: Rgb(0, 255, 0),
    Color.BLUE: Rgb(0, 0, 255),
    Color.YELLOW: Rgb(255, 255, 0),
    Color.PURPLE: Rgb(127, 0, 127),
    Color.ORANGE: Rgb(255, 165, 0),
    Color.PINK: Rgb(255, 0, 255),
    Color.DARKGREY: Rgb(127, 127, 127),
}


@dataclass(frozen=True)
class FrameSize:
    width: int
    height: int

    @classmethod
    def parse(cls, text: str) -> "FrameSize":
        """Parse 'WxH' (e.g. '480x360')."""
        w, _, h = text.strip().lower().partition("x")
        frame = cls(int(w), int(h))
        if frame.width <= 0 or frame.height <= 0:
            raise ValueError(f"Frame size must be positive: {text!r}")
        return frame


@dataclass(frozen=True)
class DetectionResult:
    name: str
    x: float  # normalized [-1, 1]
    y: float
    width: float  # fraction of frame [0, 1]
    height: float

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2

    @property
    def center_y(self) -> float:
        return self.y + self.height / 2


# Single owned record of device state, shared by reference with the services
@binding.bindable_dataclass
class DeviceState:
    # Motor (degrees); limits stay 0 until resolved, collapsing every clamp to 0
    pan_min: float = 0.0
    pan_max: float = 0.0
    tilt_min: float = 0.0
    tilt_max: float = 0.0
    pan_target: float = 0.0
    tilt_target: float = 0.0
    velocity: float = 0.0  # deg/s
    acceleration: float = 0.0  # deg/s^2
    limits_resolved: bool = False
    # Inputs (din is active-low: True = open)
    button_a: bool = False
    button_b: bool = False
    button_c: bool = False
    din0: bool = True
    din1: bool = True
    ain0: float = 0.0
    # Outputs
    dout0_target: bool = False
    dout1_target: bool = False
    pwm_target: int = 0
    # Environment
    temperature: float = 0.0
    pressure: float = 0.0
    brightness: float = 0.0
    # Display
    background_color: Rgb = Rgb(255, 255, 255)
    foreground_color: Rgb = Rgb(0, 0, 0)
    font_size: int = 5
    last_poll_ts: float = 0.0
