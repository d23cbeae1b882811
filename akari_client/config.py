from __future__ import annotations

import os
from dataclasses import dataclass, field

from akari_client.state import DetectionCategory, FrameSize


@dataclass
class ClientConfig:
    """Runtime configuration for the device client and its controller connection."""
    HOST: str = "127.0.0.1"
    PORT: int = 52002
    REQUEST_TIMEOUT_S: float = 1.0
    POLL_INTERVAL_S: float = 0.1
    FAILURE_QUEUE_SIZE: int = 64
    FRAMES: dict[DetectionCategory, FrameSize] = field(
        default_factory=lambda: {
            DetectionCategory.FACE: FrameSize(480, 360),
            DetectionCategory.OBJECT: FrameSize(480, 360),
        }
    )

    @property
    def base_url(self) -> str:
        return f"http://{self.HOST}:{self.PORT}"

    def frame_for(self, category: DetectionCategory | str) -> FrameSize:
        return self.FRAMES[DetectionCategory.parse(category)]

    @classmethod
    def from_env(cls) -> "ClientConfig":
        host = os.getenv("AKARI_CONTROLLER_IP", "127.0.0.1")
        port = int(os.getenv("AKARI_CONTROLLER_PORT", "52002"))
        timeout = float(os.getenv("AKARI_REQUEST_TIMEOUT_S", "1.0"))
        interval = float(os.getenv("AKARI_POLL_INTERVAL_S", "0.1"))
        queue_size = int(os.getenv("AKARI_FAILURE_QUEUE_SIZE", "64"))
        frames = {
            DetectionCategory.FACE: FrameSize.parse(
                os.getenv("AKARI_FACE_FRAME", "480x360")
            ),
            DetectionCategory.OBJECT: FrameSize.parse(
                os.getenv("AKARI_OBJECT_FRAME", "480x360")
            ),
        }
        return cls(
            HOST=host,
            PORT=port,
            REQUEST_TIMEOUT_S=timeout,
            POLL_INTERVAL_S=interval,
            FAILURE_QUEUE_SIZE=queue_size,
            FRAMES=frames,
        )
