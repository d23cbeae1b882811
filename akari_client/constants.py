from __future__ import annotations

import logging
import os

# Controller target (the robot's local control server)
CONTROLLER_HOST: str = os.getenv("AKARI_CONTROLLER_IP", "127.0.0.1")
CONTROLLER_PORT: int = int(os.getenv("AKARI_CONTROLLER_PORT", "52002"))

# Operator panel bind (NiceGUI host/port)
SERVER_HOST: str = os.getenv("AKARI_SERVER_IP", "0.0.0.0")
SERVER_PORT: int = int(os.getenv("AKARI_SERVER_PORT", "8080"))


def _resolve_log_level() -> int:
    s = os.getenv("AKARI_LOG_LEVEL")
    if s:
        name = s.strip().upper()
        mapping = {
            "DEBUG": logging.DEBUG,
            "INFO": logging.INFO,
            "WARNING": logging.WARNING,
            "ERROR": logging.ERROR,
            "CRITICAL": logging.CRITICAL,
        }
        return mapping.get(name, logging.WARNING)
    else:
        return logging.WARNING


LOG_LEVEL: int = _resolve_log_level()
