from __future__ import annotations

from akari_client.config import ClientConfig
from akari_client.services.device import DeviceClient

# Module-level singleton used by the operator panel
device = DeviceClient(ClientConfig.from_env())
