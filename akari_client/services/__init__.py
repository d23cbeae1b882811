# Service layer for the Akari device client
# - transport:  request/response seam to the controller (aiohttp)
# - dispatcher: fire-and-forget writes + bounded failure channel
# - limits:     one-shot joint limit / position resolution
# - poller:     periodic sensor polling into DeviceState
# - commands:   validated, clamped commands and cached reads
# - detection:  face/object detection normalization and region queries
# - device:     wiring of all of the above around one DeviceState
