from __future__ import annotations

from typing import Any

from core.errors import MissingCapability
from sdk.host import FrameCallback


class HostCapture:
    """Ask the host for a screenshot; the host hands it back through
    ``on_frame_delivered`` on its own listener thread, so ``deliver`` is unused."""
    def __init__(self, host: Any):
        self.host = host

    def request_frame(self, deliver: FrameCallback) -> None:
        request = getattr(self.host, "request_screenshot", None)
        if request is None:
            raise MissingCapability("host capture", "host cannot take screenshots")
        request()
