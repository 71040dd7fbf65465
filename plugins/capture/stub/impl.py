from __future__ import annotations
from typing import Any, List, Optional
from PIL import Image
from core.errors import MissingCapability
from sdk.host import FrameCallback
class StubCapture:
    """Fake capture. Synchronous mode delivers ``frame`` immediately; otherwise
    callbacks are held until deliver_next()."""
    def __init__(self, frame: Optional[Any] = None, synchronous: bool = True, available: bool = True):
        self.frame = frame if frame is not None else Image.new("RGB", (320, 240), (0, 128, 255))
        self.synchronous = synchronous; self.available = available
        self.requests = 0; self.waiting: List[FrameCallback] = []
    def request_frame(self, deliver: FrameCallback) -> None:
        if not self.available: raise MissingCapability("stub capture", "disabled")
        self.requests += 1
        if self.synchronous: deliver(self.frame)
        else: self.waiting.append(deliver)
    def deliver_next(self, frame: Optional[Any] = None) -> None:
        self.waiting.pop(0)(frame if frame is not None else self.frame)
