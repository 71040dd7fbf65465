from __future__ import annotations
from typing import Callable, Optional
from core.errors import MissingCapability
class StubHotkey:
    def __init__(self, supported: bool = True):
        self.supported = supported; self.combo: Optional[str] = None; self._cb: Optional[Callable[[], None]] = None
    def register(self, combo: str, on_pressed: Callable[[], None]) -> None:
        if not self.supported: raise MissingCapability("global hotkey", "stub unsupported")
        self.combo, self._cb = combo, on_pressed
    def unregister(self) -> None: self.combo = None; self._cb = None
    def press(self) -> None:
        if self._cb: self._cb()
