from __future__ import annotations
from importlib import import_module
class Registry:
    """Maps plugin keys to ``module:attr`` targets, imported on first use."""
    def __init__(self):
        self._map: dict[str, str] = {}
    def register(self, key: str, target: str) -> None:
        self._map[key] = target
    def target(self, key: str) -> str:
        return self._map.get(key, key)
    def keys(self) -> list[str]:
        return sorted(self._map)
    def create(self, key: str, *args, **kwargs):
        target = self.target(key)
        mod_path, _, obj = target.partition(":")
        mod = import_module(mod_path)
        cls = getattr(mod, obj) if obj else mod
        return cls(*args, **kwargs)
def default_registry() -> Registry:
    reg = Registry()
    reg.register("capture.window", "plugins.capture.window.impl:WindowCapture")
    reg.register("capture.host", "plugins.capture.host.impl:HostCapture")
    reg.register("capture.stub", "plugins.capture.stub.impl:StubCapture")
    reg.register("hotkey.pynput", "plugins.hotkeys.pynput_hotkey.impl:PynputHotkey")
    reg.register("hotkey.stub", "plugins.hotkeys.stub.impl:StubHotkey")
    return reg
