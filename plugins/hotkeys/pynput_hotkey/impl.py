from __future__ import annotations

import contextlib
from typing import Any, Callable, Optional

from core.errors import MissingCapability

try:  # Optional dependency - not always available in CI containers
    from pynput import keyboard as _pynput_keyboard  # type: ignore
except Exception:  # pragma: no cover - no display / no OS hooks
    _pynput_keyboard = None  # type: ignore


class PynputHotkey:
    """Global hotkey through :class:`pynput.keyboard.GlobalHotKeys`.
    ``on_pressed`` runs on the listener thread."""
    def __init__(self) -> None:
        self._listener: Optional[Any] = None

    def register(self, combo: str, on_pressed: Callable[[], None]) -> None:
        if _pynput_keyboard is None:
            raise MissingCapability("global hotkey", "pynput.keyboard unavailable")
        self.unregister()
        try:
            listener = _pynput_keyboard.GlobalHotKeys({combo: on_pressed})
            listener.start()
        except Exception as exc:  # pragma: no cover - requires OS hooks
            raise MissingCapability("global hotkey", str(exc)) from exc
        self._listener = listener

    def unregister(self) -> None:
        if self._listener is not None:
            with contextlib.suppress(Exception):
                self._listener.stop()
            self._listener = None
