"""Contracts between the recorder and the game-playing host.

The recorder never reaches into the host directly: it is handed a
:class:`Host` on ``attach`` and capability objects at construction.  Each
contract has a stub plugin under ``plugins/`` for tests.
"""

from __future__ import annotations

from typing import Any, Callable, List, NamedTuple, Optional, Protocol

from PIL import Image

FrameCallback = Callable[[Any], None]


class BoardInfo(NamedTuple):
    friend_class: str
    enemy_class: str


class Host(Protocol):
    """The host's event dispatcher plus the few facts the recorder reads from it."""

    def current_mode(self) -> str: ...

    def current_board(self) -> BoardInfo: ...

    def add_listener(self, listener: Any) -> None: ...

    def remove_listener(self, listener: Any) -> None: ...


class CaptureCapability(Protocol):
    """Produces exactly one frame per request.

    ``deliver`` may be called synchronously or later from another thread.
    Capabilities whose frames come back through the host listener
    (``on_frame_delivered``) may ignore it.  Raises
    :class:`core.errors.MissingCapability` if no frame can be produced.
    """

    def request_frame(self, deliver: FrameCallback) -> None: ...


class WindowCapability(Protocol):
    def locate_and_capture(self, title: str) -> Optional[Image.Image]: ...


class HotkeyCapability(Protocol):
    def register(self, combo: str, on_pressed: Callable[[], None]) -> None: ...

    def unregister(self) -> None: ...


class LocalHost:
    """In-process host used by the replay CLI and the tests.

    Events are delivered by calling :meth:`emit` with a listener method name.
    """

    def __init__(self, mode: str = "Ranked", board: Optional[BoardInfo] = None) -> None:
        self.mode = mode
        self.board = board or BoardInfo("NONE", "NONE")
        self.listeners: List[Any] = []
        self.screenshot_requests = 0

    def current_mode(self) -> str:
        return self.mode

    def current_board(self) -> BoardInfo:
        return self.board

    def add_listener(self, listener: Any) -> None:
        if listener not in self.listeners:
            self.listeners.append(listener)

    def remove_listener(self, listener: Any) -> None:
        if listener in self.listeners:
            self.listeners.remove(listener)

    def request_screenshot(self) -> None:
        self.screenshot_requests += 1

    def emit(self, event: str, *args: Any, **kwargs: Any) -> None:
        for listener in list(self.listeners):
            getattr(listener, event)(*args, **kwargs)


__all__ = [
    "BoardInfo",
    "Host",
    "CaptureCapability",
    "WindowCapability",
    "HotkeyCapability",
    "FrameCallback",
    "LocalHost",
]
