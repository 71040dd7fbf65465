from __future__ import annotations

import ctypes
import sys
from typing import Optional, Tuple

from mss import mss
from PIL import Image

from core.errors import MissingCapability
from sdk.host import FrameCallback


# --------- Win32 helpers (window title -> screen region) ----------

if sys.platform == "win32":
    from ctypes import wintypes

    user32 = ctypes.WinDLL("user32", use_last_error=True)

    class POINT(ctypes.Structure):
        _fields_ = [("x", wintypes.LONG), ("y", wintypes.LONG)]
else:
    user32 = None


def _find_window(title: str) -> int:
    user32.FindWindowW.restype = ctypes.c_void_p
    return user32.FindWindowW(None, title) or 0


def _get_client_rect_on_screen(hwnd: int) -> Tuple[int, int, int, int]:
    # client rect (0,0)-(w,h) in client coords
    rect = wintypes.RECT()
    user32.GetClientRect(ctypes.c_void_p(hwnd), ctypes.byref(rect))
    # Map client (0,0) to screen
    pt = POINT(0, 0)
    user32.ClientToScreen(ctypes.c_void_p(hwnd), ctypes.byref(pt))
    left, top = pt.x, pt.y
    right, bottom = left + rect.right, top + rect.bottom
    return left, top, right, bottom


class WindowCapture:
    """Grab the client area of the game window (Windows only).

    Implements both the window and the capture contracts; frames are
    delivered synchronously from ``request_frame``.
    """
    def __init__(self, title: str = "Hearthstone"):
        self.title = title

    def locate_and_capture(self, title: str) -> Optional[Image.Image]:
        if user32 is None:
            return None
        hwnd = _find_window(title)
        if not hwnd:
            return None
        left, top, right, bottom = _get_client_rect_on_screen(hwnd)
        if right <= left or bottom <= top:
            # minimised windows report an empty client rect
            return None
        bbox = {"left": left, "top": top, "width": right - left, "height": bottom - top}
        with mss() as sct:
            shot = sct.grab(bbox)
        return Image.frombytes("RGB", shot.size, shot.rgb)

    def request_frame(self, deliver: FrameCallback) -> None:
        if user32 is None:
            raise MissingCapability("window capture", "Win32 API not available on this platform")
        image = self.locate_and_capture(self.title)
        if image is None:
            raise MissingCapability("window capture", f"window {self.title!r} not found")
        deliver(image)
