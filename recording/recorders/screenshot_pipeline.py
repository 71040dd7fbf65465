"""Screenshot capture, redaction and encoding for the active session.

A screenshot is a two-step affair: :meth:`ScreenshotPipeline.request_capture`
asks the capture capability for a frame and remembers *why* (the label), and
:meth:`ScreenshotPipeline.on_frame_delivered` turns the frame that comes back
into ``Turn_<turn>_<action> <label>.<ext>`` under the session directory.

Only one request is outstanding at a time.  Further requests queue behind it
and are served in order, so two triggers in quick succession still produce
two files.  A frame that arrives with nothing pending (typically after the
session it was requested for has ended) is discarded.

All methods are called with the session controller's lock held.
"""

from __future__ import annotations

import functools
import logging
from collections import deque
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Deque, Optional, Tuple

import numpy as np
from PIL import Image, ImageDraw

from config.settings import RecorderSettings
from core.errors import MissingCapability
from core.naming import screenshot_name
from core.session import Session
from recording.event_writer import hide_file_times
from sdk.host import CaptureCapability, FrameCallback

logger = logging.getLogger(__name__)

# (x, y, width, height) as fractions of the image size
Region = Tuple[float, float, float, float]


@dataclass(frozen=True)
class RedactionSpec:
    """Rectangles painted over identifying UI before a screenshot is saved."""

    regions: Tuple[Region, ...] = (
        (0.0, 0.0, 0.2, 0.12),  # own name / rank, top left
        (0.0, 0.8, 0.2, 0.12),  # bottom left bands
        (0.0, 0.9, 0.2, 0.12),
    )
    fill: Tuple[int, int, int] = (105, 105, 105)  # DimGray

    def boxes(self, width: int, height: int):
        """Pixel boxes ``(x0, y0, x1, y1)`` with inclusive corners."""
        for fx, fy, fw, fh in self.regions:
            x0, y0 = int(fx * width), int(fy * height)
            w, h = int(fw * width), int(fh * height)
            if w > 0 and h > 0:
                yield (x0, y0, x0 + w - 1, y0 + h - 1)


DEFAULT_REDACTION = RedactionSpec()


def resolve_encoder(image_format: str) -> str:
    """Look ``image_format`` up in Pillow's encoder table."""
    Image.init()
    name = image_format.upper()
    if name not in Image.SAVE:
        raise MissingCapability("image encoder", f"no encoder registered for {image_format!r}")
    return name


def to_image(frame: Any) -> Image.Image:
    """Accept a PIL image or an HxW(xC) array and return an RGB(A) image."""
    if isinstance(frame, Image.Image):
        image = frame
    else:
        arr = np.asarray(frame)
        if arr.dtype != np.uint8:
            arr = np.clip(arr, 0, 255).astype(np.uint8)
        image = Image.fromarray(arr)
    if image.mode not in ("RGB", "RGBA"):
        image = image.convert("RGB")
    return image


class ScreenshotPipeline:
    def __init__(
        self,
        settings: RecorderSettings,
        capture: CaptureCapability,
        *,
        redaction: RedactionSpec = DEFAULT_REDACTION,
    ) -> None:
        self.settings = settings
        self.capture = capture
        self.redaction = redaction

        self._deliver: Optional[FrameCallback] = None
        self._pending: Optional[str] = None
        self._queue: Deque[str] = deque()
        # bumped per frame request and on cancel; frames tagged with an older value are stale
        self._generation = 0

    def bind(self, deliver: Callable[..., Any]) -> None:
        """Set the callback capture capabilities hand their frames to.

        ``deliver`` is called as ``deliver(frame, generation=...)``.
        """
        self._deliver = deliver

    @property
    def pending(self) -> Optional[str]:
        return self._pending

    @property
    def queued(self) -> Tuple[str, ...]:
        return tuple(self._queue)

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------
    def request_capture(self, session: Optional[Session], label: str) -> None:
        if session is None:
            return
        if self._pending is not None:
            self._queue.append(label)
            return
        self._pending = label
        if not self._ask_for_frame(label):
            self._start_next()

    def _ask_for_frame(self, label: str) -> bool:
        if self._deliver is None:
            raise RuntimeError("ScreenshotPipeline.bind() was never called")
        self._generation += 1
        deliver: FrameCallback = functools.partial(self._deliver, generation=self._generation)
        try:
            self.capture.request_frame(deliver)
        except MissingCapability as exc:
            logger.warning("Skipping %s screenshot: %s", label, exc)
            return False
        except Exception:
            logger.exception("Capture request for %s screenshot failed", label)
            return False
        return True

    def _start_next(self) -> None:
        self._pending = None
        while self._pending is None and self._queue:
            label = self._queue.popleft()
            self._pending = label
            if not self._ask_for_frame(label):
                self._pending = None

    def cancel(self) -> None:
        """Forget pending and queued requests; later frames count as stale."""
        if self._pending is not None or self._queue:
            logger.debug("Cancelled screenshot requests: %s", [self._pending, *self._queue])
        self._pending = None
        self._queue.clear()
        self._generation += 1

    # ------------------------------------------------------------------
    # Frames
    # ------------------------------------------------------------------
    def on_frame_delivered(
        self, session: Optional[Session], frame: Any, generation: Optional[int] = None
    ) -> Optional[Path]:
        """Save ``frame`` for the pending request.

        ``generation`` is supplied by the callback handed to the capture
        capability; frames handed back without one (host-delivered capture)
        are matched to whatever request is pending.
        """
        if session is None or self._pending is None:
            logger.info("Discarded stale frame")
            return None
        if generation is not None and generation != self._generation:
            logger.info("Discarded stale frame from request %d (current %d)", generation, self._generation)
            return None

        label = self._pending
        path: Optional[Path] = None
        try:
            path = self._save(session, label, frame)
        except MissingCapability as exc:
            logger.warning("Skipping %s screenshot: %s", label, exc)
        except (OSError, ValueError) as exc:
            logger.warning("Failed to save %s screenshot: %s", label, exc)
        except Exception:
            logger.exception("Could not convert frame for %s screenshot", label)
        else:
            session.record_action()
        finally:
            self._start_next()
        return path

    def resize(self, image: Image.Image) -> Image.Image:
        s = self.settings
        if not s.image_resize_enabled:
            return image
        max_w, max_h = s.image_resize_width, s.image_resize_height
        if image.width <= max_w and image.height <= max_h:
            return image
        image = image.copy()
        image.thumbnail((max_w, max_h), Image.Resampling.LANCZOS)
        return image

    def redact(self, image: Image.Image) -> Image.Image:
        image = image.copy()
        draw = ImageDraw.Draw(image)
        for box in self.redaction.boxes(image.width, image.height):
            draw.rectangle(box, fill=self.redaction.fill)
        return image

    def _save(self, session: Session, label: str, frame: Any) -> Path:
        s = self.settings
        image_format = resolve_encoder(s.image_format)

        image = self.resize(to_image(frame))
        if s.hide_personal_info:
            image = self.redact(image)
        if image_format == "JPEG" and image.mode != "RGB":
            image = image.convert("RGB")

        path = session.directory / screenshot_name(session.turn, session.action, label, s.image_format)
        image.save(path, format=image_format, quality=s.image_quality)

        if s.hide_personal_info:
            hide_file_times(path)

        logger.info("Saved screenshot: %s", path.name)
        return path


__all__ = [
    "ScreenshotPipeline",
    "RedactionSpec",
    "DEFAULT_REDACTION",
    "resolve_encoder",
    "to_image",
]
