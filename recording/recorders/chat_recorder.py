"""Append-only whisper and friend-request logs at the output root.

These live outside any session directory and survive across games.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from config.settings import RecorderSettings
from core.naming import FRIEND_REQUESTS_FILE, WHISPERS_FILE, timestamp_prefix
from recording.event_writer import LineWriter

logger = logging.getLogger(__name__)


class ChatRecorder:
    def __init__(
        self,
        settings: RecorderSettings,
        output_root: Path,
        *,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.settings = settings
        self.output_root = Path(output_root)
        self._clock = clock
        self._whispers: Optional[LineWriter] = None
        self._friend_requests: Optional[LineWriter] = None

    def on_whisper(self, friend: str, message: str) -> None:
        if not self.settings.log_whispers:
            return
        if self._whispers is None:
            self._whispers = LineWriter(self.output_root / WHISPERS_FILE, append=True)
        self._whispers.write_line(f"{timestamp_prefix(self._clock())}{friend} says {message}")
        self._whispers.flush()

    def on_friend_request(self, player: str) -> None:
        if not self.settings.log_friend_requests:
            return
        if self._friend_requests is None:
            self._friend_requests = LineWriter(self.output_root / FRIEND_REQUESTS_FILE, append=True)
        self._friend_requests.write_line(f"{timestamp_prefix(self._clock())}{player}")
        self._friend_requests.flush()

    def close(self) -> None:
        for writer in (self._whispers, self._friend_requests):
            if writer is not None:
                writer.close()
        self._whispers = None
        self._friend_requests = None


__all__ = ["ChatRecorder"]
