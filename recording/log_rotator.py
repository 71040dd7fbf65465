"""Turn-indexed log files for the active session.

Lines that arrive before the first turn of a game are held in a FIFO buffer
and written to ``BeginGame_Logs.txt`` on the first rotation; afterwards each
turn gets its own ``Turn_<n>_Logs.txt``.  At most one turn writer is open at
any time.
"""

from __future__ import annotations

import logging
import re
from collections import deque
from datetime import datetime
from pathlib import Path
from typing import Callable, Deque, Optional

from config.settings import RecorderSettings
from core.naming import BEGIN_GAME_LOG, timestamp_prefix, turn_log_name
from recording.event_writer import LineWriter, hide_file_times
from recording.translation import CardNameTranslator

logger = logging.getLogger(__name__)

AUTH_MARKER = re.compile(r"\[DEBUG\]\[AUTH\]")
# Lines buffered between games are bounded so an idle host cannot grow memory.
PRE_SESSION_BUFFER_LIMIT = 5000


class LogRotator:
    def __init__(
        self,
        settings: RecorderSettings,
        translator: Optional[CardNameTranslator] = None,
        *,
        clock: Callable[[], datetime] = datetime.now,
        buffer_limit: int = PRE_SESSION_BUFFER_LIMIT,
    ) -> None:
        self.settings = settings
        self.translator = translator
        self._clock = clock
        self._buffer: Deque[str] = deque(maxlen=buffer_limit)
        self._writer: Optional[LineWriter] = None
        self._rotated = False

    # ------------------------------------------------------------------
    # Inbound lines
    # ------------------------------------------------------------------
    @property
    def writer_path(self) -> Optional[Path]:
        return self._writer.path if self._writer is not None else None

    @property
    def buffered(self) -> int:
        return len(self._buffer)

    def on_line(self, text: str) -> None:
        if not self.settings.include_logs:
            return
        if self._writer is not None:
            self._write(self._writer, text)
        else:
            self._buffer.append(text)

    def filter_line(self, text: str) -> Optional[str]:
        """Return the line as it should be written, or None to drop it."""
        if self.settings.translate_logs and self.translator is not None:
            text = self.translator.translate(text, self.settings.locale)

        if self.settings.hide_personal_info:
            if AUTH_MARKER.search(text):
                return None
            return text
        return timestamp_prefix(self._clock()) + text

    def _write(self, writer: LineWriter, text: str) -> None:
        line = self.filter_line(text)
        if line is not None:
            writer.write_line(line)

    # ------------------------------------------------------------------
    # Rotation
    # ------------------------------------------------------------------
    def rotate(self, session_dir: Path, turn: int) -> Optional[Path]:
        """Close the current turn's log and open the one for ``turn``."""
        if not self.settings.include_logs:
            return None

        if self._writer is not None:
            self._close_writer()

        if not self._rotated:
            self._drain_buffer(Path(session_dir) / BEGIN_GAME_LOG)
            self._rotated = True

        self._writer = LineWriter(Path(session_dir) / turn_log_name(turn))
        logger.debug("Logging turn %d to %s", turn, self._writer.path)
        return self._writer.path

    def _drain_buffer(self, path: Path) -> None:
        writer = LineWriter(path)
        try:
            while self._buffer:
                self._write(writer, self._buffer.popleft())
        finally:
            writer.close()
        if self.settings.hide_personal_info:
            hide_file_times(path)

    def _close_writer(self) -> None:
        writer, self._writer = self._writer, None
        if writer is None:
            return
        writer.close()
        if self.settings.hide_personal_info:
            hide_file_times(writer.path)

    def flush(self) -> None:
        if self._writer is not None:
            self._writer.flush()

    def close(self) -> None:
        self._close_writer()

    def reset(self) -> None:
        """Forget everything about the finished session."""
        self._close_writer()
        self._buffer.clear()
        self._rotated = False


__all__ = ["LogRotator", "AUTH_MARKER", "PRE_SESSION_BUFFER_LIMIT"]
