"""Copy the host's last mulligan decision into the session directory."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, List, Optional

from config.settings import RecorderSettings
from core.errors import MissingExternalData
from core.naming import MULLIGAN_FILE
from core.session import Session
from recording.event_writer import LineWriter, hide_file_times

logger = logging.getLogger(__name__)

# The mulligan profile writes a line of 46 '=' between decisions.
SEPARATOR = "=" * 46
RECENT_WINDOW = timedelta(minutes=1)


def last_block(lines: List[str]) -> List[str]:
    """Lines after the final separator."""
    block: List[str] = []
    for line in lines:
        if SEPARATOR in line:
            block.clear()
        else:
            block.append(line)
    return block


class MulliganArchiver:
    def __init__(
        self,
        settings: RecorderSettings,
        mulligan_root: Path,
        *,
        window: timedelta = RECENT_WINDOW,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.settings = settings
        self.mulligan_root = Path(mulligan_root)
        self.window = window
        self._clock = clock

    def current_file(self, mode: str) -> Path:
        folder = self.mulligan_root / mode
        if not folder.is_dir():
            raise MissingExternalData(f"no mulligan archive at {folder}")
        files = [p for p in folder.iterdir() if p.is_file()]
        if not files:
            raise MissingExternalData(f"mulligan archive {folder} is empty")
        latest = max(files, key=lambda p: p.stat().st_mtime)
        modified = datetime.fromtimestamp(latest.stat().st_mtime)
        if self._clock() - modified > self.window:
            raise MissingExternalData("no current mulligan file")
        return latest

    def save(self, session: Optional[Session]) -> Optional[Path]:
        if session is None or not self.settings.include_mulligan:
            return None
        try:
            source = self.current_file(session.mode)
            lines = source.read_text(encoding="utf-8", errors="replace").splitlines()
        except MissingExternalData as exc:
            logger.warning("Failed to find a current mulligan file: %s", exc)
            return None
        except OSError as exc:
            logger.warning("Failed to read mulligan archive: %s", exc)
            return None

        target = session.directory / MULLIGAN_FILE
        try:
            writer = LineWriter(target)
            try:
                for line in last_block(lines):
                    writer.write_line(line)
            finally:
                writer.close()
        except OSError as exc:
            logger.warning("Failed to write %s: %s", target, exc)
            return None
        if self.settings.hide_personal_info:
            hide_file_times(target)

        logger.info("Copied mulligan output from %s", source.name)
        return target


__all__ = ["MulliganArchiver", "last_block", "SEPARATOR"]
