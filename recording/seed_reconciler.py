"""Copy the host's per-game seed files into the session directory.

The host writes one folder of ``*Turn_<N>*.txt`` seed files per game under
its seed root.  Nothing ties a folder to a game except timing, so a folder is
only taken if it was modified within the last ``window`` and if it does not
already cover more turns than the session has played (in which case it
belongs to a later game).
"""

from __future__ import annotations

import logging
import re
import shutil
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, FrozenSet, List, Optional

from config.settings import RecorderSettings
from core.errors import MissingExternalData, ParseFailure
from core.session import Session
from recording.event_writer import hide_file_times

logger = logging.getLogger(__name__)

TURN_TOKEN = "Turn_"
_DIGITS = re.compile(r"\d+")
RECENT_WINDOW = timedelta(seconds=60)


@dataclass(frozen=True)
class SeedSnapshot:
    directory: Path
    modified: datetime
    files: List[Path] = field(default_factory=list)
    turns: FrozenSet[int] = frozenset()


def parse_turn(file_name: str) -> Optional[int]:
    """Turn number embedded in ``file_name``; None if it has no ``Turn_`` token.

    Raises :class:`ParseFailure` when the token is there but no number follows.
    """
    idx = file_name.find(TURN_TOKEN)
    if idx == -1:
        return None
    match = _DIGITS.search(file_name, idx)
    if match is None:
        raise ParseFailure(file_name, "turn number")
    return int(match.group())


class SeedReconciler:
    def __init__(
        self,
        settings: RecorderSettings,
        seeds_root: Path,
        *,
        window: timedelta = RECENT_WINDOW,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.settings = settings
        self.seeds_root = Path(seeds_root)
        self.window = window
        self._clock = clock

    def _root_for(self, session: Session) -> Path:
        if self.settings.seeds_by_mode:
            return self.seeds_root / session.mode
        return self.seeds_root

    def latest_snapshot(self, session: Session) -> SeedSnapshot:
        root = self._root_for(session)
        if not root.is_dir():
            raise MissingExternalData(f"no seed directory at {root}")

        candidates = [p for p in root.iterdir() if p.is_dir()]
        if not candidates:
            raise MissingExternalData(f"no seed folders under {root}")
        latest = max(candidates, key=lambda p: p.stat().st_mtime)
        modified = datetime.fromtimestamp(latest.stat().st_mtime)
        if self._clock() - modified > self.window:
            raise MissingExternalData(f"no current seeds (latest {latest.name} modified {modified:%H:%M:%S})")

        files = sorted(p for p in latest.glob("*.txt") if p.is_file())
        turns = set()
        for path in files:
            try:
                turn = parse_turn(path.name)
            except ParseFailure as exc:
                logger.warning("Failed to parse turn number from seed file: %s", exc.text)
                continue
            if turn is not None:
                turns.add(turn)
        return SeedSnapshot(latest, modified, files, frozenset(turns))

    def reconcile(self, session: Optional[Session]) -> int:
        """Copy the current seeds into the session directory; returns files copied."""
        if session is None or not self.settings.include_seeds:
            return 0

        try:
            snapshot = self.latest_snapshot(session)
        except MissingExternalData as exc:
            logger.info("Skipping seeds: %s", exc)
            return 0
        except OSError as exc:
            logger.warning("Could not scan seeds: %s", exc)
            return 0

        if len(snapshot.turns) > session.turn:
            logger.info(
                "No seeds yet for this game (%s covers %d turns, game is on turn %d)",
                snapshot.directory.name, len(snapshot.turns), session.turn,
            )
            return 0

        copied = 0
        for src in snapshot.files:
            target = session.directory / src.name
            try:
                shutil.copyfile(src, target)
            except OSError as exc:
                logger.warning("Failed to copy seed file %s: %s", src.name, exc)
                continue
            if self.settings.hide_personal_info:
                hide_file_times(target)
            copied += 1

        logger.info("Copied %d seed files", copied)
        return copied


__all__ = ["SeedReconciler", "SeedSnapshot", "parse_turn", "RECENT_WINDOW"]
