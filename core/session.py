"""The per-game session record owned by the session controller."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path

import ulid


class Outcome(str, Enum):
    UNKNOWN = "Unknown"
    WIN = "Win"
    LOSS = "Loss"


class SessionState(str, Enum):
    IDLE = "Idle"
    ACTIVE = "Active"


def new_session_id() -> str:
    return str(ulid.new())


@dataclass
class Session:
    """One game from creation to finalize.

    ``turn`` only ever grows; ``action`` counts saved screenshots within the
    current turn and is reset by :meth:`begin_turn`.
    """

    directory: Path
    mode: str
    friend_class: str
    enemy_class: str
    created: datetime = field(default_factory=datetime.now)
    session_id: str = field(default_factory=new_session_id)
    turn: int = 0
    action: int = 0
    outcome: Outcome = Outcome.UNKNOWN

    def begin_turn(self) -> int:
        self.turn += 1
        self.action = 0
        return self.turn

    def record_action(self) -> int:
        self.action += 1
        return self.action


__all__ = ["Outcome", "SessionState", "Session", "new_session_id"]
