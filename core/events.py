"""Host event models.

The replay tool reads host events from JSONL, one :class:`HostEvent` per
line, and :func:`dispatch` turns each into the matching listener call.
"""

from __future__ import annotations

import json
import time
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, Literal, Union

import ulid
from pydantic import BaseModel, ConfigDict, Field


def now_ts_ms() -> int:
    """Return the current timestamp in milliseconds."""

    return int(time.time() * 1000)


def new_event_id() -> str:
    """Generate a ULID based identifier for events."""

    return str(ulid.new())


class ActionKind(str, Enum):
    """Bot actions that can trigger a screenshot."""

    CHOICE = "Choice"
    CONCEDE = "Concede"
    RESIMULATE = "Resimulate"
    OTHER = "Other"

    @classmethod
    def parse(cls, value: Union[str, "ActionKind"]) -> "ActionKind":
        """Accept ``"Choice"`` as well as host class names like ``"ChoiceAction"``."""
        if isinstance(value, cls):
            return value
        text = str(value).strip()
        if text.endswith("Action"):
            text = text[: -len("Action")]
        for member in cls:
            if member.value.lower() == text.lower():
                return member
        return cls.OTHER


HostEventKind = Literal[
    "mulligan",
    "mulligan_replaced",
    "turn_begin",
    "turn_end",
    "action",
    "lethal",
    "victory",
    "defeat",
    "concede",
    "game_end",
    "stopped",
    "whisper",
    "friend_request",
    "log",
    "hotkey",
]


class HostEvent(BaseModel):
    """One host callback, as recorded or scripted."""

    model_config = ConfigDict(extra="forbid")

    id: str = Field(default_factory=new_event_id)
    ts_ms: int = Field(default_factory=now_ts_ms)
    kind: HostEventKind
    data: Dict[str, Any] = Field(default_factory=dict)


def read_events(path: Path) -> Iterator[HostEvent]:
    """Yield events from a JSONL file, skipping blank lines."""
    with Path(path).open("r", encoding="utf-8") as fh:
        for line in fh:
            if line.strip():
                yield HostEvent.model_validate(json.loads(line))


def dispatch(listener: Any, host: Any, event: HostEvent) -> None:
    """Deliver ``event`` to ``listener`` the way the host would.

    Board and mode facts carried in ``event.data`` are applied to ``host``
    first so that lazy session starts see them.
    """
    data = event.data
    if "mode" in data:
        host.mode = data["mode"]
    if "friend_class" in data and "enemy_class" in data:
        host.board = type(host.board)(data["friend_class"], data["enemy_class"])

    kind = event.kind
    if kind == "mulligan":
        listener.on_mulligan(host.board.friend_class, host.board.enemy_class)
    elif kind == "mulligan_replaced":
        listener.on_mulligan_replaced()
    elif kind == "turn_begin":
        listener.on_turn_begin()
    elif kind == "turn_end":
        listener.on_turn_end()
    elif kind == "action":
        listener.on_action_execute(ActionKind.parse(data.get("action", "Other")))
    elif kind == "lethal":
        listener.on_lethal()
    elif kind == "victory":
        listener.on_victory()
    elif kind == "defeat":
        listener.on_defeat()
    elif kind == "concede":
        listener.on_concede()
    elif kind == "game_end":
        listener.on_game_end()
    elif kind == "stopped":
        listener.on_stopped()
    elif kind == "whisper":
        listener.on_whisper(data.get("friend", ""), data.get("message", ""))
    elif kind == "friend_request":
        listener.on_friend_request(data.get("player", ""))
    elif kind == "log":
        listener.on_log_line(data.get("text", ""))
    elif kind == "hotkey":
        listener.on_hotkey_pressed()


__all__ = [
    "ActionKind",
    "HostEvent",
    "HostEventKind",
    "read_events",
    "dispatch",
    "new_event_id",
    "now_ts_ms",
]
