"""Directory and file names derived from session facts.

Everything here is pure: callers pass the facts in and get strings back.  The
session directory name starts with ``DATE_FORMAT`` so that the retention
sweep can later recover the creation time from the name alone.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Optional

from core.session import Outcome

DATE_FORMAT = "%Y-%m-%d %H%M%S"
# "YYYY-MM-DD HHmmss"
DATE_PREFIX_LEN = 17
_DATE_PREFIX_RE = re.compile(r"^\d{4}-\d{2}-\d{2} \d{6}$")

BEGIN_GAME_LOG = "BeginGame_Logs.txt"
MULLIGAN_FILE = "SmartMulligan.txt"
WHISPERS_FILE = "Whispers.txt"
FRIEND_REQUESTS_FILE = "FriendRequests.txt"

_OUTCOME_SUFFIX = {
    Outcome.WIN: " WIN",
    Outcome.LOSS: " LOSS",
    Outcome.UNKNOWN: "",
}


def capitalize_class(name: str) -> str:
    """``"WARLOCK"`` -> ``"Warlock"``."""
    name = str(name)
    if not name:
        return name
    return name[:1].upper() + name[1:].lower()


def session_dir_name(created: datetime, mode: str, friend_class: str, enemy_class: str) -> str:
    return (
        f"{created.strftime(DATE_FORMAT)} {mode} "
        f"{capitalize_class(friend_class)} vs. {capitalize_class(enemy_class)}"
    )


def finished_dir_name(dir_name: str, outcome: Outcome) -> str:
    return dir_name + _OUTCOME_SUFFIX[outcome]


def image_extension(image_format: str) -> str:
    """File extension for a Pillow format name; JPEG is special-cased to ``jpg``."""
    if image_format.upper() == "JPEG":
        return "jpg"
    return image_format.lower()


def screenshot_name(turn: int, action: int, label: str, image_format: str) -> str:
    return f"Turn_{turn}_{action} {label}.{image_extension(image_format)}"


def turn_log_name(turn: int) -> str:
    return f"Turn_{turn}_Logs.txt"


def timestamp_prefix(now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return f"[{now.strftime('%H:%M:%S')}] "


def parse_dir_timestamp(dir_name: str) -> Optional[datetime]:
    """Return the creation time encoded in ``dir_name`` or ``None``.

    Only an exact ``YYYY-MM-DD HHmmss`` prefix is accepted; ``strptime`` on its
    own tolerates single-digit fields, hence the regex gate.
    """
    if len(dir_name) < DATE_PREFIX_LEN:
        return None
    prefix = dir_name[:DATE_PREFIX_LEN]
    if not _DATE_PREFIX_RE.match(prefix):
        return None
    try:
        return datetime.strptime(prefix, DATE_FORMAT)
    except ValueError:
        return None


__all__ = [
    "DATE_FORMAT",
    "DATE_PREFIX_LEN",
    "BEGIN_GAME_LOG",
    "MULLIGAN_FILE",
    "WHISPERS_FILE",
    "FRIEND_REQUESTS_FILE",
    "capitalize_class",
    "session_dir_name",
    "finished_dir_name",
    "image_extension",
    "screenshot_name",
    "turn_log_name",
    "timestamp_prefix",
    "parse_dir_timestamp",
]
