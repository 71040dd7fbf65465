"""Recorder settings.

All free-form options from the settings editor are closed enumerations here
and are validated once, when the settings are loaded.  Unknown values raise
:class:`core.errors.SettingsError` instead of silently falling through.
"""

from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Any, FrozenSet, Mapping, Optional, Union

from PIL import Image
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from core.errors import SettingsError


class Locale(str, Enum):
    DE_DE = "deDE"
    EN_GB = "enGB"
    EN_US = "enUS"
    ES_ES = "esES"
    ES_MX = "esMX"
    FR_FR = "frFR"
    IT_IT = "itIT"
    JA_JP = "jaJP"
    KO_KR = "koKR"
    PL_PL = "plPL"
    PT_BR = "ptBR"
    RU_RU = "ruRU"
    ZH_CN = "zhCN"
    ZH_TW = "zhTW"


# Card names in log lines are rewritten into this locale.
REFERENCE_LOCALE = Locale.EN_US


class GameMode(str, Enum):
    RANKED = "Ranked"
    UNRANKED = "Unranked"
    ARENA = "Arena"

    @classmethod
    def from_host(cls, mode: str) -> Optional["GameMode"]:
        """Map a host mode name (``"ArenaAuto"``, ``"ranked"``...) onto a filter mode."""
        text = str(mode).strip().lower()
        if text.startswith("arena"):
            return cls.ARENA
        for member in cls:
            if member.value.lower() == text:
                return member
        return None


class RetentionPolicy(str, Enum):
    NEVER = "Never"
    ONE_DAY = "After one day"
    TWO_DAYS = "After two days"
    ONE_WEEK = "After one week"
    TWO_WEEKS = "After two weeks"
    ONE_MONTH = "After one month"

    @property
    def days(self) -> Optional[int]:
        return _RETENTION_DAYS[self]

    @classmethod
    def after_days(cls, days: int) -> "RetentionPolicy":
        for member, member_days in _RETENTION_DAYS.items():
            if member_days == days:
                return member
        raise ValueError(f"no retention tier of {days} days")


_RETENTION_DAYS = {
    RetentionPolicy.NEVER: None,
    RetentionPolicy.ONE_DAY: 1,
    RetentionPolicy.TWO_DAYS: 2,
    RetentionPolicy.ONE_WEEK: 7,
    RetentionPolicy.TWO_WEEKS: 14,
    RetentionPolicy.ONE_MONTH: 31,
}


class HotkeyCombo(str, Enum):
    CONTROL_M = "Ctrl+M"
    CONTROL_ALT_M = "Ctrl+Alt+M"
    CONTROL_SHIFT_M = "Ctrl+Shift+M"
    NONE = "None"

    @property
    def pynput_combo(self) -> Optional[str]:
        """The combination in :class:`pynput.keyboard.GlobalHotKeys` syntax."""
        return _PYNPUT_COMBOS[self]


_PYNPUT_COMBOS = {
    HotkeyCombo.CONTROL_M: "<ctrl>+m",
    HotkeyCombo.CONTROL_ALT_M: "<ctrl>+<alt>+m",
    HotkeyCombo.CONTROL_SHIFT_M: "<ctrl>+<shift>+m",
    HotkeyCombo.NONE: None,
}


def registered_image_formats() -> FrozenSet[str]:
    """Format names Pillow can encode on this platform."""
    Image.init()
    return frozenset(Image.SAVE.keys())


class RecorderSettings(BaseModel):
    """Everything the recorder can be told by the settings editor."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    locale: Locale = Locale.EN_US
    # None means "All"
    game_modes: Optional[FrozenSet[GameMode]] = None

    image_format: str = "JPEG"
    image_quality: int = Field(default=50, ge=0, le=100)
    image_resize_enabled: bool = False
    image_resize_width: int = Field(default=800, gt=0)
    image_resize_height: int = Field(default=600, gt=0)

    include_logs: bool = True
    include_mulligan: bool = True
    include_seeds: bool = True
    seeds_by_mode: bool = False

    hide_personal_info: bool = True

    log_friend_requests: bool = True
    log_whispers: bool = True

    screenshot_mulligan: bool = True
    screenshot_begin_turn: bool = True
    screenshot_end_turn: bool = True
    screenshot_choice: bool = True
    screenshot_resimulate: bool = True
    screenshot_concede: bool = True
    screenshot_lethal: bool = True
    screenshot_victory: bool = True
    screenshot_defeat: bool = True

    delete_wins: bool = False
    delete_games: RetentionPolicy = RetentionPolicy.NEVER

    misplay_hotkey: HotkeyCombo = HotkeyCombo.CONTROL_M

    capture_backend: str = "capture.window"
    hotkey_backend: str = "hotkey.pynput"
    window_title: str = "Hearthstone"

    # ----- validators -----

    @field_validator("game_modes", mode="before")
    @classmethod
    def _parse_game_modes(cls, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, str):
            if value.strip().lower() == "all":
                return None
            value = [part.strip() for part in value.split("&")]
        modes = set()
        for item in value:
            if isinstance(item, GameMode):
                modes.add(item)
                continue
            mode = GameMode.from_host(item) if str(item).lower() in {"ranked", "unranked", "arena"} else None
            if mode is None:
                raise ValueError(f"unrecognised game mode {item!r}")
            modes.add(mode)
        if not modes:
            raise ValueError("empty game mode filter")
        return frozenset(modes)

    @field_validator("image_format", mode="before")
    @classmethod
    def _check_image_format(cls, value: Any) -> str:
        name = str(value).strip().upper()
        if name == "JPG":
            name = "JPEG"
        if name not in registered_image_formats():
            raise ValueError(f"no encoder registered for image format {value!r}")
        return name

    @field_validator("delete_games", mode="before")
    @classmethod
    def _parse_retention(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return RetentionPolicy.after_days(value)
        return value

    # ----- helpers -----

    def mode_selected(self, mode: str) -> bool:
        """True when games in host mode ``mode`` should be recorded."""
        if self.game_modes is None:
            return True
        selected = GameMode.from_host(mode)
        return selected is not None and selected in self.game_modes

    @property
    def translate_logs(self) -> bool:
        return self.locale != REFERENCE_LOCALE


def settings_from_mapping(data: Mapping[str, Any]) -> RecorderSettings:
    try:
        return RecorderSettings.model_validate(dict(data))
    except ValidationError as exc:
        raise SettingsError(str(exc)) from exc


def load_settings(path: Union[str, Path]) -> RecorderSettings:
    """Load and validate settings from a JSON file."""
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
    except (OSError, json.JSONDecodeError) as exc:
        raise SettingsError(f"cannot read settings from {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise SettingsError(f"settings file {path} must contain a JSON object")
    return settings_from_mapping(data)


__all__ = [
    "Locale",
    "REFERENCE_LOCALE",
    "GameMode",
    "RetentionPolicy",
    "HotkeyCombo",
    "RecorderSettings",
    "registered_image_formats",
    "settings_from_mapping",
    "load_settings",
]
