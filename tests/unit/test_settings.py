import json

import pytest
from pydantic import ValidationError

from config.settings import (
    GameMode,
    HotkeyCombo,
    Locale,
    RecorderSettings,
    RetentionPolicy,
    load_settings,
    settings_from_mapping,
)
from core.errors import SettingsError


def test_defaults_match_settings_editor():
    s = RecorderSettings()
    assert s.locale is Locale.EN_US
    assert s.game_modes is None
    assert s.image_format == "JPEG"
    assert s.image_quality == 50
    assert (s.image_resize_width, s.image_resize_height) == (800, 600)
    assert s.hide_personal_info is True
    assert s.delete_wins is False
    assert s.delete_games is RetentionPolicy.NEVER
    assert s.misplay_hotkey is HotkeyCombo.CONTROL_M
    assert not s.translate_logs


def test_game_mode_filter_parsing():
    s = settings_from_mapping({"game_modes": "Arena & Ranked"})
    assert s.game_modes == frozenset({GameMode.ARENA, GameMode.RANKED})
    assert s.mode_selected("Ranked")
    assert s.mode_selected("ArenaAuto")
    assert not s.mode_selected("Unranked")
    assert not s.mode_selected("Tavern")

    everything = settings_from_mapping({"game_modes": "All"})
    assert everything.game_modes is None
    assert everything.mode_selected("Tavern")


@pytest.mark.parametrize(
    "data",
    [
        {"locale": "xxXX"},
        {"game_modes": "Ranked & Casual"},
        {"image_format": "NOPE"},
        {"image_quality": 101},
        {"delete_games": "After one year"},
        {"delete_games": 5},
        {"misplay_hotkey": "Ctrl+Q"},
        {"unknown_option": True},
    ],
)
def test_unrecognised_values_rejected_at_load(data):
    with pytest.raises(SettingsError):
        settings_from_mapping(data)


def test_normalisation():
    s = settings_from_mapping({"image_format": "png", "delete_games": 7, "locale": "deDE"})
    assert s.image_format == "PNG"
    assert s.delete_games is RetentionPolicy.ONE_WEEK
    assert s.translate_logs
    assert settings_from_mapping({"image_format": "jpg"}).image_format == "JPEG"


def test_retention_tiers_and_hotkeys():
    assert [p.days for p in RetentionPolicy] == [None, 1, 2, 7, 14, 31]
    assert HotkeyCombo.CONTROL_ALT_M.pynput_combo == "<ctrl>+<alt>+m"
    assert HotkeyCombo.NONE.pynput_combo is None


def test_assignment_is_validated():
    s = RecorderSettings()
    with pytest.raises(ValidationError):
        s.image_quality = 150


def test_load_settings_from_json(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"locale": "frFR", "delete_wins": True}), encoding="utf-8")
    s = load_settings(path)
    assert s.locale is Locale.FR_FR
    assert s.delete_wins is True

    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    with pytest.raises(SettingsError):
        load_settings(bad)
    with pytest.raises(SettingsError):
        load_settings(tmp_path / "missing.json")
