import os
import time

import pytest

from config.settings import RecorderSettings
from core.session import Session
from recording.mulligan import SEPARATOR, MulliganArchiver, last_block


@pytest.fixture
def game(tmp_path):
    d = tmp_path / "game"
    d.mkdir()
    return Session(directory=d, mode="Ranked", friend_class="MAGE", enemy_class="ROGUE")


def _archive(root, mode, content, age=0):
    folder = root / mode
    folder.mkdir(parents=True, exist_ok=True)
    f = folder / "mulligan.log"
    f.write_text(content, encoding="utf-8")
    ts = time.time() - age
    os.utime(f, (ts, ts))
    return f


def test_last_block():
    assert last_block(["a", SEPARATOR, "b", "c"]) == ["b", "c"]
    assert last_block(["a"]) == ["a"]


def test_saves_last_decision(tmp_path, game):
    root = tmp_path / "Mull"
    _archive(root, "Ranked", f"old\n{SEPARATOR}\nkeep Fireball\ntoss Flamestrike\n")
    out = MulliganArchiver(RecorderSettings(), root).save(game)
    assert out == game.directory / "SmartMulligan.txt"
    assert out.read_text(encoding="utf-8").splitlines() == ["keep Fireball", "toss Flamestrike"]


def test_stale_or_missing_archive_is_skipped(tmp_path, game, caplog):
    root = tmp_path / "Mull"
    arch = MulliganArchiver(RecorderSettings(), root)
    assert arch.save(game) is None
    _archive(root, "Ranked", "stale\n", age=600)
    assert arch.save(game) is None
    assert not (game.directory / "SmartMulligan.txt").exists()
    assert "Failed to find a current mulligan file" in caplog.text


def test_disabled_or_idle(tmp_path, game):
    root = tmp_path / "Mull"
    _archive(root, "Ranked", "x\n")
    assert MulliganArchiver(RecorderSettings(include_mulligan=False), root).save(game) is None
    assert MulliganArchiver(RecorderSettings(), root).save(None) is None


def test_unwritable_target_returns_none(tmp_path, game, caplog):
    root = tmp_path / "Mull"
    _archive(root, "Ranked", "keep Fireball\n")
    (game.directory / "SmartMulligan.txt").mkdir()
    assert MulliganArchiver(RecorderSettings(), root).save(game) is None
    assert "Failed to write" in caplog.text
