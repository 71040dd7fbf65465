import os
import shutil
import time
from datetime import datetime, timedelta

import pytest

from config.settings import RetentionPolicy
from recording import retention


def _dir(root, name, age_days):
    d = root / name
    d.mkdir(parents=True)
    (d / "Turn_1_Logs.txt").write_text("x", encoding="utf-8")
    ts = time.time() - age_days * 86400
    os.utime(d, (ts, ts))
    return d


@pytest.fixture
def root(tmp_path):
    r = tmp_path / "RecordedGames"
    r.mkdir()
    return r


def test_only_expired_dated_folders_are_swept(root):
    old = _dir(root, "2024-01-01 000000 Ranked Mage vs. Rogue LOSS", 10)
    recent = _dir(root, "2024-01-02 000000 Ranked Mage vs. Rogue", 1)
    not_a_date = _dir(root, "NotADate foo", 100)
    long_not_a_date = _dir(root, "NotADate but a long name", 100)
    (root / "Whispers.txt").write_text("hi", encoding="utf-8")

    deleted = retention.sweep(root, RetentionPolicy.ONE_WEEK)

    assert deleted == [old]
    assert not old.exists()
    assert recent.exists()
    assert not_a_date.exists()
    assert long_not_a_date.exists()
    assert (root / "Whispers.txt").exists()


def test_never_policy_keeps_everything(root):
    old = _dir(root, "2020-01-01 000000 Arena Hunter vs. Priest", 1000)
    assert retention.sweep(root, RetentionPolicy.NEVER) == []
    assert old.exists()


def test_cutoff_uses_given_now(root):
    d = _dir(root, "2024-05-01 120000 Ranked Mage vs. Rogue", 0)
    later = datetime.now() + timedelta(days=3)
    assert retention.sweep(root, RetentionPolicy.TWO_DAYS, now=later) == [d]


def test_failed_delete_does_not_stop_sweep(root, monkeypatch, caplog):
    a = _dir(root, "2024-01-01 000000 Ranked A vs. B", 40)
    b = _dir(root, "2024-01-02 000000 Ranked A vs. B", 40)
    real_rmtree = shutil.rmtree

    def flaky_rmtree(path, *args, **kwargs):
        if path == a:
            raise PermissionError("locked")
        real_rmtree(path, *args, **kwargs)

    monkeypatch.setattr(shutil, "rmtree", flaky_rmtree)
    assert retention.sweep(root, RetentionPolicy.ONE_MONTH) == [b]
    assert a.exists()
    assert "Failed to delete old game folder" in caplog.text


def test_missing_root_is_logged(tmp_path, caplog):
    assert retention.sweep(tmp_path / "missing", RetentionPolicy.ONE_DAY) == []
    assert "retention sweep" in caplog.text
