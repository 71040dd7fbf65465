import os
import shutil

import pytest

from core.errors import FilesystemFailure
from recording.event_writer import SENTINEL_TIME, LineWriter, hide_file_times, move_dir, remove_tree


def test_line_writer_creates_parents_and_appends(tmp_path):
    target = tmp_path / "a" / "b" / "log.txt"
    w = LineWriter(target)
    w.write_line("one")
    w.flush()
    w.close()
    assert w.closed
    w.close()

    w = LineWriter(target, append=True)
    w.write_line("two")
    w.close()
    assert target.read_text(encoding="utf-8") == "one\ntwo\n"
    with pytest.raises(ValueError):
        w.write_line("three")


def test_hide_file_times(tmp_path):
    f = tmp_path / "shot.png"
    f.write_bytes(b"x")
    assert hide_file_times(f) is True
    st = os.stat(f)
    assert st.st_mtime == SENTINEL_TIME.timestamp()
    assert st.st_atime == SENTINEL_TIME.timestamp()


def test_hide_file_times_missing_file(tmp_path, caplog):
    assert hide_file_times(tmp_path / "gone.png") is False
    assert "Could not reset file times" in caplog.text


def test_move_and_remove(tmp_path, monkeypatch):
    src = tmp_path / "game"
    src.mkdir()
    moved = move_dir(src, tmp_path / "game LOSS")
    assert moved.is_dir() and not src.exists()

    with pytest.raises(FilesystemFailure) as info:
        move_dir(src, tmp_path / "other")
    assert info.value.to_dict()["action"] == "rename to other"

    def refuse(path, *args, **kwargs):
        raise PermissionError("in use")

    monkeypatch.setattr(shutil, "rmtree", refuse)
    with pytest.raises(FilesystemFailure):
        remove_tree(moved)
    monkeypatch.undo()
    remove_tree(moved)
    assert not moved.exists()
