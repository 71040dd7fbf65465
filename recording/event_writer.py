from __future__ import annotations

import logging
import os
import shutil
import sys
from datetime import datetime
from pathlib import Path
from threading import Lock
from typing import IO, Optional

from core.errors import FilesystemFailure

logger = logging.getLogger(__name__)

# Artifacts written while personal info is hidden carry this date instead of
# the real play time.
SENTINEL_TIME = datetime(2000, 1, 1)


class LineWriter:
    """
    Plain-text line writer with explicit flush to stable storage.
    Thread-safe within a process.
    """
    def __init__(self, out_path: Path, append: bool = False):
        ensure_dir(out_path.parent)
        self.path = out_path
        self._f: Optional[IO[str]] = out_path.open("a" if append else "w", encoding="utf-8")
        self._lock = Lock()

    @property
    def closed(self) -> bool:
        return self._f is None

    def write_line(self, line: str) -> None:
        with self._lock:
            if self._f is None:
                raise ValueError(f"write to closed log {self.path}")
            self._f.write(line + "\n")

    def flush(self) -> None:
        with self._lock:
            if self._f is None:
                return
            self._f.flush()
            os.fsync(self._f.fileno())

    def close(self) -> None:
        with self._lock:
            if self._f is None:
                return
            try:
                self._f.flush()
            finally:
                self._f.close()
                self._f = None


def ensure_dir(p: Path) -> None:
    p.mkdir(parents=True, exist_ok=True)


def remove_tree(path: Path) -> None:
    try:
        shutil.rmtree(path)
    except OSError as exc:
        raise FilesystemFailure(path, "delete", exc) from exc


def move_dir(src: Path, dst: Path) -> Path:
    try:
        src.rename(dst)
    except OSError as exc:
        raise FilesystemFailure(src, f"rename to {dst.name}", exc) from exc
    return dst


def hide_file_times(path: Path, when: datetime = SENTINEL_TIME) -> bool:
    """
    Reset access/modification (and on Windows creation) time of ``path``.
    Returns False and logs if the filesystem refuses.
    """
    ts = when.timestamp()
    try:
        os.utime(path, (ts, ts))
        if sys.platform == "win32":
            _set_creation_time_win32(path, ts)
    except OSError as exc:
        logger.warning("Could not reset file times of %s: %s", path, exc)
        return False
    return True


# --------- Win32 helper (creation time is not reachable through os.utime) ----------

_EPOCH_AS_FILETIME = 116444736000000000
_FILE_WRITE_ATTRIBUTES = 0x0100
_FILE_SHARE_ALL = 0x7
_OPEN_EXISTING = 3
_FILE_FLAG_BACKUP_SEMANTICS = 0x02000000


def _set_creation_time_win32(path: Path, ts: float) -> None:
    import ctypes
    from ctypes import wintypes

    kernel32 = ctypes.WinDLL("kernel32", use_last_error=True)
    kernel32.CreateFileW.restype = wintypes.HANDLE

    value = _EPOCH_AS_FILETIME + int(ts * 10_000_000)
    ft = wintypes.FILETIME(value & 0xFFFFFFFF, value >> 32)

    handle = kernel32.CreateFileW(
        str(path), _FILE_WRITE_ATTRIBUTES, _FILE_SHARE_ALL, None,
        _OPEN_EXISTING, _FILE_FLAG_BACKUP_SEMANTICS, None,
    )
    if handle in (None, wintypes.HANDLE(-1).value):
        raise ctypes.WinError(ctypes.get_last_error())
    try:
        if not kernel32.SetFileTime(handle, ctypes.byref(ft), None, None):
            raise ctypes.WinError(ctypes.get_last_error())
    finally:
        kernel32.CloseHandle(handle)
