# tests/unit/conftest.py
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from config.paths import Paths
from config.settings import RecorderSettings
from plugins.capture.stub.impl import StubCapture
from plugins.hotkeys.stub.impl import StubHotkey
from recording.session_controller import SessionController
from sdk.host import BoardInfo, LocalHost


class TickingClock:
    """datetime.now() stand-in that moves one second per call so that two games
    started in the same test never share a folder name."""

    def __init__(self, start=None, step=timedelta(seconds=1)):
        self.current = start or datetime.now()
        self.step = step

    def __call__(self):
        value = self.current
        self.current = self.current + self.step
        return value


@pytest.fixture
def paths(tmp_path) -> Paths:
    p = Paths.under(tmp_path)
    p.ensure_all()
    return p


@pytest.fixture
def settings() -> RecorderSettings:
    return RecorderSettings(
        image_format="PNG",
        capture_backend="capture.stub",
        hotkey_backend="hotkey.stub",
    )


@pytest.fixture
def capture() -> StubCapture:
    return StubCapture()


@pytest.fixture
def hotkey() -> StubHotkey:
    return StubHotkey()


@pytest.fixture
def host() -> LocalHost:
    return LocalHost(mode="Ranked", board=BoardInfo("MAGE", "WARRIOR"))


@pytest.fixture
def controller(settings, paths, capture, hotkey, host):
    ctl = SessionController(settings, paths, capture, hotkey=hotkey, clock=TickingClock())
    ctl.attach(host)
    yield ctl
    ctl.detach()


def game_dirs(paths: Paths):
    return sorted(p for p in paths.output_root.iterdir() if p.is_dir())
