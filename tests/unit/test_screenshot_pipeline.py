import logging
import os

import numpy as np
import pytest
from PIL import Image

from config.settings import RecorderSettings
from core.session import Session
from plugins.capture.stub.impl import StubCapture
from recording.event_writer import SENTINEL_TIME
from recording.recorders.screenshot_pipeline import DEFAULT_REDACTION, ScreenshotPipeline, resolve_encoder, to_image

GRAY = (105, 105, 105)
WHITE = (255, 255, 255)


@pytest.fixture
def session(tmp_path):
    s = Session(directory=tmp_path, mode="Ranked", friend_class="MAGE", enemy_class="ROGUE")
    s.begin_turn()
    return s


def _pipeline(session, capture, **overrides):
    settings = RecorderSettings(**{"image_format": "PNG", **overrides})
    pipe = ScreenshotPipeline(settings, capture)
    pipe.bind(lambda frame, generation=None: pipe.on_frame_delivered(session, frame, generation))
    return pipe


def test_redaction_paints_three_regions(session):
    frame = Image.new("RGB", (200, 100), WHITE)
    pipe = _pipeline(session, StubCapture(frame), hide_personal_info=True)
    pipe.request_capture(session, "BeginTurn")

    path = session.directory / "Turn_1_0 BeginTurn.png"
    img = Image.open(path).convert("RGB")
    # top-left band: 40 x 12 px
    assert img.getpixel((0, 0)) == GRAY
    assert img.getpixel((39, 11)) == GRAY
    assert img.getpixel((40, 0)) == WHITE
    assert img.getpixel((0, 12)) == WHITE
    # stacked bottom-left bands from 80% down
    assert img.getpixel((0, 80)) == GRAY
    assert img.getpixel((39, 99)) == GRAY
    assert img.getpixel((0, 79)) == WHITE
    assert img.getpixel((100, 50)) == WHITE
    assert os.stat(path).st_mtime == SENTINEL_TIME.timestamp()


def test_unredacted_image_matches_outside_regions(session, tmp_path):
    rng = np.random.default_rng(7)
    arr = rng.integers(0, 256, size=(100, 200, 3), dtype=np.uint8)
    frame = Image.fromarray(arr)

    plain = _pipeline(session, StubCapture(frame), hide_personal_info=False)
    plain.request_capture(session, "Plain")
    hidden = _pipeline(session, StubCapture(frame), hide_personal_info=True)
    hidden.request_capture(session, "Hidden")

    a = np.asarray(Image.open(session.directory / "Turn_1_0 Plain.png").convert("RGB"))
    b = np.asarray(Image.open(session.directory / "Turn_1_1 Hidden.png").convert("RGB"))
    assert np.array_equal(a, arr)

    mask = np.zeros(arr.shape[:2], dtype=bool)
    for x0, y0, x1, y1 in DEFAULT_REDACTION.boxes(200, 100):
        mask[y0:y1 + 1, x0:x1 + 1] = True
    assert np.array_equal(a[~mask], b[~mask])
    assert (b[mask] == GRAY).all()


def test_jpeg_extension_and_action_counter(session):
    pipe = _pipeline(session, StubCapture(), image_format="JPEG", hide_personal_info=False)
    pipe.request_capture(session, "BeginTurn")
    pipe.request_capture(session, "Choice")
    assert (session.directory / "Turn_1_0 BeginTurn.jpg").exists()
    assert (session.directory / "Turn_1_1 Choice.jpg").exists()
    assert session.action == 2


@pytest.mark.parametrize(
    "size, expected",
    [((1600, 1200), (800, 600)), ((1000, 300), (800, 240)), ((400, 300), (400, 300))],
)
def test_resize_preserves_aspect_and_never_upscales(session, size, expected):
    pipe = _pipeline(session, StubCapture(Image.new("RGB", size)), image_resize_enabled=True)
    pipe.request_capture(session, "Shot")
    assert Image.open(session.directory / "Turn_1_0 Shot.png").size == expected


def test_requests_queue_behind_pending_frame(session):
    capture = StubCapture(synchronous=False)
    pipe = _pipeline(session, capture)
    pipe.request_capture(session, "EndTurn")
    pipe.request_capture(session, "Lethal")
    pipe.request_capture(session, "Lethal")

    assert capture.requests == 1
    assert pipe.pending == "EndTurn"
    assert pipe.queued == ("Lethal", "Lethal")

    capture.deliver_next()
    assert pipe.pending == "Lethal"
    capture.deliver_next()
    capture.deliver_next()
    assert pipe.pending is None
    names = sorted(p.name for p in session.directory.glob("*.png"))
    assert names == ["Turn_1_0 EndTurn.png", "Turn_1_1 Lethal.png", "Turn_1_2 Lethal.png"]


def test_frame_without_pending_request_is_discarded(session, caplog):
    caplog.set_level(logging.INFO)
    pipe = _pipeline(session, StubCapture())
    assert pipe.on_frame_delivered(session, Image.new("RGB", (10, 10))) is None
    assert pipe.on_frame_delivered(None, Image.new("RGB", (10, 10))) is None
    assert list(session.directory.glob("*.png")) == []
    assert "Discarded stale frame" in caplog.text


def test_cancel_makes_late_frames_stale(session):
    capture = StubCapture(synchronous=False)
    pipe = _pipeline(session, capture)
    pipe.request_capture(session, "Victory")
    pipe.request_capture(session, "Defeat")
    pipe.cancel()
    capture.deliver_next()
    assert list(session.directory.glob("*.png")) == []
    assert session.action == 0


def test_idle_request_is_ignored(session):
    capture = StubCapture()
    pipe = _pipeline(session, capture)
    pipe.request_capture(None, "BeginTurn")
    assert capture.requests == 0


def test_unavailable_capture_abandons_single_request(session):
    capture = StubCapture(available=False)
    pipe = _pipeline(session, capture)
    pipe.request_capture(session, "BeginTurn")
    assert pipe.pending is None
    capture.available = True
    pipe.request_capture(session, "EndTurn")
    assert (session.directory / "Turn_1_0 EndTurn.png").exists()


def test_missing_encoder_is_logged_not_raised(session, caplog):
    pipe = _pipeline(session, StubCapture())
    pipe.settings = pipe.settings.model_copy(update={"image_format": "NOPE"})
    pipe.request_capture(session, "BeginTurn")
    assert list(session.directory.iterdir()) == []
    assert pipe.pending is None
    assert session.action == 0
    assert "image encoder unavailable" in caplog.text


def test_array_frames_are_accepted(session):
    pipe = _pipeline(session, StubCapture(np.zeros((30, 40, 3), dtype=np.uint8)))
    pipe.request_capture(session, "Array")
    assert Image.open(session.directory / "Turn_1_0 Array.png").size == (40, 30)


def test_helpers():
    assert resolve_encoder("png") == "PNG"
    assert to_image(Image.new("L", (4, 4))).mode == "RGB"


def test_unconvertible_frame_does_not_block_later_requests(session, caplog):
    capture = StubCapture(synchronous=False)
    pipe = _pipeline(session, capture)
    pipe.request_capture(session, "BeginTurn")
    pipe.request_capture(session, "EndTurn")

    capture.deliver_next(np.zeros((4, 4, 7), dtype=np.uint8))
    assert "Could not convert frame for BeginTurn screenshot" in caplog.text
    assert pipe.pending == "EndTurn"
    assert session.action == 0

    capture.deliver_next()
    assert pipe.pending is None
    assert [p.name for p in session.directory.glob("*.png")] == ["Turn_1_0 EndTurn.png"]


def test_frame_for_cancelled_request_is_not_taken_by_the_next_one(session, caplog):
    caplog.set_level(logging.INFO)
    capture = StubCapture(synchronous=False)
    pipe = _pipeline(session, capture)
    pipe.request_capture(session, "Victory")
    pipe.cancel()
    pipe.request_capture(session, "Mulligan")

    capture.deliver_next(Image.new("RGB", (10, 10)))
    assert "Discarded stale frame" in caplog.text
    assert pipe.pending == "Mulligan"
    assert list(session.directory.glob("*.png")) == []

    capture.deliver_next()
    assert [p.name for p in session.directory.glob("*.png")] == ["Turn_1_0 Mulligan.png"]
