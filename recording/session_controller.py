"""Session lifecycle for the game recorder.

The :class:`SessionController` is the host's listener.  It owns the single
:class:`~core.session.Session` (``Idle`` when there is none, ``Active``
otherwise) and sequences the artifact components around it:

* turn begin  -> log rotation, ``BeginTurn`` screenshot
* game end    -> close logs, copy seeds, rename/delete the folder, sweep
* stop        -> flush logs, copy seeds speculatively

Host callbacks can arrive on different threads (engine, hotkey listener,
capture completion).  Every public method holds one re-entrant lock for its
whole duration, which serialises all session mutation and lets a capture
capability deliver its frame from inside ``request_frame``.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Optional

from config.paths import Paths
from config.settings import RecorderSettings
from core.errors import FilesystemFailure, MissingCapability
from core.events import ActionKind
from core.naming import finished_dir_name, session_dir_name
from core.session import Outcome, Session, SessionState
from recording import retention
from recording.event_writer import move_dir, remove_tree
from recording.log_rotator import LogRotator
from recording.mulligan import MulliganArchiver
from recording.recorders.chat_recorder import ChatRecorder
from recording.recorders.screenshot_pipeline import ScreenshotPipeline
from recording.seed_reconciler import SeedReconciler
from recording.translation import CardNameTranslator
from sdk.host import CaptureCapability, Host, HotkeyCapability
from sdk.registry import Registry, default_registry

logger = logging.getLogger(__name__)


class SessionController:
    """Host listener that records one game at a time."""

    def __init__(
        self,
        settings: RecorderSettings,
        paths: Paths,
        capture: CaptureCapability,
        *,
        hotkey: Optional[HotkeyCapability] = None,
        translator: Optional[CardNameTranslator] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.settings = settings
        self.paths = paths
        self.hotkey = hotkey
        self._clock = clock

        self._lock = threading.RLock()
        self._session: Optional[Session] = None
        self._host: Optional[Host] = None

        translator = translator or CardNameTranslator(paths.carddb_root)
        self.logs = LogRotator(settings, translator, clock=clock)
        self.screenshots = ScreenshotPipeline(settings, capture)
        self.screenshots.bind(self.on_frame_delivered)
        self.seeds = SeedReconciler(settings, paths.seeds_root, clock=clock)
        self.mulligan = MulliganArchiver(settings, paths.mulligan_root, clock=clock)
        self.chat = ChatRecorder(settings, paths.output_root, clock=clock)

    @classmethod
    def from_settings(
        cls,
        settings: RecorderSettings,
        paths: Paths,
        *,
        host: Optional[Host] = None,
        registry: Optional[Registry] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> "SessionController":
        """Build a controller with the capture and hotkey plugins named in ``settings``."""
        registry = registry or default_registry()
        key = settings.capture_backend
        if key == "capture.host":
            capture = registry.create(key, host)
        elif key == "capture.window":
            capture = registry.create(key, settings.window_title)
        else:
            capture = registry.create(key)
        hotkey = registry.create(settings.hotkey_backend)
        return cls(settings, paths, capture, hotkey=hotkey, clock=clock)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def state(self) -> SessionState:
        return SessionState.ACTIVE if self._session is not None else SessionState.IDLE

    # ------------------------------------------------------------------
    # Host wiring
    # ------------------------------------------------------------------
    def attach(self, host: Host) -> None:
        with self._lock:
            if self._host is not None:
                self.detach()
            self._host = host
            host.add_listener(self)
            self._register_hotkey()

    def detach(self) -> None:
        """Undo :meth:`attach`; a game still in progress is closed as unknown."""
        with self._lock:
            if self._session is not None:
                self.finalize(Outcome.UNKNOWN)
            self.chat.close()
            if self.hotkey is not None:
                self.hotkey.unregister()
            if self._host is not None:
                self._host.remove_listener(self)
                self._host = None

    def _register_hotkey(self) -> None:
        combo = self.settings.misplay_hotkey.pynput_combo
        if combo is None or self.hotkey is None:
            return
        try:
            self.hotkey.register(combo, self.on_hotkey_pressed)
        except MissingCapability as exc:
            logger.warning("Misplay hotkey not registered: %s", exc)
            return
        logger.info("Registered misplay hotkey: %s", self.settings.misplay_hotkey.value)

    def _current_mode(self) -> Optional[str]:
        return self._host.current_mode() if self._host is not None else None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def start(self, friend_class: str, enemy_class: str, mode: str) -> Optional[Session]:
        with self._lock:
            if self._session is not None:
                logger.info("Previous game never ended; closing it with an unknown result")
                self.finalize(Outcome.UNKNOWN)

            created = self._clock()
            directory = self.paths.session_dir(session_dir_name(created, mode, friend_class, enemy_class))
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                logger.error("Cannot create game folder %s: %s", directory, exc)
                return None

            self._session = Session(
                directory=directory,
                mode=mode,
                friend_class=friend_class,
                enemy_class=enemy_class,
                created=created,
            )
            logger.info("Recording game to %s", directory)
            return self._session

    def finalize(self, outcome: Outcome) -> Optional[Path]:
        """Close the active game; returns its final folder, or None if deleted."""
        with self._lock:
            session = self._session
            if session is None:
                return None
            session.outcome = outcome
            final: Optional[Path] = None
            try:
                self.screenshots.cancel()
                try:
                    self.logs.close()
                except OSError as exc:
                    logger.warning("Failed to close turn log: %s", exc)
                self.seeds.reconcile(session)
                final = self._dispose(session, outcome)
                retention.sweep(self.paths.output_root, self.settings.delete_games, now=self._clock())
            finally:
                self.logs.reset()
                self._session = None
            return final

    def _dispose(self, session: Session, outcome: Outcome) -> Optional[Path]:
        directory = session.directory
        if session.turn == 0 or (outcome is Outcome.WIN and self.settings.delete_wins):
            try:
                remove_tree(directory)
            except FilesystemFailure as exc:
                logger.warning("Failed to delete game folder: %s", exc)
                return directory
            logger.info("Deleted game folder %s (turns=%d, result=%s)", directory.name, session.turn, outcome.value)
            return None

        if outcome is Outcome.UNKNOWN:
            logger.info("Result for %s is unknown", directory.name)
            return directory

        target = directory.with_name(finished_dir_name(directory.name, outcome))
        try:
            return move_dir(directory, target)
        except FilesystemFailure as exc:
            logger.warning("Failed to rename game folder: %s", exc)
            return directory

    # ------------------------------------------------------------------
    # Host callbacks
    # ------------------------------------------------------------------
    def on_mulligan(self, friend_class: str, enemy_class: str) -> None:
        with self._lock:
            # game_end was missed for the previous game
            if self._session is not None:
                self.finalize(Outcome.UNKNOWN)

            mode = self._current_mode()
            if mode is not None and self.settings.mode_selected(mode):
                self.start(friend_class, enemy_class, mode)

            if self.settings.screenshot_mulligan:
                self.request_capture("Mulligan")

    def on_mulligan_replaced(self) -> None:
        with self._lock:
            if self.settings.screenshot_mulligan:
                self.request_capture("Mulligan")
            self.mulligan.save(self._session)

    def on_turn_begin(self) -> None:
        with self._lock:
            if self._session is None:
                mode = self._current_mode()
                if mode is None or not self.settings.mode_selected(mode):
                    return
                board = self._host.current_board()
                if self.start(board.friend_class, board.enemy_class, mode) is None:
                    return

            session = self._session
            turn = session.begin_turn()
            try:
                self.logs.rotate(session.directory, turn)
            except OSError as exc:
                logger.warning("Failed to open log for turn %d: %s", turn, exc)

            if self.settings.screenshot_begin_turn:
                self.request_capture("BeginTurn")

    def on_turn_end(self) -> None:
        with self._lock:
            if self.settings.screenshot_end_turn:
                self.request_capture("EndTurn")
            try:
                self.logs.flush()
            except OSError as exc:
                logger.warning("Failed to flush turn log: %s", exc)

    def on_action_execute(self, action: Any) -> None:
        kind = ActionKind.parse(action)
        with self._lock:
            if kind is ActionKind.CHOICE and self.settings.screenshot_choice:
                self.request_capture("Choice")
            elif kind is ActionKind.CONCEDE and self.settings.screenshot_concede:
                self.request_capture("Concede")
            elif kind is ActionKind.RESIMULATE and self.settings.screenshot_resimulate:
                self.request_capture("Resimulate")

    def on_lethal(self) -> None:
        with self._lock:
            if self.settings.screenshot_lethal:
                self.request_capture("Lethal")

    def on_concede(self) -> None:
        with self._lock:
            if self.settings.screenshot_concede:
                self.request_capture("Concede")

    def on_outcome(self, won: bool) -> None:
        with self._lock:
            if self._session is not None:
                self._session.outcome = Outcome.WIN if won else Outcome.LOSS
            if won and self.settings.screenshot_victory:
                self.request_capture("Victory")
            elif not won and self.settings.screenshot_defeat:
                self.request_capture("Defeat")

    def on_victory(self) -> None:
        self.on_outcome(True)

    def on_defeat(self) -> None:
        self.on_outcome(False)

    def on_game_end(self) -> None:
        with self._lock:
            if self._session is not None:
                self.finalize(self._session.outcome)

    def on_stopped(self) -> None:
        """Flush what we have; seeds copied now are overwritten if the game ends normally."""
        with self._lock:
            if self._session is None:
                return
            try:
                self.logs.flush()
            except OSError as exc:
                logger.warning("Failed to flush turn log: %s", exc)
            self.seeds.reconcile(self._session)

    def on_hotkey_pressed(self) -> None:
        with self._lock:
            if self._session is None:
                logger.info("Cannot record misplay before game started.")
                return
            self.request_capture("Misplay")

    def on_whisper(self, friend: str, message: str) -> None:
        with self._lock:
            try:
                self.chat.on_whisper(friend, message)
            except OSError as exc:
                logger.warning("Failed to log whisper: %s", exc)

    def on_friend_request(self, player: str) -> None:
        with self._lock:
            try:
                self.chat.on_friend_request(player)
            except OSError as exc:
                logger.warning("Failed to log friend request: %s", exc)

    def on_log_line(self, text: str) -> None:
        # Runs inside the host's logging path: nothing may escape.
        try:
            with self._lock:
                self.logs.on_line(text)
        except Exception:
            logger.exception("Error while handling received log line")

    # ------------------------------------------------------------------
    # Screenshots
    # ------------------------------------------------------------------
    def request_capture(self, label: str) -> None:
        with self._lock:
            self.screenshots.request_capture(self._session, label)

    def on_frame_delivered(self, frame: Any, generation: Optional[int] = None) -> Optional[Path]:
        with self._lock:
            return self.screenshots.on_frame_delivered(self._session, frame, generation)


__all__ = ["SessionController"]
