# config/paths.py
"""
Path management for the game recorder.

Design goals
- One place that knows where recorded games, seeds, mulligan archives and the
  card database live
- Honors these env vars:
    GAMERECORDER_OUTPUT_ROOT, GAMERECORDER_SEEDS_ROOT,
    GAMERECORDER_MULLIGAN_ROOT, GAMERECORDER_CARDDB_ROOT
- Defaults are relative to the host's working directory, which is where the
  host keeps its own Seeds/ and CardDatabase/ folders
- Safe directory creation with writeability checks
- No cached singleton: every call to resolve_paths() reads the environment
"""

from __future__ import annotations

import errno
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


# ---------- Defaults (used only if env vars not set) ----------

DEFAULT_OUTPUT_DIR = "RecordedGames"
DEFAULT_SEEDS_DIR = "Seeds"
DEFAULT_MULLIGAN_DIR = str(Path("MulliganProfiles") / "MulliganArchives")
DEFAULT_CARDDB_DIR = "CardDatabase"


def _env_or_default(var: str, default: str, base: Path) -> Path:
    value = os.getenv(var)
    if value:
        return Path(value)
    return base / default


# ---------- Core dataclass ----------

@dataclass(frozen=True)
class Paths:
    """
    Canonical path container for the recorder.

    Most callers obtain one via resolve_paths(); tests build one directly.
    """
    output_root: Path
    seeds_root: Path
    mulligan_root: Path
    carddb_root: Path

    # ----- factories -----

    @staticmethod
    def from_env(base: Optional[Path] = None) -> "Paths":
        base = Path(base) if base is not None else Path.cwd()
        return Paths(
            output_root=_env_or_default("GAMERECORDER_OUTPUT_ROOT", DEFAULT_OUTPUT_DIR, base),
            seeds_root=_env_or_default("GAMERECORDER_SEEDS_ROOT", DEFAULT_SEEDS_DIR, base),
            mulligan_root=_env_or_default("GAMERECORDER_MULLIGAN_ROOT", DEFAULT_MULLIGAN_DIR, base),
            carddb_root=_env_or_default("GAMERECORDER_CARDDB_ROOT", DEFAULT_CARDDB_DIR, base),
        )

    @staticmethod
    def under(root: Path) -> "Paths":
        """All four locations beneath ``root``; handy for tests and the replay CLI."""
        root = Path(root)
        return Paths(
            output_root=root / DEFAULT_OUTPUT_DIR,
            seeds_root=root / DEFAULT_SEEDS_DIR,
            mulligan_root=root / DEFAULT_MULLIGAN_DIR,
            carddb_root=root / DEFAULT_CARDDB_DIR,
        )

    # ----- layout helpers -----

    def session_dir(self, name: str) -> Path:
        """Return the directory a recorded game is written to."""
        return self.output_root / name

    def seeds_dir(self, mode: Optional[str] = None) -> Path:
        """Seed root, or its per-mode partition when ``mode`` is given."""
        return self.seeds_root / mode if mode else self.seeds_root

    def mulligan_dir(self, mode: str) -> Path:
        return self.mulligan_root / mode

    def card_db(self, locale: str) -> Path:
        """
        Card database for a locale, e.g.:
          card_db("enUS") -> CardDatabase/cardDB.enUS.xml
        """
        return self.carddb_root / f"cardDB.{locale}.xml"

    # ----- setup / validation -----

    def ensure_all(self) -> None:
        """
        Create the output root. The other roots belong to the host and are
        only ever read.
        """
        self.output_root.mkdir(parents=True, exist_ok=True)

    def verify_writeable(self) -> None:
        """
        Raise OSError if the output root is not writeable.
        """
        p = self.output_root
        try:
            p.mkdir(parents=True, exist_ok=True)
            test = p / ".write_test"
            test.write_text("ok", encoding="utf-8")
            test.unlink(missing_ok=True)
        except Exception as e:
            raise OSError(errno.EACCES, f"Not writeable: {p}", e)


def resolve_paths(base: Optional[Path] = None) -> Paths:
    """
    Build a Paths value from the environment and make sure the output root exists.
    """
    paths = Paths.from_env(base)
    paths.ensure_all()
    return paths


# ---------- CLI sanity check ----------

if __name__ == "__main__":
    p = resolve_paths()
    try:
        p.verify_writeable()
    except OSError as e:
        print(f"[WARN] Writeability check failed: {e}")

    print("Output root:   ", p.output_root)
    print("Seeds root:    ", p.seeds_root)
    print("Mulligan root: ", p.mulligan_root)
    print("Card DB root:  ", p.carddb_root)
