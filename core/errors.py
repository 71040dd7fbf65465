"""Structured exceptions shared by the recorder components."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional


class RecorderError(Exception):
    """Base class for recorder exceptions."""

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-serialisable error payload."""
        return {"type": self.__class__.__name__, "message": str(self)}


class MissingCapability(RecorderError):
    """Raised when a capture target, encoder or hotkey backend is unavailable."""

    def __init__(self, capability: str, reason: Optional[str] = None) -> None:
        self.capability = capability
        self.reason = reason
        message = f"{capability} unavailable"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["capability"] = self.capability
        return payload


class MissingExternalData(RecorderError):
    """Raised when a card database, seed folder or mulligan archive is absent."""


class FilesystemFailure(RecorderError):
    """Raised when a delete, move or copy fails for a specific path."""

    def __init__(self, path: Path, action: str, cause: Optional[BaseException] = None) -> None:
        self.path = Path(path)
        self.action = action
        message = f"failed to {action} {self.path}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload.update({"path": str(self.path), "action": self.action})
        return payload


class ParseFailure(RecorderError):
    """Raised when a turn number or timestamp prefix cannot be parsed."""

    def __init__(self, text: str, expected: str) -> None:
        self.text = text
        self.expected = expected
        super().__init__(f"could not parse {expected} from {text!r}")


class SettingsError(RecorderError):
    """Raised at configuration-load time for unrecognised option values."""


__all__ = [
    "RecorderError",
    "MissingCapability",
    "MissingExternalData",
    "FilesystemFailure",
    "ParseFailure",
    "SettingsError",
]
