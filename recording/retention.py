"""Deletion of expired session directories."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import List, Optional

from config.settings import RetentionPolicy
from core.errors import FilesystemFailure
from core.naming import DATE_PREFIX_LEN, parse_dir_timestamp
from recording.event_writer import remove_tree

logger = logging.getLogger(__name__)


def sweep(output_root: Path, policy: RetentionPolicy, now: Optional[datetime] = None) -> List[Path]:
    """Delete session directories last written before ``now - policy.days``.

    A directory is only considered if its name starts with an exact
    ``YYYY-MM-DD HHmmss`` timestamp, so nothing the recorder did not create
    is ever removed.  Returns the deleted paths.
    """
    days = policy.days
    if days is None:
        return []

    cutoff = (now or datetime.now()) - timedelta(days=days)
    output_root = Path(output_root)
    deleted: List[Path] = []

    try:
        entries = [p for p in output_root.iterdir() if p.is_dir()]
    except OSError as exc:
        logger.warning("Cannot list %s for retention sweep: %s", output_root, exc)
        return deleted

    for path in entries:
        name = path.name
        if len(name) < DATE_PREFIX_LEN:
            continue
        try:
            last_write = datetime.fromtimestamp(path.stat().st_mtime)
        except OSError as exc:
            logger.warning("Cannot stat %s: %s", path, exc)
            continue
        if last_write >= cutoff:
            continue
        if parse_dir_timestamp(name) is None:
            logger.debug("Not a recorded game, keeping: %s", name)
            continue
        try:
            remove_tree(path)
        except FilesystemFailure as exc:
            logger.warning("Failed to delete old game folder '%s': %s", name, exc)
            continue
        logger.info("Deleted old game: %s", name)
        deleted.append(path)

    return deleted


__all__ = ["sweep"]
