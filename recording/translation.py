"""Card-name translation for non-English log lines.

The host writes card names in the client's locale.  To keep recorded logs
comparable across accounts, "Play sequence" lines are rewritten with the
reference (enUS) names, using the host's on-disk card database::

    CardDatabase/cardDB.enUS.xml     CardId -> Name
    CardDatabase/cardDB.<locale>.xml Name   -> CardId

Both lookups are built once per locale and rebuilt when the locale changes.
"""

from __future__ import annotations

import logging
import threading
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Dict, Optional, Set

from config.settings import REFERENCE_LOCALE, Locale
from core.errors import MissingExternalData

logger = logging.getLogger(__name__)

PLAY_SEQUENCE_MARKER = "Play sequence : "


def _replace_first(text: str, search: str, replace: str) -> str:
    pos = text.find(search)
    if pos < 0:
        return text
    return text[:pos] + replace + text[pos + len(search):]


class CardNameTranslator:
    """Rewrite native card names in log lines into reference names."""

    def __init__(self, carddb_root: Path) -> None:
        self.carddb_root = Path(carddb_root)
        self._lock = threading.Lock()
        self._translations: Optional[Dict[str, str]] = None
        self._locale: Optional[str] = None
        # locales whose card database failed to load; not retried
        self._unavailable: Set[str] = set()

    def _db_path(self, locale: str) -> Path:
        return self.carddb_root / f"cardDB.{locale}.xml"

    @staticmethod
    def _read_cards(path: Path):
        root = ET.parse(path).getroot()
        for elem in root.iter("Card"):
            card_id = elem.findtext("CardId")
            name = elem.findtext("Name")
            if card_id is not None and name is not None:
                yield card_id, name

    def load(self, locale: str) -> Dict[str, str]:
        """Build the native-name -> reference-name table for ``locale``."""
        reference = self._db_path(REFERENCE_LOCALE.value)
        native = self._db_path(locale)
        if not reference.exists() or not native.exists():
            raise MissingExternalData(f"no card database for locale {locale} under {self.carddb_root}")

        reference_names: Dict[str, str] = dict(self._read_cards(reference))
        translations: Dict[str, str] = {}
        for card_id, native_name in self._read_cards(native):
            reference_name = reference_names.get(card_id)
            if reference_name is not None:
                translations[native_name] = reference_name
        logger.info("Initialized %d card name translations for %s", len(translations), locale)
        return translations

    def _table(self, locale: str) -> Optional[Dict[str, str]]:
        with self._lock:
            if self._translations is not None and self._locale == locale:
                return self._translations
            if locale in self._unavailable:
                return None
            try:
                table = self.load(locale)
            except (MissingExternalData, ET.ParseError, OSError) as exc:
                self._unavailable.add(locale)
                logger.warning("Card name translation disabled: %s", exc)
                return None
            self._translations = table
            self._locale = locale
            return table

    def translate(self, line: str, locale) -> str:
        locale = locale.value if isinstance(locale, Locale) else str(locale)
        if locale == REFERENCE_LOCALE.value:
            return line

        marker = line.find(PLAY_SEQUENCE_MARKER)
        if marker == -1:
            return line
        # first token after the marker is the play index, not a card
        space = line.find(" ", marker + len(PLAY_SEQUENCE_MARKER))
        if space == -1:
            return line

        table = self._table(locale)
        if table is None:
            return line

        for card in line[space + 1:].split("->"):
            bracket = card.find("[")
            native_name = card[:bracket] if bracket != -1 else card
            if not native_name:
                continue
            reference_name = table.get(native_name)
            if reference_name is None:
                logger.debug("No name translation for %r", native_name)
            elif reference_name != native_name:
                line = _replace_first(line, native_name, reference_name)
        return line


__all__ = ["CardNameTranslator", "PLAY_SEQUENCE_MARKER"]
