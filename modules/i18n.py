"""
Operator-facing messages.

Badge texts, registration outcomes and sync results are looked up by dotted
key in ``translations/<lang>.json`` at the project root:

    translate("printer.connected", lang="en", name="TM-T20")
    -> "Printer TM-T20 connected"

Stores run in Portuguese by default. Regional tags ("pt-BR", "en_US") fall
back to their base language; unknown languages fall back to the default.
A key missing from the catalog is returned as is, so a gap in a translation
file shows up in the UI instead of raising.
"""

import json
import threading
from pathlib import Path
from typing import Any, Dict, Optional

from logging_config import get_logger

logger = get_logger(__name__)

SUPPORTED_LANGUAGES = {
    'pt': {'name': 'Português'},
    'en': {'name': 'English'},
}

DEFAULT_LANGUAGE = 'pt'

TRANSLATIONS_DIR = Path(__file__).resolve().parent.parent / 'translations'


def normalize_language(lang: Optional[str]) -> str:
    """Map "pt-BR", "EN_us", None... onto a supported language code."""
    if not lang:
        return DEFAULT_LANGUAGE
    base = lang.replace('_', '-').split('-', 1)[0].lower()
    return base if base in SUPPORTED_LANGUAGES else DEFAULT_LANGUAGE


class MessageCatalog:
    """Translation files, loaded on first use of each language."""

    def __init__(self, translations_dir: Path = TRANSLATIONS_DIR):
        self.translations_dir = translations_dir
        self._catalogs: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def _catalog(self, lang: str) -> Dict[str, Any]:
        with self._lock:
            if lang not in self._catalogs:
                self._catalogs[lang] = self._load(lang)
            return self._catalogs[lang]

    def _load(self, lang: str) -> Dict[str, Any]:
        path = self.translations_dir / f'{lang}.json'
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except FileNotFoundError:
            logger.warning(f"No translation file for '{lang}' at {path}")
            return {}
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to load translation file {path}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.error(f"Translation file {path} is not a JSON object")
            return {}
        return data

    def lookup(self, key: str, lang: str) -> Optional[str]:
        node: Any = self._catalog(lang)
        for part in key.split('.'):
            if not isinstance(node, dict):
                return None
            node = node.get(part)
        return node if isinstance(node, str) else None

    def get(self, key: str, lang: Optional[str] = DEFAULT_LANGUAGE, **kwargs) -> str:
        """
        Resolve a message.

        Falls back to the default language when the requested one lacks
        the key, then to the key itself.
        """
        lang = normalize_language(lang)
        template = self.lookup(key, lang)
        if template is None and lang != DEFAULT_LANGUAGE:
            template = self.lookup(key, DEFAULT_LANGUAGE)
        if template is None:
            logger.debug(f"Missing translation: {key} ({lang})")
            return key

        if not kwargs:
            return template
        try:
            return template.format(**kwargs)
        except (KeyError, IndexError) as e:
            logger.warning(f"Bad placeholder in translation {key} ({lang}): {e}")
            return template


catalog = MessageCatalog()


def translate(key: str, lang: Optional[str] = DEFAULT_LANGUAGE, **kwargs) -> str:
    """Translate ``key`` into ``lang`` using the shared catalog."""
    return catalog.get(key, lang, **kwargs)
