import json
import logging
import os
from collections import ChainMap
from pathlib import Path
from typing import Any, Dict, List, Optional

from .messaging.protocols import ResourceLoaderProtocol

log = logging.getLogger(__name__)


def detect_lang(default: str = "en") -> str:
    # 1. Explicit override
    env_lang = os.getenv("UMLSYNC_LANG")
    if env_lang:
        return env_lang

    # 2. System LANG (en_US.UTF-8 -> en)
    sys_lang = os.getenv("LANG")
    if sys_lang:
        base_lang = sys_lang.split(".")[0].split("_")[0].lower()
        if base_lang and base_lang not in ("c", "posix"):
            return base_lang

    return default


class JsonHandler:
    def match(self, path: Path) -> bool:
        return path.suffix.lower() == ".json"

    def load(self, path: Path) -> Dict[str, Any]:
        if not path.exists():
            return {}
        try:
            with path.open("r", encoding="utf-8") as f:
                data = json.load(f)
            return data if isinstance(data, dict) else {}
        except (json.JSONDecodeError, OSError) as e:
            log.warning(f"Could not load message catalog {path}: {e}")
            return {}


class MemoryLoader:
    def __init__(self, data: Dict[str, Dict[str, Any]]):
        self._data = data

    def load(self, lang: str) -> Dict[str, Any]:
        return self._data.get(lang, {}).copy()


class FileSystemLoader:
    """
    Loads `<root>/needle/<lang>/**/*.json` catalogs.

    Catalogs may nest their keys; `{"sync": {"run": {"start": "..."}}}` and
    `{"sync.run.start": "..."}` are equivalent.
    """

    def __init__(self, root: Path, handlers: Optional[List[JsonHandler]] = None):
        self.root = root
        self.handlers = handlers or [JsonHandler()]

    def load(self, lang: str) -> Dict[str, Any]:
        lang_dir = self.root / "needle" / lang
        if not lang_dir.is_dir():
            return {}
        registry: Dict[str, Any] = {}
        for file_path in sorted(lang_dir.rglob("*")):
            if not file_path.is_file():
                continue
            for handler in self.handlers:
                if handler.match(file_path):
                    registry.update(_flatten(handler.load(file_path)))
                    break
        return registry


def _flatten(data: Dict[str, Any], prefix: str = "") -> Dict[str, Any]:
    flat: Dict[str, Any] = {}
    for key, value in data.items():
        full_key = f"{prefix}.{key}" if prefix else key
        if isinstance(value, dict):
            flat.update(_flatten(value, full_key))
        else:
            flat[full_key] = value
    return flat


class OverlayNexus:
    """
    Message templates from an ordered list of loaders; earlier loaders win.

    An id missing from the active language is looked up in the default
    language, and an id missing everywhere resolves to itself.
    """

    def __init__(self, loaders: List[ResourceLoaderProtocol], default_lang: str = "en"):
        self.loaders = loaders
        self.default_lang = default_lang
        self._views: Dict[str, ChainMap] = {}

    def _view(self, lang: str) -> ChainMap:
        view = self._views.get(lang)
        if view is None:
            view = ChainMap(*[loader.load(lang) for loader in self.loaders])
            self._views[lang] = view
        return view

    def get(self, pointer: str, lang: Optional[str] = None) -> str:
        key = str(pointer)
        candidates = (lang or detect_lang(self.default_lang), self.default_lang)
        for candidate in dict.fromkeys(candidates):
            value = self._view(candidate).get(key)
            if value is not None:
                return str(value)
        return key

    def reload(self, lang: Optional[str] = None) -> None:
        if lang:
            self._views.pop(lang, None)
        else:
            self._views.clear()
