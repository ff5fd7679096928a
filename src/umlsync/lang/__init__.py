from typing import Dict, Iterable, Optional

from umlsync.spec import LanguageAdapterProtocol, UnsupportedFileError


class LanguageRegistry:
    """Maps file suffixes to the adapter that parses them."""

    def __init__(self, adapters: Optional[Iterable[LanguageAdapterProtocol]] = None):
        self._by_suffix: Dict[str, LanguageAdapterProtocol] = {}
        for adapter in adapters or []:
            self.register(adapter)

    def register(self, adapter: LanguageAdapterProtocol) -> None:
        for suffix in adapter.suffixes:
            self._by_suffix[suffix.lower()] = adapter

    def _lookup(self, path: str) -> Optional[LanguageAdapterProtocol]:
        lowered = path.lower()
        for suffix in sorted(self._by_suffix, key=len, reverse=True):
            if lowered.endswith(suffix):
                return self._by_suffix[suffix]
        return None

    def supports(self, path: str) -> bool:
        return self._lookup(path) is not None

    def adapter_for(self, path: str) -> LanguageAdapterProtocol:
        adapter = self._lookup(path)
        if adapter is None:
            raise UnsupportedFileError(path)
        return adapter


def default_registry() -> LanguageRegistry:
    from .typescript import TypeScriptAdapter

    return LanguageRegistry([TypeScriptAdapter()])


__all__ = ["LanguageRegistry", "default_registry"]
