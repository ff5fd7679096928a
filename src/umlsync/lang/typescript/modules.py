import posixpath
from typing import Iterable, Optional

# Longest first, so `.d.ts` is stripped as a whole.
TS_SUFFIXES = (".d.ts", ".d.mts", ".d.cts", ".tsx", ".mts", ".cts", ".ts")

# ESM-style imports name the emitted file (`./a.js`) rather than the source.
_EMITTED_SUFFIXES = (".js", ".jsx", ".mjs", ".cjs", ".ts", ".tsx", ".mts", ".cts")


def module_id_for(path: str) -> str:
    """
    `src/models/user.ts` -> `src/models/user`.

    Paths are workspace relative and use forward slashes.
    """
    normalized = path.replace("\\", "/")
    lowered = normalized.lower()
    for suffix in TS_SUFFIXES:
        if lowered.endswith(suffix):
            return normalized[: -len(suffix)]
    return normalized


def is_relative(specifier: str) -> bool:
    return specifier == "." or specifier == ".." or specifier.startswith(("./", "../"))


class TypeScriptModuleResolver:
    """
    Maps import specifiers to workspace module ids.

    Relative specifiers resolve against the importing file's directory,
    trying `<spec>` and then `<spec>/index`. Bare specifiers resolve against
    `base_url` when one is configured and are external otherwise.
    """

    def __init__(self, base_url: Optional[str] = None):
        self.base_url = base_url

    def resolve(
        self, importer_path: str, specifier: str, known_modules: Iterable[str]
    ) -> Optional[str]:
        known = known_modules
        if not isinstance(known, (set, frozenset, dict)):
            known = set(known)

        if is_relative(specifier):
            base_dir = posixpath.dirname(importer_path.replace("\\", "/"))
            joined = posixpath.join(base_dir, specifier)
        elif self.base_url is not None:
            joined = posixpath.join(self.base_url, specifier)
        else:
            return None

        base = posixpath.normpath(joined)
        if base.startswith("../") or base == "..":
            return None
        base = _strip_emitted_suffix(base)

        for candidate in (base, posixpath.join(base, "index")):
            candidate = posixpath.normpath(candidate)
            if candidate in known:
                return candidate
        return None


def _strip_emitted_suffix(base: str) -> str:
    for suffix in _EMITTED_SUFFIXES:
        if base.endswith(suffix):
            return base[: -len(suffix)]
    return base
