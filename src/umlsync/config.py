import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

try:
    import tomllib
except ImportError:
    import tomli as tomllib

from umlsync.spec import ConfigError

log = logging.getLogger(__name__)

DEFAULT_EXTENSIONS = [".ts", ".tsx"]

# Directories that never hold user sources worth diagramming.
DEFAULT_EXCLUDED_DIRS = [
    ".git",
    "node_modules",
    "dist",
    "build",
    "out",
    "coverage",
    ".next",
    ".cache",
    ".idea",
    ".vscode",
]


@dataclass
class LayoutConfig:
    column_spacing: int = 300
    row_spacing: int = 300


@dataclass
class UmlSyncConfig:
    scan_paths: List[str] = field(default_factory=lambda: ["."])
    extensions: List[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    exclude_dirs: List[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDED_DIRS))
    quiescence_ms: int = 500
    max_workers: Optional[int] = None
    base_url: Optional[str] = None
    report_unresolved: bool = False
    layout: LayoutConfig = field(default_factory=LayoutConfig)


def _expect(value: Any, expected: type, name: str) -> Any:
    # bool is an int subclass
    if isinstance(value, bool) and expected is not bool:
        raise ConfigError(f"'{name}' must not be a boolean")
    if not isinstance(value, expected):
        raise ConfigError(f"'{name}' has an invalid type: {type(value).__name__}")
    return value


def _string_list(value: Any, name: str) -> List[str]:
    _expect(value, list, name)
    for item in value:
        _expect(item, str, name)
    return list(value)


def config_from_mapping(data: Mapping[str, Any]) -> UmlSyncConfig:
    """
    Build a validated config from the contents of a `[tool.umlsync]` table.
    """
    config = UmlSyncConfig()
    known = {
        "scan_paths",
        "extensions",
        "exclude_dirs",
        "quiescence_ms",
        "max_workers",
        "base_url",
        "report_unresolved",
        "layout",
    }
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown option(s): {', '.join(unknown)}")

    if "scan_paths" in data:
        config.scan_paths = _string_list(data["scan_paths"], "scan_paths")
    if "extensions" in data:
        extensions = _string_list(data["extensions"], "extensions")
        for ext in extensions:
            if not ext.startswith("."):
                raise ConfigError(f"Extension '{ext}' must start with '.'")
        config.extensions = extensions
    if "exclude_dirs" in data:
        config.exclude_dirs = _string_list(data["exclude_dirs"], "exclude_dirs")
    if "quiescence_ms" in data:
        quiescence = _expect(data["quiescence_ms"], int, "quiescence_ms")
        if quiescence < 0:
            raise ConfigError("'quiescence_ms' must be >= 0")
        config.quiescence_ms = quiescence
    if "max_workers" in data:
        workers = _expect(data["max_workers"], int, "max_workers")
        if workers < 1:
            raise ConfigError("'max_workers' must be >= 1")
        config.max_workers = workers
    if "base_url" in data:
        config.base_url = _expect(data["base_url"], str, "base_url")
    if "report_unresolved" in data:
        config.report_unresolved = _expect(
            data["report_unresolved"], bool, "report_unresolved"
        )
    if "layout" in data:
        layout: Dict[str, Any] = _expect(data["layout"], dict, "layout")
        for key in ("column_spacing", "row_spacing"):
            if key in layout:
                spacing = _expect(layout[key], int, f"layout.{key}")
                if spacing <= 0:
                    raise ConfigError(f"'layout.{key}' must be > 0")
                setattr(config.layout, key, spacing)
    return config


def load_config_from_path(root_path: Path) -> UmlSyncConfig:
    """
    Read `[tool.umlsync]` from the workspace's pyproject.toml.

    A missing file or table yields the defaults.
    """
    config_path = root_path / "pyproject.toml"
    if not config_path.is_file():
        log.debug(f"No pyproject.toml in {root_path}, using defaults")
        return UmlSyncConfig()

    try:
        with config_path.open("rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Could not parse {config_path}: {e}") from e

    return config_from_mapping(data.get("tool", {}).get("umlsync", {}))
