from pathlib import Path
from typing import Any

from .messaging import MessageBus
from .nexus import FileSystemLoader, OverlayNexus

# --- Composition root for user-facing messages ---

# 1. Packaged catalogs live next to this module
_assets_root = Path(__file__).parent / "assets"

# 2. The nexus overlays loaders; later layers (e.g. a project's own
#    `.umlsync` catalogs) can be inserted at index 0 to take priority.
umlsync_nexus = OverlayNexus([FileSystemLoader(_assets_root)])

# 3. The process-wide feedback bus
bus = MessageBus(operator=umlsync_nexus)


def umlsync_operator(key: str, **kwargs: Any) -> str:
    """Resolve a message id to its final formatted string."""
    return bus.render_to_string(key, **kwargs)


__all__ = ["bus", "umlsync_nexus", "umlsync_operator"]
