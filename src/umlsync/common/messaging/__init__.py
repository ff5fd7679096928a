from .bus import LEVELS, MessageBus
from .protocols import OperatorProtocol, Renderer, ResourceLoaderProtocol

__all__ = [
    "LEVELS",
    "MessageBus",
    "OperatorProtocol",
    "Renderer",
    "ResourceLoaderProtocol",
]
