from typing import Any, Dict, Optional, Protocol


class Renderer(Protocol):
    """
    Protocol for renderer implementations that present bus messages to the user.
    """

    def render(self, message: str, level: str) -> None:
        """
        Render an already resolved message.

        Args:
            message: The final, formatted string.
            level: One of "debug", "info", "success", "warning", "error".
        """
        ...


class OperatorProtocol(Protocol):
    def get(self, pointer: str, lang: Optional[str] = None) -> str: ...


class ResourceLoaderProtocol(Protocol):
    def load(self, lang: str) -> Dict[str, Any]: ...
