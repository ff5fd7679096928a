from typing import Any, Optional

from .protocols import OperatorProtocol, Renderer

LEVELS = ("debug", "info", "success", "warning", "error")


class MessageBus:
    """
    Routes user-facing feedback by message id.

    Ids are resolved to templates through the operator (which falls back to
    the id itself), formatted with the keyword arguments and handed to the
    renderer. Without a renderer every message is silently dropped.
    """

    def __init__(self, operator: OperatorProtocol):
        self._operator = operator
        self._renderer: Optional[Renderer] = None

    @property
    def renderer(self) -> Optional[Renderer]:
        return self._renderer

    def set_renderer(self, renderer: Optional[Renderer]) -> None:
        self._renderer = renderer

    def set_operator(self, operator: OperatorProtocol) -> None:
        self._operator = operator

    def render_to_string(self, msg_id: str, **kwargs: Any) -> str:
        template = self._operator.get(str(msg_id))
        try:
            return template.format(**kwargs)
        except (KeyError, IndexError, ValueError):
            # A template that does not match its parameters is still shown.
            return template

    def _render(self, level: str, msg_id: str, **kwargs: Any) -> None:
        if not self._renderer:
            return
        self._renderer.render(self.render_to_string(msg_id, **kwargs), level)

    def debug(self, msg_id: str, **kwargs: Any) -> None:
        self._render("debug", msg_id, **kwargs)

    def info(self, msg_id: str, **kwargs: Any) -> None:
        self._render("info", msg_id, **kwargs)

    def success(self, msg_id: str, **kwargs: Any) -> None:
        self._render("success", msg_id, **kwargs)

    def warning(self, msg_id: str, **kwargs: Any) -> None:
        self._render("warning", msg_id, **kwargs)

    def error(self, msg_id: str, **kwargs: Any) -> None:
        self._render("error", msg_id, **kwargs)
