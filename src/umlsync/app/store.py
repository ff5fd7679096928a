import logging
import threading
from dataclasses import replace
from typing import Any, Callable, Dict, List, Union

from umlsync.index import IndexSnapshot
from umlsync.spec import (
    ChangeEvent,
    Diagnostic,
    DiagramListener,
    DiagramModel,
    EntityGraph,
    UnknownNodeError,
)

log = logging.getLogger(__name__)

Listener = Union[DiagramListener, Callable[[List[ChangeEvent]], None]]


class DiagramStore:
    """
    The committed diagram, as seen by the rendering layer.

    A commit swaps model, graph, index snapshot and diagnostics in one step,
    so readers never observe a partially applied change set.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._model = DiagramModel()
        self._graph = EntityGraph.empty()
        self._index = IndexSnapshot()
        self._diagnostics: List[Diagnostic] = []
        self._listeners: List[Callable[[List[ChangeEvent]], None]] = []

    @property
    def version(self) -> int:
        return self._graph.version

    @property
    def model(self) -> DiagramModel:
        return self._model

    @property
    def graph(self) -> EntityGraph:
        return self._graph

    @property
    def index(self) -> IndexSnapshot:
        return self._index

    def current_diagram(self) -> Dict[str, Any]:
        return self._model.to_dict()

    def diagnostics(self) -> List[Diagnostic]:
        return list(self._diagnostics)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register for `on_diagram_changed(events)`; returns an unsubscribe hook."""
        callback = getattr(listener, "on_diagram_changed", listener)
        with self._lock:
            self._listeners.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._listeners:
                    self._listeners.remove(callback)

        return unsubscribe

    def set_node_position(self, node_id: str, x: float, y: float) -> None:
        with self._lock:
            node = self._model.nodes.get(node_id)
            if node is None:
                raise UnknownNodeError(node_id)
            nodes = dict(self._model.nodes)
            nodes[node_id] = replace(node, x=x, y=y)
            self._model = DiagramModel(nodes=nodes, edges=self._model.edges)

    def commit(
        self,
        update_model: Callable[[DiagramModel], DiagramModel],
        graph: EntityGraph,
        index: IndexSnapshot,
        diagnostics: List[Diagnostic],
        events: List[ChangeEvent],
    ) -> DiagramModel:
        """
        `update_model` receives the model as it is at commit time, including
        any position set since the run started, and returns its successor.
        """
        with self._lock:
            self._model = update_model(self._model)
            self._graph = graph
            self._index = index
            self._diagnostics = list(diagnostics)
            model = self._model
            listeners = list(self._listeners)

        if events:
            for callback in listeners:
                try:
                    callback(list(events))
                except Exception:
                    log.exception(f"Diagram listener {callback!r} failed")
        return model
