from unittest.mock import MagicMock

import pytest

from umlsync.app import DiagramStore, LayoutAdapter
from umlsync.index import IndexSnapshot
from umlsync.spec import (
    DiagramModel,
    EntityGraph,
    Symbol,
    SymbolAdded,
    SymbolKind,
    UnknownNodeError,
)

DOG = Symbol("src/zoo::Dog", "Dog", SymbolKind.CLASS, "src/zoo.ts")


def commit_dog(store):
    graph = EntityGraph(version=1, symbols={DOG.key: DOG})
    events = [SymbolAdded(DOG)]
    layout = LayoutAdapter()
    return store.commit(
        lambda model: layout.apply(model, events, graph),
        graph,
        IndexSnapshot(),
        [],
        events,
    )


def test_commit_swaps_state_and_notifies_listeners():
    # Arrange
    store = DiagramStore()
    listener = MagicMock()
    received = []
    store.subscribe(listener)
    store.subscribe(received.append)

    # Act
    model = commit_dog(store)

    # Assert
    assert store.version == 1
    assert store.model is model
    assert list(store.model.nodes) == ["src/zoo::Dog"]
    listener.on_diagram_changed.assert_called_once_with([SymbolAdded(DOG)])
    assert received == [[SymbolAdded(DOG)]]


def test_commit_without_events_is_silent():
    store = DiagramStore()
    received = []
    store.subscribe(received.append)

    store.commit(lambda model: model, EntityGraph(version=1), IndexSnapshot(), [], [])

    assert received == []
    assert store.version == 1


def test_unsubscribe_and_failing_listeners():
    store = DiagramStore()
    removed = []
    survivor = []

    def explode(events):
        raise RuntimeError("boom")

    unsubscribe = store.subscribe(removed.append)
    store.subscribe(explode)
    store.subscribe(survivor.append)
    unsubscribe()

    commit_dog(store)

    assert removed == []
    assert len(survivor) == 1


def test_set_node_position_moves_only_that_node():
    store = DiagramStore()
    commit_dog(store)

    store.set_node_position("src/zoo::Dog", 420, 69)

    assert store.model.nodes["src/zoo::Dog"].position == (420, 69)
    assert store.current_diagram()["nodes"][0]["position"] == {"x": 420, "y": 69}


def test_set_node_position_rejects_unknown_ids():
    store = DiagramStore()

    with pytest.raises(UnknownNodeError, match="src/zoo::Ghost"):
        store.set_node_position("src/zoo::Ghost", 0, 0)

    assert store.model == DiagramModel()
