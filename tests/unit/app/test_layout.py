from dataclasses import replace

from umlsync.app.formatting import display_for
from umlsync.app.layout import (
    MIN_HEIGHT,
    MIN_WIDTH,
    LayoutAdapter,
    hierarchy_ranks,
    node_size,
)
from umlsync.config import LayoutConfig
from umlsync.spec import (
    DiagramModel,
    DiagramNode,
    EntityGraph,
    Member,
    MemberKind,
    NodeDisplay,
    Relationship,
    RelationshipAdded,
    RelationshipKind,
    RelationshipRemoved,
    Symbol,
    SymbolAdded,
    SymbolKind,
    SymbolModified,
    SymbolRemoved,
)


def sym(name, *members):
    return Symbol(
        f"src/zoo::{name}",
        name,
        SymbolKind.CLASS,
        "src/zoo.ts",
        members=tuple(Member(m, MemberKind.PROPERTY, type_text="string") for m in members),
    )


ANIMAL = sym("Animal")
DOG = sym("Dog")
CAT = sym("Cat")
INHERITS = Relationship("src/zoo::Dog", "src/zoo::Animal", RelationshipKind.INHERITANCE)


def graph_of(symbols, relationships=()):
    return EntityGraph(
        version=1,
        symbols={s.key: s for s in symbols},
        relationships={r.pair: r for r in relationships},
    )


def test_node_size_has_a_minimum_and_grows_with_content():
    small = NodeDisplay(name="A", stereotype=None)
    assert node_size(small) == (MIN_WIDTH, MIN_HEIGHT)

    wide = NodeDisplay(name="A", stereotype=None, properties=("x" * 40,))
    # 40 chars * 7px + 2 * 20px padding
    assert node_size(wide)[0] == 320

    tall = NodeDisplay(name="A", stereotype=None, properties=("a", "b", "c"), methods=("m()",))
    # header 35 + (10 + 3*20) + (10 + 1*20) + padding 20
    assert node_size(tall)[1] == 155


def test_hierarchy_ranks_put_supertypes_above_subtypes():
    ranks = hierarchy_ranks(graph_of([ANIMAL, DOG, CAT], [INHERITS]))

    assert ranks == {"src/zoo::Animal": 0, "src/zoo::Cat": 0, "src/zoo::Dog": 1}


def test_hierarchy_cycles_share_a_row():
    a_to_b = Relationship("src/zoo::Dog", "src/zoo::Cat", RelationshipKind.INHERITANCE)
    b_to_a = Relationship("src/zoo::Cat", "src/zoo::Dog", RelationshipKind.INHERITANCE)

    ranks = hierarchy_ranks(graph_of([DOG, CAT], [a_to_b, b_to_a]))

    assert ranks["src/zoo::Dog"] == ranks["src/zoo::Cat"]


def test_added_nodes_are_placed_on_free_grid_slots():
    # Arrange
    graph = graph_of([ANIMAL, DOG, CAT], [INHERITS])
    events = [SymbolAdded(ANIMAL), SymbolAdded(CAT), SymbolAdded(DOG), RelationshipAdded(INHERITS)]

    # Act
    model = LayoutAdapter(LayoutConfig(column_spacing=300, row_spacing=300)).apply(
        DiagramModel(), events, graph
    )

    # Assert
    assert model.nodes["src/zoo::Animal"].position == (0, 0)
    assert model.nodes["src/zoo::Cat"].position == (300, 0)
    assert model.nodes["src/zoo::Dog"].position == (0, 300)
    edge = model.edges["src/zoo::Dog->src/zoo::Animal"]
    assert edge.style.line.value == "solid"
    assert edge.style.arrowhead.value == "hollow_triangle"


def test_existing_nodes_never_move():
    # Arrange
    layout = LayoutAdapter()
    model = layout.apply(DiagramModel(), [SymbolAdded(ANIMAL)], graph_of([ANIMAL]))
    moved = DiagramNode(
        "src/zoo::Animal", 900, 40, MIN_WIDTH, MIN_HEIGHT, display_for(ANIMAL)
    )
    model = DiagramModel(nodes={"src/zoo::Animal": moved}, edges={})
    richer = sym("Animal", "name", "age")

    # Act
    model = layout.apply(
        model,
        [SymbolModified(ANIMAL, richer), SymbolAdded(DOG)],
        graph_of([richer, DOG]),
    )

    # Assert
    animal = model.nodes["src/zoo::Animal"]
    assert animal.position == (900, 40)
    assert animal.display.properties == ("+ name: string", "+ age: string")
    assert model.nodes["src/zoo::Dog"].position == (0, 0)


def test_new_nodes_avoid_occupied_boxes():
    layout = LayoutAdapter()
    model = layout.apply(DiagramModel(), [SymbolAdded(ANIMAL)], graph_of([ANIMAL]))
    # Nudge Animal so it overlaps column 0 without sitting on its exact slot
    node = model.nodes["src/zoo::Animal"]
    model = DiagramModel(
        nodes={node.key: DiagramNode(node.key, 100, 10, node.width, node.height, node.display)},
        edges={},
    )

    model = layout.apply(model, [SymbolAdded(DOG)], graph_of([ANIMAL, DOG]))

    assert model.nodes["src/zoo::Dog"].position == (300, 0)


def test_removal_drops_node_and_touching_edges_only():
    graph = graph_of([ANIMAL, DOG, CAT], [INHERITS])
    layout = LayoutAdapter()
    model = layout.apply(
        DiagramModel(),
        [SymbolAdded(ANIMAL), SymbolAdded(CAT), SymbolAdded(DOG), RelationshipAdded(INHERITS)],
        graph,
    )
    cat_position = model.nodes["src/zoo::Cat"].position

    model = layout.apply(
        model,
        [SymbolRemoved(DOG), RelationshipRemoved(INHERITS)],
        graph_of([ANIMAL, CAT]),
    )

    assert set(model.nodes) == {"src/zoo::Animal", "src/zoo::Cat"}
    assert model.edges == {}
    assert model.nodes["src/zoo::Cat"].position == cat_position


def test_relationship_replacement_keeps_one_edge():
    layout = LayoutAdapter()
    graph = graph_of([ANIMAL, DOG], [INHERITS])
    model = layout.apply(
        DiagramModel(),
        [SymbolAdded(ANIMAL), SymbolAdded(DOG), RelationshipAdded(INHERITS)],
        graph,
    )
    association = Relationship(
        "src/zoo::Dog", "src/zoo::Animal", RelationshipKind.ASSOCIATION, "1"
    )

    # Diff order puts the addition before the removal for the same pair
    model = layout.apply(
        model,
        [RelationshipAdded(association), RelationshipRemoved(INHERITS)],
        graph_of([ANIMAL, DOG], [association]),
    )

    assert list(model.edges) == ["src/zoo::Dog->src/zoo::Animal"]
    assert model.edges["src/zoo::Dog->src/zoo::Animal"].relationship == association


def test_edges_with_missing_endpoints_are_skipped():
    model = LayoutAdapter().apply(
        DiagramModel(), [SymbolAdded(DOG), RelationshipAdded(INHERITS)], graph_of([DOG])
    )

    assert model.edges == {}


def test_surviving_nodes_pick_up_display_changes_without_events():
    # Arrange
    layout = LayoutAdapter()
    model = layout.apply(DiagramModel(), [SymbolAdded(ANIMAL)], graph_of([ANIMAL]))
    node = model.nodes["src/zoo::Animal"]
    model = DiagramModel(
        nodes={node.key: DiagramNode(node.key, 640, 20, node.width, node.height, node.display)},
        edges={},
    )
    abstract_animal = replace(ANIMAL, is_abstract=True)

    # Act
    model = layout.apply(model, [], graph_of([abstract_animal]))

    # Assert
    animal = model.nodes["src/zoo::Animal"]
    assert animal.display.stereotype == "<<abstract>>"
    assert animal.position == (640, 20)
