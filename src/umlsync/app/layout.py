import itertools
import logging
from dataclasses import replace
from typing import Dict, List, Optional, Tuple

import networkx as nx

from umlsync.config import LayoutConfig
from umlsync.spec import (
    ChangeEvent,
    DiagramEdge,
    DiagramModel,
    DiagramNode,
    EntityGraph,
    NodeDisplay,
    RelationshipAdded,
    RelationshipKind,
    RelationshipRemoved,
    SymbolAdded,
    SymbolModified,
    SymbolRemoved,
    edge_id,
    edge_style_for,
)

from .formatting import display_for

log = logging.getLogger(__name__)

# Node dimension rule (pixels)
MIN_WIDTH = 180
MIN_HEIGHT = 80
PADDING = 20
CHAR_WIDTH = 7
HEADER_CHAR_WIDTH = 9
HEADER_HEIGHT = 35
LINE_HEIGHT = 20
SECTION_SPACING = 10

_HIERARCHY_KINDS = (RelationshipKind.INHERITANCE, RelationshipKind.IMPLEMENTATION)

Box = Tuple[float, float, float, float]


def node_size(display: NodeDisplay) -> Tuple[int, int]:
    max_line_width = len(display.name) * HEADER_CHAR_WIDTH
    for line in itertools.chain(display.properties, display.methods):
        max_line_width = max(max_line_width, len(line) * CHAR_WIDTH)
    width = max(MIN_WIDTH, max_line_width + PADDING * 2)

    height = HEADER_HEIGHT
    if display.properties:
        height += SECTION_SPACING + len(display.properties) * LINE_HEIGHT
    if display.methods:
        height += SECTION_SPACING + len(display.methods) * LINE_HEIGHT
    height = max(MIN_HEIGHT, height + PADDING)
    return width, height


def _intersects(a: Box, b: Box) -> bool:
    ax, ay, aw, ah = a
    bx, by, bw, bh = b
    return ax < bx + bw and bx < ax + aw and ay < by + bh and by < ay + ah


def hierarchy_ranks(graph: EntityGraph) -> Dict[str, int]:
    """
    Row index per symbol: supertypes above their subtypes.

    Inheritance/implementation cycles are condensed into one strongly
    connected component, which shares a row.
    """
    hierarchy = nx.DiGraph()
    hierarchy.add_nodes_from(sorted(graph.symbols))
    for rel in graph.relationships.values():
        if rel.kind in _HIERARCHY_KINDS:
            hierarchy.add_edge(rel.target, rel.source)

    condensed = nx.condensation(hierarchy)
    depth: Dict[int, int] = {}
    for component in nx.topological_sort(condensed):
        parents = list(condensed.predecessors(component))
        depth[component] = max((depth[p] + 1 for p in parents), default=0)

    mapping = condensed.graph["mapping"]
    return {key: depth[mapping[key]] for key in hierarchy.nodes}


class LayoutAdapter:
    """
    Applies change events to a diagram model.

    Existing nodes are never moved: added nodes take the first free grid slot
    in their hierarchy row, modified nodes keep their position and only have
    their display data and size refreshed.
    """

    def __init__(self, config: Optional[LayoutConfig] = None):
        self.config = config or LayoutConfig()

    def apply(
        self, model: DiagramModel, events: List[ChangeEvent], graph: EntityGraph
    ) -> DiagramModel:
        nodes: Dict[str, DiagramNode] = dict(model.nodes)
        edges: Dict[str, DiagramEdge] = dict(model.edges)

        removed = [e for e in events if isinstance(e, SymbolRemoved)]
        modified = [e for e in events if isinstance(e, SymbolModified)]
        added = [e for e in events if isinstance(e, SymbolAdded)]

        # 1. Symbol events; removals first so freed space can be reused
        for event in removed:
            nodes.pop(event.key, None)
            stale = [i for i, e in edges.items() if event.key in e.relationship.pair]
            for eid in stale:
                del edges[eid]

        for event in modified:
            if event.key not in nodes:
                added.append(SymbolAdded(event.new))

        # Display data also depends on fields that raise no event (abstractness,
        # conflict flag, path), so every surviving node is checked. Positions stay.
        latest = {e.key: e.new for e in modified}
        for key, node in list(nodes.items()):
            symbol = graph.symbols.get(key, latest.get(key))
            if symbol is None:
                continue
            display = display_for(symbol)
            if display == node.display:
                continue
            width, height = node_size(display)
            nodes[key] = replace(node, display=display, width=width, height=height)

        if added:
            ranks = hierarchy_ranks(graph)
            for event in sorted(added, key=lambda e: e.key):
                nodes[event.key] = self._place(event, nodes, ranks.get(event.key, 0))

        # 2. Relationship events; removals before additions
        for event in events:
            if isinstance(event, RelationshipRemoved):
                eid = edge_id(*event.relationship.pair)
                current = edges.get(eid)
                if current is not None and current.relationship == event.relationship:
                    del edges[eid]
        for event in events:
            if isinstance(event, RelationshipAdded):
                rel = event.relationship
                if rel.source not in nodes or rel.target not in nodes:
                    log.debug(
                        f"Skipping edge {rel.source} -> {rel.target}: missing endpoint"
                    )
                    continue
                edges[edge_id(*rel.pair)] = DiagramEdge(rel, edge_style_for(rel.kind))

        return DiagramModel(nodes=nodes, edges=edges)

    def _place(
        self, event: SymbolAdded, nodes: Dict[str, DiagramNode], rank: int
    ) -> DiagramNode:
        display = display_for(event.symbol)
        width, height = node_size(display)
        y = rank * self.config.row_spacing
        occupied = [(n.x, n.y, n.width, n.height) for n in nodes.values()]
        positions = {(n.x, n.y) for n in nodes.values()}

        column = 0
        while True:
            x = column * self.config.column_spacing
            box = (x, y, width, height)
            free = (x, y) not in positions and not any(
                _intersects(box, other) for other in occupied
            )
            if free:
                return DiagramNode(event.key, x, y, width, height, display)
            column += 1
