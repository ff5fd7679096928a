from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Set

import networkx as nx

from umlsync.spec import EntityGraph


class ScopeMode(str, Enum):
    PROJECT = "project"
    FILE = "file"


@dataclass(frozen=True)
class DiagramScope:
    mode: ScopeMode = ScopeMode.PROJECT
    active_path: Optional[str] = None
    max_depth: int = 5


@dataclass(frozen=True)
class InclusionReason:
    kind: str  # "project", "local" or "imported"
    path: Optional[str] = None


@dataclass
class ScopedEntities:
    keys: List[str] = field(default_factory=list)
    reasons: Dict[str, InclusionReason] = field(default_factory=dict)
    total_before_filter: int = 0


def filter_by_scope(
    graph: EntityGraph, scope: DiagramScope, import_graph: Optional[nx.DiGraph] = None
) -> ScopedEntities:
    """
    Select the symbols a diagram should show.

    Project mode keeps everything. File mode keeps the active file's symbols,
    then walks the import graph breadth first (up to `max_depth` hops) and
    pulls in each imported symbol that has a relationship, in either
    direction, with a symbol already included.
    """
    result = ScopedEntities(total_before_filter=len(graph.symbols))

    if scope.mode is ScopeMode.PROJECT:
        for key in sorted(graph.symbols):
            result.keys.append(key)
            result.reasons[key] = InclusionReason("project")
        return result

    if not scope.active_path:
        return result

    for symbol in graph.symbols_in(scope.active_path):
        result.keys.append(symbol.key)
        result.reasons[symbol.key] = InclusionReason("local", scope.active_path)

    if import_graph is None or scope.active_path not in import_graph:
        return result

    neighbours: Dict[str, Set[str]] = {}
    for rel in graph.relationships.values():
        neighbours.setdefault(rel.source, set()).add(rel.target)
        neighbours.setdefault(rel.target, set()).add(rel.source)

    included: Set[str] = set(result.keys)
    visited: Set[str] = {scope.active_path}
    direct = sorted(import_graph.successors(scope.active_path))
    queue = deque((path, 1) for path in direct)

    while queue:
        path, depth = queue.popleft()
        if path in visited or depth > scope.max_depth:
            continue
        visited.add(path)

        for symbol in graph.symbols_in(path):
            if symbol.key in included:
                continue
            if neighbours.get(symbol.key, set()) & included:
                included.add(symbol.key)
                result.keys.append(symbol.key)
                result.reasons[symbol.key] = InclusionReason(
                    "imported", scope.active_path
                )

        # Transitive imports
        for next_path in sorted(import_graph.successors(path)):
            if next_path not in visited:
                queue.append((next_path, depth + 1))

    return result


def restrict(graph: EntityGraph, keys: Iterable[str]) -> EntityGraph:
    """The subgraph induced by `keys`."""
    wanted = set(keys)
    return EntityGraph(
        version=graph.version,
        symbols={k: s for k, s in graph.symbols.items() if k in wanted},
        relationships={
            pair: rel
            for pair, rel in graph.relationships.items()
            if rel.source in wanted and rel.target in wanted
        },
        conflicts={k: c for k, c in graph.conflicts.items() if k in wanted},
    )
