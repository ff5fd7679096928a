import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Optional, Set, Tuple

import networkx as nx

from umlsync.spec import (
    DEFAULT_EXPORT,
    NAMESPACE,
    ROLE_TO_KIND,
    Diagnostic,
    DiagnosticKind,
    EntityGraph,
    FileTable,
    ModuleResolverProtocol,
    Relationship,
    RelationshipKind,
    Symbol,
)

log = logging.getLogger(__name__)

Pair = Tuple[str, str]


@dataclass
class BuildResult:
    graph: EntityGraph
    diagnostics: List[Diagnostic] = field(default_factory=list)


class GraphBuilder:
    def __init__(
        self, resolver: ModuleResolverProtocol, report_unresolved: bool = False
    ):
        self.resolver = resolver
        self.report_unresolved = report_unresolved

    def build(self, tables: Iterable[FileTable], version: int) -> BuildResult:
        """
        Merges per-file tables into one cross-file EntityGraph.

        Nodes: every declared Symbol, keyed by qualified name.
        Edges: at most one Relationship per ordered pair, the strongest kind
        any resolved reference implies.
        """
        ordered = sorted(tables, key=lambda t: t.path)
        diagnostics: List[Diagnostic] = []

        # 1. Collect symbols; a key claimed more than once is a conflict
        claims: Dict[str, List[Symbol]] = defaultdict(list)
        for table in ordered:
            for symbol in table.symbols:
                claims[symbol.key].append(symbol)

        symbols: Dict[str, Symbol] = {}
        conflicts: Dict[str, Tuple[Symbol, ...]] = {}
        for key in sorted(claims):
            contenders = claims[key]
            if len(contenders) == 1:
                symbols[key] = contenders[0]
                continue
            symbols[key] = contenders[0].as_conflicting()
            conflicts[key] = tuple(contenders)
            paths = tuple(sorted({s.path for s in contenders}))
            diagnostics.append(
                Diagnostic(
                    DiagnosticKind.CONFLICT,
                    paths,
                    f"'{key}' is declared {len(contenders)} times in: "
                    f"{', '.join(paths)}",
                )
            )

        # 2. Resolve references into candidate relationships
        session = _ResolutionSession(self.resolver, ordered)
        strongest: Dict[Pair, RelationshipKind] = {}
        collection_pairs: Set[Pair] = set()

        for table in ordered:
            refs = sorted(
                set(table.references),
                key=lambda r: (r.source_key, r.line, r.column, r.name, r.role.value),
            )
            for ref in refs:
                if ref.source_key in conflicts or ref.source_key not in symbols:
                    continue

                target = session.resolve(table, ref.name)
                if target is None or target not in symbols:
                    # Likely an external library or a built-in type
                    log.debug(
                        f"Dropping unresolved reference '{ref.name}' "
                        f"at {table.path}:{ref.line}:{ref.column}"
                    )
                    if self.report_unresolved:
                        diagnostics.append(
                            Diagnostic(
                                DiagnosticKind.RESOLUTION_WARNING,
                                (table.path,),
                                f"Unresolved type '{ref.name}'",
                                ref.line,
                                ref.column,
                            )
                        )
                    continue
                if target in conflicts:
                    continue

                kind = ROLE_TO_KIND[ref.role]
                pair = (ref.source_key, target)
                current = strongest.get(pair)
                if current is None or kind.precedence < current.precedence:
                    strongest[pair] = kind
                if kind is RelationshipKind.ASSOCIATION and ref.is_collection:
                    collection_pairs.add(pair)

        # 3. Materialize one relationship per ordered pair
        relationships: Dict[Pair, Relationship] = {}
        for pair in sorted(strongest):
            kind = strongest[pair]
            multiplicity = None
            if kind is RelationshipKind.ASSOCIATION:
                multiplicity = "*" if pair in collection_pairs else "1"
            relationships[pair] = Relationship(pair[0], pair[1], kind, multiplicity)

        graph = EntityGraph(
            version=version,
            symbols=symbols,
            relationships=relationships,
            conflicts=conflicts,
        )
        return BuildResult(graph=graph, diagnostics=diagnostics)

    def build_dependency_graph(self, tables: Iterable[FileTable]) -> nx.DiGraph:
        """
        Builds a file-level import graph.

        Nodes: File paths (str)
        Edges: An import or re-export from source file to target file.
        """
        ordered = sorted(tables, key=lambda t: t.path)
        graph = nx.DiGraph()
        modules: Dict[str, FileTable] = {}
        for table in ordered:
            graph.add_node(table.path)
            modules.setdefault(table.module_id, table)
        known = frozenset(modules)

        for table in ordered:
            specifiers = {b.module for b in table.bindings}
            specifiers.update(rx.module for rx in table.re_exports if rx.module)
            for specifier in sorted(specifiers):
                target_module = self.resolver.resolve(table.path, specifier, known)
                # Add edge if the target is an internal, resolved file
                if target_module is None:
                    continue
                target_path = modules[target_module].path
                if target_path != table.path:
                    graph.add_edge(table.path, target_path)
        return graph


class _ResolutionSession:
    """
    Name lookup state for one build.

    Results are cached per (file, name), so a type used many times in a file,
    or re-exported through a barrel imported from many files, is resolved once.
    """

    def __init__(self, resolver: ModuleResolverProtocol, tables: List[FileTable]):
        self.resolver = resolver
        self.modules: Dict[str, FileTable] = {}
        for table in tables:
            self.modules.setdefault(table.module_id, table)
        self.known: FrozenSet[str] = frozenset(self.modules)
        self._locals: Dict[str, Dict[str, str]] = {}
        self._cache: Dict[Tuple[str, str], Optional[str]] = {}

    def _local_names(self, table: FileTable) -> Dict[str, str]:
        names = self._locals.get(table.path)
        if names is None:
            names = {}
            for symbol in table.symbols:
                names.setdefault(symbol.name, symbol.key)
            self._locals[table.path] = names
        return names

    def _module(self, table: FileTable, specifier: str) -> Optional[FileTable]:
        module_id = self.resolver.resolve(table.path, specifier, self.known)
        return self.modules.get(module_id) if module_id is not None else None

    def resolve(self, table: FileTable, name: str) -> Optional[str]:
        cache_key = (table.path, name)
        if cache_key not in self._cache:
            self._cache[cache_key] = self._resolve_name(table, name, set())
        return self._cache[cache_key]

    def _resolve_name(
        self, table: FileTable, name: str, visited: Set[Tuple[str, str]]
    ) -> Optional[str]:
        # (a) Declarations in the same file
        local = self._local_names(table).get(name)
        if local is not None:
            return local

        # (b) Import bindings; `ns.Name` goes through a namespace import
        head, _, rest = name.partition(".")
        for binding in table.bindings:
            if binding.local_name != head:
                continue
            target = self._module(table, binding.module)
            if target is None:
                return None
            if rest:
                if binding.imported_name == NAMESPACE:
                    return self._resolve_export(target, rest, visited)
                return None
            if binding.imported_name == NAMESPACE:
                return None
            return self._resolve_export(target, binding.imported_name, visited)

        # Namespaces are flattened, so `Outer.Inner` may name a local declaration
        if rest:
            return self._local_names(table).get(name.rsplit(".", 1)[-1])

        # (c) External
        return None

    def _resolve_export(
        self, table: FileTable, name: str, visited: Set[Tuple[str, str]]
    ) -> Optional[str]:
        marker = (table.module_id, name)
        if marker in visited:
            # Re-export cycle
            return None
        visited.add(marker)

        if name != DEFAULT_EXPORT:
            local = self._local_names(table).get(name)
            if local is not None:
                return local

        # Named re-exports and local export aliases
        for rx in table.re_exports:
            if rx.exported_name != name or rx.imported_name == NAMESPACE:
                continue
            if rx.module is None:
                found = self._resolve_name(table, rx.imported_name, visited)
            else:
                target = self._module(table, rx.module)
                found = None
                if target is not None:
                    found = self._resolve_export(target, rx.imported_name, visited)
            if found is not None:
                return found

        # export * from "./x"
        for rx in table.re_exports:
            if rx.module is None or rx.imported_name != NAMESPACE:
                continue
            if rx.exported_name != NAMESPACE:
                continue
            target = self._module(table, rx.module)
            if target is None:
                continue
            found = self._resolve_export(target, name, visited)
            if found is not None:
                return found
        return None


def as_digraph(graph: EntityGraph) -> nx.DiGraph:
    """networkx view of an EntityGraph, used for layout ranking and scoping."""
    view = nx.DiGraph()
    for key in sorted(graph.symbols):
        symbol = graph.symbols[key]
        view.add_node(
            key,
            kind=symbol.kind.value,
            path=symbol.path,
            conflicting=symbol.conflicting,
        )
    for pair in sorted(graph.relationships):
        rel = graph.relationships[pair]
        view.add_edge(
            rel.source, rel.target, kind=rel.kind, multiplicity=rel.multiplicity
        )
    return view
