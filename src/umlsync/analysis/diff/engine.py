from typing import List

from umlsync.spec import (
    ChangeEvent,
    EntityGraph,
    RelationshipAdded,
    RelationshipRemoved,
    SymbolAdded,
    SymbolModified,
    SymbolRemoved,
    event_sort_key,
)


class DiffEngine:
    def diff(self, old: EntityGraph, new: EntityGraph) -> List[ChangeEvent]:
        """
        Compare two graph versions.

        Symbols are compared by kind and member signatures only, so a file
        move or a changed declaration line produces no event by itself. The
        result is sorted by (qualified name, event kind, target key) and is
        therefore identical for identical inputs.
        """
        events: List[ChangeEvent] = []

        # 1. Symbols
        for key in old.symbols.keys() - new.symbols.keys():
            events.append(SymbolRemoved(old.symbols[key]))
        for key in new.symbols.keys() - old.symbols.keys():
            events.append(SymbolAdded(new.symbols[key]))
        for key in old.symbols.keys() & new.symbols.keys():
            before, after = old.symbols[key], new.symbols[key]
            if before.signature != after.signature:
                events.append(SymbolModified(before, after))

        # 2. Relationships; a kind or multiplicity change is a replacement
        for pair in old.relationships.keys() | new.relationships.keys():
            before = old.relationships.get(pair)
            after = new.relationships.get(pair)
            if before == after:
                continue
            if before is not None:
                events.append(RelationshipRemoved(before))
            if after is not None:
                events.append(RelationshipAdded(after))

        events.sort(key=event_sort_key)
        return events
