from dataclasses import dataclass
from typing import FrozenSet, List

from tree_sitter import Node

from .grammar import node_text

# Generic wrappers whose type arguments are held many-to-one.
CONTAINER_TYPES: FrozenSet[str] = frozenset(
    {
        "Array",
        "ReadonlyArray",
        "Set",
        "ReadonlySet",
        "Map",
        "ReadonlyMap",
        "WeakMap",
        "WeakSet",
        "Iterable",
        "Promise",
        "Record",
    }
)

# Type nodes that can never name a declaration.
_LEAF_TYPES = frozenset(
    {
        "predefined_type",
        "literal_type",
        "this_type",
        "type_query",
        "template_literal_type",
        "string",
        "number",
        "true",
        "false",
        "null",
        "undefined",
    }
)


@dataclass(frozen=True)
class TypeUse:
    name: str
    line: int
    column: int
    is_collection: bool


def collect_type_uses(node: Node, type_parameters: FrozenSet[str]) -> List[TypeUse]:
    """
    Every named type mentioned in a type expression, in document order.

    `Foo[]`, `readonly Foo[]` and `Array<Foo>` style wrappings mark the use as
    a collection. Names bound as type parameters are not uses.
    """
    uses: List[TypeUse] = []
    _walk(node, type_parameters, False, uses)
    return uses


def _use(node: Node, name: str, in_collection: bool) -> TypeUse:
    row, column = node.start_point
    return TypeUse(name, row + 1, column + 1, in_collection)


def _walk(
    node: Node, type_parameters: FrozenSet[str], in_collection: bool, out: List[TypeUse]
) -> None:
    kind = node.type

    if kind in _LEAF_TYPES:
        return

    if kind == "type_identifier":
        name = node_text(node)
        if name not in type_parameters:
            out.append(_use(node, name, in_collection))
        return

    if kind == "nested_type_identifier":
        out.append(_use(node, "".join(node_text(node).split()), in_collection))
        return

    if kind == "generic_type":
        name_node = node.child_by_field_name("name") or node.named_children[0]
        args = node.child_by_field_name("type_arguments")
        is_container = node_text(name_node) in CONTAINER_TYPES
        if not is_container:
            _walk(name_node, type_parameters, in_collection, out)
        if args is not None:
            for arg in args.named_children:
                _walk(arg, type_parameters, in_collection or is_container, out)
        return

    if kind == "array_type":
        for child in node.named_children:
            _walk(child, type_parameters, True, out)
        return

    if kind in ("function_type", "constructor_type"):
        type_parameters = type_parameters | type_parameter_names(node)

    for child in node.named_children:
        if child.type == "type_parameters":
            continue
        _walk(child, type_parameters, in_collection, out)


def type_parameter_names(node: Node) -> FrozenSet[str]:
    params = node.child_by_field_name("type_parameters")
    if params is None:
        return frozenset()
    names = set()
    for param in params.named_children:
        if param.type != "type_parameter":
            continue
        name_node = param.child_by_field_name("name") or param.named_children[0]
        names.add(node_text(name_node))
    return frozenset(names)


def heritage_name(node: Node) -> str:
    """`Base`, `ns.Base` or `Base<T>` -> the name being extended."""
    if node.type == "generic_type":
        node = node.child_by_field_name("name") or node.named_children[0]
    return "".join(node_text(node).split())
