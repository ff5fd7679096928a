from typing import List, Optional

from umlsync.spec import (
    Member,
    MemberKind,
    NodeDisplay,
    Parameter,
    Symbol,
    SymbolKind,
    Visibility,
)

VISIBILITY_SYMBOLS = {
    Visibility.PUBLIC: "+",
    Visibility.PRIVATE: "-",
    Visibility.PROTECTED: "#",
}

_STEREOTYPES = {
    SymbolKind.INTERFACE: "<<interface>>",
    SymbolKind.ENUM: "<<enumeration>>",
    SymbolKind.TYPE_ALIAS: "<<type>>",
}

_PROPERTY_KINDS = (MemberKind.PROPERTY, MemberKind.INDEX, MemberKind.ENUM_MEMBER)
_METHOD_KINDS = (MemberKind.METHOD, MemberKind.CONSTRUCTOR)


def stereotype_for(symbol: Symbol) -> Optional[str]:
    if symbol.kind is SymbolKind.CLASS:
        return "<<abstract>>" if symbol.is_abstract else None
    return _STEREOTYPES[symbol.kind]


def _modifiers(parts: List[str]) -> str:
    return f" {{{', '.join(parts)}}}" if parts else ""


def format_parameter(parameter: Parameter) -> str:
    optional = "?" if parameter.is_optional else ""
    return f"{parameter.name}{optional}: {parameter.type_text or 'any'}"


def format_property(member: Member, is_interface: bool) -> str:
    """`+ name: string {readOnly, static}`; interfaces carry no visibility."""
    if member.kind is MemberKind.ENUM_MEMBER:
        return member.name

    prefix = "" if is_interface else VISIBILITY_SYMBOLS[member.visibility] + " "
    modifiers = []
    if member.is_readonly:
        modifiers.append("readOnly")
    if not is_interface and member.is_static:
        modifiers.append("static")
    return f"{prefix}{member.name}: {member.type_text or 'any'}" + _modifiers(modifiers)


def format_method(member: Member, is_interface: bool) -> str:
    """`# name(a?: T): R {static, abstract}`; interfaces carry no visibility."""
    prefix = "" if is_interface else VISIBILITY_SYMBOLS[member.visibility] + " "
    params = ", ".join(format_parameter(p) for p in member.parameters)
    modifiers = []
    if not is_interface and member.is_static:
        modifiers.append("static")
    if not is_interface and member.is_abstract:
        modifiers.append("abstract")
    return_type = member.return_type or "void"
    return f"{prefix}{member.name}({params}): {return_type}" + _modifiers(modifiers)


def display_for(symbol: Symbol) -> NodeDisplay:
    is_interface = symbol.kind in (SymbolKind.INTERFACE, SymbolKind.TYPE_ALIAS)
    properties = tuple(
        format_property(m, is_interface)
        for m in symbol.members
        if m.kind in _PROPERTY_KINDS
    )
    methods = tuple(
        format_method(m, is_interface)
        for m in symbol.members
        if m.kind in _METHOD_KINDS
    )
    return NodeDisplay(
        name=symbol.name,
        stereotype=stereotype_for(symbol),
        properties=properties,
        methods=methods,
        path=symbol.path,
        conflicting=symbol.conflicting,
    )
