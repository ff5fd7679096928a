from dataclasses import replace
from typing import FrozenSet, List, Optional, Set

from tree_sitter import Node

from umlsync.spec import (
    DEFAULT_EXPORT,
    NAMESPACE,
    Diagnostic,
    DiagnosticKind,
    FileTable,
    ImportBinding,
    Member,
    MemberKind,
    Parameter,
    ParseResult,
    ReExport,
    Reference,
    ReferenceRole,
    Symbol,
    SymbolKind,
    UnsupportedFileError,
    Visibility,
    qualified_name,
)

from .grammar import first_error, grammar_for, node_text, parser_for, squash
from .modules import module_id_for
from .types import collect_type_uses, heritage_name, type_parameter_names

_CLASS_NODES = ("class_declaration", "abstract_class_declaration", "class")
_METHOD_NODES = ("method_definition", "method_signature", "abstract_method_signature")
_PARAMETER_NODES = ("required_parameter", "optional_parameter")
_ANNOTATION_NODES = (
    "type_annotation",
    "opting_type_annotation",
    "omitting_type_annotation",
    "asserts_annotation",
    "type_predicate_annotation",
)
# Statements whose children may declare more types.
_TRANSPARENT_NODES = (
    "ambient_declaration",
    "expression_statement",
    "statement_block",
    "ERROR",
)
_NAMESPACE_NODES = ("internal_module", "module")
_HERITAGE_TYPES = ("type_identifier", "nested_type_identifier", "generic_type")


class TypeScriptAdapter:
    suffixes = (".ts", ".tsx", ".mts", ".cts")

    def module_id_for(self, path: str) -> str:
        return module_id_for(path)

    def parse(self, path: str, content: str) -> ParseResult:
        grammar = grammar_for(path)
        if grammar is None:
            raise UnsupportedFileError(path)

        tree = parser_for(grammar).parse(content.encode("utf-8"))
        root = tree.root_node

        extractor = _FileExtractor(path, module_id_for(path))
        extractor.visit_statements(root, exported=False)
        table = extractor.finish()

        diagnostics: List[Diagnostic] = []
        error_node = first_error(root)
        if error_node is not None:
            row, column = error_node.start_point
            if error_node.is_missing:
                message = f"Missing '{error_node.type}'"
            else:
                snippet = squash(node_text(error_node))[:40]
                message = f"Unexpected syntax near '{snippet}'"
            diagnostics.append(
                Diagnostic(
                    DiagnosticKind.PARSE_ERROR, (path,), message, row + 1, column + 1
                )
            )
        return ParseResult(table=table, diagnostics=diagnostics)


def _annotation(node: Optional[Node]) -> Optional[Node]:
    if node is None:
        return None
    if node.type in _ANNOTATION_NODES:
        return node.named_children[0] if node.named_children else None
    return node


def _string_value(node: Optional[Node]) -> Optional[str]:
    text = node_text(node)
    if len(text) >= 2 and text[0] in "'\"`" and text[-1] == text[0]:
        return text[1:-1]
    return text or None


def _modifiers(node: Node) -> dict:
    mods = {
        "visibility": Visibility.PUBLIC,
        "static": False,
        "abstract": False,
        "readonly": False,
        "optional": False,
        "accessor": None,
        "parameter_property": False,
    }
    for child in node.children:
        kind = child.type
        if kind == "accessibility_modifier":
            mods["visibility"] = Visibility(node_text(child))
            mods["parameter_property"] = True
        elif kind in ("static", "abstract", "readonly"):
            mods[kind] = True
            if kind == "readonly":
                mods["parameter_property"] = True
        elif kind == "override_modifier":
            mods["parameter_property"] = True
        elif kind == "?":
            mods["optional"] = True
        elif kind in ("get", "set"):
            mods["accessor"] = kind

    name_node = node.child_by_field_name("name")
    if name_node is not None and name_node.type == "private_property_identifier":
        mods["visibility"] = Visibility.PRIVATE
    return mods


class _FileExtractor:
    def __init__(self, path: str, module_id: str):
        self.path = path
        self.module_id = module_id
        self.symbols: List[Symbol] = []
        self.references: List[Reference] = []
        self.bindings: List[ImportBinding] = []
        self.re_exports: List[ReExport] = []
        self._exported_names: Set[str] = set()

    def finish(self) -> FileTable:
        symbols = [
            replace(s, is_exported=True)
            if s.name in self._exported_names and not s.is_exported
            else s
            for s in self.symbols
        ]
        return FileTable(
            path=self.path,
            module_id=self.module_id,
            symbols=symbols,
            references=self.references,
            bindings=self.bindings,
            re_exports=self.re_exports,
        )

    # --- Statements ---

    def visit_statements(self, node: Node, exported: bool) -> List[str]:
        declared: List[str] = []
        for child in node.named_children:
            declared.extend(self.visit_statement(child, exported))
        return declared

    def visit_statement(self, node: Node, exported: bool) -> List[str]:
        kind = node.type
        if kind in _CLASS_NODES:
            return self._class(node, exported)
        if kind == "interface_declaration":
            return self._interface(node, exported)
        if kind == "enum_declaration":
            return self._enum(node, exported)
        if kind == "type_alias_declaration":
            return self._type_alias(node, exported)
        if kind == "export_statement":
            self._export(node)
        elif kind == "import_statement":
            self._import(node)
        elif kind in _TRANSPARENT_NODES:
            return self.visit_statements(node, exported)
        elif kind in _NAMESPACE_NODES:
            body = node.child_by_field_name("body")
            if body is not None:
                return self.visit_statements(body, exported)
        return []

    def _add_symbol(
        self, node: Node, name: str, kind: SymbolKind, **kwargs
    ) -> List[str]:
        self.symbols.append(
            Symbol(
                key=qualified_name(self.module_id, name),
                name=name,
                kind=kind,
                path=self.path,
                line=node.start_point[0] + 1,
                **kwargs,
            )
        )
        return [name]

    # --- Declarations ---

    def _class(self, node: Node, exported: bool) -> List[str]:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            # Anonymous class expression
            return []
        name = node_text(name_node)
        key = qualified_name(self.module_id, name)
        type_params = type_parameter_names(node)
        is_abstract = node.type == "abstract_class_declaration" or any(
            c.type == "abstract" for c in node.children
        )

        for child in node.children:
            if child.type != "class_heritage":
                continue
            for clause in child.named_children:
                if clause.type == "extends_clause":
                    self._class_extends(clause, key, type_params)
                elif clause.type == "implements_clause":
                    for type_node in clause.named_children:
                        self._heritage_ref(
                            type_node, ReferenceRole.IMPLEMENTS, key, type_params
                        )

        body = node.child_by_field_name("body")
        members = self._class_members(body, key, type_params) if body else []
        return self._add_symbol(
            node,
            name,
            SymbolKind.CLASS,
            members=tuple(members),
            is_abstract=is_abstract,
            is_exported=exported,
            type_parameters=tuple(sorted(type_params)),
        )

    def _class_extends(
        self, clause: Node, key: str, type_params: FrozenSet[str]
    ) -> None:
        values = clause.children_by_field_name("value") or [
            c for c in clause.named_children if c.type != "type_arguments"
        ]
        if not values:
            return
        # A class has a single superclass; only plain (dotted) names can be resolved.
        base = values[0]
        if base.type not in ("identifier", "member_expression", "nested_identifier"):
            return
        name = "".join(node_text(base).split())
        if name in type_params:
            return
        row, column = base.start_point
        self.references.append(
            Reference(name, ReferenceRole.EXTENDS, key, row + 1, column + 1)
        )

    def _heritage_ref(
        self,
        type_node: Node,
        role: ReferenceRole,
        key: str,
        type_params: FrozenSet[str],
    ) -> None:
        if type_node.type not in _HERITAGE_TYPES:
            return
        name = heritage_name(type_node)
        if not name or name in type_params:
            return
        row, column = type_node.start_point
        self.references.append(Reference(name, role, key, row + 1, column + 1))

    def _interface(self, node: Node, exported: bool) -> List[str]:
        name = node_text(node.child_by_field_name("name"))
        if not name:
            return []
        key = qualified_name(self.module_id, name)
        type_params = type_parameter_names(node)

        for child in node.children:
            if child.type != "extends_type_clause":
                continue
            types = child.children_by_field_name("type") or child.named_children
            for type_node in types:
                self._heritage_ref(type_node, ReferenceRole.EXTENDS, key, type_params)

        body = node.child_by_field_name("body")
        members = self._signature_members(body, key, type_params) if body else []
        return self._add_symbol(
            node,
            name,
            SymbolKind.INTERFACE,
            members=tuple(members),
            is_exported=exported,
            type_parameters=tuple(sorted(type_params)),
        )

    def _enum(self, node: Node, exported: bool) -> List[str]:
        name = node_text(node.child_by_field_name("name"))
        if not name:
            return []
        members: List[Member] = []
        body = node.child_by_field_name("body")
        for child in body.named_children if body else []:
            if child.type == "enum_assignment":
                child = child.child_by_field_name("name") or child.named_children[0]
            if child.type in ("property_identifier", "string", "identifier"):
                if child.type == "string":
                    member_name = _string_value(child)
                else:
                    member_name = node_text(child)
                members.append(Member(member_name or "", MemberKind.ENUM_MEMBER))
        return self._add_symbol(
            node, name, SymbolKind.ENUM, members=tuple(members), is_exported=exported
        )

    def _type_alias(self, node: Node, exported: bool) -> List[str]:
        name = node_text(node.child_by_field_name("name"))
        if not name:
            return []
        key = qualified_name(self.module_id, name)
        type_params = type_parameter_names(node)
        value = node.child_by_field_name("value")
        # Only object-literal aliases describe a structure worth a node body.
        members: List[Member] = []
        if value is not None and value.type == "object_type":
            members = self._signature_members(value, key, type_params)
        return self._add_symbol(
            node,
            name,
            SymbolKind.TYPE_ALIAS,
            members=tuple(members),
            is_exported=exported,
            type_parameters=tuple(sorted(type_params)),
        )

    # --- Members ---

    def _class_members(
        self, body: Node, key: str, type_params: FrozenSet[str]
    ) -> List[Member]:
        members: List[Member] = []
        for child in body.named_children:
            if child.type == "public_field_definition":
                members.append(self._property(child, key, type_params))
            elif child.type in _METHOD_NODES:
                members.extend(self._method(child, key, type_params, members))
            elif child.type == "index_signature":
                members.append(self._index_signature(child, key, type_params))
        return members

    def _signature_members(
        self, body: Node, key: str, type_params: FrozenSet[str]
    ) -> List[Member]:
        members: List[Member] = []
        for child in body.named_children:
            if child.type == "property_signature":
                members.append(self._property(child, key, type_params))
            elif child.type == "method_signature":
                members.extend(self._method(child, key, type_params, members))
            elif child.type == "index_signature":
                members.append(self._index_signature(child, key, type_params))
        return members

    def _type_refs(
        self,
        type_node: Optional[Node],
        role: ReferenceRole,
        key: str,
        type_params: FrozenSet[str],
    ) -> Optional[str]:
        """Record references for a type expression and return its text."""
        if type_node is None:
            return None
        for use in collect_type_uses(type_node, type_params):
            self.references.append(
                Reference(use.name, role, key, use.line, use.column, use.is_collection)
            )
        return squash(node_text(type_node))

    def _property(self, node: Node, key: str, type_params: FrozenSet[str]) -> Member:
        mods = _modifiers(node)
        type_node = _annotation(node.child_by_field_name("type"))
        type_text = self._type_refs(
            type_node, ReferenceRole.FIELD_TYPE, key, type_params
        )
        return Member(
            name=node_text(node.child_by_field_name("name")),
            kind=MemberKind.PROPERTY,
            visibility=mods["visibility"],
            type_text=type_text,
            is_static=mods["static"],
            is_abstract=mods["abstract"],
            is_readonly=mods["readonly"],
            is_optional=mods["optional"],
        )

    def _index_signature(
        self, node: Node, key: str, type_params: FrozenSet[str]
    ) -> Member:
        index_name = node_text(node.child_by_field_name("name")) or "key"
        type_node = _annotation(node.child_by_field_name("type"))
        type_text = self._type_refs(
            type_node, ReferenceRole.FIELD_TYPE, key, type_params
        )
        return Member(
            name=f"[{index_name}]",
            kind=MemberKind.INDEX,
            type_text=type_text,
            is_readonly=any(c.type == "readonly" for c in node.children),
        )

    def _method(
        self,
        node: Node,
        key: str,
        type_params: FrozenSet[str],
        existing: List[Member],
    ) -> List[Member]:
        mods = _modifiers(node)
        name = node_text(node.child_by_field_name("name"))
        is_constructor = name == "constructor" and node.type == "method_definition"
        scope = type_params | type_parameter_names(node)

        extra: List[Member] = []
        parameters: List[Parameter] = []
        params_node = node.child_by_field_name("parameters")
        for param in params_node.named_children if params_node else []:
            if param.type not in _PARAMETER_NODES:
                continue
            pattern = param.child_by_field_name("pattern")
            param_name = squash(node_text(pattern))
            if param_name == "this":
                continue
            param_mods = _modifiers(param)
            is_optional = param.type == "optional_parameter"
            is_param_property = is_constructor and param_mods["parameter_property"]
            role = (
                ReferenceRole.FIELD_TYPE
                if is_param_property
                else ReferenceRole.PARAMETER_TYPE
            )
            type_text = self._type_refs(
                _annotation(param.child_by_field_name("type")), role, key, scope
            )
            parameters.append(Parameter(param_name, type_text, is_optional))
            if is_param_property:
                extra.append(
                    Member(
                        name=param_name,
                        kind=MemberKind.PROPERTY,
                        visibility=param_mods["visibility"],
                        type_text=type_text,
                        is_readonly=param_mods["readonly"],
                        is_optional=is_optional,
                    )
                )

        accessor = mods["accessor"]
        return_role = (
            ReferenceRole.FIELD_TYPE if accessor == "get" else ReferenceRole.RETURN_TYPE
        )
        return_node = _annotation(node.child_by_field_name("return_type"))
        return_type = self._type_refs(return_node, return_role, key, scope)

        if accessor is not None:
            # Accessors present as a property; a get/set pair yields one member.
            if any(m.name == name and m.kind == MemberKind.PROPERTY for m in existing):
                return []
            type_text = return_type if accessor == "get" else (
                parameters[0].type_text if parameters else None
            )
            return [
                Member(
                    name=name,
                    kind=MemberKind.PROPERTY,
                    visibility=mods["visibility"],
                    type_text=type_text,
                    is_static=mods["static"],
                    is_abstract=mods["abstract"],
                )
            ]

        member = Member(
            name=name,
            kind=MemberKind.CONSTRUCTOR if is_constructor else MemberKind.METHOD,
            visibility=mods["visibility"],
            is_static=mods["static"],
            is_abstract=mods["abstract"] or node.type == "abstract_method_signature",
            is_optional=mods["optional"],
            parameters=tuple(parameters),
            return_type=return_type,
        )
        return [member] + extra

    # --- Module structure ---

    def _export(self, node: Node) -> None:
        is_default = any(c.type == "default" for c in node.children)
        declaration = node.child_by_field_name("declaration")
        if declaration is not None:
            declared = self.visit_statement(declaration, exported=True)
            if is_default and declared:
                self.re_exports.append(ReExport(None, declared[0], DEFAULT_EXPORT))
            return

        value = node.child_by_field_name("value")
        if value is not None:
            if value.type == "class":
                declared = self._class(value, exported=True)
            elif value.type == "identifier":
                declared = [node_text(value)]
                self._exported_names.update(declared)
            else:
                declared = []
            if declared:
                self.re_exports.append(ReExport(None, declared[0], DEFAULT_EXPORT))
            return

        module = _string_value(node.child_by_field_name("source"))
        has_clause = False
        for child in node.named_children:
            if child.type == "export_clause":
                has_clause = True
                for spec in child.named_children:
                    if spec.type != "export_specifier":
                        continue
                    name = node_text(spec.child_by_field_name("name"))
                    alias = spec.child_by_field_name("alias")
                    exported_as = node_text(alias) if alias is not None else name
                    self.re_exports.append(ReExport(module, name, exported_as))
                    if module is None:
                        self._exported_names.add(name)
            elif child.type == "namespace_export":
                has_clause = True
                alias_node = child.named_children[0] if child.named_children else None
                alias = _string_value(alias_node) if alias_node is not None else None
                if module and alias:
                    self.re_exports.append(ReExport(module, NAMESPACE, alias))
        if module and not has_clause:
            # export * from "./x"
            self.re_exports.append(ReExport(module, NAMESPACE, NAMESPACE))

    def _import(self, node: Node) -> None:
        module = _string_value(node.child_by_field_name("source"))
        for child in node.named_children:
            if child.type == "import_clause" and module:
                self._import_clause(child, module)
            elif child.type == "import_require_clause":
                # import x = require("./y")
                source = _string_value(child.child_by_field_name("source"))
                idents = [c for c in child.named_children if c.type == "identifier"]
                if source and idents:
                    self.bindings.append(
                        ImportBinding(node_text(idents[0]), source, NAMESPACE)
                    )

    def _import_clause(self, clause: Node, module: str) -> None:
        for part in clause.named_children:
            if part.type == "identifier":
                self.bindings.append(
                    ImportBinding(node_text(part), module, DEFAULT_EXPORT)
                )
            elif part.type == "namespace_import":
                idents = [c for c in part.named_children if c.type == "identifier"]
                if idents:
                    self.bindings.append(
                        ImportBinding(node_text(idents[0]), module, NAMESPACE)
                    )
            elif part.type == "named_imports":
                for spec in part.named_children:
                    if spec.type != "import_specifier":
                        continue
                    name = node_text(spec.child_by_field_name("name"))
                    alias = spec.child_by_field_name("alias")
                    local = node_text(alias) if alias is not None else name
                    self.bindings.append(ImportBinding(local, module, name))

