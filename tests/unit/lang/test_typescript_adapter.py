from textwrap import dedent

import pytest

from umlsync.lang.typescript import TypeScriptAdapter
from umlsync.spec import (
    DEFAULT_EXPORT,
    NAMESPACE,
    DiagnosticKind,
    ImportBinding,
    MemberKind,
    ReExport,
    ReferenceRole,
    SymbolKind,
    UnsupportedFileError,
    Visibility,
)


def parse(code: str, path: str = "src/zoo.ts"):
    return TypeScriptAdapter().parse(path, dedent(code))


def symbol_named(table, name):
    return next(s for s in table.symbols if s.name == name)


def member_named(symbol, name):
    return next(m for m in symbol.members if m.name == name)


def refs_from(table, key):
    return [(r.name, r.role, r.is_collection) for r in table.references if r.source_key == key]


def test_class_with_members_and_modifiers():
    result = parse(
        """
        export abstract class Animal {
          protected name: string;
          static count: number = 0;
          readonly legs?: number;
          #secret: string;

          constructor(name: string) {
            this.name = name;
          }

          abstract speak(): string;

          static create(kind: string, loud?: boolean): Animal {
            return null;
          }
        }
        """
    )

    assert result.is_clean
    table = result.table
    assert table.module_id == "src/zoo"

    animal = symbol_named(table, "Animal")
    assert animal.key == "src/zoo::Animal"
    assert animal.kind is SymbolKind.CLASS
    assert animal.is_abstract
    assert animal.is_exported
    assert animal.line == 2

    name = member_named(animal, "name")
    assert name.kind is MemberKind.PROPERTY
    assert name.visibility is Visibility.PROTECTED
    assert name.type_text == "string"

    count = member_named(animal, "count")
    assert count.is_static

    legs = member_named(animal, "legs")
    assert legs.is_readonly
    assert legs.is_optional

    assert member_named(animal, "#secret").visibility is Visibility.PRIVATE

    ctor = member_named(animal, "constructor")
    assert ctor.kind is MemberKind.CONSTRUCTOR
    assert [(p.name, p.type_text) for p in ctor.parameters] == [("name", "string")]

    speak = member_named(animal, "speak")
    assert speak.kind is MemberKind.METHOD
    assert speak.is_abstract
    assert speak.return_type == "string"

    create = member_named(animal, "create")
    assert create.is_static
    assert [(p.name, p.is_optional) for p in create.parameters] == [
        ("kind", False),
        ("loud", True),
    ]
    assert create.return_type == "Animal"


def test_heritage_produces_extends_and_implements_references():
    result = parse(
        """
        class Dog extends Animal implements Pet, Serializable<Dog> {}
        interface Pet extends Named, Aged {}
        """
    )
    table = result.table

    assert refs_from(table, "src/zoo::Dog") == [
        ("Animal", ReferenceRole.EXTENDS, False),
        ("Pet", ReferenceRole.IMPLEMENTS, False),
        ("Serializable", ReferenceRole.IMPLEMENTS, False),
    ]
    assert refs_from(table, "src/zoo::Pet") == [
        ("Named", ReferenceRole.EXTENDS, False),
        ("Aged", ReferenceRole.EXTENDS, False),
    ]


def test_type_references_mark_collections_and_skip_type_parameters():
    result = parse(
        """
        class Kennel<T> {
          resident: Dog;
          visitors: Dog[];
          toys: Array<Toy>;
          slot: T;
          feed(food: Food): Bowl {
            return null;
          }
        }
        """
    )
    refs = refs_from(result.table, "src/zoo::Kennel")

    assert ("Dog", ReferenceRole.FIELD_TYPE, False) in refs
    assert ("Dog", ReferenceRole.FIELD_TYPE, True) in refs
    assert ("Toy", ReferenceRole.FIELD_TYPE, True) in refs
    assert ("Food", ReferenceRole.PARAMETER_TYPE, False) in refs
    assert ("Bowl", ReferenceRole.RETURN_TYPE, False) in refs
    assert all(name != "T" for name, _, _ in refs)
    assert all(name != "Array" for name, _, _ in refs)


def test_constructor_parameter_properties_and_accessors_become_properties():
    result = parse(
        """
        class Service {
          constructor(private readonly repo: Repository, label: string) {}
          get size(): number { return 0; }
          set size(value: number) {}
        }
        """
    )
    service = symbol_named(result.table, "Service")

    repo = member_named(service, "repo")
    assert repo.kind is MemberKind.PROPERTY
    assert repo.visibility is Visibility.PRIVATE
    assert repo.is_readonly
    assert [m.name for m in service.members if m.name == "label"] == []

    sizes = [m for m in service.members if m.name == "size"]
    assert len(sizes) == 1
    assert sizes[0].kind is MemberKind.PROPERTY
    assert sizes[0].type_text == "number"

    refs = refs_from(result.table, "src/zoo::Service")
    assert ("Repository", ReferenceRole.FIELD_TYPE, False) in refs


def test_interface_enum_and_type_alias_symbols():
    result = parse(
        """
        export interface Shape {
          area(): number;
          readonly sides?: number;
        }
        export enum Color { Red, Green = "g", "Blue" }
        export type Point = { x: number; y: number };
        type Id = string;
        """
    )
    table = result.table

    shape = symbol_named(table, "Shape")
    assert shape.kind is SymbolKind.INTERFACE
    assert member_named(shape, "area").kind is MemberKind.METHOD
    sides = member_named(shape, "sides")
    assert sides.is_readonly and sides.is_optional

    color = symbol_named(table, "Color")
    assert color.kind is SymbolKind.ENUM
    assert [m.name for m in color.members] == ["Red", "Green", "Blue"]
    assert all(m.kind is MemberKind.ENUM_MEMBER for m in color.members)

    point = symbol_named(table, "Point")
    assert point.kind is SymbolKind.TYPE_ALIAS
    assert [m.name for m in point.members] == ["x", "y"]

    ident = symbol_named(table, "Id")
    assert ident.members == ()
    assert not ident.is_exported


def test_imports_are_recorded_as_bindings():
    result = parse(
        """
        import { Animal, Pet as Companion } from "./animal";
        import * as shapes from "../shapes";
        import Zoo from "./zoo";
        import type { Keeper } from "./keeper";
        """
    )

    assert result.table.bindings == [
        ImportBinding("Animal", "./animal", "Animal"),
        ImportBinding("Companion", "./animal", "Pet"),
        ImportBinding("shapes", "../shapes", NAMESPACE),
        ImportBinding("Zoo", "./zoo", DEFAULT_EXPORT),
        ImportBinding("Keeper", "./keeper", "Keeper"),
    ]


def test_exports_and_re_exports():
    result = parse(
        """
        class Hidden {}
        class Shown {}
        export { Shown, Hidden as Alias };
        export { Dog as Puppy } from "./dog";
        export * from "./cat";
        export default class Main {}
        """
    )
    table = result.table

    assert symbol_named(table, "Shown").is_exported
    assert symbol_named(table, "Hidden").is_exported
    assert symbol_named(table, "Main").is_exported
    assert table.re_exports == [
        ReExport(None, "Shown", "Shown"),
        ReExport(None, "Hidden", "Alias"),
        ReExport("./dog", "Dog", "Puppy"),
        ReExport("./cat", NAMESPACE, NAMESPACE),
        ReExport(None, "Main", DEFAULT_EXPORT),
    ]


def test_namespace_declarations_are_flattened_into_the_module():
    result = parse(
        """
        namespace Geometry {
          export class Circle {}
        }
        """
    )

    assert [s.key for s in result.table.symbols] == ["src/zoo::Circle"]


def test_syntax_error_yields_diagnostic_and_partial_table():
    result = parse(
        """
        export class Good {}
        export class Broken {
          size: number;
        """
    )

    assert not result.is_clean
    diag = result.diagnostics[0]
    assert diag.kind is DiagnosticKind.PARSE_ERROR
    assert diag.paths == ("src/zoo.ts",)
    assert diag.line is not None
    assert "Good" in [s.name for s in result.table.symbols]


def test_tsx_files_use_the_tsx_grammar():
    result = parse(
        """
        export class View {
          render(): Element { return <div/>; }
        }
        """,
        path="src/view.tsx",
    )

    assert result.is_clean
    assert result.table.module_id == "src/view"
    assert symbol_named(result.table, "View").kind is SymbolKind.CLASS


def test_unknown_suffix_is_rejected():
    with pytest.raises(UnsupportedFileError):
        TypeScriptAdapter().parse("README.md", "# hi")
