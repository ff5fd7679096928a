import json

import yaml
from typer.testing import CliRunner

from umlsync.cli.main import app
from umlsync.common import bus
from umlsync.test_utils import WorkspaceFactory

runner = CliRunner()


def make_zoo(factory):
    return (
        factory.with_config({"scan_paths": ["src"]})
        .with_source("src/animal.ts", "export abstract class Animal { name: string; }")
        .with_source(
            "src/dog.ts",
            """
            import { Animal } from "./animal";
            export class Dog extends Animal {}
            """,
        )
        .with_source("node_modules/lib/index.ts", "export class Vendor {}")
        .build()
    )


def test_graph_command_lists_symbols_and_relationships(workspace_factory):
    root = make_zoo(workspace_factory)

    result = runner.invoke(app, ["graph", "--root", str(root)], catch_exceptions=False)

    assert result.exit_code == 0, result.output
    assert "src/animal::Animal" in result.output
    assert "src/dog::Dog --inheritance--> src/animal::Animal" in result.output
    assert "Vendor" not in result.output
    assert "Found 2 symbol(s) and 1 relationship(s)." in result.output


def test_graph_command_json_output_is_clean_at_default_loglevel(workspace_factory):
    root = make_zoo(workspace_factory)

    result = runner.invoke(app, ["graph", "--root", str(root), "--json"])

    assert result.exit_code == 0, result.output
    # Feedback goes to stderr, so stdout stays parseable
    assert "Syncing 2 file(s) (run 1)..." in result.stderr
    data = json.loads(result.stdout)
    assert [s["key"] for s in data["symbols"]] == ["src/animal::Animal", "src/dog::Dog"]
    assert data["relationships"][0]["kind"] == "inheritance"


def test_diagram_command_writes_json_file(workspace_factory, tmp_path):
    root = make_zoo(workspace_factory)
    output = tmp_path / "exports" / "zoo.json"

    result = runner.invoke(
        app, ["diagram", "--root", str(root), "--output", str(output)]
    )

    assert result.exit_code == 0, result.output
    data = json.loads(output.read_text())
    assert [n["id"] for n in data["nodes"]] == ["src/animal::Animal", "src/dog::Dog"]
    assert data["edges"][0]["style"]["arrowhead"] == "hollow_triangle"
    assert data["bounds"] is not None
    assert "Wrote 2 node(s)" in result.output


def test_diagram_command_prints_yaml(workspace_factory):
    root = make_zoo(workspace_factory)

    result = runner.invoke(
        app, ["diagram", "--root", str(root), "--format", "yaml"]
    )

    assert result.exit_code == 0, result.output
    assert "Diagram updated to version 1" in result.stderr
    data = yaml.safe_load(result.stdout)
    assert data["version"] == 1
    assert len(data["nodes"]) == 2


def test_diagram_command_scopes_to_a_file(workspace_factory):
    root = (
        workspace_factory.with_source(
            "src/app.ts",
            """
            import { Service } from "./service";
            export class App { service: Service; }
            """,
        )
        .with_source("src/service.ts", "export class Service {}\nexport class Other {}")
        .build()
    )

    result = runner.invoke(
        app, ["diagram", "--root", str(root), "--file", "src/app.ts"]
    )

    assert result.exit_code == 0, result.output
    assert "Showing 2 of 3 symbol(s) reachable from src/app.ts." in result.output
    assert "src/service::Other" not in result.output


def test_diagram_command_rejects_bad_format(workspace_factory):
    root = make_zoo(workspace_factory)

    result = runner.invoke(app, ["diagram", "--root", str(root), "--format", "svg"])

    assert result.exit_code == 1
    assert "Export failed: Unsupported export format 'svg'" in result.output


def test_diff_command_between_two_workspaces(tmp_path):
    old_root = (
        WorkspaceFactory(tmp_path / "old")
        .with_source("src/a.ts", "export class A {}\nexport class B {}")
        .build()
    )
    new_root = (
        WorkspaceFactory(tmp_path / "new")
        .with_source("src/a.ts", "export class A {}\nexport class C extends A {}")
        .build()
    )

    result = runner.invoke(
        app, ["--loglevel", "error", "diff", str(old_root), str(new_root), "--json"]
    )

    assert result.exit_code == 0, result.output
    events = [json.loads(line) for line in result.stdout.splitlines()]
    assert [(e["event"], e["key"]) for e in events] == [
        ("SymbolRemoved", "src/a::B"),
        ("SymbolAdded", "src/a::C"),
        ("RelationshipAdded", "src/a::C"),
    ]


def test_invalid_config_exits_with_error(workspace_factory):
    root = workspace_factory.with_config({"quiescence_ms": -5}).build()

    result = runner.invoke(app, ["graph", "--root", str(root)])

    assert result.exit_code == 1
    assert "Invalid configuration" in result.output


def test_cli_restores_the_previous_bus_renderer(workspace_factory):
    root = make_zoo(workspace_factory)
    previous = bus.renderer

    result = runner.invoke(app, ["graph", "--root", str(root)])

    assert result.exit_code == 0, result.output
    assert bus.renderer is previous
