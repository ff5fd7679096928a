import json
from pathlib import Path

import typer

from umlsync.app.export import graph_to_dict
from umlsync.cli.factories import sync_workspace
from umlsync.common import bus, umlsync_operator as nexus
from umlsync.spec import ConfigError


def graph_command(
    root: Path = typer.Option(
        Path("."), "--root", file_okay=False, help=nexus("cli.option.root.help")
    ),
    as_json: bool = typer.Option(False, "--json", help=nexus("cli.option.json.help")),
):
    try:
        context, _ = sync_workspace(root.resolve())
    except ConfigError as e:
        bus.error("error.config.invalid", error=str(e))
        raise typer.Exit(code=1)

    graph = context.store.graph
    context.close()

    if as_json:
        typer.echo(json.dumps(graph_to_dict(graph), indent=2))
        return

    for key in sorted(graph.symbols):
        symbol = graph.symbols[key]
        marker = " [conflict]" if symbol.conflicting else ""
        typer.echo(f"{symbol.kind.value:<10} {key}{marker}")
    for pair in sorted(graph.relationships):
        rel = graph.relationships[pair]
        label = rel.kind.value
        if rel.multiplicity:
            label += f" {rel.multiplicity}"
        typer.echo(f"{rel.source} --{label}--> {rel.target}")

    bus.success(
        "cli.graph.summary",
        symbols=len(graph.symbols),
        relationships=len(graph.relationships),
    )
