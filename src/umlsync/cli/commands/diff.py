import json
from pathlib import Path

import typer

from umlsync.cli.factories import sync_workspace
from umlsync.common import bus, umlsync_operator as nexus
from umlsync.spec import ConfigError, event_to_dict


def diff_command(
    old_root: Path = typer.Argument(
        ..., exists=True, file_okay=False, help=nexus("cli.argument.old_root.help")
    ),
    new_root: Path = typer.Argument(
        ..., exists=True, file_okay=False, help=nexus("cli.argument.new_root.help")
    ),
    as_json: bool = typer.Option(False, "--json", help=nexus("cli.option.json.help")),
):
    try:
        old_context, _ = sync_workspace(old_root.resolve())
        new_context, _ = sync_workspace(new_root.resolve())
    except ConfigError as e:
        bus.error("error.config.invalid", error=str(e))
        raise typer.Exit(code=1)

    events = new_context.differ.diff(old_context.store.graph, new_context.store.graph)
    old_context.close()
    new_context.close()

    for event in events:
        data = event_to_dict(event)
        if as_json:
            typer.echo(json.dumps(data, sort_keys=True))
            continue
        line = f"{data['event']:<20} {data['key']}"
        if "target" in data:
            line += f" -> {data['target']} ({data['kind']})"
        typer.echo(line)

    if events:
        bus.info("cli.diff.summary", count=len(events))
    else:
        bus.success("cli.diff.none")
