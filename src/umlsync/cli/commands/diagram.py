from pathlib import Path
from typing import Optional

import typer

from umlsync.analysis.scope import DiagramScope, ScopeMode, filter_by_scope, restrict
from umlsync.app import DiagramExporter
from umlsync.cli.factories import sync_workspace
from umlsync.common import bus, umlsync_operator as nexus
from umlsync.spec import ConfigError, DiagramModel, ExportError


def diagram_command(
    root: Path = typer.Option(
        Path("."), "--root", file_okay=False, help=nexus("cli.option.root.help")
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", dir_okay=False, help=nexus("cli.option.output.help")
    ),
    fmt: str = typer.Option("json", "--format", help=nexus("cli.option.format.help")),
    active_file: Optional[str] = typer.Option(
        None, "--file", help=nexus("cli.option.file.help")
    ),
    padding: int = typer.Option(30, "--padding", help=nexus("cli.option.padding.help")),
):
    try:
        context, _ = sync_workspace(root.resolve())
    except ConfigError as e:
        bus.error("error.config.invalid", error=str(e))
        raise typer.Exit(code=1)

    store = context.store
    model = store.model
    if active_file:
        scope = DiagramScope(mode=ScopeMode.FILE, active_path=active_file)
        import_graph = context.builder.build_dependency_graph(store.index.tables())
        scoped = filter_by_scope(store.graph, scope, import_graph)
        kept = restrict(store.graph, scoped.keys)
        model = DiagramModel(
            nodes={k: n for k, n in model.nodes.items() if k in kept.symbols},
            edges={
                i: e
                for i, e in model.edges.items()
                if e.relationship.pair in kept.relationships
            },
        )
        bus.info(
            "cli.diagram.scoped",
            path=active_file,
            count=len(scoped.keys),
            total=scoped.total_before_filter,
        )
    context.close()

    try:
        exporter = DiagramExporter(padding=padding)
        kwargs = dict(version=store.version, diagnostics=store.diagnostics())
        if output is None:
            typer.echo(exporter.render(model, fmt, **kwargs))
            return
        exporter.write(model, output, **kwargs)
    except ExportError as e:
        bus.error("error.export", error=str(e))
        raise typer.Exit(code=1)

    bus.success("cli.diagram.written", path=output, count=len(model.nodes))
