from enum import Enum

import typer

from umlsync.common import bus, umlsync_operator as nexus

from .commands.diagram import diagram_command
from .commands.diff import diff_command
from .commands.graph import graph_command
from .rendering import CliRenderer

app = typer.Typer(
    name="umlsync",
    help=nexus("cli.app.description"),
    no_args_is_help=True,
)


class LogLevel(str, Enum):
    DEBUG = "debug"
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@app.callback()
def main(
    ctx: typer.Context,
    loglevel: LogLevel = typer.Option(
        LogLevel.INFO,
        "--loglevel",
        help=nexus("cli.option.loglevel.help"),
        case_sensitive=False,
    ),
):
    # The CLI is the composition root: it decides how feedback is shown.
    previous = bus.renderer
    bus.set_renderer(CliRenderer(loglevel=loglevel.value))
    ctx.call_on_close(lambda: bus.set_renderer(previous))


app.command(name="graph", help=nexus("cli.command.graph.help"))(graph_command)
app.command(name="diagram", help=nexus("cli.command.diagram.help"))(diagram_command)
app.command(name="diff", help=nexus("cli.command.diff.help"))(diff_command)


if __name__ == "__main__":
    app()
