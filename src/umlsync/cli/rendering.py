import typer

from umlsync.common.messaging import LEVELS, Renderer


class CliRenderer(Renderer):
    """
    Renders messages to the command line using Typer for colored output.

    Messages below `loglevel` are dropped. Feedback goes to stderr.
    """

    def __init__(self, loglevel: str = "info"):
        self.threshold = LEVELS.index(loglevel)

    def render(self, message: str, level: str) -> None:
        if LEVELS.index(level) < self.threshold:
            return

        color = None
        if level == "success":
            color = typer.colors.GREEN
        elif level == "warning":
            color = typer.colors.YELLOW
        elif level == "error":
            color = typer.colors.RED
        elif level == "debug":
            color = typer.colors.BRIGHT_BLACK

        # stdout carries command output (JSON, YAML, listings)
        typer.secho(message, fg=color, err=True)
