"""Main CLI entry point for dockerdoctor."""

import typer
from rich.console import Console

from dockerdoctor.cli import check

app = typer.Typer(
    name="dockerdoctor",
    help="Diagnose Dockerfiles, Compose files and live Docker state.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()

# Register subcommands
app.command(name="check")(check.check_cmd)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log progress to stderr"),
    debug: bool = typer.Option(False, "--debug", help="Log debug details to stderr"),
) -> None:
    """
    dockerdoctor: diagnose containerization projects.

    - [bold]check[/bold]: Run diagnostic checks against a project
    - [bold]version[/bold]: Show the installed version
    """
    from dockerdoctor.utils.logging import configure_logging

    if debug:
        configure_logging(level="DEBUG", structured=True)
    elif verbose:
        configure_logging(level="INFO")
    else:
        configure_logging(level="WARNING")


@app.command()
def version() -> None:
    """Show the dockerdoctor version."""
    from dockerdoctor import __version__

    console.print(f"dockerdoctor version {__version__}")


if __name__ == "__main__":
    app()
