"""Main CLI application for radiocache."""

import logging
import sys
from typing import Annotated

import typer

from radiocache import __version__
from radiocache.cli.decorators.error_handling import print_stack_trace_if_verbose
from radiocache.config.user_config import UserConfigData, create_user_config
from radiocache.core.errors import ConfigError
from radiocache.core.logging import setup_logging


__all__ = ["app", "main", "__version__"]

logger = logging.getLogger(__name__)


class AppContext:
    """Application context for storing shared state."""

    def __init__(self, verbose: int = 0, log_file: str | None = None):
        self.verbose = verbose
        self.log_file = log_file
        self.user_config: UserConfigData = create_user_config()

    @property
    def log_level_name(self) -> str:
        if self.verbose == 1:
            return "INFO"
        if self.verbose >= 2:
            return "DEBUG"
        return self.user_config.log_level


app = typer.Typer(
    name="radiocache",
    help=f"""radiocache v{__version__}

Maintenance tool for the two-tier cache of the radio client.

Common workflows:
  • Inspect usage:   radiocache cache stats
  • List entries:    radiocache cache keys
  • Drop expired:    radiocache cache cleanup""",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "-v",
            "--verbose",
            count=True,
            help="Increase verbosity (-v=INFO, -vv=DEBUG)",
        ),
    ] = 0,
    log_file: Annotated[
        str | None, typer.Option("--log-file", help="Log to file")
    ] = None,
    version: Annotated[
        bool, typer.Option("--version", help="Show version and exit")
    ] = False,
) -> None:
    """radiocache maintenance tool."""
    if version:
        print(f"radiocache v{__version__}")
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        print(ctx.get_help())
        raise typer.Exit()

    try:
        app_context = AppContext(verbose=verbose, log_file=log_file)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise typer.Exit(1) from e
    ctx.obj = app_context

    setup_logging(log_level_name=app_context.log_level_name, log_file=log_file)


def main() -> int:
    """Main CLI entry point."""
    try:
        app()
        return 0
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else 0
    except Exception as e:
        logger.exception("Unexpected error: %s", e)
        print_stack_trace_if_verbose()
        return 1


from radiocache.cli.commands import register_all_commands  # noqa: E402


register_all_commands(app)


if __name__ == "__main__":
    sys.exit(main())
