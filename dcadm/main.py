"""
dcadm — CLI entrypoint.

Usage:
    dcadm --help
    dcadm experimental add-new-agent-svcs
    dcadm experimental download-images images.yml
    dcadm history list
"""

from __future__ import annotations

import os
from pathlib import Path

import click

from dcadm import __version__
from dcadm.core.observability.logging_config import (
    ENV_FILE,
    ENV_FILE_LEVEL,
    resolve_level,
    setup_logging,
)


@click.group()
@click.version_option(version=__version__, prog_name="dcadm")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress progress output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to dcadm.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """dcadm — apply multi-step changes to a datacenter."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    setup_logging(
        level=resolve_level(debug=debug, verbose=verbose, quiet=quiet),
        log_file=os.environ.get(ENV_FILE),
        log_file_level=os.environ.get(ENV_FILE_LEVEL),
    )


# ── Register sub-command groups from dcadm/ui/cli/ ────────────────

from dcadm.ui.cli.experimental import experimental  # noqa: E402
from dcadm.ui.cli.history import history  # noqa: E402

cli.add_command(experimental)
cli.add_command(history)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
