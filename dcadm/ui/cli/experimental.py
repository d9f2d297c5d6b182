"""
CLI commands for experimental procedures.

These are stop-gaps until the same changes are folded into a general
``dcadm update``.
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from dcadm.core.config.loader import ConfigError, load_image_manifest
from dcadm.core.errors import UsageError
from dcadm.core.procedures import AddAgentServices, DownloadImages
from dcadm.ui.cli.helpers import execute, fail


def _run_options(f):
    f = click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")(f)
    f = click.option("--dry-run", is_flag=True, help="Plan and summarize, don't change anything.")(f)
    f = click.option("--mock", is_flag=True, help="Use in-memory mock clients.")(f)
    return f


@click.group()
def experimental() -> None:
    """Experimental, less-polished procedures."""


@experimental.command("add-new-agent-svcs")
@click.argument("args", nargs=-1)
@_run_options
@click.pass_context
def add_new_agent_svcs(
    ctx: click.Context,
    args: tuple[str, ...],
    mock: bool,
    dry_run: bool,
    as_json: bool,
) -> None:
    """Create the SAPI services for the global zone agents.

    Agents that already have a service are left alone.
    """
    if args:
        fail(UsageError(f"too many args: {' '.join(args)}"))
        return

    execute(ctx, AddAgentServices(), mock=mock, dry_run=dry_run, as_json=as_json)


@experimental.command("download-images")
@click.argument("manifest", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--source", default=None, help="IMGAPI endpoint to import from.")
@click.option("--concurrency", "-j", type=click.IntRange(min=1), default=None,
              help="Images imported at once (default: from config, 4).")
@_run_options
@click.pass_context
def download_images(
    ctx: click.Context,
    manifest: Path,
    source: str | None,
    concurrency: int | None,
    mock: bool,
    dry_run: bool,
    as_json: bool,
) -> None:
    """Import the images listed in MANIFEST into IMGAPI.

    MANIFEST is a YAML or JSON list of images (uuid, name, version,
    files). Images already active locally are skipped.
    """
    try:
        images = load_image_manifest(manifest)
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)

    ctx.obj["concurrency"] = concurrency
    execute(
        ctx,
        DownloadImages(images=images, source=source),
        mock=mock,
        dry_run=dry_run,
        as_json=as_json,
    )
