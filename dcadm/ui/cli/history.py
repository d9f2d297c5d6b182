"""
CLI commands for inspecting procedure history.
"""

from __future__ import annotations

import asyncio
import json
import sys

import click

from dcadm.ui.cli.helpers import resolve_history_store

_STATUS_COLORS = {"ok": "green", "failed": "red", "interrupted": "yellow"}


@click.group()
def history() -> None:
    """Show the history of procedure runs."""


@history.command("list")
@click.option("-n", "limit", default=20, type=click.IntRange(min=1), help="How many records.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def history_list(ctx: click.Context, limit: int, as_json: bool) -> None:
    """List recent runs, oldest first."""
    store = resolve_history_store(ctx)
    records = asyncio.run(store.list_recent(limit))

    if as_json:
        click.echo(json.dumps([r.model_dump(mode="json") for r in records], indent=2))
        return

    if not records:
        click.echo("No history yet.")
        return

    for record in records:
        click.echo(f"{record.id}  {record.started_at}  {record.procedure:<20} ", nl=False)
        click.secho(record.status, fg=_STATUS_COLORS.get(record.status, "white"), nl=False)
        click.echo(f"  ({len(record.changes)} changes)")


@history.command("show")
@click.argument("record_id")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def history_show(ctx: click.Context, record_id: str, as_json: bool) -> None:
    """Show one run: its changes and outcome."""
    store = resolve_history_store(ctx)
    record = asyncio.run(store.get(record_id))

    if record is None:
        click.secho(f"❌ No history record {record_id}", fg="red", err=True)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(record.model_dump(mode="json"), indent=2))
        return

    click.secho(f"\n📜 {record.procedure} — {record.id}", fg="cyan", bold=True)
    click.echo(f"   Started:  {record.started_at}")
    click.echo(f"   Finished: {record.finished_at or '-'}")
    click.echo("   Status:   ", nl=False)
    click.secho(record.status, fg=_STATUS_COLORS.get(record.status, "white"))

    click.echo()
    click.secho(f"   Changes: {len(record.changes)}", bold=True)
    for change in record.changes:
        click.echo(f"     • {change.type} {change.subject_name}")

    if record.error:
        click.echo()
        click.secho(f"   Error: {record.error.get('message', '')}", fg="red")
    click.echo()
