"""
Shared CLI plumbing — config, clients, running and rendering procedures.
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

import click

from dcadm.adapters.base import Clients, HistoryStore
from dcadm.adapters.mock import mock_clients
from dcadm.core.config.loader import ConfigError, load_client_factory, load_config
from dcadm.core.context import EngineContext
from dcadm.core.engine.executor import ProcedureReport, plan_procedure, run_procedure
from dcadm.core.errors import CompositeError, DcadmError, ErrorKind
from dcadm.core.models.config import EngineConfig
from dcadm.core.observability.progress import Progress
from dcadm.core.persistence.history_store import FileHistoryStore, default_history_dir
from dcadm.core.procedures import Procedure


def get_config(ctx: click.Context) -> EngineConfig:
    """Load dcadm.yml for this invocation, exiting on error."""
    try:
        return load_config(ctx.obj.get("config_path"))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)


def history_store(config: EngineConfig) -> FileHistoryStore:
    return FileHistoryStore(default_history_dir(Path(config.state_dir)))


def build_clients(config: EngineConfig, mock: bool) -> Clients:
    """Clients for this run: mock, or whatever client_factory builds.

    Raises:
        ConfigError: No transport is configured and mock mode is off.
    """
    if mock:
        return mock_clients(history=history_store(config))

    if not config.client_factory:
        raise ConfigError(
            "No client transport configured. Set client_factory in dcadm.yml, "
            "or use --mock."
        )

    factory = load_client_factory(config.client_factory)
    clients = factory(config)
    if not isinstance(clients, Clients):
        raise ConfigError(
            f"client_factory {config.client_factory!r} returned "
            f"{type(clients).__name__}, expected Clients"
        )
    return clients


def resolve_history_store(ctx: click.Context) -> HistoryStore:
    """The store runs record into: the client factory's, else the file store."""
    config = get_config(ctx)
    if not config.client_factory:
        return history_store(config)

    try:
        return build_clients(config, mock=False).history
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)


def make_progress(as_json: bool, quiet: bool) -> Progress:
    """Progress on stdout, or stderr when stdout carries JSON.

    ``--quiet`` drops progress lines but keeps remediation advisories.
    """
    def echo_err(line: str) -> None:
        click.echo(line, err=True)

    echo = echo_err if as_json else click.echo
    if quiet:
        return Progress(advise_echo=echo)
    return Progress(echo)


def exit_code_for(error: DcadmError) -> int:
    return 2 if error.kind == ErrorKind.USAGE else 1


def fail(error: DcadmError) -> None:
    """Print an engine error and exit with its code."""
    click.secho(f"❌ {error}", fg="red", err=True)
    sys.exit(exit_code_for(error))


def execute(
    ctx: click.Context,
    procedure: Procedure,
    mock: bool,
    dry_run: bool,
    as_json: bool,
) -> None:
    """Run (or just plan) a procedure and render the outcome."""
    config = get_config(ctx)
    if ctx.obj.get("concurrency"):
        config.concurrency = ctx.obj["concurrency"]

    try:
        clients = build_clients(config, mock)
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)

    engine_ctx = EngineContext(
        clients=clients,
        config=config,
        progress=make_progress(as_json, ctx.obj.get("quiet", False)),
    )

    if dry_run:
        try:
            summary = asyncio.run(plan_procedure(procedure, engine_ctx))
        except DcadmError as e:
            fail(e)
            return
        if as_json:
            click.echo(json.dumps({"procedure": procedure.name, "summary": summary}, indent=2))
        else:
            click.echo(summary)
        return

    report = asyncio.run(run_procedure(procedure, engine_ctx))
    render_report(report, as_json)


def render_report(report: ProcedureReport, as_json: bool) -> None:
    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
        if not report.ok:
            sys.exit(1)
        return

    if report.ok:
        click.secho(f"✅ {report.procedure}: done", fg="green", bold=True)
        if report.history:
            click.echo(f"   History: {report.history.id}")
        return

    error = report.error
    assert error is not None
    if isinstance(error, CompositeError):
        click.secho(f"❌ {report.procedure}: {len(error)} errors", fg="red", bold=True, err=True)
        for member in error:
            click.echo(f"   • {member}", err=True)
    else:
        click.secho(f"❌ {report.procedure}: {error}", fg="red", bold=True, err=True)
    if report.history:
        click.echo(f"   History: {report.history.id}", err=True)
    sys.exit(exit_code_for(error))
