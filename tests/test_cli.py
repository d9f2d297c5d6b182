"""
Tests for CLI commands — global options, experimental procedures, history.
"""

import asyncio
import json
import textwrap
from pathlib import Path

import pytest
from click.testing import CliRunner

from dcadm.adapters.mock import MemoryHistoryStore, mock_clients
from dcadm.core.errors import CauseKind
from dcadm.core.models.history import HistoryRecord
from dcadm.core.models.resources import Reachability
from dcadm.core.persistence.history_store import FileHistoryStore, default_history_dir
from dcadm.main import cli


def failing_clients(config):
    """client_factory used by the tests: one import fails with an unreachable source."""
    clients = mock_clients(history=FileHistoryStore(default_history_dir(Path(config.state_dir))))
    clients.topology.reachability = Reachability(needs_external_nic=True)
    clients.images.set_failure("import_remote", "imgB", "no route", CauseKind.REMOTE_SOURCE)
    return clients


SHARED_HISTORY = MemoryHistoryStore()


def memory_history_clients(config):
    """client_factory whose runs record into an in-memory store."""
    return mock_clients(history=SHARED_HISTORY)


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "dcadm.yml"
    path.write_text("state_dir: state\nconcurrency: 2\n")
    return path


@pytest.fixture
def manifest(tmp_path: Path) -> Path:
    path = tmp_path / "images.yml"
    path.write_text(textwrap.dedent("""\
        - uuid: imgA
          name: imgapi
          version: 1.0.0
          files:
            - size: 524288000
        - uuid: imgB
          name: sapi
          version: 2.0.0
          files:
            - size: 314572800
    """))
    return path


def _invoke(*args: str):
    return CliRunner().invoke(cli, list(args))


class TestCLIGlobal:
    def test_help(self):
        result = _invoke("--help")
        assert result.exit_code == 0
        assert "experimental" in result.output
        assert "history" in result.output

    def test_version(self):
        result = _invoke("--version")
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_bad_config(self, tmp_path: Path):
        path = tmp_path / "dcadm.yml"
        path.write_text("concurrency: 0\n")
        result = _invoke("--config", str(path), "history", "list")
        assert result.exit_code == 1
        assert "Invalid configuration" in result.output


class TestAddNewAgentServices:
    def test_mock_run(self, config_file: Path):
        result = _invoke("--config", str(config_file), "experimental", "add-new-agent-svcs", "--mock")

        assert result.exit_code == 0, result.output
        assert "Checking for minimum SAPI version" in result.output
        assert "Adding service for agent 'vm-agent'" in result.output
        assert "Add new agent services finished" in result.output
        assert "✅ add-new-agent-svcs: done" in result.output

    def test_dry_run(self, config_file: Path):
        result = _invoke(
            "--config", str(config_file),
            "experimental", "add-new-agent-svcs", "--mock", "--dry-run",
        )

        assert result.exit_code == 0
        assert "add 12 agent services:" in result.output
        assert "Adding service" not in result.output

    def test_extra_args_rejected(self, config_file: Path):
        result = _invoke(
            "--config", str(config_file),
            "experimental", "add-new-agent-svcs", "--mock", "bogus",
        )

        assert result.exit_code == 2
        assert "too many args" in result.output
        assert not (config_file.parent / "state" / "history").exists()

    def test_no_transport(self, config_file: Path):
        result = _invoke("--config", str(config_file), "experimental", "add-new-agent-svcs")

        assert result.exit_code == 1
        assert "No client transport configured" in result.output


class TestDownloadImages:
    def test_mock_run(self, config_file: Path, manifest: Path):
        result = _invoke(
            "--config", str(config_file),
            "experimental", "download-images", str(manifest), "--mock",
        )

        assert result.exit_code == 0, result.output
        assert "Imported image imgA" in result.output
        assert "Imported image imgB" in result.output
        assert "✅ download-images: done" in result.output

    def test_dry_run_summary(self, config_file: Path, manifest: Path):
        result = _invoke(
            "--config", str(config_file),
            "experimental", "download-images", str(manifest), "--mock", "--dry-run",
        )

        assert result.exit_code == 0
        assert "download 2 images (800 MiB):" in result.output
        assert "(imgapi@1.0.0)" in result.output

    def test_json_output(self, config_file: Path, manifest: Path):
        result = _invoke(
            "--quiet", "--config", str(config_file),
            "experimental", "download-images", str(manifest), "--mock", "--json",
        )

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["procedure"] == "download-images"
        assert data["status"] == "ok"
        assert data["changes"] == 2
        assert data["error"] is None

    def test_failure_with_advisory(self, tmp_path: Path, manifest: Path):
        config = tmp_path / "dcadm.yml"
        config.write_text(f"state_dir: state\nclient_factory: {__name__}:failing_clients\n")

        result = _invoke("--config", str(config), "experimental", "download-images", str(manifest))

        assert result.exit_code == 1
        assert "imgapi error (imgB)" in result.output
        assert "dcadm post-setup common-external-nics" in result.output
        assert "Imported image imgA" in result.output

    def test_quiet_keeps_advisory(self, tmp_path: Path, manifest: Path):
        config = tmp_path / "dcadm.yml"
        config.write_text(f"state_dir: state\nclient_factory: {__name__}:failing_clients\n")

        result = _invoke(
            "-q", "--config", str(config), "experimental", "download-images", str(manifest),
        )

        assert result.exit_code == 1
        assert "common-external-nics" in result.output
        assert "Imported image imgA" not in result.output

    def test_bad_manifest(self, config_file: Path, tmp_path: Path):
        bad = tmp_path / "bad.yml"
        bad.write_text("- name: no-uuid\n")

        result = _invoke(
            "--config", str(config_file),
            "experimental", "download-images", str(bad), "--mock",
        )

        assert result.exit_code == 1
        assert "Invalid image" in result.output

    def test_concurrency_option_validated(self, config_file: Path, manifest: Path):
        result = _invoke(
            "--config", str(config_file),
            "experimental", "download-images", str(manifest), "--mock", "--concurrency", "0",
        )
        assert result.exit_code == 2


class TestHistoryCommands:
    def test_empty(self, config_file: Path):
        result = _invoke("--config", str(config_file), "history", "list")
        assert result.exit_code == 0
        assert "No history yet." in result.output

    def test_list_and_show(self, config_file: Path, manifest: Path):
        _invoke("--config", str(config_file), "experimental", "download-images", str(manifest), "--mock")

        listed = _invoke("--config", str(config_file), "history", "list", "--json")
        assert listed.exit_code == 0
        records = json.loads(listed.output)
        assert len(records) == 1
        assert records[0]["procedure"] == "download-images"
        assert records[0]["finished_at"] is not None

        shown = _invoke("--config", str(config_file), "history", "show", records[0]["id"])
        assert shown.exit_code == 0
        assert "import-image imgA" in shown.output
        assert "ok" in shown.output

    def test_interrupted_record(self, config_file: Path):
        store = FileHistoryStore(default_history_dir(config_file.parent / "state"))
        asyncio.run(store.save(HistoryRecord(procedure="download-images")))

        result = _invoke("--config", str(config_file), "history", "list")

        assert result.exit_code == 0
        assert "interrupted" in result.output

    def test_show_unknown(self, config_file: Path):
        result = _invoke("--config", str(config_file), "history", "show", "nope")
        assert result.exit_code == 1
        assert "No history record nope" in result.output

    def test_uses_client_factory_store(self, tmp_path: Path, manifest: Path, monkeypatch):
        monkeypatch.setattr(f"{__name__}.SHARED_HISTORY", MemoryHistoryStore())
        config = tmp_path / "dcadm.yml"
        config.write_text(f"state_dir: state\nclient_factory: {__name__}:memory_history_clients\n")

        run = _invoke("--config", str(config), "experimental", "download-images", str(manifest))
        assert run.exit_code == 0, run.output

        listed = _invoke("--config", str(config), "history", "list", "--json")
        assert listed.exit_code == 0
        records = json.loads(listed.output)
        assert len(records) == 1
        assert records[0]["procedure"] == "download-images"

        shown = _invoke("--config", str(config), "history", "show", records[0]["id"])
        assert shown.exit_code == 0
        assert "import-image imgB" in shown.output
        assert not (tmp_path / "state" / "history").exists()
