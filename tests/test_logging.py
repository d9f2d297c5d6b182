"""
Tests for observability — logging setup and progress reporting.
"""

import logging
from pathlib import Path

import pytest

from dcadm.core.observability.logging_config import ENV_LEVEL, resolve_level, setup_logging
from dcadm.core.observability.progress import Progress, RecordingProgress


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestResolveLevel:
    def test_flag_precedence(self):
        assert resolve_level(debug=True, verbose=True, quiet=True) == "DEBUG"
        assert resolve_level(verbose=True, quiet=True) == "INFO"
        assert resolve_level(quiet=True) == "ERROR"

    def test_env_fallback(self, monkeypatch):
        monkeypatch.setenv(ENV_LEVEL, "INFO")
        assert resolve_level() == "INFO"

    def test_default(self, monkeypatch):
        monkeypatch.delenv(ENV_LEVEL, raising=False)
        assert resolve_level() == "WARNING"


class TestSetupLogging:
    def test_console_level(self):
        setup_logging("INFO")
        root = logging.getLogger()
        assert root.level == logging.INFO
        assert len(root.handlers) == 1

    def test_unknown_level_is_warning(self):
        setup_logging("LOUD")
        assert logging.getLogger().level == logging.WARNING

    def test_log_file(self, tmp_path: Path):
        log_file = tmp_path / "dcadm.log"
        setup_logging("WARNING", log_file=str(log_file), log_file_level="DEBUG")

        logging.getLogger("dcadm.test").debug("to the file only")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert logging.getLogger().level == logging.DEBUG
        assert "to the file only" in log_file.read_text()


class TestProgress:
    def test_formats_args(self):
        lines = []
        Progress(lines.append)("Adding service for agent '%s'", "vm-agent")
        assert lines == ["Adding service for agent 'vm-agent'"]

    def test_no_args_no_formatting(self):
        lines = []
        Progress(lines.append)("100% done")
        assert lines == ["100% done"]

    def test_silent_without_echo(self):
        Progress()("nothing happens")

    def test_advise_blank_line(self):
        progress = RecordingProgress()
        progress("before")
        progress.advise("run the fix")

        assert progress.lines == ["before", "", "run the fix"]
        assert progress.advisories == ["run the fix"]

    def test_quiet_keeps_advisories(self):
        lines = []
        progress = Progress(advise_echo=lines.append)

        progress("Downloading image %s", "imgA")
        progress.advise("run the fix")

        assert lines == ["", "run the fix"]
