"""
Progress reporting — operator-facing status lines.

Progress lines are for humans watching a run; they carry no parseable
contract and are separate from logging. A reporter is passed explicitly
to every component that talks to the operator:

    - CLI:    Progress(click.echo)
    - Tests:  RecordingProgress()  (lines kept in memory)
"""

from __future__ import annotations

from typing import Any, Callable


class Progress:
    """Formats and emits progress lines through an echo function.

    Advisories go through ``advise_echo`` when one is given, so a quiet
    reporter can still tell the operator how to fix a failure.
    """

    def __init__(
        self,
        echo: Callable[[str], Any] | None = None,
        advise_echo: Callable[[str], Any] | None = None,
    ):
        self._echo = echo
        self._advise_echo = advise_echo or echo

    def __call__(self, fmt: str, *args: Any) -> None:
        self.emit(fmt % args if args else fmt)

    def emit(self, message: str) -> None:
        if self._echo is not None:
            self._echo(message)

    def advise(self, message: str) -> None:
        """Emit a remediation advisory, set off by a blank line."""
        if self._advise_echo is not None:
            self._advise_echo("")
            self._advise_echo(message)


class RecordingProgress(Progress):
    """Keeps every line in memory."""

    def __init__(self) -> None:
        super().__init__()
        self.lines: list[str] = []
        self.advisories: list[str] = []

    def emit(self, message: str) -> None:
        self.lines.append(message)

    def advise(self, message: str) -> None:
        self.advisories.append(message)
        self.emit("")
        self.emit(message)

    @property
    def text(self) -> str:
        return "\n".join(self.lines)
