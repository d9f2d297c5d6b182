"""
Error taxonomy — every failure the engine can surface.

Errors carry a discriminated ``kind`` so callers (and the diagnoser)
can branch on structure instead of message text:

    UsageError      — the invocation itself is malformed
    ClientError     — a remote service call failed for one resource
    CompositeError  — two or more ClientErrors from independent units
    InternalError   — an engine precondition was violated
    HistoryError    — the history store failed (an InternalError)

Remote clients raise ``RemoteCallError``; pipeline steps wrap it into a
``ClientError`` tagged with the originating service and resource.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Iterator


class ErrorKind(str, Enum):
    """Discriminator for engine errors."""

    USAGE = "usage"
    CLIENT = "client"
    COMPOSITE = "composite"
    INTERNAL = "internal"


class CauseKind(str, Enum):
    """Root-cause classes reported by remote services."""

    REMOTE_SOURCE = "RemoteSourceError"
    NOT_FOUND = "ResourceNotFound"
    CONNECTION = "ConnectionError"
    VALIDATION = "ValidationFailed"
    UNKNOWN = "UnknownError"


class RemoteCallError(Exception):
    """Raised by a service client when a remote call fails.

    ``kind`` is the service's own error name (e.g. ``RemoteSourceError``).
    """

    def __init__(self, message: str, kind: CauseKind | str = CauseKind.UNKNOWN):
        super().__init__(message)
        try:
            self.kind = CauseKind(kind)
        except ValueError:
            self.kind = CauseKind.UNKNOWN
        self.raw_kind = kind.value if isinstance(kind, CauseKind) else str(kind)


class DcadmError(Exception):
    """Base class for all engine errors."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "message": str(self)}


class UsageError(DcadmError):
    """The caller invoked a command incorrectly."""

    kind = ErrorKind.USAGE


class InternalError(DcadmError):
    """A precondition the engine itself requires was violated."""

    kind = ErrorKind.INTERNAL


class HistoryError(InternalError):
    """The history store could not persist a record.

    ``phase`` is ``begin`` or ``finish``.
    """

    def __init__(self, message: str, phase: str, cause: BaseException | None = None):
        super().__init__(message)
        self.phase = phase
        self.cause = cause

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["phase"] = self.phase
        return data


class ClientError(DcadmError):
    """A remote service call failed.

    Args:
        cause: The underlying exception (usually a RemoteCallError).
        service: Origin service tag (``imgapi``, ``sapi``, ...).
        resource: Identifier of the affected resource, if any.
    """

    kind = ErrorKind.CLIENT

    def __init__(
        self,
        cause: BaseException,
        service: str,
        resource: str | None = None,
    ):
        super().__init__(cause, service, resource)
        self.cause = cause
        self.service = service
        self.resource = resource

    def __str__(self) -> str:
        # resource may be tagged after construction
        prefix = f"{self.service} error"
        if self.resource:
            prefix += f" ({self.resource})"
        return f"{prefix}: {self.cause}"

    @property
    def cause_kind(self) -> CauseKind:
        if isinstance(self.cause, RemoteCallError):
            return self.cause.kind
        return CauseKind.UNKNOWN

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update(
            service=self.service,
            resource=self.resource,
            cause=self.cause_kind.value,
        )
        return data


class CompositeError(DcadmError):
    """Two or more independent failures, in completion order."""

    kind = ErrorKind.COMPOSITE

    def __init__(self, errors: list[DcadmError]):
        self.errors = list(errors)
        super().__init__(self.errors)

    def __str__(self) -> str:
        lines = [f"{len(self.errors)} errors"]
        lines.extend(f"  - {e}" for e in self.errors)
        return "\n".join(lines)

    def __iter__(self) -> Iterator[DcadmError]:
        return iter(self.errors)

    def __len__(self) -> int:
        return len(self.errors)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["errors"] = [e.to_dict() for e in self.errors]
        return data
