"""
Tests for domain models and the error taxonomy.
"""

import pytest
from pydantic import ValidationError

from dcadm.core.errors import (
    CauseKind,
    ClientError,
    CompositeError,
    ErrorKind,
    HistoryError,
    InternalError,
    RemoteCallError,
    UsageError,
)
from dcadm.core.models import ChangeDescriptor, HistoryRecord, Image, ImageFile, StepResult


class TestChangeDescriptor:
    def test_type_label(self):
        change = ChangeDescriptor(subject_type="service", subject_name="vm-agent", action="create")
        assert change.type == "create-service"
        assert str(change) == "create service vm-agent"

    def test_frozen(self):
        change = ChangeDescriptor(subject_type="image", subject_name="a", action="import")
        with pytest.raises(ValidationError):
            change.subject_name = "b"


class TestHistoryRecord:
    def test_status(self):
        record = HistoryRecord(procedure="p")
        assert record.status == "interrupted"

        record.finished_at = "2026-01-01T00:00:00+00:00"
        assert record.status == "ok"

        record.error = {"kind": "client", "message": "x"}
        assert record.status == "failed"

    def test_json_roundtrip(self):
        record = HistoryRecord(
            id="abc",
            procedure="download-images",
            changes=[ChangeDescriptor(subject_type="image", subject_name="a", action="import")],
        )
        loaded = HistoryRecord.model_validate_json(record.model_dump_json())
        assert loaded == record


class TestImage:
    def test_size_first_file(self):
        image = Image(uuid="a", files=[ImageFile(size=10), ImageFile(size=99)])
        assert image.size == 10

    def test_label(self):
        assert Image(uuid="a", name="imgapi", version="1.2").label == "imgapi@1.2"


class TestStepResult:
    def test_constructors(self):
        ok = StepResult.success("import", "a")
        skipped = StepResult.skip("delete", "a", "image is active")
        failed = StepResult.failure("import", "a", UsageError("bad"))

        assert ok.ok and not ok.failed
        assert skipped.skipped and skipped.output == "image is active"
        assert failed.failed and isinstance(failed.error, UsageError)


class TestErrors:
    def test_kinds(self):
        assert UsageError("x").kind == ErrorKind.USAGE
        assert InternalError("x").kind == ErrorKind.INTERNAL
        assert HistoryError("x", phase="begin").kind == ErrorKind.INTERNAL
        assert CompositeError([]).kind == ErrorKind.COMPOSITE

    def test_client_error_message(self):
        err = ClientError(RemoteCallError("timeout", CauseKind.CONNECTION), "sapi", "vm-agent")
        assert str(err) == "sapi error (vm-agent): timeout"
        assert err.cause_kind == CauseKind.CONNECTION

    def test_client_error_foreign_cause(self):
        err = ClientError(ValueError("odd"), "imgapi")
        assert str(err) == "imgapi error: odd"
        assert err.cause_kind == CauseKind.UNKNOWN

    def test_client_error_to_dict(self):
        err = ClientError(RemoteCallError("gone", CauseKind.REMOTE_SOURCE), "imgapi", "a")
        assert err.to_dict() == {
            "kind": "client",
            "message": "imgapi error (a): gone",
            "service": "imgapi",
            "resource": "a",
            "cause": "RemoteSourceError",
        }

    def test_composite(self):
        a = ClientError(RemoteCallError("one"), "imgapi", "a")
        b = ClientError(RemoteCallError("two"), "imgapi", "b")
        err = CompositeError([a, b])

        assert len(err) == 2
        assert list(err) == [a, b]
        assert str(err) == "2 errors\n  - imgapi error (a): one\n  - imgapi error (b): two"
        assert [e["resource"] for e in err.to_dict()["errors"]] == ["a", "b"]

    def test_history_error_phase(self):
        err = HistoryError("disk full", phase="finish")
        assert err.to_dict()["phase"] == "finish"

    def test_client_error_tagged_later(self):
        err = ClientError(RemoteCallError("gone"), "imgapi")
        err.resource = "a"

        assert str(err) == "imgapi error (a): gone"
        assert err.to_dict()["message"] == "imgapi error (a): gone"
        assert str(CompositeError([err, err])).endswith("  - imgapi error (a): gone")
