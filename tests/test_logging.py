"""Tests for docflow_kernel/logging_config.py."""

import json
import logging
from datetime import datetime, timezone
from io import StringIO
from uuid import uuid4

import pytest

from docflow_kernel.exceptions import InvalidDocumentTransitionError, NoEligibleStepError
from docflow_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _fresh_logging():
    reset_logging()
    yield
    reset_logging()
    configure_logging(level=logging.DEBUG)


@pytest.fixture
def json_lines():
    """Configure logging into a buffer; returns a reader of parsed lines."""
    stream = StringIO()
    configure_logging(handler=logging.StreamHandler(stream))

    def _read() -> list[dict]:
        return [json.loads(line) for line in stream.getvalue().splitlines() if line]

    return _read


class TestStructuredFormatter:

    def test_core_fields(self, json_lines):
        get_logger("services.workflow").info("document_submitted")

        (entry,) = json_lines()
        assert entry["level"] == "INFO"
        assert entry["logger"] == "docflow_kernel.services.workflow"
        assert entry["message"] == "document_submitted"
        assert datetime.fromisoformat(entry["ts"]).tzinfo is not None

    def test_extra_fields(self, json_lines):
        document_id = uuid4()
        get_logger("test").info(
            "document_created",
            extra={"document_id": document_id, "number": "DOC/2024/001", "step_count": 2},
        )

        (entry,) = json_lines()
        assert entry["document_id"] == str(document_id)
        assert entry["number"] == "DOC/2024/001"
        assert entry["step_count"] == 2

    def test_datetime_extra_is_iso(self, json_lines):
        acted_at = datetime(2024, 1, 1, 12, tzinfo=timezone.utc)
        get_logger("test").info("step_approved", extra={"acted_at": acted_at})
        assert json_lines()[0]["acted_at"] == acted_at.isoformat()

    def test_context_wins_over_extra(self, json_lines):
        with LogContext.bind(action="approve"):
            get_logger("test").info("x", extra={"action": "other"})
        assert json_lines()[0]["action"] == "approve"

    def test_kernel_exception_fields(self, json_lines):
        try:
            raise InvalidDocumentTransitionError("doc-1", "APPROVED", "submit")
        except InvalidDocumentTransitionError:
            get_logger("test").warning("transaction_rolled_back", exc_info=True)

        (entry,) = json_lines()
        assert entry["exc_type"] == "InvalidDocumentTransitionError"
        assert entry["exc_code"] == "INVALID_DOCUMENT_TRANSITION"
        assert entry["exc_document_id"] == "doc-1"
        assert entry["exc_current_status"] == "APPROVED"
        assert entry["exc_action"] == "submit"
        assert "Traceback" in entry["traceback"]

    def test_plain_exception_has_no_code(self, json_lines):
        try:
            raise ValueError("boom")
        except ValueError:
            get_logger("test").error("failed", exc_info=True)

        (entry,) = json_lines()
        assert entry["exc_type"] == "ValueError"
        assert entry["exc_message"] == "boom"
        assert "exc_code" not in entry

    def test_default_level_drops_debug(self, json_lines):
        logger = get_logger("test")
        logger.debug("noise")
        logger.info("kept")
        assert [e["message"] for e in json_lines()] == ["kept"]

    def test_formatter_standalone(self):
        record = logging.makeLogRecord({"msg": "hello", "levelname": "INFO", "name": "n"})
        assert json.loads(StructuredFormatter().format(record))["message"] == "hello"


class TestLogContext:

    def test_bind_and_restore(self):
        with LogContext.bind(action="submit", document_id="d1"):
            with LogContext.bind(action="approve"):
                assert LogContext.get_all() == {"action": "approve", "document_id": "d1"}
            assert LogContext.get_all() == {"action": "submit", "document_id": "d1"}
        assert LogContext.get_all() == {}

    def test_none_values_skipped(self):
        with LogContext.bind(actor_id=None, action="list"):
            assert LogContext.get_all() == {"action": "list"}

    def test_unknown_field(self):
        with pytest.raises(TypeError):
            with LogContext.bind(step_id="s1"):
                pass

    def test_restored_after_error(self):
        with pytest.raises(RuntimeError):
            with LogContext.bind(action="reject"):
                raise RuntimeError
        assert LogContext.get_all() == {}

    def test_clear(self):
        with LogContext.bind(correlation_id="c1"):
            LogContext.clear()
            assert LogContext.get_all() == {}

    def test_context_in_output(self, json_lines):
        with LogContext.bind(correlation_id="c1", actor_id="a1"):
            try:
                raise NoEligibleStepError("d1", "KETUA")
            except NoEligibleStepError:
                get_logger("test").warning("transaction_rolled_back", exc_info=True)

        (entry,) = json_lines()
        assert entry["correlation_id"] == "c1"
        assert entry["actor_id"] == "a1"
        assert entry["exc_role"] == "KETUA"


class TestConfigureLogging:

    def test_second_call_is_noop(self):
        first = logging.StreamHandler(StringIO())
        second = logging.StreamHandler(StringIO())
        configure_logging(handler=first)
        configure_logging(handler=second)

        handlers = logging.getLogger("docflow_kernel").handlers
        assert first in handlers
        assert second not in handlers

    def test_does_not_propagate(self):
        configure_logging(handler=logging.StreamHandler(StringIO()))
        assert logging.getLogger("docflow_kernel").propagate is False

    def test_child_loggers_share_handler(self):
        stream = StringIO()
        configure_logging(level=logging.DEBUG, handler=logging.StreamHandler(stream))
        get_logger("selectors.document").debug("hierarchy")

        entry = json.loads(stream.getvalue().splitlines()[0])
        assert entry["logger"] == "docflow_kernel.selectors.document"

    def test_reset_clears_handlers(self):
        configure_logging(handler=logging.StreamHandler(StringIO()))
        reset_logging()
        assert not any(
            isinstance(h.formatter, StructuredFormatter)
            for h in logging.getLogger("docflow_kernel").handlers
        )
