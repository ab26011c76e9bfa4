"""Tests for warn-once diagnostics and the run summary."""

import logging

from InlineImages.core import Failure, ReasonCode
from InlineImages.diagnostics import DiagnosticsSink


def test_each_key_warns_once(caplog):
    sink = DiagnosticsSink()
    failure = Failure(ReasonCode.NOT_FOUND)

    with caplog.at_level(logging.WARNING, logger="InlineImages"):
        assert sink.report("src:missing.png", failure) is True
        assert sink.report("src:missing.png", failure) is False
        assert sink.report("srcset:missing.png", failure) is True

    messages = [record.getMessage() for record in caplog.records]
    assert messages == ["src:missing.png → File not found", "srcset:missing.png → File not found"]
    assert sink.warnings == messages


def test_structured_fields_on_warning(caplog):
    sink = DiagnosticsSink()

    with caplog.at_level(logging.WARNING, logger="InlineImages"):
        sink.report("src:https://x/a.png", Failure(ReasonCode.REMOTE_HTTP_ERROR, status_code=503))

    record = caplog.records[0]
    assert record.reason == "remote_http_error"
    assert record.status == 503
    assert record.reference_key == "src:https://x/a.png"


def test_custom_logger():
    records = []

    class _Collect(logging.Handler):
        def emit(self, record):
            records.append(record)

    logger = logging.getLogger("tests.diagnostics.custom")
    logger.addHandler(_Collect())
    logger.propagate = False
    sink = DiagnosticsSink(logger=logger)

    sink.report("src:a.png", Failure(ReasonCode.TOO_LARGE, size=99))

    assert [record.getMessage() for record in records] == ["src:a.png → File too large (99 bytes)"]


def test_counters_and_summary():
    sink = DiagnosticsSink()
    sink.record_src_inlined()
    sink.record_src_inlined()
    sink.record_srcset_updated()

    assert sink.summary("out.html") == "Inlined 2 src image(s), updated 1 srcset(s) → out.html"
    assert DiagnosticsSink().summary("stdout") == "Inlined 0 src image(s), updated 0 srcset(s) → stdout"
