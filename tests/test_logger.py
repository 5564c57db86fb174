"""
Tests for logging configuration.
"""

import json
import logging
import sys

import pytest
import structlog

from flow_engine.core.context import ExecutionContext
from flow_engine.core.logger import (
    SimpleFormatter,
    StructuredFormatter,
    configure_logging,
    get_logger,
    get_struct_logger,
    run_fields,
)


@pytest.fixture(autouse=True)
def _restore_engine_logger():
    engine_logger = logging.getLogger("flow_engine")
    handlers, propagate, level = list(engine_logger.handlers), engine_logger.propagate, engine_logger.level
    yield
    engine_logger.handlers = handlers
    engine_logger.propagate = propagate
    engine_logger.setLevel(level)
    structlog.reset_defaults()


def make_record(message="hello", **extra):
    record = logging.LogRecord("flow_engine.test", logging.INFO, __file__, 10, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_structured_formatter_includes_run_fields():
    output = json.loads(StructuredFormatter().format(make_record(run_id="r1", flow_id="f1")))
    assert output["message"] == "hello"
    assert output["level"] == "INFO"
    assert output["logger"] == "flow_engine.test"
    assert output["run_id"] == "r1"
    assert output["flow_id"] == "f1"
    assert "node_id" not in output
    assert "timestamp" in output


def test_structured_formatter_exception():
    try:
        raise ValueError("bad")
    except ValueError:
        record = make_record()
        record.exc_info = sys.exc_info()
    output = json.loads(StructuredFormatter().format(record))
    assert "ValueError: bad" in output["exc_info"]


def test_simple_formatter():
    text = SimpleFormatter().format(make_record(run_id="r1"))
    assert text == "INFO:flow_engine.test:hello [run_id=r1]"


def test_run_fields():
    context = ExecutionContext(flow_id="f1", run_id="r1")
    assert run_fields(context) == {"run_id": "r1", "flow_id": "f1"}
    assert run_fields(context, "n1") == {"run_id": "r1", "flow_id": "f1", "node_id": "n1"}


def test_run_fields_reach_json_output(capsys):
    configure_logging(level="info", log_format="json")
    context = ExecutionContext(flow_id="f1", run_id="r1")
    get_logger("tests").info("stamped", extra=run_fields(context, "n1"))
    output = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    assert output["message"] == "stamped"
    assert (output["run_id"], output["flow_id"], output["node_id"]) == ("r1", "f1", "n1")


@pytest.mark.parametrize("log_format", ["simple", "json", "standard"])
def test_configure_logging(log_format, capsys):
    configure_logging(level="info", log_format=log_format)
    logger = get_logger("tests")
    assert logger.name == "flow_engine.tests"
    logger.info("configured")
    out = capsys.readouterr().out
    assert "configured" in out
    if log_format == "json":
        assert json.loads(out.strip().splitlines()[-1])["message"] == "configured"


def test_get_logger_keeps_namespace():
    assert get_logger("flow_engine.core").name == "flow_engine.core"


def test_struct_logger_binds_values():
    log = get_struct_logger("flow_engine.tests", run_id="r1")
    assert log is not None
