import io
import json
import logging

import pytest
import structlog

from tempo_daily.logging_config import setup_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.contextvars.clear_contextvars()


def test_stdlib_records_render_as_json_with_run_context():
    stream = io.StringIO()
    setup_logging("INFO", stream=stream)
    structlog.contextvars.bind_contextvars(run_id="092653", step="transfer:pathUSD")

    logging.getLogger("tempo_daily.core.run").info("run completed: 6 transactions")

    record = json.loads(stream.getvalue().strip().splitlines()[-1])
    assert record["event"] == "run completed: 6 transactions"
    assert record["run_id"] == "092653"
    assert record["step"] == "transfer:pathUSD"
    assert record["level"] == "info"


def test_unknown_level_falls_back_to_info():
    setup_logging("chatty", stream=io.StringIO())

    assert logging.getLogger().level == logging.INFO
    assert logging.getLogger("httpx").level == logging.WARNING
