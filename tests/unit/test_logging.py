import json
import logging

import pytest

from matprice.core.logging import configure_logging, import_context


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
    root.setLevel(level)


def test_json_logs_carry_import_context(capsys, monkeypatch, restore_root_logger):
    monkeypatch.delenv("JSON_LOGS", raising=False)
    configure_logging(level="INFO", log_format="json")

    with import_context(origin_file="copacel.xlsx"):
        logging.getLogger("matprice.pipeline").info("Import completed")
    logging.getLogger("matprice.pipeline").info("after run")

    lines = [json.loads(line) for line in capsys.readouterr().err.splitlines() if line.startswith("{")]

    assert lines[0]["event"] == "Import completed"
    assert lines[0]["origin_file"] == "copacel.xlsx"
    assert lines[0]["level"] == "info"
    assert "origin_file" not in lines[1]
