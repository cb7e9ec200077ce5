from __future__ import annotations

import json
import logging

import pytest
from fastapi import FastAPI

from app_dispatch.logging_config import JsonFormatter, setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


def test_json_formatter_includes_extras():
    record = logging.LogRecord("app_dispatch.service", logging.INFO, __file__, 1, "rescanned %d rows", (3,), None)
    record.letters = 10
    record.others = 42

    payload = json.loads(JsonFormatter().format(record))

    assert payload["message"] == "rescanned 3 rows"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "app_dispatch.service"
    assert payload["letters"] == 10
    assert payload["others"] == 42
    assert "request_id" not in payload


def test_setup_logging_installs_single_json_handler(restore_root_logger):
    setup_logging("debug")

    root = restore_root_logger
    assert root.level == logging.DEBUG
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0].formatter, JsonFormatter)


def test_main_module_exposes_app(restore_root_logger):
    from app_dispatch import main

    assert isinstance(main.app, FastAPI)
    assert any(getattr(route, "path", None) == "/api/lastDispatchNumbers" for route in main.app.routes)
