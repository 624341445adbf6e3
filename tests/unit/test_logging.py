import io
import json
import logging

from loguru import logger

from src.loadgen.core.logging import InterceptHandler, json_formatter, virtual_user_id


def test_json_formatter_emits_one_json_line():
    buffer = io.StringIO()
    handler_id = logger.add(buffer, format=json_formatter, colorize=False)
    token = virtual_user_id.set("vu-3")
    try:
        logger.bind(term="love").info("GET {braces} kept")
    finally:
        virtual_user_id.reset(token)
        logger.remove(handler_id)

    entry = json.loads(buffer.getvalue().strip())
    assert entry["message"] == "GET {braces} kept"
    assert entry["level"] == "INFO"
    assert entry["virtual_user"] == "vu-3"
    assert entry["term"] == "love"
    assert entry["trace_id"] == "no-trace"


def test_stdlib_logging_is_intercepted():
    buffer = io.StringIO()
    handler_id = logger.add(buffer, format="{message}", colorize=False)
    std_logger = logging.getLogger("httpx.test")
    std_logger.addHandler(InterceptHandler())
    std_logger.setLevel(logging.INFO)
    std_logger.propagate = False
    try:
        std_logger.info("HTTP Request: GET http://shakesapp.test/?q=love")
    finally:
        logger.remove(handler_id)

    assert "GET http://shakesapp.test/?q=love" in buffer.getvalue()
