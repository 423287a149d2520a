"""Tests for the service's logging setup."""

from __future__ import annotations

import io
import json
import logging

import pytest

from curve_exit.logging_config import (
    SERVICE_NAME,
    JsonLineFormatter,
    bind_request_id,
    redact,
    request_id_ctx,
    setup_logging,
)

_HELIUS_URL = "https://api.helius.test/v0/addresses/W/transactions?api-key=secret123&before=sig"


@pytest.fixture(autouse=True)
def _clean_request_id():
    token = request_id_ctx.set("-")
    yield
    request_id_ctx.reset(token)


def _emit(fmt: str, msg: str, *args) -> str:
    out = io.StringIO()
    setup_logging(level="INFO", fmt=fmt, stream=out)
    logging.getLogger("curve_exit.exit_service").info(msg, *args)
    return out.getvalue().strip()


class TestBindRequestId:

    def test_fresh_id_when_no_header(self):
        rid = bind_request_id()
        assert len(rid) == 12
        assert int(rid, 16) >= 0
        assert request_id_ctx.get() == rid

    def test_gateway_id_kept(self):
        assert bind_request_id("gw-7f3a9c01-req") == "gw-7f3a9c01-req"

    @pytest.mark.parametrize("inbound", ["short", "has spaces in it", "x" * 65, "inject\nline"])
    def test_unusable_gateway_id_replaced(self, inbound):
        rid = bind_request_id(inbound)
        assert rid != inbound
        assert len(rid) == 12


class TestRedact:

    def test_masks_api_key(self):
        assert redact(_HELIUS_URL) == (
            "https://api.helius.test/v0/addresses/W/transactions?api-key=***&before=sig"
        )

    def test_leaves_other_text(self):
        assert redact("Scanned 3 pages") == "Scanned 3 pages"


class TestJsonLines:

    def test_fields(self):
        bind_request_id("gw-00000001")
        data = json.loads(_emit("json", "sell found in %s", "sigA"))
        assert data["service"] == SERVICE_NAME
        assert data["level"] == "INFO"
        assert data["logger"] == "curve_exit.exit_service"
        assert data["request_id"] == "gw-00000001"
        assert data["msg"] == "sell found in sigA"

    def test_outside_request_uses_dash(self):
        data = json.loads(_emit("json", "startup"))
        assert data["request_id"] == "-"

    def test_key_masked_in_message_and_traceback(self):
        out = io.StringIO()
        setup_logging(fmt="json", stream=out)
        try:
            raise RuntimeError(f"GET {_HELIUS_URL} failed")
        except RuntimeError:
            logging.getLogger("curve_exit").exception("history fetch %s", _HELIUS_URL)
        data = json.loads(out.getvalue())
        assert "secret123" not in data["msg"]
        assert "secret123" not in data["exception"]
        assert "RuntimeError" in data["exception"]


class TestTextLines:

    def test_request_id_in_line(self):
        bind_request_id("gw-00000002")
        line = _emit("text", "cache hit")
        assert "[INFO] curve_exit.exit_service (gw-00000002) cache hit" in line

    def test_key_masked(self):
        line = _emit("text", "GET %s", _HELIUS_URL)
        assert "secret123" not in line
        assert "api-key=***" in line


class TestSetupLogging:

    def test_single_root_handler(self):
        setup_logging()
        setup_logging()
        assert len(logging.getLogger().handlers) == 1

    def test_level_and_format_arguments(self):
        handler = setup_logging(level="debug", fmt="json")
        assert logging.getLogger().level == logging.DEBUG
        assert isinstance(handler.formatter, JsonLineFormatter)

    def test_http_stack_quieted(self):
        setup_logging(level="DEBUG")
        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("httpcore").level == logging.WARNING
