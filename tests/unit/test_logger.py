import io
import logging
from collections.abc import Iterator

import pytest

from rsvp.logging.logger import Log


@pytest.fixture()
def captured() -> Iterator[io.StringIO]:
    stream = io.StringIO()
    logger = logging.getLogger("rsvp")
    saved = list(logger.handlers)
    logger.handlers.clear()
    Log.configure("debug", stream=stream)
    yield stream
    logger.handlers[:] = saved


class TestLog:
    def test_context_is_appended(self, captured: io.StringIO) -> None:
        Log.info("Stored RSVP", main_email="a@b.com", guests=2)

        line = captured.getvalue().strip()
        assert "[INFO] Stored RSVP | main_email=a@b.com guests=2" in line

    def test_reserved_record_names_are_safe(self, captured: io.StringIO) -> None:
        Log.warning("Image renamed", filename="a.jpg", name="dana")

        assert "filename=a.jpg name=dana" in captured.getvalue()

    def test_plain_message(self, captured: io.StringIO) -> None:
        Log.error("Store locked")

        assert captured.getvalue().rstrip().endswith("[ERROR] Store locked")

    def test_exception_includes_traceback(self, captured: io.StringIO) -> None:
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            Log.exception("Unexpected failure", category="server_error")

        output = captured.getvalue()
        assert "Unexpected failure | category=server_error" in output
        assert "RuntimeError: boom" in output
