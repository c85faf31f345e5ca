"""Tests for encode logging context."""

import logging
import threading

from encode_orchestrator.logging.context import (
    EncodeContextFilter,
    clear_encode_context,
    encode_context,
    get_encode_context,
    set_encode_context,
)


def _record() -> logging.LogRecord:
    return logging.LogRecord("test", logging.INFO, __file__, 1, "msg", None, None)


class TestEncodeContext:
    """Tests for encode context helpers."""

    def test_context_manager_restores_previous(self) -> None:
        """Should restore the outer context on exit."""
        set_encode_context("outer.mkv")
        try:
            with encode_context("inner.mkv", "video"):
                assert get_encode_context() == ("inner.mkv", "video")
            assert get_encode_context() == ("outer.mkv", None)
        finally:
            clear_encode_context()

    def test_context_is_per_thread(self) -> None:
        """Should not leak into other threads."""
        seen = []
        with encode_context("out.mkv", "audio"):
            thread = threading.Thread(target=lambda: seen.append(get_encode_context()))
            thread.start()
            thread.join()
        assert seen == [(None, None)]


class TestEncodeContextFilter:
    """Tests for EncodeContextFilter."""

    def test_tag_with_output_and_stream(self) -> None:
        """Should render [output:stream]."""
        record = _record()
        with encode_context("out.mkv", "video"):
            assert EncodeContextFilter().filter(record) is True
        assert record.encode_tag == "[out.mkv:video] "
        assert record.encode_output == "out.mkv"
        assert record.encode_stream == "video"

    def test_tag_with_output_only(self) -> None:
        """Should render [output]."""
        record = _record()
        with encode_context("out.mkv"):
            EncodeContextFilter().filter(record)
        assert record.encode_tag == "[out.mkv] "

    def test_empty_tag_without_context(self) -> None:
        """Should render an empty tag."""
        record = _record()
        EncodeContextFilter().filter(record)
        assert record.encode_tag == ""
