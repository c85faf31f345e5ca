"""Tests for option string parsing."""

import logging

import pytest

from encode_orchestrator.dictionary import OptionDictionary
from encode_orchestrator.option_parsing import (
    apply_option_strings,
    set_option,
    value_has_flag,
)


class TestSetOption:
    """Tests for set_option function."""

    def test_splits_key_value_string(self) -> None:
        """Should split at the first equals sign."""
        d = OptionDictionary()
        assert set_option(d, None, "x264-params=keyint=60")
        assert d.get("x264-params") == "keyint=60"

    def test_explicit_key(self) -> None:
        """Should accept an explicit key and value."""
        d = OptionDictionary()
        assert set_option(d, "crf", "20")
        assert d.get("crf") == "20"

    def test_rejects_string_without_equals(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Should warn and return False for a malformed entry."""
        d = OptionDictionary()
        with caplog.at_level(logging.WARNING):
            assert not set_option(d, None, "novalue")
        assert len(d) == 0
        assert "does not contain an equals sign" in caplog.text

    def test_plus_prefix_appends(self) -> None:
        """Should append flag-style values to the existing value."""
        d = OptionDictionary()
        set_option(d, None, "flags=+pass1")
        set_option(d, "flags", "+qscale")
        assert d.get("flags") == "+pass1+qscale"

    def test_minus_prefix_appends(self) -> None:
        """Should append a clearing flag instead of replacing."""
        d = OptionDictionary({"flags": "+pass1"})
        set_option(d, "flags", "-pass1")
        assert d.get("flags") == "+pass1-pass1"

    def test_empty_value_unsets(self) -> None:
        """Should remove the key for "key=" entries."""
        d = OptionDictionary({"crf": "20"})
        assert set_option(d, None, "crf=")
        assert "crf" not in d

    def test_qscale_rewritten(self) -> None:
        """Should turn qscale into a global_quality expression."""
        d = OptionDictionary()
        set_option(d, None, "qscale=4")
        assert "qscale" not in d
        assert d.get("global_quality") == "(4)*QP2LAMBDA"

    def test_qscale_keeps_sign_outside(self) -> None:
        """Should keep a leading sign in front of the expression."""
        d = OptionDictionary({"global_quality": "(2)*QP2LAMBDA"})
        set_option(d, None, "qscale=+3")
        assert d.get("global_quality") == "(2)*QP2LAMBDA+(3)*QP2LAMBDA"


class TestApplyOptionStrings:
    """Tests for apply_option_strings function."""

    def test_applies_all_valid_entries(self) -> None:
        """Should apply every well-formed entry."""
        d = OptionDictionary()
        apply_option_strings(d, ["b=1M", "g=50"], "video_options")
        assert d == {"b": "1M", "g": "50"}

    def test_warns_with_label(self, caplog: pytest.LogCaptureFixture) -> None:
        """Should name the option group in the warning."""
        d = OptionDictionary()
        with caplog.at_level(logging.WARNING):
            apply_option_strings(d, ["broken", "b=1M"], "audio_options")
        assert "audio_options: could not set option broken" in caplog.text
        assert d == {"b": "1M"}


class TestValueHasFlag:
    """Tests for value_has_flag function."""

    @pytest.mark.parametrize(
        ("value", "flag", "expected"),
        [
            ("+pass1", "pass1", True),
            ("pass1", "pass1", True),
            ("+qscale+pass2", "pass2", True),
            ("+pass1-pass1", "pass1", False),
            ("-pass1+pass1", "pass1", True),
            ("+pass10", "pass1", False),
            ("", "pass1", False),
            ("+global_header", "pass1", False),
        ],
    )
    def test_flag_detection(self, value: str, flag: str, expected: bool) -> None:
        """Should honor the last mention of a flag."""
        assert value_has_flag(value, flag) is expected
