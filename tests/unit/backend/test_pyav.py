"""Tests for the PyAV backend descriptors."""

import pytest

pytest.importorskip("av")

from encode_orchestrator.backend.pyav import PyAVBackend  # noqa: E402
from encode_orchestrator.models import MediaType  # noqa: E402

pytestmark = pytest.mark.pyav


class TestPyAVBackend:
    """Tests for PyAVBackend lookups."""

    def test_guess_matroska_by_extension(self) -> None:
        """Should guess matroska for .mkv files."""
        fmt = PyAVBackend().guess_format(None, "out.mkv")
        assert fmt is not None
        assert fmt.name == "matroska"

    def test_unknown_format_name(self) -> None:
        """Should return None for unknown format names."""
        assert PyAVBackend().guess_format("no-such-format", "out.mkv") is None

    def test_find_encoder(self) -> None:
        """Should describe a built-in encoder."""
        info = PyAVBackend().find_encoder("rawvideo")
        assert info is not None
        assert info.media_type is MediaType.VIDEO

    def test_unknown_encoder(self) -> None:
        """Should return None for unknown encoders."""
        assert PyAVBackend().find_encoder("no-such-encoder") is None
