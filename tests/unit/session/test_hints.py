"""Tests for producer hints, color settings and output properties."""

import logging

import pytest

from encode_orchestrator.colorspace import ColorRange, ColorSpace
from encode_orchestrator.models import MediaType


class TestTimingHints:
    """Tests for timing bookkeeping shared by producers."""

    def test_set_audio_pts_resets_sample_count(self, make_session) -> None:
        """Should record the audio pts and restart sample counting."""
        session = make_session("out.mkv")
        with session.timing() as timing:
            timing.samples_since_last_pts = 512
        session.set_audio_pts(3.5)
        with session.timing() as timing:
            assert timing.last_audio_in_pts == 3.5
            assert timing.samples_since_last_pts == 0

    def test_discontinuity_clears_offsets(self, make_session) -> None:
        """Should forget the offsets but keep the audio pts."""
        session = make_session("out.mkv")
        with session.timing() as timing:
            timing.audio_pts_offset = 1.0
            timing.last_video_in_pts = 2.0
            timing.discontinuity_pts_offset = 3.0
            timing.last_audio_in_pts = 4.0
        session.discontinuity()
        with session.timing() as timing:
            assert timing.audio_pts_offset is None
            assert timing.last_video_in_pts is None
            assert timing.discontinuity_pts_offset is None
            assert timing.last_audio_in_pts == 4.0

    def test_get_offset(self, make_session) -> None:
        """Should return the configured offset per media type."""
        session = make_session("out.mkv", video_offset=1.5, audio_offset=-0.25)
        _, video_codec = session.alloc_stream(MediaType.VIDEO)
        _, audio_codec = session.alloc_stream(MediaType.AUDIO)
        assert session.get_offset(video_codec) == 1.5
        assert session.get_offset(audio_codec) == -0.25

    def test_expect_stream_sets_flags(self, make_session) -> None:
        session = make_session("out.mkv")
        session.expect_stream(MediaType.AUDIO)
        assert session.expect_audio
        assert not session.expect_video


class TestPixelFormats:
    """Tests for EncodeSession.supports_pixel_format method."""

    def test_listed_format(self, make_session) -> None:
        session = make_session("out.mkv", video_codec="mpeg4")
        assert session.supports_pixel_format("yuv420p")
        assert not session.supports_pixel_format("yuv444p")

    def test_unrestricted_encoder(self, make_session) -> None:
        """Should accept anything when the encoder lists no formats."""
        session = make_session("out.mkv", video_codec="ffv1")
        assert session.supports_pixel_format("gbrp")
        assert not session.supports_pixel_format(None)

    def test_no_video_encoder(self, make_session) -> None:
        session = make_session("out.wav")
        assert not session.supports_pixel_format("yuv420p")


class TestColor:
    """Tests for color space and color range settings."""

    def test_set_before_start(self, make_session) -> None:
        """Should configure the codec before the header."""
        session = make_session("out.mkv")
        _, codec = session.alloc_stream(MediaType.VIDEO)
        assert session.set_colorspace(codec, ColorSpace.BT_709)
        assert session.set_color_range(codec, ColorRange.FULL)
        assert codec.colorspace == "bt709"
        assert session.get_colorspace(codec) is ColorSpace.BT_709
        assert session.get_color_range(codec) is ColorRange.FULL

    def test_change_after_start_refused(
        self, make_session, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Should keep the color space fixed once encoding started."""
        session = make_session("out.mkv")
        _, codec = session.alloc_stream(MediaType.VIDEO)
        session.set_colorspace(codec, ColorSpace.BT_709)
        session.open_codec(codec)
        session.start()
        caplog.clear()
        with caplog.at_level(logging.WARNING):
            assert not session.set_colorspace(codec, ColorSpace.BT_709)
            assert not caplog.records
            assert not session.set_colorspace(codec, ColorSpace.BT_601)
        assert "can not change color space during encoding" in caplog.text
        assert session.get_colorspace(codec) is ColorSpace.BT_709


class TestMetadataAndProperties:
    """Tests for metadata handling and output properties."""

    def test_set_metadata_applies_edits(self, make_session) -> None:
        session = make_session(
            "out.mkv", set_metadata=(("Title", "T"),), remove_metadata=("genre",)
        )
        session.set_metadata({"title": "old", "GENRE": "x", "year": "2020"})
        assert session.metadata == {"year": "2020", "Title": "T"}

    def test_properties(self, make_session) -> None:
        session = make_session("out.mkv")
        assert session.available
        assert session.output_format.name == "matroska"
        session.finish()
        assert session.format is None
