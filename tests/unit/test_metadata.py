"""Tests for container metadata construction."""

from encode_orchestrator.metadata import build_metadata, remove_tag, set_tag


class TestTagHelpers:
    """Tests for set_tag and remove_tag."""

    def test_set_replaces_case_insensitive_key(self) -> None:
        """Should replace a key that differs only in case."""
        tags = {"Title": "old"}
        set_tag(tags, "title", "new")
        assert tags == {"title": "new"}

    def test_remove_is_case_insensitive(self) -> None:
        """Should remove keys regardless of case."""
        tags = {"ARTIST": "x", "title": "y"}
        remove_tag(tags, "artist")
        assert tags == {"title": "y"}

    def test_remove_missing_key_is_noop(self) -> None:
        """Should ignore keys that are not present."""
        tags = {"title": "y"}
        remove_tag(tags, "comment")
        assert tags == {"title": "y"}


class TestBuildMetadata:
    """Tests for build_metadata function."""

    def test_copies_source_when_enabled(self) -> None:
        """Should start from the source tags."""
        source = {"title": "Movie"}
        result = build_metadata(source, copy_metadata=True)
        assert result == {"title": "Movie"}
        assert result is not source

    def test_starts_empty_when_copy_disabled(self) -> None:
        """Should ignore the source tags."""
        result = build_metadata({"title": "Movie"}, copy_metadata=False)
        assert result == {}

    def test_applies_set_then_remove(self) -> None:
        """Should apply set entries before removals."""
        result = build_metadata(
            {"title": "Movie", "artist": "Someone"},
            copy_metadata=True,
            set_entries=[("comment", "encoded"), ("Title", "Renamed")],
            remove_keys=["ARTIST", "comment"],
        )
        assert result == {"Title": "Renamed"}

    def test_none_source(self) -> None:
        """Should treat a missing source as empty."""
        result = build_metadata(None, True, [("title", "x")])
        assert result == {"title": "x"}
