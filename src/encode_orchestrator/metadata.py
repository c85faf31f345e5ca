"""Container metadata derived from the encode options.

Tag keys are matched case-insensitively: setting "Title" replaces an
existing "title" entry, and removing "TITLE" removes it.
"""

import logging
from collections.abc import Iterable, Mapping

logger = logging.getLogger(__name__)


def set_tag(tags: dict[str, str], key: str, value: str) -> None:
    """Set a tag, replacing any existing key that differs only in case."""
    for existing in [k for k in tags if k.casefold() == key.casefold()]:
        del tags[existing]
    tags[key] = value


def remove_tag(tags: dict[str, str], key: str) -> None:
    """Remove every key equal to key ignoring case."""
    for existing in [k for k in tags if k.casefold() == key.casefold()]:
        del tags[existing]


def build_metadata(
    source: Mapping[str, str] | None,
    copy_metadata: bool,
    set_entries: Iterable[tuple[str, str]] = (),
    remove_keys: Iterable[str] = (),
) -> dict[str, str]:
    """Build the metadata map written into the container header.

    Args:
        source: Metadata supplied by the caller (e.g. from the input file).
        copy_metadata: Start from a copy of source instead of an empty map.
        set_entries: (key, value) pairs applied on top.
        remove_keys: Keys removed last.

    Returns:
        New metadata dictionary owned by the caller.
    """
    tags: dict[str, str] = dict(source) if copy_metadata and source else {}

    for key, value in set_entries:
        logger.debug("setting metadata value '%s' for key '%s'", value, key)
        set_tag(tags, key, value)

    for key in remove_keys:
        logger.debug("removing metadata key '%s'", key)
        remove_tag(tags, key)

    return tags
