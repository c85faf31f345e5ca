"""Key/value option dictionary handed to the codec and container library.

Mirrors the semantics of the library-side dictionary: setting an empty
value removes the key, appending concatenates to the existing value, and
whatever keys remain after the library consumed the ones it understood
are reported back as unknown options.
"""

from __future__ import annotations

from collections.abc import Iterator


class OptionDictionary:
    """Ordered string-to-string option dictionary."""

    def __init__(self, entries: dict[str, str] | None = None) -> None:
        self._entries: dict[str, str] = dict(entries) if entries else {}

    def set(self, key: str, value: str | None, append: bool = False) -> None:
        """Set, append to, or remove a key.

        Args:
            key: Option name.
            value: Option value. None or "" removes the key.
            append: Concatenate to the existing value instead of replacing it.
        """
        if not value:
            self._entries.pop(key, None)
            return
        if append and key in self._entries:
            self._entries[key] = self._entries[key] + value
        else:
            self._entries[key] = value

    def get(self, key: str, default: str | None = None) -> str | None:
        return self._entries.get(key, default)

    def pop(self, key: str, default: str | None = None) -> str | None:
        return self._entries.pop(key, default)

    def items(self) -> list[tuple[str, str]]:
        return list(self._entries.items())

    def to_dict(self) -> dict[str, str]:
        return dict(self._entries)

    def copy(self) -> OptionDictionary:
        return OptionDictionary(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, OptionDictionary):
            return self._entries == other._entries
        if isinstance(other, dict):
            return self._entries == other
        return NotImplemented

    def __repr__(self) -> str:
        return f"OptionDictionary({self._entries!r})"
