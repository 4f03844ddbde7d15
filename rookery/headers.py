"""A case-insensitive multimap for HTTP-style headers."""

from __future__ import annotations

from typing import Iterable, Iterator, Mapping, Union

HeaderSource = Union[Mapping[str, str], Iterable[tuple[str, str]]]


class HeaderMap:
    """Headers keyed case-insensitively; a key may hold several values.

    Entries keep their insertion order and the spelling of their keys.
    Iterating yields ``(key, value)`` pairs.
    """

    def __init__(self, items: HeaderSource | None = None) -> None:
        self._entries: list[tuple[str, str]] = []
        if items is None:
            return
        pairs = items.items() if isinstance(items, Mapping) else items
        for key, value in pairs:
            self.add(key, value)

    def add(self, key: str, value: str) -> None:
        """Append a value for ``key`` without replacing existing ones."""
        self._entries.append((key, value))

    def get(self, key: str, default: str = "") -> str:
        """Return the first value for ``key``, or ``default`` if there is none."""
        wanted = key.lower()
        for name, value in self._entries:
            if name.lower() == wanted:
                return value
        return default

    def get_all(self, key: str) -> list[str]:
        """Return every value for ``key`` in insertion order."""
        wanted = key.lower()
        return [value for name, value in self._entries if name.lower() == wanted]

    def count(self, key: str) -> int:
        """Return how many values ``key`` holds."""
        return len(self.get_all(key))

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        wanted = key.lower()
        return any(name.lower() == wanted for name, _ in self._entries)

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HeaderMap):
            return NotImplemented
        return [(k.lower(), v) for k, v in self._entries] == [(k.lower(), v) for k, v in other._entries]

    def __repr__(self) -> str:
        return f"HeaderMap({self._entries!r})"


def get_header_value(headers: HeaderMap | Mapping[str, str], key: str) -> str:
    """Return the first value for ``key`` in ``headers``, or an empty string."""
    if isinstance(headers, HeaderMap):
        return headers.get(key, "")
    wanted = key.lower()
    for name, value in headers.items():
        if name.lower() == wanted:
            return value
    return ""