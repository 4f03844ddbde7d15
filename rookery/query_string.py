"""Key/value access to the query part of a request URL."""

from __future__ import annotations

import re
from typing import Iterator

MAX_KEY_VALUE_PAIRS_COUNT = 256

_PLUS = ord("+")
_PERCENT = ord("%")
_SPACE = ord(" ")
_TERMINATORS = frozenset(b"=#&\0")

_QUERY_START = re.compile(rb"[?#]")
_SEGMENT = re.compile(rb"[^=#&\x00]*")
_BAD_ESCAPE = re.compile(rb"%(?![0-9A-Fa-f]{2})")
_ESCAPE = re.compile(rb"%([0-9A-Fa-f]{2})")
_VALUE_START = re.compile(rb"[=#]")


def _is_qs_char(byte: int) -> bool:
    return byte not in _TERMINATORS


def _byte_at(data: bytes, index: int) -> int:
    return data[index] if index < len(data) else 0


def _hex_value(byte: int) -> int | None:
    char = chr(byte)
    if char in "0123456789abcdefABCDEF":
        return int(char, 16)
    return None


def _text(data: bytes) -> str:
    return data.decode("utf-8", "replace")


def _decode_bytes(data: bytes) -> bytes:
    """Decode up to the first ``=``, ``#`` or ``&``; a bad escape ends the value."""
    segment = _SEGMENT.match(data).group()
    bad = _BAD_ESCAPE.search(segment)
    if bad:
        segment = segment[: bad.start()]
    segment = segment.replace(b"+", b" ")
    decoded = _ESCAPE.sub(lambda m: bytes([int(m.group(1), 16)]), segment)
    return decoded.split(b"\0", 1)[0]


def decode(value: str) -> str:
    """Decode a URL-encoded query value.

    ``+`` becomes a space and ``%XX`` the byte it names. Decoding stops at the
    first ``=``, ``#`` or ``&`` and at the first malformed escape.
    """
    return _text(_decode_bytes(value.encode("utf-8")))


def _next_unit(data: bytes, pos: int) -> tuple[int, int]:
    byte = _byte_at(data, pos)
    pos += 1
    if not _is_qs_char(byte):
        byte = 0
    if byte == _PLUS:
        byte = _SPACE
    elif byte == _PERCENT:
        high = _hex_value(_byte_at(data, pos))
        low = _hex_value(_byte_at(data, pos + 1))
        pos += 2
        byte = high * 16 + low if high is not None and low is not None else 0
    return byte, pos


def _key_matches(key: bytes, pair: bytes) -> bool:
    """Compare ``key`` with the key of ``pair``, decoding escapes on both sides."""
    key_pos = pair_pos = 0
    for _ in range(len(key)):
        key_unit, key_pos = _next_unit(key, key_pos)
        pair_unit, pair_pos = _next_unit(pair, pair_pos)
        if key_unit != pair_unit:
            return False
        if key_unit == 0:
            return True
    return not _is_qs_char(_byte_at(pair, pair_pos))


def _process_pair(piece: bytes) -> bytes:
    found = _VALUE_START.search(piece)
    if not found:
        return piece
    return piece[: found.end()] + _decode_bytes(piece[found.end():])


def _parse(url: bytes) -> list[bytes]:
    url = url.split(b"\0", 1)[0]
    start = _QUERY_START.search(url)
    if not start:
        return []
    pieces = url[start.end():].split(b"&")[:MAX_KEY_VALUE_PAIRS_COUNT]
    return [_process_pair(piece) for piece in pieces]


def _dict_entry(name: bytes, pair: bytes) -> tuple[bytes, bytes] | None:
    eq = pair.find(b"=")
    value_start = eq + 1 if eq >= 0 else len(pair)
    brace_open = pair.find(b"[")
    brace_open = brace_open + 1 if brace_open >= 0 else len(pair)
    brace_close = pair.find(b"]")
    if brace_close < 0:
        brace_close = len(pair)
    if 0 < brace_open <= brace_close and brace_close > 0:
        return pair[brace_open:brace_close], pair[value_start:]
    return None


class QueryString:
    """The ``key=value`` pairs that follow the ``?`` of a URL.

    Values are decoded when the query is parsed; keys are matched with
    escapes decoded on both sides. At most 256 pairs are kept.
    """

    MAX_KEY_VALUE_PAIRS_COUNT = MAX_KEY_VALUE_PAIRS_COUNT

    def __init__(self, url: str = "") -> None:
        self._url = url
        self._pairs: list[bytes] = _parse(url.encode("utf-8")) if url else []

    def _values(self, key: bytes) -> Iterator[str]:
        for pair in self._pairs:
            if _key_matches(key, pair):
                eq = pair.find(b"=")
                yield _text(pair[eq + 1:]) if eq >= 0 else ""

    def get(self, name: str) -> str | None:
        """Return the value of the first pair named ``name``, or None."""
        return next(self._values(name.encode("utf-8")), None)

    def pop(self, name: str) -> str | None:
        """Like :meth:`get`, and remove the first ``name=`` pair."""
        value = self.get(name)
        if value is not None:
            prefix = name.encode("utf-8") + b"="
            for index, pair in enumerate(self._pairs):
                if pair.startswith(prefix):
                    del self._pairs[index]
                    break
        return value

    def get_list(self, name: str, use_brackets: bool = True) -> list[str]:
        """Return every value of ``name[]`` (or ``name`` without brackets)."""
        key = name + ("[]" if use_brackets else "")
        return list(self._values(key.encode("utf-8")))

    def pop_list(self, name: str, use_brackets: bool = True) -> list[str]:
        """Like :meth:`get_list`, and remove the matching pairs."""
        values = self.get_list(name, use_brackets)
        if values:
            prefix = (name + ("[]=" if use_brackets else "=")).encode("utf-8")
            self._pairs = [pair for pair in self._pairs if not pair.startswith(prefix)]
        return values

    def get_dict(self, name: str) -> dict[str, str]:
        """Collect ``name[key]=value`` pairs into a dict; the first of a key wins.

        Collection stops at the first pair starting with ``name`` that has no
        usable brackets.
        """
        prefix = name.encode("utf-8")
        result: dict[str, str] = {}
        for pair in self._pairs:
            if not pair.startswith(prefix):
                continue
            entry = _dict_entry(prefix, pair)
            if entry is None:
                break
            key, value = entry
            result.setdefault(_text(key), _text(value))
        return result

    def pop_dict(self, name: str) -> dict[str, str]:
        """Like :meth:`get_dict`, and remove every pair starting with ``name[``."""
        result = self.get_dict(name)
        if result:
            prefix = (name + "[").encode("utf-8")
            self._pairs = [pair for pair in self._pairs if not pair.startswith(prefix)]
        return result

    def keys(self) -> list[str]:
        """Return the raw key of every pair, in order."""
        return [_text(pair.split(b"=", 1)[0]) for pair in self._pairs]

    def clear(self) -> None:
        """Forget the URL and all pairs."""
        self._url = ""
        self._pairs = []

    def __str__(self) -> str:
        return "[ " + ", ".join(_text(pair) for pair in self._pairs) + " ]"

    def __repr__(self) -> str:
        return f"QueryString({self._url!r})"