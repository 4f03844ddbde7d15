"""Parsing and serialising ``multipart/*`` message bodies."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Mapping, Union

from .headers import HeaderMap, get_header_value

CRLF = "\r\n"
_DASHES = "--"
_BOUNDARY_TEXT = "boundary="
DEFAULT_CONTENT_TYPE = "multipart/form-data; boundary=ROOKERY-BOUNDARY"

HeaderInput = Union[HeaderMap, Mapping[str, str], Iterable[tuple[str, str]], None]


@dataclass
class Header:
    """One header of a part: its main value and its ``key=value`` parameters."""

    value: str = ""
    params: dict[str, str] = field(default_factory=dict)

    def __int__(self) -> int:
        return int(self.value)

    def __float__(self) -> float:
        return float(self.value)


def get_header_object(headers: Iterable[tuple[str, Header]], key: str) -> Header:
    """Return the first header named ``key`` (case-insensitive), or an empty one."""
    wanted = key.lower()
    for name, header in headers:
        if name.lower() == wanted:
            return header
    return Header()


@dataclass
class Part:
    """One section of a multipart message: its headers and its data."""

    headers: list[tuple[str, Header]] = field(default_factory=list)
    body: str = ""

    def __int__(self) -> int:
        return int(self.body)

    def __float__(self) -> float:
        return float(self.body)

    def get_header_object(self, key: str) -> Header:
        """Return the first header named ``key``, or an empty one."""
        return get_header_object(self.headers, key)


def _part_name(part: Part) -> str:
    disposition = part.get_header_object("Content-Disposition")
    try:
        return disposition.params["name"]
    except KeyError:
        raise ValueError("multipart part has no Content-Disposition name parameter") from None


def _boundary_from(content_type: str) -> str:
    found = content_type.find(_BOUNDARY_TEXT)
    if found < 0:
        return ""
    boundary = content_type[found + len(_BOUNDARY_TEXT):]
    if boundary.startswith('"'):
        boundary = boundary[1:-1]
    return boundary


def _unquote(text: str, quote: str = '"') -> str:
    if len(text) > 1 and text[0] == quote and text[-1] == quote:
        return text[1:-1]
    return text


def _parse_header_line(line: str) -> tuple[str, Header]:
    if not line:
        return "", Header()
    head, _, params_text = line.partition("; ")
    key, colon, value = head.partition(": ")
    header = Header(value if colon else "")
    while params_text:
        param, _, params_text = params_text.partition("; ")
        name, eq, raw = param.partition("=")
        if not eq:
            raw = param
        header.params.setdefault(name, _unquote(raw))
    return key, header


def _parse_section(section: str) -> Part:
    head, separator, rest = section.partition(CRLF + CRLF)
    if not separator:
        raise ValueError("multipart section has no blank line after its headers")
    headers = [_parse_header_line(line) for line in head.split(CRLF)]
    body = rest[:-2] if len(rest) >= 2 else rest
    return Part(headers, body)


def _parse_body(body: str, boundary: str) -> Iterator[Part]:
    delimiter = _DASHES + boundary
    while body != CRLF:
        found = body.find(delimiter)
        if found < 0:
            # No further delimiter: an ill-formed tail is ignored.
            break
        section = body[:found]
        body = body[found + len(delimiter) + 2:]
        if section:
            yield _parse_section(section)


class Message:
    """A multipart message: its headers, boundary and parts.

    Every part must carry a ``name`` parameter in its Content-Disposition header.
    """

    def __init__(
        self,
        headers: HeaderInput = None,
        boundary: str = "",
        parts: Iterable[Part] | None = None,
    ) -> None:
        self.headers = headers if isinstance(headers, HeaderMap) else HeaderMap(headers)
        self.boundary = boundary
        self.parts: list[Part] = list(parts or [])
        self.content_type = (
            f"multipart/form-data; boundary={boundary}" if boundary else DEFAULT_CONTENT_TYPE
        )
        self._named = [(_part_name(part), part) for part in self.parts]

    @classmethod
    def parse(cls, headers: HeaderInput, body: str) -> Message:
        """Build a message from request headers and a raw body."""
        header_map = headers if isinstance(headers, HeaderMap) else HeaderMap(headers)
        boundary = _boundary_from(header_map.get("Content-Type", ""))
        return cls(header_map, boundary, _parse_body(body, boundary))

    def get_header_value(self, key: str) -> str:
        """Return a message header value, or an empty string."""
        return get_header_value(self.headers, key)

    def get_part_by_name(self, name: str) -> Part:
        """Return the part whose name matches ``name`` case-insensitively."""
        wanted = name.lower()
        for part_name, part in self._named:
            if part_name.lower() == wanted:
                return part
        raise KeyError(name)

    def dump(self) -> str:
        """Serialise all parts, without the message headers."""
        delimiter = _DASHES + self.boundary
        pieces = [delimiter + CRLF + self.dump_part(index) for index in range(len(self.parts))]
        pieces.append(delimiter + _DASHES + CRLF)
        return "".join(pieces)

    def dump_part(self, index: int) -> str:
        """Serialise the part at ``index``."""
        part = self.parts[index]
        lines = []
        for key, header in part.headers:
            params = "".join(f'; {name}="{value}"' for name, value in header.params.items())
            lines.append(f"{key}: {header.value}{params}{CRLF}")
        return "".join(lines) + CRLF + part.body + CRLF

    def __str__(self) -> str:
        return self.dump()