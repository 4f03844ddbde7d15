"""WebSocket wire pieces: frame headers, masking and the opening handshake."""

from __future__ import annotations

import base64
import hashlib
import struct
from enum import IntEnum
from itertools import cycle

WEBSOCKET_GUID = "258EAFA5-E914-47DA-95CA-C5AB0DC85B11"
CRLF = "\r\n"
_HANDSHAKE_PREFIX = (
    "HTTP/1.1 101 Switching Protocols\r\n"
    "Upgrade: websocket\r\n"
    "Connection: Upgrade\r\n"
    "Sec-WebSocket-Accept: "
)
_FIN = 0x80
_MAX_PAYLOAD = 1 << 64


class Opcode(IntEnum):
    """Frame opcodes understood by the connection."""

    CONTINUATION = 0x0
    TEXT = 0x1
    BINARY = 0x2
    CLOSE = 0x8
    PING = 0x9
    PONG = 0xA


def build_header(opcode: Opcode | int, size: int) -> bytes:
    """Return the header of a final, unmasked frame carrying ``size`` bytes."""
    if not 0 <= int(opcode) <= 0xF:
        raise ValueError(f"opcode must fit in four bits, got {opcode}")
    if not 0 <= size < _MAX_PAYLOAD:
        raise ValueError(f"payload size out of range: {size}")
    first = _FIN | int(opcode)
    if size < 126:
        return bytes((first, size))
    if size < 0x10000:
        return struct.pack("!BBH", first, 126, size)
    return struct.pack("!BBQ", first, 127, size)


def accept_key(key: str) -> str:
    """Compute the ``Sec-WebSocket-Accept`` value for a client's ``Sec-WebSocket-Key``."""
    digest = hashlib.sha1((key + WEBSOCKET_GUID).encode("utf-8")).digest()
    return base64.b64encode(digest).decode("ascii")


def apply_mask(data: bytes | bytearray | memoryview, mask: bytes | bytearray) -> bytes:
    """XOR ``data`` with the four-byte ``mask``; applying it twice restores the data."""
    mask = bytes(mask)
    if len(mask) != 4:
        raise ValueError(f"mask must be 4 bytes long, got {len(mask)}")
    return bytes(byte ^ key for byte, key in zip(bytes(data), cycle(mask)))


def handshake_response(key: str) -> bytes:
    """Return the complete ``101 Switching Protocols`` reply for ``key``."""
    return (_HANDSHAKE_PREFIX + accept_key(key) + CRLF + CRLF).encode("ascii")