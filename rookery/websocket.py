"""A WebSocket connection that parses and produces frames without doing I/O.

Bytes read from the peer go in through :meth:`WebSocketConnection.receive_data`.
Bytes to write come out of :meth:`WebSocketConnection.data_to_send`.
"""

from __future__ import annotations

import struct
from enum import Enum, auto
from typing import Any, Callable, Optional, Union

from .log import debug
from .middleware import Request
from .websocket_frames import Opcode, apply_mask, build_header, handshake_response

OpenHandler = Callable[["WebSocketConnection"], Any]
MessageHandler = Callable[["WebSocketConnection", Union[str, bytes], bool], Any]
CloseHandler = Callable[["WebSocketConnection", str], Any]
ErrorHandler = Callable[["WebSocketConnection"], Any]
AcceptHandler = Callable[[Request], bool]

Payload = Union[str, bytes, bytearray, memoryview]


class ReadState(Enum):
    """The part of a frame the connection is waiting for."""

    MINI_HEADER = auto()
    LEN16 = auto()
    LEN64 = auto()
    MASK = auto()
    PAYLOAD = auto()


def _as_bytes(message: Payload) -> bytes:
    if isinstance(message, str):
        return message.encode("utf-8")
    return bytes(message)


def _as_text(data: bytes) -> str:
    return data.decode("utf-8", "replace")


class WebSocketConnection:
    """Server side of one WebSocket connection.

    Text messages reach ``on_message`` as ``str`` and binary ones as ``bytes``,
    together with a flag telling whether the message is binary. The close
    handler runs at most once; on an unclean end it receives ``"uncleanly"``.
    """

    def __init__(
        self,
        request: Request,
        on_open: Optional[OpenHandler] = None,
        on_message: Optional[MessageHandler] = None,
        on_close: Optional[CloseHandler] = None,
        on_error: Optional[ErrorHandler] = None,
        on_accept: Optional[AcceptHandler] = None,
        *,
        enforce_mask: bool = False,
        remote_ip: str = "",
    ) -> None:
        self.request = request
        self.remote_ip = remote_ip
        self.userdata: Any = None
        self._on_open = on_open
        self._on_message = on_message
        self._on_close = on_close
        self._on_error = on_error
        self._on_accept = on_accept
        self._enforce_mask = enforce_mask

        self._incoming = bytearray()
        self._outgoing = bytearray()
        self._state = ReadState.MINI_HEADER
        self._fin = False
        self._opcode = 0
        self._has_mask = False
        self._mask = b""
        self._remaining = 0
        self._fragment = bytearray()
        self._message = bytearray()
        self._is_binary = False

        self._started = False
        self._open = False
        self._closed = False
        self._has_sent_close = False
        self._has_recv_close = False
        self._close_handler_called = False
        self.pong_received = False

    @property
    def state(self) -> ReadState:
        """What the reader is currently waiting for."""
        return self._state

    @property
    def closed(self) -> bool:
        """True once the connection has ended, cleanly or not."""
        return self._closed

    def start(self) -> bool:
        """Check the upgrade request and queue the handshake reply.

        Returns False, leaving the connection closed, when the request is not
        a WebSocket upgrade or the accept handler refuses it.
        """
        if self._started:
            raise RuntimeError("connection already started")
        self._started = True
        if self.request.headers.get("upgrade", "").lower() != "websocket":
            self._closed = True
            return False
        if self._on_accept is not None and not self._on_accept(self.request):
            self._closed = True
            return False
        key = self.request.headers.get("Sec-WebSocket-Key", "")
        self._outgoing += handshake_response(key)
        self._open = True
        if self._on_open is not None:
            self._on_open(self)
        return True

    def receive_data(self, data: bytes | bytearray | memoryview) -> None:
        """Feed bytes read from the peer; complete frames are handled at once."""
        if not self._started:
            raise RuntimeError("connection not started")
        if self._closed:
            return
        self._incoming += data
        self._process()

    def data_to_send(self) -> bytes:
        """Return and forget the bytes waiting to be written to the peer."""
        data = bytes(self._outgoing)
        self._outgoing.clear()
        return data

    def send_text(self, message: Payload) -> None:
        """Queue a text frame."""
        self._send(Opcode.TEXT, _as_bytes(message))

    def send_binary(self, message: Payload) -> None:
        """Queue a binary frame."""
        self._send(Opcode.BINARY, _as_bytes(message))

    def send_ping(self, message: Payload) -> None:
        """Queue a ping frame."""
        self._send(Opcode.PING, _as_bytes(message))

    def send_pong(self, message: Payload) -> None:
        """Queue a pong frame."""
        self._send(Opcode.PONG, _as_bytes(message))

    def close(self, message: Payload = "quit") -> None:
        """Queue a close frame; the connection ends once both sides have sent one."""
        payload = _as_bytes(message)
        self._ensure_writable()
        self._has_sent_close = True
        if self._has_recv_close:
            self._call_close_handler(_as_text(payload))
        self._write_frame(Opcode.CLOSE, payload)
        if self._has_recv_close:
            self._closed = True

    def connection_lost(self) -> None:
        """Report that the transport failed or went away."""
        if self._closed:
            return
        self._fail()

    def _ensure_writable(self) -> None:
        if not self._open or self._closed or self._has_sent_close:
            raise ConnectionError("websocket connection is not open for sending")

    def _send(self, opcode: Opcode, payload: bytes) -> None:
        self._ensure_writable()
        self._write_frame(opcode, payload)

    def _write_frame(self, opcode: Opcode, payload: bytes) -> None:
        self._outgoing += build_header(opcode, len(payload))
        self._outgoing += payload

    def _call_close_handler(self, message: str) -> None:
        if self._close_handler_called:
            return
        self._close_handler_called = True
        if self._on_close is not None:
            self._on_close(self, message)

    def _fail(self) -> None:
        self._closed = True
        if self._on_error is not None:
            self._on_error(self)
        self._call_close_handler("uncleanly")

    def _take(self, count: int) -> bytes | None:
        if len(self._incoming) < count:
            return None
        chunk = bytes(self._incoming[:count])
        del self._incoming[:count]
        return chunk

    def _process(self) -> None:
        while not self._closed:
            state = self._state
            if state is ReadState.MINI_HEADER:
                head = self._take(2)
                if head is None:
                    return
                first, second = head
                self._fin = bool(first & 0x80)
                self._opcode = first & 0x0F
                self._has_mask = bool(second & 0x80)
                if not self._has_mask and self._enforce_mask:
                    debug("websocket: unmasked frame rejected")
                    self._fail()
                    return
                length = second & 0x7F
                if length == 127:
                    self._state = ReadState.LEN64
                elif length == 126:
                    self._state = ReadState.LEN16
                else:
                    self._remaining = length
                    self._state = ReadState.MASK
            elif state is ReadState.LEN16:
                chunk = self._take(2)
                if chunk is None:
                    return
                (self._remaining,) = struct.unpack("!H", chunk)
                self._state = ReadState.MASK
            elif state is ReadState.LEN64:
                chunk = self._take(8)
                if chunk is None:
                    return
                (self._remaining,) = struct.unpack("!Q", chunk)
                self._state = ReadState.MASK
            elif state is ReadState.MASK:
                if self._has_mask:
                    chunk = self._take(4)
                    if chunk is None:
                        return
                    self._mask = chunk
                self._state = ReadState.PAYLOAD
            else:
                take = min(self._remaining, len(self._incoming))
                if take == 0 and self._remaining > 0:
                    return
                self._fragment += self._incoming[:take]
                del self._incoming[:take]
                self._remaining -= take
                if self._remaining == 0:
                    self._state = ReadState.MINI_HEADER
                    self._handle_fragment()

    def _deliver(self) -> None:
        if not self._fin:
            return
        data = bytes(self._message)
        self._message.clear()
        if self._on_message is not None:
            message: str | bytes = data if self._is_binary else _as_text(data)
            self._on_message(self, message, self._is_binary)

    def _handle_fragment(self) -> None:
        fragment = bytes(self._fragment)
        self._fragment.clear()
        if self._has_mask:
            fragment = apply_mask(fragment, self._mask)
        opcode = self._opcode
        if opcode == Opcode.CONTINUATION:
            self._message += fragment
            self._deliver()
        elif opcode == Opcode.TEXT:
            self._is_binary = False
            self._message += fragment
            self._deliver()
        elif opcode == Opcode.BINARY:
            self._is_binary = True
            self._message += fragment
            self._deliver()
        elif opcode == Opcode.CLOSE:
            self._has_recv_close = True
            if not self._has_sent_close:
                self.close(fragment)
            else:
                self._closed = True
                self._call_close_handler(_as_text(fragment))
        elif opcode == Opcode.PING:
            if not self._has_sent_close:
                self.send_pong(fragment)
        elif opcode == Opcode.PONG:
            self.pong_received = True