import struct

import pytest

from rookery.websocket_frames import (
    Opcode,
    accept_key,
    apply_mask,
    build_header,
    handshake_response,
)

SAMPLE_KEY = "dGhlIHNhbXBsZSBub25jZQ=="


def test_opcode_values():
    first_bytes = [build_header(op, 0)[0] for op in Opcode]
    assert first_bytes == [0x80, 0x81, 0x82, 0x88, 0x89, 0x8A]


@pytest.mark.parametrize("opcode", list(Opcode))
def test_first_byte_has_fin_and_opcode(opcode):
    header = build_header(opcode, 3)
    assert header[0] == 0x80 | int(opcode)
    assert header[1] == 3


def test_empty_close_frame_header():
    assert build_header(Opcode.CLOSE, 0) == b"\x88\x00"


@pytest.mark.parametrize("size", [0, 1, 125])
def test_short_payload_header(size):
    header = build_header(Opcode.TEXT, size)
    assert len(header) == 2
    assert header[1] == size


@pytest.mark.parametrize("size", [126, 1000, 0xFFFF])
def test_sixteen_bit_length_header(size):
    header = build_header(Opcode.BINARY, size)
    assert len(header) == 4
    assert header[1] == 126
    assert struct.unpack("!H", header[2:])[0] == size


@pytest.mark.parametrize("size", [0x10000, 5_000_000, (1 << 64) - 1])
def test_sixty_four_bit_length_header(size):
    header = build_header(Opcode.BINARY, size)
    assert len(header) == 10
    assert header[1] == 127
    assert struct.unpack("!Q", header[2:])[0] == size


@pytest.mark.parametrize("size", [-1, 1 << 64])
def test_size_out_of_range(size):
    with pytest.raises(ValueError):
        build_header(Opcode.TEXT, size)


@pytest.mark.parametrize("opcode", [-1, 16])
def test_opcode_out_of_range(opcode):
    with pytest.raises(ValueError):
        build_header(opcode, 1)


def test_accept_key_sample():
    assert accept_key(SAMPLE_KEY) == "s3pPLMBiTxaQ9kYGzzhZRbK+xOo="


def test_accept_key_differs_per_key():
    assert accept_key("a") != accept_key("b")
    assert len(accept_key("a")) == 28


def test_mask_round_trip():
    data = b"Hello, websocket payload!"
    mask = b"\x37\xfa\x21\x3d"
    masked = apply_mask(data, mask)
    assert masked != data
    assert apply_mask(masked, mask) == data


def test_zero_mask_leaves_data_unchanged():
    data = b"unchanged"
    assert apply_mask(data, b"\x00\x00\x00\x00") == data


def test_mask_keeps_length_and_handles_empty():
    assert apply_mask(b"", b"abcd") == b""
    assert len(apply_mask(b"x" * 9, b"abcd")) == 9


def test_mask_repeats_every_four_bytes():
    masked = apply_mask(bytes(8), b"wxyz")
    assert masked == b"wxyzwxyz"


@pytest.mark.parametrize("mask", [b"", b"abc", b"abcde"])
def test_bad_mask_length(mask):
    with pytest.raises(ValueError):
        apply_mask(b"data", mask)


def test_handshake_response_layout():
    reply = handshake_response(SAMPLE_KEY)
    assert reply.startswith(
        b"HTTP/1.1 101 Switching Protocols\r\n"
        b"Upgrade: websocket\r\n"
        b"Connection: Upgrade\r\n"
        b"Sec-WebSocket-Accept: "
    )
    assert reply.endswith(accept_key(SAMPLE_KEY).encode("ascii") + b"\r\n\r\n")
    assert reply.count(b"\r\n\r\n") == 1