"""HDLC-style framing used by the diag protocol.

Each frame is the escaped payload, followed by an escaped little-endian
CRC-16 checksum and a terminating 0x7e byte.
"""

from __future__ import annotations

MESSAGE_TERMINATOR = 0x7E
MESSAGE_ESCAPE_CHAR = 0x7D
ESCAPED_MESSAGE_TERMINATOR = 0x5E
ESCAPED_MESSAGE_ESCAPE_CHAR = 0x5D

_ESCAPES = {
    MESSAGE_TERMINATOR: bytes([MESSAGE_ESCAPE_CHAR, ESCAPED_MESSAGE_TERMINATOR]),
    MESSAGE_ESCAPE_CHAR: bytes([MESSAGE_ESCAPE_CHAR, ESCAPED_MESSAGE_ESCAPE_CHAR]),
}
_UNESCAPES = {
    ESCAPED_MESSAGE_TERMINATOR: MESSAGE_TERMINATOR,
    ESCAPED_MESSAGE_ESCAPE_CHAR: MESSAGE_ESCAPE_CHAR,
}


class HdlcError(ValueError):
    """Base class for HDLC decapsulation failures."""


class InvalidChecksumError(HdlcError):
    """The checksum carried in the frame does not match the payload."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(f"Invalid checksum (expected {expected}, got {actual})")
        self.expected = expected
        self.actual = actual


class InvalidEscapeSequenceError(HdlcError):
    """An escape byte was followed by a byte that cannot be escaped."""

    def __init__(self, byte: int) -> None:
        super().__init__(f"Invalid HDLC escape sequence: [0x7d, {byte}]")
        self.byte = byte


class NoTrailingCharacterError(HdlcError):
    """The frame does not end with the terminator byte."""

    def __init__(self, byte: int) -> None:
        super().__init__(f"No trailing character found (expected 0x7e, got {byte})")
        self.byte = byte


class MissingChecksumError(HdlcError):
    """The frame is too short to hold its checksum."""

    def __init__(self) -> None:
        super().__init__("Missing checksum")


class TooShortError(HdlcError):
    """The data is too short to be an HDLC frame."""

    def __init__(self) -> None:
        super().__init__("Data too short to be HDLC encapsulated")


def _make_crc_table() -> tuple[int, ...]:
    table = []
    for byte in range(256):
        crc = byte
        for _ in range(8):
            crc = (crc >> 1) ^ 0x8408 if crc & 1 else crc >> 1
        table.append(crc)
    return tuple(table)


_CRC_TABLE = _make_crc_table()


def crc_ccitt(data: bytes) -> int:
    """CRC-16 (poly 0x1021 reflected, init 0xffff, xorout 0xffff) of ``data``."""
    crc = 0xFFFF
    for byte in data:
        crc = (crc >> 8) ^ _CRC_TABLE[(crc ^ byte) & 0xFF]
    return crc ^ 0xFFFF


def _escape(data: bytes) -> bytes:
    return b"".join(_ESCAPES.get(byte, bytes([byte])) for byte in data)


def hdlc_encapsulate(data: bytes) -> bytes:
    """Escape ``data``, append its checksum and the frame terminator."""
    checksum = crc_ccitt(data).to_bytes(2, "little")
    return _escape(data) + _escape(checksum) + bytes([MESSAGE_TERMINATOR])


def hdlc_decapsulate(data: bytes) -> bytes:
    """Undo :func:`hdlc_encapsulate`, verifying the terminator and checksum."""
    if len(data) < 3:
        raise TooShortError()
    if data[-1] != MESSAGE_TERMINATOR:
        raise NoTrailingCharacterError(data[-1])

    unescaped = bytearray()
    escaping = False
    for byte in data[:-1]:
        if escaping:
            if byte not in _UNESCAPES:
                raise InvalidEscapeSequenceError(byte)
            unescaped.append(_UNESCAPES[byte])
            escaping = False
        elif byte == MESSAGE_ESCAPE_CHAR:
            escaping = True
        else:
            unescaped.append(byte)

    if len(unescaped) < 2:
        raise MissingChecksumError()
    checksum = int.from_bytes(unescaped[-2:], "little")
    payload = bytes(unescaped[:-2])
    computed = crc_ccitt(payload)
    if checksum != computed:
        raise InvalidChecksumError(checksum, computed)
    return payload