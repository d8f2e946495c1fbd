"""Writing GSMTAP messages to a pcapng stream wrapped in IPv4/UDP headers."""

from __future__ import annotations

import struct
from datetime import datetime, timedelta, timezone
from typing import BinaryIO

from rayhunter.diag import Timestamp
from rayhunter.gsmtap import GsmtapMessage

SECTION_HEADER_BLOCK = 0x0A0D0D0A
INTERFACE_DESCRIPTION_BLOCK = 0x00000001
ENHANCED_PACKET_BLOCK = 0x00000006
BYTE_ORDER_MAGIC = 0x1A2B3C4D
LINKTYPE_IPV4 = 228
SNAPLEN = 0xFFFF

IP_HEADER_LEN = 20
UDP_HEADER_LEN = 8
GSMTAP_PORT = 4729
SOURCE_PORT = 13337
LOCALHOST = 0x7F000001

_UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MICROSECOND = timedelta(microseconds=1)


def _pack(fmt: str, *values: int) -> bytes:
    try:
        return struct.pack(fmt, *values)
    except struct.error as exc:
        raise ValueError(str(exc)) from exc


def _block(block_type: int, body: bytes) -> bytes:
    padded = body + b"\x00" * (-len(body) % 4)
    total = 12 + len(padded)
    return _pack(">II", block_type, total) + padded + _pack(">I", total)


class GsmtapPcapWriter:
    """Writes a pcapng section with one IPv4 interface and GSMTAP-over-UDP packets."""

    def __init__(self, writer: BinaryIO) -> None:
        self._writer = writer
        self.ip_id = 0
        self._writer.write(
            _block(SECTION_HEADER_BLOCK, _pack(">IHHq", BYTE_ORDER_MAGIC, 1, 0, -1))
        )

    def write_iface_header(self) -> None:
        body = _pack(">HHI", LINKTYPE_IPV4, 0, SNAPLEN)
        self._writer.write(_block(INTERFACE_DESCRIPTION_BLOCK, body))

    def write_gsmtap_message(self, msg: GsmtapMessage, timestamp: Timestamp) -> None:
        delta = timestamp.to_datetime() - _UNIX_EPOCH
        if delta < timedelta(0):
            raise ValueError(f"Timestamp out of range: {timestamp!r}")
        micros = delta // _MICROSECOND

        msg_bytes = msg.to_bytes()
        ip_header = _pack(
            ">BBHHBBBBHII",
            0x45,
            0,
            len(msg_bytes) + IP_HEADER_LEN + UDP_HEADER_LEN,
            self.ip_id,
            0x40,
            0,
            64,
            0x11,
            0xFFFF,
            LOCALHOST,
            LOCALHOST,
        )
        udp_header = _pack(
            ">HHHH", SOURCE_PORT, GSMTAP_PORT, len(msg_bytes) + UDP_HEADER_LEN, 0xFFFF
        )
        data = ip_header + udp_header + msg_bytes
        body = _pack(
            ">IIIII",
            0,
            (micros >> 32) & 0xFFFFFFFF,
            micros & 0xFFFFFFFF,
            len(data),
            len(data),
        ) + data
        self._writer.write(_block(ENHANCED_PACKET_BLOCK, body))
        self.ip_id = (self.ip_id + 1) & 0xFFFF