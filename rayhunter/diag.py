"""Serialization and parsing of diag protocol requests, messages and containers."""

from __future__ import annotations

import enum
import logging
import struct
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Iterator, Union

from rayhunter.hdlc import (
    ESCAPED_MESSAGE_ESCAPE_CHAR,
    ESCAPED_MESSAGE_TERMINATOR,
    MESSAGE_ESCAPE_CHAR,
    MESSAGE_TERMINATOR,
    HdlcError,
    hdlc_decapsulate,
)

__all__ = [
    "ESCAPED_MESSAGE_ESCAPE_CHAR",
    "ESCAPED_MESSAGE_TERMINATOR",
    "MESSAGE_ESCAPE_CHAR",
    "MESSAGE_TERMINATOR",
]

logger = logging.getLogger(__name__)

LOG_CONFIG_OPCODE = 115
RETRIEVE_ID_RANGES_SUBOPCODE = 1
SET_MASK_SUBOPCODE = 3
LOG_MESSAGE_ID = 16

_DIAG_EPOCH = datetime(1980, 1, 6, tzinfo=timezone.utc)


def _pack(fmt: str, *values: int) -> bytes:
    try:
        return struct.pack(fmt, *values)
    except struct.error as exc:
        raise ValueError(str(exc)) from exc


class _Reader:
    """Sequential reader over a byte string that fails on short input."""

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._pos = 0

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos

    def peek_u8(self) -> int:
        if self.remaining < 1:
            raise ValueError("expected 1 byte, 0 available")
        return self._data[self._pos]

    def take(self, count: int) -> bytes:
        if count < 0:
            raise ValueError(f"invalid field length {count}")
        if count > self.remaining:
            raise ValueError(f"expected {count} bytes, {self.remaining} available")
        chunk = self._data[self._pos:self._pos + count]
        self._pos += count
        return chunk

    def unpack(self, fmt: str) -> tuple:
        return struct.unpack(fmt, self.take(struct.calcsize(fmt)))


class DataType(enum.IntEnum):
    """Known container data types; other values are kept as plain ints."""

    USER_SPACE = 32


def _data_type(value: int) -> int:
    try:
        return DataType(value)
    except ValueError:
        return value


# ---------------------------------------------------------------- requests


@dataclass(frozen=True)
class RetrieveIdRangesRequest:
    """Asks the device for the log mask size of each log type."""

    def to_bytes(self) -> bytes:
        return _pack("<II", LOG_CONFIG_OPCODE, RETRIEVE_ID_RANGES_SUBOPCODE)


@dataclass(frozen=True)
class SetMaskRequest:
    """Sets the log mask for one log type."""

    log_type: int
    log_mask_bitsize: int
    log_mask: bytes = b""

    def to_bytes(self) -> bytes:
        header = _pack(
            "<IIII",
            LOG_CONFIG_OPCODE,
            SET_MASK_SUBOPCODE,
            self.log_type,
            self.log_mask_bitsize,
        )
        return header + bytes(self.log_mask)


Request = Union[RetrieveIdRangesRequest, SetMaskRequest]


@dataclass
class RequestContainer:
    """Envelope written to the diag device around an HDLC-framed request."""

    data_type: int
    hdlc_encapsulated_request: bytes
    use_mdm: bool = False
    mdm_field: int = -1

    def to_bytes(self) -> bytes:
        out = _pack("<I", self.data_type)
        if self.use_mdm:
            out += _pack("<i", self.mdm_field)
        return out + bytes(self.hdlc_encapsulated_request)


def build_log_mask_request(
    log_type: int, log_mask_bitsize: int, accepted_log_codes
) -> SetMaskRequest:
    """Build a SetMask request enabling exactly the accepted log codes of a type."""
    accepted = set(accepted_log_codes)
    mask = bytearray((log_mask_bitsize + 7) // 8)
    for bit in range(log_mask_bitsize):
        log_code = ((log_type << 12) | bit) & 0xFFFFFFFF
        if log_code in accepted:
            mask[bit // 8] |= 1 << (bit % 8)
    return SetMaskRequest(log_type, log_mask_bitsize, bytes(mask))


# ---------------------------------------------------------------- timestamps


@dataclass(frozen=True)
class Timestamp:
    """Raw diag timestamp."""

    ts: int

    def to_datetime(self) -> datetime:
        """Convert to a UTC datetime counted from the 1980-01-06 diag epoch."""
        upper = self.ts >> 16
        lower = self.ts & 0xFFFF
        delta = upper * 1.25 + lower / 40960.0
        return _DIAG_EPOCH + timedelta(milliseconds=int(delta))


# ---------------------------------------------------------------- log bodies


_LTE_BASE_FIELDS = ("rrc_rel_maj", "rrc_rel_min")
_LTE_LAYOUTS = {
    0: ("<BBBHHHBH", _LTE_BASE_FIELDS + (
        "bearer_id", "phy_cell_id", "earfcn", "sfn_subfn", "pdu_num")),
    5: ("<BBBHHHBIH", _LTE_BASE_FIELDS + (
        "bearer_id", "phy_cell_id", "earfcn", "sfn_subfn", "pdu_num", "sib_mask")),
    8: ("<BBBHIHBIH", _LTE_BASE_FIELDS + (
        "bearer_id", "phy_cell_id", "earfcn", "sfn_subfn", "pdu_num", "sib_mask")),
    25: ("<BBBBBHIHBIH", _LTE_BASE_FIELDS + (
        "nr_rrc_rel_maj", "nr_rrc_rel_min", "bearer_id", "phy_cell_id",
        "earfcn", "sfn_subfn", "pdu_num", "sib_mask")),
}


def _lte_layout(ext_header_version: int) -> tuple[str, tuple[str, ...]]:
    if ext_header_version <= 4:
        return _LTE_LAYOUTS[0]
    if ext_header_version <= 7:
        return _LTE_LAYOUTS[5]
    if ext_header_version <= 24:
        return _LTE_LAYOUTS[8]
    return _LTE_LAYOUTS[25]


@dataclass
class LteRrcOtaPacket:
    """LTE RRC over-the-air packet; the layout depends on the header version."""

    rrc_rel_maj: int
    rrc_rel_min: int
    bearer_id: int
    phy_cell_id: int
    earfcn: int
    sfn_subfn: int
    pdu_num: int
    packet: bytes
    sib_mask: int | None = None
    nr_rrc_rel_maj: int | None = None
    nr_rrc_rel_min: int | None = None

    def sfn(self) -> int:
        """System frame number."""
        return self.sfn_subfn >> 4

    def subfn(self) -> int:
        """Subframe number."""
        return self.sfn_subfn & 0xF

    def _encode(self, ext_header_version: int) -> bytes:
        fmt, names = _lte_layout(ext_header_version)
        values = [getattr(self, name) or 0 for name in names]
        return _pack(fmt, *values, len(self.packet)) + bytes(self.packet)

    @classmethod
    def _decode(cls, reader: _Reader, ext_header_version: int) -> LteRrcOtaPacket:
        fmt, names = _lte_layout(ext_header_version)
        *values, length = reader.unpack(fmt)
        return cls(packet=reader.take(length), **dict(zip(names, values)))


class Nas4GMessageDirection(enum.Enum):
    DOWNLINK = "downlink"
    UPLINK = "uplink"


_NAS_DIRECTIONS = {
    0xB0E2: Nas4GMessageDirection.DOWNLINK,
    0xB0EC: Nas4GMessageDirection.DOWNLINK,
    0xB0E3: Nas4GMessageDirection.UPLINK,
    0xB0ED: Nas4GMessageDirection.UPLINK,
}


@dataclass
class WcdmaSignallingMessage:
    channel_type: int
    radio_bearer: int
    msg: bytes

    def _encode(self) -> bytes:
        return _pack("<BBH", self.channel_type, self.radio_bearer, len(self.msg)) + bytes(self.msg)


@dataclass
class GsmRrSignallingMessage:
    channel_type: int
    message_type: int
    msg: bytes

    def _encode(self) -> bytes:
        return _pack("<BBB", self.channel_type, self.message_type, len(self.msg)) + bytes(self.msg)


@dataclass
class GprsMacSignallingMessage:
    channel_type: int
    message_type: int
    msg: bytes

    def _encode(self) -> bytes:
        return _pack("<BBB", self.channel_type, self.message_type, len(self.msg)) + bytes(self.msg)


@dataclass
class LteRrcOtaMessage:
    ext_header_version: int
    packet: LteRrcOtaPacket

    def _encode(self) -> bytes:
        return _pack("<B", self.ext_header_version) + self.packet._encode(self.ext_header_version)


@dataclass
class Nas4GMessage:
    direction: Nas4GMessageDirection
    ext_header_version: int
    rrc_rel: int
    rrc_version_minor: int
    rrc_version_major: int
    msg: bytes

    def _encode(self) -> bytes:
        header = _pack(
            "<BBBB",
            self.ext_header_version,
            self.rrc_rel,
            self.rrc_version_minor,
            self.rrc_version_major,
        )
        return header + bytes(self.msg)


@dataclass
class IpTraffic:
    msg: bytes

    def _encode(self) -> bytes:
        return bytes(self.msg)


@dataclass
class UmtsNasOtaMessage:
    is_uplink: int
    msg: bytes

    def _encode(self) -> bytes:
        return _pack("<BI", self.is_uplink, len(self.msg)) + bytes(self.msg)


@dataclass
class NrRrcOtaMessage:
    msg: bytes

    def _encode(self) -> bytes:
        return bytes(self.msg)


LogBody = Union[
    WcdmaSignallingMessage,
    GsmRrSignallingMessage,
    GprsMacSignallingMessage,
    LteRrcOtaMessage,
    Nas4GMessage,
    IpTraffic,
    UmtsNasOtaMessage,
    NrRrcOtaMessage,
]


def _decode_log_body(reader: _Reader, log_type: int, hdr_len: int) -> LogBody:
    if log_type == 0x412F:
        channel_type, radio_bearer, length = reader.unpack("<BBH")
        return WcdmaSignallingMessage(channel_type, radio_bearer, reader.take(length))
    if log_type == 0x512F:
        channel_type, message_type, length = reader.unpack("<BBB")
        return GsmRrSignallingMessage(channel_type, message_type, reader.take(length))
    if log_type == 0x5226:
        channel_type, message_type, length = reader.unpack("<BBB")
        return GprsMacSignallingMessage(channel_type, message_type, reader.take(length))
    if log_type == 0xB0C0:
        (ext_header_version,) = reader.unpack("<B")
        return LteRrcOtaMessage(
            ext_header_version, LteRrcOtaPacket._decode(reader, ext_header_version)
        )
    if log_type in _NAS_DIRECTIONS:
        ext, rrc_rel, minor, major = reader.unpack("<BBBB")
        return Nas4GMessage(
            _NAS_DIRECTIONS[log_type], ext, rrc_rel, minor, major, reader.take(hdr_len - 4)
        )
    if log_type == 0x11EB:
        return IpTraffic(reader.take(hdr_len - 8))
    if log_type == 0x713A:
        is_uplink, length = reader.unpack("<BI")
        return UmtsNasOtaMessage(is_uplink, reader.take(length))
    if log_type == 0xB821:
        return NrRrcOtaMessage(reader.take(hdr_len))
    raise ValueError(f"unknown log type {log_type:#x}")


# ---------------------------------------------------------------- responses


@dataclass
class RetrieveIdRangesResponse:
    log_mask_sizes: tuple[int, ...]

    def __post_init__(self) -> None:
        self.log_mask_sizes = tuple(self.log_mask_sizes)
        if len(self.log_mask_sizes) != 16:
            raise ValueError("log_mask_sizes must hold 16 values")

    def _encode(self) -> bytes:
        return _pack("<16I", *self.log_mask_sizes)


@dataclass(frozen=True)
class SetMaskResponse:
    def _encode(self) -> bytes:
        return b""


ResponsePayload = Union[RetrieveIdRangesResponse, SetMaskResponse]


def _decode_response_payload(reader: _Reader, opcode: int, subopcode: int) -> ResponsePayload:
    if opcode != LOG_CONFIG_OPCODE:
        raise ValueError(f"unknown response opcode {opcode}")
    if subopcode == RETRIEVE_ID_RANGES_SUBOPCODE:
        return RetrieveIdRangesResponse(reader.unpack("<16I"))
    if subopcode == SET_MASK_SUBOPCODE:
        return SetMaskResponse()
    raise ValueError(f"unknown log config subopcode {subopcode}")


# ---------------------------------------------------------------- messages


@dataclass
class LogMessage:
    """A log record emitted by the device."""

    pending_msgs: int
    outer_length: int
    inner_length: int
    log_type: int
    timestamp: Timestamp
    body: LogBody

    def to_bytes(self) -> bytes:
        header = _pack(
            "<BBHHHQ",
            LOG_MESSAGE_ID,
            self.pending_msgs,
            self.outer_length,
            self.inner_length,
            self.log_type,
            self.timestamp.ts,
        )
        return header + self.body._encode()


@dataclass
class ResponseMessage:
    """The device's answer to a request."""

    opcode: int
    subopcode: int
    status: int
    payload: ResponsePayload

    def to_bytes(self) -> bytes:
        return _pack("<III", self.opcode, self.subopcode, self.status) + self.payload._encode()


Message = Union[LogMessage, ResponseMessage]


class DiagParsingError(ValueError):
    """Base class for failures to turn framed data into a message."""

    def __init__(self, message: str, data: bytes) -> None:
        super().__init__(message)
        self.data = bytes(data)


class MessageParsingError(DiagParsingError):
    """The decapsulated data is not a valid message."""

    def __init__(self, reason: str, data: bytes) -> None:
        super().__init__(f"Failed to parse Message: {reason}, data: {list(data)}", data)
        self.reason = reason


class HdlcDecapsulationError(DiagParsingError):
    """The framed data could not be decapsulated."""

    def __init__(self, error: HdlcError, data: bytes) -> None:
        super().__init__(
            f"HDLC decapsulation of message failed: {error}, data: {list(data)}", data
        )
        self.error = error


def _decode_message(reader: _Reader) -> Message:
    if reader.peek_u8() == LOG_MESSAGE_ID:
        _, pending, outer, inner, log_type, ts = reader.unpack("<BBHHHQ")
        body = _decode_log_body(reader, log_type, inner - 12)
        return LogMessage(pending, outer, inner, log_type, Timestamp(ts), body)
    opcode, subopcode, status = reader.unpack("<III")
    payload = _decode_response_payload(reader, opcode, subopcode)
    return ResponseMessage(opcode, subopcode, status, payload)


def parse_message(data: bytes) -> Message:
    """Parse one decapsulated message; raise MessageParsingError if it is invalid."""
    reader = _Reader(data)
    try:
        message = _decode_message(reader)
    except ValueError as exc:
        raise MessageParsingError(str(exc), data) from exc
    if reader.remaining:
        logger.warning("%d leftover bytes when parsing Message", reader.remaining)
    return message


# ---------------------------------------------------------------- containers


def _split_inclusive(data: bytes, separator: int) -> Iterator[bytes]:
    start = 0
    while start < len(data):
        end = data.find(separator, start)
        if end == -1:
            yield data[start:]
            return
        yield data[start:end + 1]
        start = end + 1


@dataclass
class HdlcEncapsulatedMessage:
    """A chunk of HDLC-framed data, possibly holding several frames."""

    data: bytes

    def __len__(self) -> int:
        return len(self.data)

    def to_bytes(self) -> bytes:
        return _pack("<I", len(self.data)) + bytes(self.data)


@dataclass
class MessagesContainer:
    """A batch of framed messages as read from the diag device."""

    data_type: int
    messages: list[HdlcEncapsulatedMessage] = field(default_factory=list)

    @property
    def num_messages(self) -> int:
        return len(self.messages)

    @classmethod
    def from_bytes(cls, data: bytes) -> MessagesContainer:
        """Parse a container; raise ValueError if the data is truncated."""
        reader = _Reader(data)
        data_type, count = reader.unpack("<II")
        messages = []
        for _ in range(count):
            (length,) = reader.unpack("<I")
            messages.append(HdlcEncapsulatedMessage(reader.take(length)))
        if reader.remaining:
            logger.warning("%d leftover bytes when parsing MessagesContainer", reader.remaining)
        return cls(_data_type(data_type), messages)

    def to_bytes(self) -> bytes:
        header = _pack("<II", self.data_type, len(self.messages))
        return header + b"".join(message.to_bytes() for message in self.messages)

    def into_messages(self) -> list[Message | DiagParsingError]:
        """Decapsulate and parse every frame, keeping errors in place of failed ones."""
        results: list[Message | DiagParsingError] = []
        for message in self.messages:
            for frame in _split_inclusive(bytes(message.data), MESSAGE_TERMINATOR):
                try:
                    payload = hdlc_decapsulate(frame)
                except HdlcError as exc:
                    results.append(HdlcDecapsulationError(exc, frame))
                    continue
                try:
                    results.append(parse_message(payload))
                except MessageParsingError as exc:
                    results.append(exc)
        return results