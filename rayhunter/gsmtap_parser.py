"""Conversion of diag log messages into GSMTAP messages."""

from __future__ import annotations

import logging

from rayhunter.diag import (
    LogMessage,
    LteRrcOtaMessage,
    Message,
    Nas4GMessage,
    Nas4GMessageDirection,
    Timestamp,
)
from rayhunter.gsmtap import (
    GsmtapHeader,
    GsmtapMessage,
    GsmtapType,
    LteNasSubtype,
    LteRrcSubtype,
)

logger = logging.getLogger(__name__)

_L = LteRrcSubtype

_PDU_TABLES = (
    (
        (0x02, 0x03, 0x04, 0x06, 0x07, 0x08, 0x0D, 0x16),
        {1: _L.BCCH_BCH, 2: _L.BCCH_DL_SCH, 3: _L.MCCH, 4: _L.PCCH,
         5: _L.DL_CCCH, 6: _L.DL_DCCH, 7: _L.UL_CCCH, 8: _L.UL_DCCH},
    ),
    (
        (0x09, 0x0C),
        {8: _L.BCCH_BCH, 9: _L.BCCH_DL_SCH, 10: _L.MCCH, 11: _L.PCCH,
         12: _L.DL_CCCH, 13: _L.DL_DCCH, 14: _L.UL_CCCH, 15: _L.UL_DCCH},
    ),
    (
        (0x0E, 0x0F, 0x10),
        {1: _L.BCCH_BCH, 2: _L.BCCH_DL_SCH, 4: _L.MCCH, 5: _L.PCCH,
         6: _L.DL_CCCH, 7: _L.DL_DCCH, 8: _L.UL_CCCH, 9: _L.UL_DCCH},
    ),
    (
        (0x13, 0x1A, 0x1B),
        {1: _L.BCCH_BCH, 3: _L.BCCH_DL_SCH, 6: _L.MCCH, 7: _L.PCCH,
         8: _L.DL_CCCH, 9: _L.DL_DCCH, 10: _L.UL_CCCH, 11: _L.UL_DCCH,
         45: _L.BCCH_BCH_NB, 46: _L.BCCH_DL_SCH_NB, 47: _L.PCCH_NB,
         48: _L.DL_CCCH_NB, 49: _L.DL_DCCH_NB, 50: _L.UL_CCCH_NB, 52: _L.UL_DCCH_NB},
    ),
    (
        (0x14, 0x18, 0x19),
        {1: _L.BCCH_BCH, 2: _L.BCCH_DL_SCH, 4: _L.MCCH, 5: _L.PCCH,
         6: _L.DL_CCCH, 7: _L.DL_DCCH, 8: _L.UL_CCCH, 9: _L.UL_DCCH,
         54: _L.BCCH_BCH_NB, 55: _L.BCCH_DL_SCH_NB, 56: _L.PCCH_NB,
         57: _L.DL_CCCH_NB, 58: _L.DL_DCCH_NB, 59: _L.UL_CCCH_NB, 61: _L.UL_DCCH_NB},
    ),
)

_PDU_TABLE_BY_VERSION = {
    version: table for versions, table in _PDU_TABLES for version in versions
}


class GsmtapParserError(ValueError):
    """Base class for failures to convert a log message to GSMTAP."""


class InvalidLteRrcOtaExtHeaderVersion(GsmtapParserError):
    def __init__(self, ext_header_version: int) -> None:
        super().__init__(f"Invalid LteRrcOtaMessage ext header version {ext_header_version}")
        self.ext_header_version = ext_header_version


class InvalidLteRrcOtaHeaderPduNum(GsmtapParserError):
    def __init__(self, ext_header_version: int, pdu_num: int) -> None:
        super().__init__(
            "Invalid LteRrcOtaMessage header/PDU number combination: "
            f"{ext_header_version}/{pdu_num}"
        )
        self.ext_header_version = ext_header_version
        self.pdu_num = pdu_num


def _lte_rrc_to_gsmtap(body: LteRrcOtaMessage) -> GsmtapMessage:
    version = body.ext_header_version
    packet = body.packet
    table = _PDU_TABLE_BY_VERSION.get(version)
    if table is None:
        raise InvalidLteRrcOtaExtHeaderVersion(version)
    subtype = table.get(packet.pdu_num)
    if subtype is None:
        raise InvalidLteRrcOtaHeaderPduNum(version, packet.pdu_num)
    header = GsmtapHeader(GsmtapType.LTE_RRC, subtype)
    header.arfcn = packet.earfcn if 0 <= packet.earfcn <= 0xFFFF else 0
    header.frame_number = packet.sfn()
    header.subslot = packet.subfn()
    return GsmtapMessage(header, bytes(packet.packet))


def _nas_to_gsmtap(body: Nas4GMessage) -> GsmtapMessage:
    # Only plain (non-secure) NAS messages are handled.
    header = GsmtapHeader(GsmtapType.LTE_NAS, LteNasSubtype.PLAIN)
    header.uplink = body.direction is Nas4GMessageDirection.UPLINK
    return GsmtapMessage(header, bytes(body.msg))


def parse(msg: Message) -> tuple[Timestamp, GsmtapMessage] | None:
    """Convert a log message to GSMTAP, or return None if it has no GSMTAP form."""
    if not isinstance(msg, LogMessage):
        return None
    body = msg.body
    if isinstance(body, LteRrcOtaMessage):
        return msg.timestamp, _lte_rrc_to_gsmtap(body)
    if isinstance(body, Nas4GMessage):
        return msg.timestamp, _nas_to_gsmtap(body)
    logger.error("gsmtap_sink: ignoring unhandled log type: %r", body)
    return None