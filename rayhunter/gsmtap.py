"""GSMTAP pseudo-header types and serialization."""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass, field

GSMTAP_VERSION = 2
GSMTAP_HEADER_WORDS = 4
_HEADER_FORMAT = ">BBBBHbBIBBBB"
_MAX_ARFCN = 0x3FFF


class GsmtapType(enum.IntEnum):
    """GSMTAP payload types."""

    UM = 0x01
    ABIS = 0x02
    UM_BURST = 0x03
    SIM = 0x04
    TETRA_I1 = 0x05
    TETRA_I1_BURST = 0x06
    WMX_BURST = 0x07
    GB_LLC = 0x08
    GB_SNDCP = 0x09
    GMR1_UM = 0x0A
    UMTS_RLC_MAC = 0x0B
    UMTS_RRC = 0x0C
    LTE_RRC = 0x0D
    LTE_MAC = 0x0E
    LTE_MAC_FRAMED = 0x0F
    OSMOCORE_LOG = 0x10
    QC_DIAG = 0x11
    LTE_NAS = 0x12
    E1_T1 = 0x13
    GSM_RLP = 0x14


class LteNasSubtype(enum.IntEnum):
    PLAIN = 0
    SECURE = 1


class UmSubtype(enum.IntEnum):
    UNKNOWN = 0x00
    BCCH = 0x01
    CCCH = 0x02
    RACH = 0x03
    AGCH = 0x04
    PCH = 0x05
    SDCCH = 0x06
    SDCCH4 = 0x07
    SDCCH8 = 0x08
    TCH_F = 0x09
    TCH_H = 0x0A
    PACCH = 0x0B
    CBCH52 = 0x0C
    PDCH = 0x0D
    PTCCH = 0x0E
    CBCH51 = 0x0F


class UmtsRrcSubtype(enum.IntEnum):
    DL_DCCH = 0
    UL_DCCH = 1
    DL_CCCH = 2
    UL_CCCH = 3
    PCCH = 4
    DL_SHCCH = 5
    UL_SHCCH = 6
    BCCH_FACH = 7
    BCCH_BCH = 8
    MCCH = 9
    MSCH = 10
    HANDOVER_TO_UTRAN_COMMAND = 11
    INTER_RAT_HANDOVER_INFO = 12
    SYSTEM_INFORMATION_BCH = 13
    SYSTEM_INFORMATION_CONTAINER = 14
    UE_RADIO_ACCESS_CAPABILITY_INFO = 15
    MASTER_INFORMATION_BLOCK = 16
    SYS_INFO_TYPE1 = 17
    SYS_INFO_TYPE2 = 18
    SYS_INFO_TYPE3 = 19
    SYS_INFO_TYPE4 = 20
    SYS_INFO_TYPE5 = 21
    SYS_INFO_TYPE5BIS = 22
    SYS_INFO_TYPE6 = 23
    SYS_INFO_TYPE7 = 24
    SYS_INFO_TYPE8 = 25
    SYS_INFO_TYPE9 = 26
    SYS_INFO_TYPE10 = 27
    SYS_INFO_TYPE11 = 28
    SYS_INFO_TYPE11BIS = 29
    SYS_INFO_TYPE12 = 30
    SYS_INFO_TYPE13 = 31
    SYS_INFO_TYPE13_1 = 32
    SYS_INFO_TYPE13_2 = 33
    SYS_INFO_TYPE13_3 = 34
    SYS_INFO_TYPE13_4 = 35
    SYS_INFO_TYPE14 = 36
    SYS_INFO_TYPE15 = 37
    SYS_INFO_TYPE15BIS = 38
    SYS_INFO_TYPE15_1 = 39
    SYS_INFO_TYPE15_1BIS = 40
    SYS_INFO_TYPE15_2 = 41
    SYS_INFO_TYPE15_2BIS = 42
    SYS_INFO_TYPE15_2TER = 43
    SYS_INFO_TYPE15_3 = 44
    SYS_INFO_TYPE15_3BIS = 45
    SYS_INFO_TYPE15_4 = 46
    SYS_INFO_TYPE15_5 = 47
    SYS_INFO_TYPE15_6 = 48
    SYS_INFO_TYPE15_7 = 49
    SYS_INFO_TYPE15_8 = 50
    SYS_INFO_TYPE16 = 51
    SYS_INFO_TYPE17 = 52
    SYS_INFO_TYPE18 = 53
    SYS_INFO_TYPE19 = 54
    SYS_INFO_TYPE20 = 55
    SYS_INFO_TYPE21 = 56
    SYS_INFO_TYPE22 = 57
    SYS_INFO_TYPE_SB1 = 58
    SYS_INFO_TYPE_SB2 = 59
    TO_TARGET_RNC_CONTAINER = 60
    TARGET_RNC_TO_SOURCE_RNC_CONTAINER = 61


class LteRrcSubtype(enum.IntEnum):
    DL_CCCH = 0
    DL_DCCH = 1
    UL_CCCH = 2
    UL_DCCH = 3
    BCCH_BCH = 4
    BCCH_DL_SCH = 5
    PCCH = 6
    MCCH = 7
    BCCH_BCH_MBMS = 8
    BCCH_DL_SCH_BR = 9
    BCCH_DL_SCH_MBMS = 10
    SC_MCCH = 11
    SBCCH_SL_BCH = 12
    SBCCH_SL_BCH_V2X = 13
    DL_CCCH_NB = 14
    DL_DCCH_NB = 15
    UL_CCCH_NB = 16
    UL_DCCH_NB = 17
    BCCH_BCH_NB = 18
    BCCH_BCH_TDD_NB = 19
    BCCH_DL_SCH_NB = 20
    PCCH_NB = 21
    SC_MCCH_NB = 22


_SUBTYPES: dict[GsmtapType, type[enum.IntEnum]] = {
    GsmtapType.UM: UmSubtype,
    GsmtapType.UMTS_RRC: UmtsRrcSubtype,
    GsmtapType.LTE_RRC: LteRrcSubtype,
    GsmtapType.LTE_NAS: LteNasSubtype,
}


@dataclass
class GsmtapHeader:
    """The fixed 16-byte GSMTAP header.

    ``subtype`` is coerced to the subtype enum belonging to ``gsmtap_type``;
    types without subtypes always carry 0.
    """

    gsmtap_type: GsmtapType
    subtype: int = 0
    timeslot: int = 0
    pcs_band_indicator: bool = False
    uplink: bool = False
    arfcn: int = 0
    signal_dbm: int = 0
    signal_noise_ratio_db: int = 0
    frame_number: int = 0
    antenna_number: int = 0
    subslot: int = 0

    def __post_init__(self) -> None:
        self.gsmtap_type = GsmtapType(self.gsmtap_type)
        subtype_enum = _SUBTYPES.get(self.gsmtap_type)
        if subtype_enum is not None:
            self.subtype = subtype_enum(self.subtype)
        elif self.subtype != 0:
            raise ValueError(f"GSMTAP type {self.gsmtap_type.name} has no subtypes")

    @property
    def packet_type(self) -> int:
        return int(self.gsmtap_type)

    def to_bytes(self) -> bytes:
        if not 0 <= self.arfcn <= _MAX_ARFCN:
            raise ValueError(f"ARFCN {self.arfcn} does not fit in 14 bits")
        band_and_arfcn = (
            (int(bool(self.pcs_band_indicator)) << 15)
            | (int(bool(self.uplink)) << 14)
            | self.arfcn
        )
        try:
            return struct.pack(
                _HEADER_FORMAT,
                GSMTAP_VERSION,
                GSMTAP_HEADER_WORDS,
                self.packet_type,
                self.timeslot,
                band_and_arfcn,
                self.signal_dbm,
                self.signal_noise_ratio_db,
                self.frame_number,
                int(self.subtype),
                self.antenna_number,
                self.subslot,
                0,
            )
        except struct.error as exc:
            raise ValueError(str(exc)) from exc


@dataclass
class GsmtapMessage:
    """A GSMTAP header followed by its payload."""

    header: GsmtapHeader
    payload: bytes = field(default=b"")

    def to_bytes(self) -> bytes:
        return self.header.to_bytes() + bytes(self.payload)