"""Structured, fully parsed messages ("information elements") built from GSMTAP messages."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from rayhunter.gsmtap import GsmtapMessage, GsmtapType, LteNasSubtype


class InformationElementError(ValueError):
    """Base class for failures to build an information element."""


class UnsupportedGsmtapType(InformationElementError):
    """The GSMTAP message has a type or subtype that is not handled."""

    def __init__(self, gsmtap_type: GsmtapType, subtype: int) -> None:
        super().__init__(f"Unsupported GSMTAP type {gsmtap_type.name} (subtype {int(subtype)})")
        self.gsmtap_type = gsmtap_type
        self.subtype = subtype


@dataclass(frozen=True)
class LteNasElement:
    """A plain LTE NAS message, kept as its raw bytes."""

    payload: bytes


InformationElement = Union[LteNasElement]


def information_element_from_gsmtap(gsmtap_msg: GsmtapMessage) -> InformationElement:
    """Build the information element carried by ``gsmtap_msg``.

    Raises UnsupportedGsmtapType for messages whose type cannot be parsed.
    """
    header = gsmtap_msg.header
    if header.gsmtap_type == GsmtapType.LTE_NAS and header.subtype == LteNasSubtype.PLAIN:
        return LteNasElement(bytes(gsmtap_msg.payload))
    raise UnsupportedGsmtapType(header.gsmtap_type, header.subtype)