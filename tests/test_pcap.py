import io
import struct
from datetime import datetime, timedelta, timezone

from rayhunter.diag import Timestamp
from rayhunter.gsmtap import GsmtapHeader, GsmtapMessage, GsmtapType, LteRrcSubtype
from rayhunter.pcap import (
    ENHANCED_PACKET_BLOCK,
    GSMTAP_PORT,
    INTERFACE_DESCRIPTION_BLOCK,
    LINKTYPE_IPV4,
    SECTION_HEADER_BLOCK,
    GsmtapPcapWriter,
)

TIMESTAMP = Timestamp(72659535985485082)


def _blocks(data):
    blocks = []
    pos = 0
    while pos < len(data):
        block_type, length = struct.unpack_from(">II", data, pos)
        assert length % 4 == 0
        (trailer,) = struct.unpack_from(">I", data, pos + length - 4)
        assert trailer == length
        blocks.append((block_type, data[pos + 8:pos + length - 4]))
        pos += length
    assert pos == len(data)
    return blocks


def _message(payload=b"\x40\x01\xee"):
    return GsmtapMessage(GsmtapHeader(GsmtapType.LTE_RRC, LteRrcSubtype.PCCH), payload)


def _packet(body):
    _, ts_hi, ts_lo, cap_len, orig_len = struct.unpack_from(">IIIII", body, 0)
    return (ts_hi << 32) | ts_lo, cap_len, orig_len, body[20:20 + cap_len]


def test_section_header_written_on_creation():
    out = io.BytesIO()
    GsmtapPcapWriter(out)
    blocks = _blocks(out.getvalue())
    assert out.getvalue()[:4] == b"\x0a\x0d\x0d\x0a"
    assert blocks[0][0] == SECTION_HEADER_BLOCK
    assert struct.unpack_from(">I", blocks[0][1])[0] == 0x1A2B3C4D


def test_interface_header_uses_ipv4_linktype():
    out = io.BytesIO()
    writer = GsmtapPcapWriter(out)
    writer.write_iface_header()
    block_type, body = _blocks(out.getvalue())[1]
    assert block_type == INTERFACE_DESCRIPTION_BLOCK
    linktype, _, snaplen = struct.unpack(">HHI", body)
    assert linktype == LINKTYPE_IPV4
    assert snaplen == 0xFFFF


def test_packet_wraps_gsmtap_in_ip_and_udp():
    out = io.BytesIO()
    writer = GsmtapPcapWriter(out)
    writer.write_iface_header()
    msg = _message()
    writer.write_gsmtap_message(msg, TIMESTAMP)
    block_type, body = _blocks(out.getvalue())[2]
    assert block_type == ENHANCED_PACKET_BLOCK
    _, cap_len, orig_len, data = _packet(body)
    assert cap_len == orig_len == len(data)
    assert data.endswith(msg.to_bytes())
    assert data[0] == 0x45
    (ip_total,) = struct.unpack(">H", data[2:4])
    assert ip_total == len(data)
    src_port, dst_port, udp_len = struct.unpack(">HHH", data[20:26])
    assert src_port == 13337
    assert dst_port == GSMTAP_PORT
    assert udp_len == len(data) - 20


def test_timestamp_is_microseconds_since_unix_epoch():
    out = io.BytesIO()
    writer = GsmtapPcapWriter(out)
    writer.write_gsmtap_message(_message(), TIMESTAMP)
    micros, _, _, _ = _packet(_blocks(out.getvalue())[1][1])
    decoded = datetime(1970, 1, 1, tzinfo=timezone.utc) + timedelta(microseconds=micros)
    assert decoded == TIMESTAMP.to_datetime()


def test_ip_identification_increments():
    out = io.BytesIO()
    writer = GsmtapPcapWriter(out)
    writer.write_gsmtap_message(_message(b"\x01"), TIMESTAMP)
    writer.write_gsmtap_message(_message(b"\x02"), TIMESTAMP)
    ids = [
        struct.unpack(">H", _packet(body)[3][4:6])[0]
        for _, body in _blocks(out.getvalue())[1:]
    ]
    assert ids == [0, 1]
    assert writer.ip_id == 2


def test_ip_identification_wraps():
    out = io.BytesIO()
    writer = GsmtapPcapWriter(out)
    writer.ip_id = 0xFFFF
    writer.write_gsmtap_message(_message(), TIMESTAMP)
    assert writer.ip_id == 0


def test_odd_length_packet_is_padded():
    out = io.BytesIO()
    writer = GsmtapPcapWriter(out)
    msg = _message(b"\x01\x02\x03\x04\x05")
    writer.write_gsmtap_message(msg, TIMESTAMP)
    _, body = _blocks(out.getvalue())[1]
    _, cap_len, _, data = _packet(body)
    assert len(body) % 4 == 0
    assert data.endswith(msg.to_bytes())