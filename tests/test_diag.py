from datetime import datetime, timezone

import pytest

from rayhunter.diag import (
    DataType,
    HdlcDecapsulationError,
    HdlcEncapsulatedMessage,
    LogMessage,
    LteRrcOtaMessage,
    LteRrcOtaPacket,
    MessageParsingError,
    MessagesContainer,
    Nas4GMessage,
    Nas4GMessageDirection,
    RequestContainer,
    ResponseMessage,
    RetrieveIdRangesRequest,
    RetrieveIdRangesResponse,
    SetMaskRequest,
    SetMaskResponse,
    Timestamp,
    UmtsNasOtaMessage,
    build_log_mask_request,
    parse_message,
)
from rayhunter.hdlc import hdlc_encapsulate

RAW_PACKET_LOG_CODES = [
    0x5226, 0x512F, 0x412F, 0xB0C0, 0xB821, 0x713A,
    0xB0E2, 0xB0E3, 0xB0EC, 0xB0ED, 0x11EB,
]


def test_request_serialization():
    assert RetrieveIdRangesRequest().to_bytes() == bytes([115, 0, 0, 0, 1, 0, 0, 0])
    req = SetMaskRequest(log_type=0, log_mask_bitsize=0, log_mask=b"")
    assert req.to_bytes() == bytes([
        115, 0, 0, 0,
        3, 0, 0, 0,
        0, 0, 0, 0,
        0, 0, 0, 0,
    ])


def test_build_log_mask_request():
    req = build_log_mask_request(11, 513, RAW_PACKET_LOG_CODES)
    expected_mask = bytes([
        0x0, 0x0, 0x0, 0x0, 0x0, 0x0, 0x0, 0x0, 0x0, 0x0, 0x0, 0x0, 0x0,
        0x0, 0x0, 0x0, 0x0, 0x0, 0x0, 0x0, 0x0, 0x0, 0x0, 0x0, 0x1, 0x0,
        0x0, 0x0, 0xc, 0x30, 0x0, 0x0, 0x0, 0x0, 0x0, 0x0, 0x0, 0x0,
        0x0, 0x0, 0x0, 0x0, 0x0, 0x0, 0x0, 0x0, 0x0, 0x0, 0x0, 0x0, 0x0,
        0x0, 0x0, 0x0, 0x0, 0x0, 0x0, 0x0, 0x0, 0x0, 0x0, 0x0, 0x0, 0x0,
        0x0,
    ])
    assert req == SetMaskRequest(log_type=11, log_mask_bitsize=513, log_mask=expected_mask)


def test_build_log_mask_request_empty():
    assert build_log_mask_request(3, 0, RAW_PACKET_LOG_CODES).log_mask == b""


def test_request_container():
    req = RequestContainer(
        data_type=DataType.USER_SPACE,
        use_mdm=False,
        mdm_field=-1,
        hdlc_encapsulated_request=bytes([1, 2, 3, 4]),
    )
    assert req.to_bytes() == bytes([32, 0, 0, 0, 1, 2, 3, 4])
    req = RequestContainer(
        data_type=DataType.USER_SPACE,
        use_mdm=True,
        mdm_field=-1,
        hdlc_encapsulated_request=bytes([1, 2, 3, 4]),
    )
    assert req.to_bytes() == bytes([32, 0, 0, 0, 255, 255, 255, 255, 1, 2, 3, 4])


def test_logs():
    data = bytes([
        16, 0, 38, 0, 38, 0, 192, 176, 26, 165, 245, 135, 118, 35, 2, 1, 20,
        14, 48, 0, 160, 0, 2, 8, 0, 0, 217, 15, 5, 0, 0, 0, 0, 7, 0, 64, 1,
        238, 173, 213, 77, 208,
    ])
    msg = parse_message(data)
    assert msg == LogMessage(
        pending_msgs=0,
        outer_length=38,
        inner_length=38,
        log_type=0xB0C0,
        timestamp=Timestamp(72659535985485082),
        body=LteRrcOtaMessage(
            ext_header_version=20,
            packet=LteRrcOtaPacket(
                rrc_rel_maj=14,
                rrc_rel_min=48,
                bearer_id=0,
                phy_cell_id=160,
                earfcn=2050,
                sfn_subfn=4057,
                pdu_num=5,
                sib_mask=0,
                packet=bytes([0x40, 0x1, 0xEE, 0xAD, 0xD5, 0x4D, 0xD0]),
            ),
        ),
    )
    assert msg.to_bytes() == data
    assert msg.body.packet.sfn() == 253
    assert msg.body.packet.subfn() == 9


def test_timestamp_epoch():
    assert Timestamp(0).to_datetime() == datetime(1980, 1, 6, tzinfo=timezone.utc)


def test_timestamp_is_monotonic():
    earlier = Timestamp(72659535985485082).to_datetime()
    later = Timestamp(72659535985485082 + (1 << 30)).to_datetime()
    assert earlier < later


def test_set_mask_response():
    msg = parse_message(bytes([115, 0, 0, 0, 3, 0, 0, 0, 0, 0, 0, 0]))
    assert msg == ResponseMessage(115, 3, 0, SetMaskResponse())


def test_retrieve_id_ranges_response_round_trip():
    sizes = tuple(range(16))
    msg = ResponseMessage(115, 1, 0, RetrieveIdRangesResponse(sizes))
    parsed = parse_message(msg.to_bytes())
    assert parsed == msg
    assert parsed.payload.log_mask_sizes == sizes


def test_unknown_response_opcode_fails():
    with pytest.raises(MessageParsingError):
        parse_message(bytes([99, 0, 0, 0, 3, 0, 0, 0, 0, 0, 0, 0]))


@pytest.mark.parametrize(
    "log_type, direction",
    [
        (0xB0E2, Nas4GMessageDirection.DOWNLINK),
        (0xB0EC, Nas4GMessageDirection.DOWNLINK),
        (0xB0E3, Nas4GMessageDirection.UPLINK),
        (0xB0ED, Nas4GMessageDirection.UPLINK),
    ],
)
def test_nas_message_round_trip(log_type, direction):
    msg = LogMessage(
        pending_msgs=0,
        outer_length=19,
        inner_length=19,
        log_type=log_type,
        timestamp=Timestamp(1234),
        body=Nas4GMessage(direction, 1, 9, 5, 9, b"\x07\x55\x01"),
    )
    assert parse_message(msg.to_bytes()) == msg


def test_umts_nas_round_trip():
    msg = LogMessage(0, 30, 30, 0x713A, Timestamp(5), UmtsNasOtaMessage(1, b"\x01\x02"))
    assert parse_message(msg.to_bytes()) == msg


def test_unknown_log_type_fails():
    data = bytes([16, 0, 20, 0, 20, 0, 0x34, 0x12]) + bytes(8) + b"\x00"
    with pytest.raises(MessageParsingError):
        parse_message(data)


def make_container(data_type, message):
    return MessagesContainer(data_type=data_type, messages=[message])


def get_test_message(payload):
    length_with_payload = 31 + len(payload)
    message = LogMessage(
        pending_msgs=0,
        outer_length=length_with_payload,
        inner_length=length_with_payload,
        log_type=0xB0C0,
        timestamp=Timestamp(72659535985485082),
        body=LteRrcOtaMessage(
            ext_header_version=20,
            packet=LteRrcOtaPacket(
                rrc_rel_maj=14,
                rrc_rel_min=48,
                bearer_id=0,
                phy_cell_id=160,
                earfcn=2050,
                sfn_subfn=4057,
                pdu_num=5,
                sib_mask=0,
                packet=bytes(payload),
            ),
        ),
    )
    encapsulated = HdlcEncapsulatedMessage(hdlc_encapsulate(message.to_bytes()))
    return encapsulated, message


def test_containers_with_multiple_messages():
    encapsulated1, message1 = get_test_message([1])
    encapsulated2, message2 = get_test_message([2])
    container = make_container(DataType.USER_SPACE, encapsulated1)
    container.messages.append(encapsulated2)
    assert container.num_messages == 2
    assert container.into_messages() == [message1, message2]


def test_containers_with_concatenated_message():
    encapsulated1, message1 = get_test_message([1])
    encapsulated2, message2 = get_test_message([2])
    combined = HdlcEncapsulatedMessage(encapsulated1.data + encapsulated2.data)
    container = make_container(DataType.USER_SPACE, combined)
    assert container.into_messages() == [message1, message2]


def test_handles_parsing_errors():
    encapsulated1, message1 = get_test_message([1])
    bad = HdlcEncapsulatedMessage(hdlc_encapsulate(bytes([0x01, 0x02, 0x03, 0x04])))
    container = make_container(DataType.USER_SPACE, encapsulated1)
    container.messages.append(bad)
    result = container.into_messages()
    assert result[0] == message1
    assert isinstance(result[1], MessageParsingError)
    assert result[1].data == bytes([1, 2, 3, 4])


def test_handles_encapsulation_errors():
    encapsulated1, message1 = get_test_message([1])
    bad = HdlcEncapsulatedMessage(bytes([0x01, 0x02, 0x03, 0x04]))
    container = make_container(DataType.USER_SPACE, encapsulated1)
    container.messages.append(bad)
    result = container.into_messages()
    assert result[0] == message1
    assert isinstance(result[1], HdlcDecapsulationError)


def test_container_bytes_round_trip():
    encapsulated1, _ = get_test_message([1])
    encapsulated2, _ = get_test_message([2, 3])
    container = MessagesContainer(DataType.USER_SPACE, [encapsulated1, encapsulated2])
    data = container.to_bytes()
    assert data[:8] == bytes([32, 0, 0, 0, 2, 0, 0, 0])
    assert MessagesContainer.from_bytes(data) == container


def test_container_keeps_unknown_data_type():
    container = MessagesContainer.from_bytes(bytes([7, 0, 0, 0, 0, 0, 0, 0]))
    assert container.data_type == 7
    assert container.data_type != DataType.USER_SPACE
    assert container.messages == []


def test_truncated_container_fails():
    with pytest.raises(ValueError):
        MessagesContainer.from_bytes(bytes([32, 0, 0, 0, 1, 0, 0, 0, 9, 0, 0, 0, 1]))