# rayhunter

Tools for reading the Qualcomm diagnostic ("diag") interface of a mobile
modem, turning its log messages into GSMTAP packets and pcapng files, and
building heuristics that look for signs of IMSI catchers.

## Modules

- `rayhunter.hdlc` – HDLC framing with the CRC-CCITT checksum used by diag:
  `hdlc_encapsulate`, `hdlc_decapsulate`, `crc_ccitt`. Decapsulation failures
  raise subclasses of `HdlcError` (`InvalidChecksumError`,
  `InvalidEscapeSequenceError`, `NoTrailingCharacterError`,
  `MissingChecksumError`, `TooShortError`).
- `rayhunter.diag` – diag requests (`RetrieveIdRangesRequest`,
  `SetMaskRequest`, `RequestContainer`, `build_log_mask_request`) and
  messages (`LogMessage`, `ResponseMessage`, `parse_message`).
  `MessagesContainer.from_bytes` parses a batch read from the device, and
  `MessagesContainer.into_messages` returns one parsed message or one
  `DiagParsingError` per HDLC frame. `Timestamp.to_datetime` converts diag
  timestamps to UTC.
- `rayhunter.log_codes` – diag log codes and channel numbers.
- `rayhunter.diag_device` – `DiagDevice.open()` opens `/dev/diag`, switches it
  into memory-device logging mode, and offers `config_logs` (enable raw packet
  logging for every supported log type), `next_container` and `containers`.
  It is a context manager.
- `rayhunter.gsmtap` – GSMTAP types and subtypes, `GsmtapHeader` and
  `GsmtapMessage` with `to_bytes`.
- `rayhunter.gsmtap_parser` – `parse(msg)` turns LTE RRC OTA and LTE NAS log
  messages into `(Timestamp, GsmtapMessage)` pairs, returns `None` for other
  messages, and raises `InvalidLteRrcOtaExtHeaderVersion` or
  `InvalidLteRrcOtaHeaderPduNum` for unknown LTE RRC header layouts.
- `rayhunter.pcap` – `GsmtapPcapWriter` writes a pcapng section with an IPv4
  interface, wrapping each GSMTAP packet in IPv4/UDP headers to port 4729 so
  Wireshark decodes it.
- `rayhunter.analysis.information_element` –
  `information_element_from_gsmtap` builds an `LteNasElement` from a plain LTE
  NAS GSMTAP message and raises `UnsupportedGsmtapType` for anything else.
- `rayhunter.analysis.analyzer` – the abstract `Analyzer` interface (`name`,
  `description`, `analyze_information_element`) and the report structures
  `Event`, `EventType`, `Severity`, `PacketAnalysis`, `AnalysisRow`,
  `AnalyzerMetadata` and `ReportMetadata`, each with a `to_dict` for JSON.
- `rayhunter.rootshell` – the `rayhunter-rootshell` command.

## Installing

```
pip install .
```

## Example: live capture to pcapng

```python
from rayhunter.diag_device import DiagDevice
from rayhunter.gsmtap_parser import parse
from rayhunter.pcap import GsmtapPcapWriter

with DiagDevice.open() as device, open("capture.pcapng", "wb") as dst:
    device.config_logs()
    writer = GsmtapPcapWriter(dst)
    writer.write_iface_header()
    for container in device.containers():
        for result in container.into_messages():
            if isinstance(result, Exception):
                continue
            parsed = parse(result)
            if parsed is not None:
                timestamp, gsmtap_msg = parsed
                writer.write_gsmtap_message(gsmtap_msg, timestamp)
```

## Example: writing an analyzer

```python
from rayhunter.analysis.analyzer import Analyzer, Event, EventType, Severity
from rayhunter.analysis.information_element import LteNasElement


class IdentityRequestAnalyzer(Analyzer):
    def name(self):
        return "NAS identity request"

    def description(self):
        return "Flags NAS identity requests for the IMSI"

    def analyze_information_element(self, ie):
        if isinstance(ie, LteNasElement) and ie.payload == b"\x07\x55\x01":
            return Event(EventType.warning(Severity.HIGH), "IMSI identity request")
        return None
```

Feed it elements built with `information_element_from_gsmtap` from the
GSMTAP messages that `parse` returns.

## Root shell

On the device, `rayhunter-rootshell` runs `/bin/bash` as user and group 0,
passing on any arguments it is given. On 32-bit ARM it first joins the
Android network groups 3003 and 3004.

```
rayhunter-rootshell -c "id"
```

## What this package does not do

- It has no reader or writer for capture files on disk: containers come
  from `DiagDevice` or from `MessagesContainer.from_bytes`.
- It ships no ready-made analyzers and no harness that runs analyzers over
  containers and fills in `AnalysisRow`s; `Analyzer` is an interface to
  implement.
- It does not decode LTE RRC messages into information elements; only plain
  LTE NAS messages are supported, as raw bytes.

## Running the tests

```
pip install .[test]
pytest
```