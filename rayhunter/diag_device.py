"""Access to a diag character device: configuring logging and reading containers."""

from __future__ import annotations

import logging
import struct
from typing import BinaryIO, Iterator

from rayhunter import log_codes
from rayhunter.diag import (
    DataType,
    DiagParsingError,
    LogMessage,
    Message,
    MessagesContainer,
    Request,
    RequestContainer,
    ResponseMessage,
    RetrieveIdRangesRequest,
    RetrieveIdRangesResponse,
    SetMaskResponse,
    build_log_mask_request,
)
from rayhunter.hdlc import hdlc_encapsulate

logger = logging.getLogger(__name__)

LOG_CODES_FOR_RAW_PACKET_LOGGING = (
    # Layer 2
    log_codes.LOG_GPRS_MAC_SIGNALLING_MESSAGE_C,
    # Layer 3
    log_codes.LOG_GSM_RR_SIGNALING_MESSAGE_C,
    log_codes.WCDMA_SIGNALLING_MESSAGE,
    log_codes.LOG_LTE_RRC_OTA_MSG_LOG_C,
    log_codes.LOG_NR_RRC_OTA_MSG_LOG_C,
    # NAS
    log_codes.LOG_UMTS_NAS_OTA_MESSAGE_LOG_PACKET_C,
    log_codes.LOG_LTE_NAS_ESM_OTA_IN_MSG_LOG_C,
    log_codes.LOG_LTE_NAS_ESM_OTA_OUT_MSG_LOG_C,
    log_codes.LOG_LTE_NAS_EMM_OTA_IN_MSG_LOG_C,
    log_codes.LOG_LTE_NAS_EMM_OTA_OUT_MSG_LOG_C,
    # User IP traffic
    log_codes.LOG_DATA_PROTOCOL_LOGGING_C,
)

DEFAULT_DEVICE_PATH = "/dev/diag"
BUFFER_LEN = 1024 * 1024 * 10
MEMORY_DEVICE_MODE = 2
DIAG_IOCTL_REMOTE_DEV = 32
DIAG_IOCTL_SWITCH_LOGGING = 7


class DiagDeviceError(Exception):
    """Base class for diag device failures."""


class InitializationFailedError(DiagDeviceError):
    """The device could not be switched into the required mode."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Failed to initialize /dev/diag: {reason}")
        self.reason = reason


class DeviceReadError(DiagDeviceError):
    """Reading from the device failed."""

    def __init__(self, error: OSError) -> None:
        super().__init__(f"Failed to read diag device: {error}")
        self.error = error


class DeviceWriteError(DiagDeviceError):
    """Writing to the device failed."""

    def __init__(self, error: OSError) -> None:
        super().__init__(f"Failed to write diag device: {error}")
        self.error = error


class RequestFailedError(DiagDeviceError):
    """The device answered a request with a nonzero status."""

    def __init__(self, status: int, request: Request) -> None:
        super().__init__(f"Nonzero status code {status} for diag request: {request!r}")
        self.status = status
        self.request = request


class NoResponseError(DiagDeviceError):
    """No matching response arrived for a request."""

    def __init__(self, request: Request) -> None:
        super().__init__(f"Didn't receive response for request: {request!r}")
        self.request = request


def _enable_frame_readwrite(fd: int, mode: int) -> None:
    """Switch the device into memory-device logging mode."""
    import fcntl

    try:
        fcntl.ioctl(fd, DIAG_IOCTL_SWITCH_LOGGING, mode)
    except OSError:
        param = bytearray(struct.pack("=iii", mode, -1, 0))
        try:
            fcntl.ioctl(fd, DIAG_IOCTL_SWITCH_LOGGING, param, True)
        except OSError as exc:
            raise InitializationFailedError(
                f"DIAG_IOCTL_SWITCH_LOGGING ioctl failed: {exc}"
            ) from exc


def _determine_use_mdm(fd: int) -> int:
    """Ask whether requests must carry the additional MDM field."""
    import fcntl

    buf = bytearray(4)
    try:
        fcntl.ioctl(fd, DIAG_IOCTL_REMOTE_DEV, buf, True)
    except OSError as exc:
        raise InitializationFailedError(f"DIAG_IOCTL_REMOTE_DEV ioctl failed: {exc}") from exc
    return struct.unpack("=i", buf)[0]


class DiagDevice:
    """A diag device opened for reading log containers and writing requests."""

    def __init__(self, file: BinaryIO, use_mdm: int = 0) -> None:
        self._file = file
        self.use_mdm = use_mdm

    @classmethod
    def open(cls, path: str = DEFAULT_DEVICE_PATH) -> DiagDevice:
        """Open and initialize the device at ``path``."""
        try:
            file = open(path, "r+b", buffering=0)
        except OSError as exc:
            raise DiagDeviceError(f"Failed to open diag device: {exc}") from exc
        try:
            fd = file.fileno()
            _enable_frame_readwrite(fd, MEMORY_DEVICE_MODE)
            use_mdm = _determine_use_mdm(fd)
        except BaseException:
            file.close()
            raise
        return cls(file, use_mdm)

    def close(self) -> None:
        self._file.close()

    def __enter__(self) -> DiagDevice:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def next_container(self) -> MessagesContainer:
        """Block until the device yields data and parse it as a container."""
        data = b""
        while not data:
            try:
                data = self._file.read(BUFFER_LEN)
            except OSError as exc:
                raise DeviceReadError(exc) from exc
        try:
            return MessagesContainer.from_bytes(data)
        except ValueError as exc:
            raise DiagDeviceError(f"Failed to parse MessagesContainer: {exc}") from exc

    def containers(self) -> Iterator[MessagesContainer]:
        """Yield containers from the device for as long as it produces them."""
        while True:
            yield self.next_container()

    def write_request(self, request: Request) -> None:
        """Frame ``request`` and write it to the device."""
        container = RequestContainer(
            data_type=DataType.USER_SPACE,
            hdlc_encapsulated_request=hdlc_encapsulate(request.to_bytes()),
            use_mdm=self.use_mdm > 0,
            mdm_field=-1,
        )
        # The device reports zero bytes written even when it accepts a request,
        # so the count returned by write is deliberately ignored.
        try:
            self._file.write(container.to_bytes())
            self._file.flush()
        except OSError as exc:
            raise DeviceWriteError(exc) from exc

    def read_response(self) -> list[Message | DiagParsingError]:
        """Read containers until a user-space one arrives and parse its messages."""
        while True:
            container = self.next_container()
            if container.data_type == DataType.USER_SPACE:
                return container.into_messages()

    def _responses(self) -> Iterator[ResponseMessage]:
        for message in self.read_response():
            if isinstance(message, DiagParsingError):
                logger.error("error parsing message: %r", message)
            elif isinstance(message, LogMessage):
                logger.info("skipping log response...")
            else:
                yield message

    def retrieve_id_ranges(self) -> tuple[int, ...]:
        """Return the log mask size of each of the 16 log types."""
        request = RetrieveIdRangesRequest()
        self.write_request(request)
        for response in self._responses():
            if isinstance(response.payload, RetrieveIdRangesResponse):
                if response.status != 0:
                    raise RequestFailedError(response.status, request)
                return response.payload.log_mask_sizes
            logger.info("skipping non-LogConfigResponse response...")
        raise NoResponseError(request)

    def set_log_mask(self, log_type: int, log_mask_bitsize: int) -> None:
        """Enable the raw packet log codes for one log type."""
        request = build_log_mask_request(
            log_type, log_mask_bitsize, LOG_CODES_FOR_RAW_PACKET_LOGGING
        )
        self.write_request(request)
        for response in self._responses():
            if isinstance(response.payload, SetMaskResponse):
                if response.status != 0:
                    raise RequestFailedError(response.status, request)
                return
        raise NoResponseError(request)

    def config_logs(self) -> None:
        """Enable raw packet logging for every log type the device supports."""
        logger.info("retrieving diag logging capabilities...")
        for log_type, bitsize in enumerate(self.retrieve_id_ranges()):
            if bitsize > 0:
                self.set_log_mask(log_type, bitsize)
                logger.info("enabled logging for log type %d", log_type)