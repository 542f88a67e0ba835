"""
Session with one M100 UHF RFID module over a byte transport
"""

import logging
import time
from typing import Optional

from . import commands
from .bank_access import BankAccessor
from .constants import (
    BOOTLOADER_BAUDRATE, BRING_UP_DELAY, ERROR_FAIL_READ,
    ERROR_FAIL_WRITE, ERROR_READ_MEMORY_OVERRUN, ERROR_WRITE, RECEIVE_BUFFER_SIZE,
    HfssStatus, VersionInfo,
)
from .exceptions import (
    FramingError, MemoryOverrunError, ReadFailedError, ReaderError,
    WriteError, WriteFailedError,
)
from .firmware import FirmwareUploader
from .frame import decode_frame
from .rfid_tag import TagInfo

logger = logging.getLogger(__name__)

ERROR_CODES = {
    ERROR_FAIL_READ: (ReadFailedError, "Read failure HEXIN_FAIL_READ"),
    ERROR_READ_MEMORY_OVERRUN: (MemoryOverrunError, "Read failure HEXIN_ERROR_READ_MEMORY_OVERRUN"),
    ERROR_WRITE: (WriteError, "Unexpected write response: HEXIN_ERROR_WRITE"),
    ERROR_FAIL_WRITE: (WriteFailedError, "Unexpected write response: HEXIN_FAIL_WRITE"),
}


def raise_for_error_code(payload: bytes) -> None:
    """Raise the matching DeviceError if ``payload`` is a single known error code"""
    if len(payload) == 1 and payload[0] in ERROR_CODES:
        error_cls, message = ERROR_CODES[payload[0]]
        raise error_cls(payload[0], message)


class M100Reader:
    """
    High-level interface to an M100 module: identification, tag query,
    bank reads and writes, and firmware bring-up.

    Commands are synchronous; each one writes a frame and blocks until the
    response frame has been read into the session's receive buffer.

    Args:
        transport: Open byte channel (see :class:`~m100_reader.transport.SerialTransport`)
        verify_checksum: Reject response frames with a wrong checksum byte
    """

    def __init__(self, transport, verify_checksum: bool = False):
        self.transport = transport
        self.verify_checksum = verify_checksum
        self.recv_buffer = bytearray(RECEIVE_BUFFER_SIZE)
        self.banks = BankAccessor(self)

    def send_and_receive(self, frame: bytes) -> bytes:
        """
        Send one command frame and return the payload of the response

        Raises:
            DeviceError: the response is a single known error code
            FramingError: the response frame is malformed
            TimeoutError: the response did not arrive in time
        """
        self.transport.write(frame)
        payload = decode_frame(self.transport.read_exact, self.recv_buffer,
                               self.verify_checksum)
        raise_for_error_code(payload)
        return payload

    def set_baud_rate(self, baudrate: int) -> None:
        self.transport.set_baud_rate(baudrate)

    def get_version(self, info: int = VersionInfo.HARDWARE) -> str:
        """
        Get the module version string

        Args:
            info: Which version to report (hardware, software or manufacturer)
        """
        payload = self.send_and_receive(commands.get_version(info))
        # the reply echoes the selector byte ahead of the text
        if payload[:1] == bytes([info]):
            payload = payload[1:]
        try:
            return payload.decode('utf-8')
        except UnicodeDecodeError as e:
            raise FramingError(f"Version is not valid text: {payload.hex().upper()}") from e

    def set_hfss_status(self, status: int) -> None:
        self.send_and_receive(commands.set_hfss_status(status))

    def query(self) -> Optional[TagInfo]:
        """
        Single inventory round

        Returns:
            The tag that answered, or None when no tag is in the field
        """
        return TagInfo.from_payload(self.send_and_receive(commands.query()))

    def disable_sleep(self) -> None:
        self.send_and_receive(commands.idle())

    def read_data(self, password: bytes, bank, address: int, length: int) -> bytes:
        """
        Read ``length`` bytes from ``bank`` starting at ``address``

        Raises:
            InvalidParameterError: length is not a positive even number (no I/O is done)
            ReadFailedError, MemoryOverrunError: the reader could not read the range
        """
        return self.send_and_receive(commands.read_data(password, bank, address, length))

    def read_bank(self, password: bytes, bank) -> bytes:
        return self.banks.read_bank(password, bank)

    def write_bank(self, password: bytes, bank, address: int, data: bytes) -> None:
        self.banks.write_bank(password, bank, address, data)

    def write_and_verify(self, password: bytes, bank, data: bytes, address: int = 0) -> None:
        self.banks.write_and_verify(password, bank, data, address)

    def upload_firmware(self, firmware: bytes, **kwargs) -> None:
        FirmwareUploader(self.transport, self.disable_sleep, **kwargs).upload(firmware)

    def bring_up(self, firmware: Optional[bytes] = None,
                 delay: float = BRING_UP_DELAY, **kwargs) -> str:
        """
        Identify the module, uploading firmware first if it does not answer

        Args:
            firmware: Image to upload when GetVersion fails. Without one the
                GetVersion failure is raised.
            delay: Seconds to wait before the upload and after re-enabling HFSS

        Returns:
            The version string
        """
        try:
            return self.get_version()
        except ReaderError as e:
            if firmware is None:
                raise
            logger.warning(f"Could not receive device version: {e}")

        logger.info("Uploading firmware...")
        self.set_baud_rate(BOOTLOADER_BAUDRATE)
        time.sleep(delay)
        self.upload_firmware(firmware, **kwargs)
        self.set_hfss_status(HfssStatus.AUTO)
        logger.info("Uploaded firmware.")
        time.sleep(delay)
        return self.get_version()

    def close(self) -> None:
        self.transport.close()

