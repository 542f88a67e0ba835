"""Firmware upload for an unprovisioned M100 module.

The bootloader handshake runs in five strictly sequential stages::

    PROBE     9600 baud, send 0xFE, expect 0xFF (module alive)
    SPEED_UP  send 0xB5, wait for the module to settle, switch to 115200 baud
    ARM       send 0xFF 0xDB, expect 0xBF (ready for upload), send 0xFD
    STREAM    send the whole firmware image in one write
    SETTLE    send Idle through the normal command path

A failure in any stage aborts the upload. There is no partial recovery; the
module has to be power-cycled and the upload restarted from PROBE.
"""

import logging
import time
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from .constants import (
    BAUD_SWITCH_DELAY, BOOT_ACK, BOOT_ALIVE, BOOT_ARM, BOOT_PROBE, BOOT_READY,
    BOOT_SPEED_UP, BOOTLOADER_BAUDRATE, UPLOAD_BAUDRATE,
)
from .exceptions import FirmwareUploadError, InvalidParameterError, ReaderError

logger = logging.getLogger(__name__)


class UploadStage(Enum):
    PROBE = 1
    SPEED_UP = 2
    ARM = 3
    STREAM = 4
    SETTLE = 5


def load_firmware(path) -> bytes:
    """Read a firmware image from disk. The content is not interpreted."""
    try:
        firmware = Path(path).read_bytes()
    except OSError as e:
        raise InvalidParameterError(f"Cannot read firmware image {path}: {e}") from e
    if not firmware:
        raise InvalidParameterError(f"Firmware image {path} is empty")
    return firmware


class FirmwareUploader:
    """
    Runs the bootloader handshake and streams a firmware image.

    Args:
        transport: Byte channel with ``set_baud_rate``, ``write`` and ``read_exact``
        settle: Callable sending the Idle command and waiting for its response
        baud_switch_delay: Seconds to wait between 0xB5 and the baud rate switch
    """

    def __init__(self, transport, settle: Callable[[], None],
                 baud_switch_delay: float = BAUD_SWITCH_DELAY):
        self.transport = transport
        self.settle = settle
        self.baud_switch_delay = baud_switch_delay
        self.stage: Optional[UploadStage] = None

    @contextmanager
    def _stage(self, stage: UploadStage):
        self.stage = stage
        logger.info(f"Firmware upload stage {stage.value}/{len(UploadStage)}: {stage.name}")
        try:
            yield
        except FirmwareUploadError:
            raise
        except ReaderError as e:
            raise FirmwareUploadError(
                stage, f"Firmware upload failed at {stage.name}: {e}"
            ) from e

    def _expect(self, stage: UploadStage, expected: int, message: str) -> None:
        reply = self.transport.read_exact(1)[0]
        if reply != expected:
            raise FirmwareUploadError(stage, f"{message}: 0x{reply:02X}")

    def upload(self, firmware: bytes) -> None:
        """
        Upload ``firmware`` to the module

        Raises:
            FirmwareUploadError: a stage failed; ``stage`` names which one
            InvalidParameterError: the image is empty
        """
        if not firmware:
            raise InvalidParameterError("Firmware image is empty")

        with self._stage(UploadStage.PROBE):
            self.transport.set_baud_rate(BOOTLOADER_BAUDRATE)
            self.transport.write(bytes([BOOT_PROBE]))
            self._expect(UploadStage.PROBE, BOOT_ALIVE,
                         "Could not establish connection to the device")

        with self._stage(UploadStage.SPEED_UP):
            self.transport.write(bytes([BOOT_SPEED_UP]))
            time.sleep(self.baud_switch_delay)
            self.transport.set_baud_rate(UPLOAD_BAUDRATE)

        with self._stage(UploadStage.ARM):
            self.transport.write(BOOT_ARM)
            self._expect(UploadStage.ARM, BOOT_READY,
                         "Could not prepare firmware upload to the device")
            self.transport.write(bytes([BOOT_ACK]))

        with self._stage(UploadStage.STREAM):
            self.transport.write(firmware)
            logger.info(f"Streamed {len(firmware)} bytes of firmware")

        with self._stage(UploadStage.SETTLE):
            self.settle()

        logger.info("Firmware upload complete")
