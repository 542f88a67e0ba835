"""
M100 UHF RFID Reader Python package

Drives an M100 UHF RFID module over a serial link. It encodes command
frames, decodes responses, and uploads firmware to an unprovisioned module.

This package supports:
- Module identification and firmware bring-up
- Single-round tag query
- Whole-bank reads of the EPC, TID and User banks
- Bank writes with read-back verification
"""

from .constants import DEFAULT_PASSWORD, Command, HfssStatus, MemoryBank, VersionInfo
from .exceptions import (
    ReaderError, ConnectionError, TimeoutError, FramingError, InvalidParameterError,
    DeviceError, VerificationError, FirmwareUploadError,
)
from .firmware import FirmwareUploader, UploadStage, load_firmware
from .reader import M100Reader
from .rfid_tag import TagInfo
from .transport import SerialTransport, get_available_ports

__version__ = "1.0.0"

__all__ = [
    'M100Reader',
    'SerialTransport',
    'TagInfo',
    'FirmwareUploader',
    'UploadStage',
    'load_firmware',
    'get_available_ports',
    'Command',
    'MemoryBank',
    'HfssStatus',
    'VersionInfo',
    'DEFAULT_PASSWORD',
    'ReaderError',
    'ConnectionError',
    'TimeoutError',
    'FramingError',
    'InvalidParameterError',
    'DeviceError',
    'VerificationError',
    'FirmwareUploadError',
]
