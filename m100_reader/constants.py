"""
Constants of the M100 UHF RFID module serial protocol
"""

from enum import IntEnum


# --- Frame Structure Constants ---
FRAME_HEAD = 0xBB
FRAME_TAIL = 0x7E
HEADER_SIZE = 5   # head + type + command + 2 length bytes
TRAILER_SIZE = 2  # checksum + tail
MAX_PAYLOAD = 0xFFFF

# --- Frame Type Constants ---
FRAME_TYPE_COMMAND = 0x00
FRAME_TYPE_RESPONSE = 0x01
FRAME_TYPE_NOTICE = 0x02

RECEIVE_BUFFER_SIZE = 1024

# --- Firmware bootloader bytes ---
BOOT_PROBE = 0xFE
BOOT_ALIVE = 0xFF
BOOT_SPEED_UP = 0xB5
BOOT_ARM = bytes([0xFF, 0xDB])
BOOT_READY = 0xBF
BOOT_ACK = 0xFD

BOOTLOADER_BAUDRATE = 9600
UPLOAD_BAUDRATE = 115200

# Seconds to wait after 0xB5 before re-bauding, and around firmware bring-up
BAUD_SWITCH_DELAY = 0.05
BRING_UP_DELAY = 0.1

# Access password, ASCII "00000000"
DEFAULT_PASSWORD = bytes([0x30] * 8)
PASSWORD_LENGTH = 8

# Addresses and chunk sizes used to walk each bank
EPC_START_ADDRESS = 12
EPC_CHUNK_SIZE = 2
USER_START_ADDRESS = 0
USER_CHUNK_SIZE = 512
TID_LENGTH = 32


class _Coded(IntEnum):
    """IntEnum that rejects unknown codes with a readable message"""

    @classmethod
    def from_code(cls, code: int):
        try:
            return cls(code)
        except ValueError:
            raise ValueError(f"Unknown {cls.__name__} code: {code!r}") from None


class Command(_Coded):
    GET_VERSION = 0x03
    IDLE = 0x04
    QUERY = 0x22
    READ_DATA = 0x39
    SET_HFSS = 0xAD
    WRITE_DATA = 0x49


class MemoryBank(_Coded):
    RESERVED = 0x00
    EPC = 0x01
    TID = 0x02
    USER = 0x03


class HfssStatus(_Coded):
    """Continuous inventory (frequency hopping) mode"""
    AUTO = 0xFF
    STOP = 0x00


class VersionInfo(_Coded):
    """Information selector for GetVersion"""
    HARDWARE = 0x00
    SOFTWARE = 0x01
    MANUFACTURER = 0x02


# --- Device error codes (single-byte response payloads) ---
ERROR_FAIL_READ = 0x09
ERROR_READ_MEMORY_OVERRUN = 0xA3
ERROR_WRITE = 0xB0
ERROR_FAIL_WRITE = 0x10
