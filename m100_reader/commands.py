"""Command frame builders for every supported M100 operation.

Each builder validates its arguments and returns a complete frame ready to
write to the transport. Validation happens before any I/O.
"""

from .constants import (
    PASSWORD_LENGTH, Command, HfssStatus, MemoryBank, VersionInfo,
)
from .exceptions import InvalidParameterError
from .frame import make_frame


def _check_password(password: bytes) -> bytes:
    if len(password) != PASSWORD_LENGTH:
        raise InvalidParameterError(
            f"Password must be {PASSWORD_LENGTH} bytes, got {len(password)}"
        )
    return bytes(password)


def _check_u16(name: str, value: int) -> bytes:
    if not 0 <= value <= 0xFFFF:
        raise InvalidParameterError(f"{name} must fit 16 bits: {value}")
    return value.to_bytes(2, 'big')


def coerce_code(enum_cls, value):
    """Look up a protocol enum member, rejecting unknown codes as invalid parameters"""
    try:
        return enum_cls.from_code(value)
    except ValueError as e:
        raise InvalidParameterError(str(e)) from None


def get_version(info: int = VersionInfo.HARDWARE) -> bytes:
    return make_frame(Command.GET_VERSION, bytes([coerce_code(VersionInfo, info)]))


def set_hfss_status(status: int) -> bytes:
    return make_frame(Command.SET_HFSS, bytes([coerce_code(HfssStatus, status)]))


def query() -> bytes:
    return make_frame(Command.QUERY, bytes([0x00, 0x00]))


def idle() -> bytes:
    """Leave continuous inventory / sleep mode"""
    return make_frame(Command.IDLE, bytes([0x00, 0x01, 0x00]))


def read_data(password: bytes, bank: int, address: int, length: int) -> bytes:
    """
    Build a ReadData frame

    Args:
        password: 8-byte access password
        bank: Memory bank to read
        address: Start address (16 bits)
        length: Number of bytes to read, a positive even number

    Returns:
        Encoded frame
    """
    if length <= 0 or length % 2 != 0:
        raise InvalidParameterError(
            f"Data length must be a positive even number: {length}"
        )
    payload = bytearray(_check_password(password))
    payload.append(coerce_code(MemoryBank, bank))
    payload.extend(_check_u16("address", address))
    payload.extend(_check_u16("length", length))
    return make_frame(Command.READ_DATA, bytes(payload))


def write_data(password: bytes, bank: int, address: int, data: bytes) -> bytes:
    """
    Build a WriteData frame for the Reserved, TID or User bank

    The EPC bank has its own layout, use :func:`write_epc` for it.
    """
    bank = coerce_code(MemoryBank, bank)
    if bank == MemoryBank.EPC:
        raise InvalidParameterError("use write_epc for the EPC bank")
    payload = bytearray(_check_password(password))
    payload.append(bank)
    payload.extend(_check_u16("address", address))
    payload.extend(_check_u16("data length", len(data)))
    payload.extend(data)
    return make_frame(Command.WRITE_DATA, bytes(payload))


def write_epc(password: bytes, data: bytes) -> bytes:
    """
    Build a WriteData frame that replaces the tag's EPC

    The payload carries two fixed bytes (0x00 0x01) after the bank byte and a
    PC word derived from the EPC length ahead of the EPC itself.
    """
    length = _check_u16("data length", len(data))
    pc_word = (len(data) << 10) & 0xF800

    payload = bytearray(_check_password(password))
    payload.append(MemoryBank.EPC)
    payload.extend(b'\x00\x01')
    payload.extend(length)
    payload.extend(pc_word.to_bytes(2, 'big'))
    payload.extend(data)
    return make_frame(Command.WRITE_DATA, bytes(payload))
