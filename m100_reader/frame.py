"""Frame encoder and decoder for the M100 serial protocol.

Frame layout::

    +------+------+---------+--------+--------+------------+----------+------+
    | Head | Type | Command | Len Hi | Len Lo |  Payload   | Checksum | Tail |
    | 0xBB | 1 B  |  1 byte | 1 byte | 1 byte |  Len bytes |  1 byte  | 0x7E |
    +------+------+---------+--------+--------+------------+----------+------+

- Type: 0x00 for commands, 0x01 for responses, 0x02 for notices
- Len: big-endian count of payload bytes
- Checksum: low byte of the sum of every byte from Type to the end of Payload
  (the head byte is excluded). This is a weak check; payloads whose sums are
  equal modulo 256 produce the same checksum.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from .constants import (
    FRAME_HEAD, FRAME_TAIL, FRAME_TYPE_COMMAND, HEADER_SIZE, MAX_PAYLOAD, TRAILER_SIZE,
    Command,
)
from .exceptions import FramingError, InvalidParameterError

logger = logging.getLogger(__name__)

ReadExact = Callable[[int], bytes]


@dataclass
class Frame:
    """A decoded protocol frame."""

    frame_type: int
    command: int
    payload: bytes

    def __repr__(self) -> str:
        return (
            f"Frame(type=0x{self.frame_type:02X}, command=0x{self.command:02X}, "
            f"payload={self.payload.hex(' ').upper() if self.payload else '(empty)'})"
        )


def format_bytes(data: bytes) -> str:
    """Format bytes as spaced upper-case hex for log output"""
    return ' '.join(f'{b:02X}' for b in data)


def checksum(data: bytes) -> int:
    """Low byte of the sum of ``data``."""
    return sum(data) & 0xFF


def make_frame(command, payload: bytes = b"") -> bytes:
    """Build a command frame.

    Args:
        command: A :class:`Command` or its numeric opcode.
        payload: Command-specific payload bytes.

    Returns:
        The complete frame, head to tail.

    Raises:
        InvalidParameterError: The opcode is unknown or the payload does not
            fit the 16-bit length field.
    """
    try:
        command = Command.from_code(command)
    except ValueError as e:
        raise InvalidParameterError(str(e)) from None

    if len(payload) > MAX_PAYLOAD:
        raise InvalidParameterError(
            f"Payload of {len(payload)} bytes does not fit a frame (max {MAX_PAYLOAD})"
        )

    packet = bytearray([FRAME_HEAD, FRAME_TYPE_COMMAND, command])
    packet.extend(len(payload).to_bytes(2, 'big'))
    packet.extend(payload)
    packet.append(checksum(packet[1:]))
    packet.append(FRAME_TAIL)

    logger.debug(f"cmd {command.name} made frame {format_bytes(packet)}")
    return bytes(packet)


def _read_into(read_exact: ReadExact, buffer: bytearray, start: int, count: int) -> None:
    # equal-length slice assignment, the buffer never resizes
    chunk = read_exact(count)
    if len(chunk) != count:
        raise FramingError(f"Expected {count} bytes, transport returned {len(chunk)}")
    buffer[start:start + count] = chunk


def read_frame(read_exact: ReadExact, buffer: Optional[bytearray] = None,
               verify_checksum: bool = False) -> Frame:
    """Read one frame using three blocking reads: header, payload, trailer.

    Args:
        read_exact: Callable returning exactly ``n`` bytes or raising.
        buffer: Receive buffer the frame is assembled in. A fresh one sized
            for the frame is used when omitted.
        verify_checksum: Also reject frames whose checksum byte is wrong.

    Returns:
        The decoded :class:`Frame`. Its payload is a copy, so the buffer may be
        reused as soon as this returns.

    Raises:
        FramingError: Bad head or tail byte, a length that does not fit the buffer, or
            (when requested) a checksum mismatch.
    """
    header = read_exact(HEADER_SIZE)
    if len(header) != HEADER_SIZE:
        raise FramingError(f"Short frame header: {format_bytes(header)}")
    if header[0] != FRAME_HEAD:
        raise FramingError(f"Invalid packet (received invalid head: 0x{header[0]:02X})")
    length = int.from_bytes(header[3:5], 'big')
    total = HEADER_SIZE + length + TRAILER_SIZE

    if buffer is None:
        buffer = bytearray(total)
    elif total > len(buffer):
        raise FramingError(
            f"Invalid packet (length {length} exceeds receive buffer of {len(buffer)} bytes)"
        )

    buffer[0:HEADER_SIZE] = header
    _read_into(read_exact, buffer, HEADER_SIZE, length)
    _read_into(read_exact, buffer, HEADER_SIZE + length, TRAILER_SIZE)

    tail = buffer[total - 1]
    if tail != FRAME_TAIL:
        raise FramingError(f"Invalid packet (received invalid tail: 0x{tail:02X})")

    if verify_checksum:
        expected = checksum(buffer[1:HEADER_SIZE + length])
        if buffer[total - 2] != expected:
            raise FramingError(
                f"Checksum mismatch: expected 0x{expected:02X}, got 0x{buffer[total - 2]:02X}"
            )

    frame = Frame(
        frame_type=buffer[1],
        command=buffer[2],
        payload=bytes(buffer[HEADER_SIZE:HEADER_SIZE + length]),
    )
    logger.debug(f"received frame {format_bytes(buffer[:total])}")
    return frame


def decode_frame(read_exact: ReadExact, buffer: Optional[bytearray] = None,
                 verify_checksum: bool = False) -> bytes:
    """Read one frame and return only its payload."""
    return read_frame(read_exact, buffer, verify_checksum).payload
