"""
Serial transport for the M100 reader module
"""

import logging
from typing import List, Optional

import serial
import serial.tools.list_ports

from .exceptions import ConnectionError, ReaderNotConnectedError, TimeoutError
from .frame import format_bytes

logger = logging.getLogger(__name__)


def get_available_ports() -> List[str]:
    """
    Get list of available serial ports

    Returns:
        List of device paths
    """
    return [port.device for port in serial.tools.list_ports.comports()]


class SerialTransport:
    """
    Blocking duplex byte channel over a serial port.

    Every write is flushed immediately and every read waits up to ``timeout``
    seconds for an exact byte count.
    """

    def __init__(self, port: str, baudrate: int = 115200, timeout: float = 1.0):
        self.port = port
        self.baudrate = baudrate
        self.timeout = timeout
        self.serial_port: Optional[serial.Serial] = None

    @property
    def is_open(self) -> bool:
        return self.serial_port is not None and self.serial_port.is_open

    def open(self, clear_buffers: bool = True) -> None:
        """Open the port with 8 data bits, no parity, 1 stop bit"""
        if self.is_open:
            self.serial_port.close()
        try:
            self.serial_port = serial.Serial(
                port=self.port,
                baudrate=self.baudrate,
                timeout=self.timeout,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE
            )
        except (serial.SerialException, ValueError) as e:
            self.serial_port = None
            raise ConnectionError(f"Could not open {self.port}: {e}") from e

        logger.info(f"Opened {self.port} at {self.baudrate} baud")
        if clear_buffers:
            self.reset_buffers()

    def close(self) -> None:
        if self.is_open:
            self.serial_port.close()
            logger.info(f"Closed {self.port}")
        self.serial_port = None

    def _port(self) -> serial.Serial:
        if not self.is_open:
            raise ReaderNotConnectedError(f"Serial port {self.port} is not open")
        return self.serial_port

    def set_baud_rate(self, baudrate: int) -> None:
        port = self._port()
        try:
            port.baudrate = baudrate
        except (serial.SerialException, ValueError) as e:
            raise ConnectionError(f"Could not set {self.port} to {baudrate} baud: {e}") from e
        self.baudrate = baudrate
        logger.debug(f"Baud rate set to {baudrate}")

    def set_timeout(self, timeout: Optional[float]) -> None:
        """Set the read timeout in seconds, None blocks forever"""
        port = self._port()
        try:
            port.timeout = timeout
        except (serial.SerialException, ValueError) as e:
            raise ConnectionError(f"Could not set timeout on {self.port}: {e}") from e
        self.timeout = timeout

    def reset_buffers(self) -> None:
        port = self._port()
        try:
            port.reset_input_buffer()
            port.reset_output_buffer()
        except serial.SerialException as e:
            raise ConnectionError(f"Could not clear buffers of {self.port}: {e}") from e

    def write(self, data: bytes) -> None:
        """Write all bytes and flush"""
        port = self._port()
        try:
            port.write(data)
            port.flush()
        except serial.SerialException as e:
            raise ConnectionError(f"Write to {self.port} failed: {e}") from e
        logger.debug(f"TX {format_bytes(data)}")

    def read_exact(self, count: int) -> bytes:
        """
        Read exactly ``count`` bytes

        Raises:
            TimeoutError: fewer bytes arrived before the timeout
        """
        if count == 0:
            return b""
        port = self._port()
        try:
            data = port.read(count)
        except serial.SerialException as e:
            raise ConnectionError(f"Read from {self.port} failed: {e}") from e
        if len(data) < count:
            raise TimeoutError(
                f"Timed out waiting for {count} bytes (received {len(data)})",
                expected=count, received=len(data)
            )
        logger.debug(f"RX {format_bytes(data)}")
        return data

    def __enter__(self) -> "SerialTransport":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
