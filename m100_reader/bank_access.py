"""Whole-bank reads and writes on top of the ReadData/WriteData commands.

Tags do not advertise how long their EPC and User banks are. Those banks are
walked in fixed-size chunks until the reader reports an error, and that error
marks the end of the bank: the bytes collected so far are the result.
"""

import logging

from . import commands
from .constants import (
    EPC_CHUNK_SIZE, EPC_START_ADDRESS, TID_LENGTH, USER_CHUNK_SIZE,
    USER_START_ADDRESS, MemoryBank,
)
from .exceptions import (
    InvalidParameterError, ReaderError, ReaderNotConnectedError, VerificationError,
)

logger = logging.getLogger(__name__)

MAX_ADDRESS = 0xFFFF


class BankAccessor:
    """
    Bank level read/write operations for one reader session

    Args:
        reader: Session providing ``read_data``, ``send_and_receive`` and ``query``
    """

    def __init__(self, reader):
        self.reader = reader

    def read_bank(self, password: bytes, bank) -> bytes:
        """
        Read the whole content of a memory bank

        EPC is read in 2-byte chunks from address 12 (after a single read of
        the leading 12 bytes), User in 512-byte chunks from address 0. TID is
        a single fixed 32-byte read.

        Raises:
            InvalidParameterError: the Reserved bank was requested
        """
        bank = commands.coerce_code(MemoryBank, bank)
        if bank == MemoryBank.RESERVED:
            raise InvalidParameterError("cannot read the whole Reserved memory bank")
        if bank == MemoryBank.EPC:
            return self.read_chunked(password, bank, EPC_START_ADDRESS, EPC_CHUNK_SIZE)
        if bank == MemoryBank.TID:
            return self.reader.read_data(password, bank, 0, TID_LENGTH)
        return self.read_chunked(password, bank, USER_START_ADDRESS, USER_CHUNK_SIZE)

    def read_chunked(self, password: bytes, bank, start_address: int,
                     chunk_size: int) -> bytes:
        """
        Read ``bank`` chunk by chunk until the first failed read

        When ``start_address`` is not 0, the range ``[0, start_address)`` is
        read first in one request; a failure there is raised. A failure of
        any later chunk read ends the bank and is not raised.

        Returns:
            Every byte read before the failing chunk
        """
        bank = commands.coerce_code(MemoryBank, bank)
        data = bytearray()

        if start_address != 0:
            data.extend(self.reader.read_data(password, bank, 0, start_address))

        address = start_address
        while address <= MAX_ADDRESS:
            try:
                chunk = self.reader.read_data(password, bank, address, chunk_size)
            except (InvalidParameterError, ReaderNotConnectedError):
                raise
            except ReaderError as e:
                logger.debug(f"Error {e} at {address}, end of {bank.name} bank")
                break
            data.extend(chunk)
            address += chunk_size

        logger.info(f"Read {len(data)} bytes from {bank.name} bank")
        return bytes(data)

    def write_bank(self, password: bytes, bank, address: int, data: bytes) -> None:
        """
        Write ``data`` to a bank

        The EPC bank is written with the EPC layout, which always starts at
        the PC word; ``address`` is ignored for it.

        Raises:
            WriteError, WriteFailedError: the reader rejected the write
        """
        bank = commands.coerce_code(MemoryBank, bank)
        if not data:
            raise InvalidParameterError("Nothing to write")
        if bank == MemoryBank.EPC:
            frame = commands.write_epc(password, data)
        else:
            frame = commands.write_data(password, bank, address, data)
        self.reader.send_and_receive(frame)
        logger.info(f"Wrote {len(data)} bytes to {bank.name} bank at {address}")

    def write_and_verify(self, password: bytes, bank, data: bytes, address: int = 0) -> None:
        """
        Write ``data`` and read it back

        The EPC bank is checked against the EPC reported by a Query, other
        banks by reading the written range (rounded up to a whole word).

        Raises:
            VerificationError: the tag returned different data, or no tag
                answered the verification Query. Retrying the whole write is
                the expected reaction.
        """
        bank = commands.coerce_code(MemoryBank, bank)
        self.write_bank(password, bank, address, data)

        if bank == MemoryBank.EPC:
            tag = self.reader.query()
            if tag is None:
                raise VerificationError("No tag answered to verify the EPC", expected=data)
            actual = tag.epc_bytes
        else:
            length = len(data) + len(data) % 2
            actual = self.reader.read_data(password, bank, address, length)[:len(data)]

        if actual != data:
            raise VerificationError(
                f"Verification failed: wrote {data.hex().upper()}, read {actual.hex().upper()}",
                expected=data, actual=actual
            )
        logger.info(f"Verified {len(data)} bytes in {bank.name} bank")
