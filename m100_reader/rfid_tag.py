"""
RFID tag data structure
"""

from dataclasses import dataclass
from typing import Optional

@dataclass
class TagInfo:
    """
    Represents a tag reported by a Query

    Attributes:
        epc: EPC (Electronic Product Code) as upper-case hex string
        rssi: Received Signal Strength Indicator byte
    """
    epc: str = ""
    rssi: int = 0

    @classmethod
    def from_payload(cls, payload: bytes) -> Optional["TagInfo"]:
        """
        Build a TagInfo from a Query response payload

        Payload layout is RSSI(1) PC(2) EPC(n) CRC(2). A payload of one byte
        or less means no tag answered.
        """
        if len(payload) <= 1:
            return None
        return cls(epc=payload[3:-2].hex().upper(), rssi=payload[0])

    @property
    def epc_bytes(self) -> bytes:
        return bytes.fromhex(self.epc)

    def __str__(self) -> str:
        return f"TagInfo(EPC={self.epc}, RSSI={self.rssi})"
