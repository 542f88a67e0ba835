"""
Custom exceptions for the M100 UHF RFID reader package
"""

class ReaderError(Exception):
    """Base exception for M100 reader operations"""
    pass

class ConnectionError(ReaderError):
    """Raised when the link to the reader cannot be established"""
    pass

class FirmwareUploadError(ConnectionError):
    """Raised when a firmware upload stage fails"""

    def __init__(self, stage, message: str):
        super().__init__(message)
        self.stage = stage

class TimeoutError(ReaderError):
    """Raised when the reader does not answer with enough bytes in time"""

    def __init__(self, message: str, expected: int = 0, received: int = 0):
        super().__init__(message)
        self.expected = expected
        self.received = received

class FramingError(ReaderError):
    """Raised when a response frame is malformed"""
    pass

class InvalidParameterError(ReaderError, ValueError):
    """Raised when invalid parameters are provided"""
    pass

class ReaderNotConnectedError(ReaderError):
    """Raised when trying to perform operations on a disconnected reader"""
    pass

class DeviceError(ReaderError):
    """Raised when the reader answers with an error code"""

    def __init__(self, code: int, message: str = ""):
        super().__init__(message or f"Reader reported error 0x{code:02X}")
        self.code = code

class ReadFailedError(DeviceError):
    """Tag read failed (HEXIN_FAIL_READ)"""
    pass

class MemoryOverrunError(DeviceError):
    """Read past the end of a memory bank (HEXIN_ERROR_READ_MEMORY_OVERRUN)"""
    pass

class WriteError(DeviceError):
    """Tag write error (HEXIN_ERROR_WRITE)"""
    pass

class WriteFailedError(DeviceError):
    """Tag write failed (HEXIN_FAIL_WRITE)"""
    pass

class VerificationError(ReaderError):
    """Raised when data read back after a write does not match"""

    def __init__(self, message: str, expected: bytes = b"", actual: bytes = b""):
        super().__init__(message)
        self.expected = expected
        self.actual = actual
