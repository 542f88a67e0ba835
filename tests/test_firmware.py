"""
Tests for the firmware upload handshake
"""

import os
import tempfile
import unittest
import sys
from pathlib import Path
from unittest.mock import MagicMock, PropertyMock, patch

import serial

sys.path.insert(0, str(Path(__file__).parent.parent))

from m100_reader import commands
from m100_reader.exceptions import (
    ConnectionError, FirmwareUploadError, InvalidParameterError, TimeoutError,
)
from m100_reader.firmware import FirmwareUploader, UploadStage, load_firmware
from m100_reader.reader import M100Reader
from m100_reader.transport import SerialTransport
from tests.fakes import ScriptedTransport, response_frame

FIRMWARE = bytes(range(256)) * 4


@patch('m100_reader.firmware.time')
class TestFirmwareUploader(unittest.TestCase):
    """Stage ordering and failure handling"""

    def uploader(self, transport):
        return FirmwareUploader(transport, M100Reader(transport).disable_sleep)

    def test_full_sequence(self, mock_time):
        """All five stages run in order"""
        transport = ScriptedTransport(bytes([0xFF, 0xBF]) + response_frame(0x04, b'\x00'))
        mock_time.sleep.side_effect = lambda seconds: transport.events.append(('sleep', seconds))
        uploader = self.uploader(transport)

        uploader.upload(FIRMWARE)

        self.assertEqual(transport.events, [
            ('baud', 9600),
            ('write', b'\xFE'),
            ('write', b'\xB5'),
            ('sleep', 0.05),
            ('baud', 115200),
            ('write', b'\xFF\xDB'),
            ('write', b'\xFD'),
            ('write', FIRMWARE),
            ('write', commands.idle()),
        ])
        self.assertEqual(uploader.stage, UploadStage.SETTLE)

    def test_probe_mismatch_stops(self, mock_time):
        """An unexpected probe reply aborts before any re-baud or further write"""
        transport = ScriptedTransport(bytes([0x00, 0xBF]))
        with self.assertRaises(FirmwareUploadError) as ctx:
            self.uploader(transport).upload(FIRMWARE)
        self.assertIs(ctx.exception.stage, UploadStage.PROBE)
        self.assertIn("0x00", str(ctx.exception))
        self.assertEqual(transport.events, [('baud', 9600), ('write', b'\xFE')])
        mock_time.sleep.assert_not_called()

    def test_probe_timeout(self, mock_time):
        """No probe reply is a fatal connection error"""
        transport = ScriptedTransport()
        with self.assertRaises(FirmwareUploadError) as ctx:
            self.uploader(transport).upload(FIRMWARE)
        self.assertIs(ctx.exception.stage, UploadStage.PROBE)
        self.assertIsInstance(ctx.exception.__cause__, TimeoutError)
        self.assertNotIn(('baud', 115200), transport.events)

    def test_arm_mismatch(self, mock_time):
        """A wrong ready byte aborts before the acknowledgement"""
        transport = ScriptedTransport(bytes([0xFF, 0x00]))
        with self.assertRaises(FirmwareUploadError) as ctx:
            self.uploader(transport).upload(FIRMWARE)
        self.assertIs(ctx.exception.stage, UploadStage.ARM)
        self.assertEqual(transport.written[-1], b'\xFF\xDB')

    def test_settle_failure(self, mock_time):
        """No answer to Idle after streaming fails the upload"""
        transport = ScriptedTransport(bytes([0xFF, 0xBF]))
        with self.assertRaises(FirmwareUploadError) as ctx:
            self.uploader(transport).upload(FIRMWARE)
        self.assertIs(ctx.exception.stage, UploadStage.SETTLE)
        self.assertIn(FIRMWARE, transport.written)

    def test_stream_failure(self, mock_time):
        """A transport failure while streaming is reported for that stage"""
        transport = MagicMock()
        transport.read_exact.side_effect = [b'\xFF', b'\xBF']
        transport.write.side_effect = [None, None, None, None, TimeoutError("stalled")]
        with self.assertRaises(FirmwareUploadError) as ctx:
            FirmwareUploader(transport, MagicMock()).upload(FIRMWARE)
        self.assertIs(ctx.exception.stage, UploadStage.STREAM)

    @patch('m100_reader.transport.serial.Serial')
    def test_baud_switch_failure(self, mock_serial, mock_time):
        """A port that refuses the upload baud rate fails the speed-up stage"""
        port = mock_serial.return_value
        port.read.return_value = b'\xFF'
        type(port).baudrate = PropertyMock(
            side_effect=[None, serial.SerialException("reconfigure failed")]
        )
        transport = SerialTransport('/dev/ttyACM0')
        transport.open()
        with self.assertRaises(FirmwareUploadError) as ctx:
            FirmwareUploader(transport, MagicMock()).upload(FIRMWARE)
        self.assertIs(ctx.exception.stage, UploadStage.SPEED_UP)
        self.assertIsInstance(ctx.exception.__cause__, ConnectionError)
        port.write.assert_called_with(b'\xB5')

    def test_empty_image(self, mock_time):
        transport = ScriptedTransport()
        with self.assertRaises(InvalidParameterError):
            self.uploader(transport).upload(b'')
        self.assertEqual(transport.events, [])


class TestLoadFirmware(unittest.TestCase):
    """Reading the image from disk"""

    def test_load(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, 'firmware.bin')
            with open(path, 'wb') as f:
                f.write(FIRMWARE)
            self.assertEqual(load_firmware(path), FIRMWARE)

    def test_missing(self):
        with self.assertRaises(InvalidParameterError):
            load_firmware('/nonexistent/firmware.bin')

    def test_empty(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / 'firmware.bin'
            path.write_bytes(b'')
            with self.assertRaises(InvalidParameterError):
                load_firmware(path)


if __name__ == "__main__":
    unittest.main()
