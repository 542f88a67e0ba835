"""
Tests for frame encoding and decoding
"""

import unittest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from m100_reader.constants import Command
from m100_reader.exceptions import FramingError, InvalidParameterError, TimeoutError
from m100_reader.frame import checksum, decode_frame, make_frame, read_frame
from tests.fakes import BytesReader, response_frame


class TestMakeFrame(unittest.TestCase):
    """Test cases for make_frame"""

    def test_query_frame_bytes(self):
        """Query frame matches the documented wire bytes"""
        frame = make_frame(Command.QUERY, bytes([0x00, 0x00]))
        self.assertEqual(frame, bytes.fromhex("BB 00 22 00 02 00 00 24 7E"))

    def test_length_is_big_endian(self):
        """Length field is the big-endian payload size"""
        frame = make_frame(Command.WRITE_DATA, bytes(300))
        self.assertEqual(frame[3:5], b'\x01\x2C')
        self.assertEqual(len(frame), 300 + 7)

    def test_checksum_excludes_head(self):
        """Checksum covers type through payload only"""
        frame = make_frame(Command.SET_HFSS, b'\xFF')
        self.assertEqual(frame[-2], (0x00 + 0xAD + 0x00 + 0x01 + 0xFF) & 0xFF)
        self.assertEqual(frame[-2], checksum(frame[1:-2]))

    def test_accepts_numeric_opcode(self):
        """A known numeric opcode encodes like the enum member"""
        self.assertEqual(make_frame(0x22, b'\x00\x00'), make_frame(Command.QUERY, b'\x00\x00'))

    def test_deterministic(self):
        """Same input gives byte-identical frames"""
        payload = bytes.fromhex("3030303030303030030000000004")
        self.assertEqual(make_frame(Command.READ_DATA, payload),
                         make_frame(Command.READ_DATA, payload))

    def test_payload_change_changes_checksum(self):
        """Changing one payload byte changes the checksum"""
        original = make_frame(Command.READ_DATA, bytes([0x01, 0x02, 0x03]))
        changed = make_frame(Command.READ_DATA, bytes([0x01, 0x05, 0x03]))
        self.assertNotEqual(original[-2], changed[-2])

    def test_checksum_is_a_weak_check(self):
        """Reordered payload bytes share a checksum"""
        self.assertEqual(checksum(bytes([0x01, 0x02])), checksum(bytes([0x02, 0x01])))

    def test_unknown_command_rejected(self):
        """Unknown opcodes are rejected"""
        with self.assertRaises(InvalidParameterError):
            make_frame(0x99, b'')

    def test_oversized_payload_rejected(self):
        """Payload must fit the 16-bit length field"""
        with self.assertRaises(InvalidParameterError):
            make_frame(Command.WRITE_DATA, bytes(0x10000))


class TestReadFrame(unittest.TestCase):
    """Test cases for read_frame / decode_frame"""

    def test_roundtrip(self):
        """Decoding an encoded frame gives back the payload"""
        for command, payload in [
            (Command.GET_VERSION, b'\x00'),
            (Command.IDLE, b'\x00\x01\x00'),
            (Command.WRITE_DATA, bytes(range(200))),
            (Command.QUERY, b''),
        ]:
            reader = BytesReader(make_frame(command, payload))
            self.assertEqual(decode_frame(reader.read_exact), payload)

    def test_staged_reads(self):
        """Header, payload and trailer are read separately"""
        reader = BytesReader(response_frame(0x39, b'\xDE\xAD\xBE\xEF'))
        frame = read_frame(reader.read_exact)
        self.assertEqual(reader.reads, [5, 4, 2])
        self.assertEqual(frame.frame_type, 0x01)
        self.assertEqual(frame.command, 0x39)
        self.assertEqual(frame.payload, b'\xDE\xAD\xBE\xEF')

    def test_corrupted_tail_rejected(self):
        """A frame whose last byte is not 0x7E fails to decode"""
        raw = bytearray(response_frame(0x22, b'\x00\x00'))
        for bad in (0x00, 0x7F, 0xFF):
            raw[-1] = bad
            with self.assertRaises(FramingError):
                decode_frame(BytesReader(bytes(raw)).read_exact)

    def test_bad_head_rejected(self):
        """A stream that does not start with 0xBB fails before reading a payload"""
        raw = bytearray(response_frame(0x39, b'\x01\x02'))
        raw[0] = 0x7E
        reader = BytesReader(bytes(raw))
        with self.assertRaises(FramingError):
            decode_frame(reader.read_exact)
        self.assertEqual(reader.reads, [5])

    def test_checksum_not_verified_by_default(self):
        """A wrong checksum is accepted unless verification is requested"""
        raw = bytearray(response_frame(0x03, b'\x00V1'))
        raw[-2] ^= 0xFF
        self.assertEqual(decode_frame(BytesReader(bytes(raw)).read_exact), b'\x00V1')
        with self.assertRaises(FramingError):
            decode_frame(BytesReader(bytes(raw)).read_exact, verify_checksum=True)

    def test_length_larger_than_buffer(self):
        """A length that does not fit the receive buffer is a framing error"""
        reader = BytesReader(response_frame(0x39, bytes(100)))
        with self.assertRaises(FramingError):
            decode_frame(reader.read_exact, bytearray(64))
        self.assertEqual(reader.reads, [5])

    def test_buffer_reuse_does_not_alias_payload(self):
        """Payloads stay intact after the buffer is reused"""
        buffer = bytearray(1024)
        data = response_frame(0x39, b'\x11\x22') + response_frame(0x39, b'\x33\x44')
        reader = BytesReader(data)
        first = decode_frame(reader.read_exact, buffer)
        second = decode_frame(reader.read_exact, buffer)
        self.assertEqual(first, b'\x11\x22')
        self.assertEqual(second, b'\x33\x44')
        self.assertEqual(len(buffer), 1024)

    def test_short_read_propagates_timeout(self):
        """A truncated frame surfaces the transport timeout"""
        raw = response_frame(0x39, b'\x01\x02\x03\x04')
        with self.assertRaises(TimeoutError):
            decode_frame(BytesReader(raw[:7]).read_exact)

    def test_frame_repr(self):
        """Frame repr shows the command and payload in hex"""
        frame = read_frame(BytesReader(response_frame(0x03, b'\x00\xAB')).read_exact)
        self.assertIn("command=0x03", repr(frame))
        self.assertIn("00 AB", repr(frame))


if __name__ == "__main__":
    unittest.main()
