#!/usr/bin/env python3
"""
Command line tool to read and write tag memory through an M100 module
"""

import argparse
import logging
import sys
import time

from .config import get_config
from .constants import DEFAULT_PASSWORD, MemoryBank
from .exceptions import ConnectionError, InvalidParameterError, ReaderError, VerificationError
from .firmware import load_firmware
from .reader import M100Reader
from .transport import SerialTransport, get_available_ports

logger = logging.getLogger(__name__)

BANKS = {
    'epc': MemoryBank.EPC,
    'tid': MemoryBank.TID,
    'user': MemoryBank.USER,
}


def build_parser(config) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='m100', description='M100 UHF RFID reader tool')
    parser.add_argument('-p', '--port', default=config.DEFAULT_PORT,
                        help='Serial port (default: %(default)s)')
    parser.add_argument('--firmware', default=config.FIRMWARE_PATH,
                        help='Firmware image uploaded if the module does not answer')
    parser.add_argument('--config', choices=['development', 'production', 'testing'],
                        help='Configuration environment')
    parser.add_argument('--debug', action='store_true', help='Enable debug logging')

    subparsers = parser.add_subparsers(dest='action', required=True)
    read = subparsers.add_parser('read', help='Read the memory from a given memory bank')
    read.add_argument('bank', choices=sorted(BANKS))
    write = subparsers.add_parser('write', help='Write data to a given memory bank')
    write.add_argument('bank', choices=sorted(BANKS))
    write.add_argument('value', help='The data to write to the memory bank as a hex string')
    subparsers.add_parser('identify', help='Print the module version and exit')
    return parser


def wait_for_tag(reader: M100Reader, interval: float):
    """Poll with Query until a tag answers"""
    while True:
        try:
            tag = reader.query()
        except ReaderError as e:
            logger.debug(f"Query failed: {e}")
            tag = None
        if tag is not None:
            return tag
        time.sleep(interval)


def read_loop(reader: M100Reader, bank: MemoryBank, interval: float) -> int:
    while True:
        tag = wait_for_tag(reader, interval)
        print(f"Tag found! EPC: {tag.epc}")
        if bank == MemoryBank.EPC:
            return 0
        try:
            data = reader.read_bank(DEFAULT_PASSWORD, bank)
        except ReaderError as e:
            print(f"Error occurred: {e}.\nTrying again...", file=sys.stderr)
            continue
        print(f"\nData received from tag: {data.hex().upper()}")
        return 0


def write_loop(reader: M100Reader, bank: MemoryBank, data: bytes, interval: float) -> int:
    while True:
        tag = wait_for_tag(reader, interval)
        print(f"Tag found! EPC: {tag.epc}")
        print("Writing and verifying data, please keep the tag on the reader...")
        try:
            reader.write_and_verify(DEFAULT_PASSWORD, bank, data)
        except VerificationError as e:
            print(f"{e}. Trying again...", file=sys.stderr)
            continue
        except ReaderError as e:
            print(f"Error occurred during writing: {e}. Retrying...", file=sys.stderr)
            continue
        print("\nSuccessfully wrote data!")
        return 0


def main(argv=None) -> int:
    bootstrap = argparse.ArgumentParser(add_help=False)
    bootstrap.add_argument('--config')
    known, _ = bootstrap.parse_known_args(argv)
    config = get_config(known.config)

    args = build_parser(config).parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug or config.DEBUG else getattr(logging, config.LOG_LEVEL),
        format=config.LOG_FORMAT
    )

    data = None
    if args.action == 'write':
        try:
            data = bytes.fromhex(args.value)
        except ValueError as e:
            print(f"Invalid hex string '{args.value}': {e}", file=sys.stderr)
            return 1
        if not data:
            print("Nothing to write", file=sys.stderr)
            return 1

    firmware = None
    if args.firmware:
        try:
            firmware = load_firmware(args.firmware)
        except InvalidParameterError as e:
            print(e, file=sys.stderr)
            return 1

    transport = SerialTransport(args.port, config.DEFAULT_BAUDRATE, config.READ_TIMEOUT)
    try:
        transport.open()
    except ConnectionError as e:
        print(f"Failed to open port: {e}", file=sys.stderr)
        print(f"Available ports: {get_available_ports()}", file=sys.stderr)
        return 1

    reader = M100Reader(transport, verify_checksum=config.VERIFY_CHECKSUM)
    try:
        try:
            version = reader.bring_up(firmware, delay=config.BRING_UP_DELAY,
                                      baud_switch_delay=config.BAUD_SWITCH_DELAY)
        except ReaderError as e:
            print(f"Could not identify the device: {e}", file=sys.stderr)
            return 1
        print(f"Connected to '{version}'.")

        if args.action == 'identify':
            return 0

        print("Waiting for a tag...")
        bank = BANKS[args.bank]
        if args.action == 'read':
            return read_loop(reader, bank, config.POLL_INTERVAL)
        return write_loop(reader, bank, data, config.POLL_INTERVAL)
    except KeyboardInterrupt:
        print("\nStopping...")
        return 130
    finally:
        reader.close()


if __name__ == '__main__':
    sys.exit(main())
