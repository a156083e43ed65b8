#!/usr/bin/env python3
"""Example: connect to an S7-200 SMART PLC and read a slice of the V area once."""

import sys

from pys7_vbits import BinaryViewer, BitGrid, format_words
from pys7_vbits.errors import NotConnectedError, PLCConnectionError, ReadError


def main() -> None:
    host = "192.168.1.11"  # change to your PLC IP
    start = 100  # VB100
    length = 4

    try:
        with BinaryViewer() as viewer:
            viewer.connect(host)

            # Raw bytes (length clamped to 1..80)
            data = viewer.read_once(start, length)
            print(f"VB{start}..VB{start + len(data) - 1} = {data.hex()}")

            # Decoded for display: words, bits and which addressing scheme answered
            reading = viewer.read_display(start, length)
            print(f"words ({reading.area.value}): {format_words(reading.words)}")
            for row in BitGrid.from_bits(reading.bits).render(trim=True):
                print(row)
    except PLCConnectionError as e:
        print(f"Connection error: {e}", file=sys.stderr)
        sys.exit(1)
    except (NotConnectedError, ReadError) as e:
        print(f"Read error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
