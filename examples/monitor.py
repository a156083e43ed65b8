#!/usr/bin/env python3
"""Example: watch up to 4 V area bytes every second; Ctrl+C to stop."""

import sys
import time

from pys7_vbits import BinaryViewer, format_bits
from pys7_vbits.errors import PLCConnectionError


def main() -> None:
    host = "192.168.1.11"  # change to your PLC IP
    start = 100
    length = 2

    def show(bits: list[bool]) -> None:
        print(f"VB{start}: {format_bits(bits)}")

    try:
        with BinaryViewer() as viewer:
            viewer.connect(host)
            print(f"Monitoring VB{start} ({length} bytes), Ctrl+C to stop...")
            viewer.start_monitoring(start, length, show)
            while True:
                time.sleep(0.5)
    except KeyboardInterrupt:
        print("\nStopped.")
    except PLCConnectionError as e:
        print(f"Connection error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
