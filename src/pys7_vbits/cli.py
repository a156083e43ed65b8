#!/usr/bin/env python3
"""Command-line front end for pys7-vbits using Typer."""

import json
import logging
import threading
from datetime import datetime, timezone
from typing import Optional

import typer
from typing_extensions import Annotated

from . import __version__  # type: ignore
from .errors import InputError, NotConnectedError, PLCConnectionError, ReadError
from .grid import BitGrid, format_bits, format_words
from .transport import S7Transport
from .types import (
    GRID_COLS,
    GRID_ROWS,
    POLL_INTERVAL_S,
    POLL_MAX_BYTES,
    SINGLE_SHOT_MAX_BYTES,
    SessionConfig,
)
from .viewer import BinaryViewer

app = typer.Typer(
    name="s7vbits",
    help="Show the V area of an S7-200 SMART PLC as bits and 16-bit words.",
    no_args_is_help=True,
)

logger = logging.getLogger(__name__)

# ============================================================================
# Shared options and helpers
# ============================================================================

HostOption = Annotated[
    Optional[str],
    typer.Option("--host", "-h", help="PLC hostname or IP address", envvar="S7VBITS_HOST"),
]
StartOption = Annotated[
    str,
    typer.Option("--start", "-s", help="Start byte in the V area (decimal or 0x hex)"),
]
LengthOption = Annotated[
    str,
    typer.Option("--length", "-l", help="Number of bytes to read (decimal or 0x hex)"),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Enable debug logging"),
]
JsonOption = Annotated[
    bool,
    typer.Option("--json", help="Output as JSON"),
]


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbose flag."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if not verbose else "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def require_host(host: Optional[str]) -> str:
    """Return the stripped host or exit with code 2 when it is missing."""
    if not host or not host.strip():
        typer.echo("Error: --host is required for this command", err=True)
        raise typer.Exit(2)
    return host.strip()


def create_viewer(poll_interval_s: float = POLL_INTERVAL_S) -> BinaryViewer:
    """Create a BinaryViewer backed by a python-snap7 transport."""
    return BinaryViewer(transport_factory=S7Transport, poll_interval_s=poll_interval_s)


def parse_int(value: str, field: str) -> int:
    """Parse an integer typed by the user, supporting decimal and 0x hex."""
    v = value.strip()
    try:
        if v.lower().startswith(("0x", "-0x")):
            return int(v, 16)
        return int(v)
    except ValueError:
        raise InputError(field, value) from None


def parse_start(value: str) -> int:
    """Parse the V area start byte; negative addresses are rejected."""
    start = parse_int(value, "start address")
    if start < 0:
        raise InputError("start address", value, f"Start address must be >= 0, got {start}")
    return start


def timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


# ============================================================================
# Commands
# ============================================================================

@app.command()
def info(
    verbose: VerboseOption = False,
    json_output: JsonOption = False,
) -> None:
    """Show package version and the fixed device constants."""
    setup_logging(verbose)

    cfg = SessionConfig()
    info_data = {
        "version": __version__,
        "rack": cfg.rack,
        "slot": cfg.slot,
        "v_area_db": cfg.v_area_db,
        "connect_timeout_s": cfg.connect_timeout,
        "idle_timeout_s": cfg.idle_timeout,
        "poll_interval_s": POLL_INTERVAL_S,
        "single_shot_max_bytes": SINGLE_SHOT_MAX_BYTES,
        "poll_max_bytes": POLL_MAX_BYTES,
        "grid": f"{GRID_ROWS}x{GRID_COLS}",
    }

    if json_output:
        typer.echo(json.dumps(info_data, indent=2))
    else:
        typer.echo(f"pys7-vbits version: {info_data['version']}")
        typer.echo(f"Rack/slot: {cfg.rack}/{cfg.slot}")
        typer.echo(f"V area: DB{cfg.v_area_db} (flat memory fallback)")
        typer.echo(f"Timeouts: connect {cfg.connect_timeout:g}s, idle {cfg.idle_timeout:g}s")
        typer.echo(f"Read limits: single {SINGLE_SHOT_MAX_BYTES} bytes, monitor {POLL_MAX_BYTES} bytes")
        typer.echo(f"Grid: {info_data['grid']}")


@app.command()
def ping(
    host: HostOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Test connectivity by opening and closing an S7 session."""
    setup_logging(verbose)
    host = require_host(host)

    try:
        with create_viewer() as viewer:
            viewer.connect(host)
            typer.echo(f"OK: Connected to {host}")
    except PLCConnectionError as e:
        typer.echo(f"Error: Connection error: {e}", err=True)
        raise typer.Exit(3)
    except Exception as e:
        typer.echo(f"Error: Unexpected error: {e}", err=True)
        if verbose:
            import traceback
            traceback.print_exc()
        raise typer.Exit(4)


@app.command()
def read(
    host: HostOption = None,
    start: StartOption = "100",
    length: LengthOption = "1",
    verbose: VerboseOption = False,
    json_output: JsonOption = False,
    full_grid: Annotated[bool, typer.Option("--full-grid", help="Render all grid rows, including unused ones")] = False,
) -> None:
    """
    Read the V area once and show it as 16-bit words and a 20x32 bit grid.

    LENGTH is clamped to 1..80 bytes (the grid holds 640 bits).
    """
    setup_logging(verbose)

    try:
        start_addr = parse_start(start)
        n_bytes = parse_int(length, "length")
    except InputError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(2)
    host = require_host(host)

    try:
        with create_viewer() as viewer:
            viewer.connect(host)
            reading = viewer.read_display(start_addr, n_bytes)

        if json_output:
            typer.echo(
                json.dumps(
                    {
                        "start": reading.window.start,
                        "count": reading.window.count,
                        "area": reading.area.value,
                        "bytes": reading.data.hex(),
                        "words": list(reading.words),
                        "bits": format_bits(reading.bits),
                    }
                )
            )
        else:
            end = reading.window.start + reading.window.count - 1
            typer.echo(f"V{reading.window.start}..V{end} ({reading.window.count} bytes, {reading.area.value})")
            typer.echo(f"Words: {format_words(reading.words)}")
            grid = BitGrid.from_bits(reading.bits)
            for row in grid.render(trim=not full_grid):
                typer.echo(row)
    except PLCConnectionError as e:
        typer.echo(f"Error: Connection error: {e}", err=True)
        raise typer.Exit(3)
    except (NotConnectedError, ReadError) as e:
        typer.echo(f"Error: Read error: {e}", err=True)
        raise typer.Exit(3)
    except Exception as e:
        typer.echo(f"Error: Unexpected error: {e}", err=True)
        if verbose:
            import traceback
            traceback.print_exc()
        raise typer.Exit(4)


@app.command()
def monitor(
    host: HostOption = None,
    start: StartOption = "100",
    length: LengthOption = "1",
    verbose: VerboseOption = False,
    json_output: JsonOption = False,
    interval: Annotated[float, typer.Option("--interval", "-i", help="Polling interval in seconds")] = POLL_INTERVAL_S,
    count: Annotated[int, typer.Option("--count", "-n", help="Stop after N updates (0 = until Ctrl+C)")] = 0,
) -> None:
    """
    Poll up to 4 bytes of the V area and print the bits on every update.

    Read failures are logged and polling continues.
    Press Ctrl+C to stop gracefully.
    """
    setup_logging(verbose)

    if interval <= 0:
        typer.echo(f"Error: Interval must be positive, got {interval}", err=True)
        raise typer.Exit(2)
    if count < 0:
        typer.echo(f"Error: Count must be >= 0, got {count}", err=True)
        raise typer.Exit(2)
    try:
        start_addr = parse_start(start)
        n_bytes = parse_int(length, "length")
    except InputError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(2)
    host = require_host(host)

    done = threading.Event()
    updates = 0

    try:
        with create_viewer(poll_interval_s=interval) as viewer:

            def on_bits(bits: list[bool]) -> None:
                nonlocal updates
                if done.is_set():
                    return
                if json_output:
                    typer.echo(json.dumps({"timestamp": timestamp(), "start": start_addr, "bits": format_bits(bits)}))
                else:
                    typer.echo(f"{timestamp()} V{start_addr} {format_bits(bits)}")
                updates += 1
                if count and updates >= count:
                    # Set done first so the main loop never sees a stopped poller without it.
                    done.set()
                    viewer.stop_monitoring()

            viewer.connect(host)
            viewer.start_monitoring(start_addr, n_bytes, on_bits)
            while viewer.is_monitoring and not done.wait(0.2):
                pass
            aborted = not done.is_set()
    except PLCConnectionError as e:
        typer.echo(f"Error: Connection error: {e}", err=True)
        raise typer.Exit(3)
    except KeyboardInterrupt:
        typer.echo("\nStopped by user", err=True)
        raise typer.Exit(0)
    except Exception as e:
        typer.echo(f"Error: Unexpected error: {e}", err=True)
        if verbose:
            import traceback
            traceback.print_exc()
        raise typer.Exit(4)

    if aborted:
        typer.echo("Error: Monitoring stopped unexpectedly", err=True)
        raise typer.Exit(4)


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        typer.echo(f"pys7-vbits {__version__}")
        raise typer.Exit(0)


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option("--version", callback=version_callback, is_eager=True, help="Show version and exit"),
    ] = None,
) -> None:
    """s7vbits - S7-200 SMART V area bit viewer."""
    pass


if __name__ == "__main__":
    app()
