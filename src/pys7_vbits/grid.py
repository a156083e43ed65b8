"""Presentation helpers: fixed 20x32 bit grid and text formatting of words and bits."""

from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from .types import GRID_COLS, GRID_ROWS


class CellState(str, Enum):
    """Visual state of one grid cell."""

    ON = "on"
    OFF = "off"
    UNUSED = "unused"


_DEFAULT_GLYPHS = {
    CellState.ON: "#",
    CellState.OFF: ".",
    CellState.UNUSED: " ",
}


def cell_position(bit_index: int, cols: int = GRID_COLS) -> tuple[int, int]:
    """Map a bit index to (row, col) in a grid `cols` wide."""
    if bit_index < 0:
        raise ValueError(f"bit_index must be >= 0, got {bit_index}")
    return bit_index // cols, bit_index % cols


@dataclass(frozen=True)
class BitGrid:
    """Row-major grid of cell states; cells past the decoded bits are UNUSED."""

    rows: int
    cols: int
    cells: tuple[tuple[CellState, ...], ...]

    @classmethod
    def from_bits(cls, bits: Sequence[bool], rows: int = GRID_ROWS, cols: int = GRID_COLS) -> "BitGrid":
        capacity = rows * cols
        flat = [CellState.UNUSED] * capacity
        for i, bit in enumerate(bits[:capacity]):
            flat[i] = CellState.ON if bit else CellState.OFF
        cells = tuple(tuple(flat[r * cols:(r + 1) * cols]) for r in range(rows))
        return cls(rows=rows, cols=cols, cells=cells)

    def cell(self, row: int, col: int) -> CellState:
        return self.cells[row][col]

    def used_rows(self) -> int:
        """Number of leading rows containing at least one decoded bit."""
        n = 0
        for i, row in enumerate(self.cells):
            if any(c != CellState.UNUSED for c in row):
                n = i + 1
        return n

    def render(self, glyphs: dict[CellState, str] | None = None, trim: bool = False) -> list[str]:
        """Render as text rows, one glyph per cell; trim drops trailing all-unused rows."""
        g = glyphs or _DEFAULT_GLYPHS
        rows = self.cells[: self.used_rows()] if trim else self.cells
        return ["".join(g[c] for c in row) for row in rows]


def format_words(words: Sequence[int]) -> str:
    """Comma-separated decimal words, e.g. "258, 3"."""
    return ", ".join(str(w) for w in words)


def format_bits(bits: Sequence[bool]) -> str:
    """Bits as 0/1 grouped per byte, e.g. "10110000 00000001"."""
    chars = "".join("1" if b else "0" for b in bits)
    return " ".join(chars[i:i + 8] for i in range(0, len(chars), 8))
