"""Convert raw V area bytes into 16-bit words and MSB-first bit sequences."""

from typing import Iterable


def to_words(data: bytes) -> list[int]:
    """
    Group bytes into big-endian unsigned 16-bit values.

    An odd trailing byte becomes a value of its own (high byte zero), so
    b"\\x01\\x02\\x03" -> [258, 3].
    """
    words: list[int] = []
    for i in range(0, len(data), 2):
        if i + 1 < len(data):
            words.append(data[i] << 8 | data[i + 1])
        else:
            words.append(data[i])
    return words


def to_bits(data: bytes) -> list[bool]:
    """Expand each byte into 8 booleans, most significant bit first."""
    return [(byte >> (7 - j)) & 1 == 1 for byte in data for j in range(8)]


def bits_to_bytes(bits: Iterable[bool]) -> bytes:
    """Pack booleans back into bytes, MSB first; a partial last byte is zero-padded."""
    out = bytearray()
    acc = 0
    n = 0
    for bit in bits:
        acc = (acc << 1) | (1 if bit else 0)
        n += 1
        if n == 8:
            out.append(acc)
            acc = 0
            n = 0
    if n:
        out.append(acc << (8 - n))
    return bytes(out)
