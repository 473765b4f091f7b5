"""
Hex/word codec for VM stack and memory values.

Tracer programs running inside the node hand back stack words as unpadded
hex strings and byte buffers (memory, contract address, caller) either as
hex strings, as lists, or as objects keyed by the byte index. Everything here
normalizes those shapes into canonical lowercase hex.
"""

from collections.abc import Mapping
from typing import Any, Dict, Iterable, Union

from eth_utils import remove_0x_prefix

WORD_SIZE = 32
ADDRESS_SIZE = 20

Word = Union[int, str, bytes]


def byte_to_hex(value: int) -> str:
    """Two lowercase hex digits for a single byte."""
    if not 0 <= value <= 0xFF:
        raise ValueError(f"Byte out of range: {value}")
    return f"{value:02x}"


def bytes_to_hex(data: Iterable[int]) -> str:
    return "0x" + "".join(byte_to_hex(int(b)) for b in data)


def bytes_from_sparse_map(buffer: Union[Dict[Any, Any], Iterable[int], str, bytes]) -> bytes:
    """
    Convert an index-keyed byte mapping into an ordered byte string.

    Keys are sorted by their numeric value, so ``{"10": 1, "2": 0}`` puts
    index 2 before index 10. Lists and hex strings pass straight through.
    """
    if isinstance(buffer, (bytes, bytearray)):
        return bytes(buffer)
    if isinstance(buffer, str):
        hex_str = remove_0x_prefix(buffer)
        if len(hex_str) % 2:
            hex_str = "0" + hex_str
        return bytes.fromhex(hex_str)
    if isinstance(buffer, Mapping):
        ordered = sorted(buffer.items(), key=lambda item: int(item[0]))
        return bytes(int(value) for _, value in ordered)
    return bytes(int(value) for value in buffer)


def word_to_int(word: Word) -> int:
    if isinstance(word, int):
        value = word
    elif isinstance(word, (bytes, bytearray)):
        value = int.from_bytes(word, "big")
    else:
        hex_str = remove_0x_prefix(str(word).strip())
        value = int(hex_str, 16) if hex_str else 0
    if value < 0 or value >= 1 << (8 * WORD_SIZE):
        raise ValueError(f"Word out of range: {word!r}")
    return value


def word_to_hex(word: Word) -> str:
    """Canonical form of a 32-byte word: ``0x`` + 64 lowercase hex digits."""
    return "0x" + format(word_to_int(word), "064x")


def hex_to_word(hex_str: str) -> bytes:
    """Inverse of :func:`word_to_hex`: the 32 big-endian bytes of a word."""
    return word_to_int(hex_str).to_bytes(WORD_SIZE, "big")


def word_to_address(word: Word) -> str:
    """Lower 20 bytes of a word as a lowercase ``0x`` address."""
    return "0x" + word_to_hex(word)[-2 * ADDRESS_SIZE:]


def normalize_address(value: Union[str, Dict[Any, Any], Iterable[int], bytes]) -> str:
    """Lowercase ``0x`` address from a hex string or a (sparse) byte buffer."""
    raw = bytes_from_sparse_map(value)
    if len(raw) > ADDRESS_SIZE:
        raw = raw[-ADDRESS_SIZE:]
    return "0x" + raw.rjust(ADDRESS_SIZE, b"\x00").hex()


def hex_to_int(value: Any, default: int = 0) -> int:
    """Parse a ``0x`` quantity as returned by the call tracer (gas, value)."""
    if value is None:
        return default
    if isinstance(value, int):
        return value
    try:
        return int(str(value), 16)
    except ValueError:
        return default
