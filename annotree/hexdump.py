"""
Byte buffer renderings: continuous hex strings and classic dump layouts.

Both dump layouts emit one line per 16 input bytes, each terminated by a newline,
so a buffer of n bytes produces ceil(n / 16) lines and an empty buffer produces "".

    >>> print(hexdump(b"ABCDEFGHIJKLMNOPQ"), end="")
    00000000  41 42 43 44 45 46 47 48  49 4a 4b 4c 4d 4e 4f 50  |ABCDEFGHIJKLMNOP|
    00000010  51                                                |Q|

    >>> print(xxd(b"ABCDEFGHIJKLMNOPQ"), end="")
    00000000: 4142 4344 4546 4748 494a 4b4c 4d4e 4f50  ABCDEFGHIJKLMNOP
    00000010: 51                                       Q
"""

# Standard library -----------------------------------------------------------------------------------------------------
from enum import Enum, unique

# Local ----------------------------------------------------------------------------------------------------------------
from .utils import fmt_type

LINE_WIDTH = 16

# Printable ASCII, space through tilde; everything else renders as "."
PRINTABLE = range(0x20, 0x7F)


# Classes --------------------------------------------------------------------------------------------------------------

@unique
class BytesFormat(str, Enum):
    """
    Byte buffer rendering style:
        - "standard": no text rendering, buffer stays opaque bytes
        - "hexstr": continuous lowercase hex, no separators
        - "hexdump": offset, 16 spaced hex bytes and |ASCII| column, as `hexdump -vC`
        - "xxd": offset, 2-byte hex clusters and ASCII column, as `xxd`
    """
    STANDARD = "standard"
    HEXSTR = "hexstr"
    HEXDUMP = "hexdump"
    XXD = "xxd"


# Methods --------------------------------------------------------------------------------------------------------------

def hexstr(data: bytes | bytearray | memoryview) -> str:
    """Return data as continuous lowercase hex, e.g. b'\\x01\\xab' -> '01ab'."""
    return _as_bytes(data).hex()


def hexdump(data: bytes | bytearray | memoryview) -> str:
    """
    Render data in the canonical `hexdump -vC` layout.

    Each line holds an 8-digit offset, two spaces, 16 hex bytes separated by single
    spaces with one extra space after the 8th, and the |ASCII| column. Short final
    lines are padded so the ASCII column stays aligned. No trailing offset line is emitted.
    """
    data = _as_bytes(data)
    lines = []
    for offset in range(0, len(data), LINE_WIDTH):
        chunk = data[offset:offset + LINE_WIDTH]
        cells = [f"{b:02x} " for b in chunk] + ["   "] * (LINE_WIDTH - len(chunk))
        hex_area = "".join(cells[:8]) + " " + "".join(cells[8:])
        lines.append(f"{offset:08x}  {hex_area} |{_ascii(chunk)}|\n")
    return "".join(lines)


def xxd(data: bytes | bytearray | memoryview) -> str:
    """
    Render data in the default `xxd` layout.

    Each line holds an 8-digit offset and colon, 16 bytes as eight 4-digit clusters
    separated by spaces, two spaces, then the ASCII column.
    """
    data = _as_bytes(data)
    width = LINE_WIDTH // 2 * 5 - 1
    lines = []
    for offset in range(0, len(data), LINE_WIDTH):
        chunk = data[offset:offset + LINE_WIDTH]
        digits = chunk.hex()
        clusters = " ".join(digits[i:i + 4] for i in range(0, len(digits), 4))
        lines.append(f"{offset:08x}: {clusters.ljust(width)}  {_ascii(chunk)}\n")
    return "".join(lines)


def to_string(data: bytes | bytearray | memoryview, fmt: BytesFormat | str) -> str | None:
    """
    Render data in the requested style.

    Returns:
        The rendered text, or None for BytesFormat.STANDARD which keeps the buffer opaque.

    Raises:
        ValueError: If fmt is not a known BytesFormat value.
    """
    fmt = BytesFormat(fmt)
    if fmt is BytesFormat.HEXSTR:
        return hexstr(data)
    if fmt is BytesFormat.HEXDUMP:
        return hexdump(data)
    if fmt is BytesFormat.XXD:
        return xxd(data)
    return None


# Private Methods ------------------------------------------------------------------------------------------------------

def _as_bytes(data: bytes | bytearray | memoryview) -> bytes:
    if isinstance(data, bytes):
        return data
    if isinstance(data, (bytearray, memoryview)):
        return bytes(data)
    raise TypeError(f"bytes-like object expected, but got {fmt_type(data)}")


def _ascii(chunk: bytes) -> str:
    return "".join(chr(b) if b in PRINTABLE else "." for b in chunk)
