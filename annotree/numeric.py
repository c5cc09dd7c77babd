"""
Integer bases for annotated documents.

The engine never renders integers to text itself: an Int node carries the value
and the Base requested by the enclosing field. format_int() is provided for
downstream renderers that need the conventional literal spelling.
"""

# Standard library -----------------------------------------------------------------------------------------------------
from enum import Enum, unique

# Local ----------------------------------------------------------------------------------------------------------------
from .utils import fmt_type


# Classes --------------------------------------------------------------------------------------------------------------

@unique
class Base(str, Enum):
    """
    Integer rendering base:
        - "bin": binary, 0b prefix
        - "oct": octal, 0o prefix
        - "dec": decimal, no prefix
        - "hex": hexadecimal, 0x prefix
    """
    BIN = "bin"
    OCT = "oct"
    DEC = "dec"
    HEX = "hex"

    @property
    def radix(self) -> int:
        return _RADIX[self]

    @property
    def prefix(self) -> str:
        return _PREFIX[self]


_RADIX = {Base.BIN: 2, Base.OCT: 8, Base.DEC: 10, Base.HEX: 16}
_PREFIX = {Base.BIN: "0b", Base.OCT: "0o", Base.DEC: "", Base.HEX: "0x"}
_SPEC = {Base.BIN: "b", Base.OCT: "o", Base.DEC: "d", Base.HEX: "x"}


# Methods --------------------------------------------------------------------------------------------------------------

def check_int(value: object) -> int:
    """
    Return value if it is a plain integer.

    bool is rejected even though it subclasses int: booleans have their own document node.

    Raises:
        TypeError: If value is not an int, or is a bool.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"integer value expected, but got {fmt_type(value)}")
    return int(value)


def check_base(base: object) -> Base:
    """Return base coerced to Base; accepts Base members and their string values."""
    if isinstance(base, Base):
        return base
    if isinstance(base, str):
        try:
            return Base(base)
        except ValueError:
            valid = ", ".join(f"'{b.value}'" for b in Base)
            raise ValueError(f"unknown integer base '{base}'. Expected: {valid}") from None
    raise TypeError(f"base must be a Base or str, but got {fmt_type(base)}")


def split_sign(value: int) -> tuple[bool, int]:
    """
    Split an integer into (negative, magnitude).

    Examples:
        >>> split_sign(-31)
        (True, 31)
        >>> split_sign(0)
        (False, 0)
    """
    value = check_int(value)
    return value < 0, abs(value)


def format_int(value: int, base: Base | str = Base.DEC) -> str:
    """
    Spell an integer as a literal in the given base, sign first.

    Examples:
        >>> format_int(31, Base.HEX)
        '0x1f'
        >>> format_int(-31, "oct")
        '-0o37'
        >>> format_int(31, Base.BIN)
        '0b11111'
    """
    base = check_base(base)
    negative, magnitude = split_sign(value)
    digits = format(magnitude, _SPEC[base])
    return f"{'-' if negative else ''}{base.prefix}{digits}"
