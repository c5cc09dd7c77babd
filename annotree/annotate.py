"""
Annotation hook contract.

A value opts into custom formatting and comments by subclassing Annotate. For every field
or tagged-union case the engine is about to produce, it asks the value being serialized
for a Format directive and, separately, for a comment. Values that do not subclass Annotate
are serialized exactly as if every lookup returned None.

Example:
    >>> @dataclass
    ... class Register(Annotate):
    ...     addr: int
    ...     name: str
    ...
    ...     def format(self, variant, field):
    ...         return Format.HEX if field == Name("addr") else None
    ...
    ...     def comment(self, variant, field):
    ...         return f"at {self.addr:#x}" if field == Name("name") else None
"""

# Standard library -----------------------------------------------------------------------------------------------------
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum, unique
from typing import Any, Final

# Local ----------------------------------------------------------------------------------------------------------------
from .serialize import Serializer, serialize_structure, try_specialize


# Classes --------------------------------------------------------------------------------------------------------------

@unique
class Format(str, Enum):
    """
    Formatting directive attached to a field or tagged-union case:
        - "block": render strings in block/multiline style
        - "bin", "dec", "hex", "oct": integer base
        - "compact": collapse the annotated aggregate to one line
        - "hexstr", "hexdump", "xxd": byte buffer rendering
    """
    BLOCK = "block"
    BINARY = "bin"
    DECIMAL = "dec"
    HEX = "hex"
    OCTAL = "oct"
    COMPACT = "compact"
    HEXSTR = "hexstr"
    HEXDUMP = "hexdump"
    XXD = "xxd"


class MemberId:
    """Target of an annotation lookup: Name, Index or the VARIANT sentinel."""
    __slots__ = ()


@dataclass(frozen=True, slots=True)
class Name(MemberId):
    """Named field of a struct or struct-shaped case."""
    name: str


@dataclass(frozen=True, slots=True)
class Index(MemberId):
    """Zero-based position of a tuple-like field."""
    index: int


class VariantType(MemberId):
    """
    Sentinel type for VARIANT: the tag of a tagged-union case itself,
    as opposed to one of its payload fields.
    """
    __slots__ = ()
    _instance: "VariantType | None" = None

    def __new__(cls) -> "VariantType":
        """Ensures singleton behavior."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "<VARIANT>"

    def __reduce__(self) -> tuple:
        """Ensure pickling returns the singleton instance."""
        return (self.__class__, ())


VARIANT: Final = VariantType()


class Annotate(ABC):
    """
    Capability of a value to annotate its own fields and tagged-union cases.

    Both lookups receive the case name being produced (None outside a tagged union)
    and the member being produced. They are called during traversal, so they may
    derive their answer from the value's current state.

    Subclasses serialize structurally like any other dataclass, TaggedUnion case or
    namedtuple; when the destination is the annotated engine they are additionally
    registered as the active hook for their own fields.
    """

    @abstractmethod
    def format(self, variant: str | None, field: MemberId) -> Format | None:
        """Return the directive for field, or None to keep the enclosing context."""

    @abstractmethod
    def comment(self, variant: str | None, field: MemberId) -> str | None:
        """Return the comment text for field, or None for no comment."""

    def __serialize__(self, serializer: Serializer) -> Any:
        return try_specialize(
            serializer,
            lambda annotated: annotated.serialize_annotated(self),
            lambda plain: serialize_structure(self, plain),
        )


# Methods --------------------------------------------------------------------------------------------------------------

def has_annotations(value: Any) -> bool:
    """Return True if value implements the hook contract."""
    return isinstance(value, Annotate)
