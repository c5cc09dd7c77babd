"""
Annotated document tree.

A Document is the intermediate, renderer-neutral form of one serialized value. Nodes are
immutable frozen dataclasses compared structurally; aggregates hold tuples of child nodes.
Nothing is validated at construction time: the layout rules below are caller contracts.

Layout rules:
    - A Fragment holding a Comment places the Comment first.
    - A Mapping holds Fragments: [key, value], [Comment, key, value], or, for tagged-union
      cases, [Comment?, case-name, payload] as its single entry.
    - A Compact never directly wraps another Compact.

Example:
    >>> entry(string("a"), Int(5, Base.HEX))
    Fragment(nodes=(String(value='a', ...), Int(value=5, base=<Base.HEX: 'hex'>)))
"""

# Standard library -----------------------------------------------------------------------------------------------------
import copy
from dataclasses import dataclass
from enum import Enum, unique
from typing import Any, ClassVar, Iterable

# Local ----------------------------------------------------------------------------------------------------------------
from .errors import UnsupportedDocumentError
from .numeric import Base, split_sign
from .serialize import Serializer, try_specialize
from .utils import class_name


# Classes --------------------------------------------------------------------------------------------------------------

@unique
class StrFormat(str, Enum):
    """
    String rendering style:
        - "standard": quoted single-line string
        - "multiline": block/literal string
    """
    STANDARD = "standard"
    MULTILINE = "multiline"


@unique
class CommentFormat(str, Enum):
    """
    Comment rendering style:
        - "standard": line comment in the target format's syntax
        - "block": block comment where the target format has one, else line comments
    """
    STANDARD = "standard"
    BLOCK = "block"


class Document:
    """
    Base class of all document nodes.

    Subclasses are frozen dataclasses. Any Document can be embedded inside a value that is
    being serialized: the annotated engine reuses it as-is, every other serializer refuses it.
    """
    __slots__ = ()

    kind: ClassVar[str] = "document"

    def clone(self) -> "Document":
        """Return a deep, independent copy of this tree."""
        return copy.deepcopy(self)

    def __serialize__(self, serializer: Serializer) -> Any:
        """Pass this tree through unchanged when the destination is the annotated engine."""
        return try_specialize(serializer, lambda _: self.clone(), self._refuse)

    def _refuse(self, serializer: Serializer) -> Any:
        raise UnsupportedDocumentError(
            f"serializing {class_name(self)} document nodes is only supported by the annotated "
            f"engine, but the destination is {class_name(serializer)}")


@dataclass(frozen=True)
class Null(Document):
    kind: ClassVar[str] = "null"


@dataclass(frozen=True)
class Boolean(Document):
    value: bool
    kind: ClassVar[str] = "boolean"


@dataclass(frozen=True)
class Float(Document):
    value: float
    kind: ClassVar[str] = "float"


@dataclass(frozen=True)
class String(Document):
    value: str
    format: StrFormat = StrFormat.STANDARD
    kind: ClassVar[str] = "string"


@dataclass(frozen=True)
class Bytes(Document):
    """Opaque byte buffer, used when no byte rendering style applies."""
    value: bytes
    kind: ClassVar[str] = "bytes"


@dataclass(frozen=True)
class Int(Document):
    """
    Integer with its requested rendering base.

    Python ints carry their own sign and unbounded magnitude, so every source width
    (8 to 128 bits, signed or unsigned) is represented exactly.
    """
    value: int
    base: Base = Base.DEC
    kind: ClassVar[str] = "int"

    @property
    def is_negative(self) -> bool:
        return split_sign(self.value)[0]

    @property
    def magnitude(self) -> int:
        return split_sign(self.value)[1]


@dataclass(frozen=True)
class Comment(Document):
    value: str
    format: CommentFormat = CommentFormat.STANDARD
    kind: ClassVar[str] = "comment"


@dataclass(frozen=True)
class Sequence(Document):
    items: tuple[Document, ...] = ()
    kind: ClassVar[str] = "sequence"


@dataclass(frozen=True)
class Mapping(Document):
    """Ordered entries; order is meaningful and duplicate keys are kept."""
    entries: tuple["Fragment", ...] = ()
    kind: ClassVar[str] = "mapping"


@dataclass(frozen=True)
class Fragment(Document):
    """Concatenation of sibling nodes that does not add a tree level."""
    nodes: tuple[Document, ...] = ()
    kind: ClassVar[str] = "fragment"


@dataclass(frozen=True)
class Compact(Document):
    """Rendering hint: collapse the wrapped subtree to a single line."""
    node: Document
    kind: ClassVar[str] = "compact"


# Methods --------------------------------------------------------------------------------------------------------------

def string(text: str, fmt: StrFormat = StrFormat.STANDARD) -> String:
    """Build a String node; used for field names, case names and str values."""
    return String(text, fmt)


def comment(text: str, fmt: CommentFormat = CommentFormat.STANDARD) -> Comment:
    return Comment(text, fmt)


def sequence(items: Iterable[Document] = ()) -> Sequence:
    return Sequence(tuple(items))


def mapping(entries: Iterable[Fragment] = ()) -> Mapping:
    return Mapping(tuple(entries))


def fragment(*nodes: Document | None) -> Fragment:
    """Build a Fragment, skipping None so an optional comment can be passed positionally."""
    return Fragment(tuple(n for n in nodes if n is not None))


def entry(key: Document, value: Document, note: Comment | None = None) -> Fragment:
    """Build a mapping entry [note?, key, value] with the comment first."""
    return fragment(note, key, value)


def compact(node: Document) -> Compact:
    """Wrap node in Compact unless it already is one."""
    if isinstance(node, Compact):
        return node
    return Compact(node)
