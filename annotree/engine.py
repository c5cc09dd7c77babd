"""
Annotated serialization engine.

AnnotatedSerializer builds a Document tree from any serializable value. At every struct
field, tuple field and tagged-union case it consults the hook of the value currently being
serialized (see annotree.annotate) for a Format directive and a comment, and threads the
directive into the field's subtree as a copied traversal context.

Traversal context:
    base, str_format, bytes_format and compact are fields of the frozen serializer itself.
    A directive produces a modified copy for the duration of one field; the parent keeps
    its own context, so directives only ever override and never reset to defaults.

Active hook:
    The hook lives in a ContextVar, so concurrent traversals on other threads or asyncio
    tasks each see their own slot. with_hook() installs a hook and restores the previous
    one on every exit path. A value implementing Annotate installs itself while its own
    fields are serialized; each field lookup reads the hook and clears the slot while
    descending, so nested plain values never inherit their parent's annotations.

Example:
    >>> to_document({"a": 31}, base=Base.HEX)
    Mapping(entries=(Fragment(nodes=(String(value='a', ...), Int(value=31, base=<Base.HEX: 'hex'>))),))
"""

# Standard library -----------------------------------------------------------------------------------------------------
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, replace
from typing import Any, Callable, Iterator, TypeVar

# Local ----------------------------------------------------------------------------------------------------------------
from . import hexdump
from .annotate import VARIANT, Annotate, Format, Index, MemberId, Name
from .document import (Boolean, Bytes, Comment, Document, Float, Int, Null, StrFormat,
                       compact, comment, entry, fragment, mapping, sequence, string)
from .errors import MapSequenceError
from .hexdump import BytesFormat
from .numeric import Base, check_base, check_int
from .serialize import (SerializeMap, SerializeSeq, SerializeStruct, SerializeTupleStruct, Serializer,
                        serialize, serialize_structure)
from .utils import fmt_type, fmt_value

T = TypeVar("T")

_ACTIVE_HOOK: ContextVar[Annotate | None] = ContextVar("annotree_active_hook", default=None)

_BASES = {
    Format.BINARY: Base.BIN,
    Format.DECIMAL: Base.DEC,
    Format.HEX: Base.HEX,
    Format.OCTAL: Base.OCT,
}

_BYTES_FORMATS = {
    Format.HEXSTR: BytesFormat.HEXSTR,
    Format.HEXDUMP: BytesFormat.HEXDUMP,
    Format.XXD: BytesFormat.XXD,
}


# Classes --------------------------------------------------------------------------------------------------------------

@dataclass(frozen=True)
class AnnotatedSerializer(Serializer):
    """
    Serializer producing annotated Document trees.

    Attributes:
        base: Base of Int nodes produced for integers.
        str_format: Style of String nodes produced for str values.
        bytes_format: Rendering of byte buffers; STANDARD keeps them as opaque Bytes nodes.
        compact: Wrap the payload of the next tagged-union case in a Compact node.
    """
    base: Base = Base.DEC
    str_format: StrFormat = StrFormat.STANDARD
    bytes_format: BytesFormat = BytesFormat.STANDARD
    compact: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "base", check_base(self.base))
        object.__setattr__(self, "str_format", StrFormat(self.str_format))
        object.__setattr__(self, "bytes_format", BytesFormat(self.bytes_format))
        if not isinstance(self.compact, bool):
            raise TypeError(f"compact must be a bool, but got {fmt_type(self.compact)}")

    # Context ------------------------------------------

    def as_annotated(self) -> "AnnotatedSerializer":
        return self

    def with_base(self, base: Base) -> "AnnotatedSerializer":
        return replace(self, base=base)

    def with_str_format(self, fmt: StrFormat) -> "AnnotatedSerializer":
        return replace(self, str_format=fmt)

    def with_bytes_format(self, fmt: BytesFormat) -> "AnnotatedSerializer":
        return replace(self, bytes_format=fmt)

    def with_compact(self, flag: bool = True) -> "AnnotatedSerializer":
        return replace(self, compact=flag)

    def with_format(self, directive: Format | None) -> "AnnotatedSerializer":
        """Return the context for a field annotated with directive; None keeps this context."""
        if directive is None:
            return self
        if directive is Format.BLOCK:
            return self.with_str_format(StrFormat.MULTILINE)
        if directive is Format.COMPACT:
            return self.with_compact(True)
        if directive in _BASES:
            return self.with_base(_BASES[directive])
        return self.with_bytes_format(_BYTES_FORMATS[directive])

    @staticmethod
    @contextmanager
    def with_hook(hook: Annotate | None) -> Iterator[Annotate | None]:
        """
        Install hook as the active hook of this execution context.

        Yields the previously active hook. The previous hook is restored when the block
        exits, including when it exits with an exception.
        """
        if hook is not None and not isinstance(hook, Annotate):
            raise TypeError(f"hook must be an Annotate instance or None, but got {fmt_type(hook)}")
        previous = _ACTIVE_HOOK.get()
        token = _ACTIVE_HOOK.set(hook)
        try:
            yield previous
        finally:
            _ACTIVE_HOOK.reset(token)

    @staticmethod
    def active_hook() -> Annotate | None:
        return _ACTIVE_HOOK.get()

    def serialize_annotated(self, value: Annotate) -> Document:
        """Serialize value structurally with value itself as the active hook."""
        with self.with_hook(value):
            return serialize_structure(value, self)

    def annotate(self, variant: str | None, field: MemberId, fn: Callable[["AnnotatedSerializer"], T]) -> T:
        """
        Call fn with the context for field and the active hook cleared.

        The directive is looked up on the hook active at call time.
        """
        with self.with_hook(None) as hook:
            directive = _lookup_format(hook, variant, field)
            return fn(self.with_format(directive))

    def comment_for(self, variant: str | None, field: MemberId) -> Comment | None:
        """Return the Comment node for field from the active hook, if any."""
        text = _lookup_comment(_ACTIVE_HOOK.get(), variant, field)
        return None if text is None else comment(text)

    # Scalars ------------------------------------------

    def serialize_bool(self, v: bool) -> Document:
        return Boolean(bool(v))

    def serialize_int(self, v: int) -> Document:
        return Int(check_int(v), self.base)

    def serialize_float(self, v: float) -> Document:
        return Float(float(v))

    def serialize_str(self, v: str) -> Document:
        return string(v, self.str_format)

    def serialize_bytes(self, v: bytes) -> Document:
        text = hexdump.to_string(v, self.bytes_format)
        if text is None:
            return Bytes(bytes(v))
        fmt = StrFormat.STANDARD if self.bytes_format is BytesFormat.HEXSTR else StrFormat.MULTILINE
        return string(text, fmt)

    def serialize_none(self) -> Document:
        return Null()

    def serialize_unit(self) -> Document:
        return Null()

    # Newtypes and unit cases --------------------------

    def serialize_unit_variant(self, name: str, index: int, variant: str) -> Document:
        # Comments on unit cases are not emitted: they render badly in some target formats.
        return self.serialize_str(variant)

    def serialize_newtype_struct(self, name: str, value: Any) -> Document:
        # Comments on newtype structs are not emitted, as for unit cases.
        return self.annotate(None, Index(0), lambda ser: serialize(value, ser))

    def serialize_newtype_variant(self, name: str, index: int, variant: str, value: Any) -> Document:
        def _payload(ser: AnnotatedSerializer) -> Document:
            node = serialize(value, ser)
            return compact(node) if ser.compact else node

        # Comments on newtype cases are not emitted, as for unit cases.
        return mapping([fragment(string(variant), self.annotate(variant, VARIANT, _payload))])

    # Compound -----------------------------------------

    def serialize_seq(self, length: int | None) -> "AnnotatedSeq":
        return AnnotatedSeq(self)

    def serialize_tuple(self, length: int) -> "AnnotatedSeq":
        return AnnotatedSeq(self)

    def serialize_tuple_struct(self, name: str, length: int) -> "AnnotatedTupleStruct":
        return AnnotatedTupleStruct(self)

    def serialize_tuple_variant(self, name: str, index: int, variant: str,
                                length: int) -> "AnnotatedTupleStruct":
        return AnnotatedTupleStruct(self, variant)

    def serialize_map(self, length: int | None) -> "AnnotatedMap":
        return AnnotatedMap(self)

    def serialize_struct(self, name: str, length: int) -> "AnnotatedStruct":
        return AnnotatedStruct(self)

    def serialize_struct_variant(self, name: str, index: int, variant: str,
                                 length: int) -> "AnnotatedStruct":
        return AnnotatedStruct(self, variant)

    def wrap_case(self, variant: str, payload: Document) -> Document:
        """
        Build the single-entry mapping [comment?, variant, payload] for a tagged-union case.

        The payload is wrapped in Compact when the case itself is annotated COMPACT.
        """
        payload = self.annotate(variant, VARIANT, lambda ser: compact(payload) if ser.compact else payload)
        return mapping([fragment(self.comment_for(variant, VARIANT), string(variant), payload)])


class AnnotatedSeq(SerializeSeq):
    """Sequences and anonymous tuples: elements use the enclosing context, no lookups."""

    def __init__(self, serializer: AnnotatedSerializer):
        self._serializer = serializer
        self._items: list[Document] = []

    def serialize_element(self, value: Any) -> None:
        self._items.append(serialize(value, self._serializer))

    def end(self) -> Document:
        return sequence(self._items)


class AnnotatedTupleStruct(SerializeTupleStruct):
    """Tuple structs and tuple-shaped cases: each position is looked up as Index(i)."""

    def __init__(self, serializer: AnnotatedSerializer, variant: str | None = None):
        self._serializer = serializer
        self._variant = variant
        self._index = 0
        self._items: list[Document] = []

    def serialize_field(self, value: Any) -> None:
        field = Index(self._index)
        node = self._serializer.annotate(self._variant, field, lambda ser: serialize(value, ser))
        note = self._serializer.comment_for(self._variant, field)
        self._items.append(node if note is None else fragment(note, node))
        self._index += 1

    def end(self) -> Document:
        payload = sequence(self._items)
        if self._variant is None:
            return payload
        return self._serializer.wrap_case(self._variant, payload)


class AnnotatedMap(SerializeMap):
    """
    Maps with caller-supplied keys.

    Keys and values use the enclosing context; the hook is never consulted for map entries.
    """

    def __init__(self, serializer: AnnotatedSerializer):
        self._serializer = serializer
        self._next_key: Document | None = None
        self._entries = []

    def serialize_key(self, key: Any) -> None:
        if self._next_key is not None:
            raise MapSequenceError(f"serialize_key called twice without serialize_value, "
                                   f"pending key {fmt_value(self._next_key)}")
        self._next_key = serialize(key, self._serializer)

    def serialize_value(self, value: Any) -> None:
        if self._next_key is None:
            raise MapSequenceError("serialize_value called before serialize_key")
        key, self._next_key = self._next_key, None
        self._entries.append(entry(key, serialize(value, self._serializer)))

    def serialize_entry(self, key: Any, value: Any) -> None:
        if self._next_key is not None:
            raise MapSequenceError("serialize_entry called while a key is awaiting its value")
        self._entries.append(entry(serialize(key, self._serializer), serialize(value, self._serializer)))

    def end(self) -> Document:
        if self._next_key is not None:
            raise MapSequenceError("map ended while a key is awaiting its value")
        return mapping(self._entries)


class AnnotatedStruct(SerializeStruct):
    """Structs and struct-shaped cases: each field is looked up as Name(key)."""

    def __init__(self, serializer: AnnotatedSerializer, variant: str | None = None):
        self._serializer = serializer
        self._variant = variant
        self._entries = []

    def serialize_field(self, key: str, value: Any) -> None:
        field = Name(key)
        note = self._serializer.comment_for(self._variant, field)
        node = self._serializer.annotate(self._variant, field, lambda ser: serialize(value, ser))
        self._entries.append(entry(string(key), node, note))

    def end(self) -> Document:
        payload = mapping(self._entries)
        if self._variant is None:
            return payload
        return self._serializer.wrap_case(self._variant, payload)


# Methods --------------------------------------------------------------------------------------------------------------

def to_document(value: Any, *,
                base: Base = Base.DEC,
                str_format: StrFormat = StrFormat.STANDARD,
                bytes_format: BytesFormat = BytesFormat.STANDARD,
                compact: bool = False) -> Document:
    """
    Convert value into an annotated Document tree.

    The keyword arguments seed the root traversal context; annotations on the value
    override them field by field.

    Raises:
        TypeError: If value or one of its members has no supported structure.
        MapSequenceError: If a custom __serialize__ breaks the key-then-value protocol.
        Any exception raised by a member's own __serialize__ or hook, unchanged.
    """
    serializer = AnnotatedSerializer(base=base, str_format=str_format,
                                     bytes_format=bytes_format, compact=compact)
    return serialize(value, serializer)


# Private Methods ------------------------------------------------------------------------------------------------------

def _lookup_format(hook: Annotate | None, variant: str | None, field: MemberId) -> Format | None:
    if hook is None:
        return None
    directive = hook.format(variant, field)
    if directive is None or isinstance(directive, Format):
        return directive
    raise TypeError(f"{fmt_type(hook)}.format() must return a Format or None, but got {fmt_value(directive)}")


def _lookup_comment(hook: Annotate | None, variant: str | None, field: MemberId) -> str | None:
    if hook is None:
        return None
    text = hook.comment(variant, field)
    if text is None or isinstance(text, str):
        return text
    raise TypeError(f"{fmt_type(hook)}.comment() must return a str or None, but got {fmt_value(text)}")
