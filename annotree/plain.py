"""
Plain-structure serializer.

Converts serializable values into builtin Python data (dict, list, str, int, float, bool,
bytes, None) suitable for json.dumps() or a debugger. It is a foreign destination: it never
consults annotation hooks and refuses pre-built Document trees.

Conversion rules:
    - structs -> dict of field name to value
    - tagged-union cases -> {case name: payload}; unit cases -> case name
    - newtype structs -> their inner value
    - sequences, tuples, sets -> list, trimmed to max_items
    - maps -> dict (later duplicate keys overwrite earlier ones)
    - str and bytes longer than their limits are truncated with "..." and b"..."
"""

# Standard library -----------------------------------------------------------------------------------------------------
from dataclasses import dataclass, replace as dataclasses_replace
from typing import Any

# Local ----------------------------------------------------------------------------------------------------------------
from .errors import MapSequenceError
from .serialize import SerializeMap, SerializeSeq, SerializeStruct, SerializeTupleStruct, Serializer, serialize
from .utils import fmt_type, fmt_value


# Classes --------------------------------------------------------------------------------------------------------------

@dataclass
class PlainOptions:
    """
    Limits and layout options for plain-structure conversion.

    Attributes:
        max_items: Maximum items kept from sequences, tuples, sets and maps.
        max_str_length: String truncation limit; longer strings end with "...".
        max_bytes: Bytes truncation limit; longer buffers end with b"...".
        sort_keys: Sort dict keys of maps and structs.
        include_none_items: Keep map and struct entries whose value converts to None.

    Examples:
        >>> opts = PlainOptions(max_items=10, sort_keys=True)
        >>> debug = PlainOptions.debug_options()
    """
    max_items: int = 1024
    max_str_length: int = 256
    max_bytes: int = 1024
    sort_keys: bool = False
    include_none_items: bool = True

    def __post_init__(self) -> None:
        for name in ("max_items", "max_str_length", "max_bytes"):
            val = getattr(self, name)
            if isinstance(val, bool) or not isinstance(val, int):
                raise TypeError(f"PlainOptions.{name} must be an int, got {fmt_type(val)}")
            if val < 0:
                raise ValueError(f"PlainOptions.{name} must be >=0, but got {fmt_value(val)}")

    @classmethod
    def debug_options(cls) -> "PlainOptions":
        """Short collections and strings, for inspection at a glance."""
        return cls(max_items=50, max_str_length=100, max_bytes=64)

    @classmethod
    def serial_options(cls) -> "PlainOptions":
        """Stable key order and no None entries, for serialization."""
        return cls(sort_keys=True, include_none_items=False)

    def merge(self, **kwargs) -> "PlainOptions":
        """Return a copy with the given fields replaced."""
        return dataclasses_replace(self, **kwargs)


class PlainSerializer(Serializer):
    """Serializer producing builtin Python data; annotation hooks are ignored."""

    def __init__(self, options: PlainOptions | None = None):
        if not isinstance(options, (PlainOptions, type(None))):
            raise TypeError(f"options must be a PlainOptions instance, but found {fmt_type(options)}")
        self.options = options or PlainOptions()

    def serialize_bool(self, v: bool) -> bool:
        return bool(v)

    def serialize_int(self, v: int) -> int:
        return int(v)

    def serialize_float(self, v: float) -> float:
        return float(v)

    def serialize_str(self, v: str) -> str:
        limit = self.options.max_str_length
        if len(v) > limit:
            return v[:limit] + "..."
        return v

    def serialize_bytes(self, v: bytes) -> bytes:
        limit = self.options.max_bytes
        if len(v) > limit:
            return bytes(v[:limit]) + b"..."
        return bytes(v)

    def serialize_none(self) -> None:
        return None

    def serialize_unit(self) -> None:
        return None

    def serialize_unit_variant(self, name: str, index: int, variant: str) -> str:
        return variant

    def serialize_newtype_struct(self, name: str, value: Any) -> Any:
        return serialize(value, self)

    def serialize_newtype_variant(self, name: str, index: int, variant: str, value: Any) -> dict:
        return {variant: serialize(value, self)}

    def serialize_seq(self, length: int | None) -> "PlainSeq":
        return PlainSeq(self)

    def serialize_tuple_struct(self, name: str, length: int) -> "PlainSeq":
        return PlainSeq(self)

    def serialize_tuple_variant(self, name: str, index: int, variant: str, length: int) -> "PlainSeq":
        return PlainSeq(self, variant)

    def serialize_map(self, length: int | None) -> "PlainMap":
        return PlainMap(self)

    def serialize_struct(self, name: str, length: int) -> "PlainMap":
        return PlainMap(self)

    def serialize_struct_variant(self, name: str, index: int, variant: str, length: int) -> "PlainMap":
        return PlainMap(self, variant)


class PlainSeq(SerializeSeq, SerializeTupleStruct):
    """List builder; elements past max_items are skipped without being converted."""

    def __init__(self, serializer: PlainSerializer, variant: str | None = None):
        self._serializer = serializer
        self._variant = variant
        self._items: list[Any] = []

    def serialize_element(self, value: Any) -> None:
        if len(self._items) < self._serializer.options.max_items:
            self._items.append(serialize(value, self._serializer))

    def serialize_field(self, value: Any) -> None:
        self.serialize_element(value)

    def end(self) -> Any:
        if self._variant is None:
            return self._items
        return {self._variant: self._items}


class PlainMap(SerializeMap, SerializeStruct):
    """Dict builder for maps and structs."""
    _PENDING = object()

    def __init__(self, serializer: PlainSerializer, variant: str | None = None):
        self._serializer = serializer
        self._variant = variant
        self._next_key: Any = self._PENDING
        self._dict: dict[Any, Any] = {}

    def serialize_key(self, key: Any) -> None:
        if self._next_key is not self._PENDING:
            raise MapSequenceError("serialize_key called twice without serialize_value")
        key = serialize(key, self._serializer)
        # Converted tuple keys come back as lists
        self._next_key = tuple(key) if isinstance(key, list) else key

    def serialize_value(self, value: Any) -> None:
        if self._next_key is self._PENDING:
            raise MapSequenceError("serialize_value called before serialize_key")
        key, self._next_key = self._next_key, self._PENDING
        self._put(key, value)

    def serialize_field(self, key: str, value: Any) -> None:
        self._put(key, value)

    def end(self) -> Any:
        if self._next_key is not self._PENDING:
            raise MapSequenceError("map ended while a key is awaiting its value")
        opt = self._serializer.options
        dict_ = dict(sorted(self._dict.items())) if opt.sort_keys else self._dict
        if self._variant is None:
            return dict_
        return {self._variant: dict_}

    def _put(self, key: Any, value: Any) -> None:
        opt = self._serializer.options
        if key not in self._dict and len(self._dict) >= opt.max_items:
            return
        converted = serialize(value, self._serializer)
        if converted is None and not opt.include_none_items:
            return
        self._dict[key] = converted


# Methods --------------------------------------------------------------------------------------------------------------

def plainify(value: Any, options: PlainOptions | None = None) -> Any:
    """
    Convert value into builtin Python data.

    Args:
        value: Any value serializable by annotree.serialize.serialize().
        options: PlainOptions controlling limits and key order; defaults to PlainOptions().

    Returns:
        Builtin data: dict, list, str, int, float, bool, bytes or None.

    Raises:
        UnsupportedDocumentError: If value contains a pre-built Document tree.
        TypeError: If value or one of its members has no supported structure.

    Examples:
        >>> @dataclass
        ... class Point:
        ...     x: int
        ...     y: int
        >>> plainify([Point(1, 2)])
        [{'x': 1, 'y': 2}]
    """
    return serialize(value, PlainSerializer(options))
