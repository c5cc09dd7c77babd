"""
Generic serialization interface.

A Serializer is an output destination with one method per primitive kind of a structured
value model: scalars, optionals, unit, structs, tagged-union cases, sequences, tuples and maps.
Compound kinds hand back a builder that receives the members one by one and produces the
result from end().

Values reach a Serializer through serialize(), which uses the value's own __serialize__
method when it has one and otherwise dispatches on its Python structure:

    None                           -> serialize_none
    bool / int / float / str       -> serialize_bool / _int / _float / _str
    bytes, bytearray, memoryview   -> serialize_bytes
    enum.Enum member               -> serialize_unit_variant (case name = member name);
                                      unnamed Flag combinations serialize as their value
    TaggedUnion case instance      -> serialize_{unit,newtype,tuple,struct}_variant
    dataclass instance             -> serialize_{unit,newtype,tuple}_struct or serialize_struct
    namedtuple                     -> serialize_tuple_struct
    tuple                          -> serialize_tuple
    Mapping                        -> serialize_map
    set, frozenset                 -> serialize_seq, sorted when the elements are orderable
    other iterables                -> serialize_seq

The shape of dataclasses and TaggedUnion cases defaults to STRUCT (UNIT for a case with no
fields) and can be pinned with a `__shape__` class attribute.
"""

# Standard library -----------------------------------------------------------------------------------------------------
import collections.abc as abc
import dataclasses
from abc import ABC, abstractmethod
from enum import Enum, unique
from typing import Any, Callable, ClassVar, Iterable

# Local ----------------------------------------------------------------------------------------------------------------
from .utils import fmt_type


# Classes --------------------------------------------------------------------------------------------------------------

@unique
class Shape(str, Enum):
    """
    Layout of a struct or tagged-union case:
        - "unit": no payload
        - "newtype": exactly one anonymous field, serialized transparently
        - "tuple": positional fields
        - "struct": named fields
    """
    UNIT = "unit"
    NEWTYPE = "newtype"
    TUPLE = "tuple"
    STRUCT = "struct"


class TaggedUnion:
    """
    Root marker for tagged unions.

    Direct subclasses are the union types, their subclasses the cases. Case order
    of definition gives the case index.

    Example:
        >>> class Shape2D(TaggedUnion): ...
        >>> @dataclass
        ... class Point(Shape2D):
        ...     x: int
        ...     y: int
        >>> @dataclass
        ... class Scaled(Shape2D):
        ...     __shape__ = Shape.NEWTYPE
        ...     factor: float
    """
    __shape__: ClassVar[Shape | None] = None
    __cases__: ClassVar[list[type]]

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if TaggedUnion in cls.__bases__:
            cls.__cases__ = []
        else:
            cls.__cases__.append(cls)

    @classmethod
    def union_name(cls) -> str:
        return _union_root(cls).__name__

    @classmethod
    def case_name(cls) -> str:
        return cls.__dict__.get("__case_name__", cls.__name__)

    @classmethod
    def case_index(cls) -> int:
        return cls.__cases__.index(cls)


class SerializeSeq(ABC):
    """Builder for sequences and anonymous tuples."""

    @abstractmethod
    def serialize_element(self, value: Any) -> None: ...

    @abstractmethod
    def end(self) -> Any: ...


class SerializeTupleStruct(ABC):
    """Builder for tuple structs and tuple-shaped tagged-union cases."""

    @abstractmethod
    def serialize_field(self, value: Any) -> None: ...

    @abstractmethod
    def end(self) -> Any: ...


class SerializeMap(ABC):
    """
    Builder for maps with caller-supplied keys.

    Keys and values must strictly alternate; serialize_entry() supplies both at once.
    """

    @abstractmethod
    def serialize_key(self, key: Any) -> None: ...

    @abstractmethod
    def serialize_value(self, value: Any) -> None: ...

    def serialize_entry(self, key: Any, value: Any) -> None:
        self.serialize_key(key)
        self.serialize_value(value)

    @abstractmethod
    def end(self) -> Any: ...


class SerializeStruct(ABC):
    """Builder for structs and struct-shaped tagged-union cases."""

    @abstractmethod
    def serialize_field(self, key: str, value: Any) -> None: ...

    @abstractmethod
    def end(self) -> Any: ...


class Serializer(ABC):
    """
    Output destination of a serialization.

    Subclasses implement one method per primitive kind. as_annotated() is the capability
    query used by values that know about the annotated engine: it returns the engine
    when this destination is one, and None otherwise.
    """

    def as_annotated(self) -> Any:
        """Return an annotation-aware view of this destination, or None."""
        return None

    @abstractmethod
    def serialize_bool(self, v: bool) -> Any: ...

    @abstractmethod
    def serialize_int(self, v: int) -> Any: ...

    @abstractmethod
    def serialize_float(self, v: float) -> Any: ...

    def serialize_char(self, v: str) -> Any:
        """Serialize a single character; Python has no char type so this defaults to str."""
        if len(v) != 1:
            raise ValueError(f"single character expected, but got {len(v)} characters")
        return self.serialize_str(v)

    @abstractmethod
    def serialize_str(self, v: str) -> Any: ...

    @abstractmethod
    def serialize_bytes(self, v: bytes) -> Any: ...

    @abstractmethod
    def serialize_none(self) -> Any: ...

    def serialize_some(self, value: Any) -> Any:
        return serialize(value, self)

    @abstractmethod
    def serialize_unit(self) -> Any: ...

    def serialize_unit_struct(self, name: str) -> Any:
        return self.serialize_unit()

    @abstractmethod
    def serialize_unit_variant(self, name: str, index: int, variant: str) -> Any: ...

    @abstractmethod
    def serialize_newtype_struct(self, name: str, value: Any) -> Any: ...

    @abstractmethod
    def serialize_newtype_variant(self, name: str, index: int, variant: str, value: Any) -> Any: ...

    @abstractmethod
    def serialize_seq(self, length: int | None) -> SerializeSeq: ...

    def serialize_tuple(self, length: int) -> SerializeSeq:
        return self.serialize_seq(length)

    @abstractmethod
    def serialize_tuple_struct(self, name: str, length: int) -> SerializeTupleStruct: ...

    @abstractmethod
    def serialize_tuple_variant(self, name: str, index: int, variant: str,
                                length: int) -> SerializeTupleStruct: ...

    @abstractmethod
    def serialize_map(self, length: int | None) -> SerializeMap: ...

    @abstractmethod
    def serialize_struct(self, name: str, length: int) -> SerializeStruct: ...

    @abstractmethod
    def serialize_struct_variant(self, name: str, index: int, variant: str,
                                 length: int) -> SerializeStruct: ...


# Methods --------------------------------------------------------------------------------------------------------------

def serialize(value: Any, serializer: Serializer) -> Any:
    """
    Serialize value into serializer.

    The value's own __serialize__(serializer) takes precedence; structural dispatch
    via serialize_structure() is the fallback. Virtual subclasses of Annotate, which do
    not inherit its __serialize__, are routed through it explicitly.

    Raises:
        TypeError: If serializer is not a Serializer or value has no supported structure.
    """
    from .annotate import Annotate

    if not isinstance(serializer, Serializer):
        raise TypeError(f"serializer must be a Serializer, but got {fmt_type(serializer)}")
    method = getattr(type(value), "__serialize__", None)
    if method is None and isinstance(value, Annotate):
        method = Annotate.__serialize__
    if method is not None:
        return method(value, serializer)
    return serialize_structure(value, serializer)


def serialize_structure(value: Any, serializer: Serializer) -> Any:
    """
    Serialize value by its Python structure, ignoring any __serialize__ it defines itself.

    Nested members still go through serialize(), so their own __serialize__ applies.
    """
    if value is None:
        return serializer.serialize_none()
    if isinstance(value, bool):
        return serializer.serialize_bool(value)
    if isinstance(value, Enum):
        return _serialize_member(value, serializer)
    if isinstance(value, int):
        return serializer.serialize_int(value)
    if isinstance(value, float):
        return serializer.serialize_float(value)
    if isinstance(value, str):
        return serializer.serialize_str(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return serializer.serialize_bytes(bytes(value))
    if isinstance(value, TaggedUnion):
        return _serialize_case(value, serializer)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return _serialize_record(value, serializer)
    if isinstance(value, tuple):
        if hasattr(value, "_fields"):
            return _serialize_fields(serializer.serialize_tuple_struct(type(value).__name__, len(value)), value)
        return _serialize_elements(serializer.serialize_tuple(len(value)), value)
    if isinstance(value, abc.Mapping):
        builder = serializer.serialize_map(len(value))
        for k, v in value.items():
            builder.serialize_entry(k, v)
        return builder.end()
    if isinstance(value, abc.Set):
        return _serialize_elements(serializer.serialize_seq(len(value)), _ordered(value))
    if isinstance(value, abc.Iterable):
        length = len(value) if isinstance(value, abc.Sized) else None
        return _serialize_elements(serializer.serialize_seq(length), value)
    raise TypeError(f"cannot serialize {fmt_type(value)}: define __serialize__ or use a dataclass, "
                    f"TaggedUnion, Enum, Mapping or Iterable")


def try_specialize(serializer: Serializer,
                   on_annotated: Callable[[Any], Any],
                   otherwise: Callable[[Serializer], Any]) -> Any:
    """
    Call on_annotated with the annotation-aware view of serializer if it has one,
    otherwise call otherwise with serializer itself.
    """
    annotated = serializer.as_annotated()
    if annotated is not None:
        return on_annotated(annotated)
    return otherwise(serializer)


def shape_of(value: Any) -> Shape:
    """Return the Shape of a dataclass instance or TaggedUnion case."""
    shape = getattr(type(value), "__shape__", None)
    if shape is not None:
        return Shape(shape)
    if isinstance(value, TaggedUnion) and not _field_values(value):
        return Shape.UNIT
    return Shape.STRUCT


# Private Methods ------------------------------------------------------------------------------------------------------

def _union_root(cls: type) -> type:
    for base in cls.__mro__:
        if TaggedUnion in base.__bases__:
            return base
    raise TypeError(f"{fmt_type(cls)} is not part of a TaggedUnion")


def _field_values(value: Any) -> list[tuple[str, Any]]:
    if dataclasses.is_dataclass(value):
        return [(f.name, getattr(value, f.name)) for f in dataclasses.fields(value)]
    return []


def _single_field(value: Any, shape: Shape) -> Any:
    items = _field_values(value)
    if len(items) != 1:
        raise TypeError(f"{shape.value} shape requires exactly one field, "
                        f"but {fmt_type(value)} has {len(items)}")
    return items[0][1]


def _serialize_member(value: Enum, serializer: Serializer) -> Any:
    cls = type(value)
    names = list(cls.__members__)
    if value.name in names:
        return serializer.serialize_unit_variant(cls.__name__, names.index(value.name), value.name)
    # Unnamed Flag combinations, e.g. Perm(0) or Perm.R | Perm.W
    return serialize(value.value, serializer)


def _ordered(items: abc.Set) -> list[Any]:
    """Sorted elements when they are mutually orderable, else iteration order."""
    try:
        return sorted(items)
    except TypeError:
        return list(items)


def _serialize_case(value: TaggedUnion, serializer: Serializer) -> Any:
    cls = type(value)
    name, index, variant = cls.union_name(), cls.case_index(), cls.case_name()
    shape = shape_of(value)
    if shape is Shape.UNIT:
        return serializer.serialize_unit_variant(name, index, variant)
    if shape is Shape.NEWTYPE:
        return serializer.serialize_newtype_variant(name, index, variant, _single_field(value, shape))
    items = _field_values(value)
    if shape is Shape.TUPLE:
        builder = serializer.serialize_tuple_variant(name, index, variant, len(items))
        return _serialize_fields(builder, [v for _, v in items])
    builder = serializer.serialize_struct_variant(name, index, variant, len(items))
    return _serialize_named(builder, items)


def _serialize_record(value: Any, serializer: Serializer) -> Any:
    name = type(value).__name__
    shape = shape_of(value)
    if shape is Shape.UNIT:
        return serializer.serialize_unit_struct(name)
    if shape is Shape.NEWTYPE:
        return serializer.serialize_newtype_struct(name, _single_field(value, shape))
    items = _field_values(value)
    if shape is Shape.TUPLE:
        return _serialize_fields(serializer.serialize_tuple_struct(name, len(items)), [v for _, v in items])
    return _serialize_named(serializer.serialize_struct(name, len(items)), items)


def _serialize_elements(builder: SerializeSeq, values: Iterable[Any]) -> Any:
    for v in values:
        builder.serialize_element(v)
    return builder.end()


def _serialize_fields(builder: SerializeTupleStruct, values: Iterable[Any]) -> Any:
    for v in values:
        builder.serialize_field(v)
    return builder.end()


def _serialize_named(builder: SerializeStruct, items: Iterable[tuple[str, Any]]) -> Any:
    for k, v in items:
        builder.serialize_field(k, v)
    return builder.end()
