#
# Annotree - Serialize Tests
#

# Standard library -----------------------------------------------------------------------------------------------------
from collections import OrderedDict, namedtuple
from dataclasses import dataclass
from enum import Enum, Flag
from typing import Any

# Third-party ----------------------------------------------------------------------------------------------------------
import pytest

# Local ----------------------------------------------------------------------------------------------------------------
from annotree.serialize import (SerializeMap, SerializeSeq, SerializeStruct, SerializeTupleStruct, Serializer,
                                Shape, TaggedUnion, serialize, serialize_structure, shape_of, try_specialize)


# Classes --------------------------------------------------------------------------------------------------------------

class Recorder(Serializer):
    """Serializer returning a nested trace of the calls it receives."""

    def serialize_bool(self, v):
        return ("bool", v)

    def serialize_int(self, v):
        return ("int", v)

    def serialize_float(self, v):
        return ("float", v)

    def serialize_str(self, v):
        return ("str", v)

    def serialize_bytes(self, v):
        return ("bytes", v)

    def serialize_none(self):
        return ("none",)

    def serialize_unit(self):
        return ("unit",)

    def serialize_unit_variant(self, name, index, variant):
        return ("unit_variant", name, index, variant)

    def serialize_newtype_struct(self, name, value):
        return ("newtype_struct", name, serialize(value, self))

    def serialize_newtype_variant(self, name, index, variant, value):
        return ("newtype_variant", name, index, variant, serialize(value, self))

    def serialize_seq(self, length):
        return _Collect(self, "seq", length)

    def serialize_tuple_struct(self, name, length):
        return _Collect(self, "tuple_struct", name, length)

    def serialize_tuple_variant(self, name, index, variant, length):
        return _Collect(self, "tuple_variant", name, index, variant, length)

    def serialize_map(self, length):
        return _Collect(self, "map", length)

    def serialize_struct(self, name, length):
        return _Collect(self, "struct", name, length)

    def serialize_struct_variant(self, name, index, variant, length):
        return _Collect(self, "struct_variant", name, index, variant, length)


class _Collect(SerializeSeq, SerializeTupleStruct, SerializeMap, SerializeStruct):

    def __init__(self, ser: Recorder, *head: Any):
        self._ser = ser
        self._head = head
        self._items = []

    def serialize_element(self, value):
        self._items.append(serialize(value, self._ser))

    def serialize_field(self, *args):
        if len(args) == 2:
            self._items.append((args[0], serialize(args[1], self._ser)))
        else:
            self._items.append(serialize(args[0], self._ser))

    def serialize_key(self, key):
        self._items.append(("key", serialize(key, self._ser)))

    def serialize_value(self, value):
        self._items.append(("value", serialize(value, self._ser)))

    def end(self):
        return (*self._head, self._items)


class Color(Enum):
    RED = 1
    GREEN = 2


class Perm(Flag):
    R = 1
    W = 2
    X = 4
    RW = 3


class Message(TaggedUnion):
    pass


@dataclass
class Quit(Message):
    pass


@dataclass
class Write(Message):
    __shape__ = Shape.NEWTYPE
    text: str


@dataclass
class Move(Message):
    __shape__ = Shape.TUPLE
    x: int
    y: int


@dataclass
class Resize(Message):
    __case_name__ = "resize"
    w: int
    h: int


@dataclass
class Unit:
    __shape__ = Shape.UNIT


@dataclass
class Meters:
    __shape__ = Shape.NEWTYPE
    value: float


@dataclass
class Pair:
    __shape__ = Shape.TUPLE
    a: int
    b: str


@dataclass
class Broken:
    __shape__ = Shape.NEWTYPE
    a: int
    b: int


Version = namedtuple("Version", "major minor")


class Custom:

    def __serialize__(self, serializer):
        return serializer.serialize_str("custom")


@dataclass
class Overridden:
    x: int

    def __serialize__(self, serializer):
        return serializer.serialize_int(self.x * 2)


# Tests ----------------------------------------------------------------------------------------------------------------

class TestScalars:

    @pytest.mark.parametrize("value, expected", [
        pytest.param(None, ("none",), id="none"),
        pytest.param(True, ("bool", True), id="bool"),
        pytest.param(-5, ("int", -5), id="int"),
        pytest.param(2 ** 127, ("int", 2 ** 127), id="u128"),
        pytest.param(1.5, ("float", 1.5), id="float"),
        pytest.param("s", ("str", "s"), id="str"),
        pytest.param(b"\x00", ("bytes", b"\x00"), id="bytes"),
        pytest.param(bytearray(b"ab"), ("bytes", b"ab"), id="bytearray"),
        pytest.param(memoryview(b"cd"), ("bytes", b"cd"), id="memoryview"),
    ])
    def test_dispatch(self, value: Any, expected: tuple):
        """Dispatch builtin scalars to their primitive methods."""
        assert serialize(value, Recorder()) == expected

    def test_enum_as_unit_variant(self):
        """Serialize enum members as unit cases indexed by definition order."""
        assert serialize(Color.GREEN, Recorder()) == ("unit_variant", "Color", 1, "GREEN")

    @pytest.mark.parametrize("member, index, name", [
        pytest.param(Perm.R, 0, "R", id="single_bit"),
        pytest.param(Perm.X, 2, "X", id="last_bit"),
        pytest.param(Perm.RW, 3, "RW", id="named_combination"),
    ])
    def test_named_flag_members(self, member: Perm, index: int, name: str):
        """Serialize named flag members as unit cases indexed by declaration."""
        assert serialize(member, Recorder()) == ("unit_variant", "Perm", index, name)

    @pytest.mark.parametrize("member, expected", [
        pytest.param(Perm(0), ("int", 0), id="empty"),
        pytest.param(Perm.R | Perm.X, ("int", 5), id="unnamed_combination"),
    ])
    def test_unnamed_flag_members(self, member: Perm, expected: tuple):
        """Serialize unnamed flag combinations as their value."""
        assert serialize(member, Recorder()) == expected

    def test_char(self):
        """Accept single characters only."""
        assert Recorder().serialize_char("x") == ("str", "x")
        with pytest.raises(ValueError, match="single character expected"):
            Recorder().serialize_char("xy")

    def test_some(self):
        """Serialize a present optional as its value."""
        assert Recorder().serialize_some(3) == ("int", 3)


class TestCollections:

    def test_list(self):
        """Serialize lists as sequences with length."""
        assert serialize([1, "a"], Recorder()) == ("seq", 2, [("int", 1), ("str", "a")])

    def test_generator_has_no_length(self):
        """Pass None as length for unsized iterables."""
        assert serialize((i for i in range(2)), Recorder()) == ("seq", None, [("int", 0), ("int", 1)])

    def test_tuple(self):
        """Route anonymous tuples through serialize_tuple."""
        assert serialize((1,), Recorder()) == ("seq", 1, [("int", 1)])

    def test_namedtuple(self):
        """Serialize namedtuples as tuple structs."""
        assert serialize(Version(1, 2), Recorder()) == ("tuple_struct", "Version", 2, [("int", 1), ("int", 2)])

    @pytest.mark.parametrize("value", [
        pytest.param({"pear", "apple", "fig", "kiwi"}, id="set"),
        pytest.param(frozenset({"pear", "apple", "fig", "kiwi"}), id="frozenset"),
    ])
    def test_set_sorted(self, value):
        """Emit orderable set elements in sorted order."""
        assert serialize(value, Recorder()) == ("seq", 4, [("str", "apple"), ("str", "fig"),
                                                           ("str", "kiwi"), ("str", "pear")])

    def test_set_unorderable(self):
        """Keep all elements of sets that cannot be sorted."""
        _, length, items = serialize({1, "a"}, Recorder())
        assert length == 2
        assert sorted(items, key=repr) == [("int", 1), ("str", "a")]

    def test_mapping_keeps_order(self):
        """Emit map entries key then value in iteration order."""
        result = serialize(OrderedDict([("b", 1), ("a", 2)]), Recorder())
        assert result == ("map", 2, [("key", ("str", "b")), ("value", ("int", 1)),
                                     ("key", ("str", "a")), ("value", ("int", 2))])


class TestRecords:

    def test_struct(self):
        """Serialize dataclasses as structs by default."""
        @dataclass
        class Point:
            x: int
            y: int

        assert serialize(Point(1, 2), Recorder()) == ("struct", "Point", 2, [("x", ("int", 1)), ("y", ("int", 2))])

    def test_unit_struct(self):
        """Serialize UNIT-shaped dataclasses as unit."""
        assert serialize(Unit(), Recorder()) == ("unit",)

    def test_newtype_struct(self):
        """Serialize NEWTYPE-shaped dataclasses by their single field."""
        assert serialize(Meters(2.0), Recorder()) == ("newtype_struct", "Meters", ("float", 2.0))

    def test_tuple_struct(self):
        """Serialize TUPLE-shaped dataclasses positionally."""
        assert serialize(Pair(1, "b"), Recorder()) == ("tuple_struct", "Pair", 2, [("int", 1), ("str", "b")])

    def test_newtype_field_count(self):
        """Reject NEWTYPE shape with more than one field."""
        with pytest.raises(TypeError, match="newtype shape requires exactly one field"):
            serialize(Broken(1, 2), Recorder())


class TestTaggedUnion:

    def test_cases_registered_in_order(self):
        """Register cases on their union in definition order."""
        assert Message.__cases__ == [Quit, Write, Move, Resize]
        assert Move.case_index() == 2
        assert Move.union_name() == "Message"

    def test_case_name_override(self):
        """Honor __case_name__ and default to the class name."""
        assert Resize.case_name() == "resize"
        assert Move.case_name() == "Move"

    @pytest.mark.parametrize("value, expected", [
        pytest.param(Quit(), ("unit_variant", "Message", 0, "Quit"), id="unit"),
        pytest.param(Write("hi"), ("newtype_variant", "Message", 1, "Write", ("str", "hi")), id="newtype"),
        pytest.param(Move(1, 2), ("tuple_variant", "Message", 2, "Move", 2, [("int", 1), ("int", 2)]), id="tuple"),
        pytest.param(Resize(3, 4), ("struct_variant", "Message", 3, "resize", 2,
                                    [("w", ("int", 3)), ("h", ("int", 4))]), id="struct"),
    ])
    def test_case_shapes(self, value: Message, expected: tuple):
        """Dispatch each case to the variant method of its shape."""
        assert serialize(value, Recorder()) == expected

    @pytest.mark.parametrize("value, shape", [
        pytest.param(Quit(), Shape.UNIT, id="fieldless_case"),
        pytest.param(Write("x"), Shape.NEWTYPE, id="pinned"),
        pytest.param(Resize(1, 1), Shape.STRUCT, id="default"),
        pytest.param(Unit(), Shape.UNIT, id="unit_struct"),
    ])
    def test_shape_of(self, value: Any, shape: Shape):
        """Derive shape from __shape__ or from the field count."""
        assert shape_of(value) is shape


class TestDispatch:

    def test_own_serialize_wins(self):
        """Prefer a value's own __serialize__."""
        assert serialize(Custom(), Recorder()) == ("str", "custom")
        assert serialize(Overridden(4), Recorder()) == ("int", 8)

    def test_structure_ignores_own_serialize(self):
        """Bypass __serialize__ in serialize_structure."""
        assert serialize_structure(Overridden(4), Recorder()) == ("struct", "Overridden", 1, [("x", ("int", 4))])

    def test_nested_own_serialize(self):
        """Apply __serialize__ of nested members."""
        assert serialize([Custom()], Recorder()) == ("seq", 1, [("str", "custom")])

    def test_unsupported_value(self):
        """Reject values without structure."""
        with pytest.raises(TypeError, match=r"cannot serialize <object>"):
            serialize(object(), Recorder())

    def test_bad_serializer(self):
        """Reject destinations that are not Serializers."""
        with pytest.raises(TypeError, match=r"serializer must be a Serializer, but got <dict>"):
            serialize(1, {})

    def test_abstract_serializer(self):
        """Require the primitive methods."""
        with pytest.raises(TypeError):
            Serializer()


class TestTrySpecialize:

    def test_foreign_destination(self):
        """Take the fallback for destinations without the capability."""
        ser = Recorder()
        assert ser.as_annotated() is None
        assert try_specialize(ser, lambda a: "annotated", lambda s: s) is ser

    def test_annotated_destination(self, engine):
        """Take the specialized path for the annotated engine."""
        assert try_specialize(engine, lambda a: a, lambda s: None) is engine
