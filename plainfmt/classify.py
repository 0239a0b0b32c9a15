"""
Type classification for plain text rendering.

Decides, for a runtime type or type designator, which rendering strategy applies.
The rules are checked in priority order, so int-based enums render by name, strings
never decompose into characters, and date/time or type objects keep a short canonical
form instead of a member-by-member expansion.
"""

# Standard library -----------------------------------------------------------------------------------------------------
import argparse
import array
import collections
import collections.abc as abc
import datetime
import decimal
import enum
import fractions
import pathlib
import threading
import types
import uuid

from enum import StrEnum, unique
from typing import Any

# Local ----------------------------------------------------------------------------------------------------------------
from plainfmt.utils import type_origin

SCALAR_TYPES = (
    bool,
    int,
    float,
    complex,
    decimal.Decimal,
    fractions.Fraction,
    uuid.UUID,
    str,
    collections.UserString,
)

SPECIAL_SCALAR_TYPES = (
    datetime.timedelta,
    datetime.date,  # datetime.datetime is a subclass
    datetime.time,
    type,
    types.GenericAlias,
    bytes,
    bytearray,
    pathlib.PurePath,
    types.FunctionType,
    types.BuiltinFunctionType,
    types.MethodType,
    types.ModuleType,
)

CHAR_ARRAY_TYPECODES = frozenset({"u", "w"})

_dynamic_bag_types: set[type] = {types.SimpleNamespace, argparse.Namespace}
_dynamic_bag_lock = threading.Lock()


# Classes --------------------------------------------------------------------------------------------------------------

@unique
class RenderStrategy(StrEnum):
    """
    Rendering strategies, one per family of value shapes.

    Attributes:
        NULL: None, written as the null text.
        SCALAR: Numbers, UUIDs and strings, written with str().
        SPECIAL_SCALAR: Values with a canonical short text (dates, durations, types, bytes, paths).
        ENUM: Enum members, written by name.
        STRUCT: Objects expanded member by member: '{ Type: a: 1, b: 2 }'.
        SEQUENCE: Iterables written as '[ 1, 2, 3 ]' with truncation.
        MAPPING: Mappings written as '{ k: v, ... }' with truncation.
        TUPLE: Tuples written as '( 1, 2 )' without truncation.
        DYNAMIC_BAG: Runtime-shaped attribute bags written as '{ k: v }'.
        EXCEPTION: Exceptions written as '{ Type: message }'.
        DYNAMIC: No static strategy, dispatch on each value's runtime type.
    """
    NULL = "null"
    SCALAR = "scalar"
    SPECIAL_SCALAR = "special_scalar"
    ENUM = "enum"
    STRUCT = "struct"
    SEQUENCE = "sequence"
    MAPPING = "mapping"
    TUPLE = "tuple"
    DYNAMIC_BAG = "dynamic_bag"
    EXCEPTION = "exception"
    DYNAMIC = "dynamic"

    @property
    def is_composite(self) -> bool:
        """Whether values of this strategy contain other values."""
        return self in _COMPOSITE_STRATEGIES


_COMPOSITE_STRATEGIES = frozenset({
    RenderStrategy.STRUCT,
    RenderStrategy.SEQUENCE,
    RenderStrategy.MAPPING,
    RenderStrategy.TUPLE,
    RenderStrategy.DYNAMIC_BAG,
    RenderStrategy.EXCEPTION,
})


# Methods --------------------------------------------------------------------------------------------------------------

def classify(type_key: Any) -> RenderStrategy:
    """
    Classify a type designator into a rendering strategy.

    Args:
        type_key: A class, an ABC, or a parametrized generic like ``list[int]``.

    Returns:
        The RenderStrategy that applies to values of that type.

    Dispatch Logic:
        - NoneType → NULL
        - Enum subclasses → ENUM (before scalars: IntEnum is an int)
        - bool, int, float, complex, Decimal, Fraction, UUID, str → SCALAR
        - timedelta, date, time, types, bytes, paths, functions, modules → SPECIAL_SCALAR
        - tuple and namedtuples → TUPLE
        - Mapping → MAPPING
        - other Iterable (incl. memoryview, generators) → SEQUENCE
        - SimpleNamespace, argparse.Namespace, registered bags → DYNAMIC_BAG
        - BaseException → EXCEPTION
        - object, Any, unions → DYNAMIC
        - everything else → STRUCT

    Examples:
        >>> classify(int)
        <RenderStrategy.SCALAR: 'scalar'>
        >>> classify(list[int])
        <RenderStrategy.SEQUENCE: 'sequence'>
        >>> classify(dict)
        <RenderStrategy.MAPPING: 'mapping'>
    """
    cls = type_origin(type_key)
    if cls is None or cls is object:
        return RenderStrategy.DYNAMIC

    if cls is type(None):
        return RenderStrategy.NULL
    if issubclass(cls, enum.Enum):
        return RenderStrategy.ENUM
    if issubclass(cls, SCALAR_TYPES):
        return RenderStrategy.SCALAR
    if issubclass(cls, SPECIAL_SCALAR_TYPES):
        return RenderStrategy.SPECIAL_SCALAR
    if issubclass(cls, tuple):
        return RenderStrategy.TUPLE
    if issubclass(cls, abc.Mapping):
        return RenderStrategy.MAPPING
    if issubclass(cls, abc.Iterable):
        return RenderStrategy.SEQUENCE
    if is_dynamic_bag(cls):
        return RenderStrategy.DYNAMIC_BAG
    if issubclass(cls, BaseException):
        return RenderStrategy.EXCEPTION
    return RenderStrategy.STRUCT


def classify_value(value: Any) -> RenderStrategy:
    """
    Classify a value by its runtime type, refining spans by their element kind.

    A memoryview of chars and an array of unicode chars are rendered like strings,
    so they move from SEQUENCE to SPECIAL_SCALAR here.
    """
    if value is None:
        return RenderStrategy.NULL
    if is_char_span(value):
        return RenderStrategy.SPECIAL_SCALAR
    return classify(type(value))


def is_char_span(value: Any) -> bool:
    """Check if value is a read-only span of characters: array('u'/'w') or memoryview of 'c'."""
    if isinstance(value, array.array):
        return value.typecode in CHAR_ARRAY_TYPECODES
    if isinstance(value, memoryview):
        return value.format == "c"
    return False


def is_dynamic_bag(cls: type) -> bool:
    """Check if cls is a registered dynamic property bag type (or derives from one)."""
    return any(issubclass(cls, bag) for bag in tuple(_dynamic_bag_types))


def register_dynamic_bag(cls: type) -> None:
    """
    Treat instances of cls as dynamic property bags, rendered from their live attributes.

    Raises:
        TypeError: If cls is not a class.
    """
    if not isinstance(cls, type):
        raise TypeError(f"cls must be a type, got {type(cls).__name__}")
    with _dynamic_bag_lock:
        _dynamic_bag_types.add(cls)


def unregister_dynamic_bag(cls: type) -> None:
    """Stop treating instances of cls as dynamic property bags."""
    with _dynamic_bag_lock:
        _dynamic_bag_types.discard(cls)
