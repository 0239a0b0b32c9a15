"""
Member introspection for struct-like objects.

Enumerates the renderable instance members of a class (fields and properties) in
declaration order, leaving out static members and synthesized storage, and reads
member values without letting a failing getter escape.
"""

# Standard library -----------------------------------------------------------------------------------------------------
import functools
import inspect
import logging
import threading
import typing

from dataclasses import dataclass, field
from operator import attrgetter
from typing import Any, Callable, ClassVar, Literal

logger = logging.getLogger(__name__)

MemberKind = Literal["field", "property"]

# Slots the interpreter adds for instance dicts and weak references
SYNTHESIZED_SLOTS = frozenset({"__dict__", "__weakref__"})


# Classes --------------------------------------------------------------------------------------------------------------

@dataclass(frozen=True)
class MemberDescriptor:
    """
    A renderable member of a struct-like type.

    Attributes:
        name: Attribute name.
        accessor: Callable returning the member value for an instance.
        kind: "field" for stored attributes, "property" for computed ones.
        is_static: True for class-level members (never rendered).
        is_backing_field: True for synthesized storage of another member (never rendered).
        is_public: False for names starting with an underscore.

    Notes:
        - members_of() and instance_members() leave static members and backing fields out,
          so is_static and is_backing_field are always False on the descriptors they return
    """
    name: str
    accessor: Callable[[Any], Any] = field(compare=False, repr=False)
    kind: MemberKind = "field"
    is_static: bool = False
    is_backing_field: bool = False
    is_public: bool = True

    @classmethod
    def for_attribute(cls, name: str, kind: MemberKind = "field") -> "MemberDescriptor":
        """Create a descriptor reading the attribute `name` with getattr."""
        return cls(name=name, accessor=attrgetter(name), kind=kind, is_public=not name.startswith("_"))


@dataclass(frozen=True)
class CapturedError:
    """
    An exception raised while reading a value, carried as a value.

    Rendering treats it like any other value, so a failing member shows its
    error in place instead of aborting the enclosing object.
    """
    error: BaseException

    def __str__(self) -> str:
        return f"{type(self.error).__name__}: {self.error}"


class _MemberCache:
    """Per-type cache of declared members, locked on the insertion path only."""

    def __init__(self) -> None:
        self._entries: dict[tuple[type, bool], tuple[MemberDescriptor, ...]] = {}
        self._lock = threading.Lock()

    def get(self, cls: type, include_internal: bool) -> tuple[MemberDescriptor, ...]:
        key = (cls, include_internal)
        try:
            return self._entries[key]
        except KeyError:
            pass
        with self._lock:
            if key not in self._entries:
                self._entries[key] = _declared_members(cls, include_internal)
            return self._entries[key]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


_member_cache = _MemberCache()


# Methods --------------------------------------------------------------------------------------------------------------

def members_of(cls: type, include_internal: bool = False) -> tuple[MemberDescriptor, ...]:
    """
    Return the declared instance members of a class.

    Walks the MRO from the most basic ancestor to `cls`, skipping `object`. Per class it
    takes annotated instance fields, then `__slots__` entries, then properties, each in
    declaration order. Results are cached per (cls, include_internal).

    Args:
        cls: The class to inspect.
        include_internal: If True, includes members whose names start with '_'.

    Returns:
        Tuple of MemberDescriptor, fields before properties.

    Raises:
        TypeError: If cls is not a class.

    Notes:
        - Always excludes dunder names, ClassVar annotations, methods, static and class methods
        - Always excludes '__dict__' and '__weakref__' slots
        - Instance attributes set in __init__ are not declared, see instance_members()

    Examples:
        >>> from dataclasses import dataclass
        >>> @dataclass
        ... class Point:
        ...     x: int
        ...     y: int
        ...     @property
        ...     def norm(self) -> float:
        ...         return (self.x ** 2 + self.y ** 2) ** 0.5
        >>> [m.name for m in members_of(Point)]
        ['x', 'y', 'norm']
    """
    if not isinstance(cls, type):
        raise TypeError(f"cls must be a type, got {type(cls).__name__}")
    return _member_cache.get(cls, bool(include_internal))


def instance_members(obj: Any, include_internal: bool = False) -> list[MemberDescriptor]:
    """
    Return the renderable members of an instance.

    Declared fields first, then live instance attributes that are not declared
    (assigned in __init__ or later, in insertion order), then properties.

    Args:
        obj: The instance to inspect.
        include_internal: If True, includes members whose names start with '_'.

    Returns:
        List of MemberDescriptor.
    """
    cls = type(obj)
    declared = members_of(cls, include_internal)
    seen = {m.name for m in declared}
    backing = _backing_field_names(cls)

    extra: list[MemberDescriptor] = []
    try:
        attrs = vars(obj)
    except TypeError:
        attrs = {}  # No __dict__ (slots only)

    for name in list(attrs):
        if not isinstance(name, str) or name in seen or name in backing:
            continue
        if _is_dunder(name) or _is_static(cls, name):
            continue
        if not include_internal and name.startswith("_"):
            continue
        extra.append(MemberDescriptor.for_attribute(name))
        seen.add(name)

    fields_ = [m for m in declared if m.kind == "field"]
    props = [m for m in declared if m.kind == "property"]
    return fields_ + extra + props


def read_member(obj: Any, member: MemberDescriptor) -> Any:
    """
    Read a member value, capturing any exception the accessor raises.

    Returns:
        The member value, or a CapturedError wrapping the raised exception.
    """
    try:
        return member.accessor(obj)
    except Exception as e:
        logger.debug("member %r of %s raised %s", member.name, type(obj).__name__, type(e).__name__)
        return CapturedError(e)


def clear_member_cache() -> None:
    """Drop all cached member descriptors."""
    _member_cache.clear()


# Private Methods ------------------------------------------------------------------------------------------------------

def _declared_members(cls: type, include_internal: bool) -> tuple[MemberDescriptor, ...]:
    """Collect declared members over the MRO, most basic class first."""
    fields_: list[MemberDescriptor] = []
    props: list[MemberDescriptor] = []
    seen: set[str] = set()

    def _visible(name: str) -> bool:
        if name in seen or _is_dunder(name) or name in SYNTHESIZED_SLOTS:
            return False
        return include_internal or not name.startswith("_")

    for klass in reversed(cls.__mro__):
        if klass is object:
            continue
        namespace = klass.__dict__

        for name in _annotated_fields(klass):
            if _visible(name) and not _is_static(cls, name):
                fields_.append(MemberDescriptor.for_attribute(name))
                seen.add(name)

        for name in _slot_names(klass):
            if _visible(name):
                fields_.append(MemberDescriptor.for_attribute(name))
                seen.add(name)

        for name, attr in namespace.items():
            if isinstance(attr, (property, functools.cached_property)) and _visible(name):
                props.append(MemberDescriptor.for_attribute(name, kind="property"))
                seen.add(name)

    return tuple(fields_ + props)


def _annotated_fields(klass: type) -> list[str]:
    """Return names annotated in the class body, excluding ClassVar annotations."""
    annotations = inspect.get_annotations(klass)
    names = []
    for name, annotation in annotations.items():
        if _is_classvar(annotation):
            continue
        names.append(name)
    return names


def _backing_field_names(cls: type) -> set[str]:
    """Return instance dict keys used as storage by cached properties of cls."""
    names = set()
    for klass in cls.__mro__:
        for name, attr in klass.__dict__.items():
            if isinstance(attr, functools.cached_property):
                names.add(attr.attrname or name)
    return names


def _is_classvar(annotation: Any) -> bool:
    if annotation is ClassVar or typing.get_origin(annotation) is ClassVar:
        return True
    # String annotations under `from __future__ import annotations`
    return isinstance(annotation, str) and annotation.replace("typing.", "").startswith("ClassVar")


def _is_dunder(name: str) -> bool:
    return name.startswith("__") and name.endswith("__")


def _is_static(cls: type, name: str) -> bool:
    """Check if name resolves to a class-level callable or descriptor helper rather than data."""
    try:
        attr = inspect.getattr_static(cls, name)
    except AttributeError:
        return False
    if isinstance(attr, (staticmethod, classmethod, type)):
        return True
    return inspect.isfunction(attr) or (inspect.ismethoddescriptor(attr) and not inspect.isdatadescriptor(attr))


def _slot_names(klass: type) -> list[str]:
    """Return slot attribute names of klass, with private names mangled."""
    slots = klass.__dict__.get("__slots__", ())
    if isinstance(slots, str):
        slots = [slots]
    names = []
    for s in slots:
        if not isinstance(s, str):
            continue
        if s.startswith("__") and not s.endswith("__"):
            s = f"_{klass.__name__.lstrip('_')}{s}"
        names.append(s)
    return names
