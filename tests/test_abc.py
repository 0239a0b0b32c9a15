#
# Plainfmt - ABC Tests
#

# Standard library -----------------------------------------------------------------------------------------------------
import functools
import typing

from dataclasses import dataclass

# Third party ----------------------------------------------------------------------------------------------------------
import pytest

# Local ----------------------------------------------------------------------------------------------------------------
from plainfmt.abc import (
    CapturedError,
    MemberDescriptor,
    clear_member_cache,
    instance_members,
    members_of,
    read_member,
)


# Tests ----------------------------------------------------------------------------------------------------------------

def names(members) -> list[str]:
    return [m.name for m in members]


class Base:
    base_field: int

    @property
    def base_prop(self):
        return "base"


class Derived(Base):
    derived_field: str
    _hidden: int

    @property
    def derived_prop(self):
        return "derived"


class TestMembersOf:
    def test_declaration_order(self):
        """Fields before properties, base classes first."""
        assert names(members_of(Derived)) == ["base_field", "derived_field", "base_prop", "derived_prop"]

    def test_internal(self):
        assert "_hidden" in names(members_of(Derived, include_internal=True))
        assert "_hidden" not in names(members_of(Derived))

    def test_kinds(self):
        kinds = {m.name: m.kind for m in members_of(Derived)}
        assert kinds["base_field"] == "field"
        assert kinds["base_prop"] == "property"

    def test_static_and_backing_flags_unset(self):
        """Static members and backing fields are never enumerated."""
        members = members_of(Derived, include_internal=True)
        assert members
        assert not any(m.is_static or m.is_backing_field for m in members)

    def test_static_members_excluded(self):
        """ClassVars, plain class attributes, methods and nested classes are not members."""

        class Service:
            registry: typing.ClassVar[dict] = {}
            name: str = "svc"
            version = 2

            class Nested:
                pass

            def run(self):
                pass

            @staticmethod
            def helper():
                pass

            @classmethod
            def create(cls):
                pass

        assert names(members_of(Service)) == ["name"]

    def test_dunder_excluded(self):
        class Annotated:
            __tag__: str
            value: int

        assert names(members_of(Annotated, include_internal=True)) == ["value"]

    def test_slots(self):
        class Slotted:
            __slots__ = ("a", "b", "__weakref__")

        assert names(members_of(Slotted)) == ["a", "b"]

    def test_private_slot_mangled(self):
        """Private slots are reachable through their mangled name."""

        class Vault:
            __slots__ = ("__key",)

            def __init__(self):
                self.__key = 42

        members = members_of(Vault, include_internal=True)
        assert names(members) == ["_Vault__key"]
        assert read_member(Vault(), members[0]) == 42

    def test_cached_property(self):
        class Lazy:
            @functools.cached_property
            def value(self):
                return 1

        member, = members_of(Lazy)
        assert (member.name, member.kind) == ("value", "property")

    def test_cached(self):
        """Return the same tuple until the cache is cleared."""
        first = members_of(Derived)
        assert members_of(Derived) is first
        clear_member_cache()
        assert members_of(Derived) is not first
        assert members_of(Derived) == first

    def test_type_error(self):
        with pytest.raises(TypeError, match=r"must be a type"):
            members_of(Derived())

    def test_dataclass(self):
        @dataclass
        class Point:
            x: int
            y: int = 0

        assert names(members_of(Point)) == ["x", "y"]


class TestInstanceMembers:
    def test_instance_attributes(self):
        """Undeclared instance attributes follow declared fields, properties come last."""

        class Job:
            state: str

            def __init__(self):
                self.state = "new"
                self.pid = 1
                self._lock = None

            @property
            def done(self):
                return False

        assert names(instance_members(Job())) == ["state", "pid", "done"]
        assert names(instance_members(Job(), include_internal=True)) == ["state", "pid", "_lock", "done"]

    def test_backing_field_excluded(self):
        """A computed cached property is reported once."""

        class Lazy:
            def __init__(self):
                self.seed = 2

            @functools.cached_property
            def square(self):
                return self.seed ** 2

        obj = Lazy()
        assert obj.square == 4
        assert names(instance_members(obj, include_internal=True)) == ["seed", "square"]

    def test_no_instance_dict(self):
        assert names(instance_members(42)) == []

    def test_callable_attribute_kept(self):
        """Instance attributes holding callables are data."""

        class Task:
            def __init__(self):
                self.callback = print

        assert names(instance_members(Task())) == ["callback"]


class TestReadMember:
    def test_value(self):
        member = MemberDescriptor.for_attribute("real")
        assert read_member(3, member) == 3

    def test_captured_error(self):
        class Failing:
            @property
            def value(self):
                raise KeyError("gone")

        result = read_member(Failing(), MemberDescriptor.for_attribute("value", kind="property"))
        assert isinstance(result, CapturedError)
        assert isinstance(result.error, KeyError)
        assert str(result) == "KeyError: 'gone'"


class TestMemberDescriptor:
    @pytest.mark.parametrize(
        "name, is_public",
        [
            pytest.param("value", True, id="public"),
            pytest.param("_value", False, id="internal"),
        ],
    )
    def test_for_attribute(self, name, is_public):
        member = MemberDescriptor.for_attribute(name)
        assert member.is_public is is_public
        assert member.kind == "field"
        assert not member.is_static
        assert not member.is_backing_field

    def test_equality_ignores_accessor(self):
        assert MemberDescriptor.for_attribute("a") == MemberDescriptor("a", accessor=len)
