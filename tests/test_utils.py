#
# Plainfmt - Utils Tests
#

# Standard library -----------------------------------------------------------------------------------------------------
import collections.abc
import typing

# Third party ----------------------------------------------------------------------------------------------------------
import pytest

# Local ----------------------------------------------------------------------------------------------------------------
from plainfmt.utils import class_name, is_unnamed, type_origin


# Tests ----------------------------------------------------------------------------------------------------------------

class Outer:
    class Inner:
        pass


class TestClassName:
    @pytest.mark.parametrize(
        "obj, fully_qualified_builtins, expected",
        [
            pytest.param(int, False, "int", id="builtin-class-no-fq"),
            pytest.param(10, False, "int", id="builtin-instance-no-fq"),
            pytest.param(int, True, "builtins.int", id="builtin-class-fq"),
            pytest.param("abc", True, "builtins.str", id="builtin-str-fq"),
            pytest.param(None, False, "NoneType", id="none-no-fq"),
        ],
    )
    def test_builtin_names(self, obj, fully_qualified_builtins, expected):
        """Return builtin class names with and without full qualification."""
        assert class_name(obj, fully_qualified_builtins=fully_qualified_builtins) == expected

    def test_builtins_stay_bare(self):
        """fully_qualified alone does not prefix builtins."""
        assert class_name(int, fully_qualified=True) == "int"

    def test_nested_class(self):
        """Keep the dotted qualified name of nested classes."""
        assert class_name(Outer.Inner()) == "Outer.Inner"
        assert class_name(Outer.Inner, fully_qualified=True) == f"{__name__}.Outer.Inner"

    def test_local_class(self):
        """Drop the '<locals>' prefix of classes defined in functions."""

        class Local:
            pass

        assert class_name(Local) == "Local"
        assert class_name(Local(), fully_qualified=True) == f"{__name__}.Local"


class TestTypeOrigin:
    @pytest.mark.parametrize(
        "type_key, expected",
        [
            pytest.param(int, int, id="class"),
            pytest.param(list[int], list, id="generic-alias"),
            pytest.param(dict[str, list[int]], dict, id="nested-generic"),
            pytest.param(typing.List[int], list, id="typing-list"),
            pytest.param(typing.Iterable[str], collections.abc.Iterable, id="typing-iterable"),
            pytest.param(typing.Any, None, id="any"),
            pytest.param(int | None, None, id="union"),
            pytest.param(typing.Optional[int], None, id="optional"),
            pytest.param(42, None, id="not-a-type"),
        ],
    )
    def test_type_origin(self, type_key, expected):
        assert type_origin(type_key) is expected


class TestIsUnnamed:
    @pytest.mark.parametrize(
        "cls, expected",
        [
            pytest.param(int, False, id="named"),
            pytest.param(type("<anon>", (), {}), True, id="angle"),
            pytest.param(type("", (), {}), True, id="empty"),
        ],
    )
    def test_is_unnamed(self, cls, expected):
        assert is_unnamed(cls) is expected
