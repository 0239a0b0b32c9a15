"""
Plainfmt utilities shared across the package.

Contains functions used by multiple modules to avoid circular imports.
"""

# Standard library -----------------------------------------------------------------------------------------------------
import types
import typing
from typing import Any


# Methods --------------------------------------------------------------------------------------------------------------


def class_name(
    obj: Any,
    fully_qualified: bool = False,
    fully_qualified_builtins: bool = False,
) -> str:
    """
    Get the class name of an object or a class.

    Returns class name whether given an instance or the class itself.
    For example, both `class_name(10)` and `class_name(int)` return 'int'.
    Nested classes keep their dotted qualified name.

    Parameters:
        obj (Any): An object or a class.
        fully_qualified (bool): If true, returns the fully qualified name for user objects or classes.
        fully_qualified_builtins (bool): If true, returns the fully qualified name for builtin objects or classes.

    Returns:
        str: The class name.

    Examples:
        Basic usage with a builtin instance:
            >>> class_name(10)
            'int'

        Fully qualified name for a builtin (when enabled):
            >>> class_name(10, fully_qualified_builtins=True)
            'builtins.int'

        Nested user-defined class:
            >>> class Outer:
            ...     class Inner: ...
            >>> class_name(Outer.Inner())
            'Outer.Inner'
    """
    cls = obj if isinstance(obj, type) else type(obj)

    name = getattr(cls, "__qualname__", None) or getattr(cls, "__name__", "")
    module = getattr(cls, "__module__", None)

    # Locals of functions show up as 'func.<locals>.Cls', keep the readable tail
    if "<locals>." in name:
        name = name.rsplit("<locals>.", 1)[-1]

    if not module:
        return name
    if module == "builtins":
        return f"{module}.{name}" if fully_qualified_builtins else name
    return f"{module}.{name}" if fully_qualified else name


def type_origin(type_key: Any) -> type | None:
    """
    Return the runtime class behind a type designator, or None if there is no single class.

    Plain classes are returned as is; parametrized generics (``list[int]``,
    ``typing.Iterable[str]``) resolve to their origin class. ``typing.Any``,
    unions and other special forms have no single origin and give None.

    Examples:
        >>> type_origin(list[int])
        <class 'list'>
        >>> type_origin(int | None) is None
        True
    """
    if type_key is typing.Any:
        return None  # A class since Python 3.11
    if isinstance(type_key, type) and not isinstance(type_key, types.GenericAlias):
        return type_key

    origin = typing.get_origin(type_key)
    if isinstance(origin, type) and origin is not types.UnionType:
        return origin
    return None


def is_unnamed(cls: type) -> bool:
    """Check whether a class is anonymous: empty name or a synthetic '<...>' name."""
    name = getattr(cls, "__name__", "")
    return not name or name.startswith("<")
