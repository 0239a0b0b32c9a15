"""
Plain text formatting of arbitrary values.

Type-driven rendering of any value into deterministic, human-readable text with
configurable truncation. Struct-like objects expand into their members, sequences and
mappings are cut at the expansion limit (infinite iterators included), cycles are
marked instead of followed, and a member that raises shows its error in place.

Examples:
    >>> to_display_string([1, None, 3])
    '[ 1, <null>, 3 ]'
    >>> to_display_string((123, "Hello", [1, 2, 3]))
    '( 123, Hello, [ 1, 2, 3 ] )'
"""

# Standard library -----------------------------------------------------------------------------------------------------
import io
import operator

from typing import Any, TextIO

# Local ----------------------------------------------------------------------------------------------------------------
from plainfmt import classify as _classify
from plainfmt.classify import RenderStrategy
from plainfmt.options import PlainTextOptions, configure, get_options, reset_options
from plainfmt.registry import default_registry
from plainfmt.render import Formatter, RenderContext, RenderFn
from plainfmt.utils import class_name

__all__ = [
    "Formatter",
    "PlainTextOptions",
    "RenderContext",
    "RenderStrategy",
    "configure",
    "create_for_any_object",
    "create_for_members",
    "format_to",
    "get_options",
    "get_preferred_formatter",
    "register_dynamic_bag",
    "register_formatter",
    "reset_options",
    "to_display_string",
    "unregister_dynamic_bag",
    "unregister_formatter",
]


# Methods --------------------------------------------------------------------------------------------------------------

def get_preferred_formatter(type_key: Any) -> Formatter:
    """
    Return the preferred formatter for a type designator.

    The formatter is resolved once per type and cached; later calls return the same object
    until a custom formatter is registered or unregistered.

    Args:
        type_key: A class, an ABC, a parametrized generic like ``list[int]``, or ``typing.Any``.

    Raises:
        TypeError: If type_key is not a type designator.

    Examples:
        >>> get_preferred_formatter(int) is get_preferred_formatter(int)
        True
    """
    return default_registry.get(type_key)


def format_to(sink: TextIO, value: Any, formatter: Formatter | None = None) -> None:
    """
    Render a value into a text sink.

    Args:
        sink: Any object with a ``write(str)`` method.
        value: The value to render.
        formatter: Formatter to use; defaults to the preferred formatter of type(value).

    Raises:
        TypeError: If formatter is given and is not a Formatter.
    """
    if formatter is None:
        formatter = default_registry.get(type(value))
    elif not isinstance(formatter, Formatter):
        raise TypeError(f"formatter must be a Formatter, got {class_name(formatter)}")
    formatter.format(value, sink, RenderContext.create(default_registry))


def to_display_string(value: Any, formatter: Formatter | None = None) -> str:
    """
    Render a value to a string.

    Args:
        value: The value to render.
        formatter: Formatter to use; defaults to the preferred formatter of type(value).

    Returns:
        The plain text representation.

    Examples:
        >>> to_display_string(None)
        '<null>'
        >>> to_display_string(range(30))
        '[ 0, 1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 11, 12, 13, 14, 15, 16, 17, 18, 19 ... (10 more) ]'
    """
    sink = io.StringIO()
    format_to(sink, value, formatter)
    return sink.getvalue()


def create_for_members(cls: type, *selectors: str | operator.attrgetter) -> Formatter:
    """
    Create a formatter for cls that shows only the selected members, in the given order.

    Args:
        cls: The class to format.
        *selectors: Member names like ``"name"``, or ``operator.attrgetter("name")``.

    Raises:
        TypeError: If a selector is neither a str nor an attrgetter.
        ValueError: If no selector is given, or a selector is an expression rather than
            a member name; the message contains the selector.

    Examples:
        >>> class Job:
        ...     def __init__(self):
        ...         self.name, self.state, self.pid = "build", "done", 42
        >>> configure(fully_qualified=False).fully_qualified
        False
        >>> to_display_string(Job(), create_for_members(Job, "state", "name"))
        '{ Job: state: done, name: build }'
    """
    return default_registry.create_for_members(cls, *selectors)


def create_for_any_object(cls: type = object, include_internal: bool = False) -> Formatter:
    """
    Create a formatter that expands all members of objects of cls.

    Args:
        cls: Class the formatter is for; defaults to object (any value).
        include_internal: Include members whose names start with '_', regardless of
            the configured include_internal_members.
    """
    return default_registry.create_for_any_object(cls, include_internal)


def register_formatter(cls: type, render: RenderFn) -> None:
    """
    Use a custom render function for cls and its subclasses.

    The function is called as ``render(value, sink, context)`` and may call
    ``context.render(nested, sink)`` to render nested values.

    Raises:
        TypeError: If cls is not a class or render is not callable.
    """
    default_registry.register(cls, render)


def unregister_formatter(cls: type) -> None:
    """Remove a custom render function installed with register_formatter()."""
    default_registry.unregister(cls)


def register_dynamic_bag(cls: type) -> None:
    """
    Render instances of cls (and subclasses) from their live attributes as '{ k: v }'.

    Raises:
        TypeError: If cls is not a class.
    """
    _classify.register_dynamic_bag(cls)
    default_registry.invalidate()


def unregister_dynamic_bag(cls: type) -> None:
    """Undo register_dynamic_bag()."""
    _classify.unregister_dynamic_bag(cls)
    default_registry.invalidate()
