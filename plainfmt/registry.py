"""
Preferred formatter registry.

Resolves a type designator to the Formatter used for its values and caches the result.
Custom per-type render functions take precedence over the built-in strategies and are
inherited by subclasses through the MRO.
"""

# Standard library -----------------------------------------------------------------------------------------------------
import functools
import keyword
import logging
import operator
import re
import threading
import typing

from typing import Any

# Local ----------------------------------------------------------------------------------------------------------------
from plainfmt.abc import CapturedError, MemberDescriptor
from plainfmt.classify import RenderStrategy, classify
from plainfmt.render import (
    Formatter,
    RenderFn,
    STRATEGY_RENDERERS,
    make_struct_renderer,
    render_captured_error,
)
from plainfmt.utils import class_name, type_origin

logger = logging.getLogger(__name__)

# repr() of a single-attribute getter, e.g. "operator.attrgetter('name')"
_ATTRGETTER_REPR = re.compile(r"operator\.attrgetter\('([^']*)'\)")

_BUILTIN_HANDLERS: dict[type, RenderFn] = {
    CapturedError: render_captured_error,
}


# Classes --------------------------------------------------------------------------------------------------------------

class FormatterRegistry:
    """
    Cache of preferred formatters, keyed by type designator.

    Lookups are plain dict reads. A cache miss builds the formatter under a lock and
    re-checks the cache, so concurrent first lookups of a type store one entry.

    Examples:
        >>> registry = FormatterRegistry()
        >>> registry.get(int).strategy
        <RenderStrategy.SCALAR: 'scalar'>
        >>> registry.get(int) is registry.get(int)
        True
    """

    def __init__(self) -> None:
        self._cache: dict[Any, Formatter] = {}
        self._custom: dict[type, RenderFn] = dict(_BUILTIN_HANDLERS)
        self._lock = threading.Lock()

    def get(self, type_key: Any, *, force: bool = False) -> Formatter:
        """
        Return the preferred formatter for a type designator.

        Args:
            type_key: A class, an ABC, a parametrized generic, ``typing.Any`` or a union.
            force: Rebuild the formatter even if one is cached.

        Returns:
            The cached or newly built Formatter.

        Raises:
            TypeError: If type_key is not a type designator.
        """
        if not force:
            try:
                return self._cache[type_key]
            except KeyError:
                pass
            except TypeError:
                raise TypeError(f"type_key must be hashable, got {class_name(type_key)}") from None

        _check_type_key(type_key)
        with self._lock:
            if force or type_key not in self._cache:
                self._cache[type_key] = self._resolve(type_key)
                logger.debug("resolved %r to %s", type_key, self._cache[type_key].name)
            return self._cache[type_key]

    def register(self, cls: type, render: RenderFn) -> None:
        """
        Install a custom render function for cls and its subclasses.

        Args:
            cls: The class to render with the custom function.
            render: Callable ``render(value, sink, context)``.

        Raises:
            TypeError: If cls is not a class or render is not callable.
        """
        if not isinstance(cls, type):
            raise TypeError(f"cls must be a type, got {class_name(cls)}")
        if not callable(render):
            raise TypeError(f"render must be callable, got {class_name(render)}")
        with self._lock:
            self._custom[cls] = render
            self._cache.clear()
        logger.debug("registered custom formatter for %s", class_name(cls, fully_qualified=True))

    def unregister(self, cls: type) -> None:
        """Remove the custom render function of cls, if any."""
        if not isinstance(cls, type):
            raise TypeError(f"cls must be a type, got {class_name(cls)}")
        with self._lock:
            self._custom.pop(cls, None)
            self._cache.clear()

    def clear(self) -> None:
        """Drop cached formatters and custom registrations."""
        with self._lock:
            self._custom = dict(_BUILTIN_HANDLERS)
            self._cache.clear()

    def invalidate(self) -> None:
        """Drop cached formatters, keeping custom registrations."""
        with self._lock:
            self._cache.clear()

    def custom_handler(self, cls: type) -> RenderFn | None:
        """
        Get the custom render function for cls (exact or via inheritance).

        Prefers an exact registration, then the nearest registered ancestor in the MRO.
        """
        custom = self._custom
        if cls in custom:
            return custom[cls]
        for base in cls.__mro__[1:]:
            if base in custom:
                return custom[base]
        return None

    def _resolve(self, type_key: Any) -> Formatter:
        cls = type_origin(type_key)
        handler = self.custom_handler(cls) if cls is not None else None
        if handler is not None:
            strategy = classify(cls)
            if strategy is RenderStrategy.DYNAMIC:
                strategy = RenderStrategy.STRUCT
            return Formatter(type_key, strategy, handler, composite=True, name=f"custom({_key_name(type_key)})")

        strategy = classify(type_key)
        return Formatter(
            type_key,
            strategy,
            STRATEGY_RENDERERS[strategy],
            composite=strategy.is_composite,
            name=f"{strategy}({_key_name(type_key)})",
        )

    def create_for_members(self, cls: type, *selectors: str | operator.attrgetter) -> Formatter:
        """
        Create a struct formatter restricted to the given members, in the given order.

        Args:
            cls: The class the formatter renders.
            *selectors: Member names, or ``operator.attrgetter`` objects over a single name.

        Returns:
            A STRUCT Formatter writing '{ TypeName: m1: v1, m2: v2 }'.

        Raises:
            TypeError: If cls is not a class or a selector is neither a str nor an attrgetter.
            ValueError: If no selector is given or a selector is not a plain member name.

        Examples:
            >>> from dataclasses import dataclass
            >>> @dataclass
            ... class Point:
            ...     x: int
            ...     y: int
            >>> FormatterRegistry().create_for_members(Point, "y").strategy
            <RenderStrategy.STRUCT: 'struct'>
        """
        if not isinstance(cls, type):
            raise TypeError(f"cls must be a type, got {class_name(cls)}")
        if not selectors:
            raise ValueError("at least one member selector is required")

        members = []
        for selector in selectors:
            name = _selector_name(selector)
            computed = isinstance(getattr(cls, name, None), (property, functools.cached_property))
            kind = "property" if computed else "field"
            accessor = selector if isinstance(selector, operator.attrgetter) else operator.attrgetter(name)
            members.append(MemberDescriptor(name=name, accessor=accessor, kind=kind,
                                            is_public=not name.startswith("_")))

        names = ", ".join(m.name for m in members)
        return Formatter(
            cls,
            RenderStrategy.STRUCT,
            make_struct_renderer(members=members),
            composite=True,
            name=f"members({_key_name(cls)}: {names})",
        )

    def create_for_any_object(self, cls: type = object, include_internal: bool = False) -> Formatter:
        """
        Create a struct formatter that expands all members of any object.

        Unlike the preferred formatter, internal members are controlled by the explicit
        include_internal flag rather than the configured include_internal_members.

        Raises:
            TypeError: If cls is not a class.
        """
        if not isinstance(cls, type):
            raise TypeError(f"cls must be a type, got {class_name(cls)}")
        return Formatter(
            cls,
            RenderStrategy.STRUCT,
            make_struct_renderer(include_internal=bool(include_internal)),
            composite=True,
            name=f"any({_key_name(cls)}, internal={bool(include_internal)})",
        )


# Private Methods ------------------------------------------------------------------------------------------------------

def _check_type_key(type_key: Any) -> None:
    if isinstance(type_key, type) or type_key is Any or typing.get_origin(type_key) is not None:
        return
    raise TypeError(f"type_key must be a type or generic alias, got {type_key!r}")


def _key_name(type_key: Any) -> str:
    if isinstance(type_key, type) and type_origin(type_key) is type_key:
        return class_name(type_key, fully_qualified=True)
    return repr(type_key)


def _selector_name(selector: Any) -> str:
    """Return the member name of a selector, validating its form."""
    if isinstance(selector, operator.attrgetter):
        match = _ATTRGETTER_REPR.fullmatch(repr(selector))
        if match is None:
            raise ValueError(f"selector must read a single member, got {selector!r}")
        name = match.group(1)
    elif isinstance(selector, str):
        name = selector
    else:
        raise TypeError(f"selector must be a str or operator.attrgetter, got {class_name(selector)}: {selector!r}")

    if not name.isidentifier() or keyword.iskeyword(name):
        raise ValueError(f"selector must be a member name, got {name!r}")
    return name


default_registry = FormatterRegistry()
