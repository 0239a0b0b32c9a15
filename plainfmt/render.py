"""
Recursive plain text rendering.

Walks a value tree depth-first and writes text to a sink as it goes. Each rendering
strategy has one render function with the signature ``render(value, sink, context)``;
composite values hand their members and elements back to the `RenderContext`, which
resolves a formatter for each nested value by its runtime type, stops at cycles and at
the depth limit, and contains any failure raised while rendering.
"""

# Standard library -----------------------------------------------------------------------------------------------------
import collections.abc as abc
import datetime
import logging
import re
import types

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Iterator, TextIO

# Local ----------------------------------------------------------------------------------------------------------------
from plainfmt.abc import CapturedError, MemberDescriptor, instance_members, read_member
from plainfmt.classify import RenderStrategy, classify_value, is_char_span
from plainfmt.options import PlainTextOptions, get_options
from plainfmt.utils import class_name, is_unnamed, type_origin

logger = logging.getLogger(__name__)

CYCLE_MARKER = "<cycle>"
MORE_MARKER = "..."
TRUNCATED_MEMBERS_MARKER = ".."

RenderFn = Callable[[Any, TextIO, "RenderContext"], None]

# repr of the form "<... at 0x1a2b>", which varies between runs
_ADDRESS_REPR = re.compile(r"<.* at 0x[0-9a-fA-F]+>", re.DOTALL)


# Classes --------------------------------------------------------------------------------------------------------------

@dataclass(frozen=True)
class Formatter:
    """
    A render function bound to the type it was resolved for.

    Attributes:
        type_key: The type designator this formatter was created for.
        strategy: Rendering strategy of the formatter.
        render: Callable writing a value to a sink: ``render(value, sink, context)``.
        composite: Whether rendered values may contain other values. Composite
            formatters take part in cycle detection and the depth limit.
        name: Short description for debugging.

    Examples:
        >>> import io
        >>> from plainfmt.formatters import get_preferred_formatter
        >>> sink = io.StringIO()
        >>> get_preferred_formatter(list).format([1, None, 3], sink)
        >>> sink.getvalue()
        '[ 1, <null>, 3 ]'
    """
    type_key: Any
    strategy: RenderStrategy
    render: RenderFn = field(compare=False, repr=False)
    composite: bool = False
    name: str = ""

    def accepts(self, value: Any) -> bool:
        """Check if value is an instance of the formatter's type."""
        if self.strategy is RenderStrategy.DYNAMIC:
            return False
        cls = type_origin(self.type_key)
        if cls is None:
            return False
        try:
            return isinstance(value, cls)
        except TypeError:
            return False

    def format(self, value: Any, sink: TextIO, context: "RenderContext | None" = None) -> None:
        """
        Write value to sink.

        Args:
            value: Value to render. Values this formatter does not accept are
                rendered with the preferred formatter of their runtime type.
            sink: Any object with a ``write(str)`` method.
            context: Active render context when called from another formatter;
                a fresh context is created for top-level calls.
        """
        ctx = context if context is not None else RenderContext.create()
        ctx.render_with(self, value, sink)


@dataclass
class RenderContext:
    """
    State of one top-level render call.

    Attributes:
        registry: Registry used to resolve formatters of nested values.
        options: Options snapshot taken when the render started.
        visited: Ids of the composite values on the active path.
        depth: Number of composite values on the active path.
    """
    registry: Any
    options: PlainTextOptions
    visited: set[int] = field(default_factory=set)
    depth: int = 0

    @classmethod
    def create(cls, registry: Any = None, options: PlainTextOptions | None = None) -> "RenderContext":
        """Create a context for a top-level render with the current global options."""
        if registry is None:
            # Local import: the registry module builds formatters from this one
            from plainfmt.registry import default_registry
            registry = default_registry
        return cls(registry=registry, options=options if options is not None else get_options())

    def render(self, value: Any, sink: TextIO) -> None:
        """Render a nested value with the preferred formatter of its runtime type."""
        if value is None:
            sink.write(self.options.null_text)
            return
        self.render_with(self.registry.get(type(value)), value, sink)

    def render_with(self, formatter: Formatter, value: Any, sink: TextIO) -> None:
        """Render a value with a given formatter, guarding against cycles, depth and failures."""
        if not isinstance(formatter, Formatter):
            raise TypeError(f"formatter must be a Formatter, got {class_name(formatter)}")

        if value is None:
            sink.write(self.options.null_text)
            return

        if not formatter.accepts(value):
            formatter = self.registry.get(type(value))
            if formatter.strategy is RenderStrategy.DYNAMIC:
                # A bare object() has nothing but its type
                sink.write(short_form(value, self.options))
                return

        if not formatter.composite:
            self._invoke(formatter, value, sink)
            return

        value_id = id(value)
        if value_id in self.visited:
            sink.write(CYCLE_MARKER)
            return
        if self.depth >= self.options.max_depth:
            sink.write(depth_marker(formatter, value, self.options))
            return

        self.visited.add(value_id)
        self.depth += 1
        try:
            self._invoke(formatter, value, sink)
        finally:
            self.depth -= 1
            self.visited.discard(value_id)

    def _invoke(self, formatter: Formatter, value: Any, sink: TextIO) -> None:
        try:
            formatter.render(value, sink, self)
        except Exception as e:
            logger.debug("formatter %s failed on %s: %s", formatter.name, class_name(value), type(e).__name__)
            render_exception(e, sink, self)


# Strategy Renderers ---------------------------------------------------------------------------------------------------

def render_null(value: Any, sink: TextIO, context: RenderContext) -> None:
    sink.write(context.options.null_text)


def render_scalar(value: Any, sink: TextIO, context: RenderContext) -> None:
    sink.write(_safe_str(value))


def render_special_scalar(value: Any, sink: TextIO, context: RenderContext) -> None:
    sink.write(special_scalar_text(value))


def render_enum(value: Any, sink: TextIO, context: RenderContext) -> None:
    name = getattr(value, "name", None)
    sink.write(name if isinstance(name, str) else _safe_str(value))


def render_sequence(value: Any, sink: TextIO, context: RenderContext) -> None:
    """
    Write an iterable as '[ e1, e2 ]', truncated at the list expansion limit.

    A countable value (Sized and not an Iterator) ends with '... (N more)' when
    truncated. Anything else ends with '... (more)' as soon as the limit is
    reached, and no further element is requested from it.
    """
    if classify_value(value) is RenderStrategy.SPECIAL_SCALAR:
        sink.write(special_scalar_text(value))
        return

    source = value.tolist() if isinstance(value, memoryview) else value

    def _write_element(item: Any) -> None:
        context.render(item, sink)

    _write_items(source, _write_element, sink, context, brackets=("[", "]"), total=_known_length(value))


def render_mapping(value: abc.Mapping, sink: TextIO, context: RenderContext) -> None:
    """Write a mapping as '{ k1: v1, k2: v2 }', truncated at the list expansion limit."""

    def _write_pair(pair: Any) -> None:
        key, val = pair
        context.render(key, sink)
        sink.write(": ")
        context.render(val, sink)

    _write_items(value.items(), _write_pair, sink, context, brackets=("{", "}"), total=_known_length(value))


def render_tuple(value: tuple, sink: TextIO, context: RenderContext) -> None:
    """Write a tuple as '( v1, v2 )', never truncated."""
    sink.write("(")
    for i, item in enumerate(value):
        sink.write(", " if i else " ")
        context.render(item, sink)
    sink.write(" )")


def render_dynamic_bag(value: Any, sink: TextIO, context: RenderContext) -> None:
    """Write the live attributes of a property bag as '{ name: value, ... }'."""
    try:
        attrs = vars(value)
    except TypeError:
        sink.write(short_form(value, context.options))
        return

    sink.write("{")
    for i, (key, val) in enumerate(list(attrs.items())):
        sink.write(", " if i else " ")
        sink.write(str(key))
        sink.write(": ")
        context.render(val, sink)
    sink.write(" }")


def render_exception(value: BaseException, sink: TextIO, context: RenderContext) -> None:
    """
    Write an exception as '{ TypeName: message }'.

    An explicit cause is appended as ', cause: { ... }'.
    """
    sink.write("{ ")
    sink.write(class_name(value, fully_qualified=context.options.fully_qualified))
    message = _safe_str(value)
    if message:
        sink.write(": ")
        sink.write(message)
    cause = getattr(value, "__cause__", None)
    if cause is not None:
        sink.write(", cause: ")
        context.render(cause, sink)
    sink.write(" }")


def render_captured_error(value: CapturedError, sink: TextIO, context: RenderContext) -> None:
    context.render(value.error, sink)


def make_struct_renderer(
    *,
    members: Iterable[MemberDescriptor] | None = None,
    include_internal: bool | None = None,
) -> RenderFn:
    """
    Create a render function for struct-like values.

    Args:
        members: Fixed member list to render; if None, members are introspected per value.
        include_internal: Explicit internal member visibility; if None, the
            ``include_internal_members`` option of the active render applies.

    Returns:
        A render function writing '{ TypeName: m1: v1, m2: v2 }'.
    """
    fixed = tuple(members) if members is not None else None

    def render_struct(value: Any, sink: TextIO, context: RenderContext) -> None:
        if fixed is not None:
            selected = list(fixed)
        else:
            internal = context.options.include_internal_members if include_internal is None else include_internal
            selected = instance_members(value, internal)
        _write_members(value, selected, sink, context)

    return render_struct


def render_dynamic(value: Any, sink: TextIO, context: RenderContext) -> None:
    context.render(value, sink)


render_struct = make_struct_renderer()

STRATEGY_RENDERERS: dict[RenderStrategy, RenderFn] = {
    RenderStrategy.NULL: render_null,
    RenderStrategy.SCALAR: render_scalar,
    RenderStrategy.SPECIAL_SCALAR: render_special_scalar,
    RenderStrategy.ENUM: render_enum,
    RenderStrategy.STRUCT: render_struct,
    RenderStrategy.SEQUENCE: render_sequence,
    RenderStrategy.MAPPING: render_mapping,
    RenderStrategy.TUPLE: render_tuple,
    RenderStrategy.DYNAMIC_BAG: render_dynamic_bag,
    RenderStrategy.EXCEPTION: render_exception,
    RenderStrategy.DYNAMIC: render_dynamic,
}


# Methods --------------------------------------------------------------------------------------------------------------

def short_form(value: Any, options: PlainTextOptions) -> str:
    """
    Return the canonical short text of a value.

    Uses str(value) when the class defines its own __str__ or __repr__, otherwise the
    type display name, so no memory address leaks into the output.
    """
    cls = type(value)
    if cls.__str__ is object.__str__ and cls.__repr__ is object.__repr__:
        return class_name(value, fully_qualified=options.fully_qualified)
    text = _safe_str(value)
    if _ADDRESS_REPR.fullmatch(text):
        # Default-style repr of a C type, e.g. '<unlocked _thread.lock object at 0x7f...>'
        return class_name(value, fully_qualified=options.fully_qualified)
    return text


def depth_marker(formatter: Formatter, value: Any, options: PlainTextOptions) -> str:
    """
    Return the bounded text of a composite value met at the depth limit.

    Containers collapse to empty brackets with the more marker, '[ ... ]', '{ ... }'
    or '( ... )'; other composites collapse to their type display name. Character
    spans keep their string form.
    """
    strategy = formatter.strategy
    if strategy is RenderStrategy.SEQUENCE:
        if classify_value(value) is RenderStrategy.SPECIAL_SCALAR:
            return special_scalar_text(value)
        return f"[ {MORE_MARKER} ]"
    if strategy in (RenderStrategy.MAPPING, RenderStrategy.DYNAMIC_BAG):
        return f"{{ {MORE_MARKER} }}"
    if strategy is RenderStrategy.TUPLE:
        return f"( {MORE_MARKER} )"
    return class_name(value, fully_qualified=options.fully_qualified)


def special_scalar_text(value: Any) -> str:
    """
    Return the canonical text of a value with a special short form.

    Examples:
        >>> special_scalar_text(datetime.timedelta(milliseconds=25))
        '0:00:00.025000'
        >>> special_scalar_text(str)
        'builtins.str'
        >>> special_scalar_text(b"raw")
        "b'raw'"
    """
    if isinstance(value, memoryview) and value.format == "c":
        return value.tobytes().decode("latin-1")
    if is_char_span(value):
        return value.tounicode()
    if isinstance(value, datetime.datetime):
        return value.isoformat(sep=" ")
    if isinstance(value, (datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, types.GenericAlias):
        return repr(value)
    if isinstance(value, type):
        return class_name(value, fully_qualified=True, fully_qualified_builtins=True)
    if isinstance(value, (bytes, bytearray)):
        return repr(value)
    if isinstance(value, types.ModuleType):
        return value.__name__
    if isinstance(value, (types.FunctionType, types.BuiltinFunctionType, types.MethodType)):
        module = getattr(value, "__module__", None)
        qualname = getattr(value, "__qualname__", None) or getattr(value, "__name__", "")
        return f"{module}.{qualname}" if module and module != "builtins" else qualname
    return _safe_str(value)


# Private Methods ------------------------------------------------------------------------------------------------------

def _write_members(value: Any, members: list[MemberDescriptor], sink: TextIO, context: RenderContext) -> None:
    """Write '{ TypeName: m1: v1, .. }' or the short form when no member is shown."""
    limit = context.options.max_properties
    shown = members[:limit]
    if not shown:
        sink.write(short_form(value, context.options))
        return

    sink.write("{ ")
    cls = type(value)
    if not is_unnamed(cls):
        sink.write(class_name(cls, fully_qualified=context.options.fully_qualified))
        sink.write(": ")
    for i, member in enumerate(shown):
        if i:
            sink.write(", ")
        sink.write(member.name)
        sink.write(": ")
        context.render(read_member(value, member), sink)
    if len(members) > limit:
        sink.write(f", {TRUNCATED_MEMBERS_MARKER}")
    sink.write(" }")


def _write_items(
    items: Iterable[Any],
    write_item: Callable[[Any], None],
    sink: TextIO,
    context: RenderContext,
    *,
    brackets: tuple[str, str],
    total: int | None,
) -> None:
    """Write up to the list expansion limit of items, then the truncation marker."""
    limit = context.options.list_expansion_limit
    open_ch, close_ch = brackets

    sink.write(open_ch)
    count = 0
    failed = False
    try:
        iterator: Iterator[Any] = iter(items)
        while count < limit:
            try:
                item = next(iterator)
            except StopIteration:
                break
            sink.write(", " if count else " ")
            write_item(item)
            count += 1
    except Exception as e:
        # Iteration itself failed, show the error as the last item
        logger.debug("iteration of %s failed: %s", class_name(items), type(e).__name__)
        sink.write(", " if count else " ")
        context.render(CapturedError(e), sink)
        failed = True

    if not failed:
        if total is not None:
            remaining = total - count
            if remaining > 0:
                sink.write(f" {MORE_MARKER} ({remaining} more)")
        elif count >= limit:
            sink.write(f" {MORE_MARKER} (more)")
    sink.write(f" {close_ch}")


def _known_length(value: Any) -> int | None:
    """Return len(value) for re-iterable sized values, None when the length is unknown."""
    if not isinstance(value, abc.Sized) or isinstance(value, abc.Iterator):
        return None
    try:
        return len(value)
    except Exception:
        return None


def _safe_str(obj: Any) -> str:
    """
    Defensive str() call - handle broken __str__ methods gracefully
    """
    try:
        return str(obj)
    except Exception as e:
        return f"<{class_name(obj)} (str failed: {type(e).__name__})>"
