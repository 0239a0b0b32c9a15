"""
Process-wide configuration of the plain text formatters.

A single immutable `PlainTextOptions` instance holds the current settings. Callers adjust it
with `configure()`, which swaps in a new instance; each top-level render captures whatever
instance is current when it starts, so a render never observes a half-applied change.
"""

# Standard library -----------------------------------------------------------------------------------------------------
import logging
import threading

from dataclasses import dataclass, fields, replace
from typing import Any, Literal, Self

# Local ----------------------------------------------------------------------------------------------------------------
from plainfmt.utils import class_name

logger = logging.getLogger(__name__)

Preset = Literal["compact", "debug", "default"]

# Classes --------------------------------------------------------------------------------------------------------------


@dataclass(frozen=True)
class PlainTextOptions:
    """
    Settings that control plain text rendering.

    Attributes:
        max_properties: Maximum members shown for a struct-like object before the '..' marker.
            Zero renders the object's short form instead of a member list.
        list_expansion_limit: Maximum elements shown for sequences and mappings before
            the '... (N more)' or '... (more)' marker.
        include_internal_members: Include non-public ('_name') fields and properties of
            struct-like objects.
        fully_qualified: Prefix struct type names with their module (builtins stay bare).
        max_depth: Nesting depth at which composite values stop expanding.
        null_text: Text written for None.

    Notes:
        - Integer limits must be non-negative ints, max_depth must be >= 1
        - Flags are cast to bool, so None and 0 both mean False
        - Instances are immutable, use merge() to derive a modified copy

    Examples:
        >>> PlainTextOptions().max_properties
        20
        >>> PlainTextOptions.compact().merge(include_internal_members=True).list_expansion_limit
        5
    """

    max_properties: int = 20
    list_expansion_limit: int = 20
    include_internal_members: bool = False
    fully_qualified: bool = True
    max_depth: int = 64
    null_text: str = "<null>"

    def __post_init__(self) -> None:
        """Validate limits and cast flags to bool."""
        for name in ("max_properties", "list_expansion_limit", "max_depth"):
            val = getattr(self, name)
            if isinstance(val, bool) or not isinstance(val, int):
                raise TypeError(f"PlainTextOptions.{name} must be an int, got {class_name(val)}")
            if val < 0:
                raise ValueError(f"PlainTextOptions.{name} must be >=0, but got {val!r}")
        if self.max_depth < 1:
            raise ValueError(f"PlainTextOptions.max_depth must be >=1, but got {self.max_depth!r}")

        if not isinstance(self.null_text, str):
            raise TypeError(f"PlainTextOptions.null_text must be a str, got {class_name(self.null_text)}")

        # Use object.__setattr__ to bypass frozen restriction
        object.__setattr__(self, "include_internal_members", bool(self.include_internal_members))
        object.__setattr__(self, "fully_qualified", bool(self.fully_qualified))

    # Class Methods ------------------------------------

    @classmethod
    def compact(cls) -> Self:
        """Short one-liners: few members and elements per level."""
        return cls(max_properties=5, list_expansion_limit=5, fully_qualified=False)

    @classmethod
    def debug(cls) -> Self:
        """Verbose inspection: internal members and generous limits."""
        return cls(max_properties=100, list_expansion_limit=100, include_internal_members=True)

    @classmethod
    def from_preset(cls, preset: Preset) -> Self:
        """Build options from a preset name."""
        presets = {
            "compact": cls.compact,
            "debug": cls.debug,
            "default": cls,
        }
        if preset not in presets:
            raise ValueError(f"preset must be one of {sorted(presets)}, got {preset!r}")
        return presets[preset]()

    # Methods ------------------------------------------

    def merge(self, **kwargs: Any) -> Self:
        """
        Return a copy with the given fields replaced.

        Raises:
            TypeError: If a keyword is not a PlainTextOptions field.
        """
        known = {f.name for f in fields(self)}
        unknown = sorted(set(kwargs) - known)
        if unknown:
            raise TypeError(f"Unknown PlainTextOptions field(s): {', '.join(unknown)}")
        return replace(self, **kwargs)


# Module State ---------------------------------------------------------------------------------------------------------

_options: PlainTextOptions = PlainTextOptions()
_options_lock = threading.Lock()


# Methods --------------------------------------------------------------------------------------------------------------


def configure(preset: Preset | None = None, **overrides: Any) -> PlainTextOptions:
    """
    Update the process-wide options and return the new snapshot.

    With a preset, the overrides apply on top of that preset; without one they merge
    into the current options, so successive calls accumulate.

    Args:
        preset: Optional preset name - "compact", "debug" or "default".
        **overrides: PlainTextOptions fields to replace.

    Returns:
        The options now in effect.

    Examples:
        >>> configure(list_expansion_limit=4).list_expansion_limit
        4
        >>> configure("compact", max_properties=2).max_properties
        2
    """
    global _options
    with _options_lock:
        base = PlainTextOptions.from_preset(preset) if preset is not None else _options
        _options = base.merge(**overrides)
        logger.debug("plain text options set to %r", _options)
        return _options


def get_options() -> PlainTextOptions:
    """Return the current process-wide options snapshot."""
    return _options


def reset_options() -> PlainTextOptions:
    """Restore the default options and return them."""
    return configure("default")
