#
# Plainfmt - Options Tests
#

# Standard library -----------------------------------------------------------------------------------------------------
import dataclasses

# Third party ----------------------------------------------------------------------------------------------------------
import pytest

# Local ----------------------------------------------------------------------------------------------------------------
from plainfmt.options import PlainTextOptions, configure, get_options, reset_options


# Tests ----------------------------------------------------------------------------------------------------------------

class TestPlainTextOptions:
    def test_defaults(self):
        opts = PlainTextOptions()
        assert opts.max_properties == 20
        assert opts.list_expansion_limit == 20
        assert opts.include_internal_members is False
        assert opts.fully_qualified is True
        assert opts.max_depth == 64
        assert opts.null_text == "<null>"

    def test_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            PlainTextOptions().max_properties = 3

    @pytest.mark.parametrize(
        "kwargs, error",
        [
            pytest.param({"max_properties": -1}, ValueError, id="negative-properties"),
            pytest.param({"list_expansion_limit": -5}, ValueError, id="negative-limit"),
            pytest.param({"max_depth": 0}, ValueError, id="zero-depth"),
            pytest.param({"max_properties": 2.0}, TypeError, id="float"),
            pytest.param({"list_expansion_limit": True}, TypeError, id="bool"),
            pytest.param({"max_depth": "8"}, TypeError, id="str"),
            pytest.param({"null_text": None}, TypeError, id="null-text"),
        ],
    )
    def test_invalid(self, kwargs, error):
        """Reject out-of-range and wrongly typed values."""
        with pytest.raises(error, match=r"PlainTextOptions\."):
            PlainTextOptions(**kwargs)

    def test_zero_limits_allowed(self):
        opts = PlainTextOptions(max_properties=0, list_expansion_limit=0)
        assert (opts.max_properties, opts.list_expansion_limit) == (0, 0)

    @pytest.mark.parametrize(
        "value, expected",
        [
            pytest.param(None, False, id="none"),
            pytest.param(0, False, id="zero"),
            pytest.param(1, True, id="one"),
            pytest.param("yes", True, id="str"),
        ],
    )
    def test_flags_cast_to_bool(self, value, expected):
        opts = PlainTextOptions(include_internal_members=value, fully_qualified=value)
        assert opts.include_internal_members is expected
        assert opts.fully_qualified is expected

    def test_merge(self):
        """Return a modified copy, leaving the original intact."""
        base = PlainTextOptions()
        merged = base.merge(max_properties=3, null_text="-")
        assert merged.max_properties == 3
        assert merged.null_text == "-"
        assert base.max_properties == 20

    def test_merge_validates(self):
        with pytest.raises(ValueError):
            PlainTextOptions().merge(max_depth=0)

    def test_merge_unknown_field(self):
        with pytest.raises(TypeError, match=r"Unknown PlainTextOptions field\(s\): bogus"):
            PlainTextOptions().merge(bogus=1)

    @pytest.mark.parametrize(
        "preset, expected",
        [
            pytest.param("compact", PlainTextOptions.compact(), id="compact"),
            pytest.param("debug", PlainTextOptions.debug(), id="debug"),
            pytest.param("default", PlainTextOptions(), id="default"),
        ],
    )
    def test_from_preset(self, preset, expected):
        assert PlainTextOptions.from_preset(preset) == expected

    def test_presets(self):
        compact = PlainTextOptions.compact()
        assert (compact.max_properties, compact.list_expansion_limit) == (5, 5)
        assert compact.fully_qualified is False
        debug = PlainTextOptions.debug()
        assert debug.include_internal_members is True
        assert debug.list_expansion_limit == 100

    def test_unknown_preset(self):
        with pytest.raises(ValueError, match=r"preset must be one of"):
            PlainTextOptions.from_preset("verbose")


class TestConfigure:
    def test_accumulates(self):
        """Successive calls merge into the current options."""
        configure(max_properties=3)
        configure(list_expansion_limit=4)
        opts = get_options()
        assert (opts.max_properties, opts.list_expansion_limit) == (3, 4)

    def test_preset_with_overrides(self):
        """Overrides apply on top of the preset, not the current options."""
        configure(max_depth=7)
        opts = configure("compact", max_properties=2)
        assert opts == PlainTextOptions.compact().merge(max_properties=2)
        assert opts.max_depth == 64

    def test_returns_current(self):
        opts = configure(null_text="nil")
        assert get_options() is opts

    def test_invalid_keeps_previous(self):
        """A rejected update leaves the options in effect unchanged."""
        before = configure(max_properties=9)
        with pytest.raises(ValueError):
            configure(max_properties=-1)
        assert get_options() is before

    def test_unknown_preset(self):
        with pytest.raises(ValueError):
            configure("verbose")

    def test_reset(self):
        configure("debug")
        assert reset_options() == PlainTextOptions()
        assert get_options() == PlainTextOptions()
