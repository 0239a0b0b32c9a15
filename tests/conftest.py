#
# Pytest Fixtures
#

# Standard library -----------------------------------------------------------------------------------------------------
import io

# Third-party ----------------------------------------------------------------------------------------------------------
import pytest

# Local ----------------------------------------------------------------------------------------------------------------
from plainfmt.abc import clear_member_cache
from plainfmt.formatters import register_dynamic_bag, unregister_dynamic_bag
from plainfmt.options import reset_options
from plainfmt.registry import default_registry


# Fixtures -------------------------------------------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def clean_state():
    """Restore default options, formatters and member caches around each test."""
    reset_options()
    default_registry.clear()
    clear_member_cache()
    yield
    reset_options()
    default_registry.clear()
    clear_member_cache()


@pytest.fixture
def sink() -> io.StringIO:
    """Fresh in-memory text sink."""
    return io.StringIO()


@pytest.fixture
def dynamic_bag():
    """Register classes as dynamic property bags for the duration of a test."""
    registered = []

    def _register(cls: type) -> type:
        register_dynamic_bag(cls)
        registered.append(cls)
        return cls

    yield _register
    for cls in registered:
        unregister_dynamic_bag(cls)
