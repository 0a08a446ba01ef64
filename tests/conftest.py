import pytest

from toolengine.tools import ToolRegistry


@pytest.fixture
def registry():
    """A fresh registry with the built-in catalog and no capabilities."""
    return ToolRegistry()
