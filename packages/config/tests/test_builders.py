"""Tests for configurable base classes."""

import pytest

from nestkit_config import ConfigurableBase, FactoryBase


class Widget(ConfigurableBase):
    def __init__(self, name, size=1):
        self.name = name
        self.size = size


class TestConfigurableBase:
    """Test building objects from config dictionaries."""

    def test_from_config_passes_keywords(self):
        """Test config keys become constructor arguments."""
        widget = Widget.from_config({"name": "a", "size": 3})
        assert isinstance(widget, Widget)
        assert (widget.name, widget.size) == ("a", 3)

    def test_from_config_rejects_unknown_keys(self):
        """Test unknown keys surface as a TypeError from the constructor."""
        with pytest.raises(TypeError):
            Widget.from_config({"name": "a", "color": "red"})


class TestFactoryBase:
    """Test the factory base class."""

    def test_create_not_implemented(self):
        """Test the base factory requires create to be overridden."""
        with pytest.raises(NotImplementedError):
            FactoryBase().create(backend="memory")
