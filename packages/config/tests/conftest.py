"""Pytest configuration and fixtures for config package tests."""

import pytest


@pytest.fixture
def sample_config_dict():
    """Sample configuration dictionary."""
    return {
        "queue": {"autoload": True},
        "persistence": {"backend": "file", "path": "/tmp/todos.json"},
        "buffer": {"buffer_size": 50, "flush_interval": 2000},
    }


@pytest.fixture
def env_vars(monkeypatch):
    """Set environment variables for the duration of a test."""

    def _set(**variables):
        for name, value in variables.items():
            monkeypatch.setenv(name, value)

    return _set
