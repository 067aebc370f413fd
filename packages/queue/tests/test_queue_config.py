"""Tests for building queues from configuration."""

import os

import pytest
import yaml

from nestkit_common import ConfigurationError
from nestkit_queue import (
    EnhancedNestedQueue,
    FilePersistence,
    InMemoryPersistence,
    LoggingMiddleware,
    NestedQueue,
    QueueOptions,
    SQLitePersistence,
    UnknownBackendError,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove stray overrides from the environment."""
    for name in list(os.environ):
        if name.startswith("NESTKIT_"):
            monkeypatch.delenv(name)


class TestFromConfig:
    """Test NestedQueue.from_config and EnhancedNestedQueue.from_config."""

    def test_mapping_config(self):
        queue = EnhancedNestedQueue.from_config({
            "persistence": {"backend": "memory"},
            "buffer": {"auto_save": False, "buffer_size": 5, "flush_interval": 250},
        })

        assert isinstance(queue.persistence, InMemoryPersistence)
        options = queue.get_buffer().options
        assert (options.auto_save, options.buffer_size, options.flush_interval) == (False, 5, 250)
        assert queue.autoload is False

    def test_empty_config(self):
        queue = NestedQueue.from_config({}, initial_data=[{"id": 1}])

        assert queue.persistence is None
        assert queue.get_all() == [{"id": 1}]

    def test_middleware_argument(self):
        logging_middleware = LoggingMiddleware()
        queue = NestedQueue.from_config({}, middleware=[logging_middleware])

        assert queue.middleware == [logging_middleware]

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "nestkit.yaml"
        path.write_text(yaml.safe_dump({
            "queue": {"autoload": True},
            "persistence": {"backend": "sqlite", "path": str(tmp_path / "q.db")},
            "buffer": {"auto_save": False},
        }))

        queue = EnhancedNestedQueue.from_config(path)

        assert isinstance(queue.persistence, SQLitePersistence)
        assert queue.persistence.db_path == str(tmp_path / "q.db")
        assert queue.autoload is True

    def test_environment_overrides(self, tmp_path, monkeypatch):
        monkeypatch.setenv("NESTKIT_BUFFER__BUFFER_SIZE", "7")
        monkeypatch.setenv("NESTKIT_BUFFER__AUTO_SAVE", "false")
        monkeypatch.setenv("NESTKIT_PERSISTENCE__BACKEND", "file")
        monkeypatch.setenv("NESTKIT_PERSISTENCE__PATH", str(tmp_path / "q.json"))

        queue = EnhancedNestedQueue.from_config({"buffer": {"buffer_size": 50}})

        assert queue.get_buffer().options.buffer_size == 7
        assert queue.get_buffer().options.auto_save is False
        assert isinstance(queue.persistence, FilePersistence)

    def test_env_substitution(self, tmp_path, monkeypatch):
        monkeypatch.setenv("QUEUE_DATA_DIR", str(tmp_path))
        queue = NestedQueue.from_config({
            "persistence": {"backend": "file", "path": "${QUEUE_DATA_DIR}/todos.json"},
        })

        assert queue.persistence.filepath == tmp_path / "todos.json"

    def test_unknown_queue_option(self):
        with pytest.raises(ConfigurationError, match="Unknown QueueOptions keys"):
            NestedQueue.from_config({"queue": {"autolaod": True}})

    def test_unknown_buffer_option(self):
        with pytest.raises(ConfigurationError, match="Unknown BufferOptions keys"):
            EnhancedNestedQueue.from_config({"buffer": {"size": 10}})

    def test_unknown_backend(self):
        with pytest.raises(UnknownBackendError):
            NestedQueue.from_config({"persistence": {"backend": "redis"}})

    @pytest.mark.asyncio
    async def test_autoload_from_config(self, tmp_path):
        config = {
            "queue": {"autoload": True},
            "persistence": {"backend": "file", "path": str(tmp_path / "todos.json")},
            "buffer": {"auto_save": False},
        }
        first = EnhancedNestedQueue.from_config(config)
        await first.add({"id": 0, "title": "persisted"})

        second = EnhancedNestedQueue.from_config(config)
        await second.ready()

        assert second.get_all() == [{"id": 0, "title": "persisted"}]


class TestQueueOptions:
    """Test queue option construction."""

    def test_defaults(self):
        options = QueueOptions()
        assert options.persistence is None
        assert options.middleware == []
        assert options.autoload is False

    def test_from_config(self):
        options = QueueOptions.from_config({"autoload": True})
        assert options.autoload is True
