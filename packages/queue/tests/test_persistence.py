"""Tests for the persistence backends and factory."""

import json

import pytest
import pytest_asyncio

from nestkit_common import ConfigurationError
from nestkit_queue import (
    FilePersistence,
    InMemoryPersistence,
    NestedQueue,
    PersistenceError,
    PersistenceFactory,
    SQLitePersistence,
    UnknownBackendError,
    create_persistence,
    persistence_backends,
)


class TestInMemoryPersistence:
    """Test the process memory backend."""

    @pytest.mark.asyncio
    async def test_save_load_clear(self):
        backend = InMemoryPersistence()
        assert await backend.load() is None

        await backend.save([{"id": 1}])
        assert await backend.load() == [{"id": 1}]
        assert backend.save_count == 1

        await backend.clear()
        assert await backend.load() is None

    @pytest.mark.asyncio
    async def test_snapshots_are_copies(self):
        backend = InMemoryPersistence()
        state = [{"id": 1, "tags": []}]
        await backend.save(state)

        state[0]["tags"].append("x")
        loaded = await backend.load()
        loaded.append({"id": 2})

        assert await backend.load() == [{"id": 1, "tags": []}]


class TestFilePersistence:
    """Test the JSON file backend."""

    @pytest.mark.asyncio
    async def test_save_and_load(self, tmp_path):
        backend = FilePersistence({"path": tmp_path / "queue.json"})
        assert await backend.load() is None

        await backend.save([{"id": 1, "title": "a"}])

        assert await backend.load() == [{"id": 1, "title": "a"}]
        content = json.loads((tmp_path / "queue.json").read_text())
        assert content == {"queueData": [{"id": 1, "title": "a"}]}

    @pytest.mark.asyncio
    async def test_keys_share_file(self, tmp_path):
        path = tmp_path / "shared.json"
        todos = FilePersistence({"path": path, "key": "todos"})
        notes = FilePersistence({"path": path, "key": "notes"})

        await todos.save([{"id": 1}])
        await notes.save([{"id": 2}])
        await todos.clear()

        assert await todos.load() is None
        assert await notes.load() == [{"id": 2}]

    @pytest.mark.asyncio
    async def test_creates_parent_directories(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "queue.json"
        backend = FilePersistence({"path": str(path)})

        await backend.save([])

        assert path.exists()
        assert [p.name for p in path.parent.iterdir()] == ["queue.json"]

    @pytest.mark.asyncio
    async def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")

        with pytest.raises(PersistenceError) as exc_info:
            await FilePersistence({"path": path}).load()

        assert exc_info.value.backend == "file"

    @pytest.mark.asyncio
    async def test_non_object_content(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[1, 2]")

        with pytest.raises(PersistenceError):
            await FilePersistence({"path": path}).load()

    def test_path_required(self):
        with pytest.raises(ConfigurationError):
            FilePersistence({})

    @pytest.mark.asyncio
    async def test_queue_round_trip(self, tmp_path):
        config = {"path": tmp_path / "todos.json"}
        queue = NestedQueue(persistence=FilePersistence(config))
        await queue.add({"id": 1, "title": "Persist me"})
        await queue.add({"id": 2, "title": "Me too"})

        reloaded = NestedQueue(persistence=FilePersistence(config), autoload=True)
        await reloaded.ready()

        assert reloaded.get_all() == queue.get_all()


@pytest_asyncio.fixture
async def sqlite_backend():
    backend = SQLitePersistence()
    yield backend
    await backend.close()


class TestSQLitePersistence:
    """Test the SQLite backend."""

    @pytest.mark.asyncio
    async def test_save_load_clear(self, sqlite_backend):
        assert await sqlite_backend.load() is None

        await sqlite_backend.save([{"id": 1}])
        await sqlite_backend.save([{"id": 1}, {"id": 2}])
        assert await sqlite_backend.load() == [{"id": 1}, {"id": 2}]

        await sqlite_backend.clear()
        assert await sqlite_backend.load() is None

    @pytest.mark.asyncio
    async def test_durable_across_connections(self, tmp_path):
        config = {"path": str(tmp_path / "queue.db"), "table": "todos", "key": "inbox"}
        writer = SQLitePersistence(config)
        await writer.save([{"id": 1, "title": "stored"}])
        await writer.close()

        reader = SQLitePersistence(config)
        try:
            assert await reader.load() == [{"id": 1, "title": "stored"}]
        finally:
            await reader.close()

    @pytest.mark.asyncio
    async def test_clear_only_own_key(self, tmp_path):
        path = str(tmp_path / "queue.db")
        first = SQLitePersistence({"path": path, "key": "first"})
        second = SQLitePersistence({"path": path, "key": "second"})
        try:
            await first.save([1])
            await second.save([2])
            await first.clear()

            assert await first.load() is None
            assert await second.load() == [2]
        finally:
            await first.close()
            await second.close()

    @pytest.mark.asyncio
    async def test_invalid_json_row(self, sqlite_backend):
        await sqlite_backend.connect()
        await sqlite_backend.db.execute(
            "INSERT INTO queue_state (key, data) VALUES (?, ?)", ("queueData", "{oops")
        )
        await sqlite_backend.db.commit()

        with pytest.raises(PersistenceError):
            await sqlite_backend.load()

    @pytest.mark.asyncio
    async def test_connect_returns_connection(self, sqlite_backend):
        db = await sqlite_backend.connect()

        assert db is sqlite_backend.db
        assert await sqlite_backend.connect() is db

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, sqlite_backend):
        await sqlite_backend.connect()
        await sqlite_backend.close()
        await sqlite_backend.close()
        assert sqlite_backend.db is None

    def test_invalid_table_name(self):
        with pytest.raises(ConfigurationError):
            SQLitePersistence({"table": "todos; DROP TABLE x"})


class TestPersistenceFactory:
    """Test creating backends by name."""

    def test_registered_backends(self):
        assert persistence_backends.list_keys() == ["memory", "file", "sqlite"]

    def test_default_backend(self):
        assert isinstance(create_persistence(), InMemoryPersistence)

    def test_create_with_options(self, tmp_path):
        backend = create_persistence(backend="file", path=tmp_path / "q.json", key="todos")

        assert isinstance(backend, FilePersistence)
        assert backend.key == "todos"
        assert backend.config == {"path": tmp_path / "q.json", "key": "todos"}

    def test_backend_name_case_insensitive(self):
        assert isinstance(PersistenceFactory().create(backend="SQLite"), SQLitePersistence)

    def test_unknown_backend(self):
        with pytest.raises(UnknownBackendError) as exc_info:
            create_persistence(backend="redis")

        assert exc_info.value.context["available"] == ["file", "memory", "sqlite"]
        assert isinstance(exc_info.value, ConfigurationError)

    def test_backend_info(self):
        assert PersistenceFactory().get_backend_info("file")["durable"] is True
