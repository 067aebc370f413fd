"""Pytest configuration and fixtures for queue package tests."""

import pytest

from nestkit_queue import InMemoryPersistence, PersistenceAdapter


class FailingPersistence(PersistenceAdapter):
    """Backend whose every operation raises."""

    async def save(self, data):
        raise OSError("disk full")

    async def load(self):
        raise OSError("storage unavailable")

    async def clear(self):
        raise OSError("storage unavailable")


@pytest.fixture
def persistence():
    """In-memory persistence that counts saves."""
    return InMemoryPersistence()


@pytest.fixture
def failing_persistence():
    return FailingPersistence()


@pytest.fixture
def company_data():
    """Departments with nested employee lists."""
    return [
        {
            "id": 0,
            "name": "Engineering",
            "employees": [{"id": 10, "name": "Grace"}, {"id": 11, "name": "Ada"}],
        },
        {
            "id": 1,
            "name": "Sales",
            "employees": [{"id": 20, "name": "Bob"}],
        },
    ]
