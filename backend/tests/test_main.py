"""Tests for application startup and shutdown."""

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from valta import main
from valta.exceptions import StorageError

BLOBS = {
    "teams.csv": b"name,team,email\nVlad Alexa,Dev,vlad@example.com\n",
    "activities.csv": (
        b"id,name,description,memberName,priority,status,outcome,createdAt,deadline\n"
        b",Write report,,Vlad Alexa,p1,Running,,2025-12-04T20:00:00Z,2025-12-05T00:00:00Z\n"
    ),
}


@pytest.fixture
def bucket(monkeypatch):
    bucket = MagicMock()
    bucket.download = AsyncMock(side_effect=lambda path: BLOBS[path])
    client = MagicMock()
    client.storage.from_.return_value = bucket
    monkeypatch.setattr(main, "create_storage_client", AsyncMock(return_value=client))
    return bucket


@pytest.fixture
def setup_logging(monkeypatch):
    setup = MagicMock(return_value=Path("valta.log"))
    monkeypatch.setattr(main, "configure_logging", setup)
    return setup


@pytest.mark.asyncio
async def test_lifespan_loads_the_shared_store(bucket, setup_logging, test_settings):
    async with main.lifespan(test_settings) as coordinator:
        assert [team.name for team in coordinator.teams] == ["Dev"]
        assert [a.name for a in coordinator.activities] == ["Write report"]

    await asyncio.sleep(0)
    setup_logging.assert_called_once_with(test_settings)
    bucket.download.assert_any_await("teams.csv")


@pytest.mark.asyncio
async def test_lifespan_survives_failed_initial_load(bucket, setup_logging, test_settings):
    bucket.download.side_effect = ConnectionError("offline")

    async with main.lifespan(test_settings) as coordinator:
        assert coordinator.teams == []
        assert isinstance(coordinator.last_error, StorageError)

    await asyncio.sleep(0)
