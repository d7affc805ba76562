"""Shared fixtures for the Valta test suite."""

from datetime import datetime, timedelta, timezone
from typing import Dict, List

import pytest

from valta.config import Settings
from valta.db.storage import StorageProvider, StorageService
from valta.exceptions import BlobNotFoundError, StorageError
from valta.models.activity import Activity, ActivityPriority
from valta.models.member import TeamMember

T0 = datetime(2025, 12, 4, 20, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, start: datetime = T0):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current += timedelta(**kwargs)
        return self.current

    def set(self, value: datetime) -> None:
        self.current = value


class InMemoryStorageProvider(StorageProvider):
    def __init__(self):
        self.blobs: Dict[str, bytes] = {}
        self.uploads: List[tuple] = []
        self.download_count = 0
        self.fail_download = False
        self.fail_upload = False

    async def download(self, path: str, max_size: int) -> bytes:
        self.download_count += 1
        if self.fail_download:
            raise StorageError("network down", path)
        if path not in self.blobs:
            raise BlobNotFoundError(f"{path} not found", path)
        return self.blobs[path]

    async def upload(self, path: str, data: bytes, content_type: str = "text/csv") -> None:
        if self.fail_upload:
            raise StorageError("network down", path)
        self.blobs[path] = data
        self.uploads.append((path, data, content_type))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def members():
    return [
        TeamMember(name="Vlad Alexa", email="vlad@example.com"),
        TeamMember(name="Alex Trubacs", email="alex@example.com"),
    ]


@pytest.fixture
def test_settings():
    return Settings(
        storage_bucket="test",
        teams_path="teams.csv",
        activities_path="activities.csv",
        max_blob_size=1024 * 1024,
    )


@pytest.fixture
def provider():
    return InMemoryStorageProvider()


@pytest.fixture
def storage(provider, test_settings):
    return StorageService(provider, settings=test_settings)


@pytest.fixture
def make_activity(members):
    def _make(**overrides) -> Activity:
        fields = {
            "name": "Write report",
            "description": "Quarterly numbers",
            "assigned_member": members[0],
            "priority": ActivityPriority.P1,
            "created_at": T0,
            "deadline": T0 + timedelta(hours=4),
        }
        fields.update(overrides)
        return Activity(**fields)

    return _make
