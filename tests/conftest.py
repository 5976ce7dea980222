"""Shared pytest fixtures for all tests."""

import pytest

from blobstore.blob_storage import BlobStorage
from pkgcli.config import Config
from pkgserver.database import init_database
from pkgserver.repositories.package_repository import PackageRepository
from pkgserver.services.package_manager import PackageManager


@pytest.fixture
def test_db(tmp_path, monkeypatch):
    """
    Create a temporary test database for each test.

    Returns:
        Path to the SQLite file
    """
    db_path = tmp_path / "test.db"
    monkeypatch.setattr("pkgserver.database.DATABASE_PATH", str(db_path))
    monkeypatch.setattr("pkgserver.config.DATABASE_PATH", str(db_path))
    init_database()
    return db_path


@pytest.fixture
def blob_dir(tmp_path, monkeypatch):
    """
    Point the configured blob directory at a temporary path.

    Returns:
        Path to the (not yet created) blob directory
    """
    path = tmp_path / "blobs"
    monkeypatch.setattr("pkgserver.config.BLOB_STORAGE_PATH", str(path))
    return path


@pytest.fixture
def blob_storage(blob_dir):
    return BlobStorage(blob_dir)


@pytest.fixture
def package_repo(test_db, blob_storage):
    return PackageRepository(blob_storage=blob_storage)


@pytest.fixture
def package_manager(package_repo):
    return PackageManager(package_repo)


@pytest.fixture
def temp_config(tmp_path):
    """
    Create temporary CLI config instance.

    Returns:
        Config instance backed by a file under tmp_path
    """
    return Config(tmp_path / '.pkgstore' / 'config.json')


class FailingStream:
    """Binary source that fails after yielding some bytes."""

    def __init__(self, good_bytes: bytes = b"partial"):
        self._good_bytes = good_bytes
        self._sent = False

    def read(self, size: int = -1) -> bytes:
        if not self._sent:
            self._sent = True
            return self._good_bytes
        raise OSError("connection reset while reading upload")


@pytest.fixture
def failing_stream():
    return FailingStream()
