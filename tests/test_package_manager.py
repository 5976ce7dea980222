"""Tests for PackageManager business logic."""

import hashlib
import io
import threading
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import Mock

import pytest

from pkgserver.exceptions import (
    InvalidVersionError,
    StreamFailureError,
    VersionConflictError,
)
from pkgserver.repositories.package_repository import PackageRepository
from pkgserver.services.package_manager import PackageManager
from pkgserver.types import PendingPackage


def save(manager, user_id="user-1", version_id="1.0.0", data=b"payload", file_name="app.zip"):
    return manager.save(
        file_name=file_name,
        content_type="application/octet-stream",
        content=io.BytesIO(data),
        user_id=user_id,
        version_id=version_id,
    )


class TestSave:
    def test_checksum_and_size_are_computed(self, package_manager):
        data = bytes([0, 1, 2, 3, 4, 5])

        summary = save(package_manager, data=data)

        assert summary.size == 6
        assert summary.checksum == hashlib.md5(data).hexdigest()

    def test_empty_payload(self, package_manager):
        summary = save(package_manager, data=b"")

        assert summary.size == 0
        assert summary.checksum == hashlib.md5(b"").hexdigest()

    def test_saved_package_can_be_read_back(self, package_manager):
        data = b"x" * 200_000
        summary = save(package_manager, data=data)

        package = package_manager.find_by_id(summary.id)

        assert package.summary() == summary
        assert b"".join(package.content) == data

    def test_missing_file_name_is_allowed(self, package_manager):
        summary = save(package_manager, file_name=None)

        assert summary.file_name is None

    def test_duplicate_version_is_rejected(self, package_manager):
        first = save(package_manager, data=b"original")

        with pytest.raises(VersionConflictError) as exc_info:
            save(package_manager, data=b"replacement")

        assert "1.0.0" in str(exc_info.value)
        assert "user-1" in str(exc_info.value)

        stored = package_manager.find_by_id(first.id)
        assert b"".join(stored.content) == b"original"
        assert len(package_manager.list_all("user-1")) == 1

    def test_same_version_different_users(self, package_manager):
        save(package_manager, user_id="alice")
        save(package_manager, user_id="bob")

        assert len(package_manager.list_all("alice")) == 1
        assert len(package_manager.list_all("bob")) == 1

    @pytest.mark.parametrize("version_id", ["", "   ", None, "\t\n", "\x01", "\x00 \x1f"])
    def test_blank_version_touches_nothing(self, version_id):
        repo = Mock(spec=PackageRepository)
        manager = PackageManager(repo)

        with pytest.raises(InvalidVersionError):
            save(manager, version_id=version_id)

        repo.exists.assert_not_called()
        repo.write.assert_not_called()

    def test_non_ascii_whitespace_is_a_valid_version(self):
        repo = Mock(spec=PackageRepository)
        repo.exists.return_value = False
        manager = PackageManager(repo)

        save(manager, version_id="\u00a0")

        repo.write.assert_called_once()

    def test_existing_version_skips_write(self):
        repo = Mock(spec=PackageRepository)
        repo.exists.return_value = True
        manager = PackageManager(repo)

        with pytest.raises(VersionConflictError):
            save(manager)

        repo.write.assert_not_called()

    def test_write_receives_pending_record(self):
        repo = Mock(spec=PackageRepository)
        repo.exists.return_value = False
        manager = PackageManager(repo)

        save(manager, user_id="alice", version_id="2.0")

        pending, content_type = repo.write.call_args.args
        assert isinstance(pending, PendingPackage)
        assert pending.id is None
        assert pending.size == -1
        assert pending.user_id == "alice"
        assert pending.version_id == "2.0"
        assert content_type == "application/octet-stream"

    def test_unique_index_decides_a_lost_race(self, package_manager, package_repo, monkeypatch):
        save(package_manager, data=b"winner")
        monkeypatch.setattr(package_repo, "exists", lambda user_id, version_id: False)

        with pytest.raises(VersionConflictError):
            save(package_manager, data=b"loser")

        assert len(package_manager.list_all("user-1")) == 1

    def test_stream_failure_persists_nothing(self, package_manager, blob_storage, failing_stream):
        with pytest.raises(StreamFailureError):
            package_manager.save(
                file_name="broken.bin",
                content_type=None,
                content=failing_stream,
                user_id="user-1",
                version_id="1.0.0",
            )

        assert package_manager.list_all("user-1") == []
        assert blob_storage.list_all_blobs() == []
        assert blob_storage.list_partial_blobs() == []

        summary = save(package_manager, data=b"retry")
        assert summary.size == 5


class TestConcurrentSaves:
    def test_exactly_one_concurrent_save_wins(self, package_manager, blob_storage):
        workers = 8
        barrier = threading.Barrier(workers)

        def attempt(index):
            barrier.wait()
            try:
                return save(package_manager, data=f"payload-{index}".encode())
            except VersionConflictError as e:
                return e

        with ThreadPoolExecutor(max_workers=workers) as executor:
            outcomes = list(executor.map(attempt, range(workers)))

        winners = [o for o in outcomes if not isinstance(o, VersionConflictError)]
        conflicts = [o for o in outcomes if isinstance(o, VersionConflictError)]
        assert len(winners) == 1
        assert len(conflicts) == workers - 1

        assert [p.id for p in package_manager.list_all("user-1")] == [winners[0].id]
        assert blob_storage.list_all_blobs() == [winners[0].id]
        assert blob_storage.list_partial_blobs() == []


class TestFindAndList:
    def test_find_unknown_id(self, package_manager):
        assert package_manager.find_by_id("does-not-exist") is None

    def test_list_all_sorted_by_version(self, package_manager):
        for version in ["C", "A", "B"]:
            save(package_manager, user_id="alice", version_id=version)

        versions = [p.version_id for p in package_manager.list_all("alice")]

        assert versions == ["A", "B", "C"]

    def test_list_all_unknown_user(self, package_manager):
        assert package_manager.list_all("nobody") == []
