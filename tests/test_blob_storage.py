"""Tests for on-disk payload storage and content streams."""

import hashlib
import io
import os
import time

import pytest

from blobstore.blob_storage import BlobStorage
from blobstore.content_stream import ContentStream


@pytest.fixture
def storage(tmp_path):
    return BlobStorage(tmp_path / "blobs", piece_size=4)


class TestBlobStorage:
    """Test write/commit/read cycle of BlobStorage."""

    def test_write_computes_size_and_checksum(self, storage):
        data = b"0123456789abcdef-tail"
        result = storage.write_blob("obj1", io.BytesIO(data))

        assert result.object_id == "obj1"
        assert result.size == len(data)
        assert result.checksum == hashlib.md5(data).hexdigest()

    def test_partial_blob_is_not_readable_until_committed(self, storage):
        storage.write_blob("obj1", io.BytesIO(b"payload"))

        assert not storage.get_blob_path("obj1").exists()
        assert storage.list_partial_blobs() == ["obj1"]
        with pytest.raises(FileNotFoundError):
            storage.open_blob("obj1")

        storage.commit_blob("obj1")

        assert storage.get_blob_path("obj1").exists()
        assert storage.list_partial_blobs() == []
        assert storage.list_all_blobs() == ["obj1"]
        assert storage.get_blob_path("obj1").read_bytes() == b"payload"

    def test_open_blob_streams_in_pieces(self, storage):
        storage.write_blob("obj1", io.BytesIO(b"abcdefghij"))
        storage.commit_blob("obj1")

        with storage.open_blob("obj1") as content:
            pieces = list(content)

        assert pieces == [b"abcd", b"efgh", b"ij"]

    def test_empty_payload(self, storage):
        result = storage.write_blob("empty", io.BytesIO(b""))
        storage.commit_blob("empty")

        assert result.size == 0
        assert result.checksum == hashlib.md5(b"").hexdigest()
        assert b"".join(storage.open_blob("empty")) == b""

    def test_failed_source_leaves_no_partial_file(self, storage, failing_stream):
        with pytest.raises(OSError):
            storage.write_blob("broken", failing_stream)

        assert storage.list_partial_blobs() == []
        assert not storage.get_partial_path("broken").exists()

    def test_discard_and_delete(self, storage):
        storage.write_blob("obj1", io.BytesIO(b"x"))
        assert storage.discard_blob("obj1") is True
        assert storage.discard_blob("obj1") is False

        storage.write_blob("obj2", io.BytesIO(b"y"))
        storage.commit_blob("obj2")
        assert storage.delete_blob("obj2") is True
        assert storage.delete_blob("obj2") is False
        assert not storage.get_blob_path("obj2").exists()

    def test_listing_with_age_filter(self, storage):
        storage.write_blob("old", io.BytesIO(b"x"))
        storage.write_blob("new", io.BytesIO(b"y"))
        past = time.time() - 600
        os.utime(storage.get_partial_path("old"), (past, past))

        assert storage.list_partial_blobs(older_than_seconds=60) == ["old"]
        assert sorted(storage.list_partial_blobs()) == ["new", "old"]

    def test_listing_missing_directory(self, tmp_path):
        storage = BlobStorage(tmp_path / "does-not-exist")
        assert storage.list_all_blobs() == []
        assert storage.list_partial_blobs() == []


class TestContentStream:
    """Test single-consumer semantics of ContentStream."""

    def test_iterates_once(self):
        stream = ContentStream(io.BytesIO(b"abcdef"), size=6, piece_size=4)

        assert b"".join(stream) == b"abcdef"
        assert stream.consumed
        assert stream.closed
        with pytest.raises(ValueError):
            iter(stream)

    def test_read_marks_consumed(self):
        stream = ContentStream(io.BytesIO(b"abcdef"))

        assert stream.read(2) == b"ab"
        with pytest.raises(ValueError):
            iter(stream)

    def test_early_stop_closes_file(self):
        stream = ContentStream(io.BytesIO(b"abcdefgh"), piece_size=2)
        pieces = iter(stream)

        assert next(pieces) == b"ab"
        pieces.close()

        assert stream.closed

    def test_read_after_close_fails(self):
        stream = ContentStream(io.BytesIO(b"abc"))
        stream.close()

        with pytest.raises(ValueError):
            stream.read()
