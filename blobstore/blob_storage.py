"""Manages physical payload files on disk: streamed write, promote, read back."""

import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, List, Optional, Union

from blobstore.checksum import IncrementalChecksumCalculator
from blobstore.content_stream import ContentStream
from common.constants import DEFAULT_CHECKSUM_ALGORITHM, STREAM_PIECE_SIZE
from common.logging_config import get_logger

logger = get_logger(__name__)

BLOB_SUFFIX = ".blob"
PARTIAL_SUFFIX = ".part"


@dataclass(frozen=True)
class BlobWriteResult:
    """
    Content-derived metadata computed while a payload was written.
    """
    object_id: str
    size: int
    checksum: str


class BlobStorage:
    """
    Directory of payload files keyed by object id.

    A payload is first written to ``<id>.part`` and only becomes readable
    once ``commit_blob`` renames it to ``<id>.blob``.
    """

    def __init__(self, root: Union[str, Path], piece_size: int = STREAM_PIECE_SIZE):
        """
        Args:
            root: Directory holding payload files (created on first write)
            piece_size: Size of each piece read from sources and served to readers
        """
        self.root = Path(root)
        self.piece_size = piece_size

    def ensure_directory(self) -> None:
        """Ensure the blob directory exists."""
        self.root.mkdir(parents=True, exist_ok=True)

    def get_blob_path(self, object_id: str) -> Path:
        """
        Get file path for a committed payload.

        Args:
            object_id: Object id of the payload

        Returns:
            Path object for the payload file
        """
        return self.root / f"{object_id}{BLOB_SUFFIX}"

    def get_partial_path(self, object_id: str) -> Path:
        return self.root / f"{object_id}{PARTIAL_SUFFIX}"

    def write_blob(
        self,
        object_id: str,
        source: BinaryIO,
        algorithm: str = DEFAULT_CHECKSUM_ALGORITHM,
    ) -> BlobWriteResult:
        """
        Stream a source into a partial payload file.

        The checksum and length are computed in the same pass; at most one
        piece of the source is held in memory at a time. On failure the
        partial file is removed before the error propagates.

        Args:
            object_id: Object id the payload will be stored under
            source: Readable binary stream
            algorithm: hashlib algorithm used for the checksum

        Returns:
            BlobWriteResult with the byte count and checksum

        Raises:
            OSError: If reading the source or writing the file fails
        """
        self.ensure_directory()
        partial_path = self.get_partial_path(object_id)
        calculator = IncrementalChecksumCalculator(algorithm)

        try:
            with open(partial_path, 'wb') as f:
                while True:
                    piece = source.read(self.piece_size)
                    if not piece:
                        break
                    calculator.update(piece)
                    f.write(piece)
                f.flush()
                os.fsync(f.fileno())
        except BaseException:
            self.discard_blob(object_id)
            raise

        result = BlobWriteResult(
            object_id=object_id,
            size=calculator.size,
            checksum=calculator.finalize(),
        )
        logger.debug(f"Wrote partial blob [object_id={object_id}] size={result.size}")
        return result

    def commit_blob(self, object_id: str) -> Path:
        """
        Promote a partial payload to its final name.

        Returns:
            Path of the committed payload

        Raises:
            OSError: If the rename fails
        """
        final_path = self.get_blob_path(object_id)
        os.replace(self.get_partial_path(object_id), final_path)
        return final_path

    def discard_blob(self, object_id: str) -> bool:
        """
        Remove a partial payload, if any.

        Returns:
            True if a partial file was deleted, False if it didn't exist
        """
        partial_path = self.get_partial_path(object_id)
        try:
            partial_path.unlink()
        except FileNotFoundError:
            return False
        logger.debug(f"Discarded partial blob [object_id={object_id}]")
        return True

    def delete_blob(self, object_id: str) -> bool:
        """
        Delete a committed payload from disk.

        Returns:
            True if file was deleted, False if it didn't exist
        """
        filepath = self.get_blob_path(object_id)
        try:
            filepath.unlink()
        except FileNotFoundError:
            return False
        return True

    def open_blob(self, object_id: str) -> ContentStream:
        """
        Open a committed payload for a single streamed read.

        Raises:
            FileNotFoundError: If the payload does not exist
        """
        filepath = self.get_blob_path(object_id)
        fileobj = open(filepath, 'rb')
        return ContentStream(fileobj, size=os.fstat(fileobj.fileno()).st_size, piece_size=self.piece_size)

    def list_all_blobs(self, older_than_seconds: Optional[float] = None) -> List[str]:
        """
        List committed object ids in the storage directory.

        Args:
            older_than_seconds: Only include payloads last modified more than this many seconds ago
        """
        return self._list_by_suffix(BLOB_SUFFIX, older_than_seconds)

    def list_partial_blobs(self, older_than_seconds: Optional[float] = None) -> List[str]:
        """
        List object ids of partial payloads.

        Args:
            older_than_seconds: Only include payloads last modified more than this many seconds ago
        """
        return self._list_by_suffix(PARTIAL_SUFFIX, older_than_seconds)

    def _list_by_suffix(self, suffix: str, older_than_seconds: Optional[float]) -> List[str]:
        if not self.root.exists():
            return []

        cutoff = time.time() - older_than_seconds if older_than_seconds is not None else None
        object_ids = []
        for filepath in self.root.glob(f"*{suffix}"):
            if cutoff is not None:
                try:
                    if filepath.stat().st_mtime > cutoff:
                        continue
                except FileNotFoundError:
                    continue
            object_ids.append(filepath.name[: -len(suffix)])
        return object_ids
