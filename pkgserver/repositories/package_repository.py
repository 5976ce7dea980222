"""Package repository: attribute rows in SQLite joined to payloads on disk."""

import sqlite3
from typing import List, Optional

from blobstore.blob_storage import BlobStorage
from blobstore.checksum import ensure_supported_algorithm
from common.logging_config import get_logger
from pkgserver import config
from pkgserver.database import get_db_connection, is_unique_violation
from pkgserver.exceptions import (
    StorageIntegrityError,
    StreamFailureError,
    VersionConflictError,
)
from pkgserver.types import PackageSummary, PackageWithContent, PendingPackage
from pkgserver.utils import generate_object_id, get_current_timestamp

logger = get_logger(__name__)

SUMMARY_COLUMNS = "package_id, file_name, checksum, size, user_id, version_id"


class PackageRepository:
    def __init__(
        self,
        blob_storage: Optional[BlobStorage] = None,
        checksum_algorithm: Optional[str] = None,
    ):
        self.blob_storage = blob_storage or BlobStorage(config.BLOB_STORAGE_PATH)
        self.checksum_algorithm = ensure_supported_algorithm(checksum_algorithm or config.CHECKSUM_ALGORITHM)

    def write(self, pending: PendingPackage, content_type: Optional[str]) -> PackageSummary:
        """
        Store a pending package and return its persisted summary.

        The payload is streamed to a partial file first. The row is inserted
        and the file promoted inside one transaction, so a failure at any
        step leaves neither a row nor a payload behind.

        Raises:
            StreamFailureError: If the content cannot be read or written
            VersionConflictError: If the unique index rejects the row
        """
        object_id = generate_object_id()
        logger.debug(
            f"Writing package [object_id={object_id}] [user_id={pending.user_id}] [version_id={pending.version_id}]"
        )

        try:
            result = self.blob_storage.write_blob(object_id, pending.content, self.checksum_algorithm)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to stream content [object_id={object_id}]: {e}")
            raise StreamFailureError(f"Failed to read package content: {e}") from e

        try:
            with get_db_connection() as conn:
                try:
                    cursor = conn.cursor()
                    cursor.execute(
                        """
                        INSERT INTO packages (package_id, file_name, content_type, checksum, size, user_id, version_id, created_at)
                        VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                        """,
                        (
                            object_id,
                            pending.file_name,
                            content_type,
                            result.checksum,
                            result.size,
                            pending.user_id,
                            pending.version_id,
                            get_current_timestamp(),
                        )
                    )
                    self.blob_storage.commit_blob(object_id)
                    conn.commit()
                except BaseException:
                    conn.rollback()
                    raise
        except BaseException as e:
            self.blob_storage.discard_blob(object_id)
            self.blob_storage.delete_blob(object_id)
            if isinstance(e, sqlite3.IntegrityError) and is_unique_violation(e):
                logger.warning(
                    f"Unique index rejected package [user_id={pending.user_id}] [version_id={pending.version_id}]"
                )
                raise VersionConflictError(pending.user_id, pending.version_id) from e
            if isinstance(e, OSError):
                logger.error(f"Failed to store payload [object_id={object_id}]: {e}")
                raise StreamFailureError(f"Failed to store package content: {e}") from e
            raise

        logger.info(f"Package stored [object_id={object_id}] size={result.size} checksum={result.checksum}")
        return PackageSummary(
            id=object_id,
            file_name=pending.file_name,
            checksum=result.checksum,
            size=result.size,
            user_id=pending.user_id,
            version_id=pending.version_id,
        )

    def exists(self, user_id: str, version_id: str) -> bool:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT 1 FROM packages WHERE user_id = ? AND version_id = ? LIMIT 1",
                (user_id, version_id)
            )
            return cursor.fetchone() is not None

    def find_by_unique_key(self, user_id: str, version_id: str) -> Optional[PackageWithContent]:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT {SUMMARY_COLUMNS} FROM packages WHERE user_id = ? AND version_id = ?",
                (user_id, version_id)
            )
            row = cursor.fetchone()

        if row is None:
            return None
        return self._row_to_package(row)

    def find_by_id(self, package_id: str) -> Optional[PackageWithContent]:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT {SUMMARY_COLUMNS} FROM packages WHERE package_id = ?",
                (package_id,)
            )
            row = cursor.fetchone()

        if row is None:
            return None
        return self._row_to_package(row)

    def list_by_user(self, user_id: str) -> List[PackageSummary]:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT {SUMMARY_COLUMNS} FROM packages WHERE user_id = ? ORDER BY version_id ASC",
                (user_id,)
            )
            rows = cursor.fetchall()

        return [self._row_to_summary(row) for row in rows]

    def list_package_ids(self) -> List[str]:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT package_id FROM packages")
            return [row["package_id"] for row in cursor.fetchall()]

    @staticmethod
    def _row_to_summary(row: sqlite3.Row) -> PackageSummary:
        return PackageSummary(
            id=row["package_id"],
            file_name=row["file_name"],
            checksum=row["checksum"],
            size=row["size"],
            user_id=row["user_id"],
            version_id=row["version_id"],
        )

    def _row_to_package(self, row: sqlite3.Row) -> PackageWithContent:
        package_id = row["package_id"]
        try:
            content = self.blob_storage.open_blob(package_id)
        except FileNotFoundError as e:
            logger.error(f"Payload missing for package [package_id={package_id}]")
            raise StorageIntegrityError(f"Content of package {package_id} is missing") from e

        return PackageWithContent(
            id=package_id,
            file_name=row["file_name"],
            checksum=row["checksum"],
            size=row["size"],
            user_id=row["user_id"],
            version_id=row["version_id"],
            content=content,
        )
