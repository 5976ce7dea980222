"""Background task for cleaning up orphaned payload files."""

import asyncio
from typing import Optional

from blobstore.blob_storage import BlobStorage
from common.logging_config import get_logger
from pkgserver import config
from pkgserver.repositories.package_repository import PackageRepository

logger = get_logger(__name__)


class OrphanedBlobCleaner:
    """
    Background task that periodically removes payloads no package row refers to.

    Two kinds of leftovers are swept:
        - partial payloads of uploads that never finished (crash, abort)
        - committed payloads whose row was never committed
    """

    def __init__(
        self,
        blob_storage: Optional[BlobStorage] = None,
        package_repo: Optional[PackageRepository] = None,
        interval_seconds: Optional[int] = None,
        partial_max_age_seconds: Optional[int] = None,
    ):
        """
        Initialize cleaner task.

        Args:
            blob_storage: Storage to sweep (defaults to the configured directory)
            package_repo: Repository used to find referenced package ids
            interval_seconds: Time between cleanup cycles
            partial_max_age_seconds: Minimum age of a partial payload before it is removed
        """
        self.blob_storage = blob_storage or BlobStorage(config.BLOB_STORAGE_PATH)
        self.package_repo = package_repo or PackageRepository(blob_storage=self.blob_storage)
        self.interval_seconds = interval_seconds if interval_seconds is not None else config.CLEANUP_INTERVAL_SECONDS
        self.partial_max_age_seconds = (
            partial_max_age_seconds if partial_max_age_seconds is not None else config.PARTIAL_BLOB_MAX_AGE_SECONDS
        )
        self._running = False
        self._task = None

    async def start(self) -> None:
        """Start the background cleanup task."""
        if self._running:
            logger.warning("Cleanup task already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._run())
        logger.info(f"Started orphaned blob cleanup task (interval: {self.interval_seconds}s)")

    async def stop(self) -> None:
        """Stop the background cleanup task."""
        if not self._running:
            return

        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

        logger.info("Stopped orphaned blob cleanup task")

    async def _run(self) -> None:
        """Main loop for cleanup task."""
        while self._running:
            try:
                await asyncio.sleep(self.interval_seconds)

                if not self._running:
                    break

                await asyncio.to_thread(self.run_cleanup_cycle)

            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in cleanup task: {e}", exc_info=True)

    def run_cleanup_cycle(self) -> int:
        """
        Execute one cleanup cycle.

        Returns:
            Number of payload files removed
        """
        removed = 0

        for object_id in self.blob_storage.list_partial_blobs(self.partial_max_age_seconds):
            if self.blob_storage.discard_blob(object_id):
                logger.info(f"Removed stale partial blob {object_id}")
                removed += 1

        # A payload is renamed before its row commits; recent ones may still be in flight.
        committed_ids = self.blob_storage.list_all_blobs(older_than_seconds=self.partial_max_age_seconds)
        if committed_ids:
            referenced = set(self.package_repo.list_package_ids())
            for object_id in committed_ids:
                if object_id in referenced:
                    continue
                if self.blob_storage.delete_blob(object_id):
                    logger.info(f"Removed unreferenced blob {object_id}")
                    removed += 1

        if removed:
            logger.info(f"Cleanup cycle complete: {removed} orphaned files removed")
        else:
            logger.debug("Cleanup cycle complete: nothing to remove")
        return removed
