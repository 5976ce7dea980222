"""Package manager: validation and orchestration of save/find/list."""

from typing import BinaryIO, List, Optional

from common.constants import VERSION_TRIM_CHARS
from common.logging_config import get_logger
from pkgserver.exceptions import InvalidVersionError, VersionConflictError
from pkgserver.repositories.package_repository import PackageRepository
from pkgserver.types import PackageSummary, PackageWithContent, PendingPackage

logger = get_logger(__name__)


class PackageManager:
    def __init__(self, package_repo: Optional[PackageRepository] = None):
        self.package_repo = package_repo or PackageRepository()

    def save(
        self,
        file_name: Optional[str],
        content_type: Optional[str],
        content: BinaryIO,
        user_id: str,
        version_id: str,
    ) -> PackageSummary:
        """
        Store a new package version for a user.

        The existence check only fails fast; the unique index in the
        repository decides when two uploads for the same version race.

        Raises:
            InvalidVersionError: If version_id is blank
            VersionConflictError: If the user already has this version
            StreamFailureError: If the content cannot be read or stored
        """
        if not version_id or not version_id.strip(VERSION_TRIM_CHARS):
            raise InvalidVersionError("Version id cannot be empty")

        if self.package_repo.exists(user_id, version_id):
            logger.info(f"Rejected duplicate upload [user_id={user_id}] [version_id={version_id}]")
            raise VersionConflictError(user_id, version_id)

        pending = PendingPackage(
            file_name=file_name,
            user_id=user_id,
            version_id=version_id,
            content=content,
        )
        return self.package_repo.write(pending, content_type)

    def find_by_id(self, package_id: str) -> Optional[PackageWithContent]:
        return self.package_repo.find_by_id(package_id)

    def list_all(self, user_id: str) -> List[PackageSummary]:
        """
        List every package of a user, ordered by version id.
        """
        return self.package_repo.list_by_user(user_id)
