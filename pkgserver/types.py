"""Package record variants used across the service."""

from dataclasses import dataclass
from typing import BinaryIO, Optional

from blobstore.content_stream import ContentStream
from common.constants import UNSET_SIZE


@dataclass(frozen=True)
class PackageSummary:
    """
    Metadata of a persisted package, without content.
    """
    id: str
    file_name: Optional[str]
    checksum: str
    size: int
    user_id: str
    version_id: str


@dataclass(frozen=True)
class PackageWithContent:
    """
    Metadata of a persisted package plus its payload, readable once.
    """
    id: str
    file_name: Optional[str]
    checksum: str
    size: int
    user_id: str
    version_id: str
    content: ContentStream

    def summary(self) -> PackageSummary:
        return PackageSummary(
            id=self.id,
            file_name=self.file_name,
            checksum=self.checksum,
            size=self.size,
            user_id=self.user_id,
            version_id=self.version_id,
        )


@dataclass(frozen=True)
class PendingPackage:
    """
    An upload that has not been written yet.
    """
    file_name: Optional[str]
    user_id: str
    version_id: str
    content: BinaryIO
    id: Optional[str] = None
    checksum: Optional[str] = None
    size: int = UNSET_SIZE
