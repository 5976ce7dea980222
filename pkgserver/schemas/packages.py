"""Pydantic schemas for package endpoints."""

from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from pkgserver.types import PackageSummary


class PackageInfoResponse(BaseModel):
    """Response model for package metadata (serialized with camelCase keys)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    file_name: Optional[str] = None
    checksum: str
    size: int
    user_id: str
    version_id: str

    @classmethod
    def from_summary(cls, summary: PackageSummary) -> "PackageInfoResponse":
        return cls(
            id=summary.id,
            file_name=summary.file_name,
            checksum=summary.checksum,
            size=summary.size,
            user_id=summary.user_id,
            version_id=summary.version_id,
        )
