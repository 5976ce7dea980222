"""Pydantic schemas for API requests and responses."""

from pkgserver.schemas.packages import PackageInfoResponse
from pkgserver.schemas.common import ErrorResponse

__all__ = [
    "PackageInfoResponse",
    "ErrorResponse",
]
