"""Repository layer for data access."""

from pkgserver.repositories.package_repository import PackageRepository

__all__ = [
    "PackageRepository",
]
