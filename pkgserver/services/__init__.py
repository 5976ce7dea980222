"""Service layer for business logic."""

from pkgserver.services.package_manager import PackageManager

__all__ = [
    "PackageManager",
]
