"""FastAPI dependency providers."""

from pkgserver.services.package_manager import PackageManager


def get_package_manager() -> PackageManager:
    """
    Build the package manager for a request.

    Storage locations are read from pkgserver.config on every call.
    """
    return PackageManager()
