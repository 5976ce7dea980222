"""API routes package."""

from pkgserver.routes.package_routes import router as package_router

__all__ = ["package_router"]
