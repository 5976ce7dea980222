"""Configuration settings for the package server."""

import os
from common.constants import (
    DEFAULT_BLOB_STORAGE_PATH,
    DEFAULT_CHECKSUM_ALGORITHM,
    DEFAULT_SERVER_PORT,
)


DATABASE_PATH = os.environ.get("PKG_DATABASE_PATH", "/app/data/packages.db")

BLOB_STORAGE_PATH = os.environ.get("PKG_BLOB_STORAGE_PATH", DEFAULT_BLOB_STORAGE_PATH)

SERVER_HOST = os.environ.get("PKG_SERVER_HOST", "0.0.0.0")

SERVER_PORT = int(os.environ.get("PKG_SERVER_PORT", str(DEFAULT_SERVER_PORT)))

CHECKSUM_ALGORITHM = os.environ.get("PKG_CHECKSUM_ALGORITHM", DEFAULT_CHECKSUM_ALGORITHM)

CLEANUP_INTERVAL_SECONDS = int(os.environ.get("PKG_CLEANUP_INTERVAL", "3600"))

PARTIAL_BLOB_MAX_AGE_SECONDS = int(os.environ.get("PKG_PARTIAL_BLOB_MAX_AGE", "3600"))
