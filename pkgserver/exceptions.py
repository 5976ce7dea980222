"""Custom exception classes for the package server."""


class PackageServiceException(Exception):
    """
    Base exception class for all package service errors.
    """
    pass


class InvalidVersionError(PackageServiceException):
    """
    Raised when a version id is empty or only whitespace.
    """
    pass


class VersionConflictError(PackageServiceException):
    """
    Raised when a package already exists for the (user, version) pair.
    """

    def __init__(self, user_id: str, version_id: str):
        self.user_id = user_id
        self.version_id = version_id
        super().__init__(f"Version {version_id} already exists for user {user_id}")


class StreamFailureError(PackageServiceException):
    """
    Raised when the upload stream cannot be read or its payload cannot be stored.
    """
    pass


class PackageNotFoundError(PackageServiceException):
    """
    Raised by the HTTP layer when a requested package does not exist.
    """
    pass


class StorageIntegrityError(PackageServiceException):
    """
    Raised when a package record exists but its payload is missing.
    """
    pass
