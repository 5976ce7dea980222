"""Command request data types for CLI."""

from dataclasses import dataclass
from typing import Literal, Optional


@dataclass(frozen=True)
class UploadCommand:
    """Upload a file as a new package version."""

    file_path: str
    version_id: str
    user_id: Optional[str] = None
    command: Literal["upload"] = "upload"


@dataclass(frozen=True)
class InfoCommand:
    """Show metadata of a package."""

    package_id: str
    command: Literal["info"] = "info"


@dataclass(frozen=True)
class DownloadCommand:
    """Download the content of a package."""

    package_id: str
    output_path: Optional[str] = None
    command: Literal["download"] = "download"


@dataclass(frozen=True)
class ListCommand:
    """List all package versions of a user."""

    user_id: Optional[str] = None
    command: Literal["list"] = "list"


@dataclass(frozen=True)
class UseCommand:
    """Set the default user id."""

    user_id: str
    command: Literal["use"] = "use"


CommandRequest = (
    UploadCommand
    | InfoCommand
    | DownloadCommand
    | ListCommand
    | UseCommand
)
