"""Command handler functions for CLI operations."""

from pathlib import Path
from typing import Optional

from common.logging_config import get_logger
from pkgcli.client import PackageClient
from pkgcli.config import Config
from pkgcli.models import (
    DownloadCommand,
    InfoCommand,
    ListCommand,
    UploadCommand,
    UseCommand,
)

logger = get_logger(__name__)

CONFIG_PATH = Path.home() / '.pkgstore' / 'config.json'

_client: Optional[PackageClient] = None


def get_client() -> PackageClient:
    """
    Get or create global PackageClient instance.
    """
    global _client
    if _client is None:
        logger.debug("Creating new PackageClient instance")
        _client = PackageClient(Config(CONFIG_PATH))
    return _client


def handle_upload(cmd: UploadCommand, client: Optional[PackageClient] = None) -> str:
    """
    Handle 'upload' command.

    Args:
        cmd: UploadCommand with file path, version id and optional user id
        client: Optional PackageClient for dependency injection (testing)

    Returns:
        Success or error message
    """
    logger.info(f"Executing upload command: file={cmd.file_path} version={cmd.version_id}")
    if client is None:
        client = get_client()
    return client.upload(cmd.file_path, cmd.version_id, cmd.user_id)


def handle_info(cmd: InfoCommand, client: Optional[PackageClient] = None) -> str:
    if client is None:
        client = get_client()
    return client.info(cmd.package_id)


def handle_download(cmd: DownloadCommand, client: Optional[PackageClient] = None) -> str:
    """
    Handle 'download' command.

    Args:
        cmd: DownloadCommand with package id and optional output path
        client: Optional PackageClient for dependency injection (testing)

    Returns:
        Success or error message with download results
    """
    logger.info(f"Executing download command: package_id={cmd.package_id} output_path={cmd.output_path}")
    if client is None:
        client = get_client()
    return client.download(cmd.package_id, cmd.output_path)


def handle_list(cmd: ListCommand, client: Optional[PackageClient] = None) -> str:
    if client is None:
        client = get_client()
    return client.list_packages(cmd.user_id)


def handle_use(cmd: UseCommand, client: Optional[PackageClient] = None) -> str:
    """
    Handle 'use' command by storing the default user id in the config file.
    """
    if client is None:
        client = get_client()
    client.config.set_user_id(cmd.user_id)
    return f"Default user set to {cmd.user_id}"


def dispatch_command(cmd_obj, client: Optional[PackageClient] = None) -> str:
    """Dispatch parsed command to appropriate handler."""
    if isinstance(cmd_obj, UploadCommand):
        return handle_upload(cmd_obj, client)
    elif isinstance(cmd_obj, InfoCommand):
        return handle_info(cmd_obj, client)
    elif isinstance(cmd_obj, DownloadCommand):
        return handle_download(cmd_obj, client)
    elif isinstance(cmd_obj, ListCommand):
        return handle_list(cmd_obj, client)
    elif isinstance(cmd_obj, UseCommand):
        return handle_use(cmd_obj, client)
    else:
        return f"Unknown command type: {type(cmd_obj)}"
