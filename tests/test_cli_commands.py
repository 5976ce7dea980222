"""Tests for CLI command handlers."""

from unittest.mock import Mock

from pkgcli.client import PackageClient
from pkgcli.commands import (
    dispatch_command,
    handle_download,
    handle_info,
    handle_list,
    handle_upload,
    handle_use,
)
from pkgcli.models import (
    DownloadCommand,
    InfoCommand,
    ListCommand,
    UploadCommand,
    UseCommand,
)


def test_handle_upload():
    """Test upload command handler with mocked client."""
    mock_client = Mock(spec=PackageClient)
    mock_client.upload.return_value = "Uploaded: 1.0.0  app.zip"

    cmd = UploadCommand(file_path='app.zip', version_id='1.0.0', user_id='alice')
    result = handle_upload(cmd, client=mock_client)

    assert 'Uploaded' in result
    mock_client.upload.assert_called_once_with('app.zip', '1.0.0', 'alice')


def test_handle_info():
    mock_client = Mock(spec=PackageClient)
    mock_client.info.return_value = "ID:       abc123"

    result = handle_info(InfoCommand(package_id='abc123'), client=mock_client)

    assert 'abc123' in result
    mock_client.info.assert_called_once_with('abc123')


def test_handle_download():
    """Test download command handler with mocked client."""
    mock_client = Mock(spec=PackageClient)
    mock_client.download.return_value = "Downloaded 3 B to out.bin"

    cmd = DownloadCommand(package_id='abc123', output_path='out.bin')
    result = handle_download(cmd, client=mock_client)

    assert 'Downloaded' in result
    mock_client.download.assert_called_once_with('abc123', 'out.bin')


def test_handle_list():
    mock_client = Mock(spec=PackageClient)
    mock_client.list_packages.return_value = "No packages for user bob"

    result = handle_list(ListCommand(user_id='bob'), client=mock_client)

    assert result == "No packages for user bob"
    mock_client.list_packages.assert_called_once_with('bob')


def test_handle_use_persists_user(temp_config):
    """Test that 'use' stores the default user id in the config file."""
    mock_client = Mock(spec=PackageClient)
    mock_client.config = temp_config

    result = handle_use(UseCommand(user_id='alice'), client=mock_client)

    assert result == "Default user set to alice"
    assert temp_config.get_user_id() == 'alice'


def test_dispatch_routes_to_handler():
    mock_client = Mock(spec=PackageClient)
    mock_client.info.return_value = "info output"

    assert dispatch_command(InfoCommand(package_id='abc'), client=mock_client) == "info output"


def test_dispatch_unknown_command():
    result = dispatch_command(object(), client=Mock(spec=PackageClient))

    assert result.startswith("Unknown command type")
