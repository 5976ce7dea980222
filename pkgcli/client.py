"""HTTP client for communicating with the package server."""

import os
import tempfile
import time
import uuid
from pathlib import Path
from typing import Optional
from urllib.parse import unquote

import httpx

from common.logging_config import get_logger
from pkgcli.config import Config
from pkgcli.utils import format_file_size, format_package

logger = get_logger(__name__)


class PackageClient:
    """HTTP client for the package API with retry logic and error handling."""

    def __init__(self, config: Config):
        """
        Initialize package client.

        Args:
            config: Configuration instance
        """
        self.config = config
        self.session = httpx.Client(
            base_url=config.get_base_url(),
            timeout=config.get_timeout()
        )
        self.request_id = None
        logger.info(f"Initialized PackageClient [base_url={config.get_base_url()}]")

    def _calculate_upload_timeout(self, file_size: int) -> float:
        """
        Calculate timeout for upload based on file size.

        Returns:
            Timeout in seconds (30s base + 0.1s per MB)
        """
        base_timeout = 30.0
        size_mb = file_size / (1024 * 1024)
        return base_timeout + size_mb * 0.1

    def _request_with_retry(
        self,
        method: str,
        endpoint: str,
        max_retries: Optional[int] = None,
        **kwargs
    ) -> httpx.Response:
        """
        Make HTTP request with retry logic on 5xx errors and network failures.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint path
            max_retries: Max retry attempts (uses config default if None)
            **kwargs: Additional arguments to pass to httpx request

        Returns:
            HTTP response object

        Raises:
            ConnectionError: If max retries exceeded or connection fails
        """
        retry_config = self.config.get_retry_config()
        max_retries = max_retries if max_retries is not None else retry_config['max_retries']
        backoff = retry_config['retry_backoff_multiplier']

        last_exception = None

        self.request_id = str(uuid.uuid4())
        kwargs.setdefault('headers', {})
        kwargs['headers']['X-Request-ID'] = self.request_id

        logger.debug(f"Making request: {method} {endpoint} [request_id={self.request_id}]")

        for attempt in range(max_retries + 1):
            try:
                response = self.session.request(method, endpoint, **kwargs)

                logger.debug(
                    f"Response received: {method} {endpoint} status={response.status_code} [request_id={self.request_id}]"
                )

                if 400 <= response.status_code < 500:
                    logger.warning(
                        f"Client error: {method} {endpoint} status={response.status_code} [request_id={self.request_id}]"
                    )
                    return response

                if response.status_code >= 500 and attempt < max_retries:
                    delay = backoff ** attempt
                    logger.warning(
                        f"Server error (attempt {attempt + 1}/{max_retries + 1}): "
                        f"{method} {endpoint} status={response.status_code}, retrying in {delay}s [request_id={self.request_id}]"
                    )
                    time.sleep(delay)
                    continue

                return response

            except (httpx.ConnectError, httpx.TimeoutException) as e:
                last_exception = e
                if attempt < max_retries:
                    delay = backoff ** attempt
                    logger.warning(
                        f"Network error (attempt {attempt + 1}/{max_retries + 1}): "
                        f"{method} {endpoint} error={type(e).__name__}, retrying in {delay}s [request_id={self.request_id}]"
                    )
                    time.sleep(delay)
                else:
                    logger.error(
                        f"Network error (max retries exceeded): {method} {endpoint} error={e} [request_id={self.request_id}]"
                    )

        if isinstance(last_exception, httpx.TimeoutException):
            raise ConnectionError("Request timed out. Server may be overloaded.")
        if isinstance(last_exception, httpx.ConnectError):
            raise ConnectionError("Cannot connect to package server. Is it running?")
        raise ConnectionError("Max retries exceeded")

    def _format_error(self, response: httpx.Response) -> str:
        """
        Map HTTP errors to user-friendly messages.
        """
        try:
            error_data = response.json()
            detail = error_data.get('detail', 'Unknown error')
            code = error_data.get('code', 'UNKNOWN')
        except ValueError:
            detail = response.text if response.text else 'Unknown error'
            code = 'UNKNOWN'

        error_messages = {
            'INVALID_VERSION': 'Version id cannot be empty.',
            'VERSION_CONFLICT': f'{detail}. Choose a different version id.',
            'STREAM_FAILURE': 'The server could not read the uploaded file. Please retry.',
            'PACKAGE_NOT_FOUND': 'Package not found on server.',
            'STORAGE_INTEGRITY': 'Package content is missing on the server.',
        }

        if code in error_messages:
            return error_messages[code]

        status_messages = {
            400: 'Bad request',
            404: 'Not found',
            409: 'Conflict',
            422: 'Invalid request',
            500: 'Server error',
            503: 'Service unavailable',
        }

        message = status_messages.get(response.status_code, detail)
        return f"{message} (Code: {code})" if code != 'UNKNOWN' else message

    def _resolve_user(self, user_id: Optional[str]) -> str:
        resolved = user_id or self.config.get_user_id()
        if not resolved:
            raise ValueError("No user id set. Run: use <user-id> or pass --user <id>")
        return resolved

    def upload(self, file_path: str, version_id: str, user_id: Optional[str] = None) -> str:
        """
        Upload a file as a new package version.

        Args:
            file_path: Path of the file to upload
            version_id: Version label for the package
            user_id: Owning user (defaults to the configured user)

        Returns:
            Formatted result message
        """
        try:
            owner = self._resolve_user(user_id)
        except ValueError as e:
            return f"Error: {e}"

        path = Path(file_path).expanduser()
        if not path.exists():
            return f"Error: File not found: {file_path}"
        if not path.is_file():
            return f"Error: Not a file: {file_path}"

        file_size = path.stat().st_size
        logger.info(f"Uploading {path.name} as version {version_id} [user_id={owner}] size={file_size}")

        try:
            with open(path, 'rb') as f:
                response = self._request_with_retry(
                    'POST',
                    '/packages',
                    max_retries=0,
                    files={'file': (path.name, f, 'application/octet-stream')},
                    data={'userId': owner, 'versionId': version_id},
                    timeout=self._calculate_upload_timeout(file_size),
                )
        except ConnectionError as e:
            logger.error(f"Connection error during upload: {e}")
            return f"Error: {e}"

        if response.status_code == 201:
            package = response.json()
            logger.info(f"Upload successful [package_id={package.get('id')}]")
            return f"Uploaded: {format_package(package)}"

        logger.warning(f"Upload failed for {path.name} status={response.status_code}")
        return f"Upload failed: {self._format_error(response)}"

    def info(self, package_id: str) -> str:
        """
        Show metadata of one package.
        """
        try:
            response = self._request_with_retry('GET', f'/packages/{package_id}')
        except ConnectionError as e:
            return f"Error: {e}"

        if response.status_code == 200:
            package = response.json()
            return "\n".join([
                f"ID:       {package.get('id')}",
                f"File:     {package.get('fileName')}",
                f"User:     {package.get('userId')}",
                f"Version:  {package.get('versionId')}",
                f"Size:     {format_file_size(package.get('size', 0))}",
                f"Checksum: {package.get('checksum')}",
            ])

        return f"Info failed: {self._format_error(response)}"

    def list_packages(self, user_id: Optional[str] = None) -> str:
        """
        List all package versions of a user ordered by version.
        """
        try:
            owner = self._resolve_user(user_id)
        except ValueError as e:
            return f"Error: {e}"

        try:
            response = self._request_with_retry('GET', '/packages/all', params={'userId': owner})
        except ConnectionError as e:
            return f"Error: {e}"

        if response.status_code != 200:
            return f"List failed: {self._format_error(response)}"

        packages = response.json()
        if not packages:
            return f"No packages for user {owner}"

        lines = [f"{len(packages)} package(s) for user {owner}:"]
        lines.extend(f"  {format_package(package)}" for package in packages)
        return "\n".join(lines)

    def download(self, package_id: str, output_path: Optional[str] = None) -> str:
        """
        Stream the content of a package to disk.

        Args:
            package_id: Package to download
            output_path: Destination file or directory (defaults to the stored file name in cwd)

        Returns:
            Formatted result message
        """
        self.request_id = str(uuid.uuid4())
        headers = {'X-Request-ID': self.request_id}
        logger.info(f"Downloading package {package_id} [request_id={self.request_id}]")

        try:
            with self.session.stream('GET', f'/packages/{package_id}/file', headers=headers) as response:
                if response.status_code != 200:
                    response.read()
                    return f"Download failed: {self._format_error(response)}"

                filename = _filename_from_disposition(response.headers.get('Content-Disposition')) or package_id
                destination = _resolve_output_path(output_path, filename)
                written = _write_response_body(response, destination)
        except (httpx.HTTPError, IncompleteDownloadError) as e:
            logger.error(f"Download of package {package_id} failed: {e} [request_id={self.request_id}]")
            return f"Error: Cannot download package {package_id}: {e}"
        except OSError as e:
            logger.error(f"Cannot write package {package_id} to disk: {e}")
            return f"Error: Cannot save package {package_id}: {e}"

        logger.info(f"Downloaded package {package_id} to {destination} ({written} bytes)")
        return f"Downloaded {format_file_size(written)} to {destination}"

    def close(self) -> None:
        self.session.close()


class IncompleteDownloadError(Exception):
    """Raised when a response body ends before its announced length."""

    pass


def _write_response_body(response: httpx.Response, destination: Path) -> int:
    """
    Stream a response body into destination.

    The body goes to a temporary file next to destination, which is only
    renamed into place once the whole body has arrived.

    Returns:
        Number of bytes written

    Raises:
        IncompleteDownloadError: If fewer bytes arrived than Content-Length announced
        httpx.HTTPError: If the connection fails mid-body
    """
    destination.parent.mkdir(parents=True, exist_ok=True)
    expected = response.headers.get('Content-Length')

    fd, temp_name = tempfile.mkstemp(
        dir=destination.parent, prefix=f".{destination.name}.", suffix=".part"
    )
    try:
        written = 0
        with os.fdopen(fd, 'wb') as f:
            for piece in response.iter_bytes():
                f.write(piece)
                written += len(piece)

        if expected is not None and written != int(expected):
            raise IncompleteDownloadError(f"received {written} of {expected} bytes")

        os.replace(temp_name, destination)
    except BaseException:
        Path(temp_name).unlink(missing_ok=True)
        raise

    return written


def _filename_from_disposition(header: Optional[str]) -> Optional[str]:
    """Extract the file name from a Content-Disposition header."""
    if not header:
        return None

    for part in header.split(';'):
        part = part.strip()
        if part.lower().startswith("filename*="):
            value = part.split("=", 1)[1]
            if "''" in value:
                value = value.split("''", 1)[1]
            return os.path.basename(unquote(value)) or None
        if part.lower().startswith("filename="):
            return os.path.basename(part.split("=", 1)[1].strip('"')) or None
    return None


def _resolve_output_path(output_path: Optional[str], filename: str) -> Path:
    if not output_path:
        return Path.cwd() / filename

    destination = Path(output_path).expanduser()
    if destination.is_dir():
        return destination / filename
    return destination
