"""Package API routes."""

from typing import List
from urllib.parse import quote

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Query, UploadFile, status
from fastapi.responses import StreamingResponse

from common.logging_config import get_logger
from pkgserver.dependencies import get_package_manager
from pkgserver.exceptions import PackageNotFoundError
from pkgserver.schemas.common import ErrorResponse
from pkgserver.schemas.packages import PackageInfoResponse
from pkgserver.services.package_manager import PackageManager

logger = get_logger(__name__)

router = APIRouter(prefix="/packages", tags=["Packages"])

USER_KEY = "userId"
VERSION_KEY = "versionId"

NOT_FOUND_RESPONSES = {404: {"model": ErrorResponse, "description": "Package not found"}}


@router.post(
    "",
    response_model=PackageInfoResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Blank version id or unreadable payload"},
        409: {"model": ErrorResponse, "description": "Version already exists for this user"},
    },
)
def upload_package(
    file: UploadFile = File(...),
    user_id: str = Form(..., alias=USER_KEY),
    version_id: str = Form("", alias=VERSION_KEY),
    manager: PackageManager = Depends(get_package_manager),
):
    """
    Upload a package version.

    Parameters:
        - file: Package payload (multipart/form-data)
        - userId: Owning user
        - versionId: Version label, unique per user

    Returns:
        - Summary of the stored package (id, fileName, checksum, size, userId, versionId)

    Raises:
        - 400: Blank version id or unreadable payload
        - 409: Version already exists for this user
        - 422: Missing file or userId
    """
    try:
        summary = manager.save(
            file_name=file.filename,
            content_type=file.content_type,
            content=file.file,
            user_id=user_id,
            version_id=version_id,
        )
    finally:
        file.file.close()

    return PackageInfoResponse.from_summary(summary)


@router.get("/all", response_model=List[PackageInfoResponse])
def list_packages(
    user_id: str = Query(..., alias=USER_KEY, description="Owner of the packages"),
    manager: PackageManager = Depends(get_package_manager),
):
    """
    List all packages of a user ordered by version id.

    Returns an empty list when the user has no packages.
    """
    return [PackageInfoResponse.from_summary(summary) for summary in manager.list_all(user_id)]


@router.get("/{package_id}", response_model=PackageInfoResponse, responses=NOT_FOUND_RESPONSES)
def get_package_details(
    package_id: str,
    manager: PackageManager = Depends(get_package_manager),
):
    """
    Get metadata of a package.

    Raises:
        - 404: Package not found
    """
    package = manager.find_by_id(package_id)
    if package is None:
        raise PackageNotFoundError(f"Package {package_id} not found")

    package.content.close()
    return PackageInfoResponse.from_summary(package.summary())


@router.get(
    "/{package_id}/file",
    response_class=StreamingResponse,
    responses={**NOT_FOUND_RESPONSES, 200: {"content": {"application/octet-stream": {}}}},
)
def get_package_content(
    package_id: str,
    manager: PackageManager = Depends(get_package_manager),
):
    """
    Download the payload of a package.

    Returns:
        - StreamingResponse with the raw bytes and Content-Length set to the package size

    Raises:
        - 404: Package not found
    """
    package = manager.find_by_id(package_id)
    if package is None:
        raise PackageNotFoundError(f"Package {package_id} not found")

    headers = {"Content-Length": str(package.size)}
    if package.file_name:
        headers["Content-Disposition"] = f"attachment; filename*=UTF-8''{quote(package.file_name)}"

    # The stream only closes itself once iteration starts.
    cleanup = BackgroundTasks()
    cleanup.add_task(package.content.close)

    logger.info(f"Streaming package [package_id={package_id}] size={package.size}")
    return StreamingResponse(
        iter(package.content),
        media_type="application/octet-stream",
        headers=headers,
        background=cleanup,
    )
