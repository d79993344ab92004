"""Upload router: multipart uploads to local disk, served back under ``/uploads``."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from learnix.config import get_settings
from learnix.database import get_db
from learnix.dependencies import CurrentUser, get_current_user, require_author
from learnix.upload import controller
from learnix.upload.schemas import UploadResponse
from learnix.upload.storage import LocalStorage

router = APIRouter(prefix="/upload", tags=["Upload"])


def get_storage() -> LocalStorage:
    return LocalStorage.from_settings(get_settings())


@router.post(
    "/avatar",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload my avatar",
    description="JPEG, PNG, GIF, WebP or SVG up to 5 MB. Also sets the caller's `avatar_url`.",
)
async def upload_avatar(
    file: UploadFile = File(...),
    current_user: CurrentUser = Depends(get_current_user),
    storage: LocalStorage = Depends(get_storage),
    db: AsyncSession = Depends(get_db),
) -> UploadResponse:
    return await controller.upload_avatar(db, current_user.id, storage, file)


@router.post(
    "/image",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload an image",
    description="JPEG, PNG, GIF, WebP or SVG up to 10 MB.",
)
async def upload_image(
    file: UploadFile = File(...),
    current_user: CurrentUser = Depends(get_current_user),
    storage: LocalStorage = Depends(get_storage),
) -> UploadResponse:
    return await controller.upload_image(storage, file)


@router.post(
    "/images",
    response_model=list[UploadResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Upload up to 10 images",
)
async def upload_images(
    files: list[UploadFile] = File(...),
    current_user: CurrentUser = Depends(get_current_user),
    storage: LocalStorage = Depends(get_storage),
) -> list[UploadResponse]:
    return await controller.upload_images(storage, files)


@router.post(
    "/video",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a video",
    description="MP4, WebM, Ogg or QuickTime up to 100 MB.",
)
async def upload_video(
    file: UploadFile = File(...),
    current_user: CurrentUser = Depends(get_current_user),
    storage: LocalStorage = Depends(get_storage),
) -> UploadResponse:
    return await controller.upload_video(storage, file)


@router.post(
    "/file",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a document",
    description="Any file type up to 25 MB.",
)
async def upload_file(
    file: UploadFile = File(...),
    current_user: CurrentUser = Depends(get_current_user),
    storage: LocalStorage = Depends(get_storage),
) -> UploadResponse:
    return await controller.upload_document(storage, file)


@router.delete(
    "/{filename:path}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an uploaded file",
    description="Accepts a stored filename or its full public URL.",
)
async def delete_file(
    filename: str,
    current_user: CurrentUser = Depends(require_author),
    storage: LocalStorage = Depends(get_storage),
) -> None:
    await controller.delete_file(storage, filename)
