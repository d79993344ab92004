from __future__ import annotations

from uuid import UUID

from fastapi import HTTPException, UploadFile, status
from starlette.concurrency import run_in_threadpool
from sqlalchemy.ext.asyncio import AsyncSession

from learnix.exceptions import (
    InvalidFilePathError,
    InvalidUploadError,
    StoredFileNotFoundError,
    UserNotFoundError,
)
from learnix.upload import storage as upload_storage
from learnix.upload.schemas import UploadResponse
from learnix.upload.storage import LocalStorage
from learnix.users import service as users_service

MAX_FILES_PER_REQUEST = 10


def _handle_domain_error(exc: Exception) -> HTTPException:
    if isinstance(exc, (InvalidUploadError, InvalidFilePathError)):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message)
    if isinstance(exc, (StoredFileNotFoundError, UserNotFoundError)):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.message)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal error.")


def _name(file: UploadFile) -> str:
    return file.filename or "upload"


async def _read_limited(file: UploadFile, kind: str) -> bytes:
    """Read at most one byte past the ``kind`` limit so oversized bodies are never loaded whole."""
    if file.size is not None:
        upload_storage.check_size(file.size, kind)
    data = await file.read(upload_storage.MAX_FILE_SIZES[kind] + 1)
    upload_storage.check_size(len(data), kind)
    return data


async def _store(storage: LocalStorage, file: UploadFile, data: bytes, subdir: str) -> UploadResponse:
    stored = await run_in_threadpool(storage.save, data, _name(file), file.content_type, subdir)
    return UploadResponse.model_validate(stored)


async def upload_avatar(
    db: AsyncSession, user_id: UUID, storage: LocalStorage, file: UploadFile
) -> UploadResponse:
    try:
        upload_storage.check_image_type(_name(file), file.content_type)
        data = await _read_limited(file, "avatar")
        result = await _store(storage, file, data, "images")
    except Exception as exc:
        raise _handle_domain_error(exc) from exc
    try:
        await users_service.update_profile(db, user_id, {"avatar_url": result.url})
    except Exception as exc:
        await run_in_threadpool(storage.discard, "images", result.filename)
        raise _handle_domain_error(exc) from exc
    return result


async def upload_image(storage: LocalStorage, file: UploadFile) -> UploadResponse:
    try:
        upload_storage.check_image_type(_name(file), file.content_type)
        data = await _read_limited(file, "image")
        return await _store(storage, file, data, "images")
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def upload_images(storage: LocalStorage, files: list[UploadFile]) -> list[UploadResponse]:
    if len(files) > MAX_FILES_PER_REQUEST:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Too many files. Maximum is {MAX_FILES_PER_REQUEST}",
        )
    try:
        # All files are checked before any is written
        payloads = []
        for file in files:
            upload_storage.check_image_type(_name(file), file.content_type)
            payloads.append((file, await _read_limited(file, "image")))
        return [await _store(storage, file, data, "images") for file, data in payloads]
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def upload_video(storage: LocalStorage, file: UploadFile) -> UploadResponse:
    try:
        upload_storage.check_video_type(_name(file), file.content_type)
        data = await _read_limited(file, "video")
        return await _store(storage, file, data, "videos")
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def upload_document(storage: LocalStorage, file: UploadFile) -> UploadResponse:
    try:
        data = await _read_limited(file, "document")
        return await _store(storage, file, data, "documents")
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def delete_file(storage: LocalStorage, filename_or_url: str) -> None:
    try:
        await run_in_threadpool(storage.delete, filename_or_url)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc
