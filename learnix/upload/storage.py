"""
Local disk storage for uploads.

Files are written under ``upload_path`` into a fixed set of subdirectories and
served back as static files at ``/uploads/<subdir>/<filename>``.  Every path
this module touches is resolved and checked to stay inside its subdirectory.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from urllib.parse import unquote, urlparse

from learnix.config import Settings
from learnix.exceptions import InvalidFilePathError, InvalidUploadError, StoredFileNotFoundError

logger = logging.getLogger(__name__)

SUBDIRS = ("images", "videos", "audio", "documents", "misc")

MB = 1024 * 1024

IMAGE_TYPES = ("image/jpeg", "image/png", "image/gif", "image/webp", "image/svg+xml")
IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg")
VIDEO_TYPES = ("video/mp4", "video/webm", "video/ogg", "video/quicktime")
VIDEO_EXTENSIONS = (".mp4", ".webm", ".ogg", ".mov")

MAX_FILE_SIZES: dict[str, int] = {
    "avatar": 5 * MB,
    "image": 10 * MB,
    "document": 25 * MB,
    "video": 100 * MB,
}


@dataclass(slots=True)
class StoredFile:
    filename: str
    original_name: str
    mimetype: str
    size: int
    url: str


def _extension(name: str) -> str:
    return PurePosixPath(name).suffix.lower()


def check_size(size: int, kind: str) -> None:
    limit = MAX_FILE_SIZES[kind]
    if size > limit:
        raise InvalidUploadError(f"File size exceeds limit. Maximum size: {limit // MB}MB")


def _check_type(
    original_name: str, mimetype: str | None, types: tuple[str, ...], extensions: tuple[str, ...]
) -> None:
    if mimetype not in types:
        raise InvalidUploadError(f"Invalid file type. Allowed types: {', '.join(types)}")
    if _extension(original_name) not in extensions:
        raise InvalidUploadError(
            f"Invalid file extension. Allowed extensions: {', '.join(extensions)}"
        )


def check_image_type(original_name: str, mimetype: str | None) -> None:
    _check_type(original_name, mimetype, IMAGE_TYPES, IMAGE_EXTENSIONS)


def check_video_type(original_name: str, mimetype: str | None) -> None:
    _check_type(original_name, mimetype, VIDEO_TYPES, VIDEO_EXTENSIONS)


def validate_image(original_name: str, mimetype: str | None, size: int, kind: str = "image") -> None:
    """``kind`` is ``avatar`` (5 MB) or ``image`` (10 MB)."""
    check_image_type(original_name, mimetype)
    check_size(size, kind)


def validate_video(original_name: str, mimetype: str | None, size: int) -> None:
    check_video_type(original_name, mimetype)
    check_size(size, "video")


def validate_document(size: int) -> None:
    check_size(size, "document")


class LocalStorage:
    def __init__(self, root: str | Path, base_url: str) -> None:
        self.root = Path(root).resolve()
        self.base_url = base_url.rstrip("/")

    @classmethod
    def from_settings(cls, settings: Settings) -> LocalStorage:
        return cls(settings.upload_path, settings.backend_url)

    def url_for(self, subdir: str, filename: str) -> str:
        return f"{self.base_url}/uploads/{subdir}/{filename}"

    def resolve(self, subdir: str, filename: str) -> Path:
        """Absolute path of *filename* inside *subdir*; traversal raises ``InvalidFilePathError``."""
        if subdir not in SUBDIRS:
            raise InvalidFilePathError()
        base = self.root / subdir
        path = (base / filename).resolve()
        if path == base or not path.is_relative_to(base):
            raise InvalidFilePathError()
        return path

    def save(self, data: bytes, original_name: str, mimetype: str | None, subdir: str) -> StoredFile:
        filename = f"{uuid.uuid4().hex}{_extension(original_name)}"
        path = self.resolve(subdir, filename)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return StoredFile(
            filename=filename,
            original_name=original_name,
            mimetype=mimetype or "application/octet-stream",
            size=len(data),
            url=self.url_for(subdir, filename),
        )

    def discard(self, subdir: str, filename: str) -> None:
        """Remove a file written by ``save``; a missing file is ignored."""
        self.resolve(subdir, filename).unlink(missing_ok=True)

    def locate(self, filename_or_url: str) -> Path:
        """Find a stored file from a bare filename or its public URL."""
        if filename_or_url.startswith(("http://", "https://")):
            url_path = unquote(urlparse(filename_or_url).path)
            subdir, _, filename = url_path.removeprefix("/uploads/").partition("/")
            if subdir not in SUBDIRS or not filename:
                raise StoredFileNotFoundError()
            path = self.resolve(subdir, filename)
            if path.is_file():
                return path
            raise StoredFileNotFoundError()

        for subdir in SUBDIRS:
            path = self.resolve(subdir, filename_or_url)
            if path.is_file():
                return path
        raise StoredFileNotFoundError()

    def delete(self, filename_or_url: str) -> None:
        path = self.locate(filename_or_url)
        path.unlink()
        logger.info("Deleted upload %s", path.relative_to(self.root))
