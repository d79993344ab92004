from pathlib import Path

import pytest
from httpx import AsyncClient

from learnix.exceptions import UserNotFoundError
from learnix.main import app
from learnix.upload import controller as upload_controller
from learnix.upload import storage as upload_storage
from learnix.upload.router import get_storage
from learnix.upload.storage import LocalStorage

API = "/api/v1/upload"
PNG = ("pic.png", b"\x89PNG\r\n\x1a\n", "image/png")


@pytest.fixture
def storage(tmp_path: Path):
    local = LocalStorage(tmp_path / "uploads", "http://testserver")
    app.dependency_overrides[get_storage] = lambda: local
    yield local
    app.dependency_overrides.pop(get_storage, None)


@pytest.mark.asyncio
async def test_upload_image(client: AsyncClient, storage: LocalStorage, student, headers) -> None:
    resp = await client.post(f"{API}/image", files={"file": PNG}, headers=headers(student))
    assert resp.status_code == 201
    body = resp.json()
    assert body["original_name"] == "pic.png"
    assert body["mimetype"] == "image/png"
    assert body["url"] == f"http://testserver/uploads/images/{body['filename']}"
    assert (storage.root / "images" / body["filename"]).is_file()


@pytest.mark.asyncio
async def test_upload_requires_login(client: AsyncClient, storage: LocalStorage) -> None:
    resp = await client.post(f"{API}/image", files={"file": PNG})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_upload_rejects_wrong_type(client: AsyncClient, storage: LocalStorage, student, headers) -> None:
    resp = await client.post(
        f"{API}/image", files={"file": ("x.pdf", b"%PDF", "application/pdf")}, headers=headers(student)
    )
    assert resp.status_code == 400
    assert resp.json()["detail"].startswith("Invalid file type")


@pytest.mark.asyncio
async def test_avatar_updates_profile(client: AsyncClient, storage: LocalStorage, student, headers) -> None:
    resp = await client.post(f"{API}/avatar", files={"file": PNG}, headers=headers(student))
    assert resp.status_code == 201

    me = await client.get("/api/v1/auth/me", headers=headers(student))
    assert me.json()["avatar_url"] == resp.json()["url"]


@pytest.mark.asyncio
async def test_multiple_images_all_or_nothing(
    client: AsyncClient, storage: LocalStorage, student, headers
) -> None:
    ok = await client.post(
        f"{API}/images", files=[("files", PNG), ("files", ("b.gif", b"GIF89a", "image/gif"))],
        headers=headers(student),
    )
    assert ok.status_code == 201
    assert len(ok.json()) == 2

    bad = await client.post(
        f"{API}/images", files=[("files", PNG), ("files", ("c.txt", b"text", "text/plain"))],
        headers=headers(student),
    )
    assert bad.status_code == 400
    assert len(list((storage.root / "images").iterdir())) == 2

    too_many = await client.post(
        f"{API}/images", files=[("files", PNG)] * 11, headers=headers(student)
    )
    assert too_many.status_code == 400
    assert too_many.json()["detail"] == "Too many files. Maximum is 10"


@pytest.mark.asyncio
async def test_video_and_document(client: AsyncClient, storage: LocalStorage, student, headers) -> None:
    video = await client.post(
        f"{API}/video", files={"file": ("clip.mp4", b"\x00\x00", "video/mp4")}, headers=headers(student)
    )
    assert video.status_code == 201
    assert "/uploads/videos/" in video.json()["url"]

    doc = await client.post(
        f"{API}/file", files={"file": ("notes.zip", b"PK", "application/zip")}, headers=headers(student)
    )
    assert doc.status_code == 201
    assert "/uploads/documents/" in doc.json()["url"]


@pytest.mark.asyncio
async def test_delete_is_for_authors(
    client: AsyncClient, storage: LocalStorage, student, instructor, headers
) -> None:
    stored = storage.save(b"x", "a.png", "image/png", "images")

    denied = await client.delete(f"{API}/{stored.filename}", headers=headers(student))
    assert denied.status_code == 403

    resp = await client.delete(f"{API}/{stored.filename}", headers=headers(instructor))
    assert resp.status_code == 204
    assert not (storage.root / "images" / stored.filename).exists()

    missing = await client.delete(f"{API}/{stored.filename}", headers=headers(instructor))
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_oversized_upload_is_rejected_before_storing(
    client: AsyncClient, storage: LocalStorage, student, headers, monkeypatch
) -> None:
    monkeypatch.setitem(upload_storage.MAX_FILE_SIZES, "image", 4)
    monkeypatch.setitem(upload_storage.MAX_FILE_SIZES, "document", 4)

    image = await client.post(f"{API}/image", files={"file": PNG}, headers=headers(student))
    assert image.status_code == 400
    assert image.json()["detail"].startswith("File size exceeds limit")

    doc = await client.post(
        f"{API}/file", files={"file": ("notes.txt", b"12345", "text/plain")}, headers=headers(student)
    )
    assert doc.status_code == 400

    exact = await client.post(
        f"{API}/file", files={"file": ("notes.txt", b"1234", "text/plain")}, headers=headers(student)
    )
    assert exact.status_code == 201
    assert not (storage.root / "images").exists()


@pytest.mark.asyncio
async def test_avatar_file_removed_when_profile_update_fails(
    client: AsyncClient, storage: LocalStorage, student, headers, monkeypatch
) -> None:
    async def missing_user(db, user_id, changes):
        raise UserNotFoundError()

    monkeypatch.setattr(upload_controller.users_service, "update_profile", missing_user)

    resp = await client.post(f"{API}/avatar", files={"file": PNG}, headers=headers(student))
    assert resp.status_code == 404
    assert list((storage.root / "images").iterdir()) == []
