"""HTTP tests for the files, info and health routes."""
from datetime import timedelta

from httpx import ASGITransport, AsyncClient

from filedrop.exceptions import BlobWriteError
from filedrop.main import create_app
from filedrop.schemas.file import FileRecord
from filedrop.services.file_storage import FileStorageService


async def _upload(client: AsyncClient, name: str, content: bytes, hours: str | None = None):
    data = {"expirationHours": hours} if hours is not None else None
    return await client.post(
        "/api/upload",
        files={"file": (name, content, "text/plain")},
        data=data,
    )


async def test_upload_returns_record(client: AsyncClient) -> None:
    response = await _upload(client, "a.txt", b"hello", "1")

    assert response.status_code == 200
    body = response.json()
    assert set(body) == {"id", "name", "size", "uploadedAt", "expiresAt"}
    record = FileRecord.model_validate(body)
    assert record.name == "a.txt"
    assert record.size == 5
    assert record.expires_at - record.uploaded_at == timedelta(hours=1)


async def test_upload_invalid_expiration_uses_default(client: AsyncClient) -> None:
    response = await _upload(client, "a.txt", b"hello", "soon")

    record = FileRecord.model_validate(response.json())
    assert record.expires_at - record.uploaded_at == timedelta(hours=24)


async def test_upload_without_expiration_uses_default(client: AsyncClient) -> None:
    response = await _upload(client, "a.txt", b"hello")

    record = FileRecord.model_validate(response.json())
    assert record.expires_at - record.uploaded_at == timedelta(hours=24)


async def test_upload_without_file_returns_400(client: AsyncClient) -> None:
    response = await client.post("/api/upload", data={"expirationHours": "2"})
    assert response.status_code == 400


async def test_upload_with_text_file_field_returns_400(client: AsyncClient) -> None:
    response = await client.post("/api/upload", data={"file": "not-a-file"})

    assert response.status_code == 400
    assert response.json()["detail"] == "Failed to read file"
    assert (await client.get("/api/files")).json()["files"] == []


async def test_upload_huge_expiration_uses_default(client: AsyncClient, storage_dir) -> None:
    response = await _upload(client, "a.txt", b"hello", "100000000")

    assert response.status_code == 200
    record = FileRecord.model_validate(response.json())
    assert record.expires_at - record.uploaded_at == timedelta(hours=24)

    files = (await client.get("/api/files")).json()["files"]
    assert [f["id"] for f in files] == [record.id]
    blobs = {p.name for p in storage_dir.iterdir() if not p.name.startswith("metadata")}
    assert blobs == {record.id}


async def test_upload_store_failure_returns_500(app, client: AsyncClient, monkeypatch) -> None:
    async def broken_save(name, chunks, ttl_hours):
        raise BlobWriteError("Failed to write file: disk full")

    monkeypatch.setattr(app.state.file_storage, "save_file", broken_save)

    response = await _upload(client, "a.txt", b"hello")
    assert response.status_code == 500


async def test_list_files_most_recent_first(client: AsyncClient) -> None:
    first = (await _upload(client, "a.txt", b"a")).json()
    second = (await _upload(client, "b.txt", b"b")).json()

    response = await client.get("/api/files")

    assert response.status_code == 200
    files = response.json()["files"]
    assert [f["id"] for f in files] == [second["id"], first["id"]]


async def test_list_files_empty(client: AsyncClient) -> None:
    response = await client.get("/api/files")
    assert response.json() == {"files": []}


async def test_download_streams_content(client: AsyncClient) -> None:
    content = b"0123456789" * 100
    record = (await _upload(client, "report.txt", content)).json()

    response = await client.get(f"/api/download/{record['id']}")

    assert response.status_code == 200
    assert response.content == content
    assert response.headers["content-type"] == "application/octet-stream"
    assert response.headers["content-disposition"] == 'attachment; filename="report.txt"'


async def test_download_unknown_returns_404(client: AsyncClient) -> None:
    response = await client.get(f"/api/download/{'0' * 32}")
    assert response.status_code == 404


async def test_delete_then_download_returns_404(client: AsyncClient) -> None:
    record = (await _upload(client, "a.txt", b"hello")).json()

    response = await client.delete(f"/api/delete/{record['id']}")
    assert response.status_code == 204
    assert response.content == b""

    assert (await client.get(f"/api/download/{record['id']}")).status_code == 404
    assert (await client.delete(f"/api/delete/{record['id']}")).status_code == 404


async def test_info_reports_ip_and_port(app, client: AsyncClient) -> None:
    app.state.local_ip = "192.168.1.20"

    response = await client.get("/api/info")

    assert response.status_code == 200
    assert response.json() == {"ip": "192.168.1.20", "port": 8080}


async def test_health_counts_files(client: AsyncClient) -> None:
    await _upload(client, "a.txt", b"hello")

    response = await client.get("/api/health")
    assert response.json() == {"status": "ok", "files": 1}


async def test_startup_and_shutdown_clear_leftovers(app_settings, storage_dir) -> None:
    async def chunks():
        yield b"left over"

    leftover = await FileStorageService(storage_dir).save_file("old.txt", chunks(), 24)

    application = create_app(app_settings)
    async with application.router.lifespan_context(application):
        assert not (storage_dir / leftover.id).exists()
        transport = ASGITransport(app=application)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            assert (await ac.get("/api/files")).json() == {"files": []}
            uploaded = (await _upload(ac, "new.txt", b"fresh")).json()
        assert application.state.expiry_sweeper.running

    assert not application.state.expiry_sweeper.running
    assert not (storage_dir / uploaded["id"]).exists()
    assert await FileStorageService(storage_dir).list_files() == []


async def test_clear_flags_off_keep_files(app_settings, storage_dir) -> None:
    async def chunks():
        yield b"keep me"

    kept = await FileStorageService(storage_dir).save_file("keep.txt", chunks(), 24)
    app_settings.CLEAR_ON_STARTUP = False
    app_settings.CLEAR_ON_SHUTDOWN = False

    application = create_app(app_settings)
    async with application.router.lifespan_context(application):
        files = await application.state.file_storage.list_files()
        assert [f.id for f in files] == [kept.id]

    assert (storage_dir / kept.id).exists()
