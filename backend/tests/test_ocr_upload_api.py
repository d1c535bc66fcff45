import logging
import threading
from pathlib import Path

import httpx
import pytest

from receipt_intake.core.config import Settings
from receipt_intake.main import create_app
from receipt_intake.services.ocr.base import BaseOcrEngine


class CrashingEngine(BaseOcrEngine):
    name = "crashing"

    def recognize(self, image_path: Path, *, language: str = "eng", timeout_seconds: float = 0) -> str:
        raise RuntimeError("tesseract crashed reading /srv/secret/path")


def _staged_files(settings) -> list[Path]:
    return sorted(p for p in settings.upload_dir.iterdir() if p.is_file())


@pytest.mark.asyncio
async def test_upload_returns_recognized_text(client, engine, settings, png_bytes):
    resp = await client.post("/ocr-upload", files={"receipt": ("lunch.png", png_bytes, "image/png")})

    assert resp.status_code == 200, resp.text
    assert resp.json() == {"text": "Total: 1 234.56 Tax: 99.99"}

    staged = _staged_files(settings)
    assert len(staged) == 1
    assert staged[0].suffix == ".png"
    assert staged[0].read_bytes() == png_bytes
    assert engine.calls == [(staged[0], "eng")]


@pytest.mark.asyncio
async def test_each_upload_gets_its_own_staged_file(client, settings, png_bytes):
    for _ in range(3):
        resp = await client.post("/ocr-upload", files={"receipt": ("same.png", png_bytes, "image/png")})
        assert resp.status_code == 200

    assert len(_staged_files(settings)) == 3


@pytest.mark.asyncio
async def test_legacy_image_jpg_type_is_accepted(client, png_bytes):
    resp = await client.post("/ocr-upload", files={"receipt": ("r.jpg", png_bytes, "image/jpg")})
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_missing_file_is_bad_request(client, engine, png_bytes):
    resp = await client.post("/ocr-upload", files={"attachment": ("r.png", png_bytes, "image/png")})

    assert resp.status_code == 400
    assert "receipt" in resp.json()["error"]
    assert engine.calls == []


@pytest.mark.asyncio
async def test_empty_request_body_is_bad_request(client):
    resp = await client.post("/ocr-upload")

    assert resp.status_code == 400
    assert "error" in resp.json()


@pytest.mark.asyncio
async def test_pdf_is_rejected_with_dedicated_message(client, engine, settings):
    resp = await client.post("/ocr-upload", files={"receipt": ("r.pdf", b"%PDF-1.4", "application/pdf")})

    assert resp.status_code == 415
    assert resp.json() == {"error": "OCR currently supports images (JPG/PNG). Please upload an image."}
    assert engine.calls == []
    assert _staged_files(settings) == []


@pytest.mark.asyncio
async def test_unknown_type_is_rejected(client):
    resp = await client.post("/ocr-upload", files={"receipt": ("r.gif", b"GIF89a", "image/gif")})

    assert resp.status_code == 415
    assert resp.json() == {"error": "Please select a PDF, JPG, or PNG file"}


@pytest.mark.asyncio
async def test_empty_file_is_rejected(client):
    resp = await client.post("/ocr-upload", files={"receipt": ("r.png", b"", "image/png")})

    assert resp.status_code == 400
    assert resp.json() == {"error": "Empty file"}


@pytest.mark.asyncio
async def test_oversize_file_is_rejected(settings, engine, png_bytes):
    app = create_app(settings.model_copy(update={"max_upload_bytes": 16}), engine=engine)
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as c:
        resp = await c.post("/ocr-upload", files={"receipt": ("r.png", png_bytes, "image/png")})

    assert resp.status_code == 413
    assert resp.json() == {"error": "File too large"}


@pytest.mark.asyncio
async def test_engine_fault_returns_500_and_keeps_staged_file(settings, png_bytes, caplog):
    app = create_app(settings, engine=CrashingEngine())
    caplog.set_level(logging.ERROR, logger="receipt_intake.api.v1.ocr")

    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as c:
        resp = await c.post("/ocr-upload", files={"receipt": ("r.png", png_bytes, "image/png")})

    assert resp.status_code == 500
    assert resp.json() == {"error": "OCR failed"}
    assert "secret" not in resp.text

    staged = _staged_files(settings)
    assert len(staged) == 1
    assert staged[0].read_bytes() == png_bytes

    assert any("OCR error" in record.getMessage() for record in caplog.records)


@pytest.mark.asyncio
async def test_staged_upload_is_served_for_preview(client, settings, png_bytes):
    await client.post("/ocr-upload", files={"receipt": ("r.png", png_bytes, "image/png")})
    staged = _staged_files(settings)[0]

    resp = await client.get(f"/uploads/{staged.name}")

    assert resp.status_code == 200
    assert resp.content == png_bytes


@pytest.mark.asyncio
async def test_unknown_staged_file_is_not_found(client):
    resp = await client.get("/uploads/does-not-exist.png")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_status_endpoint_describes_configuration(client):
    resp = await client.get("/ocr/status")

    assert resp.status_code == 200
    data = resp.json()
    assert data["module"] == "ocr"
    assert data["engine"] == "mock"
    assert data["language"] == "eng"
    assert data["upload_field"] == "receipt"
    assert data["accepted_types"] == ["image/jpeg", "image/png", "image/jpg"]
    assert data["unsupported_types"] == ["application/pdf"]


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_apps_do_not_share_state(settings, tmp_path):
    other = settings.model_copy(update={"upload_dir": tmp_path / "other"})

    first = create_app(settings)
    second = create_app(other)

    assert first is not second
    assert first.state.ocr_service is not second.state.ocr_service
    assert (tmp_path / "other").is_dir()


@pytest.mark.asyncio
async def test_staging_write_runs_off_the_event_loop(client, monkeypatch, png_bytes):
    from receipt_intake.api.v1 import ocr as ocr_module

    loop_thread = threading.get_ident()
    writer_threads = []
    real_stage_upload = ocr_module.stage_upload

    def recording_stage_upload(*args, **kwargs):
        writer_threads.append(threading.get_ident())
        return real_stage_upload(*args, **kwargs)

    monkeypatch.setattr(ocr_module, "stage_upload", recording_stage_upload)

    resp = await client.post("/ocr-upload", files={"receipt": ("r.png", png_bytes, "image/png")})

    assert resp.status_code == 200
    assert len(writer_threads) == 1
    assert writer_threads[0] != loop_thread


@pytest.mark.asyncio
async def test_mixed_case_allowed_types_still_match(settings, engine, png_bytes):
    mixed = Settings(
        _env_file=None,
        upload_dir=settings.upload_dir,
        ocr_engine="mock",
        staging_cleanup_enabled=False,
        allowed_mime_types=["Image/PNG"],
    )
    app = create_app(mixed, engine=engine)

    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as c:
        resp = await c.post("/ocr-upload", files={"receipt": ("r.png", png_bytes, "image/png")})

    assert resp.status_code == 200, resp.text
