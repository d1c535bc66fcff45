from receipt_intake import cli
from receipt_intake.core.config import Settings, get_settings


def test_defaults_match_upload_contract():
    settings = Settings(_env_file=None)

    assert settings.port == 5000
    assert settings.upload_field_name == "receipt"
    assert settings.ocr_language == "eng"
    assert settings.allowed_mime_types == ["image/jpeg", "image/png", "image/jpg"]
    assert settings.unsupported_mime_types == ["application/pdf"]


def test_list_settings_accept_comma_separated_env(monkeypatch):
    monkeypatch.setenv("ALLOWED_MIME_TYPES", "image/png, image/webp")
    monkeypatch.setenv("UNSUPPORTED_MIME_TYPES", "")
    monkeypatch.setenv("CORS_ALLOW_ORIGINS", "http://localhost:5173,https://app.example.com")

    settings = get_settings()

    assert settings.allowed_mime_types == ["image/png", "image/webp"]
    assert settings.unsupported_mime_types == []
    assert settings.cors_allow_origins == ["http://localhost:5173", "https://app.example.com"]


def test_tesseract_cmd_env_alias(monkeypatch):
    monkeypatch.setenv("TESSERACT_CMD", "/opt/tesseract/bin/tesseract")
    assert Settings(_env_file=None).tesseract_cmd == "/opt/tesseract/bin/tesseract"


def test_concurrency_never_below_one():
    assert Settings(_env_file=None, ocr_max_concurrency=0).ocr_max_concurrency == 1


def test_serve_runs_app_factory(monkeypatch):
    calls = {}

    def fake_run(target, **kwargs):
        calls["target"] = target
        calls.update(kwargs)

    monkeypatch.setattr(cli.uvicorn, "run", fake_run)

    assert cli.main(["serve", "--port", "5050"]) == 0
    assert calls["target"] == "receipt_intake.main:create_app"
    assert calls["factory"] is True
    assert calls["port"] == 5050


def test_mime_type_lists_are_lowercased(monkeypatch):
    monkeypatch.setenv("ALLOWED_MIME_TYPES", "Image/PNG,IMAGE/JPEG")
    monkeypatch.setenv("UNSUPPORTED_MIME_TYPES", "Application/PDF")

    settings = get_settings()

    assert settings.allowed_mime_types == ["image/png", "image/jpeg"]
    assert settings.unsupported_mime_types == ["application/pdf"]


def test_scan_reports_unreadable_file_without_traceback(tmp_path, capsys):
    missing = tmp_path / "nope.png"

    assert cli.main(["scan", str(missing), "--dry-run"]) == 1

    err = capsys.readouterr().err
    assert "[ERROR] Cannot read" in err
    assert "nope.png" in err
    assert "Traceback" not in err
