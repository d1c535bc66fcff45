import io

import httpx
import pytest
import pytest_asyncio
from PIL import Image

from receipt_intake.core.config import Settings, get_settings
from receipt_intake.main import create_app
from receipt_intake.services.ocr.mock import MockOcrEngine


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    # Tests mutate env vars; never leak a cached Settings instance between them.
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def make_image_bytes(fmt: str = "PNG", size: tuple[int, int] = (120, 60)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color=(255, 255, 255)).save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    return make_image_bytes("PNG")


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        upload_dir=tmp_path / "uploads",
        ocr_engine="mock",
        staging_cleanup_enabled=False,
    )


@pytest.fixture
def engine() -> MockOcrEngine:
    return MockOcrEngine(text="Total: 1 234.56 Tax: 99.99")


@pytest.fixture
def app(settings, engine):
    return create_app(settings, engine=engine)


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
