import io
import pathlib
import sys
from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from PIL import Image

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from cms_backend.app import create_app  # noqa: E402
from cms_backend.config import get_settings  # noqa: E402

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "correct-horse-battery"


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


def make_image_bytes(
    size: tuple[int, int] = (640, 480),
    *,
    image_format: str = "JPEG",
    color: tuple[int, int, int] = (180, 40, 40),
) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format=image_format)
    return buffer.getvalue()


@pytest.fixture
def upload_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    return tmp_path / "uploads"


@pytest.fixture
def client(monkeypatch, tmp_path, upload_dir) -> Generator[TestClient, None, None]:
    """Test client backed by a throwaway database and upload root."""
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "cms.db"))
    monkeypatch.setenv("UPLOAD_DIR", str(upload_dir))
    monkeypatch.setenv("UPLOAD_STAGING_DIR", str(tmp_path / "incoming"))
    monkeypatch.setenv("INITIAL_ADMIN_EMAIL", ADMIN_EMAIL)
    monkeypatch.setenv("INITIAL_ADMIN_PASSWORD", ADMIN_PASSWORD)
    monkeypatch.setenv("INITIAL_ADMIN_NAME", "Site Admin")
    get_settings.cache_clear()

    app = create_app()

    with TestClient(app) as test_client:
        yield test_client

    get_settings.cache_clear()


@pytest.fixture
def admin_headers(client: TestClient) -> dict[str, str]:
    response = client.post(
        "/api/auth/register",
        json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD, "name": "Site Admin"},
    )
    assert response.status_code == 201, response.text
    token = response.json()["data"]["token"]
    return {"Authorization": f"Bearer {token}"}
