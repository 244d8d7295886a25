"""
List Scanner Backend — Test Configuration (conftest.py)
========================================================

Shared fixtures. Store, repository and service tests run against a real
SQLite database (aiosqlite) in a per-test temporary file, with foreign keys
enforced, so cascade / nullify rules and transactions behave as in
production. The OCR engine is always mocked.

Fixture Hierarchy (all function-scoped):
    store ─┬─ photo_dao / list_dao / item_dao
           ├─ photo_repository / list_repository / item_repository
           ├─ list_creation_service (pinned clock)
           ├─ preference_dao ─ consent_repository / usage_repository (pinned clock)
           ├─ ocr_consent (consent given)
           ├─ scan_service (mock_ocr_engine, ocr_consent)
           └─ test_client (create_app with the above injected)
"""

import io
import os
import tempfile
from datetime import datetime, timezone
from unittest.mock import AsyncMock

# Settings are read at import time; point them at throwaway locations first
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///" + os.path.join(
    tempfile.mkdtemp(prefix="listscanner_test_db_"), "default.db"
)
os.environ["GEMINI_API_KEY"] = "test-key-not-real"
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="listscanner_test_")
os.environ["LOG_LEVEL"] = "WARNING"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from PIL import Image  # noqa: E402

from listscanner.models.photo import OcrStatus, Photo  # noqa: E402
from listscanner.repositories.consent_repository import PrivacyConsentRepository  # noqa: E402
from listscanner.repositories.item_repository import ItemRepository  # noqa: E402
from listscanner.repositories.list_repository import ListRepository  # noqa: E402
from listscanner.repositories.photo_repository import PhotoRepository  # noqa: E402
from listscanner.repositories.usage_repository import UsageTrackingRepository  # noqa: E402
from listscanner.services.file_service import FileService  # noqa: E402
from listscanner.services.image_crop_service import ImageCropService  # noqa: E402
from listscanner.services.list_creation_service import ListCreationService  # noqa: E402
from listscanner.services.ocr_base import OcrEngine  # noqa: E402
from listscanner.services.scan_service import ScanService  # noqa: E402
from listscanner.store.data_store import DataStore  # noqa: E402
from listscanner.store.item_dao import ItemDao  # noqa: E402
from listscanner.store.list_dao import ListDao  # noqa: E402
from listscanner.store.photo_dao import PhotoDao  # noqa: E402
from listscanner.store.preference_dao import PreferenceDao  # noqa: E402

# 2024-03-15 09:30 local time
FIXED_NOW = datetime(2024, 3, 15, 9, 30).astimezone()


# ══════════════════════════════════════════════════════════════════════════
# Storage
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def store(tmp_path):
    """A DataStore on a fresh SQLite file with the schema created."""
    data_store = DataStore.from_url(f"sqlite+aiosqlite:///{tmp_path / 'listscanner.db'}")
    await data_store.create_schema()
    yield data_store
    await data_store.dispose()


@pytest.fixture
def photo_dao(store):
    return PhotoDao(store)


@pytest.fixture
def list_dao(store):
    return ListDao(store)


@pytest.fixture
def item_dao(store):
    return ItemDao(store)


@pytest.fixture
def preference_dao(store):
    return PreferenceDao(store)


@pytest.fixture
def temp_storage(tmp_path):
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return str(storage_dir)


@pytest.fixture
def file_service(temp_storage):
    return FileService(storage_root=temp_storage)


@pytest.fixture
def sample_image_bytes():
    """Smallest valid JPEG: SOI + JFIF header + EOI."""
    return (
        b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
        b'\xff\xd9'
    )


@pytest_asyncio.fixture
async def stored_photo(photo_dao, file_service, sample_image_bytes) -> Photo:
    """A PENDING photo whose image file exists in temp storage."""
    absolute_path, _ = await file_service.validate_and_store("list.jpg", sample_image_bytes)
    photo = Photo(
        file_path=absolute_path,
        timestamp=datetime.now(timezone.utc),
        ocr_status=OcrStatus.PENDING,
    )
    await photo_dao.insert(photo)
    return photo


@pytest.fixture
def png_image_bytes():
    """200x100 PNG, white on the left half and black on the right."""
    image = Image.new("RGB", (200, 100), "white")
    image.paste((0, 0, 0), (100, 0, 200, 100))
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


@pytest_asyncio.fixture
async def png_photo(photo_dao, file_service, png_image_bytes) -> Photo:
    """A PENDING photo backed by a decodable image."""
    absolute_path, _ = await file_service.validate_and_store("list.png", png_image_bytes)
    photo = Photo(
        file_path=absolute_path,
        timestamp=datetime.now(timezone.utc),
        ocr_status=OcrStatus.PENDING,
    )
    await photo_dao.insert(photo)
    return photo


# ══════════════════════════════════════════════════════════════════════════
# Repositories & Services
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def photo_repository(photo_dao, file_service):
    return PhotoRepository(photo_dao, file_service)


@pytest.fixture
def list_repository(store, list_dao, photo_dao):
    return ListRepository(store, list_dao, photo_dao)


@pytest.fixture
def item_repository(store, item_dao):
    return ItemRepository(store, item_dao)


@pytest.fixture
def list_creation_service(store, list_dao, item_dao):
    return ListCreationService(store, list_dao, item_dao, clock=lambda: FIXED_NOW)


@pytest.fixture
def consent_repository(preference_dao):
    return PrivacyConsentRepository(preference_dao)


@pytest.fixture
def usage_repository(store, preference_dao):
    return UsageTrackingRepository(store, preference_dao, clock=lambda: FIXED_NOW)


@pytest_asyncio.fixture
async def ocr_consent(consent_repository):
    """The user has agreed to cloud OCR."""
    await consent_repository.set_user_consent(True)


@pytest.fixture
def mock_ocr_engine():
    engine = AsyncMock(spec=OcrEngine)
    engine.recognize_text.return_value = "milk\neggs\nbread"
    engine.recognize_image.return_value = "milk\neggs\nbread"
    engine.health_check.return_value = True
    return engine


@pytest.fixture
def scan_service(
    photo_repository,
    list_creation_service,
    mock_ocr_engine,
    consent_repository,
    usage_repository,
    ocr_consent,
):
    return ScanService(
        photo_repository,
        list_creation_service,
        mock_ocr_engine,
        consent_repository,
        usage_repository,
        ImageCropService(),
    )


# ══════════════════════════════════════════════════════════════════════════
# HTTP
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def app(store, mock_ocr_engine, file_service, ocr_consent):
    """
    Application wired to the test store. ASGITransport does not run the
    lifespan, so the `store` fixture's schema is what the app sees.
    Cloud OCR consent is already given.
    """
    from listscanner.main import create_app

    return create_app(store=store, ocr_engine=mock_ocr_engine, file_service=file_service)


@pytest_asyncio.fixture
async def test_client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
