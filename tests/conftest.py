import os
import shutil
import tempfile

# settings are read at import time, so the environment goes first
_TEST_ROOT = tempfile.mkdtemp(prefix="asset_service_tests_")
_DB_PATH = os.path.join(_TEST_ROOT, "test.db")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_PATH}"
os.environ["UPLOAD_DIR"] = os.path.join(_TEST_ROOT, "uploads")
os.environ["BARCODE_LOGO_PATH"] = os.path.join(_TEST_ROOT, "no-logo.png")
os.environ["TEMP_CLEANUP_DELAY_SECONDS"] = "0"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["APP_URL"] = "http://testserver"
os.environ["API_PREFIX"] = "/api/v1"

import uuid
from datetime import datetime
from types import SimpleNamespace
from typing import List, Optional, Sequence

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from shared.core.auth import create_access_token
from shared.core.config import settings
from shared.core.database import Base
from shared.models.users import Users
from asset_service.app.crud.assets.asset_repository import AssetRepository, DuplicateBarcodeError
from asset_service.app.models.assets import Asset
from asset_service.app.models.brands import Brand
from asset_service.app.models.clients import Client
from asset_service.app.models.dealers import Dealer

FIXED_NOW = datetime(2025, 3, 14, 12, 0, 0, 123000)


def fixed_clock():
    return FIXED_NOW


# ============================================================
# STORAGE
# ============================================================

@pytest.fixture(scope="session")
def sync_engine():
    engine = create_engine(f"sqlite:///{_DB_PATH}")
    yield engine
    engine.dispose()
    shutil.rmtree(_TEST_ROOT, ignore_errors=True)


@pytest.fixture(autouse=True)
def clean_state(sync_engine):
    Base.metadata.drop_all(sync_engine)
    Base.metadata.create_all(sync_engine)
    shutil.rmtree(settings.UPLOAD_DIR, ignore_errors=True)
    os.makedirs(settings.barcode_dir, exist_ok=True)
    os.makedirs(settings.temp_dir, exist_ok=True)
    yield


@pytest.fixture
def db_session(sync_engine):
    with Session(sync_engine) as session:
        yield session


def stored_files(directory: str) -> List[str]:
    if not os.path.isdir(directory):
        return []
    return sorted(name for name in os.listdir(directory) if not name.startswith("."))


# ============================================================
# SEED DATA
# ============================================================

@pytest.fixture
def seed(db_session):
    ids = SimpleNamespace(
        acme=uuid.uuid4(),
        beta=uuid.uuid4(),
        dormant=uuid.uuid4(),
        brand=uuid.uuid4(),
        client=uuid.uuid4(),
        other_client=uuid.uuid4(),
        admin=uuid.uuid4(),
        acme_user=uuid.uuid4(),
        beta_user=uuid.uuid4(),
        client_user=uuid.uuid4(),
        inactive_user=uuid.uuid4(),
    )
    db_session.add_all([
        Dealer(id=ids.acme, dealer_code="ACME", name="Acme Retail", shop_name="Acme Store",
               email="acme@example.com", phone="555-0100", address="1 Market Street"),
        Dealer(id=ids.beta, dealer_code="BETA", name="Beta Traders", address="2 Harbour Road"),
        Dealer(id=ids.dormant, dealer_code="DORM", name="Dormant Dealer", is_active=False),
        Brand(id=ids.brand, name="Sparkle"),
        Client(id=ids.client, name="Client One", company="Client Co"),
        Client(id=ids.other_client, name="Client Two"),
        Users(id=ids.admin, full_name="Admin User", email="admin@example.com", role="ADMIN"),
        Users(id=ids.acme_user, full_name="Acme Owner", email="owner@acme.example.com",
              role="DEALER", dealer_id=ids.acme),
        Users(id=ids.beta_user, full_name="Beta Owner", email="owner@beta.example.com",
              role="DEALER", dealer_id=ids.beta),
        Users(id=ids.client_user, full_name="Client Viewer", email="viewer@client.example.com",
              role="CLIENT", client_id=ids.client),
        Users(id=ids.inactive_user, full_name="Gone User", email="gone@example.com",
              role="ADMIN", is_active=False),
    ])
    db_session.commit()
    return ids


def bearer(user_id: uuid.UUID, role: str) -> dict:
    token = create_access_token({"user_id": user_id, "role": role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers(seed):
    return SimpleNamespace(
        admin=bearer(seed.admin, "ADMIN"),
        acme=bearer(seed.acme_user, "DEALER"),
        beta=bearer(seed.beta_user, "DEALER"),
        client=bearer(seed.client_user, "CLIENT"),
        inactive=bearer(seed.inactive_user, "ADMIN"),
    )


@pytest.fixture
def client(seed):
    from asset_service.app.main import app

    with TestClient(app) as test_client:
        yield test_client


# ============================================================
# IN-MEMORY REPOSITORY
# ============================================================

class InMemoryAssetRepository(AssetRepository):
    """Dict-backed repository with the same all-rows uniqueness rule as the
    barcode_value constraint."""

    def __init__(self):
        self.assets = {}

    def _visible(self, asset: Asset, include_deleted: bool) -> bool:
        return include_deleted or not asset.is_deleted

    def _ensure_free(self, barcode_value: str, asset_id: uuid.UUID):
        for other in self.assets.values():
            if other.barcode_value == barcode_value and other.id != asset_id:
                raise DuplicateBarcodeError(barcode_value)

    async def get_by_id(self, asset_id, include_deleted=False) -> Optional[Asset]:
        asset = self.assets.get(asset_id)
        if asset is None or not self._visible(asset, include_deleted):
            return None
        return asset

    async def find_by_barcode(self, barcode_value, include_deleted=False) -> Optional[Asset]:
        value = barcode_value.upper()
        for asset in self.assets.values():
            if asset.barcode_value == value and self._visible(asset, include_deleted):
                return asset
        return None

    async def exists_by_barcode(self, barcode_value, exclude_asset_id=None, include_deleted=False) -> bool:
        value = barcode_value.upper()
        return any(
            asset.barcode_value == value
            and asset.id != exclude_asset_id
            and self._visible(asset, include_deleted)
            for asset in self.assets.values()
        )

    async def exists_by_asset_no(self, asset_no) -> bool:
        return any(a.asset_no == asset_no and not a.is_deleted for a in self.assets.values())

    async def exists_by_fixture_no(self, dealer_id, fixture_no) -> bool:
        return any(
            a.dealer_id == dealer_id and a.fixture_no == fixture_no and not a.is_deleted
            for a in self.assets.values()
        )

    async def insert(self, asset: Asset) -> Asset:
        asset.barcode_value = asset.barcode_value.upper()
        if asset.id is None:
            asset.id = uuid.uuid4()
        if asset.is_deleted is None:
            asset.is_deleted = False
        self._ensure_free(asset.barcode_value, asset.id)
        self.assets[asset.id] = asset
        return asset

    async def update_identity(self, asset, barcode_value, barcode_image_path, updated_by) -> Asset:
        value = barcode_value.upper()
        self._ensure_free(value, asset.id)
        asset.barcode_value = value
        asset.barcode_image_path = barcode_image_path
        asset.updated_by = updated_by
        return asset

    async def list_for_dealer(self, dealer_id) -> List[Asset]:
        return [a for a in self.assets.values() if a.dealer_id == dealer_id and not a.is_deleted]

    async def list_by_ids(self, asset_ids: Sequence[uuid.UUID]) -> List[Asset]:
        return [a for a in self.assets.values() if a.id in set(asset_ids) and not a.is_deleted]

    async def soft_delete(self, asset, updated_by) -> Asset:
        asset.is_deleted = True
        asset.updated_by = updated_by
        return asset


@pytest.fixture
def repo():
    return InMemoryAssetRepository()


def make_dealer(code="ACME", is_active=True, is_deleted=False, **kwargs) -> Dealer:
    return Dealer(id=uuid.uuid4(), dealer_code=code, name=f"{code} Dealer",
                  is_active=is_active, is_deleted=is_deleted, **kwargs)


def make_asset(dealer: Dealer, barcode_value: str, /, asset_no="A1", fixture_no="F100",
               barcode_image_path="barcodes/missing.png", is_deleted=False, **kwargs) -> Asset:
    return Asset(
        id=uuid.uuid4(),
        asset_no=asset_no,
        fixture_no=fixture_no,
        dealer_id=dealer.id,
        status="ACTIVE",
        barcode_value=barcode_value,
        barcode_image_path=barcode_image_path,
        is_deleted=is_deleted,
        **kwargs,
    )
