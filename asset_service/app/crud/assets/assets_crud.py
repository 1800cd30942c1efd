# app/crud/assets/assets_crud.py
import logging
import uuid
from datetime import date
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from shared.core.schemas import UserToken
from shared.utils.enums import UserRole
from ...core.result import BarcodeResult
from ...enum.barcode_enum import BarcodeOutcome
from ...models.assets import Asset
from ...models.brands import Brand
from ...models.clients import Client
from ...models.dealers import Dealer
from ...schemas.assets.assets_schemas import AssetCreate
from ..barcodes.barcode_identity_crud import insert_with_identity
from .asset_repository import AssetRepository, SqlAlchemyAssetRepository

logger = logging.getLogger(__name__)


def can_access_asset(requester: UserToken, asset: Asset) -> bool:
    """Admins see everything; dealers and clients only their own assets."""
    role = requester.role.upper()
    if role == UserRole.ADMIN.value:
        return True
    if role == UserRole.DEALER.value:
        return requester.dealer_id is not None and asset.dealer_id == requester.dealer_id
    if role == UserRole.CLIENT.value:
        return requester.client_id is not None and asset.client_id == requester.client_id
    return False


def _user_uuid(requester: UserToken) -> Optional[uuid.UUID]:
    return uuid.UUID(requester.user_id) if requester.user_id else None


async def create_asset(
        db: AsyncSession,
        asset: AssetCreate,
        current_user: UserToken,
        repo: Optional[AssetRepository] = None) -> BarcodeResult[Asset]:
    repo = repo or SqlAlchemyAssetRepository(db)
    role = current_user.role.upper()

    if role == UserRole.CLIENT.value:
        return BarcodeResult.failure(
            BarcodeOutcome.forbidden, "You do not have permission to perform this action")
    if role == UserRole.DEALER.value and asset.dealer_id != current_user.dealer_id:
        return BarcodeResult.failure(
            BarcodeOutcome.forbidden, "Dealers can only create assets for themselves")

    dealer = await db.get(Dealer, asset.dealer_id)
    if not dealer or dealer.is_deleted:
        return BarcodeResult.failure(BarcodeOutcome.not_found, "Dealer not found")
    if not dealer.is_active:
        return BarcodeResult.failure(
            BarcodeOutcome.invalid, "Dealer is inactive and cannot receive new assets")

    if asset.brand_id:
        brand = await db.get(Brand, asset.brand_id)
        if not brand or brand.is_deleted:
            return BarcodeResult.failure(BarcodeOutcome.not_found, "Brand not found")

    if asset.client_id:
        client = await db.get(Client, asset.client_id)
        if not client or client.is_deleted:
            return BarcodeResult.failure(BarcodeOutcome.not_found, "Client not found")

    if asset.installation_date and asset.installation_date > date.today():
        return BarcodeResult.failure(
            BarcodeOutcome.invalid, "Installation date cannot be in the future")

    # business keys first, a doomed creation must not burn a barcode
    if await repo.exists_by_asset_no(asset.asset_no):
        return BarcodeResult.failure(BarcodeOutcome.conflict, "Asset number already exists")
    if await repo.exists_by_fixture_no(dealer.id, asset.fixture_no):
        return BarcodeResult.failure(
            BarcodeOutcome.conflict, "Fixture number already exists for this dealer")

    fields = asset.model_dump(exclude={"dealer_id"})
    fields["status"] = asset.status.value
    fields["location_address"] = asset.location_address or dealer.address
    fields["created_by"] = _user_uuid(current_user)

    result = await insert_with_identity(repo, dealer, fields)
    if result.ok:
        logger.info("Asset %s created with barcode %s",
                    result.value.asset_no, result.value.barcode_value)
    return result


async def get_asset(repo: AssetRepository, asset_id: uuid.UUID, current_user: UserToken) -> BarcodeResult[Asset]:
    asset = await repo.get_by_id(asset_id)
    if not asset:
        return BarcodeResult.failure(BarcodeOutcome.not_found, "Asset not found")
    if not can_access_asset(current_user, asset):
        return BarcodeResult.failure(
            BarcodeOutcome.forbidden, "You do not have permission to access this resource")
    return BarcodeResult.success(asset)


async def delete_asset(repo: AssetRepository, asset_id: uuid.UUID, current_user: UserToken) -> BarcodeResult[Asset]:
    """Soft delete. The barcode value stays on the row and is never reissued."""
    asset = await repo.get_by_id(asset_id)
    if not asset:
        return BarcodeResult.failure(BarcodeOutcome.not_found, "Asset not found")
    return BarcodeResult.success(await repo.soft_delete(asset, _user_uuid(current_user)))
