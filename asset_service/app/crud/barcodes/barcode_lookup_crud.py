# app/crud/barcodes/barcode_lookup_crud.py
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from shared.core.schemas import UserToken
from ...core.result import BarcodeResult
from ...enum.barcode_enum import BarcodeOutcome
from ...models.dealers import Dealer
from ...schemas.barcodes.barcode_schemas import (
    BarcodeAvailabilityOut,
    BarcodeDownloadOut,
    DealerBarcodeItem,
    DealerBarcodesOut,
    DealerSummary,
)
from ...services.barcode_service import build_artifact_url, normalize_barcode_value
from ..assets.asset_repository import AssetRepository
from ..assets.assets_crud import can_access_asset


async def check_availability(repo: AssetRepository, barcode_value: str) -> BarcodeResult[BarcodeAvailabilityOut]:
    value = normalize_barcode_value(barcode_value)
    if not value:
        return BarcodeResult.failure(BarcodeOutcome.invalid, "barcode_value is required")

    # retired values of soft-deleted assets are still in use
    exists = await repo.exists_by_barcode(value, include_deleted=True)
    return BarcodeResult.success(BarcodeAvailabilityOut(
        exists=exists,
        is_available=not exists,
        message="Barcode already in use" if exists else "Barcode is available",
    ))


async def get_barcode_download(
        repo: AssetRepository, asset_id: UUID, current_user: UserToken) -> BarcodeResult[BarcodeDownloadOut]:
    asset = await repo.get_by_id(asset_id)
    if not asset:
        return BarcodeResult.failure(BarcodeOutcome.not_found, "Asset not found")
    if not can_access_asset(current_user, asset):
        return BarcodeResult.failure(
            BarcodeOutcome.forbidden, "You do not have permission to access this barcode")

    return BarcodeResult.success(BarcodeDownloadOut(
        barcode_value=asset.barcode_value,
        barcode_image_url=build_artifact_url(asset.barcode_image_path),
        asset_no=asset.asset_no,
        fixture_no=asset.fixture_no,
    ))


async def get_dealer_barcodes(
        db: AsyncSession, repo: AssetRepository, dealer_id: UUID) -> BarcodeResult[DealerBarcodesOut]:
    dealer = await db.get(Dealer, dealer_id)
    if not dealer or dealer.is_deleted:
        return BarcodeResult.failure(BarcodeOutcome.not_found, "Dealer not found")

    assets = await repo.list_for_dealer(dealer.id)
    barcodes = [
        DealerBarcodeItem(
            asset_id=asset.id,
            asset_no=asset.asset_no,
            fixture_no=asset.fixture_no,
            barcode_value=asset.barcode_value,
            barcode_image_url=build_artifact_url(asset.barcode_image_path),
            status=asset.status,
            created_at=asset.created_at,
        )
        for asset in assets
    ]
    return BarcodeResult.success(DealerBarcodesOut(
        dealer=DealerSummary.model_validate(dealer),
        total_barcodes=len(barcodes),
        barcodes=barcodes,
    ))
