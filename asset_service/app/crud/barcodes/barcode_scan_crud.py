# app/crud/barcodes/barcode_scan_crud.py
import logging
from dataclasses import asdict, dataclass
from typing import Optional
from uuid import UUID

from fastapi import BackgroundTasks, Request

from shared.core.database import AsyncSessionLocal
from shared.core.schemas import UserToken
from ...core.result import BarcodeResult
from ...enum.barcode_enum import BarcodeOutcome, ScanType
from ...models.assets import Asset
from ...models.barcode_scan_logs import BarcodeScanLog
from ...schemas.barcodes.barcode_schemas import (
    AssetScanDetail,
    AssetScanDetailInfo,
    AssetScanInfo,
    AssetScanView,
    AuditInfo,
    BrandSummary,
    ClientSummary,
    DealerSummary,
    PersonSummary,
)
from ...services.barcode_service import build_artifact_url, normalize_barcode_value
from ..assets.asset_repository import AssetRepository
from ..assets.assets_crud import can_access_asset

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScanContext:
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    referer: Optional[str] = None

    @classmethod
    def from_request(cls, request: Request) -> "ScanContext":
        forwarded_for = request.headers.get("x-forwarded-for")
        if forwarded_for:
            ip_address = forwarded_for.split(",")[0].strip()
        else:
            ip_address = request.client.host if request.client else None
        return cls(
            ip_address=ip_address,
            user_agent=request.headers.get("user-agent", ""),
            referer=request.headers.get("referer", ""),
        )


@dataclass(frozen=True)
class ScanLogEntry:
    asset_id: UUID
    barcode_value: str
    dealer_id: UUID
    client_id: Optional[UUID]
    scan_type: str
    ip_address: Optional[str]
    user_agent: Optional[str]
    referer: Optional[str]


# ----------------------------------------------------------------------
# Telemetry
# ----------------------------------------------------------------------

async def record_scan(entry: ScanLogEntry, session_factory=AsyncSessionLocal):
    """Append one scan log row. Runs detached from the response; any
    failure is logged and dropped."""
    try:
        async with session_factory() as db:
            db.add(BarcodeScanLog(**asdict(entry)))
            await db.commit()
    except Exception:
        logger.exception("Failed to record %s scan for barcode %s",
                         entry.scan_type, entry.barcode_value)


def _schedule_scan_log(
        background_tasks: Optional[BackgroundTasks],
        asset: Asset,
        scan_type: ScanType,
        context: ScanContext):
    if background_tasks is None:
        return
    entry = ScanLogEntry(
        asset_id=asset.id,
        barcode_value=asset.barcode_value,
        dealer_id=asset.dealer_id,
        client_id=asset.client_id,
        scan_type=scan_type.value,
        ip_address=context.ip_address,
        user_agent=context.user_agent,
        referer=context.referer,
    )
    background_tasks.add_task(record_scan, entry)


# ----------------------------------------------------------------------
# Views
# ----------------------------------------------------------------------

def _person(user) -> Optional[PersonSummary]:
    if user is None:
        return None
    return PersonSummary(name=user.full_name, email=user.email)


def _scan_info(asset: Asset) -> dict:
    return {
        "asset_no": asset.asset_no,
        "fixture_no": asset.fixture_no,
        "barcode_value": asset.barcode_value,
        "barcode_image_url": build_artifact_url(asset.barcode_image_path),
        "stand_type": asset.stand_type,
        "status": asset.status,
        "installation_date": asset.installation_date,
        "location_address": asset.location_address,
    }


def _related(asset: Asset) -> dict:
    return {
        "dealer": DealerSummary.model_validate(asset.dealer) if asset.dealer else None,
        "brand": BrandSummary.model_validate(asset.brand) if asset.brand else None,
        "client": ClientSummary.model_validate(asset.client) if asset.client else None,
        "audit": AuditInfo(created_by=_person(asset.creator), updated_by=_person(asset.updater)),
    }


def build_asset_view(asset: Asset) -> AssetScanView:
    return AssetScanView(asset=AssetScanInfo(**_scan_info(asset)), **_related(asset))


def build_asset_detail(asset: Asset) -> AssetScanDetail:
    info = AssetScanDetailInfo(
        **_scan_info(asset),
        id=asset.id,
        created_at=asset.created_at,
        updated_at=asset.updated_at,
    )
    return AssetScanDetail(asset=info, **_related(asset))


# ----------------------------------------------------------------------
# Resolution
# ----------------------------------------------------------------------

async def resolve_public_scan(
        repo: AssetRepository,
        barcode_value: str,
        context: ScanContext = ScanContext(),
        background_tasks: Optional[BackgroundTasks] = None) -> BarcodeResult[AssetScanView]:
    value = normalize_barcode_value(barcode_value)
    if not value:
        return BarcodeResult.failure(BarcodeOutcome.invalid, "barcode_value is required")

    # soft-deleted rows included so "deleted" and "never existed" differ
    asset = await repo.find_by_barcode(value, include_deleted=True)
    if asset is None:
        logger.info("Public scan for unknown barcode %s", value)
        return BarcodeResult.failure(
            BarcodeOutcome.not_found, f"No asset found for barcode: {value}")
    if asset.is_deleted:
        return BarcodeResult.failure(
            BarcodeOutcome.deleted, "This asset has been deleted from the system")

    view = build_asset_view(asset)
    _schedule_scan_log(background_tasks, asset, ScanType.public, context)
    return BarcodeResult.success(view)


async def resolve_authenticated_scan(
        repo: AssetRepository,
        barcode_value: str,
        requester: UserToken,
        context: ScanContext = ScanContext(),
        background_tasks: Optional[BackgroundTasks] = None) -> BarcodeResult[AssetScanDetail]:
    value = normalize_barcode_value(barcode_value)
    if not value:
        return BarcodeResult.failure(BarcodeOutcome.invalid, "barcode_value is required")

    asset = await repo.find_by_barcode(value)
    if asset is None:
        return BarcodeResult.failure(BarcodeOutcome.not_found, "Asset not found for this barcode")
    if not can_access_asset(requester, asset):
        return BarcodeResult.failure(
            BarcodeOutcome.forbidden, "You do not have permission to view this asset")

    detail = build_asset_detail(asset)
    _schedule_scan_log(background_tasks, asset, ScanType.authenticated, context)
    return BarcodeResult.success(detail)
