# app/crud/barcodes/barcode_export_crud.py
import asyncio
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from shared.core.config import settings
from shared.core.schemas import UserToken
from ...core.result import BarcodeResult
from ...enum.barcode_enum import BarcodeOutcome
from ...models.assets import Asset
from ...models.dealers import Dealer
from ...services.barcode_service import (
    ArtifactGenerationError,
    artifact_exists,
    render_barcode_artifact,
    resolve_artifact_path,
    safe_download_name,
)
from ...utils.barcode_sheet import SheetCell, ZipEntry, build_barcode_sheet_pdf, build_barcode_zip
from ..assets.asset_repository import AssetRepository
from ..assets.assets_crud import can_access_asset

logger = logging.getLogger(__name__)

SHEET_TITLE = "Asset Tracking - Barcode Collection"


@dataclass
class PreparedArtifact:
    asset: Asset
    path: Optional[str] = None
    temporary: bool = False
    error: Optional[str] = None


@dataclass
class ExportFile:
    filename: str
    media_type: str
    content: bytes
    temp_files: List[str] = field(default_factory=list)


def _timestamp() -> int:
    return int(datetime.now().timestamp() * 1000)


async def prepare_artifacts(assets: Sequence[Asset]) -> List[PreparedArtifact]:
    """Reuse each stored artifact, rendering a temp copy when the file is gone.
    A failing asset is marked, never fatal for the batch."""
    prepared = []
    for asset in assets:
        if await artifact_exists(asset.barcode_image_path):
            prepared.append(PreparedArtifact(asset, resolve_artifact_path(asset.barcode_image_path)))
            continue
        try:
            artifact = await render_barcode_artifact(
                asset.barcode_value, caption_text=asset.asset_no, directory=settings.temp_dir)
            prepared.append(PreparedArtifact(asset, artifact.filepath, temporary=True))
        except ArtifactGenerationError as e:
            logger.error("Barcode export skipped asset %s: %s", asset.asset_no, e)
            prepared.append(PreparedArtifact(asset, error=str(e)))
    return prepared


def _temp_files(prepared: List[PreparedArtifact]) -> List[str]:
    return [item.path for item in prepared if item.temporary and item.path]


async def cleanup_temp_files(paths: Sequence[str], delay: Optional[float] = None):
    """Remove scratch artifacts once the response had time to go out."""
    delay = settings.TEMP_CLEANUP_DELAY_SECONDS if delay is None else delay
    if delay > 0:
        await asyncio.sleep(delay)
    for path in paths:
        try:
            await run_in_threadpool(os.remove, path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Temp file cleanup error for %s: %s", path, e)


async def _sheet(title: str, header_lines: List[str], prepared: List[PreparedArtifact], filename: str) -> ExportFile:
    cells = [SheetCell(item.path, item.asset.asset_no) for item in prepared]
    content = await run_in_threadpool(build_barcode_sheet_pdf, title, header_lines, cells)
    return ExportFile(filename, "application/pdf", content, _temp_files(prepared))


async def _get_dealer(db: AsyncSession, dealer_id: UUID) -> Optional[Dealer]:
    dealer = await db.get(Dealer, dealer_id)
    if not dealer or dealer.is_deleted:
        return None
    return dealer


async def export_dealer_pdf(db: AsyncSession, repo: AssetRepository, dealer_id: UUID) -> BarcodeResult[ExportFile]:
    dealer = await _get_dealer(db, dealer_id)
    if not dealer:
        return BarcodeResult.failure(BarcodeOutcome.not_found, "Dealer not found")

    assets = await repo.list_for_dealer(dealer.id)
    if not assets:
        return BarcodeResult.failure(BarcodeOutcome.not_found, "No assets found for this dealer")

    prepared = await prepare_artifacts(assets)
    header = [
        f"Dealer: {dealer.name} ({dealer.dealer_code})",
        f"Total Assets: {len(assets)}",
    ]
    filename = safe_download_name(f"barcodes_{dealer.dealer_code}_{_timestamp()}.pdf")
    return BarcodeResult.success(await _sheet(SHEET_TITLE, header, prepared, filename))


async def export_selected_pdf(
        repo: AssetRepository,
        asset_ids: Sequence[UUID],
        current_user: UserToken) -> BarcodeResult[ExportFile]:
    assets = await repo.list_by_ids(asset_ids)
    if not assets:
        return BarcodeResult.failure(BarcodeOutcome.not_found, "No assets found with provided IDs")
    if any(not can_access_asset(current_user, asset) for asset in assets):
        return BarcodeResult.failure(
            BarcodeOutcome.forbidden, "You can only download QR codes for your own assets")

    prepared = await prepare_artifacts(assets)
    header = ["Selected Assets QR Codes", f"Total Selected: {len(assets)}"]
    filename = f"selected_barcodes_{_timestamp()}.pdf"
    return BarcodeResult.success(await _sheet(SHEET_TITLE, header, prepared, filename))


def _zip_header(dealer: Dealer, prepared: List[PreparedArtifact]) -> List[str]:
    return [
        "Asset Tracking - Barcode Collection",
        f"Dealer: {dealer.name}",
        f"Dealer Code: {dealer.dealer_code}",
        f"Shop: {dealer.shop_name or ''}",
        f"Email: {dealer.email or ''}",
        f"Total Assets: {len(prepared)}",
        f"Generated: {datetime.now():%Y-%m-%d %H:%M:%S}",
        "",
        "Asset List:",
    ]


def _zip_entries(prepared: List[PreparedArtifact]) -> List[ZipEntry]:
    return [
        ZipEntry(
            arcname=safe_download_name(f"{item.asset.asset_no}_{item.asset.fixture_no}.png"),
            image_path=item.path,
            manifest_line=f"{index}. {item.asset.asset_no} - {item.asset.fixture_no} - {item.asset.barcode_value}",
        )
        for index, item in enumerate(prepared, start=1)
    ]


async def export_dealer_zip(db: AsyncSession, repo: AssetRepository, dealer_id: UUID) -> BarcodeResult[ExportFile]:
    dealer = await _get_dealer(db, dealer_id)
    if not dealer:
        return BarcodeResult.failure(BarcodeOutcome.not_found, "Dealer not found")

    assets = await repo.list_for_dealer(dealer.id)
    if not assets:
        return BarcodeResult.failure(BarcodeOutcome.not_found, "No assets found for this dealer")

    prepared = await prepare_artifacts(assets)
    content = await run_in_threadpool(
        build_barcode_zip, _zip_header(dealer, prepared), _zip_entries(prepared))
    filename = safe_download_name(f"barcodes_{dealer.dealer_code}_{_timestamp()}.zip")
    return BarcodeResult.success(ExportFile(filename, "application/zip", content, _temp_files(prepared)))


def _read_bytes(path: str) -> bytes:
    with open(path, "rb") as f:
        return f.read()


async def export_asset_png(repo: AssetRepository, asset_id: UUID, current_user: UserToken) -> BarcodeResult[ExportFile]:
    asset = await repo.get_by_id(asset_id)
    if not asset:
        return BarcodeResult.failure(BarcodeOutcome.not_found, "Asset not found")
    if not can_access_asset(current_user, asset):
        return BarcodeResult.failure(
            BarcodeOutcome.forbidden, "You can only download QR codes for your own assets")

    prepared = (await prepare_artifacts([asset]))[0]
    if prepared.error:
        return BarcodeResult.failure(BarcodeOutcome.artifact_failed, prepared.error)

    content = await run_in_threadpool(_read_bytes, prepared.path)
    filename = safe_download_name(f"QR_{asset.asset_no}_{_timestamp()}.png")
    return BarcodeResult.success(ExportFile(filename, "image/png", content, _temp_files([prepared])))
