# app/router/barcodes/barcode_router.py
from io import BytesIO
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.background import BackgroundTask

from shared.core.auth import allow_admin, validate_current_token
from shared.core.config import settings
from shared.core.database import get_db
from shared.core.schemas import UserToken
from shared.helpers.json_response_helper import success_response
from ...core.result import raise_for_outcome
from ...crud.assets.asset_repository import SqlAlchemyAssetRepository
from ...crud.barcodes import barcode_export_crud, barcode_identity_crud, barcode_lookup_crud
from ...crud.barcodes.barcode_export_crud import ExportFile
from ...crud.barcodes.barcode_scan_crud import ScanContext, resolve_authenticated_scan
from ...models.dealers import Dealer
from ...schemas.barcodes.barcode_schemas import (
    BarcodeIdentityOut,
    DealerRegenerationOut,
    SelectedAssetsRequest,
)

router = APIRouter(
    prefix=f"{settings.API_PREFIX}/barcodes",
    tags=["barcodes"],
    dependencies=[Depends(validate_current_token)]
)


def _download(export: ExportFile) -> StreamingResponse:
    return StreamingResponse(
        BytesIO(export.content),
        media_type=export.media_type,
        headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
        background=BackgroundTask(barcode_export_crud.cleanup_temp_files, export.temp_files),
    )


@router.get("/scan/{barcode_value}")
async def scan_barcode(
        barcode_value: str,
        request: Request,
        background_tasks: BackgroundTasks,
        db: AsyncSession = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    result = await resolve_authenticated_scan(
        SqlAlchemyAssetRepository(db), barcode_value, current_user,
        ScanContext.from_request(request), background_tasks)
    return success_response(
        data=raise_for_outcome(result), message="Asset details retrieved successfully")


@router.get("/check/{barcode_value}")
async def check_barcode_availability(
        barcode_value: str,
        db: AsyncSession = Depends(get_db)):
    result = await barcode_lookup_crud.check_availability(SqlAlchemyAssetRepository(db), barcode_value)
    return success_response(data=raise_for_outcome(result))


@router.get("/download/{asset_id}")
async def download_barcode(
        asset_id: UUID,
        db: AsyncSession = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    result = await barcode_lookup_crud.get_barcode_download(
        SqlAlchemyAssetRepository(db), asset_id, current_user)
    return success_response(data=raise_for_outcome(result))


@router.post("/regenerate/{asset_id}")
async def regenerate_barcode(
        asset_id: UUID,
        db: AsyncSession = Depends(get_db),
        current_user: UserToken = Depends(allow_admin)):
    repo = SqlAlchemyAssetRepository(db)
    asset = await repo.get_by_id(asset_id)
    result = await barcode_identity_crud.regenerate_identity(
        repo, asset, asset.dealer if asset else None, current_user)
    identity = raise_for_outcome(result)
    return success_response(
        data=BarcodeIdentityOut(
            barcode_value=identity.barcode_value,
            barcode_image_url=identity.barcode_image_url),
        message="Barcode regenerated successfully")


@router.get("/dealer/{dealer_id}")
async def get_dealer_barcodes(
        dealer_id: UUID,
        db: AsyncSession = Depends(get_db),
        current_user: UserToken = Depends(allow_admin)):
    result = await barcode_lookup_crud.get_dealer_barcodes(db, SqlAlchemyAssetRepository(db), dealer_id)
    return success_response(data=raise_for_outcome(result), message="Barcodes retrieved successfully")


@router.post("/dealer/{dealer_id}/regenerate")
async def regenerate_dealer_barcodes(
        dealer_id: UUID,
        db: AsyncSession = Depends(get_db),
        current_user: UserToken = Depends(allow_admin)):
    dealer = await db.get(Dealer, dealer_id)
    result = await barcode_identity_crud.regenerate_dealer_identities(
        SqlAlchemyAssetRepository(db), dealer, current_user)
    report = raise_for_outcome(result)
    return success_response(
        data=DealerRegenerationOut(regenerated=report.regenerated, failed=report.failed),
        message=f"{len(report.regenerated)} barcodes regenerated, {len(report.failed)} failed")


@router.get("/dealer/{dealer_id}/download-pdf")
async def download_dealer_barcodes_pdf(
        dealer_id: UUID,
        db: AsyncSession = Depends(get_db),
        current_user: UserToken = Depends(allow_admin)):
    result = await barcode_export_crud.export_dealer_pdf(db, SqlAlchemyAssetRepository(db), dealer_id)
    return _download(raise_for_outcome(result))


@router.get("/dealer/{dealer_id}/download-zip")
async def download_dealer_barcodes_zip(
        dealer_id: UUID,
        db: AsyncSession = Depends(get_db),
        current_user: UserToken = Depends(allow_admin)):
    result = await barcode_export_crud.export_dealer_zip(db, SqlAlchemyAssetRepository(db), dealer_id)
    return _download(raise_for_outcome(result))


@router.post("/download-selected-pdf")
async def download_selected_barcodes_pdf(
        request: SelectedAssetsRequest,
        db: AsyncSession = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    result = await barcode_export_crud.export_selected_pdf(
        SqlAlchemyAssetRepository(db), request.asset_ids, current_user)
    return _download(raise_for_outcome(result))


@router.get("/asset/{asset_id}/qr")
async def download_asset_qr(
        asset_id: UUID,
        db: AsyncSession = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    result = await barcode_export_crud.export_asset_png(SqlAlchemyAssetRepository(db), asset_id, current_user)
    return _download(raise_for_outcome(result))
