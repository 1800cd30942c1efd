# app/router/barcodes/public_scan_router.py
from fastapi import APIRouter, BackgroundTasks, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from shared.core.config import settings
from shared.core.database import get_db
from shared.helpers.json_response_helper import success_response
from ...core.result import raise_for_outcome
from ...crud.assets.asset_repository import SqlAlchemyAssetRepository
from ...crud.barcodes.barcode_scan_crud import ScanContext, resolve_public_scan

# No auth: this is the URL printed inside every QR code
router = APIRouter(
    prefix=f"{settings.API_PREFIX}/barcodes/public",
    tags=["barcodes-public"]
)


@router.get("/scan/{barcode_value}")
async def public_scan(
        barcode_value: str,
        request: Request,
        background_tasks: BackgroundTasks,
        db: AsyncSession = Depends(get_db)):
    result = await resolve_public_scan(
        SqlAlchemyAssetRepository(db), barcode_value,
        ScanContext.from_request(request), background_tasks)
    return success_response(
        data=raise_for_outcome(result), message="Asset details retrieved successfully")
