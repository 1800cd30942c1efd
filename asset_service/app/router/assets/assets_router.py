# app/router/assets/assets_router.py
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from shared.core.auth import allow_admin, validate_current_token
from shared.core.config import settings
from shared.core.database import get_db
from shared.core.schemas import UserToken
from shared.helpers.json_response_helper import success_response
from shared.utils.app_status_code import AppStatusCode
from ...core.result import raise_for_outcome
from ...crud.assets import assets_crud as crud
from ...crud.assets.asset_repository import SqlAlchemyAssetRepository
from ...schemas.assets.assets_schemas import AssetCreate, AssetResponse

router = APIRouter(
    prefix=f"{settings.API_PREFIX}/assets",
    tags=["assets"],
    dependencies=[Depends(validate_current_token)]
)


@router.post("", response_model=None, status_code=201)
async def create_asset(
        asset: AssetCreate,
        db: AsyncSession = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    result = await crud.create_asset(db, asset, current_user)
    asset_response = AssetResponse.model_validate(raise_for_outcome(result))
    return success_response(
        data=asset_response,
        message="Asset created successfully",
        status_code=AppStatusCode.CREATED_SUCCESSFULLY)


@router.get("/{asset_id}", response_model=None)
async def get_asset(
        asset_id: UUID,
        db: AsyncSession = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    result = await crud.get_asset(SqlAlchemyAssetRepository(db), asset_id, current_user)
    return success_response(data=AssetResponse.model_validate(raise_for_outcome(result)))


# ---------------- Delete Asset (Soft Delete) ----------------
@router.delete("/{asset_id}", response_model=None)
async def delete_asset(
        asset_id: UUID,
        db: AsyncSession = Depends(get_db),
        current_user: UserToken = Depends(allow_admin)):
    result = await crud.delete_asset(SqlAlchemyAssetRepository(db), asset_id, current_user)
    raise_for_outcome(result)
    return success_response(
        data=None,
        message="Asset deleted successfully",
        status_code=AppStatusCode.OPERATION_SUCCESSFUL)
