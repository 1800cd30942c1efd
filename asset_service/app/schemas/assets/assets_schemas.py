# app/schemas/assets/assets_schemas.py
from pydantic import BaseModel, Field, computed_field, field_validator
from typing import Optional
from uuid import UUID
from datetime import date, datetime

from ...enum.barcode_enum import AssetStatus
from ...services.barcode_service import build_artifact_url


class AssetCreate(BaseModel):
    asset_no: str = Field(min_length=1, max_length=64)
    fixture_no: str = Field(min_length=1, max_length=64)
    dealer_id: UUID
    brand_id: Optional[UUID] = None
    client_id: Optional[UUID] = None
    stand_type: Optional[str] = None
    status: AssetStatus = AssetStatus.active
    installation_date: Optional[date] = None
    location_address: Optional[str] = None

    @field_validator("asset_no", "fixture_no")
    @classmethod
    def strip_identifier(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class AssetResponse(BaseModel):
    id: UUID
    asset_no: str
    fixture_no: str
    dealer_id: UUID
    brand_id: Optional[UUID] = None
    client_id: Optional[UUID] = None
    stand_type: Optional[str] = None
    status: str
    installation_date: Optional[date] = None
    location_address: Optional[str] = None
    barcode_value: str
    barcode_image_path: str
    is_deleted: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

    @computed_field
    @property
    def barcode_image_url(self) -> Optional[str]:
        return build_artifact_url(self.barcode_image_path)
