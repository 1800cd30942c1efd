# app/schemas/barcodes/barcode_schemas.py
from pydantic import BaseModel, Field
from typing import List, Optional
from uuid import UUID
from datetime import date, datetime


class DealerSummary(BaseModel):
    dealer_code: str
    name: str
    shop_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None

    model_config = {"from_attributes": True}


class BrandSummary(BaseModel):
    name: str

    model_config = {"from_attributes": True}


class ClientSummary(BaseModel):
    name: str
    company: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

    model_config = {"from_attributes": True}


class PersonSummary(BaseModel):
    name: str
    email: Optional[str] = None


class AuditInfo(BaseModel):
    created_by: Optional[PersonSummary] = None
    updated_by: Optional[PersonSummary] = None


class AssetScanInfo(BaseModel):
    asset_no: str
    fixture_no: str
    barcode_value: str
    barcode_image_url: Optional[str] = None
    stand_type: Optional[str] = None
    status: str
    installation_date: Optional[date] = None
    location_address: Optional[str] = None


class AssetScanDetailInfo(AssetScanInfo):
    id: UUID
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AssetScanView(BaseModel):
    """Read-only view returned by the public scan endpoint."""
    asset: AssetScanInfo
    dealer: Optional[DealerSummary] = None
    brand: Optional[BrandSummary] = None
    client: Optional[ClientSummary] = None
    audit: AuditInfo


class AssetScanDetail(AssetScanView):
    asset: AssetScanDetailInfo


class BarcodeIdentityOut(BaseModel):
    barcode_value: str
    barcode_image_url: Optional[str] = None


class BarcodeDownloadOut(BarcodeIdentityOut):
    asset_no: str
    fixture_no: str


class BarcodeAvailabilityOut(BaseModel):
    exists: bool
    is_available: bool
    message: str


class DealerBarcodeItem(BaseModel):
    asset_id: UUID
    asset_no: str
    fixture_no: str
    barcode_value: str
    barcode_image_url: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None


class DealerBarcodesOut(BaseModel):
    dealer: DealerSummary
    total_barcodes: int
    barcodes: List[DealerBarcodeItem]


class RegeneratedItem(BaseModel):
    asset_id: UUID
    asset_no: str
    barcode_value: str
    barcode_image_url: Optional[str] = None


class RegenerationFailure(BaseModel):
    asset_id: UUID
    asset_no: str
    message: str


class DealerRegenerationOut(BaseModel):
    regenerated: List[RegeneratedItem]
    failed: List[RegenerationFailure]


class SelectedAssetsRequest(BaseModel):
    asset_ids: List[UUID] = Field(min_length=1)
