# app/crud/assets/asset_repository.py
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from ...models.assets import Asset


class DuplicateBarcodeError(Exception):
    """The store rejected a write because another row holds the barcode value."""

    def __init__(self, barcode_value: str):
        super().__init__(f"Barcode value '{barcode_value}' is already in use")
        self.barcode_value = barcode_value


class AssetRepository(ABC):
    """Storage seam the barcode core depends on."""

    @abstractmethod
    async def get_by_id(self, asset_id: UUID, include_deleted: bool = False) -> Optional[Asset]:
        ...

    @abstractmethod
    async def find_by_barcode(self, barcode_value: str, include_deleted: bool = False) -> Optional[Asset]:
        ...

    @abstractmethod
    async def exists_by_barcode(
            self, barcode_value: str,
            exclude_asset_id: Optional[UUID] = None,
            include_deleted: bool = False) -> bool:
        ...

    @abstractmethod
    async def exists_by_asset_no(self, asset_no: str) -> bool:
        ...

    @abstractmethod
    async def exists_by_fixture_no(self, dealer_id: UUID, fixture_no: str) -> bool:
        ...

    @abstractmethod
    async def insert(self, asset: Asset) -> Asset:
        """Raises DuplicateBarcodeError when the barcode value is already stored."""

    @abstractmethod
    async def update_identity(
            self, asset: Asset, barcode_value: str,
            barcode_image_path: str, updated_by: Optional[UUID]) -> Asset:
        """Swap value and artifact ref together. Raises DuplicateBarcodeError."""

    @abstractmethod
    async def list_for_dealer(self, dealer_id: UUID) -> List[Asset]:
        ...

    @abstractmethod
    async def list_by_ids(self, asset_ids: Sequence[UUID]) -> List[Asset]:
        ...

    @abstractmethod
    async def soft_delete(self, asset: Asset, updated_by: Optional[UUID]) -> Asset:
        ...


def _is_barcode_violation(error: IntegrityError) -> bool:
    message = str(error.orig) if error.orig is not None else str(error)
    return "barcode_value" in message


class SqlAlchemyAssetRepository(AssetRepository):

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def _with_relations(stmt):
        return stmt.options(
            joinedload(Asset.dealer),
            joinedload(Asset.brand),
            joinedload(Asset.client),
            joinedload(Asset.creator),
            joinedload(Asset.updater),
        )

    async def get_by_id(self, asset_id: UUID, include_deleted: bool = False) -> Optional[Asset]:
        stmt = self._with_relations(select(Asset)).where(Asset.id == asset_id)
        if not include_deleted:
            stmt = stmt.where(Asset.is_deleted == False)
        return (await self.db.execute(stmt)).scalars().first()

    async def find_by_barcode(self, barcode_value: str, include_deleted: bool = False) -> Optional[Asset]:
        stmt = self._with_relations(select(Asset)).where(
            Asset.barcode_value == barcode_value.upper())
        if not include_deleted:
            stmt = stmt.where(Asset.is_deleted == False)
        return (await self.db.execute(stmt)).scalars().first()

    async def exists_by_barcode(
            self, barcode_value: str,
            exclude_asset_id: Optional[UUID] = None,
            include_deleted: bool = False) -> bool:
        stmt = select(Asset.id).where(Asset.barcode_value == barcode_value.upper())
        if not include_deleted:
            stmt = stmt.where(Asset.is_deleted == False)
        if exclude_asset_id is not None:
            stmt = stmt.where(Asset.id != exclude_asset_id)
        return (await self.db.execute(stmt.limit(1))).first() is not None

    async def exists_by_asset_no(self, asset_no: str) -> bool:
        stmt = select(Asset.id).where(
            Asset.asset_no == asset_no, Asset.is_deleted == False)
        return (await self.db.execute(stmt.limit(1))).first() is not None

    async def exists_by_fixture_no(self, dealer_id: UUID, fixture_no: str) -> bool:
        stmt = select(Asset.id).where(
            Asset.dealer_id == dealer_id,
            Asset.fixture_no == fixture_no,
            Asset.is_deleted == False)
        return (await self.db.execute(stmt.limit(1))).first() is not None

    async def _commit(self, asset: Asset, barcode_value: str):
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            if _is_barcode_violation(e):
                raise DuplicateBarcodeError(barcode_value) from e
            raise
        # server side timestamps are expired after flush
        await self.db.refresh(asset)

    async def insert(self, asset: Asset) -> Asset:
        asset.barcode_value = asset.barcode_value.upper()
        self.db.add(asset)
        await self._commit(asset, asset.barcode_value)
        return asset

    async def update_identity(
            self, asset: Asset, barcode_value: str,
            barcode_image_path: str, updated_by: Optional[UUID]) -> Asset:
        asset.barcode_value = barcode_value.upper()
        asset.barcode_image_path = barcode_image_path
        asset.updated_by = updated_by
        try:
            await self._commit(asset, asset.barcode_value)
        except DuplicateBarcodeError:
            # rollback expired the instance, reload the stored identity
            await self.db.refresh(asset)
            raise
        return asset

    async def list_for_dealer(self, dealer_id: UUID) -> List[Asset]:
        stmt = (
            select(Asset)
            .where(Asset.dealer_id == dealer_id, Asset.is_deleted == False)
            .order_by(Asset.created_at.desc())
        )
        return list((await self.db.execute(stmt)).scalars().all())

    async def list_by_ids(self, asset_ids: Sequence[UUID]) -> List[Asset]:
        if not asset_ids:
            return []
        stmt = (
            select(Asset)
            .where(Asset.id.in_(list(asset_ids)), Asset.is_deleted == False)
            .order_by(Asset.created_at.desc())
        )
        return list((await self.db.execute(stmt)).scalars().all())

    async def soft_delete(self, asset: Asset, updated_by: Optional[UUID]) -> Asset:
        asset.is_deleted = True
        asset.updated_by = updated_by
        await self.db.commit()
        await self.db.refresh(asset)
        return asset
