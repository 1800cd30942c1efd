# app/crud/barcodes/barcode_identity_crud.py
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import AbstractSet, List, Optional

from shared.core.config import settings
from shared.core.schemas import UserToken
from ...core.result import BarcodeResult
from ...enum.barcode_enum import BarcodeOutcome
from ...models.assets import Asset
from ...models.dealers import Dealer
from ...services.barcode_arbiter import EXHAUSTED_MESSAGE, Clock, IsTaken, reserve_unique_barcode
from ...services.barcode_service import (
    ArtifactGenerationError,
    build_artifact_url,
    delete_artifact,
    render_barcode_artifact,
)
from ..assets.asset_repository import AssetRepository, DuplicateBarcodeError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BarcodeIdentity:
    barcode_value: str
    barcode_image_path: str

    @property
    def barcode_image_url(self) -> Optional[str]:
        return build_artifact_url(self.barcode_image_path)


@dataclass(frozen=True)
class DealerSnapshot:
    """Plain copy of the dealer fields identity assignment reads.

    A rolled back session expires every loaded instance, so retries work
    from this copy instead of the ORM object.
    """
    id: uuid.UUID
    dealer_code: str
    is_active: bool
    is_deleted: bool

    @classmethod
    def of(cls, dealer) -> Optional["DealerSnapshot"]:
        if dealer is None:
            return None
        if isinstance(dealer, cls):
            return dealer
        return cls(dealer.id, dealer.dealer_code, dealer.is_active, dealer.is_deleted)


def live_barcode_oracle(
        repo: AssetRepository,
        exclude_asset_id: Optional[uuid.UUID] = None,
        rejected: AbstractSet[str] = frozenset()) -> IsTaken:
    """isTaken backed by live assets, plus values the store already refused."""
    async def is_taken(barcode_value: str) -> bool:
        value = barcode_value.upper()
        if value in rejected:
            return True
        return await repo.exists_by_barcode(value, exclude_asset_id=exclude_asset_id)
    return is_taken


def _as_uuid(value) -> Optional[uuid.UUID]:
    if value is None or isinstance(value, uuid.UUID):
        return value
    return uuid.UUID(str(value))


# ----------------------------------------------------------------------
# Creation
# ----------------------------------------------------------------------

async def assign_identity_on_create(
        repo: AssetRepository,
        dealer: Optional[Dealer],
        fixture_no: str,
        asset_no: str,
        rejected: AbstractSet[str] = frozenset(),
        clock: Clock = datetime.now) -> BarcodeResult[BarcodeIdentity]:
    """Reserve a barcode value and persist its artifact.

    The artifact is on disk before the value is handed back, so a record
    built from the result never points at a missing file.
    """
    dealer = DealerSnapshot.of(dealer)
    if dealer is None or dealer.is_deleted:
        return BarcodeResult.failure(BarcodeOutcome.not_found, "Dealer not found")
    if not dealer.is_active:
        return BarcodeResult.failure(
            BarcodeOutcome.invalid, "Dealer is inactive and cannot receive new assets")
    if not asset_no:
        return BarcodeResult.failure(BarcodeOutcome.invalid, "asset_no is required")

    reservation = await reserve_unique_barcode(
        dealer.dealer_code, fixture_no, live_barcode_oracle(repo, rejected=rejected), clock=clock)
    if not reservation.ok:
        return reservation

    try:
        artifact = await render_barcode_artifact(reservation.value, caption_text=asset_no)
    except ArtifactGenerationError as e:
        return BarcodeResult.failure(BarcodeOutcome.artifact_failed, str(e))

    return BarcodeResult.success(BarcodeIdentity(reservation.value, artifact.relative_path))


async def insert_with_identity(
        repo: AssetRepository,
        dealer: Dealer,
        asset_fields: dict,
        clock: Clock = datetime.now) -> BarcodeResult[Asset]:
    """Assign an identity and insert the asset, re-reserving when the store
    reports the value as taken by a concurrent writer."""
    dealer = DealerSnapshot.of(dealer)
    rejected = set()
    for _ in range(settings.BARCODE_INSERT_ATTEMPTS):
        identity = await assign_identity_on_create(
            repo, dealer, asset_fields["fixture_no"], asset_fields["asset_no"],
            rejected=rejected, clock=clock)
        if not identity.ok:
            return identity

        asset = Asset(
            **asset_fields,
            dealer_id=dealer.id,
            barcode_value=identity.value.barcode_value,
            barcode_image_path=identity.value.barcode_image_path,
        )
        try:
            return BarcodeResult.success(await repo.insert(asset))
        except DuplicateBarcodeError as e:
            logger.warning("Barcode %s lost an insert race, re-reserving", e.barcode_value)
            rejected.add(e.barcode_value)
            await delete_artifact(identity.value.barcode_image_path)

    return BarcodeResult.failure(BarcodeOutcome.exhausted, EXHAUSTED_MESSAGE)


# ----------------------------------------------------------------------
# Regeneration
# ----------------------------------------------------------------------

async def regenerate_identity(
        repo: AssetRepository,
        asset: Optional[Asset],
        dealer: Optional[Dealer],
        requester: Optional[UserToken],
        clock: Clock = datetime.now) -> BarcodeResult[BarcodeIdentity]:
    """Mint a new value and artifact for an existing asset.

    Order: new artifact persisted, then record swapped, then the old
    artifact removed (best-effort). A failure before the swap leaves the
    asset untouched.
    """
    if requester is None or not requester.is_admin:
        return BarcodeResult.failure(
            BarcodeOutcome.forbidden, "Only admins can regenerate barcodes")
    if asset is None or asset.is_deleted:
        return BarcodeResult.failure(BarcodeOutcome.not_found, "Asset not found")
    dealer = DealerSnapshot.of(dealer)
    if dealer is None or dealer.is_deleted:
        return BarcodeResult.failure(BarcodeOutcome.not_found, "Dealer not found")

    asset_id, fixture_no, asset_no = asset.id, asset.fixture_no, asset.asset_no
    previous_path = asset.barcode_image_path
    updated_by = _as_uuid(requester.user_id)
    rejected = set()

    for _ in range(settings.BARCODE_INSERT_ATTEMPTS):
        reservation = await reserve_unique_barcode(
            dealer.dealer_code, fixture_no,
            live_barcode_oracle(repo, exclude_asset_id=asset_id, rejected=rejected),
            clock=clock)
        if not reservation.ok:
            return reservation

        try:
            artifact = await render_barcode_artifact(reservation.value, caption_text=asset_no)
        except ArtifactGenerationError as e:
            return BarcodeResult.failure(BarcodeOutcome.artifact_failed, str(e))

        try:
            await repo.update_identity(asset, reservation.value, artifact.relative_path, updated_by)
        except DuplicateBarcodeError as e:
            logger.warning("Barcode %s lost an update race, re-reserving", e.barcode_value)
            rejected.add(e.barcode_value)
            await delete_artifact(artifact.relative_path)
            continue

        if previous_path and previous_path != artifact.relative_path:
            await delete_artifact(previous_path)

        logger.info("Barcode regenerated for asset %s: %s", asset_no, reservation.value)
        return BarcodeResult.success(BarcodeIdentity(reservation.value, artifact.relative_path))

    return BarcodeResult.failure(BarcodeOutcome.exhausted, EXHAUSTED_MESSAGE)


@dataclass(frozen=True)
class DealerRegenerationReport:
    regenerated: List[dict]
    failed: List[dict]


async def regenerate_dealer_identities(
        repo: AssetRepository,
        dealer: Optional[Dealer],
        requester: Optional[UserToken],
        clock: Clock = datetime.now) -> BarcodeResult[DealerRegenerationReport]:
    """Regenerate every live asset of a dealer, e.g. after its code changed.
    One asset failing does not stop the rest."""
    if requester is None or not requester.is_admin:
        return BarcodeResult.failure(
            BarcodeOutcome.forbidden, "Only admins can regenerate barcodes")
    dealer = DealerSnapshot.of(dealer)
    if dealer is None or dealer.is_deleted:
        return BarcodeResult.failure(BarcodeOutcome.not_found, "Dealer not found")

    asset_ids = [asset.id for asset in await repo.list_for_dealer(dealer.id)]
    regenerated, failed = [], []
    for asset_id in asset_ids:
        asset = await repo.get_by_id(asset_id)
        if asset is None:
            continue
        asset_no = asset.asset_no
        result = await regenerate_identity(repo, asset, dealer, requester, clock=clock)
        if result.ok:
            regenerated.append({
                "asset_id": asset_id,
                "asset_no": asset_no,
                "barcode_value": result.value.barcode_value,
                "barcode_image_url": result.value.barcode_image_url,
            })
        else:
            logger.error("Barcode regeneration failed for asset %s: %s", asset_no, result.message)
            failed.append({"asset_id": asset_id, "asset_no": asset_no, "message": result.message})

    return BarcodeResult.success(DealerRegenerationReport(regenerated, failed))
