import logging
from datetime import datetime
from typing import Awaitable, Callable, Optional

from shared.core.config import settings
from ..core.result import BarcodeResult
from ..enum.barcode_enum import BarcodeOutcome
from .barcode_service import derive_barcode_value

logger = logging.getLogger(__name__)

EXHAUSTED_MESSAGE = "Failed to generate unique barcode. Please try again."

IsTaken = Callable[[str], Awaitable[bool]]
Clock = Callable[[], datetime]


async def reserve_unique_barcode(
        dealer_code: str,
        fixture_no: str,
        is_taken: IsTaken,
        max_retries: Optional[int] = None,
        clock: Clock = datetime.now) -> BarcodeResult[str]:
    """Find a barcode value the oracle reports as free.

    Tries the plain candidate, then `max_retries` candidates keyed off
    "{fixture_no}-{attempt}". Never loops past that bound; an oracle that
    always answers True ends in EXHAUSTED after 1 + max_retries checks.
    """
    if not dealer_code or not dealer_code.strip():
        return BarcodeResult.failure(BarcodeOutcome.invalid, "dealer_code is required")
    if not fixture_no or not fixture_no.strip():
        return BarcodeResult.failure(BarcodeOutcome.invalid, "fixture_no is required")

    if max_retries is None:
        max_retries = settings.BARCODE_MAX_RETRIES

    candidate = derive_barcode_value(dealer_code, fixture_no, clock())
    if not await is_taken(candidate):
        return BarcodeResult.success(candidate)

    for attempt in range(max_retries):
        logger.debug("Barcode %s taken, retrying (attempt %d)", candidate, attempt)
        candidate = derive_barcode_value(dealer_code, f"{fixture_no}-{attempt}", clock())
        if not await is_taken(candidate):
            return BarcodeResult.success(candidate)

    logger.error(
        "Barcode uniqueness exhausted for dealer %s fixture %s after %d attempts",
        dealer_code, fixture_no, max_retries + 1)
    return BarcodeResult.failure(BarcodeOutcome.exhausted, EXHAUSTED_MESSAGE)
