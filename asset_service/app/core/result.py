from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

from shared.helpers.json_response_helper import error_response
from shared.utils.app_status_code import AppStatusCode
from ..enum.barcode_enum import BarcodeOutcome

T = TypeVar("T")


@dataclass(frozen=True)
class BarcodeResult(Generic[T]):
    """Tagged outcome of a barcode operation.

    The core never raises for expected outcomes; routers turn a non-ok
    result into a transport error with `raise_for_outcome`.
    """
    outcome: BarcodeOutcome
    value: Optional[T] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.outcome == BarcodeOutcome.ok

    @classmethod
    def success(cls, value: Any = None, message: str = ""):
        return cls(BarcodeOutcome.ok, value, message)

    @classmethod
    def failure(cls, outcome: BarcodeOutcome, message: str):
        return cls(outcome, None, message)


# outcome -> (http status, application status code)
OUTCOME_STATUS = {
    BarcodeOutcome.invalid: (400, AppStatusCode.REQUIRED_VALIDATION_ERROR),
    BarcodeOutcome.conflict: (409, AppStatusCode.DUPLICATE_ADD_ERROR),
    BarcodeOutcome.not_found: (404, AppStatusCode.RESOURCE_NOT_FOUND),
    BarcodeOutcome.deleted: (410, AppStatusCode.RESOURCE_DELETED),
    BarcodeOutcome.forbidden: (403, AppStatusCode.ACCESS_FORBIDDEN),
    BarcodeOutcome.exhausted: (500, AppStatusCode.BARCODE_UNIQUENESS_EXHAUSTED),
    BarcodeOutcome.artifact_failed: (500, AppStatusCode.BARCODE_ARTIFACT_FAILED),
}


def raise_for_outcome(result: BarcodeResult[T]) -> T:
    if result.ok:
        return result.value

    http_status, status_code = OUTCOME_STATUS[result.outcome]
    return error_response(
        message=result.message,
        status_code=status_code,
        http_status=http_status
    )
