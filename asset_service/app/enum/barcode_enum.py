from enum import Enum


class BarcodeOutcome(str, Enum):
    ok = "OK"
    invalid = "INVALID"
    conflict = "CONFLICT"
    exhausted = "EXHAUSTED"
    artifact_failed = "ARTIFACT_FAILED"
    not_found = "NOT_FOUND"
    deleted = "DELETED"
    forbidden = "FORBIDDEN"


class ScanType(str, Enum):
    public = "PUBLIC"
    authenticated = "AUTHENTICATED"


class AssetStatus(str, Enum):
    active = "ACTIVE"
    inactive = "INACTIVE"
    maintenance = "MAINTENANCE"
    damaged = "DAMAGED"
