import uuid
from sqlalchemy import Column, ForeignKey, Index, String, Text, TIMESTAMP, Uuid
from sqlalchemy.sql import func
from shared.core.database import Base


class BarcodeScanLog(Base):
    """Append-only record of a resolved scan. Rows are never updated."""
    __tablename__ = "barcode_scan_logs"
    __table_args__ = (
        Index("ix_scan_logs_scanned_dealer", "scanned_at", "dealer_id"),
        Index("ix_scan_logs_barcode_scanned", "barcode_value", "scanned_at"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    asset_id = Column(Uuid(as_uuid=True), ForeignKey(
        "assets.id", ondelete="CASCADE"), index=True, nullable=False)
    # denormalized at scan time
    barcode_value = Column(String(128), nullable=False)
    dealer_id = Column(Uuid(as_uuid=True), ForeignKey(
        "dealers.id", ondelete="CASCADE"), index=True, nullable=False)
    client_id = Column(Uuid(as_uuid=True), ForeignKey(
        "clients.id", ondelete="SET NULL"), nullable=True)
    scan_type = Column(String(16), default="PUBLIC", nullable=False)
    scanned_at = Column(TIMESTAMP(timezone=True),
                        server_default=func.now(), nullable=False)
    ip_address = Column(String(64))
    user_agent = Column(Text)
    referer = Column(Text)
