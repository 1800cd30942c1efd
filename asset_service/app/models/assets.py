# app/models/assets.py
import uuid
from sqlalchemy import Boolean, Column, Date, ForeignKey, String, Text, TIMESTAMP, UniqueConstraint, Uuid
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from shared.core.database import Base


class Asset(Base):
    __tablename__ = "assets"
    # covers soft-deleted rows too, retired values are never handed out again
    __table_args__ = (UniqueConstraint(
        'barcode_value', name='uix_assets_barcode_value'),)

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    asset_no = Column(String(64), index=True, nullable=False)
    fixture_no = Column(String(64), index=True, nullable=False)
    dealer_id = Column(Uuid(as_uuid=True), ForeignKey(
        "dealers.id", ondelete="RESTRICT"), index=True, nullable=False)
    brand_id = Column(Uuid(as_uuid=True), ForeignKey(
        "brands.id", ondelete="SET NULL"), nullable=True)
    client_id = Column(Uuid(as_uuid=True), ForeignKey(
        "clients.id", ondelete="SET NULL"), nullable=True)
    stand_type = Column(String(100))
    status = Column(String(24), default="ACTIVE", nullable=False)
    installation_date = Column(Date)
    location_address = Column(Text)

    barcode_value = Column(String(128), nullable=False)
    # relative to UPLOAD_DIR, joined with APP_URL at read time
    barcode_image_path = Column(String(255), nullable=False)

    created_by = Column(Uuid(as_uuid=True), ForeignKey(
        "users.id", ondelete="SET NULL"), nullable=True)
    updated_by = Column(Uuid(as_uuid=True), ForeignKey(
        "users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(TIMESTAMP(timezone=True),
                        server_default=func.now(), nullable=False)
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(
    ), onupdate=func.now(), nullable=False)
    # ✅ soft delete column
    is_deleted = Column(Boolean, default=False, nullable=False)

    dealer = relationship("Dealer", back_populates="assets")
    brand = relationship("Brand")
    client = relationship("Client")
    creator = relationship("Users", foreign_keys=[created_by])
    updater = relationship("Users", foreign_keys=[updated_by])
