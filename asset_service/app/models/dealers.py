# app/models/dealers.py
import uuid
from sqlalchemy import Boolean, Column, String, Text, TIMESTAMP, Uuid
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from shared.core.database import Base


class Dealer(Base):
    __tablename__ = "dealers"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    # namespace prefix of every barcode value minted for this dealer
    dealer_code = Column(String(32), unique=True, index=True, nullable=False)
    name = Column(String(200), nullable=False)
    shop_name = Column(String(200))
    email = Column(String(200))
    phone = Column(String(32))
    address = Column(Text)
    is_active = Column(Boolean, default=True, nullable=False)
    is_deleted = Column(Boolean, default=False, nullable=False)
    created_at = Column(TIMESTAMP(timezone=True),
                        server_default=func.now(), nullable=False)
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(
    ), onupdate=func.now(), nullable=False)

    assets = relationship("Asset", back_populates="dealer")
