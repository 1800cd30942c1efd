import uuid
from sqlalchemy import TIMESTAMP, Boolean, Column, ForeignKey, String, Uuid, func
from ..core.database import Base


class Users(Base):
    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    full_name = Column(String(200), nullable=False)
    email = Column(String(200), unique=True, index=True, nullable=False)
    role = Column(String(16), nullable=False, default="DEALER")
    dealer_id = Column(Uuid(as_uuid=True), ForeignKey(
        "dealers.id", ondelete="SET NULL"), nullable=True)
    client_id = Column(Uuid(as_uuid=True), ForeignKey(
        "clients.id", ondelete="SET NULL"), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True),
                        server_default=func.now(), onupdate=func.now())
    is_deleted = Column(Boolean, default=False, nullable=False)  # ✅ Soft delete field
