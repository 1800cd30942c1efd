import uuid
from sqlalchemy import Boolean, Column, String, Uuid
from shared.core.database import Base


class Brand(Base):
    __tablename__ = "brands"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(200), unique=True, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    is_deleted = Column(Boolean, default=False, nullable=False)
