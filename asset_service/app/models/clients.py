import uuid
from sqlalchemy import Boolean, Column, String, Uuid
from shared.core.database import Base


class Client(Base):
    __tablename__ = "clients"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(200), nullable=False)
    email = Column(String(200))
    phone = Column(String(32))
    company = Column(String(200))
    is_deleted = Column(Boolean, default=False, nullable=False)
