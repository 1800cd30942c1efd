from pydantic import BaseModel
from typing import Generic, Optional, TypeVar
from uuid import UUID

# Shared properties
T = TypeVar("T")


class UserToken(BaseModel):
    user_id: str
    role: str
    dealer_id: Optional[UUID] = None
    client_id: Optional[UUID] = None
    name: Optional[str] = None
    exp: Optional[int] = None

    @property
    def is_admin(self) -> bool:
        return self.role.upper() == "ADMIN"


class JsonOutResult(BaseModel, Generic[T]):
    success: bool
    status_code: str
    message: str
    data: Optional[T] = None
