import uuid
from datetime import datetime, timedelta, timezone
from fastapi import status, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from shared.models.users import Users
from shared.utils.app_status_code import AppStatusCode
from shared.utils.enums import UserRole
from shared.core.config import settings
from shared.helpers.json_response_helper import error_response
from shared.core.schemas import UserToken
from shared.core.database import get_db

security = HTTPBearer()


def create_access_token(data: dict, expires_minutes: int | None = None):
    payload = {k: str(v) if isinstance(v, uuid.UUID) else v for k, v in data.items()}
    expires = datetime.now(timezone.utc) + timedelta(
        minutes=expires_minutes or settings.JWT_EXPIRE_MINUTES)
    payload['exp'] = expires

    token = jwt.encode(payload, settings.JWT_SECRET,
                       algorithm=settings.JWT_ALGORITHM)
    return token


def verify_token(token: str) -> UserToken:
    """Verify and decode a JWT token."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET,
                             algorithms=[settings.JWT_ALGORITHM])
        return UserToken(**payload)
    except JWTError:
        return error_response(
            message="Invalid or expired token",
            status_code=AppStatusCode.AUTHENTICATION_TOKEN_EXPIRED,
            http_status=status.HTTP_401_UNAUTHORIZED
        )
    except ValidationError:
        return error_response(
            message="Invalid token structure",
            status_code=AppStatusCode.AUTHENTICATION_TOKEN_INVALID,
            http_status=status.HTTP_401_UNAUTHORIZED
        )


async def validate_current_token(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db)
):
    user_data = verify_token(credentials.credentials)

    try:
        user_id = uuid.UUID(user_data.user_id)
    except ValueError:
        return error_response(
            message="Invalid token structure",
            status_code=AppStatusCode.AUTHENTICATION_TOKEN_INVALID,
            http_status=status.HTTP_401_UNAUTHORIZED
        )

    # Fetch the user from the database
    user = await db.get(Users, user_id)

    if not user or user.is_deleted:
        return error_response(
            message="The user belonging to this token no longer exists",
            status_code=AppStatusCode.AUTHENTICATION_USER_INVALID,
            http_status=status.HTTP_401_UNAUTHORIZED
        )

    if not user.is_active:
        return error_response(
            message="Your account has been disabled. Please contact admin",
            status_code=AppStatusCode.AUTHENTICATION_USER_INACTIVE,
            http_status=status.HTTP_403_FORBIDDEN
        )

    # role and scope always come from the stored user, not the token
    user_data.role = user.role
    user_data.dealer_id = user.dealer_id
    user_data.client_id = user.client_id
    user_data.name = user.full_name
    return user_data


def allow_admin(current_user: UserToken = Depends(validate_current_token)):
    if current_user.role.upper() != UserRole.ADMIN.value:
        return error_response(
            message="You do not have permission to perform this action",
            status_code=AppStatusCode.ACCESS_FORBIDDEN,
            http_status=status.HTTP_403_FORBIDDEN
        )

    return current_user
