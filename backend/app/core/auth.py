"""
Authentication for Glorda Backend

Issues and validates the bearer tokens used by every dashboard and the
customer app. A token is an HS256 JWT signed with AUTH_SECRET carrying:

{
    "sub": "merchant_123",     # <role>_<numeric id>
    "user_id": 123,
    "role": "merchant",        # admin | merchant | customer
    "phone": "0501234567",     # optional
    "email": "a@b.com",        # optional
    "exp": 1234567890
}
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError, ExpiredSignatureError
from passlib.context import CryptContext
from pydantic import BaseModel

from app.core.config import settings


ALGORITHM = "HS256"

# Security scheme for bearer tokens
security = HTTPBearer(auto_error=False)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class TokenUser(BaseModel):
    """User data extracted from JWT token"""
    id: int
    uid: str
    role: str
    phone: Optional[str] = None
    email: Optional[str] = None


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # malformed or non-bcrypt hash stored for this account
        return False


def create_access_token(
    user_id: int,
    role: str,
    phone: Optional[str] = None,
    email: Optional[str] = None,
    expires_minutes: Optional[int] = None,
) -> str:
    """Mint a signed bearer token for a user"""
    expire = datetime.now(timezone.utc) + timedelta(
        minutes=expires_minutes if expires_minutes is not None else settings.TOKEN_EXPIRE_MINUTES
    )
    payload = {
        "sub": f"{role}_{user_id}",
        "user_id": user_id,
        "role": role,
        "exp": expire,
    }
    if phone:
        payload["phone"] = phone
    if email:
        payload["email"] = email
    return jwt.encode(payload, settings.AUTH_SECRET, algorithm=ALGORITHM)


def decode_token(token: str) -> dict:
    """
    Decode and validate a bearer token.

    Raises:
        HTTPException 401 when the token is expired, tampered with or malformed
    """
    try:
        return jwt.decode(token, settings.AUTH_SECRET, algorithms=[ALGORITHM])
    except ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="انتهت صلاحية الجلسة",
            headers={"WWW-Authenticate": "Bearer"}
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="رمز الدخول غير صالح",
            headers={"WWW-Authenticate": "Bearer"}
        )


def _token_user(payload: dict) -> Optional[TokenUser]:
    user_id = payload.get("user_id")
    role = payload.get("role")
    if user_id is None or not role:
        return None
    return TokenUser(
        id=int(user_id),
        uid=payload.get("sub") or f"{role}_{user_id}",
        role=role,
        phone=payload.get("phone"),
        email=payload.get("email"),
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> TokenUser:
    """
    Dependency that extracts and validates the current user from the token.

    Usage:
        @router.get("/protected")
        async def protected_route(user: TokenUser = Depends(get_current_user)):
            return {"message": f"Hello {user.uid}"}
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="غير مصرح",
            headers={"WWW-Authenticate": "Bearer"}
        )

    user = _token_user(decode_token(credentials.credentials))
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="رمز الدخول غير صالح",
            headers={"WWW-Authenticate": "Bearer"}
        )
    return user


def require_role(required_role: str):
    """
    Dependency factory for role-based access control.

    Roles do not nest: an admin token cannot call merchant endpoints and
    vice versa.

    Usage:
        @router.get("/withdrawals")
        async def list_withdrawals(user: TokenUser = Depends(require_role("admin"))):
            ...
    """
    async def role_checker(
        user: TokenUser = Depends(get_current_user)
    ) -> TokenUser:
        if user.role != required_role:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="غير مصرح"
            )
        return user

    return role_checker


# Convenience dependencies for common role requirements
require_admin = require_role("admin")
require_merchant = require_role("merchant")
require_customer = require_role("customer")
