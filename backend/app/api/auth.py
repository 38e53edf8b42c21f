"""
Authentication API endpoints for Glorda
- Merchant registration and password login (merchant / admin dashboards)
- Forgot / reset password for merchants
- Phone OTP login for the mobile apps
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.errors import service_errors
from app.core.auth import TokenUser, get_current_user
from app.core.rate_limit import rate_limit
from app.domain.base import DomainModel
from app.domain.merchant import MerchantCreate
from app.repositories import get_storage
from app.services.auth_service import AuthService
from app.services.otp_auth_service import OtpAuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


# =============================================================================
# Request Models
# =============================================================================

class LoginRequest(DomainModel):
    email: str
    password: str


class ForgotPasswordRequest(DomainModel):
    email: Optional[str] = None


class VerifyResetOtpRequest(DomainModel):
    email: Optional[str] = None
    otp: Optional[str] = None


class ResetPasswordRequest(DomainModel):
    email: Optional[str] = None
    reset_token: Optional[str] = None
    password: Optional[str] = None


class OtpRequest(DomainModel):
    phone: Optional[str] = None
    email: Optional[str] = None
    is_registration: bool = False


class OtpCheckRequest(DomainModel):
    phone: Optional[str] = None
    otp: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


# =============================================================================
# Merchant registration / password login
# =============================================================================

@router.post("/register")
async def register_merchant(payload: MerchantCreate):
    """Register a new store; it stays pending until an admin approves it"""
    with service_errors("registering merchant"):
        merchant = AuthService().register_merchant(payload)
        return {"status": "success", "data": merchant.to_public_dict()}


@router.post("/login/merchant", dependencies=[Depends(rate_limit())])
async def login_merchant(payload: LoginRequest):
    with service_errors("logging in merchant"):
        return {"status": "success", "data": AuthService().login_merchant(payload.email, payload.password)}


@router.post("/login/admin", dependencies=[Depends(rate_limit())])
async def login_admin(payload: LoginRequest):
    with service_errors("logging in admin"):
        return {"status": "success", "data": AuthService().login_admin(payload.email, payload.password)}


@router.post("/logout")
async def logout():
    # tokens are stateless; the client drops its copy
    return {"status": "success", "message": "تم تسجيل الخروج"}


@router.get("/me")
async def get_me(user: TokenUser = Depends(get_current_user)):
    """Profile of the signed-in merchant, admin or customer"""
    with service_errors("fetching current user"):
        storage = get_storage()
        if user.role == "merchant":
            record = storage.get_merchant(user.id)
            data = record.to_public_dict() if record else None
        elif user.role == "admin":
            record = storage.get_admin(user.id)
            data = record.to_public_dict() if record else None
        else:
            record = storage.get_customer(user.id)
            data = record.to_dict() if record else None

        if data is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="غير مصرح")
        return {"status": "success", "data": {**data, "type": user.role}}


# =============================================================================
# Forgot / reset password
# =============================================================================

@router.post("/forgot-password", dependencies=[Depends(rate_limit())])
async def forgot_password(payload: ForgotPasswordRequest):
    with service_errors("starting password reset"):
        return AuthService().forgot_password(payload.email)


@router.post("/verify-otp", dependencies=[Depends(rate_limit())])
async def verify_reset_otp(payload: VerifyResetOtpRequest):
    with service_errors("verifying reset code"):
        return AuthService().verify_reset_otp(payload.email, payload.otp)


@router.post("/reset-password", dependencies=[Depends(rate_limit())])
async def reset_password(payload: ResetPasswordRequest):
    with service_errors("resetting password"):
        return AuthService().reset_password(payload.email, payload.reset_token, payload.password)


# =============================================================================
# Phone OTP login (mobile apps)
# =============================================================================

@router.post("/otp/request", dependencies=[Depends(rate_limit())])
async def request_otp(payload: OtpRequest):
    with service_errors("requesting OTP"):
        return await OtpAuthService().request_otp(payload.phone, payload.email, payload.is_registration)


@router.post("/otp/check", dependencies=[Depends(rate_limit())])
async def check_otp(payload: OtpCheckRequest):
    with service_errors("checking OTP"):
        return await OtpAuthService().check_otp(
            payload.phone, payload.otp, payload.name, payload.email, payload.password
        )
