"""
OTP Authentication Service
Phone-number login for the customer and merchant mobile apps

Flow:
1. request_otp: validate (and for registration, check uniqueness), then
   have Authentica text a code to the phone
2. check_otp: verify the code, find the merchant or customer owning the
   phone (or register a new customer), refresh the user profile and mint a
   bearer token
"""
import logging
from typing import Any, Dict, Optional

from app.connectors.authentica_connector import AuthenticaConnector
from app.core.auth import create_access_token, hash_password
from app.core.phone import denormalize_phone, normalize_phone
from app.repositories import Storage, get_storage
from app.services.errors import ConflictError, ServiceError, ValidationError
from app.services.identity import ensure_email_available

logger = logging.getLogger(__name__)


class OtpAuthService:

    def __init__(self, storage: Optional[Storage] = None, gateway: Optional[AuthenticaConnector] = None):
        self.storage = storage or get_storage()
        self.gateway = gateway or AuthenticaConnector()

    def _ensure_unregistered(self, phone: str, email: Optional[str]):
        if self.storage.get_merchant_by_mobile(phone) or self.storage.get_customer_by_mobile(phone):
            raise ConflictError("رقم الجوال مسجل بالفعل")
        ensure_email_available(self.storage, email)

    async def request_otp(self, phone: Optional[str], email: Optional[str] = None, is_registration: bool = False) -> Dict[str, Any]:
        if not phone:
            raise ValidationError("رقم الجوال مطلوب")

        phone = normalize_phone(phone)
        if is_registration:
            self._ensure_unregistered(phone, email)

        result = await self.gateway.send_otp(phone)
        if not result.success:
            logger.error(f"request_otp: Authentica error for {phone}: {result.message}")
            raise ServiceError(502, result.message or "فشل إرسال رمز التحقق")

        return {"success": True, "message": result.message}

    async def check_otp(
        self,
        phone: Optional[str],
        otp: Optional[str],
        name: Optional[str] = None,
        email: Optional[str] = None,
        password: Optional[str] = None,
    ) -> Dict[str, Any]:
        if not phone or not otp:
            raise ValidationError("رقم الجوال ورمز التحقق مطلوبان")

        phone = normalize_phone(phone)
        result = await self.gateway.verify_otp(phone, otp)
        if not result.success:
            logger.warning(f"check_otp: verification failed for {phone}: {result.message}")
            raise ServiceError(401, result.message or "رمز التحقق غير صحيح")

        db_phone = denormalize_phone(phone)
        user, role, password_hash = self._resolve_user(phone, db_phone, name, email, password)

        uid = f"{role}_{user['id']}"
        self.storage.upsert_user_profile(uid, {
            "role": role,
            "customer_id": user["id"],
            "name": user.get("name") or user.get("ownerName") or db_phone,
            "mobile": db_phone,
            "email": user.get("email"),
            **({"password_hash": password_hash} if password_hash else {}),
        })

        token = create_access_token(user["id"], role, phone=phone, email=user.get("email"))
        logger.info(f"check_otp: signed in {uid}")
        return {"success": True, "token": token, "user": user, "type": role}

    def _resolve_user(self, phone: str, db_phone: str, name: Optional[str], email: Optional[str], password: Optional[str]):
        """Find the merchant or customer for this phone, registering a customer if none"""
        merchant = self.storage.get_merchant_by_mobile(phone)
        if merchant:
            changes = {}
            if name and name != merchant.owner_name:
                changes["owner_name"] = name
            if email and email != merchant.email:
                ensure_email_available(self.storage, email, merchant_id=merchant.id)
                changes["email"] = email
            if changes:
                merchant = self.storage.update_merchant(merchant.id, changes)
            return merchant.to_public_dict(), "merchant", None

        customer = self.storage.get_customer_by_mobile(phone)
        if customer:
            changes = {}
            if name and name != customer.name:
                changes["name"] = name
            if email and email != customer.email:
                ensure_email_available(self.storage, email, customer_id=customer.id)
                changes["email"] = email
            if changes:
                customer = self.storage.update_customer(customer.id, changes)
            return customer.to_dict(), "customer", None

        ensure_email_available(self.storage, email)
        logger.info(f"check_otp: registering new customer for {db_phone}")
        customer = self.storage.create_customer({
            "name": name or db_phone,
            "mobile": db_phone,
            "email": email or None,
            "city": None,
        })
        return customer.to_dict(), "customer", hash_password(password) if password else None
