"""
Password Authentication Service
Email/password login for the merchant and admin dashboards, merchant
registration and the forgot-password flow.

Reset codes and reset tokens are kept in process memory; they are short
lived (10 and 15 minutes) and a restart simply invalidates them.
"""
import logging
import secrets
import threading
import time
from typing import Dict, Optional

from app.core.auth import create_access_token, hash_password, verify_password
from app.domain.admin import Admin
from app.domain.merchant import Merchant, MerchantCreate
from app.repositories import Storage, get_storage
from app.services.errors import ConflictError, ServiceError, ValidationError
from app.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

OTP_TTL_SECONDS = 10 * 60
RESET_TOKEN_TTL_SECONDS = 15 * 60
MIN_PASSWORD_LENGTH = 6
MAX_OTP_ATTEMPTS = 5


class PasswordResetStore:
    """
    Pending password resets keyed by email

    Each entry moves from {otp, expires, attempts} to {reset_token, expires}
    once the code is verified, and is dropped after a successful reset or
    after MAX_OTP_ATTEMPTS wrong codes.
    """

    def __init__(self, clock=time.time):
        self._entries: Dict[str, dict] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def issue_otp(self, email: str) -> str:
        otp = f"{secrets.randbelow(900000) + 100000}"
        with self._lock:
            self._entries[email] = {"otp": otp, "expires": self._clock() + OTP_TTL_SECONDS, "attempts": 0}
        return otp

    def verify_otp(self, email: str, otp: str) -> str:
        with self._lock:
            entry = self._entries.get(email)
            if not entry or "otp" not in entry:
                raise ValidationError("لم يتم طلب رمز تحقق لهذا البريد")
            if self._clock() > entry["expires"]:
                del self._entries[email]
                raise ValidationError("انتهت صلاحية رمز التحقق")
            if not secrets.compare_digest(entry["otp"].encode(), str(otp).encode()):
                entry["attempts"] += 1
                if entry["attempts"] >= MAX_OTP_ATTEMPTS:
                    del self._entries[email]
                    logger.warning(f"Password reset for {email} locked after {MAX_OTP_ATTEMPTS} wrong codes")
                    raise ValidationError("تم تجاوز عدد المحاولات، يرجى طلب رمز جديد")
                raise ValidationError("رمز التحقق غير صحيح")

            reset_token = secrets.token_hex(32)
            self._entries[email] = {"reset_token": reset_token, "expires": self._clock() + RESET_TOKEN_TTL_SECONDS}
            return reset_token

    def consume_reset_token(self, email: str, reset_token: str):
        with self._lock:
            entry = self._entries.get(email)
            if (
                not entry
                or entry.get("reset_token") is None
                or not secrets.compare_digest(entry["reset_token"].encode(), str(reset_token).encode())
                or self._clock() > entry["expires"]
            ):
                raise ValidationError("رمز إعادة التعيين غير صالح أو منتهي الصلاحية")
            del self._entries[email]


# Shared across requests in this process
reset_store = PasswordResetStore()


class AuthService:

    def __init__(
        self,
        storage: Optional[Storage] = None,
        notifications: Optional[NotificationService] = None,
        resets: Optional[PasswordResetStore] = None,
    ):
        self.storage = storage or get_storage()
        self.notifications = notifications or NotificationService(self.storage)
        self.resets = resets or reset_store

    # ===== Merchants =====

    def register_merchant(self, payload: MerchantCreate) -> Merchant:
        if self.storage.get_merchant_by_email(payload.email) or self.storage.get_customer_by_email(payload.email):
            raise ConflictError("البريد الإلكتروني مستخدم بالفعل")

        data = payload.model_dump()
        data["password"] = hash_password(payload.password)
        merchant = self.storage.create_merchant(data)

        logger.info(f"New merchant registered: {merchant.id} ({merchant.store_name})")
        self.notifications.notify_admins(
            "طلب تسجيل تاجر جديد",
            f"قام {merchant.owner_name} بتسجيل متجر {merchant.store_name} وينتظر المراجعة",
            type="verification",
            link=f"/admin/merchants/{merchant.id}",
            metadata={"merchantId": merchant.id},
        )
        return merchant

    def login_merchant(self, email: str, password: str) -> Dict[str, object]:
        merchant = self.storage.get_merchant_by_email(email)
        if not merchant or not verify_password(password, merchant.password):
            raise ServiceError(401, "بيانات الدخول غير صحيحة")

        if merchant.status == "pending":
            raise ServiceError(403, "حسابك قيد المراجعة. يرجى انتظار موافقة الإدارة.")
        if merchant.status != "active":
            raise ServiceError(403, "حسابك موقوف. يرجى التواصل مع الإدارة.")

        token = create_access_token(merchant.id, "merchant", phone=merchant.mobile, email=merchant.email)
        return {"token": token, "user": merchant.to_public_dict(), "type": "merchant"}

    # ===== Admins =====

    def login_admin(self, email: str, password: str) -> Dict[str, object]:
        admin = self.storage.get_admin_by_email(email)
        if not admin or not verify_password(password, admin.password):
            raise ServiceError(401, "بيانات الدخول غير صحيحة")

        token = create_access_token(admin.id, "admin", email=admin.email)
        return {"token": token, "user": admin.to_public_dict(), "type": "admin"}

    def ensure_default_admin(self, email: str, password: str, name: str) -> Optional[Admin]:
        """Create the default admin account if it does not exist yet"""
        if self.storage.get_admin_by_email(email):
            return None
        admin = self.storage.create_admin({"email": email, "password": hash_password(password), "name": name})
        logger.info(f"Default admin created: {email}")
        return admin

    # ===== Forgot password =====

    def forgot_password(self, email: Optional[str]) -> Dict[str, object]:
        """Always answers success so callers cannot tell which emails exist"""
        if not email:
            raise ValidationError("البريد الإلكتروني مطلوب")

        merchant = self.storage.get_merchant_by_email(email)
        if merchant:
            otp = self.resets.issue_otp(merchant.email)
            # no mail sender configured; the code is delivered through the logs
            logger.info(f"Password reset code for {merchant.email}: {otp}")

        return {"success": True, "message": "إذا كان البريد مسجلاً، سيتم إرسال رمز التحقق"}

    def verify_reset_otp(self, email: Optional[str], otp: Optional[str]) -> Dict[str, object]:
        if not email or not otp:
            raise ValidationError("البريد الإلكتروني ورمز التحقق مطلوبان")

        merchant = self.storage.get_merchant_by_email(email)
        key = merchant.email if merchant else email
        reset_token = self.resets.verify_otp(key, otp)
        return {"success": True, "resetToken": reset_token}

    def reset_password(self, email: Optional[str], reset_token: Optional[str], new_password: Optional[str]) -> Dict[str, object]:
        if not email or not reset_token or not new_password:
            raise ValidationError("جميع الحقول مطلوبة")
        if len(new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationError("كلمة المرور يجب أن تكون 6 أحرف على الأقل")

        merchant = self.storage.get_merchant_by_email(email)
        key = merchant.email if merchant else email
        self.resets.consume_reset_token(key, reset_token)
        if not merchant:
            raise ValidationError("رمز إعادة التعيين غير صالح أو منتهي الصلاحية")

        self.storage.update_merchant(merchant.id, {"password": hash_password(new_password)})
        logger.info(f"Password reset for merchant {merchant.id}")
        return {"success": True, "message": "تم تغيير كلمة المرور بنجاح"}

    def change_admin_password(self, admin_id: int, current_password: str, new_password: str) -> Admin:
        admin = self.storage.get_admin(admin_id)
        if not admin:
            raise ServiceError(404, "المسؤول غير موجود")
        if not verify_password(current_password, admin.password):
            raise ValidationError("كلمة المرور الحالية غير صحيحة")
        if len(new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationError("كلمة المرور يجب أن تكون 6 أحرف على الأقل")
        return self.storage.update_admin_password(admin.id, hash_password(new_password))
