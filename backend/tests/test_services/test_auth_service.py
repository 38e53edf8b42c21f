"""
Unit tests for AuthService and PasswordResetStore
"""
import pytest
from jose import jwt

from app.core.auth import ALGORITHM, verify_password
from app.core.config import settings
from app.domain.merchant import MerchantCreate
from app.services.auth_service import MAX_OTP_ATTEMPTS, AuthService, PasswordResetStore
from app.services.errors import ConflictError, ServiceError, ValidationError


class FakeClock:
    def __init__(self):
        self.now = 1_000_000.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def auth(storage, clock):
    return AuthService(storage, resets=PasswordResetStore(clock=clock))


class TestRegistrationAndLogin:
    """Test merchant registration and password logins"""

    def test_register_hashes_password_and_notifies_admins(self, auth, storage, admin, sample_merchant_data):
        merchant = auth.register_merchant(MerchantCreate(**sample_merchant_data))

        assert merchant.status == "pending"
        assert verify_password("secret123", merchant.password)
        assert storage.get_notifications_for_admin(admin.id)[0].type == "verification"

    def test_duplicate_email_conflicts(self, auth, merchant, sample_merchant_data):
        with pytest.raises(ConflictError):
            auth.register_merchant(MerchantCreate(**{**sample_merchant_data, "email": "SARA@example.com"}))

    def test_email_of_a_customer_conflicts(self, auth, customer, sample_merchant_data):
        with pytest.raises(ConflictError):
            auth.register_merchant(MerchantCreate(**{**sample_merchant_data, "email": customer.email}))

    def test_login_returns_token_with_role(self, auth, merchant):
        result = auth.login_merchant("sara@example.com", "secret123")

        claims = jwt.decode(result["token"], settings.AUTH_SECRET, algorithms=[ALGORITHM])
        assert claims["role"] == "merchant"
        assert claims["user_id"] == merchant.id
        assert "password" not in result["user"]

    def test_wrong_password_is_401(self, auth, merchant):
        with pytest.raises(ServiceError) as exc:
            auth.login_merchant("sara@example.com", "wrong")
        assert exc.value.status_code == 401

    @pytest.mark.parametrize("status", ["pending", "suspended", "rejected"])
    def test_inactive_merchant_is_403(self, auth, storage, merchant, status):
        storage.update_merchant_status(merchant.id, status)
        with pytest.raises(ServiceError) as exc:
            auth.login_merchant("sara@example.com", "secret123")
        assert exc.value.status_code == 403

    def test_admin_login(self, auth, admin):
        assert auth.login_admin("admin@glorda.com", "admin123")["type"] == "admin"

    def test_default_admin_seeded_once(self, auth, storage):
        assert auth.ensure_default_admin("root@glorda.com", "pw123456", "Root") is not None
        assert auth.ensure_default_admin("root@glorda.com", "pw123456", "Root") is None
        assert len(storage.get_all_admins()) == 1

    def test_change_admin_password(self, auth, storage, admin):
        with pytest.raises(ValidationError):
            auth.change_admin_password(admin.id, "wrong", "newpass1")

        auth.change_admin_password(admin.id, "admin123", "newpass1")
        assert verify_password("newpass1", storage.get_admin(admin.id).password)


class TestPasswordReset:
    """Test the forgot-password flow"""

    def test_full_reset_flow(self, auth, storage, merchant):
        auth.forgot_password("sara@example.com")
        otp = auth.resets._entries["sara@example.com"]["otp"]

        reset_token = auth.verify_reset_otp("sara@example.com", otp)["resetToken"]
        auth.reset_password("sara@example.com", reset_token, "brandnew")

        assert verify_password("brandnew", storage.get_merchant(merchant.id).password)
        # token is single use
        with pytest.raises(ValidationError):
            auth.reset_password("sara@example.com", reset_token, "another1")

    def test_unknown_email_still_answers_success(self, auth):
        assert auth.forgot_password("nobody@example.com")["success"] is True
        assert auth.resets._entries == {}

    def test_wrong_otp_rejected(self, auth, merchant):
        auth.forgot_password("sara@example.com")
        with pytest.raises(ValidationError):
            auth.verify_reset_otp("sara@example.com", "000000")

    def test_code_is_dropped_after_too_many_wrong_guesses(self, auth, merchant):
        auth.forgot_password("sara@example.com")
        otp = auth.resets._entries["sara@example.com"]["otp"]

        for _ in range(MAX_OTP_ATTEMPTS):
            with pytest.raises(ValidationError):
                auth.verify_reset_otp("sara@example.com", "000000")

        # even the right code no longer works; a new one must be requested
        with pytest.raises(ValidationError):
            auth.verify_reset_otp("sara@example.com", otp)
        assert "sara@example.com" not in auth.resets._entries

    def test_non_ascii_code_is_just_wrong(self, auth, merchant):
        auth.forgot_password("sara@example.com")
        with pytest.raises(ValidationError):
            auth.verify_reset_otp("sara@example.com", "١٢٣٤٥٦")

    def test_expired_otp_rejected(self, auth, clock, merchant):
        auth.forgot_password("sara@example.com")
        otp = auth.resets._entries["sara@example.com"]["otp"]

        clock.now += 11 * 60
        with pytest.raises(ValidationError):
            auth.verify_reset_otp("sara@example.com", otp)

    def test_expired_reset_token_rejected(self, auth, clock, merchant):
        auth.forgot_password("sara@example.com")
        otp = auth.resets._entries["sara@example.com"]["otp"]
        reset_token = auth.verify_reset_otp("sara@example.com", otp)["resetToken"]

        clock.now += 16 * 60
        with pytest.raises(ValidationError):
            auth.reset_password("sara@example.com", reset_token, "brandnew")

    def test_short_password_rejected(self, auth, merchant):
        with pytest.raises(ValidationError):
            auth.reset_password("sara@example.com", "token", "123")
