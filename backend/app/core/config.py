"""
Application settings for the Glorda backend

Values come from the environment or backend/.env; field names are the
environment variable names.
"""
from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings, loaded from environment / .env"""

    # API Settings
    API_TITLE: str = "Glorda API"
    API_VERSION: str = "1.0.0"
    API_DESCRIPTION: str = "Marketplace backend for Glorda merchants, customers and admins"

    # Storage: "memory" (document store, used in dev/tests) or "postgres"
    STORAGE_BACKEND: str = "memory"
    DATABASE_URL: Optional[str] = None

    # Auth
    AUTH_SECRET: str = "glorda-dev-secret-change-in-production"
    TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7

    # CORS - Can be string (comma-separated) or JSON array
    ALLOWED_ORIGINS: Optional[str] = "http://localhost:5173,http://localhost:3000"

    def get_allowed_origins(self) -> List[str]:
        """Parse ALLOWED_ORIGINS string into list"""
        if not self.ALLOWED_ORIGINS:
            return ["http://localhost:5173"]

        # Try JSON parse first (for array format)
        import json
        try:
            origins = json.loads(self.ALLOWED_ORIGINS)
            if isinstance(origins, list):
                return origins
        except (json.JSONDecodeError, ValueError):
            pass

        # Fall back to comma-separated string
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    # Authentica (SMS OTP gateway). Empty key = simulated gateway
    AUTHENTICA_API_KEY: str = ""
    AUTHENTICA_BASE_URL: str = "https://api.authentica.sa/api/v2"
    OTP_TEST_PHONE: str = "966500000000"

    # Tap payments
    TAP_SECRET_KEY: str = ""
    TAP_BASE_URL: str = "https://api.tap.company/v2"
    TAP_WEBHOOK_URL: Optional[str] = None
    # Order totals are stored in halalas; Tap charges in riyals
    PAYMENT_CURRENCY: str = "SAR"

    # Expo push notifications
    EXPO_PUSH_URL: str = "https://exp.host/--/api/v2/push/send"

    # Uploads
    UPLOADS_DIR: str = "uploads"
    MAX_UPLOAD_BYTES: int = 5 * 1024 * 1024

    # Default admin seeded on startup
    DEFAULT_ADMIN_EMAIL: str = "admin@glorda.com"
    DEFAULT_ADMIN_PASSWORD: str = "admin123"
    DEFAULT_ADMIN_NAME: str = "مدير النظام"

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
