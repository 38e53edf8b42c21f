"""
Glorda Platform - Backend API
Marketplace backend for the merchant dashboard, the admin dashboard and the
customer mobile app
"""
import logging
import os
import time
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables before settings are read
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(env_path)

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app.api import admin, auth, customer, merchant, payments, public
from app.core.config import settings
from app.core.database import get_db_connection_with_retry
from app.repositories import get_storage
from app.services.auth_service import AuthService

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

os.makedirs(settings.UPLOADS_DIR, exist_ok=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Seed the default admin when no account uses its email"""
    try:
        AuthService().ensure_default_admin(
            settings.DEFAULT_ADMIN_EMAIL,
            settings.DEFAULT_ADMIN_PASSWORD,
            settings.DEFAULT_ADMIN_NAME,
        )
    except Exception as e:
        logger.exception(f"Could not seed default admin: {e}")
    yield


app = FastAPI(
    title=settings.API_TITLE,
    version=settings.API_VERSION,
    description=settings.API_DESCRIPTION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Include API routers (each router carries its own /api/... prefix)
app.include_router(auth.router)
app.include_router(merchant.router)
app.include_router(admin.router)
app.include_router(customer.router)
app.include_router(public.router)
app.include_router(payments.router)

# Uploaded product images
app.mount("/uploads", StaticFiles(directory=settings.UPLOADS_DIR), name="uploads")


@app.get("/")
async def root():
    """Root endpoint - API status"""
    return {
        "message": "Glorda API",
        "status": "online",
        "version": settings.API_VERSION,
    }


@app.get("/health")
async def health():
    """Health check for monitoring; pings PostgreSQL when it backs the storage"""
    start_time = time.time()
    backend = settings.STORAGE_BACKEND.lower()

    storage_status = "connected"
    storage_error = None

    if backend == "postgres":
        try:
            conn = get_db_connection_with_retry(max_retries=1, retry_delay=0.5)
            conn.close()
        except Exception as e:
            storage_status = "disconnected"
            storage_error = str(e)
    else:
        get_storage()

    return {
        "status": "healthy" if storage_status == "connected" else "degraded",
        "service": "glorda-api",
        "version": settings.API_VERSION,
        "storage": {
            "backend": backend,
            "status": storage_status,
            "error": storage_error,
        },
        "total_latency_ms": round((time.time() - start_time) * 1000, 2),
    }
