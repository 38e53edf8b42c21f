"""
Error translation shared by the routers
"""
import logging
from contextlib import contextmanager

from fastapi import HTTPException

from app.services.errors import ServiceError

logger = logging.getLogger(__name__)

SERVER_ERROR = "حدث خطأ في الخادم"


@contextmanager
def service_errors(action: str):
    """
    Map service failures onto HTTP responses

    Usage:
        with service_errors("fetching products"):
            products = storage.get_products_by_merchant(user.id)
    """
    try:
        yield
    except HTTPException:
        raise
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.exception(f"Error {action}: {e}")
        raise HTTPException(status_code=500, detail=SERVER_ERROR)
