"""
Public API Endpoints
Unauthenticated reads for the customer app home screen and checkout
"""
import logging

from fastapi import APIRouter

from app.api.errors import service_errors
from app.domain.discount import DiscountValidationRequest
from app.repositories import get_storage
from app.services.discount_service import DiscountService
from app.services.errors import NotFoundError
from app.services.product_options_service import ProductOptionsService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/public", tags=["Public"])


@router.get("/banners")
async def list_banners():
    """Active banners ordered by sort_order"""
    with service_errors("fetching banners"):
        return {"status": "success", "data": [b.to_dict() for b in get_storage().get_active_banners()]}


@router.get("/categories")
async def list_categories():
    with service_errors("fetching categories"):
        return {"status": "success", "data": [c.to_dict() for c in get_storage().get_active_categories()]}


@router.get("/cities")
async def list_cities():
    with service_errors("fetching cities"):
        return {"status": "success", "data": [c.to_dict() for c in get_storage().get_active_cities()]}


@router.get("/settings/{key}")
async def get_setting(key: str):
    with service_errors("fetching setting"):
        setting = get_storage().get_setting(key)
        data = setting.to_dict() if setting else {"key": key, "value": None}
        return {"status": "success", "data": data}


@router.post("/discount-codes/validate")
async def validate_discount_code(payload: DiscountValidationRequest):
    """
    Check a code against an order amount

    Returns the discount amount, the new total and whether shipping is free.
    The code is not consumed.
    """
    with service_errors("validating discount code"):
        return {"status": "success", "data": DiscountService().apply_discount(payload.code, payload.order_amount)}


@router.get("/merchants/{merchant_id}/products")
async def list_merchant_products(merchant_id: int):
    with service_errors("fetching store products"):
        storage = get_storage()
        merchant = storage.get_merchant(merchant_id)
        if not merchant or not merchant.is_active:
            raise NotFoundError("لم يتم العثور على المتجر")
        products = [p for p in storage.get_products_by_merchant(merchant_id) if p.is_visible]
        return {"status": "success", "count": len(products), "data": [p.to_dict() for p in products]}


@router.get("/products/{product_id}/options")
async def get_product_options(product_id: int):
    with service_errors("fetching product options"):
        product = get_storage().get_product(product_id)
        if not product or not product.is_visible:
            raise NotFoundError("لم يتم العثور على المنتج")
        options = ProductOptionsService().get_product_options(product_id)
        return {"status": "success", "data": [o.to_dict() for o in options]}
