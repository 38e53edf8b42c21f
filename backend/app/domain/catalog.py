"""
App Catalog Domain Models

Admin-managed content the customer app renders: home banners, product
categories, delivery cities, key/value app settings and promotional push
campaigns.
"""
from pydantic import Field
from typing import Optional, Any
from datetime import datetime

from app.domain.base import DomainModel


class Banner(DomainModel):
    id: int
    title: str
    image: str
    link: Optional[str] = None
    is_active: bool = True
    sort_order: int = 0
    created_at: datetime


class BannerCreate(DomainModel):
    title: str
    image: str
    link: Optional[str] = None
    is_active: bool = True
    sort_order: int = 0


class BannerUpdate(DomainModel):
    title: Optional[str] = None
    image: Optional[str] = None
    link: Optional[str] = None
    is_active: Optional[bool] = None
    sort_order: Optional[int] = None


class Category(DomainModel):
    id: int
    name: str
    name_en: Optional[str] = None
    icon: Optional[str] = None
    image: Optional[str] = None
    is_active: bool = True
    sort_order: int = 0
    created_at: datetime


class CategoryCreate(DomainModel):
    name: str
    name_en: Optional[str] = None
    icon: Optional[str] = None
    image: Optional[str] = None
    is_active: bool = True
    sort_order: int = 0


class CategoryUpdate(DomainModel):
    name: Optional[str] = None
    name_en: Optional[str] = None
    icon: Optional[str] = None
    image: Optional[str] = None
    is_active: Optional[bool] = None
    sort_order: Optional[int] = None


class City(DomainModel):
    id: int
    name: str
    name_en: Optional[str] = None
    is_active: bool = True
    sort_order: int = 0
    created_at: datetime


class CityCreate(DomainModel):
    name: str
    name_en: Optional[str] = None
    is_active: bool = True
    sort_order: int = 0


class CityUpdate(DomainModel):
    name: Optional[str] = None
    name_en: Optional[str] = None
    is_active: Optional[bool] = None
    sort_order: Optional[int] = None


class AppSetting(DomainModel):
    id: int
    key: str
    value: Optional[str] = None
    value_json: Optional[Any] = None
    updated_at: Optional[datetime] = None


class AppSettingUpsert(DomainModel):
    key: str = Field(..., min_length=1)
    value: Optional[str] = None
    value_json: Optional[Any] = None


class PromotionalAd(DomainModel):
    """Push campaign sent by an admin to every customer device"""

    id: int
    title: str
    body: str
    order: int = 0
    is_active: bool = True
    sent_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class PromotionalAdCreate(DomainModel):
    title: str = Field(..., min_length=1)
    body: str = Field(..., min_length=1)
    order: int = 0
    is_active: bool = True


class PromotionalAdUpdate(DomainModel):
    title: Optional[str] = None
    body: Optional[str] = None
    order: Optional[int] = None
    is_active: Optional[bool] = None
