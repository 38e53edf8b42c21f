"""
Domain Layer - Business Entities

This layer contains Pydantic models representing business entities.
These models enforce type safety and validation across the application.
"""
from app.domain.merchant import Merchant
from app.domain.product import Product, ProductOption, ProductOptionChoice
from app.domain.order import Order, OrderMessage, OrderOptionSelection, Review
from app.domain.conversation import DirectConversation, DirectMessage
from app.domain.customer import Customer, UserProfile
from app.domain.wallet import Transaction
from app.domain.admin import Admin
from app.domain.catalog import Banner, Category, City, AppSetting, PromotionalAd
from app.domain.discount import DiscountCode
from app.domain.notification import Notification

__all__ = [
    'Merchant', 'Product', 'ProductOption', 'ProductOptionChoice',
    'Order', 'OrderMessage', 'OrderOptionSelection', 'Review',
    'DirectConversation', 'DirectMessage',
    'Customer', 'UserProfile', 'Transaction', 'Admin',
    'Banner', 'Category', 'City', 'AppSetting', 'PromotionalAd',
    'DiscountCode', 'Notification',
]
