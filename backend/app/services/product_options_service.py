"""
Product Options Service
Customisation options shown when ordering a product (gift card text,
wrapping choice, delivery toggle...)
"""
import logging
from typing import List, Optional

from app.domain.product import OPTION_TYPES, ProductOption, ProductOptionInput
from app.repositories import Storage, get_storage
from app.services.errors import ValidationError

logger = logging.getLogger(__name__)


class ProductOptionsService:

    def __init__(self, storage: Optional[Storage] = None):
        self.storage = storage or get_storage()

    def get_product_options(self, product_id: int) -> List[ProductOption]:
        """Options by sort order; multiple_choice options carry their choices"""
        options = []
        for option in self.storage.get_product_options(product_id):
            if option.type == "multiple_choice":
                option = option.model_copy(update={
                    "choices": self.storage.get_product_option_choices(option.id)
                })
            options.append(option)
        return options

    def save_product_options(self, product_id: int, options: List[ProductOptionInput]) -> List[ProductOption]:
        """
        Replace every option of a product

        Options without a type or title are skipped. Only multiple_choice
        options get choices, and empty choice labels are skipped. Input order
        becomes sort_order.

        Raises:
            ValidationError: an option type outside OPTION_TYPES; nothing is
                replaced in that case
        """
        for item in options:
            if item.type and item.type not in OPTION_TYPES:
                raise ValidationError(f"نوع الخيار غير مدعوم: {item.type}")

        removed = self.storage.delete_all_product_options(product_id)
        logger.info(f"Product {product_id}: replaced {removed} options")

        for index, item in enumerate(options):
            if not item.type or not item.title:
                continue

            option = self.storage.create_product_option({
                "product_id": product_id,
                "type": item.type,
                "title": item.title,
                "placeholder": item.placeholder,
                "required": item.required,
                "sort_order": index,
            })

            if item.type == "multiple_choice" and item.choices:
                for choice_index, choice in enumerate(item.choices):
                    if not choice.label:
                        continue
                    self.storage.create_product_option_choice({
                        "option_id": option.id,
                        "label": choice.label,
                        "sort_order": choice_index,
                    })

        return self.get_product_options(product_id)
