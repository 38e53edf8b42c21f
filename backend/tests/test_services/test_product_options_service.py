"""
Unit tests for ProductOptionsService
"""
import pytest

from app.domain.product import ProductOptionInput
from app.services.errors import ValidationError
from app.services.product_options_service import ProductOptionsService


def _inputs(*items):
    return [ProductOptionInput.model_validate(item) for item in items]


def test_save_replaces_all_options(storage, product):
    service = ProductOptionsService(storage)
    service.save_product_options(product.id, _inputs({"type": "text", "title": "قديم"}))

    saved = service.save_product_options(product.id, _inputs(
        {"type": "multiple_choice", "title": "اللون", "required": True,
         "choices": [{"label": "أحمر"}, {"label": ""}, {"label": "أبيض"}]},
        {"type": "toggle", "title": "تغليف هدية"},
    ))

    assert [o.title for o in saved] == ["اللون", "تغليف هدية"]
    assert [o.sort_order for o in saved] == [0, 1]
    assert [c.label for c in saved[0].choices] == ["أحمر", "أبيض"]
    assert saved[1].choices is None


def test_options_without_type_or_title_are_skipped(storage, product):
    saved = ProductOptionsService(storage).save_product_options(product.id, _inputs(
        {"type": "text"},
        {"title": "بلا نوع"},
        {"type": "text", "title": "العبارة", "placeholder": "اكتب هنا"},
    ))

    assert len(saved) == 1
    assert saved[0].placeholder == "اكتب هنا"
    # input order is kept, so the surviving option has sort_order 2
    assert saved[0].sort_order == 2


def test_choices_ignored_for_non_choice_types(storage, product):
    saved = ProductOptionsService(storage).save_product_options(product.id, _inputs(
        {"type": "text", "title": "ملاحظة", "choices": [{"label": "x"}]},
    ))
    assert storage.get_product_option_choices(saved[0].id) == []


def test_empty_list_clears_options(storage, product):
    service = ProductOptionsService(storage)
    service.save_product_options(product.id, _inputs({"type": "text", "title": "أ"}))

    assert service.save_product_options(product.id, []) == []
    assert storage.get_product_options(product.id) == []


def test_unknown_type_rejected_and_existing_options_kept(storage, product):
    service = ProductOptionsService(storage)
    service.save_product_options(product.id, _inputs({"type": "text", "title": "العبارة"}))

    with pytest.raises(ValidationError):
        service.save_product_options(product.id, _inputs(
            {"type": "toggle", "title": "تغليف"},
            {"type": "dropdown", "title": "اللون"},
        ))

    assert [o.title for o in storage.get_product_options(product.id)] == ["العبارة"]
