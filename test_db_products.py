from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from conftest import integrity_error
from shopwatch import db_products
from shopwatch.db_products import (
    PRODUCT_FIELDS,
    DuplicateProductError,
    create_product,
    derive_days_old,
    product_params,
)

FOUND_AT = datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc)


def test_days_old_counts_whole_days():
    assert derive_days_old(FOUND_AT - timedelta(days=3, hours=5), FOUND_AT) == 3


def test_days_old_is_never_negative():
    assert derive_days_old(FOUND_AT + timedelta(days=1), FOUND_AT) == 0


def test_naive_timestamps_are_treated_as_utc():
    assert derive_days_old(datetime(2024, 3, 1, 12, 0), FOUND_AT) == 9


def test_params_cover_every_column_with_none_defaults():
    params = product_params({"company_id": 1, "title": "Mug"}, FOUND_AT)

    assert set(params) == set(PRODUCT_FIELDS)
    assert params["shopify_product_id"] is None
    assert params["days_old_when_found"] is None
    assert params["is_new_product"] is None


def test_params_derive_days_old_from_iso_string():
    params = product_params(
        {"company_id": 1, "title": "Mug", "created_at_shopify": "2024-03-03T12:00:00Z"},
        FOUND_AT,
    )
    assert params["days_old_when_found"] == 7


def test_explicit_days_old_wins():
    params = product_params(
        {
            "company_id": 1,
            "title": "Mug",
            "created_at_shopify": FOUND_AT - timedelta(days=30),
            "days_old_when_found": 2,
        },
        FOUND_AT,
    )
    assert params["days_old_when_found"] == 2


def test_tag_lists_are_joined():
    params = product_params({"company_id": 1, "title": "Mug", "tags": ["summer", "sale"]}, FOUND_AT)
    assert params["tags"] == "summer, sale"


def _raising_insert(exc):
    def insert(conn, record):
        raise exc

    return insert


def test_duplicate_is_recognised_under_any_constraint_name(fake_db, monkeypatch):
    monkeypatch.setattr(
        db_products,
        "insert_product",
        _raising_insert(integrity_error("23505", "products_company_id_shopify_product_id_key", "products")),
    )

    with pytest.raises(DuplicateProductError):
        create_product(fake_db, {"company_id": 1, "shopify_product_id": 555, "title": "Mug"})

    assert fake_db.rollbacks == 1


def test_other_integrity_errors_propagate(fake_db, monkeypatch):
    monkeypatch.setattr(db_products, "insert_product", _raising_insert(integrity_error("23503")))

    with pytest.raises(IntegrityError) as excinfo:
        create_product(fake_db, {"company_id": 999, "title": "Mug"})

    assert not isinstance(excinfo.value, DuplicateProductError)
