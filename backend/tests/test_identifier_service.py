# Overview: Pytest coverage for barcode resolution and draft parsing.

import pytest

from tallyscan.models import Product
from tallyscan.services.identifier_service import (
    ProductDraft,
    normalize_barcode,
    resolve,
)
from tallyscan.services.taxonomy_service import load_taxonomy
from tallyscan.validation import ValidationError


def _product(db_session, org, taxonomy, **overrides):
    data = dict(
        org_id=org.id,
        barcode="012345678905",
        name="Elf Bar",
        model="BC5000",
        category_id=taxonomy.vapes.id,
        category_name="Disposable Vapes",
        subcategory_name="Pods",
        supplier_name="Acme Supply",
        flavor="Blue Razz",
        nicotine=50.0,
        sell_price_cents=1999,
        quantity=7,
        is_active=True,
    )
    data.update(overrides)
    product = Product(**data)
    db_session.add(product)
    db_session.commit()
    return product


class TestNormalizeBarcode:
    def test_strips_whitespace_and_uppercases(self):
        assert normalize_barcode(" 0 12345 67890 5 ") == "012345678905"
        assert normalize_barcode("abc-12") == "ABC-12"

    def test_empty(self):
        assert normalize_barcode(None) == ""
        assert normalize_barcode("   ") == ""


class TestResolve:
    def test_unknown_barcode_is_new_draft(self, db_session, org_a):
        draft = resolve(org_a.id, "999")

        assert draft.is_new
        assert draft.id is None
        assert draft.barcode == "999"
        assert draft.quantity == 0
        assert draft.name == ""

    def test_known_barcode_fills_draft(self, db_session, org_a, taxonomy_a):
        product = _product(db_session, org_a, taxonomy_a)

        draft = resolve(org_a.id, "0123 4567 8905", load_taxonomy(org_a.id))

        assert not draft.is_new
        assert draft.id == product.id
        assert draft.name == "Elf Bar"
        assert draft.quantity == 7
        assert draft.subcategory_name == "Pods"
        assert draft.supplier_name == "Acme Supply"
        assert draft.subcategory_id == taxonomy_a.pods.id

    def test_snapshot_without_live_match_keeps_pair(self, db_session, org_a, taxonomy_a):
        """A renamed subcategory leaves the draft's selection empty, not the snapshot."""
        _product(db_session, org_a, taxonomy_a, supplier_name="Old Supplier")

        draft = resolve(org_a.id, "012345678905", load_taxonomy(org_a.id))

        assert draft.subcategory_id is None
        assert draft.subcategory_name == "Pods"
        assert draft.supplier_name == "Old Supplier"

    def test_inactive_product_resolves_as_new(self, db_session, org_a, taxonomy_a):
        _product(db_session, org_a, taxonomy_a, is_active=False)

        draft = resolve(org_a.id, "012345678905")

        assert draft.is_new

    def test_empty_barcode_rejected(self, db_session, org_a):
        with pytest.raises(ValidationError):
            resolve(org_a.id, "  ")


class TestProductDraftPayload:
    def test_round_trip_keys(self):
        draft = ProductDraft.from_payload({
            "barcode": " abc 123 ",
            "name": " Elf Bar ",
            "category_id": "3",
            "nicotine": "50",
            "flavor": "",
            "is_new": True,
        })

        assert draft.barcode == "ABC123"
        assert draft.name == "Elf Bar"
        assert draft.category_id == 3
        assert draft.nicotine == 50.0
        assert draft.flavor is None
        assert draft.to_dict()["is_new"] is True

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError, match="Field not allowed: org_id"):
            ProductDraft.from_payload({"barcode": "1", "org_id": 2})

    def test_barcode_required(self):
        with pytest.raises(ValidationError, match="barcode is required"):
            ProductDraft.from_payload({"name": "x"})

    def test_not_an_object(self):
        with pytest.raises(ValidationError):
            ProductDraft.from_payload(["barcode"])

    def test_decimal_price_rejected(self):
        with pytest.raises(ValidationError):
            ProductDraft.from_payload({"barcode": "1", "sell_price_cents": 19.99})
