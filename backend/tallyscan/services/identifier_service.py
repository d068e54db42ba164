# Overview: Barcode -> product identity resolution for the count flow.

"""
Identifier Service

A scanned barcode resolves to a ProductDraft: the editable state of one
product on the count screen.

- Known barcode: the draft is filled from the stored product, including its
  subcategory snapshot, and carries the product id.
- Unknown barcode: the draft carries only the barcode and quantity 0, and no
  id. That is the normal "new product" outcome, not an error.

Only ACTIVE products resolve. A deactivated product's barcode produces a new
draft; saving it reactivates the old row (see reconciliation_service).

VALUE NORMALIZATION:
Barcodes are normalized to uppercase with all whitespace removed, so
"0 12345 67890 5" and "012345678905" are the same product.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
from typing import Any

from ..extensions import db
from ..models import Product
from ..validation import ValidationError, clean_text, coerce_float, coerce_int
from .taxonomy_service import TaxonomyResolver


@dataclass
class ProductDraft:
    barcode: str
    id: int | None = None
    name: str = ""
    model: str | None = None
    category_id: int | None = None
    category_name: str | None = None
    # Selection convenience only; the snapshot pair below is what gets saved
    subcategory_id: int | None = None
    subcategory_name: str | None = None
    supplier_name: str | None = None
    size: str | None = None
    flavor: str | None = None
    nicotine: float | None = None
    sell_price_cents: int | None = None
    quantity: int = 0

    @property
    def is_new(self) -> bool:
        return self.id is None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["is_new"] = self.is_new
        return data

    def with_changes(self, **changes) -> "ProductDraft":
        return replace(self, **changes)

    @classmethod
    def from_payload(cls, payload: Any) -> "ProductDraft":
        """Build a draft from request JSON. Unknown keys are rejected."""
        if not isinstance(payload, dict):
            raise ValidationError("draft must be an object")

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(payload) - known - {"is_new"})
        if unknown:
            raise ValidationError(f"Field not allowed: {', '.join(unknown)}")

        barcode = normalize_barcode(payload.get("barcode"))
        if not barcode:
            raise ValidationError("barcode is required")

        def _opt_int(key):
            value = payload.get(key)
            if value is None or value == "":
                return None
            return coerce_int(value, key)

        nicotine = payload.get("nicotine")
        return cls(
            barcode=barcode,
            id=_opt_int("id"),
            name=clean_text(payload.get("name")) or "",
            model=clean_text(payload.get("model")),
            category_id=_opt_int("category_id"),
            category_name=clean_text(payload.get("category_name")),
            subcategory_id=_opt_int("subcategory_id"),
            subcategory_name=clean_text(payload.get("subcategory_name")),
            supplier_name=clean_text(payload.get("supplier_name")),
            size=clean_text(payload.get("size")),
            flavor=clean_text(payload.get("flavor")),
            nicotine=None if nicotine in (None, "") else coerce_float(nicotine, "nicotine"),
            sell_price_cents=_opt_int("sell_price_cents"),
            quantity=_opt_int("quantity") or 0,
        )


def normalize_barcode(value: Any) -> str:
    """Normalize to uppercase, no whitespace."""
    if value is None:
        return ""
    return "".join(str(value).split()).upper()


def find_product(org_id: int, barcode: str, *, include_inactive: bool = False) -> Product | None:
    q = db.session.query(Product).filter(
        Product.org_id == org_id,
        Product.barcode == normalize_barcode(barcode),
    )
    if not include_inactive:
        q = q.filter(Product.is_active == True)
    return q.first()


def draft_from_product(product: Product, taxonomy: TaxonomyResolver | None = None) -> ProductDraft:
    subcategory_id = None
    if taxonomy is not None:
        match = taxonomy.match_snapshot(
            product.subcategory_name, product.supplier_name, product.category_id
        )
        if match is not None:
            subcategory_id = match.id

    return ProductDraft(
        id=product.id,
        barcode=product.barcode,
        name=product.name or "",
        model=product.model,
        category_id=product.category_id,
        category_name=product.category_name,
        subcategory_id=subcategory_id,
        subcategory_name=product.subcategory_name,
        supplier_name=product.supplier_name,
        size=product.size,
        flavor=product.flavor,
        nicotine=product.nicotine,
        sell_price_cents=product.sell_price_cents,
        quantity=product.quantity or 0,
    )


def resolve(org_id: int, barcode: str, taxonomy: TaxonomyResolver | None = None) -> ProductDraft:
    """
    Resolve a scanned code to a draft for this tenant.

    When a taxonomy is given, the draft's subcategory_id is re-matched from
    the stored (subcategory_name, supplier_name) snapshot so the form can
    preselect it. No live match leaves subcategory_id empty while the
    snapshot itself is kept.
    """
    normalized = normalize_barcode(barcode)
    if not normalized:
        raise ValidationError("barcode is required")

    product = find_product(org_id, normalized)
    if product is None:
        return ProductDraft(barcode=normalized)

    return draft_from_product(product, taxonomy)
