# Overview: Stock-count reconciliation: validate a draft, upsert the product, append to the ledger.

"""
Reconciliation Service

One stock-count save runs three steps, strictly in order:

1. VALIDATE (no writes). First failure wins:
   brand -> category -> subcategory -> sell price -> quantity.
   Quantity policy: add_qty >= 0. add_qty == 0 is an edit-only save that
   appends no ledger row.
2. UPSERT the product in its own transaction:
   - draft has an id -> update that product
   - otherwise the tenant's row for the barcode (active or not) is updated,
     reactivating it if needed; two counters saving the same barcode is
     last-write-wins
   - otherwise insert
   A failure here rolls back and raises PersistenceError; no ledger row.
3. If add_qty > 0, APPEND an InventoryAdjustment(reason="stock_count") and
   refresh Product.quantity in a second transaction. A failure here leaves
   the product saved and raises LedgerAppendError (retryable). Retry with
   record_stock_count().

SUBCATEGORY SNAPSHOT:
The saved (subcategory_name, supplier_name) pair is authoritative. A draft
may carry a live subcategory_id (fresh selection) and/or a snapshot pair.
Re-saving a product with its stored pair keeps that pair even if the live
subcategory row was renamed since.

TAXONOMY-GATED ATTRIBUTES:
flavor is kept only when the category asks for it and nicotine only when the
subcategory does; otherwise they are saved as NULL so stale values from an
earlier category do not linger.
"""
from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Product
from ..validation import (
    ModelValidationPolicy,
    ValidationError,
    coerce_int,
    enforce_rules_price,
    enforce_rules_quantity,
    validate_payload,
)
from .attribute_rules import AttributeRequirement
from .concurrency import lock_for_update, run_with_retry
from .identifier_service import ProductDraft, normalize_barcode
from .ledger_service import REASON_STOCK_COUNT, append_adjustment
from .taxonomy_service import CategoryRef, TaxonomyResolver, load_taxonomy


PRODUCT_PAYLOAD_POLICY = ModelValidationPolicy(
    writable_fields={
        "barcode", "name", "model", "category_id", "category_name",
        "subcategory_name", "supplier_name", "size", "flavor", "nicotine",
        "sell_price_cents", "is_active",
    },
    required_on_create={"barcode", "name", "category_id", "subcategory_name", "sell_price_cents"},
)

# Set on insert only; an existing product keeps the barcode it was created with
INSERT_ONLY_FIELDS = {"barcode"}


class ProductNotFoundError(Exception):
    """Raised when a draft names a product id this tenant does not have."""
    pass


class PersistenceError(Exception):
    """The data store rejected a write. Earlier completed steps stay committed."""
    retryable = False

    def __init__(self, message: str, *, step: str, product_id: int | None = None):
        super().__init__(message)
        self.step = step
        self.product_id = product_id

    def to_dict(self) -> dict:
        return {
            "error": str(self),
            "step": self.step,
            "product_id": self.product_id,
            "retryable": self.retryable,
        }


class LedgerAppendError(PersistenceError):
    """Product saved, quantity not yet recorded. Safe to retry the append."""
    retryable = True


@dataclass
class ReconcileResult:
    product_id: int
    action: str  # "created" | "updated" | "reactivated"
    quantity: int
    adjustment_id: int | None
    product: dict

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "action": self.action,
            "quantity": self.quantity,
            "adjustment_id": self.adjustment_id,
            "product": self.product,
        }


def _db_message(exc: SQLAlchemyError) -> str:
    orig = getattr(exc, "orig", None)
    return str(orig) if orig is not None else str(exc)


def _find_existing(org_id: int, draft: ProductDraft) -> Product | None:
    if draft.id is not None:
        product = (
            db.session.query(Product)
            .filter(Product.id == draft.id, Product.org_id == org_id)
            .first()
        )
        if product is None:
            raise ProductNotFoundError(f"Product {draft.id} not found")
        return product

    return (
        db.session.query(Product)
        .filter(Product.org_id == org_id, Product.barcode == normalize_barcode(draft.barcode))
        .first()
    )


def _resolve_snapshot(
    draft: ProductDraft,
    category: CategoryRef,
    taxonomy: TaxonomyResolver,
    existing: Product | None,
) -> tuple[str, str | None]:
    stored = None
    if existing is not None and existing.subcategory_name and existing.category_id == category.id:
        stored = (existing.subcategory_name, existing.supplier_name)

    draft_pair = (draft.subcategory_name, draft.supplier_name) if draft.subcategory_name else None

    if draft.subcategory_id is not None:
        sub = taxonomy.subcategory(draft.subcategory_id)
        if sub is None:
            raise ValidationError("Subcategory is required.")
        if sub.category_id != category.id:
            raise ValidationError("Subcategory does not belong to the selected category.")
        # A live selection always saves that subcategory's current pair
        return sub.snapshot

    if draft_pair is None:
        raise ValidationError("Subcategory is required.")

    if draft_pair == stored:
        return stored
    if taxonomy.match_snapshot(draft_pair[0], draft_pair[1], category.id) is None:
        raise ValidationError("Subcategory does not belong to the selected category.")
    return draft_pair


def validate_draft(
    draft: ProductDraft,
    add_qty,
    *,
    taxonomy: TaxonomyResolver,
    existing: Product | None,
) -> tuple[dict, int]:
    """
    Run the validation policy and build the product payload.

    Returns (payload, add_qty). Raises ValidationError; never writes.
    """
    if not (draft.name or "").strip():
        raise ValidationError("Brand is required.")

    category = taxonomy.category(draft.category_id)
    if draft.category_id is None:
        raise ValidationError("Category is required.")
    if category is None:
        raise ValidationError("Category does not exist.")

    subcategory_name, supplier_name = _resolve_snapshot(draft, category, taxonomy, existing)

    if draft.sell_price_cents is None:
        raise ValidationError("Sell price is required.")
    enforce_rules_price(draft.sell_price_cents)

    if add_qty is None:
        add_qty = 0
    add_qty = coerce_int(add_qty, "add_qty")
    enforce_rules_quantity(add_qty)

    requirements = taxonomy.requirements_for(category.id, subcategory_name)

    payload = {
        "barcode": normalize_barcode(draft.barcode),
        "name": draft.name.strip(),
        "model": draft.model,
        "category_id": category.id,
        "category_name": category.name,
        "subcategory_name": subcategory_name,
        "supplier_name": supplier_name,
        "size": draft.size,
        "flavor": draft.flavor if AttributeRequirement.FLAVOR in requirements else None,
        "nicotine": draft.nicotine if AttributeRequirement.NICOTINE in requirements else None,
        "sell_price_cents": draft.sell_price_cents,
        "is_active": True,
    }
    # Column-level checks (lengths, types) against the products table
    payload = validate_payload(model=Product, payload=payload, policy=PRODUCT_PAYLOAD_POLICY, partial=False)
    return payload, add_qty


def _apply_payload(product: Product, payload: dict, *, is_insert: bool) -> None:
    for key, value in payload.items():
        if key in INSERT_ONLY_FIELDS and not is_insert:
            continue
        setattr(product, key, value)


def save_product(*, org_id: int, product_id: int | None, payload: dict) -> tuple[Product, str]:
    """Upsert step. Commits on success; raises PersistenceError on rejection."""
    def _op():
        if product_id is not None:
            product = lock_for_update(
                db.session.query(Product).filter(Product.id == product_id, Product.org_id == org_id)
            ).first()
            if product is None:
                raise ProductNotFoundError(f"Product {product_id} not found")
        else:
            product = lock_for_update(
                db.session.query(Product).filter(
                    Product.org_id == org_id,
                    Product.barcode == payload["barcode"],
                )
            ).first()

        if product is None:
            product = Product(org_id=org_id, quantity=0)
            db.session.add(product)
            action = "created"
        elif not product.is_active:
            action = "reactivated"
        else:
            action = "updated"

        _apply_payload(product, payload, is_insert=(action == "created"))
        db.session.flush()
        db.session.commit()
        return product, action

    try:
        return run_with_retry(_op)
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise PersistenceError(_db_message(exc), step="product", product_id=product_id) from exc


def record_stock_count(*, org_id: int, product_id: int, add_qty: int, note: str | None = None):
    """
    Ledger step. Appends one stock_count adjustment and refreshes the cached
    quantity in one transaction. Also the retry entry point after a
    LedgerAppendError.
    """
    add_qty = coerce_int(add_qty, "add_qty")
    if add_qty <= 0:
        raise ValidationError("add_qty must be > 0 to record stock")

    def _op():
        product = lock_for_update(
            db.session.query(Product).filter(Product.id == product_id, Product.org_id == org_id)
        ).first()
        if product is None:
            raise ProductNotFoundError(f"Product {product_id} not found")
        adj = append_adjustment(
            product=product,
            qty_added=add_qty,
            reason=REASON_STOCK_COUNT,
            note=note,
        )
        db.session.commit()
        return adj

    try:
        return run_with_retry(_op)
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise LedgerAppendError(_db_message(exc), step="ledger", product_id=product_id) from exc


def reconcile(
    draft: ProductDraft,
    add_qty,
    *,
    org_id: int,
    taxonomy: TaxonomyResolver | None = None,
    note: str | None = None,
) -> ReconcileResult:
    if taxonomy is None:
        taxonomy = load_taxonomy(org_id)

    existing = _find_existing(org_id, draft)
    payload, add_qty = validate_draft(draft, add_qty, taxonomy=taxonomy, existing=existing)

    product, action = save_product(
        org_id=org_id,
        product_id=existing.id if existing is not None else None,
        payload=payload,
    )
    product_id = product.id

    adjustment_id = None
    if add_qty > 0:
        adj = record_stock_count(org_id=org_id, product_id=product_id, add_qty=add_qty, note=note)
        adjustment_id = adj.id

    product = db.session.get(Product, product_id)
    return ReconcileResult(
        product_id=product_id,
        action=action,
        quantity=product.quantity,
        adjustment_id=adjustment_id,
        product=product.to_dict(),
    )
