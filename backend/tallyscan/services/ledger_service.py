# Overview: Append-only quantity ledger; the only writer of Product.quantity.

from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..models import InventoryAdjustment, Product
"""
Quantity Ledger Invariants (authoritative)

- inventory_adjustments is append-only: no updates, no deletes.
- Stock on hand for a product is SUM(qty_added) over its adjustments.
- Product.quantity is a materialized copy of that sum. It is written only
  here, in the same DB transaction as the adjustment that changes it.
- Functions here flush but never commit; the caller owns the transaction.
"""

REASON_STOCK_COUNT = "stock_count"


def get_quantity_on_hand(org_id: int, product_id: int) -> int:
    q = db.session.query(
        func.coalesce(func.sum(InventoryAdjustment.qty_added), 0)
    ).filter(
        InventoryAdjustment.org_id == org_id,
        InventoryAdjustment.product_id == product_id,
    )
    return int(q.scalar() or 0)


def append_adjustment(
    *,
    product: Product,
    qty_added: int,
    reason: str = REASON_STOCK_COUNT,
    note: str | None = None,
) -> InventoryAdjustment:
    """
    Append one ledger row and refresh the product's cached quantity.

    The cache is recomputed from the ledger (not incremented) so a drifted
    cache heals on the next append.
    """
    adj = InventoryAdjustment(
        org_id=product.org_id,
        product_id=product.id,
        qty_added=qty_added,
        reason=reason,
        note=note,
    )
    db.session.add(adj)
    db.session.flush()  # ensures the row is part of the SUM below

    product.quantity = get_quantity_on_hand(product.org_id, product.id)
    db.session.flush()
    return adj


def list_adjustments(*, org_id: int, product_id: int, limit: int = 200) -> list[InventoryAdjustment]:
    return (
        db.session.query(InventoryAdjustment)
        .filter(
            InventoryAdjustment.org_id == org_id,
            InventoryAdjustment.product_id == product_id,
        )
        .order_by(InventoryAdjustment.created_at.desc(), InventoryAdjustment.id.desc())
        .limit(limit)
        .all()
    )


def rebuild_quantity_cache(org_id: int | None = None) -> list[dict]:
    """
    Re-derive Product.quantity from the ledger.

    Returns one entry per product whose cache had drifted. Does not commit.
    """
    sums = dict(
        db.session.query(InventoryAdjustment.product_id, func.sum(InventoryAdjustment.qty_added))
        .group_by(InventoryAdjustment.product_id)
        .all()
    )

    q = db.session.query(Product)
    if org_id is not None:
        q = q.filter(Product.org_id == org_id)

    drift = []
    for product in q.order_by(Product.id.asc()).all():
        expected = int(sums.get(product.id) or 0)
        if (product.quantity or 0) != expected:
            drift.append({
                "product_id": product.id,
                "org_id": product.org_id,
                "barcode": product.barcode,
                "cached": product.quantity,
                "ledger": expected,
            })
            product.quantity = expected
    db.session.flush()
    return drift
