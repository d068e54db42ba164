from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z

class Product(db.Model):
    """
    Product master data, one row per scanned barcode per tenant.

    MULTI-TENANT: Products are scoped to organizations via org_id.

    BARCODE: Unique within an organization, active or not. A deactivated
    product keeps its barcode; scanning it again reactivates the same row.

    SUBCATEGORY SNAPSHOT:
    subcategory_name / supplier_name (and category_name) are copied from the
    taxonomy at save time and are the authoritative record of what was
    counted. They are NOT foreign keys and are never rewritten when the
    subcategory row is renamed.

    QUANTITY:
    quantity is a cache of SUM(inventory_adjustments.qty_added). It is only
    written in the same transaction as a ledger append (ledger_service) and
    can be rebuilt from the ledger at any time.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("org_id", "barcode", name="uq_products_org_barcode"),
        db.Index("ix_products_org_name", "org_id", "name"),
        db.Index("ix_products_org_active", "org_id", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)

    barcode = db.Column(db.String(64), nullable=False)

    # Brand
    name = db.Column(db.String(255), nullable=False)
    model = db.Column(db.String(255), nullable=True)

    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=True, index=True)
    category_name = db.Column(db.String(120), nullable=True)
    subcategory_name = db.Column(db.String(120), nullable=True)
    supplier_name = db.Column(db.String(120), nullable=True)

    size = db.Column(db.String(64), nullable=True)
    flavor = db.Column(db.String(120), nullable=True)
    nicotine = db.Column(db.Float, nullable=True)

    # Authoritative storage in cents (frontend may only format for display)
    sell_price_cents = db.Column(db.Integer, nullable=True)

    quantity = db.Column(db.Integer, nullable=False, default=0)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    category = db.relationship("Category")
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Product id={self.id} barcode={self.barcode!r} name={self.name!r} org_id={self.org_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "org_id": self.org_id,
            "barcode": self.barcode,
            "name": self.name,
            "model": self.model,
            "category_id": self.category_id,
            "category_name": self.category_name,
            "subcategory_name": self.subcategory_name,
            "supplier_name": self.supplier_name,
            "size": self.size,
            "flavor": self.flavor,
            "nicotine": self.nicotine,
            "sell_price_cents": self.sell_price_cents,
            "quantity": self.quantity,
            "is_active": self.is_active,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }

class InventoryAdjustment(db.Model):
    """
    Append-only quantity ledger. One row per stock-count action that added
    stock; rows are never updated or deleted.
    """
    __tablename__ = "inventory_adjustments"
    __table_args__ = (
        db.Index("ix_invadj_org_product_created", "org_id", "product_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    qty_added = db.Column(db.Integer, nullable=False)
    reason = db.Column(db.String(32), nullable=False, index=True)
    note = db.Column(db.String(255), nullable=True)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )

    product = db.relationship("Product", backref=db.backref("adjustments", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "org_id": self.org_id,
            "product_id": self.product_id,
            "qty_added": self.qty_added,
            "reason": self.reason,
            "note": self.note,
            "created_at": to_utc_z(self.created_at),
        }
