from __future__ import annotations

from ..extensions import db


class Category(db.Model):
    """
    Top level of the product taxonomy (e.g. "Disposable Vapes", "Cigars").

    Tax rates are stored in basis points (500 = 5%). They are reference data
    only; nothing in the count flow computes tax.

    A category's identity is fixed once a product references it: products
    keep a live category_id foreign key.
    """
    __tablename__ = "categories"
    __table_args__ = (
        db.UniqueConstraint("org_id", "name", name="uq_categories_org_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)

    name = db.Column(db.String(120), nullable=False)
    gst_rate_bps = db.Column(db.Integer, nullable=False, default=500)
    pst_rate_bps = db.Column(db.Integer, nullable=False, default=0)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    subcategories = db.relationship(
        "Subcategory",
        back_populates="category",
        lazy=True,
        order_by="Subcategory.name",
    )

    def __repr__(self) -> str:
        return f"<Category id={self.id} name={self.name!r} org_id={self.org_id}>"

    def to_dict(self, *, include_subcategories: bool = False) -> dict:
        data = {
            "id": self.id,
            "org_id": self.org_id,
            "name": self.name,
            "gst_rate_bps": self.gst_rate_bps,
            "pst_rate_bps": self.pst_rate_bps,
            "is_active": self.is_active,
        }
        if include_subcategories:
            data["subcategories"] = [s.to_dict() for s in self.subcategories if s.is_active]
        return data


class Subcategory(db.Model):
    """
    Second level of the taxonomy, always tied to one supplier.

    (name, supplier_name) is the human identity of a subcategory. Products
    store a copy of that pair at save time rather than a foreign key, so
    renaming a subcategory never rewrites what a past stock count recorded.
    """
    __tablename__ = "subcategories"
    __table_args__ = (
        db.Index("ix_subcategories_org_category", "org_id", "category_id"),
        db.Index("ix_subcategories_org_name_supplier", "org_id", "name", "supplier_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)
    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=False)

    name = db.Column(db.String(120), nullable=False)
    supplier_name = db.Column(db.String(120), nullable=True)
    size_label = db.Column(db.String(64), nullable=True)
    size_value = db.Column(db.String(64), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    category = db.relationship("Category", back_populates="subcategories")

    def __repr__(self) -> str:
        return f"<Subcategory id={self.id} name={self.name!r} supplier={self.supplier_name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "org_id": self.org_id,
            "category_id": self.category_id,
            "name": self.name,
            "supplier_name": self.supplier_name,
            "size_label": self.size_label,
            "size_value": self.size_value,
            "is_active": self.is_active,
        }
