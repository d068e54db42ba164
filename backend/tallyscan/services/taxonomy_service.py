# Overview: Category/subcategory reference data and the per-session taxonomy resolver.

"""
Taxonomy Service

STORE: categories and subcategories are tenant-scoped reference data.
Creation lives here so the CLI and the admin API share one set of rules.

RESOLVER: load_taxonomy() reads a tenant's active taxonomy once and answers
every lookup the count flow needs from memory:
- category by id, subcategory by id
- subcategories of a category (ordered by name)
- live subcategory for a product's stored (name, supplier_name) snapshot
- which optional attributes a category/subcategory pair asks for

The resolver holds immutable copies of the rows, so a rollback in the
middle of a bulk sweep never invalidates it.
"""
from __future__ import annotations

from dataclasses import dataclass

from ..extensions import db
from ..models import Category, Subcategory
from ..validation import ConflictError, ValidationError
from .attribute_rules import requires_flavor, requires_nicotine, requirements_for
from .tenant_service import require_in_org, TenantAccessError


@dataclass(frozen=True)
class CategoryRef:
    id: int
    name: str
    gst_rate_bps: int
    pst_rate_bps: int


@dataclass(frozen=True)
class SubcategoryRef:
    id: int
    category_id: int
    name: str
    supplier_name: str | None
    size_label: str | None = None
    size_value: str | None = None

    @property
    def snapshot(self) -> tuple[str, str | None]:
        return (self.name, self.supplier_name)


class TaxonomyResolver:
    def __init__(self, org_id: int, categories: list[CategoryRef], subcategories: list[SubcategoryRef]):
        self.org_id = org_id
        self._categories = {c.id: c for c in categories}
        self._subcategories = {s.id: s for s in subcategories}
        self._by_snapshot: dict[tuple[str, str | None], list[SubcategoryRef]] = {}
        for sub in sorted(subcategories, key=lambda s: (s.name.lower(), s.id)):
            self._by_snapshot.setdefault(sub.snapshot, []).append(sub)

    def category(self, category_id: int | None) -> CategoryRef | None:
        if category_id is None:
            return None
        return self._categories.get(category_id)

    def subcategory(self, subcategory_id: int | None) -> SubcategoryRef | None:
        if subcategory_id is None:
            return None
        return self._subcategories.get(subcategory_id)

    def categories(self) -> list[CategoryRef]:
        return sorted(self._categories.values(), key=lambda c: (c.name.lower(), c.id))

    def subcategories_for(self, category_id: int | None) -> list[SubcategoryRef]:
        return sorted(
            (s for s in self._subcategories.values() if s.category_id == category_id),
            key=lambda s: (s.name.lower(), s.id),
        )

    def match_snapshot(
        self,
        name: str | None,
        supplier_name: str | None,
        category_id: int | None = None,
    ) -> SubcategoryRef | None:
        """
        Live subcategory for a stored snapshot pair.

        (name, supplier_name) is not unique across categories, so callers
        that know the category should pass it. First match by name wins.
        """
        if not name:
            return None
        for sub in self._by_snapshot.get((name, supplier_name), []):
            if category_id is None or sub.category_id == category_id:
                return sub
        return None

    def requires_flavor(self, category_name: str | None) -> bool:
        return requires_flavor(category_name)

    def requires_nicotine(self, subcategory_name: str | None) -> bool:
        return requires_nicotine(subcategory_name)

    def requirements_for(self, category_id: int | None, subcategory_name: str | None):
        category = self.category(category_id)
        return requirements_for(category.name if category else None, subcategory_name)


def load_taxonomy(org_id: int) -> TaxonomyResolver:
    """Read the tenant's active categories and subcategories in two queries."""
    categories = (
        db.session.query(Category)
        .filter(Category.org_id == org_id, Category.is_active == True)
        .order_by(Category.name.asc(), Category.id.asc())
        .all()
    )
    subcategories = (
        db.session.query(Subcategory)
        .filter(Subcategory.org_id == org_id, Subcategory.is_active == True)
        .order_by(Subcategory.name.asc(), Subcategory.id.asc())
        .all()
    )
    active_category_ids = {c.id for c in categories}
    return TaxonomyResolver(
        org_id,
        [CategoryRef(c.id, c.name, c.gst_rate_bps, c.pst_rate_bps) for c in categories],
        [
            SubcategoryRef(s.id, s.category_id, s.name, s.supplier_name, s.size_label, s.size_value)
            for s in subcategories
            if s.category_id in active_category_ids
        ],
    )


def list_taxonomy(org_id: int) -> list[dict]:
    """Categories with their active subcategories nested, ordered by name."""
    categories = (
        db.session.query(Category)
        .filter(Category.org_id == org_id, Category.is_active == True)
        .order_by(Category.name.asc(), Category.id.asc())
        .all()
    )
    return [c.to_dict(include_subcategories=True) for c in categories]


def create_category(*, org_id: int, patch: dict) -> Category:
    name = patch.get("name")
    if not name:
        raise ValidationError("Category name required")

    existing = (
        db.session.query(Category)
        .filter(Category.org_id == org_id, Category.name == name)
        .first()
    )
    if existing:
        raise ConflictError(f"Category '{name}' already exists.")

    category = Category(org_id=org_id, is_active=True)
    for key in ("name", "gst_rate_bps", "pst_rate_bps"):
        if patch.get(key) is not None:
            setattr(category, key, patch[key])

    db.session.add(category)
    db.session.commit()
    return category


def create_subcategory(*, org_id: int, patch: dict) -> Subcategory:
    category_id = patch.get("category_id")
    name = patch.get("name")
    if not category_id or not name:
        raise ValidationError("Select category and enter subcategory name")

    try:
        require_in_org(Category, category_id, org_id)
    except TenantAccessError:
        raise ValidationError("category_id does not exist")

    sub = Subcategory(org_id=org_id, is_active=True)
    for key in ("category_id", "name", "supplier_name", "size_label", "size_value"):
        setattr(sub, key, patch.get(key))

    db.session.add(sub)
    db.session.commit()
    return sub
