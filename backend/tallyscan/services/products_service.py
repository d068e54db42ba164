# backend/tallyscan/services/products_service.py
"""
Products Service with Multi-Tenant Support

MULTI-TENANT: All product operations are tenant-scoped.
- list_products filters to org_id
- deactivate_product validates ownership through require_in_org

Products are created and edited only through the count flow
(reconciliation_service); this module covers reads and soft-delete.
"""
from __future__ import annotations
from ..extensions import db
from ..models import Product
from .tenant_service import require_in_org, scoped_query


def list_products(
    org_id: int,
    page: int | None = None,
    per_page: int | None = None,
    include_inactive: bool = False,
) -> dict:
    """
    Tenant-scoped product listing with optional pagination.

    Args:
        org_id: Organization ID for tenant scoping
        page: Page number (1-indexed). If None, returns all items.
        per_page: Items per page (default 20, max 100)
        include_inactive: Also list soft-deleted products

    Returns:
        Dict with 'items', 'count', and pagination metadata if paginated.
    """
    base_query = scoped_query(Product, org_id)
    if not include_inactive:
        base_query = base_query.filter(Product.is_active == True)
    base_query = base_query.order_by(Product.name.asc(), Product.id.asc())

    if page is None:
        products = base_query.all()
        return {
            "items": [p.to_dict() for p in products],
            "count": len(products),
        }

    per_page = min(per_page or 20, 100)  # Default 20, max 100
    page = max(page, 1)  # Ensure page >= 1

    total = base_query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1

    products = base_query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": [p.to_dict() for p in products],
        "count": len(products),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def list_entry_options(org_id: int) -> dict:
    """
    Distinct brands and models already on file, for type-ahead on the count
    form. Sorted case-insensitively.
    """
    rows = (
        db.session.query(Product.name, Product.model)
        .filter(Product.org_id == org_id)
        .all()
    )
    brands = {name for name, _ in rows if name}
    models = {model for _, model in rows if model}
    return {
        "brands": sorted(brands, key=str.lower),
        "models": sorted(models, key=str.lower),
    }


def get_product(*, product_id: int, org_id: int) -> Product:
    return require_in_org(Product, product_id, org_id)


def deactivate_product(*, product_id: int, org_id: int) -> Product:
    """
    Soft-delete a product. Its ledger rows and barcode are preserved; a
    later stock count of the same barcode reactivates it.

    Raises:
        TenantAccessError: If product is missing or belongs to different org
    """
    p = require_in_org(Product, product_id, org_id)
    if p.is_active:
        p.is_active = False
    db.session.commit()
    return p
