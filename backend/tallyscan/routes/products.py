# Overview: Flask API routes for product reads and soft-delete.

# backend/tallyscan/routes/products.py
"""
Product routes with multi-tenant support.

MULTI-TENANT: All product operations are scoped to the caller's organization.
The org_id is derived from g.org_id (set by @require_tenant).

Creation and edits go through /api/counts (the reconciliation flow).
"""
from flask import Blueprint, request, g

from ..decorators import require_tenant
from ..services import ledger_service, products_service
from ..services.tenant_service import TenantAccessError

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_tenant
def list_products():
    """
    List the caller's products with optional pagination.

    Query params:
    - page: int (optional) - page number (1-indexed). If omitted, returns all items.
    - per_page: int (optional) - items per page (default 20, max 100)
    - include_inactive: "true" to include soft-deleted products
    """
    page = request.args.get("page", type=int)
    per_page = request.args.get("per_page", type=int)
    include_inactive = request.args.get("include_inactive", "").lower() == "true"

    return products_service.list_products(
        g.org_id,
        page=page,
        per_page=per_page,
        include_inactive=include_inactive,
    )


@products_bp.get("/options")
@require_tenant
def entry_options():
    """Brand and model suggestions for the count form."""
    return products_service.list_entry_options(g.org_id)


@products_bp.get("/<int:product_id>/adjustments")
@require_tenant
def list_product_adjustments(product_id: int):
    """
    Ledger rows for one product, newest first.

    Query params:
    - limit: int (optional, default 200)
    """
    limit = request.args.get("limit", default=200, type=int)

    try:
        product = products_service.get_product(product_id=product_id, org_id=g.org_id)
    except TenantAccessError:
        return {"error": "Product not found"}, 404

    rows = ledger_service.list_adjustments(org_id=g.org_id, product_id=product.id, limit=limit)
    return {
        "product_id": product.id,
        "quantity": product.quantity,
        "items": [r.to_dict() for r in rows],
        "count": len(rows),
    }


@products_bp.delete("/<int:product_id>")
@require_tenant
def deactivate_product_route(product_id: int):
    """Soft-delete a product (is_active=false)."""
    try:
        products_service.deactivate_product(product_id=product_id, org_id=g.org_id)
    except TenantAccessError:
        return {"error": "Product not found"}, 404

    return {"ok": True}, 200
