# Overview: Flask API routes for the category/subcategory taxonomy.

"""
Taxonomy routes.

MULTI-TENANT: Every route reads and writes only the caller's organization
(g.org_id, set by @require_tenant).
"""
from flask import Blueprint, request, g, current_app

from ..decorators import require_tenant
from ..extensions import db
from ..models import Category, Subcategory
from ..services import taxonomy_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_category,
    ValidationError,
    ConflictError,
)

CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "gst_rate_bps", "pst_rate_bps"},
    required_on_create={"name"},
)

SUBCATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"category_id", "name", "supplier_name", "size_label", "size_value"},
    required_on_create={"category_id", "name"},
)

taxonomy_bp = Blueprint("taxonomy", __name__, url_prefix="/api/taxonomy")


@taxonomy_bp.get("")
@require_tenant
def list_taxonomy():
    """Categories ordered by name, each with its active subcategories."""
    items = taxonomy_service.list_taxonomy(g.org_id)
    return {"items": items, "count": len(items)}


@taxonomy_bp.post("/categories")
@require_tenant
def create_category_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=False)
        enforce_rules_category(patch)
        category = taxonomy_service.create_category(org_id=g.org_id, patch=patch)
    except ConflictError as e:
        return {"error": str(e)}, 409
    except ValidationError as e:
        return {"error": str(e)}, 400
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to create category")
        return {"error": "Failed to create category"}, 500

    return category.to_dict(), 201


@taxonomy_bp.post("/subcategories")
@require_tenant
def create_subcategory_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Subcategory, payload=payload, policy=SUBCATEGORY_POLICY, partial=False)
        sub = taxonomy_service.create_subcategory(org_id=g.org_id, patch=patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to create subcategory")
        return {"error": "Failed to create subcategory"}, 500

    return sub.to_dict(), 201
