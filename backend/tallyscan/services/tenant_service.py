"""
Multi-Tenant Service: Tenant Validation and Scoping Helpers

Every request is scoped to one organization (tenant). Rows read or written
on behalf of a request must carry that organization's id; anything else is
treated as not found.

USAGE:
    from tallyscan.services.tenant_service import get_current_org_id, require_in_org

    org_id = get_current_org_id()
    product = require_in_org(Product, product_id, org_id)
"""

from flask import g, has_request_context, current_app
from ..extensions import db
from ..models import Organization


class TenantAccessError(Exception):
    """Raised when cross-tenant access is attempted or no tenant is selected."""
    pass


def get_current_org_id() -> int:
    """
    Get current tenant's org_id from Flask g context.

    Raises TenantAccessError if org_id not set (route missing @require_tenant).
    """
    if not hasattr(g, 'org_id') or g.org_id is None:
        raise TenantAccessError("Tenant context not established")
    return g.org_id


def get_org_by_code(code: str | None) -> Organization | None:
    """Active organization for an API caller's org code, or None."""
    if not code:
        return None
    org = db.session.query(Organization).filter_by(code=code.strip().upper()).first()
    if org is None or not org.is_active:
        return None
    return org


def require_in_org(model, row_id: int, org_id: int):
    """
    Load a tenant-owned row by id and verify it belongs to org_id.

    Missing rows and rows of another tenant raise the same TenantAccessError
    so callers cannot probe for other tenants' ids.
    """
    row = db.session.get(model, row_id)
    if row is None or row.org_id != org_id:
        if row is not None and has_request_context():
            current_app.logger.warning(
                "Cross-tenant access denied: %s id=%s requested by org_id=%s",
                model.__name__, row_id, org_id,
            )
        raise TenantAccessError(f"{model.__name__} not found")
    return row


def scoped_query(model, org_id: int):
    """Base query for a tenant-owned model restricted to one organization."""
    return db.session.query(model).filter(model.org_id == org_id)
