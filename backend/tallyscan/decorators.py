# Overview: Request decorators for API routes.

from functools import wraps
from flask import request, jsonify, g, current_app

from .services.tenant_service import get_org_by_code

TENANT_HEADER = "X-Org-Code"


def require_tenant(f):
    """
    Establish tenant context from the X-Org-Code header.

    Sets the following Flask g attributes:
    - g.org_id: The organization ID (tenant context)
    - g.org: The Organization row

    Returns 401 if the header is missing or names no active organization.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        code = request.headers.get(TENANT_HEADER)

        if not code:
            return jsonify({"error": "Tenant required"}), 401

        org = get_org_by_code(code)
        if org is None:
            current_app.logger.info("Rejected unknown or inactive org code %r on %s", code, request.path)
            return jsonify({"error": "Unknown tenant"}), 401

        g.org = org
        g.org_id = org.id

        return f(*args, **kwargs)

    return decorated_function
