# Overview: Pytest coverage for tenant isolation behavior.

"""
Multi-Tenant Isolation Tests

SECURITY TESTS: Prove that one organization can neither see nor change
another organization's catalog or ledger.

Both tenants get identically named taxonomies so that any leak through
names (rather than ids) would show up.
"""

import pytest

from tallyscan.models import Organization, Product
from tallyscan.services.identifier_service import resolve
from tallyscan.services.reconciliation_service import ProductNotFoundError, reconcile
from tallyscan.services.tenant_service import (
    TenantAccessError,
    get_current_org_id,
    get_org_by_code,
    require_in_org,
    scoped_query,
)
from tallyscan.validation import ValidationError


class TestTenantServiceHelpers:
    """Test tenant_service helper functions."""

    def test_require_in_org_valid(self, db_session, org_a, make_draft):
        result = reconcile(make_draft(), 1, org_id=org_a.id)

        product = require_in_org(Product, result.product_id, org_a.id)
        assert product.id == result.product_id

    def test_require_in_org_cross_tenant(self, db_session, org_a, org_b, make_draft):
        result = reconcile(make_draft(), 1, org_id=org_a.id)

        with pytest.raises(TenantAccessError):
            require_in_org(Product, result.product_id, org_b.id)

    def test_require_in_org_nonexistent(self, db_session, org_a):
        with pytest.raises(TenantAccessError):
            require_in_org(Product, 99999, org_a.id)

    def test_get_org_by_code(self, db_session, org_a):
        assert get_org_by_code(" acme ").id == org_a.id
        assert get_org_by_code("NOPE") is None
        assert get_org_by_code(None) is None

    def test_inactive_org_not_returned(self, db_session):
        db_session.add(Organization(name="Closed", code="GONE", is_active=False))
        db_session.commit()

        assert get_org_by_code("GONE") is None

    def test_get_current_org_id_requires_context(self, app, db_session):
        with app.test_request_context():
            with pytest.raises(TenantAccessError):
                get_current_org_id()

    def test_scoped_query(self, db_session, org_a, org_b, make_draft):
        reconcile(make_draft(), 1, org_id=org_a.id)

        assert scoped_query(Product, org_a.id).count() == 1
        assert scoped_query(Product, org_b.id).count() == 0


class TestCountFlowIsolation:
    def test_same_barcode_is_separate_per_tenant(self, db_session, org_a, org_b, taxonomy_b, make_draft):
        a = reconcile(make_draft(), 2, org_id=org_a.id)

        assert resolve(org_b.id, "012345678905").is_new

        b = reconcile(
            make_draft(category_id=taxonomy_b.vapes.id, subcategory_id=taxonomy_b.pods.id),
            5,
            org_id=org_b.id,
        )

        assert b.action == "created"
        assert b.product_id != a.product_id
        assert db_session.get(Product, a.product_id).quantity == 2
        assert db_session.get(Product, b.product_id).quantity == 5

    def test_foreign_product_id_not_found(self, db_session, org_a, org_b, taxonomy_b, make_draft):
        a = reconcile(make_draft(), 2, org_id=org_a.id)

        draft = make_draft(id=a.product_id, category_id=taxonomy_b.vapes.id, subcategory_id=taxonomy_b.pods.id)
        with pytest.raises(ProductNotFoundError):
            reconcile(draft, 1, org_id=org_b.id)

        assert db_session.get(Product, a.product_id).quantity == 2

    def test_foreign_category_does_not_exist(self, db_session, org_a, org_b, taxonomy_b, make_draft):
        # taxonomy ids from org A are unknown to org B
        with pytest.raises(ValidationError, match="Category does not exist."):
            reconcile(make_draft(), 1, org_id=org_b.id)


class TestApiIsolation:
    def test_missing_tenant_header(self, client, db_session):
        resp = client.get("/api/products")
        assert resp.status_code == 401
        assert resp.get_json()["error"] == "Tenant required"

    def test_unknown_tenant(self, client, db_session):
        resp = client.get("/api/products", headers={"X-Org-Code": "NOPE"})
        assert resp.status_code == 401
        assert resp.get_json()["error"] == "Unknown tenant"

    def test_product_list_is_scoped(self, client, headers_a, headers_b, org_a, make_draft):
        reconcile(make_draft(), 1, org_id=org_a.id)

        assert client.get("/api/products", headers=headers_a).get_json()["count"] == 1
        assert client.get("/api/products", headers=headers_b).get_json()["count"] == 0

    def test_foreign_adjustments_hidden(self, client, headers_b, org_a, make_draft):
        result = reconcile(make_draft(), 1, org_id=org_a.id)

        resp = client.get(f"/api/products/{result.product_id}/adjustments", headers=headers_b)
        assert resp.status_code == 404

    def test_foreign_delete_rejected(self, client, db_session, headers_b, org_a, make_draft):
        result = reconcile(make_draft(), 1, org_id=org_a.id)

        resp = client.delete(f"/api/products/{result.product_id}", headers=headers_b)

        assert resp.status_code == 404
        assert db_session.get(Product, result.product_id).is_active is True

    def test_foreign_retry_ledger_not_found(self, client, headers_b, org_a, make_draft):
        result = reconcile(make_draft(), 0, org_id=org_a.id)

        resp = client.post(
            f"/api/counts/reconcile/{result.product_id}/retry-ledger",
            json={"add_qty": 5},
            headers=headers_b,
        )
        assert resp.status_code == 404

    def test_taxonomy_is_scoped(self, client, headers_b, taxonomy_a, org_b):
        resp = client.get("/api/taxonomy", headers=headers_b)
        assert resp.get_json()["count"] == 0
