# Overview: Pytest coverage for the /api/products endpoints.

from tallyscan.services.reconciliation_service import reconcile


class TestProductRoutes:
    def test_list_paginated(self, client, headers_a, org_a, make_draft):
        for i in range(3):
            reconcile(make_draft(barcode=f"P{i}", name=f"Brand {i}"), 1, org_id=org_a.id)

        resp = client.get("/api/products?page=1&per_page=2", headers=headers_a)

        body = resp.get_json()
        assert body["count"] == 2
        assert body["pagination"]["total"] == 3
        assert body["pagination"]["has_next"] is True
        assert [p["name"] for p in body["items"]] == ["Brand 0", "Brand 1"]

    def test_entry_options(self, client, headers_a, org_a, make_draft):
        reconcile(make_draft(barcode="1", name="geek bar", model="Pulse"), 1, org_id=org_a.id)
        reconcile(make_draft(barcode="2", name="Elf Bar", model=None), 1, org_id=org_a.id)

        body = client.get("/api/products/options", headers=headers_a).get_json()

        assert body["brands"] == ["Elf Bar", "geek bar"]
        assert body["models"] == ["Pulse"]

    def test_adjustments_newest_first(self, client, headers_a, org_a, make_draft):
        first = reconcile(make_draft(), 2, org_id=org_a.id)
        reconcile(make_draft(), 3, org_id=org_a.id)

        body = client.get(f"/api/products/{first.product_id}/adjustments", headers=headers_a).get_json()

        assert body["quantity"] == 5
        assert body["count"] == 2
        assert [row["qty_added"] for row in body["items"]] == [3, 2]

    def test_deactivate_then_rescan_reactivates(self, client, headers_a, org_a, make_draft):
        created = reconcile(make_draft(), 2, org_id=org_a.id)

        resp = client.delete(f"/api/products/{created.product_id}", headers=headers_a)
        assert resp.status_code == 200

        assert client.get("/api/products", headers=headers_a).get_json()["count"] == 0
        inactive = client.get("/api/products?include_inactive=true", headers=headers_a).get_json()
        assert inactive["count"] == 1

        lookup = client.get("/api/counts/lookup/012345678905", headers=headers_a).get_json()
        assert lookup["is_new"] is True

        result = reconcile(make_draft(), 1, org_id=org_a.id)
        assert result.action == "reactivated"
        assert result.product_id == created.product_id
        assert result.quantity == 3
