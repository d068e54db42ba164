# Overview: Pytest coverage for the /api/taxonomy endpoints.


class TestTaxonomyRoutes:
    def test_list(self, client, headers_a, taxonomy_a):
        resp = client.get("/api/taxonomy", headers=headers_a)

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["count"] == 2
        assert [c["name"] for c in body["items"]] == ["Cigars", "Disposable Vapes"]
        assert body["items"][0]["subcategories"][0]["name"] == "Cuban"

    def test_create_category(self, client, headers_a, org_a):
        resp = client.post(
            "/api/taxonomy/categories",
            json={"name": "Hookah", "gst_rate_bps": 500, "pst_rate_bps": 700},
            headers=headers_a,
        )

        assert resp.status_code == 201
        body = resp.get_json()
        assert body["name"] == "Hookah"
        assert body["org_id"] == org_a.id

    def test_duplicate_category(self, client, headers_a, taxonomy_a):
        resp = client.post("/api/taxonomy/categories", json={"name": "Cigars"}, headers=headers_a)
        assert resp.status_code == 409

    def test_rate_out_of_range(self, client, headers_a, org_a):
        resp = client.post(
            "/api/taxonomy/categories",
            json={"name": "Bad", "gst_rate_bps": 20000},
            headers=headers_a,
        )
        assert resp.status_code == 400

    def test_unknown_field(self, client, headers_a, org_a):
        resp = client.post(
            "/api/taxonomy/categories",
            json={"name": "Hookah", "org_id": 5},
            headers=headers_a,
        )
        assert resp.status_code == 400

    def test_create_subcategory(self, client, headers_a, taxonomy_a):
        resp = client.post(
            "/api/taxonomy/subcategories",
            json={"category_id": taxonomy_a.cigars.id, "name": "Dominican", "supplier_name": ""},
            headers=headers_a,
        )

        assert resp.status_code == 201
        body = resp.get_json()
        assert body["category_id"] == taxonomy_a.cigars.id
        assert body["supplier_name"] is None

    def test_subcategory_missing_name(self, client, headers_a, taxonomy_a):
        resp = client.post(
            "/api/taxonomy/subcategories",
            json={"category_id": taxonomy_a.cigars.id},
            headers=headers_a,
        )
        assert resp.status_code == 400

    def test_subcategory_foreign_category(self, client, headers_b, taxonomy_a, org_b):
        resp = client.post(
            "/api/taxonomy/subcategories",
            json={"category_id": taxonomy_a.cigars.id, "name": "Sneaky"},
            headers=headers_b,
        )

        assert resp.status_code == 400
        assert resp.get_json()["error"] == "category_id does not exist"
