# Overview: Pytest coverage for Flask CLI commands.

from tallyscan.models import Category, Organization, Product
from tallyscan.services.reconciliation_service import reconcile


class TestOrgCommands:
    def test_create_uppercases_code(self, app, db_session):
        runner = app.test_cli_runner()

        result = runner.invoke(args=["orgs", "create", "--name", "Corner Store", "--code", "corner"])

        assert "PASS Created organization" in result.output
        assert db_session.query(Organization).filter_by(code="CORNER").count() == 1

    def test_duplicate_code(self, app, org_a):
        runner = app.test_cli_runner()

        result = runner.invoke(args=["orgs", "create", "--name", "Again", "--code", "acme"])

        assert "FAIL" in result.output

    def test_system_init_is_idempotent(self, app, db_session):
        runner = app.test_cli_runner()

        runner.invoke(args=["system", "init", "--org-code", "main"])
        result = runner.invoke(args=["system", "init"])

        assert "Using existing organization" in result.output
        assert db_session.query(Organization).count() == 1


class TestTaxonomyCommands:
    def test_add_and_list(self, app, db_session, org_a):
        runner = app.test_cli_runner()

        runner.invoke(args=["taxonomy", "add-category", "--org-code", "ACME", "--name", "Hookah", "--pst-bps", "700"])
        category = db_session.query(Category).filter_by(org_id=org_a.id, name="Hookah").one()
        runner.invoke(args=[
            "taxonomy", "add-subcategory", "--org-code", "ACME",
            "--category-id", str(category.id), "--name", "Shisha", "--supplier", "Al Fakher",
        ])

        result = runner.invoke(args=["taxonomy", "list", "--org-code", "ACME"])

        assert "Hookah" in result.output
        assert "Shisha" in result.output
        assert "Al Fakher" in result.output

    def test_unknown_org(self, app, db_session):
        runner = app.test_cli_runner()

        result = runner.invoke(args=["taxonomy", "list", "--org-code", "NOPE"])

        assert "FAIL Organization 'NOPE' not found" in result.output


class TestInventoryCommands:
    def test_rebuild_quantities(self, app, db_session, org_a, make_draft):
        created = reconcile(make_draft(), 4, org_id=org_a.id)
        product = db_session.get(Product, created.product_id)
        product.quantity = 40
        db_session.commit()

        runner = app.test_cli_runner()
        dry = runner.invoke(args=["inventory", "rebuild-quantities", "--dry-run"])
        assert "cached=40 ledger=4" in dry.output
        assert db_session.get(Product, created.product_id).quantity == 40

        result = runner.invoke(args=["inventory", "rebuild-quantities", "--org-code", "ACME"])

        assert "PASS Corrected 1 product(s)" in result.output
        assert db_session.get(Product, created.product_id).quantity == 4
