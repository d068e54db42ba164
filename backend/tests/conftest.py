"""
Pytest fixtures for TallyScan backend tests.

Provides test database setup, two tenants with a small taxonomy each, and
a test client.
"""

from types import SimpleNamespace

import pytest
from tallyscan import create_app
from tallyscan.extensions import db
from tallyscan.models import Organization, Category, Subcategory
from tallyscan.services.identifier_service import ProductDraft


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'SCAN_DEBOUNCE_MS': 500,
        'PRODUCT_EXTRACT_URL': None,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client with fresh scan debouncers."""
    app.extensions["scan_debouncers"].clear()
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def org_a(db_session):
    """Create Organization A (first tenant)."""
    org = Organization(name="Org A - Acme Vape", code="ACME", is_active=True)
    db_session.add(org)
    db_session.commit()
    return org


@pytest.fixture(scope='function')
def org_b(db_session):
    """Create Organization B (second tenant)."""
    org = Organization(name="Org B - Beta Smoke", code="BETA", is_active=True)
    db_session.add(org)
    db_session.commit()
    return org


def _build_taxonomy(db_session, org):
    vapes = Category(org_id=org.id, name="Disposable Vapes", gst_rate_bps=500, pst_rate_bps=700)
    cigars = Category(org_id=org.id, name="Cigars", gst_rate_bps=500, pst_rate_bps=0)
    db_session.add_all([vapes, cigars])
    db_session.flush()

    pods = Subcategory(org_id=org.id, category_id=vapes.id, name="Pods", supplier_name="Acme Supply")
    eliquid = Subcategory(
        org_id=org.id,
        category_id=vapes.id,
        name="E-Liquid 60ml",
        supplier_name="Cloud Co",
        size_label="Volume",
        size_value="60ml",
    )
    devices = Subcategory(org_id=org.id, category_id=vapes.id, name="Devices", supplier_name="Acme Supply")
    cuban = Subcategory(org_id=org.id, category_id=cigars.id, name="Cuban", supplier_name="Havana House")
    db_session.add_all([pods, eliquid, devices, cuban])
    db_session.commit()

    return SimpleNamespace(
        vapes=vapes,
        cigars=cigars,
        pods=pods,
        eliquid=eliquid,
        devices=devices,
        cuban=cuban,
    )


@pytest.fixture(scope='function')
def taxonomy_a(db_session, org_a):
    """Vape and cigar taxonomy for Organization A."""
    return _build_taxonomy(db_session, org_a)


@pytest.fixture(scope='function')
def taxonomy_b(db_session, org_b):
    """Same-named taxonomy for Organization B (different ids)."""
    return _build_taxonomy(db_session, org_b)


@pytest.fixture(scope='function')
def headers_a(org_a):
    return {"X-Org-Code": org_a.code}


@pytest.fixture(scope='function')
def headers_b(org_b):
    return {"X-Org-Code": org_b.code}


@pytest.fixture(scope='function')
def make_draft(taxonomy_a):
    """Build a complete, valid draft for Org A (a pod, $19.99)."""
    def _make(barcode="012345678905", **changes):
        draft = ProductDraft(
            barcode=barcode,
            name="Elf Bar",
            model="BC5000",
            category_id=taxonomy_a.vapes.id,
            subcategory_id=taxonomy_a.pods.id,
            flavor="Blue Razz",
            nicotine=50.0,
            sell_price_cents=1999,
        )
        return draft.with_changes(**changes) if changes else draft
    return _make
