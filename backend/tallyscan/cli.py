# Overview: Flask CLI command groups for bootstrap, taxonomy setup, and ledger maintenance.

# backend/tallyscan/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--org "Org Name"] [--org-code DEFAULT]
#   Create tables (if missing) and a default organization.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Organization management (MULTI-TENANT):
# - python -m flask orgs list
#   List all organizations.
# - python -m flask orgs create --name "Acme Corp" --code "ACME"
#   Create a new organization (tenant). API clients send the code as X-Org-Code.
#
# Taxonomy setup:
# - python -m flask taxonomy list --org-code ACME
#   Show categories and their subcategories.
# - python -m flask taxonomy add-category --org-code ACME --name "Disposable Vapes" [--gst-bps 500] [--pst-bps 700]
# - python -m flask taxonomy add-subcategory --org-code ACME --category-id 1 --name "Pods" --supplier "Acme Supply"
#
# Ledger maintenance:
# - python -m flask inventory rebuild-quantities [--org-code ACME] [--dry-run]
#   Recompute cached product quantities from the adjustment ledger.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Organization, Product
from .services import ledger_service, taxonomy_service
from .services.tenant_service import get_org_by_code
from .validation import ConflictError, ValidationError


def _org_or_fail(org_code):
    org = get_org_by_code(org_code)
    if not org:
        click.echo(f"FAIL Organization '{org_code}' not found or inactive")
    return org


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--org', 'org_name', default='Default Organization', help='Organization name')
@click.option('--org-code', default='DEFAULT', help='Organization code')
@with_appcontext
def init_system(org_name, org_code):
    """
    Initialize TallyScan: schema and a default organization.

    Idempotent. Safe to re-run; an existing organization is left as is.
    """
    click.echo("START Initializing TallyScan...")

    db.create_all()
    click.echo("PASS Schema ready")

    org = db.session.query(Organization).first()
    if not org:
        org = Organization(name=org_name, code=org_code.strip().upper(), is_active=True)
        db.session.add(org)
        db.session.commit()
        click.echo(f"PASS Created default organization: {org.name} (ID: {org.id}, Code: {org.code})")
    else:
        click.echo(f"PASS Using existing organization: {org.name} (ID: {org.id}, Code: {org.code})")

    click.echo("DONE Add categories with 'python -m flask taxonomy add-category'.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


# =============================================================================
# ORGANIZATION COMMANDS
# =============================================================================

@click.group('orgs')
def orgs_group():
    """Organization (tenant) management commands."""


@orgs_group.command('list')
@with_appcontext
def list_orgs():
    """List all organizations."""
    orgs = db.session.query(Organization).order_by(Organization.id.asc()).all()

    if not orgs:
        click.echo("No organizations found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Name':<30} {'Code':<15} {'Active':<8} {'Products'}")
    click.echo("="*80)

    for org in orgs:
        product_count = db.session.query(Product).filter_by(org_id=org.id, is_active=True).count()
        active_str = "Yes" if org.is_active else "No"

        click.echo(f"{org.id:<5} {org.name:<30} {org.code:<15} {active_str:<8} {product_count}")

    click.echo("="*80 + "\n")


@orgs_group.command('create')
@click.option('--name', required=True, help='Organization name')
@click.option('--code', required=True, help='Short code (unique, sent as X-Org-Code)')
@with_appcontext
def create_org_cli(name, code):
    """Create a new organization (tenant)."""
    code = code.strip().upper()
    existing = db.session.query(Organization).filter_by(code=code).first()
    if existing:
        click.echo(f"FAIL Organization with code '{code}' already exists")
        return

    org = Organization(name=name, code=code, is_active=True)
    db.session.add(org)
    db.session.commit()

    click.echo(f"PASS Created organization: {org.name} (ID: {org.id}, Code: {org.code})")


# =============================================================================
# TAXONOMY COMMANDS
# =============================================================================

@click.group('taxonomy')
def taxonomy_group():
    """Category and subcategory setup."""


@taxonomy_group.command('list')
@click.option('--org-code', required=True, help='Organization code')
@with_appcontext
def list_taxonomy_cli(org_code):
    """Show active categories with their subcategories."""
    org = _org_or_fail(org_code)
    if not org:
        return

    categories = taxonomy_service.list_taxonomy(org.id)
    if not categories:
        click.echo("No categories found.")
        return

    for cat in categories:
        click.echo(f"[{cat['id']}] {cat['name']}  (GST {cat['gst_rate_bps']} bps, PST {cat['pst_rate_bps']} bps)")
        for sub in cat["subcategories"]:
            supplier = sub["supplier_name"] or "-"
            click.echo(f"    [{sub['id']}] {sub['name']}  supplier={supplier}")


@taxonomy_group.command('add-category')
@click.option('--org-code', required=True, help='Organization code')
@click.option('--name', required=True, help='Category name (unique within org)')
@click.option('--gst-bps', type=int, default=500, show_default=True, help='GST rate in basis points')
@click.option('--pst-bps', type=int, default=0, show_default=True, help='PST rate in basis points')
@with_appcontext
def add_category_cli(org_code, name, gst_bps, pst_bps):
    """Create a category."""
    org = _org_or_fail(org_code)
    if not org:
        return

    try:
        cat = taxonomy_service.create_category(
            org_id=org.id,
            patch={"name": name.strip(), "gst_rate_bps": gst_bps, "pst_rate_bps": pst_bps},
        )
    except (ValidationError, ConflictError) as e:
        db.session.rollback()
        click.echo(f"FAIL {e}")
        return

    click.echo(f"PASS Created category: {cat.name} (ID: {cat.id})")


@taxonomy_group.command('add-subcategory')
@click.option('--org-code', required=True, help='Organization code')
@click.option('--category-id', type=int, required=True, help='Parent category ID')
@click.option('--name', required=True, help='Subcategory name')
@click.option('--supplier', 'supplier_name', default=None, help='Supplier name')
@click.option('--size-label', default=None, help='Size label (e.g. "Volume")')
@click.option('--size-value', default=None, help='Size value (e.g. "60ml")')
@with_appcontext
def add_subcategory_cli(org_code, category_id, name, supplier_name, size_label, size_value):
    """Create a subcategory under a category."""
    org = _org_or_fail(org_code)
    if not org:
        return

    try:
        sub = taxonomy_service.create_subcategory(
            org_id=org.id,
            patch={
                "category_id": category_id,
                "name": name.strip(),
                "supplier_name": supplier_name,
                "size_label": size_label,
                "size_value": size_value,
            },
        )
    except ValidationError as e:
        db.session.rollback()
        click.echo(f"FAIL {e}")
        return

    click.echo(f"PASS Created subcategory: {sub.name} (ID: {sub.id}, Category: {sub.category_id})")


# =============================================================================
# INVENTORY MAINTENANCE COMMANDS
# =============================================================================

@click.group('inventory')
def inventory_group():
    """Quantity ledger maintenance."""


@inventory_group.command('rebuild-quantities')
@click.option('--org-code', default=None, help='Limit to one organization')
@click.option('--dry-run', is_flag=True, help='Report drift without saving')
@with_appcontext
def rebuild_quantities_cli(org_code, dry_run):
    """Recompute Product.quantity from SUM(inventory_adjustments.qty_added)."""
    org_id = None
    if org_code:
        org = _org_or_fail(org_code)
        if not org:
            return
        org_id = org.id

    drift = ledger_service.rebuild_quantity_cache(org_id)

    for row in drift:
        click.echo(
            f"DRIFT product {row['product_id']} ({row['barcode']}) org {row['org_id']}: "
            f"cached={row['cached']} ledger={row['ledger']}"
        )

    if dry_run:
        db.session.rollback()
        click.echo(f"DRY RUN {len(drift)} product(s) would be corrected")
        return

    db.session.commit()
    click.echo(f"PASS Corrected {len(drift)} product(s)")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(orgs_group)  # Multi-tenant organization management
    app.cli.add_command(taxonomy_group)
    app.cli.add_command(inventory_group)
