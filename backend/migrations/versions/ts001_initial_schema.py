"""Initial schema: organizations, taxonomy, products, inventory ledger

Revision ID: ts001_initial
Revises:
Create Date: 2026-10-19

Creates:
1. organizations (tenant root)
2. categories / subcategories (per-tenant taxonomy)
3. products (barcode master data with subcategory snapshot, cached quantity)
4. inventory_adjustments (append-only quantity ledger)
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'ts001_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ==========================================================================
    # 1. ORGANIZATIONS
    # ==========================================================================
    op.create_table('organizations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('code', sa.String(length=32), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('organizations', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_organizations_code'), ['code'], unique=True)
        batch_op.create_index(batch_op.f('ix_organizations_is_active'), ['is_active'], unique=False)

    # ==========================================================================
    # 2. TAXONOMY
    # ==========================================================================
    op.create_table('categories',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('org_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('gst_rate_bps', sa.Integer(), nullable=False, server_default='500'),
        sa.Column('pst_rate_bps', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['org_id'], ['organizations.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('org_id', 'name', name='uq_categories_org_name'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('categories', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_categories_org_id'), ['org_id'], unique=False)

    op.create_table('subcategories',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('org_id', sa.Integer(), nullable=False),
        sa.Column('category_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('supplier_name', sa.String(length=120), nullable=True),
        sa.Column('size_label', sa.String(length=64), nullable=True),
        sa.Column('size_value', sa.String(length=64), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['org_id'], ['organizations.id'], ),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('subcategories', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_subcategories_org_id'), ['org_id'], unique=False)
        batch_op.create_index('ix_subcategories_org_category', ['org_id', 'category_id'], unique=False)
        batch_op.create_index('ix_subcategories_org_name_supplier', ['org_id', 'name', 'supplier_name'], unique=False)

    # ==========================================================================
    # 3. PRODUCTS
    # ==========================================================================
    op.create_table('products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('org_id', sa.Integer(), nullable=False),
        sa.Column('barcode', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('model', sa.String(length=255), nullable=True),
        sa.Column('category_id', sa.Integer(), nullable=True),
        sa.Column('category_name', sa.String(length=120), nullable=True),
        sa.Column('subcategory_name', sa.String(length=120), nullable=True),
        sa.Column('supplier_name', sa.String(length=120), nullable=True),
        sa.Column('size', sa.String(length=64), nullable=True),
        sa.Column('flavor', sa.String(length=120), nullable=True),
        sa.Column('nicotine', sa.Float(), nullable=True),
        sa.Column('sell_price_cents', sa.Integer(), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['org_id'], ['organizations.id'], ),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('org_id', 'barcode', name='uq_products_org_barcode'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('products', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_products_org_id'), ['org_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_products_category_id'), ['category_id'], unique=False)
        batch_op.create_index('ix_products_org_name', ['org_id', 'name'], unique=False)
        batch_op.create_index('ix_products_org_active', ['org_id', 'is_active'], unique=False)

    # ==========================================================================
    # 4. INVENTORY LEDGER
    # ==========================================================================
    op.create_table('inventory_adjustments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('org_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('qty_added', sa.Integer(), nullable=False),
        sa.Column('reason', sa.String(length=32), nullable=False),
        sa.Column('note', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['org_id'], ['organizations.id'], ),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('inventory_adjustments', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_inventory_adjustments_org_id'), ['org_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_inventory_adjustments_product_id'), ['product_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_inventory_adjustments_reason'), ['reason'], unique=False)
        batch_op.create_index('ix_invadj_org_product_created', ['org_id', 'product_id', 'created_at'], unique=False)


def downgrade():
    op.drop_table('inventory_adjustments')
    op.drop_table('products')
    op.drop_table('subcategories')
    op.drop_table('categories')
    op.drop_table('organizations')
