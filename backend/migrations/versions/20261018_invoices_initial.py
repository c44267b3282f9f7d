"""Initial schema: products, invoices, invoice_lines

Revision ID: 20261018_initial
Revises:
Create Date: 2026-10-18

This migration adds:
1. Products (catalog with on-hand stock, unique SKU)
2. Invoices (unique invoice_number, per-prefix sequence_no)
3. Invoice lines (product snapshots per invoice)
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261018_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ==========================================================================
    # 1. PRODUCTS TABLE
    # ==========================================================================
    op.create_table('products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('sku', sa.String(length=64), nullable=True),
        sa.Column('barcode', sa.String(length=64), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('price_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('buying_price_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('discount_limit_bps', sa.Integer(), nullable=True),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('sku', name='uq_products_sku'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_products_name', 'products', ['name'])
    op.create_index('ix_products_barcode', 'products', ['barcode'])

    # ==========================================================================
    # 2. INVOICES TABLE
    # ==========================================================================
    op.create_table('invoices',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('invoice_number', sa.String(length=64), nullable=False),
        sa.Column('prefix', sa.String(length=32), nullable=False),
        sa.Column('sequence_no', sa.Integer(), nullable=True),
        sa.Column('number_sequential', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='unpaid'),
        sa.Column('customer_ref', sa.String(length=128), nullable=True),
        sa.Column('customer_name', sa.String(length=255), nullable=True),
        sa.Column('cashier_id', sa.String(length=128), nullable=False),
        sa.Column('sub_total_cents', sa.Integer(), nullable=False),
        sa.Column('discount_type', sa.String(length=16), nullable=False, server_default='amount'),
        sa.Column('discount_value', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('discount_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('tax_rate_bps', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('tax_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('grand_total_cents', sa.Integer(), nullable=False),
        sa.Column('amount_received_cents', sa.Integer(), nullable=True),
        sa.Column('change_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('paid_by', sa.String(length=128), nullable=True),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('invoice_number', name='uq_invoices_invoice_number'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_invoices_prefix_sequence', 'invoices', ['prefix', 'sequence_no'])
    op.create_index('ix_invoices_status_created', 'invoices', ['status', 'created_at'])
    op.create_index('ix_invoices_status', 'invoices', ['status'])
    op.create_index('ix_invoices_customer_ref', 'invoices', ['customer_ref'])

    # ==========================================================================
    # 3. INVOICE LINES TABLE
    # ==========================================================================
    op.create_table('invoice_lines',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('invoice_id', sa.Integer(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('sku', sa.String(length=64), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_amount_cents', sa.Integer(), nullable=False),
        sa.Column('buying_price_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.ForeignKeyConstraint(['invoice_id'], ['invoices.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('invoice_id', 'position', name='uq_invoice_lines_position'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_invoice_lines_invoice_id', 'invoice_lines', ['invoice_id'])
    op.create_index('ix_invoice_lines_product_id', 'invoice_lines', ['product_id'])


def downgrade():
    op.drop_index('ix_invoice_lines_product_id', table_name='invoice_lines')
    op.drop_index('ix_invoice_lines_invoice_id', table_name='invoice_lines')
    op.drop_table('invoice_lines')

    op.drop_index('ix_invoices_customer_ref', table_name='invoices')
    op.drop_index('ix_invoices_status', table_name='invoices')
    op.drop_index('ix_invoices_status_created', table_name='invoices')
    op.drop_index('ix_invoices_prefix_sequence', table_name='invoices')
    op.drop_table('invoices')

    op.drop_index('ix_products_barcode', table_name='products')
    op.drop_index('ix_products_name', table_name='products')
    op.drop_table('products')
