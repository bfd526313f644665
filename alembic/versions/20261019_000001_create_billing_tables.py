"""Create billing tables

Revision ID: 20261019_000001
Revises: None
Create Date: 2026-10-19

This migration creates the tax catalog, the billable sources (utilities,
deposits), invoices with their items, payments, and the global invoice
number sequence on backends that support sequences.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261019_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


BILLABLE_STATUSES = ('pending', 'saved', 'invoiced')


def _money():
    return sa.Numeric(precision=12, scale=2)


def _billable_columns():
    return [
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('owner_id', sa.Integer(), nullable=False),
        sa.Column('property_id', sa.Integer(), nullable=False),
        sa.Column('unit_id', sa.Integer(), nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=True),
        sa.Column('amount', _money(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    """Create the billing tables."""
    if op.get_bind().dialect.supports_sequences:
        op.execute(sa.schema.CreateSequence(sa.Sequence('invoice_number_seq', start=1, increment=1)))

    op.create_table(
        'taxes',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('owner_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('percentage', sa.Numeric(precision=5, scale=2), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('percentage >= 0 AND percentage <= 100', name='ck_taxes_percentage_range'),
    )
    op.create_index('ix_taxes_owner_id', 'taxes', ['owner_id'])

    op.create_table(
        'utilities',
        *_billable_columns(),
        sa.Column('item', sa.String(length=50), nullable=False),
        sa.Column('month', sa.Integer(), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('previous_reading', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('current_reading', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('consumption', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('rate', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column(
            'status',
            sa.Enum(*BILLABLE_STATUSES, name='utility_status', create_constraint=True, length=20),
            nullable=False,
            server_default='pending'
        ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_utilities_owner_id', 'utilities', ['owner_id'])
    op.create_index('ix_utilities_unit_id', 'utilities', ['unit_id'])
    op.create_index('ix_utilities_tenant_id', 'utilities', ['tenant_id'])
    op.create_index('ix_utilities_status', 'utilities', ['status'])

    op.create_table(
        'deposits',
        *_billable_columns(),
        sa.Column('type', sa.String(length=50), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column(
            'status',
            sa.Enum(*BILLABLE_STATUSES, name='deposit_status', create_constraint=True, length=20),
            nullable=False,
            server_default='pending'
        ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_deposits_owner_id', 'deposits', ['owner_id'])
    op.create_index('ix_deposits_unit_id', 'deposits', ['unit_id'])
    op.create_index('ix_deposits_tenant_id', 'deposits', ['tenant_id'])
    op.create_index('ix_deposits_status', 'deposits', ['status'])

    op.create_table(
        'invoices',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('owner_id', sa.Integer(), nullable=False),
        sa.Column('property_id', sa.Integer(), nullable=False),
        sa.Column('unit_id', sa.Integer(), nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('invoice_number', sa.String(length=32), nullable=False),
        sa.Column('sequence_number', sa.Integer(), nullable=False),
        sa.Column('subtotal', _money(), nullable=False, server_default='0'),
        sa.Column('tax_amount', _money(), nullable=False, server_default='0'),
        sa.Column('total_amount', _money(), nullable=False, server_default='0'),
        sa.Column('tax_id', sa.Integer(), nullable=True),
        sa.Column('tax_percentage', sa.Numeric(precision=5, scale=2), nullable=True),
        sa.Column(
            'status',
            sa.Enum(
                'draft', 'sent', 'paid', 'partially_paid', 'overdue', 'cancelled',
                name='invoice_status', create_constraint=True, length=20
            ),
            nullable=False,
            server_default='draft'
        ),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('invoice_number', name='uq_invoices_invoice_number'),
        sa.UniqueConstraint('sequence_number', name='uq_invoices_sequence_number'),
        sa.ForeignKeyConstraint(
            ['tax_id'],
            ['taxes.id'],
            name='fk_invoices_tax_id',
            ondelete='SET NULL'
        ),
    )
    op.create_index('ix_invoices_owner_id', 'invoices', ['owner_id'])
    op.create_index('ix_invoices_property_id', 'invoices', ['property_id'])
    op.create_index('ix_invoices_unit_id', 'invoices', ['unit_id'])
    op.create_index('ix_invoices_tenant_id', 'invoices', ['tenant_id'])
    op.create_index('ix_invoices_due_date', 'invoices', ['due_date'])
    op.create_index('ix_invoices_status', 'invoices', ['status'])

    op.create_table(
        'invoice_items',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('invoice_id', sa.Integer(), nullable=False),
        sa.Column(
            'type',
            sa.Enum(
                'rent', 'utility', 'deposit', 'tax', 'other',
                name='invoice_item_type', create_constraint=True, length=20
            ),
            nullable=False,
            server_default='other'
        ),
        sa.Column('description', sa.String(length=255), nullable=False),
        sa.Column('amount', _money(), nullable=False),
        sa.Column('reference_id', sa.Integer(), nullable=True),
        sa.Column(
            'status',
            sa.Enum('active', 'void', name='invoice_item_status', create_constraint=True, length=20),
            nullable=False,
            server_default='active'
        ),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(
            ['invoice_id'],
            ['invoices.id'],
            name='fk_invoice_items_invoice_id',
            ondelete='CASCADE'
        ),
        sa.CheckConstraint('amount >= 0', name='ck_invoice_items_amount_non_negative'),
    )
    op.create_index('ix_invoice_items_invoice_id', 'invoice_items', ['invoice_id'])
    op.create_index('ix_invoice_items_type', 'invoice_items', ['type'])

    op.create_table(
        'payments',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('owner_id', sa.Integer(), nullable=False),
        sa.Column('property_id', sa.Integer(), nullable=False),
        sa.Column('unit_id', sa.Integer(), nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('invoice_id', sa.Integer(), nullable=True),
        sa.Column('amount', _money(), nullable=False),
        sa.Column('payment_date', sa.Date(), nullable=False),
        sa.Column(
            'payment_type',
            sa.Enum('full', 'partial', name='payment_type', create_constraint=True, length=20),
            nullable=False
        ),
        sa.Column(
            'payment_mode',
            sa.Enum('mpesa', 'cash', 'bank', 'cheque', name='payment_mode', create_constraint=True, length=20),
            nullable=False
        ),
        sa.Column(
            'status',
            sa.Enum('confirmed', name='payment_status', create_constraint=True, length=20),
            nullable=False,
            server_default='confirmed'
        ),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('transaction_id', sa.String(length=100), nullable=True),
        sa.Column('file_url', sa.String(length=500), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(
            ['invoice_id'],
            ['invoices.id'],
            name='fk_payments_invoice_id',
            ondelete='SET NULL'
        ),
        sa.CheckConstraint('amount > 0', name='ck_payments_amount_positive'),
    )
    for column in ('owner_id', 'property_id', 'unit_id', 'tenant_id', 'invoice_id', 'payment_date', 'status'):
        op.create_index(f'ix_payments_{column}', 'payments', [column])


def downgrade() -> None:
    """Drop the billing tables."""
    op.drop_table('payments')
    op.drop_table('invoice_items')
    op.drop_table('invoices')
    op.drop_table('deposits')
    op.drop_table('utilities')
    op.drop_table('taxes')

    if op.get_bind().dialect.supports_sequences:
        op.execute(sa.schema.DropSequence(sa.Sequence('invoice_number_seq')))
