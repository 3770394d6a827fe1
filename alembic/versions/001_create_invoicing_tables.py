"""Create invoicing tables.

Revision ID: 001_create_invoicing_tables
Revises:
Create Date: 2026-10-19

Tables:
- users, blacklisted_tokens (authentication)
- invoices, invoice_items
- quotations, quotation_items
- document_sequences (per-owner financial year numbering)
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001_create_invoicing_tables'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _document_columns():
    """Columns shared by invoices and quotations."""
    return [
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('document_number', sa.String(50), nullable=False),
        sa.Column('owner_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('issue_date', sa.Date(), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=True),
        # Client
        sa.Column('client_name', sa.String(200), nullable=False),
        sa.Column('client_email', sa.String(255), nullable=True),
        sa.Column('client_address', sa.Text(), nullable=True),
        sa.Column('client_gst_number', sa.String(15), nullable=True),
        sa.Column('client_pan_number', sa.String(10), nullable=True),
        # Issuer
        sa.Column('company_name', sa.String(200), nullable=False),
        sa.Column('company_address', sa.Text(), nullable=True),
        sa.Column('company_email', sa.String(255), nullable=True),
        sa.Column('company_gst_number', sa.String(15), nullable=True),
        sa.Column('company_pan_number', sa.String(10), nullable=True),
        # Rates
        sa.Column('igst', sa.Numeric(5, 2), nullable=False, server_default='0'),
        sa.Column('cgst', sa.Numeric(5, 2), nullable=False, server_default='0'),
        sa.Column('sgst', sa.Numeric(5, 2), nullable=False, server_default='0'),
        sa.Column('discount_rate', sa.Numeric(5, 2), nullable=False, server_default='0'),
        # Derived amounts
        sa.Column('subtotal', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('igst_amount', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('cgst_amount', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('sgst_amount', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('discount_amount', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('total', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def _item_columns():
    return [
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('description', sa.String(500), nullable=False),
        sa.Column('quantity', sa.Numeric(12, 3), nullable=False),
        sa.Column('unit_price', sa.Numeric(12, 2), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
    ]


def upgrade() -> None:
    """Create invoicing tables."""

    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('phone', sa.String(20), nullable=True),
        sa.Column('company_name', sa.String(200), nullable=True),
        sa.Column('company_address', sa.Text(), nullable=True),
        sa.Column('company_gst_number', sa.String(15), nullable=True),
        sa.Column('company_pan_number', sa.String(10), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'blacklisted_tokens',
        sa.Column('jti', sa.String(64), primary_key=True),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_blacklisted_tokens_user_id', 'blacklisted_tokens', ['user_id'])

    op.create_table(
        'invoices',
        *_document_columns(),
        sa.Column('payment_mode', sa.String(20), nullable=True),
        sa.Column('transaction_id', sa.String(50), nullable=True),
        sa.Column('bank_account', sa.String(20), nullable=True),
        sa.Column('upi_id', sa.String(100), nullable=True),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('source_quotation_id', sa.Uuid(), nullable=True),
        sa.UniqueConstraint('owner_id', 'document_number', name='uq_invoice_owner_number'),
    )
    op.create_index('ix_invoices_owner_id', 'invoices', ['owner_id'])
    op.create_index('ix_invoices_status_due_date', 'invoices', ['status', 'due_date'])

    op.create_table(
        'invoice_items',
        *_item_columns(),
        sa.Column('invoice_id', sa.Uuid(), sa.ForeignKey('invoices.id', ondelete='CASCADE'), primary_key=True),
    )

    op.create_table(
        'quotations',
        *_document_columns(),
        sa.Column('converted_invoice_id', sa.Uuid(), nullable=True),
        sa.UniqueConstraint('owner_id', 'document_number', name='uq_quotation_owner_number'),
    )
    op.create_index('ix_quotations_owner_id', 'quotations', ['owner_id'])

    op.create_table(
        'quotation_items',
        *_item_columns(),
        sa.Column('quotation_id', sa.Uuid(), sa.ForeignKey('quotations.id', ondelete='CASCADE'), primary_key=True),
    )

    op.create_table(
        'document_sequences',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('owner_id', sa.Uuid(), nullable=False),
        sa.Column('prefix', sa.String(10), nullable=False),
        sa.Column('financial_year', sa.String(10), nullable=False),
        sa.Column('current_number', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('padding_length', sa.Integer(), nullable=False, server_default='5'),
        sa.Column('separator', sa.String(5), nullable=False, server_default='/'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('owner_id', 'prefix', 'financial_year', name='uq_document_sequence_owner_prefix_fy'),
    )
    op.create_index('ix_document_sequences_owner_id', 'document_sequences', ['owner_id'])


def downgrade() -> None:
    """Drop invoicing tables."""
    op.drop_index('ix_document_sequences_owner_id', table_name='document_sequences')
    op.drop_table('document_sequences')
    op.drop_table('quotation_items')
    op.drop_index('ix_quotations_owner_id', table_name='quotations')
    op.drop_table('quotations')
    op.drop_table('invoice_items')
    op.drop_index('ix_invoices_status_due_date', table_name='invoices')
    op.drop_index('ix_invoices_owner_id', table_name='invoices')
    op.drop_table('invoices')
    op.drop_index('ix_blacklisted_tokens_user_id', table_name='blacklisted_tokens')
    op.drop_table('blacklisted_tokens')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
