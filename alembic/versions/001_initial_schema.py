"""Initial schema - styles, tenant settings, decrement queue and sync runs

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'styles',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('sku', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('price', sa.String(), nullable=True),
        sa.Column('variants', sa.JSON(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('image_url', sa.String(), nullable=True),
        sa.Column('remote_id', sa.String(), nullable=True),
        sa.Column('last_synced_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.UniqueConstraint('tenant_id', 'sku', name='uq_styles_tenant_sku'),
    )
    op.create_index('ix_styles_tenant_id', 'styles', ['tenant_id'])
    op.create_index('ix_styles_sku', 'styles', ['sku'])
    op.create_index('ix_styles_status', 'styles', ['status'])

    op.create_table(
        'tenant_settings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('key_name', sa.String(length=64), nullable=False),
        sa.Column('key_value', sa.Text(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.UniqueConstraint('tenant_id', 'key_name', name='uq_tenant_settings_key'),
    )
    op.create_index('ix_tenant_settings_tenant_id', 'tenant_settings', ['tenant_id'])

    op.create_table(
        'stock_decrement_jobs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.String(length=64), nullable=False),
        sa.Column('line_index', sa.Integer(), nullable=False),
        sa.Column('sku', sa.String(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False),
        sa.Column('attempts', sa.Integer(), nullable=False),
        sa.Column('next_attempt_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_attempt_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_error', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.UniqueConstraint('tenant_id', 'order_id', 'line_index', name='uq_decrement_jobs_line'),
    )
    op.create_index('ix_stock_decrement_jobs_tenant_id', 'stock_decrement_jobs', ['tenant_id'])
    op.create_index('ix_stock_decrement_jobs_order_id', 'stock_decrement_jobs', ['order_id'])
    op.create_index('ix_stock_decrement_jobs_status', 'stock_decrement_jobs', ['status'])
    op.create_index('ix_stock_decrement_jobs_next_attempt_at', 'stock_decrement_jobs', ['next_attempt_at'])

    op.create_table(
        'sync_runs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('finished_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('watermark_before', sa.DateTime(timezone=True), nullable=True),
        sa.Column('watermark_after', sa.DateTime(timezone=True), nullable=True),
        sa.Column('items_changed', sa.Integer(), nullable=False),
        sa.Column('styles_synced', sa.Integer(), nullable=False),
        sa.Column('styles_skipped', sa.Integer(), nullable=False),
        sa.Column('failed_styles', sa.JSON(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
    )
    op.create_index('ix_sync_runs_id', 'sync_runs', ['id'])
    op.create_index('ix_sync_runs_tenant_id', 'sync_runs', ['tenant_id'])
    op.create_index('ix_sync_runs_status', 'sync_runs', ['status'])


def downgrade() -> None:
    op.drop_table('sync_runs')
    op.drop_table('stock_decrement_jobs')
    op.drop_table('tenant_settings')
    op.drop_table('styles')
