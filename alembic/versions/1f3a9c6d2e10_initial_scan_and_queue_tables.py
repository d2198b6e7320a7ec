"""Initial scan and queue tables

Revision ID: 1f3a9c6d2e10
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '1f3a9c6d2e10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'scans',
        sa.Column('id', sa.Text(), primary_key=True),
        sa.Column('user_id', sa.Text(), nullable=False),
        sa.Column('source_type', sa.Text(), nullable=False, server_default='paste'),
        sa.Column('source_ref', sa.Text(), nullable=True),
        sa.Column('raw_text', sa.Text(), nullable=False, server_default=''),
        sa.Column('industry', sa.Text(), nullable=True),
        sa.Column('status', sa.Text(), nullable=False, server_default='queued'),
        sa.Column('hot_leads', sa.Integer(), server_default='0'),
        sa.Column('warm_leads', sa.Integer(), server_default='0'),
        sa.Column('cold_leads', sa.Integer(), server_default='0'),
        sa.Column('total_items', sa.Integer(), server_default='0'),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        'scan_status_events',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('scan_id', sa.Text(), sa.ForeignKey('scans.id'), nullable=False),
        sa.Column('step', sa.Text(), nullable=False),
        sa.Column('percent', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('message', sa.Text(), server_default=''),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_scan_status_events_scan_id', 'scan_status_events', ['scan_id'])

    op.create_table(
        'scan_processed_items',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('scan_id', sa.Text(), sa.ForeignKey('scans.id'), nullable=False),
        sa.Column('item_type', sa.Text(), nullable=False, server_default='prospect'),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('score', sa.Float(), nullable=False, server_default='0.0'),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('snippet', sa.Text(), server_default=''),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_scan_processed_items_scan_id', 'scan_processed_items', ['scan_id'])

    op.create_table(
        'queue_items',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('job_type', sa.Text(), nullable=False),
        sa.Column('payload', sa.JSON(), nullable=True),
        sa.Column('status', sa.Text(), nullable=False, server_default='pending'),
        sa.Column('priority', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('max_attempts', sa.Integer(), nullable=False, server_default='3'),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('result', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('attempts <= max_attempts', name='ck_queue_items_attempts_bounded'),
    )
    op.create_index('ix_queue_items_status_priority', 'queue_items', ['status', 'priority'])


def downgrade() -> None:
    op.drop_index('ix_queue_items_status_priority', table_name='queue_items')
    op.drop_table('queue_items')
    op.drop_index('ix_scan_processed_items_scan_id', table_name='scan_processed_items')
    op.drop_table('scan_processed_items')
    op.drop_index('ix_scan_status_events_scan_id', table_name='scan_status_events')
    op.drop_table('scan_status_events')
    op.drop_table('scans')
