"""create_marketing_tables

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-17

Creates the four ingestion tables: marketing_data (raw + aggregated
records), connection_status, api_credentials and sync_log.
The partial unique index keeps at most one aggregated row per source.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'a1b2c3d4e5f6'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create marketing ingestion tables."""
    op.create_table(
        'marketing_data',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('source', sa.String(), nullable=False),
        sa.Column('metric_type', sa.String(), nullable=False),
        sa.Column('data', sa.JSON(), nullable=False),
        sa.Column('date_range_start', sa.Date(), nullable=True),
        sa.Column('date_range_end', sa.Date(), nullable=True),
        sa.Column('synced_at', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_marketing_data_id', 'marketing_data', ['id'])
    op.create_index('ix_marketing_data_source', 'marketing_data', ['source'])
    op.create_index('ix_marketing_data_metric_type', 'marketing_data', ['metric_type'])

    # One aggregated row per source; raw rows unconstrained
    op.create_index(
        'uq_marketing_data_aggregated',
        'marketing_data',
        ['source', 'metric_type'],
        unique=True,
        sqlite_where=sa.text("metric_type = 'aggregated'"),
        postgresql_where=sa.text("metric_type = 'aggregated'"),
    )

    op.create_table(
        'connection_status',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('service_name', sa.String(), nullable=False),
        sa.Column('status', sa.String(), nullable=False, server_default='disconnected'),
        sa.Column('last_check_at', sa.DateTime(), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_connection_status_id', 'connection_status', ['id'])
    op.create_index('ix_connection_status_service_name', 'connection_status', ['service_name'], unique=True)
    op.create_index('ix_connection_status_status', 'connection_status', ['status'])

    op.create_table(
        'api_credentials',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('service_name', sa.String(), nullable=False),
        sa.Column('api_key', sa.String(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('additional_config', sa.JSON(), nullable=True),
        sa.Column('last_sync_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_api_credentials_id', 'api_credentials', ['id'])
    op.create_index('ix_api_credentials_service_name', 'api_credentials', ['service_name'], unique=True)
    op.create_index('ix_api_credentials_is_active', 'api_credentials', ['is_active'])

    op.create_table(
        'sync_log',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('source', sa.String(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('records_count', sa.Integer(), server_default='0'),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_sync_log_id', 'sync_log', ['id'])
    op.create_index('ix_sync_log_source', 'sync_log', ['source'])
    op.create_index('ix_sync_log_status', 'sync_log', ['status'])
    op.create_index('ix_sync_log_created_at', 'sync_log', ['created_at'])


def downgrade() -> None:
    """Drop marketing ingestion tables."""
    op.drop_table('sync_log')
    op.drop_table('api_credentials')
    op.drop_table('connection_status')
    op.drop_index('uq_marketing_data_aggregated', table_name='marketing_data')
    op.drop_table('marketing_data')
