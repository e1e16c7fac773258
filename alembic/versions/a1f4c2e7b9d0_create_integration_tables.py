"""Create integration tables.

Revision ID: a1f4c2e7b9d0
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = 'a1f4c2e7b9d0'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'api_configurations',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('user_id', sa.String(length=255), nullable=False),
        sa.Column('service_name', sa.String(length=50), nullable=False),
        sa.Column('client_id', sa.String(length=512), nullable=True),
        sa.Column('client_secret', sa.Text(), nullable=True),
        sa.Column('redirect_url', sa.String(length=1024), nullable=True),
        sa.Column('access_token', sa.Text(), nullable=True),
        sa.Column('refresh_token', sa.Text(), nullable=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('api_key', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'service_name', name='uq_api_configurations_user_service'),
    )
    op.create_index('ix_api_configurations_user_id', 'api_configurations', ['user_id'], unique=False)
    op.create_index('ix_api_configurations_service_name', 'api_configurations', ['service_name'], unique=False)

    op.create_table(
        'fcm_tokens',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('user_id', sa.String(length=255), nullable=False),
        sa.Column('token', sa.String(length=4096), nullable=False),
        sa.Column('device_info', sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('token'),
    )
    op.create_index('ix_fcm_tokens_user_id', 'fcm_tokens', ['user_id'], unique=False)

    op.create_table(
        'calendar_events',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('user_id', sa.String(length=255), nullable=False),
        sa.Column('event_id', sa.String(length=255), nullable=False),
        sa.Column('title', sa.String(length=1024), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_health_related', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_calendar_events_user_id', 'calendar_events', ['user_id'], unique=False)
    op.create_index('idx_calendar_events_user_event', 'calendar_events', ['user_id', 'event_id'], unique=False)


def downgrade() -> None:
    op.drop_index('idx_calendar_events_user_event', table_name='calendar_events')
    op.drop_index('ix_calendar_events_user_id', table_name='calendar_events')
    op.drop_table('calendar_events')
    op.drop_index('ix_fcm_tokens_user_id', table_name='fcm_tokens')
    op.drop_table('fcm_tokens')
    op.drop_index('ix_api_configurations_service_name', table_name='api_configurations')
    op.drop_index('ix_api_configurations_user_id', table_name='api_configurations')
    op.drop_table('api_configurations')
