"""Initial rate watch schema

Revision ID: 20260101_000001
Revises:
Create Date: 2026-01-01

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '20260101_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('email', sa.String(length=320), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'threshold_profiles',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('current_rate', sa.DECIMAL(precision=7, scale=4), nullable=False),
        sa.Column(
            'benchmark_rate_threshold', sa.DECIMAL(precision=7, scale=4),
            nullable=True
        ),
        sa.Column('break_even_months_threshold', sa.Integer(), nullable=True),
        sa.Column('email_alerts_enabled', sa.Boolean(), nullable=False),
        sa.Column('loan_balance', sa.DECIMAL(precision=14, scale=2), nullable=True),
        sa.Column('remaining_term_months', sa.Integer(), nullable=True),
        sa.Column(
            'closing_cost_dollars', sa.DECIMAL(precision=14, scale=2),
            nullable=True
        ),
        sa.Column(
            'closing_cost_percent', sa.DECIMAL(precision=7, scale=4),
            nullable=True
        ),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            'current_rate > 0', name='check_profile_current_rate_positive'
        ),
        sa.CheckConstraint(
            'benchmark_rate_threshold IS NOT NULL '
            'OR break_even_months_threshold IS NOT NULL',
            name='check_profile_has_threshold'
        ),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(
        'ix_threshold_profiles_user_id', 'threshold_profiles',
        ['user_id'], unique=True
    )

    op.create_table(
        'monitor_sessions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_check_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_success_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_error', sa.Text(), nullable=True),
        sa.Column(
            'threshold_version', sa.Integer(),
            nullable=False, server_default='1'
        ),
        sa.Column(
            'trigger_metadata', postgresql.JSONB(astext_type=sa.Text()),
            nullable=True
        ),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(
        'ix_monitor_sessions_user_id', 'monitor_sessions',
        ['user_id'], unique=False
    )
    op.create_index(
        'ix_monitor_sessions_status', 'monitor_sessions',
        ['status'], unique=False
    )
    op.create_index(
        'idx_monitor_sessions_user_status', 'monitor_sessions',
        ['user_id', 'status'], unique=False
    )
    op.create_index(
        'uq_monitor_sessions_user_active', 'monitor_sessions',
        ['user_id'], unique=True,
        postgresql_where=sa.text("status = 'active'")
    )

    op.create_table(
        'rate_observations',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('series', sa.String(length=64), nullable=False),
        sa.Column('observation_date', sa.Date(), nullable=False),
        sa.Column('value', sa.DECIMAL(precision=7, scale=4), nullable=False),
        sa.Column('fetched_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint(
            'series', 'observation_date',
            name='uq_rate_observations_series_date'
        )
    )
    op.create_index(
        'ix_rate_observations_series', 'rate_observations',
        ['series'], unique=False
    )
    op.create_index(
        'ix_rate_observations_fetched_at', 'rate_observations',
        ['fetched_at'], unique=False
    )

    op.create_table(
        'evaluation_runs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('session_id', sa.Integer(), nullable=False),
        sa.Column('ran_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('outcome', sa.String(length=20), nullable=False),
        sa.Column(
            'computed_metrics', postgresql.JSONB(astext_type=sa.Text()),
            nullable=True
        ),
        sa.Column('triggered_reason', sa.Text(), nullable=True),
        sa.Column('notified_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ['session_id'], ['monitor_sessions.id'], ondelete='CASCADE'
        ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(
        'ix_evaluation_runs_session_id', 'evaluation_runs',
        ['session_id'], unique=False
    )

    op.create_table(
        'notification_events',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('session_id', sa.Integer(), nullable=False),
        sa.Column('dedupe_key', sa.String(length=128), nullable=False),
        sa.Column('sent_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('subject', sa.String(length=255), nullable=False),
        sa.Column('body_preview', sa.Text(), nullable=True),
        sa.Column('provider_message_id', sa.String(length=255), nullable=True),
        sa.ForeignKeyConstraint(
            ['session_id'], ['monitor_sessions.id'], ondelete='CASCADE'
        ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('dedupe_key')
    )
    op.create_index(
        'ix_notification_events_session_id', 'notification_events',
        ['session_id'], unique=False
    )


def downgrade() -> None:
    op.drop_index(
        'ix_notification_events_session_id', table_name='notification_events'
    )
    op.drop_table('notification_events')
    op.drop_index('ix_evaluation_runs_session_id', table_name='evaluation_runs')
    op.drop_table('evaluation_runs')
    op.drop_index(
        'ix_rate_observations_fetched_at', table_name='rate_observations'
    )
    op.drop_index('ix_rate_observations_series', table_name='rate_observations')
    op.drop_table('rate_observations')
    op.drop_index(
        'uq_monitor_sessions_user_active', table_name='monitor_sessions'
    )
    op.drop_index(
        'idx_monitor_sessions_user_status', table_name='monitor_sessions'
    )
    op.drop_index('ix_monitor_sessions_status', table_name='monitor_sessions')
    op.drop_index('ix_monitor_sessions_user_id', table_name='monitor_sessions')
    op.drop_table('monitor_sessions')
    op.drop_index(
        'ix_threshold_profiles_user_id', table_name='threshold_profiles'
    )
    op.drop_table('threshold_profiles')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
