"""add_email_change_requests_and_action_windows

Revision ID: 003_email_change_requests
Revises: 002_team_invites
Create Date: 2026-03-07 14:26:51.030884

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '003_email_change_requests'
down_revision: Union[str, Sequence[str], None] = '002_team_invites'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Email change approvals and persisted per-user rate windows."""
    op.create_table(
        'email_change_requests',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('current_email', sa.String(255), nullable=False),
        sa.Column('requested_email', sa.String(255), nullable=False, index=True),
        sa.Column('reason', sa.Text(), nullable=False),
        sa.Column(
            'status',
            sa.Enum('pending', 'approved', 'denied', 'expired', name='emailchangestatus'),
            nullable=False,
            server_default='pending'
        ),
        sa.Column('approve_token_hash', sa.String(64), nullable=False, unique=True),
        sa.Column('deny_token_hash', sa.String(64), nullable=False, unique=True),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('requested_ip', sa.String(64), nullable=True),
        sa.Column('decided_at', sa.DateTime(), nullable=True),
        sa.Column('decided_ip', sa.String(64), nullable=True),
    )

    op.create_table(
        'user_action_windows',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('action', sa.String(50), nullable=False),
        sa.Column('window_started_at', sa.DateTime(), nullable=False),
        sa.Column('count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_action_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('user_id', 'action', name='unique_user_action_window'),
    )


def downgrade() -> None:
    op.drop_table('user_action_windows')
    op.drop_table('email_change_requests')
