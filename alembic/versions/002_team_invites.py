"""add_team_invites_table

Revision ID: 002_team_invites
Revises: 001_initial_schema
Create Date: 2026-02-19 21:03:10.552917

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '002_team_invites'
down_revision: Union[str, Sequence[str], None] = '001_initial_schema'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Add team_invites table for invite email tracking."""
    op.create_table(
        'team_invites',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('team_id', sa.Integer(), sa.ForeignKey('teams.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('email', sa.String(255), nullable=False, index=True),
        sa.Column(
            'status',
            sa.Enum('pending', 'accepted', 'denied', 'expired', name='invitestatus'),
            nullable=False,
            server_default='pending'
        ),
        sa.Column('invited_by_user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('send_count', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('last_message', sa.String(500), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('last_sent_at', sa.DateTime(), nullable=False),
        sa.Column('accepted_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('team_id', 'email', name='unique_team_invite_email'),
    )


def downgrade() -> None:
    """Remove team_invites table."""
    op.drop_table('team_invites')
