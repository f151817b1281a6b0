"""Add orphaned_tasks for SEOWorks events that matched no request

Revision ID: b4d6f8a0c2e3
Revises: a1c3e5f7b9d2
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers
revision: str = 'b4d6f8a0c2e3'
down_revision: Union[str, None] = 'a1c3e5f7b9d2'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _has_table(table_name):
    bind = op.get_bind()
    insp = inspect(bind)
    return table_name in insp.get_table_names()


def upgrade() -> None:
    if not _has_table('orphaned_tasks'):
        op.create_table(
            'orphaned_tasks',
            sa.Column('id', sa.String(32), primary_key=True),
            sa.Column('external_id', sa.String(), nullable=False, index=True),
            sa.Column('event_type', sa.String(30), nullable=False),
            sa.Column('task_type', sa.String(), nullable=False),
            sa.Column('status', sa.String(30), nullable=False),
            sa.Column('client_id', sa.String(), nullable=True, index=True),
            sa.Column('client_email', sa.String(), nullable=True, index=True),
            sa.Column('completion_date', sa.DateTime(), nullable=True),
            sa.Column('reason', sa.String(), nullable=True),
            sa.Column('payload', sa.JSON(), nullable=False),
            sa.Column('processed', sa.Boolean(), nullable=False, server_default=sa.false(), index=True),
            sa.Column('processed_at', sa.DateTime(), nullable=True),
            sa.Column('linked_request_id', sa.String(32), sa.ForeignKey('requests.id'), nullable=True),
            sa.Column('resolution', sa.Text(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False),
        )


def downgrade() -> None:
    if _has_table('orphaned_tasks'):
        op.drop_table('orphaned_tasks')
