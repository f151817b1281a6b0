"""Initial schema: agencies, dealerships, users, sessions, requests, monthly usage

Revision ID: a1c3e5f7b9d2
Revises:
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers
revision: str = 'a1c3e5f7b9d2'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _has_table(table_name):
    bind = op.get_bind()
    insp = inspect(bind)
    return table_name in insp.get_table_names()


def upgrade() -> None:
    if not _has_table('agencies'):
        op.create_table(
            'agencies',
            sa.Column('id', sa.String(32), primary_key=True),
            sa.Column('name', sa.String(), nullable=False),
            sa.Column('slug', sa.String(), nullable=True, unique=True, index=True),
            sa.Column('created_at', sa.DateTime(), nullable=False),
        )

    if not _has_table('dealerships'):
        op.create_table(
            'dealerships',
            sa.Column('id', sa.String(32), primary_key=True),
            sa.Column('name', sa.String(), nullable=False),
            sa.Column('agency_id', sa.String(32), sa.ForeignKey('agencies.id'), nullable=False, index=True),
            sa.Column('client_id', sa.String(), nullable=True, unique=True, index=True),
            sa.Column('website', sa.String(), nullable=True),
            sa.Column('package_type', sa.String(20), nullable=True),
            sa.Column('billing_period_start', sa.DateTime(), nullable=True),
            sa.Column('billing_period_end', sa.DateTime(), nullable=True),
            sa.Column('pages_used_this_period', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('blogs_used_this_period', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('gbp_posts_used_this_period', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('improvements_used_this_period', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('ga4_property_id', sa.String(), nullable=True),
            sa.Column('search_console_site_url', sa.String(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=True),
        )

    if not _has_table('users'):
        op.create_table(
            'users',
            sa.Column('id', sa.String(32), primary_key=True),
            sa.Column('email', sa.String(), nullable=False, unique=True, index=True),
            sa.Column('password_hash', sa.String(), nullable=True),
            sa.Column('name', sa.String(), nullable=True),
            sa.Column('role', sa.String(20), nullable=False, server_default='USER'),
            sa.Column('agency_id', sa.String(32), sa.ForeignKey('agencies.id'), nullable=True, index=True),
            sa.Column('dealership_id', sa.String(32), sa.ForeignKey('dealerships.id'), nullable=True, index=True),
            sa.Column('email_notifications', sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column('is_active', sa.Boolean(), nullable=True, server_default=sa.true()),
            sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
            sa.Column('last_login', sa.DateTime(), nullable=True),
        )

    if not _has_table('user_sessions'):
        op.create_table(
            'user_sessions',
            sa.Column('id', sa.String(32), primary_key=True),
            sa.Column('user_id', sa.String(32), sa.ForeignKey('users.id'), nullable=False),
            sa.Column('token', sa.String(64), nullable=False, unique=True, index=True),
            sa.Column('expires_at', sa.DateTime(), nullable=False),
            sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        )

    if not _has_table('requests'):
        op.create_table(
            'requests',
            sa.Column('id', sa.String(32), primary_key=True),
            sa.Column('seoworks_task_id', sa.String(), nullable=True, unique=True, index=True),
            sa.Column('user_id', sa.String(32), sa.ForeignKey('users.id'), nullable=False, index=True),
            sa.Column('dealership_id', sa.String(32), sa.ForeignKey('dealerships.id'), nullable=False, index=True),
            sa.Column('agency_id', sa.String(32), sa.ForeignKey('agencies.id'), nullable=True, index=True),
            sa.Column('title', sa.String(), nullable=False),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('type', sa.String(20), nullable=False),
            sa.Column('status', sa.String(20), nullable=False, server_default='PENDING', index=True),
            sa.Column('priority', sa.String(10), nullable=False, server_default='MEDIUM'),
            sa.Column('package_type', sa.String(20), nullable=True),
            sa.Column('target_cities', sa.JSON(), nullable=True),
            sa.Column('target_models', sa.JSON(), nullable=True),
            sa.Column('keywords', sa.JSON(), nullable=True),
            sa.Column('pages_completed', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('blogs_completed', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('gbp_posts_completed', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('improvements_completed', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('completed_tasks', sa.JSON(), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=True),
            sa.Column('completed_at', sa.DateTime(), nullable=True),
        )

    if not _has_table('monthly_usage'):
        op.create_table(
            'monthly_usage',
            sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column('dealership_id', sa.String(32), sa.ForeignKey('dealerships.id'), nullable=False, index=True),
            sa.Column('year', sa.Integer(), nullable=False),
            sa.Column('month', sa.Integer(), nullable=False),
            sa.Column('package_type', sa.String(20), nullable=False),
            sa.Column('pages_used', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('blogs_used', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('gbp_posts_used', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('improvements_used', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('archived_at', sa.DateTime(), nullable=False),
            sa.UniqueConstraint('dealership_id', 'year', 'month', name='uq_monthly_usage_period'),
        )


def downgrade() -> None:
    for table in ('monthly_usage', 'requests', 'user_sessions', 'users', 'dealerships', 'agencies'):
        if _has_table(table):
            op.drop_table(table)
