"""initial schema: users, categories, services, availability, orders

Revision ID: 0001
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa

revision = '0001'
down_revision = None
branch_labels = None
depends_on = None

ACTIVE = "status IN ('NEW', 'ACCEPTED', 'DONE')"


def upgrade():
    op.create_table(
        'users',
        sa.Column('role', sa.Text(), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('email', sa.Text(), nullable=False, unique=True),
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('created_at', sa.Text(), server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.CheckConstraint("role IN ('client', 'master')", name='ck_users_role'),
    )
    op.create_table(
        'categories',
        sa.Column('name', sa.Text(), nullable=False, unique=True),
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('created_at', sa.Text(), server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_table(
        'services',
        sa.Column('master_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('category_id', sa.Integer(), sa.ForeignKey('categories.id', ondelete='CASCADE')),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('price', sa.Integer(), nullable=False),
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('description', sa.Text()),
        sa.Column('created_at', sa.Text(), server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.CheckConstraint('price > 0', name='ck_services_price'),
    )
    op.create_table(
        'availability',
        sa.Column('master_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('slot_minutes', sa.Integer(), nullable=False, server_default=sa.text('30')),
        sa.Column('week_template', sa.Text(), nullable=False, server_default=sa.text("'{}'")),
        sa.Column('exceptions', sa.Text(), nullable=False, server_default=sa.text("'{}'")),
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('updated_at', sa.Text(), server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_table(
        'orders',
        sa.Column('service_id', sa.Integer(), sa.ForeignKey('services.id', ondelete='CASCADE'), nullable=False),
        sa.Column('master_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('client_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('desired_at', sa.Text(), nullable=False),
        sa.Column('status', sa.Text(), nullable=False, server_default=sa.text("'NEW'")),
        sa.Column('status_changed_at', sa.Text(), nullable=False),
        sa.Column('created_at', sa.Text(), nullable=False),
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('comment', sa.Text()),
        sa.Column('rejection_reason', sa.Text()),
        sa.CheckConstraint(
            "status IN ('NEW', 'ACCEPTED', 'REJECTED', 'DONE', 'CANCELLED')",
            name='ck_orders_status',
        ),
    )
    op.create_index(
        'ux_orders_master_active_slot',
        'orders',
        ['master_id', 'desired_at'],
        unique=True,
        sqlite_where=sa.text(ACTIVE),
        postgresql_where=sa.text(ACTIVE),
    )
    op.create_index('ix_orders_client', 'orders', ['client_id'])


def downgrade():
    op.drop_index('ix_orders_client', table_name='orders')
    op.drop_index('ux_orders_master_active_slot', table_name='orders')
    op.drop_table('orders')
    op.drop_table('availability')
    op.drop_table('services')
    op.drop_table('categories')
    op.drop_table('users')
