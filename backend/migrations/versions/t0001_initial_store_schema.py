"""initial store schema

Revision ID: t0001
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the complete schema:
- customers: contact/shipping profiles keyed by RUT (COMPLETE / INCOMPLETE)
- user_types, users: credentialed accounts
- revoked_tokens: logout revocation set (token hash + natural expiry)
- categories, suppliers, products: catalog
- orders, order_details: orders with price snapshots
- notification_channels, notifications, otps: customer messaging
- id_sequences: per-table reservation counters for id allocation
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 't0001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    """Create all tables from scratch."""

    # ============================================================================
    # customers
    # ============================================================================
    op.create_table(
        'customers',
        sa.Column('rut', sa.String(length=20), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=True),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('email', sa.String(length=100), nullable=True),
        sa.Column('address', sa.String(length=255), nullable=True),
        sa.Column('profile_status', sa.String(length=16), nullable=False,
                  server_default='COMPLETE'),
        sa.PrimaryKeyConstraint('rut'),
    )

    # ============================================================================
    # user_types / users
    # ============================================================================
    op.create_table(
        'user_types',
        sa.Column('id', sa.Integer(), autoincrement=False, nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=False, nullable=False),
        sa.Column('name', sa.String(length=100), nullable=True),
        sa.Column('rut', sa.String(length=20), nullable=True),
        sa.Column('email', sa.String(length=100), nullable=False),
        sa.Column('phone_number', sa.String(length=20), nullable=True),
        sa.Column('password_hash', sa.String(length=255), nullable=True),
        sa.Column('register_date', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('user_type_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['rut'], ['customers.rut']),
        sa.ForeignKeyConstraint(['user_type_id'], ['user_types.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email', name='uq_users_email'),
    )
    op.create_index('ix_users_rut', 'users', ['rut'])

    op.create_table(
        'revoked_tokens',
        sa.Column('token_hash', sa.String(length=64), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('token_hash'),
    )
    op.create_index('ix_revoked_tokens_user_id', 'revoked_tokens', ['user_id'])
    op.create_index('ix_revoked_tokens_expires_at', 'revoked_tokens', ['expires_at'])

    # ============================================================================
    # catalog
    # ============================================================================
    op.create_table(
        'categories',
        sa.Column('id', sa.Integer(), autoincrement=False, nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )

    op.create_table(
        'suppliers',
        sa.Column('rut', sa.String(length=20), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('address', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('email', sa.String(length=100), nullable=True),
        sa.PrimaryKeyConstraint('rut'),
    )

    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), autoincrement=False, nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('price', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('stock', sa.Integer(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('image_url', sa.String(length=255), nullable=True),
        sa.Column('status', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('rut_supplier', sa.String(length=20), nullable=False),
        sa.Column('category_id', sa.Integer(), nullable=False),
        sa.CheckConstraint('stock IS NULL OR stock >= 0', name='ck_products_stock_non_negative'),
        sa.ForeignKeyConstraint(['rut_supplier'], ['suppliers.rut']),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )
    op.create_index('ix_products_rut_supplier', 'products', ['rut_supplier'])
    op.create_index('ix_products_category_id', 'products', ['category_id'])

    # ============================================================================
    # orders
    # ============================================================================
    op.create_table(
        'orders',
        sa.Column('id', sa.Integer(), autoincrement=False, nullable=False),
        sa.Column('rut', sa.String(length=20), nullable=False),
        sa.Column('order_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('total_amount', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=50), nullable=False, server_default='pending'),
        sa.Column('shipping_address', sa.String(length=255), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['rut'], ['customers.rut']),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_orders_rut', 'orders', ['rut'])
    op.create_index('ix_orders_user_id', 'orders', ['user_id'])
    op.create_index('ix_orders_rut_status', 'orders', ['rut', 'status'])

    op.create_table(
        'order_details',
        sa.Column('id', sa.Integer(), autoincrement=False, nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Integer(), nullable=False),
        sa.Column('subtotal', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id']),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_order_details_order_id', 'order_details', ['order_id'])
    op.create_index('ix_order_details_product_id', 'order_details', ['product_id'])

    # ============================================================================
    # notifications / otps
    # ============================================================================
    op.create_table(
        'notification_channels',
        sa.Column('id', sa.Integer(), autoincrement=False, nullable=False),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), autoincrement=False, nullable=False),
        sa.Column('rut', sa.String(length=20), nullable=False),
        sa.Column('channel_id', sa.Integer(), nullable=False),
        sa.Column('message', sa.String(length=150), nullable=False),
        sa.Column('creation_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('sending_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('status', sa.String(length=50), nullable=False, server_default='pending'),
        sa.ForeignKeyConstraint(['rut'], ['customers.rut']),
        sa.ForeignKeyConstraint(['channel_id'], ['notification_channels.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_notifications_rut', 'notifications', ['rut'])

    op.create_table(
        'otps',
        sa.Column('id', sa.Integer(), autoincrement=False, nullable=False),
        sa.Column('code', sa.String(length=6), nullable=False),
        sa.Column('expiration_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='active'),
        sa.Column('creation_date', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_otps_user_status', 'otps', ['user_id', 'status'])

    # ============================================================================
    # id_sequences: allocation reservations
    # ============================================================================
    op.create_table(
        'id_sequences',
        sa.Column('entity', sa.String(length=64), nullable=False),
        sa.Column('last_value', sa.Integer(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('entity'),
    )


def downgrade():
    """Drop all tables (destructive operation)."""
    op.drop_table('id_sequences')
    op.drop_index('ix_otps_user_status', table_name='otps')
    op.drop_table('otps')
    op.drop_index('ix_notifications_rut', table_name='notifications')
    op.drop_table('notifications')
    op.drop_table('notification_channels')
    op.drop_index('ix_order_details_product_id', table_name='order_details')
    op.drop_index('ix_order_details_order_id', table_name='order_details')
    op.drop_table('order_details')
    op.drop_index('ix_orders_rut_status', table_name='orders')
    op.drop_index('ix_orders_user_id', table_name='orders')
    op.drop_index('ix_orders_rut', table_name='orders')
    op.drop_table('orders')
    op.drop_index('ix_products_category_id', table_name='products')
    op.drop_index('ix_products_rut_supplier', table_name='products')
    op.drop_table('products')
    op.drop_table('suppliers')
    op.drop_table('categories')
    op.drop_index('ix_revoked_tokens_expires_at', table_name='revoked_tokens')
    op.drop_index('ix_revoked_tokens_user_id', table_name='revoked_tokens')
    op.drop_table('revoked_tokens')
    op.drop_index('ix_users_rut', table_name='users')
    op.drop_table('users')
    op.drop_table('user_types')
    op.drop_table('customers')
