"""initial storefront schema

Revision ID: 3f1c2a9d7b10
Revises:
Create Date: 2026-10-19 09:12:41.118203

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c2a9d7b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'user',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('role', sa.String(), nullable=False, server_default='user'),
        sa.Column('can_login', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_user_email', 'user', ['email'], unique=True)

    op.create_table(
        'category',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('slug', sa.String(), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('image', sa.String(), nullable=True),
        sa.Column('parent_id', sa.Integer(), sa.ForeignKey('category.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_category_name', 'category', ['name'], unique=True)
    op.create_index('ix_category_slug', 'category', ['slug'], unique=True)

    op.create_table(
        'product',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('slug', sa.String(), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('brand', sa.String(), nullable=True),
        sa.Column('sku', sa.String(), nullable=True, unique=True),
        sa.Column('price', sa.Float(), nullable=False),
        sa.Column('featured', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('delivery_time', sa.String(), nullable=True),
        sa.Column('warranty', sa.String(), nullable=True),
        sa.Column('quality', sa.String(), nullable=True),
        sa.Column('shipping_fee', sa.Float(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('category_id', sa.Integer(), sa.ForeignKey('category.id'), nullable=False),
    )
    op.create_index('ix_product_name', 'product', ['name'])
    op.create_index('ix_product_slug', 'product', ['slug'])
    op.create_index('ix_product_category_id', 'product', ['category_id'])

    op.create_table(
        'product_size',
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('product.id'), primary_key=True, nullable=False),
        sa.Column('size', sa.String(), primary_key=True, nullable=False),
        sa.Column('stock', sa.Integer(), nullable=False, server_default='0'),
    )

    op.create_table(
        'product_image',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('product.id'), nullable=False),
        sa.Column('url', sa.String(), nullable=False),
        sa.Column('view_type', sa.String(), nullable=False, server_default='GENERAL'),
        sa.Column('alt', sa.String(), nullable=False, server_default=''),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
    )
    op.create_index('ix_product_image_product_id', 'product_image', ['product_id'])

    op.create_table(
        'product_detail',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('product.id'), nullable=False),
        sa.Column('label', sa.String(), nullable=False),
        sa.Column('value', sa.String(), nullable=False),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
    )
    op.create_index('ix_product_detail_product_id', 'product_detail', ['product_id'])

    op.create_table(
        'order',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('order_number', sa.String(), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id'), nullable=False),
        sa.Column('subtotal', sa.Float(), nullable=False),
        sa.Column('shipping_cost', sa.Float(), nullable=False),
        sa.Column('total', sa.Float(), nullable=False),
        sa.Column('shipping_address', sa.JSON(), nullable=False),
        sa.Column('phone', sa.String(), nullable=False),
        sa.Column('payment_method', sa.String(), nullable=False),
        sa.Column('status', sa.String(), nullable=False, server_default='PENDING'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_order_order_number', 'order', ['order_number'], unique=True)
    op.create_index('ix_order_user_id', 'order', ['user_id'])
    op.create_index('ix_order_status', 'order', ['status'])

    op.create_table(
        'order_item',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('order_id', sa.Integer(), sa.ForeignKey('order.id'), nullable=False),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('product.id'), nullable=False),
        sa.Column('product_name', sa.String(), nullable=False),
        sa.Column('size', sa.String(), nullable=False),
        sa.Column('price', sa.Float(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
    )
    op.create_index('ix_order_item_order_id', 'order_item', ['order_id'])

    op.create_table(
        'payment',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('order_id', sa.Integer(), sa.ForeignKey('order.id'), nullable=False),
        sa.Column('provider', sa.String(), nullable=False),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('status', sa.String(), nullable=False, server_default='PENDING'),
        sa.Column('correlation_id', sa.String(), nullable=True),
        sa.Column('phone_number', sa.String(), nullable=True),
        sa.Column('receipt_number', sa.String(), nullable=True),
        sa.Column('payer_id', sa.String(), nullable=True),
        sa.Column('capture_id', sa.String(), nullable=True),
        sa.Column('callback_data', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('provider', 'correlation_id', name='uq_payment_provider_correlation'),
    )
    op.create_index('ix_payment_order_id', 'payment', ['order_id'])
    op.create_index('ix_payment_status', 'payment', ['status'])
    op.create_index('ix_payment_correlation_id', 'payment', ['correlation_id'])

    op.create_table(
        'order_event',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('order_id', sa.Integer(), sa.ForeignKey('order.id'), nullable=False),
        sa.Column('event_type', sa.String(), nullable=False),
        sa.Column('label', sa.String(), nullable=False),
        sa.Column('meta', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('created_by', sa.String(length=20), nullable=False, server_default='system'),
    )
    # indexes for fast timeline queries
    op.create_index('ix_order_event_order_id', 'order_event', ['order_id'])
    op.create_index('ix_order_event_event_type', 'order_event', ['event_type'])
    op.create_index('ix_order_event_order_created', 'order_event', ['order_id', 'created_at'])

    op.create_table(
        'webhook_event',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('provider', sa.String(), nullable=False),
        sa.Column('event_id', sa.String(), nullable=False),
        sa.Column('event_type', sa.String(), nullable=False),
        sa.Column('processed_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('provider', 'event_id', name='uq_webhook_event_provider_event'),
    )
    op.create_index('ix_webhook_event_provider', 'webhook_event', ['provider'])

    op.create_table(
        'address',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id'), nullable=False),
        sa.Column('label', sa.String(), nullable=True),
        sa.Column('full_name', sa.String(), nullable=False),
        sa.Column('phone', sa.String(), nullable=False),
        sa.Column('address_line1', sa.String(), nullable=False),
        sa.Column('address_line2', sa.String(), nullable=True),
        sa.Column('city', sa.String(), nullable=False),
        sa.Column('postal_code', sa.String(), nullable=True),
        sa.Column('is_default', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_address_user_id', 'address', ['user_id'])

    for table, constraint in (
        ('wishlist_item', 'uq_wishlist_user_product'),
        ('recently_viewed', 'uq_recently_viewed_user_product'),
    ):
        stamp = 'created_at' if table == 'wishlist_item' else 'viewed_at'
        op.create_table(
            table,
            sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
            sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id'), nullable=False),
            sa.Column('product_id', sa.Integer(), sa.ForeignKey('product.id', ondelete='CASCADE'), nullable=False),
            sa.Column(stamp, sa.DateTime(), nullable=False),
            sa.UniqueConstraint('user_id', 'product_id', name=constraint),
        )
        op.create_index(f'ix_{table}_user_id', table, ['user_id'])

    op.create_table(
        'product_review',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id'), nullable=False),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('product.id', ondelete='CASCADE'), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('comment', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('user_id', 'product_id', name='uq_review_user_product'),
    )
    op.create_index('ix_product_review_user_id', 'product_review', ['user_id'])
    op.create_index('ix_product_review_product_id', 'product_review', ['product_id'])


def downgrade() -> None:
    for table in (
        'product_review',
        'recently_viewed',
        'wishlist_item',
        'address',
        'webhook_event',
        'order_event',
        'payment',
        'order_item',
        'order',
        'product_detail',
        'product_image',
        'product_size',
        'product',
        'category',
        'user',
    ):
        op.drop_table(table)
