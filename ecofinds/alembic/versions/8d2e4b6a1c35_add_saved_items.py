"""Add saved_items

Revision ID: 8d2e4b6a1c35
Revises: 3f9a1c2e7b10
Create Date: 2026-10-19 16:40:02.731994

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# Revision identifiers used by Alembic
revision: str = '8d2e4b6a1c35'
down_revision: Union[str, Sequence[str], None] = '3f9a1c2e7b10'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'saved_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('cart_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('saved_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.ForeignKeyConstraint(['cart_id'], ['carts.id']),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('cart_id', 'product_id', name='uq_saveditem_cart_product'),
    )
    op.create_index(op.f('ix_saved_items_id'), 'saved_items', ['id'], unique=False)
    op.create_index(op.f('ix_saved_items_cart_id'), 'saved_items', ['cart_id'], unique=False)
    op.create_index(op.f('ix_saved_items_product_id'), 'saved_items', ['product_id'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f('ix_saved_items_product_id'), table_name='saved_items')
    op.drop_index(op.f('ix_saved_items_cart_id'), table_name='saved_items')
    op.drop_index(op.f('ix_saved_items_id'), table_name='saved_items')
    op.drop_table('saved_items')
