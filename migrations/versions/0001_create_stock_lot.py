"""0001 create stock_lot

Revision ID: 0001_create_stock_lot
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_create_stock_lot'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'stock_lot',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('item_name', sa.String(length=128), nullable=False),
        sa.Column('category', sa.String(length=64), nullable=False),
        sa.Column('unit', sa.String(length=32), nullable=False),
        sa.Column('quantity_on_hand', sa.Numeric(18, 4), nullable=False),
        sa.Column('received_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expiration_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('delivery_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        sa.CheckConstraint('quantity_on_hand >= 0', name='check_quantity_on_hand_non_negative'),
    )

    with op.batch_alter_table('stock_lot') as batch_op:
        batch_op.create_index('ix_stock_lot_item_name', ['item_name'])
        batch_op.create_index('ix_stock_lot_category', ['category'])
        batch_op.create_index('ix_stock_lot_received_at', ['received_at'])


def downgrade():
    with op.batch_alter_table('stock_lot') as batch_op:
        batch_op.drop_index('ix_stock_lot_received_at')
        batch_op.drop_index('ix_stock_lot_category')
        batch_op.drop_index('ix_stock_lot_item_name')

    op.drop_table('stock_lot')
