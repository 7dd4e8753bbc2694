"""Create products table.

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from pawscan.catalog.models import SEARCH_VECTOR_SQL

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create products table with uniqueness and search indexes."""
    op.create_table(
        'products',
        sa.Column('id', postgresql.UUID(as_uuid=False), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('brand', sa.String(100), nullable=False, index=True),
        sa.Column('barcode', sa.String(14), nullable=True),
        sa.Column('rating', sa.Float(), nullable=False, index=True),
        sa.Column('ingredients', postgresql.JSONB(), nullable=False),
        sa.Column('ingredient_names', sa.Text(), nullable=False, server_default=''),
        sa.Column('image_url', sa.String(2048), nullable=True),
        sa.Column('description', sa.String(1000), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()'), index=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
    )

    # Create unique constraint on name + brand
    op.create_unique_constraint(
        'uq_products_name_brand',
        'products',
        ['name', 'brand'],
    )

    # Barcode is unique only where present
    op.create_index(
        'uq_products_barcode',
        'products',
        ['barcode'],
        unique=True,
        postgresql_where=sa.text('barcode IS NOT NULL'),
    )

    op.execute(f"CREATE INDEX ix_products_search ON products USING gin (({SEARCH_VECTOR_SQL}))")


def downgrade() -> None:
    """Drop products table."""
    op.execute("DROP INDEX IF EXISTS ix_products_search")
    op.drop_index('uq_products_barcode', table_name='products')
    op.drop_table('products')
