# alembic/versions/001_initial.py

"""Initial schema

Revision ID: 001
Revises: 
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # Create investment_products table
    op.create_table('investment_products',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('product_type', sa.String(length=20), nullable=False),
        sa.Column('tenure_months', sa.Integer(), nullable=False),
        sa.Column('annual_yield', sa.Numeric(precision=5, scale=2), nullable=False),
        sa.Column('risk_level', sa.String(length=20), nullable=False),
        sa.Column('min_investment', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('max_investment', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_investment_products_type', 'investment_products', ['product_type'])
    op.create_index('ix_investment_products_risk', 'investment_products', ['risk_level'])
    op.create_index('ix_investment_products_active', 'investment_products', ['is_active'])

    # Create investments table
    op.create_table('investments',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('product_id', sa.String(length=36), nullable=False),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('invested_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
        sa.Column('expected_return', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('actual_return', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('maturity_date', sa.DateTime(), nullable=True),
        sa.Column('notes', sa.String(length=500), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['product_id'], ['investment_products.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_investments_user', 'investments', ['user_id'])
    op.create_index('ix_investments_product', 'investments', ['product_id'])
    op.create_index('ix_investments_status', 'investments', ['status'])
    op.create_index('ix_investments_invested_at', 'investments', ['invested_at'])


def downgrade():
    op.drop_index('ix_investments_invested_at', table_name='investments')
    op.drop_index('ix_investments_status', table_name='investments')
    op.drop_index('ix_investments_product', table_name='investments')
    op.drop_index('ix_investments_user', table_name='investments')
    op.drop_table('investments')
    op.drop_index('ix_investment_products_active', table_name='investment_products')
    op.drop_index('ix_investment_products_risk', table_name='investment_products')
    op.drop_index('ix_investment_products_type', table_name='investment_products')
    op.drop_table('investment_products')
