"""create users, accounts, transactions and budgets tables

Revision ID: 3f1c9a7e2b40
Revises: 
Create Date: 2026-10-17 10:12:44.518203

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c9a7e2b40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

account_type = sa.Enum('CHECKING', 'SAVINGS', 'CREDIT', 'INVESTMENT', name='accounttype')
transaction_type = sa.Enum('INCOME', 'EXPENSE', name='transactiontype')
transaction_category = sa.Enum(
    'FOOD', 'TRANSPORT', 'ENTERTAINMENT', 'HEALTHCARE', 'SHOPPING', 'BILLS', 'SALARY', 'INVESTMENT', 'OTHER',
    name='transactioncategory'
)


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'users',
        sa.Column('db_id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('id', sa.Uuid, nullable=False, unique=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('profile_image', sa.LargeBinary, nullable=True),
        sa.Column('preferred_currency', sa.String(3), nullable=False),
        sa.Column('created_at', sa.DateTime, nullable=False),
        sa.Column('updated_at', sa.DateTime, nullable=False),
        sa.UniqueConstraint('email', name='uq_user_email'),
    )
    op.create_index('idx_users_email', 'users', ['email'])

    op.create_table(
        'accounts',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer, sa.ForeignKey('users.db_id'), nullable=False),
        sa.Column('account_name', sa.String(255), nullable=False),
        sa.Column('account_type', account_type, nullable=False),
        sa.Column('opening_balance', sa.DECIMAL(15, 2), nullable=False),
        sa.Column('balance', sa.DECIMAL(15, 2), nullable=False),
        sa.Column('balance_last_updated', sa.DateTime, nullable=True),
        sa.Column('is_active', sa.Boolean, nullable=False),
        sa.Column('created_at', sa.DateTime, nullable=False),
        sa.Column('updated_at', sa.DateTime, nullable=False),
        sa.UniqueConstraint('user_id', 'account_name', name='uq_user_account_name'),
    )
    op.create_index('idx_accounts_user_active', 'accounts', ['user_id', 'is_active'])

    op.create_table(
        'transactions',
        sa.Column('db_id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('id', sa.Uuid, nullable=False, unique=True),
        sa.Column('user_id', sa.Integer, sa.ForeignKey('users.db_id'), nullable=False),
        sa.Column('account_id', sa.Integer, sa.ForeignKey('accounts.id'), nullable=True),
        sa.Column('transaction_date', sa.DateTime, nullable=False),
        sa.Column('amount', sa.DECIMAL(15, 2), nullable=False),
        sa.Column('transaction_type', transaction_type, nullable=False),
        sa.Column('category', transaction_category, nullable=False),
        sa.Column('description', sa.String(500), nullable=False),
        sa.Column('created_at', sa.DateTime, nullable=False),
        sa.Column('updated_at', sa.DateTime, nullable=False),
    )
    op.create_index('idx_transactions_user_date', 'transactions', ['user_id', 'transaction_date'])
    op.create_index('idx_transactions_user_account', 'transactions', ['user_id', 'account_id'])
    op.create_index('idx_transactions_date', 'transactions', ['transaction_date'])

    op.create_table(
        'budgets',
        sa.Column('budget_id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer, sa.ForeignKey('users.db_id'), nullable=False),
        sa.Column('category', transaction_category, nullable=False),
        sa.Column('limit_amount', sa.DECIMAL(15, 2), nullable=False),
        sa.Column('spent', sa.DECIMAL(15, 2), nullable=False),
        sa.Column('month', sa.Integer, nullable=False),
        sa.Column('year', sa.Integer, nullable=False),
        sa.Column('created_at', sa.DateTime, nullable=False),
        sa.Column('updated_at', sa.DateTime, nullable=False),
        # One budget per category and period for a user
        sa.UniqueConstraint('user_id', 'category', 'month', 'year', name='uq_user_category_period'),
    )
    op.create_index('idx_budgets_user_period', 'budgets', ['user_id', 'year', 'month'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('idx_budgets_user_period', table_name='budgets')
    op.drop_table('budgets')
    op.drop_index('idx_transactions_date', table_name='transactions')
    op.drop_index('idx_transactions_user_account', table_name='transactions')
    op.drop_index('idx_transactions_user_date', table_name='transactions')
    op.drop_table('transactions')
    op.drop_index('idx_accounts_user_active', table_name='accounts')
    op.drop_table('accounts')
    op.drop_index('idx_users_email', table_name='users')
    op.drop_table('users')
