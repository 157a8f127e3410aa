"""create household budget tables

Revision ID: 3f9a1c2d7b10
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f9a1c2d7b10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'households',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('name', sa.String(120), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        'household_members',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('household_id', sa.Uuid(), sa.ForeignKey('households.id', ondelete='CASCADE'), nullable=False),
        sa.Column('full_name', sa.String(120), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        *_timestamps(),
    )
    op.create_index('ix_household_members_household_id', 'household_members', ['household_id'])

    op.create_table(
        'categories',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('household_id', sa.Uuid(), sa.ForeignKey('households.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('id', 'household_id', name='uq_categories_id_household'),
    )
    op.create_index('ix_categories_household_id', 'categories', ['household_id'])
    op.create_index(
        'uq_categories_household_lower_name', 'categories',
        ['household_id', sa.text('lower(name)')], unique=True,
    )

    op.create_table(
        'budgets',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('household_id', sa.Uuid(), sa.ForeignKey('households.id', ondelete='CASCADE'), nullable=False),
        sa.Column('month', sa.Date(), nullable=False),
        sa.Column('note', sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('household_id', 'month', name='uq_budgets_household_month'),
        sa.UniqueConstraint('id', 'household_id', name='uq_budgets_id_household'),
        sa.CheckConstraint('note IS NULL OR length(note) <= 500', name='ck_budgets_note_length'),
    )
    op.create_index('ix_budgets_household_id', 'budgets', ['household_id'])

    op.create_table(
        'incomes',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('household_id', sa.Uuid(), sa.ForeignKey('households.id', ondelete='CASCADE'), nullable=False),
        sa.Column('budget_id', sa.Uuid(), nullable=False),
        sa.Column('household_member_id', sa.Uuid(), sa.ForeignKey('household_members.id'), nullable=False),
        sa.Column('amount', sa.Numeric(precision=10, scale=2), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('budget_id', 'household_member_id', name='uq_incomes_budget_member'),
        sa.ForeignKeyConstraint(
            ['budget_id', 'household_id'], ['budgets.id', 'budgets.household_id'],
            ondelete='CASCADE', name='fk_incomes_budget_household',
        ),
        sa.CheckConstraint('amount > 0', name='ck_incomes_amount_positive'),
    )
    op.create_index('ix_incomes_household_id', 'incomes', ['household_id'])
    op.create_index('ix_incomes_budget_id', 'incomes', ['budget_id'])

    op.create_table(
        'planned_expenses',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('household_id', sa.Uuid(), sa.ForeignKey('households.id', ondelete='CASCADE'), nullable=False),
        sa.Column('budget_id', sa.Uuid(), nullable=False),
        sa.Column('category_id', sa.Uuid(), nullable=False),
        sa.Column('limit_amount', sa.Numeric(precision=10, scale=2), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('budget_id', 'category_id', name='uq_planned_expenses_budget_category'),
        sa.ForeignKeyConstraint(
            ['budget_id', 'household_id'], ['budgets.id', 'budgets.household_id'],
            ondelete='CASCADE', name='fk_planned_expenses_budget_household',
        ),
        sa.ForeignKeyConstraint(
            ['category_id', 'household_id'], ['categories.id', 'categories.household_id'],
            ondelete='CASCADE', name='fk_planned_expenses_category_household',
        ),
        sa.CheckConstraint('limit_amount > 0', name='ck_planned_expenses_limit_positive'),
    )
    op.create_index('ix_planned_expenses_household_id', 'planned_expenses', ['household_id'])
    op.create_index('ix_planned_expenses_budget_id', 'planned_expenses', ['budget_id'])

    op.create_table(
        'transactions',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('household_id', sa.Uuid(), sa.ForeignKey('households.id', ondelete='CASCADE'), nullable=False),
        sa.Column('budget_id', sa.Uuid(), nullable=False),
        sa.Column('category_id', sa.Uuid(), nullable=False),
        sa.Column('amount', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('transaction_date', sa.Date(), nullable=False),
        sa.Column('note', sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ['budget_id', 'household_id'], ['budgets.id', 'budgets.household_id'],
            ondelete='CASCADE', name='fk_transactions_budget_household',
        ),
        sa.ForeignKeyConstraint(
            ['category_id', 'household_id'], ['categories.id', 'categories.household_id'],
            ondelete='CASCADE', name='fk_transactions_category_household',
        ),
        sa.CheckConstraint('amount > 0', name='ck_transactions_amount_positive'),
        sa.CheckConstraint('note IS NULL OR length(note) <= 500', name='ck_transactions_note_length'),
    )
    op.create_index('ix_transactions_household_id', 'transactions', ['household_id'])
    op.create_index('ix_transactions_budget_id', 'transactions', ['budget_id'])
    op.create_index('ix_transactions_category_id', 'transactions', ['category_id'])


def downgrade() -> None:
    op.drop_table('transactions')
    op.drop_table('planned_expenses')
    op.drop_table('incomes')
    op.drop_table('budgets')
    op.drop_index('uq_categories_household_lower_name', table_name='categories')
    op.drop_table('categories')
    op.drop_table('household_members')
    op.drop_table('households')
    op.drop_table('users')
