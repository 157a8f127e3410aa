"""
SQLAlchemy ORM models

Every household-owned table carries household_id. Child tables of budgets
reference (budget_id, household_id) as a composite key, so a row can never
point at a budget of another household.
"""
import uuid
from decimal import Decimal
from datetime import date as date_type, datetime
from sqlalchemy import (
    String, Text, Integer, Boolean, Date, Numeric, TIMESTAMP, ForeignKey,
    ForeignKeyConstraint, UniqueConstraint, CheckConstraint, Index, Uuid, func,
)
from sqlalchemy.orm import Mapped, mapped_column

from homebudget.infrastructure.db.session import Base


class User(Base):
    """
    Application user (session-cookie auth)
    """
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False
    )


class Household(Base):
    """
    Tenant boundary: exactly one household per user
    """
    __tablename__ = "households"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    name: Mapped[str] = mapped_column(String(120), nullable=False)

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class HouseholdMember(Base):
    """
    Household member. Soft-deleted via is_active = false, never removed
    """
    __tablename__ = "household_members"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    household_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("households.id", ondelete="CASCADE"), nullable=False, index=True
    )
    full_name: Mapped[str] = mapped_column(String(120), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class Category(Base):
    """
    Spending category; name is unique per household (case-insensitive)
    """
    __tablename__ = "categories"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    household_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("households.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("id", "household_id", name="uq_categories_id_household"),
    )


Index(
    "uq_categories_household_lower_name",
    Category.household_id,
    func.lower(Category.name),
    unique=True,
)


class Budget(Base):
    """
    Monthly budget. month is always the first day of a calendar month
    """
    __tablename__ = "budgets"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    household_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("households.id", ondelete="CASCADE"), nullable=False, index=True
    )
    month: Mapped[date_type] = mapped_column(Date, nullable=False)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("household_id", "month", name="uq_budgets_household_month"),
        UniqueConstraint("id", "household_id", name="uq_budgets_id_household"),
        CheckConstraint("note IS NULL OR length(note) <= 500", name="ck_budgets_note_length"),
    )


class Income(Base):
    """
    One member's income within one budget
    """
    __tablename__ = "incomes"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    household_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("households.id", ondelete="CASCADE"), nullable=False, index=True
    )
    budget_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    household_member_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("household_members.id"), nullable=False
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(precision=10, scale=2), nullable=False)

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("budget_id", "household_member_id", name="uq_incomes_budget_member"),
        ForeignKeyConstraint(
            ["budget_id", "household_id"], ["budgets.id", "budgets.household_id"],
            ondelete="CASCADE", name="fk_incomes_budget_household",
        ),
        CheckConstraint("amount > 0", name="ck_incomes_amount_positive"),
    )


class PlannedExpense(Base):
    """
    Spending limit for one category within one budget
    """
    __tablename__ = "planned_expenses"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    household_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("households.id", ondelete="CASCADE"), nullable=False, index=True
    )
    budget_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    category_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    limit_amount: Mapped[Decimal] = mapped_column(Numeric(precision=10, scale=2), nullable=False)

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("budget_id", "category_id", name="uq_planned_expenses_budget_category"),
        ForeignKeyConstraint(
            ["budget_id", "household_id"], ["budgets.id", "budgets.household_id"],
            ondelete="CASCADE", name="fk_planned_expenses_budget_household",
        ),
        ForeignKeyConstraint(
            ["category_id", "household_id"], ["categories.id", "categories.household_id"],
            ondelete="CASCADE", name="fk_planned_expenses_category_household",
        ),
        CheckConstraint("limit_amount > 0", name="ck_planned_expenses_limit_positive"),
    )


class Transaction(Base):
    """
    Actual spend recorded against a budget and category
    """
    __tablename__ = "transactions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    household_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("households.id", ondelete="CASCADE"), nullable=False, index=True
    )
    budget_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    category_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(precision=10, scale=2), nullable=False)
    transaction_date: Mapped[date_type] = mapped_column(Date, nullable=False)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = (
        ForeignKeyConstraint(
            ["budget_id", "household_id"], ["budgets.id", "budgets.household_id"],
            ondelete="CASCADE", name="fk_transactions_budget_household",
        ),
        ForeignKeyConstraint(
            ["category_id", "household_id"], ["categories.id", "categories.household_id"],
            ondelete="CASCADE", name="fk_transactions_category_household",
        ),
        CheckConstraint("amount > 0", name="ck_transactions_amount_positive"),
        CheckConstraint("note IS NULL OR length(note) <= 500", name="ck_transactions_note_length"),
    )
