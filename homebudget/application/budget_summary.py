"""
Budget summary aggregation.

Single budget: incomes, planned expenses and (optionally) transactions are
read independently, then folded into totals and a per-category breakdown.

Batch (list view): one read per table for all requested budget ids, folded
into a map that is seeded with zero totals for every id. free_funds is
derived only after all folds are done.
"""
import uuid
from dataclasses import dataclass
from typing import Iterable, Sequence

from sqlalchemy.orm import Session, sessionmaker

from homebudget.infrastructure.db.models import (
    Income, PlannedExpense, Transaction, HouseholdMember, Category,
)
from homebudget.infrastructure.db.reads import run_reads
from homebudget.domain.budget import BudgetSummary, BudgetSummaryTotals, CategorySummary
from homebudget.utils.money import ZERO


@dataclass
class BudgetReadSet:
    """Rows read for one budget; transactions is None when not requested"""
    incomes: list
    planned_expenses: list
    transactions: list | None


# ---------------------------------------------------------------------------
# Pure computation
# ---------------------------------------------------------------------------


def compute_totals(
    incomes: Iterable,
    planned_expenses: Iterable,
    transactions: Iterable | None = None,
) -> BudgetSummaryTotals:
    """Rows need .amount (incomes, transactions) and .limit_amount (planned)."""
    totals = BudgetSummaryTotals(
        total_income=sum((row.amount for row in incomes), ZERO),
        total_planned=sum((row.limit_amount for row in planned_expenses), ZERO),
        total_spent=sum((row.amount for row in transactions), ZERO) if transactions is not None else ZERO,
    )
    totals.derive_free_funds()
    return totals


def compute_per_category(planned_expenses: Iterable, transactions: Iterable) -> list[CategorySummary]:
    """
    One entry per planned expense; spend in categories without a planned
    expense is left out of the breakdown.

    Planned rows need .category_id, .category_name, .limit_amount.
    """
    spent_by_category: dict = {}
    for row in transactions:
        spent_by_category[row.category_id] = spent_by_category.get(row.category_id, ZERO) + row.amount

    return [
        CategorySummary.build(
            category_id=row.category_id,
            name=row.category_name,
            spent=spent_by_category.get(row.category_id, ZERO),
            limit_amount=row.limit_amount,
        )
        for row in planned_expenses
    ]


def build_summary(read_set: BudgetReadSet) -> BudgetSummary:
    totals = compute_totals(read_set.incomes, read_set.planned_expenses, read_set.transactions)
    per_category = None
    if read_set.transactions is not None:
        per_category = compute_per_category(read_set.planned_expenses, read_set.transactions)
    return BudgetSummary.from_totals(totals, per_category)


def fold_batch_totals(
    budget_ids: Iterable,
    incomes: Iterable,
    planned_expenses: Iterable,
    transactions: Iterable,
) -> dict:
    """
    Seed -> fold -> derive.

    Rows need .budget_id plus .amount / .limit_amount. Rows for ids that
    were not requested are ignored.
    """
    summaries = {budget_id: BudgetSummaryTotals() for budget_id in budget_ids}

    for row in incomes:
        summary = summaries.get(row.budget_id)
        if summary is not None:
            summary.total_income += row.amount or ZERO

    for row in planned_expenses:
        summary = summaries.get(row.budget_id)
        if summary is not None:
            summary.total_planned += row.limit_amount or ZERO

    for row in transactions:
        summary = summaries.get(row.budget_id)
        if summary is not None:
            summary.total_spent += row.amount or ZERO

    for summary in summaries.values():
        summary.derive_free_funds()

    return summaries


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


class BudgetSummaryAggregator:
    """Reads the three record sets of a budget (or a batch) and folds them"""

    def __init__(self, db: Session, session_factory: sessionmaker | None = None, max_workers: int = 3):
        self.db = db
        self.session_factory = session_factory
        self.max_workers = max_workers

    def read_budget(
        self,
        household_id: uuid.UUID,
        budget_id: uuid.UUID,
        include_transactions: bool = False,
        include_inactive_members: bool = False,
    ) -> BudgetReadSet:
        readers = [
            lambda s: read_incomes(s, household_id, budget_id, include_inactive_members),
            lambda s: read_planned_expenses(s, household_id, budget_id),
        ]
        if include_transactions:
            readers.append(lambda s: read_transactions(s, household_id, budget_id))

        results = run_reads(self.db, readers, self.session_factory, self.max_workers)
        return BudgetReadSet(
            incomes=results[0],
            planned_expenses=results[1],
            transactions=results[2] if include_transactions else None,
        )

    def summarize(
        self,
        household_id: uuid.UUID,
        budget_id: uuid.UUID,
        include_transactions: bool = False,
        include_inactive_members: bool = False,
    ) -> tuple[BudgetReadSet, BudgetSummary]:
        read_set = self.read_budget(household_id, budget_id, include_transactions, include_inactive_members)
        return read_set, build_summary(read_set)

    def summaries_for(self, household_id: uuid.UUID, budget_ids: Sequence[uuid.UUID]) -> dict:
        """Totals for every requested id; ids without rows get zeros."""
        if not budget_ids:
            return {}

        ids = list(budget_ids)
        readers = [
            lambda s: s.query(Income.budget_id, Income.amount).filter(
                Income.household_id == household_id,
                Income.budget_id.in_(ids),
            ).all(),
            lambda s: s.query(PlannedExpense.budget_id, PlannedExpense.limit_amount).filter(
                PlannedExpense.household_id == household_id,
                PlannedExpense.budget_id.in_(ids),
            ).all(),
            lambda s: s.query(Transaction.budget_id, Transaction.amount).filter(
                Transaction.household_id == household_id,
                Transaction.budget_id.in_(ids),
            ).all(),
        ]
        incomes, planned, transactions = run_reads(self.db, readers, self.session_factory, self.max_workers)
        return fold_batch_totals(ids, incomes, planned, transactions)


def read_incomes(db: Session, household_id, budget_id, include_inactive_members: bool = False) -> list:
    query = (
        db.query(
            Income.id,
            Income.household_member_id,
            Income.amount,
            Income.created_at,
            Income.updated_at,
        )
        .join(HouseholdMember, HouseholdMember.id == Income.household_member_id)
        .filter(
            Income.household_id == household_id,
            Income.budget_id == budget_id,
        )
    )
    if not include_inactive_members:
        query = query.filter(HouseholdMember.is_active == True)
    return query.order_by(Income.created_at.asc(), Income.id.asc()).all()


def read_planned_expenses(db: Session, household_id, budget_id) -> list:
    return (
        db.query(
            PlannedExpense.id,
            PlannedExpense.category_id,
            PlannedExpense.limit_amount,
            PlannedExpense.created_at,
            PlannedExpense.updated_at,
            Category.name.label("category_name"),
        )
        .join(Category, Category.id == PlannedExpense.category_id)
        .filter(
            PlannedExpense.household_id == household_id,
            PlannedExpense.budget_id == budget_id,
        )
        .order_by(PlannedExpense.created_at.asc(), PlannedExpense.id.asc())
        .all()
    )


def read_transactions(db: Session, household_id, budget_id) -> list:
    return db.query(Transaction.category_id, Transaction.amount).filter(
        Transaction.household_id == household_id,
        Transaction.budget_id == budget_id,
    ).all()
