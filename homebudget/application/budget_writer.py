"""
Budget writer: budget -> incomes -> planned expenses as one logical unit.

Every step is committed on its own, so a failure after the budget row exists
is undone by compensation: planned expenses, then incomes, then the budget
itself (reverse of creation, following foreign key direction).

Compensation is a single best-effort pass. If one of its deletes fails the
remaining ones still run, the failure is logged and the original creation
error is what the caller sees. The worst leftover is a budget row without
dependents; it shows up in listings and is removed with DeleteBudgetUseCase.
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime
from typing import Sequence

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from homebudget.infrastructure.db.models import Budget, Income, PlannedExpense
from homebudget.domain.budget import IncomeLine, PlannedExpenseLine
from homebudget.application.errors import BudgetAlreadyExists, BudgetCreateFailed

logger = logging.getLogger(__name__)


@dataclass
class WrittenBudget:
    id: uuid.UUID
    month: date
    note: str | None
    created_at: datetime
    updated_at: datetime
    incomes: list[Income]
    planned_expenses: list[PlannedExpense]


class BudgetWriter:
    """Ordered multi-table insert with compensating rollback"""

    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        household_id: uuid.UUID,
        month: date,
        note: str | None,
        incomes: Sequence[IncomeLine] = (),
        planned_expenses: Sequence[PlannedExpenseLine] = (),
    ) -> WrittenBudget:
        """
        Insert the budget and its dependent rows.

        Raises:
            BudgetAlreadyExists: (household_id, month) is taken; nothing was written
            BudgetCreateFailed: any other failure; written rows were compensated
        """
        budget = self._insert_budget(household_id, month, note)
        budget_id = budget.id

        try:
            income_rows = self._insert_incomes(household_id, budget_id, incomes) if incomes else []
            planned_rows = (
                self._insert_planned_expenses(household_id, budget_id, planned_expenses)
                if planned_expenses else []
            )
        except Exception:
            logger.exception("Dependent insert failed for budget %s, compensating", budget_id)
            self.db.rollback()
            self.compensate(household_id, budget_id)
            raise BudgetCreateFailed()

        return WrittenBudget(
            id=budget.id,
            month=budget.month,
            note=budget.note,
            created_at=budget.created_at,
            updated_at=budget.updated_at,
            incomes=income_rows,
            planned_expenses=planned_rows,
        )

    def compensate(self, household_id: uuid.UUID, budget_id: uuid.UUID) -> None:
        """Best-effort reverse-order cleanup. Never raises."""
        logger.warning("Compensating partially created budget %s", budget_id)
        steps = (
            ("planned_expenses", self._delete_planned_expenses),
            ("incomes", self._delete_incomes),
            ("budget", self._delete_budget),
        )
        for label, step in steps:
            try:
                step(household_id, budget_id)
                self.db.commit()
            except Exception:
                self.db.rollback()
                logger.exception("Compensation step '%s' failed for budget %s", label, budget_id)

    # --- inserts ---

    def _insert_budget(self, household_id: uuid.UUID, month: date, note: str | None) -> Budget:
        budget = Budget(household_id=household_id, month=month, note=note)
        self.db.add(budget)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            if self._month_taken(household_id, month):
                raise BudgetAlreadyExists()
            logger.exception("Budget insert violated a constraint for household %s", household_id)
            raise BudgetCreateFailed()
        except Exception:
            self.db.rollback()
            logger.exception("Budget insert failed for household %s", household_id)
            raise BudgetCreateFailed()
        return budget

    def _insert_incomes(
        self, household_id: uuid.UUID, budget_id: uuid.UUID, incomes: Sequence[IncomeLine]
    ) -> list[Income]:
        rows = [
            Income(
                household_id=household_id,
                budget_id=budget_id,
                household_member_id=item.household_member_id,
                amount=item.amount,
            )
            for item in incomes
        ]
        self.db.add_all(rows)
        self.db.commit()
        return rows

    def _insert_planned_expenses(
        self, household_id: uuid.UUID, budget_id: uuid.UUID, planned_expenses: Sequence[PlannedExpenseLine]
    ) -> list[PlannedExpense]:
        rows = [
            PlannedExpense(
                household_id=household_id,
                budget_id=budget_id,
                category_id=item.category_id,
                limit_amount=item.limit_amount,
            )
            for item in planned_expenses
        ]
        self.db.add_all(rows)
        self.db.commit()
        return rows

    def _month_taken(self, household_id: uuid.UUID, month: date) -> bool:
        return self.db.query(Budget.id).filter(
            Budget.household_id == household_id,
            Budget.month == month,
        ).first() is not None

    # --- compensation steps ---

    def _delete_planned_expenses(self, household_id: uuid.UUID, budget_id: uuid.UUID) -> None:
        self.db.query(PlannedExpense).filter(
            PlannedExpense.household_id == household_id,
            PlannedExpense.budget_id == budget_id,
        ).delete(synchronize_session=False)

    def _delete_incomes(self, household_id: uuid.UUID, budget_id: uuid.UUID) -> None:
        self.db.query(Income).filter(
            Income.household_id == household_id,
            Income.budget_id == budget_id,
        ).delete(synchronize_session=False)

    def _delete_budget(self, household_id: uuid.UUID, budget_id: uuid.UUID) -> None:
        self.db.query(Budget).filter(
            Budget.household_id == household_id,
            Budget.id == budget_id,
        ).delete(synchronize_session=False)
