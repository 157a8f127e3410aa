"""
Budget lines: incomes and planned expenses of an existing budget.

Replace operations take the full desired set (last write wins): rows not in
the set are deleted, existing ones updated, new ones inserted, all in one
commit.
"""
import logging
import uuid
from decimal import Decimal
from typing import Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from homebudget.infrastructure.db.models import Budget, Category, Income, PlannedExpense
from homebudget.domain.budget import IncomeLine, PlannedExpenseLine
from homebudget.application.budget_summary import read_incomes, read_planned_expenses
from homebudget.application.references import (
    ValidateReferencesUseCase,
    reject_duplicate_categories,
    reject_duplicate_members,
)
from homebudget.utils.validation import validate_amount
from homebudget.application.errors import (
    BudgetNotFound,
    IncomeNotFound,
    OperationFailed,
    PlannedExpenseNotFound,
    INCOME_UPDATE_FAILED,
    INCOMES_LIST_FAILED,
    INCOMES_UPSERT_FAILED,
    PLANNED_EXPENSE_UPDATE_FAILED,
    PLANNED_EXPENSES_LIST_FAILED,
    PLANNED_EXPENSES_UPSERT_FAILED,
)

logger = logging.getLogger(__name__)


def _ensure_budget(db: Session, household_id: uuid.UUID, budget_id: uuid.UUID) -> None:
    exists = db.query(Budget.id).filter(
        Budget.id == budget_id,
        Budget.household_id == household_id,
    ).first()
    if exists is None:
        raise BudgetNotFound()


# ---------------------------------------------------------------------------
# Incomes
# ---------------------------------------------------------------------------


class ListBudgetIncomesService:
    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        household_id: uuid.UUID,
        budget_id: uuid.UUID,
        include_inactive_members: bool = False,
    ) -> list:
        try:
            _ensure_budget(self.db, household_id, budget_id)
            return read_incomes(self.db, household_id, budget_id, include_inactive_members)
        except SQLAlchemyError:
            logger.exception("Failed to list incomes of budget %s", budget_id)
            raise OperationFailed(INCOMES_LIST_FAILED, "Failed to retrieve incomes")


class ReplaceBudgetIncomesUseCase:
    """Use case: make the budget's incomes equal to the given set"""

    def __init__(self, db: Session):
        self.db = db
        self.references = ValidateReferencesUseCase(db)

    def execute(self, household_id: uuid.UUID, budget_id: uuid.UUID, incomes: Sequence[IncomeLine]) -> list:
        """
        Raises:
            InvalidAmount, DuplicateReference(DUPLICATE_MEMBER), BudgetNotFound,
            InvalidReference(INVALID_MEMBER), OperationFailed(INCOMES_UPSERT_FAILED)
        """
        reject_duplicate_members(item.household_member_id for item in incomes)
        wanted = {item.household_member_id: validate_amount(item.amount) for item in incomes}

        _ensure_budget(self.db, household_id, budget_id)
        self.references.validate_members(household_id, wanted.keys())

        try:
            existing = {
                row.household_member_id: row
                for row in self.db.query(Income).filter(
                    Income.household_id == household_id,
                    Income.budget_id == budget_id,
                )
            }

            for member_id, row in existing.items():
                if member_id not in wanted:
                    self.db.delete(row)

            for member_id, amount in wanted.items():
                row = existing.get(member_id)
                if row is None:
                    self.db.add(Income(
                        household_id=household_id,
                        budget_id=budget_id,
                        household_member_id=member_id,
                        amount=amount,
                    ))
                elif row.amount != amount:
                    row.amount = amount

            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to replace incomes of budget %s", budget_id)
            raise OperationFailed(INCOMES_UPSERT_FAILED, "Failed to save incomes")

        logger.info("Budget %s incomes replaced: %d rows", budget_id, len(wanted))
        return read_incomes(self.db, household_id, budget_id)


class UpdateBudgetIncomeUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        household_id: uuid.UUID,
        budget_id: uuid.UUID,
        income_id: uuid.UUID,
        amount: Decimal,
    ) -> Income:
        amount = validate_amount(amount)
        _ensure_budget(self.db, household_id, budget_id)

        income = self.db.query(Income).filter(
            Income.id == income_id,
            Income.budget_id == budget_id,
            Income.household_id == household_id,
        ).first()
        if income is None:
            raise IncomeNotFound()

        try:
            income.amount = amount
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to update income %s", income_id)
            raise OperationFailed(INCOME_UPDATE_FAILED, "Failed to update income")
        return income


# ---------------------------------------------------------------------------
# Planned expenses
# ---------------------------------------------------------------------------


class ListPlannedExpensesService:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, household_id: uuid.UUID, budget_id: uuid.UUID) -> list:
        try:
            _ensure_budget(self.db, household_id, budget_id)
            return read_planned_expenses(self.db, household_id, budget_id)
        except SQLAlchemyError:
            logger.exception("Failed to list planned expenses of budget %s", budget_id)
            raise OperationFailed(PLANNED_EXPENSES_LIST_FAILED, "Failed to retrieve planned expenses")


class ReplacePlannedExpensesUseCase:
    """Use case: make the budget's planned expenses equal to the given set"""

    def __init__(self, db: Session):
        self.db = db
        self.references = ValidateReferencesUseCase(db)

    def execute(
        self,
        household_id: uuid.UUID,
        budget_id: uuid.UUID,
        planned_expenses: Sequence[PlannedExpenseLine],
    ) -> list:
        reject_duplicate_categories(item.category_id for item in planned_expenses)
        wanted = {
            item.category_id: validate_amount(item.limit_amount, "limitAmount")
            for item in planned_expenses
        }

        _ensure_budget(self.db, household_id, budget_id)
        self.references.validate_categories(household_id, wanted.keys())

        try:
            existing = {
                row.category_id: row
                for row in self.db.query(PlannedExpense).filter(
                    PlannedExpense.household_id == household_id,
                    PlannedExpense.budget_id == budget_id,
                )
            }

            for category_id, row in existing.items():
                if category_id not in wanted:
                    self.db.delete(row)

            for category_id, limit_amount in wanted.items():
                row = existing.get(category_id)
                if row is None:
                    self.db.add(PlannedExpense(
                        household_id=household_id,
                        budget_id=budget_id,
                        category_id=category_id,
                        limit_amount=limit_amount,
                    ))
                elif row.limit_amount != limit_amount:
                    row.limit_amount = limit_amount

            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to replace planned expenses of budget %s", budget_id)
            raise OperationFailed(PLANNED_EXPENSES_UPSERT_FAILED, "Failed to save planned expenses")

        logger.info("Budget %s planned expenses replaced: %d rows", budget_id, len(wanted))
        return read_planned_expenses(self.db, household_id, budget_id)


class UpdatePlannedExpenseUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        household_id: uuid.UUID,
        budget_id: uuid.UUID,
        planned_expense_id: uuid.UUID,
        limit_amount: Decimal,
    ):
        limit_amount = validate_amount(limit_amount, "limitAmount")
        _ensure_budget(self.db, household_id, budget_id)

        planned = self.db.query(PlannedExpense).filter(
            PlannedExpense.id == planned_expense_id,
            PlannedExpense.budget_id == budget_id,
            PlannedExpense.household_id == household_id,
        ).first()
        if planned is None:
            raise PlannedExpenseNotFound()

        try:
            planned.limit_amount = limit_amount
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to update planned expense %s", planned_expense_id)
            raise OperationFailed(PLANNED_EXPENSE_UPDATE_FAILED, "Failed to update planned expense")

        return (
            self.db.query(
                PlannedExpense.id,
                PlannedExpense.category_id,
                PlannedExpense.limit_amount,
                PlannedExpense.created_at,
                PlannedExpense.updated_at,
                Category.name.label("category_name"),
            )
            .join(Category, Category.id == PlannedExpense.category_id)
            .filter(PlannedExpense.id == planned_expense_id)
            .one()
        )
