"""
Tests for replacing / updating incomes and planned expenses
"""
import uuid
import pytest
from decimal import Decimal

from homebudget.infrastructure.db.models import Income, PlannedExpense
from homebudget.domain.budget import IncomeLine, PlannedExpenseLine
from homebudget.application.budgets import CreateBudgetUseCase
from homebudget.application.budget_lines import (
    ListBudgetIncomesService,
    ListPlannedExpensesService,
    ReplaceBudgetIncomesUseCase,
    ReplacePlannedExpensesUseCase,
    UpdateBudgetIncomeUseCase,
    UpdatePlannedExpenseUseCase,
)
from homebudget.application.errors import (
    BudgetNotFound,
    DuplicateReference,
    IncomeNotFound,
    InvalidAmount,
    InvalidReference,
    PlannedExpenseNotFound,
)


@pytest.fixture
def budget(db_session, household):
    return CreateBudgetUseCase(db_session).execute(
        household["household_id"],
        month="2025-03",
        incomes=[IncomeLine(household["alice"], Decimal("5000"))],
        planned_expenses=[PlannedExpenseLine(household["food"], Decimal("1500"))],
    )


class TestIncomes:
    def test_list(self, db_session, household, budget):
        rows = ListBudgetIncomesService(db_session).execute(household["household_id"], budget.id)
        assert [(r.household_member_id, r.amount) for r in rows] == [(household["alice"], Decimal("5000"))]

    def test_replace_full_set(self, db_session, household, budget):
        original_id = budget.incomes[0].id

        rows = ReplaceBudgetIncomesUseCase(db_session).execute(
            household["household_id"],
            budget.id,
            [
                IncomeLine(household["alice"], Decimal("5200")),
                IncomeLine(household["bob"], Decimal("4500")),
            ],
        )

        by_member = {r.household_member_id: r for r in rows}
        assert by_member[household["alice"]].amount == Decimal("5200")
        assert by_member[household["alice"]].id == original_id  # updated in place
        assert by_member[household["bob"]].amount == Decimal("4500")

    def test_replace_removes_missing_rows(self, db_session, household, budget):
        ReplaceBudgetIncomesUseCase(db_session).execute(
            household["household_id"], budget.id, [IncomeLine(household["bob"], Decimal("100"))]
        )
        members = [r.household_member_id for r in db_session.query(Income).all()]
        assert members == [household["bob"]]

    def test_replace_with_empty_set(self, db_session, household, budget):
        rows = ReplaceBudgetIncomesUseCase(db_session).execute(household["household_id"], budget.id, [])
        assert rows == []
        assert db_session.query(Income).count() == 0

    def test_duplicate_member(self, db_session, household, budget):
        with pytest.raises(DuplicateReference) as exc:
            ReplaceBudgetIncomesUseCase(db_session).execute(
                household["household_id"],
                budget.id,
                [IncomeLine(household["bob"], Decimal("1")), IncomeLine(household["bob"], Decimal("2"))],
            )
        assert exc.value.code == "DUPLICATE_MEMBER"

    def test_inactive_member(self, db_session, household, budget):
        with pytest.raises(InvalidReference):
            ReplaceBudgetIncomesUseCase(db_session).execute(
                household["household_id"], budget.id, [IncomeLine(household["carol"], Decimal("1"))]
            )
        assert db_session.query(Income).count() == 1

    def test_unknown_budget(self, db_session, household):
        with pytest.raises(BudgetNotFound):
            ReplaceBudgetIncomesUseCase(db_session).execute(household["household_id"], uuid.uuid4(), [])

    def test_update_amount(self, db_session, household, budget):
        income = UpdateBudgetIncomeUseCase(db_session).execute(
            household["household_id"], budget.id, budget.incomes[0].id, Decimal("6000.50")
        )
        assert income.amount == Decimal("6000.50")

    def test_update_missing_income(self, db_session, household, budget):
        with pytest.raises(IncomeNotFound):
            UpdateBudgetIncomeUseCase(db_session).execute(
                household["household_id"], budget.id, uuid.uuid4(), Decimal("1")
            )

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5"), Decimal("10000000"), Decimal("1.001")])
    def test_update_invalid_amount(self, db_session, household, budget, amount):
        with pytest.raises(InvalidAmount):
            UpdateBudgetIncomeUseCase(db_session).execute(
                household["household_id"], budget.id, budget.incomes[0].id, amount
            )


class TestPlannedExpenses:
    def test_list_includes_category_name(self, db_session, household, budget):
        rows = ListPlannedExpensesService(db_session).execute(household["household_id"], budget.id)
        assert [(r.category_name, r.limit_amount) for r in rows] == [("Food", Decimal("1500"))]

    def test_replace_full_set(self, db_session, household, budget):
        rows = ReplacePlannedExpensesUseCase(db_session).execute(
            household["household_id"],
            budget.id,
            [
                PlannedExpenseLine(household["transport"], Decimal("800")),
                PlannedExpenseLine(household["fun"], Decimal("200")),
            ],
        )
        assert sorted(r.category_name for r in rows) == ["Fun", "Transport"]
        assert db_session.query(PlannedExpense).count() == 2

    def test_duplicate_category(self, db_session, household, budget):
        with pytest.raises(DuplicateReference) as exc:
            ReplacePlannedExpensesUseCase(db_session).execute(
                household["household_id"],
                budget.id,
                [
                    PlannedExpenseLine(household["food"], Decimal("1")),
                    PlannedExpenseLine(household["food"], Decimal("2")),
                ],
            )
        assert exc.value.code == "DUPLICATE_CATEGORY"

    def test_foreign_category(self, db_session, household, other_household, budget):
        with pytest.raises(InvalidReference) as exc:
            ReplacePlannedExpensesUseCase(db_session).execute(
                household["household_id"],
                budget.id,
                [PlannedExpenseLine(other_household["food"], Decimal("1"))],
            )
        assert exc.value.code == "INVALID_CATEGORY"

    def test_update_limit(self, db_session, household, budget):
        row = UpdatePlannedExpenseUseCase(db_session).execute(
            household["household_id"], budget.id, budget.planned_expenses[0].id, Decimal("1750")
        )
        assert row.limit_amount == Decimal("1750")
        assert row.category_name == "Food"

    def test_update_missing(self, db_session, household, budget):
        with pytest.raises(PlannedExpenseNotFound):
            UpdatePlannedExpenseUseCase(db_session).execute(
                household["household_id"], budget.id, uuid.uuid4(), Decimal("1")
            )
