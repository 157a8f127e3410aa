"""
Tests for budget creation: validation order, uniqueness and compensation
"""
import logging
import uuid
import pytest
from datetime import date
from decimal import Decimal

from homebudget.infrastructure.db.models import Budget, Income, PlannedExpense
from homebudget.domain.budget import IncomeLine, PlannedExpenseLine
from homebudget.application.budgets import CreateBudgetUseCase
from homebudget.application.budget_writer import BudgetWriter
from homebudget.application.references import (
    ValidateReferencesUseCase,
    reject_duplicate_categories,
    reject_duplicate_members,
)
from homebudget.application.errors import (
    BudgetAlreadyExists,
    BudgetCreateFailed,
    DuplicateReference,
    InvalidAmount,
    InvalidPayload,
    InvalidReference,
    ValidationFailed,
)


def _counts(db_session) -> tuple[int, int, int]:
    return (
        db_session.query(Budget).count(),
        db_session.query(Income).count(),
        db_session.query(PlannedExpense).count(),
    )


def _create_march(db_session, household, **overrides):
    params = dict(
        month="2025-03",
        note="  March plan  ",
        incomes=[
            IncomeLine(household["alice"], Decimal("5000")),
            IncomeLine(household["bob"], Decimal("4500")),
        ],
        planned_expenses=[
            PlannedExpenseLine(household["food"], Decimal("1500")),
            PlannedExpenseLine(household["transport"], Decimal("800")),
        ],
    )
    params.update(overrides)
    return CreateBudgetUseCase(db_session).execute(household["household_id"], **params)


class TestCreateBudget:
    def test_creates_budget_with_lines(self, db_session, household):
        detail = _create_march(db_session, household)

        assert detail.month == date(2025, 3, 1)
        assert detail.note == "March plan"
        assert detail.created_at is not None
        assert len(detail.incomes) == 2
        assert len(detail.planned_expenses) == 2
        assert _counts(db_session) == (1, 2, 2)

    def test_summary_built_from_written_rows(self, db_session, household):
        detail = _create_march(db_session, household)

        assert detail.summary.total_income == Decimal("9500")
        assert detail.summary.total_planned == Decimal("2300")
        assert detail.summary.total_spent == Decimal("0")
        assert detail.summary.free_funds == Decimal("7200")
        assert detail.summary.progress == 0.0
        assert detail.summary.per_category is None

    def test_month_variants_share_key(self, db_session, household):
        _create_march(db_session, household, month="2025-03-15")

        with pytest.raises(BudgetAlreadyExists):
            _create_march(db_session, household, month="2025-03-01")

    def test_budget_without_lines(self, db_session, household):
        detail = _create_march(db_session, household, incomes=[], planned_expenses=[])
        assert detail.summary.total_income == Decimal("0")
        assert _counts(db_session) == (1, 0, 0)

    def test_long_note_truncated(self, db_session, household):
        detail = _create_march(db_session, household, note="n" * 700)
        assert len(detail.note) == 500


class TestDuplicateMonth:
    def test_second_create_conflicts_without_extra_rows(self, db_session, household):
        _create_march(db_session, household)

        with pytest.raises(BudgetAlreadyExists):
            _create_march(db_session, household)

        assert _counts(db_session) == (1, 2, 2)

    def test_same_month_allowed_in_other_household(self, db_session, household, other_household):
        _create_march(db_session, household)
        CreateBudgetUseCase(db_session).execute(other_household["household_id"], month="2025-03")

        assert db_session.query(Budget).count() == 2


class TestValidationPrecedence:
    def test_invalid_member_beats_duplicate_month(self, db_session, household):
        _create_march(db_session, household)

        with pytest.raises(InvalidReference) as exc:
            _create_march(db_session, household, incomes=[IncomeLine(uuid.uuid4(), Decimal("10"))])

        assert exc.value.code == "INVALID_MEMBER"

    def test_invalid_member_checked_before_invalid_category(self, db_session, household):
        with pytest.raises(InvalidReference) as exc:
            _create_march(
                db_session, household,
                incomes=[IncomeLine(uuid.uuid4(), Decimal("10"))],
                planned_expenses=[PlannedExpenseLine(uuid.uuid4(), Decimal("10"))],
            )
        assert exc.value.code == "INVALID_MEMBER"

    def test_inactive_member_rejected(self, db_session, household):
        with pytest.raises(InvalidReference) as exc:
            _create_march(db_session, household, incomes=[IncomeLine(household["carol"], Decimal("10"))])

        assert exc.value.code == "INVALID_MEMBER"
        assert _counts(db_session) == (0, 0, 0)

    def test_foreign_category_rejected(self, db_session, household, other_household):
        with pytest.raises(InvalidReference) as exc:
            _create_march(
                db_session, household,
                planned_expenses=[PlannedExpenseLine(other_household["food"], Decimal("10"))],
            )

        assert exc.value.code == "INVALID_CATEGORY"
        assert _counts(db_session) == (0, 0, 0)

    def test_invalid_amount_rejected_before_write(self, db_session, household):
        with pytest.raises(InvalidAmount):
            _create_march(db_session, household, incomes=[IncomeLine(household["alice"], Decimal("10.555"))])
        assert _counts(db_session) == (0, 0, 0)

    def test_duplicate_member_rejected_before_write(self, db_session, household):
        with pytest.raises(DuplicateReference) as exc:
            _create_march(
                db_session,
                household,
                incomes=[
                    IncomeLine(household["alice"], Decimal("10")),
                    IncomeLine(household["alice"], Decimal("20")),
                ],
            )
        assert isinstance(exc.value, ValidationFailed)
        assert exc.value.code == "DUPLICATE_MEMBER"
        assert _counts(db_session) == (0, 0, 0)

    def test_duplicate_category_rejected_before_write(self, db_session, household):
        with pytest.raises(DuplicateReference) as exc:
            _create_march(
                db_session,
                household,
                planned_expenses=[
                    PlannedExpenseLine(household["food"], Decimal("100")),
                    PlannedExpenseLine(household["food"], Decimal("200")),
                ],
            )
        assert exc.value.code == "DUPLICATE_CATEGORY"
        assert _counts(db_session) == (0, 0, 0)

    def test_duplicate_reported_even_when_month_taken(self, db_session, household):
        _create_march(db_session, household)
        with pytest.raises(DuplicateReference):
            _create_march(
                db_session,
                household,
                incomes=[
                    IncomeLine(household["bob"], Decimal("1")),
                    IncomeLine(household["bob"], Decimal("2")),
                ],
            )
        assert _counts(db_session) == (1, 2, 2)

    def test_unparseable_month_rejected_after_references(self, db_session, household):
        with pytest.raises(InvalidPayload):
            _create_march(db_session, household, month="someday")
        assert _counts(db_session) == (0, 0, 0)


class TestReferenceValidator:
    def test_empty_lists_need_no_query(self, db_session, household):
        ValidateReferencesUseCase(db_session).execute(household["household_id"], [], [])

    def test_repeated_id_checked_for_existence_only(self, db_session, household):
        # Repeats are rejected earlier by reject_duplicate_members.
        ValidateReferencesUseCase(db_session).execute(
            household["household_id"],
            member_ids=[household["alice"], household["alice"]],
        )

    def test_reject_duplicate_members(self, household):
        reject_duplicate_members([household["alice"], household["bob"]])
        with pytest.raises(DuplicateReference) as exc:
            reject_duplicate_members([household["alice"], household["bob"], household["alice"]])
        assert exc.value.code == "DUPLICATE_MEMBER"

    def test_reject_duplicate_categories(self, household):
        with pytest.raises(DuplicateReference) as exc:
            reject_duplicate_categories([household["food"], household["food"]])
        assert exc.value.code == "DUPLICATE_CATEGORY"


class TestCompensation:
    def test_planned_expense_failure_removes_everything(self, db_session, household, monkeypatch):
        def _boom(self, *args, **kwargs):
            raise RuntimeError("storage went away")

        monkeypatch.setattr(BudgetWriter, "_insert_planned_expenses", _boom)

        with pytest.raises(BudgetCreateFailed) as exc:
            _create_march(db_session, household)

        assert exc.value.code == "BUDGET_CREATE_FAILED"
        assert _counts(db_session) == (0, 0, 0)

    def test_month_reusable_after_compensation(self, db_session, household, monkeypatch):
        original = BudgetWriter._insert_planned_expenses

        def _boom(self, *args, **kwargs):
            raise RuntimeError("storage went away")

        monkeypatch.setattr(BudgetWriter, "_insert_planned_expenses", _boom)
        with pytest.raises(BudgetCreateFailed):
            _create_march(db_session, household)

        monkeypatch.setattr(BudgetWriter, "_insert_planned_expenses", original)
        detail = _create_march(db_session, household)
        assert detail.month == date(2025, 3, 1)

    def test_failed_compensation_step_does_not_mask_error(self, db_session, household, monkeypatch, caplog):
        def _boom(self, *args, **kwargs):
            raise RuntimeError("storage went away")

        def _delete_fails(self, *args, **kwargs):
            raise RuntimeError("cannot delete incomes")

        monkeypatch.setattr(BudgetWriter, "_insert_planned_expenses", _boom)
        monkeypatch.setattr(BudgetWriter, "_delete_incomes", _delete_fails)

        with caplog.at_level(logging.ERROR, logger="homebudget.application.budget_writer"):
            with pytest.raises(BudgetCreateFailed):
                _create_march(db_session, household)

        assert "Compensation step 'incomes' failed" in caplog.text
        # the budget delete still runs and cascades to the incomes left behind
        assert _counts(db_session) == (0, 0, 0)
