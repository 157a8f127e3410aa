"""
Budget use cases: create, detail, list, metadata update, delete, summary
and the current-month dashboard.

The household id is always an explicit argument; every query below filters
on it.
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Callable, Sequence

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from homebudget.infrastructure.db.models import Budget, Income, PlannedExpense, Transaction
from homebudget.domain.budget import (
    BudgetSummary,
    CategorySummary,
    IncomeLine,
    PlannedExpenseLine,
    BUDGET_SORTS,
    BUDGET_STATUS_FILTERS,
    SORT_MONTH_ASC,
    STATUS_CURRENT,
    STATUS_PAST,
    STATUS_UPCOMING,
    first_day_of_month,
    month_key_to_date,
    normalize_month,
    normalize_note,
)
from homebudget.application.budget_summary import (
    BudgetReadSet,
    BudgetSummaryAggregator,
    build_summary,
)
from homebudget.application.budget_writer import BudgetWriter
from homebudget.utils.validation import validate_amount
from homebudget.application.references import (
    ValidateReferencesUseCase,
    reject_duplicate_categories,
    reject_duplicate_members,
)
from homebudget.application.pagination import Page, PaginationMeta, check_page_args
from homebudget.application.errors import (
    BudgetNotFound,
    InvalidPayload,
    OperationFailed,
    BUDGET_DELETE_FAILED,
    BUDGET_FETCH_FAILED,
    BUDGET_SUMMARY_FETCH_FAILED,
    BUDGET_UPDATE_FAILED,
    BUDGETS_LIST_FAILED,
    DASHBOARD_FETCH_FAILED,
)

logger = logging.getLogger(__name__)


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


@dataclass
class BudgetDetail:
    id: uuid.UUID
    month: date
    note: str | None
    created_at: datetime
    updated_at: datetime
    incomes: list
    planned_expenses: list
    summary: BudgetSummary


@dataclass
class BudgetListItem:
    id: uuid.UUID
    month: date
    note: str | None
    created_at: datetime
    updated_at: datetime
    summary: BudgetSummary


@dataclass
class BudgetSummaryView:
    budget_id: uuid.UUID
    month: date
    summary: BudgetSummary


@dataclass
class DashboardSummary:
    current_budget_id: uuid.UUID
    month: date
    total_income: object
    total_planned: object
    total_spent: object
    free_funds: object
    progress: float
    categories: list[CategorySummary]


def _parse_month(value: str) -> date:
    """normalize_month never fails; turning the key into a date can."""
    try:
        return month_key_to_date(normalize_month(value.strip()))
    except ValueError:
        raise InvalidPayload("Month must be in YYYY-MM or YYYY-MM-DD format")


def _get_budget(db: Session, household_id: uuid.UUID, budget_id: uuid.UUID) -> Budget | None:
    return db.query(Budget).filter(
        Budget.id == budget_id,
        Budget.household_id == household_id,
    ).first()


def _detail(budget: Budget, read_set: BudgetReadSet, summary: BudgetSummary) -> BudgetDetail:
    return BudgetDetail(
        id=budget.id,
        month=budget.month,
        note=budget.note,
        created_at=budget.created_at,
        updated_at=budget.updated_at,
        incomes=read_set.incomes,
        planned_expenses=read_set.planned_expenses,
        summary=summary,
    )


class CreateBudgetUseCase:
    """
    Use case: create a budget with its incomes and planned expenses

    Order: duplicates -> amounts -> references -> month -> note -> writer. Reference errors are
    raised before anything touches the database, so an invalid member on a
    month that already has a budget reports INVALID_MEMBER, not a conflict.
    """

    def __init__(self, db: Session):
        self.db = db
        self.references = ValidateReferencesUseCase(db)
        self.writer = BudgetWriter(db)

    def execute(
        self,
        household_id: uuid.UUID,
        month: str,
        note: str | None = None,
        incomes: Sequence[IncomeLine] = (),
        planned_expenses: Sequence[PlannedExpenseLine] = (),
    ) -> BudgetDetail:
        reject_duplicate_members(item.household_member_id for item in incomes)
        reject_duplicate_categories(item.category_id for item in planned_expenses)
        incomes = [
            IncomeLine(item.household_member_id, validate_amount(item.amount))
            for item in incomes
        ]
        planned_expenses = [
            PlannedExpenseLine(item.category_id, validate_amount(item.limit_amount, "limitAmount"))
            for item in planned_expenses
        ]

        self.references.execute(
            household_id,
            member_ids=[item.household_member_id for item in incomes],
            category_ids=[item.category_id for item in planned_expenses],
        )

        month_date = _parse_month(month)
        written = self.writer.create(
            household_id,
            month_date,
            normalize_note(note),
            incomes=incomes,
            planned_expenses=planned_expenses,
        )
        logger.info(
            "Budget %s created for household %s (%s): %d incomes, %d planned expenses",
            written.id, household_id, month_date, len(written.incomes), len(written.planned_expenses),
        )

        # Built from the rows just written; nothing is read back.
        read_set = BudgetReadSet(
            incomes=written.incomes,
            planned_expenses=written.planned_expenses,
            transactions=None,
        )
        return BudgetDetail(
            id=written.id,
            month=written.month,
            note=written.note,
            created_at=written.created_at,
            updated_at=written.updated_at,
            incomes=written.incomes,
            planned_expenses=written.planned_expenses,
            summary=build_summary(read_set),
        )


class GetBudgetDetailService:
    """Service: budget with incomes, planned expenses and a computed summary"""

    def __init__(self, db: Session, session_factory: sessionmaker | None = None, max_workers: int = 3):
        self.db = db
        self.aggregator = BudgetSummaryAggregator(db, session_factory, max_workers)

    def execute(
        self,
        household_id: uuid.UUID,
        budget_id: uuid.UUID,
        include_transactions: bool = False,
        include_inactive_members: bool = False,
    ) -> BudgetDetail:
        try:
            budget = _get_budget(self.db, household_id, budget_id)
            if budget is None:
                raise BudgetNotFound()

            read_set, summary = self.aggregator.summarize(
                household_id,
                budget_id,
                include_transactions=include_transactions,
                include_inactive_members=include_inactive_members,
            )
        except SQLAlchemyError:
            logger.exception("Failed to fetch budget %s", budget_id)
            raise OperationFailed(BUDGET_FETCH_FAILED, "Failed to retrieve budget detail")

        return _detail(budget, read_set, summary)


class ListBudgetsService:
    """Service: paginated, filtered list of budgets with optional totals"""

    def __init__(
        self,
        db: Session,
        session_factory: sessionmaker | None = None,
        max_workers: int = 3,
        today: Callable[[], date] = utc_today,
        max_page_size: int = 100,
    ):
        self.db = db
        self.aggregator = BudgetSummaryAggregator(db, session_factory, max_workers)
        self.today = today
        self.max_page_size = max_page_size

    def execute(
        self,
        household_id: uuid.UUID,
        month: str | None = None,
        status: str = STATUS_CURRENT,
        include_summary: bool = False,
        page: int = 1,
        page_size: int = 12,
        sort: str = "month_desc",
    ) -> Page:
        if status not in BUDGET_STATUS_FILTERS:
            raise InvalidPayload(f"Status must be one of: {', '.join(BUDGET_STATUS_FILTERS)}")
        if sort not in BUDGET_SORTS:
            raise InvalidPayload(f"Sort must be one of: {', '.join(BUDGET_SORTS)}")
        offset = check_page_args(page, page_size, self.max_page_size)

        query = self.db.query(Budget).filter(Budget.household_id == household_id)

        if month and month.strip():
            query = query.filter(Budget.month == _parse_month(month))

        current_month = first_day_of_month(self.today())
        if status == STATUS_CURRENT:
            query = query.filter(Budget.month == current_month)
        elif status == STATUS_PAST:
            query = query.filter(Budget.month < current_month)
        elif status == STATUS_UPCOMING:
            query = query.filter(Budget.month > current_month)
        # "all" - no filter

        if sort == SORT_MONTH_ASC:
            query = query.order_by(Budget.month.asc())
        else:
            query = query.order_by(Budget.month.desc())

        try:
            total_items = query.order_by(None).count()
            budgets = query.offset(offset).limit(page_size).all()

            totals_by_id = {}
            if include_summary and budgets:
                totals_by_id = self.aggregator.summaries_for(household_id, [b.id for b in budgets])
        except SQLAlchemyError:
            logger.exception("Failed to list budgets for household %s", household_id)
            raise OperationFailed(BUDGETS_LIST_FAILED, "Failed to retrieve budgets")

        items = []
        for budget in budgets:
            totals = totals_by_id.get(budget.id)
            summary = BudgetSummary.from_totals(totals) if totals is not None else _zero_summary()
            items.append(BudgetListItem(
                id=budget.id,
                month=budget.month,
                note=budget.note,
                created_at=budget.created_at,
                updated_at=budget.updated_at,
                summary=summary,
            ))

        return Page(data=items, meta=PaginationMeta.build(page, page_size, total_items))


def _zero_summary() -> BudgetSummary:
    return build_summary(BudgetReadSet(incomes=[], planned_expenses=[], transactions=None))


class UpdateBudgetMetadataUseCase:
    """
    Use case: update mutable budget fields (note) and return the detail

    The returned summary never includes transactions: total_spent is 0.
    """

    def __init__(self, db: Session, session_factory: sessionmaker | None = None, max_workers: int = 3):
        self.db = db
        self.aggregator = BudgetSummaryAggregator(db, session_factory, max_workers)

    def execute(self, household_id: uuid.UUID, budget_id: uuid.UUID, note: str | None = ...) -> BudgetDetail:
        try:
            budget = _get_budget(self.db, household_id, budget_id)
            if budget is None:
                raise BudgetNotFound()

            if note is not ...:
                budget.note = normalize_note(note)
                self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.warning("Budget %s note update violated a constraint", budget_id)
            raise InvalidPayload("Budget note violates a constraint")
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to update budget %s", budget_id)
            raise OperationFailed(BUDGET_UPDATE_FAILED, "Failed to update budget")

        try:
            read_set, summary = self.aggregator.summarize(
                household_id, budget_id,
                include_transactions=False,
                include_inactive_members=False,
            )
        except SQLAlchemyError:
            logger.exception("Failed to re-read budget %s after update", budget_id)
            raise OperationFailed(BUDGET_UPDATE_FAILED, "Failed to update budget")

        return _detail(budget, read_set, summary)


class DeleteBudgetUseCase:
    """
    Use case: delete a budget with its incomes, planned expenses and
    transactions (one commit). Also removes budgets left without
    dependents by a failed compensation.
    """

    def __init__(self, db: Session):
        self.db = db

    def execute(self, household_id: uuid.UUID, budget_id: uuid.UUID) -> None:
        budget = _get_budget(self.db, household_id, budget_id)
        if budget is None:
            raise BudgetNotFound()

        try:
            for model in (Transaction, PlannedExpense, Income):
                self.db.query(model).filter(
                    model.household_id == household_id,
                    model.budget_id == budget_id,
                ).delete(synchronize_session=False)
            self.db.delete(budget)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to delete budget %s", budget_id)
            raise OperationFailed(BUDGET_DELETE_FAILED, "Failed to delete budget")

        logger.info("Budget %s deleted for household %s", budget_id, household_id)


class GetBudgetSummaryService:
    """Service: summary of one budget, transactions always included"""

    def __init__(self, db: Session, session_factory: sessionmaker | None = None, max_workers: int = 3):
        self.db = db
        self.aggregator = BudgetSummaryAggregator(db, session_factory, max_workers)

    def execute(
        self,
        household_id: uuid.UUID,
        budget_id: uuid.UUID,
        include_categories: bool = True,
    ) -> BudgetSummaryView:
        try:
            budget = _get_budget(self.db, household_id, budget_id)
            if budget is None:
                raise BudgetNotFound("Budget not found or access denied")

            _, summary = self.aggregator.summarize(household_id, budget_id, include_transactions=True)
        except SQLAlchemyError:
            logger.exception("Failed to compute summary for budget %s", budget_id)
            raise OperationFailed(BUDGET_SUMMARY_FETCH_FAILED, "Failed to retrieve budget summary")

        if not include_categories:
            summary.per_category = None
        return BudgetSummaryView(budget_id=budget.id, month=budget.month, summary=summary)


class GetCurrentDashboardService:
    """Service: totals and category breakdown of the current month's budget"""

    def __init__(
        self,
        db: Session,
        session_factory: sessionmaker | None = None,
        max_workers: int = 3,
        today: Callable[[], date] = utc_today,
    ):
        self.db = db
        self.aggregator = BudgetSummaryAggregator(db, session_factory, max_workers)
        self.today = today

    def execute(self, household_id: uuid.UUID) -> DashboardSummary:
        current_month = first_day_of_month(self.today())
        try:
            budget = self.db.query(Budget).filter(
                Budget.household_id == household_id,
                Budget.month == current_month,
            ).first()
            if budget is None:
                raise BudgetNotFound("No budget available for the current period")

            _, summary = self.aggregator.summarize(household_id, budget.id, include_transactions=True)
        except SQLAlchemyError:
            logger.exception("Failed to build dashboard for household %s", household_id)
            raise OperationFailed(DASHBOARD_FETCH_FAILED, "Failed to retrieve dashboard data")

        return DashboardSummary(
            current_budget_id=budget.id,
            month=budget.month,
            total_income=summary.total_income,
            total_planned=summary.total_planned,
            total_spent=summary.total_spent,
            free_funds=summary.free_funds,
            progress=summary.progress,
            categories=summary.per_category or [],
        )
