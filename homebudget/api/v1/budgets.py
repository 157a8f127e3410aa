"""
Budget API endpoints
"""
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import Field
from sqlalchemy.orm import Session, sessionmaker

from homebudget.config import get_settings
from homebudget.api.deps import get_db, get_household_id, get_read_session_factory
from homebudget.api.errors import RESULT_CODE_HEADER
from homebudget.api.schemas import (
    CamelModel,
    Money,
    MONTH_PATTERN,
    BudgetDetailResponse,
    CategorySummaryResponse,
    PaginationMetaResponse,
    SummaryResponse,
)
from homebudget.domain.budget import IncomeLine, PlannedExpenseLine
from homebudget.application.budgets import (
    CreateBudgetUseCase,
    DeleteBudgetUseCase,
    GetBudgetDetailService,
    GetBudgetSummaryService,
    ListBudgetsService,
    UpdateBudgetMetadataUseCase,
)


router = APIRouter(prefix="/api/v1/budgets", tags=["budgets"])


# === Request/Response models ===

class IncomeItem(CamelModel):
    household_member_id: uuid.UUID
    amount: Decimal


class PlannedExpenseItem(CamelModel):
    category_id: uuid.UUID
    limit_amount: Decimal


class CreateBudgetRequest(CamelModel):
    month: str = Field(pattern=MONTH_PATTERN)
    note: str | None = None
    incomes: list[IncomeItem] = []
    planned_expenses: list[PlannedExpenseItem] = []


class UpdateBudgetRequest(CamelModel):
    note: str | None = None


class BudgetListItemResponse(CamelModel):
    id: uuid.UUID
    month: date
    note: str | None
    created_at: datetime
    updated_at: datetime
    summary: SummaryResponse


class BudgetListResponse(CamelModel):
    data: list[BudgetListItemResponse]
    meta: PaginationMetaResponse


class BudgetSummaryResponse(CamelModel):
    budget_id: uuid.UUID
    month: date
    total_income: Money
    total_planned: Money
    total_spent: Money
    free_funds: Money
    progress: float
    per_category: list[CategorySummaryResponse] | None = None


def _read_options() -> dict:
    settings = get_settings()
    return {"max_workers": settings.READ_WORKERS}


# === Endpoints ===

@router.get("", response_model=BudgetListResponse)
def list_budgets(
    response: Response,
    month: str | None = Query(None, pattern=MONTH_PATTERN),
    status_filter: Literal["current", "past", "upcoming", "all"] = Query("current", alias="status"),
    include_summary: bool = Query(False, alias="includeSummary"),
    page: int = Query(1, ge=1),
    page_size: int | None = Query(None, alias="pageSize", ge=1),
    sort: Literal["month_desc", "month_asc"] = "month_desc",
    household_id: uuid.UUID = Depends(get_household_id),
    db: Session = Depends(get_db),
    session_factory: sessionmaker | None = Depends(get_read_session_factory),
):
    """Budgets of the household, paginated"""
    settings = get_settings()
    service = ListBudgetsService(
        db, session_factory, max_page_size=settings.MAX_PAGE_SIZE, **_read_options()
    )
    result = service.execute(
        household_id,
        month=month,
        status=status_filter,
        include_summary=include_summary,
        page=page,
        page_size=page_size or settings.DEFAULT_PAGE_SIZE,
        sort=sort,
    )
    response.headers[RESULT_CODE_HEADER] = "BUDGETS_LISTED"
    return BudgetListResponse.model_validate(result)


@router.post("", response_model=BudgetDetailResponse, status_code=status.HTTP_201_CREATED)
def create_budget(
    req: CreateBudgetRequest,
    response: Response,
    household_id: uuid.UUID = Depends(get_household_id),
    db: Session = Depends(get_db),
):
    """Create a budget with incomes and planned expenses"""
    detail = CreateBudgetUseCase(db).execute(
        household_id,
        month=req.month,
        note=req.note,
        incomes=[IncomeLine(item.household_member_id, item.amount) for item in req.incomes],
        planned_expenses=[
            PlannedExpenseLine(item.category_id, item.limit_amount) for item in req.planned_expenses
        ],
    )
    response.headers[RESULT_CODE_HEADER] = "BUDGET_CREATED"
    return BudgetDetailResponse.model_validate(detail)


@router.get("/{budget_id}", response_model=BudgetDetailResponse)
def get_budget(
    budget_id: uuid.UUID,
    response: Response,
    include_transactions: bool = Query(False, alias="includeTransactions"),
    include_inactive_members: bool = Query(False, alias="includeInactiveMembers"),
    household_id: uuid.UUID = Depends(get_household_id),
    db: Session = Depends(get_db),
    session_factory: sessionmaker | None = Depends(get_read_session_factory),
):
    """Budget with incomes, planned expenses and summary"""
    detail = GetBudgetDetailService(db, session_factory, **_read_options()).execute(
        household_id,
        budget_id,
        include_transactions=include_transactions,
        include_inactive_members=include_inactive_members,
    )
    response.headers[RESULT_CODE_HEADER] = "BUDGET_FETCHED"
    return BudgetDetailResponse.model_validate(detail)


@router.patch("/{budget_id}", response_model=BudgetDetailResponse)
def update_budget(
    budget_id: uuid.UUID,
    req: UpdateBudgetRequest,
    response: Response,
    household_id: uuid.UUID = Depends(get_household_id),
    db: Session = Depends(get_db),
    session_factory: sessionmaker | None = Depends(get_read_session_factory),
):
    """Update the budget note; a missing "note" key leaves it unchanged"""
    note = req.note if "note" in req.model_fields_set else ...
    detail = UpdateBudgetMetadataUseCase(db, session_factory, **_read_options()).execute(
        household_id, budget_id, note=note
    )
    response.headers[RESULT_CODE_HEADER] = "BUDGET_UPDATED"
    return BudgetDetailResponse.model_validate(detail)


@router.delete("/{budget_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_budget(
    budget_id: uuid.UUID,
    household_id: uuid.UUID = Depends(get_household_id),
    db: Session = Depends(get_db),
):
    DeleteBudgetUseCase(db).execute(household_id, budget_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT, headers={RESULT_CODE_HEADER: "BUDGET_DELETED"})


@router.get("/{budget_id}/summary", response_model=BudgetSummaryResponse)
def get_budget_summary(
    budget_id: uuid.UUID,
    response: Response,
    include_categories: bool = Query(True, alias="includeCategories"),
    household_id: uuid.UUID = Depends(get_household_id),
    db: Session = Depends(get_db),
    session_factory: sessionmaker | None = Depends(get_read_session_factory),
):
    """Totals, progress and (optionally) the per-category breakdown"""
    view = GetBudgetSummaryService(db, session_factory, **_read_options()).execute(
        household_id, budget_id, include_categories=include_categories
    )
    response.headers[RESULT_CODE_HEADER] = "BUDGET_SUMMARY_FETCHED"
    summary = view.summary
    return BudgetSummaryResponse(
        budget_id=view.budget_id,
        month=view.month,
        total_income=summary.total_income,
        total_planned=summary.total_planned,
        total_spent=summary.total_spent,
        free_funds=summary.free_funds,
        progress=summary.progress,
        per_category=(
            [CategorySummaryResponse.model_validate(item) for item in summary.per_category]
            if summary.per_category is not None else None
        ),
    )
