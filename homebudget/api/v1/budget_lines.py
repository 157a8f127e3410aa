"""
Budget incomes / planned expenses API endpoints
"""
import uuid
from decimal import Decimal

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from homebudget.api.deps import get_db, get_household_id
from homebudget.api.errors import RESULT_CODE_HEADER
from homebudget.api.schemas import CamelModel, IncomeResponse, PlannedExpenseResponse
from homebudget.domain.budget import IncomeLine, PlannedExpenseLine
from homebudget.application.budget_lines import (
    ListBudgetIncomesService,
    ListPlannedExpensesService,
    ReplaceBudgetIncomesUseCase,
    ReplacePlannedExpensesUseCase,
    UpdateBudgetIncomeUseCase,
    UpdatePlannedExpenseUseCase,
)


router = APIRouter(prefix="/api/v1/budgets/{budget_id}", tags=["budget lines"])


# === Request/Response models ===

class IncomeItem(CamelModel):
    household_member_id: uuid.UUID
    amount: Decimal


class ReplaceIncomesRequest(CamelModel):
    incomes: list[IncomeItem]


class UpdateIncomeRequest(CamelModel):
    amount: Decimal


class IncomeListResponse(CamelModel):
    data: list[IncomeResponse]


class PlannedExpenseItem(CamelModel):
    category_id: uuid.UUID
    limit_amount: Decimal


class ReplacePlannedExpensesRequest(CamelModel):
    planned_expenses: list[PlannedExpenseItem]


class UpdatePlannedExpenseRequest(CamelModel):
    limit_amount: Decimal


class PlannedExpenseListResponse(CamelModel):
    data: list[PlannedExpenseResponse]


# === Incomes ===

@router.get("/incomes", response_model=IncomeListResponse)
def list_incomes(
    budget_id: uuid.UUID,
    response: Response,
    include_inactive_members: bool = Query(False, alias="includeInactiveMembers"),
    household_id: uuid.UUID = Depends(get_household_id),
    db: Session = Depends(get_db),
):
    rows = ListBudgetIncomesService(db).execute(household_id, budget_id, include_inactive_members)
    response.headers[RESULT_CODE_HEADER] = "INCOMES_LISTED"
    return IncomeListResponse(data=[IncomeResponse.model_validate(row) for row in rows])


@router.put("/incomes", response_model=IncomeListResponse)
def replace_incomes(
    budget_id: uuid.UUID,
    req: ReplaceIncomesRequest,
    response: Response,
    household_id: uuid.UUID = Depends(get_household_id),
    db: Session = Depends(get_db),
):
    """Replace the full set of incomes (last write wins)"""
    rows = ReplaceBudgetIncomesUseCase(db).execute(
        household_id,
        budget_id,
        [IncomeLine(item.household_member_id, item.amount) for item in req.incomes],
    )
    response.headers[RESULT_CODE_HEADER] = "INCOMES_UPSERTED"
    return IncomeListResponse(data=[IncomeResponse.model_validate(row) for row in rows])


@router.patch("/incomes/{income_id}", response_model=IncomeResponse)
def update_income(
    budget_id: uuid.UUID,
    income_id: uuid.UUID,
    req: UpdateIncomeRequest,
    response: Response,
    household_id: uuid.UUID = Depends(get_household_id),
    db: Session = Depends(get_db),
):
    income = UpdateBudgetIncomeUseCase(db).execute(household_id, budget_id, income_id, req.amount)
    response.headers[RESULT_CODE_HEADER] = "INCOME_UPDATED"
    return IncomeResponse.model_validate(income)


# === Planned expenses ===

@router.get("/planned-expenses", response_model=PlannedExpenseListResponse)
def list_planned_expenses(
    budget_id: uuid.UUID,
    response: Response,
    household_id: uuid.UUID = Depends(get_household_id),
    db: Session = Depends(get_db),
):
    rows = ListPlannedExpensesService(db).execute(household_id, budget_id)
    response.headers[RESULT_CODE_HEADER] = "PLANNED_EXPENSES_LISTED"
    return PlannedExpenseListResponse(data=[PlannedExpenseResponse.model_validate(row) for row in rows])


@router.put("/planned-expenses", response_model=PlannedExpenseListResponse)
def replace_planned_expenses(
    budget_id: uuid.UUID,
    req: ReplacePlannedExpensesRequest,
    response: Response,
    household_id: uuid.UUID = Depends(get_household_id),
    db: Session = Depends(get_db),
):
    """Replace the full set of planned expenses (last write wins)"""
    rows = ReplacePlannedExpensesUseCase(db).execute(
        household_id,
        budget_id,
        [PlannedExpenseLine(item.category_id, item.limit_amount) for item in req.planned_expenses],
    )
    response.headers[RESULT_CODE_HEADER] = "PLANNED_EXPENSES_UPSERTED"
    return PlannedExpenseListResponse(data=[PlannedExpenseResponse.model_validate(row) for row in rows])


@router.patch("/planned-expenses/{planned_expense_id}", response_model=PlannedExpenseResponse)
def update_planned_expense(
    budget_id: uuid.UUID,
    planned_expense_id: uuid.UUID,
    req: UpdatePlannedExpenseRequest,
    response: Response,
    household_id: uuid.UUID = Depends(get_household_id),
    db: Session = Depends(get_db),
):
    row = UpdatePlannedExpenseUseCase(db).execute(
        household_id, budget_id, planned_expense_id, req.limit_amount
    )
    response.headers[RESULT_CODE_HEADER] = "PLANNED_EXPENSE_UPDATED"
    return PlannedExpenseResponse.model_validate(row)
