"""
Dashboard API endpoint: the current month's budget at a glance
"""
import uuid
from datetime import date

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session, sessionmaker

from homebudget.config import get_settings
from homebudget.api.deps import get_db, get_household_id, get_read_session_factory
from homebudget.api.errors import RESULT_CODE_HEADER
from homebudget.api.schemas import CamelModel, CategorySummaryResponse, Money
from homebudget.application.budgets import GetCurrentDashboardService


router = APIRouter(prefix="/api/v1/dashboard", tags=["dashboard"])


class DashboardResponse(CamelModel):
    current_budget_id: uuid.UUID
    month: date
    total_income: Money
    total_planned: Money
    total_spent: Money
    free_funds: Money
    progress: float
    categories: list[CategorySummaryResponse]


@router.get("/current", response_model=DashboardResponse)
def current_dashboard(
    response: Response,
    household_id: uuid.UUID = Depends(get_household_id),
    db: Session = Depends(get_db),
    session_factory: sessionmaker | None = Depends(get_read_session_factory),
):
    service = GetCurrentDashboardService(db, session_factory, max_workers=get_settings().READ_WORKERS)
    dashboard = service.execute(household_id)
    response.headers[RESULT_CODE_HEADER] = "DASHBOARD_FETCHED"
    return DashboardResponse.model_validate(dashboard)
