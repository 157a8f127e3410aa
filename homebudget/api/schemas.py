"""
Response models shared by the v1 routers

Field names are snake_case in Python and camelCase on the wire. Money is
kept as Decimal internally and rendered as a JSON number.
"""
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel

Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]

MONTH_PATTERN = r"^\d{4}-\d{2}(-\d{2})?$"


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class PaginationMetaResponse(CamelModel):
    page: int
    page_size: int
    total_items: int
    total_pages: int


class CategorySummaryResponse(CamelModel):
    category_id: uuid.UUID
    name: str
    spent: Money
    limit_amount: Money
    progress: float
    status: str


class SummaryResponse(CamelModel):
    total_income: Money
    total_planned: Money
    total_spent: Money
    free_funds: Money
    progress: float
    per_category: list[CategorySummaryResponse] | None = None


class IncomeResponse(CamelModel):
    id: uuid.UUID
    household_member_id: uuid.UUID
    amount: Money
    created_at: datetime
    updated_at: datetime


class PlannedExpenseResponse(CamelModel):
    id: uuid.UUID
    category_id: uuid.UUID
    category_name: str | None = None
    limit_amount: Money
    created_at: datetime
    updated_at: datetime


class BudgetDetailResponse(CamelModel):
    id: uuid.UUID
    month: date
    note: str | None
    created_at: datetime
    updated_at: datetime
    incomes: list[IncomeResponse]
    planned_expenses: list[PlannedExpenseResponse]
    summary: SummaryResponse
