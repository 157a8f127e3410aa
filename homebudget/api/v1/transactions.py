"""
Transaction API endpoints
"""
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from homebudget.config import get_settings
from homebudget.api.deps import get_db, get_household_id
from homebudget.api.errors import RESULT_CODE_HEADER
from homebudget.api.schemas import CamelModel, Money, PaginationMetaResponse
from homebudget.application.transactions import (
    CreateTransactionUseCase,
    DeleteTransactionUseCase,
    GetTransactionService,
    ListBudgetTransactionsService,
    UpdateTransactionUseCase,
    DEFAULT_PAGE_SIZE,
)


budget_router = APIRouter(prefix="/api/v1/budgets/{budget_id}/transactions", tags=["transactions"])
router = APIRouter(prefix="/api/v1/transactions", tags=["transactions"])


# === Request/Response models ===

class CreateTransactionRequest(CamelModel):
    category_id: uuid.UUID
    amount: Decimal
    transaction_date: date
    note: str | None = None


class UpdateTransactionRequest(CamelModel):
    category_id: uuid.UUID | None = None
    amount: Decimal | None = None
    transaction_date: date | None = None
    note: str | None = None


class TransactionResponse(CamelModel):
    id: uuid.UUID
    budget_id: uuid.UUID
    category_id: uuid.UUID
    category_name: str | None = None
    amount: Money
    transaction_date: date
    note: str | None
    created_at: datetime
    updated_at: datetime


class TransactionListResponse(CamelModel):
    data: list[TransactionResponse]
    meta: PaginationMetaResponse


# === Budget-scoped endpoints ===

@budget_router.get("", response_model=TransactionListResponse)
def list_transactions(
    budget_id: uuid.UUID,
    response: Response,
    category_id: uuid.UUID | None = Query(None, alias="categoryId"),
    from_date: date | None = Query(None, alias="fromDate"),
    to_date: date | None = Query(None, alias="toDate"),
    search_note: str | None = Query(None, alias="searchNote", max_length=500),
    page: int = Query(1, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, alias="pageSize", ge=1),
    sort: Literal["date_desc", "amount_desc", "amount_asc"] = "date_desc",
    household_id: uuid.UUID = Depends(get_household_id),
    db: Session = Depends(get_db),
):
    """Transactions of a budget, filtered and paginated"""
    service = ListBudgetTransactionsService(db, max_page_size=get_settings().MAX_PAGE_SIZE)
    result = service.execute(
        household_id,
        budget_id,
        category_id=category_id,
        from_date=from_date,
        to_date=to_date,
        search_note=search_note,
        page=page,
        page_size=page_size,
        sort=sort,
    )
    response.headers[RESULT_CODE_HEADER] = "TRANSACTIONS_LISTED"
    return TransactionListResponse.model_validate(result)


@budget_router.post("", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
def create_transaction(
    budget_id: uuid.UUID,
    req: CreateTransactionRequest,
    response: Response,
    household_id: uuid.UUID = Depends(get_household_id),
    db: Session = Depends(get_db),
):
    transaction = CreateTransactionUseCase(db).execute(
        household_id,
        budget_id,
        category_id=req.category_id,
        amount=req.amount,
        transaction_date=req.transaction_date,
        note=req.note,
    )
    response.headers[RESULT_CODE_HEADER] = "TRANSACTION_CREATED"
    return TransactionResponse.model_validate(transaction)


# === Single transaction endpoints ===

@router.get("/{transaction_id}", response_model=TransactionResponse)
def get_transaction(
    transaction_id: uuid.UUID,
    response: Response,
    household_id: uuid.UUID = Depends(get_household_id),
    db: Session = Depends(get_db),
):
    transaction = GetTransactionService(db).execute(household_id, transaction_id)
    response.headers[RESULT_CODE_HEADER] = "TRANSACTION_FETCHED"
    return TransactionResponse.model_validate(transaction)


@router.patch("/{transaction_id}", response_model=TransactionResponse)
def update_transaction(
    transaction_id: uuid.UUID,
    req: UpdateTransactionRequest,
    response: Response,
    household_id: uuid.UUID = Depends(get_household_id),
    db: Session = Depends(get_db),
):
    """Patch a transaction; "note": null clears the note"""
    transaction = UpdateTransactionUseCase(db).execute(
        household_id,
        transaction_id,
        category_id=req.category_id,
        amount=req.amount,
        transaction_date=req.transaction_date,
        note=req.note if "note" in req.model_fields_set else ...,
    )
    response.headers[RESULT_CODE_HEADER] = "TRANSACTION_UPDATED"
    return TransactionResponse.model_validate(transaction)


@router.delete("/{transaction_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_transaction(
    transaction_id: uuid.UUID,
    household_id: uuid.UUID = Depends(get_household_id),
    db: Session = Depends(get_db),
):
    DeleteTransactionUseCase(db).execute(household_id, transaction_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT, headers={RESULT_CODE_HEADER: "TRANSACTION_DELETED"})
