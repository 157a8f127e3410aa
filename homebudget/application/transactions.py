"""
Transaction use cases - actual spend recorded against a budget category
"""
import logging
import uuid
from datetime import date
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from homebudget.infrastructure.db.models import Budget, Category, Transaction
from homebudget.domain.budget import NOTE_MAX_LENGTH
from homebudget.application.references import ValidateReferencesUseCase
from homebudget.application.pagination import Page, PaginationMeta, check_page_args
from homebudget.utils.validation import validate_amount, partial_match_pattern
from homebudget.application.errors import (
    BudgetNotFound,
    InvalidNote,
    InvalidPayload,
    OperationFailed,
    TransactionNotFound,
    TRANSACTION_CREATE_FAILED,
    TRANSACTION_DELETE_FAILED,
    TRANSACTION_FETCH_FAILED,
    TRANSACTION_UPDATE_FAILED,
    TRANSACTIONS_LIST_FAILED,
)

logger = logging.getLogger(__name__)

SORT_DATE_DESC = "date_desc"
SORT_AMOUNT_DESC = "amount_desc"
SORT_AMOUNT_ASC = "amount_asc"
TRANSACTION_SORTS = (SORT_DATE_DESC, SORT_AMOUNT_DESC, SORT_AMOUNT_ASC)

DEFAULT_PAGE_SIZE = 25


def clean_transaction_note(note: str | None) -> str | None:
    """Trim and coerce empty to None; unlike budget notes, too long is an error."""
    if note is None:
        return None
    if len(note) > NOTE_MAX_LENGTH:
        raise InvalidNote()
    note = note.strip()
    return note or None


def _get_transaction(db: Session, household_id: uuid.UUID, transaction_id: uuid.UUID) -> Transaction:
    transaction = db.query(Transaction).filter(
        Transaction.id == transaction_id,
        Transaction.household_id == household_id,
    ).first()
    if transaction is None:
        raise TransactionNotFound()
    return transaction


class CreateTransactionUseCase:
    """Use case: record a spend in a budget"""

    def __init__(self, db: Session):
        self.db = db
        self.references = ValidateReferencesUseCase(db)

    def execute(
        self,
        household_id: uuid.UUID,
        budget_id: uuid.UUID,
        category_id: uuid.UUID,
        amount: Decimal,
        transaction_date: date,
        note: str | None = None,
    ) -> Transaction:
        amount = validate_amount(amount)
        note = clean_transaction_note(note)

        budget = self.db.query(Budget.id).filter(
            Budget.id == budget_id,
            Budget.household_id == household_id,
        ).first()
        if budget is None:
            raise BudgetNotFound()
        self.references.validate_categories(household_id, [category_id])

        transaction = Transaction(
            household_id=household_id,
            budget_id=budget_id,
            category_id=category_id,
            amount=amount,
            transaction_date=transaction_date,
            note=note,
        )
        try:
            self.db.add(transaction)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to create transaction in budget %s", budget_id)
            raise OperationFailed(TRANSACTION_CREATE_FAILED, "Failed to create transaction")

        logger.info("Transaction %s created in budget %s", transaction.id, budget_id)
        return transaction


class ListBudgetTransactionsService:
    """
    Service: filtered, paginated transactions of one budget

    Filters: category, date range (inclusive), note substring (wildcards in
    the search term are matched literally).
    """

    def __init__(self, db: Session, max_page_size: int = 100):
        self.db = db
        self.max_page_size = max_page_size

    def execute(
        self,
        household_id: uuid.UUID,
        budget_id: uuid.UUID,
        category_id: uuid.UUID | None = None,
        from_date: date | None = None,
        to_date: date | None = None,
        search_note: str | None = None,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
        sort: str = SORT_DATE_DESC,
    ) -> Page:
        if sort not in TRANSACTION_SORTS:
            raise InvalidPayload(f"Sort must be one of: {', '.join(TRANSACTION_SORTS)}")
        if from_date and to_date and from_date > to_date:
            raise InvalidPayload("From date must be less than or equal to to date")
        offset = check_page_args(page, page_size, self.max_page_size)

        try:
            budget = self.db.query(Budget.id).filter(
                Budget.id == budget_id,
                Budget.household_id == household_id,
            ).first()
            if budget is None:
                raise BudgetNotFound()

            query = (
                self.db.query(
                    Transaction.id,
                    Transaction.budget_id,
                    Transaction.category_id,
                    Category.name.label("category_name"),
                    Transaction.amount,
                    Transaction.transaction_date,
                    Transaction.note,
                    Transaction.created_at,
                    Transaction.updated_at,
                )
                .join(Category, Category.id == Transaction.category_id)
                .filter(
                    Transaction.household_id == household_id,
                    Transaction.budget_id == budget_id,
                )
            )

            if category_id is not None:
                query = query.filter(Transaction.category_id == category_id)
            if from_date is not None:
                query = query.filter(Transaction.transaction_date >= from_date)
            if to_date is not None:
                query = query.filter(Transaction.transaction_date <= to_date)
            if search_note and search_note.strip():
                query = query.filter(
                    Transaction.note.ilike(partial_match_pattern(search_note), escape="\\")
                )

            total_items = query.count()

            if sort == SORT_AMOUNT_DESC:
                query = query.order_by(Transaction.amount.desc(), Transaction.created_at.desc())
            elif sort == SORT_AMOUNT_ASC:
                query = query.order_by(Transaction.amount.asc(), Transaction.created_at.desc())
            else:
                query = query.order_by(Transaction.transaction_date.desc(), Transaction.created_at.desc())

            rows = query.offset(offset).limit(page_size).all()
        except SQLAlchemyError:
            logger.exception("Failed to list transactions of budget %s", budget_id)
            raise OperationFailed(TRANSACTIONS_LIST_FAILED, "Failed to retrieve transactions")

        return Page(data=rows, meta=PaginationMeta.build(page, page_size, total_items))


class GetTransactionService:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, household_id: uuid.UUID, transaction_id: uuid.UUID) -> Transaction:
        try:
            return _get_transaction(self.db, household_id, transaction_id)
        except SQLAlchemyError:
            logger.exception("Failed to fetch transaction %s", transaction_id)
            raise OperationFailed(TRANSACTION_FETCH_FAILED, "Failed to retrieve transaction")


class UpdateTransactionUseCase:
    """Use case: patch category / amount / date / note (at least one)"""

    def __init__(self, db: Session):
        self.db = db
        self.references = ValidateReferencesUseCase(db)

    def execute(
        self,
        household_id: uuid.UUID,
        transaction_id: uuid.UUID,
        category_id: uuid.UUID | None = None,
        amount: Decimal | None = None,
        transaction_date: date | None = None,
        note: str | None = ...,  # sentinel: ... means "not provided", None clears
    ) -> Transaction:
        if category_id is None and amount is None and transaction_date is None and note is ...:
            raise InvalidPayload("At least one field must be provided for update")

        changes = {}
        if amount is not None:
            changes["amount"] = validate_amount(amount)
        if note is not ...:
            changes["note"] = clean_transaction_note(note)
        if transaction_date is not None:
            changes["transaction_date"] = transaction_date

        transaction = _get_transaction(self.db, household_id, transaction_id)

        if category_id is not None:
            self.references.validate_categories(household_id, [category_id])
            changes["category_id"] = category_id

        try:
            for key, value in changes.items():
                setattr(transaction, key, value)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to update transaction %s", transaction_id)
            raise OperationFailed(TRANSACTION_UPDATE_FAILED, "Failed to update transaction")

        return transaction


class DeleteTransactionUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, household_id: uuid.UUID, transaction_id: uuid.UUID) -> None:
        transaction = _get_transaction(self.db, household_id, transaction_id)
        try:
            self.db.delete(transaction)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to delete transaction %s", transaction_id)
            raise OperationFailed(TRANSACTION_DELETE_FAILED, "Failed to delete transaction")

        logger.info("Transaction %s deleted", transaction_id)
