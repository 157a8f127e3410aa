"""
Service error taxonomy.

Every failure kind carries a stable ``code`` that callers (HTTP layer, CLI)
branch on, plus a human-readable message. Storage details never go into
the message; they are logged where the error is raised.
"""


class BudgetServiceError(Exception):
    """Base class for all service-level failures"""
    code = "INTERNAL_SERVER_ERROR"
    default_message = "An internal server error occurred"

    def __init__(self, message: str | None = None, code: str | None = None):
        if code is not None:
            self.code = code
        self.message = message or self.default_message
        super().__init__(self.message)


# --- Not found ---

class NotFoundError(BudgetServiceError):
    pass


class HouseholdNotFound(NotFoundError):
    code = "HOUSEHOLD_NOT_FOUND"
    default_message = "No household found for the authenticated user"


class BudgetNotFound(NotFoundError):
    code = "BUDGET_NOT_FOUND"
    default_message = "Budget not found or not accessible"


class IncomeNotFound(NotFoundError):
    code = "INCOME_NOT_FOUND"
    default_message = "Income not found or not accessible"


class PlannedExpenseNotFound(NotFoundError):
    code = "PLANNED_EXPENSE_NOT_FOUND"
    default_message = "Planned expense not found or not accessible"


class TransactionNotFound(NotFoundError):
    code = "TRANSACTION_NOT_FOUND"
    default_message = "Transaction not found or not accessible"


class MemberNotFound(NotFoundError):
    code = "MEMBER_NOT_FOUND"
    default_message = "Household member not found"


class CategoryNotFound(NotFoundError):
    code = "CATEGORY_NOT_FOUND"
    default_message = "Category not found"


# --- Authentication ---

class Unauthorized(BudgetServiceError):
    code = "UNAUTHORIZED"
    default_message = "Authentication required"


class InvalidCredentials(Unauthorized):
    code = "INVALID_CREDENTIALS"
    default_message = "Invalid email or password"


# --- Conflicts ---

class ConflictError(BudgetServiceError):
    pass


class BudgetAlreadyExists(ConflictError):
    code = "BUDGET_ALREADY_EXISTS"
    default_message = "A budget already exists for this month"


class EmailAlreadyRegistered(ConflictError):
    code = "EMAIL_ALREADY_REGISTERED"
    default_message = "A user with this email already exists"


class MemberNameConflict(ConflictError):
    code = "MEMBER_NAME_CONFLICT"
    default_message = "A household member with this name already exists"


class CategoryNameConflict(ConflictError):
    code = "CATEGORY_NAME_CONFLICT"
    default_message = "A category with this name already exists"


class CategoryDependenciesExist(ConflictError):
    code = "CATEGORY_DEPENDENCIES_EXIST"
    default_message = "Category is used by planned expenses or transactions; pass force=true to delete"


# --- Invalid input (detected before any mutation) ---

class ValidationFailed(BudgetServiceError):
    pass


class InvalidReference(ValidationFailed):
    """A referenced member or category is missing, foreign or inactive"""
    INVALID_MEMBER = "INVALID_MEMBER"
    INVALID_CATEGORY = "INVALID_CATEGORY"

    _MESSAGES = {
        INVALID_MEMBER: "One or more household members are invalid or inactive",
        INVALID_CATEGORY: "One or more categories are invalid",
    }

    def __init__(self, kind: str, message: str | None = None):
        self.kind = kind
        super().__init__(message or self._MESSAGES[kind], code=kind)


class InvalidPayload(ValidationFailed):
    code = "INVALID_PAYLOAD"
    default_message = "Invalid request payload"


class InvalidAmount(ValidationFailed):
    code = "INVALID_AMOUNT"
    default_message = "Amount must be positive, at most 9,999,999.99, with at most 2 decimal places"


class InvalidNote(ValidationFailed):
    code = "INVALID_NOTE"
    default_message = "Note must be at most 500 characters"


class DuplicateReference(ValidationFailed):
    """Same member / category listed twice in one full-set payload"""
    DUPLICATE_MEMBER = "DUPLICATE_MEMBER"
    DUPLICATE_CATEGORY = "DUPLICATE_CATEGORY"

    def __init__(self, kind: str, message: str | None = None):
        self.kind = kind
        super().__init__(message or "Duplicate reference detected", code=kind)


# --- Unexpected operation failures (storage errors, logged, detail hidden) ---

class OperationFailed(BudgetServiceError):
    """Generic but identifiable failure of one operation; code names the operation"""

    def __init__(self, code: str, message: str | None = None):
        super().__init__(message or "The operation failed", code=code)


BUDGET_CREATE_FAILED = "BUDGET_CREATE_FAILED"
BUDGET_FETCH_FAILED = "BUDGET_FETCH_FAILED"
BUDGETS_LIST_FAILED = "BUDGETS_LIST_FAILED"
BUDGET_UPDATE_FAILED = "BUDGET_UPDATE_FAILED"
BUDGET_DELETE_FAILED = "BUDGET_DELETE_FAILED"
BUDGET_SUMMARY_FETCH_FAILED = "BUDGET_SUMMARY_FETCH_FAILED"
DASHBOARD_FETCH_FAILED = "DASHBOARD_FETCH_FAILED"
INCOMES_LIST_FAILED = "INCOMES_LIST_FAILED"
INCOMES_UPSERT_FAILED = "INCOMES_UPSERT_FAILED"
INCOME_UPDATE_FAILED = "INCOME_UPDATE_FAILED"
PLANNED_EXPENSES_LIST_FAILED = "PLANNED_EXPENSES_LIST_FAILED"
PLANNED_EXPENSES_UPSERT_FAILED = "PLANNED_EXPENSES_UPSERT_FAILED"
PLANNED_EXPENSE_UPDATE_FAILED = "PLANNED_EXPENSE_UPDATE_FAILED"
TRANSACTION_CREATE_FAILED = "TRANSACTION_CREATE_FAILED"
TRANSACTION_FETCH_FAILED = "TRANSACTION_FETCH_FAILED"
TRANSACTIONS_LIST_FAILED = "TRANSACTIONS_LIST_FAILED"
TRANSACTION_UPDATE_FAILED = "TRANSACTION_UPDATE_FAILED"
TRANSACTION_DELETE_FAILED = "TRANSACTION_DELETE_FAILED"
CATEGORIES_LIST_FAILED = "CATEGORIES_LIST_FAILED"
CATEGORY_CREATE_FAILED = "CATEGORY_CREATE_FAILED"
CATEGORY_UPDATE_FAILED = "CATEGORY_UPDATE_FAILED"
CATEGORY_DELETE_FAILED = "CATEGORY_DELETE_FAILED"
MEMBERS_LIST_FAILED = "MEMBERS_LIST_FAILED"
MEMBER_CREATE_FAILED = "MEMBER_CREATE_FAILED"
MEMBER_UPDATE_FAILED = "MEMBER_UPDATE_FAILED"
MEMBER_DEACTIVATE_FAILED = "MEMBER_DEACTIVATE_FAILED"


class BudgetCreateFailed(OperationFailed):
    def __init__(self, message: str | None = None):
        super().__init__(BUDGET_CREATE_FAILED, message or "Failed to create budget")
