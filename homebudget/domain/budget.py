"""
Budget domain rules: month keys, notes, progress and category status.

Pure functions and value objects only, no database access.
"""
import re
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from dateutil import parser as date_parser

from homebudget.utils.money import ZERO, percentage, to_display_percent

NOTE_MAX_LENGTH = 500

STATUS_OK = "ok"
STATUS_WARNING = "warning"
STATUS_OVER = "over"

WARNING_THRESHOLD = Decimal("80")
OVER_THRESHOLD = Decimal("100")

# List filters
STATUS_CURRENT = "current"
STATUS_PAST = "past"
STATUS_UPCOMING = "upcoming"
STATUS_ALL = "all"
BUDGET_STATUS_FILTERS = (STATUS_CURRENT, STATUS_PAST, STATUS_UPCOMING, STATUS_ALL)

SORT_MONTH_DESC = "month_desc"
SORT_MONTH_ASC = "month_asc"
BUDGET_SORTS = (SORT_MONTH_DESC, SORT_MONTH_ASC)

_FIRST_OF_MONTH_RE = re.compile(r"^\d{4}-\d{2}-01$")
_YEAR_MONTH_RE = re.compile(r"^\d{4}-\d{2}$")
_ISO_DATE_PREFIX_RE = re.compile(r"^\d{4}-\d{2}-\d{2}")


def normalize_month(value: str) -> str:
    """
    Canonicalize a month value to the ``YYYY-MM-01`` key.

    Precedence:
        1. already ``YYYY-MM-01``       -> as-is
        2. ``YYYY-MM``                  -> append ``-01``
        3. ``YYYY-MM-DD...``            -> truncate to year-month, append ``-01``
        4. anything dateutil can parse -> reformatted
        5. otherwise                    -> returned unchanged

    Never raises: unparseable input degrades to identity and the date column
    (or request validation) rejects it later.
    """
    if _FIRST_OF_MONTH_RE.match(value):
        return value

    if _YEAR_MONTH_RE.match(value):
        return f"{value}-01"

    if _ISO_DATE_PREFIX_RE.match(value):
        return f"{value[:7]}-01"

    try:
        parsed = date_parser.parse(value)
    except (ValueError, OverflowError):
        return value
    return f"{parsed.year:04d}-{parsed.month:02d}-01"


def month_key_to_date(month_key: str) -> date:
    """
    Convert a normalized ``YYYY-MM-01`` key to a date.

    Raises:
        ValueError: key is not a valid first-of-month date
    """
    parsed = date.fromisoformat(month_key)
    if parsed.day != 1:
        raise ValueError(f"Month key must be the first day of a month: {month_key}")
    return parsed


def first_day_of_month(today: date) -> date:
    return today.replace(day=1)


def normalize_note(note: str | None) -> str | None:
    """Trim, coerce empty to None, silently cap at NOTE_MAX_LENGTH."""
    if note is None:
        return None
    note = note.strip()
    if not note:
        return None
    return note[:NOTE_MAX_LENGTH]


def classify_category_status(progress: Decimal) -> str:
    """
    over    : progress >= 100
    warning : 80 <= progress < 100
    ok      : everything below 80
    """
    if progress >= OVER_THRESHOLD:
        return STATUS_OVER
    if progress >= WARNING_THRESHOLD:
        return STATUS_WARNING
    return STATUS_OK


@dataclass
class BudgetSummaryTotals:
    total_income: Decimal = ZERO
    total_planned: Decimal = ZERO
    total_spent: Decimal = ZERO
    free_funds: Decimal = ZERO

    def derive_free_funds(self) -> None:
        """Run once, after every fold has finished."""
        self.free_funds = self.total_income - self.total_planned

    @property
    def progress(self) -> float:
        return to_display_percent(percentage(self.total_spent, self.total_income))


@dataclass
class CategorySummary:
    category_id: object
    name: str
    spent: Decimal
    limit_amount: Decimal
    progress: float
    status: str

    @classmethod
    def build(cls, category_id, name: str, spent: Decimal, limit_amount: Decimal) -> "CategorySummary":
        raw_progress = percentage(spent, limit_amount)
        return cls(
            category_id=category_id,
            name=name,
            spent=spent,
            limit_amount=limit_amount,
            progress=to_display_percent(raw_progress),
            status=classify_category_status(raw_progress),
        )


@dataclass
class BudgetSummary:
    total_income: Decimal
    total_planned: Decimal
    total_spent: Decimal
    free_funds: Decimal
    progress: float
    per_category: list[CategorySummary] | None = field(default=None)

    @classmethod
    def from_totals(
        cls,
        totals: BudgetSummaryTotals,
        per_category: list[CategorySummary] | None = None,
    ) -> "BudgetSummary":
        return cls(
            total_income=totals.total_income,
            total_planned=totals.total_planned,
            total_spent=totals.total_spent,
            free_funds=totals.free_funds,
            progress=totals.progress,
            per_category=per_category,
        )


@dataclass(frozen=True)
class IncomeLine:
    """Incoming income item of a create / replace payload"""
    household_member_id: object
    amount: Decimal


@dataclass(frozen=True)
class PlannedExpenseLine:
    """Incoming planned expense item of a create / replace payload"""
    category_id: object
    limit_amount: Decimal
