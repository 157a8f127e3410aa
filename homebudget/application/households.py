"""
Household use cases

The household id is the tenant boundary; every other use case receives it
as an explicit argument resolved here from the authenticated user.
"""
import uuid

from sqlalchemy.orm import Session

from homebudget.infrastructure.db.models import Household, Category
from homebudget.application.errors import HouseholdNotFound, InvalidPayload

HOUSEHOLD_NAME_MAX_LENGTH = 120

DEFAULT_CATEGORIES = (
    "Groceries",
    "Housing",
    "Transport",
    "Utilities",
    "Health",
    "Entertainment",
)


class ResolveHouseholdUseCase:
    """Map a user id to exactly one household id"""

    def __init__(self, db: Session):
        self.db = db

    def execute(self, user_id: int) -> uuid.UUID:
        household_id = self.db.query(Household.id).filter(
            Household.user_id == user_id
        ).scalar()
        if household_id is None:
            raise HouseholdNotFound()
        return household_id


def _validate_name(name: str) -> str:
    name = (name or "").strip()
    if not name or len(name) > HOUSEHOLD_NAME_MAX_LENGTH:
        raise InvalidPayload("Household name must be between 1 and 120 characters")
    return name


class CreateHouseholdUseCase:
    """Create the household for a freshly registered user, with default categories"""

    def __init__(self, db: Session):
        self.db = db

    def execute(self, user_id: int, name: str = "My household") -> uuid.UUID:
        household = Household(user_id=user_id, name=_validate_name(name))
        self.db.add(household)
        self.db.flush()

        self.db.add_all(
            Category(household_id=household.id, name=title) for title in DEFAULT_CATEGORIES
        )
        self.db.commit()
        return household.id


class GetHouseholdProfileService:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, household_id: uuid.UUID, include_defaults: bool = False) -> dict:
        household = self.db.get(Household, household_id)
        if household is None:
            raise HouseholdNotFound()

        result = {"household": household}
        if include_defaults:
            result["default_categories"] = (
                self.db.query(Category)
                .filter(Category.household_id == household_id)
                .order_by(Category.name.asc())
                .all()
            )
        return result


class UpdateHouseholdNameUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, household_id: uuid.UUID, name: str) -> Household:
        household = self.db.get(Household, household_id)
        if household is None:
            raise HouseholdNotFound()

        household.name = _validate_name(name)
        self.db.commit()
        return household
