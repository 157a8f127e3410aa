"""
Reference validation for budget payloads.

Checks that member / category ids belong to the household (members must
also be active) before anything is written, so a cheaply detectable error
never reaches the compensation path.
"""
import uuid
from typing import Iterable

from sqlalchemy.orm import Session

from homebudget.infrastructure.db.models import HouseholdMember, Category
from homebudget.application.errors import DuplicateReference, InvalidReference


def reject_duplicate_members(member_ids: Iterable[uuid.UUID]) -> None:
    """A member contributes at most one income per budget."""
    seen = set()
    for member_id in member_ids:
        if member_id in seen:
            raise DuplicateReference(
                DuplicateReference.DUPLICATE_MEMBER,
                "Each household member can appear only once",
            )
        seen.add(member_id)


def reject_duplicate_categories(category_ids: Iterable[uuid.UUID]) -> None:
    seen = set()
    for category_id in category_ids:
        if category_id in seen:
            raise DuplicateReference(
                DuplicateReference.DUPLICATE_CATEGORY,
                "Each category can appear only once",
            )
        seen.add(category_id)


class ValidateReferencesUseCase:
    """Use case: confirm foreign keys of an incoming payload"""

    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        household_id: uuid.UUID,
        member_ids: Iterable[uuid.UUID] = (),
        category_ids: Iterable[uuid.UUID] = (),
    ) -> None:
        """
        Raises:
            InvalidReference(INVALID_MEMBER): missing, foreign or inactive member
            InvalidReference(INVALID_CATEGORY): missing or foreign category
        """
        self.validate_members(household_id, member_ids)
        self.validate_categories(household_id, category_ids)

    def validate_members(self, household_id: uuid.UUID, member_ids: Iterable[uuid.UUID]) -> None:
        wanted = set(member_ids)
        if not wanted:
            return

        found = {
            row[0]
            for row in self.db.query(HouseholdMember.id).filter(
                HouseholdMember.household_id == household_id,
                HouseholdMember.is_active == True,
                HouseholdMember.id.in_(wanted),
            )
        }
        if found != wanted:
            raise InvalidReference(InvalidReference.INVALID_MEMBER)

    def validate_categories(self, household_id: uuid.UUID, category_ids: Iterable[uuid.UUID]) -> None:
        wanted = set(category_ids)
        if not wanted:
            return

        found = {
            row[0]
            for row in self.db.query(Category.id).filter(
                Category.household_id == household_id,
                Category.id.in_(wanted),
            )
        }
        if found != wanted:
            raise InvalidReference(InvalidReference.INVALID_CATEGORY)
