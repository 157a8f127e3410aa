"""
Household member use cases

Members are never deleted: deactivation keeps their historical incomes.
Inactive members cannot be referenced by new incomes.
"""
import logging
import uuid

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from homebudget.infrastructure.db.models import HouseholdMember
from homebudget.application.pagination import Page, PaginationMeta, check_page_args
from homebudget.application.errors import (
    InvalidPayload,
    MemberNameConflict,
    MemberNotFound,
    OperationFailed,
    MEMBER_CREATE_FAILED,
    MEMBER_DEACTIVATE_FAILED,
    MEMBER_UPDATE_FAILED,
    MEMBERS_LIST_FAILED,
)

logger = logging.getLogger(__name__)

MEMBER_NAME_MAX_LENGTH = 120
MEMBER_SORTS = ("fullName", "createdAt")


def _clean_full_name(full_name: str) -> str:
    full_name = (full_name or "").strip()
    if not full_name or len(full_name) > MEMBER_NAME_MAX_LENGTH:
        raise InvalidPayload(f"Full name must be between 1 and {MEMBER_NAME_MAX_LENGTH} characters")
    return full_name


def _name_taken(db: Session, household_id: uuid.UUID, full_name: str, exclude_id: uuid.UUID | None = None) -> bool:
    query = db.query(HouseholdMember.id).filter(
        HouseholdMember.household_id == household_id,
        func.lower(HouseholdMember.full_name) == full_name.lower(),
    )
    if exclude_id is not None:
        query = query.filter(HouseholdMember.id != exclude_id)
    return query.first() is not None


def _get_member(db: Session, household_id: uuid.UUID, member_id: uuid.UUID) -> HouseholdMember:
    member = db.query(HouseholdMember).filter(
        HouseholdMember.id == member_id,
        HouseholdMember.household_id == household_id,
    ).first()
    if member is None:
        raise MemberNotFound()
    return member


class ListHouseholdMembersService:
    def __init__(self, db: Session, max_page_size: int = 100):
        self.db = db
        self.max_page_size = max_page_size

    def execute(
        self,
        household_id: uuid.UUID,
        include_inactive: bool = False,
        page: int = 1,
        page_size: int = 50,
        sort: str = "fullName",
    ) -> Page:
        if sort not in MEMBER_SORTS:
            raise InvalidPayload(f"Sort must be one of: {', '.join(MEMBER_SORTS)}")
        offset = check_page_args(page, page_size, self.max_page_size)

        query = self.db.query(HouseholdMember).filter(HouseholdMember.household_id == household_id)
        if not include_inactive:
            query = query.filter(HouseholdMember.is_active == True)

        if sort == "createdAt":
            query = query.order_by(HouseholdMember.created_at.asc(), HouseholdMember.full_name.asc())
        else:
            query = query.order_by(HouseholdMember.full_name.asc())

        try:
            total_items = query.order_by(None).count()
            members = query.offset(offset).limit(page_size).all()
        except SQLAlchemyError:
            logger.exception("Failed to list members of household %s", household_id)
            raise OperationFailed(MEMBERS_LIST_FAILED, "Failed to retrieve household members")

        return Page(data=members, meta=PaginationMeta.build(page, page_size, total_items))


class CreateHouseholdMemberUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, household_id: uuid.UUID, full_name: str) -> HouseholdMember:
        full_name = _clean_full_name(full_name)
        if _name_taken(self.db, household_id, full_name):
            raise MemberNameConflict()

        member = HouseholdMember(household_id=household_id, full_name=full_name, is_active=True)
        self.db.add(member)
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to create member for household %s", household_id)
            raise OperationFailed(MEMBER_CREATE_FAILED, "Failed to create household member")
        return member


class UpdateHouseholdMemberUseCase:
    """Use case: rename and / or (re)activate a member"""

    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        household_id: uuid.UUID,
        member_id: uuid.UUID,
        full_name: str | None = None,
        is_active: bool | None = None,
    ) -> HouseholdMember:
        if full_name is None and is_active is None:
            raise InvalidPayload("At least one field must be provided for update")

        member = _get_member(self.db, household_id, member_id)

        if full_name is not None:
            full_name = _clean_full_name(full_name)
            if _name_taken(self.db, household_id, full_name, exclude_id=member_id):
                raise MemberNameConflict()
            member.full_name = full_name
        if is_active is not None:
            member.is_active = is_active

        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to update member %s", member_id)
            raise OperationFailed(MEMBER_UPDATE_FAILED, "Failed to update household member")
        return member


class DeactivateHouseholdMemberUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, household_id: uuid.UUID, member_id: uuid.UUID) -> None:
        member = _get_member(self.db, household_id, member_id)
        if not member.is_active:
            return

        try:
            member.is_active = False
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to deactivate member %s", member_id)
            raise OperationFailed(MEMBER_DEACTIVATE_FAILED, "Failed to deactivate household member")
        logger.info("Household member %s deactivated", member_id)
