"""
Household member API endpoints
"""
import uuid
from datetime import datetime
from typing import Literal

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from homebudget.config import get_settings
from homebudget.api.deps import get_db, get_household_id
from homebudget.api.errors import RESULT_CODE_HEADER
from homebudget.api.schemas import CamelModel, PaginationMetaResponse
from homebudget.application.household_members import (
    CreateHouseholdMemberUseCase,
    DeactivateHouseholdMemberUseCase,
    ListHouseholdMembersService,
    UpdateHouseholdMemberUseCase,
)


router = APIRouter(prefix="/api/v1/household-members", tags=["household members"])


class MemberResponse(CamelModel):
    id: uuid.UUID
    full_name: str
    is_active: bool
    created_at: datetime
    updated_at: datetime


class MemberListResponse(CamelModel):
    data: list[MemberResponse]
    meta: PaginationMetaResponse


class CreateMemberRequest(CamelModel):
    full_name: str


class UpdateMemberRequest(CamelModel):
    full_name: str | None = None
    is_active: bool | None = None


@router.get("", response_model=MemberListResponse)
def list_members(
    response: Response,
    include_inactive: bool = Query(False, alias="includeInactive"),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, alias="pageSize", ge=1),
    sort: Literal["fullName", "createdAt"] = "fullName",
    household_id: uuid.UUID = Depends(get_household_id),
    db: Session = Depends(get_db),
):
    service = ListHouseholdMembersService(db, max_page_size=get_settings().MAX_PAGE_SIZE)
    result = service.execute(household_id, include_inactive, page, page_size, sort)
    response.headers[RESULT_CODE_HEADER] = "MEMBERS_LISTED"
    return MemberListResponse.model_validate(result)


@router.post("", response_model=MemberResponse, status_code=status.HTTP_201_CREATED)
def create_member(
    req: CreateMemberRequest,
    response: Response,
    household_id: uuid.UUID = Depends(get_household_id),
    db: Session = Depends(get_db),
):
    member = CreateHouseholdMemberUseCase(db).execute(household_id, req.full_name)
    response.headers[RESULT_CODE_HEADER] = "MEMBER_CREATED"
    return MemberResponse.model_validate(member)


@router.patch("/{member_id}", response_model=MemberResponse)
def update_member(
    member_id: uuid.UUID,
    req: UpdateMemberRequest,
    response: Response,
    household_id: uuid.UUID = Depends(get_household_id),
    db: Session = Depends(get_db),
):
    member = UpdateHouseholdMemberUseCase(db).execute(
        household_id, member_id, full_name=req.full_name, is_active=req.is_active
    )
    response.headers[RESULT_CODE_HEADER] = "MEMBER_UPDATED"
    return MemberResponse.model_validate(member)


@router.delete("/{member_id}", status_code=status.HTTP_204_NO_CONTENT)
def deactivate_member(
    member_id: uuid.UUID,
    household_id: uuid.UUID = Depends(get_household_id),
    db: Session = Depends(get_db),
):
    """Soft delete: the member is deactivated, their incomes stay"""
    DeactivateHouseholdMemberUseCase(db).execute(household_id, member_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT, headers={RESULT_CODE_HEADER: "MEMBER_DEACTIVATED"})
