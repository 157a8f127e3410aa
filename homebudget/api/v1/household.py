"""
Household API endpoints
"""
import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from homebudget.api.deps import get_db, get_household_id
from homebudget.api.errors import RESULT_CODE_HEADER
from homebudget.api.schemas import CamelModel
from homebudget.application.households import GetHouseholdProfileService, UpdateHouseholdNameUseCase


router = APIRouter(prefix="/api/v1/household", tags=["household"])


class HouseholdResponse(CamelModel):
    id: uuid.UUID
    name: str
    created_at: datetime
    updated_at: datetime


class DefaultCategoryResponse(CamelModel):
    id: uuid.UUID
    name: str


class HouseholdProfileResponse(CamelModel):
    household: HouseholdResponse
    default_categories: list[DefaultCategoryResponse] | None = None


class UpdateHouseholdRequest(CamelModel):
    name: str


@router.get("", response_model=HouseholdProfileResponse)
def get_household(
    response: Response,
    include_defaults: bool = Query(False, alias="includeDefaults"),
    household_id: uuid.UUID = Depends(get_household_id),
    db: Session = Depends(get_db),
):
    profile = GetHouseholdProfileService(db).execute(household_id, include_defaults)
    response.headers[RESULT_CODE_HEADER] = "HOUSEHOLD_FETCHED"
    return HouseholdProfileResponse.model_validate(profile)


@router.patch("", response_model=HouseholdResponse)
def update_household(
    req: UpdateHouseholdRequest,
    response: Response,
    household_id: uuid.UUID = Depends(get_household_id),
    db: Session = Depends(get_db),
):
    household = UpdateHouseholdNameUseCase(db).execute(household_id, req.name)
    response.headers[RESULT_CODE_HEADER] = "HOUSEHOLD_UPDATED"
    return HouseholdResponse.model_validate(household)
