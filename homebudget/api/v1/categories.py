"""
Category API endpoints
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
from homebudget.application.categories import (
    CreateCategoryUseCase,
    DeleteCategoryUseCase,
    ListCategoriesService,
    RenameCategoryUseCase,
)


router = APIRouter(prefix="/api/v1/categories", tags=["categories"])


class CategoryResponse(CamelModel):
    id: uuid.UUID
    name: str
    created_at: datetime
    updated_at: datetime


class CategoryListResponse(CamelModel):
    data: list[CategoryResponse]
    meta: PaginationMetaResponse


class CategoryNameRequest(CamelModel):
    name: str


@router.get("", response_model=CategoryListResponse)
def list_categories(
    response: Response,
    search: str | None = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, alias="pageSize", ge=1),
    sort: Literal["name", "createdAt"] = "name",
    household_id: uuid.UUID = Depends(get_household_id),
    db: Session = Depends(get_db),
):
    service = ListCategoriesService(db, max_page_size=get_settings().MAX_PAGE_SIZE)
    result = service.execute(household_id, search, page, page_size, sort)
    response.headers[RESULT_CODE_HEADER] = "CATEGORIES_LISTED"
    return CategoryListResponse.model_validate(result)


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
def create_category(
    req: CategoryNameRequest,
    response: Response,
    household_id: uuid.UUID = Depends(get_household_id),
    db: Session = Depends(get_db),
):
    category = CreateCategoryUseCase(db).execute(household_id, req.name)
    response.headers[RESULT_CODE_HEADER] = "CATEGORY_CREATED"
    return CategoryResponse.model_validate(category)


@router.patch("/{category_id}", response_model=CategoryResponse)
def rename_category(
    category_id: uuid.UUID,
    req: CategoryNameRequest,
    response: Response,
    household_id: uuid.UUID = Depends(get_household_id),
    db: Session = Depends(get_db),
):
    category = RenameCategoryUseCase(db).execute(household_id, category_id, req.name)
    response.headers[RESULT_CODE_HEADER] = "CATEGORY_UPDATED"
    return CategoryResponse.model_validate(category)


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category(
    category_id: uuid.UUID,
    force: bool = False,
    household_id: uuid.UUID = Depends(get_household_id),
    db: Session = Depends(get_db),
):
    """Delete a category; force=true also removes its planned expenses and transactions"""
    DeleteCategoryUseCase(db).execute(household_id, category_id, force=force)
    return Response(status_code=status.HTTP_204_NO_CONTENT, headers={RESULT_CODE_HEADER: "CATEGORY_DELETED"})
