"""
Category use cases - spending categories of a household

Names are unique per household, compared case-insensitively.
"""
import logging
import uuid

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from homebudget.infrastructure.db.models import Category, PlannedExpense, Transaction
from homebudget.application.pagination import Page, PaginationMeta, check_page_args
from homebudget.utils.validation import partial_match_pattern
from homebudget.application.errors import (
    CategoryDependenciesExist,
    CategoryNameConflict,
    CategoryNotFound,
    InvalidPayload,
    OperationFailed,
    CATEGORIES_LIST_FAILED,
    CATEGORY_CREATE_FAILED,
    CATEGORY_DELETE_FAILED,
    CATEGORY_UPDATE_FAILED,
)

logger = logging.getLogger(__name__)

CATEGORY_NAME_MAX_LENGTH = 100
CATEGORY_SORTS = ("name", "createdAt")


def _clean_name(name: str) -> str:
    name = (name or "").strip()
    if not name:
        raise InvalidPayload("Category name cannot be empty")
    if len(name) > CATEGORY_NAME_MAX_LENGTH:
        raise InvalidPayload(f"Category name cannot exceed {CATEGORY_NAME_MAX_LENGTH} characters")
    return name


def _name_taken(db: Session, household_id: uuid.UUID, name: str, exclude_id: uuid.UUID | None = None) -> bool:
    query = db.query(Category.id).filter(
        Category.household_id == household_id,
        func.lower(Category.name) == name.lower(),
    )
    if exclude_id is not None:
        query = query.filter(Category.id != exclude_id)
    return query.first() is not None


def _get_category(db: Session, household_id: uuid.UUID, category_id: uuid.UUID) -> Category:
    category = db.query(Category).filter(
        Category.id == category_id,
        Category.household_id == household_id,
    ).first()
    if category is None:
        raise CategoryNotFound()
    return category


class ListCategoriesService:
    def __init__(self, db: Session, max_page_size: int = 100):
        self.db = db
        self.max_page_size = max_page_size

    def execute(
        self,
        household_id: uuid.UUID,
        search: str | None = None,
        page: int = 1,
        page_size: int = 50,
        sort: str = "name",
    ) -> Page:
        if sort not in CATEGORY_SORTS:
            raise InvalidPayload(f"Sort must be one of: {', '.join(CATEGORY_SORTS)}")
        offset = check_page_args(page, page_size, self.max_page_size)

        query = self.db.query(Category).filter(Category.household_id == household_id)
        if search and search.strip():
            query = query.filter(Category.name.ilike(partial_match_pattern(search), escape="\\"))

        if sort == "createdAt":
            query = query.order_by(Category.created_at.asc(), Category.name.asc())
        else:
            query = query.order_by(Category.name.asc())

        try:
            total_items = query.order_by(None).count()
            categories = query.offset(offset).limit(page_size).all()
        except SQLAlchemyError:
            logger.exception("Failed to list categories for household %s", household_id)
            raise OperationFailed(CATEGORIES_LIST_FAILED, "Failed to retrieve categories")

        return Page(data=categories, meta=PaginationMeta.build(page, page_size, total_items))


class CreateCategoryUseCase:
    """Use case: create a category"""

    def __init__(self, db: Session):
        self.db = db

    def execute(self, household_id: uuid.UUID, name: str) -> Category:
        name = _clean_name(name)
        if _name_taken(self.db, household_id, name):
            raise CategoryNameConflict()

        category = Category(household_id=household_id, name=name)
        self.db.add(category)
        try:
            self.db.commit()
        except IntegrityError:
            # concurrent insert with the same name
            self.db.rollback()
            raise CategoryNameConflict()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to create category for household %s", household_id)
            raise OperationFailed(CATEGORY_CREATE_FAILED, "Failed to create category")
        return category


class RenameCategoryUseCase:
    """Use case: rename a category"""

    def __init__(self, db: Session):
        self.db = db

    def execute(self, household_id: uuid.UUID, category_id: uuid.UUID, name: str) -> Category:
        name = _clean_name(name)
        category = _get_category(self.db, household_id, category_id)

        if category.name == name:
            return category
        if _name_taken(self.db, household_id, name, exclude_id=category_id):
            raise CategoryNameConflict()

        category.name = name
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise CategoryNameConflict()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to rename category %s", category_id)
            raise OperationFailed(CATEGORY_UPDATE_FAILED, "Failed to update category")
        return category


class DeleteCategoryUseCase:
    """
    Use case: delete a category

    A category used by planned expenses or transactions is deleted only with
    force=True, together with those rows.
    """

    def __init__(self, db: Session):
        self.db = db

    def execute(self, household_id: uuid.UUID, category_id: uuid.UUID, force: bool = False) -> None:
        category = _get_category(self.db, household_id, category_id)

        try:
            dependencies = sum(
                self.db.query(model).filter(
                    model.household_id == household_id,
                    model.category_id == category_id,
                ).count()
                for model in (PlannedExpense, Transaction)
            )
        except SQLAlchemyError:
            logger.exception("Failed to count dependencies of category %s", category_id)
            raise OperationFailed(CATEGORY_DELETE_FAILED, "Failed to delete category")

        if dependencies and not force:
            raise CategoryDependenciesExist()

        try:
            for model in (Transaction, PlannedExpense):
                self.db.query(model).filter(
                    model.household_id == household_id,
                    model.category_id == category_id,
                ).delete(synchronize_session=False)
            self.db.delete(category)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to delete category %s", category_id)
            raise OperationFailed(CATEGORY_DELETE_FAILED, "Failed to delete category")

        logger.info("Category %s deleted (%d dependent rows)", category_id, dependencies)
