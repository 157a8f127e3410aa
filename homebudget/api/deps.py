"""
FastAPI dependencies (DB session, authentication, household scope)
"""
import uuid

from fastapi import Depends, Request
from sqlalchemy.orm import Session, sessionmaker

from homebudget.config import get_settings
from homebudget.infrastructure.db.session import get_db as _get_db, get_session_factory
from homebudget.infrastructure.db.models import User
from homebudget.application.households import ResolveHouseholdUseCase
from homebudget.application.errors import Unauthorized


# Re-export get_db
get_db = _get_db


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    """
    Current user from the session cookie

    Raises:
        Unauthorized: not logged in, or the user no longer exists
    """
    user_id = request.session.get("user_id")
    if not user_id:
        raise Unauthorized("Not authenticated")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        request.session.clear()
        raise Unauthorized("User not found")

    return user


def get_household_id(user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> uuid.UUID:
    """Household of the current user; every budget route is scoped by it."""
    return ResolveHouseholdUseCase(db).execute(user.id)


def get_read_session_factory() -> sessionmaker | None:
    """
    Session factory for fan-out reads, or None to read sequentially on the
    request session.
    """
    if not get_settings().PARALLEL_READS:
        return None
    return get_session_factory()
