"""
Authentication routes (register, login, logout)
"""
import uuid

from fastapi import APIRouter, Depends, Request, Response, status
from pydantic import Field
from sqlalchemy.orm import Session

from homebudget.api.deps import get_db
from homebudget.api.errors import RESULT_CODE_HEADER
from homebudget.api.schemas import CamelModel
from homebudget.application.households import ResolveHouseholdUseCase
from homebudget.auth import authenticate, register_user


router = APIRouter(prefix="/api/v1/auth", tags=["auth"])

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class RegisterRequest(CamelModel):
    email: str = Field(pattern=EMAIL_PATTERN, max_length=255)
    password: str = Field(min_length=8, max_length=128)
    household_name: str = "My household"


class LoginRequest(CamelModel):
    email: str
    password: str


class SessionResponse(CamelModel):
    user_id: int
    email: str
    household_id: uuid.UUID


@router.post("/register", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
def register(req: RegisterRequest, request: Request, response: Response, db: Session = Depends(get_db)):
    """Create the account with its household and log in"""
    user, household_id = register_user(db, req.email, req.password, req.household_name)
    request.session["user_id"] = user.id
    response.headers[RESULT_CODE_HEADER] = "USER_REGISTERED"
    return SessionResponse(user_id=user.id, email=user.email, household_id=household_id)


@router.post("/login", response_model=SessionResponse)
def login(req: LoginRequest, request: Request, response: Response, db: Session = Depends(get_db)):
    user = authenticate(db, req.email, req.password)
    household_id = ResolveHouseholdUseCase(db).execute(user.id)
    request.session["user_id"] = user.id
    response.headers[RESULT_CODE_HEADER] = "USER_LOGGED_IN"
    return SessionResponse(user_id=user.id, email=user.email, household_id=household_id)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(request: Request):
    request.session.clear()
    return Response(status_code=status.HTTP_204_NO_CONTENT, headers={RESULT_CODE_HEADER: "USER_LOGGED_OUT"})
