import uuid

from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from homebudget.infrastructure.db.models import User
from homebudget.application.households import CreateHouseholdUseCase
from homebudget.application.errors import EmailAlreadyRegistered, InvalidCredentials

# pbkdf2_sha256: no native deps
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == email.strip().lower()).first()


def authenticate(db: Session, email: str, password: str) -> User:
    user = get_user_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        raise InvalidCredentials()
    return user


def register_user(db: Session, email: str, password: str, household_name: str = "My household") -> tuple[User, uuid.UUID]:
    """Create the user and its household (with default categories)."""
    if get_user_by_email(db, email):
        raise EmailAlreadyRegistered()

    user = User(email=email.strip().lower(), password_hash=hash_password(password))
    db.add(user)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise EmailAlreadyRegistered()

    household_id = CreateHouseholdUseCase(db).execute(user.id, household_name)
    return user, household_id
