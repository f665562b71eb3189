"""Registration, login and user lookup.

Functions take the request's SQLAlchemy session explicitly; nothing here
holds state between calls.
"""
import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from tasktracker.database import transaction
from tasktracker.errors import DuplicateEmail, InvalidCredentials, StoreError
from tasktracker.models.user import User
from tasktracker.schemas.user import UserOut
from tasktracker.utils.auth import create_token, hash_password, pwd_context, verify_password

logger = logging.getLogger(__name__)


def serialize_user(user: User) -> dict:
    """Public view of a user; the password hash never leaves this module."""
    return UserOut.model_validate(user).model_dump(by_alias=True)


def find_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(func.lower(User.email) == email.strip().lower()).first()


def get_user(db: Session, user_id: int) -> Optional[User]:
    return db.get(User, user_id)


def register(db: Session, email: str, password: str, name: Optional[str] = None) -> dict:
    email = email.strip().lower()
    try:
        if find_user_by_email(db, email):
            raise DuplicateEmail()

        hashed = hash_password(password)
        user = User(email=email, password=hashed, name=name)
        try:
            with transaction(db):
                db.add(user)
        except IntegrityError:
            # lost a race with a concurrent registration for the same email
            raise DuplicateEmail()
        db.refresh(user)
    except DuplicateEmail:
        logger.warning("Registration rejected, email already in use: %s", email)
        raise
    except SQLAlchemyError as e:
        logger.error("Error registering user %s: %s", email, e)
        raise StoreError() from e

    token = create_token(user.id)
    logger.info("New user registered: %s", email)
    return {"user": serialize_user(user), "token": token}


def login(db: Session, email: str, password: str) -> dict:
    try:
        user = find_user_by_email(db, email)
    except SQLAlchemyError as e:
        logger.error("Error logging in user %s: %s", email, e)
        raise StoreError() from e

    # same error for an unknown email and a wrong password
    if user is None:
        pwd_context.dummy_verify()
    if user is None or not verify_password(password, user.password):
        logger.warning("Failed login attempt for %s", email)
        raise InvalidCredentials()

    token = create_token(user.id)
    logger.info("User logged in: %s", email)
    return {"user": serialize_user(user), "token": token}
