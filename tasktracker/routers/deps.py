from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from tasktracker.database import get_db
from tasktracker.errors import InvalidToken
from tasktracker.models.user import User
from tasktracker.services import auth_service
from tasktracker.utils.auth import verify_token


def _extract_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token from an `Authorization: Bearer <token>` header."""
    if authorization:
        parts = authorization.split()
        if len(parts) == 2 and parts[0].lower() == "bearer":
            return parts[1]
    return None


def get_current_user(authorization: Optional[str] = Header(None), db: Session = Depends(get_db)) -> User:
    tok = _extract_token(authorization)
    if not tok:
        raise InvalidToken("Access token is required")
    user_id = verify_token(tok)
    user = auth_service.get_user(db, user_id)
    if user is None:
        raise InvalidToken("User not found")
    return user
