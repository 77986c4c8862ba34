"""FastAPI dependencies for the API layer."""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from app.core.security import subject_from_token
from app.database import get_db
from app.models import User

# Tokens are issued by the external auth service; this is only the docs hint.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Retrieve the current user from the JWT token."""

    return get_user_from_token(token, db)


def get_user_from_token(token: str, db: Session) -> User:
    """Resolve a user from a JWT token or raise an HTTP 401 error."""

    user = db.get(User, subject_from_token(token))
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        )
    return user
