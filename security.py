"""Password hashing, JWT issuing and the authentication dependencies."""
from datetime import datetime, timedelta, timezone
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Request, status
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

import models
from config import ACCESS_TOKEN_EXPIRE_MINUTES, ALGORITHM, BCRYPT_ROUNDS, SECRET_KEY
from database import get_db
from logger import get_logger

logger = get_logger("security")

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=BCRYPT_ROUNDS)


def hash_password(password: str):
    """Hash a plain text password using the configured password hashing context"""
    return pwd_context.hash(password)


def verify_password(plain_password, hashed_password):
    """Verify if a plain text password matches its hashed version"""
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(user: models.User, expires_delta: timedelta | None = None):
    """Create a signed, time-limited JWT for a user"""
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {
        "sub": str(user.id),
        "role": user.role.value if hasattr(user.role, "value") else user.role,
        "exp": expire,
    }
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def _bearer_token(request: Request) -> Optional[str]:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def _user_from_token(db: Session, token: str) -> models.User:
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        user_id = int(payload.get("sub"))
    except (JWTError, TypeError, ValueError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authorized, token failed")

    user = db.get(models.User, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authorized, user not found")
    return user


def get_current_user(request: Request, db: Session = Depends(get_db)):
    """Retrieve the authenticated user from the bearer token in the Authorization header"""
    token = _bearer_token(request)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authorized, no token")
    try:
        return _user_from_token(db, token)
    except HTTPException as exc:
        logger.info("Rejected token on %s %s: %s", request.method, request.url.path, exc.detail)
        raise


def get_optional_user(request: Request, db: Session = Depends(get_db)):
    """Like get_current_user, but anonymous requests (or unusable tokens) yield None"""
    token = _bearer_token(request)
    if not token:
        return None
    try:
        return _user_from_token(db, token)
    except HTTPException:
        return None


CurrentUser = Annotated[models.User, Depends(get_current_user)]
OptionalUser = Annotated[Optional[models.User], Depends(get_optional_user)]


def is_admin(user: Optional[models.User]) -> bool:
    return user is not None and user.role == models.RoleEnum.admin


def is_owner_or_admin(user: Optional[models.User], owner_id: int) -> bool:
    return user is not None and (user.id == owner_id or is_admin(user))


def require_admin(user: models.User = Depends(get_current_user)):
    """Ensure the current user has admin privileges"""
    if not is_admin(user):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized as an admin")
    return user


AdminUser = Annotated[models.User, Depends(require_admin)]


def check_ownership_or_admin(user: models.User, owner_id: int, action: str = "modify this resource"):
    """Verify if the current user is the owner of a resource or an admin"""
    if not is_owner_or_admin(user, owner_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=f"Not authorized to {action}")
