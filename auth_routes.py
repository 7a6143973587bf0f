"""Registration, login and current-user endpoints."""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

import crud
from database import get_db
from logger import get_logger
from schemas import AuthResponse, LoginRequest, RegisterRequest, UserOut, UserResponse
from security import CurrentUser, create_access_token, verify_password

logger = get_logger("auth")

router = APIRouter(prefix="/auth", tags=["auth"])


def _auth_response(user):
    return AuthResponse(token=create_access_token(user), user=UserOut.model_validate(user))


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    """Create a regular user account and log it in"""
    if crud.email_taken(db, payload.email):
        raise HTTPException(status_code=400, detail="User already exists")

    try:
        user = crud.create_new_user(db, name=payload.name, email=payload.email, password=payload.password)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="User already exists")
    logger.info("Registered user %s (%s)", user.id, user.email)
    return _auth_response(user)


@router.post("/login", response_model=AuthResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    """Authenticate a user using email and password"""
    user = crud.get_user_by_email(db, payload.email)
    if not user or not verify_password(payload.password, user.password_hash):
        logger.info("Failed login for %s", payload.email)
        raise HTTPException(status_code=401, detail="Invalid credentials")

    return _auth_response(user)


@router.get("/me", response_model=UserResponse)
def get_me(current_user: CurrentUser):
    """Retrieve information about the currently authenticated user"""
    return UserResponse(user=UserOut.model_validate(current_user))
