"""Profile self-service and admin-only user management."""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

import crud
from database import get_db
from logger import get_logger
from schemas import (
    MessageResponse,
    PostBrief,
    ProfileUpdate,
    UserDetailResponse,
    UserListResponse,
    UserOut,
    UserResponse,
    UserUpdate,
)
from security import AdminUser, CurrentUser

logger = get_logger("users")

router = APIRouter(prefix="/users", tags=["users"])


def _user_or_404(db: Session, user_id: int):
    user = crud.get_user_by_id(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


def _check_email_free(db: Session, email: Optional[str], user_id: int):
    if email and crud.email_taken(db, email, exclude_id=user_id):
        raise HTTPException(status_code=400, detail="Email already in use")


def _save_user_fields(db: Session, user, fields: dict):
    _check_email_free(db, fields.get("email"), user.id)
    try:
        return crud.update_user_fields(db, user, **fields)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="Email already in use")


@router.put("/profile", response_model=UserResponse)
def update_profile(payload: ProfileUpdate, current_user: CurrentUser, db: Session = Depends(get_db)):
    """Update the current user's own profile"""
    user = _save_user_fields(db, current_user, payload.model_dump())
    return UserResponse(user=UserOut.model_validate(user))


@router.get("", response_model=UserListResponse)
def get_users(admin: AdminUser,
              db: Session = Depends(get_db),
              page: int = Query(1, ge=1),
              limit: int = Query(10, ge=1, le=100),
              search: Optional[str] = None):
    """List users, optionally searching name and email. Admin only"""
    users, total = crud.list_users(db, page, limit, search=(search or "").strip() or None)
    return UserListResponse(users=[UserOut.model_validate(u) for u in users],
                            total_pages=crud.total_pages(total, limit),
                            current_page=page,
                            total=total)


@router.get("/{user_id}", response_model=UserDetailResponse)
def get_user(user_id: int, admin: AdminUser, db: Session = Depends(get_db)):
    """Retrieve a user and a brief listing of their posts. Admin only"""
    user = _user_or_404(db, user_id)
    posts = crud.get_user_posts(db, user.id)
    return UserDetailResponse(user=UserOut.model_validate(user),
                              posts=[PostBrief.model_validate(p) for p in posts])


@router.put("/{user_id}", response_model=UserResponse)
def update_user(user_id: int, payload: UserUpdate, admin: AdminUser, db: Session = Depends(get_db)):
    """Update another user's name, email, role or bio. Admin only"""
    user = _user_or_404(db, user_id)
    user = _save_user_fields(db, user, payload.model_dump())
    logger.info("Admin %s updated user %s", admin.id, user.id)
    return UserResponse(user=UserOut.model_validate(user))


@router.delete("/{user_id}", response_model=MessageResponse)
def delete_user(user_id: int, admin: AdminUser, db: Session = Depends(get_db)):
    """Delete a user and every post they wrote. Admin only"""
    user = _user_or_404(db, user_id)
    crud.delete_user(db, user)
    logger.info("Admin %s deleted user %s and their posts", admin.id, user_id)
    return MessageResponse(message="User deleted")
