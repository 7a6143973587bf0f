"""Idempotently create the default administrator account."""
from sqlalchemy.orm import Session

import crud
from config import ADMIN_EMAIL, ADMIN_NAME, ADMIN_PASSWORD
from database import SessionLocal
from logger import get_logger
from models import RoleEnum

logger = get_logger("seed")


def create_admin(db: Session,
                 name: str = ADMIN_NAME,
                 email: str = ADMIN_EMAIL,
                 password: str = ADMIN_PASSWORD):
    """Create the admin user unless a user with that email already exists"""
    existing = crud.get_user_by_email(db, email)
    if existing:
        logger.info("Admin user %s already exists", existing.email)
        return existing

    admin = crud.create_new_user(db,
                                 name=name,
                                 email=email,
                                 password=password,
                                 role=RoleEnum.admin,
                                 bio="Blog administrator")
    logger.info("Admin user created successfully: %s", admin.email)
    return admin


if __name__ == "__main__":
    db = SessionLocal()
    try:
        create_admin(db)
    finally:
        db.close()
