"""Engine, session factory and declarative base shared by the models."""
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from config import DATABASE_URL, SQL_ECHO
from logger import get_logger

logger = get_logger("database")

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

logger.info("Connecting to: %s", DATABASE_URL.split("@")[-1])

engine = create_engine(DATABASE_URL, echo=SQL_ECHO, connect_args=connect_args, pool_pre_ping=True)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Dependency function that provides a database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
