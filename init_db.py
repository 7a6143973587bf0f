"""Initialize the database by creating all tables defined in the models"""
import models  # noqa: F401  registers the tables on Base.metadata
from config import SEED_ADMIN
from create_admin import create_admin
from database import Base, SessionLocal, engine
from logger import get_logger

logger = get_logger("init_db")


def init_db(seed_admin: bool = SEED_ADMIN):
    logger.info("Creating tables on the database...")
    Base.metadata.create_all(bind=engine)
    logger.info("Tables created successfully!")

    if seed_admin:
        db = SessionLocal()
        try:
            create_admin(db)
        finally:
            db.close()


if __name__ == "__main__":
    init_db()
