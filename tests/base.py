import unittest

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import crud
from database import Base, get_db
from main import app
from models import RoleEnum
from security import create_access_token

PASSWORD = "password123"

POST_DATA = {
    "title": "First post",
    "content": "Some content worth reading.",
    "summary": "A short summary",
    "tags": ["python", "web"],
}


class ApiTestCase(unittest.TestCase):
    """Runs the app against a private in-memory SQLite database per test"""

    def setUp(self):
        self.engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        Base.metadata.create_all(bind=self.engine)
        self.Session = sessionmaker(bind=self.engine, autocommit=False, autoflush=False)
        self.db = self.Session()

        def override_get_db():
            db = self.Session()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()
        self.db.close()
        self.engine.dispose()

    def make_user(self, name="Jane Doe", email="jane@example.com", role=RoleEnum.user):
        return crud.create_new_user(self.db, name=name, email=email, password=PASSWORD, role=role)

    def auth(self, user):
        return {"Authorization": f"Bearer {create_access_token(user)}"}

    def create_post(self, user, **overrides):
        response = self.client.post("/api/posts", json={**POST_DATA, **overrides}, headers=self.auth(user))
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()["post"]
