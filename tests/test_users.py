import unittest
from unittest import mock

import models
from create_admin import create_admin
from models import RoleEnum
from security import verify_password
from tests.base import ApiTestCase


class ProfileTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.user = self.make_user()

    def test_update_profile(self):
        response = self.client.put("/api/users/profile",
                                   json={"name": "Jane Q", "bio": "Writer", "profilePicture": "http://pic"},
                                   headers=self.auth(self.user))
        self.assertEqual(response.status_code, 200)
        user = response.json()["user"]
        self.assertEqual(user["name"], "Jane Q")
        self.assertEqual(user["bio"], "Writer")
        self.assertEqual(user["profilePicture"], "http://pic")
        self.assertEqual(user["email"], "jane@example.com")
        self.assertEqual(user["role"], "user")

    def test_empty_values_keep_current_ones(self):
        response = self.client.put("/api/users/profile", json={"name": "", "email": ""},
                                   headers=self.auth(self.user))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["user"]["name"], "Jane Doe")
        self.assertEqual(response.json()["user"]["email"], "jane@example.com")

    def test_password_change_allows_login_with_new_password(self):
        self.client.put("/api/users/profile", json={"password": "brand-new"}, headers=self.auth(self.user))
        self.db.expire_all()
        stored = self.db.get(models.User, self.user.id)
        self.assertTrue(verify_password("brand-new", stored.password_hash))
        login = self.client.post("/api/auth/login", json={"email": "jane@example.com", "password": "brand-new"})
        self.assertEqual(login.status_code, 200)

    def test_profile_cannot_take_another_users_email(self):
        self.make_user(name="Bob", email="bob@example.com")
        response = self.client.put("/api/users/profile", json={"email": "bob@example.com"},
                                   headers=self.auth(self.user))
        self.assertEqual(response.status_code, 400)

    def test_profile_rejects_malformed_email(self):
        response = self.client.put("/api/users/profile", json={"email": "a@b..com"}, headers=self.auth(self.user))
        self.assertEqual(response.status_code, 400)
        self.assertIn("email", response.json()["message"])

    def test_profile_ignores_role(self):
        response = self.client.put("/api/users/profile", json={"role": "admin"}, headers=self.auth(self.user))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["user"]["role"], "user")


class AdminUserTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.admin = self.make_user(name="Admin", email="admin@example.com", role=RoleEnum.admin)
        self.alice = self.make_user(name="Alice Smith", email="alice@example.com")
        self.bob = self.make_user(name="Bob Jones", email="bob@sample.org")

    def test_non_admin_is_forbidden(self):
        headers = self.auth(self.alice)
        for method, url in (("GET", "/api/users"), ("GET", f"/api/users/{self.bob.id}"),
                            ("PUT", f"/api/users/{self.bob.id}"), ("DELETE", f"/api/users/{self.bob.id}")):
            response = self.client.request(method, url, headers=headers, json={} if method == "PUT" else None)
            self.assertEqual(response.status_code, 403, url)
            self.assertEqual(response.json()["message"], "Not authorized as an admin")

    def test_anonymous_is_unauthorized(self):
        self.assertEqual(self.client.get("/api/users").status_code, 401)

    def test_list_users_with_search_and_pagination(self):
        headers = self.auth(self.admin)
        body = self.client.get("/api/users", headers=headers).json()
        self.assertEqual(body["total"], 3)
        self.assertEqual(body["totalPages"], 1)

        body = self.client.get("/api/users", params={"search": "SAMPLE"}, headers=headers).json()
        self.assertEqual([u["name"] for u in body["users"]], ["Bob Jones"])

        body = self.client.get("/api/users", params={"search": "alice"}, headers=headers).json()
        self.assertEqual([u["email"] for u in body["users"]], ["alice@example.com"])

        for wildcard in ("%", "_"):
            body = self.client.get("/api/users", params={"search": wildcard}, headers=headers).json()
            self.assertEqual(body["total"], 0, wildcard)

        body = self.client.get("/api/users", params={"limit": 2, "page": 2}, headers=headers).json()
        self.assertEqual(len(body["users"]), 1)
        self.assertEqual(body["totalPages"], 2)
        self.assertEqual(body["currentPage"], 2)

    def test_get_user_includes_brief_posts(self):
        self.create_post(self.alice, title="Alice writes")
        self.create_post(self.alice, title="Alice drafts", status="draft")
        response = self.client.get(f"/api/users/{self.alice.id}", headers=self.auth(self.admin))
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["user"]["email"], "alice@example.com")
        self.assertEqual([p["title"] for p in body["posts"]], ["Alice drafts", "Alice writes"])
        self.assertEqual(set(body["posts"][0]), {"id", "title", "summary", "status", "createdAt"})

    def test_get_missing_user(self):
        response = self.client.get("/api/users/999", headers=self.auth(self.admin))
        self.assertEqual(response.status_code, 404)

    def test_admin_updates_user(self):
        response = self.client.put(f"/api/users/{self.alice.id}",
                                   json={"role": "admin", "bio": "Promoted", "email": "ALICE@new.com"},
                                   headers=self.auth(self.admin))
        self.assertEqual(response.status_code, 200)
        user = response.json()["user"]
        self.assertEqual(user["role"], "admin")
        self.assertEqual(user["bio"], "Promoted")
        self.assertEqual(user["email"], "alice@new.com")
        self.assertEqual(user["name"], "Alice Smith")

    def test_admin_update_duplicate_email_racing_past_lookup(self):
        with mock.patch("crud.email_taken", return_value=False):
            response = self.client.put(f"/api/users/{self.alice.id}", json={"email": "bob@sample.org"},
                                       headers=self.auth(self.admin))
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message"], "Email already in use")

        self.db.expire_all()
        self.assertEqual(self.db.get(models.User, self.alice.id).email, "alice@example.com")

    def test_admin_update_rejects_bad_role(self):
        response = self.client.put(f"/api/users/{self.alice.id}", json={"role": "superuser"},
                                   headers=self.auth(self.admin))
        self.assertEqual(response.status_code, 400)

    def test_deleting_user_removes_all_their_posts(self):
        self.create_post(self.alice, title="A1")
        self.create_post(self.alice, title="A2", status="draft")
        bob_post = self.create_post(self.bob, title="B1")
        self.client.post(f"/api/posts/{bob_post['id']}/comments", json={"text": "nice"}, headers=self.auth(self.alice))
        self.client.put(f"/api/posts/{bob_post['id']}/like", headers=self.auth(self.alice))
        self.client.put(f"/api/posts/{bob_post['id']}/like", headers=self.auth(self.admin))

        response = self.client.delete(f"/api/users/{self.alice.id}", headers=self.auth(self.admin))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"success": True, "message": "User deleted"})

        self.assertEqual(self.db.query(models.Post).filter_by(author_id=self.alice.id).count(), 0)
        self.assertIsNone(self.db.query(models.User).filter_by(id=self.alice.id).first())

        remaining = self.client.get(f"/api/posts/{bob_post['id']}").json()["post"]
        self.assertEqual(remaining["comments"], [])
        self.assertEqual(remaining["likes"], 1)
        self.assertEqual(remaining["likedBy"], [self.admin.id])


class SeedAdminTests(ApiTestCase):
    def test_create_admin_is_idempotent(self):
        first = create_admin(self.db, name="Root", email="root@example.com", password="rootpass")
        second = create_admin(self.db, name="Root", email="root@example.com", password="rootpass")
        self.assertEqual(first.id, second.id)
        self.assertEqual(first.role, RoleEnum.admin)
        self.assertEqual(self.db.query(models.User).filter_by(email="root@example.com").count(), 1)

        login = self.client.post("/api/auth/login", json={"email": "root@example.com", "password": "rootpass"})
        self.assertEqual(login.status_code, 200)
        self.assertEqual(login.json()["user"]["role"], "admin")


if __name__ == "__main__":
    unittest.main()
