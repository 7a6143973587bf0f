"""HTTP client for the blog API.

Every ``BlogClient`` carries its own bearer token, so several sessions can
coexist in one process::

    client = BlogClient("http://localhost:5000")
    client.login("admin@blogweb.com", "admin123")
    client.create_post(title="Hello", content="...", summary="...")
"""
from typing import Any, Optional

import httpx

from logger import get_logger

logger = get_logger("client")


class ApiError(Exception):
    """Non-2xx response from the API"""

    def __init__(self, status_code: int, message: str, payload: Optional[dict] = None):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message
        self.payload = payload or {}


class AuthenticationError(ApiError):
    """401: the stored token was missing, invalid or expired and has been discarded"""


class ForbiddenError(ApiError):
    pass


class NotFoundError(ApiError):
    pass


_ERRORS_BY_STATUS = {401: AuthenticationError, 403: ForbiddenError, 404: NotFoundError}


class BlogClient:
    def __init__(self,
                 base_url: str = "http://localhost:5000",
                 token: Optional[str] = None,
                 http_client: Optional[httpx.Client] = None,
                 api_prefix: str = "/api",
                 timeout: float = 10.0):
        self.token = token
        self.api_prefix = api_prefix.rstrip("/")
        self._owns_http = http_client is None
        self._http = http_client or httpx.Client(base_url=base_url, timeout=timeout)

    def close(self):
        if self._owns_http:
            self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    def _headers(self) -> dict:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    def _request(self, method: str, path: str, *, json: Any = None, params: Optional[dict] = None) -> dict:
        if params:
            params = {key: value for key, value in params.items() if value not in (None, "")}
        response = self._http.request(method, f"{self.api_prefix}{path}",
                                      json=json, params=params or None, headers=self._headers())
        try:
            payload = response.json()
        except ValueError:
            payload = {}

        if response.is_success:
            return payload

        message = payload.get("message") if isinstance(payload, dict) else None
        message = message or response.reason_phrase
        if response.status_code == 401:
            logger.info("Discarding token after 401 from %s %s", method, path)
            self.token = None
        error_cls = _ERRORS_BY_STATUS.get(response.status_code, ApiError)
        raise error_cls(response.status_code, message, payload if isinstance(payload, dict) else None)

    # ---------- auth ----------

    def register(self, name: str, email: str, password: str) -> dict:
        data = self._request("POST", "/auth/register", json={"name": name, "email": email, "password": password})
        self.token = data["token"]
        return data["user"]

    def login(self, email: str, password: str) -> dict:
        data = self._request("POST", "/auth/login", json={"email": email, "password": password})
        self.token = data["token"]
        return data["user"]

    def logout(self):
        """Forget the token; the server keeps no session"""
        self.token = None

    def me(self) -> dict:
        return self._request("GET", "/auth/me")["user"]

    # ---------- posts ----------

    def list_posts(self, page: int = 1, limit: int = 10, tag: str = "", search: str = "",
                   status: str = "", author: Optional[int] = None) -> dict:
        """Return the whole page envelope: posts, totalPages, currentPage, total"""
        return self._request("GET", "/posts", params={
            "page": page, "limit": limit, "tag": tag, "search": search, "status": status, "author": author,
        })

    def get_post(self, post_id: int) -> dict:
        return self._request("GET", f"/posts/{post_id}")["post"]

    def create_post(self, **fields) -> dict:
        return self._request("POST", "/posts", json=fields)["post"]

    def update_post(self, post_id: int, **fields) -> dict:
        return self._request("PUT", f"/posts/{post_id}", json=fields)["post"]

    def delete_post(self, post_id: int) -> str:
        return self._request("DELETE", f"/posts/{post_id}")["message"]

    def like_post(self, post_id: int) -> dict:
        """Toggle the like; returns {"likes": ..., "likedBy": [...]}"""
        data = self._request("PUT", f"/posts/{post_id}/like")
        return {"likes": data["likes"], "likedBy": data["likedBy"]}

    def add_comment(self, post_id: int, text: str) -> list:
        return self._request("POST", f"/posts/{post_id}/comments", json={"text": text})["comments"]

    def delete_comment(self, post_id: int, comment_id: int) -> list:
        return self._request("DELETE", f"/posts/{post_id}/comments/{comment_id}")["comments"]

    # ---------- users ----------

    def update_profile(self, **fields) -> dict:
        return self._request("PUT", "/users/profile", json=fields)["user"]

    def list_users(self, page: int = 1, limit: int = 10, search: str = "") -> dict:
        return self._request("GET", "/users", params={"page": page, "limit": limit, "search": search})

    def get_user(self, user_id: int) -> dict:
        """Admin only; returns {"user": ..., "posts": [...]}"""
        data = self._request("GET", f"/users/{user_id}")
        return {"user": data["user"], "posts": data["posts"]}

    def update_user(self, user_id: int, **fields) -> dict:
        return self._request("PUT", f"/users/{user_id}", json=fields)["user"]

    def delete_user(self, user_id: int) -> str:
        return self._request("DELETE", f"/users/{user_id}")["message"]
