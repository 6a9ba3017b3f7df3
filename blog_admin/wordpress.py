"""
WordPress REST API client abstraction.

The HTTP client talks to a WordPress.com v1.1 style site endpoint
(``/posts``, ``/posts/new``, ``/posts/{id}``, ``/posts/{id}/delete``, ``/me``)
using basic auth with an Application Password. An in-memory fake backs local
development and tests.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional, Protocol

import requests

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30  # seconds


class WordPressError(Exception):
    """Raised when the WordPress API is unreachable or answers with an error."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class WordPressClient(Protocol):
    """Operations the API needs from WordPress."""

    def get_current_user(self) -> dict:
        ...

    def list_posts(self) -> list[dict]:
        ...

    def get_post(self, post_id: str) -> dict:
        ...

    def create_post(self, data: dict) -> dict:
        ...

    def update_post(self, post_id: str, data: dict) -> dict:
        ...

    def delete_post(self, post_id: str) -> None:
        ...


@dataclass
class HttpWordPressClient:
    """requests-based client authenticated with basic auth."""

    base_url: str
    username: str
    application_password: str
    timeout: float = REQUEST_TIMEOUT
    posts_per_page: int = 100

    def __post_init__(self):
        if not self.base_url:
            raise ValueError("WORDPRESS_API_BASE_URL is required for HttpWordPressClient")
        self.base_url = self.base_url.rstrip("/")
        self.session = requests.Session()
        self.session.auth = (self.username, self.application_password)
        self.session.headers.update({"Accept": "application/json"})

    def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.error("WordPress request %s %s failed: %s", method, url, e)
            raise WordPressError(f"WordPress request failed: {e}") from e

        if not response.ok:
            logger.error(
                "WordPress responded %s for %s %s: %s",
                response.status_code,
                method,
                url,
                response.text,
            )
            raise WordPressError(
                f"WordPress responded with {response.status_code}",
                status_code=response.status_code,
            )

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            logger.error("WordPress returned invalid JSON for %s %s", method, url)
            raise WordPressError("WordPress returned invalid JSON") from e

    def get_current_user(self) -> dict:
        return self._request("GET", "/me")

    def list_posts(self) -> list[dict]:
        payload = self._request("GET", "/posts", params={"number": self.posts_per_page})
        return payload.get("posts") or []

    def get_post(self, post_id: str) -> dict:
        return self._request("GET", f"/posts/{post_id}")

    def create_post(self, data: dict) -> dict:
        return self._request("POST", "/posts/new", json=data)

    def update_post(self, post_id: str, data: dict) -> dict:
        # The v1.1 API updates with POST; _method keeps method-override proxies happy.
        payload = {**data, "_method": "put"}
        return self._request("POST", f"/posts/{post_id}", json=payload)

    def delete_post(self, post_id: str) -> None:
        self._request("POST", f"/posts/{post_id}/delete")

    def close(self) -> None:
        self.session.close()


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


@dataclass
class InMemoryWordPressClient:
    """Test double for WordPress interactions."""

    profile: dict = field(
        default_factory=lambda: {
            "ID": 1,
            "display_name": "WordPress Admin",
            "username": "admin",
            "roles": ["administrator"],
        }
    )
    posts: dict[int, dict] = field(default_factory=dict)

    def __post_init__(self):
        self._ids = itertools.count(max(self.posts, default=0) + 1)

    def _find(self, post_id: str) -> dict:
        key = str(post_id)
        post = self.posts.get(int(key)) if key.isdigit() else None
        if post is None:
            raise WordPressError(f"Unknown post {post_id}", status_code=404)
        return post

    def seed_post(self, title: str, content: str, status: str = "publish") -> dict:
        return self.create_post({"title": title, "content": content, "status": status})

    def get_current_user(self) -> dict:
        return dict(self.profile)

    def list_posts(self) -> list[dict]:
        return [dict(post) for post in self.posts.values()]

    def get_post(self, post_id: str) -> dict:
        return dict(self._find(post_id))

    def create_post(self, data: dict) -> dict:
        post_id = next(self._ids)
        now = _now_iso()
        post = {
            "ID": post_id,
            "title": data.get("title", ""),
            "content": data.get("content", ""),
            "status": data.get("status", "publish"),
            "date": now,
            "modified": now,
            "URL": f"https://example.test/?p={post_id}",
        }
        self.posts[post_id] = post
        return dict(post)

    def update_post(self, post_id: str, data: dict) -> dict:
        post = self._find(post_id)
        for key in ("title", "content", "status"):
            if key in data:
                post[key] = data[key]
        post["modified"] = _now_iso()
        return dict(post)

    def delete_post(self, post_id: str) -> None:
        post = self._find(post_id)
        del self.posts[post["ID"]]

    def reset(self) -> None:
        """Clear all stored posts (useful in tests)."""
        self.posts.clear()
        self._ids = itertools.count(1)
