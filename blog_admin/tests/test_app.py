import unittest
from unittest.mock import MagicMock, patch

from fastapi.testclient import TestClient

from blog_admin.app import create_app
from blog_admin.config import Settings, get_settings
from blog_admin.db import InMemoryDbClient
from blog_admin.dependencies import get_db_client, get_wordpress_client
from blog_admin.wordpress import InMemoryWordPressClient, WordPressError

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "abcd efgh ijkl mnop"


class BackendApiTests(unittest.TestCase):
    def setUp(self):
        self.app = create_app()
        self.db = InMemoryDbClient()
        self.wordpress = InMemoryWordPressClient()
        self.settings = Settings(
            _env_file=None,
            wordpress_api_username=ADMIN_EMAIL,
            wordpress_api_application_password=ADMIN_PASSWORD,
        )
        self.app.dependency_overrides[get_db_client] = lambda: self.db
        self.app.dependency_overrides[get_wordpress_client] = lambda: self.wordpress
        self.app.dependency_overrides[get_settings] = lambda: self.settings
        self.client = TestClient(self.app)

    def _login(self) -> dict:
        response = self.client.post(
            "/api/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}
        )
        self.assertEqual(response.status_code, 200, response.text)
        return {"Authorization": f"Bearer {response.json()['token']}"}

    def test_login_returns_token_and_user(self):
        response = self.client.post(
            "/api/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}
        )
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["message"], "Login successful")
        self.assertTrue(payload["token"])
        self.assertEqual(payload["user"]["email"], ADMIN_EMAIL)
        self.assertEqual(payload["user"]["name"], "WordPress Admin")
        self.assertEqual(len(self.db.tokens), 1)

    def test_login_rejects_wrong_password(self):
        response = self.client.post(
            "/api/login", json={"email": ADMIN_EMAIL, "password": "nope"}
        )
        self.assertEqual(response.status_code, 422)
        payload = response.json()
        self.assertIn("email", payload["errors"])
        self.assertIn("credentials", payload["message"])
        self.assertEqual(self.db.tokens, {})

    def test_login_rejects_other_user(self):
        response = self.client.post(
            "/api/login", json={"email": "other@example.com", "password": ADMIN_PASSWORD}
        )
        self.assertEqual(response.status_code, 422)

    def test_login_validates_fields(self):
        response = self.client.post("/api/login", json={"email": "not-an-email"})
        self.assertEqual(response.status_code, 422)
        errors = response.json()["errors"]
        self.assertIn("email", errors)
        self.assertIn("password", errors)
        self.assertIn("more error", response.json()["message"])

    def test_login_fails_when_wordpress_rejects_verification(self):
        wordpress = MagicMock()
        wordpress.get_current_user.side_effect = WordPressError("nope", status_code=403)
        self.app.dependency_overrides[get_wordpress_client] = lambda: wordpress

        response = self.client.post(
            "/api/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}
        )
        self.assertEqual(response.status_code, 422)
        wordpress.get_current_user.assert_called_once()

    def test_second_login_revokes_previous_token(self):
        first = self._login()
        second = self._login()

        self.assertEqual(self.client.get("/api/user", headers=first).status_code, 401)
        self.assertEqual(self.client.get("/api/user", headers=second).status_code, 200)

    def test_current_user_and_logout(self):
        headers = self._login()
        response = self.client.get("/api/user", headers=headers)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["message"], "Authenticated")
        self.assertEqual(response.json()["user"]["email"], ADMIN_EMAIL)

        response = self.client.post("/api/logout", headers=headers)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["message"], "Logged out successfully")
        self.assertEqual(self.client.get("/api/user", headers=headers).status_code, 401)

    def test_routes_require_token(self):
        response = self.client.get("/api/blog-posts")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["message"], "Unauthenticated.")

        response = self.client.get(
            "/api/user", headers={"Authorization": "Bearer not-a-token"}
        )
        self.assertEqual(response.status_code, 401)

    def test_list_posts_defaults_priority_and_builds_excerpt(self):
        headers = self._login()
        long_post = self.wordpress.seed_post("Long", "<p>" + "a" * 200 + "</p>")
        short_post = self.wordpress.seed_post("Short", "<b>hello</b> world")
        self.db.set_priority(str(short_post["ID"]), 4)

        response = self.client.get("/api/blog-posts", headers=headers)
        self.assertEqual(response.status_code, 200)
        items = {item["ID"]: item for item in response.json()}

        self.assertEqual(items[long_post["ID"]]["priority"], 0)
        self.assertEqual(items[long_post["ID"]]["excerpt_content"], "a" * 150 + "...")
        self.assertEqual(items[short_post["ID"]]["priority"], 4)
        self.assertEqual(items[short_post["ID"]]["excerpt_content"], "hello world")

    def test_list_posts_without_excerpt(self):
        headers = self._login()
        self.wordpress.seed_post("One", "body")

        response = self.client.get(
            "/api/blog-posts", params={"include_excerpt": "false"}, headers=headers
        )
        self.assertEqual(response.status_code, 200)
        self.assertNotIn("excerpt_content", response.json()[0])

    def test_list_posts_sorted_by_priority(self):
        headers = self._login()
        ids = [self.wordpress.seed_post(f"Post {i}", "x")["ID"] for i in range(4)]
        self.db.set_priority(str(ids[1]), 2)
        self.db.set_priority(str(ids[3]), 5)

        response = self.client.get(
            "/api/blog-posts", params={"sort_by_priority": "true"}, headers=headers
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            [item["ID"] for item in response.json()], [ids[3], ids[1], ids[0], ids[2]]
        )

    def test_list_posts_wordpress_failure(self):
        headers = self._login()
        wordpress = MagicMock()
        wordpress.list_posts.side_effect = WordPressError("down")
        self.app.dependency_overrides[get_wordpress_client] = lambda: wordpress

        response = self.client.get("/api/blog-posts", headers=headers)
        self.assertEqual(response.status_code, 500)
        self.assertEqual(
            response.json()["message"], "Could not fetch posts from WordPress."
        )

    def test_create_post_adds_default_priority(self):
        headers = self._login()
        response = self.client.post(
            "/api/blog-posts",
            json={"title": "Hello", "content": "<p>World</p>"},
            headers=headers,
        )
        self.assertEqual(response.status_code, 201)
        payload = response.json()
        self.assertEqual(payload["status"], "publish")
        self.assertEqual(payload["priority"], 0)
        self.assertEqual(self.db.get_priority(str(payload["ID"])).priority, 0)

    def test_create_post_validation(self):
        headers = self._login()
        response = self.client.post(
            "/api/blog-posts", json={"content": "body"}, headers=headers
        )
        self.assertEqual(response.status_code, 422)
        self.assertIn("title", response.json()["errors"])

        response = self.client.post(
            "/api/blog-posts",
            json={"title": "x" * 256, "content": "body", "status": "archived"},
            headers=headers,
        )
        self.assertEqual(response.status_code, 422)
        self.assertEqual(set(response.json()["errors"]), {"title", "status"})

    def test_show_post(self):
        headers = self._login()
        post = self.wordpress.seed_post("Hello", "World")
        self.db.set_priority(str(post["ID"]), 7)

        response = self.client.get(f"/api/blog-posts/{post['ID']}", headers=headers)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["title"], "Hello")
        self.assertEqual(response.json()["priority"], 7)

        response = self.client.get("/api/blog-posts/999", headers=headers)
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["message"], "Post not found in WordPress.")

    def test_update_post_fields_and_priority(self):
        headers = self._login()
        post = self.wordpress.seed_post("Old", "Body")

        response = self.client.put(
            f"/api/blog-posts/{post['ID']}",
            json={"title": "New", "priority": 3},
            headers=headers,
        )
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["title"], "New")
        self.assertEqual(payload["content"], "Body")
        self.assertEqual(payload["priority"], 3)

    def test_update_priority_only_skips_wordpress_write(self):
        headers = self._login()
        post = self.wordpress.seed_post("Title", "Body")

        with patch.object(self.wordpress, "update_post") as update_post:
            response = self.client.patch(
                f"/api/blog-posts/{post['ID']}", json={"priority": 9}, headers=headers
            )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["priority"], 9)
        update_post.assert_not_called()

    def test_update_priority_for_missing_post(self):
        headers = self._login()
        response = self.client.put(
            "/api/blog-posts/404", json={"priority": 1}, headers=headers
        )
        self.assertEqual(response.status_code, 404)
        self.assertEqual(
            response.json()["message"], "Post not found in WordPress to update priority."
        )
        self.assertIsNone(self.db.get_priority("404"))

    def test_update_rejects_negative_priority(self):
        headers = self._login()
        post = self.wordpress.seed_post("Title", "Body")
        response = self.client.put(
            f"/api/blog-posts/{post['ID']}", json={"priority": -1}, headers=headers
        )
        self.assertEqual(response.status_code, 422)
        self.assertIn("priority", response.json()["errors"])

    def test_update_rejects_explicit_nulls(self):
        headers = self._login()
        post = self.wordpress.seed_post("Title", "Body")
        self.db.set_priority(str(post["ID"]), 4)

        response = self.client.put(
            f"/api/blog-posts/{post['ID']}", json={"title": None}, headers=headers
        )
        self.assertEqual(response.status_code, 422)
        self.assertIn("title", response.json()["errors"])

        response = self.client.patch(
            f"/api/blog-posts/{post['ID']}",
            json={"content": None, "status": None, "priority": None},
            headers=headers,
        )
        self.assertEqual(response.status_code, 422)
        self.assertEqual(
            set(response.json()["errors"]), {"content", "status", "priority"}
        )
        self.assertEqual(self.wordpress.posts[post["ID"]]["title"], "Title")
        self.assertEqual(self.db.get_priority(str(post["ID"])).priority, 4)

    def test_priority_upper_bound(self):
        headers = self._login()
        post = self.wordpress.seed_post("Title", "Body")

        response = self.client.post(
            "/api/blog-posts/1/set-priority", json={"priority": 10**20}, headers=headers
        )
        self.assertEqual(response.status_code, 422)
        self.assertIn("priority", response.json()["errors"])

        response = self.client.put(
            f"/api/blog-posts/{post['ID']}", json={"priority": 2**31}, headers=headers
        )
        self.assertEqual(response.status_code, 422)

        response = self.client.post(
            "/api/blog-posts/1/set-priority", json={"priority": 2**31 - 1}, headers=headers
        )
        self.assertEqual(response.status_code, 200)

    def test_create_post_wordpress_failure(self):
        headers = self._login()
        wordpress = MagicMock()
        wordpress.create_post.side_effect = WordPressError("down", status_code=503)
        self.app.dependency_overrides[get_wordpress_client] = lambda: wordpress

        response = self.client.post(
            "/api/blog-posts", json={"title": "Hello", "content": "World"}, headers=headers
        )
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()["message"], "Failed to create post in WordPress.")
        self.assertEqual(self.db.priorities, {})

    def test_update_post_wordpress_failure(self):
        headers = self._login()
        wordpress = MagicMock()
        wordpress.update_post.side_effect = WordPressError("down", status_code=500)
        self.app.dependency_overrides[get_wordpress_client] = lambda: wordpress

        response = self.client.put(
            "/api/blog-posts/5", json={"title": "New", "priority": 2}, headers=headers
        )
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()["message"], "Failed to update post in WordPress.")
        self.assertIsNone(self.db.get_priority("5"))

    def test_update_post_refetch_failure(self):
        headers = self._login()
        wordpress = MagicMock()
        wordpress.update_post.return_value = {"ID": 5, "title": "New"}
        wordpress.get_post.side_effect = WordPressError("down")
        self.app.dependency_overrides[get_wordpress_client] = lambda: wordpress

        response = self.client.put(
            "/api/blog-posts/5", json={"title": "New", "priority": 2}, headers=headers
        )
        self.assertEqual(response.status_code, 500)
        self.assertEqual(
            response.json()["message"],
            "Post updated, but could not refetch from WordPress.",
        )
        self.assertEqual(self.db.get_priority("5").priority, 2)

    def test_delete_post_removes_priority(self):
        headers = self._login()
        post = self.wordpress.seed_post("Doomed", "Body")
        self.db.set_priority(str(post["ID"]), 5)

        response = self.client.delete(f"/api/blog-posts/{post['ID']}", headers=headers)
        self.assertEqual(response.status_code, 204)
        self.assertEqual(response.content, b"")
        self.assertIsNone(self.db.get_priority(str(post["ID"])))
        self.assertNotIn(post["ID"], self.wordpress.posts)

    def test_delete_post_wordpress_failure_keeps_priority(self):
        headers = self._login()
        self.db.set_priority("12", 5)

        response = self.client.delete("/api/blog-posts/12", headers=headers)
        self.assertEqual(response.status_code, 500)
        self.assertEqual(
            response.json()["message"], "Failed to delete post from WordPress."
        )
        self.assertEqual(self.db.get_priority("12").priority, 5)

    def test_set_priority(self):
        headers = self._login()
        response = self.client.post(
            "/api/blog-posts/42/set-priority", json={"priority": 8}, headers=headers
        )
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["wordpress_post_id"], "42")
        self.assertEqual(payload["priority"], 8)

        response = self.client.post(
            "/api/blog-posts/42/set-priority", json={"priority": 2}, headers=headers
        )
        self.assertEqual(response.json()["priority"], 2)
        self.assertEqual(len(self.db.priorities), 1)

    def test_set_priority_requires_value(self):
        headers = self._login()
        response = self.client.post(
            "/api/blog-posts/42/set-priority", json={}, headers=headers
        )
        self.assertEqual(response.status_code, 422)
        self.assertIn("priority", response.json()["errors"])

    def test_health(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["checks"]["database"], "ok")

    def test_health_degraded_when_database_fails(self):
        db = MagicMock()
        db.ping.side_effect = RuntimeError("database is locked")
        self.app.dependency_overrides[get_db_client] = lambda: db

        response = self.client.get("/health")
        self.assertEqual(response.status_code, 503)
        payload = response.json()
        self.assertEqual(payload["status"], "degraded")
        self.assertIn("database is locked", payload["checks"]["database"])


if __name__ == "__main__":
    unittest.main()
