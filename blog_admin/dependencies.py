"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

import logging

from blog_admin.config import get_settings
from blog_admin.db import DbClient, InMemoryDbClient, SqlDbClient
from blog_admin.wordpress import HttpWordPressClient, InMemoryWordPressClient, WordPressClient

_db_client: DbClient | None = None
_wordpress_client: WordPressClient | None = None

logger = logging.getLogger(__name__)


def get_db_client() -> DbClient:
    """
    Return a singleton DB client so priorities and tokens persist across requests.
    """
    global _db_client
    if _db_client:
        return _db_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.database_url:
        _db_client = InMemoryDbClient()
    else:
        _db_client = SqlDbClient(settings.database_url)
    return _db_client


def get_wordpress_client() -> WordPressClient:
    global _wordpress_client
    if _wordpress_client:
        return _wordpress_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.wordpress_api_base_url:
        if not settings.use_in_memory_backends:
            logger.warning(
                "WORDPRESS_API_BASE_URL is not set; using the in-memory WordPress client"
            )
        _wordpress_client = InMemoryWordPressClient()
    else:
        _wordpress_client = HttpWordPressClient(
            base_url=settings.wordpress_api_base_url,
            username=settings.wordpress_api_username,
            application_password=settings.wordpress_api_application_password,
            timeout=settings.wordpress_request_timeout,
            posts_per_page=settings.wordpress_posts_per_page,
        )
    return _wordpress_client
