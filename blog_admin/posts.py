"""
Helpers that shape WordPress posts for the admin list.
"""

from __future__ import annotations

from typing import Iterable, Mapping

from bs4 import BeautifulSoup

EXCERPT_LENGTH = 150
ELLIPSIS = "..."
DEFAULT_PRIORITY = 0


def post_key(post: Mapping) -> str:
    """Local identifier for a WordPress post (its ``ID`` as a string)."""
    return str(post["ID"])


def strip_html(html: str | None) -> str:
    if not html:
        return ""
    return BeautifulSoup(html, "html.parser").get_text()


def make_excerpt(html: str | None, length: int = EXCERPT_LENGTH) -> str:
    """
    Plain-text excerpt of a post body.

    The text is cut at ``length`` characters and ``...`` is appended only when
    something was cut off.
    """
    text = strip_html(html)
    if len(text) <= length:
        return text
    return text[:length] + ELLIPSIS


def with_priority(post: dict, priorities: Mapping[str, int]) -> dict:
    return {**post, "priority": priorities.get(post_key(post), DEFAULT_PRIORITY)}


def merge_priorities(
    posts: Iterable[dict],
    priorities: Mapping[str, int],
    *,
    include_excerpt: bool = True,
) -> list[dict]:
    """Left-join local priorities onto WordPress posts (missing -> 0)."""
    merged = []
    for post in posts:
        item = with_priority(post, priorities)
        if include_excerpt:
            item["excerpt_content"] = make_excerpt(post.get("content"))
        merged.append(item)
    return merged


def sort_by_priority(posts: Iterable[dict]) -> list[dict]:
    # sorted() is stable with reverse=True, so equal priorities keep WordPress order.
    return sorted(posts, key=lambda post: post.get("priority", DEFAULT_PRIORITY), reverse=True)
