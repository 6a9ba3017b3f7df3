"""
HTTP routes for the blog admin API.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query, Response, status

from blog_admin import errors, posts
from blog_admin.auth import AuthenticatedUser, authenticate_admin, get_current_user, login_user
from blog_admin.config import Settings, get_settings
from blog_admin.db import DbClient
from blog_admin.dependencies import get_db_client, get_wordpress_client
from blog_admin.errors import ApiError
from blog_admin.schemas import (
    CreatePostRequest,
    CurrentUserResponse,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    PriorityResponse,
    SetPriorityRequest,
    UpdatePostRequest,
)
from blog_admin.wordpress import WordPressClient, WordPressError

logger = logging.getLogger(__name__)

router = APIRouter()
blog_posts = APIRouter(
    prefix="/blog-posts",
    tags=["blog-posts"],
    dependencies=[Depends(get_current_user)],
)


@router.post("/login", response_model=LoginResponse)
def login(
    payload: LoginRequest,
    db: DbClient = Depends(get_db_client),
    wordpress: WordPressClient = Depends(get_wordpress_client),
    settings: Settings = Depends(get_settings),
):
    profile = authenticate_admin(
        payload.email, payload.password, wordpress=wordpress, settings=settings
    )
    if not profile:
        raise errors.validation_failed("email", errors.INVALID_CREDENTIALS)

    user, token = login_user(db, payload.email, profile)
    logger.info("Admin %s logged in", user.email)
    return LoginResponse(
        message="Login successful",
        token=token,
        user={"id": user.id, "name": user.name, "email": user.email},
    )


@router.post("/logout", response_model=MessageResponse)
def logout(
    current: AuthenticatedUser = Depends(get_current_user),
    db: DbClient = Depends(get_db_client),
):
    db.delete_token(current.token_hash)
    return MessageResponse(message="Logged out successfully")


@router.get("/user", response_model=CurrentUserResponse)
def current_user(current: AuthenticatedUser = Depends(get_current_user)):
    return CurrentUserResponse(user=current.user.as_dict(), message="Authenticated")


@blog_posts.get("")
def list_posts(
    sort_by_priority: bool = Query(False),
    include_excerpt: bool = Query(True),
    db: DbClient = Depends(get_db_client),
    wordpress: WordPressClient = Depends(get_wordpress_client),
):
    """
    All WordPress posts with their local priority (0 when never set).
    """
    try:
        wordpress_posts = wordpress.list_posts()
    except WordPressError:
        raise ApiError(500, errors.POSTS_FETCH_FAILED)

    items = posts.merge_priorities(
        wordpress_posts, db.get_priorities(), include_excerpt=include_excerpt
    )
    if sort_by_priority:
        items = posts.sort_by_priority(items)
    return items


@blog_posts.post("", status_code=status.HTTP_201_CREATED)
def create_post(
    payload: CreatePostRequest,
    db: DbClient = Depends(get_db_client),
    wordpress: WordPressClient = Depends(get_wordpress_client),
):
    try:
        wordpress_post = wordpress.create_post(payload.model_dump())
    except WordPressError:
        raise ApiError(500, errors.POST_CREATE_FAILED)

    record = db.set_priority(posts.post_key(wordpress_post), posts.DEFAULT_PRIORITY)
    return {**wordpress_post, "priority": record.priority}


@blog_posts.get("/{post_id}")
def show_post(
    post_id: str,
    db: DbClient = Depends(get_db_client),
    wordpress: WordPressClient = Depends(get_wordpress_client),
):
    try:
        wordpress_post = wordpress.get_post(post_id)
    except WordPressError:
        raise ApiError(404, errors.POST_NOT_FOUND)
    return _with_local_priority(wordpress_post, post_id, db)


@blog_posts.api_route("/{post_id}", methods=["PUT", "PATCH"])
def update_post(
    post_id: str,
    payload: UpdatePostRequest,
    db: DbClient = Depends(get_db_client),
    wordpress: WordPressClient = Depends(get_wordpress_client),
):
    wordpress_fields = payload.wordpress_fields()
    if wordpress_fields:
        try:
            wordpress.update_post(post_id, wordpress_fields)
        except WordPressError:
            raise ApiError(500, errors.POST_UPDATE_FAILED)
    else:
        try:
            wordpress.get_post(post_id)
        except WordPressError:
            raise ApiError(404, errors.POST_NOT_FOUND_FOR_PRIORITY)

    if payload.priority is not None:
        db.set_priority(post_id, payload.priority)

    try:
        refreshed = wordpress.get_post(post_id)
    except WordPressError:
        raise ApiError(500, errors.POST_REFETCH_FAILED)
    return _with_local_priority(refreshed, post_id, db)


@blog_posts.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_post(
    post_id: str,
    db: DbClient = Depends(get_db_client),
    wordpress: WordPressClient = Depends(get_wordpress_client),
):
    try:
        wordpress.delete_post(post_id)
    except WordPressError:
        raise ApiError(500, errors.POST_DELETE_FAILED)

    # No rollback: if this fails the WordPress post is already gone.
    db.delete_priority(post_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@blog_posts.post("/{post_id}/set-priority", response_model=PriorityResponse)
def set_priority(
    post_id: str,
    payload: SetPriorityRequest,
    db: DbClient = Depends(get_db_client),
):
    record = db.set_priority(post_id, payload.priority)
    return PriorityResponse(**record.as_dict())


def _with_local_priority(wordpress_post: dict, post_id: str, db: DbClient) -> dict:
    record = db.get_priority(post_id)
    priority = record.priority if record else posts.DEFAULT_PRIORITY
    return {**wordpress_post, "priority": priority}


router.include_router(blog_posts)
