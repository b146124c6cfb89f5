# plugins/tumblr/routes/post_routes.py
"""
Post Routes
===========

Minimal CRUD routes for the host application's posts. Creating or editing a
post runs the directive pipeline: directives are stripped from the body,
``!images:`` permalinks are resolved before the post is stored and
``!tumble`` publishes are queued once it has been committed.
"""

import logging
from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from database import get_db
from models import Post
from plugins import RoutePlugin
from plugins.tumblr.routes.dependencies import get_current_user_id, get_tumblr_service
from plugins.tumblr.service import TumblrService

logger = logging.getLogger(__name__)


class PostRequest(BaseModel):
    body: str


class PostResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    body: str
    media_urls: List[str]
    created_at: datetime
    updated_at: datetime


class PostWriteResponse(PostResponse):
    published: int = 0


class PostRoutes(RoutePlugin):
    """
    Plugin for the host application's post routes.

    Class Attributes:
        service_name (str): The unique identifier for this plugin
        prefix (str): Mount point of the router
    """

    service_name = "posts"
    prefix = "/posts"

    def get_router(self) -> APIRouter:
        router = APIRouter(tags=["posts"])

        def load_post(db: Session, post_id: int, user_id: str) -> Post:
            post = db.query(Post).filter(Post.id == post_id, Post.user_id == user_id).first()
            if post is None:
                raise HTTPException(
                    status_code=404,
                    detail="Post not found"
                )
            return post

        def write_response(post: Post, published: int) -> PostWriteResponse:
            response = PostWriteResponse.model_validate(post)
            response.published = published
            return response

        @router.get("", response_model=List[PostResponse])
        def list_posts(
            user_id: str = Depends(get_current_user_id),
            db: Session = Depends(get_db)
        ):
            return db.query(Post).filter(Post.user_id == user_id).order_by(Post.id).all()

        @router.post("", response_model=PostWriteResponse, status_code=201)
        def create_post(
            payload: PostRequest,
            user_id: str = Depends(get_current_user_id),
            db: Session = Depends(get_db),
            service: TumblrService = Depends(get_tumblr_service)
        ):
            """
            Create a post.

            Photos of ``!images:`` permalinks are fetched while the request
            waits; ``!tumble`` publishes happen in the background after the
            post is saved.
            """
            enriched = service.pipeline.enrich(payload.body)

            post = Post(user_id=user_id, body=enriched.text, media_urls=enriched.media_urls)
            db.add(post)
            db.commit()
            db.refresh(post)

            published = service.pipeline.publish(user_id, enriched.publish)
            logger.info(f"User {user_id} created post {post.id} ({published} publish(es) queued)")
            return write_response(post, published)

        @router.get("/{post_id}", response_model=PostResponse)
        def get_post(
            post_id: int,
            user_id: str = Depends(get_current_user_id),
            db: Session = Depends(get_db)
        ):
            return load_post(db, post_id, user_id)

        @router.put("/{post_id}", response_model=PostWriteResponse)
        def update_post(
            post_id: int,
            payload: PostRequest,
            user_id: str = Depends(get_current_user_id),
            db: Session = Depends(get_db),
            service: TumblrService = Depends(get_tumblr_service)
        ):
            """Replace a post's text; directives in the new text are processed again."""
            post = load_post(db, post_id, user_id)
            enriched = service.pipeline.enrich(payload.body)

            post.body = enriched.text
            post.media_urls = enriched.media_urls
            db.commit()
            db.refresh(post)

            published = service.pipeline.publish(user_id, enriched.publish)
            return write_response(post, published)

        @router.delete("/{post_id}", status_code=204)
        def delete_post(
            post_id: int,
            user_id: str = Depends(get_current_user_id),
            db: Session = Depends(get_db)
        ):
            post = load_post(db, post_id, user_id)
            db.delete(post)
            db.commit()
            return Response(status_code=204)

        return router
