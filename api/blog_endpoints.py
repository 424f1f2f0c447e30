"""
Blog Endpoints.

Endpoints Provided:
- `GET /blog`: published posts, newest first, with like and comment counts.
  Accepts `tag` and `limit`.
- `GET /blog/admin`: every post including drafts (admin).
- `GET /blog/{slug}`: one post with its comments. Drafts are visible to admins
  only. A bearer token is optional here; when present it fills `userLiked`.
- `POST /blog`, `PUT /blog/{id}`, `DELETE /blog/{id}`: admin writes. Deleting
  a post removes its comments and likes.
- `POST /blog/{id}/like`: toggles the caller's like.
- `POST /blog/{id}/comments`, `DELETE /blog/{post_id}/comments/{comment_id}`:
  any signed-in user may comment; a comment is deleted by its author or an
  admin.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_admin, get_optional_principal, get_principal
from api.schemas import (
    BlogPostCreate,
    BlogPostDetail,
    BlogPostOut,
    BlogPostUpdate,
    CommentAuthor,
    CommentCreate,
    CommentOut,
    MessageOut,
)
from core.auth import Principal
from core.database import get_session
from core.logging_config import get_logger
from services.blog_service import BlogService

logger = get_logger(__name__)
router = APIRouter(prefix="/blog", tags=["Blog"])


def _post_out(post, like_count: int = 0, comment_count: int = 0) -> BlogPostOut:
    out = BlogPostOut.model_validate(post)
    return out.model_copy(
        update={"like_count": like_count, "comment_count": comment_count}
    )


def _comment_out(comment, author) -> CommentOut:
    out = CommentOut.model_validate(comment)
    if author is not None:
        out = out.model_copy(update={"user": CommentAuthor.model_validate(author)})
    return out


@router.get("")
async def list_posts(
    tag: Optional[str] = Query(default=None),
    limit: Optional[int] = Query(default=None, ge=1),
    session: AsyncSession = Depends(get_session),
):
    rows = await BlogService(session).list_posts(
        published_only=True, tag=tag, limit=limit
    )
    return {"posts": [_post_out(*row) for row in rows]}


@router.get("/admin")
async def list_all_posts(
    admin: Principal = Depends(get_admin),
    session: AsyncSession = Depends(get_session),
):
    rows = await BlogService(session).list_posts(published_only=False)
    return {"posts": [_post_out(*row) for row in rows]}


@router.get("/{slug}")
async def get_post(
    slug: str,
    viewer: Optional[Principal] = Depends(get_optional_principal),
    session: AsyncSession = Depends(get_session),
):
    detail = await BlogService(session).get_post_detail(slug, viewer)
    comments = [_comment_out(c, u) for c, u in detail["comments"]]
    post = BlogPostDetail.model_validate(detail["post"]).model_copy(
        update={
            "like_count": detail["like_count"],
            "comment_count": len(comments),
            "comments": comments,
        }
    )
    return {"post": post, "userLiked": detail["user_liked"]}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_post(
    payload: BlogPostCreate,
    admin: Principal = Depends(get_admin),
    session: AsyncSession = Depends(get_session),
):
    post = await BlogService(session).create_post(payload.model_dump(), admin.user_id)
    logger.info(f"Blog post created: {post.slug}")
    return {"post": _post_out(post)}


@router.put("/{post_id}")
async def update_post(
    post_id: str,
    payload: BlogPostUpdate,
    admin: Principal = Depends(get_admin),
    session: AsyncSession = Depends(get_session),
):
    service = BlogService(session)
    post = await service.update_post(post_id, payload.model_dump(exclude_unset=True))
    return {"post": _post_out(post)}


@router.delete("/{post_id}", response_model=MessageOut)
async def delete_post(
    post_id: str,
    admin: Principal = Depends(get_admin),
    session: AsyncSession = Depends(get_session),
):
    await BlogService(session).delete_post(post_id)
    return MessageOut(message="Blog post deleted successfully")


@router.post("/{post_id}/like")
async def toggle_like(
    post_id: str,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(get_session),
):
    liked = await BlogService(session).toggle_like(post_id, principal.user_id)
    return {"liked": liked}


@router.post("/{post_id}/comments", status_code=status.HTTP_201_CREATED)
async def add_comment(
    post_id: str,
    payload: CommentCreate,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(get_session),
):
    comment, author = await BlogService(session).add_comment(
        post_id, principal.user_id, payload.content
    )
    return {"comment": _comment_out(comment, author)}


@router.delete("/{post_id}/comments/{comment_id}", response_model=MessageOut)
async def delete_comment(
    post_id: str,
    comment_id: str,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(get_session),
):
    await BlogService(session).delete_comment(post_id, comment_id, principal)
    return MessageOut(message="Comment deleted successfully")
