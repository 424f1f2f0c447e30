"""
Blog Service.

Blog posts, comments and likes.

Key behaviors:
- Listings carry like and comment counts computed by correlated subqueries.
  Public listings only ever see published posts; the admin listing sees all.
- A post fetched by slug is visible when published, or to an admin.
- Read time defaults to an estimate from the content (200 words per minute,
  at least one minute) whenever the client does not send one.
- Liking toggles a single `(user, post)` row. The unique constraint on that
  pair is what keeps concurrent toggles from producing duplicates: a losing
  insert is rolled back and reported as `liked=False`.
- Comments can be deleted by their author or by an admin.
"""

from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from core.auth import Principal
from core.exceptions import ForbiddenError, NotFoundError
from core.logging_config import get_logger, log_function_call
from core.models import BlogPost, Comment, Like, User
from core.validation import estimate_read_time
from services.resource_service import ResourceService

logger = get_logger(__name__)


def _like_count():
    return (
        select(func.count(Like.id))
        .where(Like.post_id == BlogPost.id)
        .correlate(BlogPost)
        .scalar_subquery()
    )


def _comment_count():
    return (
        select(func.count(Comment.id))
        .where(Comment.post_id == BlogPost.id)
        .correlate(BlogPost)
        .scalar_subquery()
    )


class BlogService:
    """Blog posts and reader engagement"""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.posts = ResourceService(session, BlogPost, "Blog post")

    async def list_posts(
        self,
        published_only: bool = True,
        tag: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Tuple[BlogPost, int, int]]:
        """Posts newest first, each with its like and comment counts"""
        statement = select(
            BlogPost,
            _like_count().label("like_count"),
            _comment_count().label("comment_count"),
        ).order_by(BlogPost.created_at.desc())
        if published_only:
            statement = statement.where(BlogPost.published == True)  # noqa: E712
        # Tags live in a JSON column; membership is checked after the query
        if limit is not None and tag is None:
            statement = statement.limit(limit)

        result = await self.session.execute(statement)
        rows = [(post, likes, comments) for post, likes, comments in result.all()]

        if tag is not None:
            rows = [row for row in rows if tag in (row[0].tags or [])]
            if limit is not None:
                rows = rows[:limit]
        return rows

    async def get_post_detail(
        self, slug: str, viewer: Optional[Principal]
    ) -> Dict[str, Any]:
        post = await self.posts.find("slug", slug)
        if post is None or (not post.published and not (viewer and viewer.is_admin)):
            raise NotFoundError("Post", slug)

        comments_result = await self.session.execute(
            select(Comment, User)
            .join(User, User.id == Comment.user_id)
            .where(Comment.post_id == post.id)
            .order_by(Comment.created_at.desc())
        )
        comments = [(comment, user) for comment, user in comments_result.all()]

        like_count = await self._count_likes(post.id)
        user_liked = False
        if viewer is not None:
            user_liked = await self._find_like(viewer.user_id, post.id) is not None

        return {
            "post": post,
            "comments": comments,
            "like_count": like_count,
            "user_liked": user_liked,
        }

    async def create_post(self, data: Dict[str, Any], author_id: str) -> BlogPost:
        if data.get("read_time") is None:
            data["read_time"] = estimate_read_time(data["content"])
        return await self.posts.create({**data, "author_id": author_id})

    async def update_post(self, post_id: str, data: Dict[str, Any]) -> BlogPost:
        if data.get("read_time") is None:
            data.pop("read_time", None)
            if "content" in data:
                data["read_time"] = estimate_read_time(data["content"])
        return await self.posts.update(post_id, data)

    async def delete_post(self, post_id: str) -> None:
        await self.posts.delete(post_id)

    @log_function_call(logger)
    async def toggle_like(self, post_id: str, user_id: str) -> bool:
        """Flip the user's like on a post; returns whether the post is now liked"""
        await self.posts.get(post_id)

        existing = await self._find_like(user_id, post_id)
        if existing is not None:
            await self.session.execute(
                delete(Like).where(Like.user_id == user_id, Like.post_id == post_id)
            )
            await self.session.commit()
            return False

        self.session.add(Like(user_id=user_id, post_id=post_id))
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            logger.info(f"Concurrent like on post {post_id} by {user_id} ignored")
            return False
        return True

    async def add_comment(
        self, post_id: str, user_id: str, content: str
    ) -> Tuple[Comment, Optional[User]]:
        await self.posts.get(post_id)
        comment = Comment(content=content, post_id=post_id, user_id=user_id)
        self.session.add(comment)
        await self.session.commit()
        author = await self.session.get(User, user_id)
        return comment, author

    async def delete_comment(
        self, post_id: str, comment_id: str, principal: Principal
    ) -> None:
        comment = await self.session.get(Comment, comment_id)
        if comment is None or comment.post_id != post_id:
            raise NotFoundError("Comment", comment_id)
        if comment.user_id != principal.user_id and not principal.is_admin:
            raise ForbiddenError("Not authorized to delete this comment")

        await self.session.delete(comment)
        await self.session.commit()
        logger.info(f"Deleted comment {comment_id} on post {post_id}")

    async def _find_like(self, user_id: str, post_id: str) -> Optional[Like]:
        result = await self.session.execute(
            select(Like).where(Like.user_id == user_id, Like.post_id == post_id)
        )
        return result.scalars().first()

    async def _count_likes(self, post_id: str) -> int:
        result = await self.session.execute(
            select(func.count(Like.id)).where(Like.post_id == post_id)
        )
        return result.scalar_one()
