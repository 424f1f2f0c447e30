"""
Core data models for the Portfolio API

SQLModel tables backing every resource. Uniqueness rules that the request
handlers rely on (one user per subject id and per email, one like per user and
post, unique slugs, a single profile row) are declared here so the store
enforces them for every concurrent writer.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional
from uuid import uuid4

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.types import TypeDecorator
from sqlmodel import SQLModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """Timezone-aware UTC timestamps on every backend.

    SQLite drops the offset on storage, so values read back are tagged as UTC
    again; naive values handed in are taken to be UTC already.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


def new_id() -> str:
    return uuid4().hex


class UserRole(str, Enum):
    """User roles for access control"""

    ADMIN = "ADMIN"
    USER = "USER"


class User(SQLModel, table=True):
    """Local identity record, linked to an external identity provider subject"""

    __tablename__ = "users"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=32)
    external_subject_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(128), unique=True, nullable=True, index=True),
    )
    email: str = Field(
        sa_column=Column(String(255), unique=True, nullable=False, index=True)
    )
    name: Optional[str] = Field(default=None, max_length=255)
    photo_url: Optional[str] = Field(default=None, max_length=2048)
    role: UserRole = Field(default=UserRole.USER)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_type=UTCDateTime,
        sa_column_kwargs={"onupdate": utcnow},
    )


class Profile(SQLModel, table=True):
    """The site owner's profile. At most one row exists."""

    __tablename__ = "profiles"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=32)
    # Constant unique column: a second insert fails at the store
    singleton: int = Field(
        default=1, sa_column=Column(Integer, unique=True, nullable=False, default=1)
    )
    name: str = Field(max_length=255)
    email: str = Field(max_length=255)
    bio: str = Field(sa_column=Column(Text, nullable=False))
    designation: str = Field(max_length=255)
    resume_url: Optional[str] = Field(default=None, max_length=2048)
    photo_url: Optional[str] = Field(default=None, max_length=2048)
    phone: Optional[str] = Field(default=None, max_length=64)
    social_links: Dict[str, str] = Field(
        default_factory=dict, sa_column=Column(JSON, nullable=False)
    )
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_type=UTCDateTime,
        sa_column_kwargs={"onupdate": utcnow},
    )


class Skill(SQLModel, table=True):
    __tablename__ = "skills"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=32)
    name: str = Field(max_length=255)
    category: str = Field(max_length=255, index=True)
    proficiency: int
    icon: Optional[str] = Field(default=None, max_length=2048)
    order: int = Field(default=0)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_type=UTCDateTime,
        sa_column_kwargs={"onupdate": utcnow},
    )


class Project(SQLModel, table=True):
    __tablename__ = "projects"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=32)
    title: str = Field(max_length=255)
    slug: str = Field(
        sa_column=Column(String(255), unique=True, nullable=False, index=True)
    )
    description: str = Field(sa_column=Column(Text, nullable=False))
    technologies: List[str] = Field(
        default_factory=list, sa_column=Column(JSON, nullable=False)
    )
    image: Optional[str] = Field(default=None, max_length=2048)
    live_link: Optional[str] = Field(default=None, max_length=2048)
    repo_link: Optional[str] = Field(default=None, max_length=2048)
    challenges: Optional[str] = Field(default=None, sa_column=Column(Text))
    improvements: Optional[str] = Field(default=None, sa_column=Column(Text))
    featured: bool = Field(default=False)
    order: int = Field(default=0)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_type=UTCDateTime,
        sa_column_kwargs={"onupdate": utcnow},
    )


class Experience(SQLModel, table=True):
    __tablename__ = "experiences"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=32)
    company: str = Field(max_length=255)
    role: str = Field(max_length=255)
    start_date: datetime = Field(sa_type=UTCDateTime)
    # None while ongoing
    end_date: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)
    description: str = Field(sa_column=Column(Text, nullable=False))
    current: bool = Field(default=False)
    order: int = Field(default=0)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_type=UTCDateTime,
        sa_column_kwargs={"onupdate": utcnow},
    )


class BlogPost(SQLModel, table=True):
    __tablename__ = "blog_posts"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=32)
    title: str = Field(max_length=255)
    slug: str = Field(
        sa_column=Column(String(255), unique=True, nullable=False, index=True)
    )
    excerpt: Optional[str] = Field(default=None, sa_column=Column(Text))
    content: str = Field(sa_column=Column(Text, nullable=False))
    cover_image: Optional[str] = Field(default=None, max_length=2048)
    published: bool = Field(default=False, index=True)
    tags: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    read_time: int = Field(default=1)
    author_id: str = Field(
        sa_column=Column(String(32), ForeignKey("users.id"), nullable=False, index=True)
    )
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_type=UTCDateTime,
        sa_column_kwargs={"onupdate": utcnow},
    )


class Comment(SQLModel, table=True):
    __tablename__ = "comments"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=32)
    content: str = Field(sa_column=Column(Text, nullable=False))
    post_id: str = Field(
        sa_column=Column(
            String(32),
            ForeignKey("blog_posts.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
    )
    user_id: str = Field(
        sa_column=Column(
            String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
        )
    )
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)


class Like(SQLModel, table=True):
    """One row per (user, post); the pair is unique at the store"""

    __tablename__ = "likes"
    __table_args__ = (
        UniqueConstraint("user_id", "post_id", name="uq_likes_user_post"),
    )

    id: str = Field(default_factory=new_id, primary_key=True, max_length=32)
    user_id: str = Field(
        sa_column=Column(
            String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
        )
    )
    post_id: str = Field(
        sa_column=Column(
            String(32),
            ForeignKey("blog_posts.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
    )
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)


class Contact(SQLModel, table=True):
    __tablename__ = "contacts"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=32)
    name: str = Field(max_length=255)
    email: str = Field(max_length=255)
    subject: Optional[str] = Field(default=None, max_length=255)
    message: str = Field(sa_column=Column(Text, nullable=False))
    read: bool = Field(default=False, index=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
