"""
Request and response schemas.

JSON payloads use camelCase keys (`photoUrl`, `readTime`); snake_case keys are
accepted on input as well. Each resource declares its create schema once and
derives the update schema with `partial_model`, so both paths enforce the
same constraints.
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from core.models import UserRole
from core.validation import (
    CommentText,
    ContactMessage,
    NonEmptyStr,
    OptionalDate,
    OptionalUrl,
    Proficiency,
    ReadTime,
    ShortText,
    SortOrder,
    UtcDateTime,
    partial_model,
)


class APIModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# Users


class UserOut(APIModel):
    id: str
    email: str
    name: Optional[str] = None
    photo_url: Optional[str] = None
    role: UserRole
    created_at: datetime


class UserProfileUpdate(APIModel):
    name: Optional[ShortText] = None
    photo_url: OptionalUrl = None


# Profile


class SocialLinks(APIModel):
    github: OptionalUrl = None
    linkedin: OptionalUrl = None
    twitter: OptionalUrl = None
    facebook: OptionalUrl = None
    youtube: OptionalUrl = None


class ProfileCreate(APIModel):
    name: ShortText
    designation: ShortText
    bio: NonEmptyStr
    email: EmailStr
    resume_url: OptionalUrl = None
    photo_url: OptionalUrl = None
    phone: Optional[str] = Field(default=None, max_length=64)
    social_links: Optional[SocialLinks] = None


ProfileUpdate = partial_model(ProfileCreate)


class ProfileOut(APIModel):
    id: str
    name: str
    designation: str
    bio: str
    email: str
    resume_url: Optional[str] = None
    photo_url: Optional[str] = None
    phone: Optional[str] = None
    social_links: Dict[str, str] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime


# Skills


class SkillCreate(APIModel):
    name: ShortText
    category: ShortText
    proficiency: Proficiency
    icon: Optional[str] = None
    order: SortOrder = 0


SkillUpdate = partial_model(SkillCreate)


class SkillOut(APIModel):
    id: str
    name: str
    category: str
    proficiency: int
    icon: Optional[str] = None
    order: int
    created_at: datetime


# Projects


class ProjectCreate(APIModel):
    title: ShortText
    slug: ShortText
    description: NonEmptyStr
    technologies: List[str]
    image: Optional[str] = None
    live_link: OptionalUrl = None
    repo_link: OptionalUrl = None
    challenges: Optional[str] = None
    improvements: Optional[str] = None
    featured: bool = False
    order: SortOrder = 0


ProjectUpdate = partial_model(ProjectCreate)


class ProjectOut(APIModel):
    id: str
    title: str
    slug: str
    description: str
    technologies: List[str]
    image: Optional[str] = None
    live_link: Optional[str] = None
    repo_link: Optional[str] = None
    challenges: Optional[str] = None
    improvements: Optional[str] = None
    featured: bool
    order: int
    created_at: datetime
    updated_at: datetime


# Experience


class ExperienceCreate(APIModel):
    company: ShortText
    role: ShortText
    start_date: UtcDateTime
    end_date: OptionalDate = None
    description: NonEmptyStr
    current: bool = False
    order: SortOrder = 0


ExperienceUpdate = partial_model(ExperienceCreate)


class ExperienceOut(APIModel):
    id: str
    company: str
    role: str
    start_date: datetime
    end_date: Optional[datetime] = None
    description: str
    current: bool
    order: int
    created_at: datetime


# Blog


class BlogPostCreate(APIModel):
    title: ShortText
    slug: ShortText
    content: NonEmptyStr
    excerpt: Optional[str] = None
    cover_image: OptionalUrl = None
    published: bool = False
    tags: List[str] = Field(default_factory=list)
    read_time: Optional[ReadTime] = None


BlogPostUpdate = partial_model(BlogPostCreate)


class BlogPostOut(APIModel):
    id: str
    title: str
    slug: str
    excerpt: Optional[str] = None
    content: str
    cover_image: Optional[str] = None
    published: bool
    tags: List[str]
    read_time: int
    author_id: str
    created_at: datetime
    updated_at: datetime
    like_count: int = 0
    comment_count: int = 0


class CommentAuthor(APIModel):
    id: str
    name: Optional[str] = None
    photo_url: Optional[str] = None


class CommentCreate(APIModel):
    content: CommentText


class CommentOut(APIModel):
    id: str
    content: str
    post_id: str
    user_id: str
    created_at: datetime
    user: Optional[CommentAuthor] = None


class BlogPostDetail(BlogPostOut):
    comments: List[CommentOut] = Field(default_factory=list)


# Contact


class ContactCreate(APIModel):
    name: ShortText
    email: EmailStr
    subject: Optional[str] = Field(default=None, max_length=255)
    message: ContactMessage


class ContactOut(APIModel):
    id: str
    name: str
    email: str
    subject: Optional[str] = None
    message: str
    read: bool
    created_at: datetime


class MessageOut(APIModel):
    message: str
