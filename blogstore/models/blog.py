from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field, Relationship, Column, Text
from typing import Optional, List, TYPE_CHECKING
from datetime import datetime
from enum import Enum

if TYPE_CHECKING:
    from blogstore.models.user import User


class PostStatus(str, Enum):
    draft = "draft"
    published = "published"
    scheduled = "scheduled"
    archived = "archived"


class PostType(str, Enum):
    post = "post"
    page = "page"
    custom = "custom"


class CommentStatus(str, Enum):
    approved = "approved"
    pending = "pending"
    spam = "spam"
    trash = "trash"


class RelationType(str, Enum):
    manual = "manual"
    auto = "auto"


class Category(SQLModel, table=True):
    __tablename__ = "categories"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=100, unique=True, index=True)
    slug: str = Field(max_length=100, unique=True, index=True)
    description: Optional[str] = Field(default=None, sa_column=Column(Text))
    # Removing a parent turns its children into roots
    parent_id: Optional[int] = Field(
        default=None, foreign_key="categories.id", ondelete="SET NULL", index=True
    )
    meta_title: Optional[str] = Field(default=None, max_length=255)
    meta_description: Optional[str] = Field(default=None, sa_column=Column(Text))
    is_active: bool = Field(default=True)
    sort_order: int = Field(default=0, index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    posts: List["Post"] = Relationship(back_populates="category", passive_deletes="all")


class PostTag(SQLModel, table=True):
    __tablename__ = "post_tags"

    post_id: int = Field(foreign_key="posts.id", ondelete="CASCADE", primary_key=True, index=True)
    tag_id: int = Field(foreign_key="tags.id", ondelete="CASCADE", primary_key=True, index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)


class Tag(SQLModel, table=True):
    __tablename__ = "tags"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=100, unique=True, index=True)
    slug: str = Field(max_length=100, unique=True, index=True)
    description: Optional[str] = Field(default=None, sa_column=Column(Text))
    color: Optional[str] = Field(default=None, max_length=7)  # Hex color
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    posts: List["Post"] = Relationship(
        back_populates="tags", link_model=PostTag, passive_deletes=True
    )


class Post(SQLModel, table=True):
    __tablename__ = "posts"

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(max_length=255)
    slug: str = Field(max_length=255, unique=True, index=True)
    excerpt: Optional[str] = Field(default=None, sa_column=Column(Text))
    content: str = Field(sa_column=Column(Text, nullable=False))
    featured_image: Optional[str] = Field(default=None, max_length=500)
    status: PostStatus = Field(default=PostStatus.draft, index=True)
    post_type: PostType = Field(default=PostType.post)
    author_id: int = Field(foreign_key="users.id", ondelete="CASCADE", index=True)
    category_id: Optional[int] = Field(
        default=None, foreign_key="categories.id", ondelete="SET NULL", index=True
    )
    is_featured: bool = Field(default=False, index=True)
    is_sticky: bool = Field(default=False)
    allow_comments: bool = Field(default=True)
    password: Optional[str] = Field(default=None, max_length=255)  # Password protected posts
    scheduled_at: Optional[datetime] = Field(default=None)
    published_at: Optional[datetime] = Field(default=None, index=True)

    # SEO
    meta_title: Optional[str] = Field(default=None, max_length=255)
    meta_description: Optional[str] = Field(default=None, sa_column=Column(Text))
    meta_keywords: Optional[str] = Field(default=None, max_length=500)
    canonical_url: Optional[str] = Field(default=None, max_length=500)

    # Cached counters, allowed to drift from the live counts in post_stats
    view_count: int = Field(default=0, index=True)
    like_count: int = Field(default=0)
    share_count: int = Field(default=0)

    reading_time: int = Field(default=0)  # Minutes

    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    author: Optional["User"] = Relationship(back_populates="posts")
    category: Optional[Category] = Relationship(back_populates="posts")
    tags: List[Tag] = Relationship(
        back_populates="posts", link_model=PostTag, passive_deletes=True
    )


class Comment(SQLModel, table=True):
    __tablename__ = "comments"

    id: Optional[int] = Field(default=None, primary_key=True)
    post_id: int = Field(foreign_key="posts.id", ondelete="CASCADE", index=True)
    parent_id: Optional[int] = Field(
        default=None, foreign_key="comments.id", ondelete="CASCADE", index=True
    )
    # NULL for guest comments, and for comments whose author was deleted
    author_id: Optional[int] = Field(
        default=None, foreign_key="users.id", ondelete="SET NULL", index=True
    )
    author_name: Optional[str] = Field(default=None, max_length=100)
    author_email: Optional[str] = Field(default=None, max_length=255)
    author_website: Optional[str] = Field(default=None, max_length=500)
    author_ip: Optional[str] = Field(default=None, max_length=45)
    content: str = Field(sa_column=Column(Text, nullable=False))
    status: CommentStatus = Field(default=CommentStatus.pending, index=True)
    is_pinned: bool = Field(default=False)
    like_count: int = Field(default=0)
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class RelatedPost(SQLModel, table=True):
    __tablename__ = "related_posts"
    __table_args__ = (
        UniqueConstraint("post_id", "related_post_id", name="uq_related_posts_pair"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    post_id: int = Field(foreign_key="posts.id", ondelete="CASCADE", index=True)
    related_post_id: int = Field(foreign_key="posts.id", ondelete="CASCADE", index=True)
    relation_type: RelationType = Field(default=RelationType.manual)
    sort_order: int = Field(default=0, index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
