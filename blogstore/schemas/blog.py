# blogstore/schemas/blog.py
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime, timezone

from blogstore.models.blog import PostStatus, PostType, CommentStatus, RelationType
from blogstore.schemas.identity import Identity


HEX_COLOR_PATTERN = r'^#[0-9A-Fa-f]{6}$'


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Stored timestamps are naive UTC; aware inputs are converted."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


# Category Schemas
class CategoryBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    parent_id: Optional[int] = None
    meta_title: Optional[str] = Field(None, max_length=255)
    meta_description: Optional[str] = None
    is_active: bool = True
    sort_order: int = 0


class CategoryCreate(CategoryBase):
    slug: Optional[str] = Field(None, max_length=100)


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    slug: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    parent_id: Optional[int] = None
    meta_title: Optional[str] = Field(None, max_length=255)
    meta_description: Optional[str] = None
    is_active: Optional[bool] = None
    sort_order: Optional[int] = None


class CategoryNode(BaseModel):
    id: int
    name: str
    slug: str
    sort_order: int = 0
    children: List["CategoryNode"] = []


class CategoryRead(BaseModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    parent_id: Optional[int] = None
    sort_order: int = 0

    class Config:
        from_attributes = True


# Tag Schemas
class TagCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    slug: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN)


class TagUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    slug: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN)


# Post Schemas
class PostBase(BaseModel):
    title: str = Field(..., max_length=255)
    content: str
    excerpt: Optional[str] = None
    featured_image: Optional[str] = Field(None, max_length=500)
    post_type: PostType = PostType.post
    category_id: Optional[int] = None
    is_featured: bool = False
    is_sticky: bool = False
    allow_comments: bool = True
    password: Optional[str] = Field(None, max_length=255)
    meta_title: Optional[str] = Field(None, max_length=255)
    meta_description: Optional[str] = None
    meta_keywords: Optional[str] = Field(None, max_length=500)
    canonical_url: Optional[str] = Field(None, max_length=500)


class PostCreate(PostBase):
    slug: Optional[str] = Field(None, max_length=255)
    status: PostStatus = PostStatus.draft
    scheduled_at: Optional[datetime] = None
    tag_ids: List[int] = []

    @field_validator('scheduled_at')
    def normalize_scheduled_at(cls, v):
        return to_naive_utc(v)

    @field_validator('title')
    def validate_title(cls, v):
        if not v or len(v.strip()) == 0:
            raise ValueError('Title cannot be empty')
        return v

    @field_validator('content')
    def validate_content(cls, v):
        if not v or len(v.strip()) == 0:
            raise ValueError('Content cannot be empty')
        return v


class PostUpdate(BaseModel):
    title: Optional[str] = Field(None, max_length=255)
    slug: Optional[str] = Field(None, max_length=255)
    content: Optional[str] = None
    excerpt: Optional[str] = None
    featured_image: Optional[str] = Field(None, max_length=500)
    status: Optional[PostStatus] = None
    post_type: Optional[PostType] = None
    category_id: Optional[int] = None
    is_featured: Optional[bool] = None
    is_sticky: Optional[bool] = None
    allow_comments: Optional[bool] = None
    password: Optional[str] = Field(None, max_length=255)
    scheduled_at: Optional[datetime] = None
    published_at: Optional[datetime] = None
    meta_title: Optional[str] = Field(None, max_length=255)
    meta_description: Optional[str] = None
    meta_keywords: Optional[str] = Field(None, max_length=500)
    canonical_url: Optional[str] = Field(None, max_length=500)
    tag_ids: Optional[List[int]] = None

    @field_validator('scheduled_at', 'published_at')
    def normalize_timestamps(cls, v):
        return to_naive_utc(v)

    @field_validator('title')
    def validate_title(cls, v):
        if v is not None and len(v.strip()) == 0:
            raise ValueError('Title cannot be empty')
        return v

    @field_validator('content')
    def validate_content(cls, v):
        if v is not None and len(v.strip()) == 0:
            raise ValueError('Content cannot be empty')
        return v


class PublishedPost(BaseModel):
    """A row of the published_posts projection."""
    id: int
    title: str
    slug: str
    excerpt: Optional[str] = None
    content: str
    featured_image: Optional[str] = None
    post_type: PostType
    author_id: int
    category_id: Optional[int] = None
    is_featured: bool = False
    is_sticky: bool = False
    allow_comments: bool = True
    reading_time: int = 0
    view_count: int = 0
    like_count: int = 0
    share_count: int = 0
    scheduled_at: Optional[datetime] = None
    published_at: Optional[datetime] = None
    created_at: datetime
    author_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    category_name: Optional[str] = None
    category_slug: Optional[str] = None


class PostSummary(BaseModel):
    id: int
    title: str
    slug: str
    excerpt: Optional[str] = None
    featured_image: Optional[str] = None
    published_at: Optional[datetime] = None


class PublishedPostListResponse(BaseModel):
    items: List[PublishedPost]
    total: int
    page: int
    page_size: int


class PostStats(BaseModel):
    """Live aggregates next to the cached counters of a post."""
    id: int
    title: str
    view_count: int
    like_count: int
    comment_count: int
    total_likes: int


class CounterResponse(BaseModel):
    post_id: int
    counter: str
    value: int


# Comment Schemas
class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1)
    parent_id: Optional[int] = None
    identity: Identity

    @field_validator('content')
    def validate_content(cls, v):
        if len(v.strip()) == 0:
            raise ValueError('Comment cannot be empty')
        return v


class CommentRead(BaseModel):
    id: int
    post_id: int
    parent_id: Optional[int] = None
    author_id: Optional[int] = None
    author_name: Optional[str] = None
    author_website: Optional[str] = None
    content: str
    status: CommentStatus
    is_pinned: bool = False
    like_count: int = 0
    created_at: datetime

    class Config:
        from_attributes = True


class CommentNode(CommentRead):
    replies: List["CommentNode"] = []


# Related posts
class RelatedPostCreate(BaseModel):
    related_post_id: int
    relation_type: RelationType = RelationType.manual
    sort_order: int = 0


class RelatedPostRead(BaseModel):
    id: int
    post_id: int
    related_post_id: int
    relation_type: RelationType
    sort_order: int

    class Config:
        from_attributes = True
