# blogstore/crud/views.py
"""
Read-only projections over posts.

Both projections are recomputed on every read; nothing here is stored. The
cached counters on Post are reported next to the live aggregates and are
allowed to differ from them.
"""
from datetime import datetime
from typing import List, Optional

from sqlalchemy import and_, distinct, or_
from sqlmodel import Session, select, func

from blogstore.core.exceptions import NotFound
from blogstore.models.analytics import PostLike
from blogstore.models.blog import Category, Comment, CommentStatus, Post, PostStatus, PostTag, Tag
from blogstore.models.user import User
from blogstore.schemas.blog import PostStats, PublishedPost


def published_condition(now: datetime):
    """SQL predicate: status is published and any scheduled time has passed."""
    return and_(
        Post.status == PostStatus.published,
        or_(Post.scheduled_at.is_(None), Post.scheduled_at <= now)
    )


def is_published(post: Post, now: Optional[datetime] = None) -> bool:
    """The published_posts predicate evaluated on a loaded post."""
    now = now or datetime.utcnow()
    return post.status == PostStatus.published and (
        post.scheduled_at is None or post.scheduled_at <= now
    )


def list_published_posts(
    db: Session,
    category: Optional[str] = None,
    tag: Optional[str] = None,
    author: Optional[str] = None,
    skip: int = 0,
    limit: int = 10,
    now: Optional[datetime] = None
) -> tuple[List[PublishedPost], int]:
    """
    Published posts, newest published_at first. Returns (rows, total_count).

    Filters take natural keys: category and tag slugs, author username.
    Author and category are outer joined so a post is listed even when the
    referenced row is missing.
    """
    now = now or datetime.utcnow()

    conditions = [published_condition(now)]
    if category:
        conditions.append(Category.slug == category)
    if author:
        conditions.append(User.username == author)
    if tag:
        conditions.append(
            Post.id.in_(
                select(PostTag.post_id)
                .join(Tag, Tag.id == PostTag.tag_id)
                .where(Tag.slug == tag)
            )
        )

    query = _published_select().where(*conditions)
    count_query = (
        select(func.count(Post.id))
        .outerjoin(User, Post.author_id == User.id)
        .outerjoin(Category, Post.category_id == Category.id)
        .where(*conditions)
    )

    total = db.exec(count_query).one()
    rows = db.exec(
        query.order_by(Post.published_at.desc().nulls_last(), Post.id.desc())
        .offset(skip)
        .limit(limit)
    ).all()

    return [_to_published(row) for row in rows], total


def get_published_post(db: Session, slug: str, now: Optional[datetime] = None) -> PublishedPost:
    """One published post by slug; drafts and future scheduled posts are NotFound."""
    now = now or datetime.utcnow()
    row = db.exec(
        _published_select()
        .where(published_condition(now), Post.slug == slug)
    ).first()
    if row is None:
        raise NotFound("Post", slug)
    return _to_published(row)


def _published_select():
    return (
        select(
            Post,
            User.username,
            User.first_name,
            User.last_name,
            Category.name,
            Category.slug
        )
        .outerjoin(User, Post.author_id == User.id)
        .outerjoin(Category, Post.category_id == Category.id)
    )


def _to_published(row) -> PublishedPost:
    post, username, first_name, last_name, category_name, category_slug = row
    return PublishedPost(
        **post.model_dump(),
        author_name=username,
        first_name=first_name,
        last_name=last_name,
        category_name=category_name,
        category_slug=category_slug
    )


def _stats_query():
    return (
        select(
            Post.id,
            Post.title,
            Post.view_count,
            Post.like_count,
            func.count(distinct(Comment.id)).label("comment_count"),
            func.count(distinct(PostLike.id)).label("total_likes")
        )
        .outerjoin(Comment, and_(Comment.post_id == Post.id, Comment.status == CommentStatus.approved))
        .outerjoin(PostLike, PostLike.post_id == Post.id)
        .group_by(Post.id, Post.title, Post.view_count, Post.like_count)
    )


def post_stats(db: Session, post_id: int) -> PostStats:
    """Approved comments and likes counted live for one post."""
    row = db.exec(_stats_query().where(Post.id == post_id)).first()
    if row is None:
        raise NotFound("Post", post_id)
    return PostStats(**row._mapping)


def all_post_stats(db: Session, skip: int = 0, limit: int = 100) -> List[PostStats]:
    rows = db.exec(_stats_query().order_by(Post.id).offset(skip).limit(limit)).all()
    return [PostStats(**row._mapping) for row in rows]
