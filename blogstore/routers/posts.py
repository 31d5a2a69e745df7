# blogstore/routers/posts.py
from fastapi import APIRouter, Depends, Query, Request, status
from sqlmodel import Session
from typing import List, Optional

from blogstore.core.config import settings
from blogstore.crud.blog import blog_crud
from blogstore.crud.engagement import Counter, engagement_crud
from blogstore.crud.views import get_published_post, list_published_posts, post_stats
from blogstore.database.engine import get_db
from blogstore.schemas.blog import (
    CounterResponse, PostStats, PostSummary, PublishedPost, PublishedPostListResponse
)
from blogstore.schemas.identity import GuestIdentity, Identity, RegisteredIdentity

router = APIRouter(
    prefix="/posts",
    tags=["posts"],
    responses={404: {"description": "Not found"}},
)


def client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


def visitor_identity(request: Request, user_id: Optional[int] = Query(None)) -> Identity:
    """Registered visitor when user_id is given, otherwise a guest known by IP."""
    if user_id is not None:
        return RegisteredIdentity(user_id=user_id, ip_address=client_ip(request))
    return GuestIdentity(ip_address=client_ip(request))


# ========================================
# PUBLISHED POSTS
# ========================================

@router.get("", response_model=PublishedPostListResponse)
def get_published_posts(
    category: Optional[str] = None,
    tag: Optional[str] = None,
    author: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: Session = Depends(get_db)
):
    """
    List published posts, newest first.

    **Query Parameters**:
    - category: Filter by category slug
    - tag: Filter by tag slug
    - author: Filter by author username
    """
    items, total = list_published_posts(
        db,
        category=category,
        tag=tag,
        author=author,
        skip=(page - 1) * page_size,
        limit=page_size
    )
    return PublishedPostListResponse(items=items, total=total, page=page, page_size=page_size)


@router.get("/{slug}", response_model=PublishedPost)
def get_post(slug: str, db: Session = Depends(get_db)):
    """Get a published post by slug. Drafts and posts scheduled for later are not found."""
    return get_published_post(db, slug)


@router.get("/{post_id}/stats", response_model=PostStats)
def get_post_stats(post_id: int, db: Session = Depends(get_db)):
    return post_stats(db, post_id)


@router.get("/{post_id}/related", response_model=List[PostSummary])
def get_related_posts(
    post_id: int,
    limit: int = Query(5, ge=1, le=20),
    db: Session = Depends(get_db)
):
    """Published related posts in their manual order."""
    blog_crud.get_post(db, post_id)
    related = blog_crud.get_related_posts(db, post_id, published_only=True, limit=limit)
    return [PostSummary.model_validate(post, from_attributes=True) for post in related]


# ========================================
# ENGAGEMENT
# ========================================

@router.post("/{post_id}/like", response_model=CounterResponse, status_code=status.HTTP_201_CREATED)
def like_post(
    post_id: int,
    identity: Identity = Depends(visitor_identity),
    db: Session = Depends(get_db)
):
    """Like a post once per user, or once per IP address for guests."""
    engagement_crud.like_post(db, post_id, identity)
    return CounterResponse(
        post_id=post_id,
        counter=Counter.like.value,
        value=blog_crud.get_post(db, post_id).like_count
    )


@router.post("/{post_id}/view", response_model=CounterResponse, status_code=status.HTTP_201_CREATED)
def record_view(
    post_id: int,
    request: Request,
    identity: Identity = Depends(visitor_identity),
    db: Session = Depends(get_db)
):
    engagement_crud.record_view(
        db,
        post_id,
        identity,
        user_agent=request.headers.get("user-agent"),
        referer=request.headers.get("referer")
    )
    return CounterResponse(
        post_id=post_id,
        counter=Counter.view.value,
        value=blog_crud.get_post(db, post_id).view_count
    )


@router.post("/{post_id}/share", response_model=CounterResponse)
def record_share(post_id: int, db: Session = Depends(get_db)):
    value = engagement_crud.share_post(db, post_id)
    return CounterResponse(post_id=post_id, counter=Counter.share.value, value=value)
