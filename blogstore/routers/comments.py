# blogstore/routers/comments.py
from fastapi import APIRouter, Depends, Request, status
from sqlmodel import Session
from typing import List

from blogstore.crud.engagement import engagement_crud, to_comment_read
from blogstore.database.engine import get_db
from blogstore.routers.posts import client_ip, visitor_identity
from blogstore.schemas.blog import CommentCreate, CommentNode, CommentRead
from blogstore.schemas.identity import Identity

router = APIRouter(
    tags=["comments"],
    responses={404: {"description": "Not found"}},
)


@router.get("/posts/{post_id}/comments", response_model=List[CommentNode])
def get_comments(post_id: int, db: Session = Depends(get_db)):
    """Approved comments of a post as a reply tree."""
    return engagement_crud.comment_thread(db, post_id)


@router.post("/posts/{post_id}/comments", response_model=CommentRead, status_code=status.HTTP_201_CREATED)
def create_comment(
    post_id: int,
    comment_data: CommentCreate,
    request: Request,
    db: Session = Depends(get_db)
):
    """
    Comment on a post as a registered user or as a guest.

    Guests must give a name or an email. Depending on the comment_moderation
    setting the comment starts as pending or approved.
    """
    if comment_data.identity.ip_address is None:
        comment_data.identity.ip_address = client_ip(request)
    comment = engagement_crud.create_comment(db, post_id, comment_data)
    return to_comment_read(comment)


@router.post("/comments/{comment_id}/like", status_code=status.HTTP_201_CREATED)
def like_comment(
    comment_id: int,
    identity: Identity = Depends(visitor_identity),
    db: Session = Depends(get_db)
):
    engagement_crud.like_comment(db, comment_id, identity)
    comment = engagement_crud.get_comment(db, comment_id)
    return {"comment_id": comment_id, "like_count": comment.like_count}
