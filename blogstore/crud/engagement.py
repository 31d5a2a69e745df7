# blogstore/crud/engagement.py
"""Comments, likes, views and the cached counters they feed."""
import logging
from datetime import datetime
from enum import Enum
from typing import List, Optional

from sqlalchemy import update
from sqlmodel import Session, select, func

from blogstore.core.exceptions import ConstraintViolation, InvalidState, NotFound
from blogstore.crud.integrity import (
    commit_or_raise, ensure_no_cycle, ensure_reference, flush_or_raise, get_or_raise
)
from blogstore.crud.site import site_crud
from blogstore.models.analytics import CommentLike, PostLike, PostView
from blogstore.models.blog import Comment, CommentStatus, Post
from blogstore.models.user import User
from blogstore.schemas.blog import CommentCreate, CommentNode, CommentRead
from blogstore.schemas.identity import (
    Identity, RegisteredIdentity, require_commenter, require_liker
)

logger = logging.getLogger(__name__)


class Counter(str, Enum):
    view = "view"
    like = "like"
    share = "share"


COUNTER_COLUMNS = {
    Counter.view: Post.view_count,
    Counter.like: Post.like_count,
    Counter.share: Post.share_count,
}


class EngagementCRUD:
    # ============ Counters ============

    def increment_counter(self, db: Session, post_id: int, counter: Counter, amount: int = 1) -> int:
        """
        Atomically add to a cached counter and return the new value.

        The addition happens inside the UPDATE statement, so concurrent
        increments are never lost to a read-modify-write race.
        """
        counter = Counter(counter)
        column = COUNTER_COLUMNS[counter]
        result = db.exec(
            update(Post)
            .where(Post.id == post_id)
            .values({column.key: column + amount})
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            db.rollback()
            raise NotFound("Post", post_id)
        commit_or_raise(db, f"{counter.value} counter of post #{post_id}")
        return db.exec(select(column).where(Post.id == post_id)).one()

    def share_post(self, db: Session, post_id: int) -> int:
        """Shares keep no event rows; only the cached counter moves."""
        return self.increment_counter(db, post_id, Counter.share)

    def reconcile_counters(self, db: Session, post_id: Optional[int] = None) -> int:
        """
        Reset like_count (and comment like counts) to the live number of like rows.

        Meant for a periodic job; the cached counters drift in between.
        Returns the number of posts updated.
        """
        live_likes = (
            select(func.count(PostLike.id))
            .where(PostLike.post_id == Post.id)
            .scalar_subquery()
        )
        statement = update(Post).values(like_count=live_likes)
        if post_id is not None:
            statement = statement.where(Post.id == post_id)
        result = db.exec(statement.execution_options(synchronize_session=False))

        live_comment_likes = (
            select(func.count(CommentLike.id))
            .where(CommentLike.comment_id == Comment.id)
            .scalar_subquery()
        )
        comment_statement = update(Comment).values(like_count=live_comment_likes)
        if post_id is not None:
            comment_statement = comment_statement.where(Comment.post_id == post_id)
        db.exec(comment_statement.execution_options(synchronize_session=False))

        commit_or_raise(db, "like counters")
        logger.info(f"Reconciled like counters of {result.rowcount} posts")
        return result.rowcount

    # ============ Likes ============

    def like_post(self, db: Session, post_id: int, identity: Identity) -> PostLike:
        """
        Record one like per identity and bump the cached counter.

        A second like from the same user (or the same guest IP) raises
        ConstraintViolation; the first writer wins.
        """
        require_liker(identity)
        get_or_raise(db, Post, post_id)

        if isinstance(identity, RegisteredIdentity):
            ensure_reference(db, User, identity.user_id, "user_id")
            like = PostLike(post_id=post_id, user_id=identity.user_id)
        else:
            like = PostLike(post_id=post_id, ip_address=identity.ip_address)

        db.add(like)
        flush_or_raise(db, f"like on post #{post_id}")
        db.exec(
            update(Post)
            .where(Post.id == post_id)
            .values(like_count=Post.like_count + 1)
            .execution_options(synchronize_session=False)
        )
        commit_or_raise(db, f"like on post #{post_id}")
        db.refresh(like)
        return like

    def unlike_post(self, db: Session, post_id: int, identity: Identity) -> None:
        like = self._find_post_like(db, post_id, identity)
        if like is None:
            raise NotFound("PostLike", post_id)

        db.delete(like)
        db.exec(
            update(Post)
            .where(Post.id == post_id, Post.like_count > 0)
            .values(like_count=Post.like_count - 1)
            .execution_options(synchronize_session=False)
        )
        commit_or_raise(db, f"like on post #{post_id}")

    def _find_post_like(self, db: Session, post_id: int, identity: Identity) -> Optional[PostLike]:
        query = select(PostLike).where(PostLike.post_id == post_id)
        if isinstance(identity, RegisteredIdentity):
            query = query.where(PostLike.user_id == identity.user_id)
        else:
            query = query.where(PostLike.user_id.is_(None), PostLike.ip_address == identity.ip_address)
        return db.exec(query).first()

    def has_liked(self, db: Session, post_id: int, identity: Identity) -> bool:
        return self._find_post_like(db, post_id, identity) is not None

    def count_post_likes(self, db: Session, post_id: int) -> int:
        return db.exec(select(func.count(PostLike.id)).where(PostLike.post_id == post_id)).one()

    def like_comment(self, db: Session, comment_id: int, identity: Identity) -> CommentLike:
        require_liker(identity)
        get_or_raise(db, Comment, comment_id)

        if isinstance(identity, RegisteredIdentity):
            ensure_reference(db, User, identity.user_id, "user_id")
            like = CommentLike(comment_id=comment_id, user_id=identity.user_id)
        else:
            like = CommentLike(comment_id=comment_id, ip_address=identity.ip_address)

        db.add(like)
        flush_or_raise(db, f"like on comment #{comment_id}")
        db.exec(
            update(Comment)
            .where(Comment.id == comment_id)
            .values(like_count=Comment.like_count + 1)
            .execution_options(synchronize_session=False)
        )
        commit_or_raise(db, f"like on comment #{comment_id}")
        db.refresh(like)
        return like

    # ============ Views ============

    def record_view(
        self,
        db: Session,
        post_id: int,
        identity: Identity,
        user_agent: Optional[str] = None,
        referer: Optional[str] = None
    ) -> PostView:
        """Append a view event and bump view_count in the same commit."""
        require_liker(identity)
        get_or_raise(db, Post, post_id)

        user_id = None
        if isinstance(identity, RegisteredIdentity):
            ensure_reference(db, User, identity.user_id, "user_id")
            user_id = identity.user_id

        view = PostView(
            post_id=post_id,
            user_id=user_id,
            ip_address=identity.ip_address,
            user_agent=user_agent,
            referer=referer[:500] if referer else None
        )
        db.add(view)
        flush_or_raise(db, f"view of post #{post_id}")
        db.exec(
            update(Post)
            .where(Post.id == post_id)
            .values(view_count=Post.view_count + 1)
            .execution_options(synchronize_session=False)
        )
        commit_or_raise(db, f"view of post #{post_id}")
        db.refresh(view)
        return view

    def count_views(self, db: Session, post_id: int, since: Optional[datetime] = None) -> int:
        query = select(func.count(PostView.id)).where(PostView.post_id == post_id)
        if since is not None:
            query = query.where(PostView.viewed_at >= since)
        return db.exec(query).one()

    # ============ Comments ============

    def create_comment(self, db: Session, post_id: int, comment_data: CommentCreate) -> Comment:
        """
        Add a comment to a post.

        Registered authors have their display name and email copied onto the
        comment, so it still carries a guest identity if the account is later
        deleted. The initial status follows the comment_moderation setting.
        """
        identity = comment_data.identity
        require_commenter(identity)

        post = get_or_raise(db, Post, post_id)
        if not post.allow_comments or not site_crud.get_setting(db, "comments_enabled", True):
            raise InvalidState(f"Comments are closed on post #{post_id}")

        if comment_data.parent_id is not None:
            parent = ensure_reference(db, Comment, comment_data.parent_id, "parent_id")
            if parent.post_id != post_id:
                raise ConstraintViolation(
                    f"Comment #{parent.id} belongs to another post",
                    constraint="comment_parent",
                )

        moderated = site_crud.get_setting(db, "comment_moderation", True)
        comment = Comment(
            post_id=post_id,
            parent_id=comment_data.parent_id,
            content=comment_data.content,
            author_ip=identity.ip_address,
            status=CommentStatus.pending if moderated else CommentStatus.approved
        )

        if isinstance(identity, RegisteredIdentity):
            author = ensure_reference(db, User, identity.user_id, "author_id")
            comment.author_id = author.id
            comment.author_name = author.display_name[:100]
            comment.author_email = author.email
        else:
            comment.author_name = identity.name
            comment.author_email = identity.email
            comment.author_website = identity.website

        db.add(comment)
        commit_or_raise(db, f"comment on post #{post_id}")
        db.refresh(comment)
        logger.info(f"Comment #{comment.id} on post #{post_id} created as {comment.status.value}")
        return comment

    def get_comment(self, db: Session, comment_id: int) -> Comment:
        return get_or_raise(db, Comment, comment_id)

    def list_comments(
        self,
        db: Session,
        post_id: int,
        status: Optional[CommentStatus] = CommentStatus.approved
    ) -> List[Comment]:
        """Comments of a post, pinned first, then oldest first. status=None returns all."""
        query = select(Comment).where(Comment.post_id == post_id)
        if status is not None:
            query = query.where(Comment.status == status)
        return db.exec(
            query.order_by(Comment.is_pinned.desc(), Comment.created_at, Comment.id)
        ).all()

    def comment_thread(
        self,
        db: Session,
        post_id: int,
        status: Optional[CommentStatus] = CommentStatus.approved
    ) -> List[CommentNode]:
        """Nest the comments of a post under their parents."""
        comments = self.list_comments(db, post_id, status=status)
        nodes = {c.id: CommentNode.model_validate(c, from_attributes=True) for c in comments}
        roots = []
        for comment in comments:
            node = nodes[comment.id]
            if comment.parent_id is None:
                roots.append(node)
            elif comment.parent_id in nodes:
                nodes[comment.parent_id].replies.append(node)
            # Replies to hidden comments stay hidden
        return roots

    def set_comment_status(self, db: Session, comment_id: int, status: CommentStatus) -> Comment:
        comment = get_or_raise(db, Comment, comment_id)
        comment.status = status
        comment.updated_at = datetime.utcnow()
        commit_or_raise(db, f"comment #{comment_id}")
        db.refresh(comment)
        logger.info(f"Comment #{comment_id} marked {status.value}")
        return comment

    def move_comment(self, db: Session, comment_id: int, new_parent_id: Optional[int]) -> Comment:
        """Re-thread a comment under another comment of the same post."""
        comment = get_or_raise(db, Comment, comment_id)
        if new_parent_id is not None:
            parent = ensure_reference(db, Comment, new_parent_id, "parent_id")
            if parent.post_id != comment.post_id:
                raise ConstraintViolation(
                    f"Comment #{parent.id} belongs to another post",
                    constraint="comment_parent",
                )
            ensure_no_cycle(db, Comment, comment.id, new_parent_id)

        comment.parent_id = new_parent_id
        comment.updated_at = datetime.utcnow()
        commit_or_raise(db, f"comment #{comment_id}")
        db.refresh(comment)
        return comment

    def delete_comment(self, db: Session, comment_id: int) -> None:
        """Delete a comment; its replies and likes go with it."""
        comment = get_or_raise(db, Comment, comment_id)
        db.delete(comment)
        commit_or_raise(db, f"comment #{comment_id}")


def to_comment_read(comment: Comment) -> CommentRead:
    return CommentRead.model_validate(comment, from_attributes=True)


# Create singleton instance
engagement_crud = EngagementCRUD()
