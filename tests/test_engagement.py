import pytest
from sqlmodel import Session, select, func

from blogstore.core.exceptions import ConstraintViolation, InvalidState, NotFound
from blogstore.crud.engagement import Counter, engagement_crud
from blogstore.crud.site import site_crud
from blogstore.crud.user import user_crud
from blogstore.models.analytics import PostLike, PostView
from blogstore.models.blog import Comment, CommentStatus, Post
from blogstore.schemas.blog import CommentCreate
from blogstore.schemas.identity import GuestIdentity, RegisteredIdentity


def like_rows(session: Session, post_id: int) -> int:
    return session.exec(select(func.count(PostLike.id)).where(PostLike.post_id == post_id)).one()


def reload_post(session: Session, post_id: int) -> Post:
    return session.exec(select(Post).where(Post.id == post_id)).one()


class TestCounters:
    @pytest.mark.parametrize("counter,column", [
        (Counter.view, "view_count"),
        (Counter.like, "like_count"),
        (Counter.share, "share_count"),
    ])
    def test_increment(self, session: Session, make_post, counter, column):
        post = make_post()

        assert engagement_crud.increment_counter(session, post.id, counter) == 1
        assert engagement_crud.increment_counter(session, post.id, counter, amount=4) == 5
        assert getattr(reload_post(session, post.id), column) == 5

    def test_accepts_plain_string(self, session: Session, make_post):
        post = make_post()
        assert engagement_crud.increment_counter(session, post.id, "share") == 1

    def test_unknown_counter(self, session: Session, make_post):
        post = make_post()
        with pytest.raises(ValueError):
            engagement_crud.increment_counter(session, post.id, "clicks")

    def test_unknown_post(self, session: Session):
        with pytest.raises(NotFound):
            engagement_crud.increment_counter(session, 999, Counter.view)

    def test_only_target_post_changes(self, session: Session, make_post):
        first, second = make_post(), make_post()
        engagement_crud.increment_counter(session, first.id, Counter.view)
        assert reload_post(session, second.id).view_count == 0


class TestPostLikes:
    def test_registered_like(self, session: Session, make_post, make_user):
        post = make_post()
        user = make_user("fan")

        like = engagement_crud.like_post(session, post.id, RegisteredIdentity(user_id=user.id, ip_address="10.0.0.1"))

        assert like.user_id == user.id
        assert like.ip_address is None
        assert reload_post(session, post.id).like_count == 1

    def test_second_like_from_same_user_rejected(self, session: Session, make_post, make_user):
        post = make_post()
        user = make_user("fan")
        engagement_crud.like_post(session, post.id, RegisteredIdentity(user_id=user.id))

        with pytest.raises(ConstraintViolation):
            engagement_crud.like_post(session, post.id, RegisteredIdentity(user_id=user.id))

        # Prior state unchanged: one row, counter not bumped twice
        assert like_rows(session, post.id) == 1
        assert reload_post(session, post.id).like_count == 1

    def test_different_user_succeeds(self, session: Session, make_post, make_user):
        post = make_post()
        engagement_crud.like_post(session, post.id, RegisteredIdentity(user_id=make_user("a").id))
        engagement_crud.like_post(session, post.id, RegisteredIdentity(user_id=make_user("b").id))
        assert like_rows(session, post.id) == 2

    def test_guest_like_per_ip(self, session: Session, make_post):
        post = make_post()
        engagement_crud.like_post(session, post.id, GuestIdentity(ip_address="10.0.0.1"))

        with pytest.raises(ConstraintViolation):
            engagement_crud.like_post(session, post.id, GuestIdentity(ip_address="10.0.0.1"))

        engagement_crud.like_post(session, post.id, GuestIdentity(ip_address="10.0.0.2"))
        assert like_rows(session, post.id) == 2

    def test_registered_and_guest_from_same_ip(self, session: Session, make_post, make_user):
        post = make_post()
        user = make_user("fan")
        engagement_crud.like_post(session, post.id, RegisteredIdentity(user_id=user.id, ip_address="10.0.0.1"))
        engagement_crud.like_post(session, post.id, GuestIdentity(ip_address="10.0.0.1"))
        assert like_rows(session, post.id) == 2

    def test_guest_without_ip_rejected(self, session: Session, make_post):
        post = make_post()
        with pytest.raises(ConstraintViolation):
            engagement_crud.like_post(session, post.id, GuestIdentity(name="anon"))

    def test_unknown_user_rejected(self, session: Session, make_post):
        post = make_post()
        with pytest.raises(ConstraintViolation):
            engagement_crud.like_post(session, post.id, RegisteredIdentity(user_id=404))

    def test_unknown_post(self, session: Session):
        with pytest.raises(NotFound):
            engagement_crud.like_post(session, 404, GuestIdentity(ip_address="10.0.0.1"))

    def test_unlike(self, session: Session, make_post):
        post = make_post()
        identity = GuestIdentity(ip_address="10.0.0.1")
        engagement_crud.like_post(session, post.id, identity)
        assert engagement_crud.has_liked(session, post.id, identity)

        engagement_crud.unlike_post(session, post.id, identity)

        assert not engagement_crud.has_liked(session, post.id, identity)
        assert reload_post(session, post.id).like_count == 0
        with pytest.raises(NotFound):
            engagement_crud.unlike_post(session, post.id, identity)


class TestCommentLikes:
    def test_like_comment_once(self, session: Session, make_post):
        post = make_post()
        comment = Comment(post_id=post.id, author_name="g", content="c", status=CommentStatus.approved)
        session.add(comment)
        session.commit()

        engagement_crud.like_comment(session, comment.id, GuestIdentity(ip_address="10.0.0.1"))
        with pytest.raises(ConstraintViolation):
            engagement_crud.like_comment(session, comment.id, GuestIdentity(ip_address="10.0.0.1"))

        assert engagement_crud.get_comment(session, comment.id).like_count == 1


class TestViews:
    def test_record_view_bumps_counter(self, session: Session, make_post):
        post = make_post()

        engagement_crud.record_view(session, post.id, GuestIdentity(ip_address="10.0.0.1"), user_agent="pytest")
        engagement_crud.record_view(session, post.id, GuestIdentity(ip_address="10.0.0.1"))

        assert engagement_crud.count_views(session, post.id) == 2
        assert reload_post(session, post.id).view_count == 2

    def test_registered_view_keeps_ip(self, session: Session, make_post, make_user):
        post = make_post()
        user = make_user("reader")

        view = engagement_crud.record_view(session, post.id, RegisteredIdentity(user_id=user.id, ip_address="10.0.0.5"))

        assert view.user_id == user.id
        assert view.ip_address == "10.0.0.5"

    def test_view_needs_user_or_ip(self, session: Session, make_post):
        post = make_post()
        with pytest.raises(ConstraintViolation):
            engagement_crud.record_view(session, post.id, GuestIdentity())
        assert session.exec(select(func.count(PostView.id))).one() == 0


class TestComments:
    def test_guest_comment_with_name_and_email(self, session: Session, make_post):
        post = make_post()

        comment = engagement_crud.create_comment(session, post.id, CommentCreate(
            content="Nice post",
            identity=GuestIdentity(name="Guest", email="guest@example.com", ip_address="10.0.0.1")
        ))

        assert comment.author_id is None
        assert comment.author_name == "Guest"
        assert comment.author_email == "guest@example.com"
        assert comment.author_ip == "10.0.0.1"

    def test_anonymous_guest_comment_rejected(self, session: Session, make_post):
        post = make_post()
        with pytest.raises(ConstraintViolation):
            engagement_crud.create_comment(session, post.id, CommentCreate(
                content="Who am I?", identity=GuestIdentity(ip_address="10.0.0.1")
            ))
        assert session.exec(select(func.count(Comment.id))).one() == 0

    def test_registered_comment_copies_author_details(self, session: Session, make_post, author):
        post = make_post()

        comment = engagement_crud.create_comment(session, post.id, CommentCreate(
            content="Author here", identity=RegisteredIdentity(user_id=author.id)
        ))

        assert comment.author_id == author.id
        assert comment.author_name == "Alice Smith"
        assert comment.author_email == "alice@example.com"

    def test_registered_comment_keeps_guest_identity_after_user_deleted(self, session: Session, make_post, make_user):
        post = make_post()
        user = make_user("leaver")
        comment = engagement_crud.create_comment(session, post.id, CommentCreate(
            content="Bye", identity=RegisteredIdentity(user_id=user.id)
        ))

        user_crud.delete_user(session, user.id)

        survivor = engagement_crud.get_comment(session, comment.id)
        assert survivor.author_id is None
        assert survivor.author_name == "leaver"

    def test_moderation_setting(self, session: Session, make_post, seeded):
        post = make_post()
        identity = GuestIdentity(name="g")

        pending = engagement_crud.create_comment(session, post.id, CommentCreate(content="one", identity=identity))
        assert pending.status == CommentStatus.pending

        site_crud.set_setting(session, "comment_moderation", False)
        approved = engagement_crud.create_comment(session, post.id, CommentCreate(content="two", identity=identity))
        assert approved.status == CommentStatus.approved

    def test_comments_closed(self, session: Session, make_post, seeded):
        closed = make_post(allow_comments=False)
        with pytest.raises(InvalidState):
            engagement_crud.create_comment(session, closed.id, CommentCreate(
                content="hi", identity=GuestIdentity(name="g")
            ))

        site_crud.set_setting(session, "comments_enabled", False)
        post = make_post()
        with pytest.raises(InvalidState):
            engagement_crud.create_comment(session, post.id, CommentCreate(
                content="hi", identity=GuestIdentity(name="g")
            ))

    def test_reply_must_be_on_same_post(self, session: Session, make_post):
        first, second = make_post(), make_post()
        parent = engagement_crud.create_comment(session, first.id, CommentCreate(
            content="root", identity=GuestIdentity(name="g")
        ))

        with pytest.raises(ConstraintViolation):
            engagement_crud.create_comment(session, second.id, CommentCreate(
                content="reply", parent_id=parent.id, identity=GuestIdentity(name="g")
            ))

    def test_list_comments_orders_pinned_first(self, session: Session, make_post):
        post = make_post()
        for content, pinned in (("first", False), ("second", False), ("pinned", True)):
            session.add(Comment(
                post_id=post.id, author_name="g", content=content,
                status=CommentStatus.approved, is_pinned=pinned
            ))
        session.add(Comment(post_id=post.id, author_name="g", content="hidden", status=CommentStatus.spam))
        session.commit()

        contents = [c.content for c in engagement_crud.list_comments(session, post.id)]
        assert contents == ["pinned", "first", "second"]
        assert len(engagement_crud.list_comments(session, post.id, status=None)) == 4

    def test_set_status(self, session: Session, make_post):
        post = make_post()
        comment = engagement_crud.create_comment(session, post.id, CommentCreate(
            content="hi", identity=GuestIdentity(name="g")
        ))
        updated = engagement_crud.set_comment_status(session, comment.id, CommentStatus.spam)
        assert updated.status == CommentStatus.spam
