from datetime import datetime, timedelta

import pytest
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, SQLModel, select

from blogstore.models.analytics import CommentLike, PostLike, PostView
from blogstore.models.blog import Category, Comment, Post, PostStatus, PostTag, RelatedPost, Tag
from blogstore.models.policies import DELETE_POLICIES, OnDelete, check_metadata, declared_policies
from blogstore.models.site import Setting
from blogstore.models.user import User, UserRole


class TestDeletePolicies:
    def test_metadata_matches_policy_table(self, engine):
        assert check_metadata(SQLModel.metadata) == []

    def test_every_foreign_key_has_a_policy(self, engine):
        declared = declared_policies(SQLModel.metadata)
        assert set(declared) == set(DELETE_POLICIES)

    def test_no_restrict_edges(self):
        assert OnDelete.restrict not in DELETE_POLICIES.values()

    def test_set_null_edges(self):
        set_null = {edge for edge, action in DELETE_POLICIES.items() if action == OnDelete.set_null}
        assert set_null == {
            ("categories", "parent_id"),
            ("posts", "category_id"),
            ("comments", "author_id"),
            ("post_views", "user_id"),
        }


class TestUserModel:
    def test_create_user_defaults(self, session: Session):
        user = User(username="bob", email="bob@example.com", password_hash="x")
        session.add(user)
        session.commit()
        session.refresh(user)

        assert user.id is not None
        assert user.role == UserRole.subscriber
        assert user.is_active is True
        assert user.email_verified is False
        assert user.created_at is not None

    def test_username_unique(self, session: Session, make_user):
        make_user("bob")
        session.add(User(username="bob", email="other@example.com", password_hash="x"))
        with pytest.raises(IntegrityError):
            session.commit()

    def test_email_unique(self, session: Session, make_user):
        make_user("bob", email="shared@example.com")
        session.add(User(username="carol", email="shared@example.com", password_hash="x"))
        with pytest.raises(IntegrityError):
            session.commit()

    def test_display_name(self, make_user):
        assert make_user("dan").display_name == "dan"
        assert make_user("eve", first_name="Eve", last_name="Adams").display_name == "Eve Adams"


class TestPostModel:
    def test_post_defaults(self, make_post):
        post = make_post(status=PostStatus.draft)
        assert post.status == PostStatus.draft
        assert post.view_count == 0
        assert post.like_count == 0
        assert post.share_count == 0
        assert post.allow_comments is True
        assert post.published_at is None

    def test_timestamps_are_naive_utc(self, session: Session, make_post):
        post = make_post(status=PostStatus.draft)
        session.refresh(post)
        assert post.created_at.tzinfo is None
        assert abs(post.created_at - datetime.utcnow()) < timedelta(minutes=5)

    def test_slug_unique(self, session: Session, make_post, author):
        make_post(slug="same")
        session.add(Post(title="Other", slug="same", content="x", author_id=author.id))
        with pytest.raises(IntegrityError):
            session.commit()

    def test_author_must_exist(self, session: Session):
        session.add(Post(title="Orphan", slug="orphan", content="x", author_id=999))
        with pytest.raises(IntegrityError):
            session.commit()

    def test_category_must_exist(self, session: Session, author):
        session.add(Post(title="T", slug="t", content="x", author_id=author.id, category_id=999))
        with pytest.raises(IntegrityError):
            session.commit()


class TestTaxonomy:
    def test_tag_slug_unique(self, session: Session, make_tag):
        make_tag("python")
        session.add(Tag(name="Python 3", slug="python"))
        with pytest.raises(IntegrityError):
            session.commit()

    def test_post_tag_pair_unique(self, session: Session, make_post, make_tag):
        post = make_post()
        tag = make_tag("python")
        session.add(PostTag(post_id=post.id, tag_id=tag.id))
        session.commit()

        session.add(PostTag(post_id=post.id, tag_id=tag.id))
        with pytest.raises(IntegrityError):
            session.commit()

    def test_category_name_unique(self, session: Session, category):
        session.add(Category(name=category.name, slug="another-slug"))
        with pytest.raises(IntegrityError):
            session.commit()


class TestEngagementConstraints:
    def test_post_like_unique_per_user(self, session: Session, make_post, author):
        post = make_post()
        session.add(PostLike(post_id=post.id, user_id=author.id))
        session.commit()

        session.add(PostLike(post_id=post.id, user_id=author.id))
        with pytest.raises(IntegrityError):
            session.commit()

    def test_post_like_unique_per_ip(self, session: Session, make_post):
        post = make_post()
        session.add(PostLike(post_id=post.id, ip_address="10.0.0.1"))
        session.commit()

        session.add(PostLike(post_id=post.id, ip_address="10.0.0.1"))
        with pytest.raises(IntegrityError):
            session.commit()

    def test_registered_likes_do_not_collide_on_null_ip(self, session: Session, make_post, make_user):
        post = make_post()
        first, second = make_user("u1"), make_user("u2")
        session.add(PostLike(post_id=post.id, user_id=first.id))
        session.add(PostLike(post_id=post.id, user_id=second.id))
        session.commit()

        likes = session.exec(select(PostLike).where(PostLike.post_id == post.id)).all()
        assert len(likes) == 2

    def test_comment_like_unique_per_user(self, session: Session, make_post, author):
        post = make_post()
        comment = Comment(post_id=post.id, author_id=author.id, content="Hi")
        session.add(comment)
        session.commit()

        session.add(CommentLike(comment_id=comment.id, user_id=author.id))
        session.commit()
        session.add(CommentLike(comment_id=comment.id, user_id=author.id))
        with pytest.raises(IntegrityError):
            session.commit()

    def test_views_are_not_unique(self, session: Session, make_post):
        post = make_post()
        session.add(PostView(post_id=post.id, ip_address="10.0.0.1"))
        session.add(PostView(post_id=post.id, ip_address="10.0.0.1"))
        session.commit()

        views = session.exec(select(PostView).where(PostView.post_id == post.id)).all()
        assert len(views) == 2

    def test_related_pair_unique(self, session: Session, make_post):
        first, second = make_post(), make_post()
        session.add(RelatedPost(post_id=first.id, related_post_id=second.id))
        session.commit()

        session.add(RelatedPost(post_id=first.id, related_post_id=second.id, sort_order=5))
        with pytest.raises(IntegrityError):
            session.commit()

    def test_setting_key_unique(self, session: Session):
        session.add(Setting(setting_key="site_title", setting_value="A"))
        session.commit()
        session.add(Setting(setting_key="site_title", setting_value="B"))
        with pytest.raises(IntegrityError):
            session.commit()
