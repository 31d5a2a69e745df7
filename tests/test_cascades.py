from sqlmodel import Session, select, func

from blogstore.crud.blog import blog_crud
from blogstore.crud.user import user_crud
from blogstore.models.analytics import CommentLike, PostLike, PostView
from blogstore.models.blog import Category, Comment, CommentStatus, Post, PostTag, RelatedPost, Tag
from blogstore.models.media import Media
from blogstore.models.site import Menu, MenuItem
from blogstore.models.user import UserSession


def count(session: Session, model, *conditions) -> int:
    return session.exec(select(func.count()).select_from(model).where(*conditions)).one()


class TestUserDeletion:
    def test_deleting_author_removes_their_posts_and_dependents(self, session: Session, make_post, make_user, author, make_tag):
        reader = make_user("reader")
        post = make_post()
        tag = make_tag("python")
        session.add(PostTag(post_id=post.id, tag_id=tag.id))
        comment = Comment(post_id=post.id, author_id=reader.id, author_name="reader", content="Nice")
        session.add(comment)
        session.commit()
        session.add(CommentLike(comment_id=comment.id, user_id=reader.id))
        session.add(PostLike(post_id=post.id, user_id=reader.id))
        session.add(PostView(post_id=post.id, user_id=reader.id))
        session.commit()
        post_id = post.id

        user_crud.delete_user(session, author.id)

        assert count(session, Post, Post.id == post_id) == 0
        assert count(session, Comment, Comment.post_id == post_id) == 0
        assert count(session, CommentLike) == 0
        assert count(session, PostLike) == 0
        assert count(session, PostView) == 0
        assert count(session, PostTag) == 0
        # The tag itself survives
        assert count(session, Tag, Tag.id == tag.id) == 1

    def test_deleting_commenter_keeps_comment_without_author(self, session: Session, make_post, make_user):
        post = make_post()
        commenter = make_user("commenter")
        comment = Comment(
            post_id=post.id,
            author_id=commenter.id,
            author_name="commenter",
            author_email="commenter@example.com",
            content="Still here",
            status=CommentStatus.approved
        )
        session.add(comment)
        session.commit()
        comment_id = comment.id

        user_crud.delete_user(session, commenter.id)

        survivor = session.exec(select(Comment).where(Comment.id == comment_id)).one()
        assert survivor.author_id is None
        assert survivor.author_name == "commenter"
        assert survivor.content == "Still here"

    def test_deleting_viewer_keeps_view_without_user(self, session: Session, make_post, make_user):
        post = make_post()
        viewer = make_user("viewer")
        session.add(PostView(post_id=post.id, user_id=viewer.id, ip_address="10.0.0.9"))
        session.commit()

        user_crud.delete_user(session, viewer.id)

        view = session.exec(select(PostView).where(PostView.post_id == post.id)).one()
        assert view.user_id is None
        assert view.ip_address == "10.0.0.9"

    def test_deleting_user_removes_likes_sessions_and_media(self, session: Session, make_post, make_user):
        post = make_post()
        user = make_user("liker")
        session.add(PostLike(post_id=post.id, user_id=user.id))
        session.add(UserSession(id="sess-1", user_id=user.id))
        session.add(Media(
            filename="a.png", original_filename="a.png", file_path="/tmp/a.png",
            file_size=10, mime_type="image/png", uploaded_by=user.id
        ))
        session.commit()

        user_crud.delete_user(session, user.id)

        assert count(session, PostLike) == 0
        assert count(session, UserSession) == 0
        assert count(session, Media) == 0
        assert count(session, Post, Post.id == post.id) == 1


class TestCategoryDeletion:
    def test_posts_become_uncategorized(self, session: Session, make_post, category):
        post = make_post(category_id=category.id)

        blog_crud.delete_category(session, category.id)

        reloaded = session.exec(select(Post).where(Post.id == post.id)).one()
        assert reloaded.category_id is None

    def test_children_become_roots(self, session: Session, category):
        child = Category(name="Python", slug="python", parent_id=category.id)
        session.add(child)
        session.commit()

        blog_crud.delete_category(session, category.id)

        reloaded = session.exec(select(Category).where(Category.id == child.id)).one()
        assert reloaded.parent_id is None

    def test_menu_items_linking_to_category_are_removed(self, session: Session, category):
        menu = Menu(name="Primary", location="primary")
        session.add(menu)
        session.commit()
        session.add(MenuItem(menu_id=menu.id, title="Tech", category_id=category.id))
        session.add(MenuItem(menu_id=menu.id, title="Home", url="/"))
        session.commit()

        blog_crud.delete_category(session, category.id)

        titles = session.exec(select(MenuItem.title).where(MenuItem.menu_id == menu.id)).all()
        assert titles == ["Home"]


class TestPostDeletion:
    def test_removes_comments_likes_views_tags_and_relations(self, session: Session, make_post, make_tag, author):
        post, other = make_post(), make_post()
        tag = make_tag("python")
        session.add(PostTag(post_id=post.id, tag_id=tag.id))
        session.add(PostLike(post_id=post.id, ip_address="10.0.0.1"))
        session.add(PostView(post_id=post.id, ip_address="10.0.0.1"))
        session.add(RelatedPost(post_id=post.id, related_post_id=other.id))
        session.add(RelatedPost(post_id=other.id, related_post_id=post.id))
        session.add(Comment(post_id=post.id, author_name="guest", content="Hello"))
        session.commit()

        blog_crud.delete_post(session, post.id)

        assert count(session, PostTag) == 0
        assert count(session, PostLike) == 0
        assert count(session, PostView) == 0
        assert count(session, RelatedPost) == 0
        assert count(session, Comment) == 0
        assert count(session, Post, Post.id == other.id) == 1
        assert count(session, Tag) == 1

    def test_removes_menu_items_linking_to_post(self, session: Session, make_post):
        post = make_post()
        menu = Menu(name="Footer", location="footer")
        session.add(menu)
        session.commit()
        session.add(MenuItem(menu_id=menu.id, title="About", post_id=post.id))
        session.commit()

        blog_crud.delete_post(session, post.id)

        assert count(session, MenuItem) == 0
        assert count(session, Menu) == 1


class TestCommentDeletion:
    def test_replies_and_their_likes_go_with_the_parent(self, session: Session, make_post):
        post = make_post()
        root = Comment(post_id=post.id, author_name="a", content="root")
        session.add(root)
        session.commit()
        reply = Comment(post_id=post.id, parent_id=root.id, author_name="b", content="reply")
        session.add(reply)
        session.commit()
        nested = Comment(post_id=post.id, parent_id=reply.id, author_name="c", content="nested")
        session.add(nested)
        session.commit()
        session.add(CommentLike(comment_id=nested.id, ip_address="10.0.0.1"))
        session.commit()

        session.delete(root)
        session.commit()

        assert count(session, Comment) == 0
        assert count(session, CommentLike) == 0
        assert count(session, Post, Post.id == post.id) == 1


class TestMenuDeletion:
    def test_items_and_nested_items_go_with_the_menu(self, session: Session):
        menu = Menu(name="Primary", location="primary")
        session.add(menu)
        session.commit()
        parent = MenuItem(menu_id=menu.id, title="Blog", url="/blog")
        session.add(parent)
        session.commit()
        session.add(MenuItem(menu_id=menu.id, parent_id=parent.id, title="Archive", url="/archive"))
        session.commit()

        session.delete(menu)
        session.commit()

        assert count(session, MenuItem) == 0

    def test_deleting_parent_item_removes_children(self, session: Session):
        menu = Menu(name="Primary", location="primary")
        session.add(menu)
        session.commit()
        parent = MenuItem(menu_id=menu.id, title="Blog", url="/blog")
        session.add(parent)
        session.commit()
        session.add(MenuItem(menu_id=menu.id, parent_id=parent.id, title="Archive", url="/archive"))
        session.add(MenuItem(menu_id=menu.id, title="Home", url="/"))
        session.commit()

        session.delete(parent)
        session.commit()

        assert session.exec(select(MenuItem.title)).all() == ["Home"]


class TestTagDeletion:
    def test_links_removed_posts_kept(self, session: Session, make_post, make_tag):
        post = make_post()
        tag = make_tag("python")
        session.add(PostTag(post_id=post.id, tag_id=tag.id))
        session.commit()

        blog_crud.delete_tag(session, tag.id)

        assert count(session, PostTag) == 0
        assert count(session, Post, Post.id == post.id) == 1
