# blogstore/crud/blog.py
from sqlmodel import Session, select, func
from typing import List, Optional
from datetime import datetime
import logging
import math
import re

from blogstore.core.config import settings
from blogstore.core.exceptions import ConstraintViolation, InvalidState, NotFound
from blogstore.crud.integrity import (
    commit_or_raise, ensure_no_cycle, ensure_reference, explicit_slug, flush_or_raise,
    generate_slug, get_or_raise
)
from blogstore.crud.views import published_condition
from blogstore.models.blog import (
    Category, Tag, Post, PostTag, PostStatus, RelatedPost
)
from blogstore.models.user import User
from blogstore.schemas.blog import (
    CategoryCreate, CategoryUpdate, CategoryNode, TagCreate, TagUpdate,
    PostCreate, PostUpdate, RelatedPostCreate, to_naive_utc
)

logger = logging.getLogger(__name__)


def estimate_reading_time(content: str, words_per_minute: Optional[int] = None) -> int:
    """Reading time in whole minutes, at least one for non-empty content."""
    words = len(re.findall(r'\w+', re.sub(r'<[^>]+>', ' ', content or '')))
    if words == 0:
        return 0
    return max(1, math.ceil(words / (words_per_minute or settings.WORDS_PER_MINUTE)))


def check_schedule(status: PostStatus, scheduled_at: Optional[datetime], now: Optional[datetime] = None) -> None:
    """A scheduled post needs a publication time that is still ahead."""
    if status != PostStatus.scheduled:
        return
    now = to_naive_utc(now) or datetime.utcnow()
    scheduled_at = to_naive_utc(scheduled_at)
    if scheduled_at is None:
        raise InvalidState("Scheduled posts require scheduled_at")
    if scheduled_at <= now:
        raise InvalidState(f"scheduled_at {scheduled_at.isoformat()} is not in the future")


class BlogCRUD:
    # ============ Category Operations ============

    def create_category(self, db: Session, category_data: CategoryCreate) -> Category:
        """Create a new category."""
        if category_data.parent_id is not None:
            ensure_reference(db, Category, category_data.parent_id, "parent_id")

        slug = explicit_slug(category_data.slug) or generate_slug(category_data.name, db, Category)

        category = Category(**category_data.model_dump(exclude={'slug'}), slug=slug)

        db.add(category)
        commit_or_raise(db, f"category {category_data.name!r}")
        db.refresh(category)
        logger.info(f"Category #{category.id} ({category.slug}) created")
        return category

    def get_category(self, db: Session, category_id: int) -> Category:
        """Get category by ID."""
        return get_or_raise(db, Category, category_id)

    def get_category_by_slug(self, db: Session, slug: str) -> Category:
        """Get category by slug."""
        category = db.exec(select(Category).where(Category.slug == slug)).first()
        if category is None:
            raise NotFound("Category", slug)
        return category

    def get_categories(
        self,
        db: Session,
        skip: int = 0,
        limit: int = 50,
        active_only: bool = False
    ) -> tuple[List[Category], int]:
        """Get categories ordered by sort_order then name. Returns (categories, total_count)."""
        query = select(Category)
        count_query = select(func.count(Category.id))
        if active_only:
            query = query.where(Category.is_active == True)  # noqa: E712
            count_query = count_query.where(Category.is_active == True)  # noqa: E712

        total = db.exec(count_query).one()
        categories = db.exec(
            query.order_by(Category.sort_order, Category.name).offset(skip).limit(limit)
        ).all()
        return categories, total

    def update_category(
        self,
        db: Session,
        category_id: int,
        category_data: CategoryUpdate
    ) -> Category:
        """Update category."""
        category = get_or_raise(db, Category, category_id)

        update_data = category_data.model_dump(exclude_unset=True)

        if update_data.get('parent_id') is not None:
            ensure_reference(db, Category, update_data['parent_id'], "parent_id")
            ensure_no_cycle(db, Category, category.id, update_data['parent_id'])

        requested_slug = update_data.pop('slug', None)
        if requested_slug:
            update_data['slug'] = explicit_slug(requested_slug) or generate_slug(
                update_data.get('name', category.name), db, Category, exclude_id=category.id
            )
        elif 'name' in update_data and update_data['name'] != category.name:
            update_data['slug'] = generate_slug(update_data['name'], db, Category, exclude_id=category.id)

        for field, value in update_data.items():
            setattr(category, field, value)
        category.updated_at = datetime.utcnow()

        commit_or_raise(db, f"category #{category_id}")
        db.refresh(category)
        return category

    def delete_category(self, db: Session, category_id: int) -> None:
        """
        Delete a category.

        Posts in the category become uncategorized and child categories become
        roots; menu items linking to the category are removed.
        """
        category = get_or_raise(db, Category, category_id)
        db.delete(category)
        commit_or_raise(db, f"category #{category_id}")
        logger.info(f"Category #{category_id} deleted")

    def get_category_post_count(self, db: Session, category_id: int) -> int:
        """Get the number of posts in a category."""
        return db.exec(
            select(func.count(Post.id)).where(Post.category_id == category_id)
        ).one()

    def category_tree(self, db: Session, active_only: bool = False) -> List[CategoryNode]:
        """Nest categories under their parents; siblings ordered by sort_order then name."""
        categories, _ = self.get_categories(db, limit=10_000, active_only=active_only)

        nodes = {
            c.id: CategoryNode(id=c.id, name=c.name, slug=c.slug, sort_order=c.sort_order)
            for c in categories
        }
        roots = []
        for category in categories:
            node = nodes[category.id]
            if category.parent_id is not None and category.parent_id in nodes:
                nodes[category.parent_id].children.append(node)
            else:
                roots.append(node)
        return roots

    # ============ Tag Operations ============

    def create_tag(self, db: Session, tag_data: TagCreate) -> Tag:
        """Create a new tag."""
        slug = explicit_slug(tag_data.slug) or generate_slug(tag_data.name, db, Tag)

        tag = Tag(**tag_data.model_dump(exclude={'slug'}), slug=slug)

        db.add(tag)
        commit_or_raise(db, f"tag {tag_data.name!r}")
        db.refresh(tag)
        return tag

    def get_tag(self, db: Session, tag_id: int) -> Tag:
        """Get tag by ID."""
        return get_or_raise(db, Tag, tag_id)

    def get_tag_by_slug(self, db: Session, slug: str) -> Tag:
        """Get tag by slug."""
        tag = db.exec(select(Tag).where(Tag.slug == slug)).first()
        if tag is None:
            raise NotFound("Tag", slug)
        return tag

    def get_tags(
        self,
        db: Session,
        skip: int = 0,
        limit: int = 100
    ) -> tuple[List[Tag], int]:
        """Get all tags. Returns (tags, total_count)."""
        total = db.exec(select(func.count(Tag.id))).one()
        tags = db.exec(select(Tag).order_by(Tag.name).offset(skip).limit(limit)).all()
        return tags, total

    def update_tag(self, db: Session, tag_id: int, tag_data: TagUpdate) -> Tag:
        """Update tag."""
        tag = get_or_raise(db, Tag, tag_id)

        update_data = tag_data.model_dump(exclude_unset=True)

        requested_slug = update_data.pop('slug', None)
        if requested_slug:
            update_data['slug'] = explicit_slug(requested_slug) or generate_slug(
                update_data.get('name', tag.name), db, Tag, exclude_id=tag.id
            )
        elif 'name' in update_data and update_data['name'] != tag.name:
            update_data['slug'] = generate_slug(update_data['name'], db, Tag, exclude_id=tag.id)

        for field, value in update_data.items():
            setattr(tag, field, value)
        tag.updated_at = datetime.utcnow()

        commit_or_raise(db, f"tag #{tag_id}")
        db.refresh(tag)
        return tag

    def delete_tag(self, db: Session, tag_id: int) -> None:
        """Delete tag; only its post associations go with it."""
        tag = get_or_raise(db, Tag, tag_id)
        db.delete(tag)
        commit_or_raise(db, f"tag #{tag_id}")

    def get_tag_post_count(self, db: Session, tag_id: int) -> int:
        """Get the number of posts with a tag."""
        return db.exec(
            select(func.count(PostTag.post_id)).where(PostTag.tag_id == tag_id)
        ).one()

    def _replace_post_tags(self, db: Session, post_id: int, tag_ids: List[int]) -> None:
        for tag_id in set(tag_ids):
            ensure_reference(db, Tag, tag_id, "tag_id")

        for link in db.exec(select(PostTag).where(PostTag.post_id == post_id)).all():
            db.delete(link)
        db.flush()

        for tag_id in dict.fromkeys(tag_ids):
            db.add(PostTag(post_id=post_id, tag_id=tag_id))

    def set_post_tags(self, db: Session, post_id: int, tag_ids: List[int]) -> List[Tag]:
        """Replace the tags of a post."""
        get_or_raise(db, Post, post_id)
        self._replace_post_tags(db, post_id, tag_ids)
        commit_or_raise(db, f"tags of post #{post_id}")
        return self.get_post_tags(db, post_id)

    def get_post_tags(self, db: Session, post_id: int) -> List[Tag]:
        return db.exec(
            select(Tag).join(PostTag, PostTag.tag_id == Tag.id)
            .where(PostTag.post_id == post_id)
            .order_by(Tag.name)
        ).all()

    # ============ Post Operations ============

    def create_post(self, db: Session, post_data: PostCreate, author_id: int) -> Post:
        """Create a new post for an existing author."""
        ensure_reference(db, User, author_id, "author_id")
        if post_data.category_id is not None:
            ensure_reference(db, Category, post_data.category_id, "category_id")
        check_schedule(post_data.status, post_data.scheduled_at)

        slug = explicit_slug(post_data.slug) or generate_slug(post_data.title, db, Post)

        post = Post(
            **post_data.model_dump(exclude={'slug', 'tag_ids'}),
            slug=slug,
            author_id=author_id,
            reading_time=estimate_reading_time(post_data.content)
        )

        if post.status == PostStatus.published:
            post.published_at = datetime.utcnow()

        db.add(post)
        flush_or_raise(db, f"post {slug!r}")
        if post_data.tag_ids:
            try:
                self._replace_post_tags(db, post.id, post_data.tag_ids)
            except ConstraintViolation:
                db.rollback()
                raise
        commit_or_raise(db, f"post {slug!r}")
        db.refresh(post)
        logger.info(f"Post #{post.id} ({post.slug}) created as {post.status.value}")
        return post

    def get_post(self, db: Session, post_id: int) -> Post:
        """Get post by ID."""
        return get_or_raise(db, Post, post_id)

    def get_post_by_slug(self, db: Session, slug: str) -> Post:
        """Get post by slug."""
        post = db.exec(select(Post).where(Post.slug == slug)).first()
        if post is None:
            raise NotFound("Post", slug)
        return post

    def get_posts(
        self,
        db: Session,
        skip: int = 0,
        limit: int = 10,
        status: Optional[PostStatus] = None,
        author_id: Optional[int] = None,
        search: Optional[str] = None
    ) -> tuple[List[Post], int]:
        """All posts regardless of visibility, newest first. Returns (posts, total_count)."""
        query = select(Post)
        count_query = select(func.count(Post.id))

        conditions = []
        if status:
            conditions.append(Post.status == status)
        if author_id:
            conditions.append(Post.author_id == author_id)
        if search:
            search_pattern = f"%{search}%"
            conditions.append(
                Post.title.ilike(search_pattern)
                | Post.excerpt.ilike(search_pattern)
                | Post.content.ilike(search_pattern)
            )

        for condition in conditions:
            query = query.where(condition)
            count_query = count_query.where(condition)

        total = db.exec(count_query).one()
        posts = db.exec(
            query.order_by(Post.created_at.desc(), Post.id.desc()).offset(skip).limit(limit)
        ).all()
        return posts, total

    def update_post(self, db: Session, post_id: int, post_data: PostUpdate) -> Post:
        """Update post fields, tags and status."""
        post = get_or_raise(db, Post, post_id)

        update_data = post_data.model_dump(exclude_unset=True, exclude={'tag_ids'})

        if update_data.get('category_id') is not None:
            ensure_reference(db, Category, update_data['category_id'], "category_id")

        requested_slug = update_data.pop('slug', None)
        if requested_slug:
            update_data['slug'] = explicit_slug(requested_slug) or generate_slug(
                update_data.get('title', post.title), db, Post, exclude_id=post.id
            )
        elif 'title' in update_data and update_data['title'] != post.title:
            update_data['slug'] = generate_slug(update_data['title'], db, Post, exclude_id=post.id)

        if 'content' in update_data:
            update_data['reading_time'] = estimate_reading_time(update_data['content'])

        new_status = update_data.get('status', post.status)
        new_scheduled_at = update_data.get('scheduled_at', post.scheduled_at)
        if 'status' in update_data or 'scheduled_at' in update_data:
            check_schedule(new_status, new_scheduled_at)

        if new_status == PostStatus.published and post.status != PostStatus.published:
            update_data.setdefault('published_at', datetime.utcnow())
        elif 'status' in update_data and new_status == PostStatus.draft:
            update_data['published_at'] = None

        for field, value in update_data.items():
            setattr(post, field, value)
        post.updated_at = datetime.utcnow()

        if post_data.tag_ids is not None:
            try:
                self._replace_post_tags(db, post_id, post_data.tag_ids)
            except ConstraintViolation:
                db.rollback()
                raise

        commit_or_raise(db, f"post #{post_id}")
        db.refresh(post)
        return post

    def _transition(self, db: Session, post_id: int, status: PostStatus, **fields) -> Post:
        post = get_or_raise(db, Post, post_id)
        post.status = status
        for field, value in fields.items():
            setattr(post, field, value)
        post.updated_at = datetime.utcnow()

        commit_or_raise(db, f"post #{post_id}")
        db.refresh(post)
        logger.info(f"Post #{post_id} is now {status.value}")
        return post

    def publish_post(self, db: Session, post_id: int, published_at: Optional[datetime] = None) -> Post:
        """Publish a post now, or at published_at when given."""
        return self._transition(
            db, post_id, PostStatus.published,
            published_at=to_naive_utc(published_at) or datetime.utcnow(),
            scheduled_at=None
        )

    def schedule_post(self, db: Session, post_id: int, scheduled_at: datetime) -> Post:
        """Queue a post for publication at scheduled_at."""
        scheduled_at = to_naive_utc(scheduled_at)
        check_schedule(PostStatus.scheduled, scheduled_at)
        return self._transition(db, post_id, PostStatus.scheduled, scheduled_at=scheduled_at)

    def archive_post(self, db: Session, post_id: int) -> Post:
        return self._transition(db, post_id, PostStatus.archived)

    def revert_to_draft(self, db: Session, post_id: int) -> Post:
        """Unpublish a post (revert to draft)."""
        return self._transition(db, post_id, PostStatus.draft, published_at=None, scheduled_at=None)

    def publish_due_posts(self, db: Session, now: Optional[datetime] = None) -> List[Post]:
        """Promote scheduled posts whose time has come. Meant for a periodic job."""
        now = to_naive_utc(now) or datetime.utcnow()
        due = db.exec(
            select(Post).where(Post.status == PostStatus.scheduled, Post.scheduled_at <= now)
        ).all()
        for post in due:
            post.status = PostStatus.published
            post.published_at = post.scheduled_at
            post.updated_at = now

        commit_or_raise(db, "scheduled posts")
        if due:
            logger.info(f"Published {len(due)} scheduled posts")
        return due

    def delete_post(self, db: Session, post_id: int) -> None:
        """Delete post; comments, likes, views, tags, relations and menu links go with it."""
        post = get_or_raise(db, Post, post_id)
        db.delete(post)
        commit_or_raise(db, f"post #{post_id}")
        logger.info(f"Post #{post_id} deleted")

    # ============ Related Posts ============

    def add_related_post(self, db: Session, post_id: int, data: RelatedPostCreate) -> RelatedPost:
        """Link two posts; a pair can only be linked once and never to itself."""
        if post_id == data.related_post_id:
            raise ConstraintViolation("A post cannot be related to itself", constraint="related_posts_self")
        ensure_reference(db, Post, post_id, "post_id")
        ensure_reference(db, Post, data.related_post_id, "related_post_id")

        relation = RelatedPost(post_id=post_id, **data.model_dump())
        db.add(relation)
        commit_or_raise(db, f"relation {post_id}->{data.related_post_id}")
        db.refresh(relation)
        return relation

    def get_related_posts(
        self,
        db: Session,
        post_id: int,
        published_only: bool = False,
        limit: int = 10
    ) -> List[Post]:
        """Related posts ordered by sort_order; equal sort_order keeps insertion order."""
        query = (
            select(Post)
            .join(RelatedPost, RelatedPost.related_post_id == Post.id)
            .where(RelatedPost.post_id == post_id)
        )
        if published_only:
            query = query.where(published_condition(datetime.utcnow()))

        return db.exec(
            query.order_by(RelatedPost.sort_order, RelatedPost.id).limit(limit)
        ).all()

    def remove_related_post(self, db: Session, post_id: int, related_post_id: int) -> None:
        relation = db.exec(
            select(RelatedPost).where(
                RelatedPost.post_id == post_id,
                RelatedPost.related_post_id == related_post_id
            )
        ).first()
        if relation is None:
            raise NotFound("RelatedPost", (post_id, related_post_id))
        db.delete(relation)
        commit_or_raise(db, f"relation {post_id}->{related_post_id}")


# Create singleton instance
blog_crud = BlogCRUD()
