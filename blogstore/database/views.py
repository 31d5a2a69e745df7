# blogstore/database/views.py
"""
SQL views mirroring the read projections in blogstore.crud.views.

The views exist for reporting tools that query the database directly; the
application itself reads through the ORM queries.
"""
import logging

from sqlalchemy import text
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

PUBLISHED_POSTS_VIEW = """
CREATE VIEW published_posts AS
SELECT
    p.*,
    u.username AS author_name,
    u.first_name,
    u.last_name,
    c.name AS category_name,
    c.slug AS category_slug
FROM posts p
LEFT JOIN users u ON p.author_id = u.id
LEFT JOIN categories c ON p.category_id = c.id
WHERE p.status = 'published'
  AND (p.scheduled_at IS NULL OR p.scheduled_at <= CURRENT_TIMESTAMP)
"""

POST_STATS_VIEW = """
CREATE VIEW post_stats AS
SELECT
    p.id,
    p.title,
    p.view_count,
    p.like_count,
    COUNT(DISTINCT c.id) AS comment_count,
    COUNT(DISTINCT pl.id) AS total_likes
FROM posts p
LEFT JOIN comments c ON p.id = c.post_id AND c.status = 'approved'
LEFT JOIN post_likes pl ON p.id = pl.post_id
GROUP BY p.id, p.title, p.view_count, p.like_count
"""

VIEWS = {
    "published_posts": PUBLISHED_POSTS_VIEW,
    "post_stats": POST_STATS_VIEW,
}


def create_views(bind: Engine) -> None:
    """(Re)create the reporting views. Tables must already exist."""
    with bind.begin() as conn:
        for name, ddl in VIEWS.items():
            conn.execute(text(f"DROP VIEW IF EXISTS {name}"))
            conn.execute(text(ddl))
            logger.info(f"Created view {name}")


def drop_views(bind: Engine) -> None:
    with bind.begin() as conn:
        for name in reversed(list(VIEWS)):
            conn.execute(text(f"DROP VIEW IF EXISTS {name}"))
