# blogstore/crud/integrity.py
"""Helpers shared by the CRUD modules for keeping writes consistent."""
import logging
import re
from typing import Optional, Type, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, SQLModel, select

from blogstore.core.exceptions import ConstraintViolation, NotFound

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=SQLModel)


def commit_or_raise(db: Session, what: str) -> None:
    """
    Commit the pending unit of work as one atomic write.

    On an integrity error the session is rolled back, so nothing of the
    attempted write survives, and a ConstraintViolation is raised instead.
    """
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Integrity error while writing {what}: {e.orig}")
        raise ConstraintViolation(f"Could not write {what}: {e.orig}") from e


def get_or_raise(db: Session, model: Type[ModelT], key) -> ModelT:
    obj = db.get(model, key)
    if obj is None:
        raise NotFound(model.__name__, key)
    return obj


def slugify(text: str) -> str:
    slug = text.lower().strip()
    slug = re.sub(r'[^\w\s-]', '', slug)  # Remove special characters
    slug = re.sub(r'[-\s]+', '-', slug)  # Replace spaces/multiple hyphens with single hyphen
    return slug.strip('-')


def explicit_slug(value: Optional[str]) -> Optional[str]:
    """Slugify a caller-supplied slug; None when nothing usable is left."""
    slug = slugify(value) if value else ""
    return slug or None


def generate_slug(text: str, db: Session, model_class, exclude_id: Optional[int] = None) -> str:
    """Generate a unique slug from text."""
    original_slug = slugify(text) or "item"
    slug = original_slug
    counter = 1
    while True:
        query = select(model_class).where(model_class.slug == slug)
        if exclude_id is not None:
            query = query.where(model_class.id != exclude_id)
        if not db.exec(query).first():
            break
        slug = f"{original_slug}-{counter}"
        counter += 1

    return slug


def ensure_no_cycle(
    db: Session,
    model: Type[ModelT],
    node_id: Optional[int],
    new_parent_id: Optional[int]
) -> None:
    """
    Walk up from new_parent_id and refuse the write if node_id is reached.

    Works for any model with ``id`` and ``parent_id`` columns. A node that does
    not exist yet (node_id is None) can never close a cycle.
    """
    if new_parent_id is None or node_id is None:
        return

    seen = set()
    current_id: Optional[int] = new_parent_id
    while current_id is not None:
        if current_id == node_id:
            raise ConstraintViolation(
                f"{model.__name__} #{node_id} cannot be its own ancestor",
                constraint="tree_cycle",
            )
        if current_id in seen:
            # Pre-existing loop above the new parent
            raise ConstraintViolation(
                f"{model.__name__} tree already contains a cycle at #{current_id}",
                constraint="tree_cycle",
            )
        seen.add(current_id)
        current_id = db.exec(select(model.parent_id).where(model.id == current_id)).first()


def ensure_reference(db: Session, model: Type[ModelT], key, field: str) -> ModelT:
    """A foreign key must point at an existing row, whatever the engine enforces."""
    obj = db.get(model, key)
    if obj is None:
        raise ConstraintViolation(
            f"{field} references missing {model.__name__} #{key}",
            constraint=f"fk_{field}",
        )
    return obj


def flush_or_raise(db: Session, what: str) -> None:
    """Like commit_or_raise, for writes that need generated ids before the commit."""
    try:
        db.flush()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Integrity error while writing {what}: {e.orig}")
        raise ConstraintViolation(f"Could not write {what}: {e.orig}") from e
