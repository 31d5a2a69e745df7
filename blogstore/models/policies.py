# blogstore/models/policies.py
"""
Referential actions for every foreign key in the schema.

The table below is the contract; the ``ondelete=`` arguments on the model
fields implement it, and ``check_metadata`` compares the two.
"""
from enum import Enum
from typing import Dict, List, Tuple

from sqlalchemy import MetaData


class OnDelete(str, Enum):
    cascade = "CASCADE"
    set_null = "SET NULL"
    restrict = "RESTRICT"


DELETE_POLICIES: Dict[Tuple[str, str], OnDelete] = {
    ("categories", "parent_id"): OnDelete.set_null,
    ("posts", "author_id"): OnDelete.cascade,
    ("posts", "category_id"): OnDelete.set_null,
    ("post_tags", "post_id"): OnDelete.cascade,
    ("post_tags", "tag_id"): OnDelete.cascade,
    ("comments", "post_id"): OnDelete.cascade,
    ("comments", "parent_id"): OnDelete.cascade,
    ("comments", "author_id"): OnDelete.set_null,
    ("media", "uploaded_by"): OnDelete.cascade,
    ("post_views", "post_id"): OnDelete.cascade,
    ("post_views", "user_id"): OnDelete.set_null,
    ("post_likes", "post_id"): OnDelete.cascade,
    ("post_likes", "user_id"): OnDelete.cascade,
    ("comment_likes", "comment_id"): OnDelete.cascade,
    ("comment_likes", "user_id"): OnDelete.cascade,
    ("user_sessions", "user_id"): OnDelete.cascade,
    ("related_posts", "post_id"): OnDelete.cascade,
    ("related_posts", "related_post_id"): OnDelete.cascade,
    ("menu_items", "menu_id"): OnDelete.cascade,
    ("menu_items", "parent_id"): OnDelete.cascade,
    ("menu_items", "post_id"): OnDelete.cascade,
    ("menu_items", "category_id"): OnDelete.cascade,
}


def declared_policies(metadata: MetaData) -> Dict[Tuple[str, str], OnDelete]:
    """Read the ON DELETE action of every single-column foreign key in metadata."""
    policies = {}
    for table in metadata.sorted_tables:
        for fk in table.foreign_keys:
            action = (fk.ondelete or "RESTRICT").upper()
            policies[(table.name, fk.parent.name)] = OnDelete(action)
    return policies


def check_metadata(metadata: MetaData) -> List[str]:
    """Return a description of every edge whose declared action differs from the contract."""
    declared = declared_policies(metadata)
    problems = []

    for edge, expected in DELETE_POLICIES.items():
        actual = declared.get(edge)
        if actual is None:
            problems.append(f"{edge[0]}.{edge[1]}: missing foreign key")
        elif actual != expected:
            problems.append(f"{edge[0]}.{edge[1]}: expected {expected.value}, found {actual.value}")

    for edge in declared:
        if edge not in DELETE_POLICIES:
            problems.append(f"{edge[0]}.{edge[1]}: no policy declared")

    return problems
