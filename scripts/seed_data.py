#!/usr/bin/env python3
"""
Seed the blog database.

Always inserts the default settings, categories and menus that are missing.
With --demo it also creates authors, tags, posts, comments and engagement
generated with Faker.

Usage:
    python scripts/seed_data.py                # defaults only
    python scripts/seed_data.py --demo         # defaults plus demo content
    python scripts/seed_data.py --demo --posts 50 --seed 42
"""

import argparse
import logging
import random
import sys
from collections import defaultdict
from pathlib import Path

from faker import Faker
from sqlmodel import Session

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from blogstore.core.exceptions import BlogStoreError  # noqa: E402
from blogstore.crud.blog import blog_crud  # noqa: E402
from blogstore.crud.engagement import engagement_crud  # noqa: E402
from blogstore.crud.user import user_crud  # noqa: E402
from blogstore.database.engine import create_db_and_tables, engine  # noqa: E402
from blogstore.database.seed import seed_defaults  # noqa: E402
from blogstore.models.blog import CommentStatus, PostStatus  # noqa: E402
from blogstore.models.user import UserRole  # noqa: E402
from blogstore.schemas.blog import CommentCreate, PostCreate, TagCreate  # noqa: E402
from blogstore.schemas.identity import GuestIdentity, RegisteredIdentity  # noqa: E402
from blogstore.schemas.user import UserCreate  # noqa: E402

logger = logging.getLogger("seed_data")

fake = Faker()

TAG_NAMES = [
    "Python", "Databases", "Travel Tips", "Productivity", "Photography",
    "Cooking", "Open Source", "Hiking", "Design", "Books",
]


# ANSI color codes for terminal output
class Colors:
    GREEN = '\033[92m'
    RED = '\033[91m'
    CYAN = '\033[96m'
    RESET = '\033[0m'
    BOLD = '\033[1m'


class SeedingStats:
    """Track statistics during the seeding process."""

    def __init__(self):
        self.created = defaultdict(int)
        self.failed = defaultdict(int)
        self.errors = []

    def record_created(self, entity_type: str, count: int = 1):
        self.created[entity_type] += count

    def record_failed(self, entity_type: str, error: str):
        self.failed[entity_type] += 1
        self.errors.append(f"[{entity_type}] {error}")

    def print_summary(self, verbose: bool = False):
        print(f"\n{Colors.BOLD}{Colors.CYAN}{'='*60}{Colors.RESET}")
        print(f"{Colors.BOLD}{Colors.CYAN}SEEDING SUMMARY{Colors.RESET}")
        print(f"{Colors.BOLD}{Colors.CYAN}{'='*60}{Colors.RESET}")
        for entity_type, count in sorted(self.created.items()):
            print(f"{Colors.GREEN}✓ {entity_type}: {count}{Colors.RESET}")
        for entity_type, count in sorted(self.failed.items()):
            print(f"{Colors.RED}✗ {entity_type}: {count} failed{Colors.RESET}")
        for error in self.errors if verbose else self.errors[:5]:
            print(f"  {error}")


def seed_demo(db: Session, stats: SeedingStats, posts: int, authors: int) -> None:
    """Create demo users, tags, posts, comments, likes and views."""
    author_ids = []
    for _ in range(authors):
        profile = fake.simple_profile()
        try:
            user = user_crud.create_user(db, UserCreate(
                username=profile["username"].replace(".", "_")[:50],
                email=profile["mail"],
                password=fake.password(length=12),
                first_name=fake.first_name(),
                last_name=fake.last_name(),
                bio=fake.paragraph(),
                role=random.choice([UserRole.author, UserRole.editor])
            ))
            author_ids.append(user.id)
            stats.record_created("users")
        except BlogStoreError as e:
            stats.record_failed("users", str(e))

    tag_ids = []
    for name in TAG_NAMES:
        try:
            tag_ids.append(blog_crud.create_tag(db, TagCreate(name=name, color=fake.hex_color())).id)
            stats.record_created("tags")
        except BlogStoreError as e:
            stats.record_failed("tags", str(e))

    categories, _ = blog_crud.get_categories(db)
    if not author_ids:
        return

    for _ in range(posts):
        try:
            post = blog_crud.create_post(db, PostCreate(
                title=fake.sentence(nb_words=6).rstrip("."),
                content="\n\n".join(fake.paragraphs(nb=random.randint(3, 8))),
                excerpt=fake.paragraph(),
                category_id=random.choice(categories).id if categories else None,
                status=random.choices(
                    [PostStatus.published, PostStatus.draft], weights=[4, 1]
                )[0],
                tag_ids=random.sample(tag_ids, k=min(len(tag_ids), random.randint(0, 3)))
            ), author_id=random.choice(author_ids))
            stats.record_created("posts")
        except BlogStoreError as e:
            stats.record_failed("posts", str(e))
            continue

        if post.status != PostStatus.published:
            continue

        for _ in range(random.randint(0, 5)):
            if random.random() < 0.5:
                identity = RegisteredIdentity(user_id=random.choice(author_ids))
            else:
                identity = GuestIdentity(name=fake.name(), email=fake.email(), ip_address=fake.ipv4())
            try:
                comment = engagement_crud.create_comment(
                    db, post.id, CommentCreate(content=fake.paragraph(), identity=identity)
                )
                engagement_crud.set_comment_status(db, comment.id, CommentStatus.approved)
                stats.record_created("comments")
            except BlogStoreError as e:
                stats.record_failed("comments", str(e))

        for _ in range(random.randint(0, 10)):
            try:
                engagement_crud.like_post(db, post.id, GuestIdentity(ip_address=fake.ipv4()))
                stats.record_created("likes")
            except BlogStoreError as e:
                stats.record_failed("likes", str(e))

        for _ in range(random.randint(0, 20)):
            engagement_crud.record_view(
                db, post.id, GuestIdentity(ip_address=fake.ipv4()), user_agent=fake.user_agent()
            )
            stats.record_created("views")


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Seed the blog database")
    parser.add_argument(
        "--demo",
        action="store_true",
        help="Also create demo authors, posts, comments and engagement"
    )
    parser.add_argument("--posts", type=int, default=20, help="Number of demo posts (default: 20)")
    parser.add_argument("--authors", type=int, default=3, help="Number of demo authors (default: 3)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducible data")
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create tables and views first (development databases without Alembic)"
    )
    parser.add_argument("--verbose", action="store_true", help="Show all error messages")

    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)

    if args.seed is not None:
        random.seed(args.seed)
        Faker.seed(args.seed)

    if args.create_tables:
        create_db_and_tables(engine)

    stats = SeedingStats()
    with Session(engine) as db:
        for entity_type, count in seed_defaults(db).items():
            stats.record_created(entity_type, count)
        if args.demo:
            seed_demo(db, stats, posts=args.posts, authors=args.authors)

    stats.print_summary(verbose=args.verbose)
    sys.exit(1 if stats.failed else 0)


if __name__ == "__main__":
    main()
