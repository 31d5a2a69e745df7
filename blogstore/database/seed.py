"""
Bootstrap rows every installation starts with: default settings, categories
and menus.

seed_defaults only inserts what is missing, so it is safe to run on every
start and never overwrites values an administrator has changed.
"""
import logging
from typing import Dict

from sqlmodel import Session, select

from blogstore.crud.integrity import commit_or_raise
from blogstore.crud.site import encode_setting
from blogstore.models.blog import Category
from blogstore.models.site import Menu, Setting, SettingType

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS = [
    # (key, value, type, description)
    ("site_title", "My Blog", SettingType.string, "Site title"),
    ("site_tagline", "Just another blog", SettingType.string, "Site tagline"),
    ("site_url", "https://myblog.com", SettingType.string, "Site URL"),
    ("posts_per_page", 10, SettingType.number, "Number of posts per page"),
    ("comments_enabled", True, SettingType.boolean, "Enable comments globally"),
    ("comment_moderation", True, SettingType.boolean, "Moderate comments before publishing"),
    ("registration_enabled", True, SettingType.boolean, "Allow user registration"),
    ("default_user_role", "subscriber", SettingType.string, "Default role for new users"),
]

DEFAULT_CATEGORIES = [
    ("Uncategorized", "uncategorized", "Default category for posts"),
    ("Technology", "technology", "Posts about technology and innovation"),
    ("Lifestyle", "lifestyle", "Posts about lifestyle and personal experiences"),
    ("Travel", "travel", "Posts about travel and adventures"),
]

DEFAULT_MENUS = [
    ("Primary Menu", "primary"),
    ("Footer Menu", "footer"),
]


def seed_defaults(db: Session) -> Dict[str, int]:
    """Insert the default rows that are missing. Returns counts of created rows."""
    created = {"settings": 0, "categories": 0, "menus": 0}

    existing_keys = set(db.exec(select(Setting.setting_key)).all())
    for key, value, setting_type, description in DEFAULT_SETTINGS:
        if key in existing_keys:
            continue
        db.add(Setting(
            setting_key=key,
            setting_value=encode_setting(value, setting_type),
            setting_type=setting_type,
            is_autoload=True,
            description=description
        ))
        created["settings"] += 1

    existing_slugs = set(db.exec(select(Category.slug)).all())
    existing_names = set(db.exec(select(Category.name)).all())
    for name, slug, description in DEFAULT_CATEGORIES:
        if slug in existing_slugs or name in existing_names:
            continue
        db.add(Category(name=name, slug=slug, description=description))
        created["categories"] += 1

    existing_menus = {(name, location) for name, location in db.exec(select(Menu.name, Menu.location)).all()}
    for name, location in DEFAULT_MENUS:
        if (name, location) in existing_menus:
            continue
        db.add(Menu(name=name, location=location))
        created["menus"] += 1

    commit_or_raise(db, "default site data")
    logger.info(
        f"Seeded {created['settings']} settings, {created['categories']} categories "
        f"and {created['menus']} menus"
    )
    return created
