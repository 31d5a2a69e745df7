"""seed_default_site_data

Revision ID: 001
Revises: 000
Create Date: 2026-10-19 10:05:00.000000

Seeds the rows every installation starts with:
- eight autoload settings (site title, comments, registration, ...)
- the Uncategorized, Technology, Lifestyle and Travel categories
- the primary and footer menus
"""
from datetime import datetime
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from blogstore.crud.site import encode_setting
from blogstore.database.seed import DEFAULT_CATEGORIES, DEFAULT_MENUS, DEFAULT_SETTINGS


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, Sequence[str], None] = '000'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Insert default settings, categories and menus."""
    now = datetime.utcnow()

    settings_table = sa.table(
        'settings',
        sa.column('setting_key', sa.String),
        sa.column('setting_value', sa.Text),
        sa.column('setting_type', sa.String),
        sa.column('is_autoload', sa.Boolean),
        sa.column('description', sa.Text),
        sa.column('created_at', sa.DateTime),
        sa.column('updated_at', sa.DateTime),
    )
    op.bulk_insert(settings_table, [
        {
            'setting_key': key,
            'setting_value': encode_setting(value, setting_type),
            'setting_type': setting_type.value,
            'is_autoload': True,
            'description': description,
            'created_at': now,
            'updated_at': now,
        }
        for key, value, setting_type, description in DEFAULT_SETTINGS
    ])

    categories_table = sa.table(
        'categories',
        sa.column('name', sa.String),
        sa.column('slug', sa.String),
        sa.column('description', sa.Text),
        sa.column('is_active', sa.Boolean),
        sa.column('sort_order', sa.Integer),
        sa.column('created_at', sa.DateTime),
        sa.column('updated_at', sa.DateTime),
    )
    op.bulk_insert(categories_table, [
        {
            'name': name,
            'slug': slug,
            'description': description,
            'is_active': True,
            'sort_order': 0,
            'created_at': now,
            'updated_at': now,
        }
        for name, slug, description in DEFAULT_CATEGORIES
    ])

    menus_table = sa.table(
        'menus',
        sa.column('name', sa.String),
        sa.column('location', sa.String),
        sa.column('created_at', sa.DateTime),
        sa.column('updated_at', sa.DateTime),
    )
    op.bulk_insert(menus_table, [
        {'name': name, 'location': location, 'created_at': now, 'updated_at': now}
        for name, location in DEFAULT_MENUS
    ])


def downgrade() -> None:
    """Remove the default rows."""
    keys = ", ".join(f"'{key}'" for key, _, _, _ in DEFAULT_SETTINGS)
    slugs = ", ".join(f"'{slug}'" for _, slug, _ in DEFAULT_CATEGORIES)
    locations = ", ".join(f"'{location}'" for _, location in DEFAULT_MENUS)

    op.execute(f"DELETE FROM settings WHERE setting_key IN ({keys})")
    op.execute(f"DELETE FROM categories WHERE slug IN ({slugs})")
    op.execute(f"DELETE FROM menus WHERE location IN ({locations})")
