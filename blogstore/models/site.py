from sqlmodel import SQLModel, Field, Column, Text
from typing import Optional
from datetime import datetime
from enum import Enum


class SettingType(str, Enum):
    string = "string"
    number = "number"
    boolean = "boolean"
    json = "json"
    text = "text"


class Setting(SQLModel, table=True):
    __tablename__ = "settings"

    id: Optional[int] = Field(default=None, primary_key=True)
    setting_key: str = Field(max_length=100, unique=True, index=True)
    setting_value: Optional[str] = Field(default=None, sa_column=Column(Text))
    setting_type: SettingType = Field(default=SettingType.string)
    is_autoload: bool = Field(default=False, index=True)  # Preloaded at boot
    description: Optional[str] = Field(default=None, sa_column=Column(Text))
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class Menu(SQLModel, table=True):
    __tablename__ = "menus"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=100)
    location: str = Field(max_length=50, index=True)  # 'primary', 'footer', 'sidebar', ...
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class MenuItem(SQLModel, table=True):
    __tablename__ = "menu_items"

    id: Optional[int] = Field(default=None, primary_key=True)
    menu_id: int = Field(foreign_key="menus.id", ondelete="CASCADE", index=True)
    parent_id: Optional[int] = Field(
        default=None, foreign_key="menu_items.id", ondelete="CASCADE", index=True
    )
    title: str = Field(max_length=255)
    url: Optional[str] = Field(default=None, max_length=500)
    # Optional links; deleting the target removes the item
    post_id: Optional[int] = Field(default=None, foreign_key="posts.id", ondelete="CASCADE")
    category_id: Optional[int] = Field(
        default=None, foreign_key="categories.id", ondelete="CASCADE"
    )
    sort_order: int = Field(default=0, index=True)
    target: str = Field(default="_self", max_length=20)
    css_class: Optional[str] = Field(default=None, max_length=100)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
