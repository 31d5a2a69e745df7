# blogstore/crud/site.py
"""Site configuration: typed key/value settings and navigation menus."""
import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlmodel import Session, select

from blogstore.core.exceptions import ConstraintViolation, InvalidState, NotFound
from blogstore.crud.integrity import commit_or_raise, ensure_no_cycle, ensure_reference, get_or_raise
from blogstore.models.blog import Category, Post
from blogstore.models.site import Menu, MenuItem, Setting, SettingType
from blogstore.schemas.site import MenuCreate, MenuItemCreate, MenuItemNode, MenuTree

logger = logging.getLogger(__name__)

_MISSING = object()


def encode_setting(value: Any, setting_type: SettingType) -> Optional[str]:
    """Serialize a Python value into the text column for the given type."""
    if value is None:
        return None

    if setting_type == SettingType.boolean:
        if isinstance(value, str):
            value = decode_setting(value, SettingType.boolean)
        if not isinstance(value, bool):
            raise InvalidState(f"Expected a boolean setting value, got {value!r}")
        return "true" if value else "false"

    if setting_type == SettingType.number:
        if isinstance(value, bool):
            raise InvalidState(f"Expected a numeric setting value, got {value!r}")
        if isinstance(value, str):
            value = decode_setting(value, SettingType.number)
        if not isinstance(value, (int, float)):
            raise InvalidState(f"Expected a numeric setting value, got {value!r}")
        return str(value)

    if setting_type == SettingType.json:
        return json.dumps(value)

    return str(value)


def decode_setting(raw: Optional[str], setting_type: SettingType) -> Any:
    """Turn the stored text back into a value of the setting's type."""
    if raw is None:
        return None

    if setting_type == SettingType.boolean:
        lowered = raw.strip().lower()
        if lowered in ("true", "1", "yes", "on"):
            return True
        if lowered in ("false", "0", "no", "off", ""):
            return False
        raise InvalidState(f"Stored value {raw!r} is not a boolean")

    if setting_type == SettingType.number:
        try:
            return int(raw)
        except ValueError:
            try:
                return float(raw)
            except ValueError:
                raise InvalidState(f"Stored value {raw!r} is not a number")

    if setting_type == SettingType.json:
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise InvalidState(f"Stored value is not valid JSON: {e}")

    return raw


def infer_setting_type(value: Any) -> SettingType:
    if isinstance(value, bool):
        return SettingType.boolean
    if isinstance(value, (int, float)):
        return SettingType.number
    if isinstance(value, (dict, list)):
        return SettingType.json
    return SettingType.string


class SiteCRUD:
    # ============ Settings ============

    def get_setting_row(self, db: Session, key: str) -> Optional[Setting]:
        return db.exec(select(Setting).where(Setting.setting_key == key)).first()

    def get_setting(self, db: Session, key: str, default: Any = _MISSING) -> Any:
        """Get the typed value of a setting; NotFound unless a default is given."""
        setting = self.get_setting_row(db, key)
        if setting is None:
            if default is _MISSING:
                raise NotFound("Setting", key)
            return default
        return decode_setting(setting.setting_value, setting.setting_type)

    def set_setting(
        self,
        db: Session,
        key: str,
        value: Any,
        setting_type: Optional[SettingType] = None,
        is_autoload: Optional[bool] = None,
        description: Optional[str] = None
    ) -> Setting:
        """Insert or update a setting keyed by its unique setting_key."""
        setting = self.get_setting_row(db, key)
        if setting_type is None:
            setting_type = setting.setting_type if setting else infer_setting_type(value)

        encoded = encode_setting(value, setting_type)

        if setting is None:
            setting = Setting(
                setting_key=key,
                setting_value=encoded,
                setting_type=setting_type,
                is_autoload=bool(is_autoload),
                description=description
            )
            db.add(setting)
        else:
            setting.setting_value = encoded
            setting.setting_type = setting_type
            if is_autoload is not None:
                setting.is_autoload = is_autoload
            if description is not None:
                setting.description = description
            setting.updated_at = datetime.utcnow()

        commit_or_raise(db, f"setting {key!r}")
        db.refresh(setting)
        logger.info(f"Setting {key!r} saved")
        return setting

    def get_autoload_settings(self, db: Session) -> Dict[str, Any]:
        """All settings flagged for eager loading at process start."""
        rows = db.exec(
            select(Setting).where(Setting.is_autoload == True).order_by(Setting.setting_key)  # noqa: E712
        ).all()
        return {row.setting_key: decode_setting(row.setting_value, row.setting_type) for row in rows}

    def list_settings(self, db: Session) -> List[Setting]:
        return db.exec(select(Setting).order_by(Setting.setting_key)).all()

    def delete_setting(self, db: Session, key: str) -> None:
        setting = self.get_setting_row(db, key)
        if setting is None:
            raise NotFound("Setting", key)
        db.delete(setting)
        commit_or_raise(db, f"setting {key!r}")

    # ============ Menus ============

    def create_menu(self, db: Session, menu_data: MenuCreate) -> Menu:
        menu = Menu(**menu_data.model_dump())
        db.add(menu)
        commit_or_raise(db, f"menu {menu_data.name!r}")
        db.refresh(menu)
        return menu

    def get_menu(self, db: Session, menu_id: int) -> Menu:
        return get_or_raise(db, Menu, menu_id)

    def get_menu_by_location(self, db: Session, location: str) -> Menu:
        menu = db.exec(select(Menu).where(Menu.location == location).order_by(Menu.id)).first()
        if menu is None:
            raise NotFound("Menu", location)
        return menu

    def delete_menu(self, db: Session, menu_id: int) -> None:
        """Delete a menu; its items go with it."""
        menu = get_or_raise(db, Menu, menu_id)
        db.delete(menu)
        commit_or_raise(db, f"menu #{menu_id}")

    def _check_item_links(self, db: Session, menu_id: int, item_id: Optional[int], data) -> None:
        if data.parent_id is not None:
            parent = ensure_reference(db, MenuItem, data.parent_id, "parent_id")
            if parent.menu_id != menu_id:
                raise ConstraintViolation(
                    f"Menu item #{data.parent_id} belongs to another menu",
                    constraint="menu_item_parent",
                )
            ensure_no_cycle(db, MenuItem, item_id, data.parent_id)
        if data.post_id is not None:
            ensure_reference(db, Post, data.post_id, "post_id")
        if data.category_id is not None:
            ensure_reference(db, Category, data.category_id, "category_id")

    def add_menu_item(self, db: Session, menu_id: int, item_data: MenuItemCreate) -> MenuItem:
        get_or_raise(db, Menu, menu_id)
        self._check_item_links(db, menu_id, None, item_data)

        item = MenuItem(menu_id=menu_id, **item_data.model_dump())
        db.add(item)
        commit_or_raise(db, f"menu item {item_data.title!r}")
        db.refresh(item)
        return item

    def update_menu_item(self, db: Session, item_id: int, item_data: MenuItemCreate) -> MenuItem:
        item = get_or_raise(db, MenuItem, item_id)
        self._check_item_links(db, item.menu_id, item.id, item_data)

        for field, value in item_data.model_dump().items():
            setattr(item, field, value)
        item.updated_at = datetime.utcnow()

        commit_or_raise(db, f"menu item #{item_id}")
        db.refresh(item)
        return item

    def delete_menu_item(self, db: Session, item_id: int) -> None:
        """Delete a menu item; nested items go with it."""
        item = get_or_raise(db, MenuItem, item_id)
        db.delete(item)
        commit_or_raise(db, f"menu item #{item_id}")

    def menu_tree(self, db: Session, menu_id: int, active_only: bool = True) -> MenuTree:
        """Build the nested item tree of a menu, siblings ordered by sort_order then id."""
        menu = get_or_raise(db, Menu, menu_id)

        query = select(MenuItem).where(MenuItem.menu_id == menu_id)
        if active_only:
            query = query.where(MenuItem.is_active == True)  # noqa: E712
        items = db.exec(query.order_by(MenuItem.sort_order, MenuItem.id)).all()

        nodes = {item.id: MenuItemNode(**item.model_dump()) for item in items}
        roots = []
        for item in items:
            node = nodes[item.id]
            if item.parent_id is not None and item.parent_id in nodes:
                nodes[item.parent_id].children.append(node)
            elif item.parent_id is None:
                roots.append(node)
            # Children of inactive parents are hidden together with them

        return MenuTree(id=menu.id, name=menu.name, location=menu.location, items=roots)


# Create singleton instance
site_crud = SiteCRUD()
