# blogstore/routers/site.py
from fastapi import APIRouter, Depends
from sqlmodel import Session
from typing import Any, Dict, List

from blogstore.crud.blog import blog_crud
from blogstore.crud.site import decode_setting, site_crud
from blogstore.core.exceptions import NotFound
from blogstore.database.engine import get_db
from blogstore.schemas.blog import CategoryNode
from blogstore.schemas.site import MenuTree, SettingRead

router = APIRouter(
    tags=["site"],
    responses={404: {"description": "Not found"}},
)


@router.get("/settings", response_model=Dict[str, Any])
def get_autoload_settings(db: Session = Depends(get_db)):
    """Settings flagged for autoload, as typed values keyed by setting_key."""
    return site_crud.get_autoload_settings(db)


@router.get("/settings/{key}", response_model=SettingRead)
def get_setting(key: str, db: Session = Depends(get_db)):
    setting = site_crud.get_setting_row(db, key)
    if setting is None:
        raise NotFound("Setting", key)
    return SettingRead(
        key=setting.setting_key,
        value=decode_setting(setting.setting_value, setting.setting_type),
        type=setting.setting_type,
        is_autoload=setting.is_autoload,
        description=setting.description
    )


@router.get("/menus/{location}", response_model=MenuTree)
def get_menu(location: str, db: Session = Depends(get_db)):
    """Active items of the menu placed at a theme location, nested."""
    menu = site_crud.get_menu_by_location(db, location)
    return site_crud.menu_tree(db, menu.id)


@router.get("/categories", response_model=List[CategoryNode])
def get_categories(db: Session = Depends(get_db)):
    return blog_crud.category_tree(db, active_only=True)
