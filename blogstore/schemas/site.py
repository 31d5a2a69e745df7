from pydantic import BaseModel, Field, model_validator
from typing import Any, Optional, List

from blogstore.models.site import SettingType


class SettingRead(BaseModel):
    key: str
    value: Any = None
    type: SettingType
    is_autoload: bool = False
    description: Optional[str] = None


class MenuCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    location: str = Field(..., min_length=1, max_length=50)


class MenuItemCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    url: Optional[str] = Field(None, max_length=500)
    parent_id: Optional[int] = None
    post_id: Optional[int] = None
    category_id: Optional[int] = None
    sort_order: int = 0
    target: str = Field("_self", max_length=20)
    css_class: Optional[str] = Field(None, max_length=100)
    is_active: bool = True

    @model_validator(mode='after')
    def single_link_target(self):
        if self.post_id is not None and self.category_id is not None:
            raise ValueError('A menu item links to a post or a category, not both')
        return self


class MenuItemNode(BaseModel):
    id: int
    title: str
    url: Optional[str] = None
    post_id: Optional[int] = None
    category_id: Optional[int] = None
    sort_order: int = 0
    target: str = "_self"
    css_class: Optional[str] = None
    children: List["MenuItemNode"] = []


class MenuTree(BaseModel):
    id: int
    name: str
    location: str
    items: List[MenuItemNode] = []
