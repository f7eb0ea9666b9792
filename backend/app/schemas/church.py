# app/schemas/church.py
from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Role = Literal["admin", "volunteer", "data_viewer"]


class ChurchCreate(BaseModel):
    """Bootstrap a tenant together with its first admin."""
    name: str = Field(..., min_length=1, max_length=200)
    subdomain: Optional[str] = Field(None, max_length=63, pattern=r"^[a-z0-9](?:[a-z0-9-]*[a-z0-9])?$")
    brand_color: Optional[str] = Field(None, max_length=20)
    admin_email: str = Field(..., max_length=255)  # allow dev/test domains like .local
    admin_display_name: Optional[str] = Field(None, max_length=100)


class ChurchRead(BaseModel):
    id: int
    name: str
    subdomain: Optional[str] = None
    brand_color: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserCreate(BaseModel):
    email: str = Field(..., max_length=255)
    display_name: Optional[str] = Field(None, max_length=100)
    role: Role = "volunteer"
    api_key_plain: Optional[str] = Field(default=None, min_length=16)  # returned once


class UserPatch(BaseModel):
    display_name: Optional[str] = None
    role: Optional[Role] = None
    is_active: Optional[bool] = None
    rotate_key: bool = False


class UserOut(BaseModel):
    id: int
    church_id: int
    email: str
    display_name: Optional[str] = None
    role: str
    is_active: bool
    api_key: Optional[str] = None  # only on creation / rotation

    model_config = ConfigDict(from_attributes=True)


class ChurchBootstrapOut(BaseModel):
    church: ChurchRead
    admin: UserOut


class WhoAmI(BaseModel):
    user_id: int
    email: str
    display_name: Optional[str] = None
    role: str
    church_id: int
    church_name: str
    permissions: list[str]
