from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from biblestudy.config import settings


class GroupGenerateRequest(BaseModel):
    group_size: int = Field(
        default_factory=lambda: settings.default_group_size,
        ge=1,
        le=settings.max_group_size,
    )
    seed: Optional[int] = Field(default=None, ge=0)
    regenerate: bool = False


class GroupReshuffleRequest(BaseModel):
    group_size: Optional[int] = Field(default=None, ge=1, le=settings.max_group_size)
    seed: Optional[int] = Field(default=None, ge=0)


class GroupMember(BaseModel):
    name: str
    phone: str
    residence: str
    year_of_study: str
    gender: str
    is_pastor: bool = False


class GroupResponse(BaseModel):
    id: str
    group_set_id: str
    index: int
    name: str
    members: list[GroupMember] = Field(default_factory=list)
    member_count: int = 0
    pastor_count: int = 0
    gender_counts: dict[str, int] = Field(default_factory=dict)
    year_counts: dict[str, int] = Field(default_factory=dict)
    residences: list[str] = Field(default_factory=list)


class GroupSetResponse(BaseModel):
    group_set_id: Optional[str] = None
    group_size: Optional[int] = None
    seed: Optional[int] = None
    roster_size: int = 0
    group_count: int = 0
    pastorless_group_count: int = 0
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    groups: list[GroupResponse] = Field(default_factory=list)
