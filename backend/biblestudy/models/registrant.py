from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class RegistrantBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    phone: str = Field(..., min_length=7, max_length=20, pattern=r"^\+?[0-9]+$")
    residence: str = Field(..., min_length=1, max_length=100)
    year_of_study: str = Field(..., min_length=1, max_length=10)
    gender: str = Field(..., pattern="^(M|F)$")

    @field_validator("name", "residence", "year_of_study", mode="before")
    @classmethod
    def _strip(cls, value):
        if isinstance(value, int) and not isinstance(value, bool):
            value = str(value)
        return value.strip() if isinstance(value, str) else value


class RegistrantCreateRequest(RegistrantBase):
    """Self-registration; the pastor flag is set by an admin afterwards."""


class RegistrantUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    residence: Optional[str] = Field(None, min_length=1, max_length=100)
    year_of_study: Optional[str] = Field(None, min_length=1, max_length=10)
    gender: Optional[str] = Field(None, pattern="^(M|F)$")
    is_pastor: Optional[bool] = None


class RegistrantResponse(RegistrantBase):
    is_pastor: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class RegistrantListResponse(BaseModel):
    registrants: list[RegistrantResponse] = Field(default_factory=list)
    total: int = 0
