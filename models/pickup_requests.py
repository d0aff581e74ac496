# models/pickup_requests.py
from datetime import datetime
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class RequestStatus(str, Enum):
    NEW = "NEW"
    SCHEDULED = "SCHEDULED"
    COMPLETE = "COMPLETE"


# local@domain.tld, no whitespace
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True,
                              from_attributes=True)


def _strip_or_none(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip()
    return v or None


class PickupRequestCreate(_CamelModel):
    full_name: str = Field(max_length=80)
    address: str = Field(max_length=160)
    email: Optional[str] = Field(default=None, max_length=254, pattern=EMAIL_PATTERN)
    phone: Optional[str] = Field(default=None, max_length=20)
    zone_id: Optional[int] = None
    notes: Optional[str] = Field(default=None, max_length=500)
    lat: Optional[float] = Field(default=None, ge=-90, le=90)
    lng: Optional[float] = Field(default=None, ge=-180, le=180)

    @field_validator("full_name", "address")
    @classmethod
    def _required_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("email", "phone", "notes", mode="before")
    @classmethod
    def _optional_text(cls, v):
        return _strip_or_none(v) if isinstance(v, str) else v


class RequestUpdateCreate(_CamelModel):
    note: str = Field(max_length=300)
    created_by: str = Field(default="system", max_length=80)
    status: Optional[RequestStatus] = None
    priority: Optional[int] = Field(default=None, ge=0)

    @field_validator("note")
    @classmethod
    def _note_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class PickupRequestOut(_CamelModel):
    id: int
    full_name: str
    address: str
    email: Optional[str] = None
    phone: Optional[str] = None
    zone_id: Optional[int] = None
    status: RequestStatus
    priority: int
    notes: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    created_at: datetime
    updated_at: datetime


class TimelineEntry(_CamelModel):
    note: str
    created_by: str
    created_at: datetime


class TimelineRequest(_CamelModel):
    id: int
    full_name: str
    address: str
    status: RequestStatus
    priority: int
    zone: Optional[str] = None


class TimelineOut(_CamelModel):
    request: TimelineRequest
    updates: List[TimelineEntry]


class CreatedId(BaseModel):
    id: int
