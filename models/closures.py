# models/closures.py
from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ClosureStatus(str, Enum):
    OPEN = "OPEN"
    PARTIAL = "PARTIAL"
    CLOSED = "CLOSED"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["ClosureStatus"]:
        """Lenient lookup for query strings; anything unknown is None."""
        v = (value or "").strip().upper()
        return cls.__members__.get(v)


class RoadClosure(BaseModel):
    """Canonical closure served to the map/list UI (JSON keys are camelCase)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True,
                              from_attributes=True)

    id: int
    road_name: str
    status: ClosureStatus = ClosureStatus.OPEN
    note: Optional[str] = None
    updated_at: datetime
    lat: Optional[float] = None
    lng: Optional[float] = None


class Region(BaseModel):
    id: int
    name: str
