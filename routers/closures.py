# routers/closures.py
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from core.errors import FeedUnavailableError
from models.closures import RoadClosure
from routers.deps import get_db
from services.closure_store import ClosureStore
from services.closures_service import get_closures

router = APIRouter(tags=["closures"])

@router.get("/closures", response_model=List[RoadClosure])
@router.get("/api/closures", response_model=List[RoadClosure], include_in_schema=False)
@router.get("/api/roadclosures", response_model=List[RoadClosure], include_in_schema=False)
def list_closures(
    status: Optional[str] = Query(None, description="OPEN | PARTIAL | CLOSED; other values are ignored"),
    region: Optional[str] = Query(None, description="County name, e.g. Wake"),
    county: Optional[str] = Query(None, description="Alias of region"),
    region_id: Optional[int] = Query(None, alias="regionId"),
    county_id: Optional[int] = Query(None, alias="countyId"),
):
    rid = region_id if region_id is not None else county_id
    try:
        return get_closures(region or county, status, region_id=rid)
    except FeedUnavailableError as e:
        raise HTTPException(status_code=502, detail=f"Traffic feed unavailable: {e.message}")

@router.get("/api/closures/stored", response_model=List[RoadClosure])
def list_stored_closures(
    status: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    return ClosureStore(db).list(status)
