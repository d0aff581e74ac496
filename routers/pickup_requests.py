# routers/pickup_requests.py
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from sqlalchemy.orm import Session

from core.errors import RequestNotFoundError
from models.pickup_requests import (
    CreatedId, PickupRequestCreate, PickupRequestOut, RequestStatus,
    RequestUpdateCreate, TimelineEntry, TimelineOut,
)
from routers.deps import get_db
from services.requests_service import RequestService

router = APIRouter(prefix="/api/pickup-requests", tags=["pickup-requests"])


def get_request_service(db: Session = Depends(get_db)) -> RequestService:
    return RequestService(db)


def _not_found(e: RequestNotFoundError) -> HTTPException:
    return HTTPException(status_code=404, detail=str(e))


@router.post("", response_model=CreatedId, status_code=status.HTTP_201_CREATED)
def create_request(body: PickupRequestCreate, request: Request, response: Response,
                   service: RequestService = Depends(get_request_service)):
    req = service.create(body)
    response.headers["Location"] = f"{request.url.path.rstrip('/')}/{req.id}/timeline"
    return CreatedId(id=req.id)


@router.get("", response_model=List[PickupRequestOut])
def list_requests(
    status_filter: Optional[RequestStatus] = Query(None, alias="status"),
    zone_id: Optional[int] = Query(None, alias="zoneId"),
    service: RequestService = Depends(get_request_service),
):
    return [PickupRequestOut.model_validate(r) for r in service.list(status_filter, zone_id)]


@router.get("/{request_id}/timeline", response_model=TimelineOut)
def request_timeline(request_id: int, service: RequestService = Depends(get_request_service)):
    try:
        return service.timeline(request_id)
    except RequestNotFoundError as e:
        raise _not_found(e)


@router.post("/{request_id}/updates", response_model=TimelineEntry,
             status_code=status.HTTP_201_CREATED)
def add_request_update(request_id: int, body: RequestUpdateCreate,
                       service: RequestService = Depends(get_request_service)):
    try:
        return TimelineEntry.model_validate(service.add_update(request_id, body))
    except RequestNotFoundError as e:
        raise _not_found(e)


@router.delete("/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_request(request_id: int, service: RequestService = Depends(get_request_service)):
    try:
        service.delete(request_id)
    except RequestNotFoundError as e:
        raise _not_found(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Same endpoints under the route older map clients post debris requests to.
debris_router = APIRouter(prefix="/api/debris-requests", tags=["pickup-requests"],
                          include_in_schema=False)
for _route in router.routes:
    debris_router.add_api_route(
        _route.path[len(router.prefix):],
        _route.endpoint,
        methods=list(_route.methods),
        response_model=_route.response_model,
        status_code=_route.status_code,
    )
