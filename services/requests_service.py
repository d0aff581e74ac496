# services/requests_service.py
import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from core.errors import RequestNotFoundError
from models.pickup_requests import (
    PickupRequestCreate, RequestStatus, RequestUpdateCreate,
    TimelineEntry, TimelineOut, TimelineRequest,
)
from storage.models import PickupRequest, RequestUpdate, utcnow

logger = logging.getLogger(__name__)

RECEIVED_NOTE = "Request received"


class RequestService:
    """CRUD for pickup requests and their status timeline."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, data: PickupRequestCreate) -> PickupRequest:
        req = PickupRequest(
            full_name=data.full_name,
            address=data.address,
            email=data.email,
            phone=data.phone,
            zone_id=data.zone_id,
            notes=data.notes,
            lat=data.lat,
            lng=data.lng,
            status=RequestStatus.NEW.value,
            priority=0,
        )
        req.updates.append(RequestUpdate(note=RECEIVED_NOTE, created_by="system"))
        self.db.add(req)
        self.db.commit()
        logger.info("pickup request %s created", req.id)
        return req

    def get(self, request_id: int) -> PickupRequest:
        req = self.db.get(PickupRequest, request_id)
        if req is None:
            raise RequestNotFoundError(request_id)
        return req

    def list(self, status: Optional[RequestStatus] = None,
             zone_id: Optional[int] = None) -> List[PickupRequest]:
        stmt = select(PickupRequest)
        if status is not None:
            stmt = stmt.where(PickupRequest.status == status.value)
        if zone_id is not None:
            stmt = stmt.where(PickupRequest.zone_id == zone_id)
        stmt = stmt.order_by(PickupRequest.created_at.desc(), PickupRequest.id.desc())
        return list(self.db.scalars(stmt))

    def timeline(self, request_id: int) -> TimelineOut:
        stmt = (
            select(PickupRequest)
            .options(selectinload(PickupRequest.updates), selectinload(PickupRequest.zone))
            .where(PickupRequest.id == request_id)
        )
        req = self.db.scalars(stmt).first()
        if req is None:
            raise RequestNotFoundError(request_id)
        updates = sorted(req.updates, key=lambda u: u.id, reverse=True)
        return TimelineOut(
            request=TimelineRequest(
                id=req.id,
                full_name=req.full_name,
                address=req.address,
                status=RequestStatus(req.status),
                priority=req.priority,
                zone=req.zone.name if req.zone else None,
            ),
            updates=[TimelineEntry.model_validate(u) for u in updates],
        )

    def add_update(self, request_id: int, data: RequestUpdateCreate) -> RequestUpdate:
        """Append a timeline note; optionally move status / priority with it."""
        req = self.get(request_id)
        if data.status is not None:
            req.status = data.status.value
        if data.priority is not None:
            req.priority = data.priority
        req.updated_at = utcnow()
        entry = RequestUpdate(note=data.note, created_by=data.created_by)
        req.updates.append(entry)
        self.db.commit()
        return entry

    def delete(self, request_id: int) -> None:
        req = self.get(request_id)
        self.db.delete(req)
        self.db.commit()
        logger.info("pickup request %s deleted", request_id)
