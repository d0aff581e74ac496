# services/closure_store.py
import logging
from datetime import timezone
from typing import Iterable, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from models.closures import ClosureStatus, RoadClosure
from storage.models import StoredClosure

logger = logging.getLogger(__name__)


def _to_closure(row: StoredClosure) -> RoadClosure:
    updated = row.updated_at
    # SQLite hands back naive datetimes; they were written as UTC
    if updated.tzinfo is None:
        updated = updated.replace(tzinfo=timezone.utc)
    return RoadClosure(
        id=row.id,
        road_name=row.road_name,
        status=ClosureStatus.parse(row.status) or ClosureStatus.OPEN,
        note=row.note,
        updated_at=updated,
        lat=row.lat,
        lng=row.lng,
    )


class ClosureStore:
    """Persisted closure snapshot, for deployments that refresh out-of-band."""

    def __init__(self, db: Session):
        self.db = db

    def list(self, status_filter: Optional[str] = None) -> List[RoadClosure]:
        stmt = select(StoredClosure).order_by(StoredClosure.updated_at.desc(), StoredClosure.id)
        wanted = ClosureStatus.parse(status_filter)
        if wanted is not None:
            stmt = stmt.where(StoredClosure.status == wanted.value)
        return [_to_closure(r) for r in self.db.scalars(stmt)]

    def replace_all(self, closures: Iterable[RoadClosure]) -> int:
        """Swap the whole snapshot in one transaction; duplicate ids keep the first record."""
        rows = {}
        for c in closures:
            rows.setdefault(c.id, StoredClosure(
                id=c.id,
                road_name=c.road_name,
                status=c.status.value,
                note=c.note,
                updated_at=c.updated_at,
                lat=c.lat,
                lng=c.lng,
            ))
        self.db.execute(delete(StoredClosure))
        self.db.add_all(rows.values())
        self.db.commit()
        logger.info("closure snapshot replaced with %d rows", len(rows))
        return len(rows)
