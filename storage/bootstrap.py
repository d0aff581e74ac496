# storage/bootstrap.py
import logging
from datetime import datetime, timezone

from sqlalchemy import func, select

from core.config import SEED_DEMO_DATA
from storage.engine import get_engine, session_scope
from storage.models import Base, StoredClosure, Zone

logger = logging.getLogger(__name__)

DEMO_ZONES = [
    {"name": "North", "color_hex": "#2b6cb0"},
    {"name": "South", "color_hex": "#38a169"},
]

# placeholder rows until the first refresh_closures run
DEMO_CLOSURES = [
    {"id": 1, "road_name": "Pamalee Dr", "status": "PARTIAL", "note": "Standing water",
     "lat": 35.0930, "lng": -78.9220},
    {"id": 2, "road_name": "Cedar Creek Rd", "status": "CLOSED", "note": "Debris on roadway",
     "lat": 35.0187, "lng": -78.7994},
]


def init_db(seed: bool = SEED_DEMO_DATA) -> None:
    """Create tables (no migrations) and seed demo rows into empty tables."""
    Base.metadata.create_all(get_engine())
    if not seed:
        return
    with session_scope() as db:
        if not db.scalar(select(func.count()).select_from(Zone)):
            db.add_all(Zone(**z) for z in DEMO_ZONES)
            logger.info("seeded %d zones", len(DEMO_ZONES))
        if not db.scalar(select(func.count()).select_from(StoredClosure)):
            now = datetime.now(timezone.utc)
            db.add_all(StoredClosure(updated_at=now, **c) for c in DEMO_CLOSURES)
            logger.info("seeded %d demo closures", len(DEMO_CLOSURES))
