# services/closures_service.py
import logging
from datetime import datetime, timezone
from typing import Any, List, Optional

from core.cache import TTLCache
from core.config import CLOSURE_CACHE_TTL_SEC, INCIDENTS_URL
from core.http_client import get_json
from models.closures import ClosureStatus, RoadClosure
from parsers.closure_parser import parse_incidents
from services.regions_service import resolve_region_id_or_default

logger = logging.getLogger(__name__)

# -----------------------------
# per-region raw feed cache: same region is not refetched within the TTL
# -----------------------------
_cache = TTLCache(CLOSURE_CACHE_TTL_SEC)

def fetch_region_incidents(region_id: int) -> List[Any]:
    """
    Raw incident records for one region. Transport failures propagate as
    FeedUnavailableError; a payload that is not a JSON array yields [].
    """
    def load() -> List[Any]:
        url = INCIDENTS_URL.format(region_id=region_id)
        data = get_json(url)
        if not isinstance(data, list):
            logger.warning("incident feed for region %s is not an array (%s)",
                           region_id, type(data).__name__)
            return []
        logger.info("fetched %d incidents for region %s", len(data), region_id)
        return data
    return _cache.get_or_set(region_id, load)

# -----------------------------
# filter + order
# -----------------------------
def filter_by_status(items: List[RoadClosure], status_filter: Optional[str]) -> List[RoadClosure]:
    """Keep one status; an unknown filter value means no filtering."""
    wanted = ClosureStatus.parse(status_filter)
    if wanted is None:
        if status_filter and status_filter.strip():
            logger.debug("ignoring unknown status filter %r", status_filter)
        return list(items)
    return [x for x in items if x.status == wanted]

def sort_newest_first(items: List[RoadClosure]) -> List[RoadClosure]:
    # sorted() is stable, so equal timestamps keep feed order
    return sorted(items, key=lambda x: x.updated_at, reverse=True)

# -----------------------------
# public entry point
# -----------------------------
def get_closures(region_name: Optional[str] = None,
                 status_filter: Optional[str] = None,
                 region_id: Optional[int] = None) -> List[RoadClosure]:
    """
    Resolve region -> fetch (cached) -> normalize -> filter -> newest first.
    An explicit region_id skips name resolution.
    """
    rid = region_id if region_id is not None else resolve_region_id_or_default(region_name)
    raw = fetch_region_incidents(rid)
    closures = parse_incidents(raw, now=datetime.now(timezone.utc))
    return sort_newest_first(filter_by_status(closures, status_filter))

def clear_cache() -> None:
    _cache.clear()
