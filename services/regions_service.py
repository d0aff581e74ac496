# services/regions_service.py
import logging
from typing import List, Optional

from core.cache import TTLCache
from core.config import (
    DEFAULT_REGION_ID, DEFAULT_REGION_NAME, REGION_CACHE_TTL_SEC, REGIONS_URL,
)
from core.errors import FeedUnavailableError
from core.http_client import get_json
from models.closures import Region

logger = logging.getLogger(__name__)

# the county directory rarely changes
_cache = TTLCache(REGION_CACHE_TTL_SEC)

def _norm_region(s: str) -> str:
    s = (s or "").strip()
    if s.lower().endswith(" county"):
        s = s[: -len(" county")]
    return s.strip().lower()

def fetch_regions() -> List[Region]:
    def load() -> List[Region]:
        data = get_json(REGIONS_URL)
        out: List[Region] = []
        for c in data if isinstance(data, list) else []:
            if not isinstance(c, dict):
                continue
            rid, name = c.get("id"), c.get("name")
            if isinstance(rid, bool) or not isinstance(rid, int):
                continue
            if not isinstance(name, str) or not name.strip():
                continue
            out.append(Region(id=rid, name=name.strip()))
        return out
    return _cache.get_or_set("regions", load)

def match_region(regions: List[Region], name: str) -> Optional[int]:
    """Exact (case-insensitive, " County" ignored) match first, then containment either way."""
    want = _norm_region(name)
    if not want:
        return None
    for r in regions:
        if _norm_region(r.name) == want:
            return r.id
    for r in regions:
        nm = _norm_region(r.name)
        if nm and (want in nm or nm in want):
            return r.id
    return None

def resolve_region_id(name: Optional[str]) -> Optional[int]:
    """Region id for a human-readable name, or None when it cannot be resolved."""
    if not name or not name.strip():
        return None
    try:
        regions = fetch_regions()
    except FeedUnavailableError as e:
        logger.warning("region directory unavailable, using default region: %s", e)
        return None
    rid = match_region(regions, name)
    if rid is None:
        logger.debug("no region matches %r", name)
    return rid

def resolve_region_id_or_default(name: Optional[str]) -> int:
    rid = resolve_region_id(name)
    if rid is None:
        logger.debug("using default region %s (%s)", DEFAULT_REGION_NAME, DEFAULT_REGION_ID)
        return DEFAULT_REGION_ID
    return rid

def clear_cache() -> None:
    _cache.clear()
