# parsers/closure_parser.py
"""
NCDOT incident -> RoadClosure.

The upstream feed is not contractually stable: the same field shows up under
different names, flat or nested under "attributes", and coordinates come as
scalars, strings, arrays or objects. Every field below is resolved by an
ordered chain of lookups where the first usable value wins. Nothing in here
raises on bad input; unusable values fall through to the next candidate.
"""
import math
import re
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from dateutil import parser as dtparser

from models.closures import ClosureStatus, RoadClosure

Pair = Tuple[float, float]

ID_KEYS = ("id", "incidentId", "OBJECTID")
ROAD_KEYS = ("road", "roadName", "ROUTE_NAME", "ROUTE", "streetName", "STREET",
             "STREET_NM", "roadway", "name")
ROUTE_KEYS = ("primaryRoute", "routeName", "route", "highway", "street")
HEADLINE_KEYS = ("headline", "title")
DESCRIPTION_KEYS = ("description", "desc", "details", "detail", "message",
                    "COMMENTS", "comments", "shortDescription")
COMMON_NAME_KEYS = ("commonName", "CROSS_STREET", "crossStreetCommonName")
CONDITION_KEYS = ("condition", "STATE", "status", "impact")
LANES_CLOSED_KEYS = ("lanesClosed", "numLanesClosed")
LANES_TOTAL_KEYS = ("lanesTotal", "numLanes")
UPDATED_KEYS = ("lastUpdate", "updatedAt", "last_updated", "lastUpdated", "updatedOn",
                "UPDATED", "update_time", "lastUpdateTime", "startTime")
TYPE_KEYS = ("incidentType", "incidentTypeDesc", "eventType", "eventTypeDesc",
             "type", "category")
DIRECTION_KEYS = ("direction", "dir", "directionOfTravel", "DIRECTION")
LOCATION_KEYS = ("location", "LOC_DESC")
SCHEDULE_KEYS = ("constructionDateTime", "workSchedule")
DETOUR_KEYS = ("detour", "detourDescription")

# axis aliases, matched case-insensitively
LAT_AXES = ("latitude", "lat", "y")
LNG_AXES = ("longitude", "lng", "lon", "long", "x")
# keys that may hold a whole coordinate pair
COMPOUND_COORD_KEYS = ("location", "point", "coordinates", "geometry")

ROUTE_PREFIXES = ("I-", "US-", "NC-", "SR ", "NC HWY", "US HWY")
_ROUTE_PATTERNS = [
    re.compile(
        r"(?<![A-Za-z0-9])" + r"\s+".join(map(re.escape, p.split()))
        + ("" if p.endswith("-") else r"\s+" if p.endswith(" ") else r"\s*")
        + r"[^\s,;]+",
        re.IGNORECASE,
    )
    for p in ROUTE_PREFIXES
]
UNKNOWN_ROAD = "Unknown Road"
NOTE_SEPARATOR = " — "

DIRECTIONS = {
    "A": "All directions", "ALL": "All directions", "ALL DIRECTIONS": "All directions",
    "N": "NB", "NB": "NB", "NORTH": "NB", "NORTHBOUND": "NB",
    "S": "SB", "SB": "SB", "SOUTH": "SB", "SOUTHBOUND": "SB",
    "E": "EB", "EB": "EB", "EAST": "EB", "EASTBOUND": "EB",
    "W": "WB", "WB": "WB", "WEST": "WB", "WESTBOUND": "WB",
    "O": "Outer Loop", "OUTER": "Outer Loop", "OUTER LOOP": "Outer Loop",
    "I": "Inner Loop", "INNER": "Inner Loop", "INNER LOOP": "Inner Loop",
}

# epoch values above this are milliseconds
EPOCH_MS_THRESHOLD = 10_000_000_000
_DATE_DEFAULT = datetime(1970, 1, 1)


# -----------------------------
# scalar lookups
# -----------------------------
def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)

def _to_float(v: Any) -> Optional[float]:
    try:
        if _is_number(v):
            f = float(v)
        elif isinstance(v, str):
            f = float(v.strip())
        else:
            return None
    except (ValueError, OverflowError):
        return None
    return f if math.isfinite(f) else None

def _to_int(v: Any) -> Optional[int]:
    if isinstance(v, int) and not isinstance(v, bool):
        return v
    if isinstance(v, float) and math.isfinite(v) and v.is_integer():
        return int(v)
    if isinstance(v, str):
        try:
            return int(v.strip())
        except ValueError:
            return None
    return None

def _pick(d: Dict[str, Any], keys: Iterable[str], conv) -> Any:
    for k in keys:
        v = conv(d.get(k))
        if v is not None:
            return v
    return None

def _text(v: Any) -> Optional[str]:
    # labels are sometimes numeric
    if _is_number(v):
        v = str(v)
    if isinstance(v, str) and v.strip():
        return v.strip()
    return None

def pick_str(d: Dict[str, Any], *keys: str) -> Optional[str]:
    return _pick(d, keys, _text)

def pick_int(d: Dict[str, Any], *keys: str) -> Optional[int]:
    return _pick(d, keys, _to_int)

def pick_float(d: Dict[str, Any], *keys: str) -> Optional[float]:
    return _pick(d, keys, _to_float)


def attribute_node(raw: Any) -> Dict[str, Any]:
    """The dict holding the incident fields: raw["attributes"] or raw itself."""
    if not isinstance(raw, dict):
        return {}
    attrs = raw.get("attributes")
    return attrs if isinstance(attrs, dict) else raw


# -----------------------------
# coordinates
# -----------------------------
def _valid(lat: float, lng: float) -> bool:
    return -90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0

def _ordered_pair(a: Optional[float], b: Optional[float], lng_first: bool = False) -> Optional[Pair]:
    """
    Orient two numbers into (lat, lng) by range. When both orders are valid,
    GeoJSON arrays (lng_first) keep their order; otherwise the larger
    magnitude is taken as longitude.
    """
    if a is None or b is None:
        return None
    as_is, swapped = _valid(a, b), _valid(b, a)
    if as_is and swapped:
        if lng_first:
            return b, a
        return (b, a) if abs(a) > abs(b) else (a, b)
    if as_is:
        return a, b
    if swapped:
        return b, a
    return None

def _axis_pair(node: Any) -> Optional[Pair]:
    if not isinstance(node, dict):
        return None
    lowered: Dict[str, Any] = {}
    for k, v in node.items():
        if isinstance(k, str):
            lowered.setdefault(k.lower(), v)
    lat = _pick(lowered, LAT_AXES, _to_float)
    lng = _pick(lowered, LNG_AXES, _to_float)
    if lat is None or lng is None or not _valid(lat, lng):
        return None
    return lat, lng

def _array_pair(v: Any, lng_first: bool = False) -> Optional[Pair]:
    if not isinstance(v, (list, tuple)) or len(v) < 2:
        return None
    return _ordered_pair(_to_float(v[0]), _to_float(v[1]), lng_first=lng_first)

def _string_pair(v: Any) -> Optional[Pair]:
    if not isinstance(v, str):
        return None
    sep = ";" if ";" in v else ","
    parts = v.split(sep)
    if len(parts) < 2:
        return None
    lat, lng = _to_float(parts[0]), _to_float(parts[1])
    if lat is None or lng is None:
        return None
    if _valid(lat, lng):
        return lat, lng
    if _valid(lng, lat):
        return lng, lat
    return None

def _compound_pair(v: Any) -> Optional[Pair]:
    if isinstance(v, str):
        return _string_pair(v)
    if isinstance(v, (list, tuple)):
        return _array_pair(v)
    if isinstance(v, dict):
        return _axis_pair(v) or _array_pair(v.get("coordinates"), lng_first=True)
    return None

def extract_lat_lng(raw: Any) -> Tuple[Optional[float], Optional[float]]:
    """
    Probe, in order: scalar axes on the attribute node, scalar axes on the
    top-level record, the geometry block, then compound location/point/
    coordinates values. Only a complete, in-range pair is accepted.
    """
    attrs = attribute_node(raw)
    top = raw if isinstance(raw, dict) else {}
    nodes = [attrs] if top is attrs else [attrs, top]

    candidates = [lambda n=n: _axis_pair(n) for n in nodes]
    for node in reversed(nodes):
        geom = node.get("geometry")
        if isinstance(geom, dict):
            candidates.append(lambda g=geom: _axis_pair(g) or _array_pair(g.get("coordinates"), lng_first=True))
    for node in nodes:
        for key in COMPOUND_COORD_KEYS:
            if key not in node:
                continue
            if key == "coordinates":
                candidates.append(lambda v=node[key]: _array_pair(v, lng_first=True) or _compound_pair(v))
            else:
                candidates.append(lambda v=node[key]: _compound_pair(v))

    for probe in candidates:
        pair = probe()
        if pair is not None:
            return pair
    return None, None


def location_text(attrs: Dict[str, Any]) -> Optional[str]:
    """Free-text location; a "lat,lng" string is a coordinate, not a description."""
    for key in LOCATION_KEYS:
        v = attrs.get(key)
        if isinstance(v, str) and v.strip() and _string_pair(v) is None:
            return v.strip()
    return None


# -----------------------------
# road name
# -----------------------------
def extract_route_token(text: Optional[str]) -> Optional[str]:
    """
    First highway token in free text, uppercased: "near i-95 exit 49" -> "I-95".
    Prefixes are tried in ROUTE_PREFIXES order; the token runs from the prefix
    to the next whitespace, comma or semicolon. Prefixes ending in a word
    ("SR", "NC HWY") take the number that follows the space.
    """
    if not text:
        return None
    for pattern in _ROUTE_PATTERNS:
        m = pattern.search(text)
        if m:
            return " ".join(m.group(0).split()).upper()
    return None

def best_road_name(attrs: Dict[str, Any], lat: Optional[float], lng: Optional[float]) -> str:
    name = (pick_str(attrs, *ROAD_KEYS)
            or pick_str(attrs, *ROUTE_KEYS)
            or pick_str(attrs, *HEADLINE_KEYS)
            or pick_str(attrs, *DESCRIPTION_KEYS)
            or pick_str(attrs, *COMMON_NAME_KEYS))
    if name:
        return name

    token = extract_route_token(location_text(attrs))
    if token:
        return token

    if lat is not None and lng is not None:
        return f"({lat:.4f}, {lng:.4f})"
    return UNKNOWN_ROAD


# -----------------------------
# status
# -----------------------------
def map_status(condition: Optional[str], lanes_closed: Optional[int],
               lanes_total: Optional[int], reason: Optional[str]) -> ClosureStatus:
    """
    Fixed precedence: lane counts, then the condition string, then the
    free-text reason, then any closed lane.
    """
    if lanes_total is not None and lanes_total > 0 and lanes_closed is not None \
            and lanes_closed >= 0 and lanes_closed >= lanes_total:
        return ClosureStatus.CLOSED

    cond = (condition or "").upper()
    if "ROAD CLOSED" in cond:
        return ClosureStatus.CLOSED
    if "LANE CLOSED" in cond or "CLOSED" in cond:
        return ClosureStatus.PARTIAL

    rsn = (reason or "").upper()
    if "LANE" in rsn and "CLOSED" in rsn:
        return ClosureStatus.PARTIAL
    if "ROAD" in rsn and "CLOSED" in rsn:
        return ClosureStatus.CLOSED

    if (lanes_closed or 0) > 0:
        return ClosureStatus.PARTIAL
    return ClosureStatus.OPEN


# -----------------------------
# note
# -----------------------------
def normalize_direction(d: Optional[str]) -> Optional[str]:
    if not d or not d.strip():
        return None
    t = d.strip().upper()
    return DIRECTIONS.get(t, t)

def lanes_label(n: Optional[int]) -> Optional[str]:
    if n is None or n <= 0:
        return None
    return "1 lane closed" if n == 1 else f"{n} lanes closed"

def compose_note(kind: Optional[str], direction: Optional[str], lanes_closed: Optional[int],
                 reason: Optional[str], location: Optional[str],
                 schedule: Optional[str], detour: Optional[str]) -> Optional[str]:
    header_parts = [p for p in (kind, normalize_direction(direction), lanes_label(lanes_closed)) if p]
    header = NOTE_SEPARATOR.join(header_parts)

    body_parts: List[str] = []
    if reason:
        body_parts.append(reason)
    if location and (not reason or location.lower() not in reason.lower()):
        body_parts.append(location)
    if schedule:
        body_parts.append(f"Work hours: {schedule}")
    if detour:
        body_parts.append(f"Detour: {detour}")
    body = " ".join(body_parts)

    if header and body:
        return f"{header}. {body}"
    return header or body or None


# -----------------------------
# timestamp
# -----------------------------
def _from_epoch(n: float) -> Optional[datetime]:
    try:
        if n > EPOCH_MS_THRESHOLD:
            n = n / 1000.0
        return datetime.fromtimestamp(n, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None

def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)

def parse_timestamp(v: Any) -> Optional[datetime]:
    """ISO-8601 / common US date strings or epoch seconds/milliseconds, as UTC."""
    if _is_number(v):
        n = _to_float(v)
        return _from_epoch(n) if n is not None else None
    if not isinstance(v, str) or not v.strip():
        return None
    s = v.strip()
    if s.isdecimal():
        n = _to_float(s)
        return _from_epoch(n) if n is not None else None
    try:
        return _as_utc(dtparser.isoparse(s))
    except (ValueError, OverflowError):
        pass
    # free-form dates must at least look like one
    if not any(ch.isdigit() for ch in s) or not any(sep in s for sep in "-/:"):
        return None
    try:
        return _as_utc(dtparser.parse(s, default=_DATE_DEFAULT))
    except (ValueError, OverflowError):
        return None


# -----------------------------
# id
# -----------------------------
def make_stable_id(road_name: str, lat: Optional[float], lng: Optional[float]) -> int:
    """Order-dependent 31x string hash over name and 6-decimal coordinates."""
    lat_s = f"{lat:.6f}" if lat is not None else ""
    lng_s = f"{lng:.6f}" if lng is not None else ""
    h = 23
    for ch in f"{road_name}|{lat_s}|{lng_s}":
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


# -----------------------------
# record
# -----------------------------
def normalize_incident(raw: Any, now: Optional[datetime] = None) -> RoadClosure:
    """Map one raw incident to a RoadClosure. Never raises on malformed input."""
    attrs = attribute_node(raw)
    lat, lng = extract_lat_lng(raw)

    road_name = best_road_name(attrs, lat, lng)

    description = pick_str(attrs, *DESCRIPTION_KEYS)
    lanes_closed = pick_int(attrs, *LANES_CLOSED_KEYS)
    lanes_total = pick_int(attrs, *LANES_TOTAL_KEYS)
    status = map_status(pick_str(attrs, *CONDITION_KEYS), lanes_closed, lanes_total, description)

    location = location_text(attrs)
    note = compose_note(
        pick_str(attrs, *TYPE_KEYS),
        pick_str(attrs, *DIRECTION_KEYS),
        lanes_closed,
        description,
        location,
        pick_str(attrs, *SCHEDULE_KEYS),
        pick_str(attrs, *DETOUR_KEYS),
    )

    updated_at = _pick(attrs, UPDATED_KEYS, parse_timestamp)
    if updated_at is None:
        updated_at = now or datetime.now(timezone.utc)

    closure_id = pick_int(attrs, *ID_KEYS) or 0
    if closure_id == 0:
        closure_id = make_stable_id(road_name, lat, lng)

    return RoadClosure(
        id=closure_id,
        road_name=road_name,
        status=status,
        note=note,
        updated_at=updated_at,
        lat=lat,
        lng=lng,
    )

def parse_incidents(payload: Any, now: Optional[datetime] = None) -> List[RoadClosure]:
    """Normalize a whole feed page; a non-array payload yields no closures."""
    if not isinstance(payload, list):
        return []
    now = now or datetime.now(timezone.utc)
    return [normalize_incident(item, now=now) for item in payload]
