from datetime import datetime, timezone

import pytest

from models.closures import ClosureStatus
from parsers.closure_parser import (
    compose_note,
    extract_lat_lng,
    extract_route_token,
    make_stable_id,
    map_status,
    normalize_direction,
    normalize_incident,
    parse_incidents,
    parse_timestamp,
)

NOW = datetime(2025, 8, 26, 12, 0, tzinfo=timezone.utc)


# -----------------------------
# coordinates
# -----------------------------
@pytest.mark.parametrize("raw", [
    {},
    {"road": "Main St", "description": "Tree down"},
    {"latitude": 35.05},
    {"lng": -78.88},
    {"lat": 35.0, "geometry": {"x": -78.9}},
    {"lat": 135.0, "lng": 500.0},
    {"location": "downtown"},
    {"point": [35.05]},
])
def test_coordinates_are_both_or_neither(raw):
    rc = normalize_incident(raw, now=NOW)
    assert rc.lat is None and rc.lng is None

def test_flat_latitude_longitude():
    assert extract_lat_lng({"latitude": 35.0527, "longitude": -78.8784}) == (35.0527, -78.8784)

def test_string_scalars_are_accepted():
    assert extract_lat_lng({"lat": "35.1", "lon": "-78.9"}) == (35.1, -78.9)

def test_attributes_then_geometry():
    raw = {
        "attributes": {"OBJECTID": 7, "ROUTE_NAME": "US-401", "STATE": "ROAD CLOSED"},
        "geometry": {"x": -78.9, "y": 35.1},
    }
    rc = normalize_incident(raw, now=NOW)
    assert (rc.id, rc.road_name, rc.status) == (7, "US-401", ClosureStatus.CLOSED)
    assert (rc.lat, rc.lng) == (35.1, -78.9)

def test_geojson_geometry_coordinates():
    raw = {"geometry": {"type": "Point", "coordinates": [-78.8784, 35.0527]}}
    assert extract_lat_lng(raw) == (35.0527, -78.8784)

@pytest.mark.parametrize("key", ["coordinates", "location", "point"])
def test_longitude_first_array_is_detected_by_range(key):
    rc = normalize_incident({key: [-78.8784, 35.0527]}, now=NOW)
    assert rc.lat == 35.0527
    assert rc.lng == -78.8784

def test_latitude_first_array():
    assert extract_lat_lng({"point": [35.0527, -78.8784]}) == (35.0527, -78.8784)

def test_array_with_only_one_valid_order():
    # 120 cannot be a latitude
    assert extract_lat_lng({"point": [120.5, 30.25]}) == (30.25, 120.5)

@pytest.mark.parametrize("value", ["35.0527,-78.8784", "35.0527; -78.8784", " 35.0527 , -78.8784 "])
def test_string_pairs(value):
    assert extract_lat_lng({"location": value}) == (35.0527, -78.8784)

def test_object_with_axis_aliases_any_case():
    raw = {"location": {"Latitude": "35.05", "Longitude": "-78.88"}}
    assert extract_lat_lng(raw) == (35.05, -78.88)

def test_scalar_fields_win_over_compound_values():
    raw = {"lat": 35.0, "lng": -79.0, "location": "36.0,-80.0"}
    assert extract_lat_lng(raw) == (35.0, -79.0)

def test_top_level_coordinates_used_when_attributes_have_none():
    raw = {"latitude": 35.2, "longitude": -78.8, "attributes": {"road": "NC-24"}}
    rc = normalize_incident(raw, now=NOW)
    assert (rc.lat, rc.lng) == (35.2, -78.8)
    assert rc.road_name == "NC-24"


# -----------------------------
# road name
# -----------------------------
@pytest.mark.parametrize("raw, expected", [
    ({"road": "  I-95  ", "title": "Crash"}, "I-95"),
    ({"roadName": "Ramsey St"}, "Ramsey St"),
    ({"road": "   ", "primaryRoute": "US-301"}, "US-301"),
    ({"title": "Crash on US-401", "description": "x"}, "Crash on US-401"),
    ({"description": "Bridge work"}, "Bridge work"),
    ({"commonName": "Bragg Blvd"}, "Bragg Blvd"),
    ({"location": "Near i-95 exit 49, Fayetteville"}, "I-95"),
    ({"LOC_DESC": "SR 1003 at Hope Mills"}, "SR 1003"),
    ({"location": "35.05,-78.87"}, "(35.0500, -78.8700)"),
    ({"lat": 35.05271, "lng": -78.87844}, "(35.0527, -78.8784)"),
    ({}, "Unknown Road"),
])
def test_road_name_fallback_chain(raw, expected):
    assert normalize_incident(raw, now=NOW).road_name == expected

def test_road_name_never_blank_for_junk_input():
    for raw in (None, 42, "text", [], {"attributes": "nope"}, {"road": None, "title": 17}):
        assert normalize_incident(raw, now=NOW).road_name.strip()

def test_numeric_labels_become_text():
    assert normalize_incident({"title": 17}, now=NOW).road_name == "17"

@pytest.mark.parametrize("text, expected", [
    ("I-40, exit 10", "I-40"),
    ("Lane closed on SR 1003 near Hope Mills", "SR 1003"),
    ("Closed at NC HWY 24; detour posted", "NC HWY 24"),
    ("us hwy 301 northbound", "US HWY 301"),
    ("ramp from nc-87 to us-401", "US-401"),
    ("Multi-lane closure downtown", None),
    ("", None),
    (None, None),
])
def test_route_token_scanner(text, expected):
    assert extract_route_token(text) == expected


# -----------------------------
# status
# -----------------------------
def test_full_lane_closure_beats_condition():
    for condition in ("OPEN", "LANE CLOSED", None):
        rc = normalize_incident({"lanesClosed": 2, "lanesTotal": 2, "condition": condition}, now=NOW)
        assert rc.status == ClosureStatus.CLOSED

def test_lane_closed_condition_is_partial():
    rc = normalize_incident({"condition": "LANE CLOSED"}, now=NOW)
    assert rc.status == ClosureStatus.PARTIAL

@pytest.mark.parametrize("condition, lanes_closed, lanes_total, reason, expected", [
    ("Road Closed", None, None, None, ClosureStatus.CLOSED),
    ("closed", None, None, None, ClosureStatus.PARTIAL),
    (None, None, None, "Right lane closed for paving", ClosureStatus.PARTIAL),
    (None, None, None, "Road closed due to flooding", ClosureStatus.CLOSED),
    (None, 1, 3, None, ClosureStatus.PARTIAL),
    (None, 1, None, None, ClosureStatus.PARTIAL),
    (None, 0, 0, None, ClosureStatus.OPEN),
    ("OPEN", 1, None, None, ClosureStatus.PARTIAL),
    (None, None, None, None, ClosureStatus.OPEN),
    ("something new", None, None, "vehicle fire", ClosureStatus.OPEN),
])
def test_map_status(condition, lanes_closed, lanes_total, reason, expected):
    assert map_status(condition, lanes_closed, lanes_total, reason) == expected

def test_lane_counts_as_strings():
    rc = normalize_incident({"numLanesClosed": "3", "numLanes": "3"}, now=NOW)
    assert rc.status == ClosureStatus.CLOSED

def test_status_always_canonical():
    samples = [None, 1, "x", [], {}, {"status": "weird"}, {"impact": 5},
               {"lanesClosed": "many"}, {"attributes": {"STATE": ["ROAD CLOSED"]}}]
    for raw in samples:
        assert normalize_incident(raw, now=NOW).status in set(ClosureStatus)


# -----------------------------
# note
# -----------------------------
def test_note_header_and_body():
    raw = {
        "incidentType": "Construction",
        "direction": "northbound",
        "lanesClosed": 1,
        "description": "Bridge repair on I-95",
        "location": "I-95",
        "workSchedule": "9AM-3PM",
        "detour": "Use US-301",
    }
    assert normalize_incident(raw, now=NOW).note == (
        "Construction — NB — 1 lane closed. "
        "Bridge repair on I-95 Work hours: 9AM-3PM Detour: Use US-301"
    )

def test_note_keeps_location_not_in_description():
    note = compose_note(None, None, None, "Vehicle crash", "Exit 49", None, None)
    assert note == "Vehicle crash Exit 49"

def test_note_header_only():
    assert compose_note("Night Work", "outer", 2, None, None, None, None) == "Night Work — Outer Loop — 2 lanes closed"

def test_note_is_none_when_empty():
    assert normalize_incident({"road": "I-95"}, now=NOW).note is None
    assert compose_note(None, "  ", 0, None, None, None, None) is None

def test_coordinate_location_is_not_note_text():
    rc = normalize_incident({"location": "35.0527,-78.8784"}, now=NOW)
    assert rc.note is None
    assert rc.road_name == "(35.0527, -78.8784)"

@pytest.mark.parametrize("raw, expected", [
    ("A", "All directions"), ("all directions", "All directions"),
    ("N", "NB"), ("Southbound", "SB"), ("east", "EB"), ("WB", "WB"),
    ("Outer Loop", "Outer Loop"), ("inner", "Inner Loop"),
    ("both ways", "BOTH WAYS"), ("", None), (None, None),
])
def test_direction_tokens(raw, expected):
    assert normalize_direction(raw) == expected


# -----------------------------
# timestamp
# -----------------------------
@pytest.mark.parametrize("value, expected", [
    ("2025-08-23T09:04:46Z", datetime(2025, 8, 23, 9, 4, 46, tzinfo=timezone.utc)),
    ("2025-08-23T09:04:46", datetime(2025, 8, 23, 9, 4, 46, tzinfo=timezone.utc)),
    ("2025-08-23T05:04:46-04:00", datetime(2025, 8, 23, 9, 4, 46, tzinfo=timezone.utc)),
    ("08/23/2025 09:04 AM", datetime(2025, 8, 23, 9, 4, tzinfo=timezone.utc)),
    (1724400000, datetime.fromtimestamp(1724400000, tz=timezone.utc)),
    (1724400000000, datetime.fromtimestamp(1724400000, tz=timezone.utc)),
    ("1724400000", datetime.fromtimestamp(1724400000, tz=timezone.utc)),
])
def test_parse_timestamp(value, expected):
    assert parse_timestamp(value) == expected

@pytest.mark.parametrize("value", [None, "", "soon", True, [], {}, float("nan")])
def test_unparseable_timestamps(value):
    assert parse_timestamp(value) is None

def test_first_parseable_timestamp_alias_wins():
    raw = {"lastUpdate": "garbage", "updatedAt": "2025-01-02T00:00:00Z", "startTime": "2024-01-01T00:00:00Z"}
    assert normalize_incident(raw, now=NOW).updated_at == datetime(2025, 1, 2, tzinfo=timezone.utc)

def test_missing_timestamp_uses_fetch_time():
    assert normalize_incident({"road": "I-95"}, now=NOW).updated_at == NOW

def test_missing_timestamp_defaults_to_current_time():
    before = datetime.now(timezone.utc)
    rc = normalize_incident({"road": "I-95"})
    assert before <= rc.updated_at <= datetime.now(timezone.utc)


# -----------------------------
# id + determinism
# -----------------------------
def test_feed_id_is_used():
    assert normalize_incident({"id": 123}, now=NOW).id == 123
    assert normalize_incident({"incidentId": "456"}, now=NOW).id == 456

def test_synthetic_id_is_stable():
    raw = {"roadName": "I-95", "lat": 35.05, "lng": -78.88}
    a = normalize_incident(raw, now=NOW)
    b = normalize_incident(dict(raw), now=NOW)
    assert a.id == b.id
    assert a.id == make_stable_id("I-95", 35.05, -78.88)
    assert a.id >= 0

def test_zero_id_falls_back_to_synthetic():
    rc = normalize_incident({"id": 0, "road": "I-95"}, now=NOW)
    assert rc.id == make_stable_id("I-95", None, None)

def test_synthetic_id_depends_on_name_and_position():
    base = make_stable_id("I-95", 35.05, -78.88)
    assert make_stable_id("I-95", 35.06, -78.88) != base
    assert make_stable_id("I-40", 35.05, -78.88) != base
    assert 0 <= make_stable_id("x" * 500, None, None) <= 2 ** 31

def test_normalize_is_deterministic():
    raw = {
        "attributes": {
            "incidentId": 9, "road": "US-401", "condition": "Lane Closed",
            "lastUpdate": 1724400000, "direction": "S", "lanesClosed": 1,
        },
        "geometry": {"y": 35.1, "x": -78.9},
    }
    assert normalize_incident(raw) == normalize_incident(raw)


# -----------------------------
# page
# -----------------------------
def test_parse_incidents_maps_one_to_one():
    payload = [{"id": 1}, "junk", None, {"attributes": {"id": 4}}]
    out = parse_incidents(payload, now=NOW)
    assert len(out) == 4
    assert [c.id for c in out][0] == 1
    assert out[3].id == 4

def test_parse_incidents_non_array():
    assert parse_incidents({"error": "nope"}) == []
