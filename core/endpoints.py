# core/endpoints.py
import os

NCDOT_BASE_URL = os.getenv(
    "NCDOT_BASE_URL", "https://eapps.ncdot.gov/services/traffic-prod/v1"
).rstrip("/")

ENDPOINTS = {
    # per-county incident feed; {region_id} is the NCDOT county id
    "incidents": NCDOT_BASE_URL + "/counties/{region_id}/incidents?verbose=true&recent=true",

    # county directory: [{"id": 26, "name": "Cumberland"}, ...]
    "regions": NCDOT_BASE_URL + "/counties",
}
