# scripts/refresh_closures.py
"""
Refresh the persisted closure snapshot from the live feed.

    python -m scripts.refresh_closures --region Wake
    python -m scripts.refresh_closures --region-id 26
"""
import argparse
import logging
import sys

from core.config import LOG_LEVEL
from core.errors import FeedUnavailableError
from services.closure_store import ClosureStore
from services.closures_service import get_closures
from storage.bootstrap import init_db
from storage.engine import get_session

logger = logging.getLogger("refresh_closures")

def refresh(region: str = None, region_id: int = None) -> int:
    closures = get_closures(region, None, region_id=region_id)
    db = get_session()
    try:
        return ClosureStore(db).replace_all(closures)
    finally:
        db.close()

def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    ap.add_argument("--region", help="county name; default county when omitted")
    ap.add_argument("--region-id", type=int, help="county id, skips name lookup")
    args = ap.parse_args(argv)

    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    init_db(seed=False)
    try:
        n = refresh(args.region, args.region_id)
    except FeedUnavailableError as e:
        logger.error("refresh failed: %s", e)
        return 1
    print(f"OK -> {n} closures stored")
    return 0

if __name__ == "__main__":
    sys.exit(main())
