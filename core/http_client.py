# core/http_client.py
import logging
from typing import Optional

import requests
from urllib3.util.retry import Retry
from requests.adapters import HTTPAdapter
from .config import DEFAULT_TIMEOUT, RETRY_TOTAL, USER_AGENT
from .errors import FeedUnavailableError

logger = logging.getLogger(__name__)

_session = None

def get_session() -> requests.Session:
    global _session
    if _session is None:
        _session = requests.Session()
        retries = Retry(
            total=RETRY_TOTAL, backoff_factor=0.5,
            status_forcelist=(429, 500, 502, 503, 504),
            allowed_methods=frozenset(['GET'])
        )
        _session.headers.update({"User-Agent": USER_AGENT, "Accept": "application/json"})
        _session.mount("http://", HTTPAdapter(max_retries=retries))
        _session.mount("https://", HTTPAdapter(max_retries=retries))
    return _session

def http_get(url: str, timeout: float = DEFAULT_TIMEOUT) -> requests.Response:
    return get_session().get(url, timeout=timeout)

def get_json(url: str, timeout: Optional[float] = None):
    """
    GET a JSON document. Any transport failure, non-2xx status or undecodable
    body is raised as FeedUnavailableError; there is no partial result.
    """
    try:
        r = http_get(url, timeout=timeout if timeout is not None else DEFAULT_TIMEOUT)
        r.raise_for_status()
        return r.json()
    except requests.HTTPError as e:
        status = e.response.status_code if e.response is not None else None
        logger.warning("upstream %s answered %s", url, status)
        raise FeedUnavailableError(f"upstream returned HTTP {status}", url=url,
                                   status_code=status, original_error=e) from e
    except requests.RequestException as e:
        logger.warning("upstream %s unreachable: %s", url, e)
        raise FeedUnavailableError("upstream request failed", url=url, original_error=e) from e
    except ValueError as e:
        logger.warning("upstream %s returned a non-JSON body", url)
        raise FeedUnavailableError("upstream returned invalid JSON", url=url, original_error=e) from e
