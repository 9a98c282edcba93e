from __future__ import annotations

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from migrate_core.__version__ import __version__ as VERSION

DEFAULT_CONNECT_TIMEOUT = 15.0
DEFAULT_READ_TIMEOUT = 120.0
DEFAULT_RETRY_STATUS_CODES = {429, 500, 502, 503, 504}
CHUNK_SIZE = 64 * 1024


def build_user_agent(name: str = "migrate-core", version: str = VERSION) -> str:
    """Build a default User-Agent string."""
    return f"{name}/{version}"


def create_retry_session(
    *,
    total_retries: int = 3,
    backoff_factor: float = 0.5,
    status_forcelist: set[int] | None = None,
    allowed_methods: tuple[str, ...] = ("GET", "HEAD"),
    user_agent: str | None = None,
) -> requests.Session:
    """Create a requests session with basic retry/backoff handling.

    Retries stay within a single source; moving on to another source is the
    fallback chain's job.
    """
    status_list = status_forcelist or DEFAULT_RETRY_STATUS_CODES
    retries = Retry(
        total=total_retries,
        backoff_factor=backoff_factor,
        status_forcelist=sorted(status_list),
        allowed_methods=allowed_methods,
        raise_on_status=False,
    )
    session = requests.Session()
    adapter = HTTPAdapter(max_retries=retries)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.headers["User-Agent"] = user_agent or build_user_agent()
    return session
