"""
Darts Scorer - Supabase Client

Thread-safe singleton factory for the Supabase client, plus a small retry
wrapper for transient connection drops.
"""

import logging
import time
from functools import lru_cache

from httpx import RemoteProtocolError
from supabase import Client, create_client

from src.config.settings import get_settings

logger = logging.getLogger(__name__)

RETRY_DELAY = 0.3


@lru_cache(maxsize=1)
def get_supabase_client() -> Client:
    """Create and cache a Supabase client instance.

    Raises:
        RuntimeError: If the Supabase URL or key is not configured.
    """
    settings = get_settings()
    if not settings.online_enabled:
        raise RuntimeError("SUPABASE_URL and SUPABASE_ANON_KEY must be set for online play.")
    return create_client(settings.supabase_url, settings.supabase_anon_key)


def db_retry(fn, *args, retries=2, **kwargs):
    """Call *fn* with simple retry on transient connection errors."""
    for attempt in range(retries + 1):
        try:
            return fn(*args, **kwargs)
        except (RemoteProtocolError, ConnectionError, OSError):
            if attempt == retries:
                raise
            logger.warning("Transient database error, retrying (%d/%d)", attempt + 1, retries)
            time.sleep(RETRY_DELAY)
