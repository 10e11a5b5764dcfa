"""
Supabase client access.

One client per process, created lazily from the loaded Config. Import runs
call require_supabase(), which fails with ConfigurationError instead of
returning None.
"""

from typing import Any, Optional

from salary_ingest.core.config import Config, get_config
from salary_ingest.core.errors import ConfigurationError
from salary_ingest.core.logging import get_logger

logger = get_logger(__name__)

_client = None


def _init_client(config: Optional[Config] = None):
    """
    Lazily create a singleton Supabase client.

    Returns:
        client instance or None if disabled / misconfigured.
    """
    global _client
    if _client is not None:
        return _client

    config = config or get_config()

    if not config.supabase_enabled:
        logger.info("Supabase disabled via SUPABASE_ENABLED")
        return None

    if not config.supabase_url or not config.supabase_service_role_key:
        logger.warning("Supabase disabled: SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY missing")
        return None

    from supabase import create_client

    _client = create_client(config.supabase_url, config.supabase_service_role_key)
    logger.info(f"Supabase client initialized for {config.supabase_url}")
    return _client


def require_supabase(config: Optional[Config] = None) -> Any:
    """
    Return the client or raise.

    Raises:
        ConfigurationError: If Supabase is disabled or credentials are missing
    """
    client = _init_client(config)
    if client is None:
        raise ConfigurationError(
            "Supabase is not configured: set SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY "
            "in configs/.env (or pass --dry-run)"
        )
    return client
