import logging
from typing import Optional

from supabase import create_client, acreate_client, Client, AsyncClient

from lib.config import Settings

logger = logging.getLogger(__name__)

# Postgres insufficient_privilege, PostgREST JWT rejection, plain HTTP auth failures
PERMISSION_ERROR_CODES = {'42501', 'PGRST301', '401', '403'}


def create_storage_client(settings: Settings) -> Optional[Client]:
    """Synchronous client used for table reads and writes."""
    if not settings.store_configured:
        logger.warning("Supabase not configured - messages will not be persisted")
        return None
    logger.info("Initializing Supabase client...")
    client = create_client(settings.supabase_url, settings.supabase_key)
    logger.info("Supabase client initialized successfully")
    return client


async def create_realtime_client(settings: Settings) -> Optional[AsyncClient]:
    """Async client; only this one can open realtime channels."""
    if not settings.store_configured:
        return None
    return await acreate_client(settings.supabase_url, settings.supabase_key)


def is_permission_error(error: Exception) -> bool:
    code = getattr(error, 'code', None)
    if code is None:
        code = getattr(error, 'status', None)
    return str(code) in PERMISSION_ERROR_CODES
