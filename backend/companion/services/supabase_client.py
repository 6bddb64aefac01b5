from functools import lru_cache

from supabase import Client, create_client

from companion.core.config import settings
from companion.core.errors import CompanionError


@lru_cache()
def get_supabase() -> Client:
    """Service-role client shared by object storage and the identity provider"""
    config = settings.get_supabase_config()
    if not config["url"] or not config["key"]:
        raise CompanionError("Supabase is not configured: set SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY")
    return create_client(config["url"], config["key"])
