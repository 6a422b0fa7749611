from supabase import create_client, Client
from stack_api.config.settings import settings
from typing import Any, Callable, List, Optional
import logging

logger = logging.getLogger(__name__)


class SupabaseClient:
    """Process-wide Supabase clients; every table in the app lives behind these."""

    _client: Client = None
    _service_client: Client = None

    @classmethod
    def get_client(cls) -> Client:
        if cls._client is None:
            if not settings.supabase_url or not settings.supabase_key:
                raise RuntimeError("SUPABASE_URL and SUPABASE_KEY must be set")
            cls._client = create_client(settings.supabase_url, settings.supabase_key)
            logger.info("Supabase client created")
        return cls._client

    @classmethod
    def get_service_client(cls) -> Client:
        """Client with the service_role key, used for auth admin calls such as account deletion.

        Falls back to the anon client when no service key is configured.
        """
        if cls._service_client is None and settings.supabase_service_role_key:
            cls._service_client = create_client(
                settings.supabase_url, settings.supabase_service_role_key
            )
        return cls._service_client or cls.get_client()


def get_supabase() -> Client:
    return SupabaseClient.get_client()


def fetch_all(build_query: Callable[[], Any], page_size: Optional[int] = None) -> List[dict]:
    """Run a select page by page with .range() and return every row.

    build_query must return a fresh, ordered select builder on each call.
    A page shorter than page_size ends the scan.
    """
    page_size = page_size or settings.query_page_size
    rows: List[dict] = []
    start = 0
    while True:
        result = build_query().range(start, start + page_size - 1).execute()
        page = result.data or []
        rows.extend(page)
        if len(page) < page_size:
            return rows
        start += page_size
