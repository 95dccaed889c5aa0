"""
HTTP client for the Supabase REST APIs (Auth and Storage).
Separated from business logic for clean architecture.
"""

from typing import Optional

import httpx

from app.core.config import get_settings

settings = get_settings()


class SupabaseClient:
    """Singleton httpx client with connection pooling."""

    _instance: Optional[httpx.AsyncClient] = None

    @classmethod
    def get_client(cls) -> httpx.AsyncClient:
        """Get or create the shared client instance."""
        if cls._instance is None:
            if not settings.SUPABASE_URL:
                raise RuntimeError("Missing env: SUPABASE_URL")
            cls._instance = httpx.AsyncClient(
                base_url=settings.SUPABASE_URL.rstrip("/"),
                timeout=settings.HTTP_TIMEOUT_SECONDS,
            )
        return cls._instance

    @classmethod
    async def close(cls) -> None:
        if cls._instance is not None:
            await cls._instance.aclose()
            cls._instance = None


def get_supabase_http() -> httpx.AsyncClient:
    return SupabaseClient.get_client()


def error_message(response: httpx.Response) -> str:
    """Best human-readable message from a Supabase error response."""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        for key in ("msg", "error_description", "message", "error"):
            if body.get(key):
                return str(body[key])
    return f"HTTP {response.status_code}"
