"""
Infrastructure layer - external system integrations.
Keeps business logic clean from implementation details.
"""

from .supabase_client import SupabaseClient, get_supabase_http, error_message

__all__ = ['SupabaseClient', 'get_supabase_http', 'error_message']
