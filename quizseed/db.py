from typing import Optional

from supabase import Client, ClientOptions, create_client

from quizseed.settings import supabase_credentials


def get_supabase_client(timeout: Optional[float] = 60.0) -> Client:
    """
    Returns a Supabase client from SUPABASE_URL / SUPABASE_KEY
    (or the VITE_ fallbacks used by the web app's .env).
    """
    url, key = supabase_credentials()
    if timeout is None:
        return create_client(url, key)
    return create_client(url, key, options=ClientOptions(postgrest_client_timeout=timeout))
