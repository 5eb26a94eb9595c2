from typing import Optional
from supabase import create_client, Client, ClientOptions
from storefront.config import SUPABASE_URL, SUPABASE_ANON, SUPABASE_SERVICE_KEY, SUPABASE_TIMEOUT_SECONDS

_supabase: Optional[Client] = None
_service_supabase: Optional[Client] = None

def _options() -> ClientOptions:
    # Appels PostgREST bornés: un store lent devient un échec, pas un handler bloqué
    return ClientOptions(postgrest_client_timeout=SUPABASE_TIMEOUT_SECONDS)

def get_supabase() -> Client:
    """Client 'anon': utilisé uniquement pour vérifier les tokens (auth.get_user)."""
    global _supabase
    if _supabase is None:
        _supabase = create_client(SUPABASE_URL, SUPABASE_ANON, options=_options())
    return _supabase

def get_service_supabase() -> Client:
    """
    Client service-role (bypass RLS), partagé par le process.
    Toutes les lectures catalogue et écritures commandes du flux checkout/webhook passent par ici.
    """
    global _service_supabase
    if not SUPABASE_SERVICE_KEY:
        raise RuntimeError("SUPABASE_SERVICE_KEY manquant: lectures catalogue et écritures commandes impossibles")
    if _service_supabase is None:
        _service_supabase = create_client(SUPABASE_URL, SUPABASE_SERVICE_KEY, options=_options())
    return _service_supabase
