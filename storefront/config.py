# storefront.config
from pathlib import Path
import os
from dotenv import load_dotenv

# Calculer le chemin du projet puis charger .env de manière explicite
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=False)

"""
Configuration centrale du service checkout/paiements.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Normalise et expose les secrets/URLs (Supabase, Stripe)
- Paramètres du flux: devise par défaut, timeouts passerelle, notification propriétaire
- CORS/hosts pour l'app FastAPI
"""

def _clean_env(v: str) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")

def _int_env(name: str, default: int) -> int:
    try:
        return int(_clean_env(os.getenv(name)) or default)
    except ValueError:
        return default

def _float_env(name: str, default: float) -> float:
    try:
        return float(_clean_env(os.getenv(name)) or default)
    except ValueError:
        return default

# Supabase: URL et clés (anon pour l'auth, service pour les écritures)
# - SUPABASE_URL peut parfois être sans schéma: on préfixe en https:// si nécessaire
SUPABASE_URL = _clean_env(os.getenv("SUPABASE_URL") or "")
SUPABASE_ANON = _clean_env(os.getenv("SUPABASE_ANON_KEY") or os.getenv("SUPABASE_KEY") or "")
SUPABASE_SERVICE_KEY = _clean_env(os.getenv("SUPABASE_SERVICE_KEY") or os.getenv("SUPABASE_SERVICE_ROLE_KEY") or "")

if SUPABASE_URL and not SUPABASE_URL.startswith("http"):
    SUPABASE_URL = "https://" + SUPABASE_URL
if SUPABASE_URL.endswith("/"):
    SUPABASE_URL = SUPABASE_URL.rstrip("/")
SUPABASE_TIMEOUT_SECONDS = _int_env("SUPABASE_TIMEOUT_SECONDS", 10)

# Stripe: clé privée, secret webhook et bornes réseau
STRIPE_SECRET_KEY = _clean_env(os.getenv("STRIPE_SECRET_KEY") or "")
STRIPE_WEBHOOK_SECRET = _clean_env(os.getenv("STRIPE_WEBHOOK_SECRET") or "")
STRIPE_TIMEOUT_SECONDS = _float_env("STRIPE_TIMEOUT_SECONDS", 10.0)
STRIPE_MAX_NETWORK_RETRIES = _int_env("STRIPE_MAX_NETWORK_RETRIES", 2)

# Checkout
DEFAULT_CURRENCY = (_clean_env(os.getenv("DEFAULT_CURRENCY")) or "eur").lower()
CHECKOUT_RATE_LIMIT_TIMES = _int_env("CHECKOUT_RATE_LIMIT_TIMES", 10)
CHECKOUT_RATE_LIMIT_SECONDS = _int_env("CHECKOUT_RATE_LIMIT_SECONDS", 60)
# Redis partagé par les workers pour le compteur de POST /checkout
RATE_LIMIT_REDIS_URL = _clean_env(os.getenv("RATE_LIMIT_REDIS_URL")) or "redis://127.0.0.1:6379/0"

# Commandes abandonnées (pending sans payment intent) visibles côté admin
ABANDONED_ORDER_MINUTES = _int_env("ABANDONED_ORDER_MINUTES", 30)

# Récap de commande envoyé au propriétaire de la boutique (optionnel)
OWNER_NOTIFY_WEBHOOK_URL = _clean_env(os.getenv("OWNER_NOTIFY_WEBHOOK_URL") or "")
OWNER_NOTIFY_TIMEOUT_SECONDS = _float_env("OWNER_NOTIFY_TIMEOUT_SECONDS", 5.0)

# CORS / hosts
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
ALLOWED_HOSTS = [h.strip() for h in os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",") if h.strip()]
COOKIE_SECURE = (os.getenv("COOKIE_SECURE", "false").lower() == "true")
