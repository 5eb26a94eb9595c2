"""
Lance l'API checkout de la boutique (POST /checkout, POST /webhook Stripe, /admin/orders, /health).

Usage:
    python -m storefront

Prérequis: .env avec SUPABASE_URL, SUPABASE_SERVICE_KEY, STRIPE_SECRET_KEY et STRIPE_WEBHOOK_SECRET
(sans secret webhook, tous les événements Stripe sont rejetés en 400).

Variables du serveur:
- HOST / PORT: interface et port d'écoute (0.0.0.0:8000); l'URL publique de /webhook est celle déclarée dans Stripe
- UVICORN_RELOAD: reload auto en dev ("1"/"true"/"yes")
- LOG_LEVEL: niveau de logs uvicorn ("info", "debug")
- UVICORN_WORKERS: nombre de workers (ignoré avec le reload); aucun état partagé en mémoire entre eux
"""
import os

import uvicorn

if __name__ == "__main__":
    reload_flag = os.environ.get("UVICORN_RELOAD", "").lower() in ("1", "true", "yes")
    uvicorn.run(
        "storefront.asgi:app",
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", 8000)),
        reload=reload_flag,
        workers=None if reload_flag else int(os.environ.get("UVICORN_WORKERS", 1)),
        log_level=os.environ.get("LOG_LEVEL", "info"),
        # Le webhook est appelé derrière le proxy: x-forwarded-* fait foi
        proxy_headers=True,
        forwarded_allow_ips="*",
    )
