"""
Lifespan FastAPI du service checkout.
Seule ressource partagée: le compteur Redis de FastAPILimiter qui borne POST /checkout.
Checkout et webhook ne gardent aucun état en mémoire; tout passe par le store et Stripe.

Variables d'environnement:
  - RATE_LIMIT_REDIS_URL: Redis du compteur (voir storefront.config)
  - DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS=1: pas de limiter (tests)
  - USE_FAKE_REDIS_FOR_TESTS=1: limiter sur fakeredis (tests)
Le fallback mémoire (LOCAL_RATE_LIMIT_FALLBACK) est géré par optional_rate_limit, pas ici.
"""
import os
import logging
from contextlib import asynccontextmanager
from redis import asyncio as aioredis
from fastapi import FastAPI
from fastapi_limiter import FastAPILimiter

from storefront import config

try:
    from fakeredis.aioredis import FakeRedis  # tests only
except Exception:
    FakeRedis = None

logger = logging.getLogger("uvicorn.error")

def _checkout_limiter_redis():
    if os.getenv("USE_FAKE_REDIS_FOR_TESTS") == "1":
        if not FakeRedis:
            raise RuntimeError("USE_FAKE_REDIS_FOR_TESTS=1 mais fakeredis n'est pas installé.")
        return FakeRedis(decode_responses=True)
    return aioredis.from_url(config.RATE_LIMIT_REDIS_URL, encoding="utf-8", decode_responses=True)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Démarrage: branche le limiter de POST /checkout sur Redis.
    - Redis indisponible: le checkout reste servi, sans limite (rate_limit_enabled = False).
    Arrêt: ferme la connexion Redis du limiter.
    """
    app.state.rate_limit_enabled = False
    if os.getenv("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS") == "1":
        logger.info("checkout rate limit disabled by DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS")
    else:
        try:
            await FastAPILimiter.init(_checkout_limiter_redis())
            app.state.rate_limit_enabled = True
            logger.info(
                "checkout rate limit enabled times=%s seconds=%s",
                config.CHECKOUT_RATE_LIMIT_TIMES, config.CHECKOUT_RATE_LIMIT_SECONDS,
            )
        except Exception as e:
            logger.warning("checkout rate limit disabled, limiter init failed: %s", e)

    yield

    if app.state.rate_limit_enabled:
        try:
            await FastAPILimiter.close()
        except Exception:
            logger.warning("checkout rate limit: redis close failed", exc_info=True)
