"""
Accès aux données pour la feature 'payments' (tables items, item_variants, orders, order_items).
Toutes les opérations passent par le client service-role.
Les erreurs sont journalisées puis remontées en CatalogStoreError: le service décide du statut HTTP.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional
import logging

import storefront.infra.supabase_client as supabase_client
from .errors import CatalogStoreError

logger = logging.getLogger(__name__)

ITEMS_TABLE = "items"
VARIANTS_TABLE = "item_variants"
ORDERS_TABLE = "orders"
ORDER_ITEMS_TABLE = "order_items"

# module storefront.payments.repository
def fetch_items_by_ids(ids: Iterable[Any]) -> List[dict]:
    """
    Lecture batch des articles (id, price).
    - Retourne [] si ids vide, sans requête.
    """
    ids = list(ids)
    if not ids:
        return []
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(ITEMS_TABLE)
            .select("id, price")
            .in_("id", ids)
            .execute()
        )
        return res.data or []
    except Exception as e:
        logger.exception("payments.repository.fetch_items_by_ids failed ids=%s", ids)
        raise CatalogStoreError("items read failed") from e

def fetch_variants_by_ids(ids: Iterable[int]) -> List[dict]:
    """
    Lecture batch des variants (id, item_id, price, stock).
    - Retourne [] si ids vide, sans requête.
    """
    ids = list(ids)
    if not ids:
        return []
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(VARIANTS_TABLE)
            .select("id, item_id, price, stock")
            .in_("id", ids)
            .execute()
        )
        return res.data or []
    except Exception as e:
        logger.exception("payments.repository.fetch_variants_by_ids failed ids=%s", ids)
        raise CatalogStoreError("variants read failed") from e

def insert_order(*, user_id: str, total_cents: int, currency: str) -> str:
    """Insère une commande 'pending' et retourne son id."""
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(ORDERS_TABLE)
            .insert({
                "user_id": user_id,
                "status": "pending",
                "total_cents": total_cents,
                "currency": currency,
            })
            .execute()
        )
        rows = res.data or []
    except Exception as e:
        logger.exception("payments.repository.insert_order failed user_id=%s", user_id)
        raise CatalogStoreError("order insert failed") from e
    if not rows or rows[0].get("id") is None:
        logger.error("payments.repository.insert_order returned no id user_id=%s", user_id)
        raise CatalogStoreError("order insert returned no id")
    return str(rows[0]["id"])

def insert_order_items(rows: List[Dict[str, Any]]) -> None:
    """Insert batch des lignes de commande (une seule requête)."""
    if not rows:
        return
    order_id = rows[0].get("order_id")
    try:
        supabase_client.get_service_supabase().table(ORDER_ITEMS_TABLE).insert(rows).execute()
    except Exception as e:
        logger.exception("payments.repository.insert_order_items failed order_id=%s count=%s", order_id, len(rows))
        raise CatalogStoreError("order items insert failed") from e

def attach_payment_intent(order_id: str, payment_intent_id: str) -> bool:
    """Rattache le payment intent à la commande (retourne True si une ligne est mise à jour)."""
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(ORDERS_TABLE)
            .update({"payment_intent_id": payment_intent_id})
            .eq("id", order_id)
            .execute()
        )
        return len(res.data or []) > 0
    except Exception as e:
        logger.exception("payments.repository.attach_payment_intent failed order_id=%s", order_id)
        raise CatalogStoreError("payment intent link failed") from e

def transition_pending_order(order_id: str, status: str, payment_intent_id: Optional[str] = None) -> Optional[dict]:
    """
    Transition conditionnelle pending -> status, en une seule requête atomique.
    - Filtre: id = order_id ET status = 'pending' (un statut terminal n'est jamais écrasé).
    - payment_intent_id écrit dans le même update: il vient du PaymentIntent unique de la commande
      (complète un lien best-effort raté au checkout).
    - Retourne la ligne mise à jour, ou None si aucune ligne (commande inconnue ou déjà terminale).
    - Échec: aucune écriture partielle, la relivraison Stripe retrouve la commande en 'pending'.
    """
    changes: Dict[str, Any] = {"status": status}
    if payment_intent_id:
        changes["payment_intent_id"] = payment_intent_id
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(ORDERS_TABLE)
            .update(changes)
            .eq("id", order_id)
            .eq("status", "pending")
            .execute()
        )
    except Exception as e:
        logger.exception("payments.repository.transition_pending_order failed order_id=%s status=%s", order_id, status)
        raise CatalogStoreError("order status update failed") from e
    rows = res.data or []
    return rows[0] if rows else None

def get_order_items(order_id: str) -> List[dict]:
    """Lignes figées d'une commande (utilisées pour le récap propriétaire)."""
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(ORDER_ITEMS_TABLE)
            .select("item_id, variant_id, quantity, unit_price_minor, customization")
            .eq("order_id", order_id)
            .execute()
        )
        return res.data or []
    except Exception as e:
        logger.exception("payments.repository.get_order_items failed order_id=%s", order_id)
        raise CatalogStoreError("order items read failed") from e

def list_abandoned_orders(older_than_minutes: int, limit: int = 100) -> List[dict]:
    """
    Commandes 'pending' sans payment_intent_id plus anciennes que le seuil.
    Marqueur des tentatives de checkout abandonnées (visibles admin, jamais relancées automatiquement).
    """
    cutoff = datetime.now(timezone.utc) - timedelta(minutes=older_than_minutes)
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(ORDERS_TABLE)
            .select("id, user_id, status, total_cents, currency, payment_intent_id, created_at")
            .eq("status", "pending")
            .is_("payment_intent_id", "null")
            .lt("created_at", cutoff.isoformat())
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return res.data or []
    except Exception as e:
        logger.exception("payments.repository.list_abandoned_orders failed")
        raise CatalogStoreError("abandoned orders read failed") from e
