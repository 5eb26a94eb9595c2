"""
Notification best-effort au propriétaire de la boutique (récap de commande payée).
- POST JSON vers OWNER_NOTIFY_WEBHOOK_URL (Slack/Discord/Make, etc.) avec un timeout borné.
- Ne lève jamais: un échec est journalisé, la réconciliation reste un succès.
"""
import logging
from typing import Any, Dict, List, Optional

import httpx

from storefront import config
from . import repository

logger = logging.getLogger(__name__)

# module storefront.payments.notifications
def build_order_recap(order: Dict[str, Any], items: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {
        "event": "order.paid",
        "order_id": str(order.get("id")),
        "user_id": order.get("user_id"),
        "total_cents": order.get("total_cents"),
        "currency": order.get("currency"),
        "payment_intent_id": order.get("payment_intent_id"),
        "items": [
            {
                "item_id": it.get("item_id"),
                "variant_id": it.get("variant_id"),
                "quantity": it.get("quantity"),
                "unit_price_minor": it.get("unit_price_minor"),
                "customization": it.get("customization") or {},
            }
            for it in items
        ],
    }

def notify_order_paid(order: Dict[str, Any], url: Optional[str] = None) -> bool:
    """Envoie le récap; retourne True si le destinataire a répondu 2xx."""
    url = url if url is not None else config.OWNER_NOTIFY_WEBHOOK_URL
    order_id = order.get("id")
    if not url:
        logger.debug("payments.notifications skipped (no OWNER_NOTIFY_WEBHOOK_URL) order_id=%s", order_id)
        return False
    try:
        items = repository.get_order_items(str(order_id))
        resp = httpx.post(url, json=build_order_recap(order, items), timeout=config.OWNER_NOTIFY_TIMEOUT_SECONDS)
        resp.raise_for_status()
        logger.info("payments.notifications order recap sent order_id=%s", order_id)
        return True
    except Exception:
        logger.warning("payments.notifications order recap failed order_id=%s", order_id, exc_info=True)
        return False
