"""
Sérialisation/désérialisation des métadonnées Stripe (order_id, user_id).
"""
from typing import Any, Dict

from .models import PaymentEvent

# module storefront.payments.metadata
def make_metadata(order_id: str, user_id: str) -> Dict[str, str]:
    """
    Métadonnées attachées au PaymentIntent.
    Stripe n'accepte que des chaînes: les ids sont convertis.
    Le webhook retrouve la commande via order_id, sans recherche inverse par payment_intent_id.
    """
    return {"order_id": str(order_id), "user_id": str(user_id)}

def _as_dict(obj: Any) -> Dict[str, Any]:
    if isinstance(obj, dict):
        return obj
    # stripe.StripeObject expose to_dict(); sinon on tente la conversion directe
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    try:
        return dict(obj or {})
    except (TypeError, ValueError):
        return {}

def extract_payment_event(event: Any) -> PaymentEvent:
    """
    Réduit un event Stripe (webhook) à {type, payment_intent_id, order_id}.
    - Attend event.data.object = PaymentIntent avec metadata.order_id
    - Tolérant: champs absents -> None
    """
    event = _as_dict(event)
    data_obj = _as_dict(_as_dict(event.get("data")).get("object"))
    meta = _as_dict(data_obj.get("metadata"))
    order_id = meta.get("order_id")
    return PaymentEvent(
        type=str(event.get("type") or ""),
        payment_intent_id=data_obj.get("id"),
        order_id=str(order_id) if order_id not in (None, "") else None,
    )
