"""
Réconciliation des commandes à partir des webhooks Stripe (PaymentIntent).
- Signature vérifiée en premier, sur le body brut; rien n'est lu ni écrit avant.
- Transition pending -> paid|failed|canceled par update conditionnel (status = 'pending').
- Idempotent: replay, doublon ou événement tardif après un état terminal -> accusé de réception, aucun changement.
- Notification propriétaire uniquement sur une vraie transition vers 'paid', en best-effort.
"""
import logging
from typing import Optional

import stripe

from storefront import config
from . import metadata as meta
from . import notifications
from . import repository
from . import stripe_client
from .errors import CatalogStoreError, InvalidSignature, UnexpectedFailure
from .models import OrderStatus, WebhookOutcome

logger = logging.getLogger(__name__)

EVENT_STATUS = {
    "payment_intent.succeeded": OrderStatus.PAID,
    "payment_intent.payment_failed": OrderStatus.FAILED,
    "payment_intent.canceled": OrderStatus.CANCELED,
}

# module storefront.payments.webhook
def verify_event(payload: bytes, sig_header: Optional[str], secret: Optional[str] = None):
    secret = config.STRIPE_WEBHOOK_SECRET if secret is None else secret
    try:
        return stripe_client.verify_and_parse_event(payload, sig_header, secret)
    except (ValueError, stripe.SignatureVerificationError) as e:
        logger.warning("payments.webhook signature verification failed: %s", e)
        raise InvalidSignature(f"Webhook Error: {e}") from e

def reconcile(payload: bytes, sig_header: Optional[str], secret: Optional[str] = None) -> WebhookOutcome:
    """
    Traite un événement Stripe signé.
    - InvalidSignature (400) si la vérification échoue: le store n'est pas touché.
    - UnexpectedFailure (500) si l'update échoue: Stripe relivrera l'événement.
    """
    event = verify_event(payload, sig_header, secret)
    pe = meta.extract_payment_event(event)

    target = EVENT_STATUS.get(pe.type)
    if target is None:
        logger.info("payments.webhook ignored type=%s", pe.type)
        return WebhookOutcome(handled=False, event_type=pe.type)
    if not pe.order_id:
        logger.info("payments.webhook ignored type=%s pi=%s (no order_id metadata)", pe.type, pe.payment_intent_id)
        return WebhookOutcome(handled=False, event_type=pe.type)

    try:
        row = repository.transition_pending_order(pe.order_id, target.value, pe.payment_intent_id)
    except CatalogStoreError as e:
        raise UnexpectedFailure("Internal webhook error") from e

    if row is None:
        # Commande inconnue ou déjà terminale: jamais de régression de statut
        logger.info("payments.webhook no-op type=%s order_id=%s", pe.type, pe.order_id)
        return WebhookOutcome(handled=False, event_type=pe.type, order_id=pe.order_id)

    logger.info("payments.webhook order_id=%s pending -> %s pi=%s", pe.order_id, target.value, pe.payment_intent_id)
    if target is OrderStatus.PAID:
        notifications.notify_order_paid(row)
    return WebhookOutcome(handled=True, event_type=pe.type, order_id=pe.order_id, status=target)
