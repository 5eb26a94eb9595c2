"""
Adaptateur Stripe: centralise les appels et la configuration Stripe.
"""
from typing import Any, Dict, Optional

import stripe

from storefront import config

# module storefront.payments.stripe_client
def require_stripe():
    """
    Prépare et retourne le module stripe prêt à l'emploi.
    - Configure stripe.api_key via STRIPE_SECRET_KEY si disponible.
    - Borne les appels réseau (timeout + retries). Les retries Stripe réutilisent l'idempotency key.
    - En absence de clé, les appels Stripe échoueront côté SDK (ex: No API key provided).
    """
    if config.STRIPE_SECRET_KEY:
        stripe.api_key = config.STRIPE_SECRET_KEY
    stripe.max_network_retries = config.STRIPE_MAX_NETWORK_RETRIES
    if not isinstance(getattr(stripe, "default_http_client", None), stripe.RequestsClient):
        stripe.default_http_client = stripe.RequestsClient(timeout=config.STRIPE_TIMEOUT_SECONDS)
    return stripe

def create_intent(
    *,
    amount_minor: int,
    currency: str,
    metadata: Dict[str, str],
    idempotency_key: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Crée un PaymentIntent Stripe.
    - amount_minor: montant en unités mineures (centimes)
    - metadata: ex {"order_id": "...", "user_id": "..."} (corrélation côté webhook)
    - idempotency_key: une même commande ne produit jamais deux intents
    Retour: {"id": "pi_...", "client_secret": "pi_..._secret_..."}
    """
    require_stripe()
    intent = stripe.PaymentIntent.create(
        amount=amount_minor,
        currency=currency,
        automatic_payment_methods={"enabled": True},
        metadata=metadata,
        idempotency_key=idempotency_key,
    )
    return {"id": intent["id"], "client_secret": intent["client_secret"]}

def verify_and_parse_event(payload: bytes, sig_header: Optional[str], secret: Optional[str]):
    """
    Valide la signature Stripe sur le body brut et retourne l'événement.
    - Lève stripe.SignatureVerificationError si signature invalide
    - Lève ValueError si payload invalide, ou si l'en-tête/secret manquent (rien n'est accepté sans vérification)
    """
    if not secret:
        raise ValueError("STRIPE_WEBHOOK_SECRET manquant")
    if not sig_header:
        raise ValueError("Stripe-Signature manquant")
    require_stripe()
    return stripe.Webhook.construct_event(payload, sig_header, secret)
