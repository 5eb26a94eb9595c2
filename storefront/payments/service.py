"""
Cas d'usage 'payments': orchestre identité, panier, pricing, repository et Stripe.

Saga checkout (pas de transaction unique entre le store et Stripe):
  1) authentification     2) normalisation        3) variant obligatoire
  4) pricing (fail-open)  5) re-validation stricte 6) commande 'pending'
  7) lignes (batch)       8) PaymentIntent         9) lien best-effort  10) réponse
Une commande 'pending' sans payment_intent_id est le marqueur d'une tentative abandonnée.
"""
from typing import Any, List, Optional
import logging

from storefront import config
from storefront.auth import service as identity
from . import cart as cart_logic
from . import metadata as meta
from . import pricing
from . import repository
from . import stripe_client
from .errors import (
    CatalogStoreError,
    EmptyCart,
    InsufficientStock,
    InvalidAmount,
    MissingVariant,
    Unauthenticated,
    UnexpectedFailure,
    VariantItemMismatch,
    VariantNotFound,
)
from .models import CartLine, CheckoutResult, PricingResult, UserIdentity

logger = logging.getLogger(__name__)

def normalize_currency(currency: Optional[str]) -> str:
    return (str(currency or "").strip() or config.DEFAULT_CURRENCY).lower()

def intent_idempotency_key(order_id: str) -> str:
    return f"checkout-order-{order_id}"

def authenticate(auth_header: Optional[str]) -> UserIdentity:
    user = identity.identity_from_header(auth_header)
    if user is None:
        raise Unauthenticated("Unauthorized")
    return user

def require_variants(lines: List[CartLine]) -> None:
    # Le catalogue ne modélise prix et stock qu'au niveau variant
    if any(line.variant_id is None for line in lines):
        raise MissingVariant()

def validate_against_catalog(lines: List[CartLine], priced: PricingResult) -> None:
    """
    Passe de validation stricte, distincte du pricing (qui price à 0 un variant inconnu).
    C'est elle qui bloque la commande; elle réutilise les maps déjà résolues, sans requête.
    """
    for line in lines:
        variant = priced.variants_by_id.get(line.variant_id)
        if variant is None:
            raise VariantNotFound(f"Variant {line.variant_id} introuvable")
        if str(variant.item_id) != str(line.item_id):
            raise VariantItemMismatch()
        # Stock consultatif: pas de réservation, deux checkouts concurrents peuvent passer
        if variant.stock is not None and variant.stock < line.quantity:
            raise InsufficientStock()

def checkout(auth_header: Optional[str], raw_cart: Any, currency: Optional[str] = None) -> CheckoutResult:
    """
    Transforme un panier client en commande 'pending' + PaymentIntent Stripe.
    - Erreurs de validation (401/400) levées avant toute écriture.
    - Échec store/Stripe après écriture: journalisé avec order_id, remonté en UnexpectedFailure générique.
    Retour: CheckoutResult(client_secret, order_id)
    """
    user = authenticate(auth_header)
    currency = normalize_currency(currency)

    lines = cart_logic.normalize(raw_cart)
    if not lines:
        raise EmptyCart("Cart is empty")
    require_variants(lines)

    try:
        priced = pricing.resolve(lines, currency=currency)
    except CatalogStoreError as e:
        raise UnexpectedFailure() from e
    if priced.total_minor_units <= 0:
        raise InvalidAmount("Invalid amount")

    validate_against_catalog(lines, priced)

    order_id: Optional[str] = None
    try:
        order_id = repository.insert_order(
            user_id=user.id,
            total_cents=priced.total_minor_units,
            currency=currency,
        )
        repository.insert_order_items(cart_logic.to_order_item_rows(order_id, priced.lines))
        intent = stripe_client.create_intent(
            amount_minor=priced.total_minor_units,
            currency=currency,
            metadata=meta.make_metadata(order_id, user.id),
            idempotency_key=intent_idempotency_key(order_id),
        )
    except Exception as e:
        logger.exception(
            "payments.service.checkout failed order_id=%s user_id=%s total=%s",
            order_id, user.id, priced.total_minor_units,
        )
        raise UnexpectedFailure() from e

    link_payment_intent(order_id, intent["id"])
    logger.info(
        "payments.service.checkout order_id=%s user_id=%s total=%s currency=%s lines=%s",
        order_id, user.id, priced.total_minor_units, currency, len(lines),
    )
    return CheckoutResult(client_secret=intent["client_secret"], order_id=order_id)

def link_payment_intent(order_id: str, payment_intent_id: str) -> None:
    """
    Best-effort: un échec ne fait pas échouer le checkout.
    La commande reste réconciliable via metadata.order_id de l'événement Stripe.
    """
    try:
        if not repository.attach_payment_intent(order_id, payment_intent_id):
            logger.warning("payments.service.link_payment_intent no row updated order_id=%s pi=%s", order_id, payment_intent_id)
    except Exception:
        logger.warning("payments.service.link_payment_intent failed order_id=%s pi=%s", order_id, payment_intent_id, exc_info=True)

def list_abandoned_checkouts(older_than_minutes: Optional[int] = None) -> List[dict]:
    """Commandes 'pending' sans intent, plus anciennes que le seuil (lecture seule, pas de relance)."""
    minutes = config.ABANDONED_ORDER_MINUTES if older_than_minutes is None else max(0, older_than_minutes)
    try:
        return repository.list_abandoned_orders(minutes)
    except CatalogStoreError as e:
        raise UnexpectedFailure("Lecture des commandes impossible") from e
