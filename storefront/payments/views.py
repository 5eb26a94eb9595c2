import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from storefront import config
from storefront.utils.rate_limit import optional_rate_limit
from storefront.utils.security import require_admin
from . import service as payments_service
from . import webhook as payments_webhook
from .errors import CheckoutError, UnexpectedFailure
from .models import CheckoutRequest, CheckoutResponse, UserIdentity, WebhookAck

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Payments API"])
admin_router = APIRouter(prefix="/admin/orders", tags=["Admin Orders"])

# module storefront.payments.views
@router.post(
    "/checkout",
    response_model=CheckoutResponse,
    dependencies=[Depends(optional_rate_limit(times=config.CHECKOUT_RATE_LIMIT_TIMES, seconds=config.CHECKOUT_RATE_LIMIT_SECONDS))],
)
def create_checkout(body: CheckoutRequest, authorization: Optional[str] = Header(default=None)):
    """
    Crée une commande 'pending' et un PaymentIntent Stripe pour le panier de l'utilisateur.
    - Entrée JSON: { "currency": "eur", "cartItems": [ { "item_id", "variant_id", "quantity", "customization" } ] }
    - En-tête: Authorization: Bearer <token>
    - Réponse: { "clientSecret": "...", "orderId": "..." }
    - Erreurs: 401 non authentifié, 400 panier/variant/stock/montant invalide, 500 inattendu
    """
    try:
        result = payments_service.checkout(authorization, body.cart_items, body.currency)
    except CheckoutError:
        raise
    except Exception as e:
        logger.exception("Erreur create_checkout")
        raise UnexpectedFailure() from e
    return CheckoutResponse(clientSecret=result.client_secret, orderId=result.order_id)

@router.post("/webhook", response_model=WebhookAck, include_in_schema=False)
async def stripe_webhook(request: Request):
    """
    Webhook Stripe (PaymentIntent): réconcilie le statut de la commande.
    - Body brut obligatoire: la signature porte sur les octets exacts.
    - 200 {received: true} pour les événements traités comme ignorés; 400 signature; 500 inattendu.
    """
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature")
    try:
        outcome = await run_in_threadpool(payments_webhook.reconcile, payload, sig_header)
    except CheckoutError:
        raise
    except Exception as e:
        logger.exception("Erreur stripe_webhook")
        raise UnexpectedFailure("Internal webhook error") from e
    logger.debug("payments.views.webhook outcome=%s", outcome)
    return JSONResponse(WebhookAck().model_dump())

@admin_router.get("/abandoned")
def list_abandoned(
    older_than_minutes: Optional[int] = Query(default=None, ge=0),
    user: UserIdentity = Depends(require_admin),
):
    """
    Tentatives de checkout abandonnées: commandes 'pending' sans payment_intent_id.
    Lecture seule: aucune relance automatique.
    """
    orders = payments_service.list_abandoned_checkouts(older_than_minutes)
    return {"orders": orders, "count": len(orders)}
