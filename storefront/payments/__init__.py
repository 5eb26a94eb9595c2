"""
Module 'payments' (feature-first): point d'entrée public.
Réunit normalisation panier, pricing, repository BD, client Stripe, checkout et réconciliation webhook.
"""

from .cart import normalize, coerce_item_id, coerce_quantity, coerce_variant_id, to_order_item_rows
from .pricing import resolve, total_minor_units, minor_unit_factor
from .metadata import make_metadata, extract_payment_event
from .stripe_client import require_stripe, create_intent, verify_and_parse_event
from .service import checkout, list_abandoned_checkouts
from .webhook import reconcile

__all__ = [
    # cart
    "normalize",
    "coerce_item_id",
    "coerce_quantity",
    "coerce_variant_id",
    "to_order_item_rows",
    # pricing
    "resolve",
    "total_minor_units",
    "minor_unit_factor",
    # metadata
    "make_metadata",
    "extract_payment_event",
    # stripe
    "require_stripe",
    "create_intent",
    "verify_and_parse_event",
    # services
    "checkout",
    "list_abandoned_checkouts",
    "reconcile",
]
