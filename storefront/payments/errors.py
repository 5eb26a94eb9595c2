"""
Taxonomie d'erreurs du checkout et du webhook.
Chaque erreur porte un code stable, le status HTTP associé et un message exploitable par l'appelant.
"""
from enum import Enum


class ErrorCode(str, Enum):
    UNAUTHENTICATED = "Unauthenticated"
    EMPTY_CART = "EmptyCart"
    MISSING_VARIANT = "MissingVariant"
    VARIANT_NOT_FOUND = "VariantNotFound"
    VARIANT_ITEM_MISMATCH = "VariantItemMismatch"
    INSUFFICIENT_STOCK = "InsufficientStock"
    INVALID_AMOUNT = "InvalidAmount"
    INVALID_SIGNATURE = "InvalidSignature"
    UNEXPECTED_FAILURE = "UnexpectedFailure"


class CheckoutError(Exception):
    code: ErrorCode = ErrorCode.UNEXPECTED_FAILURE
    status_code: int = 500
    default_message = "Erreur inattendue"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code.value}


class Unauthenticated(CheckoutError):
    code = ErrorCode.UNAUTHENTICATED
    status_code = 401
    default_message = "Non authentifié"


class EmptyCart(CheckoutError):
    code = ErrorCode.EMPTY_CART
    status_code = 400
    default_message = "Panier vide"


class MissingVariant(CheckoutError):
    code = ErrorCode.MISSING_VARIANT
    status_code = 400
    default_message = "Chaque article doit inclure un variant_id."


class VariantNotFound(CheckoutError):
    code = ErrorCode.VARIANT_NOT_FOUND
    status_code = 400
    default_message = "Variant introuvable"


class VariantItemMismatch(CheckoutError):
    code = ErrorCode.VARIANT_ITEM_MISMATCH
    status_code = 400
    default_message = "Variant et produit incompatibles"


class InsufficientStock(CheckoutError):
    code = ErrorCode.INSUFFICIENT_STOCK
    status_code = 400
    default_message = "Stock insuffisant pour un des variants"


class InvalidAmount(CheckoutError):
    code = ErrorCode.INVALID_AMOUNT
    status_code = 400
    default_message = "Montant invalide"


class InvalidSignature(CheckoutError):
    code = ErrorCode.INVALID_SIGNATURE
    status_code = 400
    default_message = "Signature webhook invalide"


class UnexpectedFailure(CheckoutError):
    code = ErrorCode.UNEXPECTED_FAILURE
    status_code = 500
    default_message = "Checkout failed"


class CatalogStoreError(Exception):
    """Échec d'accès au store (Supabase/PostgREST). Interne: jamais exposé tel quel au client."""
