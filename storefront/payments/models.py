"""
Types du flux checkout/paiements.
- Dataclasses pour le domaine (lignes de panier, lignes pricées, commande, identité, événement).
- Modèles pydantic pour le contrat HTTP (/checkout, /webhook).
"""
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

ItemId = Union[int, str]


class OrderStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    CANCELED = "canceled"


@dataclass(frozen=True)
class UserIdentity:
    id: str
    email: Optional[str] = None
    role: str = "user"


@dataclass(frozen=True)
class CartLine:
    item_id: ItemId
    variant_id: Optional[int]
    quantity: int
    customization: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class PricedLine:
    line: CartLine
    # Prix unitaire en unités mineures, non arrondi (peut contenir des fractions de centime)
    unit_price_minor: Decimal
    # None = stock non suivi pour ce variant
    available_stock: Optional[int] = None

    @property
    def subtotal_minor(self) -> Decimal:
        return self.unit_price_minor * self.line.quantity


@dataclass(frozen=True)
class CatalogVariant:
    id: int
    item_id: ItemId
    price: Decimal
    stock: Optional[int]


@dataclass
class PricingResult:
    total_minor_units: int
    items_by_id: Dict[str, Decimal] = field(default_factory=dict)
    variants_by_id: Dict[int, CatalogVariant] = field(default_factory=dict)
    lines: List[PricedLine] = field(default_factory=list)


@dataclass(frozen=True)
class CheckoutResult:
    client_secret: str
    order_id: str


@dataclass(frozen=True)
class PaymentEvent:
    type: str
    payment_intent_id: Optional[str]
    order_id: Optional[str]


@dataclass(frozen=True)
class WebhookOutcome:
    handled: bool
    event_type: str
    order_id: Optional[str] = None
    status: Optional[OrderStatus] = None


# --- Contrat HTTP ---

class CheckoutRequest(BaseModel):
    """Body de POST /checkout. Le panier reste brut: la normalisation est faite côté service."""
    model_config = ConfigDict(populate_by_name=True)

    currency: Optional[str] = None
    cart_items: Any = Field(default=None, alias="cartItems")


class CheckoutResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    client_secret: str = Field(alias="clientSecret")
    order_id: str = Field(alias="orderId")


class WebhookAck(BaseModel):
    received: bool = True
