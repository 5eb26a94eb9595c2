"""
Logique panier pure (pas de Stripe, pas de DB).
"""
from collections.abc import Mapping
from typing import Any, Dict, List, Optional

from .models import CartLine, ItemId

ITEM_ID_KEYS = ("item_id", "id", "itemId")
VARIANT_ID_KEYS = ("variant_id", "variantId")

# module storefront.payments.cart
def _first_present(entry: Mapping, keys) -> Any:
    for key in keys:
        value = entry.get(key)
        if value is not None and value != "":
            return value
    return None

def coerce_quantity(raw: Any) -> int:
    """
    Quantité entière >= 1.
    - Accepte int, float ou chaîne numérique ("2", "2.7" -> 2).
    - Valeur absente, invalide, nulle ou négative -> 1.
    """
    if isinstance(raw, bool):
        return 1
    try:
        qty = int(float(raw))
    except (TypeError, ValueError, OverflowError):
        return 1
    return qty if qty >= 1 else 1

def coerce_variant_id(raw: Any) -> Optional[int]:
    """Identifiant de variant numérique ou None (booléens et chaînes non numériques exclus)."""
    if raw is None or isinstance(raw, bool):
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    if value != value or value in (float("inf"), float("-inf")) or not value.is_integer():
        return None
    return int(value)

def coerce_item_id(raw: Any) -> Optional[ItemId]:
    """
    Identifiant d'article: int, float entier (1.0 -> 1) ou chaîne non vide (strippée).
    Tout le reste (booléen, liste, objet, flottant non entier) -> None.
    """
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw) if raw.is_integer() else None
    if isinstance(raw, str):
        return raw.strip() or None
    return None

def normalize(raw_cart: Any) -> List[CartLine]:
    """
    Transforme un panier client brut en lignes typées.
    - Entrée: liste d'objets {item_id|id|itemId, variant_id|variantId, quantity, customization}.
    - Ignore les entrées sans identifiant d'article (et celles qui ne sont pas des objets).
    - customization est transmise telle quelle (dict), jamais validée ici.
    - Ne lève jamais: une entrée inexploitable donne simplement une liste vide.
    """
    if not isinstance(raw_cart, list):
        return []
    lines: List[CartLine] = []
    for entry in raw_cart:
        if not isinstance(entry, Mapping):
            continue
        item_id = coerce_item_id(_first_present(entry, ITEM_ID_KEYS))
        if item_id is None:
            continue
        customization = entry.get("customization")
        lines.append(CartLine(
            item_id=item_id,
            variant_id=coerce_variant_id(_first_present(entry, VARIANT_ID_KEYS)),
            quantity=coerce_quantity(entry.get("quantity")),
            customization=dict(customization) if isinstance(customization, Mapping) else {},
        ))
    return lines

def to_order_item_rows(order_id: str, priced_lines) -> List[Dict[str, Any]]:
    """
    Construit les lignes order_items (snapshot figé prix/quantité) pour l'insert batch.
    unit_price_minor est sérialisé en chaîne pour ne pas perdre la précision Decimal (colonne numeric).
    """
    return [
        {
            "order_id": order_id,
            "item_id": pl.line.item_id,
            "variant_id": pl.line.variant_id,
            "quantity": pl.line.quantity,
            "unit_price_minor": str(pl.unit_price_minor),
            "customization": pl.line.customization or {},
        }
        for pl in priced_lines
    ]
