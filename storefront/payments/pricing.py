"""
Résolution des prix côté serveur.
- Les prix du catalogue (colonnes price, en unités majeures) font foi; les prix envoyés par le client sont ignorés.
- Exactement deux lectures batch (items, variants), quelle que soit la taille du panier.
- Fail-open: un article/variant inconnu est pricé à 0 ici; la validation stricte est faite par le service.
- Arrondi unique en fin de calcul (jamais de somme de montants déjà arrondis).
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, List, Optional

from . import repository
from .models import CartLine, CatalogVariant, PricedLine, PricingResult

# Devises sans décimales côté Stripe: 1 unité majeure = 1 unité mineure
ZERO_DECIMAL_CURRENCIES = frozenset({
    "bif", "clp", "djf", "gnf", "jpy", "kmf", "krw", "mga",
    "pyg", "rwf", "ugx", "vnd", "vuv", "xaf", "xof", "xpf",
})

_ZERO = Decimal(0)

# module storefront.payments.pricing
def minor_unit_factor(currency: Optional[str]) -> int:
    return 1 if (currency or "").lower() in ZERO_DECIMAL_CURRENCIES else 100

def to_decimal(value: Any) -> Decimal:
    """Convertit un prix catalogue (str|int|float|None) en Decimal; 0 si invalide."""
    if value is None or isinstance(value, bool):
        return _ZERO
    try:
        # str() pour éviter d'hériter de l'imprécision binaire d'un float
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return _ZERO
    return result if result.is_finite() else _ZERO

def _optional_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None

def round_minor(amount: Decimal) -> int:
    return int(amount.quantize(Decimal(1), rounding=ROUND_HALF_UP))

def total_minor_units(priced_lines: List[PricedLine]) -> int:
    """Somme à pleine précision puis arrondi unique, bornée à 0."""
    total = sum((pl.subtotal_minor for pl in priced_lines), _ZERO)
    return max(0, round_minor(total))

def resolve(lines: List[CartLine], currency: Optional[str] = None) -> PricingResult:
    """
    Calcule le total (unités mineures) et retourne les maps résolues pour la re-validation.
    - lines vide: total 0 sans requête.
    - Prix unitaire effectif: prix du variant si variant_id présent, sinon prix de base de l'article.
    - CatalogStoreError propagée si le store échoue (le service la traduit en UnexpectedFailure).
    """
    if not lines:
        return PricingResult(total_minor_units=0)

    factor = minor_unit_factor(currency)
    item_ids = list(dict.fromkeys(line.item_id for line in lines))
    variant_ids = list(dict.fromkeys(line.variant_id for line in lines if line.variant_id is not None))

    items_by_id: Dict[str, Decimal] = {
        str(row.get("id")): to_decimal(row.get("price"))
        for row in repository.fetch_items_by_ids(item_ids)
    }
    variants_by_id: Dict[int, CatalogVariant] = {}
    for row in repository.fetch_variants_by_ids(variant_ids):
        vid = _optional_int(row.get("id"))
        if vid is None:
            continue
        variants_by_id[vid] = CatalogVariant(
            id=vid,
            item_id=row.get("item_id"),
            price=to_decimal(row.get("price")),
            stock=_optional_int(row.get("stock")),
        )

    priced: List[PricedLine] = []
    for line in lines:
        stock = None
        if line.variant_id is not None:
            variant = variants_by_id.get(line.variant_id)
            unit_price = variant.price if variant else _ZERO
            stock = variant.stock if variant else None
        else:
            unit_price = items_by_id.get(str(line.item_id), _ZERO)
        priced.append(PricedLine(line=line, unit_price_minor=unit_price * factor, available_stock=stock))

    return PricingResult(
        total_minor_units=total_minor_units(priced),
        items_by_id=items_by_id,
        variants_by_id=variants_by_id,
        lines=priced,
    )
