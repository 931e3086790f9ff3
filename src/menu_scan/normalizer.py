"""Coerces heterogeneous dish records into canonical `Dish` objects."""

from __future__ import annotations

import logging
import math
import re
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from .models import Dish, Macros, PortionSize

logger = logging.getLogger(__name__)

NAME_KEYS = ("name", "title", "dish", "dishName", "dish_name")
DESCRIPTION_KEYS = ("description", "desc", "details")
INGREDIENT_KEYS = ("ingredients", "ingredient_list", "ingredientList")
PRICE_KEYS = ("price", "cost", "priceValue")
CALORIE_KEYS = ("calories", "kcal", "energy", "Calories (kcal)")
PORTION_KEYS = ("portionSize", "portion_size", "portion")
MACRO_CONTAINER_KEYS = ("macros", "nutrition", "macronutrients")
PROTEIN_KEYS = ("protein", "proteins", "protein_g", "proteinG", "Protein (g)")
CARB_KEYS = ("carbs", "carbohydrates", "carbs_g", "carbsG", "Carbohydrate (g)")
FAT_KEYS = ("fat", "fats", "lipids", "fat_g", "fatG", "Total Lipid/Fat (g)")

CURRENCY_SYMBOLS = {"€": "€", "$": "$", "£": "£", "eur": "€", "usd": "$", "gbp": "£"}
PRICE_RE = re.compile(r"(\d+(?:[.,]\d+)?)")
NUMBER_RE = re.compile(r"-?\d+(?:[.,]\d+)?")


def _first_present(record: Mapping[str, Any], keys: Sequence[str]) -> Any:
    for key in keys:
        value = record.get(key)
        if value not in (None, "", [], {}):
            return value
    return None


def _coerce_float(value: Any) -> Optional[float]:
    """Float coercion that skips placeholders such as "N/A" or "12g"-style suffixes."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif not isinstance(value, str):
        return None
    else:
        match = NUMBER_RE.search(str(value))
        if not match:
            return None
        number = float(match.group(0).replace(",", "."))
    if not math.isfinite(number):
        return None
    return number


def parse_price(value: Any) -> tuple[Optional[float], Optional[str]]:
    """Parse `12.5`, `"€12,50"` or `"9.99 USD"` into `(amount, currency_symbol)`."""

    if value is None or isinstance(value, bool):
        return None, None
    if isinstance(value, (int, float)):
        return (float(value) if math.isfinite(value) and value >= 0 else None), None
    if not isinstance(value, str):
        return None, None

    text = value.strip().lower()
    currency = next((symbol for token, symbol in CURRENCY_SYMBOLS.items() if token in text), None)
    match = PRICE_RE.search(text)
    if not match:
        return None, currency
    return float(match.group(1).replace(",", ".")), currency


def _parse_ingredients(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, Iterable):
        return ", ".join(str(item).strip() for item in value if str(item).strip())
    return str(value)


def _parse_macros(record: Mapping[str, Any]) -> Optional[Macros]:
    container = _first_present(record, MACRO_CONTAINER_KEYS)
    source: Mapping[str, Any] = container if isinstance(container, Mapping) else record

    protein = _coerce_float(_first_present(source, PROTEIN_KEYS))
    carbs = _coerce_float(_first_present(source, CARB_KEYS))
    fat = _coerce_float(_first_present(source, FAT_KEYS))
    if protein is None or carbs is None or fat is None:
        return None
    if min(protein, carbs, fat) < 0:
        return None
    return Macros(protein=protein, carbs=carbs, fat=fat)


def _parse_portion(value: Any) -> Optional[PortionSize]:
    if value is None:
        return None
    try:
        return PortionSize(str(value).strip().lower())
    except ValueError:
        return None


def _parse_tags(value: Any) -> List[str]:
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, Iterable):
        return []
    return [str(tag).strip().lower() for tag in value if str(tag).strip()]


def normalize_dish(raw: Any, position: int = 0) -> Dish:
    """Build a canonical `Dish` from a loosely-shaped record. Never raises on bad fields."""

    if isinstance(raw, Dish):
        return raw
    if not isinstance(raw, Mapping):
        raw = {"name": str(raw)} if raw else {}

    name = str(_first_present(raw, NAME_KEYS) or f"Dish {position + 1}").strip()
    price, currency = parse_price(_first_present(raw, PRICE_KEYS))
    explicit_currency = raw.get("currency")

    calories = _coerce_float(_first_present(raw, CALORIE_KEYS))
    nutrition = raw.get("nutrition")
    if calories is None and isinstance(nutrition, Mapping):
        calories = _coerce_float(_first_present(nutrition, CALORIE_KEYS))

    return Dish(
        name=name,
        description=str(_first_present(raw, DESCRIPTION_KEYS) or "").strip(),
        ingredients=_parse_ingredients(_first_present(raw, INGREDIENT_KEYS)),
        price=price,
        currency=str(explicit_currency) if explicit_currency else currency,
        section=str(raw["section"]).strip() if raw.get("section") else None,
        calories=calories,
        macros=_parse_macros(raw),
        macros_estimated=bool(raw.get("macros_estimated") or raw.get("macrosEstimated")),
        portion_size=_parse_portion(_first_present(raw, PORTION_KEYS)),
        tags=_parse_tags(raw.get("tags") or []),
        position=position,
    )


def normalize_dishes(records: Optional[Iterable[Any]]) -> List[Dish]:
    if not records:
        return []
    dishes = [normalize_dish(record, idx) for idx, record in enumerate(records)]
    logger.debug("Normalized %s dish records", len(dishes))
    return dishes
