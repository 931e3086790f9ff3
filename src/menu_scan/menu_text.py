"""Deterministic menu-text parser used when LLM extraction is unavailable."""

from __future__ import annotations

import logging
import math
import re
from typing import Any, Dict, List, Optional

from .models import Dish
from .normalizer import normalize_dish

logger = logging.getLogger(__name__)

# A price closes the line: "Caesar Salad ..... 12,50 €", "Burger $14", "Soup 7.5".
PRICE_RE = re.compile(
    r"(?P<prefix>[€$£])?\s*(?<![\d.,])(?P<amount>\d{1,3}(?:[.,]\d{1,2})?)\s*(?P<suffix>€|eur|\$|usd|£|gbp)?\s*$",
    re.IGNORECASE,
)
SECTION_RE = re.compile(r"^[A-ZÀ-Ü][A-ZÀ-Ü\s\-&/']{3,}$")
BULLET_RE = re.compile(r"[·•]+")
TITLE_TRAILER_RE = re.compile(r"[\s.\-–•:]+$")
CURRENCY_NAMES = {"eur": "€", "usd": "$", "gbp": "£"}

BASELINE_MACROS = (33, 34, 33)
PROTEIN_HINT_RE = re.compile(r"chicken|beef|fish|tofu|legumes?|eggs?|salmon|tuna|lentils?")
CARB_HINT_RE = re.compile(r"pasta|rice|bread|potato|quinoa|tortilla|noodles?")
FAT_HINT_RE = re.compile(r"fried|cream|butter|oil|cheese|mayo")


def _clean_lines(text: str) -> List[str]:
    text = BULLET_RE.sub(" ", text.replace("\r", ""))
    lines = (re.sub(r"[ \t]{2,}", " ", line).strip() for line in text.split("\n"))
    return [line for line in lines if line]


def _match_price(line: str) -> Optional[re.Match[str]]:
    match = PRICE_RE.search(line)
    # A bare number with nothing before it is a quantity or page number, not a dish.
    if match is None or not line[: match.start()].strip():
        return None
    return match


def _currency(match: re.Match[str]) -> Optional[str]:
    symbol = match.group("prefix") or match.group("suffix")
    if not symbol:
        return None
    return CURRENCY_NAMES.get(symbol.lower(), symbol)


def estimate_macro_percentages(text: str) -> Dict[str, int]:
    """Baseline 33/34/33 split nudged by keywords, rounded to whole percents summing to 100."""

    protein, carbs, fat = BASELINE_MACROS
    lowered = text.lower()
    if PROTEIN_HINT_RE.search(lowered):
        protein += 7
    if CARB_HINT_RE.search(lowered):
        carbs += 10
    if FAT_HINT_RE.search(lowered):
        fat += 8
    total = protein + carbs + fat
    protein_pct = math.floor(protein / total * 100 + 0.5)
    carbs_pct = math.floor(carbs / total * 100 + 0.5)
    return {"protein": protein_pct, "carbs": carbs_pct, "fat": 100 - protein_pct - carbs_pct}


def extract_dishes_from_text(menu_text: Any) -> List[Dish]:
    if not menu_text or not isinstance(menu_text, str):
        return []

    lines = _clean_lines(menu_text)
    records: List[Dict[str, Any]] = []
    section: Optional[str] = None
    idx = 0
    while idx < len(lines):
        line = lines[idx]
        idx += 1
        if SECTION_RE.match(line):
            section = re.sub(r"\s+", " ", line).strip()
            continue
        match = _match_price(line)
        if match is None:
            continue

        title = TITLE_TRAILER_RE.sub("", line[: match.start()]).strip() or f"Dish {len(records) + 1}"
        description_lines: List[str] = []
        while idx < len(lines) and not _match_price(lines[idx]) and not SECTION_RE.match(lines[idx]):
            description_lines.append(lines[idx])
            idx += 1
        description = " ".join(description_lines)

        records.append(
            {
                "name": title,
                "description": description,
                "price": float(match.group("amount").replace(",", ".")),
                "currency": _currency(match),
                "section": section,
                "macros": estimate_macro_percentages(f"{title} {description}"),
                "macros_estimated": True,
            }
        )

    dishes = [normalize_dish(record, position) for position, record in enumerate(records)]
    logger.info("Parsed %s dishes from menu text", len(dishes))
    return dishes
