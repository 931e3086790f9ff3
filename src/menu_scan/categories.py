"""Keyword-only Recovery / Healthy / Comforting labelling with a diverse top 3.

Profile and context are ignored here; this is the lightweight mode that runs
without the contextual scorer.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Set

from .keywords import contains_any
from .models import Dish
from .normalizer import normalize_dishes

logger = logging.getLogger(__name__)


class Category(str, Enum):
    RECOVERY = "Recovery"
    HEALTHY = "Healthy"
    COMFORTING = "Comforting"


LABEL_PRIORITY = (Category.RECOVERY, Category.HEALTHY, Category.COMFORTING)

PROTEIN_KEYWORDS = (
    "chicken", "turkey", "beef", "lamb", "pork", "salmon", "tuna", "cod", "seabass",
    "shrimp", "prawns", "seafood", "tofu", "tempeh", "seitan", "eggs", "lentils",
    "chickpeas", "beans", "edamame", "quinoa",
    "poulet", "dinde", "boeuf", "agneau", "porc", "saumon", "thon", "cabillaud",
    "crevettes", "fruits de mer", "oeuf", "lentilles", "pois chiches", "haricots",
)
COOKING_METHOD_KEYWORDS = (
    "grilled", "roasted", "baked", "oven", "seared", "plancha",
    "rôti", "grillé", "au four", "poêlé", "braisé",
)
CREAMY_KEYWORDS = (
    "cream", "creamy", "cheese", "cheesy", "butter", "béchamel",
    "crème", "fromage", "beurre",
)
VEG_FORWARD_KEYWORDS = (
    "salad", "bowl", "quinoa", "couscous", "tabbouleh", "roasted vegetables", "hummus",
    "avocado", "olive oil", "zucchini", "eggplant", "greens", "spinach", "kale", "poke",
    "salade", "taboulé", "légumes rôtis", "houmous", "avocat", "huile d'olive",
    "courgette", "aubergine", "épinards",
)
LIGHT_KEYWORDS = ("light", "fresh", "seasonal", "léger", "frais", "de saison")
INDULGENT_KEYWORDS = (
    "fried", "crispy", "creamy", "cheesy", "buttery", "bbq", "burger", "pizza", "pasta",
    "lasagna", "gratin", "ribs", "stew", "braised", "mayo", "béchamel", "quesadilla", "birria",
    "frit", "croquant", "crémeux", "fromage", "beurre", "pâtes", "lasagnes", "ragout", "braisé",
)
# Cues strong enough to veto Recovery even when a lean protein is present.
RECOVERY_VETO_KEYWORDS = ("burger", "ribs", "fried", "crispy", "creamy", "cheesy", "mayo", "béchamel")

BASE_SCORE = 5
MIN_CATEGORY_SCORE, MAX_CATEGORY_SCORE = -2, 3
TOP_N = 3


@dataclass(frozen=True)
class CategoryScore:
    score: int
    reasons: tuple[str, ...] = ()


@dataclass(frozen=True)
class LabeledDish:
    dish: Dish
    label: Category
    score: int
    reasons: List[str]
    category_scores: Dict[str, int] = field(default_factory=dict)

    @property
    def title(self) -> str:
        return self.dish.name


@dataclass
class CategoryResult:
    top3: List[LabeledDish] = field(default_factory=list)
    all: List[LabeledDish] = field(default_factory=list)


def _capped(score: int, reasons: List[str]) -> CategoryScore:
    return CategoryScore(max(MIN_CATEGORY_SCORE, min(MAX_CATEGORY_SCORE, score)), tuple(reasons))


def score_recovery(text: str) -> CategoryScore:
    has_protein = contains_any(text, PROTEIN_KEYWORDS)
    has_method = contains_any(text, COOKING_METHOD_KEYWORDS) or "protein" in text or "protéine" in text
    if has_protein and has_method and not contains_any(text, RECOVERY_VETO_KEYWORDS):
        reasons = ["main protein"]
        if contains_any(text, COOKING_METHOD_KEYWORDS):
            reasons.append("grilled / roasted")
        return _capped(2, reasons)
    return _capped(0, [])


def score_healthy(text: str) -> CategoryScore:
    if contains_any(text, INDULGENT_KEYWORDS):
        return _capped(0, [])
    score, reasons = 0, []
    if contains_any(text, VEG_FORWARD_KEYWORDS):
        score += 2
        reasons.append("veg-forward / bowl")
    if contains_any(text, LIGHT_KEYWORDS):
        score += 1
        reasons.append("light / fresh")
    return _capped(score, reasons)


def score_comforting(text: str) -> CategoryScore:
    if not contains_any(text, INDULGENT_KEYWORDS):
        return _capped(0, [])
    reasons = ["comfort / indulgent"]
    if contains_any(text, CREAMY_KEYWORDS):
        reasons.append("creamy / cheesy")
    return _capped(2, reasons)


CATEGORY_SCORERS = (
    (Category.RECOVERY, score_recovery, "protein-focused"),
    (Category.HEALTHY, score_healthy, "veg-forward / lighter prep"),
    (Category.COMFORTING, score_comforting, "indulgent / richer prep"),
)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def label_dish(dish: Dish) -> LabeledDish:
    text = dish.search_text
    results = {category: (scorer(text), tail) for category, scorer, tail in CATEGORY_SCORERS}
    category_scores = {category.value: result.score for category, (result, _) in results.items()}

    for category in LABEL_PRIORITY:
        result, tail = results[category]
        if result.score > 0:
            score = max(1, min(10, _round_half_up(BASE_SCORE + result.score + 0.5)))
            reasons = list(dict.fromkeys([*result.reasons, tail]))[:3]
            return LabeledDish(dish, category, score, reasons, category_scores)
    return LabeledDish(dish, Category.HEALTHY, BASE_SCORE, ["balanced option"], category_scores)


def _alternate(source: LabeledDish, label: Category, attempt: int) -> LabeledDish:
    suffix = " (Alt)" if attempt == 1 else f" (Alt {attempt})"
    dish = source.dish.model_copy(update={"name": f"{source.dish.name}{suffix}"})
    return LabeledDish(
        dish=dish,
        label=label,
        score=max(1, source.score - 1),
        reasons=[f"{label.value} alternative"],
        category_scores=dict(source.category_scores),
    )


def select_diverse_top3(ranked: List[LabeledDish]) -> List[LabeledDish]:
    """One dish per label in priority order, then backfill, then alternates."""

    if not ranked:
        return []

    picks: List[LabeledDish] = []
    for label in LABEL_PRIORITY:
        best: Optional[LabeledDish] = next((item for item in ranked if item.label is label), None)
        if best is not None:
            picks.append(best)

    used_titles: Set[str] = {item.title for item in picks}
    for item in ranked:
        if len(picks) >= TOP_N:
            break
        if item.title in used_titles:
            continue
        picks.append(item)
        used_titles.add(item.title)

    source = max(picks, key=ranked.index)
    attempt = 0
    while len(picks) < TOP_N:
        attempt += 1
        used_labels = {item.label for item in picks}
        label = next(candidate for candidate in LABEL_PRIORITY if candidate not in used_labels)
        picks.append(_alternate(source, label, attempt))
    return picks


def score_and_label(dishes: Optional[Iterable[Any]]) -> CategoryResult:
    labeled = [label_dish(dish) for dish in normalize_dishes(dishes)]
    labeled.sort(key=lambda item: (-item.score, item.title.casefold()))
    top3 = select_diverse_top3(labeled)
    logger.debug("Category top3: %s", [(item.title, item.label.value, item.score) for item in top3])
    return CategoryResult(top3=top3, all=labeled)
