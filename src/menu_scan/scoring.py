"""Six-factor contextual scorer.

Each factor lands in [0, 1]; `score_item` combines them with `SCORE_WEIGHTS`
into a raw 0-100 score plus up to three short reasons for the UI badges.
Macro ratios come from the dish when it declares them, otherwise from a keyword
estimate (flagged through `macros_estimated`, it is only a rough guess).
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .keywords import contains_any, protein_source_terms
from .models import (
    Context,
    ContextInput,
    Dish,
    Goal,
    Hunger,
    Macros,
    PortionSize,
    ProfileInput,
    ScoreBreakdown,
    Subscores,
    Timing,
    UserProfile,
    coerce_context,
    coerce_profile,
)
from .normalizer import normalize_dish

logger = logging.getLogger(__name__)

MacroTargets = Dict[str, Tuple[float, float]]

MACRO_TARGETS: Dict[Timing, MacroTargets] = {
    Timing.PRE_WORKOUT: {"protein": (15, 25), "carbs": (50, 65), "fat": (15, 25)},
    Timing.POST_WORKOUT: {"protein": (30, 40), "carbs": (30, 45), "fat": (20, 30)},
    Timing.REGULAR: {"protein": (25, 35), "carbs": (35, 45), "fat": (25, 35)},
}
MACRO_FIT_SHARES = (("protein", 0.33), ("carbs", 0.33), ("fat", 0.34))

SCORE_WEIGHTS: Dict[str, float] = {
    "macro_fit": 0.25,
    "portion_fit": 0.15,
    "protein_source_match": 0.15,
    "taste_match": 0.15,
    "goal_alignment": 0.15,
    "health_guardrails": 0.15,
}

NEUTRAL = 0.5

# (keywords, estimate) tiers, first hit wins; the trailing None entry is the default.
PROTEIN_ESTIMATE = (
    (("chicken", "beef", "fish", "tofu", "egg", "legume", "lentil", "salmon", "tuna", "turkey", "tempeh"), 30.0),
    (("cheese", "yogurt", "milk"), 20.0),
    (None, 15.0),
)
CARB_ESTIMATE = (
    (("pasta", "rice", "bread", "potato", "quinoa", "noodle"), 50.0),
    (("vegetable", "salad"), 30.0),
    (None, 40.0),
)
FAT_ESTIMATE = (
    (("fried", "cream", "butter", "oil"), 35.0),
    (("grilled", "steamed"), 20.0),
    (None, 25.0),
)

HUNGER_TO_PORTION = {
    Hunger.LIGHT: PortionSize.SMALL,
    Hunger.MODERATE: PortionSize.MEDIUM,
    Hunger.HEARTY: PortionSize.LARGE,
}
PORTION_RANK = {PortionSize.SMALL: 0, PortionSize.MEDIUM: 1, PortionSize.LARGE: 2}
PORTION_FIT_BY_DISTANCE = {0: 1.0, 1: 0.5, 2: 0.0}
LARGE_PORTION_KEYWORDS = ("large", "big", "hearty", "platter", "copieux")
SMALL_PORTION_KEYWORDS = ("small", "light", "appetizer", "starter", "petit")
LARGE_PRICE = 20.0
SMALL_PRICE = 12.0

GRILLED_KEYWORDS = ("grilled", "grillé", "plancha", "chargrilled")
FRIED_KEYWORDS = ("fried", "frit", "tempura", "breaded")
SPICY_KEYWORDS = ("spicy", "chili", "chilli", "jalapeño", "jalapeno", "piquant", "épicé", "sriracha")
PASTA_KEYWORDS = ("pasta", "spaghetti", "penne", "linguine", "fettuccine", "ravioli", "lasagna", "pâtes")

TASTE_RULES: Dict[str, Callable[[str], bool]] = {
    "prefer_grilled": lambda text: contains_any(text, GRILLED_KEYWORDS),
    "prefer_spicy": lambda text: contains_any(text, SPICY_KEYWORDS),
    "love_pasta": lambda text: contains_any(text, PASTA_KEYWORDS),
    "avoid_fried": lambda text: not contains_any(text, FRIED_KEYWORDS),
    "avoid_spicy": lambda text: not contains_any(text, SPICY_KEYWORDS),
}

GOAL_RULES: Dict[Goal, Tuple[Tuple[Sequence[str], float], Tuple[Sequence[str], float]]] = {
    Goal.LOSE: ((("salad", "grilled", "steamed"), 0.8), (("fried", "cream", "cheese"), 0.2)),
    Goal.GAIN: ((("beef", "chicken", "pasta"), 0.8), (("salad", "light"), 0.3)),
}

HEALTH_FLAG_RULES: Dict[str, Tuple[Sequence[str], float]] = {
    "diabetes": (("sugar", "sweet", "dessert"), 0.7),
    "hypertension": (("salt", "sodium", "cured"), 0.7),
    "high_cholesterol": (("fried", "cream", "butter"), 0.6),
    "ibs_sensitive": (("spicy", "onion", "garlic"), 0.8),
}

TIMING_PRAISE = {
    Timing.PRE_WORKOUT: "Great pre-workout balance",
    Timing.POST_WORKOUT: "Great post-workout balance",
    Timing.REGULAR: "Balanced macros",
}
MAX_REASONS = 3


def get_macro_targets(timing: Timing | str | None) -> MacroTargets:
    try:
        return MACRO_TARGETS[Timing(timing)] if timing else MACRO_TARGETS[Timing.REGULAR]
    except ValueError:
        return MACRO_TARGETS[Timing.REGULAR]


def _tiered_estimate(text: str, tiers: Sequence[Tuple[Optional[Sequence[str]], float]]) -> float:
    for keywords, value in tiers:
        if keywords is None or contains_any(text, keywords):
            return value
    return 0.0


def estimate_macros(text: str) -> Macros:
    """Rough macro split in percent from ingredient and cooking-method keywords."""

    protein = _tiered_estimate(text, PROTEIN_ESTIMATE)
    carbs = _tiered_estimate(text, CARB_ESTIMATE)
    fat = _tiered_estimate(text, FAT_ESTIMATE)
    total = protein + carbs + fat
    return Macros(protein=protein / total * 100, carbs=carbs / total * 100, fat=fat / total * 100)


def _macro_ratio_fit(macros: Macros, targets: MacroTargets) -> float:
    total = macros.total
    if total <= 0:
        return NEUTRAL
    fit = 0.0
    for macro, share in MACRO_FIT_SHARES:
        ratio = getattr(macros, macro) / total * 100
        low, high = targets[macro]
        if low <= ratio <= high:
            fit += share
    return round(fit, 2)


def calculate_macro_fit(dish: Dish, targets: MacroTargets) -> float:
    macros = dish.macros if dish.macros is not None else estimate_macros(dish.search_text)
    return _macro_ratio_fit(macros, targets)


def estimate_portion(dish: Dish) -> PortionSize:
    if dish.portion_size is not None:
        return dish.portion_size
    text = f"{dish.name} {dish.description}".lower()
    price = dish.price
    if (price is not None and price > LARGE_PRICE) or contains_any(text, LARGE_PORTION_KEYWORDS):
        return PortionSize.LARGE
    if (price is not None and price < SMALL_PRICE) or contains_any(text, SMALL_PORTION_KEYWORDS):
        return PortionSize.SMALL
    return PortionSize.MEDIUM


def calculate_portion_fit(dish: Dish, hunger: Hunger) -> float:
    preferred = HUNGER_TO_PORTION[hunger]
    distance = abs(PORTION_RANK[estimate_portion(dish)] - PORTION_RANK[preferred])
    return PORTION_FIT_BY_DISTANCE[distance]


def calculate_protein_source_match(text: str, profile: UserProfile) -> float:
    sources = profile.preferred_protein_sources
    if not sources:
        return NEUTRAL
    matched = sum(1 for source in sources if contains_any(text, protein_source_terms(source)))
    return round(matched / len(sources), 2)


def taste_preference_met(preference: str, text: str) -> bool:
    rule = TASTE_RULES.get(preference)
    if rule is not None:
        return rule(text)
    # Free-form "prefer_x" / "love_x" / "avoid_x" toggles from the extended profile.
    verb, _, subject = preference.partition("_")
    subject = subject.replace("_", " ")
    if not subject:
        return False
    if verb in {"prefer", "love"}:
        return subject in text
    if verb == "avoid":
        return subject not in text
    return False


def calculate_taste_match(text: str, profile: UserProfile) -> float:
    preferences = profile.taste_and_prep_preferences
    if not preferences:
        return NEUTRAL
    met = sum(1 for preference in preferences if taste_preference_met(preference, text))
    return round(met / len(preferences), 2)


def calculate_goal_alignment(text: str, profile: UserProfile) -> float:
    rules = GOAL_RULES.get(profile.goal) if profile.goal else None
    if rules is None:
        return NEUTRAL
    (reward_keywords, reward), (penalty_keywords, penalty) = rules
    if contains_any(text, reward_keywords):
        return reward
    if contains_any(text, penalty_keywords):
        return penalty
    return NEUTRAL


def calculate_health_guardrails(text: str, profile: UserProfile) -> float:
    score = 1.0
    for flag in profile.health_flags:
        rule = HEALTH_FLAG_RULES.get(flag)
        if rule is None:
            continue
        keywords, factor = rule
        if contains_any(text, keywords):
            score *= factor
    return round(score, 2)


def combine_subscores(subscores: Subscores) -> float:
    weighted = sum(weight * getattr(subscores, name) for name, weight in SCORE_WEIGHTS.items())
    return round(min(100.0, max(0.0, 100 * weighted)), 1)


def build_reasons(subscores: Subscores, profile: UserProfile, context: Context, text: str) -> List[str]:
    reasons: List[str] = []
    if subscores.macro_fit > 0.7:
        reasons.append(TIMING_PRAISE[context.timing])
    if subscores.portion_fit == 1:
        reasons.append("Portion fits hunger")
    if subscores.protein_source_match > 0.7:
        reasons.append("High protein")
    if subscores.taste_match > 0.7:
        preferences = profile.taste_and_prep_preferences
        if "prefer_grilled" in preferences and taste_preference_met("prefer_grilled", text):
            reasons.append("Grilled not fried")
        if "love_pasta" in preferences and taste_preference_met("love_pasta", text):
            reasons.append("Pasta lover")

    if context.hunger is Hunger.HEARTY and subscores.portion_fit > 0.5:
        reasons.append("Substantial portion")
    elif context.hunger is Hunger.LIGHT and subscores.portion_fit > 0.5:
        reasons.append("Light portion")
    if context.timing is Timing.POST_WORKOUT and subscores.macro_fit > 0.6:
        reasons.append("Post-workout recovery")
    return reasons[:MAX_REASONS]


def score_item(dish: Any, profile: ProfileInput, context: ContextInput) -> ScoreBreakdown:
    """Score one safe dish against the profile and context. Pure and deterministic."""

    dish = normalize_dish(dish)
    user = coerce_profile(profile)
    ctx = coerce_context(context)
    text = dish.search_text

    subscores = Subscores(
        macro_fit=calculate_macro_fit(dish, get_macro_targets(ctx.timing)),
        portion_fit=calculate_portion_fit(dish, ctx.hunger),
        protein_source_match=calculate_protein_source_match(text, user),
        taste_match=calculate_taste_match(text, user),
        goal_alignment=calculate_goal_alignment(text, user),
        health_guardrails=calculate_health_guardrails(text, user),
    )
    raw = combine_subscores(subscores)
    logger.debug("Scored %r raw=%s", dish.name, raw)
    return ScoreBreakdown(
        raw=raw,
        subscores=subscores,
        reasons=build_reasons(subscores, user, ctx, text),
        macros_estimated=dish.macros is None or dish.macros_estimated,
    )
