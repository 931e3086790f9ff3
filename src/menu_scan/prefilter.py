"""Hard-constraint pre-filter: allergies, dietary law, base diet and do-not-eat terms."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from .keywords import (
    ALLERGEN_SYNONYMS,
    ANIMAL_PRODUCT_KEYWORDS,
    FISH_KEYWORDS,
    MEAT_KEYWORDS,
    PORK_KEYWORDS,
    allergen_terms,
    first_substring,
    first_word_match,
    strip_plant_based_phrases,
)
from .models import ConstraintKind, DietaryLaw, Dish, ProfileInput, RejectedDish, UserProfile, coerce_profile
from .normalizer import normalize_dishes

logger = logging.getLogger(__name__)

# Strictest first so a vegan profile that also lists "vegetarian" reports the vegan rule.
BASE_DIET_RULES: Tuple[Tuple[str, Tuple[Sequence[str], ...]], ...] = (
    ("vegan", (MEAT_KEYWORDS, FISH_KEYWORDS, ANIMAL_PRODUCT_KEYWORDS)),
    ("vegetarian", (MEAT_KEYWORDS, FISH_KEYWORDS)),
    ("pescatarian", (MEAT_KEYWORDS,)),
    ("dairy-free", (ALLERGEN_SYNONYMS["dairy"],)),
    ("gluten-free", (ALLERGEN_SYNONYMS["gluten"],)),
    ("nut-free", (ALLERGEN_SYNONYMS["nuts"],)),
)


@dataclass
class FilterResult:
    """Partition of the input: every dish lands in exactly one list, input order preserved."""

    safe: List[Dish] = field(default_factory=list)
    rejected: List[RejectedDish] = field(default_factory=list)

    @property
    def no_safe_dishes(self) -> bool:
        return bool(self.rejected) and not self.safe


def _check_allergies(text: str, profile: UserProfile) -> Optional[str]:
    for allergy in profile.allergies:
        if first_substring(text, allergen_terms(allergy)):
            return f"Contains allergen: {allergy}"
    return None


def _check_dietary_law(text: str, profile: UserProfile) -> Optional[str]:
    if profile.dietary_laws is DietaryLaw.NONE:
        return None
    if first_word_match(text, PORK_KEYWORDS):
        return f"Not {profile.dietary_laws.value} compliant (pork)"
    return None


def _check_base_diet(text: str, profile: UserProfile) -> Optional[str]:
    declared = {pref.replace("_", "-").replace(" ", "-") for pref in profile.dietary_preferences}
    if not declared:
        return None
    # Only confident hits reject; "peanut butter" or "vegan cheese" must not.
    cleaned = strip_plant_based_phrases(text)
    for diet, keyword_groups in BASE_DIET_RULES:
        if diet not in declared:
            continue
        for keywords in keyword_groups:
            keyword = first_word_match(cleaned, keywords)
            if keyword:
                return f"Not {diet} (contains {keyword})"
    return None


def _check_do_not_eat(text: str, profile: UserProfile) -> Optional[str]:
    term = first_substring(text, profile.do_not_eat)
    if term:
        return f"Contains forbidden item: {term}"
    return None


CONSTRAINT_CHECKS = (
    (ConstraintKind.ALLERGY, _check_allergies),
    (ConstraintKind.DIETARY_LAW, _check_dietary_law),
    (ConstraintKind.BASE_DIET, _check_base_diet),
    (ConstraintKind.DO_NOT_EAT, _check_do_not_eat),
)


def find_violation(dish: Dish, profile: UserProfile) -> Optional[Tuple[ConstraintKind, str]]:
    """Return the first violated constraint for `dish`, or None when it is safe."""

    text = dish.search_text
    for kind, check in CONSTRAINT_CHECKS:
        reason = check(text, profile)
        if reason:
            return kind, reason
    return None


def pre_filter(dishes: Optional[Iterable[Any]], profile: ProfileInput) -> FilterResult:
    user = coerce_profile(profile)
    result = FilterResult()
    counts: Counter[str] = Counter()

    for dish in normalize_dishes(dishes):
        violation = find_violation(dish, user)
        if violation is None:
            result.safe.append(dish)
            continue
        kind, reason = violation
        counts[kind.value] += 1
        result.rejected.append(RejectedDish(dish=dish, rejection_reason=reason, constraint=kind))

    logger.info("Pre-filter kept %s dishes, rejected %s", len(result.safe), len(result.rejected))
    if counts:
        logger.debug("Rejections by constraint: %s", dict(counts))
    return result
