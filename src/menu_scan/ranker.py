from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .models import ContextInput, Dish, ProfileInput, RejectedDish, ScoredDish, coerce_context, coerce_profile
from .normalization import (
    DEFAULT_CEIL,
    DEFAULT_FLOOR,
    DEFAULT_NEAR_MISS_BOOSTS,
    FALLBACK_THRESHOLD,
    NearMissBoost,
    normalize_to_ten,
)
from .normalizer import normalize_dishes
from .prefilter import pre_filter
from .scoring import get_macro_targets, score_item

logger = logging.getLogger(__name__)

TOP_N = 3


@dataclass
class RankingResult:
    top3: List[ScoredDish] = field(default_factory=list)
    all: List[ScoredDish] = field(default_factory=list)
    fallback: bool = False


@dataclass
class PipelineResult:
    """Outcome of normalise -> pre-filter -> rank for one request."""

    top3: List[ScoredDish] = field(default_factory=list)
    all: List[ScoredDish] = field(default_factory=list)
    rejected: List[RejectedDish] = field(default_factory=list)
    fallback: bool = False
    debug: Dict[str, Any] = field(default_factory=dict)

    @property
    def no_safe_dishes(self) -> bool:
        return bool(self.rejected) and not self.all


def score_dishes(dishes: Iterable[Dish], profile: ProfileInput, context: ContextInput) -> List[ScoredDish]:
    user = coerce_profile(profile)
    ctx = coerce_context(context)
    scored: List[ScoredDish] = []
    for dish in dishes:
        breakdown = score_item(dish, user, ctx)
        scored.append(
            ScoredDish(
                dish=dish,
                raw=breakdown.raw,
                subscores=breakdown.subscores,
                reasons=breakdown.reasons,
                macros_estimated=breakdown.macros_estimated,
            )
        )
    return scored


def rank_recommendations(
    safe_items: Optional[Sequence[Any]],
    profile: ProfileInput,
    context: ContextInput,
    *,
    floor: float = DEFAULT_FLOOR,
    ceil: float = DEFAULT_CEIL,
    threshold: float = FALLBACK_THRESHOLD,
    boosts: Sequence[NearMissBoost] = DEFAULT_NEAR_MISS_BOOSTS,
) -> RankingResult:
    """Score, normalise and sort dishes that already passed the pre-filter."""

    dishes = normalize_dishes(safe_items)
    if not dishes:
        return RankingResult()

    scored = score_dishes(dishes, profile, context)
    batch = normalize_to_ten(scored, floor, ceil, threshold=threshold, boosts=boosts)
    # sorted() is stable, so equal scores keep their input order.
    ordered = sorted(batch.items, key=lambda item: -(item.score or 0.0))
    logger.info(
        "Ranked %s dishes; top: %s; fallback=%s",
        len(ordered),
        [(item.dish.name, item.score) for item in ordered[:TOP_N]],
        batch.fallback,
    )
    return RankingResult(top3=ordered[:TOP_N], all=ordered, fallback=batch.fallback)


def filter_and_score_dishes(
    dishes: Optional[Iterable[Any]],
    profile: ProfileInput,
    context: ContextInput,
    **ranking_options: Any,
) -> PipelineResult:
    user = coerce_profile(profile)
    ctx = coerce_context(context)
    filtered = pre_filter(dishes, user)

    ranking = rank_recommendations(filtered.safe, user, ctx, **ranking_options)
    if filtered.no_safe_dishes:
        logger.info("No safe dishes after hard constraints (%s rejected)", len(filtered.rejected))

    debug = {
        "contextUsed": ctx.to_api(),
        "targetsUsed": {macro: list(bounds) for macro, bounds in get_macro_targets(ctx.timing).items()},
        "filteredOutCount": len(filtered.rejected),
        "preFilterResults": {"safe": len(filtered.safe), "rejected": len(filtered.rejected)},
        "fallback": ranking.fallback,
    }
    return PipelineResult(
        top3=ranking.top3,
        all=ranking.all,
        rejected=filtered.rejected,
        fallback=ranking.fallback,
        debug=debug,
    )
