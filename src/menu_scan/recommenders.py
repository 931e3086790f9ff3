"""Both recommendation modes behind one `Recommender` interface."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Protocol, Sequence

from pydantic import Field

from .categories import LabeledDish, score_and_label
from .models import CamelModel, ContextInput, Dish, ProfileInput, RejectedDish, ScoredDish, Subscores
from .normalization import DEFAULT_CEIL, DEFAULT_FLOOR, DEFAULT_NEAR_MISS_BOOSTS, FALLBACK_THRESHOLD, NearMissBoost
from .prefilter import pre_filter
from .ranker import filter_and_score_dishes

MODES = ("contextual", "category")


class Recommendation(CamelModel):
    dish: Dish
    score: float
    reasons: List[str] = Field(default_factory=list)
    subscores: Optional[Subscores] = None
    label: Optional[str] = None
    fallback_mode: bool = False
    macros_estimated: bool = False

    @classmethod
    def from_scored(cls, item: ScoredDish) -> "Recommendation":
        return cls(
            dish=item.dish,
            score=item.score if item.score is not None else item.raw,
            reasons=list(item.reasons),
            subscores=item.subscores,
            fallback_mode=item.fallback_mode,
            macros_estimated=item.macros_estimated,
        )

    @classmethod
    def from_labeled(cls, item: LabeledDish) -> "Recommendation":
        return cls(
            dish=item.dish,
            score=float(item.score),
            reasons=list(item.reasons),
            label=item.label.value,
            macros_estimated=item.dish.macros is None or item.dish.macros_estimated,
        )


class RecommendationSet(CamelModel):
    mode: str
    top3: List[Recommendation] = Field(default_factory=list)
    all: List[Recommendation] = Field(default_factory=list)
    rejected: List[RejectedDish] = Field(default_factory=list)
    fallback: bool = False
    debug: Dict[str, Any] = Field(default_factory=dict)

    @property
    def no_safe_dishes(self) -> bool:
        return bool(self.rejected) and not self.all

    @property
    def macros_estimated(self) -> bool:
        return any(item.macros_estimated for item in self.top3)


class Recommender(Protocol):
    mode: str

    def rank(self, dishes: Iterable[Any], profile: ProfileInput, context: ContextInput) -> RecommendationSet:
        ...


class ContextualRecommender:
    """Hard filter, six-factor scoring, 1-10 normalisation with fallback, top 3."""

    mode = "contextual"

    def __init__(
        self,
        *,
        floor: float = DEFAULT_FLOOR,
        ceil: float = DEFAULT_CEIL,
        threshold: float = FALLBACK_THRESHOLD,
        boosts: Sequence[NearMissBoost] = DEFAULT_NEAR_MISS_BOOSTS,
    ):
        self.floor = floor
        self.ceil = ceil
        self.threshold = threshold
        self.boosts = tuple(boosts)

    def rank(self, dishes: Iterable[Any], profile: ProfileInput, context: ContextInput) -> RecommendationSet:
        result = filter_and_score_dishes(
            dishes,
            profile,
            context,
            floor=self.floor,
            ceil=self.ceil,
            threshold=self.threshold,
            boosts=self.boosts,
        )
        return RecommendationSet(
            mode=self.mode,
            top3=[Recommendation.from_scored(item) for item in result.top3],
            all=[Recommendation.from_scored(item) for item in result.all],
            rejected=result.rejected,
            fallback=result.fallback,
            debug=result.debug,
        )


class CategoryRecommender:
    """Keyword labels with one dish per label; hard constraints still apply first."""

    mode = "category"

    def rank(self, dishes: Iterable[Any], profile: ProfileInput, context: ContextInput) -> RecommendationSet:
        filtered = pre_filter(dishes, profile)
        result = score_and_label(filtered.safe)
        return RecommendationSet(
            mode=self.mode,
            top3=[Recommendation.from_labeled(item) for item in result.top3],
            all=[Recommendation.from_labeled(item) for item in result.all],
            rejected=filtered.rejected,
            debug={
                "filteredOutCount": len(filtered.rejected),
                "preFilterResults": {"safe": len(filtered.safe), "rejected": len(filtered.rejected)},
            },
        )


def get_recommender(
    mode: Optional[str] = "contextual",
    *,
    floor: float = DEFAULT_FLOOR,
    ceil: float = DEFAULT_CEIL,
    threshold: float = FALLBACK_THRESHOLD,
) -> Recommender:
    key = (mode or "contextual").strip().lower()
    if key == "contextual":
        return ContextualRecommender(floor=floor, ceil=ceil, threshold=threshold)
    if key == "category":
        return CategoryRecommender()
    raise ValueError(f"Unknown recommendation mode '{mode}'. Expected one of: {', '.join(MODES)}")
