"""Menu scanning and personalised dish recommendation package."""

from .categories import Category, CategoryResult, LabeledDish, score_and_label
from .models import (
    Context,
    DietaryLaw,
    Dish,
    Goal,
    Hunger,
    Macros,
    PortionSize,
    RejectedDish,
    ScoreBreakdown,
    ScoredDish,
    Subscores,
    Timing,
    UserProfile,
    merge_profiles,
)
from .normalization import NearMissBoost, NormalizedBatch, normalize_to_ten
from .normalizer import normalize_dish, normalize_dishes
from .prefilter import FilterResult, pre_filter
from .ranker import PipelineResult, RankingResult, filter_and_score_dishes, rank_recommendations
from .recommenders import (
    CategoryRecommender,
    ContextualRecommender,
    Recommendation,
    RecommendationSet,
    Recommender,
    get_recommender,
)
from .scoring import SCORE_WEIGHTS, get_macro_targets, score_item

__all__ = [
    "Category",
    "CategoryRecommender",
    "CategoryResult",
    "Context",
    "ContextualRecommender",
    "DietaryLaw",
    "Dish",
    "FilterResult",
    "Goal",
    "Hunger",
    "LabeledDish",
    "Macros",
    "NearMissBoost",
    "NormalizedBatch",
    "PipelineResult",
    "PortionSize",
    "RankingResult",
    "Recommendation",
    "RecommendationSet",
    "Recommender",
    "RejectedDish",
    "SCORE_WEIGHTS",
    "ScoreBreakdown",
    "ScoredDish",
    "Subscores",
    "Timing",
    "UserProfile",
    "filter_and_score_dishes",
    "get_macro_targets",
    "get_recommender",
    "merge_profiles",
    "normalize_dish",
    "normalize_dishes",
    "normalize_to_ten",
    "pre_filter",
    "rank_recommendations",
    "score_and_label",
    "score_item",
]
