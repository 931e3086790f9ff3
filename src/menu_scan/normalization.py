"""Maps raw scores onto the 1-10 scale, relaxing weak batches ("fallback mode")."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, List, Mapping, Sequence, Union

from .models import ScoreBreakdown, ScoredDish, Subscores
from .normalizer import normalize_dish

logger = logging.getLogger(__name__)

ScoredInput = Union[ScoredDish, ScoreBreakdown, Mapping[str, Any]]

DEFAULT_FLOOR = 1.0
DEFAULT_CEIL = 10.0
FALLBACK_THRESHOLD = 60.0
RELAXATION_FACTOR = 0.8


@dataclass(frozen=True)
class NearMissBoost:
    """Bonus added to a relaxed raw score when `predicate(subscores)` holds."""

    name: str
    predicate: Callable[[Subscores], bool]
    bonus: float

    def applies(self, subscores: Subscores) -> bool:
        return self.predicate(subscores)


DEFAULT_NEAR_MISS_BOOSTS: tuple[NearMissBoost, ...] = (
    NearMissBoost("cooking_method", lambda s: s.taste_match > 0.6, 10.0),
    NearMissBoost("preferred_protein", lambda s: s.protein_source_match > 0.6, 8.0),
    # Softer threshold on the same taste signal; both can fire.
    NearMissBoost("taste_affinity", lambda s: s.taste_match > 0.5, 6.0),
)


@dataclass
class NormalizedBatch:
    items: List[ScoredDish] = field(default_factory=list)
    fallback: bool = False

    def __iter__(self) -> Iterator[ScoredDish]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __getitem__(self, index: int) -> ScoredDish:
        return self.items[index]

    @property
    def scores(self) -> List[float]:
        return [item.score for item in self.items if item.score is not None]


def relax_raw(item: ScoredDish, boosts: Sequence[NearMissBoost], relaxation: float) -> float:
    adjusted = item.raw * relaxation
    for boost in boosts:
        if boost.applies(item.subscores):
            adjusted += boost.bonus
    return max(0.0, adjusted)


def as_scored_dish(item: ScoredInput, position: int = 0) -> ScoredDish:
    """Accept a `ScoredDish`, a `score_item` breakdown or a plain `{raw, subscores}` record."""

    if isinstance(item, ScoredDish):
        return item
    if isinstance(item, ScoreBreakdown):
        item = item.model_dump()
    if not isinstance(item, Mapping):
        raise TypeError(f"Expected a scored record with raw and subscores, got {type(item).__name__}")
    record = dict(item)
    # Records without a dish get the same "Dish N" placeholder the normalizer uses.
    record["dish"] = normalize_dish(record.get("dish") or {}, position)
    return ScoredDish.model_validate(record)


def normalize_to_ten(
    scored: Sequence[ScoredInput],
    floor: float = DEFAULT_FLOOR,
    ceil: float = DEFAULT_CEIL,
    *,
    threshold: float = FALLBACK_THRESHOLD,
    relaxation: float = RELAXATION_FACTOR,
    boosts: Sequence[NearMissBoost] = DEFAULT_NEAR_MISS_BOOSTS,
) -> NormalizedBatch:
    if floor > ceil:
        raise ValueError("floor must not exceed ceil")
    scored = [as_scored_dish(item, position) for position, item in enumerate(scored or [])]
    if not scored:
        return NormalizedBatch()

    max_raw = max(item.raw for item in scored)
    fallback = max_raw < threshold or max_raw == 0

    if fallback:
        logger.info("Fallback mode: best raw score %.1f is below %.1f", max_raw, threshold)
        raws = [relax_raw(item, boosts, relaxation) for item in scored]
    else:
        raws = [item.raw for item in scored]

    low, high = min(raws), max(raws)
    midpoint = (floor + ceil) / 2
    items: List[ScoredDish] = []
    for item, raw in zip(scored, raws):
        if high == low:
            value = midpoint
        else:
            value = floor + (raw - low) / (high - low) * (ceil - floor)
        value = min(ceil, max(floor, round(value, 1)))
        items.append(
            item.model_copy(
                update={
                    "raw": raw,
                    "score": value,
                    "fallback_mode": fallback,
                    "relaxed_from": item.raw if fallback else None,
                }
            )
        )

    logger.debug("Normalized scores: %s", [item.score for item in items])
    return NormalizedBatch(items=items, fallback=fallback)
