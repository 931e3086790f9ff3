from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class Hunger(str, Enum):
    LIGHT = "light"
    MODERATE = "moderate"
    HEARTY = "hearty"


class Timing(str, Enum):
    PRE_WORKOUT = "pre_workout"
    POST_WORKOUT = "post_workout"
    REGULAR = "regular"


class Goal(str, Enum):
    LOSE = "lose"
    GAIN = "gain"
    MAINTAIN = "maintain"


class DietaryLaw(str, Enum):
    NONE = "none"
    HALAL = "halal"
    KOSHER = "kosher"


class PortionSize(str, Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class ConstraintKind(str, Enum):
    ALLERGY = "allergy"
    DIETARY_LAW = "dietary_law"
    BASE_DIET = "base_diet"
    DO_NOT_EAT = "do_not_eat"


class CamelModel(BaseModel):
    """Accepts snake_case or camelCase keys and serialises with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_api(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class Macros(CamelModel):
    protein: float = Field(ge=0)
    carbs: float = Field(ge=0)
    fat: float = Field(ge=0)

    @property
    def total(self) -> float:
        return self.protein + self.carbs + self.fat


class Dish(CamelModel):
    """Canonical dish record. Built by `normalize_dish`; never mutated by the engine."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    name: str
    description: str = ""
    ingredients: str = ""
    price: Optional[float] = None
    currency: Optional[str] = None
    section: Optional[str] = None
    calories: Optional[float] = None
    macros: Optional[Macros] = None
    macros_estimated: bool = False
    portion_size: Optional[PortionSize] = None
    tags: List[str] = Field(default_factory=list)
    position: int = 0

    @property
    def search_text(self) -> str:
        parts = (self.name, self.description, self.ingredients)
        return " ".join(part for part in parts if part).lower()


_TERM_LIST_FIELDS = (
    "dietary_preferences",
    "allergies",
    "preferred_protein_sources",
    "taste_and_prep_preferences",
    "health_flags",
    "do_not_eat",
)


class UserProfile(CamelModel):
    age: Optional[float] = None
    weight: Optional[float] = None
    height: Optional[float] = None
    activity_level: Optional[str] = None
    goal: Optional[Goal] = None
    dietary_preferences: List[str] = Field(default_factory=list)
    allergies: List[str] = Field(default_factory=list)
    dietary_laws: DietaryLaw = DietaryLaw.NONE
    preferred_protein_sources: List[str] = Field(default_factory=list)
    taste_and_prep_preferences: List[str] = Field(default_factory=list)
    health_flags: List[str] = Field(default_factory=list)
    do_not_eat: List[str] = Field(default_factory=list)

    @field_validator(*_TERM_LIST_FIELDS, mode="before")
    @classmethod
    def _normalize_terms(cls, value: Any) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = value.split(",")
        terms = (str(item).strip().lower() for item in value)
        return [term for term in terms if term]

    @field_validator("dietary_laws", mode="before")
    @classmethod
    def _normalize_law(cls, value: Any) -> Any:
        # Stored profiles sometimes keep this as a list of toggles.
        if isinstance(value, (list, tuple)):
            value = next((item for item in value if item and str(item).lower() != "none"), None)
        if value is None or value == "":
            return DietaryLaw.NONE
        return str(value).strip().lower() if isinstance(value, str) else value

    @field_validator("goal", mode="before")
    @classmethod
    def _blank_goal(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip().lower()
            return value or None
        return value


class Context(CamelModel):
    hunger: Hunger = Hunger.MODERATE
    timing: Timing = Timing.REGULAR


class Subscores(CamelModel):
    macro_fit: float = Field(ge=0, le=1)
    portion_fit: float = Field(ge=0, le=1)
    protein_source_match: float = Field(ge=0, le=1)
    taste_match: float = Field(ge=0, le=1)
    goal_alignment: float = Field(ge=0, le=1)
    health_guardrails: float = Field(ge=0, le=1)


class ScoreBreakdown(CamelModel):
    raw: float
    subscores: Subscores
    reasons: List[str] = Field(default_factory=list, max_length=3)
    macros_estimated: bool = False


class ScoredDish(CamelModel):
    """A dish with its raw score, sub-scores and (after normalisation) final 1-10 score."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    dish: Dish
    raw: float
    subscores: Subscores
    reasons: List[str] = Field(default_factory=list)
    score: Optional[float] = None
    fallback_mode: bool = False
    macros_estimated: bool = False
    relaxed_from: Optional[float] = None


class RejectedDish(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    dish: Dish
    rejection_reason: str
    constraint: ConstraintKind


ProfileInput = Union[UserProfile, Mapping[str, Any], None]
ContextInput = Union[Context, Mapping[str, Any], None]


def coerce_profile(profile: ProfileInput) -> UserProfile:
    if isinstance(profile, UserProfile):
        return profile
    return UserProfile.model_validate(dict(profile or {}))


def coerce_context(context: ContextInput) -> Context:
    if isinstance(context, Context):
        return context
    return Context.model_validate(dict(context or {}))


def merge_profiles(base: ProfileInput, extended: ProfileInput = None) -> UserProfile:
    """Overlay the extended profile on the onboarding profile; extended wins per field."""

    merged: Dict[str, Any] = {}
    for layer in (base, extended):
        if layer is None:
            continue
        profile = coerce_profile(layer)
        merged.update(profile.model_dump(exclude_unset=True))
    return UserProfile.model_validate(merged)
