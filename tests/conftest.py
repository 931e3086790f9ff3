"""Shared fixtures: a small bilingual menu and a few representative profiles."""

from __future__ import annotations

from typing import Any, Dict, List

import pytest

from menu_scan.models import Context, UserProfile


@pytest.fixture
def sample_menu() -> List[Dict[str, Any]]:
    return [
        {
            "name": "Grilled Chicken Bowl",
            "description": "Grilled chicken, quinoa, spinach and avocado",
            "price": 15.5,
            "macros": {"protein": 40, "carbs": 35, "fat": 25},
        },
        {
            "name": "Tofu Salad",
            "description": "Fresh greens, marinated tofu and ginger dressing",
            "price": "€11,50",
        },
        {
            "name": "Peanut Noodles",
            "description": "Rice noodles tossed in a peanut sauce",
            "price": 13,
        },
        {
            "name": "Pork Ribs",
            "description": "Slow-cooked BBQ pork ribs with fries",
            "price": 24,
        },
        {
            "title": "Spaghetti Carbonara",
            "desc": "Pasta with egg, pancetta and parmesan cream",
            "price": "$18.00",
        },
    ]


@pytest.fixture
def empty_profile() -> UserProfile:
    return UserProfile()


@pytest.fixture
def strict_profile() -> UserProfile:
    return UserProfile(
        goal="lose",
        dietary_preferences=["vegetarian"],
        allergies=["nuts"],
        preferred_protein_sources=["tofu_tempeh"],
        taste_and_prep_preferences=["avoid_fried", "prefer_grilled"],
        health_flags=["diabetes"],
    )


@pytest.fixture
def regular_context() -> Context:
    return Context(hunger="moderate", timing="regular")
