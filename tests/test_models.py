from menu_scan.models import Context, DietaryLaw, Dish, Goal, Hunger, UserProfile, merge_profiles


class TestUserProfile:
    def test_accepts_camel_case_and_normalizes_terms(self) -> None:
        profile = UserProfile.model_validate(
            {"allergies": "Peanuts, Shellfish", "doNotEat": [" Olives ", ""], "goal": "LOSE", "dietaryLaws": "Halal"}
        )
        assert profile.allergies == ["peanuts", "shellfish"]
        assert profile.do_not_eat == ["olives"]
        assert profile.goal is Goal.LOSE
        assert profile.dietary_laws is DietaryLaw.HALAL

    def test_blank_values(self) -> None:
        profile = UserProfile.model_validate({"goal": "", "dietaryLaws": ["none", "kosher"], "healthFlags": None})
        assert profile.goal is None
        assert profile.dietary_laws is DietaryLaw.KOSHER
        assert profile.health_flags == []
        assert UserProfile(dietary_laws="").dietary_laws is DietaryLaw.NONE


def test_merge_profiles_extended_wins() -> None:
    base = {"goal": "gain", "allergies": ["egg"], "dietaryPreferences": ["vegetarian"]}
    extended = {"allergies": ["egg", "sesame"], "dietaryLaws": "halal"}
    merged = merge_profiles(base, extended)
    assert merged.goal is Goal.GAIN
    assert merged.allergies == ["egg", "sesame"]
    assert merged.dietary_preferences == ["vegetarian"]
    assert merged.dietary_laws is DietaryLaw.HALAL
    assert merge_profiles(None) == UserProfile()


def test_context_defaults() -> None:
    context = Context.model_validate({})
    assert context.hunger is Hunger.MODERATE
    assert Context.model_validate({"hunger": "hearty", "timing": "post_workout"}).to_api() == {
        "hunger": "hearty",
        "timing": "post_workout",
    }


def test_dish_search_text() -> None:
    dish = Dish(name="Poke Bowl", description="Salmon, rice", ingredients="soy, sesame")
    assert dish.search_text == "poke bowl salmon, rice soy, sesame"
    assert Dish(name="Soup").to_api()["portionSize"] is None
