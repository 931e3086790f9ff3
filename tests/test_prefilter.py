from menu_scan.models import ConstraintKind, UserProfile
from menu_scan.prefilter import pre_filter


def _names(dishes):
    return [dish.name for dish in dishes]


class TestAllergies:
    def test_peanut_rejected_for_nut_allergy(self) -> None:
        """A nut allergy covers peanuts through the synonym dictionary."""
        result = pre_filter(
            [{"name": "Peanut Noodles", "description": "Rice noodles in peanut sauce"}],
            UserProfile(allergies=["nuts"]),
        )
        assert result.safe == []
        assert len(result.rejected) == 1
        rejected = result.rejected[0]
        assert "nuts" in rejected.rejection_reason
        assert rejected.rejection_reason == "Contains allergen: nuts"
        assert rejected.constraint is ConstraintKind.ALLERGY

    def test_egg_synonyms_across_languages(self) -> None:
        dishes = [
            {"name": "Salade niçoise", "description": "thon, oeuf dur, olives"},
            {"name": "Club sandwich", "description": "turkey, lettuce, mayo"},
            {"name": "Green salad", "description": "lettuce, cucumber, vinaigrette"},
        ]
        result = pre_filter(dishes, UserProfile(allergies=["egg"]))
        assert _names(result.safe) == ["Green salad"]
        assert _names(item.dish for item in result.rejected) == ["Salade niçoise", "Club sandwich"]

    def test_unknown_allergy_matches_literally(self) -> None:
        result = pre_filter([{"name": "Kiwi sorbet"}], UserProfile(allergies=["kiwi"]))
        assert result.rejected[0].rejection_reason == "Contains allergen: kiwi"


class TestDietaryLaw:
    def test_halal_rejects_pork(self) -> None:
        result = pre_filter([{"name": "Pork Ribs"}], UserProfile(dietary_laws="halal"))
        reason = result.rejected[0].rejection_reason
        assert "halal" in reason and "pork" in reason
        assert result.rejected[0].constraint is ConstraintKind.DIETARY_LAW

    def test_kosher_rejects_bacon_but_not_hamburger(self) -> None:
        dishes = [{"name": "Bacon cheeseburger"}, {"name": "Classic hamburger"}]
        result = pre_filter(dishes, UserProfile(dietary_laws="kosher"))
        assert _names(result.safe) == ["Classic hamburger"]
        assert result.rejected[0].rejection_reason == "Not kosher compliant (pork)"

    def test_no_law_keeps_pork(self) -> None:
        result = pre_filter([{"name": "Pork Ribs"}], UserProfile())
        assert _names(result.safe) == ["Pork Ribs"]


class TestBaseDiet:
    def test_vegan_rejects_meat_and_dairy(self) -> None:
        dishes = [
            {"name": "Tofu Salad", "description": "greens and tofu"},
            {"name": "Cheese Pizza"},
            {"name": "Beef Tacos"},
            {"name": "Yogurt Parfait"},
        ]
        result = pre_filter(dishes, UserProfile(dietary_preferences=["vegan"]))
        assert _names(result.safe) == ["Tofu Salad"]
        assert all(item.rejection_reason.startswith("Not vegan") for item in result.rejected)

    def test_vegetarian_rejects_meat_and_fish_but_keeps_dairy(self) -> None:
        dishes = [{"name": "Margherita Pizza", "description": "mozzarella"}, {"name": "Chicken Wings"}, {"name": "Salmon Poke"}]
        result = pre_filter(dishes, UserProfile(dietary_preferences=["vegetarian"]))
        assert _names(result.safe) == ["Margherita Pizza"]
        assert result.rejected[0].rejection_reason == "Not vegetarian (contains chicken)"

    def test_pescatarian_allows_fish(self) -> None:
        dishes = [{"name": "Salmon Poke"}, {"name": "Lamb Stew"}]
        result = pre_filter(dishes, UserProfile(dietary_preferences=["pescatarian"]))
        assert _names(result.safe) == ["Salmon Poke"]

    def test_plant_based_wording_is_not_rejected(self) -> None:
        """Ambiguous plant-based phrasing is admitted rather than rejected."""
        dishes = [
            {"name": "Satay Bowl", "description": "tofu with peanut butter sauce"},
            {"name": "Thai Curry", "description": "vegetables in coconut milk"},
            {"name": "Eggplant Parm", "description": "with vegan cheese"},
        ]
        result = pre_filter(dishes, UserProfile(dietary_preferences=["vegan"]))
        assert _names(result.safe) == ["Satay Bowl", "Thai Curry", "Eggplant Parm"]

    def test_gluten_free_preference(self) -> None:
        dishes = [{"name": "Garlic Bread"}, {"name": "Rice Bowl"}]
        result = pre_filter(dishes, UserProfile(dietary_preferences=["gluten_free"]))
        assert _names(result.safe) == ["Rice Bowl"]


class TestOrderingAndPartition:
    def test_allergy_reported_before_diet(self) -> None:
        """Constraints short-circuit in order: the allergy reason wins."""
        profile = UserProfile(allergies=["dairy"], dietary_preferences=["vegan"], do_not_eat=["cheese"])
        result = pre_filter([{"name": "Cheese Pizza"}], profile)
        assert result.rejected[0].constraint is ConstraintKind.ALLERGY

    def test_do_not_eat_substring(self) -> None:
        result = pre_filter([{"name": "Mushroom risotto"}, {"name": "Pea soup"}], UserProfile(do_not_eat=["mushroom"]))
        assert _names(result.safe) == ["Pea soup"]
        assert result.rejected[0].rejection_reason == "Contains forbidden item: mushroom"
        assert result.rejected[0].constraint is ConstraintKind.DO_NOT_EAT

    def test_pure_partition_preserves_order(self, sample_menu, strict_profile) -> None:
        result = pre_filter(sample_menu, strict_profile)
        assert len(result.safe) + len(result.rejected) == len(sample_menu)
        assert _names(result.safe) == ["Tofu Salad"]
        assert _names(item.dish for item in result.rejected) == [
            "Grilled Chicken Bowl",
            "Peanut Noodles",
            "Pork Ribs",
            "Spaghetti Carbonara",
        ]

    def test_empty_input(self, empty_profile) -> None:
        result = pre_filter([], empty_profile)
        assert result.safe == [] and result.rejected == []
        assert not result.no_safe_dishes

    def test_all_rejected_is_terminal(self) -> None:
        result = pre_filter([{"name": "Peanut Brittle"}], {"allergies": ["peanut"]})
        assert result.no_safe_dishes
