from menu_scan.categories import Category, label_dish, score_and_label
from menu_scan.models import Dish


class TestLabelDish:
    def test_recovery_needs_protein_and_method(self) -> None:
        labeled = label_dish(Dish(name="Grilled salmon", description="with lemon"))
        assert labeled.label is Category.RECOVERY
        # round(5 + 2 + 0.5) rounds half up to 8.
        assert labeled.score == 8
        assert labeled.reasons == ["main protein", "grilled / roasted", "protein-focused"]

    def test_indulgent_cue_vetoes_recovery(self) -> None:
        labeled = label_dish(Dish(name="Crispy chicken burger"))
        assert labeled.label is Category.COMFORTING
        assert labeled.category_scores["Recovery"] == 0

    def test_healthy_veg_and_light(self) -> None:
        labeled = label_dish(Dish(name="Fresh quinoa salad"))
        assert labeled.label is Category.HEALTHY
        assert labeled.score == 9
        assert labeled.category_scores["Healthy"] == 3

    def test_french_keywords(self) -> None:
        assert label_dish(Dish(name="Gratin dauphinois", description="crème et fromage")).label is Category.COMFORTING
        assert label_dish(Dish(name="Poulet rôti", description="légumes")).label is Category.RECOVERY

    def test_default_is_balanced_healthy(self) -> None:
        labeled = label_dish(Dish(name="Soup of the day"))
        assert labeled.label is Category.HEALTHY
        assert labeled.score == 5
        assert labeled.reasons == ["balanced option"]


class TestScoreAndLabel:
    def test_one_per_label_when_available(self) -> None:
        """Four dishes spanning three labels give one dish per label."""
        dishes = [
            {"name": "Grilled chicken breast"},
            {"name": "Roasted salmon fillet"},
            {"name": "Kale salad"},
            {"name": "Cheesy lasagna"},
        ]
        result = score_and_label(dishes)
        labels = [item.label for item in result.top3]
        assert labels == [Category.RECOVERY, Category.HEALTHY, Category.COMFORTING]
        assert len({item.title for item in result.top3}) == 3
        assert result.top3[0].title == "Grilled chicken breast"
        assert len(result.all) == 4

    def test_backfill_skips_used_titles(self) -> None:
        dishes = [{"name": "Grilled chicken"}, {"name": "Grilled tofu"}, {"name": "Roasted lamb"}]
        result = score_and_label(dishes)
        assert [item.title for item in result.top3] == ["Grilled chicken", "Grilled tofu", "Roasted lamb"]

    def test_single_dish_padded_with_alternates(self) -> None:
        result = score_and_label([{"name": "Grilled chicken"}])
        assert [item.title for item in result.top3] == [
            "Grilled chicken",
            "Grilled chicken (Alt)",
            "Grilled chicken (Alt 2)",
        ]
        assert [item.label for item in result.top3] == [Category.RECOVERY, Category.HEALTHY, Category.COMFORTING]
        assert [item.score for item in result.top3] == [8, 7, 7]
        assert result.top3[1].reasons == ["Healthy alternative"]

    def test_empty_input(self) -> None:
        result = score_and_label([])
        assert result.top3 == [] and result.all == []

    def test_sorted_by_score_then_title(self) -> None:
        result = score_and_label([{"name": "b soup"}, {"name": "A soup"}, {"name": "Kale salad"}])
        assert [item.title for item in result.all] == ["Kale salad", "A soup", "b soup"]

    def test_alternate_takes_first_unused_label(self) -> None:
        result = score_and_label([{"name": "Grilled chicken"}, {"name": "Grilled tofu"}])
        assert [item.title for item in result.top3] == ["Grilled chicken", "Grilled tofu", "Grilled tofu (Alt)"]
        assert [item.label for item in result.top3] == [Category.RECOVERY, Category.RECOVERY, Category.HEALTHY]
        assert set(Category) == {Category.RECOVERY, Category.HEALTHY, Category.COMFORTING}
