"""Keyword dictionaries shared by the filtering and scoring stages.

Menus arrive in English, French and Spanish, so most lists carry all three.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Dict, Iterable, Optional, Pattern, Tuple

ALLERGEN_SYNONYMS: Dict[str, Tuple[str, ...]] = {
    "egg": ("egg", "eggs", "oeuf", "œuf", "huevo", "mayonnaise", "mayo", "aioli", "meringue", "omelette"),
    "nuts": (
        "nut",
        "peanut",
        "almond",
        "walnut",
        "cashew",
        "hazelnut",
        "pecan",
        "pistachio",
        "macadamia",
        "praline",
        "noix",
        "amande",
        "noisette",
        "cacahuète",
        "arachide",
        "satay",
    ),
    "peanut": ("peanut", "arachide", "cacahuète", "cacahuete", "satay", "groundnut"),
    "dairy": (
        "milk",
        "cheese",
        "butter",
        "cream",
        "yogurt",
        "yoghurt",
        "ghee",
        "whey",
        "parmesan",
        "mozzarella",
        "feta",
        "ricotta",
        "burrata",
        "lait",
        "fromage",
        "beurre",
        "crème",
        "queso",
        "leche",
    ),
    "gluten": (
        "wheat",
        "flour",
        "bread",
        "pasta",
        "noodle",
        "couscous",
        "barley",
        "rye",
        "seitan",
        "breaded",
        "crouton",
        "bun",
        "pain",
        "pâtes",
        "farine",
        "blé",
    ),
    "shellfish": (
        "shrimp",
        "prawn",
        "crab",
        "lobster",
        "crayfish",
        "scallop",
        "mussel",
        "clam",
        "oyster",
        "langoustine",
        "crevette",
        "homard",
        "moule",
        "gambas",
        "camarón",
    ),
    "fish": (
        "fish",
        "salmon",
        "tuna",
        "cod",
        "anchovy",
        "sardine",
        "trout",
        "halibut",
        "tilapia",
        "seabass",
        "poisson",
        "saumon",
        "thon",
        "cabillaud",
        "pescado",
    ),
    "soy": ("soy", "soja", "tofu", "tempeh", "edamame", "miso", "tamari"),
    "sesame": ("sesame", "sésame", "tahini", "hummus", "houmous"),
}

ALLERGEN_ALIASES: Dict[str, str] = {
    "eggs": "egg",
    "nut": "nuts",
    "tree nuts": "nuts",
    "tree_nuts": "nuts",
    "peanuts": "peanut",
    "milk": "dairy",
    "lactose": "dairy",
    "wheat": "gluten",
    "seafood": "shellfish",
    "crustaceans": "shellfish",
    "soya": "soy",
}

PORK_KEYWORDS = (
    "pork",
    "bacon",
    "ham",
    "lard",
    "prosciutto",
    "chorizo",
    "pancetta",
    "salami",
    "pepperoni",
    "carnitas",
    "porc",
    "jambon",
    "lardon",
    "cerdo",
    "jamón",
    "cochinita",
)

MEAT_KEYWORDS = (
    "meat",
    "beef",
    "steak",
    "chicken",
    "pork",
    "lamb",
    "turkey",
    "duck",
    "veal",
    "venison",
    "mutton",
    "goat",
    "bacon",
    "ham",
    "sausage",
    "meatball",
    "brisket",
    "prosciutto",
    "chorizo",
    "salami",
    "pepperoni",
    "pancetta",
    "lard",
    "carnitas",
    "birria",
    "poulet",
    "boeuf",
    "bœuf",
    "porc",
    "agneau",
    "dinde",
    "canard",
    "veau",
    "jambon",
    "lardon",
    "viande",
    "pollo",
    "carne",
    "cerdo",
)

FISH_KEYWORDS = (
    "fish",
    "seafood",
    "salmon",
    "tuna",
    "cod",
    "trout",
    "halibut",
    "tilapia",
    "seabass",
    "anchovy",
    "sardine",
    "shrimp",
    "prawn",
    "crab",
    "lobster",
    "scallop",
    "mussel",
    "clam",
    "oyster",
    "squid",
    "calamari",
    "octopus",
    "poisson",
    "saumon",
    "thon",
    "cabillaud",
    "crevette",
    "pescado",
    "gambas",
)

ANIMAL_PRODUCT_KEYWORDS = (
    "milk",
    "cheese",
    "butter",
    "cream",
    "yogurt",
    "yoghurt",
    "ghee",
    "whey",
    "honey",
    "egg",
    "mayonnaise",
    "mayo",
    "parmesan",
    "mozzarella",
    "feta",
    "ricotta",
    "lait",
    "fromage",
    "beurre",
    "crème",
    "oeuf",
    "œuf",
    "queso",
    "leche",
    "huevo",
)

# Phrases whose animal-sounding word is plant based ("peanut butter", "coconut milk").
PLANT_BASED_PHRASES = (
    "peanut butter",
    "almond butter",
    "cashew butter",
    "nut butter",
    "cocoa butter",
    "shea butter",
    "apple butter",
    "coconut milk",
    "coconut cream",
    "almond milk",
    "oat milk",
    "soy milk",
    "rice milk",
    "cauliflower steak",
    "lait de coco",
    "crème de coco",
)
PLANT_BASED_QUALIFIER_RE = re.compile(
    r"\b(?:vegan|plant[- ]based|meatless|mock|faux|imitation|meat[- ]free|dairy[- ]free|egg[- ]free"
    r"|no|without|sans|sin)\s+[\wàâçéèêëîïôûùüÿñœ'-]+"
)

PROTEIN_SOURCE_SYNONYMS: Dict[str, Tuple[str, ...]] = {
    "tofu_tempeh": ("tofu", "tempeh"),
    "plant_based": ("tofu", "tempeh", "seitan", "lentil", "chickpea", "bean"),
    "legumes": ("legume", "lentil", "chickpea", "bean", "edamame", "hummus", "dal", "lentille", "pois chiche", "haricot"),
    "red_meat": ("beef", "steak", "lamb", "veal", "bison", "venison", "boeuf", "agneau"),
    "poultry": ("chicken", "turkey", "duck", "poulet", "dinde", "canard"),
    "chicken": ("chicken", "poulet", "pollo"),
    "beef": ("beef", "steak", "boeuf"),
    "fish": ("fish", "salmon", "tuna", "cod", "trout", "seabass", "poisson", "saumon", "thon"),
    "seafood": ("seafood", "shrimp", "prawn", "crab", "lobster", "scallop", "mussel", "squid", "calamari"),
    "fish_seafood": (
        "fish",
        "salmon",
        "tuna",
        "cod",
        "seafood",
        "shrimp",
        "prawn",
        "crab",
        "scallop",
        "poisson",
        "saumon",
    ),
    "eggs": ("egg", "oeuf", "œuf", "omelette"),
    "dairy": ("cheese", "yogurt", "yoghurt", "paneer", "ricotta", "cottage"),
    "pork": ("pork", "bacon", "ham", "porc"),
}


def allergen_terms(allergy: str) -> Tuple[str, ...]:
    """Return every keyword that signals `allergy`, including the allergy itself."""

    key = allergy.strip().lower()
    canonical = ALLERGEN_ALIASES.get(key, key)
    synonyms = ALLERGEN_SYNONYMS.get(canonical, ())
    return tuple(dict.fromkeys((key, *synonyms)))


def protein_source_terms(source: str) -> Tuple[str, ...]:
    key = source.strip().lower()
    return PROTEIN_SOURCE_SYNONYMS.get(key, (key.replace("_", " "),))


def contains_any(text: str, keywords: Iterable[str]) -> bool:
    return any(keyword in text for keyword in keywords)


def first_substring(text: str, keywords: Iterable[str]) -> Optional[str]:
    for keyword in keywords:
        if keyword and keyword in text:
            return keyword
    return None


@lru_cache(maxsize=None)
def _word_pattern(keyword: str) -> Pattern[str]:
    return re.compile(rf"(?<!\w){re.escape(keyword)}(?:s|es)?(?!\w)")


def first_word_match(text: str, keywords: Iterable[str]) -> Optional[str]:
    """Whole-word match that tolerates a plural suffix; "ham" does not hit "hamburger"."""

    for keyword in keywords:
        if _word_pattern(keyword).search(text):
            return keyword
    return None


def strip_plant_based_phrases(text: str) -> str:
    for phrase in PLANT_BASED_PHRASES:
        text = text.replace(phrase, " ")
    return PLANT_BASED_QUALIFIER_RE.sub(" ", text)
