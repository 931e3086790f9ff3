import json

import pytest

from menu_scan.llm_client import LLMError
from menu_scan.menu_extraction import MenuExtractionError, MenuExtractor

MENU_TEXT = "Soupe du jour 7,00 €\nBurger maison 15 €\nsteak, cheddar, frites"


class FakeLLM:
    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    def chat(self, messages, *, system_prompt=None, response_format=None):
        self.calls.append((messages, system_prompt))
        if self.error:
            raise self.error
        return self.reply


def test_llm_reply_is_normalized() -> None:
    reply = json.dumps(
        [
            {"title": "Soupe du jour", "price": 7, "currency": "€", "tags": ["vegetarian"]},
            {"title": "Burger maison", "description": "steak, cheddar, frites", "price": "15 €"},
            {"description": "no title, dropped"},
        ]
    )
    llm = FakeLLM(reply=reply)
    dishes = MenuExtractor(llm).extract(MENU_TEXT)

    assert [dish.name for dish in dishes] == ["Soupe du jour", "Burger maison"]
    assert dishes[1].price == 15.0
    assert dishes[0].tags == ["vegetarian"]
    messages, system_prompt = llm.calls[0]
    assert system_prompt == MenuExtractor.SYSTEM_PROMPT
    assert json.loads(messages[0]["content"]) == {"menu_text": MENU_TEXT}


def test_wrapped_dish_list() -> None:
    llm = FakeLLM(reply='{"dishes": [{"name": "Tarte Tatin", "price": 6}]}')
    assert [dish.name for dish in MenuExtractor(llm).extract(MENU_TEXT)] == ["Tarte Tatin"]


@pytest.mark.parametrize(
    "llm",
    [FakeLLM(error=LLMError("boom")), FakeLLM(reply="sorry, I cannot read this menu"), None],
)
def test_falls_back_to_text_parser(llm) -> None:
    dishes = MenuExtractor(llm).extract(MENU_TEXT)
    assert [dish.name for dish in dishes] == ["Soupe du jour", "Burger maison"]
    assert dishes[1].description == "steak, cheddar, frites"


def test_llm_disabled() -> None:
    llm = FakeLLM(reply='[{"title": "Ignored"}]')
    extractor = MenuExtractor(llm, use_llm=False)
    assert [dish.name for dish in extractor.extract(MENU_TEXT)] == ["Soupe du jour", "Burger maison"]
    assert llm.calls == []


def test_empty_text() -> None:
    with pytest.raises(MenuExtractionError):
        MenuExtractor().extract("   ")
