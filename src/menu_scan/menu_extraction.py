from __future__ import annotations

import json
import logging
from typing import Any, List, Optional

from .llm_client import LLMError, OpenAIChatClient, is_error_sentinel, safe_json_parse
from .menu_text import extract_dishes_from_text
from .models import Dish
from .normalizer import normalize_dishes

logger = logging.getLogger(__name__)

MAX_MENU_CHARS = 12000


class MenuExtractionError(ValueError):
    """Raised when there is no menu text to work with."""


class MenuExtractor:
    """
    Turns raw OCR text into `Dish` records.

    The LLM is asked for a JSON dish list; when it is not configured, fails, or
    replies with something unusable, the deterministic text parser takes over.
    """

    SYSTEM_PROMPT = """
You read the OCR text of a restaurant menu and list every dish on it.
Always respond with valid JSON only, as an array:
[
  {
    "title": "string",
    "description": "string (ingredients and preparation, empty if none)",
    "price": "number or null",
    "currency": "symbol such as € or $, or null",
    "section": "menu section heading or null",
    "tags": ["short lowercase tags such as vegetarian, spicy, fried"]
  }
]
Guidelines:
- Keep the dish names in the menu's language; fix obvious OCR typos only.
- Do not invent dishes, prices or ingredients that are not in the text.
- Skip drinks unless the menu has nothing else.
- Never add commentary outside the JSON array.
""".strip()

    def __init__(self, llm_client: Optional[OpenAIChatClient] = None, *, use_llm: bool = True):
        self.llm_client = llm_client
        self.use_llm = use_llm and llm_client is not None

    def extract(self, menu_text: str) -> List[Dish]:
        text = (menu_text or "").strip()
        if not text:
            raise MenuExtractionError("Menu text is empty.")

        if self.use_llm:
            dishes = self._extract_with_llm(text[:MAX_MENU_CHARS])
            if dishes:
                return dishes
            logger.info("Falling back to the text parser for menu extraction")
        return extract_dishes_from_text(text)

    def _extract_with_llm(self, text: str) -> List[Dish]:
        if self.llm_client is None:
            return []
        try:
            reply = self.llm_client.chat(
                [{"role": "user", "content": json.dumps({"menu_text": text}, ensure_ascii=False)}],
                system_prompt=self.SYSTEM_PROMPT,
            )
        except LLMError as exc:
            logger.warning("LLM menu extraction failed: %s", exc)
            return []
        return self._parse_reply(reply)

    @staticmethod
    def _parse_reply(reply: str) -> List[Dish]:
        data: Any = safe_json_parse(reply)
        if is_error_sentinel(data):
            return []
        if isinstance(data, dict):
            data = data.get("dishes") or data.get("items") or [data]
        if not isinstance(data, list):
            logger.warning("LLM menu extraction returned %s instead of a list", type(data).__name__)
            return []
        records = [entry for entry in data if isinstance(entry, dict) and (entry.get("title") or entry.get("name"))]
        return normalize_dishes(records)
