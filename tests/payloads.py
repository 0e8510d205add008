"""Sample model replies and a scripted generator for gateway tests."""

import asyncio
import json
import re
from typing import Any, Callable

from shopscope.schemas import MONTHS

_KEYWORD_IN_PROMPT = re.compile(r'for a seller on Etsy: "(.*?)"\.')


def series(start: int = 10, step: int = 5) -> list[dict[str, Any]]:
    return [{"month": month, "value": start + i * step} for i, month in enumerate(MONTHS)]


def keyword_payload(**overrides: Any) -> dict[str, Any]:
    payload = {
        "competition": "Medium",
        "search_volume": "High",
        "buyer_intent": "Transactional",
        "competition_score": 64,
        "estimated_monthly_searches": 8200,
        "historical_data": series(),
        "niche_suggestions": ["travel journals", "refillable notebooks"],
        "long_tail_keywords": ["personalized leather journal for men"],
        "suggested_tags": ["leather journal", "handmade notebook", "gift for writer"],
        "product_ideas": ["monogrammed journal cover"],
    }
    payload.update(overrides)
    return payload


def shop_payload(shop_name: str = "ExampleShop", **overrides: Any) -> dict[str, Any]:
    payload = {
        "shop_name": shop_name,
        "niche": "Minimalist ceramic homeware",
        "estimated_monthly_sales": "80-120 sales",
        "top_keywords": ["ceramic mug", "handmade planter"],
        "strengths": ["cohesive branding"],
        "areas_for_improvement": ["add more lifestyle photos"],
    }
    payload.update(overrides)
    return payload


def product_payload(product_concept: str = "custom star map print", **overrides: Any) -> dict[str, Any]:
    payload = {
        "product_concept": product_concept,
        "title_suggestion": "Custom Star Map Print, Night Sky Anniversary Gift",
        "description_feedback": "Lead with the personalization options.",
        "pricing_suggestion": "$25-$35",
        "monthly_sales": "30-50",
        "monthly_revenue": "$900 - $1,500",
        "total_sales": 320,
        "listing_age": "7 months",
        "reviews": 65,
        "views": 2500,
        "favorites": 210,
        "monthly_reviews": "5-8",
        "conversion_rate": "2.1%",
        "category": "Art & Collectibles > Prints",
        "visibility_score": "88/100",
        "review_ratio": "20%",
        "tags_analysis": [
            {"tag": "custom star map", "volume": "High", "competition": "Medium", "score": 85},
        ],
        "listing_details": {
            "when_made": "Made to order",
            "listing_type": "Digital",
            "customizable": True,
            "craft_supply": False,
            "personalized": True,
            "auto_renew": True,
            "has_variations": False,
            "title_character_count": 52,
            "tags_count": 13,
            "who_made": "I did",
        },
        "historical_data": {
            "sales": series(20, 3),
            "views": series(1500, 150),
            "favorites": series(15, 4),
        },
        "visibility_analysis": "Likely first page for 'custom star map'.",
    }
    payload.update(overrides)
    return payload


def rank_payload(**overrides: Any) -> dict[str, Any]:
    payload = {
        "estimated_rank": "Page 1, Top 10",
        "rank_explanation": "Strong keyword match in the title.",
        "improvement_suggestions": ["Use all 13 tags.", "Add a size chart image."],
    }
    payload.update(overrides)
    return payload


def keyword_in(prompt: str) -> str:
    match = _KEYWORD_IN_PROMPT.search(prompt)
    return match.group(1) if match else ""


Reply = str | BaseException | dict[str, Any]


class FakeGenerator:
    """Scripted stand-in for the remote model.

    ``reply`` is either a fixed reply or a callable taking the prompt. Dict
    replies are sent as JSON text; exceptions are raised from the call.
    """

    def __init__(self, reply: Reply | Callable[[str], Reply], delay: Callable[[str], float] | None = None):
        self._reply = reply
        self._delay = delay
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.events: list[tuple[str, str]] = []

    async def generate_structured(self, prompt: str, schema: dict[str, Any]) -> str:
        self.calls.append((prompt, schema))
        label = keyword_in(prompt)
        self.events.append(("start", label))
        if self._delay is not None:
            await asyncio.sleep(self._delay(prompt))
        reply = self._reply(prompt) if callable(self._reply) else self._reply
        self.events.append(("end", label))
        if isinstance(reply, BaseException):
            raise reply
        if isinstance(reply, dict):
            return json.dumps(reply)
        return reply
