import json
from typing import Any

from .schemas import MONTHS, QueryKind

SYSTEM_PROMPT = """
You are a senior e-commerce market analyst who specialises in Etsy sellers.

Your reply is consumed by a program, not a person:
- Output exactly one JSON object and nothing else.
- Every key in the schema below is required, at every nesting level.
- Do not add keys that the schema does not declare.

Required JSON Schema:
{schema}
"""

OUTPUT_RULE = "Respond with ONLY the JSON object, no markdown fences (no ```json), no commentary."

NO_LIVE_DATA = (
    "You cannot access live Etsy data, shop pages or URLs. "
    "Do not claim to have looked anything up; generate a realistic, hypothetical analysis instead."
)

KEYWORD_TEMPLATE = """
You are an expert Etsy SEO and market research analyst.
Analyze the following keyword for a seller on Etsy: "{keyword}".

Provide a detailed analysis in JSON format. The JSON object must have the following structure:
{example}

Base your analysis on typical e-commerce and Etsy trends.
- historical_data MUST have exactly 12 points, one per month from Jan to Dec, in calendar order.
- Ensure the historical data shows realistic fluctuation (e.g., seasonal peaks).
- competition_score is an integer from 0 to 100.
- Order every list by relevance, most relevant first.
{output_rule}
"""

SHOP_TEMPLATE = """
You are an expert Etsy business analyst. {no_live_data}
Analyze the hypothetical Etsy shop named: "{shop_name}".

Provide a detailed analysis in JSON format. The JSON object must have the following structure:
{example}

- shop_name must repeat the shop name exactly as given.
{output_rule}
"""

PRODUCT_TEMPLATE = """
You are an expert Etsy listing optimizer and data analyst. {no_live_data}
Analyze the following Etsy product concept: "{product}".
Even if a URL is provided, you cannot access it; base the analysis on the product concept derived from the text.

Provide a detailed, comprehensive and realistic hypothetical analysis in JSON format for a successful listing of this type.
The JSON object must have the exact structure below:
{example}

- product_concept must repeat the product concept exactly as given.
- Each of historical_data.sales, historical_data.views and historical_data.favorites MUST have exactly 12 points, Jan to Dec.
- Ensure the performance metrics and historical data are realistic for a well-performing listing in a moderately competitive niche.
{output_rule}
"""

RANK_TEMPLATE = """
You are an expert Etsy SEO and search ranking analyst. {no_live_data}
Analyze the hypothetical ranking potential for an Etsy product based on its description and a target keyword.

Product Description: "{product}"
Target Keyword: "{keyword}"

Provide a detailed, realistic and hypothetical analysis in JSON format. The JSON object must have the exact structure below.
Assume the product has good photos, a complete shop profile and positive reviews.
{example}

{output_rule}
"""

QUERY_ARITY = {
    QueryKind.KEYWORD: 1,
    QueryKind.SHOP: 1,
    QueryKind.PRODUCT: 1,
    QueryKind.RANK: 2,
}


def _series(values: list[int]) -> list[dict[str, Any]]:
    return [{"month": month, "value": value} for month, value in zip(MONTHS, values)]


def _keyword_example() -> dict[str, Any]:
    return {
        "competition": "Medium",
        "search_volume": "High",
        "buyer_intent": "Transactional",
        "competition_score": 78,
        "estimated_monthly_searches": 12500,
        "historical_data": _series([60, 65, 70, 75, 80, 85, 70, 65, 80, 90, 100, 95]),
        "niche_suggestions": ["niche idea 1", "niche idea 2"],
        "long_tail_keywords": ["long tail 1", "long tail 2"],
        "suggested_tags": [f"tag {n}" for n in range(1, 14)],
        "product_ideas": ["product idea 1", "product idea 2"],
    }


def _shop_example(shop_name: str) -> dict[str, Any]:
    return {
        "shop_name": shop_name,
        "niche": "description of the shop's niche",
        "estimated_monthly_sales": "50-100 sales",
        "top_keywords": ["keyword 1", "keyword 2", "keyword 3"],
        "strengths": ["strength 1", "strength 2"],
        "areas_for_improvement": ["suggestion 1", "suggestion 2"],
    }


def _product_example(product: str) -> dict[str, Any]:
    return {
        "product_concept": product,
        "title_suggestion": "A highly optimized title suggestion.",
        "description_feedback": "Actionable feedback on how to improve the product description.",
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
        "category": "Home & Living > Home Decor",
        "visibility_score": "92/100",
        "review_ratio": "20%",
        "tags_analysis": [
            {"tag": "custom star map", "volume": "High", "competition": "Medium", "score": 85},
            {"tag": "night sky print", "volume": "High", "competition": "High", "score": 75},
            {"tag": "constellation map", "volume": "Medium", "competition": "Medium", "score": 68},
        ],
        "listing_details": {
            "when_made": "Made to order",
            "listing_type": "Physical",
            "customizable": True,
            "craft_supply": False,
            "personalized": True,
            "auto_renew": True,
            "has_variations": True,
            "title_character_count": 135,
            "tags_count": 13,
            "who_made": "I did",
        },
        "historical_data": {
            "sales": _series([20, 22, 25, 30, 28, 35, 32, 38, 40, 45, 55, 60]),
            "views": _series([1500, 1600, 1700, 1800, 1900, 2100, 2000, 2200, 2400, 2800, 3200, 3500]),
            "favorites": _series([15, 18, 20, 25, 30, 35, 32, 40, 45, 50, 60, 70]),
        },
        "visibility_analysis": (
            "This listing likely ranks well for its primary keywords due to strong SEO "
            "and benefits from being featured in gift guides."
        ),
    }


def _rank_example() -> dict[str, Any]:
    return {
        "estimated_rank": "Page 1, Top 10",
        "rank_explanation": (
            "A detailed explanation for the estimated rank, considering keyword relevance, "
            "competition and potential listing quality based on the description."
        ),
        "improvement_suggestions": [
            "Actionable suggestion 1 to improve rank.",
            "Actionable suggestion 2.",
            "Actionable suggestion 3.",
        ],
    }


def _render(example: dict[str, Any]) -> str:
    return json.dumps(example, indent=2, ensure_ascii=False)


def build_prompt(kind: QueryKind, *inputs: str) -> str:
    kind = QueryKind(kind)
    expected = QUERY_ARITY[kind]
    if len(inputs) != expected:
        raise ValueError(f"{kind.value} query takes {expected} input(s), got {len(inputs)}")

    if kind is QueryKind.KEYWORD:
        (keyword,) = inputs
        return KEYWORD_TEMPLATE.format(
            keyword=keyword,
            example=_render(_keyword_example()),
            output_rule=OUTPUT_RULE,
        )
    if kind is QueryKind.SHOP:
        (shop_name,) = inputs
        return SHOP_TEMPLATE.format(
            shop_name=shop_name,
            no_live_data=NO_LIVE_DATA,
            example=_render(_shop_example(shop_name)),
            output_rule=OUTPUT_RULE,
        )
    if kind is QueryKind.PRODUCT:
        (product,) = inputs
        return PRODUCT_TEMPLATE.format(
            product=product,
            no_live_data=NO_LIVE_DATA,
            example=_render(_product_example(product)),
            output_rule=OUTPUT_RULE,
        )
    keyword, product = inputs
    return RANK_TEMPLATE.format(
        keyword=keyword,
        product=product,
        no_live_data=NO_LIVE_DATA,
        example=_render(_rank_example()),
        output_rule=OUTPUT_RULE,
    )


def build_system_prompt(json_schema: dict[str, Any]) -> str:
    return SYSTEM_PROMPT.format(
        schema=json.dumps(json_schema, separators=(",", ":"), sort_keys=True, ensure_ascii=False)
    )
