from typing import List, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

Level = Literal["Low", "Medium", "High"]
BuyerIntent = Literal["Informational", "Commercial", "Transactional"]


class HistoryPoint(BaseModel):
    model_config = ConfigDict(extra="forbid")

    month: str
    value: float


HistorySeries = List[HistoryPoint]


class KeywordAnalysis(BaseModel):
    model_config = ConfigDict(extra="forbid")

    competition: Level
    search_volume: Level
    buyer_intent: BuyerIntent
    competition_score: int = Field(..., ge=0, le=100)
    estimated_monthly_searches: int = Field(..., ge=0)
    historical_data: HistorySeries = Field(..., min_length=12, max_length=12)
    niche_suggestions: List[str]
    long_tail_keywords: List[str]
    suggested_tags: List[str]
    product_ideas: List[str]


class ShopAnalysis(BaseModel):
    model_config = ConfigDict(extra="forbid")

    shop_name: str
    niche: str
    estimated_monthly_sales: str
    top_keywords: List[str]
    strengths: List[str]
    areas_for_improvement: List[str]


class TagAnalysis(BaseModel):
    model_config = ConfigDict(extra="forbid")

    tag: str
    volume: str
    competition: str
    score: float


class ListingDetails(BaseModel):
    model_config = ConfigDict(extra="forbid")

    when_made: str
    listing_type: str
    customizable: bool
    craft_supply: bool
    personalized: bool
    auto_renew: bool
    has_variations: bool
    title_character_count: int = Field(..., ge=0)
    tags_count: int = Field(..., ge=0)
    who_made: str


class ProductHistory(BaseModel):
    model_config = ConfigDict(extra="forbid")

    sales: HistorySeries = Field(..., min_length=12, max_length=12)
    views: HistorySeries = Field(..., min_length=12, max_length=12)
    favorites: HistorySeries = Field(..., min_length=12, max_length=12)


class ProductAnalysis(BaseModel):
    model_config = ConfigDict(extra="forbid")

    product_concept: str
    title_suggestion: str
    description_feedback: str
    pricing_suggestion: str
    monthly_sales: str
    monthly_revenue: str
    total_sales: float
    listing_age: str
    reviews: float
    views: float
    favorites: float
    monthly_reviews: str
    conversion_rate: str
    category: str
    visibility_score: str
    review_ratio: str
    tags_analysis: List[TagAnalysis]
    listing_details: ListingDetails
    historical_data: ProductHistory
    visibility_analysis: str


class RankAnalysis(BaseModel):
    model_config = ConfigDict(extra="forbid")

    estimated_rank: str
    rank_explanation: str
    improvement_suggestions: List[str]


class FavoriteKeyword(BaseModel):
    model_config = ConfigDict(extra="forbid")

    keyword: str = Field(..., min_length=1)
    analysis: KeywordAnalysis


class KeywordList(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    keywords: List[str]
    created_at: str = Field(..., alias="createdAt")


FavoriteKind = Literal["keywords", "shops", "products"]
FavoriteEntry = Union[FavoriteKeyword, ShopAnalysis, ProductAnalysis]
AnalysisLike = Union[KeywordAnalysis, ShopAnalysis, ProductAnalysis, RankAnalysis]
