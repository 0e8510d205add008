import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Iterable

from .analyzer import AnalysisGateway, InvalidQuery
from .models import KeywordAnalysis

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, KeywordAnalysis | None], None]


def normalize_keywords(keywords: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    ordered = []
    for keyword in keywords:
        keyword = keyword.strip()
        if keyword and keyword not in seen:
            seen.add(keyword)
            ordered.append(keyword)
    return ordered


async def bulk_analyze_keywords(
    gateway: AnalysisGateway,
    keywords: Iterable[str],
    on_progress: ProgressCallback | None = None,
) -> dict[str, KeywordAnalysis | None]:
    """Analyze keywords one at a time, in the order given.

    ``on_progress`` fires after each keyword settles. A failed keyword maps to
    ``None`` and does not stop the run.
    """
    ordered = normalize_keywords(keywords)
    if not ordered:
        raise InvalidQuery("at least one keyword is required")

    results: dict[str, KeywordAnalysis | None] = {}
    for idx, keyword in enumerate(ordered, 1):
        logger.info("bulk analysis %d/%d: %s", idx, len(ordered), keyword)
        result = await gateway.analyze_keyword(keyword)
        results[keyword] = result
        if on_progress is not None:
            on_progress(keyword, result)
    return results


@dataclass(frozen=True)
class KeywordComparison:
    first_keyword: str
    second_keyword: str
    first: KeywordAnalysis | None
    second: KeywordAnalysis | None

    @property
    def complete(self) -> bool:
        return self.first is not None and self.second is not None


async def compare_keywords(gateway: AnalysisGateway, first: str, second: str) -> KeywordComparison:
    if not first.strip() or not second.strip():
        raise InvalidQuery("both keywords are required to compare")

    first_result, second_result = await asyncio.gather(
        gateway.analyze_keyword(first),
        gateway.analyze_keyword(second),
    )
    comparison = KeywordComparison(
        first_keyword=first,
        second_keyword=second,
        first=first_result,
        second=second_result,
    )
    if not comparison.complete:
        logger.warning("comparison of '%s' and '%s' is incomplete", first, second)
    return comparison
