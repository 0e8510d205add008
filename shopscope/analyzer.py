import json
import logging

from pydantic import BaseModel, ValidationError

from .llm import EmptyModelOutput, InvalidModelJSON, StructuredGenerator
from .models import AnalysisLike, KeywordAnalysis, ProductAnalysis, RankAnalysis, ShopAnalysis
from .prompts import QUERY_ARITY, build_prompt
from .schemas import QueryKind, get_schema, validate

logger = logging.getLogger(__name__)

RESULT_MODELS: dict[QueryKind, type[BaseModel]] = {
    QueryKind.KEYWORD: KeywordAnalysis,
    QueryKind.SHOP: ShopAnalysis,
    QueryKind.PRODUCT: ProductAnalysis,
    QueryKind.RANK: RankAnalysis,
}


class InvalidQuery(ValueError):
    pass


def check_inputs(kind: QueryKind, inputs: tuple[str, ...]) -> None:
    expected = QUERY_ARITY[kind]
    if len(inputs) != expected:
        raise InvalidQuery(f"{kind.value} query takes {expected} input(s), got {len(inputs)}")
    for value in inputs:
        if not isinstance(value, str) or not value.strip():
            raise InvalidQuery(f"{kind.value} query requires non-empty input")


def _reject_constant(name: str) -> None:
    raise ValueError(f"{name} is not valid JSON")


def parse_result(kind: QueryKind, raw: str) -> AnalysisLike:
    raw = raw.strip()
    if not raw:
        raise EmptyModelOutput()

    try:
        data = json.loads(raw, parse_constant=_reject_constant)
    except ValueError as e:
        raise InvalidModelJSON(raw_text=raw, error=str(e), kind="json_decode") from e

    violations = validate(get_schema(kind), data)
    if violations:
        raise InvalidModelJSON(raw_text=raw, error="; ".join(violations), kind="schema_validation")

    try:
        return RESULT_MODELS[kind].model_validate(data)
    except ValidationError as e:
        raise InvalidModelJSON(raw_text=raw, error=str(e), kind="schema_validation") from e


class AnalysisGateway:
    """Turns one query into one remote generation call and a typed result.

    Every failure past input validation comes back as ``None``: transport
    errors, rejected calls, empty replies, invalid JSON and schema violations
    are logged here and never raised to the caller. Blank inputs raise
    :class:`InvalidQuery` before anything is sent.
    """

    def __init__(self, generator: StructuredGenerator):
        self._generator = generator

    async def analyze(self, kind: QueryKind, *inputs: str) -> AnalysisLike | None:
        kind = QueryKind(kind)
        check_inputs(kind, inputs)

        prompt = build_prompt(kind, *inputs)
        schema = get_schema(kind).to_json_schema()

        try:
            raw = await self._generator.generate_structured(prompt, schema)
            result = parse_result(kind, raw)
        except InvalidModelJSON as exc:
            logger.warning("%s analysis rejected (%s): %s", kind.value, exc.kind, exc.error)
            logger.debug("raw model output: %s", exc.raw_text)
            return None
        except Exception as exc:
            logger.error(
                "%s analysis failed: %s",
                kind.value,
                exc,
                exc_info=logger.isEnabledFor(logging.DEBUG),
            )
            return None

        logger.info("%s analysis succeeded", kind.value)
        return result

    async def analyze_keyword(self, keyword: str) -> KeywordAnalysis | None:
        return await self.analyze(QueryKind.KEYWORD, keyword)

    async def analyze_shop(self, shop_name: str) -> ShopAnalysis | None:
        return await self.analyze(QueryKind.SHOP, shop_name)

    async def analyze_product(self, product_description: str) -> ProductAnalysis | None:
        return await self.analyze(QueryKind.PRODUCT, product_description)

    async def analyze_rank(self, keyword: str, product_description: str) -> RankAnalysis | None:
        return await self.analyze(QueryKind.RANK, keyword, product_description)
