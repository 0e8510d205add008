"""Tests for the analysis gateway and the Anthropic generator."""

import asyncio
import json
import logging
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from payloads import FakeGenerator, keyword_payload, product_payload, rank_payload, series, shop_payload
from shopscope.analyzer import AnalysisGateway, InvalidQuery, parse_result
from shopscope.llm import AnthropicGenerator, EmptyModelOutput, InvalidModelJSON, extract_text, resolve_client
from shopscope.models import KeywordAnalysis, ProductAnalysis, RankAnalysis, ShopAnalysis
from shopscope.schemas import QueryKind, get_schema


def run(coro):
    return asyncio.run(coro)


class TestAnalyzeSuccess:
    """Well-formed replies come back as typed results."""

    def test_keyword(self):
        generator = FakeGenerator(keyword_payload())
        gateway = AnalysisGateway(generator)

        result = run(gateway.analyze_keyword("handmade leather journal"))

        assert isinstance(result, KeywordAnalysis)
        assert result.competition in {"Low", "Medium", "High"}
        assert 0 <= result.competition_score <= 100
        assert len(result.historical_data) == 12
        assert [point.month for point in result.historical_data][:3] == ["Jan", "Feb", "Mar"]

    def test_exactly_one_call_with_schema(self):
        generator = FakeGenerator(keyword_payload())
        gateway = AnalysisGateway(generator)

        run(gateway.analyze_keyword("handmade leather journal"))

        assert len(generator.calls) == 1
        prompt, schema = generator.calls[0]
        assert '"handmade leather journal"' in prompt
        assert schema == get_schema(QueryKind.KEYWORD).to_json_schema()

    def test_shop(self):
        gateway = AnalysisGateway(FakeGenerator(shop_payload("ExampleShop")))
        result = run(gateway.analyze_shop("ExampleShop"))
        assert isinstance(result, ShopAnalysis)
        assert result.shop_name == "ExampleShop"

    def test_product(self):
        gateway = AnalysisGateway(FakeGenerator(product_payload()))
        result = run(gateway.analyze_product("custom star map print"))

        assert isinstance(result, ProductAnalysis)
        assert len(result.historical_data.sales) == 12
        assert len(result.historical_data.views) == 12
        assert len(result.historical_data.favorites) == 12
        assert result.listing_details.tags_count == 13

    def test_rank(self):
        generator = FakeGenerator(rank_payload())
        gateway = AnalysisGateway(generator)

        result = run(gateway.analyze_rank("star map", "Personalized night sky print"))

        assert isinstance(result, RankAnalysis)
        assert result.improvement_suggestions == ["Use all 13 tags.", "Add a size chart image."]
        prompt, _ = generator.calls[0]
        assert '"star map"' in prompt
        assert '"Personalized night sky print"' in prompt

    def test_surrounding_whitespace_trimmed(self):
        gateway = AnalysisGateway(FakeGenerator("\n\n  " + json.dumps(rank_payload()) + "  \n"))
        assert isinstance(run(gateway.analyze_rank("a", "b")), RankAnalysis)

    def test_generic_entry_point(self):
        gateway = AnalysisGateway(FakeGenerator(shop_payload()))
        assert isinstance(run(gateway.analyze("shop", "ExampleShop")), ShopAnalysis)


class TestFailureSentinel:
    """Every failure past input validation becomes None."""

    @pytest.mark.parametrize(
        "reply",
        [
            ConnectionError("network unreachable"),
            TimeoutError("read timed out"),
            RuntimeError("429 rejected"),
            EmptyModelOutput(),
            "",
            "   \n  ",
            "{not json",
            "```json\n" + json.dumps(keyword_payload()) + "\n```",
            json.dumps([keyword_payload()]),
            "null",
        ],
    )
    def test_returns_none(self, reply):
        gateway = AnalysisGateway(FakeGenerator(reply))
        assert run(gateway.analyze_keyword("handmade leather journal")) is None

    def test_missing_required_field(self):
        payload = keyword_payload()
        del payload["suggested_tags"]
        gateway = AnalysisGateway(FakeGenerator(payload))
        assert run(gateway.analyze_keyword("boho decor")) is None

    def test_short_history(self):
        gateway = AnalysisGateway(FakeGenerator(keyword_payload(historical_data=series()[:11])))
        assert run(gateway.analyze_keyword("boho decor")) is None

    def test_short_product_series(self):
        payload = product_payload()
        payload["historical_data"]["favorites"] = series()[:6]
        gateway = AnalysisGateway(FakeGenerator(payload))
        assert run(gateway.analyze_product("linen apron")) is None

    @pytest.mark.parametrize("constant", ["NaN", "Infinity", "-Infinity"])
    def test_non_json_number(self, constant):
        reply = json.dumps(product_payload(views=0)).replace('"views": 0', f'"views": {constant}')
        gateway = AnalysisGateway(FakeGenerator(reply))
        assert run(gateway.analyze_product("linen apron")) is None

    def test_unexpected_field(self):
        gateway = AnalysisGateway(FakeGenerator(product_payload(seo_score=91)))
        assert run(gateway.analyze_product("linen apron")) is None

    def test_network_failure_for_shop(self):
        gateway = AnalysisGateway(FakeGenerator(ConnectionError("connection reset")))
        assert run(gateway.analyze_shop("ExampleShop")) is None

    def test_non_text_reply(self):
        gateway = AnalysisGateway(FakeGenerator(lambda prompt: None))
        assert run(gateway.analyze_rank("a", "b")) is None

    def test_contract_violation_logged(self, caplog):
        gateway = AnalysisGateway(FakeGenerator("{not json"))
        with caplog.at_level(logging.WARNING, logger="shopscope.analyzer"):
            run(gateway.analyze_keyword("boho decor"))
        assert "json_decode" in caplog.text

    def test_transport_failure_logged(self, caplog):
        gateway = AnalysisGateway(FakeGenerator(ConnectionError("connection reset")))
        with caplog.at_level(logging.WARNING, logger="shopscope.analyzer"):
            run(gateway.analyze_shop("ExampleShop"))
        assert "connection reset" in caplog.text


class TestInputErrors:
    """Blank inputs raise before any remote call."""

    @pytest.mark.parametrize("keyword", ["", "   ", "\n\t"])
    def test_blank_keyword(self, keyword):
        generator = FakeGenerator(keyword_payload())
        gateway = AnalysisGateway(generator)

        with pytest.raises(InvalidQuery):
            run(gateway.analyze_keyword(keyword))
        assert generator.calls == []

    def test_blank_rank_description(self):
        generator = FakeGenerator(rank_payload())
        gateway = AnalysisGateway(generator)

        with pytest.raises(InvalidQuery):
            run(gateway.analyze_rank("star map", " "))
        assert generator.calls == []

    def test_wrong_arity(self):
        gateway = AnalysisGateway(FakeGenerator(rank_payload()))
        with pytest.raises(InvalidQuery):
            run(gateway.analyze(QueryKind.RANK, "star map"))

    def test_not_logged(self, caplog):
        gateway = AnalysisGateway(FakeGenerator(keyword_payload()))
        with caplog.at_level(logging.DEBUG, logger="shopscope.analyzer"):
            with pytest.raises(InvalidQuery):
                run(gateway.analyze_keyword(""))
        assert [record for record in caplog.records if record.name.startswith("shopscope")] == []


class TestParseResult:
    """parse_result classifies output failures."""

    def test_empty(self):
        with pytest.raises(EmptyModelOutput):
            parse_result(QueryKind.RANK, "  ")

    def test_decode(self):
        with pytest.raises(InvalidModelJSON) as exc_info:
            parse_result(QueryKind.RANK, "{")
        assert exc_info.value.kind == "json_decode"
        assert exc_info.value.raw_text == "{"

    def test_nan_is_decode_error(self):
        with pytest.raises(InvalidModelJSON) as exc_info:
            parse_result(QueryKind.RANK, '{"estimated_rank": NaN}')
        assert exc_info.value.kind == "json_decode"

    def test_schema(self):
        with pytest.raises(InvalidModelJSON) as exc_info:
            parse_result(QueryKind.RANK, json.dumps({"estimated_rank": "Page 2"}))
        assert exc_info.value.kind == "schema_validation"
        assert "$.rank_explanation: missing required field" in exc_info.value.error


def _response(*texts):
    return SimpleNamespace(content=[SimpleNamespace(type="text", text=text) for text in texts])


class TestAnthropicGenerator:
    """AnthropicGenerator over a mocked async client."""

    def test_request_shape(self):
        client = MagicMock()
        client.messages.create = AsyncMock(return_value=_response(json.dumps(rank_payload())))
        generator = AnthropicGenerator(client=client, model="test-model", max_tokens=1234)
        schema = get_schema(QueryKind.RANK).to_json_schema()

        raw = run(generator.generate_structured("analyze this", schema))

        assert json.loads(raw) == rank_payload()
        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["max_tokens"] == 1234
        assert kwargs["temperature"] == 0.0
        assert kwargs["messages"] == [{"role": "user", "content": "analyze this"}]
        assert '"improvement_suggestions"' in kwargs["system"]

    def test_joins_text_blocks(self):
        client = MagicMock()
        client.messages.create = AsyncMock(return_value=_response('{"a":', " 1}"))
        generator = AnthropicGenerator(client=client)
        assert run(generator.generate_structured("p", {})) == '{"a": 1}'

    def test_empty_reply_fails_through_gateway(self):
        client = MagicMock()
        client.messages.create = AsyncMock(return_value=_response(""))
        gateway = AnalysisGateway(AnthropicGenerator(client=client))
        assert run(gateway.analyze_shop("ExampleShop")) is None

    def test_sdk_error_fails_through_gateway(self):
        client = MagicMock()
        client.messages.create = AsyncMock(side_effect=ConnectionError("dns failure"))
        gateway = AnalysisGateway(AnthropicGenerator(client=client))
        assert run(gateway.analyze_keyword("boho decor")) is None

    def test_end_to_end_keyword(self):
        client = MagicMock()
        client.messages.create = AsyncMock(return_value=_response(json.dumps(keyword_payload())))
        gateway = AnalysisGateway(AnthropicGenerator(client=client))
        result = run(gateway.analyze_keyword("handmade leather journal"))
        assert result.estimated_monthly_searches == 8200


class TestLlmHelpers:
    def test_resolve_client_requires_key(self):
        with pytest.raises(RuntimeError):
            resolve_client()

    def test_resolve_client_prefers_given_client(self):
        client = object()
        assert resolve_client(client=client, api_key="ignored") is client

    def test_extract_text_skips_non_text_blocks(self):
        resp = SimpleNamespace(content=[SimpleNamespace(type="tool_use", id="x"), SimpleNamespace(type="text", text=" {} ")])
        assert extract_text(resp) == " {} "

    def test_extract_text_empty(self):
        with pytest.raises(EmptyModelOutput):
            extract_text(SimpleNamespace(content=[]))
