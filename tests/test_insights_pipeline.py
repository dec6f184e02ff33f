"""
Tests for the batch insights pipeline (stock_insights/pipelines/insights_pipeline.py)
"""

import asyncio
from datetime import date

import pytest

from conftest import FakeClock, StubProvider, build_history
from stock_insights.cache.ttl_cache import TTLCache
from stock_insights.config import ProviderConfig
from stock_insights.data.market_data import ComprehensiveDataService
from stock_insights.models.inputs import MarketContext
from stock_insights.outputs.narrative import NarrativeRenderer
from stock_insights.pipelines.insights_pipeline import InsightsResult, run_insights


AS_OF = date(2024, 3, 1)


def make_service(tmp_path, provider):
    cache = TTLCache(tmp_path / "cache.json", clock=FakeClock())
    return ComprehensiveDataService(provider, cache, ProviderConfig(provider_path=None, completer_path=None))


class TestRunInsights:

    def test_predicts_every_symbol(self, tmp_path):
        service = make_service(tmp_path, StubProvider())
        result = asyncio.run(run_insights(["aapl", "msft"], service, as_of=AS_OF))

        assert isinstance(result, InsightsResult)
        assert set(result.predictions) == {"AAPL", "MSFT"}
        assert result.errors == []
        assert result.narratives == {}
        assert result.analyst_ratings["AAPL"].sentiment == "bullish"
        assert set(result.analyst_ratings) == {"AAPL", "MSFT"}
        assert result.duration_seconds >= 0.0

    def test_fetch_failure_recorded(self, tmp_path):
        service = make_service(tmp_path, StubProvider(fail=["MSFT"]))
        result = asyncio.run(run_insights(["AAPL", "MSFT"], service, as_of=AS_OF))

        assert list(result.predictions) == ["AAPL"]
        assert len(result.errors) == 1
        assert result.errors[0].startswith("MSFT: ")

    def test_short_history_recorded(self, tmp_path):
        service = make_service(tmp_path, StubProvider(closes=[100.0] * 10))
        result = asyncio.run(run_insights(["AAPL"], service, as_of=AS_OF))

        assert result.predictions == {}
        assert len(result.errors) == 1
        assert "Need at least 30 days" in result.errors[0]

    def test_zero_close_does_not_abort_batch(self, tmp_path):
        bad_history = [
            {"date": p.date, "close": p.close, "volume": p.volume}
            for p in build_history([100.0] * 30 + [0.0] + [100.0] * 29)
        ]

        class MixedProvider(StubProvider):
            async def get_historical_prices(self, symbol, days=365):
                if symbol == "MSFT":
                    return bad_history
                return await super().get_historical_prices(symbol, days)

        service = make_service(tmp_path, MixedProvider())
        result = asyncio.run(run_insights(["AAPL", "MSFT"], service, as_of=AS_OF))

        assert list(result.predictions) == ["AAPL"]
        assert len(result.errors) == 1
        assert result.errors[0].startswith("MSFT: ")
        assert "Invalid close" in result.errors[0]

    def test_narratives(self, tmp_path):
        service = make_service(tmp_path, StubProvider())
        result = asyncio.run(run_insights(
            ["AAPL"], service,
            market=MarketContext(index_change_percent=0.01, volatility_index_level=15.0),
            as_of=AS_OF,
            narrator=NarrativeRenderer(),
        ))

        assert result.narratives["AAPL"].startswith("AAPL shows")

    def test_to_dict_and_summary(self, tmp_path):
        service = make_service(tmp_path, StubProvider(fail=["MSFT"]))
        result = asyncio.run(run_insights(["AAPL", "MSFT"], service, as_of=AS_OF))

        payload = result.to_dict()
        assert set(payload) == {"predictions", "narratives", "analystRatings", "errors"}
        assert payload["predictions"]["AAPL"]["symbol"] == "AAPL"
        assert payload["analystRatings"]["AAPL"]["sentiment"] == "bullish"

        text = result.summary()
        assert "1 predictions, 1 errors" in text
        assert "MSFT" in text
        assert "Analyst ratings: bullish (1 up / 0 down)" in text

    def test_empty_batch(self, tmp_path):
        service = make_service(tmp_path, StubProvider())
        result = asyncio.run(run_insights([], service))
        assert result.predictions == {}
        assert result.errors == []
