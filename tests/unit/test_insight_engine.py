import json
from decimal import Decimal

import httpx
import pytest

from app.config import settings
from app.domain.models import PortfolioSnapshot, Product, ProductType, RiskLevel
from app.domain.services import insight_engine


def snapshot(gain_pct: str, count: int) -> PortfolioSnapshot:
    return PortfolioSnapshot(
        total_invested=Decimal("10000"),
        current_value=Decimal("10000") * (1 + Decimal(gain_pct) / 100),
        total_gain=Decimal("10000") * Decimal(gain_pct) / 100,
        total_gain_percentage=Decimal(gain_pct),
        investment_count=count,
    )


PRODUCT = Product(
    id="etf-1",
    name="Nifty ETF",
    product_type=ProductType.ETF,
    tenure_months=36,
    annual_yield=Decimal("13.50"),
    risk_level=RiskLevel.HIGH,
    min_investment=Decimal("500.00"),
)


def test_describe_product_template():
    text = insight_engine.describe_product(PRODUCT)

    assert text.startswith("Nifty ETF is a high-risk exchange-traded fund with market exposure")
    assert "13.50% annual returns over 36 months" in text
    assert "₹500.00" in text
    assert text.endswith("high-growth investment opportunities.")


@pytest.mark.parametrize(
    "gain_pct,count,expected_parts",
    [
        ("12.5", 5, ["Excellent performance", "Good diversification"]),
        ("10", 3, ["performing well with positive returns", "Good diversification"]),
        ("0", 1, ["Consider reviewing", "Consider diversifying"]),
        ("-4", 2, ["Consider reviewing", "Consider diversifying"]),
    ],
)
def test_portfolio_insights_rules(gain_pct, count, expected_parts):
    text = insight_engine.portfolio_insights(snapshot(gain_pct, count))
    for part in expected_parts:
        assert part in text


async def test_no_provider_uses_rules():
    snap = snapshot("12.5", 5)
    assert await insight_engine.enrich_portfolio_insights(snap) == insight_engine.portfolio_insights(snap)


async def test_openai_provider_text(monkeypatch):
    monkeypatch.setattr(settings, "LLM_PROVIDER", "openai")
    monkeypatch.setattr(settings, "OPENAI_API_KEY", "sk-test-000000000000000000")
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("Authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={
            "output": [{"content": [{"type": "output_text", "text": "  Strong, well spread portfolio.  "}]}]
        })

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        text = await insight_engine.enrich_portfolio_insights(snapshot("12.5", 5), client=client)

    assert text == "Strong, well spread portfolio."
    assert seen["url"] == "https://api.openai.com/v1/responses"
    assert seen["auth"] == "Bearer sk-test-000000000000000000"
    assert "Number of Investments: 5" in seen["body"]["input"]


async def test_local_provider_text(monkeypatch):
    monkeypatch.setattr(settings, "LLM_PROVIDER", "local")
    monkeypatch.setattr(settings, "LLM_BASE_URL", "http://llm.internal:11434/")

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/generate"
        return httpx.Response(200, json={"response": "A generated description."})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        text = await insight_engine.generate_product_description(PRODUCT, client=client)

    assert text == "A generated description."


async def test_provider_error_falls_back(monkeypatch):
    monkeypatch.setattr(settings, "LLM_PROVIDER", "local")

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, json={"error": "busy"})

    snap = snapshot("3", 1)
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        text = await insight_engine.enrich_portfolio_insights(snap, client=client)

    assert text == insight_engine.portfolio_insights(snap)


async def test_transport_failure_falls_back(monkeypatch):
    monkeypatch.setattr(settings, "LLM_PROVIDER", "local")

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        text = await insight_engine.generate_product_description(PRODUCT, client=client)

    assert text == insight_engine.describe_product(PRODUCT)


async def test_openai_without_key_makes_no_request(monkeypatch):
    monkeypatch.setattr(settings, "LLM_PROVIDER", "openai")
    monkeypatch.setattr(settings, "OPENAI_API_KEY", None)

    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    snap = snapshot("12.5", 5)
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        text = await insight_engine.enrich_portfolio_insights(snap, client=client)

    assert text == insight_engine.portfolio_insights(snap)


async def test_empty_portfolio_skips_provider(monkeypatch):
    monkeypatch.setattr(settings, "LLM_PROVIDER", "local")

    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    snap = snapshot("0", 0)
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        text = await insight_engine.enrich_portfolio_insights(snap, client=client)

    assert text == insight_engine.portfolio_insights(snap)


@pytest.mark.parametrize(
    "body",
    [
        {"text": "<html>proxy error</html>"},
        {"json": ["not", "an", "object"]},
        {"json": {"response": 42}},
    ],
)
async def test_unreadable_provider_body_falls_back(monkeypatch, body):
    monkeypatch.setattr(settings, "LLM_PROVIDER", "local")

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, **body)

    snap = snapshot("12.5", 5)
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        insights = await insight_engine.enrich_portfolio_insights(snap, client=client)
        description = await insight_engine.generate_product_description(PRODUCT, client=client)

    assert insights == insight_engine.portfolio_insights(snap)
    assert description == insight_engine.describe_product(PRODUCT)


async def test_unreadable_openai_output_falls_back(monkeypatch):
    monkeypatch.setattr(settings, "LLM_PROVIDER", "openai")
    monkeypatch.setattr(settings, "OPENAI_API_KEY", "sk-test-000000000000000000")

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"output": ["plain string item"]})

    snap = snapshot("12.5", 5)
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        text = await insight_engine.enrich_portfolio_insights(snap, client=client)

    assert text == insight_engine.portfolio_insights(snap)
