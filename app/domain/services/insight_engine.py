"""Rule-based product/portfolio text + optional LLM enrichment (never required)."""
from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Optional
import logging

import httpx

from app.config import settings
from app.domain.models import PortfolioSnapshot, Product, ProductType, RiskLevel

logger = logging.getLogger(__name__)

_TYPE_DESCRIPTIONS = {
    ProductType.BOND: "secure government or corporate bonds",
    ProductType.FD: "fixed deposit with guaranteed returns",
    ProductType.MF: "professionally managed mutual fund",
    ProductType.ETF: "exchange-traded fund with market exposure",
    ProductType.OTHER: "specialized investment product",
}

_RISK_OUTLOOK = {
    RiskLevel.LOW: "stable",
    RiskLevel.MODERATE: "balanced",
    RiskLevel.HIGH: "high-growth",
}


def describe_product(product: Product) -> str:
    return (
        f"{product.name} is a {product.risk_level.value}-risk "
        f"{_TYPE_DESCRIPTIONS[product.product_type]} offering {product.annual_yield}% "
        f"annual returns over {product.tenure_months} months. Minimum investment starts "
        f"at ₹{product.min_investment}. Perfect for investors seeking "
        f"{_RISK_OUTLOOK[product.risk_level]} investment opportunities."
    )


def portfolio_insights(snapshot: PortfolioSnapshot) -> str:
    insights = []

    if snapshot.total_gain_percentage > Decimal("10"):
        insights.append("🎉 Excellent performance! Your portfolio is generating strong returns.")
    elif snapshot.total_gain_percentage > Decimal("0"):
        insights.append("📈 Your portfolio is performing well with positive returns.")
    else:
        insights.append("📊 Consider reviewing your investment strategy for better returns.")

    if snapshot.investment_count < 3:
        insights.append("💡 Consider diversifying with more investment products to reduce risk.")
    else:
        insights.append("✅ Good diversification with multiple investment products.")

    return " ".join(insights)


async def generate_product_description(
    product: Product,
    client: Optional[httpx.AsyncClient] = None,
) -> str:
    prompt = (
        "Generate a professional, informative product description (under 200 words)"
        " for this investment product."
        f"\nName: {product.name}"
        f"\nType: {product.product_type.value}"
        f"\nAnnual Yield: {product.annual_yield}%"
        f"\nRisk Level: {product.risk_level.value}"
        f"\nTenure: {product.tenure_months} months"
        f"\nMin Investment: ₹{product.min_investment}"
    )
    text = await _llm_generate(prompt, client=client)
    return text or describe_product(product)


async def enrich_portfolio_insights(
    snapshot: PortfolioSnapshot,
    client: Optional[httpx.AsyncClient] = None,
) -> str:
    if snapshot.investment_count == 0:
        return portfolio_insights(snapshot)

    prompt = (
        "Analyze this investment portfolio and provide 2-3 key insights about"
        " performance and diversification in a friendly, professional tone."
        f"\nTotal Invested: ₹{snapshot.total_invested}"
        f"\nCurrent Value: ₹{snapshot.current_value}"
        f"\nTotal Gain: ₹{snapshot.total_gain}"
        f"\nGain Percentage: {snapshot.total_gain_percentage}%"
        f"\nNumber of Investments: {snapshot.investment_count}"
    )
    text = await _llm_generate(prompt, client=client)
    return text or portfolio_insights(snapshot)


async def _llm_generate(prompt: str, client: Optional[httpx.AsyncClient] = None) -> Optional[str]:
    provider = (settings.LLM_PROVIDER or "none").lower()
    if provider == "none":
        return None

    if provider == "local":
        url = f"{settings.LLM_BASE_URL.rstrip('/')}/api/generate"
        headers: Dict[str, str] = {}
        body: Dict[str, Any] = {
            "model": settings.LLM_MODEL,
            "prompt": prompt,
            "stream": False,
        }
    elif provider == "openai":
        if not settings.OPENAI_API_KEY:
            return None
        url = "https://api.openai.com/v1/responses"
        headers = {
            "Authorization": f"Bearer {settings.OPENAI_API_KEY}",
            "Content-Type": "application/json",
        }
        body = {
            "model": settings.LLM_MODEL,
            "input": prompt,
        }
    else:
        logger.warning("Unknown LLM_PROVIDER %r, using rule-based text", provider)
        return None

    try:
        if client is None:
            async with httpx.AsyncClient(timeout=settings.LLM_TIMEOUT_SECONDS) as own_client:
                resp = await own_client.post(url, headers=headers, json=body)
        else:
            resp = await client.post(url, headers=headers, json=body)
    except httpx.HTTPError as exc:
        logger.error("LLM request failed (%s): %s", provider, exc)
        return None

    if resp.status_code != 200:
        logger.warning("LLM request returned %s (%s)", resp.status_code, provider)
        return None

    try:
        data = resp.json()
        if provider == "local":
            text = data.get("response", "")
        else:
            text = _extract_response_text(data)
        return text.strip() or None
    except (ValueError, AttributeError, TypeError) as exc:
        logger.warning("LLM response unreadable (%s): %s", provider, exc)
        return None


def _extract_response_text(payload: Dict[str, Any]) -> str:
    # Responses API output text (best-effort)
    output = payload.get("output") or []
    for item in output:
        content = item.get("content") or []
        for part in content:
            if part.get("type") == "output_text":
                return part.get("text", "")
    return ""
