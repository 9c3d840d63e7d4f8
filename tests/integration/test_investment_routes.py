from decimal import Decimal

import pytest

from app.domain.models import ProductType, RiskLevel


USER = {"X-User-Id": "user-1"}
OTHER_USER = {"X-User-Id": "user-2"}


async def invest(client, amount=10000, product_id="prod-1", headers=USER, **extra):
    payload = {"product_id": product_id, "amount": amount, **extra}
    return await client.post("/api/v1/investments", json=payload, headers=headers)


@pytest.mark.asyncio
@pytest.mark.integration
async def test_create_investment_prices_and_values(client, seed_product):
    await seed_product()

    response = await invest(client, notes="first")

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "active"
    assert body["amount"] == 10000.0
    assert body["expected_return"] == 11268.25
    assert body["maturity_date"].startswith("2027-01-15T10:00:00")
    assert body["current_value"] == 10000.0
    assert body["gain_loss"] == {"absolute": 0.0, "percentage": 0.0}
    assert body["days_to_maturity"] == 365
    assert body["product"]["name"] == "Secure Bond"
    assert body["notes"] == "first"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_missing_user_header_is_unauthorized(client, seed_product):
    await seed_product()
    response = await invest(client, headers={})
    assert response.status_code == 401


@pytest.mark.asyncio
@pytest.mark.integration
async def test_amount_bounds_map_to_400(client, seed_product):
    await seed_product()

    below = await invest(client, amount=500)
    above = await invest(client, amount=100001)

    assert below.status_code == 400
    assert below.json()["detail"] == {
        "reason": "below_minimum",
        "message": "Minimum investment amount is ₹1000.00",
    }
    assert above.status_code == 400
    assert above.json()["detail"]["reason"] == "above_maximum"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_unknown_or_inactive_product_is_404(client, seed_product):
    await seed_product(id="retired", is_active=False)

    assert (await invest(client, product_id="missing")).status_code == 404
    response = await invest(client, product_id="retired")
    assert response.status_code == 404
    assert response.json()["detail"]["reason"] == "product_not_found"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_non_positive_amount_fails_validation(client, seed_product):
    await seed_product()
    assert (await invest(client, amount=0)).status_code == 422


@pytest.mark.asyncio
@pytest.mark.integration
async def test_valuation_moves_with_clock(client, seed_product, clock):
    await seed_product()
    created = (await invest(client)).json()

    clock.advance(days=182, hours=12)
    halfway = (await client.get(f"/api/v1/investments/{created['id']}", headers=USER)).json()
    clock.advance(days=400)
    after = (await client.get(f"/api/v1/investments/{created['id']}", headers=USER)).json()

    assert halfway["current_value"] == 10634.13
    assert halfway["days_to_maturity"] == 183
    assert after["current_value"] == 11268.25
    assert after["days_to_maturity"] == 0


@pytest.mark.asyncio
@pytest.mark.integration
async def test_other_users_investment_is_404(client, seed_product):
    await seed_product()
    created = (await invest(client)).json()

    response = await client.get(f"/api/v1/investments/{created['id']}", headers=OTHER_USER)

    assert response.status_code == 404
    assert response.json()["detail"]["reason"] == "investment_not_found"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_cancel_flow(client, seed_product):
    await seed_product()
    created = (await invest(client)).json()
    url = f"/api/v1/investments/{created['id']}/cancel"

    first = await client.put(url, headers=USER)
    second = await client.put(url, headers=USER)

    assert first.status_code == 200
    assert first.json()["status"] == "cancelled"
    assert first.json()["expected_return"] == 11268.25
    assert second.status_code == 400
    assert second.json()["detail"]["reason"] == "already_cancelled"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_update_notes(client, seed_product):
    await seed_product()
    created = (await invest(client)).json()

    response = await client.put(
        f"/api/v1/investments/{created['id']}/notes",
        json={"notes": "for retirement"},
        headers=USER,
    )

    assert response.status_code == 200
    assert response.json()["notes"] == "for retirement"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_notes_length_is_limited(client, seed_product):
    await seed_product()
    created = (await invest(client)).json()

    response = await client.put(
        f"/api/v1/investments/{created['id']}/notes",
        json={"notes": "x" * 501},
        headers=USER,
    )

    assert response.status_code == 422


@pytest.mark.asyncio
@pytest.mark.integration
async def test_list_with_status_filter_and_pagination(client, seed_product, clock):
    await seed_product()
    ids = []
    for amount in (1000, 2000, 3000):
        ids.append((await invest(client, amount=amount)).json()["id"])
        clock.advance(days=1)
    await client.put(f"/api/v1/investments/{ids[0]}/cancel", headers=USER)

    page = (await client.get("/api/v1/investments?limit=2&page=1", headers=USER)).json()
    active = (await client.get("/api/v1/investments?status=active", headers=USER)).json()

    assert [i["id"] for i in page["investments"]] == [ids[2], ids[1]]
    assert page["pagination"] == {"page": 1, "limit": 2, "total": 3, "total_pages": 2}
    assert {i["id"] for i in active["investments"]} == {ids[1], ids[2]}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_product_edit_does_not_touch_existing_investment(client, seed_product):
    await seed_product()
    created = (await invest(client)).json()

    update = await client.put("/api/v1/products/prod-1", json={"annual_yield": 20, "tenure_months": 36})
    fetched = (await client.get(f"/api/v1/investments/{created['id']}", headers=USER)).json()

    assert update.status_code == 200
    assert fetched["expected_return"] == 11268.25
    assert fetched["maturity_date"] == created["maturity_date"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_summary_groups(client, seed_product):
    await seed_product()
    await seed_product(id="etf", name="Index ETF", product_type=ProductType.ETF, risk_level=RiskLevel.HIGH,
                       tenure_months=36, max_investment=None, annual_yield=Decimal("10"))
    await invest(client, amount=10000)
    await invest(client, amount=4000, product_id="etf")

    body = (await client.get("/api/v1/investments/stats/summary", headers=USER)).json()

    assert body["total_investments"] == 2
    assert body["total_invested"] == 14000.0
    assert body["by_type"]["bond"]["count"] == 1
    assert body["by_type"]["etf"]["invested"] == 4000.0
    assert body["by_risk"]["high"]["count"] == 1
    assert set(body["by_tenure"]) == {"0-12 months", "25-36 months"}
    assert body["status_counts"] == {"active": 2, "matured": 0, "cancelled": 0}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_summary_is_empty_for_new_user(client):
    body = (await client.get("/api/v1/investments/stats/summary", headers=OTHER_USER)).json()
    assert body["total_investments"] == 0
    assert body["total_gain_percentage"] == 0.0



@pytest.mark.asyncio
@pytest.mark.integration
async def test_fractional_cents_match_stored_amount(client, seed_product):
    await seed_product()

    created = (await invest(client, amount=1000.005)).json()
    fetched = (await client.get(f"/api/v1/investments/{created['id']}", headers=USER)).json()

    assert created["amount"] == 1000.01
    assert fetched["amount"] == created["amount"]
    assert fetched["expected_return"] == created["expected_return"] == 1126.84


@pytest.mark.asyncio
@pytest.mark.integration
async def test_unstorable_maturity_value_is_400(client, seed_product):
    await seed_product(id="long", tenure_months=600, annual_yield=Decimal("100"), max_investment=None)

    response = await invest(client, amount=1000000000, product_id="long")

    assert response.status_code == 400
    assert response.json()["detail"]["reason"] == "amount_too_large"
