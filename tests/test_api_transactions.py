from datetime import datetime, timezone
from decimal import Decimal

from tests.conftest import auth_headers, invoice_payload


def line(quantity, unit_price):
    return [{"description": "Consulting hours", "quantity": quantity, "unit_price": unit_price}]


async def create_invoice(client, headers, **overrides):
    response = await client.post("/api/v1/invoices", json=invoice_payload(**overrides), headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def paid_invoice(client, headers, quantity, unit_price):
    return await create_invoice(
        client, headers, items=line(quantity, unit_price), igst=0,
        status="paid", payment={"payment_mode": "cash"},
    )


async def test_paid_invoices_are_listed_as_credits(client, headers):
    small = await paid_invoice(client, headers, 1, 100)
    large = await paid_invoice(client, headers, 3, 100)
    await create_invoice(client, headers)

    response = await client.get("/api/v1/transactions", headers=headers)

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 2
    assert Decimal(body["total_amount"]) == Decimal("400")
    assert [t["invoice_number"] for t in body["items"]] == [
        large["document_number"],
        small["document_number"],
    ]
    assert {t["type"] for t in body["items"]} == {"credit"}
    assert body["items"][0]["payment_mode"] == "cash"


async def test_sort_by_amount_ascending(client, headers):
    await paid_invoice(client, headers, 3, 100)
    await paid_invoice(client, headers, 1, 100)

    response = await client.get(
        "/api/v1/transactions", params={"sort_by": "amount", "direction": "asc"}, headers=headers
    )

    amounts = [Decimal(t["amount"]) for t in response.json()["items"]]
    assert amounts == [Decimal("100"), Decimal("300")]


async def test_search_by_invoice_number(client, headers):
    await paid_invoice(client, headers, 1, 100)
    target = await paid_invoice(client, headers, 2, 100)

    response = await client.get(
        "/api/v1/transactions", params={"search": target["document_number"][-5:]}, headers=headers
    )

    body = response.json()
    assert body["total"] == 1
    assert body["items"][0]["invoice_id"] == target["id"]


async def test_invalid_sort_field(client, headers):
    response = await client.get("/api/v1/transactions", params={"sort_by": "client"}, headers=headers)

    assert response.status_code == 422


async def test_transactions_are_per_user(client, headers):
    await paid_invoice(client, headers, 1, 100)
    other = await auth_headers(client, email="other@acme.in")

    response = await client.get("/api/v1/transactions", headers=other)

    assert response.json()["total"] == 0


async def test_daily_amounts(client, headers):
    await paid_invoice(client, headers, 1, 100)
    await create_invoice(client, headers, items=line(2, 100), igst=0)
    await create_invoice(client, headers, items=line(5, 100), igst=0, status="draft")

    response = await client.get("/api/v1/transactions/daily", headers=headers)

    assert response.status_code == 200
    [row] = response.json()
    today = datetime.now(timezone.utc).date()
    assert row["date"] == today.isoformat()
    assert row["day"] == today.strftime("%a")
    assert Decimal(row["received"]) == Decimal("100")
    assert Decimal(row["due"]) == Decimal("200")
