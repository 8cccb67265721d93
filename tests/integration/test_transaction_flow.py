"""Integration tests for purchase and status transitions (requires running PG + Redis)."""

import asyncio

import pytest
from httpx import AsyncClient

from tests.integration.conftest import create_listing, signup

pytestmark = [pytest.mark.integration, pytest.mark.asyncio(loop_scope="session")]


async def _buy(client: AsyncClient, buyer, listing_id: str, **extra):
    return await client.post(
        "/api/v1/transactions", json={"listing_id": listing_id, **extra}, headers=buyer.headers
    )


async def test_purchase_complete(client: AsyncClient) -> None:
    seller = await signup(client, "Seller")
    buyer = await signup(client, "Buyer")
    listing = await create_listing(client, seller)

    resp = await _buy(client, buyer, listing["id"], shipping_address="Jl. Merdeka 1")
    assert resp.status_code == 201
    tx = resp.json()["data"]
    assert tx["status"] == "pending"
    assert tx["seller_id"] == seller.user_id
    assert tx["total_price"] == "100000.00"

    sold = await client.get(f"/api/v1/listings/{listing['id']}")
    assert sold.json()["data"]["status"] == "sold"

    not_seller = await client.put(
        f"/api/v1/transactions/{tx['id']}", json={"status": "completed"}, headers=buyer.headers
    )
    assert not_seller.status_code == 403

    done = await client.put(
        f"/api/v1/transactions/{tx['id']}", json={"status": "completed"}, headers=seller.headers
    )
    assert done.json()["data"]["status"] == "completed"

    again = await client.put(
        f"/api/v1/transactions/{tx['id']}", json={"status": "cancelled"}, headers=seller.headers
    )
    assert again.status_code == 409


async def test_cancel_makes_item_purchasable(client: AsyncClient) -> None:
    seller = await signup(client)
    buyer = await signup(client)
    listing = await create_listing(client, seller)
    tx = (await _buy(client, buyer, listing["id"])).json()["data"]

    await client.put(
        f"/api/v1/transactions/{tx['id']}", json={"status": "cancelled"}, headers=seller.headers
    )
    detail = await client.get(f"/api/v1/listings/{listing['id']}")
    assert detail.json()["data"]["status"] == "available"

    retry = await _buy(client, buyer, listing["id"])
    assert retry.status_code == 201


async def test_self_purchase_and_sold(client: AsyncClient) -> None:
    seller = await signup(client)
    listing = await create_listing(client, seller)
    own = await _buy(client, seller, listing["id"])
    assert own.status_code == 422
    assert own.json()["code"] == 1004


async def test_concurrent_buyers_one_winner(client: AsyncClient) -> None:
    seller = await signup(client)
    buyers = [await signup(client) for _ in range(5)]
    listing = await create_listing(client, seller)

    results = await asyncio.gather(*(_buy(client, b, listing["id"]) for b in buyers))

    codes = sorted(r.status_code for r in results)
    assert codes == [201, 409, 409, 409, 409]


async def test_role_listing_and_delete(client: AsyncClient) -> None:
    seller = await signup(client)
    buyer = await signup(client)
    listing = await create_listing(client, seller)
    tx = (await _buy(client, buyer, listing["id"])).json()["data"]

    as_buyer = await client.get(
        "/api/v1/transactions", params={"role": "buyer"}, headers=buyer.headers
    )
    assert [t["id"] for t in as_buyer.json()["data"]["items"]] == [tx["id"]]
    as_seller = await client.get(
        "/api/v1/transactions", params={"role": "buyer"}, headers=seller.headers
    )
    assert as_seller.json()["data"]["items"] == []

    deleted = await client.delete(f"/api/v1/transactions/{tx['id']}", headers=buyer.headers)
    assert deleted.status_code == 200
    detail = await client.get(f"/api/v1/listings/{listing['id']}")
    assert detail.json()["data"]["status"] == "available"


async def test_listing_with_pending_transaction_cannot_be_deleted(client: AsyncClient) -> None:
    seller = await signup(client)
    buyer = await signup(client)
    listing = await create_listing(client, seller)
    await _buy(client, buyer, listing["id"])

    resp = await client.delete(f"/api/v1/listings/{listing['id']}", headers=seller.headers)
    assert resp.status_code == 409
    assert resp.json()["code"] == 4002


async def test_total_price_frozen_after_reprice(client: AsyncClient) -> None:
    seller = await signup(client, "Seller")
    buyer = await signup(client, "Buyer")
    listing = await create_listing(client, seller, price="100000")

    bought = await _buy(client, buyer, listing["id"], quantity=2)
    assert bought.status_code == 201
    tx = bought.json()["data"]
    assert tx["total_price"] == "200000.00"

    repriced = await client.put(
        f"/api/v1/listings/{listing['id']}", json={"price": "150000"}, headers=seller.headers
    )
    assert repriced.status_code == 200
    assert repriced.json()["data"]["price"] == "150000.00"

    reread = await client.get(f"/api/v1/transactions/{tx['id']}", headers=buyer.headers)
    data = reread.json()["data"]
    assert data["total_price"] == "200000.00"
    assert data["item"]["price"] == "150000.00"
    detail = await client.get(f"/api/v1/listings/{listing['id']}")
    assert detail.json()["data"]["price"] == "150000.00"


async def test_transaction_embeds_item_and_parties(client: AsyncClient) -> None:
    seller = await signup(client, "Seller")
    buyer = await signup(client, "Buyer")
    listing = await create_listing(client, seller, name="Kursi Rotan")
    tx = (await _buy(client, buyer, listing["id"])).json()["data"]

    as_seller = await client.get(f"/api/v1/transactions/{tx['id']}", headers=seller.headers)
    data = as_seller.json()["data"]
    assert data["item"]["name"] == "Kursi Rotan"
    assert data["buyer"]["user_id"] == buyer.user_id
    assert data["buyer"]["email"] == buyer.email
    assert data["seller"]["name"] == "Seller"

    page = await client.get("/api/v1/transactions", headers=buyer.headers)
    assert page.json()["data"]["items"][0]["item"]["id"] == listing["id"]


async def test_quantity_out_of_range(client: AsyncClient) -> None:
    seller = await signup(client)
    buyer = await signup(client)
    listing = await create_listing(client, seller)

    resp = await _buy(client, buyer, listing["id"], quantity=2_147_483_648)
    assert resp.status_code == 422
    assert resp.json()["code"] == 1003
    detail = await client.get(f"/api/v1/listings/{listing['id']}")
    assert detail.json()["data"]["status"] == "available"


async def test_total_beyond_storable_amount(client: AsyncClient) -> None:
    seller = await signup(client)
    buyer = await signup(client)
    listing = await create_listing(client, seller, price="999999999999.99")

    resp = await _buy(client, buyer, listing["id"], quantity=101)
    assert resp.status_code == 422
    assert resp.json()["code"] == 1007
    detail = await client.get(f"/api/v1/listings/{listing['id']}")
    assert detail.json()["data"]["status"] == "available"
