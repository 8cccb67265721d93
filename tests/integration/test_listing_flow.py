"""Integration tests for listing lifecycle (requires running PG + Redis)."""

import uuid

import pytest
from httpx import AsyncClient

from tests.integration.conftest import create_listing, signup

pytestmark = [pytest.mark.integration, pytest.mark.asyncio(loop_scope="session")]


async def test_create_and_read(client: AsyncClient) -> None:
    owner = await signup(client, "Owner")
    listing = await create_listing(client, owner, condition="like-new", location="Bandung")
    assert listing["status"] == "available"
    assert listing["price"] == "100000.00"
    assert listing["category"] == "other"
    assert listing["owner_name"] == "Owner"

    anon = await client.get(f"/api/v1/listings/{listing['id']}")
    assert anon.json()["data"]["can_purchase"] is False

    mine = await client.get(f"/api/v1/listings/{listing['id']}", headers=owner.headers)
    assert mine.json()["data"]["is_owner"] is True


async def test_validation(client: AsyncClient) -> None:
    owner = await signup(client)
    blank = await client.post(
        "/api/v1/listings", json={"name": "  ", "price": "1"}, headers=owner.headers
    )
    assert blank.status_code == 422
    assert blank.json()["code"] == 1001
    negative = await client.post(
        "/api/v1/listings", json={"name": "Meja", "price": "-5"}, headers=owner.headers
    )
    assert negative.json()["code"] == 1002


async def test_partial_update_and_ownership(client: AsyncClient) -> None:
    owner = await signup(client, "Owner")
    other = await signup(client, "Other")
    listing = await create_listing(client, owner, description="keep me")

    resp = await client.put(
        f"/api/v1/listings/{listing['id']}", json={"price": "90000"}, headers=owner.headers
    )
    data = resp.json()["data"]
    assert data["price"] == "90000.00"
    assert data["description"] == "keep me"
    assert data["name"] == listing["name"]

    denied = await client.put(
        f"/api/v1/listings/{listing['id']}", json={"name": "Mine now"}, headers=other.headers
    )
    assert denied.status_code == 403


async def test_search_filters_and_pagination(client: AsyncClient) -> None:
    owner = await signup(client)
    tag = uuid.uuid4().hex[:8]
    for price in ("10", "20", "30"):
        await create_listing(client, owner, name=f"Lampu {tag} {price}", price=price, category=tag)

    page1 = await client.get(
        "/api/v1/listings",
        params={"search": tag.upper(), "sort_by": "price", "order": "asc", "limit": 2},
    )
    data1 = page1.json()["data"]
    assert [i["price"] for i in data1["items"]] == ["10.00", "20.00"]
    assert data1["has_more"] is True

    page2 = await client.get(
        "/api/v1/listings",
        params={
            "search": tag, "sort_by": "price", "order": "asc", "limit": 2,
            "cursor": data1["next_cursor"],
        },
    )
    data2 = page2.json()["data"]
    assert [i["price"] for i in data2["items"]] == ["30.00"]
    assert data2["has_more"] is False

    ranged = await client.get(
        "/api/v1/listings", params={"category": tag, "min_price": "15", "max_price": "25"}
    )
    assert [i["price"] for i in ranged.json()["data"]["items"]] == ["20.00"]


async def test_delete(client: AsyncClient) -> None:
    owner = await signup(client)
    listing = await create_listing(client, owner)
    resp = await client.delete(f"/api/v1/listings/{listing['id']}", headers=owner.headers)
    assert resp.status_code == 200
    gone = await client.get(f"/api/v1/listings/{listing['id']}")
    assert gone.status_code == 404
