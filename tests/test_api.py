from decimal import Decimal

import pytest

D = Decimal


@pytest.fixture
async def group(client, register):
    """alice's group with bob and carol; returns (group_id, {name: (id, headers)})."""
    people = {
        name: await register(name.title(), f"{name}@example.com")
        for name in ("alice", "bob", "carol")
    }
    alice_headers = people["alice"][1]

    res = await client.post("/api/v1/groups/", json={"name": "Flat 4B", "description": "rent and groceries"}, headers=alice_headers)
    assert res.status_code == 201, res.text
    group_id = res.json()["id"]

    for name in ("bob", "carol"):
        res = await client.post(f"/api/v1/groups/{group_id}/members", json={"email": f"{name}@example.com"}, headers=alice_headers)
        assert res.status_code == 201, res.text

    return group_id, people


async def add_expense(client, headers, group_id, amount, shares, **extra):
    payload = {
        "group_id": group_id,
        "amount": amount,
        "description": "groceries",
        "shares": [{"user_id": uid, "share_amount": amt} for uid, amt in shares],
        **extra,
    }
    return await client.post("/api/v1/expense/", json=payload, headers=headers)


async def balances(client, headers, group_id):
    res = await client.get(f"/api/v1/groups/{group_id}/balances", headers=headers)
    assert res.status_code == 200, res.text
    return res.json()


async def test_health(client):
    res = await client.get("/api/v1/system/health")

    assert res.status_code == 200
    assert res.json()["ok"] is True
    assert res.json()["app"] == "HisaabHub"


async def test_register_login_and_me(client, register):
    user_id, headers = await register("Alice", "alice@example.com")

    res = await client.post("/api/v1/users/login", json={"email": "alice@example.com", "password": "secret123"})
    assert res.status_code == 200
    token = res.json()["access_token"]

    res = await client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 200
    assert res.json()["id"] == user_id


async def test_duplicate_email_and_bad_password(client, register):
    await register("Alice", "alice@example.com")

    res = await client.post("/api/v1/users/register", json={"name": "Alice", "email": "alice@example.com", "password": "another1"})
    assert res.status_code == 409

    res = await client.post("/api/v1/users/login", json={"email": "alice@example.com", "password": "wrong-one"})
    assert res.status_code == 401


async def test_requests_without_token_are_rejected(client):
    client.cookies.clear()

    res = await client.get("/api/v1/users/me")
    assert res.status_code == 401

    res = await client.get("/api/v1/users/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert res.status_code == 401


async def test_group_listing_and_detail(client, group):
    group_id, people = group
    alice_headers = people["alice"][1]

    res = await client.get("/api/v1/groups/", headers=alice_headers)
    assert res.status_code == 200
    assert [(g["id"], g["member_count"]) for g in res.json()] == [(group_id, 3)]

    res = await client.get(f"/api/v1/groups/{group_id}", headers=alice_headers)
    members = res.json()["members"]
    assert [(m["name"], m["role"]) for m in members] == [("Alice", "admin"), ("Bob", "member"), ("Carol", "member")]


async def test_adding_members(client, group, register):
    group_id, people = group
    alice_headers = people["alice"][1]
    _, dave_headers = await register("Dave", "dave@example.com")

    res = await client.post(f"/api/v1/groups/{group_id}/members", json={"email": "bob@example.com"}, headers=alice_headers)
    assert res.status_code == 409

    res = await client.post(f"/api/v1/groups/{group_id}/members", json={"email": "nobody@example.com"}, headers=alice_headers)
    assert res.status_code == 404

    res = await client.post(f"/api/v1/groups/{group_id}/members", json={"email": "dave@example.com"}, headers=people["bob"][1])
    assert res.status_code == 403

    res = await client.get(f"/api/v1/groups/{group_id}/balances", headers=dave_headers)
    assert res.status_code == 403


async def test_calculate_split(client, group):
    _, people = group
    alice_id, alice_headers = people["alice"]
    bob_id = people["bob"][0]

    res = await client.post(
        "/api/v1/expense/calculate-split",
        json={"amount": 100, "split_method": "percentage", "member_ids": [alice_id, bob_id], "percentages": [60, 40]},
        headers=alice_headers,
    )
    assert res.status_code == 200
    assert [(s["user_id"], D(s["share_amount"])) for s in res.json()["shares"]] == [(alice_id, D("60")), (bob_id, D("40"))]

    res = await client.post(
        "/api/v1/expense/calculate-split",
        json={"amount": 100, "split_method": "weights", "member_ids": [alice_id, bob_id]},
        headers=alice_headers,
    )
    assert res.status_code == 400
    assert res.json()["error"] == "invalid_split_method"

    res = await client.post(
        "/api/v1/expense/calculate-split",
        json={"amount": 100, "split_method": "exact", "exact_amounts": {str(alice_id): 70, str(bob_id): 20}},
        headers=alice_headers,
    )
    assert res.status_code == 400
    assert res.json()["error"] == "split_mismatch"


async def test_expense_balances_and_settle_up(client, group):
    group_id, people = group
    (alice, alice_h), (bob, bob_h), (carol, carol_h) = people["alice"], people["bob"], people["carol"]

    res = await add_expense(client, alice_h, group_id, 90, [(alice, 30), (bob, 30), (carol, 30)])
    assert res.status_code == 201, res.text

    view = await balances(client, alice_h, group_id)
    assert {b["user_id"]: D(b["balance"]) for b in view["balances"]} == {alice: D("60"), bob: D("-30"), carol: D("-30")}
    assert [(t["from_id"], t["to_id"], D(t["amount"])) for t in view["simplified"]] == [
        (bob, alice, D("30")),
        (carol, alice, D("30")),
    ]

    res = await client.post(f"/api/v1/groups/{group_id}/settlements", json={"to_user": alice, "amount": 30}, headers=bob_h)
    assert res.status_code == 201, res.text
    assert res.json()["from_user"] == bob

    view = await balances(client, carol_h, group_id)
    assert [(t["from_id"], t["to_id"], D(t["amount"])) for t in view["simplified"]] == [(carol, alice, D("30"))]

    res = await client.get(f"/api/v1/groups/{group_id}/settlements", headers=carol_h)
    assert [(s["from_user_name"], s["to_user_name"], D(s["amount"])) for s in res.json()] == [("Bob", "Alice", D("30"))]


async def test_mismatched_expense_is_not_saved(client, group):
    group_id, people = group
    (alice, alice_h), (bob, _) = people["alice"], people["bob"]

    res = await add_expense(client, alice_h, group_id, 90, [(alice, 30), (bob, 30)])
    assert res.status_code == 400
    assert res.json()["error"] == "split_mismatch"
    assert D(res.json()["actual"]) == D("60")

    res = await client.get(f"/api/v1/groups/{group_id}/expenses", headers=alice_h)
    assert res.json() == []


async def test_single_payer_and_payer_list_are_exclusive(client, group):
    group_id, people = group
    (alice, alice_h), (bob, _) = people["alice"], people["bob"]

    res = await add_expense(
        client, alice_h, group_id, 50, [(alice, 25), (bob, 25)],
        paid_by=alice, payers=[{"user_id": bob, "paid_amount": 50}],
    )
    assert res.status_code == 422


async def test_multi_payer_expense(client, group):
    group_id, people = group
    (alice, alice_h), (bob, bob_h), (carol, _) = people["alice"], people["bob"], people["carol"]

    res = await add_expense(
        client, bob_h, group_id, 100, [(alice, 25), (bob, 25), (carol, 50)],
        payers=[{"user_id": alice, "paid_amount": 60}, {"user_id": bob, "paid_amount": 40}],
    )
    assert res.status_code == 201, res.text
    assert res.json()["payer_mode"] == "multiple"

    expense_id = res.json()["id"]
    res = await client.get(f"/api/v1/expense/{expense_id}", headers=alice_h)
    assert {p["user_id"]: D(p["paid_amount"]) for p in res.json()["payers"]} == {alice: D("60"), bob: D("40")}

    view = await balances(client, alice_h, group_id)
    assert {b["user_id"]: D(b["balance"]) for b in view["balances"]} == {alice: D("35"), bob: D("15"), carol: D("-50")}


async def test_deleted_expense_drops_out(client, group):
    group_id, people = group
    (alice, alice_h), (bob, bob_h) = people["alice"], people["bob"]

    res = await add_expense(client, bob_h, group_id, 40, [(alice, 20), (bob, 20)])
    expense_id = res.json()["id"]

    res = await client.delete(f"/api/v1/expense/{expense_id}", headers=alice_h)
    assert res.status_code == 200

    view = await balances(client, alice_h, group_id)
    assert all(D(b["balance"]) == 0 for b in view["balances"])
    assert view["simplified"] == []

    res = await client.get(f"/api/v1/expense/{expense_id}", headers=alice_h)
    assert res.status_code == 404


async def test_remove_member_requires_zero_balance(client, group):
    group_id, people = group
    (alice, alice_h), (carol, carol_h) = people["alice"], people["carol"]

    await add_expense(client, alice_h, group_id, 30, [(alice, 15), (carol, 15)])

    res = await client.delete(f"/api/v1/groups/{group_id}/members/{carol}", headers=alice_h)
    assert res.status_code == 400
    assert res.json()["error"] == "outstanding_balance"
    assert D(res.json()["balance"]) == D("-15")

    await client.post(f"/api/v1/groups/{group_id}/settlements", json={"to_user": alice, "amount": "15.00"}, headers=carol_h)

    res = await client.delete(f"/api/v1/groups/{group_id}/members/{carol}", headers=alice_h)
    assert res.status_code == 200

    res = await client.get(f"/api/v1/groups/{group_id}/balances", headers=carol_h)
    assert res.status_code == 403


async def test_total_balances(client, group):
    group_id, people = group
    (alice, alice_h), (bob, _), (carol, _) = people["alice"], people["bob"], people["carol"]

    await add_expense(client, alice_h, group_id, 90, [(alice, 30), (bob, 30), (carol, 30)])

    res = await client.get(f"/api/v1/groups/{group_id}/total-balances", headers=alice_h)
    body = res.json()

    assert D(body["total_expenses"]) == D("90")
    statuses = {m["user_id"]: m["balance_status"] for m in body["members"]}
    assert statuses == {alice: "owed", bob: "owes", carol: "owes"}


async def test_refresh_and_logout(client, register):
    user_id, headers = await register("Alice", "alice@example.com")

    res = await client.post("/api/v1/users/refresh")
    assert res.status_code == 200
    assert res.json()["user"]["id"] == user_id

    res = await client.post("/api/v1/users/logout", headers=headers)
    assert res.status_code == 200

    res = await client.post("/api/v1/users/refresh")
    assert res.status_code == 401
