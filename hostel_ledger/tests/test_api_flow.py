"""
Integration tests for the HTTP surface.

Tests the resident, dues, payment and complaint endpoints end to end and
the mapping of every error to its code and status.
"""

import pytest

from hostel_ledger.app.services.audit import get_audit_trail, AuditAction

# Note: Client and DB setup are in conftest.py

AMIT = {
    "name": "Amit Kumar",
    "roll_number": "2024CS10001",
    "hall": "Hall 5",
    "room_number": "G-102",
    "department": "Computer Science",
    "email": "amit.kumar@example.edu",
}

OCTOBER = {
    "period_label": "October 2024",
    "items": [
        {"category": "mess", "amount": 1800},
        {"category": "rent", "amount": 750},
        {"category": "amenities", "amount": 300},
    ],
}


@pytest.fixture
async def api_resident_id(client):
    response = await client.post("/v1/residents", json=AMIT)
    assert response.status_code == 201
    return response.json()["id"]


@pytest.fixture
async def api_period_id(client, api_resident_id):
    response = await client.post(f"/v1/residents/{api_resident_id}/due-periods", json=OCTOBER)
    assert response.status_code == 201
    return response.json()["id"]


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert "X-Correlation-ID" in response.headers


@pytest.mark.asyncio
async def test_register_and_search_residents(client, api_resident_id):
    response = await client.get(f"/v1/residents/{api_resident_id}")
    assert response.status_code == 200
    assert response.json()["roll_number"] == "2024CS10001"
    assert response.json()["status"] == "active"

    response = await client.get("/v1/residents", params={"search": "amit", "hall": "Hall 5"})
    assert [r["id"] for r in response.json()] == [api_resident_id]

    response = await client.post("/v1/residents", json=AMIT)
    assert response.status_code == 409
    assert response.json()["error_code"] == "ERR_CONFLICT_001"

    response = await client.get("/v1/residents/9999")
    assert response.status_code == 404
    assert response.json()["error_code"] == "ERR_NOT_FOUND_001"


@pytest.mark.asyncio
async def test_pay_all_flow(client, api_resident_id, api_period_id):
    response = await client.get(f"/v1/due-periods/{api_period_id}")
    body = response.json()
    assert body["status"] == "pending"
    assert body["total_amount"] == 2850
    assert [i["label"] for i in body["items"]] == ["Mess Charges", "Room Rent", "Amenities Fee"]

    response = await client.get(f"/v1/due-periods/{api_period_id}/quote")
    assert response.json() == {"period_id": api_period_id, "item_ids": ["mess", "rent", "amenities"], "amount": 2850}

    # Without item_ids every pending item is claimed
    response = await client.post(
        f"/v1/due-periods/{api_period_id}/payments",
        json={"method": "UPI"},
        headers={"X-Actor": "amit"}
    )
    assert response.status_code == 201
    transaction = response.json()
    assert transaction["status"] == "authorized"
    assert transaction["amount"] == 2850

    response = await client.post(f"/v1/payments/{transaction['id']}/commit", headers={"X-Actor": "amit"})
    assert response.status_code == 200
    receipt = response.json()
    assert receipt["amount"] == 2850
    assert receipt["description"] == "All Bills - October 2024"

    # Retried commit and regenerated receipt are identical
    retried = await client.post(f"/v1/payments/{transaction['id']}/commit")
    issued = await client.get(f"/v1/payments/{transaction['id']}/receipt")
    assert retried.content == response.content == issued.content

    response = await client.get(f"/v1/due-periods/{api_period_id}")
    assert response.json()["status"] == "paid"
    assert response.json()["pending_amount"] == 0

    response = await client.get(f"/v1/residents/{api_resident_id}/payments")
    assert [tx["id"] for tx in response.json()] == [transaction["id"]]

    response = await client.get(f"/v1/residents/{api_resident_id}/dashboard")
    assert response.json()["total_pending_amount"] == 0
    assert response.json()["pending_bill_count"] == 0

    response = await client.get("/v1/payments/stats", params={"resident_id": api_resident_id})
    assert response.status_code == 200
    assert response.json()["total_collected"] == 2850
    assert response.json()["collected_by_method"] == {"UPI": 2850, "Card": 0, "NetBanking": 0}
    assert response.json()["collected_by_category"] == {"mess": 1800, "rent": 750, "amenities": 300, "other": 0}


@pytest.mark.asyncio
async def test_actor_is_audited(client, db_session, api_resident_id, api_period_id):
    await client.post(
        f"/v1/due-periods/{api_period_id}/payments",
        json={"method": "Card", "item_ids": ["mess"]},
        headers={"X-Actor": "warden.hall5"}
    )

    trail = await get_audit_trail(db_session, resident_id=api_resident_id, action=AuditAction.PAYMENT_AUTHORIZED)
    assert [entry.actor_username for entry in trail] == ["warden.hall5"]


@pytest.mark.asyncio
async def test_partial_payment_and_abandon(client, api_resident_id, api_period_id):
    response = await client.post(
        f"/v1/due-periods/{api_period_id}/payments",
        json={"method": "Net Banking", "item_ids": ["rent"]}
    )
    tx_id = response.json()["id"]
    assert response.json()["method"] == "NetBanking"

    response = await client.get(f"/v1/due-periods/{api_period_id}")
    assert {i["item_id"]: i["claimed"] for i in response.json()["items"]}["rent"] is True

    response = await client.post(f"/v1/payments/{tx_id}/abandon", json={"reason": "gateway timeout"})
    assert response.status_code == 200
    assert response.json()["status"] == "failed"
    assert response.json()["failure_reason"] == "gateway timeout"

    response = await client.post(f"/v1/payments/{tx_id}/abandon")
    assert response.status_code == 409
    assert response.json()["error_code"] == "ERR_LEDGER_003"

    response = await client.get(f"/v1/payments/{tx_id}/receipt")
    assert response.status_code == 409
    assert response.json()["error_code"] == "ERR_LEDGER_004"

    response = await client.get(f"/v1/due-periods/{api_period_id}/quote", params={"item_ids": ["rent"]})
    assert response.json()["amount"] == 750


@pytest.mark.asyncio
async def test_ledger_error_mapping(client, api_resident_id, api_period_id):
    payments = f"/v1/due-periods/{api_period_id}/payments"

    response = await client.post(payments, json={"method": "Cash", "item_ids": ["mess"]})
    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_VALIDATION_002"

    response = await client.post(payments, json={"method": "UPI", "item_ids": []})
    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_VALIDATION_001"

    response = await client.post(payments, json={"method": "UPI", "item_ids": ["laundry"]})
    assert response.status_code == 404
    assert response.json()["error_code"] == "ERR_NOT_FOUND_001"

    await client.post(payments, json={"method": "UPI", "item_ids": ["mess"]})
    response = await client.post(payments, json={"method": "UPI", "item_ids": ["mess"]})
    assert response.status_code == 409
    assert response.json()["error_code"] == "ERR_LEDGER_001"
    assert response.json()["details"]["item_ids"] == ["mess"]

    response = await client.post("/v1/payments/424242/commit")
    assert response.status_code == 404
    assert response.json()["error_code"] == "ERR_NOT_FOUND_002"

    response = await client.post(f"/v1/residents/{api_resident_id}/due-periods", json=OCTOBER)
    assert response.status_code == 409
    assert response.json()["error_code"] == "ERR_CONFLICT_001"

    response = await client.post(
        f"/v1/residents/{api_resident_id}/due-periods",
        json={"period_label": "November 2024", "items": [{"category": "gym", "amount": 100}]}
    )
    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_VALIDATION"


@pytest.mark.asyncio
async def test_empty_selection(client, api_period_id):
    response = await client.post(f"/v1/due-periods/{api_period_id}/payments", json={"method": "UPI"})
    response = await client.post(f"/v1/payments/{response.json()['id']}/commit")
    assert response.status_code == 200

    response = await client.get(f"/v1/due-periods/{api_period_id}/quote")
    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_LEDGER_002"


@pytest.mark.asyncio
async def test_complaint_flow(client, api_resident_id):
    response = await client.post(f"/v1/residents/{api_resident_id}/complaints", json={
        "type": "plumbing",
        "title": "Leaking tap",
        "description": "Bathroom tap leaks all night",
    })
    assert response.status_code == 201
    complaint = response.json()
    assert complaint["status"] == "pending"
    assert complaint["priority"] == "medium"
    assert complaint["atr"] is None
    assert complaint["badge"]["status_class"] == "status-pending"

    atr = {"action_taken": "Tap replaced", "action_by": "Mr. Sharma", "completion_date": "2024-10-18"}

    response = await client.post(f"/v1/complaints/{complaint['id']}/atr", json=atr)
    assert response.status_code == 409
    assert response.json()["error_code"] == "ERR_COMPLAINT_001"

    response = await client.post(
        f"/v1/complaints/{complaint['id']}/atr",
        json={"action_taken": "", "action_by": "", "completion_date": ""}
    )
    assert response.status_code == 409
    assert response.json()["error_code"] == "ERR_COMPLAINT_001"

    response = await client.post(f"/v1/complaints/{complaint['id']}/advance")
    assert response.json() == {"complaint_id": complaint["id"], "status": "in-progress"}

    response = await client.post(
        f"/v1/complaints/{complaint['id']}/atr",
        json={"action_taken": "Tap replaced", "action_by": "Mr. Sharma"}
    )
    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_VALIDATION_001"

    response = await client.post(
        f"/v1/complaints/{complaint['id']}/atr",
        json={"action_taken": "Tap replaced", "action_by": "Mr. Sharma", "completion_date": " "}
    )
    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_VALIDATION_001"
    assert response.json()["details"]["missing"] == ["completion_date"]

    response = await client.post(f"/v1/complaints/{complaint['id']}/atr", json=atr)
    assert response.status_code == 200
    assert response.json()["status"] == "resolved"
    assert response.json()["atr"]["completion_date"] == "2024-10-18"
    assert response.json()["badge"]["status_text"] == "Resolved"

    response = await client.get(f"/v1/residents/{api_resident_id}/complaints", params={"status": "resolved"})
    assert [c["id"] for c in response.json()] == [complaint["id"]]

    response = await client.get("/v1/complaints", params={"search": "tap"})
    assert [c["id"] for c in response.json()] == [complaint["id"]]

    response = await client.get("/v1/complaints/stats")
    assert response.json()["by_status"] == {"pending": 0, "in-progress": 0, "resolved": 1}
    assert response.json()["by_type"]["plumbing"] == 1
    assert response.json()["by_type"]["electrical"] == 0

    response = await client.get("/v1/complaints", params={"type": "plumbing", "priority": "medium"})
    assert [c["id"] for c in response.json()] == [complaint["id"]]

    response = await client.get(f"/v1/residents/{api_resident_id}/complaints", params={"priority": "high"})
    assert response.json() == []


@pytest.mark.asyncio
async def test_complaint_error_mapping(client, api_resident_id):
    response = await client.post(f"/v1/residents/{api_resident_id}/complaints", json={
        "type": "noise", "title": "Loud music", "description": "Every night"
    })
    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_VALIDATION_001"

    response = await client.post("/v1/residents/9999/complaints", json={
        "type": "internet", "title": "Wi-Fi", "description": "No signal"
    })
    assert response.status_code == 404

    response = await client.post("/v1/complaints/9999/advance")
    assert response.status_code == 404
    assert response.json()["error_code"] == "ERR_NOT_FOUND_001"

    response = await client.get("/v1/complaints", params={"status": "closed"})
    assert response.status_code == 422
