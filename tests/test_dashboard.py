from datetime import date, timedelta

from httpx import AsyncClient

from conftest import record_payment, submit_admission


async def _verify(client: AsyncClient, admin_headers, payment_id: str, decision: str = "approved") -> None:
    response = await client.post(
        f"/api/v1/payments/{payment_id}/verify", json={"status": decision}, headers=admin_headers
    )
    assert response.status_code == 200


async def test_parent_dashboard_totals_across_admissions(
    client: AsyncClient, parent_headers, other_parent_headers, admin_headers
) -> None:
    first = (await submit_admission(client, parent_headers, class_name="nursery"))["admission"]
    second = (await submit_admission(client, parent_headers, student_full_name="Sister", class_name="ukg"))["admission"]
    other = (await submit_admission(client, other_parent_headers, student_full_name="Other"))["admission"]

    p1 = await record_payment(client, parent_headers, first["id"], "10000")
    p2 = await record_payment(client, parent_headers, second["id"], "4500")
    await record_payment(client, parent_headers, second["id"], "3000")  # left under verification
    p_other = await record_payment(client, other_parent_headers, other["id"], "9999")
    for pid in (p1["id"], p2["id"], p_other["id"]):
        await _verify(client, admin_headers, pid)

    tomorrow = (date.today() + timedelta(days=1)).isoformat()
    await client.post(
        "/api/v1/events",
        data={"title": "Picnic", "description": "Park visit", "event_date": tomorrow},
        headers=admin_headers,
    )
    for title, priority in (("A", "low"), ("B", "high"), ("C", "normal"), ("D", "normal")):
        await client.post(
            "/api/v1/announcements",
            json={"title": title, "content": "c", "priority": priority, "announcement_date": "2025-05-01"},
            headers=admin_headers,
        )

    response = await client.get("/api/v1/dashboard/parent", headers=parent_headers)
    assert response.status_code == 200
    data = response.json()

    assert len(data["students"]) == 2
    assert all(s["admission"] is not None for s in data["students"])
    assert len(data["payments"]) == 3
    assert [e["title"] for e in data["upcoming_events"]] == ["Picnic"]
    assert len(data["announcements"]) == 3
    assert data["announcements"][0]["title"] == "B"
    assert "A" not in [a["title"] for a in data["announcements"]]

    totals = data["totals"]
    # nursery 25000 + ukg 32000; approved 10000 + 4500
    assert float(totals["total_fee"]) == 57000
    assert float(totals["paid_amount"]) == 14500
    assert float(totals["remaining_balance"]) == 42500
    assert totals["payment_percent"] == 25


async def test_parent_dashboard_empty(client: AsyncClient, parent_headers) -> None:
    data = (await client.get("/api/v1/dashboard/parent", headers=parent_headers)).json()
    assert data["students"] == []
    assert data["payments"] == []
    assert float(data["totals"]["total_fee"]) == 0
    assert data["totals"]["payment_percent"] == 0


async def test_admin_dashboard_stats(
    client: AsyncClient, parent_headers, other_parent_headers, admin_headers
) -> None:
    first = (await submit_admission(client, parent_headers))["admission"]
    second = (await submit_admission(client, other_parent_headers, student_full_name="Other"))["admission"]
    await client.post(
        f"/api/v1/admissions/{second['id']}/status", json={"status": "approved"}, headers=admin_headers
    )

    approved_a = await record_payment(client, parent_headers, first["id"], "1000")
    approved_b = await record_payment(client, other_parent_headers, second["id"], "2500")
    rejected = await record_payment(client, parent_headers, first["id"], "700")
    await record_payment(client, parent_headers, first["id"], "300")
    await record_payment(client, parent_headers, first["id"], "50", with_receipt=False)
    await _verify(client, admin_headers, approved_a["id"])
    await _verify(client, admin_headers, approved_b["id"])
    await _verify(client, admin_headers, rejected["id"], "rejected")

    await client.post("/api/v1/queries", data={"subject": "Q", "message": "M"}, headers=parent_headers)

    assert (await client.get("/api/v1/dashboard/admin", headers=parent_headers)).status_code == 403

    response = await client.get("/api/v1/dashboard/admin", headers=admin_headers)
    assert response.status_code == 200
    data = response.json()
    stats = data["stats"]
    assert stats["total_students"] == 2
    assert stats["pending_admissions"] == 1
    assert stats["pending_payments"] == 1
    assert stats["open_queries"] == 1
    assert float(stats["total_revenue"]) == 3500

    assert len(data["recent_admissions"]) == 2
    assert len(data["recent_payments"]) == 5
    assert all(p["admission"]["student"] is not None for p in data["recent_payments"])
