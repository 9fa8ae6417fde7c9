from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from preschool.core.models import AuditLog

from conftest import admission_payload, submit_admission


async def test_submit_admission_uses_class_fee(client: AsyncClient, parent_headers) -> None:
    data = await submit_admission(client, parent_headers, class_name="L.K.G.")

    assert data["admission"]["status"] == "submitted"
    assert float(data["admission"]["total_fee"]) == 30000
    assert data["admission"]["student_id"] == data["student"]["id"]
    assert data["student"]["class_name"] == "L.K.G."
    assert data["student"]["allergies"] == "peanuts"


async def test_submit_admission_supplied_fee_and_default(client: AsyncClient, parent_headers) -> None:
    custom = await submit_admission(client, parent_headers, total_fee="18000")
    assert float(custom["admission"]["total_fee"]) == 18000

    zero = await submit_admission(client, parent_headers, student_full_name="Second Child", total_fee="0")
    assert float(zero["admission"]["total_fee"]) == 25000

    unknown = await submit_admission(client, parent_headers, student_full_name="Third Child", class_name="playgroup")
    assert float(unknown["admission"]["total_fee"]) == 20000


async def test_submit_admission_validates_required_fields(client: AsyncClient, parent_headers) -> None:
    response = await client.post(
        "/api/v1/admissions",
        json={"student_full_name": "No Details"},
        headers=parent_headers,
    )
    assert response.status_code == 422

    blank_name = await client.post(
        "/api/v1/admissions", json=admission_payload(student_full_name="   "), headers=parent_headers
    )
    assert blank_name.status_code == 422


async def test_parent_sees_only_own_admissions(
    client: AsyncClient, parent_headers, other_parent_headers
) -> None:
    mine = await submit_admission(client, parent_headers)
    await submit_admission(client, other_parent_headers, student_full_name="Someone Else")

    response = await client.get("/api/v1/admissions/my", headers=parent_headers)
    assert response.status_code == 200
    rows = response.json()
    assert [r["id"] for r in rows] == [mine["admission"]["id"]]
    assert rows[0]["student"]["full_name"] == "Aarav Kumar"

    hidden = await client.get(f"/api/v1/admissions/{mine['admission']['id']}", headers=other_parent_headers)
    assert hidden.status_code == 404


async def test_admin_lists_are_admin_only(client: AsyncClient, parent_headers) -> None:
    assert (await client.get("/api/v1/admissions", headers=parent_headers)).status_code == 403
    assert (await client.get("/api/v1/admissions/pending", headers=parent_headers)).status_code == 403


async def test_admin_approves_admission(
    client: AsyncClient, db_session: AsyncSession, parent_headers, admin_headers
) -> None:
    created = await submit_admission(client, parent_headers)
    admission_id = created["admission"]["id"]

    pending = await client.get("/api/v1/admissions/pending", headers=admin_headers)
    assert [a["id"] for a in pending.json()] == [admission_id]

    response = await client.post(
        f"/api/v1/admissions/{admission_id}/status",
        json={"status": "approved", "notes": "Welcome!"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "approved"
    assert data["notes"] == "Welcome!"
    assert data["reviewed_by"] is not None
    assert data["reviewed_at"] is not None

    filtered = await client.get("/api/v1/admissions", params={"status": "approved"}, headers=admin_headers)
    assert [a["id"] for a in filtered.json()] == [admission_id]

    audit = (
        await db_session.execute(select(AuditLog).where(AuditLog.action == "admission_approved"))
    ).scalars().all()
    assert len(audit) == 1
    assert audit[0].from_status == "submitted"
    assert audit[0].to_status == "approved"


async def test_decided_admission_cannot_be_reopened(client: AsyncClient, parent_headers, admin_headers) -> None:
    created = await submit_admission(client, parent_headers)
    admission_id = created["admission"]["id"]
    await client.post(
        f"/api/v1/admissions/{admission_id}/status", json={"status": "rejected"}, headers=admin_headers
    )

    for target in ("approved", "submitted"):
        response = await client.post(
            f"/api/v1/admissions/{admission_id}/status", json={"status": target}, headers=admin_headers
        )
        assert response.status_code == 400


async def test_parent_cannot_change_status(client: AsyncClient, parent_headers) -> None:
    created = await submit_admission(client, parent_headers)
    response = await client.post(
        f"/api/v1/admissions/{created['admission']['id']}/status",
        json={"status": "approved"},
        headers=parent_headers,
    )
    assert response.status_code == 403


async def test_admin_edits_fee(client: AsyncClient, parent_headers, admin_headers) -> None:
    created = await submit_admission(client, parent_headers)
    admission_id = created["admission"]["id"]
    response = await client.patch(
        f"/api/v1/admissions/{admission_id}",
        json={"total_fee": "27500", "notes": "Sibling discount"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert float(response.json()["total_fee"]) == 27500

    detail = await client.get(f"/api/v1/admissions/{admission_id}", headers=parent_headers)
    assert float(detail.json()["ledger"]["remaining_balance"]) == 27500


async def test_document_upload_and_signed_links(
    client: AsyncClient, storage, parent_headers, other_parent_headers, admin_headers
) -> None:
    upload = await client.post(
        "/api/v1/admissions/documents",
        data={"doc_type": "Birth Certificate"},
        files={"file": ("birth.pdf", b"%PDF-1.4 test", "application/pdf")},
        headers=parent_headers,
    )
    assert upload.status_code == 201
    doc = upload.json()
    assert doc["doc_type"] == "birth_certificate"
    assert doc["path"].endswith(".pdf")

    created = await submit_admission(client, parent_headers, uploaded_files={doc["doc_type"]: doc["path"]})
    admission_id = created["admission"]["id"]

    links = await client.get(f"/api/v1/admissions/{admission_id}/documents", headers=admin_headers)
    assert links.status_code == 200
    [link] = links.json()["documents"]
    assert link["file_type"] == "pdf"
    assert "?token=" in link["url"]

    # The signed URL serves the file; the bare URL does not
    signed = await client.get(link["url"])
    assert signed.status_code == 200
    assert signed.content == b"%PDF-1.4 test"
    unsigned = await client.get(link["url"].split("?")[0])
    assert unsigned.status_code == 403

    assert (
        await client.get(f"/api/v1/admissions/{admission_id}/documents", headers=other_parent_headers)
    ).status_code == 404


async def test_cannot_reference_another_parents_document(
    client: AsyncClient, parent_headers, other_parent_headers
) -> None:
    upload = await client.post(
        "/api/v1/admissions/documents",
        data={"doc_type": "photo"},
        files={"file": ("me.jpg", b"jpegdata", "image/jpeg")},
        headers=other_parent_headers,
    )
    response = await client.post(
        "/api/v1/admissions",
        json={
            "student_full_name": "Aarav Kumar",
            "date_of_birth": "2021-05-14",
            "gender": "male",
            "class_name": "nursery",
            "academic_year": "2025-2026",
            "emergency_contact_name": "Ravi Kumar",
            "emergency_contact_phone": "+919800000001",
            "emergency_contact_relationship": "father",
            "uploaded_files": {"photo": upload.json()["path"]},
        },
        headers=parent_headers,
    )
    assert response.status_code == 400
