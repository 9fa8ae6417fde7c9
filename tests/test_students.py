from httpx import AsyncClient

from conftest import submit_admission


async def test_students_listed_with_admission(client: AsyncClient, parent_headers, admin_headers) -> None:
    created = await submit_admission(client, parent_headers)

    mine = await client.get("/api/v1/students/my", headers=parent_headers)
    assert mine.status_code == 200
    [student] = mine.json()
    assert student["id"] == created["student"]["id"]
    assert student["admission"]["id"] == created["admission"]["id"]
    assert student["admission"]["status"] == "submitted"

    assert (await client.get("/api/v1/students", headers=parent_headers)).status_code == 403
    everyone = await client.get("/api/v1/students", headers=admin_headers)
    assert len(everyone.json()) == 1


async def test_parent_updates_own_student(
    client: AsyncClient, parent_headers, other_parent_headers
) -> None:
    created = await submit_admission(client, parent_headers)
    student_id = created["student"]["id"]

    response = await client.patch(
        f"/api/v1/students/{student_id}", json={"allergies": "none"}, headers=parent_headers
    )
    assert response.status_code == 200
    assert response.json()["allergies"] == "none"

    other = await client.patch(
        f"/api/v1/students/{student_id}", json={"allergies": "dust"}, headers=other_parent_headers
    )
    assert other.status_code == 404


async def test_only_admin_assigns_teacher(client: AsyncClient, parent_headers, admin_headers) -> None:
    created = await submit_admission(client, parent_headers)
    student_id = created["student"]["id"]

    denied = await client.patch(
        f"/api/v1/students/{student_id}", json={"assigned_teacher": "Ms. Rao"}, headers=parent_headers
    )
    assert denied.status_code == 403

    allowed = await client.patch(
        f"/api/v1/students/{student_id}", json={"assigned_teacher": "Ms. Rao"}, headers=admin_headers
    )
    assert allowed.status_code == 200
    assert allowed.json()["assigned_teacher"] == "Ms. Rao"


async def test_update_cannot_clear_required_fields(client: AsyncClient, parent_headers) -> None:
    created = await submit_admission(client, parent_headers)
    student_id = created["student"]["id"]

    nulled = await client.patch(
        f"/api/v1/students/{student_id}",
        json={"full_name": None, "class_name": None},
        headers=parent_headers,
    )
    assert nulled.status_code == 400
    assert nulled.json()["detail"] == "class_name, full_name cannot be empty"

    blank = await client.patch(
        f"/api/v1/students/{student_id}", json={"full_name": "   "}, headers=parent_headers
    )
    assert blank.status_code == 422

    [student] = (await client.get("/api/v1/students/my", headers=parent_headers)).json()
    assert student["full_name"] == "Aarav Kumar"
    assert student["class_name"] == "nursery"


async def test_update_strips_and_clears_optional_text(client: AsyncClient, parent_headers) -> None:
    created = await submit_admission(client, parent_headers)
    student_id = created["student"]["id"]

    response = await client.patch(
        f"/api/v1/students/{student_id}",
        json={"full_name": "  Aarav K  ", "allergies": "   "},
        headers=parent_headers,
    )
    assert response.status_code == 200
    assert response.json()["full_name"] == "Aarav K"
    assert response.json()["allergies"] is None
