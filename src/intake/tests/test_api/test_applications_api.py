from intake.models.application import ApplicationStatus
from intake.schemas.application import ApplicationCreate
from intake.tests.test_fixtures.repository_fixtures import make_application_data

BASE = "/api/v1/applications"


def camel_payload(fake, **overrides) -> dict:
    """Request body as a client sends it: camelCase keys, JSON-ready values."""
    return ApplicationCreate(**make_application_data(fake, **overrides)).model_dump(
        mode="json", by_alias=True, exclude_none=True
    )


class TestCreate:

    async def test_public_submission(self, client, fake):
        body = camel_payload(fake)

        resp = await client.post(BASE, json=body)

        assert resp.status_code == 201
        data = resp.json()
        assert data["success"] is True
        assert data["message"] == "Application created successfully"
        assert data["data"]["nationalId"] == body["nationalId"]
        assert data["data"]["status"] == "PENDING"
        assert "appliedAt" in data["data"]

    async def test_duplicate_national_id(self, client, fake):
        body = camel_payload(fake)
        await client.post(BASE, json=body)

        resp = await client.post(BASE, json=dict(body, firstName="Someone"))

        assert resp.status_code == 409
        assert resp.json() == {
            "success": False,
            "code": "conflict",
            "message": "Application with this national ID already exists",
        }

    async def test_schema_violation_is_validation_envelope(self, client, fake):
        body = camel_payload(fake)
        body.pop("nationalId")
        body["gender"] = "OTHER"

        resp = await client.post(BASE, json=body)

        assert resp.status_code == 422
        data = resp.json()
        assert data["success"] is False
        assert data["code"] == "validation"
        fields = {d["field"] for d in data["details"]}
        assert {"nationalId", "gender"} <= fields


class TestAuthenticatedRoutes:

    async def test_list_requires_authentication(self, client):
        resp = await client.get(BASE)
        assert resp.status_code == 401

    async def test_invalid_token_is_401(self, client):
        resp = await client.get(BASE, headers={"Authorization": "Bearer not-a-jwt"})
        assert resp.status_code == 401

    async def test_list_with_filters(self, client, user_headers, create_application):
        await create_application(status=ApplicationStatus.APPROVED, first_name="Alpha")
        await create_application(status=ApplicationStatus.PENDING, first_name="Beta")
        await create_application(status=ApplicationStatus.PENDING, first_name="Gamma")

        resp = await client.get(BASE, params={"page": 1, "limit": 5, "status": "PENDING"}, headers=user_headers)

        assert resp.status_code == 200
        page = resp.json()["data"]
        assert page["total"] == 2
        assert [i["firstName"] for i in page["items"]] == ["Gamma", "Beta"]
        assert page["pageSize"] == 5
        assert page["hasPrevPage"] is False

    async def test_list_status_all_and_default_page_size(self, client, user_headers, create_application, test_settings):
        await create_application(status=ApplicationStatus.APPROVED)
        await create_application(status=ApplicationStatus.REJECTED)

        resp = await client.get(BASE, params={"status": "All"}, headers=user_headers)

        page = resp.json()["data"]
        assert page["total"] == 2
        assert page["pageSize"] == test_settings.DEFAULT_PAGE_SIZE

    async def test_get_update_delete_roundtrip(self, client, user_headers, create_application):
        created = await create_application(first_name="Old", village="Kamatamu")

        got = await client.get(f"{BASE}/{created.id}", headers=user_headers)
        assert got.status_code == 200
        assert got.json()["data"]["firstName"] == "Old"

        patched = await client.patch(f"{BASE}/{created.id}", json={"firstName": "New"}, headers=user_headers)
        assert patched.status_code == 200
        assert patched.json()["message"] == "Application updated successfully"
        assert patched.json()["data"]["firstName"] == "New"
        assert patched.json()["data"]["village"] == "Kamatamu"

        deleted = await client.delete(f"{BASE}/{created.id}", headers=user_headers)
        assert deleted.status_code == 200
        assert deleted.json() == {"success": True, "message": "Application deleted successfully", "data": None}

        gone = await client.get(f"{BASE}/{created.id}", headers=user_headers)
        assert gone.status_code == 404
        assert gone.json()["code"] == "not_found"

    async def test_patch_null_clears_optional_and_rejects_required(self, client, user_headers, create_application):
        created = await create_application(secondary_skill="Welding")

        cleared = await client.patch(f"{BASE}/{created.id}", json={"secondarySkill": None}, headers=user_headers)
        rejected = await client.patch(f"{BASE}/{created.id}", json={"village": None}, headers=user_headers)

        assert cleared.status_code == 200
        assert cleared.json()["data"]["secondarySkill"] is None
        assert rejected.status_code == 422
        assert rejected.json()["details"][0]["field"] == "village"

    async def test_patch_missing_is_404(self, client, user_headers):
        resp = await client.patch(f"{BASE}/9999", json={"firstName": "X"}, headers=user_headers)
        assert resp.status_code == 404
        assert resp.json()["message"] == "Application not found"

    async def test_request_id_is_echoed(self, client, user_headers):
        resp = await client.get(BASE, headers={**user_headers, "X-Request-ID": "trace-123"})
        assert resp.headers["X-Request-ID"] == "trace-123"


async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
