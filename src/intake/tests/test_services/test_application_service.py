"""
Workflow behaviour, exercised through the application resource.
"""
import asyncio

import pytest

from intake.core.result import Failure, FailureKind, Success
from intake.models.application import ApplicationStatus
from intake.schemas.application import ApplicationCreate, ApplicationUpdate
from intake.services.application_service import ApplicationService
from intake.tests.test_fixtures.repository_fixtures import make_application_data

CONFLICT = "Application with this national ID already exists"


def assert_single_variant(envelope):
    assert isinstance(envelope, Success) != isinstance(envelope, Failure)


class TestCreate:

    async def test_status_defaults_to_pending(self, application_service, application_data):
        env = await application_service.create(application_data)

        assert isinstance(env, Success)
        assert env.message == "Application created successfully"
        assert env.status_code == 201
        assert env.data.status == ApplicationStatus.PENDING
        assert env.data.national_id == application_data["national_id"]

    async def test_explicit_status_is_kept(self, application_service, application_data):
        env = await application_service.create(dict(application_data, status=ApplicationStatus.APPROVED))
        assert env.data.status == ApplicationStatus.APPROVED

    async def test_duplicate_is_conflict_and_storage_keeps_one(self, application_service, application_data, fake):
        first = await application_service.create(application_data)
        second = await application_service.create(dict(application_data, first_name="Other", email=fake.unique.email()))

        assert first.ok
        assert isinstance(second, Failure)
        assert second.kind == FailureKind.CONFLICT
        assert second.message == CONFLICT
        assert await application_service.repository.count() == 1

    async def test_repeated_attempts_on_one_key_only_first_succeeds(self, application_service, fake):
        national_id = "1199888877776666"
        results = [
            await application_service.create(make_application_data(fake, national_id=national_id))
            for _ in range(4)
        ]

        assert sum(1 for r in results if r.ok) == 1
        assert all(r.kind == FailureKind.CONFLICT for r in results if not r.ok)

    async def test_lost_race_reports_same_conflict(self, application_service, application_data, monkeypatch):
        """
        The pre-check misses (another request inserted in between); the database
        constraint catches it and the caller sees the identical Conflict.
        """
        await application_service.create(application_data)

        async def miss(*args, **kwargs):
            return None

        monkeypatch.setattr(application_service.repository, "find_by_field_excluding", miss)

        env = await application_service.create(dict(application_data))

        assert isinstance(env, Failure)
        assert env.kind == FailureKind.CONFLICT
        assert env.message == CONFLICT
        assert await application_service.repository.count() == 1

    async def test_storage_failure_is_generic_internal(self, application_service, application_data, monkeypatch):
        async def explode(**kwargs):
            raise RuntimeError("disk I/O error on /var/lib/postgresql")

        monkeypatch.setattr(application_service.repository, "create", explode)

        env = await application_service.create(application_data)

        assert env.kind == FailureKind.INTERNAL
        assert env.message == "Failed to create application"
        assert "disk" not in env.message

    async def test_missing_required_field_is_validation(self, application_service, application_data):
        application_data.pop("primary_skill")

        env = await application_service.create(application_data)

        assert env.kind == FailureKind.VALIDATION
        assert env.details == [{"field": "primary_skill", "message": env.message}]

    async def test_schema_entry_point(self, application_service, application_data):
        payload = ApplicationCreate(**application_data)
        env = await application_service.create_application(payload)

        assert env.ok
        assert env.data.registration_type == application_data["registration_type"]


class TestConcurrentCreate:
    """Several requests, each with its own session, racing on one national ID."""

    async def _create_in_own_session(self, session_maker, data):
        async with session_maker() as session:
            return await ApplicationService(session).create(data)

    async def test_only_one_of_concurrent_creates_succeeds(self, file_session_maker, fake):
        national_id = "1199555544443333"
        attempts = [make_application_data(fake, national_id=national_id) for _ in range(6)]

        results = await asyncio.gather(
            *(self._create_in_own_session(file_session_maker, data) for data in attempts)
        )

        for envelope in results:
            assert_single_variant(envelope)
        assert sum(1 for r in results if r.ok) == 1
        losers = [r for r in results if not r.ok]
        assert all(r.kind == FailureKind.CONFLICT and r.message == CONFLICT for r in losers)

        async with file_session_maker() as session:
            assert await ApplicationService(session).repository.count() == 1


class TestUpdate:

    async def test_missing_is_not_found(self, application_service):
        env = await application_service.update(999, {"first_name": "X"})

        assert env.kind == FailureKind.NOT_FOUND
        assert env.message == "Application not found"
        assert await application_service.repository.count() == 0

    async def test_empty_patch_is_success_and_unchanged(self, application_service, create_application):
        created = await create_application()
        before = (created.first_name, created.national_id, created.status)

        env = await application_service.update(created.id, {})

        assert isinstance(env, Success)
        assert env.message == "Application updated successfully"
        assert (env.data.first_name, env.data.national_id, env.data.status) == before

    async def test_omitted_fields_are_not_nulled(self, application_service, create_application):
        created = await create_application(secondary_skill="Welding", email="keep@example.com")

        env = await application_service.update(created.id, {"first_name": "Changed"})

        assert env.data.first_name == "Changed"
        assert env.data.secondary_skill == "Welding"
        assert env.data.email == "keep@example.com"
        assert env.data.last_name == created.last_name

    async def test_explicit_null_clears_optional_fields(self, application_service, create_application):
        created = await create_application(secondary_skill="Welding", email="keep@example.com")

        env = await application_service.update_application(
            created.id, ApplicationUpdate.model_validate({"secondarySkill": None, "email": None})
        )

        assert isinstance(env, Success)
        assert env.data.secondary_skill is None
        assert env.data.email is None
        assert env.data.first_name == created.first_name

        stored = await application_service.find_one(created.id)
        assert stored.data.secondary_skill is None
        assert stored.data.email is None

    async def test_null_for_required_field_is_validation(self, application_service, create_application):
        created = await create_application(first_name="Kept")
        application_id = created.id

        env = await application_service.update_application(
            application_id, ApplicationUpdate.model_validate({"firstName": None, "secondarySkill": "Carpentry"})
        )

        assert env.kind == FailureKind.VALIDATION
        assert env.details == [{"field": "first_name", "message": env.message}]
        stored = await application_service.find_one(application_id)
        assert stored.data.first_name == "Kept"
        assert stored.data.secondary_skill is None

    async def test_same_key_is_not_a_conflict(self, application_service, create_application):
        created = await create_application()

        env = await application_service.update(created.id, {"national_id": created.national_id, "first_name": "Y"})

        assert env.ok

    async def test_taken_key_is_conflict_without_write(self, application_service, create_application):
        first = await create_application()
        second = await create_application(first_name="Untouched")

        env = await application_service.update(second.id, {"national_id": first.national_id, "first_name": "Touched"})

        assert env.kind == FailureKind.CONFLICT
        assert env.message == CONFLICT
        reread = await application_service.find_one(second.id)
        assert reread.data.first_name == "Untouched"

    async def test_update_lost_race(self, application_service, create_application, monkeypatch):
        first = await create_application()
        second = await create_application()

        async def miss(*args, **kwargs):
            return None

        monkeypatch.setattr(application_service.repository, "find_by_field_excluding", miss)

        env = await application_service.update(second.id, {"national_id": first.national_id})

        assert env.kind == FailureKind.CONFLICT
        assert env.message == CONFLICT

    async def test_schema_patch_only_sends_set_fields(self, application_service, create_application):
        created = await create_application(telephone="0788123456")

        env = await application_service.update_application(created.id, ApplicationUpdate(status=ApplicationStatus.REJECTED))

        assert env.data.status == ApplicationStatus.REJECTED
        assert env.data.telephone == "0788123456"


class TestDeleteAndFind:

    async def test_delete(self, application_service, create_application):
        created = await create_application()

        env = await application_service.delete(created.id)

        assert env.ok
        assert env.message == "Application deleted successfully"
        assert env.data is None
        assert (await application_service.find_one(created.id)).kind == FailureKind.NOT_FOUND

    @pytest.mark.parametrize("operation", ["find_one", "update", "delete"])
    async def test_not_found_symmetry(self, application_service, operation):
        method = getattr(application_service, operation)
        env = await (method(31337, {"first_name": "x"}) if operation == "update" else method(31337))

        assert_single_variant(env)
        assert env.kind == FailureKind.NOT_FOUND

    async def test_find_one(self, application_service, create_application):
        created = await create_application()
        env = await application_service.find_one(created.id)

        assert env.ok
        assert env.message == "Application retrieved successfully"
        assert env.data.id == created.id


class TestFindAll:

    async def test_status_all_does_not_filter(self, application_service, create_application):
        await create_application(status=ApplicationStatus.PENDING)
        await create_application(status=ApplicationStatus.APPROVED)
        await create_application(status=ApplicationStatus.REJECTED)

        for value in ("All", "all", None):
            env = await application_service.list_applications(page=1, page_size=5, status=value)
            assert env.data["total"] == 3

    async def test_status_filter_newest_first(self, application_service, create_application):
        older = await create_application(status=ApplicationStatus.PENDING)
        await create_application(status=ApplicationStatus.APPROVED)
        newer = await create_application(status=ApplicationStatus.PENDING)

        env = await application_service.list_applications(page=1, page_size=5, status="PENDING")

        assert env.data["total"] == 2
        assert [item.id for item in env.data["items"]] == [newer.id, older.id]
        assert all(item.status == ApplicationStatus.PENDING for item in env.data["items"])

    async def test_invalid_status_is_validation(self, application_service):
        env = await application_service.list_applications(status="ARCHIVED")
        assert env.kind == FailureKind.VALIDATION

    async def test_page_metadata_and_clamping(self, application_service, create_application):
        for _ in range(7):
            await create_application()

        env = await application_service.list_applications(page=0, page_size=3)

        assert env.data["page"] == 1
        assert env.data["pageSize"] == 3
        assert env.data["totalPages"] == 3
        assert env.data["hasNextPage"] is True
        assert env.data["hasPrevPage"] is False
        assert len(env.data["items"]) == 3

    async def test_page_size_clamped_to_max(self, application_service):
        env = await application_service.list_applications(page=1, page_size=10_000)
        assert env.data["pageSize"] == application_service.max_page_size

    async def test_search(self, application_service, create_application):
        await create_application(last_name="Nshuti")
        await create_application(last_name="Keza")

        env = await application_service.list_applications(search="nshu")

        assert env.data["total"] == 1
        assert env.data["items"][0].last_name == "Nshuti"
        assert env.message == "Applications retrieved successfully"
