import json

import pytest

from intake.core.result import (
    Failure,
    FailureKind,
    Success,
    conflict,
    internal_error,
    not_found,
    render,
    success,
    validation_error,
)


class TestEnvelopePayloads:

    def test_success_payload_shape(self):
        env = success("Application created successfully", {"id": 1}, status_code=201)

        assert env.ok is True
        assert env.http_status() == 201
        assert env.to_payload() == {
            "success": True,
            "message": "Application created successfully",
            "data": {"id": 1},
        }

    def test_success_without_data_keeps_data_key(self):
        payload = success("User deleted successfully").to_payload()
        assert payload["data"] is None
        assert payload["success"] is True

    @pytest.mark.parametrize(
        "envelope, code, status",
        [
            (not_found("User not found"), "not_found", 404),
            (conflict("User with this email already exists"), "conflict", 409),
            (validation_error("Invalid request data"), "validation", 422),
            (internal_error(), "internal", 500),
        ],
    )
    def test_failure_kinds_map_to_codes_and_statuses(self, envelope, code, status):
        assert envelope.ok is False
        assert envelope.http_status() == status
        payload = envelope.to_payload()
        assert payload["success"] is False
        assert payload["code"] == code
        assert "data" not in payload

    def test_details_only_present_when_given(self):
        bare = validation_error("Invalid request data")
        detailed = validation_error("Invalid request data", [{"field": "email", "message": "bad"}])

        assert "details" not in bare.to_payload()
        assert detailed.to_payload()["details"] == [{"field": "email", "message": "bad"}]

    def test_internal_error_message_is_generic(self):
        assert internal_error().message == "An unexpected error occurred"

    def test_exactly_one_variant(self):
        for env in (success("ok"), not_found("missing")):
            assert isinstance(env, (Success, Failure))
            assert isinstance(env, Success) != isinstance(env, Failure)

    def test_failure_kind_statuses(self):
        assert FailureKind.NOT_FOUND.http_status == 404
        assert FailureKind.CONFLICT.http_status == 409
        assert FailureKind.VALIDATION.http_status == 422
        assert FailureKind.INTERNAL.http_status == 500


class TestRender:

    def test_render_uses_envelope_status_and_body(self):
        response = render(conflict("Application with this national ID already exists"))

        assert response.status_code == 409
        body = json.loads(response.body)
        assert body == {
            "success": False,
            "code": "conflict",
            "message": "Application with this national ID already exists",
        }

    def test_render_encodes_non_json_types(self):
        from datetime import date

        response = render(success("ok", {"born": date(2000, 1, 31)}))

        assert json.loads(response.body)["data"] == {"born": "2000-01-31"}
