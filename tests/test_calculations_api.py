"""Tests for the calculations HTTP endpoints."""

import json

import pytest

from pension_simulator import create_app
from pension_simulator.blueprints.calculations import status_for
from pension_simulator.config import Settings
from pension_simulator.models.errors import (
    AbortedRun,
    IndexationGap,
    InvalidDivisor,
    InvalidSickLeaveAssumption,
    ScenarioComputationError,
    UnknownContractType,
    ValidationError,
)


@pytest.fixture
def app(test_settings):
    app = create_app(test_settings)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


class TestCreateCalculation:
    """Test POST /api/calculations."""

    def test_successful_calculation(self, client, request_payload):
        """Test a run with two scenarios."""
        response = client.post("/api/calculations", json=request_payload)

        assert response.status_code == 200
        data = json.loads(response.data)
        assert len(data["input_hash"]) == 64
        assert len(data["baseline"]["ledger"]["records"]) == 41
        assert [scenario["scenario_id"] for scenario in data["scenarios"]] == [
            "work-longer",
            "reduce_sick_leave",
        ]
        assert all(scenario["status"] == "ok" for scenario in data["scenarios"])
        assert data["summary"]["base_year"] == 2025
        assert (
            data["summary"]["baseline_real_monthly_benefit"]
            < data["summary"]["baseline_monthly_benefit"]
        )

    def test_same_request_same_hash(self, client, request_payload):
        """Test that repeated requests return identical results."""
        first = json.loads(client.post("/api/calculations", json=request_payload).data)
        second = json.loads(client.post("/api/calculations", json=request_payload).data)

        assert first == second

    def test_partial_failure_is_200(self, client, request_payload):
        """Test that a failed scenario is reported inside a successful response."""
        request_payload["scenarios"].append({"kind": "extend_work", "years": 10})

        response = client.post("/api/calculations", json=request_payload)

        assert response.status_code == 200
        data = json.loads(response.data)
        assert [scenario["status"] for scenario in data["scenarios"]] == [
            "ok",
            "ok",
            "failed",
        ]
        assert data["scenarios"][2]["error"]["kind"] == "scenario_computation_error"

    def test_body_must_be_json_object(self, client):
        """Test that a non-JSON body is a validation error."""
        response = client.post(
            "/api/calculations", data="not json", content_type="text/plain"
        )

        assert response.status_code == 400
        data = json.loads(response.data)
        assert data["error"]["kind"] == "validation_error"
        assert data["error"]["context"]["field"] == "request"

    def test_missing_person(self, client, request_payload):
        """Test that parse errors name the missing field."""
        del request_payload["person"]

        response = client.post("/api/calculations", json=request_payload)

        assert response.status_code == 400
        assert json.loads(response.data)["error"]["context"]["field"] == "person"

    def test_nested_parse_error_names_field(self, client, request_payload):
        """Test the field path of a nested parse error."""
        request_payload["person"]["employment_periods"][0]["part_time_factor"] = 2

        response = client.post("/api/calculations", json=request_payload)

        assert response.status_code == 400
        data = json.loads(response.data)
        assert (
            data["error"]["context"]["field"]
            == "person.employment_periods[0].part_time_factor"
        )

    def test_nan_income_is_400(self, client, request_payload):
        """Test that a NaN income literal is a field-attributed 400."""
        body = json.dumps(request_payload).replace(
            '"monthly_income": 6000', '"monthly_income": NaN'
        )

        response = client.post(
            "/api/calculations", data=body, content_type="application/json"
        )

        assert response.status_code == 400
        error = json.loads(response.data)["error"]
        assert error["context"]["field"] == "person.employment_periods[0].monthly_income"

    def test_retirement_age_out_of_policy(self, client, request_payload):
        """Test that policy validation errors are 400."""
        request_payload["person"]["target_retirement_age"] = 75

        response = client.post("/api/calculations", json=request_payload)

        assert response.status_code == 400
        data = json.loads(response.data)
        assert data["error"]["context"]["field"] == "person.target_retirement_age"

    def test_unknown_contract_type(self, client, request_payload):
        """Test that an unknown contract tag is rejected with its field."""
        request_payload["person"]["employment_periods"][0]["contract_type"] = "gig"

        response = client.post("/api/calculations", json=request_payload)

        assert response.status_code == 400
        data = json.loads(response.data)
        assert (
            data["error"]["context"]["field"]
            == "person.employment_periods[0].contract_type"
        )

    def test_indexation_gap(self, client, request_payload):
        """Test that missing indexation years are 422."""
        years = request_payload["indexation"]["years"]
        request_payload["indexation"]["years"] = {
            year: value for year, value in years.items() if int(year) <= 2050
        }

        response = client.post("/api/calculations", json=request_payload)

        assert response.status_code == 422
        data = json.loads(response.data)
        assert data["error"]["kind"] == "indexation_gap"
        assert data["error"]["context"]["year"] == 2051

    def test_invalid_sick_leave(self, client, request_payload):
        """Test that impossible sick-leave days are 422."""
        request_payload["person"]["employment_periods"][0]["sick_leave_days"] = 400

        response = client.post("/api/calculations", json=request_payload)

        assert response.status_code == 422
        assert (
            json.loads(response.data)["error"]["kind"] == "invalid_sick_leave_assumption"
        )

    def test_timeout_is_504(self, app, client, request_payload):
        """Test that an aborted run is 504."""
        app.config["CALCULATION_TIMEOUT_SECONDS"] = 0

        response = client.post("/api/calculations", json=request_payload)

        assert response.status_code == 504
        assert json.loads(response.data)["error"]["kind"] == "aborted_run"


class TestGetCalculation:
    """Test GET /api/calculations/<input_hash>."""

    def test_cached_result(self, client, request_payload):
        """Test that a computed result can be fetched by hash."""
        created = json.loads(client.post("/api/calculations", json=request_payload).data)

        response = client.get(f"/api/calculations/{created['input_hash']}")

        assert response.status_code == 200
        assert json.loads(response.data) == created

    def test_unknown_hash(self, client):
        """Test that an unknown hash is 404."""
        response = client.get(f"/api/calculations/{'0' * 64}")

        assert response.status_code == 404

    def test_malformed_hash(self, client):
        """Test that a malformed hash is 404."""
        response = client.get("/api/calculations/not-a-hash")

        assert response.status_code == 404

    def test_policy_change_recomputes(self, client, tmp_path, request_payload):
        """Test that results cached under an earlier policy are not served."""
        created = client.post("/api/calculations", json=request_payload)
        assert created.status_code == 200
        settings = Settings(
            _env_file=None,
            SECRET_KEY="test-secret-key",
            APP_ENV="testing",
            STORAGE_BASE_PATH=str(tmp_path / "storage"),
            MAX_RETIREMENT_AGE=64,
        )
        stricter = create_app(settings).test_client()

        response = stricter.post("/api/calculations", json=request_payload)
        fetched = stricter.get(f"/api/calculations/{json.loads(created.data)['input_hash']}")

        assert response.status_code == 400
        assert (
            json.loads(response.data)["error"]["context"]["field"]
            == "person.target_retirement_age"
        )
        assert fetched.status_code == 404

    def test_cache_disabled(self, tmp_path, request_payload):
        """Test that nothing is cached when the cache is disabled."""
        settings = Settings(
            _env_file=None,
            SECRET_KEY="test-secret-key",
            APP_ENV="testing",
            STORAGE_BASE_PATH=str(tmp_path / "storage"),
            RESULT_CACHE_ENABLED=False,
        )
        client = create_app(settings).test_client()
        created = json.loads(client.post("/api/calculations", json=request_payload).data)

        response = client.get(f"/api/calculations/{created['input_hash']}")

        assert response.status_code == 404


class TestStatusMapping:
    """Test engine error to HTTP status mapping."""

    @pytest.mark.parametrize(
        "error, status",
        [
            (ValidationError("person", "missing"), 400),
            (IndexationGap(2050), 422),
            (InvalidSickLeaveAssumption(300, 250), 422),
            (InvalidDivisor(80, "male"), 422),
            (UnknownContractType("gig"), 422),
            (ScenarioComputationError("s", "infeasible"), 422),
            (AbortedRun("timed out"), 504),
        ],
    )
    def test_status_for(self, error, status):
        """Test each engine error's status code."""
        assert status_for(error) == status
