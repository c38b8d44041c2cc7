"""
Pytest configuration and shared fixtures for the pension simulator tests.
"""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest  # noqa: E402

from pension_simulator.config import Settings, reset_global_settings  # noqa: E402
from pension_simulator.models.indexation import create_flat_indexation  # noqa: E402
from pension_simulator.models.profile import EmploymentPeriod, PersonProfile  # noqa: E402
from pension_simulator.models.projector import LifeExpectancyTable  # noqa: E402
from pension_simulator.models.request import CalculationRequest  # noqa: E402
from pension_simulator.services.calculation_service import (  # noqa: E402
    CalculationOrchestrator,
)


@pytest.fixture(autouse=True)
def _reset_settings():
    """Drop cached global settings between tests."""
    reset_global_settings()
    yield
    reset_global_settings()


@pytest.fixture
def life_table():
    """Divisor table covering ages 55-75 for both genders."""
    return LifeExpectancyTable(
        divisors={
            "male": {age: 184.2 + (65 - age) * 8.5 for age in range(55, 76)},
            "female": {age: 215.2 + (65 - age) * 8.8 for age in range(55, 76)},
        },
        source="test",
    )


@pytest.fixture
def make_period():
    """Factory for employment periods with sensible defaults."""

    def _make(**overrides):
        data = {
            "start_year": 2025,
            "end_year": 2065,
            "contract_type": "employment",
            "monthly_income": 6000.0,
            "income_growth_rate": 0.03,
        }
        data.update(overrides)
        return EmploymentPeriod(**data)

    return _make


@pytest.fixture
def make_person(make_period):
    """Factory for a person born 2000, aged 25 in 2025, retiring at 65."""

    def _make(periods=None, **overrides):
        data = {
            "birth_year": 2000,
            "gender": "male",
            "current_age": 25,
            "target_retirement_age": 65,
            "employment_periods": (
                tuple(periods) if periods is not None else (make_period(),)
            ),
        }
        data.update(overrides)
        return PersonProfile(**data)

    return _make


@pytest.fixture
def flat_indexation():
    """Indexation 2000-2080 with 3% wages, 2% valorization and 2.5% inflation."""
    return create_flat_indexation(
        2000, 2080, wage_growth=0.03, valorization_rate=0.02, inflation_rate=0.025
    )


@pytest.fixture
def make_request(make_person, flat_indexation):
    """Factory for calculation requests."""

    def _make(person=None, indexation=None, scenarios=()):
        return CalculationRequest(
            person=person or make_person(),
            indexation=indexation or flat_indexation,
            scenarios=list(scenarios),
        )

    return _make


@pytest.fixture
def orchestrator(life_table):
    """Orchestrator with default policy and the test divisor table."""
    return CalculationOrchestrator(life_expectancy=life_table)


@pytest.fixture
def request_payload():
    """JSON body of a calculation request with two scenarios."""
    return {
        "person": {
            "birth_year": 2000,
            "gender": "female",
            "current_age": 25,
            "target_retirement_age": 65,
            "employment_periods": [
                {
                    "start_year": 2025,
                    "end_year": 2065,
                    "contract_type": "employment",
                    "monthly_income": 6000,
                    "income_growth_rate": 0.03,
                    "sick_leave_days": 10,
                }
            ],
        },
        "indexation": {
            "years": {
                str(year): {
                    "wage_growth": 0.03,
                    "valorization_rate": 0.02,
                    "inflation_rate": 0.025,
                }
                for year in range(2020, 2081)
            }
        },
        "scenarios": [
            {"kind": "extend_work", "years": 2, "scenario_id": "work-longer"},
            {"kind": "reduce_sick_leave", "target_days": 0},
        ],
    }


@pytest.fixture
def test_settings(tmp_path):
    """Settings for the testing environment with storage in a temp dir."""
    return Settings(
        _env_file=None,
        SECRET_KEY="test-secret-key",
        APP_ENV="testing",
        STORAGE_BASE_PATH=str(tmp_path / "storage"),
    )
