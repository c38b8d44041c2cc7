"""
Tests for requests and result models.
"""

import json

import pytest

from pension_simulator.models.indexation import create_flat_indexation
from pension_simulator.models.ledger import build_ledger
from pension_simulator.models.request import CalculationRequest
from pension_simulator.models.results import deflate_ledger
from pension_simulator.models.scenarios import ExtendWorkScenario


class TestCalculationRequest:
    """Test request parsing and hashing."""

    def test_hash_is_stable(self, make_request):
        """Test that equal requests hash equally."""
        assert make_request().content_hash() == make_request().content_hash()

    def test_hash_changes_with_content(self, make_request):
        """Test that any change to the request changes the hash."""
        base = make_request().content_hash()
        with_scenario = make_request(scenarios=[ExtendWorkScenario(years=1)]).content_hash()

        assert base != with_scenario

    def test_hash_ignores_json_key_order(self, request_payload):
        """Test that key order in the incoming JSON does not matter."""
        reordered = json.loads(json.dumps(request_payload, sort_keys=True))
        reordered["person"] = dict(reversed(list(reordered["person"].items())))

        assert (
            CalculationRequest.model_validate(request_payload).content_hash()
            == CalculationRequest.model_validate(reordered).content_hash()
        )

    def test_scenarios_default_empty(self, make_person, flat_indexation):
        """Test that scenarios are optional."""
        request = CalculationRequest(person=make_person(), indexation=flat_indexation)

        assert request.scenarios == []


class TestDeflateLedger:
    """Test deflation of ledger figures."""

    def test_deflate(self, make_period):
        """Test that every monetary figure is divided by its year's deflator."""
        indexation = create_flat_indexation(
            2025, 2030, valorization_rate=0.02, inflation_rate=0.1
        )
        ledger = build_ledger([make_period()], indexation, 2030)
        deflators = indexation.deflators(2025, 2025, 2030)

        real = deflate_ledger(ledger, deflators)

        assert [record.year for record in real] == ledger.years
        nominal = ledger.get_record(2028)
        assert real[3].deflator == pytest.approx(1.1**3)
        assert real[3].gross_income == pytest.approx(nominal.gross_income / 1.1**3)
        assert real[3].contribution == pytest.approx(nominal.contribution / 1.1**3)
        assert real[3].balance == pytest.approx(nominal.balance / 1.1**3)

    def test_missing_deflator(self, make_period, flat_indexation):
        """Test that deflators must cover the ledger."""
        ledger = build_ledger([make_period()], flat_indexation, 2030)

        with pytest.raises(KeyError):
            deflate_ledger(ledger, {2025: 1.0})
