"""
Tests for the year-keyed indexation table.
"""

import pytest
from pydantic import ValidationError

from pension_simulator.models.errors import IndexationGap
from pension_simulator.models.indexation import (
    IndexationTable,
    YearIndexation,
    create_flat_indexation,
)


def _table(rates):
    """Build a table from {year: (wage, valorization, inflation)}."""
    return IndexationTable(
        years={
            year: YearIndexation(
                wage_growth=wage, valorization_rate=valorization, inflation_rate=inflation
            )
            for year, (wage, valorization, inflation) in rates.items()
        }
    )


class TestIndexationTable:
    """Test table lookups and gap handling."""

    def test_flat_table(self):
        """Test create_flat_indexation."""
        table = create_flat_indexation(2025, 2030, valorization_rate=0.02)

        assert table.first_year == 2025
        assert table.last_year == 2030
        assert table.get(2027).valorization_rate == 0.02
        assert table.get(2027).inflation_rate == 0.0

    def test_flat_table_invalid_range(self):
        """Test that a reversed range is rejected."""
        with pytest.raises(ValueError):
            create_flat_indexation(2030, 2025)

    def test_empty_table_rejected(self):
        """Test that an empty table is invalid."""
        with pytest.raises(ValidationError):
            IndexationTable(years={})

    def test_rate_bounds(self):
        """Test that rates must be above -100%."""
        with pytest.raises(ValidationError):
            YearIndexation(wage_growth=-1.0, valorization_rate=0.0, inflation_rate=0.0)

    def test_missing_year_raises_gap(self):
        """Test that a missing year is reported with the year."""
        table = _table({2025: (0, 0.02, 0), 2027: (0, 0.02, 0)})

        with pytest.raises(IndexationGap) as exc_info:
            table.get(2026)

        assert exc_info.value.year == 2026
        assert table.missing_years(2024, 2028) == [2024, 2026, 2028]

    def test_extrapolate_last_reuses_earlier_year(self):
        """Test the extrapolate_last gap policy."""
        table = _table({2025: (0, 0.02, 0), 2026: (0, 0.05, 0)})

        assert table.resolve(2030, "extrapolate_last").valorization_rate == 0.05
        with pytest.raises(IndexationGap):
            table.resolve(2030, "strict")

    def test_extrapolate_does_not_cover_earlier_years(self):
        """Test that years before the table remain gaps."""
        table = _table({2025: (0, 0.02, 0)})

        with pytest.raises(IndexationGap):
            table.resolve(2020, "extrapolate_last")


class TestCumulativeFactors:
    """Test deflators and wage indexes."""

    def test_base_year_factor_is_one(self):
        """Test that the base year factor is exactly 1."""
        table = create_flat_indexation(2020, 2040, inflation_rate=0.03)
        deflators = table.deflators(2025, 2020, 2040)

        assert deflators[2025] == 1.0

    def test_deflators_compound_after_base_year(self):
        """Test forward and backward compounding."""
        table = _table(
            {
                2024: (0, 0, 0.10),
                2025: (0, 0, 0.50),
                2026: (0, 0, 0.02),
                2027: (0, 0, 0.03),
            }
        )
        deflators = table.deflators(2025, 2024, 2027)

        assert deflators[2026] == pytest.approx(1.02)
        assert deflators[2027] == pytest.approx(1.02 * 1.03)
        # Reaching 2024 undoes 2025's inflation; 2024's own rate is unused.
        assert deflators[2024] == pytest.approx(1 / 1.5)

    def test_first_year_rate_not_required(self):
        """Test that the earliest year in range need not be in the table."""
        table = create_flat_indexation(2026, 2030, inflation_rate=0.02)
        deflators = table.deflators(2025, 2025, 2030)

        assert deflators[2025] == 1.0
        assert deflators[2030] == pytest.approx(1.02**5)

    def test_gap_inside_range(self):
        """Test that a gap in the compounded span is reported."""
        table = _table({2025: (0, 0, 0.02), 2027: (0, 0, 0.02)})

        with pytest.raises(IndexationGap) as exc_info:
            table.deflators(2025, 2025, 2027)

        assert exc_info.value.year == 2026

    def test_wage_indexes(self):
        """Test cumulative wage growth."""
        table = create_flat_indexation(2020, 2030, wage_growth=0.04)
        indexes = table.wage_indexes(2020, 2020, 2030)

        assert indexes[2020] == 1.0
        assert indexes[2030] == pytest.approx(1.04**10)
