"""Tests for unit conversion."""

import pytest

from buffet.core.entities.material import MaterialUnit
from buffet.core.exceptions import ValidationError
from buffet.core.services.unit_conversion import convert, to_canonical_quantity


class TestConvert:
    @pytest.mark.parametrize(
        ("source", "target", "factor"),
        [
            ("g", "kg", 0.001),
            ("kg", "g", 1000.0),
            ("ml", "l", 0.001),
            ("l", "ml", 1000.0),
            ("piece", "piece", 1.0),
            ("kg", "kg", 1.0),
        ],
    )
    def test_known_pairs(self, source, target, factor):
        assert convert(source, target) == factor

    def test_unsupported_pair_falls_back_to_one(self):
        assert convert(MaterialUnit.KG, MaterialUnit.PIECE) == 1.0
        assert convert("g", "ml") == 1.0

    def test_strict_mode_rejects_unsupported_pair(self):
        with pytest.raises(ValidationError) as exc_info:
            convert("kg", "piece", strict=True)
        assert exc_info.value.details["field"] == "unit"

    def test_strict_mode_allows_identity(self):
        assert convert("piece", "piece", strict=True) == 1.0

    def test_unknown_unit(self):
        with pytest.raises(ValidationError):
            convert("bag", "kg")


class TestToCanonicalQuantity:
    def test_grams_into_kilograms(self):
        assert to_canonical_quantity(500, "g", "kg") == pytest.approx(0.5)

    def test_litres_into_millilitres(self):
        assert to_canonical_quantity(1.5, "l", "ml") == pytest.approx(1500)
