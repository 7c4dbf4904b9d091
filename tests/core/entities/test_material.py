"""Tests for Material entity."""

import pytest
from pydantic import ValidationError

from buffet.core.entities.material import Material, MaterialUnit


class TestMaterial:
    def test_defaults(self):
        material = Material(name="Coffee", unit=MaterialUnit.KG)
        assert material.id is None
        assert material.stock == 0.0
        assert material.version == 0
        assert material.created_at.tzinfo is not None

    def test_name_is_stripped(self):
        assert Material(name="  Milk ", unit="l").name == "Milk"

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationError):
            Material(name="   ", unit="kg")

    def test_unknown_unit_rejected(self):
        with pytest.raises(ValidationError):
            Material(name="Coffee", unit="bag")

    def test_negative_threshold_rejected(self):
        with pytest.raises(ValidationError):
            Material(name="Coffee", unit="kg", low_stock_threshold=-1)

    def test_low_stock_flags(self):
        material = Material(name="Coffee", unit="kg", stock=2, low_stock_threshold=5)
        assert material.is_low_stock is True
        assert material.is_out_of_stock is False

    def test_out_of_stock(self):
        material = Material(name="Coffee", unit="kg", stock=0)
        assert material.is_out_of_stock is True
        assert material.is_low_stock is False
