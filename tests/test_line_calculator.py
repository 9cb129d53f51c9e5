import math
from decimal import Decimal

import pytest

from core.line_calculator import (
    calculate_line,
    recalculate_line,
    round2,
    to_decimal,
    to_float,
    transport_weight,
)


def test_simple_line_amounts():
    amounts = calculate_line(2, 100, 20)
    assert amounts.montant_ht == Decimal("200.00")
    assert amounts.montant_tva == Decimal("40.00")
    assert amounts.montant_ttc == Decimal("240.00")


def test_ten_percent_rate():
    assert calculate_line(3, 50, 10).to_dict() == {
        "montant_ht": 150.0,
        "montant_tva": 15.0,
        "montant_ttc": 165.0,
    }


def test_each_line_is_rounded_half_up():
    amounts = calculate_line(1, "10.005", 0)
    assert amounts.montant_ht == Decimal("10.01")
    assert amounts.montant_ttc == Decimal("10.01")


def test_administrative_fee_is_taxed():
    amounts = calculate_line(2, 100, 20, frais_administratif=10)
    assert amounts.montant_ht == Decimal("210.00")
    assert amounts.montant_tva == Decimal("42.00")
    assert amounts.montant_ttc == Decimal("252.00")


@pytest.mark.parametrize("garbage", [None, "", "abc", float("nan"), float("inf"), True, "1e500", 1e300])
def test_invalid_inputs_are_treated_as_zero(garbage):
    amounts = calculate_line(garbage, 100, 20)
    assert amounts.montant_ht == Decimal("0.00")
    assert amounts.montant_ttc == Decimal("0.00")


def test_large_quantity_is_computed_without_error():
    amounts = calculate_line(1e30, 1, 20)
    assert amounts.montant_ht == Decimal("1e30")
    assert amounts.montant_tva == Decimal("2e29")
    assert amounts.montant_ttc == Decimal("1.2e30")


def test_product_too_large_for_cents_rounds_to_zero():
    amounts = calculate_line("1e40", "1e40", 20)
    assert amounts.montant_ht == Decimal("0.00")
    assert amounts.montant_ttc == Decimal("0.00")


def test_negative_quantity_is_clamped_and_rate_capped():
    assert calculate_line(-2, 10, 20).montant_ht == Decimal("0.00")
    assert calculate_line(1, 10, 250).montant_tva == Decimal("10.00")
    assert calculate_line(1, 10, -5).montant_tva == Decimal("0.00")


def test_to_decimal_accepts_french_formats():
    assert to_decimal("1 234,50") == Decimal("1234.50")
    assert to_decimal("1.234,50") == Decimal("1234.50")
    assert to_decimal("1,234.50") == Decimal("1234.50")
    assert to_decimal("12 €") == Decimal("12")
    assert to_decimal("n/a", default=None) is None


def test_to_float_and_round2():
    assert to_float("3,5") == 3.5
    assert math.isclose(to_float("bad", default=1.5), 1.5)
    assert round2("2.675") == Decimal("2.68")


def test_transport_weight_in_kilograms():
    assert transport_weight(2.5) == 2500.0
    assert transport_weight("x") == 0.0


def test_recalculate_line_normalizes_inputs():
    line = recalculate_line(
        {"description": "Sable", "quantite": "2", "prix_unitaire": "100", "taux_tva": "20", "montant_ht": 999},
    )
    assert line["description"] == "Sable"
    assert line["quantite"] == 2.0
    assert line["montant_ht"] == 200.0
    assert line["montant_ttc"] == 240.0
    assert "total_poids" not in line


def test_recalculate_transport_line_adds_weight():
    line = recalculate_line(
        {"quantite": 1, "prix_unitaire": 500, "taux_tva": 0, "frais_administratif": 25, "tonnes": "1,2"},
        transport=True,
    )
    assert line["montant_ht"] == 525.0
    assert line["tonnes"] == 1.2
    assert line["total_poids"] == 1200.0
