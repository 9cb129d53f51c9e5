from decimal import Decimal

from core.document_totals import compute_document_totals, sum_lines
from core.line_calculator import recalculate_line


def test_totals_sum_rounded_lines():
    lines = [recalculate_line({"quantite": 1, "prix_unitaire": "10.005", "taux_tva": 0}) for _ in range(3)]
    totals = compute_document_totals(lines)
    assert totals.total_ht == Decimal("30.03")
    assert totals.total_ttc == Decimal("30.03")
    assert totals.from_lines is True


def test_totals_mix_of_lines():
    lines = [
        recalculate_line({"quantite": 2, "prix_unitaire": 100, "taux_tva": 20}),
        recalculate_line({"quantite": 3, "prix_unitaire": 50, "taux_tva": 10}),
    ]
    assert sum_lines(lines).to_dict() == {
        "total_ht": 350.0,
        "total_tva": 55.0,
        "total_ttc": 405.0,
        "calcule_depuis_lignes": True,
    }


def test_document_without_lines_uses_stored_amounts():
    totals = compute_document_totals([], {"montant_ht": 100, "montant_tva": "20", "montant_ttc": 120})
    assert totals.from_lines is False
    assert totals.as_document_amounts() == {"montant_ht": 100.0, "montant_tva": 20.0, "montant_ttc": 120.0}


def test_legacy_montant_total_is_used_when_ttc_missing():
    totals = compute_document_totals(None, {"montant_total": 80.5})
    assert totals.total_ttc == Decimal("80.50")
    assert totals.total_ht == Decimal("0.00")


def test_no_lines_and_no_document():
    assert compute_document_totals(None).to_dict()["total_ttc"] == 0.0
