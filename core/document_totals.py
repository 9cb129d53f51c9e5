"""Totaux d'un document (facture, proforma) à partir de ses lignes."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable, Mapping

from core.line_calculator import ZERO, round2


@dataclass(frozen=True)
class DocumentTotals:
    total_ht: Decimal
    total_tva: Decimal
    total_ttc: Decimal
    from_lines: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_ht": float(self.total_ht),
            "total_tva": float(self.total_tva),
            "total_ttc": float(self.total_ttc),
            "calcule_depuis_lignes": self.from_lines,
        }

    def as_document_amounts(self) -> dict[str, float]:
        """Colonnes montant_* de la table documents."""
        return {
            "montant_ht": float(self.total_ht),
            "montant_tva": float(self.total_tva),
            "montant_ttc": float(self.total_ttc),
        }


def sum_lines(lines: Iterable[Mapping[str, Any]]) -> DocumentTotals:
    """Somme les montants déjà calculés des lignes, dans l'ordre fourni."""
    total_ht = total_tva = total_ttc = ZERO
    for line in lines:
        total_ht += round2(line.get("montant_ht"))
        total_tva += round2(line.get("montant_tva"))
        total_ttc += round2(line.get("montant_ttc"))
    return DocumentTotals(round2(total_ht), round2(total_tva), round2(total_ttc))


def compute_document_totals(
    lines: Iterable[Mapping[str, Any]] | None,
    document: Mapping[str, Any] | None = None,
) -> DocumentTotals:
    """Totaux du document : somme des lignes si présentes, sinon montants stockés.

    Les anciens documents (ou saisies simplifiées) n'ont pas de lignes ; leurs
    montants HT/TVA/TTC enregistrés font alors foi.
    """
    materialized = list(lines or [])
    if materialized:
        return sum_lines(materialized)

    stored = document or {}
    ttc = stored.get("montant_ttc")
    if ttc is None:
        ttc = stored.get("montant_total")
    return DocumentTotals(
        round2(stored.get("montant_ht")),
        round2(stored.get("montant_tva")),
        round2(ttc),
        from_lines=False,
    )


__all__ = ["DocumentTotals", "compute_document_totals", "sum_lines"]
