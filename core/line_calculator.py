"""Calcul des montants d'une ligne de facture / proforma (HT, TVA, TTC).

Module unique partagé par tous les consommateurs (API de calcul, création et
mise à jour des documents, conversion proforma → facture). Les entrées mal
formées sont ramenées à zéro : le calcul ne lève jamais d'exception.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Any, Mapping

CENT = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")
# Assez de chiffres pour quantifier au centime des montants très élevés.
QUANTIZE_PRECISION = 60
# Au-delà, la saisie est considérée comme invalide.
MAX_MAGNITUDE = Decimal("1e40")

# Un poids saisi en tonnes est reporté en kilogrammes dans total_poids.
KG_PER_TONNE = Decimal("1000")

NUMERIC_LINE_FIELDS = ("quantite", "prix_unitaire", "taux_tva", "frais_administratif", "tonnes")


def to_decimal(value: Any, default: Decimal = ZERO, minv: Decimal | None = None, maxv: Decimal | None = None) -> Decimal:
    """Convertit une saisie en Decimal en tolérant les formats monétaires et les NaN."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return default
        number = Decimal(str(value))
    else:
        cleaned = str(value).replace("€", "").replace("$", "").replace("\xa0", "").replace(" ", "").strip()
        if "," in cleaned and "." in cleaned:
            # "1.234,50" -> séparateur décimal = dernier signe rencontré
            if cleaned.rfind(",") > cleaned.rfind("."):
                cleaned = cleaned.replace(".", "").replace(",", ".")
            else:
                cleaned = cleaned.replace(",", "")
        else:
            cleaned = cleaned.replace(",", ".")
        try:
            number = Decimal(cleaned)
        except (InvalidOperation, ValueError):
            return default
    if not number.is_finite() or abs(number) > MAX_MAGNITUDE:
        return default
    if minv is not None:
        number = max(number, minv)
    if maxv is not None:
        number = min(number, maxv)
    return number


def to_float(value: Any, default: float = 0.0) -> float:
    return float(to_decimal(value, default=Decimal(str(default))))


def round2(value: Any) -> Decimal:
    """Arrondi commercial (demi vers le haut) à deux décimales.

    Un nombre trop grand pour être exprimé au centime est ramené à zéro.
    """
    number = to_decimal(value)
    with localcontext() as ctx:
        ctx.prec = QUANTIZE_PRECISION
        try:
            return number.quantize(CENT, rounding=ROUND_HALF_UP)
        except InvalidOperation:
            return ZERO


@dataclass(frozen=True)
class LineAmounts:
    montant_ht: Decimal
    montant_tva: Decimal
    montant_ttc: Decimal

    def to_dict(self) -> dict[str, float]:
        return {
            "montant_ht": float(self.montant_ht),
            "montant_tva": float(self.montant_tva),
            "montant_ttc": float(self.montant_ttc),
        }


def calculate_line(quantite: Any, prix_unitaire: Any, taux_tva: Any, frais_administratif: Any = 0) -> LineAmounts:
    """Calcule HT/TVA/TTC d'une ligne.

    Les frais administratifs (lignes transport) s'ajoutent à la base avant TVA ;
    une ligne simple équivaut à des frais nuls. Chaque montant est arrondi
    immédiatement, de sorte que la somme des lignes corresponde à l'affichage.
    """
    quantity = to_decimal(quantite, minv=ZERO)
    unit_price = to_decimal(prix_unitaire)
    rate = to_decimal(taux_tva, minv=ZERO, maxv=HUNDRED)
    surcharge = to_decimal(frais_administratif)

    with localcontext() as ctx:
        ctx.prec = QUANTIZE_PRECISION
        montant_ht = round2(quantity * unit_price + surcharge)
        montant_tva = round2(montant_ht * rate / HUNDRED)
        montant_ttc = round2(montant_ht + montant_tva)
    return LineAmounts(montant_ht=montant_ht, montant_tva=montant_tva, montant_ttc=montant_ttc)


def transport_weight(tonnes: Any) -> float:
    """Total/poids (kg) d'une ligne transport."""
    return float(to_decimal(tonnes, minv=ZERO) * KG_PER_TONNE)


def recalculate_line(line: Mapping[str, Any], *, transport: bool = False) -> dict[str, Any]:
    """Retourne une copie de la ligne avec entrées normalisées et montants recalculés."""
    updated = dict(line)
    amounts = calculate_line(
        line.get("quantite"),
        line.get("prix_unitaire"),
        line.get("taux_tva"),
        line.get("frais_administratif"),
    )
    updated["quantite"] = float(to_decimal(line.get("quantite"), minv=ZERO))
    updated["prix_unitaire"] = to_float(line.get("prix_unitaire"))
    updated["taux_tva"] = float(to_decimal(line.get("taux_tva"), minv=ZERO, maxv=HUNDRED))
    updated["frais_administratif"] = to_float(line.get("frais_administratif"))
    updated.update(amounts.to_dict())
    if transport:
        updated["tonnes"] = float(to_decimal(line.get("tonnes"), minv=ZERO))
        updated["total_poids"] = transport_weight(line.get("tonnes"))
    return updated


__all__ = [
    "LineAmounts",
    "calculate_line",
    "recalculate_line",
    "round2",
    "to_decimal",
    "to_float",
    "transport_weight",
]
