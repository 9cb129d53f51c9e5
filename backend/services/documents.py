"""Documents commerciaux (factures, proformas, devis) et leurs lignes."""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Any, Iterable, Mapping

from sqlalchemy import text
from sqlalchemy.engine import Connection

from backend.errors import DocumentNotFoundError, InvalidDocumentError
from core.data_repository import get_engine, query_df, query_records
from core.document_totals import compute_document_totals
from core.line_calculator import recalculate_line, round2, to_decimal

logger = logging.getLogger(__name__)

DOCUMENT_TYPES = ("facture", "proforma", "devis", "bon_commande", "bon_livraison", "contrat", "autre")
DEFAULT_STATUT = "brouillon"
PAYMENT_TERM_DAYS = 30

DOCUMENT_COLUMNS = (
    "numero",
    "type_document",
    "client_id",
    "entreprise_id",
    "date_emission",
    "date_echeance",
    "statut",
    "montant_ht",
    "montant_tva",
    "taux_tva",
    "montant_ttc",
    "remise_globale",
    "conditions_paiement",
    "notes",
    "description",
    "facture_originale_id",
    "categorie_facture",
    "monnaie",
)
ID_COLUMNS = ("client_id", "entreprise_id", "facture_originale_id")
AMOUNT_COLUMNS = ("montant_ht", "montant_tva", "taux_tva", "montant_ttc", "remise_globale")

LINE_COLUMNS = (
    "document_id",
    "description",
    "quantite",
    "prix_unitaire",
    "taux_tva",
    "montant_ht",
    "montant_tva",
    "montant_ttc",
    "ordre",
    "item",
    "date_transport",
    "plaque_immat",
    "ticket",
    "tonnes",
    "total_poids",
    "frais_administratif",
    "unite",
)

# Colonnes reprises à l'identique lors d'une conversion / duplication.
COPIED_COLUMNS = (
    "client_id",
    "entreprise_id",
    "montant_ht",
    "montant_tva",
    "taux_tva",
    "montant_ttc",
    "remise_globale",
    "conditions_paiement",
    "notes",
    "description",
    "categorie_facture",
    "monnaie",
)

TYPE_PREFIXES = {"proforma": "PRF", "facture": "FAC"}


def _insert(conn: Connection, table: str, values: Mapping[str, Any]) -> dict[str, Any]:
    columns = ", ".join(values)
    placeholders = ", ".join(f":{key}" for key in values)
    row = conn.execute(
        text(f"INSERT INTO {table} ({columns}) VALUES ({placeholders}) RETURNING *"),
        dict(values),
    ).fetchone()
    return row._asdict()


def _update(conn: Connection, table: str, id: int, values: Mapping[str, Any]) -> dict[str, Any] | None:
    assignments = ", ".join(f"{key} = :{key}" for key in values)
    row = conn.execute(
        text(f"UPDATE {table} SET {assignments} WHERE id = :id RETURNING *"),
        {**values, "id": int(id)},
    ).fetchone()
    return row._asdict() if row else None


def _fetch_document(conn: Connection, document_id: int) -> dict[str, Any] | None:
    row = conn.execute(text("SELECT * FROM documents WHERE id = :id"), {"id": int(document_id)}).fetchone()
    return row._asdict() if row else None


def _fetch_lines(conn: Connection, document_id: int) -> list[dict[str, Any]]:
    rows = conn.execute(
        text("SELECT * FROM lignes_documents WHERE document_id = :id ORDER BY ordre ASC, id ASC"),
        {"id": int(document_id)},
    )
    return [row._asdict() for row in rows]


def _coerce_id(column: str, value: Any) -> int | None:
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise InvalidDocumentError(f"Valeur invalide pour {column}: {value}") from exc


def _coerce_amount(column: str, value: Any) -> float:
    if value in (None, ""):
        return 0.0
    amount = to_decimal(value, default=None)
    if amount is None:
        raise InvalidDocumentError(f"Montant invalide pour {column}: {value}")
    return float(amount)


def clean_document_payload(payload: Mapping[str, Any]) -> dict[str, Any]:
    """Ne conserve que les colonnes connues de ``documents``, typées."""
    cleaned: dict[str, Any] = {}
    for column in DOCUMENT_COLUMNS:
        if column not in payload:
            continue
        value = payload[column]
        if column in ID_COLUMNS:
            value = _coerce_id(column, value)
        elif column in AMOUNT_COLUMNS:
            value = _coerce_amount(column, value)
        cleaned[column] = value
    doc_type = cleaned.get("type_document")
    if doc_type is not None and doc_type not in DOCUMENT_TYPES:
        raise InvalidDocumentError("Type de document invalide")
    return cleaned


def prepare_lines(lines: Iterable[Mapping[str, Any]], *, transport: bool = False) -> list[dict[str, Any]]:
    """Normalise les lignes saisies et recalcule leurs montants côté serveur."""
    prepared: list[dict[str, Any]] = []
    for idx, raw in enumerate(lines):
        line = {key: raw.get(key) for key in LINE_COLUMNS if key in raw and key != "document_id"}
        if line.get("quantite") in (None, ""):
            line["quantite"] = 1
        line = recalculate_line(line, transport=transport)
        line["description"] = line.get("description") or ""
        if line.get("ordre") is None:
            line["ordre"] = idx
        for key in ("item", "plaque_immat", "ticket", "unite"):
            line[key] = line.get(key) or ""
        prepared.append(line)
    return prepared


def _is_transport(document: Mapping[str, Any]) -> bool:
    return document.get("categorie_facture") == "transport"


def _insert_lines(conn: Connection, document_id: int, lines: Iterable[Mapping[str, Any]]) -> list[dict[str, Any]]:
    now = datetime.now()
    return [
        _insert(conn, "lignes_documents", {**line, "document_id": document_id, "created_at": now, "updated_at": now})
        for line in lines
    ]


def with_client_fields(document: dict[str, Any]) -> dict[str, Any]:
    prenom = document.get("client_prenom")
    nom = document.get("client_nom")
    document["client_nom_complet"] = f"{prenom} {nom}" if prenom and nom else nom or "Client inconnu"
    return document


def list_documents(
    *,
    type_document: str | None = None,
    statut: str | None = None,
    client_id: int | None = None,
    search: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> list[dict[str, Any]]:
    """Liste des documents enrichie des coordonnées client, plus récents d'abord."""
    filters: list[str] = []
    params: dict[str, Any] = {"limit": max(1, min(int(limit), 100)), "offset": max(0, int(offset))}
    if type_document:
        filters.append("d.type_document = :type_document")
        params["type_document"] = type_document
    if statut:
        filters.append("d.statut = :statut")
        params["statut"] = statut
    if client_id is not None:
        filters.append("d.client_id = :client_id")
        params["client_id"] = int(client_id)
    if search:
        filters.append("(LOWER(d.numero) LIKE :search OR LOWER(COALESCE(d.notes, '')) LIKE :search)")
        params["search"] = f"%{search.strip().lower()}%"
    where = f"WHERE {' AND '.join(filters)}" if filters else ""
    sql = f"""
        SELECT d.*,
               c.nom AS client_nom, c.prenom AS client_prenom, c.email AS client_email,
               c.adresse AS client_adresse, c.telephone AS client_telephone
        FROM documents d
        LEFT JOIN clients c ON d.client_id = c.id
        {where}
        ORDER BY d.created_at DESC, d.id DESC
        LIMIT :limit OFFSET :offset
    """
    return [with_client_fields(row) for row in query_records(text(sql), params)]


def get_document(document_id: int) -> dict[str, Any]:
    """Document complet : coordonnées client, lignes et totaux recalculés."""
    with get_engine().connect() as conn:
        document = _fetch_document(conn, document_id)
        if document is None:
            raise DocumentNotFoundError(f"Document {document_id} introuvable")
        client = None
        if document.get("client_id") is not None:
            row = conn.execute(
                text("SELECT * FROM clients WHERE id = :id"), {"id": int(document["client_id"])}
            ).fetchone()
            client = row._asdict() if row else None
        lines = _fetch_lines(conn, document_id)

    if client:
        document.update(
            {
                "client_nom": client.get("nom"),
                "client_prenom": client.get("prenom"),
                "client_email": client.get("email"),
                "client_adresse": client.get("adresse"),
                "client_telephone": client.get("telephone"),
            }
        )
    with_client_fields(document)
    totals = compute_document_totals(lines, document)
    document["lignes"] = lines
    document["totaux"] = totals.to_dict()
    document["montant_total"] = document.get("montant_ttc")
    document["description"] = document.get("description") or document.get("notes")
    return document


def create_document(payload: Mapping[str, Any]) -> dict[str, Any]:
    """Crée le document et ses lignes dans une même transaction."""
    if not payload.get("type_document") or not payload.get("numero") or not payload.get("client_id"):
        raise InvalidDocumentError("Les champs type_document, numero et client_id sont requis")

    document = clean_document_payload(payload)
    document["statut"] = document.get("statut") or DEFAULT_STATUT
    lines = prepare_lines(payload.get("lignes") or [], transport=_is_transport(document))
    if lines:
        document.update(compute_document_totals(lines).as_document_amounts())
    elif document.get("montant_ht") and document.get("taux_tva") and not document.get("montant_tva"):
        document["montant_tva"] = float(round2(to_decimal(document["montant_ht"]) * to_decimal(document["taux_tva"]) / 100))

    now = datetime.now()
    document.update({"created_at": now, "updated_at": now})
    with get_engine().begin() as conn:
        created = _insert(conn, "documents", document)
        created["lignes"] = _insert_lines(conn, created["id"], lines)
    logger.info("Document %s créé (id=%s, %s lignes)", created.get("numero"), created["id"], len(lines))
    return created


def _check_reference(conn: Connection, table: str, id: int | None, message: str) -> None:
    if id is None:
        return
    if conn.execute(text(f"SELECT id FROM {table} WHERE id = :id"), {"id": id}).fetchone() is None:
        raise InvalidDocumentError(message)


def update_document(document_id: int, payload: Mapping[str, Any]) -> dict[str, Any]:
    """Met à jour le document ; si ``lignes`` est fourni, elles sont remplacées et les totaux recalculés."""
    changes = clean_document_payload(payload)
    replace_lines = isinstance(payload.get("lignes"), list)

    with get_engine().begin() as conn:
        existing = _fetch_document(conn, document_id)
        if existing is None:
            raise DocumentNotFoundError(f"Document {document_id} introuvable")
        if "client_id" in changes:
            _check_reference(conn, "clients", changes["client_id"], "Client non trouvé")
        if "entreprise_id" in changes:
            _check_reference(conn, "entreprises", changes["entreprise_id"], "Entreprise non trouvée")

        transport = _is_transport({**existing, **changes})
        lines: list[dict[str, Any]] | None = None
        if replace_lines:
            lines = prepare_lines(payload["lignes"], transport=transport)
        else:
            stored_lines = _fetch_lines(conn, document_id)
            if stored_lines and transport != _is_transport(existing):
                lines = prepare_lines(stored_lines, transport=transport)
            elif stored_lines:
                # Les lignes existantes font foi sur les montants saisis.
                changes.update(compute_document_totals(stored_lines).as_document_amounts())
        if lines is not None:
            if lines:
                changes.update(compute_document_totals(lines).as_document_amounts())
            conn.execute(text("DELETE FROM lignes_documents WHERE document_id = :id"), {"id": int(document_id)})

        changes["updated_at"] = datetime.now()
        updated = _update(conn, "documents", document_id, changes)
        if lines is not None:
            updated["lignes"] = _insert_lines(conn, document_id, lines)

    updated["montant_total"] = updated.get("montant_ttc")
    updated["description"] = updated.get("description") or updated.get("notes")
    logger.info("Document %s mis à jour", document_id)
    return updated


def delete_document(document_id: int) -> None:
    with get_engine().begin() as conn:
        if _fetch_document(conn, document_id) is None:
            raise DocumentNotFoundError(f"Document {document_id} introuvable")
        conn.execute(text("DELETE FROM lignes_documents WHERE document_id = :id"), {"id": int(document_id)})
        conn.execute(text("DELETE FROM documents WHERE id = :id"), {"id": int(document_id)})
    logger.info("Document %s supprimé", document_id)


def _count_factures_of_year(conn: Connection, year: int) -> int:
    row = conn.execute(
        text(
            """
            SELECT COUNT(*) AS count FROM documents
            WHERE type_document = 'facture' AND created_at >= :debut AND created_at < :fin
            """
        ),
        {"debut": datetime(year, 1, 1), "fin": datetime(year + 1, 1, 1)},
    ).fetchone()
    return int(row[0] or 0)


def _copy_lines(conn: Connection, source_id: int, target_id: int) -> list[dict[str, Any]]:
    lines = [
        {key: line.get(key) for key in LINE_COLUMNS if key != "document_id"}
        for line in _fetch_lines(conn, source_id)
    ]
    return _insert_lines(conn, target_id, lines)


def convert_to_facture(document_id: int, *, today: date | None = None) -> dict[str, Any]:
    """Convertit un proforma en facture (lignes copiées, proforma marqué ``converti``)."""
    today = today or date.today()
    with get_engine().begin() as conn:
        proforma = _fetch_document(conn, document_id)
        if proforma is None:
            raise DocumentNotFoundError("Proforma non trouvé")
        if proforma.get("type_document") != "proforma":
            raise InvalidDocumentError("Ce document n'est pas un proforma")

        numero = f"FAC{today.year}{_count_factures_of_year(conn, today.year) + 1:04d}"
        now = datetime.now()
        facture = _insert(
            conn,
            "documents",
            {
                **{key: proforma.get(key) for key in COPIED_COLUMNS},
                "numero": numero,
                "type_document": "facture",
                "date_emission": today,
                "date_echeance": today + timedelta(days=PAYMENT_TERM_DAYS),
                "statut": "emise",
                "facture_originale_id": None,
                "created_at": now,
                "updated_at": now,
            },
        )
        facture["lignes"] = _copy_lines(conn, document_id, facture["id"])
        _update(conn, "documents", document_id, {"statut": "converti", "updated_at": now})
    logger.info("Proforma %s converti en facture %s", document_id, numero)
    return facture


def duplicate_document(document_id: int, type_document: str | None = None) -> dict[str, Any]:
    """Copie un document (et ses lignes), éventuellement sous un autre type."""
    if type_document is not None and type_document not in DOCUMENT_TYPES:
        raise InvalidDocumentError("Type de document invalide")
    with get_engine().begin() as conn:
        original = _fetch_document(conn, document_id)
        if original is None:
            raise DocumentNotFoundError(f"Document {document_id} introuvable")
        now = datetime.now()
        target_type = type_document or original.get("type_document")
        copy = _insert(
            conn,
            "documents",
            {
                **{key: original.get(key) for key in COPIED_COLUMNS},
                "numero": f"{(type_document or 'DOC').upper()}-{int(now.timestamp() * 1000)}",
                "type_document": target_type,
                "date_emission": original.get("date_emission"),
                "date_echeance": original.get("date_echeance"),
                "statut": "emise" if type_document == "facture" else DEFAULT_STATUT,
                "facture_originale_id": None,
                "created_at": now,
                "updated_at": now,
            },
        )
        copy["lignes"] = _copy_lines(conn, document_id, copy["id"])
    return copy


def generate_number(entreprise_id: Any, type_document: str = "proforma", *, today: date | None = None) -> dict[str, Any]:
    """Numéro ``PREFIXE-PRF-AAAAMMJJ-NNNN`` basé sur le compteur par entreprise et type."""
    if not entreprise_id:
        raise InvalidDocumentError("L'ID de l'entreprise est requis")
    today = today or date.today()
    entreprises = query_records(text("SELECT * FROM entreprises WHERE id = :id"), {"id": int(entreprise_id)})
    if not entreprises:
        raise DocumentNotFoundError("Entreprise non trouvée")
    entreprise = entreprises[0]

    df = query_df(
        "SELECT COUNT(*) AS count FROM documents WHERE entreprise_id = :entreprise_id AND type_document = :type",
        params={"entreprise_id": int(entreprise_id), "type": type_document},
    )
    count = int(df.iloc[0]["count"] or 0) if not df.empty else 0
    prefix = entreprise.get("prefix_facture") or "DOC"
    type_prefix = TYPE_PREFIXES.get(type_document, "DOC")
    numero = f"{prefix}-{type_prefix}-{today:%Y%m%d}-{count + 1:04d}"
    logger.info("Numéro généré: %s pour entreprise %s", numero, entreprise.get("nom"))
    return {"numero": numero, "prefix": prefix, "entreprise_nom": entreprise.get("nom"), "count": count + 1}


def encaisser(document_id: int, *, today: date | None = None) -> dict[str, Any]:
    """Marque la facture payée et enregistre l'entrée de caisse, atomiquement."""
    today = today or date.today()
    with get_engine().begin() as conn:
        document = _fetch_document(conn, document_id)
        if document is None:
            raise DocumentNotFoundError(f"Document {document_id} introuvable")
        if document.get("statut") == "payee":
            raise InvalidDocumentError("Facture déjà encaissée")

        now = datetime.now()
        updated = _update(conn, "documents", document_id, {"statut": "payee", "updated_at": now})
        montant = document.get("montant_ttc")
        if montant is None:
            montant = document.get("montant_total")
        operation = _insert(
            conn,
            "caisse",
            {
                "date_operation": document.get("date_emission") or today,
                "description": f"Encaissement facture {document.get('numero') or document_id}",
                "type_operation": "ENTREE",
                "montant": abs(float(to_decimal(montant))),
                "categorie": "Encaissement facture",
                "reference_document": document.get("numero"),
                "created_at": now,
                "updated_at": now,
            },
        )
    logger.info("Facture %s encaissée (%s)", document_id, operation.get("montant"))
    return {"document": updated, "operation": operation}


__all__ = [
    "DOCUMENT_TYPES",
    "clean_document_payload",
    "convert_to_facture",
    "create_document",
    "delete_document",
    "duplicate_document",
    "encaisser",
    "generate_number",
    "get_document",
    "list_documents",
    "prepare_lines",
    "update_document",
]
