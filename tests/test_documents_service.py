from datetime import date

import pytest
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from backend.errors import DocumentNotFoundError, InvalidDocumentError
from backend.services import documents


@pytest.fixture
def client_and_entreprise(insert_rows):
    insert_rows("clients", [{"nom": "Diallo", "prenom": "Awa", "email": "awa@example.com"}])
    insert_rows("entreprises", [{"nom": "Heraclion Transport", "prefix_facture": "HRT", "type_entreprise": "TRANSPORT"}])


def _create_proforma(**overrides):
    payload = {
        "numero": "PRF-0001",
        "type_document": "proforma",
        "client_id": "1",
        "entreprise_id": 1,
        "date_emission": "2024-03-01",
        "lignes": [
            {"description": "Transport sable", "quantite": 2, "prix_unitaire": 100, "taux_tva": 20},
            {"description": "Manutention", "quantite": 3, "prix_unitaire": "50", "taux_tva": 10},
        ],
    }
    payload.update(overrides)
    return documents.create_document(payload)


def test_create_document_computes_totals_from_lines(sqlite_engine, client_and_entreprise):
    created = _create_proforma()

    assert created["statut"] == "brouillon"
    assert created["montant_ht"] == 350.0
    assert created["montant_tva"] == 55.0
    assert created["montant_ttc"] == 405.0
    assert [line["ordre"] for line in created["lignes"]] == [0, 1]
    assert created["lignes"][0]["montant_ttc"] == 240.0


def test_create_document_requires_identity_fields(sqlite_engine):
    with pytest.raises(InvalidDocumentError):
        documents.create_document({"type_document": "facture", "numero": "F1"})
    with pytest.raises(InvalidDocumentError):
        documents.create_document({"type_document": "inconnu", "numero": "F1", "client_id": 1})


def test_create_without_lines_derives_vat(sqlite_engine, client_and_entreprise):
    created = documents.create_document(
        {"numero": "F-1", "type_document": "facture", "client_id": 1, "montant_ht": "100", "taux_tva": 18}
    )
    assert created["montant_tva"] == 18.0
    assert created["lignes"] == []


def test_line_without_quantity_defaults_to_one():
    lines = documents.prepare_lines([{"prix_unitaire": 40, "taux_tva": 0}])
    assert lines[0]["quantite"] == 1.0
    assert lines[0]["montant_ht"] == 40.0
    assert lines[0]["description"] == ""


def test_get_document_includes_client_lines_and_totals(sqlite_engine, client_and_entreprise):
    created = _create_proforma()

    document = documents.get_document(created["id"])

    assert document["client_nom_complet"] == "Awa Diallo"
    assert len(document["lignes"]) == 2
    assert document["totaux"] == {
        "total_ht": 350.0,
        "total_tva": 55.0,
        "total_ttc": 405.0,
        "calcule_depuis_lignes": True,
    }
    assert document["montant_total"] == 405.0


def test_get_document_without_lines_uses_stored_amounts(sqlite_engine, insert_rows):
    insert_rows("documents", [
        {"numero": "OLD-1", "type_document": "facture", "montant_ht": 100, "montant_tva": 20, "montant_ttc": 120},
    ])

    document = documents.get_document(1)

    assert document["client_nom_complet"] == "Client inconnu"
    assert document["totaux"]["calcule_depuis_lignes"] is False
    assert document["totaux"]["total_ttc"] == 120.0


def test_get_missing_document(sqlite_engine):
    with pytest.raises(DocumentNotFoundError):
        documents.get_document(404)


def test_update_replaces_lines(sqlite_engine, client_and_entreprise):
    created = _create_proforma()

    updated = documents.update_document(
        created["id"],
        {"notes": "Révisé", "lignes": [{"description": "Forfait", "quantite": 1, "prix_unitaire": 1000, "taux_tva": 18}]},
    )

    assert updated["montant_ttc"] == 1180.0
    assert updated["notes"] == "Révisé"
    with sqlite_engine.connect() as conn:
        count = conn.execute(text("SELECT COUNT(*) FROM lignes_documents WHERE document_id = :id"), {"id": created["id"]}).scalar()
    assert count == 1


def test_update_keeps_stored_amounts_in_line_with_lines(sqlite_engine, client_and_entreprise):
    created = _create_proforma(
        lignes=[{"description": "Transport sable", "quantite": 2, "prix_unitaire": 100, "taux_tva": 20}]
    )

    updated = documents.update_document(created["id"], {"montant_ht": 999, "montant_ttc": 5, "notes": "Remise"})

    assert (updated["montant_ht"], updated["montant_tva"], updated["montant_ttc"]) == (200.0, 40.0, 240.0)
    assert updated["notes"] == "Remise"
    assert documents.get_document(created["id"])["montant_total"] == 240.0


def test_update_to_transport_recomputes_existing_lines(sqlite_engine, client_and_entreprise):
    created = _create_proforma(
        lignes=[{"description": "Sable", "quantite": 1, "prix_unitaire": 500, "taux_tva": 0,
                 "frais_administratif": 25, "tonnes": 2}]
    )

    updated = documents.update_document(created["id"], {"categorie_facture": "transport", "montant_ttc": 1})

    assert updated["montant_ttc"] == 525.0
    assert updated["lignes"][0]["total_poids"] == 2000.0
    assert len(documents.get_document(created["id"])["lignes"]) == 1


def test_update_without_lines_accepts_amounts(sqlite_engine, client_and_entreprise):
    created = documents.create_document(
        {"numero": "F-2", "type_document": "facture", "client_id": 1, "montant_ht": 100, "montant_ttc": 120}
    )

    updated = documents.update_document(created["id"], {"montant_ht": 200, "montant_tva": 40, "montant_ttc": 240})

    assert updated["montant_ttc"] == 240.0


def test_update_rejects_unknown_client(sqlite_engine, client_and_entreprise):
    created = _create_proforma()
    with pytest.raises(InvalidDocumentError, match="Client non trouvé"):
        documents.update_document(created["id"], {"client_id": 42})


def test_list_documents_filters_and_joins_client(sqlite_engine, client_and_entreprise):
    _create_proforma()
    documents.create_document({"numero": "FAC-9", "type_document": "facture", "client_id": 1})

    factures = documents.list_documents(type_document="facture")
    assert [doc["numero"] for doc in factures] == ["FAC-9"]
    assert factures[0]["client_nom"] == "Diallo"
    assert len(documents.list_documents(search="prf")) == 1


def test_convert_proforma_to_facture(sqlite_engine, client_and_entreprise):
    proforma = _create_proforma()

    facture = documents.convert_to_facture(proforma["id"], today=date(2024, 5, 10))

    assert facture["numero"] == "FAC20240001"
    assert facture["type_document"] == "facture"
    assert facture["statut"] == "emise"
    assert str(facture["date_echeance"]) == "2024-06-09"
    assert facture["montant_ttc"] == 405.0
    assert len(facture["lignes"]) == 2
    assert documents.get_document(proforma["id"])["statut"] == "converti"


def test_convert_refuses_non_proforma(sqlite_engine, client_and_entreprise):
    facture = documents.create_document({"numero": "FAC-9", "type_document": "facture", "client_id": 1})
    with pytest.raises(InvalidDocumentError):
        documents.convert_to_facture(facture["id"])


def test_duplicate_as_facture(sqlite_engine, client_and_entreprise):
    proforma = _create_proforma()

    copy = documents.duplicate_document(proforma["id"], "facture")

    assert copy["id"] != proforma["id"]
    assert copy["type_document"] == "facture"
    assert copy["numero"].startswith("FACTURE-")
    assert len(copy["lignes"]) == 2


def test_generate_number(sqlite_engine, client_and_entreprise):
    _create_proforma()

    generated = documents.generate_number(1, "proforma", today=date(2024, 3, 1))

    assert generated["numero"] == "HRT-PRF-20240301-0002"
    assert generated["entreprise_nom"] == "Heraclion Transport"
    with pytest.raises(DocumentNotFoundError):
        documents.generate_number(99)
    with pytest.raises(InvalidDocumentError):
        documents.generate_number(None)


def test_encaisser_marks_paid_and_records_cash_entry(sqlite_engine, client_and_entreprise):
    facture = documents.create_document(
        {
            "numero": "FAC20240007",
            "type_document": "facture",
            "client_id": 1,
            "date_emission": "2024-04-02",
            "lignes": [{"quantite": 2, "prix_unitaire": 100, "taux_tva": 20}],
        }
    )

    result = documents.encaisser(facture["id"])

    assert result["document"]["statut"] == "payee"
    operation = result["operation"]
    assert operation["type_operation"] == "ENTREE"
    assert operation["montant"] == 240.0
    assert operation["description"] == "Encaissement facture FAC20240007"
    assert operation["reference_document"] == "FAC20240007"

    with pytest.raises(InvalidDocumentError):
        documents.encaisser(facture["id"])


def test_encaisser_rolls_back_when_cash_entry_fails(sqlite_engine, client_and_entreprise, drop_table):
    facture = documents.create_document({"numero": "FAC-1", "type_document": "facture", "client_id": 1, "montant_ttc": 50})
    drop_table("caisse")

    with pytest.raises(OperationalError):
        documents.encaisser(facture["id"])

    assert documents.get_document(facture["id"])["statut"] == "brouillon"


def test_delete_document_removes_lines(sqlite_engine, client_and_entreprise):
    created = _create_proforma()

    documents.delete_document(created["id"])

    with pytest.raises(DocumentNotFoundError):
        documents.get_document(created["id"])
    with pytest.raises(DocumentNotFoundError):
        documents.delete_document(created["id"])
