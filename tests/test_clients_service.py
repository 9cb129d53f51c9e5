from datetime import date

import pytest

from backend.errors import ConflictError, ResourceNotFoundError
from backend.services import clients, entreprises


def test_create_and_list_clients(sqlite_engine):
    clients.create_client({"nom": "Diallo", "prenom": "Awa", "email": " awa@example.com "})
    clients.create_client({"nom": "Martin", "email": "paul@example.com", "actif": False})

    page = clients.list_clients(page=1, limit=1)
    assert page.total == 2
    assert page.pagination() == {"total": 2, "page": 1, "per_page": 1, "total_pages": 2}
    assert page.items[0]["email"] == "awa@example.com"

    assert [c["nom"] for c in clients.list_clients(search="MART").items] == ["Martin"]
    assert clients.list_clients(actif=False).total == 1


def test_client_email_rules(sqlite_engine):
    created = clients.create_client({"nom": "Diallo", "email": "awa@example.com"})

    with pytest.raises(ConflictError):
        clients.create_client({"nom": "Autre", "email": "awa@example.com"})
    with pytest.raises(ValueError, match="Format d'email invalide"):
        clients.create_client({"nom": "Autre", "email": "pas-un-email"})
    with pytest.raises(ValueError):
        clients.create_client({"nom": "Sans email"})

    assert clients.update_client(created["id"], {"email": "awa@example.com", "telephone": "0102"})["telephone"] == "0102"


def test_client_stats(sqlite_engine, insert_rows):
    created = clients.create_client({"nom": "Diallo", "email": "awa@example.com"})
    insert_rows("documents", [
        {"numero": "F1", "type_document": "facture", "client_id": created["id"], "montant_ttc": 100,
         "statut": "brouillon", "date_emission": "2024-01-05"},
        {"numero": "F2", "type_document": "facture", "client_id": created["id"], "montant_ttc": 50,
         "statut": "payee", "date_emission": "2024-02-05"},
        {"numero": "P1", "type_document": "proforma", "client_id": created["id"], "montant_ttc": 70},
    ])

    stats = clients.fetch_client_stats(created["id"])

    assert stats["total_documents"] == 3
    assert stats["total_factures"] == 2
    assert stats["montant_total_factures"] == 150.0
    assert stats["montant_total_proformas"] == 70.0
    assert stats["factures_en_attente"] == 1
    assert stats["derniere_facture"] == "2024-02-05"


def test_stats_of_client_without_documents(sqlite_engine):
    created = clients.create_client({"nom": "Diallo", "email": "awa@example.com"})

    stats = clients.fetch_client_stats(created["id"])

    assert stats["total_documents"] == 0
    assert stats["derniere_facture"] is None
    with pytest.raises(ResourceNotFoundError):
        clients.fetch_client_stats(999)


def test_delete_client(sqlite_engine):
    created = clients.create_client({"nom": "Diallo", "email": "awa@example.com"})
    clients.delete_client(created["id"])
    with pytest.raises(ResourceNotFoundError):
        clients.get_client(created["id"])


def test_entreprise_crud(sqlite_engine):
    created = entreprises.create_entreprise({"nom": "Heraclion", "type_entreprise": "TRANSPORT"})

    assert entreprises.list_entreprises(type_entreprise="TRANSPORT")[0]["id"] == created["id"]
    assert entreprises.list_entreprises(type_entreprise="NON_TRANSPORT") == []
    with pytest.raises(ValueError):
        entreprises.create_entreprise({"nom": "X", "type_entreprise": "AUTRE"})
    with pytest.raises(ValueError):
        entreprises.update_entreprise(created["id"], {"type_entreprise": "AUTRE"})

    entreprises.delete_entreprise(created["id"])
    with pytest.raises(ResourceNotFoundError):
        entreprises.get_entreprise(created["id"])


def test_next_invoice_number(sqlite_engine, insert_rows):
    created = entreprises.create_entreprise({"nom": "Heraclion", "type_entreprise": "TRANSPORT", "prefix_facture": "HRT"})
    insert_rows("documents", [
        {"numero": "HRT/0001/T/03/2024", "type_document": "facture", "entreprise_id": created["id"],
         "categorie_facture": "transport", "date_emission": "2024-03-05"},
        {"numero": "HRT/0001/T/02/2024", "type_document": "facture", "entreprise_id": created["id"],
         "categorie_facture": "transport", "date_emission": "2024-02-28"},
    ])

    transport = entreprises.next_invoice_number(created["id"], "transport", today=date(2024, 3, 20))
    non_transport = entreprises.next_invoice_number(created["id"], "non-transport", today=date(2024, 3, 20))

    assert transport["numero"] == "HRT/0002/T/03/2024"
    assert non_transport["numero"] == "HRT/0001/03/2024"


def test_next_invoice_number_default_prefix_in_december(sqlite_engine):
    created = entreprises.create_entreprise({"nom": "Heraclion", "type_entreprise": "NON_TRANSPORT"})

    result = entreprises.next_invoice_number(created["id"], "non-transport", today=date(2024, 12, 31))

    assert result["numero"] == "HRAKIN/0001/12/2024"
