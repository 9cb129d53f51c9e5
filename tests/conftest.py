"""Fixtures partagées : base SQLite en mémoire reproduisant le schéma PostgreSQL."""

from __future__ import annotations

import os

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.pool import StaticPool

# Pas de planificateur ni de seed pendant les tests.
os.environ.setdefault("DASHBOARD_PUSH_INTERVAL", "0")
os.environ.pop("CAISSE_SEED_FILE", None)

SCHEMA = (
    """
    CREATE TABLE clients (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        nom TEXT NOT NULL,
        prenom TEXT,
        email TEXT,
        telephone TEXT,
        adresse TEXT,
        raison_sociale TEXT,
        actif BOOLEAN DEFAULT 1,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE entreprises (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        nom TEXT NOT NULL,
        logo TEXT,
        telephone TEXT,
        adresse TEXT,
        reference TEXT,
        autres_coordonnees TEXT,
        prefix_facture TEXT,
        type_entreprise TEXT,
        template_facture TEXT,
        template_proforma TEXT,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE documents (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        numero TEXT NOT NULL,
        type_document TEXT NOT NULL,
        client_id INTEGER,
        entreprise_id INTEGER,
        date_emission DATE,
        date_echeance DATE,
        statut TEXT DEFAULT 'brouillon',
        montant_ht REAL DEFAULT 0,
        montant_tva REAL DEFAULT 0,
        taux_tva REAL,
        montant_ttc REAL DEFAULT 0,
        remise_globale REAL,
        conditions_paiement TEXT,
        notes TEXT,
        description TEXT,
        facture_originale_id INTEGER,
        categorie_facture TEXT,
        monnaie TEXT,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE lignes_documents (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        document_id INTEGER NOT NULL,
        description TEXT,
        quantite REAL,
        prix_unitaire REAL,
        taux_tva REAL,
        montant_ht REAL,
        montant_tva REAL,
        montant_ttc REAL,
        ordre INTEGER,
        item TEXT,
        date_transport DATE,
        plaque_immat TEXT,
        ticket TEXT,
        tonnes REAL,
        total_poids REAL,
        frais_administratif REAL,
        unite TEXT,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE caisse (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        date_operation DATE NOT NULL,
        description TEXT NOT NULL,
        type_operation TEXT NOT NULL,
        montant REAL NOT NULL,
        categorie TEXT,
        reference_document TEXT,
        archive BOOLEAN DEFAULT 0,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE stocks (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        reference TEXT NOT NULL,
        designation TEXT NOT NULL,
        quantite_stock REAL DEFAULT 0,
        quantite_min REAL DEFAULT 0,
        prix_achat REAL DEFAULT 0,
        prix_vente REAL DEFAULT 0,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE factures_transport (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        numero TEXT,
        client_id INTEGER,
        entreprise_id INTEGER,
        date_facture DATE,
        date_echeance DATE,
        total_general REAL DEFAULT 0,
        statut TEXT,
        notes TEXT,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE factures_non_transport (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        numero TEXT,
        client_id INTEGER,
        entreprise_id INTEGER,
        date_facture DATE,
        date_echeance DATE,
        total_general REAL DEFAULT 0,
        statut TEXT,
        notes TEXT,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE items_proforma_transport (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        proforma_transport_id INTEGER,
        date_item TIMESTAMP
    )
    """,
    """
    CREATE TABLE items_proforma_non_transport (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        proforma_non_transport_id INTEGER,
        date_item TIMESTAMP
    )
    """,
)


@pytest.fixture
def sqlite_engine(monkeypatch):
    """Moteur SQLite partagé, substitué à ``get_engine`` partout où il est importé."""
    from backend.api import health
    from backend.services import caisse, documents, stock
    from core import data_repository
    from core.repositories import base

    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    with engine.begin() as conn:
        for ddl in SCHEMA:
            conn.execute(text(ddl))

    for module in (data_repository, base, documents, caisse, stock, health):
        monkeypatch.setattr(module, "get_engine", lambda: engine)
    yield engine
    engine.dispose()


@pytest.fixture
def drop_table(sqlite_engine):
    def _drop(table: str) -> None:
        with sqlite_engine.begin() as conn:
            conn.execute(text(f"DROP TABLE {table}"))

    return _drop


@pytest.fixture
def insert_rows(sqlite_engine):
    def _insert(table: str, rows):
        with sqlite_engine.begin() as conn:
            for row in rows:
                columns = ", ".join(row)
                placeholders = ", ".join(f":{key}" for key in row)
                conn.execute(text(f"INSERT INTO {table} ({columns}) VALUES ({placeholders})"), row)

    return _insert


@pytest.fixture
def api_client(sqlite_engine):
    from fastapi.testclient import TestClient

    from backend.main import app

    return TestClient(app)
