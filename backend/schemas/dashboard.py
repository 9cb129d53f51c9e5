"""Schemas for dashboard statistics, activity feed and alerts."""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional, Union

from pydantic import BaseModel

DateLike = Union[datetime, date, str]


class DashboardStats(BaseModel):
    totalFacturesNonTransport: int
    totalFacturesTransport: int
    totalProformasNonTransport: int
    totalProformasTransport: int
    totalFactures: int
    totalProformas: int
    total_stock_articles: int
    totalStockArticles: int
    totalClients: int
    totalEntreprises: int
    montant_total_factures: float
    factures_en_attente: int
    solde_caisse: float
    total_documents: int
    totalDocuments: int
    date: str


class Activity(BaseModel):
    type: str
    message: str
    date: Optional[DateLike] = None


class StockAlert(BaseModel):
    type: str
    message: str
    description: str
    date: Optional[DateLike] = None
    deficit: float
    alerte_critique: bool


class PushStats(BaseModel):
    totalFactures: int
    totalProformas: int
    totalClients: int
    totalEntreprises: int
    date: str


class DashboardSnapshot(BaseModel):
    stats: PushStats
    activities: List[Activity]


class DashboardUpdateMessage(BaseModel):
    type: str = "dashboard-update"
    data: DashboardSnapshot


__all__ = [
    "Activity",
    "DashboardSnapshot",
    "DashboardStats",
    "DashboardUpdateMessage",
    "PushStats",
    "StockAlert",
]
