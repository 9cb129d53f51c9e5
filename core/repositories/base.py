"""
Base Repository - accès CRUD générique à une table relationnelle simple.

Les entités sans invariant propre (clients, entreprises, articles de stock)
partagent ce dépôt ; les noms de table et de colonnes sont validés avant
d'être interpolés dans le SQL.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Generic, Mapping, Sequence, TypeVar

from sqlalchemy import text

from core.data_repository import get_engine, query_df, query_records

T = TypeVar("T")

_IDENTIFIER = re.compile(r"^[a-z_][a-z0-9_]*$")


def _check_identifier(name: str) -> str:
    if not _IDENTIFIER.match(name or ""):
        raise ValueError(f"Identifiant SQL invalide: {name!r}")
    return name


@dataclass
class PagedResult(Generic[T]):
    """Container for paginated results."""

    items: Sequence[T]
    total: int
    page: int
    per_page: int

    @property
    def total_pages(self) -> int:
        if self.per_page <= 0:
            return 0
        return (self.total + self.per_page - 1) // self.per_page

    def pagination(self) -> dict[str, int]:
        return {
            "total": self.total,
            "page": self.page,
            "per_page": self.per_page,
            "total_pages": self.total_pages,
        }


class TableRepository:
    """CRUD SQL sur une table, colonnes modifiables restreintes à ``columns``."""

    def __init__(
        self,
        table: str,
        columns: Sequence[str],
        *,
        order_by: str = "id",
        timestamps: bool = True,
    ):
        self.table = _check_identifier(table)
        self.columns = tuple(_check_identifier(column) for column in columns)
        self.order_by = order_by
        self.timestamps = timestamps

    def _filter(self, data: Mapping[str, Any]) -> dict[str, Any]:
        return {key: value for key, value in data.items() if key in self.columns}

    def count(self, where: str = "", params: Mapping[str, Any] | None = None) -> int:
        clause = f"WHERE {where}" if where else ""
        df = query_df(text(f"SELECT COUNT(*) AS count FROM {self.table} {clause}"), params=dict(params or {}) or None)
        if df.empty:
            return 0
        return int(df.iloc[0]["count"] or 0)

    def list_all(
        self,
        *,
        where: str = "",
        params: Mapping[str, Any] | None = None,
        order_by: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        clause = f"WHERE {where}" if where else ""
        sql = f"SELECT * FROM {self.table} {clause} ORDER BY {order_by or self.order_by}"
        bound: dict[str, Any] = dict(params or {})
        if limit is not None:
            sql += " LIMIT :limit OFFSET :offset"
            bound.update({"limit": int(limit), "offset": max(0, int(offset))})
        return query_records(text(sql), bound)

    def paginate(
        self,
        *,
        page: int = 1,
        per_page: int = 10,
        where: str = "",
        params: Mapping[str, Any] | None = None,
    ) -> PagedResult[dict[str, Any]]:
        page = max(1, page)
        per_page = max(1, per_page)
        items = self.list_all(where=where, params=params, limit=per_page, offset=(page - 1) * per_page)
        return PagedResult(items=items, total=self.count(where, params), page=page, per_page=per_page)

    def get_by_id(self, id: int) -> dict[str, Any] | None:
        rows = query_records(text(f"SELECT * FROM {self.table} WHERE id = :id"), {"id": int(id)})
        return rows[0] if rows else None

    def add(self, data: Mapping[str, Any]) -> dict[str, Any]:
        values = self._filter(data)
        if self.timestamps:
            now = datetime.now()
            values.setdefault("created_at", now)
            values.setdefault("updated_at", now)
        if not values:
            raise ValueError(f"Aucune colonne valide fournie pour {self.table}")
        columns = ", ".join(values)
        placeholders = ", ".join(f":{key}" for key in values)
        with get_engine().begin() as conn:
            row = conn.execute(
                text(f"INSERT INTO {self.table} ({columns}) VALUES ({placeholders}) RETURNING *"),
                values,
            ).fetchone()
        return row._asdict()

    def update(self, id: int, data: Mapping[str, Any]) -> dict[str, Any] | None:
        values = self._filter(data)
        if not values:
            return self.get_by_id(id)
        if self.timestamps:
            values["updated_at"] = datetime.now()
        assignments = ", ".join(f"{key} = :{key}" for key in values)
        with get_engine().begin() as conn:
            row = conn.execute(
                text(f"UPDATE {self.table} SET {assignments} WHERE id = :id RETURNING *"),
                {**values, "id": int(id)},
            ).fetchone()
        return row._asdict() if row else None

    def delete(self, id: int) -> bool:
        with get_engine().begin() as conn:
            result = conn.execute(text(f"DELETE FROM {self.table} WHERE id = :id"), {"id": int(id)})
        return bool(result.rowcount)


__all__ = ["PagedResult", "TableRepository"]
