"""Enveloppe de réponse commune ``{success, message?, data, total?, degraded?}``."""

from __future__ import annotations

from typing import Any, Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    success: bool = True
    message: Optional[str] = None
    data: T
    total: Optional[int] = None
    degraded: List[str] = Field(default_factory=list, description="Sources absentes du schéma.")


class Pagination(BaseModel):
    total: int
    page: int
    per_page: int
    total_pages: int


class PaginatedData(BaseModel, Generic[T]):
    items: List[T]
    pagination: Pagination


class MessageResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None


Record = dict[str, Any]


__all__ = ["ApiResponse", "MessageResponse", "PaginatedData", "Pagination", "Record"]
