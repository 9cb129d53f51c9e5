"""
Repository Layer - accès générique aux tables relationnelles simples.
"""

from .base import PagedResult, TableRepository

__all__ = ["PagedResult", "TableRepository"]
