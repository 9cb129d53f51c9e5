"""Client endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, status

from backend.errors import ConflictError, ResourceNotFoundError
from backend.schemas.clients import ClientPayload, ClientStats
from backend.schemas.common import ApiResponse, MessageResponse
from backend.services import clients as clients_service

router = APIRouter(prefix="/clients", tags=["clients"])


@router.get("")
def list_clients(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=500),
    search: str = "",
    actif: bool | None = None,
):
    result = clients_service.list_clients(page=page, limit=limit, search=search, actif=actif)
    return {"success": True, "data": {"items": result.items, "pagination": result.pagination()}}


@router.get("/{client_id}")
def get_client(client_id: int):
    try:
        return {"success": True, "data": clients_service.get_client(client_id)}
    except ResourceNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


@router.get("/{client_id}/stats", response_model=ApiResponse[ClientStats])
def get_client_stats(client_id: int):
    try:
        return {"success": True, "data": clients_service.fetch_client_stats(client_id)}
    except ResourceNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


@router.post("", status_code=status.HTTP_201_CREATED)
def create_client(payload: ClientPayload):
    try:
        client = clients_service.create_client(payload.model_dump(exclude_none=True))
    except ConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return {"success": True, "message": "Client créé avec succès", "data": client}


@router.put("/{client_id}")
def update_client(client_id: int, payload: ClientPayload):
    try:
        client = clients_service.update_client(client_id, payload.model_dump(exclude_unset=True))
    except ResourceNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return {"success": True, "message": "Client mis à jour avec succès", "data": client}


@router.delete("/{client_id}", response_model=MessageResponse)
def delete_client(client_id: int):
    try:
        clients_service.delete_client(client_id)
    except ResourceNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return {"success": True, "message": "Client supprimé avec succès"}
