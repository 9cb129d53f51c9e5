"""Entreprise endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from backend.errors import ResourceNotFoundError
from backend.schemas.common import MessageResponse
from backend.schemas.entreprises import EntreprisePayload, NextNumberRequest, NextNumberResponse
from backend.services import entreprises as entreprises_service

router = APIRouter(prefix="/entreprises", tags=["entreprises"])


@router.get("")
def list_entreprises(type_entreprise: str | None = None):
    items = entreprises_service.list_entreprises(type_entreprise=type_entreprise)
    return {"success": True, "data": items, "total": len(items)}


@router.get("/{entreprise_id}")
def get_entreprise(entreprise_id: int):
    try:
        return {"success": True, "data": entreprises_service.get_entreprise(entreprise_id)}
    except ResourceNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


@router.post("", status_code=status.HTTP_201_CREATED)
def create_entreprise(payload: EntreprisePayload):
    try:
        entreprise = entreprises_service.create_entreprise(payload.model_dump(exclude_none=True))
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return {"success": True, "message": "Entreprise créée avec succès", "data": entreprise}


@router.put("/{entreprise_id}")
def update_entreprise(entreprise_id: int, payload: EntreprisePayload):
    try:
        entreprise = entreprises_service.update_entreprise(entreprise_id, payload.model_dump(exclude_unset=True))
    except ResourceNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return {"success": True, "message": "Entreprise mise à jour avec succès", "data": entreprise}


@router.delete("/{entreprise_id}", response_model=MessageResponse)
def delete_entreprise(entreprise_id: int):
    try:
        entreprises_service.delete_entreprise(entreprise_id)
    except ResourceNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return {"success": True, "message": "Entreprise supprimée avec succès"}


@router.post("/{entreprise_id}/prochain-numero", response_model=NextNumberResponse)
def next_invoice_number(entreprise_id: int, payload: NextNumberRequest | None = None):
    categorie = payload.categorie_facture if payload else "transport"
    try:
        return {"success": True, **entreprises_service.next_invoice_number(entreprise_id, categorie)}
    except ResourceNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
