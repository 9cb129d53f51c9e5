"""Cash register (caisse) endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from backend.schemas.caisse import ArchiveRequest, CaisseOperationPayload, SoldeResponse
from backend.schemas.common import MessageResponse
from backend.services import caisse as caisse_service

router = APIRouter(prefix="/caisse", tags=["caisse"])


@router.get("")
def list_operations(
    date_debut: str | None = None,
    date_fin: str | None = None,
    type: str | None = None,
    categorie: str | None = None,
    montant_min: float | None = None,
    montant_max: float | None = None,
    libelle: str | None = None,
):
    try:
        operations = caisse_service.list_operations(
            date_debut=date_debut,
            date_fin=date_fin,
            type=type,
            categorie=categorie,
            montant_min=montant_min,
            montant_max=montant_max,
            libelle=libelle,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return {"success": True, "data": operations, "total": len(operations)}


@router.get("/solde", response_model=SoldeResponse)
def get_solde():
    return {"success": True, "solde": caisse_service.fetch_solde()}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_operation(payload: CaisseOperationPayload):
    try:
        operation = caisse_service.create_operation(payload.model_dump(exclude_none=True))
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return {"success": True, "data": operation}


@router.put("/{operation_id}")
def update_operation(operation_id: int, payload: CaisseOperationPayload):
    try:
        operation = caisse_service.update_operation(operation_id, payload.model_dump(exclude_none=True))
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    if operation is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Opération non trouvée")
    return {"success": True, "data": operation}


@router.delete("/{operation_id}", response_model=MessageResponse)
def delete_operation(operation_id: int):
    if not caisse_service.delete_operation(operation_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Opération non trouvée")
    return {"success": True, "message": "Opération supprimée"}


@router.post("/archiver", response_model=MessageResponse)
def archiver(payload: ArchiveRequest):
    try:
        count = caisse_service.archiver_mois(payload.annee, payload.mois)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return {"success": True, "message": f"{count} opération(s) archivée(s)"}
