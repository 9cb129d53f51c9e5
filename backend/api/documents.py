"""Document endpoints (factures, proformas, devis)."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, status

from backend.errors import DocumentNotFoundError, InvalidDocumentError
from backend.schemas.common import ApiResponse, MessageResponse
from backend.schemas.documents import (
    DocumentPayload,
    DuplicateRequest,
    GenerateNumberRequest,
    GeneratedNumber,
)
from backend.services import documents as documents_service

router = APIRouter(prefix="/documents", tags=["documents"])


@router.get("")
def list_documents(
    type_document: str | None = None,
    statut: str | None = None,
    client_id: int | None = None,
    search: str | None = None,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    items = documents_service.list_documents(
        type_document=type_document,
        statut=statut,
        client_id=client_id,
        search=search,
        limit=limit,
        offset=offset,
    )
    return {"success": True, "data": items, "total": len(items)}


@router.post("/generate-number", response_model=ApiResponse[GeneratedNumber])
def generate_number(payload: GenerateNumberRequest):
    try:
        data = documents_service.generate_number(payload.entreprise_id, payload.type_document)
    except DocumentNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except InvalidDocumentError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return {"success": True, "data": data}


@router.get("/{document_id}")
def get_document(document_id: int):
    try:
        return {"success": True, "data": documents_service.get_document(document_id)}
    except DocumentNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document non trouvé") from exc


@router.post("", status_code=status.HTTP_201_CREATED)
def create_document(payload: DocumentPayload):
    try:
        document = documents_service.create_document(payload.to_service_payload())
    except InvalidDocumentError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return {"success": True, "message": "Document créé avec succès", "data": document}


@router.put("/{document_id}")
def update_document(document_id: int, payload: DocumentPayload):
    try:
        document = documents_service.update_document(document_id, payload.to_service_payload())
    except DocumentNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document non trouvé") from exc
    except InvalidDocumentError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return {"success": True, "message": "Document mis à jour avec succès", "data": document}


@router.delete("/{document_id}", response_model=MessageResponse)
def delete_document(document_id: int):
    try:
        documents_service.delete_document(document_id)
    except DocumentNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document non trouvé") from exc
    return {"success": True, "message": "Document supprimé avec succès"}


@router.post("/{document_id}/convert-to-facture")
def convert_to_facture(document_id: int):
    try:
        facture = documents_service.convert_to_facture(document_id)
    except DocumentNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except InvalidDocumentError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return {"success": True, "message": f"Proforma converti en facture {facture['numero']}", "data": facture}


@router.post("/{document_id}/duplicate", status_code=status.HTTP_201_CREATED)
def duplicate_document(document_id: int, payload: DuplicateRequest | None = None):
    try:
        copy = documents_service.duplicate_document(document_id, payload.type_document if payload else None)
    except DocumentNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document non trouvé") from exc
    except InvalidDocumentError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return {"success": True, "message": "Document dupliqué avec succès", "data": copy}


@router.post("/{document_id}/encaisser")
def encaisser(document_id: int):
    try:
        result = documents_service.encaisser(document_id)
    except DocumentNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document non trouvé") from exc
    except InvalidDocumentError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return {"success": True, "message": "Facture encaissée", "data": result}
