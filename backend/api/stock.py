"""Stock article endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, status

from backend.errors import ConflictError, ResourceNotFoundError
from backend.schemas.common import ApiResponse, MessageResponse
from backend.schemas.stock import StockArticlePayload, StockMovementRequest, StockValorisation
from backend.services import stock as stock_service

router = APIRouter(prefix="/stocks", tags=["stocks"])


@router.get("")
def list_articles(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=500),
    search: str = "",
    alerte: bool = False,
):
    result = stock_service.list_articles(page=page, limit=limit, search=search, alerte=alerte)
    return {"success": True, "data": {"items": result.items, "pagination": result.pagination()}}


@router.get("/alertes")
def list_alertes():
    alertes = stock_service.fetch_alertes()
    return {"success": True, "data": alertes, "total": len(alertes)}


@router.get("/valorisation", response_model=ApiResponse[StockValorisation])
def get_valorisation():
    return {"success": True, "data": stock_service.fetch_valorisation()}


@router.get("/{article_id}")
def get_article(article_id: int):
    try:
        return {"success": True, "data": stock_service.get_article(article_id)}
    except ResourceNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


@router.post("", status_code=status.HTTP_201_CREATED)
def create_article(payload: StockArticlePayload):
    try:
        article = stock_service.create_article(payload.model_dump(exclude_none=True))
    except ConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return {"success": True, "message": "Article créé avec succès", "data": article}


@router.put("/{article_id}")
def update_article(article_id: int, payload: StockArticlePayload):
    try:
        article = stock_service.update_article(article_id, payload.model_dump(exclude_unset=True))
    except ResourceNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return {"success": True, "message": "Article mis à jour avec succès", "data": article}


@router.delete("/{article_id}", response_model=MessageResponse)
def delete_article(article_id: int):
    try:
        stock_service.delete_article(article_id)
    except ResourceNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return {"success": True, "message": "Article supprimé avec succès"}


@router.post("/{article_id}/mouvements")
def record_movement(article_id: int, payload: StockMovementRequest):
    try:
        result = stock_service.record_movement(
            article_id,
            payload.type_mouvement,
            payload.quantite,
            motif=payload.motif,
            reference_document=payload.reference_document,
        )
    except ResourceNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return {"success": True, "message": "Mouvement de stock enregistré avec succès", "data": result}
