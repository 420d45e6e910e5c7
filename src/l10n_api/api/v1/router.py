"""API router composition for the l10n FastAPI application."""

from __future__ import annotations

from fastapi import APIRouter

from l10n_api.features.audit.router import router as events_router
from l10n_api.features.catalog.router import router as catalog_router
from l10n_api.features.transfer.router import router as transfer_router


def create_api_router() -> APIRouter:
    api_router = APIRouter(prefix="/v1")
    api_router.include_router(catalog_router)
    api_router.include_router(events_router)
    api_router.include_router(transfer_router)
    return api_router


__all__ = ["create_api_router"]
