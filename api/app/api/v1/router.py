"""
Router principal de la API v1.
Agrupa todos los endpoints de la version 1.
"""
from fastapi import APIRouter

from app.api.v1.endpoints import airtable, auth, revision_history


# Router principal de la API v1
api_router = APIRouter(prefix="/v1")

# Incluir routers de endpoints especificos
api_router.include_router(auth.router)
api_router.include_router(airtable.router)
api_router.include_router(revision_history.router)
