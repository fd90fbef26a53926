"""
Point d'entrée principal de l'API de gestion des casiers.
Démarrage : uvicorn casiers.main:app --reload  (depuis le dossier backend/)
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import casiers.models  # noqa: F401 (enregistre tous les modèles dans Base.metadata avant create_all)
from casiers.database import Base, engine
from casiers.routers import lockers, registry, students
from casiers.state import build_registry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Cycle de vie : crée les tables puis construit le registre (chargement + initialisation des casiers)."""
    Base.metadata.create_all(bind=engine)
    app.state.registry = build_registry()
    logger.info("Registre des casiers prêt.")
    yield


app = FastAPI(
    title="Casiers API",
    description="API de gestion des casiers élèves par bâtiment",
    version="0.1.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)

# CORS: autorise tous les ports localhost en développement (à restreindre en production).
app.add_middleware(
    CORSMiddleware,
    allow_origins=[],
    allow_origin_regex=r"https?://(localhost|127\.0\.0\.1)(:\d+)?",
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["Content-Type", "Authorization", "Accept"],
)


app.include_router(students.router)
app.include_router(lockers.router)
app.include_router(registry.router)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Intercepte toutes les exceptions non gérées pour garantir que la réponse 500
    passe bien par CORSMiddleware (qui injecte les headers CORS).
    """
    logger.error("Exception non gérée : %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Une erreur interne est survenue."},
    )


@app.get("/api/health", tags=["Santé"])
def health_check():
    """Vérifie que l'API est opérationnelle."""
    return {"status": "ok", "service": "Casiers API", "version": "0.1.0"}
