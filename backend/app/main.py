"""
Point d'entrée principal de l'API du portail école.
Démarrage : uvicorn app.main:app --reload
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

import app.models  # noqa: F401 — enregistre tous les modèles dans Base.metadata avant les routers
from app.database import DatabaseConfigurationError
from app.routers import auth, notices, question_counts, rankings, students, test_scores

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s : %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Portail école API",
    description="Résultats d'examens blancs, classements et diffusion des annonces par email",
    version="0.1.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
)

# CORS — autorise tous les ports localhost en développement (à restreindre en production).
app.add_middleware(
    CORSMiddleware,
    allow_origins=[],
    allow_origin_regex=r"https?://(localhost|127\.0\.0\.1)(:\d+)?",
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["Content-Type", "Authorization", "Accept"],
)


app.include_router(students.router)
app.include_router(test_scores.router)
app.include_router(rankings.router)
app.include_router(question_counts.router)
app.include_router(question_counts.criteria_router)
app.include_router(notices.router)
app.include_router(notices.mail_router)
app.include_router(auth.router)
app.include_router(auth.parent_router)


@app.exception_handler(DatabaseConfigurationError)
async def database_configuration_handler(request: Request, exc: DatabaseConfigurationError) -> JSONResponse:
    logger.error("Base de données non configurée : %s", exc)
    return JSONResponse(status_code=503, content={"success": False, "error": str(exc)})


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Erreur base de données sur %s : %s", request.url.path, exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "Erreur lors de l'accès à la base de données."},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Intercepte toutes les exceptions non gérées pour que la réponse 500
    passe par CORSMiddleware (qui injecte les headers CORS).
    """
    logger.error("Exception non gérée : %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "Une erreur interne est survenue."},
    )


@app.get("/api/health", tags=["Santé"])
def health_check():
    """Vérifie que l'API est opérationnelle."""
    return {"status": "ok", "service": "Portail école API", "version": "0.1.0"}
