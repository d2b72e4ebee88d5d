"""
Configuration de la connexion à la base de données PostgreSQL.

Un seul point de construction : le moteur est créé à la première demande
à partir de settings.DATABASE_URL. Sans URL configurée, toute tentative
d'accès lève DatabaseConfigurationError.
"""

from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.orm import sessionmaker

from app.config import settings

SessionLocal = sessionmaker(autocommit=False, autoflush=False)

Base = declarative_base()

_engine: Optional[Engine] = None


class DatabaseConfigurationError(RuntimeError):
    """La connexion à la base de données n'est pas configurée."""


def get_engine() -> Engine:
    """Retourne le moteur SQLAlchemy, créé et lié à SessionLocal au premier appel."""
    global _engine
    if _engine is None:
        if not settings.DATABASE_URL:
            raise DatabaseConfigurationError(
                "Connexion à la base de données non configurée : DATABASE_URL est vide."
            )
        _engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True)
        SessionLocal.configure(bind=_engine)
    return _engine


def get_db():
    """Dépendance FastAPI — fournit une session BDD et la ferme après usage."""
    get_engine()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_optional_db():
    """
    Variante de get_db pour la connexion : fournit None au lieu de lever
    DatabaseConfigurationError quand la base n'est pas configurée.
    """
    try:
        get_engine()
    except DatabaseConfigurationError:
        yield None
        return
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
