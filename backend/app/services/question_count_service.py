"""
Service métier pour le nombre de questions par matière d'un examen.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.test_score import QuestionCount
from app.schemas.test_score import QuestionCountResponse, QuestionCountResult, QuestionCountUpsert

logger = logging.getLogger(__name__)

DEFAULT_TEST_NAME = "AMT模擬試験"

# Champs attendus pour l'affichage ; un champ NULL ne bloque pas, il produit un avertissement
REQUIRED_FIELDS = (
    "medical_overview",
    "public_health",
    "anatomy",
    "physiology",
    "pathology",
    "clinical_medicine_overview",
    "clinical_medicine_detail",
    "rehabilitation",
    "oriental_medicine_overview",
    "meridian_points",
    "oriental_medicine_clinical",
    "acupuncture_theory",
    "moxibustion_theory",
)


def get_question_counts(db: Session, test_name: str = DEFAULT_TEST_NAME) -> Optional[QuestionCountResult]:
    """
    Nombre de questions d'un examen. Retourne None si l'examen n'a pas de ligne.
    Les champs requis manquants sont listés dans warning.
    """
    counts = db.execute(
        select(QuestionCount).where(QuestionCount.test_name == test_name)
    ).scalars().first()
    if counts is None:
        logger.info("Aucun nombre de questions pour l'examen %s", test_name)
        return None

    missing = [field for field in REQUIRED_FIELDS if getattr(counts, field) is None]
    warning = None
    if missing:
        warning = f"Champs manquants : {', '.join(missing)}"
        logger.warning("Examen %s : %s", test_name, warning)

    return QuestionCountResult(success=True, data=QuestionCountResponse.model_validate(counts), warning=warning)


def list_question_counts(db: Session) -> list[QuestionCountResponse]:
    rows = db.execute(select(QuestionCount).order_by(QuestionCount.test_name)).scalars().all()
    return [QuestionCountResponse.model_validate(r) for r in rows]


def upsert_question_counts(db: Session, test_name: str, data: QuestionCountUpsert) -> QuestionCountResponse:
    """Crée ou met à jour les champs fournis pour l'examen."""
    counts = db.execute(
        select(QuestionCount).where(QuestionCount.test_name == test_name)
    ).scalars().first()
    if counts is None:
        counts = QuestionCount(test_name=test_name)
        db.add(counts)

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(counts, field, int(value) if isinstance(value, float) else value)

    db.commit()
    db.refresh(counts)
    return QuestionCountResponse.model_validate(counts)


def delete_question_counts(db: Session, test_name: str) -> bool:
    counts = db.execute(
        select(QuestionCount).where(QuestionCount.test_name == test_name)
    ).scalars().first()
    if counts is None:
        return False
    db.delete(counts)
    db.commit()
    return True
