"""
Service métier pour les seuils par matière (subject_criteria) et l'évaluation d'un résultat.
"""

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.test_score import SubjectCriteria, TestScore
from app.schemas.test_score import CriteriaEvaluation, CriteriaPair, CriteriaResponse, CriteriaUpsert
from app.services.scoring import evaluate_criteria

logger = logging.getLogger(__name__)


def _to_pair(rows: list[SubjectCriteria]) -> CriteriaPair:
    pair = CriteriaPair()
    for row in rows:
        if row.criteria_type == "passing" and pair.passing is None:
            pair.passing = CriteriaResponse.model_validate(row)
        elif row.criteria_type == "failing" and pair.failing is None:
            pair.failing = CriteriaResponse.model_validate(row)
    return pair


def get_criteria(db: Session, test_name: str) -> CriteriaPair:
    """Seuils passing / failing d'un examen ; None pour un type absent."""
    rows = db.execute(
        select(SubjectCriteria)
        .where(SubjectCriteria.test_name == test_name)
        .order_by(SubjectCriteria.criteria_type)
    ).scalars().all()
    return _to_pair(rows)


def get_criteria_batch(db: Session, test_names: list[str]) -> dict[str, CriteriaPair]:
    """Seuils de plusieurs examens en une requête. Chaque nom demandé a une entrée."""
    rows = db.execute(
        select(SubjectCriteria)
        .where(SubjectCriteria.test_name.in_(test_names))
        .order_by(SubjectCriteria.test_name, SubjectCriteria.criteria_type)
    ).scalars().all()
    return {name: _to_pair([r for r in rows if r.test_name == name]) for name in test_names}


def upsert_criteria(db: Session, test_name: str, data: CriteriaUpsert) -> CriteriaResponse:
    row = db.execute(
        select(SubjectCriteria).where(
            SubjectCriteria.test_name == test_name,
            SubjectCriteria.criteria_type == data.criteria_type,
        )
    ).scalar_one_or_none()
    if row is None:
        row = SubjectCriteria(test_name=test_name, criteria_type=data.criteria_type)
        db.add(row)

    for field, value in data.model_dump(exclude_unset=True, exclude={"criteria_type"}).items():
        setattr(row, field, value)

    db.commit()
    db.refresh(row)
    logger.info("Seuils %s enregistrés pour l'examen %s", data.criteria_type, test_name)
    return CriteriaResponse.model_validate(row)


def evaluate_test_score(db: Session, score_id: int) -> CriteriaEvaluation:
    """Évalue chaque matière d'un résultat par rapport aux seuils de son examen."""
    score = db.get(TestScore, score_id)
    if score is None:
        raise ValueError("Résultat introuvable.")

    pair = get_criteria(db, score.test_name)
    return CriteriaEvaluation(
        score_id=score.id,
        test_name=score.test_name,
        subjects=evaluate_criteria(score, pair.passing, pair.failing),
    )
