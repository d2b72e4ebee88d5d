"""
Service de classement : charge les sessions depuis la BDD et délègue les calculs à scoring.

Toutes les fonctions retournent des résultats étiquetés (success / error / data).
Une erreur de requête est journalisée et convertie en échec, jamais propagée.
"""

import datetime as dt
import logging
from collections import defaultdict

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import settings
from app.models.test_score import TestScore
from app.schemas.ranking import BadgesResult, LevelResult, OverallRankingResult, RankingListResult
from app.services import scoring

logger = logging.getLogger(__name__)

QUERY_ERROR = "Erreur lors de la récupération des résultats."


def _group_by_sitting(records: list[TestScore]) -> list[list[TestScore]]:
    """Regroupe des lignes par (test_name, test_date) en conservant l'ordre d'arrivée."""
    sittings: dict[tuple, list[TestScore]] = defaultdict(list)
    for record in records:
        sittings[(record.test_name, record.test_date)].append(record)
    return list(sittings.values())


def get_test_ranking(db: Session, test_name: str) -> RankingListResult:
    """
    Classement d'un examen : correspondance exacte sur test_name,
    puis recherche partielle insensible à la casse si rien ne correspond.
    """
    try:
        records = db.execute(
            select(TestScore).where(TestScore.test_name == test_name).order_by(TestScore.id)
        ).scalars().all()
        if not records:
            records = db.execute(
                select(TestScore).where(TestScore.test_name.ilike(f"%{test_name}%")).order_by(TestScore.id)
            ).scalars().all()
    except SQLAlchemyError as exc:
        logger.error("Classement de l'examen %s impossible : %s", test_name, exc)
        return RankingListResult(success=False, error=QUERY_ERROR)

    if not records:
        return RankingListResult(success=False, error="Aucun résultat trouvé pour cet examen.")

    return RankingListResult(success=True, data=scoring.rank_within_test(records, settings.RANK_TIE_POLICY))


def get_sitting_ranking(db: Session, test_name: str, test_date: dt.date) -> RankingListResult:
    try:
        records = db.execute(
            select(TestScore)
            .where(TestScore.test_name == test_name, TestScore.test_date == test_date)
            .order_by(TestScore.id)
        ).scalars().all()
    except SQLAlchemyError as exc:
        logger.error("Classement de la session %s (%s) impossible : %s", test_name, test_date, exc)
        return RankingListResult(success=False, error=QUERY_ERROR)

    if not records:
        return RankingListResult(success=False, error="Aucun résultat pour cette session.")

    return RankingListResult(success=True, data=scoring.rank_within_test(records, settings.RANK_TIE_POLICY))


def get_overall_ranking(db: Session, student_id: str) -> OverallRankingResult:
    """Classement global d'un élève sur toutes les sessions auxquelles il a participé."""
    try:
        taken = db.execute(
            select(TestScore.test_name, TestScore.test_date)
            .where(TestScore.student_id == student_id)
            .order_by(TestScore.test_date)
        ).all()
        if not taken:
            return OverallRankingResult(success=False, error="Aucun résultat d'examen trouvé.")

        names = {name for name, _ in taken}
        records = db.execute(
            select(TestScore)
            .where(TestScore.test_name.in_(names))
            .order_by(TestScore.test_date, TestScore.id)
        ).scalars().all()
    except SQLAlchemyError as exc:
        logger.error("Classement global de l'élève %s impossible : %s", student_id, exc)
        return OverallRankingResult(success=False, error=QUERY_ERROR)

    return scoring.compute_overall_ranking(student_id, _group_by_sitting(records), settings.RANK_TIE_POLICY)


def get_student_badges(db: Session, student_id: str) -> BadgesResult:
    """Badges d'un élève ; top_rank se base sur sa session la plus récente."""
    try:
        records = db.execute(
            select(TestScore)
            .where(TestScore.student_id == student_id)
            .order_by(TestScore.test_date.desc(), TestScore.id.desc())
        ).scalars().all()

        latest_sitting = None
        if records:
            latest = records[0]
            latest_sitting = db.execute(
                select(TestScore)
                .where(TestScore.test_name == latest.test_name, TestScore.test_date == latest.test_date)
                .order_by(TestScore.id)
            ).scalars().all()
    except SQLAlchemyError as exc:
        logger.error("Badges de l'élève %s impossibles à calculer : %s", student_id, exc)
        return BadgesResult(success=False, error=QUERY_ERROR)

    return BadgesResult(
        success=True,
        badges=scoring.compute_badges(student_id, records, latest_sitting, settings.RANK_TIE_POLICY),
    )


def get_student_level(db: Session, student_id: str) -> LevelResult:
    try:
        records = db.execute(
            select(TestScore).where(TestScore.student_id == student_id)
        ).scalars().all()
    except SQLAlchemyError as exc:
        logger.error("Niveau de l'élève %s impossible à calculer : %s", student_id, exc)
        return LevelResult(success=False, error=QUERY_ERROR)

    return scoring.compute_level(records)
