"""
Router pour les classements, badges et niveaux.
Les réponses sont toujours 200 avec un résultat étiqueté {success, error, data}.
"""

from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.ranking import BadgesResult, LevelResult, OverallRankingResult, RankingListResult
from app.services import ranking_service

router = APIRouter(prefix="/api/v1/rankings", tags=["Classements"])


@router.get("/tests/{test_name}", response_model=RankingListResult, summary="Classement d'un examen")
def test_ranking(test_name: str, db: Session = Depends(get_db)):
    """Correspondance exacte sur le nom, puis recherche partielle si rien ne correspond."""
    return ranking_service.get_test_ranking(db, test_name)


@router.get(
    "/sittings/{test_name}/{test_date}",
    response_model=RankingListResult,
    summary="Classement d'une session",
)
def sitting_ranking(test_name: str, test_date: date, db: Session = Depends(get_db)):
    return ranking_service.get_sitting_ranking(db, test_name, test_date)


@router.get(
    "/students/{student_id}/overall",
    response_model=OverallRankingResult,
    summary="Classement global d'un élève",
)
def overall_ranking(student_id: str, db: Session = Depends(get_db)):
    return ranking_service.get_overall_ranking(db, student_id)


@router.get("/students/{student_id}/badges", response_model=BadgesResult, summary="Badges d'un élève")
def student_badges(student_id: str, db: Session = Depends(get_db)):
    return ranking_service.get_student_badges(db, student_id)


@router.get("/students/{student_id}/level", response_model=LevelResult, summary="Niveau d'un élève")
def student_level(student_id: str, db: Session = Depends(get_db)):
    return ranking_service.get_student_level(db, student_id)
