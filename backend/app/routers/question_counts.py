"""
Router pour le nombre de questions par matière et les seuils par matière.
"""

from typing import Dict, List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.test_score import (
    CriteriaBatchRequest,
    CriteriaEvaluation,
    CriteriaPair,
    CriteriaResponse,
    CriteriaUpsert,
    QuestionCountResponse,
    QuestionCountResult,
    QuestionCountUpsert,
)
from app.services import criteria_service, question_count_service

router = APIRouter(prefix="/api/v1/question-counts", tags=["Nombre de questions"])
criteria_router = APIRouter(prefix="/api/v1/criteria", tags=["Seuils"])


@router.get("", response_model=QuestionCountResult, summary="Nombre de questions d'un examen")
def get_question_counts(
    test_name: str = question_count_service.DEFAULT_TEST_NAME,
    db: Session = Depends(get_db),
):
    """Les champs requis vides n'empêchent pas la réponse : ils sont listés dans `warning`."""
    result = question_count_service.get_question_counts(db, test_name)
    if result is None:
        raise HTTPException(status_code=404, detail="Nombre de questions introuvable pour cet examen.")
    return result


@router.get("/all", response_model=List[QuestionCountResponse], summary="Lister les nombres de questions")
def list_question_counts(db: Session = Depends(get_db)):
    return question_count_service.list_question_counts(db)


@router.put("/{test_name}", response_model=QuestionCountResponse, summary="Enregistrer le nombre de questions")
def upsert_question_counts(test_name: str, data: QuestionCountUpsert, db: Session = Depends(get_db)):
    return question_count_service.upsert_question_counts(db, test_name, data)


@router.delete("/{test_name}", status_code=204, summary="Supprimer le nombre de questions")
def delete_question_counts(test_name: str, db: Session = Depends(get_db)):
    if not question_count_service.delete_question_counts(db, test_name):
        raise HTTPException(status_code=404, detail="Nombre de questions introuvable pour cet examen.")


# --- Seuils par matière ---

@criteria_router.post("/batch", response_model=Dict[str, CriteriaPair], summary="Seuils de plusieurs examens")
def criteria_batch(data: CriteriaBatchRequest, db: Session = Depends(get_db)):
    return criteria_service.get_criteria_batch(db, data.test_names)


@criteria_router.get(
    "/evaluate/{score_id}",
    response_model=CriteriaEvaluation,
    summary="Évaluer un résultat par rapport aux seuils",
)
def evaluate_score(score_id: int, db: Session = Depends(get_db)):
    try:
        return criteria_service.evaluate_test_score(db, score_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@criteria_router.get("/{test_name}", response_model=CriteriaPair, summary="Seuils d'un examen")
def get_criteria(test_name: str, db: Session = Depends(get_db)):
    """Retourne {passing, failing} ; un type non défini vaut null."""
    return criteria_service.get_criteria(db, test_name)


@criteria_router.put("/{test_name}", response_model=CriteriaResponse, summary="Enregistrer des seuils")
def upsert_criteria(test_name: str, data: CriteriaUpsert, db: Session = Depends(get_db)):
    return criteria_service.upsert_criteria(db, test_name, data)
