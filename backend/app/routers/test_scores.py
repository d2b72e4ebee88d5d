"""
Router pour les résultats d'examens (consultation, saisie admin, import CSV, tableau de bord).
"""

from datetime import date
from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.ranking import SittingSummaryResult
from app.schemas.test_score import (
    DashboardSummary,
    SittingResponse,
    TestScoreImportReport,
    TestScoreResponse,
    TestScoreUpdate,
)
from app.services import test_score_service

router = APIRouter(prefix="/api/v1/test-scores", tags=["Résultats"])

MAX_FILE_SIZE_MB = 5


@router.get("", response_model=List[TestScoreResponse], summary="Lister tous les résultats")
def list_results(db: Session = Depends(get_db)):
    return test_score_service.get_test_results(db)


@router.get("/dashboard", response_model=DashboardSummary, summary="Compteurs du tableau de bord")
def dashboard(db: Session = Depends(get_db)):
    return test_score_service.get_dashboard_summary(db)


@router.get("/sittings", response_model=List[SittingResponse], summary="Lister les sessions d'examen")
def list_sittings(db: Session = Depends(get_db)):
    """Sessions distinctes (nom + date), de la plus récente à la plus ancienne."""
    return test_score_service.get_sittings(db)


@router.get(
    "/sittings/{test_name}/{test_date}",
    response_model=List[TestScoreResponse],
    summary="Résultats d'une session",
)
def sitting_results(test_name: str, test_date: date, db: Session = Depends(get_db)):
    return test_score_service.get_sitting_results(db, test_name, test_date)


@router.put("/sittings/{test_name}/{test_date}", summary="Enregistrer les notes d'une session")
def save_sitting_results(
    test_name: str,
    test_date: date,
    scores: List[TestScoreUpdate],
    db: Session = Depends(get_db),
):
    """Upsert par id ; total_score est recalculé lorsqu'il n'est pas fourni."""
    try:
        written = test_score_service.update_sitting_results(db, test_name, test_date, scores)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"success": True, "updated": written}


@router.get(
    "/sittings/{test_name}/{test_date}/summary",
    response_model=SittingSummaryResult,
    summary="Statistiques d'une session",
)
def sitting_summary(test_name: str, test_date: date, db: Session = Depends(get_db)):
    return test_score_service.get_sitting_summary(db, test_name, test_date)


@router.post(
    "/sittings/{test_name}/{test_date}/upload",
    response_model=TestScoreImportReport,
    summary="Importer les notes d'une session via CSV",
)
async def upload_scores(
    test_name: str,
    test_date: date,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
):
    """
    Colonnes : `student_id` puis une colonne par matière (noms identiques à la base).
    Le nombre de questions de l'examen est créé avec 10 par matière s'il n'existe pas.
    """
    content = await file.read()
    if not content:
        raise HTTPException(status_code=400, detail="Le fichier CSV est vide.")
    if len(content) > MAX_FILE_SIZE_MB * 1024 * 1024:
        raise HTTPException(
            status_code=400,
            detail=f"Fichier trop volumineux. Taille maximale : {MAX_FILE_SIZE_MB} Mo."
        )
    return test_score_service.import_scores_csv(content, test_name, test_date, db)


@router.get(
    "/students/{student_id}",
    response_model=List[TestScoreResponse],
    summary="Résultats d'un élève",
)
def student_results(student_id: str, db: Session = Depends(get_db)):
    try:
        return test_score_service.get_student_test_results(db, student_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.put("/{score_id}", response_model=TestScoreResponse, summary="Modifier un résultat")
def update_score(score_id: int, data: TestScoreUpdate, db: Session = Depends(get_db)):
    result = test_score_service.update_test_score(db, score_id, data)
    if result is None:
        raise HTTPException(status_code=404, detail="Résultat introuvable.")
    return result


@router.delete("/{score_id}", status_code=204, summary="Supprimer un résultat")
def delete_score(score_id: int, db: Session = Depends(get_db)):
    if not test_score_service.delete_test_score(db, score_id):
        raise HTTPException(status_code=404, detail="Résultat introuvable.")
