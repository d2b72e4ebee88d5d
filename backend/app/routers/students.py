"""
Router pour les élèves.
Import CSV          (POST  /api/v1/students/upload)
Export CSV          (GET   /api/v1/students/export)
Listage / détail    (GET   /api/v1/students, /api/v1/students/{id})
Création manuelle   (POST  /api/v1/students)
Mise à jour         (PUT   /api/v1/students/{id}, PATCH /api/v1/students/{id}/email)
Suppression         (DELETE /api/v1/students/{id})
"""

from datetime import date
from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import StreamingResponse
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.student import Student
from app.schemas.student import (
    StudentCreate,
    StudentEmailUpdate,
    StudentImportReport,
    StudentResponse,
    StudentUpdate,
)
from app.services.student_import import export_students_csv, parse_and_import_csv

router = APIRouter(prefix="/api/v1/students", tags=["Élèves"])

ALLOWED_CONTENT_TYPES = {"text/csv", "text/plain", "application/vnd.ms-excel"}
MAX_FILE_SIZE_MB = 5


@router.get("", response_model=List[StudentResponse], summary="Lister tous les élèves")
def list_students(db: Session = Depends(get_db)):
    """Retourne tous les élèves triés par numéro d'étudiant."""
    return db.execute(select(Student).order_by(Student.id)).scalars().all()


@router.post("", response_model=StudentResponse, status_code=201, summary="Créer un élève manuellement")
def create_student(data: StudentCreate, db: Session = Depends(get_db)):
    if db.get(Student, data.id) is not None:
        raise HTTPException(status_code=409, detail=f"L'élève {data.id} existe déjà.")

    student = Student(**data.model_dump())
    db.add(student)
    db.commit()
    db.refresh(student)
    return student


@router.get("/export", summary="Exporter les élèves en CSV")
def export_students(db: Session = Depends(get_db)):
    """
    Exporte tous les élèves avec leurs identifiants élève et parent.
    Le fichier peut être réimporté tel quel via /upload.
    """
    csv_content = export_students_csv(db)
    filename = f"students_{date.today().isoformat()}.csv"
    return StreamingResponse(
        iter([csv_content]),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.post("/upload", response_model=StudentImportReport, summary="Importer des élèves via CSV")
async def upload_students(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
):
    """
    Importe ou met à jour une liste d'élèves depuis un fichier CSV.

    Format attendu du CSV :
    - Colonnes obligatoires : `student_id`, `name`, `login_id`, `login_password`, `parent_id`, `parent_password`
    - Colonnes optionnelles : `email`, `class`
    - Séparateur : virgule (`,`) ou point-virgule (`;`)
    - Encodage : UTF-8 (avec ou sans BOM)

    Retourne un rapport détaillant les insertions, mises à jour et rejets.
    """
    if file.content_type not in ALLOWED_CONTENT_TYPES and not file.filename.endswith(".csv"):
        raise HTTPException(
            status_code=400,
            detail="Format invalide. Seuls les fichiers CSV sont acceptés."
        )

    content = await file.read()

    if len(content) > MAX_FILE_SIZE_MB * 1024 * 1024:
        raise HTTPException(
            status_code=400,
            detail=f"Fichier trop volumineux. Taille maximale : {MAX_FILE_SIZE_MB} Mo."
        )

    if not content:
        raise HTTPException(status_code=400, detail="Le fichier CSV est vide.")

    return parse_and_import_csv(content, db)


@router.get("/{student_id}", response_model=StudentResponse, summary="Détail d'un élève")
def get_student(student_id: str, db: Session = Depends(get_db)):
    student = db.get(Student, student_id)
    if student is None:
        raise HTTPException(status_code=404, detail="Élève introuvable.")
    return student


@router.put("/{student_id}", response_model=StudentResponse, summary="Modifier un élève")
def update_student(student_id: str, data: StudentUpdate, db: Session = Depends(get_db)):
    """Met à jour les champs fournis d'un élève. Les champs absents ne sont pas modifiés."""
    student = db.get(Student, student_id)
    if student is None:
        raise HTTPException(status_code=404, detail="Élève introuvable.")

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(student, field, value)

    db.commit()
    db.refresh(student)
    return student


@router.patch("/{student_id}/email", response_model=StudentResponse, summary="Modifier l'email d'un élève")
def update_student_email(student_id: str, data: StudentEmailUpdate, db: Session = Depends(get_db)):
    """Met à jour l'adresse de diffusion des annonces. null efface l'adresse."""
    student = db.get(Student, student_id)
    if student is None:
        raise HTTPException(status_code=404, detail="Élève introuvable.")

    student.email = data.email
    db.commit()
    db.refresh(student)
    return student


@router.delete("/{student_id}", status_code=204, summary="Supprimer un élève")
def delete_student(student_id: str, db: Session = Depends(get_db)):
    """Supprime définitivement un élève. Ses résultats et son historique d'envoi sont supprimés en cascade."""
    student = db.get(Student, student_id)
    if student is None:
        raise HTTPException(status_code=404, detail="Élève introuvable.")

    db.delete(student)
    db.commit()
