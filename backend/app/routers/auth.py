"""
Router pour la connexion (élève, parent, administrateur) et les liens parent ↔ élève.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db, get_optional_db
from app.schemas.auth import AdminLoginRequest, LoginRequest, LoginResult
from app.schemas.student import ParentStudentCreate, ParentStudentResponse
from app.services import auth_service

router = APIRouter(prefix="/api/v1/auth", tags=["Authentification"])
parent_router = APIRouter(prefix="/api/v1/parent-students", tags=["Parents"])


@router.post("/login", response_model=LoginResult, summary="Connexion élève ou parent")
def login(data: LoginRequest, db: Optional[Session] = Depends(get_optional_db)):
    """
    Vérifie les identifiants élève (`role=student`) ou parent (`role=parent`).
    Répond 200 avec success=false en cas d'échec.
    """
    return auth_service.authenticate(db, data)


@router.post("/admin/login", response_model=LoginResult, summary="Connexion administrateur")
def admin_login(data: AdminLoginRequest, db: Session = Depends(get_db)):
    return auth_service.authenticate_admin(db, data)


@parent_router.post("", response_model=ParentStudentResponse, status_code=201, summary="Lier un parent à un élève")
def link_parent(data: ParentStudentCreate, db: Session = Depends(get_db)):
    try:
        return auth_service.link_parent_student(db, data)
    except ValueError as e:
        status = 404 if "introuvable" in str(e) else 409
        raise HTTPException(status_code=status, detail=str(e))


@parent_router.get("", response_model=List[ParentStudentResponse], summary="Élèves suivis par un parent")
def parent_students(parent_id: Optional[str] = None, db: Session = Depends(get_db)):
    if not parent_id:
        raise HTTPException(status_code=400, detail="Identifiant parent manquant.")
    return auth_service.get_parent_students(db, parent_id)
