"""
Schémas Pydantic pour les élèves et leurs comptes parents.
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, EmailStr, field_validator


class StudentCreate(BaseModel):
    """Schéma de création manuelle d'un élève (POST /students)."""
    id: str
    name: str
    login_id: str
    login_password: str
    parent_id: str
    parent_password: str
    email: Optional[EmailStr] = None
    class_name: Optional[str] = None

    @field_validator("id", "name", "login_id", "login_password", "parent_id", "parent_password")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le champ ne peut pas être vide.")
        return v.strip()


class StudentUpdate(BaseModel):
    """Schéma de mise à jour d'un élève (PUT /students/{id})."""
    name: Optional[str] = None
    login_id: Optional[str] = None
    login_password: Optional[str] = None
    parent_id: Optional[str] = None
    parent_password: Optional[str] = None
    email: Optional[EmailStr] = None
    class_name: Optional[str] = None

    @field_validator("name", "login_id", "login_password", "parent_id", "parent_password")
    @classmethod
    def not_empty(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Le champ ne peut pas être vide.")
        return v.strip() if v else v


class StudentEmailUpdate(BaseModel):
    """Mise à jour de l'adresse email seule (PATCH /students/{id}/email)."""
    email: Optional[EmailStr] = None


class StudentResponse(BaseModel):
    """Schéma de réponse pour un élève (GET /students)."""
    id: str
    name: str
    login_id: str
    parent_id: str
    email: Optional[str]
    class_name: Optional[str]
    last_login: Optional[datetime] = None
    login_count: Optional[int] = 0
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class StudentImportRow(BaseModel):
    """Représente une ligne valide du CSV après parsing."""
    id: str
    name: str
    login_id: str
    login_password: str
    parent_id: str
    parent_password: str
    email: Optional[str] = None
    class_name: Optional[str] = None


class StudentImportReport(BaseModel):
    """Rapport retourné après un import CSV. Seules les 5 premières erreurs sont détaillées."""
    total_rows: int
    inserted: int
    updated: int
    rejected: int
    errors: List[str]


class ParentStudentCreate(BaseModel):
    """Corps de requête pour lier un compte parent à un élève."""
    parent_id: str
    student_id: str

    @field_validator("parent_id", "student_id")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le champ ne peut pas être vide.")
        return v.strip()


class ParentStudentResponse(BaseModel):
    parent_id: str
    student_id: str
    student_name: Optional[str] = None
