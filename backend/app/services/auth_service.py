"""
Service d'authentification élève / parent / administrateur.

- Élève  : login_id + login_password
- Parent : parent_id + parent_password (un parent peut suivre plusieurs élèves)
- Admin  : username + hash bcrypt

Les identifiants élève/parent sont stockés en clair car l'export CSV doit les restituer.
Sans base configurée, seuls les comptes FIXTURE_ACCOUNTS sont acceptés, et uniquement en développement.
"""

import logging
import secrets
from datetime import datetime
from typing import Optional

import bcrypt
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.config import settings
from app.models.admin import AdminUser
from app.models.student import ParentStudent, Student
from app.schemas.auth import (
    AdminLoginRequest,
    AuthenticatedAdmin,
    AuthenticatedStudent,
    LoginRequest,
    LoginResult,
)
from app.schemas.student import ParentStudentCreate, ParentStudentResponse

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Identifiant ou mot de passe incorrect."


def _same_secret(stored: Optional[str], provided: str) -> bool:
    if stored is None:
        return False
    return secrets.compare_digest(str(stored).encode("utf-8"), provided.encode("utf-8"))


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Hash malformé en base
        logger.warning("Hash de mot de passe administrateur invalide")
        return False


def _fixture_login(data: LoginRequest) -> LoginResult:
    """Connexion de secours sur les comptes FIXTURE_ACCOUNTS (développement, base non configurée)."""
    if settings.ENV != "development":
        return LoginResult(success=False, error="Base de données non configurée.")

    expected = settings.fixture_accounts().get(data.login_id)
    if expected is None or not _same_secret(expected, data.password):
        return LoginResult(success=False, error="Base de données non configurée.")

    logger.warning("Connexion via compte de test %s (base non configurée)", data.login_id)
    return LoginResult(
        success=True,
        role=data.role,
        student=AuthenticatedStudent(student_id=data.login_id, name=f"Compte de test ({data.login_id})"),
        message="Authentifié avec un compte de test.",
        fixture=True,
    )


def authenticate(db: Optional[Session], data: LoginRequest) -> LoginResult:
    """
    Authentifie un élève ou un parent.
    db vaut None quand la base n'est pas configurée.
    """
    login_id = data.login_id.strip()
    if not login_id or not data.password:
        return LoginResult(success=False, error="Identifiant et mot de passe requis.")

    if db is None:
        return _fixture_login(data)

    if data.role == "parent":
        candidates = db.execute(
            select(Student).where(Student.parent_id == login_id).order_by(Student.id)
        ).scalars().all()
        student = next((s for s in candidates if _same_secret(s.parent_password, data.password)), None)
    else:
        student = db.execute(
            select(Student).where(Student.login_id == login_id)
        ).scalars().first()
        if student is not None and not _same_secret(student.login_password, data.password):
            student = None

    if student is None:
        logger.info("Échec de connexion %s : %s", data.role, login_id)
        return LoginResult(success=False, error=INVALID_CREDENTIALS)

    student.last_login = datetime.now()
    student.login_count = (student.login_count or 0) + 1
    db.commit()

    logger.info("Connexion %s réussie : %s", data.role, login_id)
    return LoginResult(
        success=True,
        role=data.role,
        student=AuthenticatedStudent(student_id=student.id, name=student.name, class_name=student.class_name),
        message="Authentification réussie.",
    )


def authenticate_admin(db: Session, data: AdminLoginRequest) -> LoginResult:
    admin = db.execute(
        select(AdminUser).where(AdminUser.username == data.username.strip())
    ).scalars().first()
    if admin is None or not verify_password(data.password, admin.password_hash):
        logger.info("Échec de connexion administrateur : %s", data.username)
        return LoginResult(success=False, error=INVALID_CREDENTIALS)

    admin.last_login = datetime.now()
    db.commit()
    return LoginResult(
        success=True,
        role="admin",
        admin=AuthenticatedAdmin(username=admin.username, name=admin.name),
        message="Authentification réussie.",
    )


def link_parent_student(db: Session, data: ParentStudentCreate) -> ParentStudentResponse:
    """Lie un compte parent à un élève. Lève ValueError si l'élève est introuvable ou déjà lié."""
    student = db.get(Student, data.student_id)
    if student is None:
        raise ValueError(f"Élève {data.student_id} introuvable.")

    existing = db.execute(
        select(ParentStudent).where(
            ParentStudent.parent_id == data.parent_id,
            ParentStudent.student_id == data.student_id,
        )
    ).scalar_one_or_none()
    if existing is not None:
        raise ValueError(f"L'élève {data.student_id} est déjà lié au parent {data.parent_id}.")

    db.add(ParentStudent(parent_id=data.parent_id, student_id=data.student_id))
    db.commit()
    return ParentStudentResponse(parent_id=data.parent_id, student_id=student.id, student_name=student.name)


def get_parent_students(db: Session, parent_id: str) -> list[ParentStudentResponse]:
    rows = db.execute(
        select(ParentStudent.parent_id, Student.id, Student.name)
        .join(Student, Student.id == ParentStudent.student_id)
        .where(ParentStudent.parent_id == parent_id)
        .order_by(Student.id)
    ).all()
    return [
        ParentStudentResponse(parent_id=p_id, student_id=s_id, student_name=name)
        for p_id, s_id, name in rows
    ]
