"""
Schémas Pydantic pour la connexion élève / parent / administrateur.
"""

from typing import Literal, Optional

from pydantic import BaseModel


class LoginRequest(BaseModel):
    login_id: str
    password: str
    role: Literal["student", "parent"] = "student"


class AdminLoginRequest(BaseModel):
    username: str
    password: str


class AuthenticatedStudent(BaseModel):
    student_id: str
    name: str
    class_name: Optional[str] = None


class AuthenticatedAdmin(BaseModel):
    username: str
    name: Optional[str] = None


class LoginResult(BaseModel):
    success: bool
    role: Optional[str] = None
    student: Optional[AuthenticatedStudent] = None
    admin: Optional[AuthenticatedAdmin] = None
    message: Optional[str] = None
    error: Optional[str] = None
    fixture: bool = False  # True si authentifié via un compte de test FIXTURE_ACCOUNTS
