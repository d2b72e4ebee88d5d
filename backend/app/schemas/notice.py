"""
Schémas Pydantic pour les annonces, leur diffusion par email et l'envoi unitaire.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, field_validator

TargetType = Literal["all", "student", "parent"]


class NoticeCreate(BaseModel):
    title: str
    content: str
    target_type: TargetType = "all"
    target_class: str = "all"
    file_type: Optional[Literal["image", "pdf"]] = None
    image_url: Optional[str] = None
    pdf_url: Optional[str] = None

    @field_validator("title", "content")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le champ ne peut pas être vide.")
        return v.strip()


class NoticeUpdate(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    target_type: Optional[TargetType] = None
    target_class: Optional[str] = None
    file_type: Optional[Literal["image", "pdf"]] = None
    image_url: Optional[str] = None
    pdf_url: Optional[str] = None

    @field_validator("title", "content")
    @classmethod
    def not_empty(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Le champ ne peut pas être vide.")
        return v.strip() if v else v


class NoticeResponse(BaseModel):
    id: int
    title: str
    content: str
    target_type: str
    target_class: str
    file_type: Optional[str] = None
    image_url: Optional[str] = None
    pdf_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class BroadcastReport(BaseModel):
    """Rapport de diffusion d'une annonce par email."""
    notice_id: int
    recipients: int
    sent_count: int
    failed_count: int
    errors: List[str]


class NoticeUpdateResult(BaseModel):
    """Annonce mise à jour + rapport de diffusion (None si le type de cible n'envoie pas d'email)."""
    notice: NoticeResponse
    broadcast: Optional[BroadcastReport] = None


class MailHistoryResponse(BaseModel):
    notice_id: int
    student_id: str
    email: str
    status: str
    error_message: Optional[str] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class MailSendRequest(BaseModel):
    """Corps de POST /mail/send. Les champs manquants sont signalés par un 400 explicite."""
    to: Optional[str] = None
    subject: Optional[str] = None
    html: Optional[str] = None


class MailSendResult(BaseModel):
    success: bool
    error: Optional[str] = None
