"""
Router pour les annonces, leur diffusion par email et l'envoi unitaire d'un email.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.notice import (
    BroadcastReport,
    MailHistoryResponse,
    MailSendRequest,
    MailSendResult,
    NoticeCreate,
    NoticeResponse,
    NoticeUpdate,
    NoticeUpdateResult,
)
from app.services import notice_service
from app.services.email_service import MailConfigurationError, send_mail

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/notices", tags=["Annonces"])
mail_router = APIRouter(prefix="/api/v1/mail", tags=["Emails"])


@router.post("", response_model=NoticeResponse, status_code=201, summary="Créer une annonce")
def create_notice(data: NoticeCreate, db: Session = Depends(get_db)):
    """La création n'envoie aucun email ; la diffusion a lieu à la mise à jour ou via /broadcast."""
    return notice_service.create_notice(db, data)


@router.get("", response_model=List[NoticeResponse], summary="Lister les annonces")
def list_notices(
    target_type: Optional[str] = None,
    target_class: Optional[str] = None,
    db: Session = Depends(get_db),
):
    return notice_service.get_notices(db, target_type, target_class)


@router.get("/{notice_id}", response_model=NoticeResponse, summary="Détail d'une annonce")
def get_notice(notice_id: int, db: Session = Depends(get_db)):
    notice = notice_service.get_notice(db, notice_id)
    if notice is None:
        raise HTTPException(status_code=404, detail="Annonce introuvable.")
    return notice


@router.put("/{notice_id}", response_model=NoticeUpdateResult, summary="Modifier une annonce")
def update_notice(notice_id: int, data: NoticeUpdate, db: Session = Depends(get_db)):
    """
    Met à jour l'annonce puis la diffuse par email aux élèves de la classe ciblée
    lorsque le type de cible est `all` ou `parent`.
    """
    result = notice_service.update_notice(db, notice_id, data)
    if result is None:
        raise HTTPException(status_code=404, detail="Annonce introuvable.")
    return result


@router.delete("/{notice_id}", status_code=204, summary="Supprimer une annonce")
def delete_notice(notice_id: int, db: Session = Depends(get_db)):
    if not notice_service.delete_notice(db, notice_id):
        raise HTTPException(status_code=404, detail="Annonce introuvable.")


@router.post("/{notice_id}/broadcast", response_model=BroadcastReport, summary="Diffuser une annonce")
def broadcast_notice(notice_id: int, db: Session = Depends(get_db)):
    try:
        return notice_service.broadcast_notice_by_id(db, notice_id)
    except ValueError as e:
        status = 404 if "introuvable" in str(e) else 400
        raise HTTPException(status_code=status, detail=str(e))


@router.get(
    "/{notice_id}/mail-history",
    response_model=List[MailHistoryResponse],
    summary="Historique d'envoi d'une annonce",
)
def mail_history(notice_id: int, db: Session = Depends(get_db)):
    try:
        return notice_service.get_mail_history(db, notice_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@mail_router.post("/send", response_model=MailSendResult, summary="Envoyer un email")
def send_single_mail(data: MailSendRequest):
    """Envoi unitaire : `to`, `subject` et `html` sont obligatoires."""
    missing = [field for field in ("to", "subject", "html") if not getattr(data, field)]
    if missing:
        raise HTTPException(status_code=400, detail=f"Champs obligatoires manquants : {', '.join(missing)}")

    try:
        send_mail(data.to, data.subject, data.html)
    except MailConfigurationError as e:
        logger.error("Envoi impossible : %s", e)
        raise HTTPException(status_code=500, detail={"error": str(e), "missing": e.missing})
    except Exception as e:
        logger.error("Erreur envoi email %s : %s", data.to, e)
        raise HTTPException(status_code=500, detail=f"Échec de l'envoi : {e}")

    return MailSendResult(success=True)
