"""
Service métier pour les annonces et leur diffusion par email.

Flux de diffusion :
  1. Résoudre les destinataires (type de cible all/parent, classe ciblée, email renseigné)
  2. Pour chaque destinataire, séquentiellement :
     a. Créer la ligne mail_send_history en pending (ou reprendre la ligne existante)
     b. Envoyer l'email
     c. Passer la ligne en sent ou failed (+ message d'erreur) et committer
  3. Retourner le rapport (envoyés, échecs, erreurs)

Pas de reprise automatique : un échec (SMTP ou BDD) est journalisé et n'empêche pas les envois suivants.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.notice import MailSendHistory, Notice
from app.models.student import Student
from app.schemas.notice import (
    BroadcastReport,
    NoticeCreate,
    NoticeResponse,
    NoticeUpdate,
    NoticeUpdateResult,
)
from app.services.email_service import send_notice_email

logger = logging.getLogger(__name__)

# Seuls ces types de cible déclenchent un envoi d'email ("student" n'envoie rien)
EMAIL_TARGET_TYPES = {"all", "parent"}
ALL_CLASSES = "all"


def create_notice(db: Session, data: NoticeCreate) -> NoticeResponse:
    """Crée une annonce. La création seule ne déclenche pas d'envoi."""
    notice = Notice(**data.model_dump())
    db.add(notice)
    db.commit()
    db.refresh(notice)
    logger.info("Annonce créée : %s (%s)", notice.title, notice.id)
    return NoticeResponse.model_validate(notice)


def get_notices(
    db: Session,
    target_type: Optional[str] = None,
    target_class: Optional[str] = None,
) -> list[NoticeResponse]:
    """Retourne les annonces, de la plus récente à la plus ancienne."""
    query = select(Notice)
    if target_type:
        query = query.where(Notice.target_type.in_([target_type, "all"]))
    if target_class:
        query = query.where(Notice.target_class.in_([target_class, ALL_CLASSES]))
    notices = db.execute(query.order_by(Notice.created_at.desc())).scalars().all()
    return [NoticeResponse.model_validate(n) for n in notices]


def get_notice(db: Session, notice_id: int) -> Optional[NoticeResponse]:
    notice = db.get(Notice, notice_id)
    if notice is None:
        return None
    return NoticeResponse.model_validate(notice)


def update_notice(db: Session, notice_id: int, data: NoticeUpdate) -> Optional[NoticeUpdateResult]:
    """
    Met à jour les champs fournis puis diffuse l'annonce par email
    si son type de cible le prévoit (all ou parent).
    Retourne None si l'annonce est introuvable.
    """
    notice = db.get(Notice, notice_id)
    if notice is None:
        return None

    update_data = data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(notice, field, value)
    db.commit()
    db.refresh(notice)
    logger.info("Annonce mise à jour : %s", notice.id)

    report = None
    if notice.target_type in EMAIL_TARGET_TYPES:
        recipients = resolve_recipients(db, notice)
        report = broadcast_notice(db, notice, recipients)

    return NoticeUpdateResult(notice=NoticeResponse.model_validate(notice), broadcast=report)


def delete_notice(db: Session, notice_id: int) -> bool:
    """Supprime une annonce et, en cascade, son historique d'envoi."""
    notice = db.get(Notice, notice_id)
    if notice is None:
        return False
    db.delete(notice)
    db.commit()
    return True


def is_recipient(notice: Notice, student: Student) -> bool:
    """Vrai si l'élève doit recevoir l'annonce par email."""
    if notice.target_type not in EMAIL_TARGET_TYPES:
        return False
    if notice.target_class != ALL_CLASSES and student.class_name != notice.target_class:
        return False
    return bool(student.email and student.email.strip())


def resolve_recipients(db: Session, notice: Notice) -> list[Student]:
    """
    Élèves destinataires d'une annonce : classe ciblée (toutes si "all") et email renseigné.
    Les élèves sans email sont exclus silencieusement, sans ligne d'historique.
    """
    if notice.target_type not in EMAIL_TARGET_TYPES:
        return []

    query = select(Student).where(Student.email.is_not(None))
    if notice.target_class != ALL_CLASSES:
        query = query.where(Student.class_name == notice.target_class)

    students = db.execute(query.order_by(Student.id)).scalars().all()
    return [s for s in students if is_recipient(notice, s)]


def _pending_history(db: Session, notice_id: int, student_id: str, email: str) -> MailSendHistory:
    """Ligne de livraison du destinataire : créée en pending ou reprise si elle existe déjà."""
    history = db.execute(
        select(MailSendHistory).where(
            MailSendHistory.notice_id == notice_id,
            MailSendHistory.student_id == student_id,
        )
    ).scalar_one_or_none()

    if history is None:
        history = MailSendHistory(
            notice_id=notice_id,
            student_id=student_id,
            email=email,
            status="pending",
        )
        db.add(history)
        db.commit()
    else:
        history.email = email
    return history


def broadcast_notice(db: Session, notice: Notice, recipients: list[Student]) -> BroadcastReport:
    """
    Envoie l'annonce à chaque destinataire et enregistre le statut de livraison.
    Chaque envoi est indépendant : une erreur SMTP ou BDD est journalisée et la boucle continue.
    """
    report = BroadcastReport(
        notice_id=notice.id,
        recipients=len(recipients),
        sent_count=0,
        failed_count=0,
        errors=[],
    )
    # Lus une fois : un rollback expire les objets de la session
    notice_id, title, content = notice.id, notice.title, notice.content

    for student in recipients:
        student_id, email = student.id, student.email

        try:
            history = _pending_history(db, notice_id, student_id, email)
        except SQLAlchemyError as exc:
            db.rollback()
            error_msg = f"Historique de livraison impossible à créer pour {email} : {exc}"
            report.failed_count += 1
            report.errors.append(error_msg)
            logger.error(error_msg)
            continue

        try:
            send_notice_email(email, title, content)
            history.status = "sent"
            history.error_message = None
            report.sent_count += 1
        except Exception as exc:
            error_msg = f"Erreur envoi email {email} : {exc}"
            history.status = "failed"
            history.error_message = str(exc)
            report.failed_count += 1
            report.errors.append(error_msg)
            logger.error(error_msg)

        try:
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            error_msg = f"Statut de livraison non enregistré pour {email} : {exc}"
            report.errors.append(error_msg)
            logger.error(error_msg)

    logger.info(
        "Annonce %s diffusée : %d envoyés, %d échecs sur %d destinataires",
        notice_id, report.sent_count, report.failed_count, report.recipients,
    )
    return report


def broadcast_notice_by_id(db: Session, notice_id: int) -> BroadcastReport:
    """
    Diffuse une annonce existante. Lève ValueError si introuvable
    ou si son type de cible n'envoie pas d'email.
    """
    notice = db.get(Notice, notice_id)
    if notice is None:
        raise ValueError("Annonce introuvable.")
    if notice.target_type not in EMAIL_TARGET_TYPES:
        raise ValueError(f"Le type de cible '{notice.target_type}' ne déclenche pas d'envoi d'email.")
    return broadcast_notice(db, notice, resolve_recipients(db, notice))


def get_mail_history(db: Session, notice_id: int) -> list[MailSendHistory]:
    """Historique de livraison d'une annonce. Lève ValueError si l'annonce est introuvable."""
    if db.get(Notice, notice_id) is None:
        raise ValueError("Annonce introuvable.")
    return db.execute(
        select(MailSendHistory)
        .where(MailSendHistory.notice_id == notice_id)
        .order_by(MailSendHistory.student_id)
    ).scalars().all()
