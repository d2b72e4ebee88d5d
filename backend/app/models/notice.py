"""
Modèles SQLAlchemy pour les annonces et l'historique d'envoi des emails.

Cycle de vie de mail_send_history.status : pending → sent | pending → failed.
Aucun retour à pending : une nouvelle diffusion écrase directement le statut final.
"""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, func

from app.database import Base


class Notice(Base):
    __tablename__ = "notices"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    target_type = Column(String(10), nullable=False, default="all")  # all, student, parent
    target_class = Column(String(50), nullable=False, default="all")  # "all" = toutes les classes
    file_type = Column(String(10), nullable=True)                     # image, pdf
    image_url = Column(String(500), nullable=True)
    pdf_url = Column(String(500), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class MailSendHistory(Base):
    """Statut de livraison d'une annonce pour un élève (une ligne par couple annonce/élève)."""
    __tablename__ = "mail_send_history"
    __table_args__ = (UniqueConstraint("notice_id", "student_id"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    notice_id = Column(Integer, ForeignKey("notices.id", ondelete="CASCADE"), nullable=False)
    student_id = Column(String(20), ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    email = Column(String(255), nullable=False)
    status = Column(String(10), nullable=False, default="pending")  # pending, sent, failed
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
