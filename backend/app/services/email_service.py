"""
Service d'envoi d'emails SMTP.
Utilisé pour la diffusion des annonces aux élèves / parents et pour l'envoi unitaire (POST /mail/send).
"""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from app.config import settings

logger = logging.getLogger(__name__)


class MailConfigurationError(RuntimeError):
    """Paramètres SMTP manquants."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(f"Configuration du serveur mail incomplète : {', '.join(missing)}")


def missing_smtp_settings() -> list[str]:
    """Retourne la liste des paramètres SMTP obligatoires non renseignés."""
    required = {
        "SMTP_HOST": settings.SMTP_HOST,
        "SMTP_PORT": settings.SMTP_PORT,
        "SMTP_USERNAME": settings.SMTP_USERNAME,
        "SMTP_PASSWORD": settings.SMTP_PASSWORD,
    }
    return [name for name, value in required.items() if not value]


def send_mail(to_email: str, subject: str, html_content: str) -> None:
    """
    Envoie un email HTML.
    Lève MailConfigurationError si le SMTP n'est pas configuré, une exception smtplib en cas d'échec.
    """
    missing = missing_smtp_settings()
    if missing:
        raise MailConfigurationError(missing)

    msg = MIMEMultipart("alternative")
    msg["From"] = settings.SMTP_FROM or settings.SMTP_USERNAME
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.attach(MIMEText(html_content, "html", "utf-8"))

    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT) as server:
        if settings.SMTP_USE_TLS:
            server.starttls()
        server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
        server.send_message(msg)

    logger.info("Email envoyé à %s : %s", to_email, subject)


def render_notice_email(title: str, content: str) -> tuple[str, str]:
    """Construit (sujet, corps HTML) d'une annonce : enveloppe fixe autour du contenu."""
    subject = f"{settings.MAIL_SUBJECT_PREFIX}{title}"
    html_content = f"""
    <div style="font-family: sans-serif; max-width: 600px; margin: 0 auto;">
      <p style="color: #333; font-size: 14px;">
        Madame, Monsieur,<br>
        Nous vous remercions de votre soutien constant aux activités de l'école.<br>
        Veuillez trouver ci-dessous l'information suivante.
      </p>
      <div style="margin: 20px 0; padding: 20px; background-color: #f5f5f5; border-radius: 5px;">
        {content}
      </div>
      <p style="color: #666; font-size: 12px;">
        Ce message est envoyé automatiquement depuis une adresse d'envoi seul. Ne pas répondre à cet email.
      </p>
    </div>
    """
    return subject, html_content


def send_notice_email(to_email: str, title: str, content: str) -> None:
    """Envoie une annonce à une adresse. Lève une exception en cas d'échec."""
    subject, html_content = render_notice_email(title, content)
    send_mail(to_email, subject, html_content)
