"""
Tests unitaires pour le service d'envoi d'emails SMTP.
"""

from unittest.mock import MagicMock, patch

import pytest

from app.services.email_service import (
    MailConfigurationError,
    missing_smtp_settings,
    render_notice_email,
    send_mail,
)


def configure_smtp(mock_settings, **overrides):
    values = {
        "SMTP_HOST": "smtp.example.com",
        "SMTP_PORT": 587,
        "SMTP_USERNAME": "noreply@example.com",
        "SMTP_PASSWORD": "secret",
        "SMTP_FROM": "",
        "SMTP_USE_TLS": True,
        "MAIL_SUBJECT_PREFIX": "[Portail école] ",
    }
    values.update(overrides)
    for name, value in values.items():
        setattr(mock_settings, name, value)


@patch("app.services.email_service.settings")
def test_parametres_smtp_manquants(mock_settings):
    configure_smtp(mock_settings, SMTP_HOST="", SMTP_PASSWORD="")

    assert missing_smtp_settings() == ["SMTP_HOST", "SMTP_PASSWORD"]


@patch("app.services.email_service.settings")
def test_envoi_sans_configuration(mock_settings):
    configure_smtp(mock_settings, SMTP_USERNAME="")

    with pytest.raises(MailConfigurationError) as exc_info:
        send_mail("parent@example.com", "Sujet", "<p>Corps</p>")
    assert exc_info.value.missing == ["SMTP_USERNAME"]


@patch("app.services.email_service.smtplib.SMTP")
@patch("app.services.email_service.settings")
def test_envoi_succes(mock_settings, mock_smtp):
    configure_smtp(mock_settings)
    server = MagicMock()
    mock_smtp.return_value.__enter__.return_value = server

    send_mail("parent@example.com", "Sujet", "<p>Corps</p>")

    mock_smtp.assert_called_once_with("smtp.example.com", 587)
    server.starttls.assert_called_once()
    server.login.assert_called_once_with("noreply@example.com", "secret")
    msg = server.send_message.call_args[0][0]
    assert msg["To"] == "parent@example.com"
    assert msg["From"] == "noreply@example.com"
    assert msg["Subject"] == "Sujet"


@patch("app.services.email_service.smtplib.SMTP")
@patch("app.services.email_service.settings")
def test_envoi_sans_tls(mock_settings, mock_smtp):
    configure_smtp(mock_settings, SMTP_USE_TLS=False, SMTP_FROM="ecole@example.com")
    server = MagicMock()
    mock_smtp.return_value.__enter__.return_value = server

    send_mail("parent@example.com", "Sujet", "<p>Corps</p>")

    server.starttls.assert_not_called()
    assert server.send_message.call_args[0][0]["From"] == "ecole@example.com"


@patch("app.services.email_service.settings")
def test_enveloppe_annonce(mock_settings):
    configure_smtp(mock_settings)

    subject, html = render_notice_email("Réunion", "<p>Le 12 mars</p>")

    assert subject == "[Portail école] Réunion"
    assert "<p>Le 12 mars</p>" in html
    assert "Ne pas répondre" in html
