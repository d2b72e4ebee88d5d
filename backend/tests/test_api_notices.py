"""
Tests d'intégration API pour les annonces, leur diffusion et l'envoi unitaire d'emails.
"""

from datetime import datetime
from unittest.mock import patch

from app.models.notice import MailSendHistory, Notice
from app.schemas.notice import BroadcastReport, NoticeResponse, NoticeUpdateResult
from app.services.email_service import MailConfigurationError


def make_notice(**kwargs) -> Notice:
    return Notice(
        id=kwargs.get("id", 1),
        title=kwargs.get("title", "Réunion de parents"),
        content=kwargs.get("content", "<p>Le 12 mars</p>"),
        target_type=kwargs.get("target_type", "all"),
        target_class=kwargs.get("target_class", "all"),
        created_at=datetime(2025, 3, 1, 10, 0),
    )


# ============================================================
# CRUD
# ============================================================

def test_creer_annonce_sans_envoi(client):
    notice = make_notice()

    with patch("app.services.notice_service.Notice", return_value=notice), \
         patch("app.services.notice_service.broadcast_notice") as mock_broadcast:
        response = client.post("/api/v1/notices", json={
            "title": "Réunion de parents",
            "content": "<p>Le 12 mars</p>",
            "target_type": "parent",
            "target_class": "25A",
        })

    assert response.status_code == 201
    assert response.json()["title"] == "Réunion de parents"
    mock_broadcast.assert_not_called()


def test_creer_annonce_titre_vide(client):
    response = client.post("/api/v1/notices", json={"title": " ", "content": "x"})
    assert response.status_code == 422


def test_creer_annonce_type_cible_invalide(client):
    response = client.post("/api/v1/notices", json={"title": "T", "content": "x", "target_type": "teacher"})
    assert response.status_code == 422


def test_lister_annonces(client, mock_db):
    mock_db.execute.return_value.scalars.return_value.all.return_value = [make_notice(id=2), make_notice(id=1)]

    response = client.get("/api/v1/notices?target_class=25A")

    assert response.status_code == 200
    assert [n["id"] for n in response.json()] == [2, 1]


def test_annonce_introuvable(client, mock_db):
    mock_db.get.return_value = None

    assert client.get("/api/v1/notices/99").status_code == 404
    assert client.put("/api/v1/notices/99", json={"title": "X"}).status_code == 404
    assert client.delete("/api/v1/notices/99").status_code == 404


def test_modifier_annonce_diffuse(client):
    result = NoticeUpdateResult(
        notice=NoticeResponse.model_validate(make_notice(title="Nouveau")),
        broadcast=BroadcastReport(notice_id=1, recipients=3, sent_count=2, failed_count=1, errors=["x"]),
    )

    with patch("app.services.notice_service.update_notice", return_value=result):
        response = client.put("/api/v1/notices/1", json={"title": "Nouveau"})

    assert response.status_code == 200
    body = response.json()
    assert body["notice"]["title"] == "Nouveau"
    assert body["broadcast"]["sent_count"] == 2
    assert body["broadcast"]["failed_count"] == 1


def test_supprimer_annonce(client, mock_db):
    mock_db.get.return_value = make_notice()

    response = client.delete("/api/v1/notices/1")

    assert response.status_code == 204
    mock_db.delete.assert_called_once()


# ============================================================
# Diffusion et historique
# ============================================================

def test_diffusion_explicite(client):
    report = BroadcastReport(notice_id=1, recipients=2, sent_count=2, failed_count=0, errors=[])

    with patch("app.services.notice_service.broadcast_notice_by_id", return_value=report):
        response = client.post("/api/v1/notices/1/broadcast")

    assert response.status_code == 200
    assert response.json()["sent_count"] == 2


def test_diffusion_annonce_introuvable(client, mock_db):
    mock_db.get.return_value = None

    response = client.post("/api/v1/notices/99/broadcast")

    assert response.status_code == 404


def test_diffusion_cible_eleve_400(client, mock_db):
    mock_db.get.return_value = make_notice(target_type="student")

    response = client.post("/api/v1/notices/1/broadcast")

    assert response.status_code == 400


def test_historique_envoi(client, mock_db):
    mock_db.get.return_value = make_notice()
    mock_db.execute.return_value.scalars.return_value.all.return_value = [
        MailSendHistory(notice_id=1, student_id="222056", email="a@example.com", status="sent"),
        MailSendHistory(notice_id=1, student_id="222057", email="b@example.com", status="failed",
                        error_message="Timeout"),
    ]

    response = client.get("/api/v1/notices/1/mail-history")

    assert response.status_code == 200
    data = response.json()
    assert [h["status"] for h in data] == ["sent", "failed"]
    assert data[1]["error_message"] == "Timeout"


# ============================================================
# POST /api/v1/mail/send
# ============================================================

def test_envoi_champs_manquants(client):
    response = client.post("/api/v1/mail/send", json={"to": "a@example.com"})

    assert response.status_code == 400
    assert "subject" in response.json()["detail"]


@patch("app.routers.notices.send_mail")
def test_envoi_smtp_non_configure(mock_send, client):
    mock_send.side_effect = MailConfigurationError(["SMTP_HOST", "SMTP_PASSWORD"])

    response = client.post("/api/v1/mail/send", json={"to": "a@example.com", "subject": "S", "html": "<p>x</p>"})

    assert response.status_code == 500
    assert response.json()["detail"]["missing"] == ["SMTP_HOST", "SMTP_PASSWORD"]


@patch("app.routers.notices.send_mail")
def test_envoi_succes(mock_send, client):
    response = client.post("/api/v1/mail/send", json={"to": "a@example.com", "subject": "S", "html": "<p>x</p>"})

    assert response.status_code == 200
    assert response.json()["success"] is True
    mock_send.assert_called_once_with("a@example.com", "S", "<p>x</p>")


@patch("app.routers.notices.send_mail")
def test_envoi_erreur_smtp(mock_send, client):
    mock_send.side_effect = OSError("Connexion refusée")

    response = client.post("/api/v1/mail/send", json={"to": "a@example.com", "subject": "S", "html": "<p>x</p>"})

    assert response.status_code == 500
