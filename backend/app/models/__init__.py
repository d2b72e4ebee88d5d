# Importe tous les modèles pour enregistrer leurs tables dans Base.metadata
# avant que SQLAlchemy tente de résoudre les clés étrangères inter-modèles.
# students doit être chargé avant test_scores, parent_students et mail_send_history.

from app.models.student import Student, ParentStudent  # noqa: F401  — doit précéder les autres
from app.models.test_score import TestScore, QuestionCount, SubjectCriteria  # noqa: F401
from app.models.notice import Notice, MailSendHistory  # noqa: F401
from app.models.admin import AdminUser  # noqa: F401
